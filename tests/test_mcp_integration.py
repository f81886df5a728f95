"""Integration tests for MCP server protocol – tools, resources, and prompts."""

from __future__ import annotations

import json
from unittest.mock import AsyncMock, patch

import pytest
from mcp.types import GetPromptResult

from fmp_mcp.mcp.server import (
    METRICS_RESOURCE_URI,
    PROMPT_DEFINITIONS,
    RESOURCE_DEFINITIONS,
    TOOL_DEFINITIONS,
    TOOL_HANDLERS,
    build_prompt,
    call_tool,
    create_mcp_server,
    read_resource_text,
)

EXPECTED_TOOLS = {
    "get_company_analysis",
    "calculate_financial_ratios",
    "perform_dcf_analysis",
    "compare_companies",
    "get_market_sector",
    "get_company_profile",
    "get_stock_price",
    "get_income_statement",
    "get_balance_sheet",
    "get_cash_flow_statement",
}


def test_mcp_list_tools():
    assert len(TOOL_DEFINITIONS) == 10
    assert {t.name for t in TOOL_DEFINITIONS} == EXPECTED_TOOLS


def test_every_tool_has_a_handler():
    assert set(TOOL_HANDLERS) == {t.name for t in TOOL_DEFINITIONS}


def test_tool_schemas_have_required_fields():
    for tool in TOOL_DEFINITIONS:
        assert tool.description, f"Tool {tool.name} must have a description"
        assert tool.inputSchema["type"] == "object"
        assert "properties" in tool.inputSchema
        for required in tool.inputSchema["required"]:
            assert required in tool.inputSchema["properties"]


def test_multi_company_tools_take_symbol_arrays():
    for name in ("compare_companies", "get_market_sector"):
        tool = next(t for t in TOOL_DEFINITIONS if t.name == name)
        assert tool.inputSchema["properties"]["symbols"]["type"] == "array"


def test_statement_tools_expose_limit():
    tool = next(t for t in TOOL_DEFINITIONS if t.name == "get_income_statement")
    limit = tool.inputSchema["properties"]["limit"]
    assert limit["default"] == 5
    assert limit["minimum"] == 1


def test_server_creation():
    assert create_mcp_server() is not None


@pytest.mark.asyncio
async def test_call_tool_unknown():
    result = await call_tool("does_not_exist", {})
    assert result["ok"] is False
    assert result["error"]["error_code"] == "UNKNOWN_TOOL"


@pytest.mark.asyncio
async def test_call_tool_dispatches_to_handler():
    handler = AsyncMock(return_value={"ok": True})
    with patch.dict(TOOL_HANDLERS, {"perform_dcf_analysis": handler}):
        result = await call_tool("perform_dcf_analysis", None)
    assert result == {"ok": True}
    handler.assert_awaited_once_with({})


def test_metrics_resource():
    assert [r.name for r in RESOURCE_DEFINITIONS] == ["Derived Metrics"]
    body = json.loads(read_resource_text(METRICS_RESOURCE_URI))
    assert "price_to_book" in body["metrics"]
    assert "BUY if upside > 20" in body["metrics"]["recommendation"]


def test_unknown_resource():
    with pytest.raises(ValueError, match="Unknown resource"):
        read_resource_text("financial://nope")


def test_prompts_are_listed():
    assert {p.name for p in PROMPT_DEFINITIONS} == {"company_deep_dive", "sector_analysis"}


def test_company_deep_dive_prompt():
    result = build_prompt("company_deep_dive", {"symbol": "NVDA"})
    assert isinstance(result, GetPromptResult)
    text = result.messages[0].content.text
    assert "perform_dcf_analysis for NVDA" in text


def test_sector_analysis_prompt():
    text = build_prompt("sector_analysis", {"symbols": "JPM,BAC"}).messages[0].content.text
    assert "get_market_sector with [JPM,BAC]" in text


def test_unknown_prompt():
    with pytest.raises(ValueError, match="Unknown prompt"):
        build_prompt("bogus")
