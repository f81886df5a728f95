"""MCP server bootstrap – registers tools, resources, prompts and runs transports."""

from __future__ import annotations

import asyncio
import json
import logging

from mcp.server import Server
from mcp.server.stdio import stdio_server
from mcp.types import (
    GetPromptResult,
    Prompt,
    PromptArgument,
    PromptMessage,
    Resource,
    TextContent,
    Tool,
)

from fmp_mcp.config import settings
from fmp_mcp.mcp.tools import (
    MAX_STATEMENT_LIMIT,
    _error_response,
    handle_calculate_financial_ratios,
    handle_compare_companies,
    handle_get_balance_sheet,
    handle_get_cash_flow_statement,
    handle_get_company_analysis,
    handle_get_company_profile,
    handle_get_income_statement,
    handle_get_market_sector,
    handle_get_stock_price,
    handle_perform_dcf_analysis,
)

logger = logging.getLogger("mcp.server")

# ---------------------------------------------------------------------------
# Tool registry
# ---------------------------------------------------------------------------

_SYMBOL_SCHEMA = {
    "type": "object",
    "properties": {
        "symbol": {"type": "string", "description": "Stock ticker symbol, e.g. AAPL"},
    },
    "required": ["symbol"],
}

_SYMBOLS_SCHEMA = {
    "type": "object",
    "properties": {
        "symbols": {
            "type": "array",
            "items": {"type": "string"},
            "description": "Ticker symbols, in the order results should be reported",
        },
    },
    "required": ["symbols"],
}

_STATEMENT_SCHEMA = {
    "type": "object",
    "properties": {
        "symbol": {"type": "string", "description": "Stock ticker symbol, e.g. AAPL"},
        "limit": {
            "type": "integer",
            "description": "Number of most recent periods to return",
            "default": 5,
            "minimum": 1,
            "maximum": MAX_STATEMENT_LIMIT,
        },
    },
    "required": ["symbol"],
}

TOOL_DEFINITIONS: list[Tool] = [
    Tool(
        name="get_company_analysis",
        description=(
            "Fundamental analysis of one company: profile, last 5 income statements, "
            "current quote, P/E ratio, profit margin and revenue growth."
        ),
        inputSchema=_SYMBOL_SCHEMA,
    ),
    Tool(
        name="calculate_financial_ratios",
        description=(
            "Key ratios from the latest statements: P/E, profit margin, return on equity, "
            "debt-to-equity and an approximate price-to-book."
        ),
        inputSchema=_SYMBOL_SCHEMA,
    ),
    Tool(
        name="perform_dcf_analysis",
        description=(
            "Compare the discounted-cash-flow fair value with the market price and "
            "return the upside with a BUY, HOLD or SELL recommendation."
        ),
        inputSchema=_SYMBOL_SCHEMA,
    ),
    Tool(
        name="compare_companies",
        description=(
            "Compare companies side by side. Reports which has the largest market cap "
            "and which has the highest latest EPS."
        ),
        inputSchema=_SYMBOLS_SCHEMA,
    ),
    Tool(
        name="get_market_sector",
        description=(
            "Aggregate a group of companies: sector label, total and average market cap, "
            "average daily change and the top performer."
        ),
        inputSchema=_SYMBOLS_SCHEMA,
    ),
    Tool(
        name="get_company_profile",
        description="Get the company profile: name, industry, sector and market cap.",
        inputSchema=_SYMBOL_SCHEMA,
    ),
    Tool(
        name="get_stock_price",
        description="Get the current stock quote: price, change and percentage change.",
        inputSchema=_SYMBOL_SCHEMA,
    ),
    Tool(
        name="get_income_statement",
        description="Get recent income statements (revenue, net income, EPS), newest first.",
        inputSchema=_STATEMENT_SCHEMA,
    ),
    Tool(
        name="get_balance_sheet",
        description="Get recent balance sheets (assets, liabilities, equity), newest first.",
        inputSchema=_STATEMENT_SCHEMA,
    ),
    Tool(
        name="get_cash_flow_statement",
        description="Get recent cash-flow statements exactly as returned by the provider.",
        inputSchema=_STATEMENT_SCHEMA,
    ),
]

TOOL_HANDLERS = {
    "get_company_analysis": handle_get_company_analysis,
    "calculate_financial_ratios": handle_calculate_financial_ratios,
    "perform_dcf_analysis": handle_perform_dcf_analysis,
    "compare_companies": handle_compare_companies,
    "get_market_sector": handle_get_market_sector,
    "get_company_profile": handle_get_company_profile,
    "get_stock_price": handle_get_stock_price,
    "get_income_statement": handle_get_income_statement,
    "get_balance_sheet": handle_get_balance_sheet,
    "get_cash_flow_statement": handle_get_cash_flow_statement,
}

# ---------------------------------------------------------------------------
# Resources & prompts
# ---------------------------------------------------------------------------

METRICS_RESOURCE_URI = "financial://metrics"

RESOURCE_DEFINITIONS: list[Resource] = [
    Resource(
        uri=METRICS_RESOURCE_URI,
        name="Derived Metrics",
        description="Formulas and rounding rules of every metric the analysis tools derive",
        mimeType="application/json",
    ),
]

PROMPT_DEFINITIONS: list[Prompt] = [
    Prompt(
        name="company_deep_dive",
        description="Fundamental, ratio and DCF review of a single company",
        arguments=[
            PromptArgument(name="symbol", description="Ticker symbol (e.g. AAPL)", required=True),
        ],
    ),
    Prompt(
        name="sector_analysis",
        description="Compare a group of companies and summarise the sector",
        arguments=[
            PromptArgument(
                name="symbols",
                description="Comma-separated ticker symbols (e.g. AAPL,MSFT,GOOGL)",
                required=True,
            ),
        ],
    ),
]


async def call_tool(name: str, arguments: dict | None) -> dict:
    """Dispatch *name* to its handler, or return an UNKNOWN_TOOL envelope."""
    handler = TOOL_HANDLERS.get(name)
    if handler is None:
        return _error_response(
            name,
            "UNKNOWN_TOOL",
            f"Tool '{name}' is not registered",
            0.0,
            hint=f"Available tools: {list(TOOL_HANDLERS.keys())}",
        )
    return await handler(arguments or {})


def read_resource_text(uri: str) -> str:
    """Return the JSON body of a named resource."""
    if str(uri) == METRICS_RESOURCE_URI:
        return json.dumps(
            {
                "rounding": "All ratios are rounded half-up to 2 decimals; sector market caps to whole units.",
                "metrics": {
                    "pe_ratio": "price / latest EPS",
                    "profit_margin": "latest net income / latest revenue * 100",
                    "revenue_growth": "(latest revenue - previous revenue) / previous revenue * 100, 0 without history",
                    "return_on_equity": "net income / total stockholders' equity * 100",
                    "debt_to_equity": "total liabilities / total stockholders' equity",
                    "price_to_book": "price * 1,000,000,000 / total stockholders' equity (approximation)",
                    "upside": "(DCF value - price) / price * 100",
                    "recommendation": "BUY if upside > 20, HOLD if 0 < upside <= 20, otherwise SELL",
                },
            },
            indent=2,
        )

    raise ValueError(f"Unknown resource: {uri}")


def build_prompt(name: str, arguments: dict | None = None) -> GetPromptResult:
    """Return a filled prompt template."""
    args = arguments or {}

    if name == "company_deep_dive":
        symbol = args.get("symbol", "AAPL")
        text = (
            f"Review {symbol} using these steps:\n\n"
            f"1. Use get_company_analysis for {symbol} to see profitability and growth\n"
            f"2. Use calculate_financial_ratios for {symbol} to check leverage and returns\n"
            f"3. Use perform_dcf_analysis for {symbol} to compare fair value with the price\n"
            "4. Summarise strengths, risks and whether the DCF recommendation is supported "
            "by the fundamentals."
        )
    elif name == "sector_analysis":
        symbols = args.get("symbols", "AAPL,MSFT,GOOGL")
        text = (
            f"Analyse the companies {symbols}:\n\n"
            f"1. Use get_market_sector with [{symbols}] for sector-wide aggregates\n"
            f"2. Use compare_companies with [{symbols}] to find the size and EPS leaders\n"
            "3. Run perform_dcf_analysis for the top performer\n"
            "4. Summarise which companies look best positioned and why."
        )
    else:
        raise ValueError(f"Unknown prompt: {name}")

    return GetPromptResult(
        description=f"{name} prompt",
        messages=[PromptMessage(role="user", content=TextContent(type="text", text=text))],
    )


# ---------------------------------------------------------------------------
# Server factory
# ---------------------------------------------------------------------------


def create_mcp_server() -> Server:
    """Create and configure the MCP server instance."""
    server = Server(settings.mcp_server_name)

    # ── Tools ─────────────────────────────────────────────────────────────

    @server.list_tools()
    async def list_tools() -> list[Tool]:
        return TOOL_DEFINITIONS

    @server.call_tool()
    async def handle_call_tool(name: str, arguments: dict | None) -> list[TextContent]:
        result = await call_tool(name, arguments)
        return [TextContent(type="text", text=json.dumps(result, default=str))]

    # ── Resources ─────────────────────────────────────────────────────────

    @server.list_resources()
    async def list_resources() -> list[Resource]:
        return RESOURCE_DEFINITIONS

    @server.read_resource()
    async def read_resource(uri) -> str:
        return read_resource_text(str(uri))

    # ── Prompts ───────────────────────────────────────────────────────────

    @server.list_prompts()
    async def list_prompts() -> list[Prompt]:
        return PROMPT_DEFINITIONS

    @server.get_prompt()
    async def get_prompt(name: str, arguments: dict | None = None) -> GetPromptResult:
        return build_prompt(name, arguments)

    return server


# ---------------------------------------------------------------------------
# Entry-point: run MCP server over stdio
# ---------------------------------------------------------------------------


async def run_mcp_server() -> None:
    """Start the MCP server using stdio transport."""
    server = create_mcp_server()
    logger.info(
        "Starting MCP server '%s' v%s (stdio)",
        settings.mcp_server_name,
        settings.mcp_server_version,
    )

    async with stdio_server() as (read_stream, write_stream):
        await server.run(read_stream, write_stream, server.create_initialization_options())


def main() -> None:
    """CLI entry-point."""
    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )
    if not settings.fmp_api_key:
        raise SystemExit("FMP_API_KEY environment variable is required")
    asyncio.run(run_mcp_server())


if __name__ == "__main__":
    main()
