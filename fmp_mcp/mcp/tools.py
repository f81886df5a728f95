"""MCP tool handlers – the bridge between MCP protocol and the analysis engine."""

from __future__ import annotations

import logging
import time

from fmp_mcp.clients.fmp_client import FMPClientError
from fmp_mcp.exceptions import ConfigurationError, InvalidInputError, UndefinedMetricError
from fmp_mcp.provider import fmp_client_factory
from fmp_mcp.schemas.common import ErrorCode, ErrorDetail, Meta, ToolResponse
from fmp_mcp.services.analysis_service import FinancialAnalysisService

logger = logging.getLogger("mcp.tools")

MAX_STATEMENT_LIMIT = 120

# Exceptions a tool turns into an error envelope; anything else propagates.
TOOL_ERRORS = (InvalidInputError, FMPClientError, UndefinedMetricError, ConfigurationError)

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _elapsed_ms(t0: float) -> float:
    return round((time.perf_counter() - t0) * 1000, 2)


def _error_response(
    tool: str, code: ErrorCode, message: str, elapsed: float, hint: str | None = None
) -> dict:
    return ToolResponse(
        tool=tool,
        ok=False,
        data=None,
        error=ErrorDetail(error_code=code, message=message, hint=hint),
        meta=Meta(execution_ms=elapsed, row_count=0),
    ).model_dump()


def _ok(tool: str, data, elapsed: float, row_count: int | None = None) -> dict:
    return ToolResponse(
        tool=tool,
        ok=True,
        data=data,
        error=None,
        meta=Meta(execution_ms=elapsed, row_count=row_count),
    ).model_dump()


def _failure(tool: str, exc: Exception, t0: float) -> dict:
    """Map an engine / client exception to an error envelope."""
    elapsed = _elapsed_ms(t0)
    if isinstance(exc, InvalidInputError):
        code, hint = "INVALID_INPUT", None
    elif isinstance(exc, FMPClientError):
        code, hint = "UPSTREAM_ERROR", "Check the symbol and the FMP_API_KEY, then retry."
    elif isinstance(exc, ConfigurationError):
        code, hint = "CONFIGURATION_ERROR", "Set FMP_API_KEY in the environment or .env file."
    else:
        code, hint = "UNDEFINED_METRIC", "The provider data has a zero or missing value."
    logger.warning("%s failed code=%s error=%s ms=%.1f", tool, code, exc, elapsed)
    return _error_response(tool, code, str(exc), elapsed, hint=hint)


def _symbol_arg(arguments: dict) -> str:
    """Return the ``symbol`` argument verbatim; it must be a non-blank string."""
    symbol = arguments.get("symbol", "")
    if not isinstance(symbol, str) or not symbol.strip():
        raise InvalidInputError("symbol is required")
    return symbol


def _symbols_arg(arguments: dict) -> list[str]:
    symbols = arguments.get("symbols", [])
    if not isinstance(symbols, list) or not all(isinstance(s, str) for s in symbols):
        raise InvalidInputError("symbols must be an array of strings")
    return symbols


def _limit_arg(arguments: dict) -> int:
    limit = arguments.get("limit", 5)
    # bool is an int subclass
    if isinstance(limit, bool) or not isinstance(limit, int):
        raise InvalidInputError("limit must be an integer")
    if not 1 <= limit <= MAX_STATEMENT_LIMIT:
        raise InvalidInputError(f"limit must be between 1 and {MAX_STATEMENT_LIMIT}")
    return limit


# ---------------------------------------------------------------------------
# Analysis tools
# ---------------------------------------------------------------------------


async def handle_get_company_analysis(arguments: dict) -> dict:
    """Fundamentals for one company: profile, income history, quote, P/E, margin, growth.

    Args:
        arguments: {"symbol": str}
    """
    t0 = time.perf_counter()
    try:
        symbol = _symbol_arg(arguments)
        async with fmp_client_factory() as client:
            result = await FinancialAnalysisService(client).get_company_analysis(symbol)
    except TOOL_ERRORS as exc:
        return _failure("get_company_analysis", exc, t0)

    elapsed = _elapsed_ms(t0)
    logger.info("get_company_analysis symbol=%s ms=%.1f", symbol, elapsed)
    return _ok("get_company_analysis", result.model_dump(mode="json"), elapsed, row_count=1)


async def handle_calculate_financial_ratios(arguments: dict) -> dict:
    """P/E, profit margin, ROE, debt-to-equity and price-to-book for one company.

    Args:
        arguments: {"symbol": str}
    """
    t0 = time.perf_counter()
    try:
        symbol = _symbol_arg(arguments)
        async with fmp_client_factory() as client:
            result = await FinancialAnalysisService(client).calculate_financial_ratios(symbol)
    except TOOL_ERRORS as exc:
        return _failure("calculate_financial_ratios", exc, t0)

    elapsed = _elapsed_ms(t0)
    logger.info("calculate_financial_ratios symbol=%s ms=%.1f", symbol, elapsed)
    return _ok("calculate_financial_ratios", result.model_dump(mode="json"), elapsed, row_count=1)


async def handle_perform_dcf_analysis(arguments: dict) -> dict:
    """DCF fair value vs. market price with a BUY / HOLD / SELL recommendation.

    Args:
        arguments: {"symbol": str}
    """
    t0 = time.perf_counter()
    try:
        symbol = _symbol_arg(arguments)
        async with fmp_client_factory() as client:
            result = await FinancialAnalysisService(client).perform_dcf_analysis(symbol)
    except TOOL_ERRORS as exc:
        return _failure("perform_dcf_analysis", exc, t0)

    elapsed = _elapsed_ms(t0)
    logger.info(
        "perform_dcf_analysis symbol=%s rec=%s ms=%.1f",
        symbol,
        result.recommendation.value,
        elapsed,
    )
    return _ok("perform_dcf_analysis", result.model_dump(mode="json"), elapsed, row_count=1)


async def handle_compare_companies(arguments: dict) -> dict:
    """Compare companies by market cap and latest EPS.

    Args:
        arguments: {"symbols": [str]}
    """
    t0 = time.perf_counter()
    try:
        symbols = _symbols_arg(arguments)
        async with fmp_client_factory() as client:
            result = await FinancialAnalysisService(client).compare_companies(symbols)
    except TOOL_ERRORS as exc:
        return _failure("compare_companies", exc, t0)

    elapsed = _elapsed_ms(t0)
    logger.info("compare_companies symbols=%s ms=%.1f", symbols, elapsed)
    return _ok(
        "compare_companies",
        result.model_dump(mode="json"),
        elapsed,
        row_count=len(result.companies),
    )


async def handle_get_market_sector(arguments: dict) -> dict:
    """Sector aggregates (market cap, average change, top performer) over a set of companies.

    Args:
        arguments: {"symbols": [str]}
    """
    t0 = time.perf_counter()
    try:
        symbols = _symbols_arg(arguments)
        async with fmp_client_factory() as client:
            result = await FinancialAnalysisService(client).get_market_sector(symbols)
    except TOOL_ERRORS as exc:
        return _failure("get_market_sector", exc, t0)

    elapsed = _elapsed_ms(t0)
    logger.info("get_market_sector symbols=%s sector=%s ms=%.1f", symbols, result.sector, elapsed)
    return _ok(
        "get_market_sector",
        result.model_dump(mode="json"),
        elapsed,
        row_count=len(result.companies),
    )


# ---------------------------------------------------------------------------
# Raw data tools
# ---------------------------------------------------------------------------


async def handle_get_company_profile(arguments: dict) -> dict:
    """Return the FMP company profile for a symbol.

    Args:
        arguments: {"symbol": str}
    """
    t0 = time.perf_counter()
    try:
        symbol = _symbol_arg(arguments)
        async with fmp_client_factory() as client:
            profile = await client.get_company_profile(symbol)
    except TOOL_ERRORS as exc:
        return _failure("get_company_profile", exc, t0)

    elapsed = _elapsed_ms(t0)
    logger.info("get_company_profile symbol=%s ms=%.1f", symbol, elapsed)
    return _ok("get_company_profile", profile.model_dump(mode="json"), elapsed, row_count=1)


async def handle_get_stock_price(arguments: dict) -> dict:
    """Return the current quote for a symbol.

    Args:
        arguments: {"symbol": str}
    """
    t0 = time.perf_counter()
    try:
        symbol = _symbol_arg(arguments)
        async with fmp_client_factory() as client:
            quote = await client.get_stock_price(symbol)
    except TOOL_ERRORS as exc:
        return _failure("get_stock_price", exc, t0)

    elapsed = _elapsed_ms(t0)
    logger.info("get_stock_price symbol=%s ms=%.1f", symbol, elapsed)
    return _ok("get_stock_price", quote.model_dump(mode="json"), elapsed, row_count=1)


async def handle_get_income_statement(arguments: dict) -> dict:
    """Return recent income statements, newest first.

    Args:
        arguments: {"symbol": str, "limit": int (default 5)}
    """
    t0 = time.perf_counter()
    try:
        symbol = _symbol_arg(arguments)
        limit = _limit_arg(arguments)
        async with fmp_client_factory() as client:
            rows = await client.get_income_statement(symbol, limit)
    except TOOL_ERRORS as exc:
        return _failure("get_income_statement", exc, t0)

    elapsed = _elapsed_ms(t0)
    logger.info("get_income_statement symbol=%s rows=%d ms=%.1f", symbol, len(rows), elapsed)
    return _ok(
        "get_income_statement",
        {"symbol": symbol, "statements": [r.model_dump(mode="json") for r in rows]},
        elapsed,
        row_count=len(rows),
    )


async def handle_get_balance_sheet(arguments: dict) -> dict:
    """Return recent balance sheets, newest first.

    Args:
        arguments: {"symbol": str, "limit": int (default 5)}
    """
    t0 = time.perf_counter()
    try:
        symbol = _symbol_arg(arguments)
        limit = _limit_arg(arguments)
        async with fmp_client_factory() as client:
            rows = await client.get_balance_sheet(symbol, limit)
    except TOOL_ERRORS as exc:
        return _failure("get_balance_sheet", exc, t0)

    elapsed = _elapsed_ms(t0)
    logger.info("get_balance_sheet symbol=%s rows=%d ms=%.1f", symbol, len(rows), elapsed)
    return _ok(
        "get_balance_sheet",
        {"symbol": symbol, "statements": [r.model_dump(mode="json") for r in rows]},
        elapsed,
        row_count=len(rows),
    )


async def handle_get_cash_flow_statement(arguments: dict) -> dict:
    """Return recent cash-flow statements exactly as FMP sends them.

    Args:
        arguments: {"symbol": str, "limit": int (default 5)}
    """
    t0 = time.perf_counter()
    try:
        symbol = _symbol_arg(arguments)
        limit = _limit_arg(arguments)
        async with fmp_client_factory() as client:
            rows = await client.get_cash_flow_statement(symbol, limit)
    except TOOL_ERRORS as exc:
        return _failure("get_cash_flow_statement", exc, t0)

    elapsed = _elapsed_ms(t0)
    logger.info("get_cash_flow_statement symbol=%s rows=%d ms=%.1f", symbol, len(rows), elapsed)
    return _ok(
        "get_cash_flow_statement",
        {"symbol": symbol, "statements": rows},
        elapsed,
        row_count=len(rows),
    )
