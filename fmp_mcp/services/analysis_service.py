"""Analysis engine – combines concurrent FMP fetches into derived metrics.

Every operation fans out its independent fetches with ``asyncio.gather``,
waits for all of them to settle, and only then derives metrics.  If any
fetch failed, the first failure (in submission order) is re-raised exactly
as the client raised it; partial results are never returned.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Sequence
from typing import Any, TypeVar

from fmp_mcp.clients.fmp_client import FMPClient
from fmp_mcp.exceptions import InvalidInputError, UndefinedMetricError
from fmp_mcp.schemas.analysis import (
    CompanyAnalysis,
    CompanyComparison,
    ComparedCompany,
    ComparisonSummary,
    DCFAnalysis,
    FinancialRatios,
    FundamentalMetrics,
    RatioSet,
    SectorAnalysis,
    SectorCompany,
    SectorMetrics,
)
from fmp_mcp.schemas.fmp import BalanceSheet, IncomeStatement
from fmp_mcp.services.metrics import (
    SHARES_OUTSTANDING_APPROXIMATION,
    classify_upside,
    leftmost_max,
    mean,
    percent_change,
    ratio,
    round_half_up,
)

logger = logging.getLogger("services.analysis")

STATEMENT_HISTORY = 5
UNKNOWN_SECTOR = "Unknown"

StatementT = TypeVar("StatementT", IncomeStatement, BalanceSheet)


async def fan_out(*aws: Awaitable[Any]) -> list[Any]:
    """Await all *aws* concurrently; re-raise the first failure unchanged."""
    results = await asyncio.gather(*aws, return_exceptions=True)
    for result in results:
        if isinstance(result, BaseException):
            raise result
    return list(results)


def _latest(records: Sequence[StatementT], symbol: str, kind: str) -> StatementT:
    if not records:
        raise UndefinedMetricError(kind, f"No {kind} available for {symbol}")
    return records[0]


class FinancialAnalysisService:
    """Derives fundamentals, ratios, valuations and rankings from FMP data.

    The client is injected; the service itself holds no other state, so a
    single instance can serve concurrent calls.
    """

    def __init__(self, client: FMPClient) -> None:
        self.client = client

    async def get_company_analysis(self, symbol: str) -> CompanyAnalysis:
        """Profile, income history and quote for *symbol* plus P/E, margin and growth."""
        profile, financials, current_price = await fan_out(
            self.client.get_company_profile(symbol),
            self.client.get_income_statement(symbol, STATEMENT_HISTORY),
            self.client.get_stock_price(symbol),
        )

        latest = _latest(financials, symbol, "income statement")
        pe_ratio = ratio(current_price.price, latest.eps, "pe_ratio")
        profit_margin = ratio(latest.net_income, latest.revenue, "profit_margin") * 100
        if len(financials) > 1:
            revenue_growth = percent_change(financials[1].revenue, latest.revenue, "revenue_growth")
        else:
            revenue_growth = 0.0

        logger.debug("company analysis symbol=%s periods=%d", symbol, len(financials))
        return CompanyAnalysis(
            symbol=symbol,
            profile=profile,
            financials=financials,
            current_price=current_price,
            analysis=FundamentalMetrics(
                pe_ratio=round_half_up(pe_ratio),
                profit_margin=round_half_up(profit_margin),
                revenue_growth=round_half_up(revenue_growth),
            ),
        )

    async def calculate_financial_ratios(self, symbol: str) -> FinancialRatios:
        """Valuation, profitability and leverage ratios from the latest statements.

        Price-to-book uses a fixed one-billion share count in place of the
        real shares outstanding.
        """
        income_statements, balance_sheets, stock_price = await fan_out(
            self.client.get_income_statement(symbol, STATEMENT_HISTORY),
            self.client.get_balance_sheet(symbol, STATEMENT_HISTORY),
            self.client.get_stock_price(symbol),
        )

        income = _latest(income_statements, symbol, "income statement")
        balance = _latest(balance_sheets, symbol, "balance sheet")
        equity = balance.total_stockholders_equity

        ratios = RatioSet(
            pe_ratio=ratio(stock_price.price, income.eps, "pe_ratio"),
            profit_margin=ratio(income.net_income, income.revenue, "profit_margin") * 100,
            return_on_equity=ratio(income.net_income, equity, "return_on_equity") * 100,
            debt_to_equity=ratio(balance.total_liabilities, equity, "debt_to_equity"),
            price_to_book=ratio(
                stock_price.price * SHARES_OUTSTANDING_APPROXIMATION, equity, "price_to_book"
            ),
        )
        rounded = RatioSet(**{name: round_half_up(value) for name, value in ratios})
        return FinancialRatios(symbol=symbol, ratios=rounded, date=income.date)

    async def perform_dcf_analysis(self, symbol: str) -> DCFAnalysis:
        """Compare the DCF fair value with the market price and recommend BUY/HOLD/SELL."""
        dcf_data, stock_price = await fan_out(
            self.client.get_dcf_valuation(symbol),
            self.client.get_stock_price(symbol),
        )

        upside = percent_change(stock_price.price, dcf_data.dcf, "upside")
        recommendation, analysis = classify_upside(upside)

        logger.debug("dcf symbol=%s upside=%.4f rec=%s", symbol, upside, recommendation.value)
        return DCFAnalysis(
            symbol=symbol,
            dcf_value=dcf_data.dcf,
            current_price=stock_price.price,
            upside=round_half_up(upside),
            recommendation=recommendation,
            analysis=analysis,
        )

    async def compare_companies(self, symbols: Sequence[str]) -> CompanyComparison:
        """Rank companies by market cap and latest EPS.

        Raises:
            InvalidInputError: if *symbols* is empty.
        """
        if not symbols:
            raise InvalidInputError("At least one company symbol is required")

        companies: list[ComparedCompany] = await fan_out(
            *(self._compared_company(symbol) for symbol in symbols)
        )

        for company in companies:
            _latest(company.financials, company.symbol, "income statement")

        largest = leftmost_max(companies, key=lambda c: c.profile.market_cap).symbol
        highest = leftmost_max(companies, key=lambda c: c.financials[0].eps).symbol
        summary = (
            f"Comparison of {len(symbols)} companies. {largest} has the largest market cap, "
            f"while {highest} has the highest EPS."
        )
        return CompanyComparison(
            companies=companies,
            comparison=ComparisonSummary(
                largest_by_market_cap=largest,
                highest_eps=highest,
                summary=summary,
            ),
        )

    async def get_market_sector(self, symbols: Sequence[str]) -> SectorAnalysis:
        """Aggregate market cap and daily performance over a set of companies.

        The sector label is taken from the first company only.
        """
        companies: list[SectorCompany] = await fan_out(
            *(self._sector_company(symbol) for symbol in symbols)
        )
        if not companies:
            raise UndefinedMetricError(
                "sector_metrics", "Cannot aggregate sector metrics over an empty company set"
            )

        sector = companies[0].profile.sector or UNKNOWN_SECTOR
        total_market_cap = sum(c.profile.market_cap for c in companies)
        average_market_cap = total_market_cap / len(companies)
        average_change = mean(
            [c.current_price.changes_percentage for c in companies], "average_change"
        )
        top_performer = leftmost_max(
            companies, key=lambda c: c.current_price.changes_percentage
        ).symbol

        return SectorAnalysis(
            sector=sector,
            companies=companies,
            sector_metrics=SectorMetrics(
                average_market_cap=round_half_up(average_market_cap, 0),
                average_change=round_half_up(average_change),
                total_market_cap=round_half_up(total_market_cap, 0),
                top_performer=top_performer,
            ),
        )

    async def _compared_company(self, symbol: str) -> ComparedCompany:
        profile, financials = await fan_out(
            self.client.get_company_profile(symbol),
            self.client.get_income_statement(symbol, STATEMENT_HISTORY),
        )
        return ComparedCompany(symbol=symbol, profile=profile, financials=financials)

    async def _sector_company(self, symbol: str) -> SectorCompany:
        profile, current_price = await fan_out(
            self.client.get_company_profile(symbol),
            self.client.get_stock_price(symbol),
        )
        return SectorCompany(symbol=symbol, profile=profile, current_price=current_price)
