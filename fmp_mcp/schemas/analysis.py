"""Derived analysis results produced by the analysis engine."""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel

from fmp_mcp.schemas.fmp import CompanyProfile, IncomeStatement, StockPrice


class Recommendation(str, Enum):
    BUY = "BUY"
    HOLD = "HOLD"
    SELL = "SELL"


class FundamentalMetrics(BaseModel):
    """Fundamentals derived from the latest income statement and quote."""

    pe_ratio: float
    profit_margin: float
    revenue_growth: float


class CompanyAnalysis(BaseModel):
    symbol: str
    profile: CompanyProfile
    financials: list[IncomeStatement]
    current_price: StockPrice
    analysis: FundamentalMetrics


class RatioSet(BaseModel):
    pe_ratio: float
    profit_margin: float
    return_on_equity: float
    debt_to_equity: float
    price_to_book: float


class FinancialRatios(BaseModel):
    symbol: str
    ratios: RatioSet
    date: str
    """Reporting date of the latest income statement."""


class DCFAnalysis(BaseModel):
    symbol: str
    dcf_value: float
    current_price: float
    upside: float
    recommendation: Recommendation
    analysis: str


class ComparedCompany(BaseModel):
    symbol: str
    profile: CompanyProfile
    financials: list[IncomeStatement]


class ComparisonSummary(BaseModel):
    largest_by_market_cap: str
    highest_eps: str
    summary: str


class CompanyComparison(BaseModel):
    companies: list[ComparedCompany]
    comparison: ComparisonSummary


class SectorCompany(BaseModel):
    symbol: str
    profile: CompanyProfile
    current_price: StockPrice


class SectorMetrics(BaseModel):
    average_market_cap: float
    average_change: float
    total_market_cap: float
    top_performer: str


class SectorAnalysis(BaseModel):
    sector: str
    companies: list[SectorCompany]
    sector_metrics: SectorMetrics
