"""Pydantic schemas: FMP records, derived analyses and the tool envelope."""

from fmp_mcp.schemas.analysis import (
    CompanyAnalysis,
    CompanyComparison,
    DCFAnalysis,
    FinancialRatios,
    Recommendation,
    SectorAnalysis,
)
from fmp_mcp.schemas.common import ToolResponse
from fmp_mcp.schemas.fmp import (
    BalanceSheet,
    CompanyProfile,
    DCFValuation,
    IncomeStatement,
    StockPrice,
)

__all__ = [
    "ToolResponse",
    "CompanyProfile",
    "IncomeStatement",
    "BalanceSheet",
    "StockPrice",
    "DCFValuation",
    "CompanyAnalysis",
    "FinancialRatios",
    "DCFAnalysis",
    "Recommendation",
    "CompanyComparison",
    "SectorAnalysis",
]
