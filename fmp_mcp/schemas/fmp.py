"""Records returned by the Financial Modeling Prep API.

FMP uses camelCase field names on the wire; the models accept those names
and expose snake_case attributes.
"""

from __future__ import annotations

from pydantic import AliasChoices, BaseModel, ConfigDict, Field


class FMPRecord(BaseModel):
    """Base for immutable FMP records; unknown wire fields are dropped."""

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")


class CompanyProfile(FMPRecord):
    symbol: str
    company_name: str = Field(alias="companyName")
    industry: str | None = None
    sector: str | None = None
    market_cap: float = Field(alias="marketCap", ge=0)


class IncomeStatement(FMPRecord):
    """One reporting period; sequences are ordered newest first."""

    symbol: str
    date: str
    revenue: float
    net_income: float = Field(alias="netIncome")
    eps: float


class BalanceSheet(FMPRecord):
    symbol: str
    date: str
    total_assets: float = Field(alias="totalAssets")
    total_liabilities: float = Field(alias="totalLiabilities")
    total_stockholders_equity: float = Field(alias="totalStockholdersEquity")


class StockPrice(FMPRecord):
    """Point-in-time quote."""

    symbol: str
    price: float
    changes_percentage: float = Field(alias="changesPercentage")
    change: float


class DCFValuation(FMPRecord):
    symbol: str
    dcf: float
    stock_price: float = Field(
        validation_alias=AliasChoices("stock_price", "Stock Price"),
    )
