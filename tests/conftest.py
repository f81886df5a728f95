"""Shared pytest fixtures – FMP records and a mocked FMP client."""

from __future__ import annotations

from contextlib import asynccontextmanager
from unittest.mock import AsyncMock, patch

import pytest

from fmp_mcp.clients.fmp_client import FMPClient
from fmp_mcp.schemas.fmp import (
    BalanceSheet,
    CompanyProfile,
    DCFValuation,
    IncomeStatement,
    StockPrice,
)


def make_profile(
    symbol: str, market_cap: float = 1_000_000_000, sector: str | None = "Technology"
) -> CompanyProfile:
    return CompanyProfile(
        symbol=symbol,
        company_name=f"{symbol} Inc.",
        industry="Consumer Electronics",
        sector=sector,
        market_cap=market_cap,
    )


def make_income(
    symbol: str,
    eps: float = 1.0,
    revenue: float = 100.0,
    net_income: float = 10.0,
    date: str = "2023-09-30",
) -> IncomeStatement:
    return IncomeStatement(
        symbol=symbol, date=date, revenue=revenue, net_income=net_income, eps=eps
    )


def make_quote(symbol: str, price: float = 100.0, changes_percentage: float = 0.0) -> StockPrice:
    return StockPrice(
        symbol=symbol,
        price=price,
        changes_percentage=changes_percentage,
        change=round(price * changes_percentage / 100, 2),
    )


@pytest.fixture
def aapl_profile() -> CompanyProfile:
    return make_profile("AAPL", market_cap=3_000_000_000_000)


@pytest.fixture
def aapl_income() -> list[IncomeStatement]:
    """Latest AAPL fiscal year only (no prior period)."""
    return [make_income("AAPL", eps=6.13, revenue=383_285_000_000, net_income=96_995_000_000)]


@pytest.fixture
def aapl_balance() -> list[BalanceSheet]:
    return [
        BalanceSheet(
            symbol="AAPL",
            date="2023-09-30",
            total_assets=352_755_000_000,
            total_liabilities=290_437_000_000,
            total_stockholders_equity=62_318_000_000,
        )
    ]


@pytest.fixture
def aapl_quote() -> StockPrice:
    return StockPrice(symbol="AAPL", price=150.25, changes_percentage=2.5, change=3.75)


@pytest.fixture
def aapl_dcf() -> DCFValuation:
    return DCFValuation(symbol="AAPL", dcf=145.50, stock_price=150.25)


@pytest.fixture
def mock_client() -> AsyncMock:
    """An ``FMPClient`` whose endpoint coroutines are ``AsyncMock``s."""
    return AsyncMock(spec=FMPClient)


@pytest.fixture
def patched_factory(mock_client):
    """Route every tool handler's client through ``mock_client``."""

    @asynccontextmanager
    async def _factory():
        yield mock_client

    with patch("fmp_mcp.mcp.tools.fmp_client_factory", _factory):
        yield mock_client
