"""Async client for the Financial Modeling Prep REST API."""

from __future__ import annotations

import logging
from typing import Any, TypeVar

import httpx
from pydantic import BaseModel, ValidationError

from fmp_mcp.schemas.fmp import (
    BalanceSheet,
    CompanyProfile,
    DCFValuation,
    IncomeStatement,
    StockPrice,
)

logger = logging.getLogger("fmp.client")

DEFAULT_BASE_URL = "https://financialmodelingprep.com/api/v3"
DEFAULT_STATEMENT_LIMIT = 5

RecordT = TypeVar("RecordT", bound=BaseModel)


class FMPClientError(Exception):
    """Any failure while fetching or decoding data from FMP."""


class FMPClient:
    """Thin typed wrapper around the FMP endpoints used by the analysis engine.

    Use as an async context manager so the underlying ``httpx.AsyncClient``
    is closed.  A pre-built ``http_client`` may be injected (e.g. one backed
    by ``httpx.MockTransport``); the caller then owns its lifecycle.

    Example:
        async with FMPClient(api_key) as client:
            profile = await client.get_company_profile("AAPL")
    """

    def __init__(
        self,
        api_key: str,
        *,
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = 30.0,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        if not api_key or not api_key.strip():
            raise ValueError("API key is required")
        self._api_key = api_key
        self.base_url = base_url.rstrip("/")
        self._owns_http_client = http_client is None
        self._http = http_client or httpx.AsyncClient(timeout=timeout)

    async def __aenter__(self) -> FMPClient:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._owns_http_client:
            await self._http.aclose()

    # ------------------------------------------------------------------
    # Endpoints
    # ------------------------------------------------------------------

    async def get_company_profile(self, symbol: str) -> CompanyProfile:
        rows = await self._request(f"/profile/{symbol}")
        return self._parse_one(CompanyProfile, rows, f"/profile/{symbol}")

    async def get_income_statement(
        self, symbol: str, limit: int = DEFAULT_STATEMENT_LIMIT
    ) -> list[IncomeStatement]:
        """Most recent income statements, newest first, at most *limit* rows."""
        endpoint = f"/income-statement/{symbol}"
        rows = await self._request(endpoint, {"limit": limit})
        return self._parse_many(IncomeStatement, rows, endpoint)

    async def get_balance_sheet(
        self, symbol: str, limit: int = DEFAULT_STATEMENT_LIMIT
    ) -> list[BalanceSheet]:
        endpoint = f"/balance-sheet-statement/{symbol}"
        rows = await self._request(endpoint, {"limit": limit})
        return self._parse_many(BalanceSheet, rows, endpoint)

    async def get_stock_price(self, symbol: str) -> StockPrice:
        rows = await self._request(f"/quote/{symbol}")
        return self._parse_one(StockPrice, rows, f"/quote/{symbol}")

    async def get_dcf_valuation(self, symbol: str) -> DCFValuation:
        rows = await self._request(f"/discounted-cash-flow/{symbol}")
        return self._parse_one(DCFValuation, rows, f"/discounted-cash-flow/{symbol}")

    async def get_cash_flow_statement(
        self, symbol: str, limit: int = DEFAULT_STATEMENT_LIMIT
    ) -> list[dict[str, Any]]:
        """Raw cash-flow statements; records are passed through untyped."""
        endpoint = f"/cash-flow-statement/{symbol}"
        rows = await self._request(endpoint, {"limit": limit})
        return rows

    # ------------------------------------------------------------------
    # Transport
    # ------------------------------------------------------------------

    async def _request(self, endpoint: str, params: dict[str, Any] | None = None) -> list[Any]:
        """GET ``base_url + endpoint`` and return the decoded JSON list.

        Raises:
            FMPClientError: on transport errors, non-2xx responses, FMP error
                payloads, or a body that is not a JSON array.
        """
        query = {"apikey": self._api_key, **(params or {})}
        logger.debug("GET %s params=%s", endpoint, params or {})
        try:
            response = await self._http.get(f"{self.base_url}{endpoint}", params=query)
            response.raise_for_status()
            payload = response.json()
        except httpx.HTTPStatusError as exc:
            raise FMPClientError(
                f"FMP request to {endpoint} failed with status {exc.response.status_code}"
            ) from exc
        except httpx.HTTPError as exc:
            raise FMPClientError(f"FMP request to {endpoint} failed: {exc}") from exc
        except ValueError as exc:
            raise FMPClientError(f"FMP returned invalid JSON for {endpoint}") from exc

        if isinstance(payload, dict) and "Error Message" in payload:
            raise FMPClientError(payload["Error Message"])
        if not isinstance(payload, list):
            raise FMPClientError(f"Unexpected FMP payload for {endpoint}")
        return payload

    @staticmethod
    def _parse_one(model: type[RecordT], rows: list[Any], endpoint: str) -> RecordT:
        if not rows:
            raise FMPClientError(f"No data returned for {endpoint}")
        return FMPClient._parse_many(model, rows[:1], endpoint)[0]

    @staticmethod
    def _parse_many(model: type[RecordT], rows: list[Any], endpoint: str) -> list[RecordT]:
        try:
            return [model.model_validate(row) for row in rows]
        except ValidationError as exc:
            raise FMPClientError(f"Malformed record from {endpoint}: {exc}") from exc
