"""Clients for remote financial data providers."""

from fmp_mcp.clients.fmp_client import FMPClient, FMPClientError

__all__ = ["FMPClient", "FMPClientError"]
