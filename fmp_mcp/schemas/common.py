"""Result envelope shared by every FMP tool.

Each tool returns a ``ToolResponse`` whether it succeeded or not, so MCP
clients can branch on ``ok`` and ``error.error_code`` without parsing
messages.
"""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, Field

ErrorCode = Literal[
    "INVALID_INPUT",
    "UPSTREAM_ERROR",
    "UNDEFINED_METRIC",
    "CONFIGURATION_ERROR",
    "UNKNOWN_TOOL",
]
"""Failure kinds a tool can report.

INVALID_INPUT        arguments failed validation; nothing was fetched
UPSTREAM_ERROR       FMP was unreachable, answered with an error, or sent bad data
UNDEFINED_METRIC     a ratio had a zero denominator or a required record was missing
CONFIGURATION_ERROR  the server lacks settings it needs, such as FMP_API_KEY
UNKNOWN_TOOL         no tool is registered under the requested name
"""


class ErrorDetail(BaseModel):
    error_code: ErrorCode
    message: str = Field(..., description="Human-readable failure reason, passed through from the engine or FMP")
    hint: str | None = Field(None, description="Suggested remedy, when one is known")


class Meta(BaseModel):
    execution_ms: float = Field(..., description="Wall-clock milliseconds spent in the tool")
    row_count: int | None = Field(
        None,
        description=(
            "Number of FMP results in ``data``: 1 for a single-company analysis or record, "
            "the company count for comparisons and sectors, the statement count for "
            "statement tools, 0 on failure"
        ),
    )


class ToolResponse(BaseModel):
    """What every tool hands back to the MCP transport."""

    tool: str
    ok: bool
    data: Any | None = None
    error: ErrorDetail | None = None
    meta: Meta
