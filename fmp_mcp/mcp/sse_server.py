"""SSE (Server-Sent Events) transport for the FMP MCP server.

Exposes the same tools, resources and prompts as the stdio server over
HTTP, for web-based MCP clients and environments without stdio.

Run with:
    python -m fmp_mcp.mcp.sse_server

SSE endpoint: GET  /sse
Message post: POST /messages?session_id=<id>
Health check: GET  /health
"""

from __future__ import annotations

import asyncio
import itertools
import json
import logging
from contextlib import asynccontextmanager
from typing import Any

from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sse_starlette.sse import EventSourceResponse

from fmp_mcp.config import settings
from fmp_mcp.mcp.server import (
    PROMPT_DEFINITIONS,
    RESOURCE_DEFINITIONS,
    TOOL_DEFINITIONS,
    build_prompt,
    call_tool,
    read_resource_text,
)
from fmp_mcp.middleware.security import SecurityHeadersMiddleware, parse_cors_origins

logger = logging.getLogger("mcp.sse")

PROTOCOL_VERSION = "2024-11-05"

# In-memory message queues keyed by session_id
_sessions: dict[str, asyncio.Queue] = {}
_session_ids = itertools.count(1)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup / shutdown for the SSE application."""
    logger.info(
        "MCP SSE transport starting on %s:%s",
        settings.fastapi_host,
        settings.fastapi_port,
    )
    yield
    logger.info("MCP SSE transport shutting down")
    _sessions.clear()


app = FastAPI(
    title="Financial Modeling Prep MCP Server – SSE Transport",
    version=settings.mcp_server_version,
    lifespan=lifespan,
)

_cors_origins = parse_cors_origins(settings.allowed_origins)

# Credentials are only allowed for an explicit origin list.
app.add_middleware(
    CORSMiddleware,
    allow_origins=_cors_origins,
    allow_credentials="*" not in _cors_origins,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(SecurityHeadersMiddleware)


# ---------------------------------------------------------------------------
# Health
# ---------------------------------------------------------------------------


@app.get("/health")
async def health():
    return {
        "status": "ok",
        "transport": "sse",
        "version": settings.mcp_server_version,
    }


# ---------------------------------------------------------------------------
# SSE endpoint
# ---------------------------------------------------------------------------


@app.get("/sse")
async def sse_endpoint(request: Request):
    """Server-Sent Events stream for MCP protocol messages.

    The client opens this endpoint to receive messages from the server,
    posts requests to ``/messages?session_id=<id>`` and reads the
    responses from this stream.
    """
    session_id = f"session-{next(_session_ids)}"
    queue: asyncio.Queue = asyncio.Queue()
    _sessions[session_id] = queue

    async def event_generator():
        # First event: tell the client where to POST requests
        yield {
            "event": "endpoint",
            "data": f"/messages?session_id={session_id}",
        }

        try:
            while True:
                if await request.is_disconnected():
                    break
                try:
                    message = await asyncio.wait_for(queue.get(), timeout=30.0)
                    yield {
                        "event": "message",
                        "data": json.dumps(message, default=str),
                    }
                except asyncio.TimeoutError:
                    yield {"comment": "keepalive"}
        finally:
            _sessions.pop(session_id, None)

    return EventSourceResponse(event_generator())


# ---------------------------------------------------------------------------
# JSON-RPC dispatch
# ---------------------------------------------------------------------------


async def dispatch_rpc(body: dict[str, Any]) -> dict[str, Any]:
    """Turn one JSON-RPC request into its JSON-RPC response."""
    method = body.get("method", "")
    params = body.get("params") or {}
    rpc_id = body.get("id")

    if method == "initialize":
        result: dict[str, Any] = {
            "protocolVersion": PROTOCOL_VERSION,
            "capabilities": {
                "tools": {"listChanged": False},
                "resources": {"listChanged": False},
                "prompts": {"listChanged": False},
            },
            "serverInfo": {
                "name": settings.mcp_server_name,
                "version": settings.mcp_server_version,
            },
        }
    elif method == "tools/list":
        result = {"tools": [t.model_dump(mode="json") for t in TOOL_DEFINITIONS]}
    elif method == "tools/call":
        payload = await call_tool(params.get("name", ""), params.get("arguments") or {})
        result = {"content": [{"type": "text", "text": json.dumps(payload, default=str)}]}
    elif method == "resources/list":
        result = {"resources": [r.model_dump(mode="json") for r in RESOURCE_DEFINITIONS]}
    elif method == "resources/read":
        uri = params.get("uri", "")
        try:
            text = read_resource_text(uri)
        except ValueError as exc:
            return _rpc_error(rpc_id, -32602, str(exc))
        result = {"contents": [{"uri": uri, "text": text, "mimeType": "application/json"}]}
    elif method == "prompts/list":
        result = {"prompts": [p.model_dump(mode="json") for p in PROMPT_DEFINITIONS]}
    elif method == "prompts/get":
        try:
            prompt = build_prompt(params.get("name", ""), params.get("arguments") or {})
        except ValueError as exc:
            return _rpc_error(rpc_id, -32602, str(exc))
        result = prompt.model_dump(mode="json")
    else:
        return _rpc_error(rpc_id, -32601, f"Method '{method}' not found")

    return {"jsonrpc": "2.0", "id": rpc_id, "result": result}


def _rpc_error(rpc_id: Any, code: int, message: str) -> dict[str, Any]:
    return {"jsonrpc": "2.0", "id": rpc_id, "error": {"code": code, "message": message}}


@app.post("/messages")
async def messages_endpoint(request: Request, session_id: str):
    """Receive a JSON-RPC request and push the response onto the session's stream."""
    queue = _sessions.get(session_id)
    if queue is None:
        return JSONResponse(
            status_code=404,
            content={"error": f"Session '{session_id}' not found. Connect to /sse first."},
        )

    body = await request.json()
    logger.debug("SSE recv session=%s body=%s", session_id, body)

    await queue.put(await dispatch_rpc(body))
    return Response(status_code=202, content="Accepted")


# ---------------------------------------------------------------------------
# Entry-point
# ---------------------------------------------------------------------------


def main() -> None:
    import uvicorn

    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )
    if not settings.fmp_api_key:
        raise SystemExit("FMP_API_KEY environment variable is required")
    uvicorn.run(
        "fmp_mcp.mcp.sse_server:app",
        host=settings.fastapi_host,
        port=settings.fastapi_port,
        reload=False,
    )


if __name__ == "__main__":
    main()
