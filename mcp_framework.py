"""Building blocks for the finance tool server: service registry, logging, HTTP app."""
from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Callable, Iterable

from fastmcp import FastMCP
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

APP_NAME = os.getenv("FINANCE_APP_NAME", "finance-suite")
JSON_RESPONSE = os.getenv("FINANCE_JSON_RESPONSE", "true").strip().lower() in {"1", "true", "yes"}
HOST = os.getenv("FINANCE_HOST", "127.0.0.1")
PORT = int(os.getenv("FINANCE_PORT", "8000"))
LOG_LEVEL = os.getenv("FINANCE_LOG_LEVEL", "info").lower()

logger = logging.getLogger("uvicorn.error")


@dataclass
class ServiceDefinition:
    """A named group of tools and the callable that registers them."""

    name: str
    description: str
    register: Callable[[FastMCP], None]


def _serialize(entry: dict[str, Any]) -> str:
    try:
        return json.dumps(entry, ensure_ascii=False)
    except (TypeError, ValueError):
        # Dates, Decimals and dataclasses from the ledger fall back to str()
        return json.dumps(entry, ensure_ascii=False, default=str)


def log_interaction(action: str, input_data: Any, output_data: Any) -> None:
    """Emit one JSON Lines record describing a tool call or request."""

    entry = {
        "timestamp": datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
        "action": action,
        "input": input_data,
        "output": output_data,
    }
    logger.info(_serialize(entry))


def log_failure(action: str, input_data: Any, exc: BaseException) -> None:
    """Record a failed call as ``<action>_error`` with the exception details."""

    log_interaction(
        f"{action}_error",
        input_data,
        {"error": str(exc), "type": exc.__class__.__name__},
    )


def create_mcp_server(
    services: Iterable[ServiceDefinition],
    *,
    app_name: str = APP_NAME,
    json_response: bool = JSON_RESPONSE,
):
    """Create the FastMCP instance, register every service and build its HTTP app."""

    mcp = FastMCP(app_name)

    for service in services:
        service.register(mcp)

    app = mcp.http_app(json_response=json_response)
    return mcp, app


def _describe_request(request: Request, body: bytes) -> dict[str, Any]:
    info: dict[str, Any] = {
        "method": request.method,
        "path": request.url.path,
        "query": request.url.query,
        "client": request.client.host if request.client else None,
    }
    if not body:
        return info

    try:
        payload = json.loads(body.decode("utf-8"))
    except (UnicodeDecodeError, ValueError) as exc:
        info["body_parse_error"] = str(exc)
        return info

    # Request records keep only the JSON-RPC method and parameter names, not argument values.
    if isinstance(payload, dict):
        info["jsonrpc_method"] = payload.get("method")
        params = payload.get("params")
        if isinstance(params, dict):
            info["param_keys"] = sorted(params.keys())
            if isinstance(params.get("name"), str):
                info["tool"] = params["name"]
    return info


def attach_request_logger(app, *, action: str = "http_request") -> None:
    """Log every HTTP request with its status code (or the error that escaped)."""

    class RequestLoggerMiddleware(BaseHTTPMiddleware):
        async def dispatch(
            self, request: Request, call_next: RequestResponseEndpoint
        ) -> Response:
            request_info = _describe_request(request, await request.body())
            response: Response | None = None
            error_detail: dict[str, Any] | None = None

            try:
                response = await call_next(request)
                return response
            except Exception as exc:
                error_detail = {"error": str(exc), "type": exc.__class__.__name__}
                raise
            finally:
                output_data: dict[str, Any] = {
                    "status_code": response.status_code if response else None
                }
                if error_detail:
                    output_data.update(error_detail)
                log_interaction(action, request_info, output_data)

    app.add_middleware(RequestLoggerMiddleware)
