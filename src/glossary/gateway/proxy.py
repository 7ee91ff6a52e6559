"""
Upstream forwarding for the gateway.

:func:`forward` passes a request to the internal API unchanged apart from
hop-by-hop headers.  :func:`relay_completion` posts an ``/api/ai-request``
body to an external completion endpoint with bounded retries.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable, Iterable
from typing import Any

import httpx
import structlog
from starlette.requests import Request
from starlette.responses import Response

from glossary.core.errors import BadGatewayError
from glossary.core.retry import ExponentialBackoff, RetryContext

logger = structlog.get_logger()

# RFC 7230 §6.1 connection-scoped headers, never forwarded
HOP_BY_HOP_HEADERS = frozenset(
    {
        "connection",
        "keep-alive",
        "proxy-authenticate",
        "proxy-authorization",
        "te",
        "trailer",
        "trailers",
        "transfer-encoding",
        "upgrade",
    }
)

# Recomputed by httpx for the outgoing request
_REQUEST_SKIP = HOP_BY_HOP_HEADERS | {"host", "content-length"}
# httpx has already decoded the body we hand back
_RESPONSE_SKIP = HOP_BY_HOP_HEADERS | {"content-length", "content-encoding"}

RELAY_RETRY_STATUS = frozenset({500, 502, 503})


def filter_headers(headers: Iterable[tuple[str, str]], skip: frozenset[str] | set[str]) -> list[tuple[str, str]]:
    """Drop every header whose lower-cased name is in ``skip``."""
    return [(k, v) for k, v in headers if k.lower() not in skip]


def _to_response(upstream: httpx.Response) -> Response:
    response = Response(content=upstream.content, status_code=upstream.status_code)
    for key, value in filter_headers(upstream.headers.multi_items(), _RESPONSE_SKIP):
        response.headers.append(key, value)
    return response


def _upstream_target(request: Request) -> str:
    # raw_path keeps percent-escapes such as %2F that request.url.path has decoded
    raw = request.scope.get("raw_path") or request.url.path.encode()
    target = raw.decode("latin-1")
    if request.url.query:
        target = f"{target}?{request.url.query}"
    return target


async def forward(client: httpx.AsyncClient, request: Request) -> Response:
    """Send ``request`` to the same path on the client's base URL.

    Method, encoded path, query string, body and end-to-end headers are
    preserved.  The gateway's request id travels as ``X-Request-ID``.

    Raises:
        BadGatewayError: the upstream could not be reached
    """
    target = _upstream_target(request)
    headers = filter_headers(request.headers.items(), _REQUEST_SKIP | {"x-request-id"})
    request_id = getattr(request.state, "request_id", None) or request.headers.get("x-request-id")
    if request_id:
        headers.append(("X-Request-ID", request_id))

    outgoing = client.build_request(
        request.method,
        target,
        headers=headers,
        content=await request.body(),
    )
    try:
        upstream = await client.send(outgoing)
    except httpx.TransportError as e:
        logger.error("gateway_forward_failed", method=request.method, path=target, error=str(e))
        raise BadGatewayError(f"API unreachable: {e}", cause=e) from e

    logger.info(
        "gateway_forward",
        method=request.method,
        path=request.url.path,
        upstream_target=target,
        status_code=upstream.status_code,
    )
    return _to_response(upstream)


class _RetryableStatus(Exception):
    def __init__(self, response: httpx.Response):
        super().__init__(f"upstream returned {response.status_code}")
        self.response = response


def _relay_retryable(error: Exception) -> bool:
    return isinstance(error, (_RetryableStatus, httpx.TransportError))


async def relay_completion(
    client: httpx.AsyncClient,
    url: str,
    payload: dict[str, Any],
    *,
    key: str | None = None,
    max_attempts: int = 3,
    base_delay: float = 0.5,
    sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
) -> Response:
    """POST ``payload`` to an external completion endpoint.

    5xx answers in :data:`RELAY_RETRY_STATUS` and transport errors are
    retried.  When attempts run out the last upstream answer is passed
    back as-is; a transport failure becomes a 502.
    """
    params = {"code": key} if key else None

    async def _post() -> httpx.Response:
        resp = await client.post(url, json=payload, params=params)
        if resp.status_code in RELAY_RETRY_STATUS:
            raise _RetryableStatus(resp)
        return resp

    def _on_retry(attempt: int, error: Exception, delay: float) -> None:
        logger.warning("completion_relay_retry", attempt=attempt, delay_s=delay, error=str(error))

    ctx = RetryContext(
        strategy=ExponentialBackoff(max_retries=max_attempts, base_delay=base_delay, retry_on=_relay_retryable),
        on_retry=_on_retry,
        sleep=sleep,
    )
    try:
        upstream = await ctx.run_async(_post)
    except _RetryableStatus as e:
        upstream = e.response
        logger.error("completion_relay_exhausted", attempts=ctx.attempts, status_code=upstream.status_code)
    except httpx.TransportError as e:
        logger.error("completion_relay_failed", attempts=ctx.attempts, error=str(e))
        raise BadGatewayError(f"Completion endpoint unreachable: {e}", cause=e) from e

    return _to_response(upstream)


__all__ = ["HOP_BY_HOP_HEADERS", "RELAY_RETRY_STATUS", "filter_headers", "forward", "relay_completion"]
