"""Request logging middleware."""
from __future__ import annotations

import logging
import time

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

logger = logging.getLogger("countie.requests")

MAX_DETAIL_CHARS = 500


async def _drain(response: Response) -> bytes:
    chunks = []
    async for chunk in response.body_iterator:  # type: ignore[attr-defined]
        chunks.append(chunk.encode("utf-8") if isinstance(chunk, str) else chunk)
    return b"".join(chunks)


def _summarize(body: bytes) -> str:
    text = body.decode("utf-8", errors="replace")
    return text if len(text) <= MAX_DETAIL_CHARS else text[:MAX_DETAIL_CHARS] + "..."


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """
    Log each request as "METHOD path -> status (duration)".

    Error responses also carry the response body in the log line: WARNING
    for 4xx, ERROR for 5xx.
    """

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        started = time.monotonic()
        response = await call_next(request)
        took_ms = (time.monotonic() - started) * 1000

        target = request.url.path
        if request.url.query:
            target += "?" + request.url.query
        line = f"{request.method} {target} -> {response.status_code} ({took_ms:.0f}ms)"

        if response.status_code < 400 or not hasattr(response, "body_iterator"):
            logger.info(line)
            return response

        body = await _drain(response)
        level = logging.WARNING if response.status_code < 500 else logging.ERROR
        logger.log(level, "%s %s", line, _summarize(body))

        # Replay the consumed body; raw header pairs keep repeated headers such as set-cookie
        replay = Response(content=body, status_code=response.status_code)
        replay.raw_headers = list(response.headers.raw)
        return replay
