from __future__ import annotations

import logging
import re
import time
from typing import Callable, Optional
from uuid import uuid4

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse, Response

log = logging.getLogger("melodi.api")

# Client supplied request ids are echoed into logs and headers.
_REQUEST_ID = re.compile(r"[A-Za-z0-9._-]+")


def _declared_length(request: Request) -> Optional[int]:
    raw = request.headers.get("content-length")
    if raw is None:
        return None
    try:
        return int(raw)
    except ValueError:
        return None


class NormalizeRequestMiddleware(BaseHTTPMiddleware):
    """Request id, early size check and access log for the normalizer service.

    Header:
      - X-Request-ID

    The endpoint records the root tag and outcome of a normalization on
    request.state; both end up in the access log next to the body size.

    Security notes:
    - A client supplied X-Request-ID is kept only if it is short and made of
      [A-Za-z0-9._-]. Otherwise a fresh id is generated.
    - Bodies whose Content-Length exceeds max_body_bytes are refused with 413
      before they are read.
    - Request bodies are never logged, only their size.

    """

    def __init__(
        self,
        app,
        *,
        max_body_bytes: int,
        header_name: str = "X-Request-ID",
        max_len: int = 64,
    ):
        super().__init__(app)
        self._max_body_bytes = max_body_bytes
        self._header_name = header_name
        self._max_len = max_len

    def _request_id(self, request: Request) -> str:
        rid = request.headers.get(self._header_name)
        if not rid or len(rid) > self._max_len or not _REQUEST_ID.fullmatch(rid):
            return uuid4().hex
        return rid

    async def dispatch(self, request: Request, call_next: Callable):
        start = time.monotonic()
        rid = self._request_id(request)
        request.state.request_id = rid
        body_bytes = _declared_length(request)

        response: Optional[Response] = None
        try:
            if body_bytes is not None and body_bytes > self._max_body_bytes:
                request.state.outcome = "too_large"
                response = JSONResponse({"detail": "document_too_large"}, status_code=413)
            else:
                response = await call_next(request)
            response.headers[self._header_name] = rid
            return response
        finally:
            log.info(
                "api_request",
                extra={
                    "request_id": rid,
                    "method": request.method,
                    "path": request.url.path,
                    "status_code": getattr(response, "status_code", None),
                    "duration_ms": int((time.monotonic() - start) * 1000),
                    "body_bytes": body_bytes,
                    "root_tag": getattr(request.state, "root_tag", None),
                    "outcome": getattr(request.state, "outcome", None),
                },
            )
