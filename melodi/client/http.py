"""HTTP transport for the Melodi Media catalog web service.

The service is a ColdFusion component: every remote method is reachable as
``GET {endpoint}?method=<Name>&<param>=<value>...``.

Security notes:
- Treat service responses as untrusted input.
- Never log credentials or raw response bodies.
"""
from __future__ import annotations

import base64
import logging
import ssl
from dataclasses import dataclass
from typing import Mapping, Optional, Protocol, Union
from urllib.error import HTTPError, URLError
from urllib.parse import urlencode
from urllib.request import Request, urlopen

from melodi.core.exceptions import TransportError

log = logging.getLogger("melodi.client")


class CatalogTransport(Protocol):
    """Anything that can invoke a remote catalog method and return its body.

    Bodies may be bytes or already decoded text. Bytes are preferred for XML:
    the parser then honours the document's own encoding declaration.
    """

    def call(self, method: str, params: Mapping[str, str]) -> Union[str, bytes]: ...


@dataclass(frozen=True, slots=True)
class HttpResponse:
    """HTTP response wrapper.

    Security notes:
    - Treat `body_bytes` as untrusted.

    """

    status: int
    headers: Mapping[str, str]
    body_bytes: bytes


class HttpCatalogTransport:
    """Minimal stdlib-only GET transport for the catalog service.

    Security notes:
    - Does NOT disable TLS verification.
    - Credentials are sent as HTTP Basic auth, only when configured.

    """

    def __init__(
        self,
        endpoint: str,
        *,
        username: Optional[str] = None,
        password: Optional[str] = None,
        timeout: float = 30.0,
    ):
        self.endpoint = endpoint
        self.username = username
        self.password = password
        self.timeout = float(timeout)

    def build_url(self, method: str, params: Mapping[str, str]) -> str:
        """Return the request URL for a remote method call."""

        query = urlencode([("method", method), *((k, str(v)) for k, v in params.items())])
        sep = "&" if "?" in self.endpoint else "?"
        return f"{self.endpoint}{sep}{query}"

    def get(self, method: str, params: Mapping[str, str]) -> HttpResponse:
        """HTTP GET a remote method, returning the raw response."""

        req = Request(url=self.build_url(method, params), method="GET")
        if self.username is not None:
            token = base64.b64encode(f"{self.username}:{self.password or ''}".encode("utf-8"))
            req.add_header("Authorization", f"Basic {token.decode('ascii')}")
        return _do_request(req, timeout=self.timeout)

    def call(self, method: str, params: Mapping[str, str]) -> bytes:
        """Invoke a remote method and return its raw body.

        The body is left undecoded; character decoding belongs to the XML
        parser, which follows the <?xml encoding=...?> declaration.

        Raises TransportError on network failures and HTTP status >= 400.
        """

        r = self.get(method, params)
        log.debug("catalog_call", extra={"method": method, "status": r.status, "bytes": len(r.body_bytes)})
        if r.status >= 400:
            raise TransportError(f"{method} failed with HTTP {r.status}", status=r.status)
        return r.body_bytes


def _do_request(req: Request, *, timeout: float) -> HttpResponse:
    """Execute a request.


    Security notes:
    - Uses default SSL context (verification ON).
    """

    try:
        ctx = ssl.create_default_context()
        with urlopen(req, context=ctx, timeout=timeout) as resp:
            body = resp.read()
            headers = {k: v for k, v in resp.headers.items()}
            return HttpResponse(status=int(resp.status), headers=headers, body_bytes=body)
    except HTTPError as e:
        body = e.read() if hasattr(e, "read") else b""
        headers = dict(getattr(e, "headers", {}) or {})
        return HttpResponse(
            status=int(getattr(e, "code", 0) or 0), headers=headers, body_bytes=body
        )
    except (URLError, TimeoutError) as e:
        raise TransportError(f"network error: {e}") from e
