"""Download-link resolution.

The download service answers with a small HTML fragment rather than XML,
for example::

    <p>Status: 1</p><p>Reference: AB12-99</p>
    <a href="http://dl.example/f/AB12-99.mp3">download</a>

Fields are pulled out with regular expressions; nothing else in the
fragment is interpreted.
"""
from __future__ import annotations

import html
import logging
import re
from dataclasses import dataclass
from typing import Optional

from melodi.core.exceptions import ConfigurationError, MalformedInput

from .config import ClientConfig
from .http import CatalogTransport, HttpCatalogTransport

log = logging.getLogger("melodi.client")

_TAGS = re.compile(r"<[^>]+>")
_STATUS = re.compile(r"\b(?:status(?:\s*code)?|code)\s*[:=]\s*(-?\d+)", re.I)
_REFERENCE = re.compile(r"\bref(?:erence)?(?:\s*code)?\s*[:=]\s*([A-Za-z0-9._-]+)", re.I)
_HREF = re.compile(r"""href\s*=\s*["']([^"']+)["']""", re.I)
_LINK_LABEL = re.compile(r"\blink\s*[:=]\s*(\S+)", re.I)
_BARE_URL = re.compile(r"\bhttps?://[^\s<>\"']+", re.I)

# Status codes the service uses for "link ready".
OK_STATUSES = frozenset({1, 200})


@dataclass(frozen=True)
class DownloadLink:
    """Parsed answer of the download service."""

    status: int
    reference: Optional[str]
    link: Optional[str]

    @property
    def ok(self) -> bool:
        return self.status in OK_STATUSES and bool(self.link)


def parse_download_response(text: str) -> DownloadLink:
    """Extract status, reference and link from a download-service fragment.

    Raises MalformedInput if no status code can be found.
    """

    plain = html.unescape(_TAGS.sub(" ", text))

    ref = _REFERENCE.search(plain)

    # "Reference code: 4567" must not be read as a status code.
    m = _STATUS.search(_REFERENCE.sub(" ", plain))
    if m is None:
        raise MalformedInput("download response carries no status code")
    status = int(m.group(1))

    link: Optional[str] = None
    href = _HREF.search(text)
    if href is not None:
        link = html.unescape(href.group(1)).strip()
    else:
        labelled = _LINK_LABEL.search(plain)
        bare = _BARE_URL.search(plain)
        if labelled is not None:
            link = labelled.group(1)
        elif bare is not None:
            link = bare.group(0)

    return DownloadLink(status=status, reference=ref.group(1) if ref else None, link=link or None)


class DownloadLinkResolver:
    """Ask the secondary download service for a content item's link."""

    def __init__(self, transport: CatalogTransport, site_id: str):
        self.transport = transport
        self.site_id = str(site_id)

    @classmethod
    def from_config(cls, cfg: ClientConfig) -> "DownloadLinkResolver":
        if not cfg.download_endpoint:
            raise ConfigurationError("download endpoint is not configured (MELODI_DOWNLOAD_ENDPOINT)")
        if not cfg.site_id:
            raise ConfigurationError("site_id is required (MELODI_SITE_ID)")
        transport = HttpCatalogTransport(
            cfg.download_endpoint,
            username=cfg.username,
            password=cfg.password,
            timeout=cfg.timeout_sec,
        )
        return cls(transport, cfg.site_id)

    def resolve(self, content_id: int) -> DownloadLink:
        body = self.transport.call(
            "DownloadLink", {"SiteID": self.site_id, "ContentID": str(int(content_id))}
        )
        if isinstance(body, bytes):
            # Only ASCII labels and URLs are read from the fragment.
            body = body.decode("utf-8", errors="replace")
        result = parse_download_response(body)
        log.info("download_link", extra={"content_id": int(content_id), "status": result.status})
        return result
