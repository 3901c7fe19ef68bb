"""Client for the Melodi Media catalog web service.

Security notes:
- Treat service responses as untrusted input.
- Never log credentials.
"""

from .catalog import CatalogClient, extract_field
from .config import ClientConfig, DEFAULT_ENDPOINT
from .download import DownloadLink, DownloadLinkResolver, parse_download_response
from .http import CatalogTransport, HttpCatalogTransport, HttpResponse

__all__ = [
    "CatalogClient",
    "extract_field",
    "ClientConfig",
    "DEFAULT_ENDPOINT",
    "DownloadLink",
    "DownloadLinkResolver",
    "parse_download_response",
    "CatalogTransport",
    "HttpCatalogTransport",
    "HttpResponse",
]
