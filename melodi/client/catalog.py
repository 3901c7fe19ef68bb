from __future__ import annotations

import logging
from datetime import date
from typing import Dict, Optional, Union

from melodi.core.exceptions import ConfigurationError
from melodi.core.normalization import NormalizerOptions, ObjectValue, Value, parse_xml

from .config import ClientConfig
from .http import CatalogTransport, HttpCatalogTransport

log = logging.getLogger("melodi.client")

# Only XML responses can be normalized.
SUPPORTED_FORMATS = frozenset({"XML"})


def extract_field(doc: ObjectValue, key: str) -> Value:
    """Return doc[key], or the whole document if the key is absent.

    The catalog omits the expected wrapper element for some responses (e.g.
    an empty result or an error envelope). Callers then get the document
    itself rather than an exception.
    """

    if key in doc:
        return doc[key]
    log.debug("catalog_field_missing", extra={"field": key, "present": list(doc.keys())})
    return doc


class CatalogClient:
    """High-level operations on the Melodi Media content catalog.

    Each operation issues exactly one remote call, normalizes the XML body
    and returns the interesting field of the result.
    """

    def __init__(
        self,
        transport: CatalogTransport,
        site_id: str,
        *,
        options: Optional[NormalizerOptions] = None,
        rows: int = 0,
        columns: int = 0,
        response_format: str = "XML",
    ):
        self.transport = transport
        self.site_id = str(site_id)
        self.options = options or NormalizerOptions()
        self.rows = int(rows)
        self.columns = int(columns)
        self.adult = "0"
        self.exclusive = "2"
        self.response_format = "XML"
        self.set_format(response_format)

    @classmethod
    def from_config(cls, cfg: ClientConfig) -> "CatalogClient":
        """Build a client talking HTTP to the configured endpoint."""

        if not cfg.site_id:
            raise ConfigurationError("site_id is required (MELODI_SITE_ID)")
        transport = HttpCatalogTransport(
            cfg.endpoint,
            username=cfg.username,
            password=cfg.password,
            timeout=cfg.timeout_sec,
        )
        return cls(transport, cfg.site_id, options=cfg.normalizer_options())

    def set_adult(self, adult: bool) -> None:
        self.adult = "1" if adult else "0"

    def set_exclusive(self, exclusive: Union[bool, int]) -> None:
        if isinstance(exclusive, bool):
            self.exclusive = "1" if exclusive else "0"
        else:
            self.exclusive = str(int(exclusive))

    def set_format(self, response_format: str) -> None:
        fmt = str(response_format).strip().upper()
        if fmt not in SUPPORTED_FORMATS:
            raise ConfigurationError(f"unsupported response format: {response_format!r} (only XML)")
        self.response_format = fmt

    def _adult(self, adult: Optional[bool]) -> str:
        # Per-call argument wins over the client-wide setting.
        return self.adult if adult is None else str(int(adult))

    def _exclusive(self, exclusive: Optional[int]) -> str:
        return self.exclusive if exclusive is None else str(int(exclusive))

    def _fetch(self, method: str, params: Dict[str, str]) -> ObjectValue:
        body = self.transport.call(method, params)
        log.debug("catalog_response", extra={"method": method, "size": len(body)})
        return parse_xml(body, self.options)

    def content_types(self) -> Value:
        """List the content types available to this site."""

        doc = self._fetch("ContentTypes", {"SiteID": self.site_id})
        return extract_field(doc, "ContentType")

    def categories_for_content_type(
        self, content_type_id: int, exclusive: Optional[int] = None, adult: Optional[bool] = None
    ) -> Value:
        """List the categories of one content type."""

        doc = self._fetch(
            "Categories",
            {
                "SiteID": self.site_id,
                "ContentTypeID": str(int(content_type_id)),
                "Adult": self._adult(adult),
                "Exclusive": self._exclusive(exclusive),
                "Format": self.response_format,
            },
        )
        return extract_field(doc, "category")

    def content_for_category(
        self, category_id: int, exclusive: Optional[int] = None, adult: Optional[bool] = None
    ) -> Value:
        """List content items of a category (paged by rows/columns, 0 = all)."""

        doc = self._fetch(
            "CategoryContent",
            {
                "SiteID": self.site_id,
                "CategoryID": str(int(category_id)),
                "Rows": str(self.rows),
                "Columns": str(self.columns),
                "Exclusive": self._exclusive(exclusive),
                "Adult": self._adult(adult),
                "Format": self.response_format,
            },
        )
        return extract_field(doc, "content")

    def content_details(self, content_id: int) -> Value:
        """Details of one content item."""

        doc = self._fetch(
            "ContentDetails",
            {
                "SiteID": self.site_id,
                "ContentID": str(int(content_id)),
                "Format": self.response_format,
            },
        )
        return extract_field(doc, "content")

    def content_details_extended(self, content_id: int, include_translations: bool = True) -> ObjectValue:
        """Extended details of one content item, optionally with translations.

        Returns the whole normalized document.
        """

        return self._fetch(
            "ContentDetailsExtended",
            {
                "SiteID": self.site_id,
                "ContentID": str(int(content_id)),
                "Format": self.response_format,
                "IncludeTranslations": str(int(include_translations)),
            },
        )

    def new_content(self, content_type_id: int, start_date: date, exclusive: Optional[int] = None) -> Value:
        """Content of a type added since start_date."""

        doc = self._fetch(
            "NewContent",
            {
                "SiteID": self.site_id,
                "ContentTypeID": str(int(content_type_id)),
                "Exclusive": self._exclusive(exclusive),
                "Format": self.response_format,
                "StartDate": start_date.isoformat(),
            },
        )
        return extract_field(doc, "content")
