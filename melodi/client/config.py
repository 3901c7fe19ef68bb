from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Optional

from melodi.core.normalization import NormalizerOptions
from melodi.utils.env import env_int, env_positive_int

DEFAULT_ENDPOINT: str = "http://webservice.melodimedia.co.uk/index.cfc"


@dataclass(frozen=True, slots=True)
class ClientConfig:
    """Configuration for the catalog client.

    Security notes:
    - Credentials are never logged.
    - download_endpoint is optional. If not provided, download-link
      resolution is disabled.

    """

    endpoint: str = DEFAULT_ENDPOINT
    download_endpoint: Optional[str] = None
    site_id: str = ""
    username: Optional[str] = None
    password: Optional[str] = None
    timeout_sec: int = 30
    max_depth: Optional[int] = None

    @classmethod
    def from_env(cls) -> "ClientConfig":
        """Build a config from MELODI_* environment variables."""

        return cls(
            endpoint=os.environ.get("MELODI_ENDPOINT") or DEFAULT_ENDPOINT,
            download_endpoint=os.environ.get("MELODI_DOWNLOAD_ENDPOINT") or None,
            site_id=os.environ.get("MELODI_SITE_ID", "").strip(),
            username=os.environ.get("MELODI_USERNAME") or None,
            password=os.environ.get("MELODI_PASSWORD") or None,
            timeout_sec=env_int("MELODI_TIMEOUT_SEC", 30),
            max_depth=env_positive_int("MELODI_MAX_DEPTH"),
        )

    def normalizer_options(self) -> NormalizerOptions:
        return NormalizerOptions(max_depth=self.max_depth)
