from __future__ import annotations

from pydantic import BaseModel
from typing import Any, Dict


class HealthOut(BaseModel):
    ok: bool
    max_depth: int
    max_body_bytes: int


class NormalizeOut(BaseModel):
    """Normalization result: the root tag and its plain-data value."""

    root: str
    value: Dict[str, Any]
