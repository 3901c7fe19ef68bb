from __future__ import annotations

import os
from typing import Optional


def env_int(name: str, default: int) -> int:
    """Read an integer environment variable.

    Security notes:
    - Env vars are treated as trusted configuration.
    - Unparsable values fall back to the default.

    """

    raw = os.environ.get(name, "").strip()
    if not raw:
        return int(default)
    try:
        return int(raw)
    except ValueError:
        return int(default)


def env_positive_int(name: str) -> Optional[int]:
    """Read an optional positive integer; unset, zero or negative means None."""

    value = env_int(name, 0)
    return value if value > 0 else None
