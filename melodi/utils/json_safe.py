from __future__ import annotations

from dataclasses import fields, is_dataclass
from datetime import date, datetime
from pathlib import Path
from typing import Any, Mapping

from melodi.core.normalization import ListValue, ObjectValue, ScalarValue, to_plain


def to_jsonable(obj: Any) -> Any:
    """
    Convert common Python objects to JSON-serializable equivalents.

    Normalized values (ScalarValue / ObjectValue / ListValue) become plain
    str / dict / list data.

    Security considerations:
    - does NOT execute or import anything dynamically.

    """
    if obj is None or isinstance(obj, (str, int, float, bool)):
        return obj

    if isinstance(obj, (ScalarValue, ObjectValue, ListValue)):
        return to_plain(obj)

    # datetime/date -> ISO 8601
    if isinstance(obj, (datetime, date)):
        return obj.isoformat()

    if isinstance(obj, Path):
        return str(obj)

    # dataclasses, field by field so nested values still go through to_plain
    if is_dataclass(obj) and not isinstance(obj, type):
        return {f.name: to_jsonable(getattr(obj, f.name)) for f in fields(obj)}

    if isinstance(obj, Mapping):
        return {str(k): to_jsonable(v) for k, v in obj.items()}

    if isinstance(obj, (list, tuple, set, frozenset)):
        return [to_jsonable(x) for x in obj]

    # fallback: string representation
    return str(obj)
