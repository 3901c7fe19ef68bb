from __future__ import annotations

from typing import Optional


class CatalogError(Exception):
    """
    Base exception for all catalog client and normalization failures.
    """

    pass


class MalformedInput(CatalogError):
    """
    Raised when a response document cannot be parsed or traversed.

    The underlying parser error is always chained as ``__cause__``.
    """

    pass


class DepthLimitExceeded(MalformedInput):
    """
    Raised when a document nests deeper than the configured max_depth.
    """

    def __init__(self, depth: int, max_depth: int):
        super().__init__(f"document nesting depth {depth} exceeds max_depth={max_depth}")
        self.depth = depth
        self.max_depth = max_depth


class ContractViolation(CatalogError):
    """
    Raised when an internal invariant is broken (programming error).
    """

    pass


class TransportError(CatalogError):
    """
    Raised when the catalog service cannot be reached or answers with an error.
    """

    def __init__(self, message: str, *, status: Optional[int] = None):
        super().__init__(message)
        self.status = status


class ConfigurationError(CatalogError):
    """
    Raised when the client is misconfigured.
    """

    pass
