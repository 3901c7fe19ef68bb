"""Melodi API package.

This module provides an optional FastAPI service layer around the XML
normalizer.
"""

from .server import create_app  # noqa: F401
