"""Client for the Melodi Media content catalog.

The interesting part is ``melodi.core.normalization``: it turns the XML the
catalog returns into a predictable tree of ScalarValue / ObjectValue /
ListValue that callers can index by field name.
"""

__version__ = "0.1.0"
