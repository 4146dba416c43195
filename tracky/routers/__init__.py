"""Router package exports."""

from . import proxy, raw

__all__ = ["proxy", "raw"]
