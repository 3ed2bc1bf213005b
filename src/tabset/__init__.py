"""Tabset: named groups of open editor documents that can be swapped in one step."""

__version__ = "0.1.0"

__all__ = ["__version__"]
