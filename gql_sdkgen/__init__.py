"""Typed, chainable GraphQL SDK generator."""

from .core import plugin, validate

__version__ = "0.1.0"

__all__ = ["plugin", "validate", "__version__"]
