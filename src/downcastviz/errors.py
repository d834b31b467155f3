# downcastviz/errors.py
"""Errors raised by the gridding core."""

from __future__ import annotations

__all__ = ["InvalidDomain", "InsufficientSupport"]


class InvalidDomain(ValueError):
    """An axis cannot be built: no finite observed values, or a bad resolution."""


class InsufficientSupport(ValueError):
    """Too few distinct positions on an axis to support 2-D smoothing."""
