"""Exception types raised for malformed input.

Expected empty results (no match, no path, no rank) are never errors; they
come back as ``None`` or empty collections.
"""

from __future__ import annotations

from typing import Any


class LayerPrepError(Exception):
    """Base exception for layout-preparation failures."""


class UnknownClusterError(LayerPrepError, KeyError):
    """Raised when a cluster name is not declared on the clustered graph."""

    def __init__(self, cluster: str) -> None:
        self.cluster = cluster
        super().__init__(f"Unknown cluster: {cluster!r}")

    def __str__(self) -> str:
        return self.args[0]


class PredicateError(LayerPrepError, ValueError):
    """Raised when a filter expression cannot be compiled."""

    def __init__(self, expression: Any, reason: str) -> None:
        self.expression = expression
        super().__init__(f"Invalid predicate {expression!r}: {reason}")
