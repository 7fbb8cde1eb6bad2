"""Argument checks shared by query entry points.

All checks run before any store access and raise ``QueryError``.
"""

from __future__ import annotations

from collections.abc import Iterable
from typing import Any

from cigraph.core.errors import QueryError
from cigraph.graph.records import DIRECTIONS, Direction, is_non_empty_str


def require_uid(name: str, value: Any) -> str:
    if not is_non_empty_str(value):
        raise QueryError.invalid_argument(name, value, "must be a non-empty string")
    return str(value)


def require_depth(value: Any, maximum: int, name: str = "depth") -> int:
    if isinstance(value, bool) or not isinstance(value, int) or not 0 <= value <= maximum:
        raise QueryError.invalid_argument(name, value, f"must be an integer in 0..{maximum}")
    return value


def require_direction(value: Any) -> Direction:
    if value not in DIRECTIONS:
        raise QueryError.invalid_argument("direction", value, "must be one of in, out, both")
    return value  # type: ignore[no-any-return]


def require_positive(name: str, value: Any) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or value < 1:
        raise QueryError.invalid_argument(name, value, "must be a positive integer")
    return value


def edge_type_filter(edge_types: Iterable[str] | None) -> frozenset[str] | None:
    if edge_types is None:
        return None
    if isinstance(edge_types, str):
        return frozenset({edge_types})
    return frozenset(edge_types)
