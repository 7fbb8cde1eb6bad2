"""Redaction of code-like and free text before persistence.

Nothing but evidence locations (file paths and line numbers) may point back
at source code: code bodies are replaced with a sentinel, and any other text
field keeps only a trimmed, length-capped first line.
"""

from __future__ import annotations

import re
from typing import Any

from cigraph.config.constants import (
    REDACTED_CODE_LIKE,
    SANITIZE_MAX_DEPTH,
    SANITIZE_MAX_ITEMS,
)
from cigraph.graph.records import Record

DEFAULT_MAX_LEN = 2000
ELLIPSIS = "…"

_CODE_FENCE = re.compile(r"(?:^|\n)\s{0,3}(?:```|~~~)")
_BRACES = re.compile(r"[{}]")
_ARROWS = re.compile(r"=>")
_KEYWORDS = re.compile(
    r"\b(?:function|class|return|import|from|def|public|private|const|let|var)\b"
)
_OPERATORS = re.compile(r"[=:+*/<>]")

# Shorter first lines are never treated as code by the density heuristic
_CODE_DENSITY_MIN_LEN = 80

_NODE_STRUCTURED_FIELDS = (
    "parameters",
    "contract",
    "constraints",
    "allowable_values",
    "external_ref",
    "metadata",
)


def has_code_fence(text: str) -> bool:
    return bool(text) and _CODE_FENCE.search(text) is not None


def looks_like_code(text: str) -> bool:
    """Fenced blocks, or a long first line dense with code punctuation."""
    if not text:
        return False
    if has_code_fence(text):
        return True
    first = text.split("\n", 1)[0].strip()
    if len(first) < _CODE_DENSITY_MIN_LEN:
        return False
    braces = len(_BRACES.findall(first))
    semis = first.count(";")
    arrows = len(_ARROWS.findall(first))
    keywords = len(_KEYWORDS.findall(first))
    operators = len(_OPERATORS.findall(first))
    if arrows >= 1:
        return True
    if braces >= 2 and keywords >= 1:
        return True
    if semis >= 2:
        return True
    return keywords >= 2 and operators >= 6


def sanitize_string(value: Any, max_len: int = DEFAULT_MAX_LEN) -> Any:
    """Apply the string rule; non-strings and empty strings pass through."""
    if not isinstance(value, str) or not value:
        return value
    if looks_like_code(value):
        return REDACTED_CODE_LIKE
    first_line = value.split("\n", 1)[0].strip()
    if len(first_line) > max_len:
        return first_line[:max_len] + ELLIPSIS
    return first_line


def sanitize_deep(value: Any, max_len: int = DEFAULT_MAX_LEN, _depth: int = 0) -> Any:
    """Walk nested lists/dicts applying the string rule to every leaf.

    Bounded to SANITIZE_MAX_DEPTH levels and SANITIZE_MAX_ITEMS entries per level.
    """
    if _depth > SANITIZE_MAX_DEPTH:
        return None
    if isinstance(value, str):
        return sanitize_string(value, max_len)
    if isinstance(value, list | tuple):
        return [sanitize_deep(v, max_len, _depth + 1) for v in value[:SANITIZE_MAX_ITEMS]]
    if isinstance(value, dict):
        out: dict[str, Any] = {}
        for i, (k, v) in enumerate(value.items()):
            if i >= SANITIZE_MAX_ITEMS:
                break
            out[k] = sanitize_deep(v, max_len, _depth + 1)
        return out
    return value


def sanitize_node(node: Any, max_len: int = DEFAULT_MAX_LEN) -> Any:
    """Copy of a node record safe for persistence."""
    if not isinstance(node, dict):
        return node
    out: Record = {}
    for key, value in node.items():
        out[key] = sanitize_string(value, max_len) if isinstance(value, str) else value
    for key in _NODE_STRUCTURED_FIELDS:
        if out.get(key):
            out[key] = sanitize_deep(out[key], max_len)
    return out


def sanitize_edge(edge: Any, max_len: int = DEFAULT_MAX_LEN) -> Any:
    """Copy of an edge (or edge occurrence) record with metadata redacted."""
    if not isinstance(edge, dict):
        return edge
    out = dict(edge)
    if out.get("metadata"):
        out["metadata"] = sanitize_deep(out["metadata"], max_len)
    return out


def is_redacted(value: Any) -> bool:
    return value == REDACTED_CODE_LIKE
