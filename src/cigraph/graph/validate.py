"""Structural gatekeepers for records entering the graph.

Each validator returns a ValidationResult instead of raising; the ingestion
pipeline turns a failed result into a fatal IngestError.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any

from cigraph.graph.records import is_non_empty_str


class ValidationReason(str, Enum):
    """Machine-readable validation failure codes."""

    NODE_NOT_OBJECT = "node_not_object"
    NODE_MISSING_SYMBOL_UID = "node_missing_symbol_uid"
    NODE_MISSING_NODE_TYPE = "node_missing_node_type"
    EDGE_NOT_OBJECT = "edge_not_object"
    EDGE_MISSING_SOURCE = "edge_missing_source"
    EDGE_MISSING_TARGET = "edge_missing_target"
    EDGE_MISSING_TYPE = "edge_missing_type"
    OCC_NOT_OBJECT = "occ_not_object"
    OCC_MISSING_FILE_PATH = "occ_missing_file_path"
    OCC_BAD_LINE_START = "occ_bad_line_start"
    OCC_BAD_LINE_END = "occ_bad_line_end"


@dataclass(frozen=True, slots=True)
class ValidationResult:
    ok: bool
    reason: ValidationReason | None = None

    def __bool__(self) -> bool:
        return self.ok


_OK = ValidationResult(ok=True)


def _fail(reason: ValidationReason) -> ValidationResult:
    return ValidationResult(ok=False, reason=reason)


def _is_int(value: Any) -> bool:
    # bool is an int subclass; true/false are not line numbers
    return isinstance(value, int) and not isinstance(value, bool)


def validate_node(record: Any) -> ValidationResult:
    if not isinstance(record, dict):
        return _fail(ValidationReason.NODE_NOT_OBJECT)
    if not is_non_empty_str(record.get("symbol_uid")):
        return _fail(ValidationReason.NODE_MISSING_SYMBOL_UID)
    if not is_non_empty_str(record.get("node_type")):
        return _fail(ValidationReason.NODE_MISSING_NODE_TYPE)
    return _OK


def validate_edge(record: Any) -> ValidationResult:
    if not isinstance(record, dict):
        return _fail(ValidationReason.EDGE_NOT_OBJECT)
    if not is_non_empty_str(record.get("source_symbol_uid")):
        return _fail(ValidationReason.EDGE_MISSING_SOURCE)
    if not is_non_empty_str(record.get("target_symbol_uid")):
        return _fail(ValidationReason.EDGE_MISSING_TARGET)
    if not is_non_empty_str(record.get("edge_type")):
        return _fail(ValidationReason.EDGE_MISSING_TYPE)
    return _OK


def validate_edge_occurrence(record: Any) -> ValidationResult:
    """Location checks first, then the edge rules for the key fields."""
    if not isinstance(record, dict):
        return _fail(ValidationReason.OCC_NOT_OBJECT)
    if not is_non_empty_str(record.get("file_path")):
        return _fail(ValidationReason.OCC_MISSING_FILE_PATH)
    line_start = record.get("line_start")
    if not _is_int(line_start) or line_start <= 0:
        return _fail(ValidationReason.OCC_BAD_LINE_START)
    line_end = record.get("line_end")
    if not _is_int(line_end) or line_end < line_start:
        return _fail(ValidationReason.OCC_BAD_LINE_END)
    return validate_edge(record)
