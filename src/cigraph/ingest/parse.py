"""NDJSON record parsing.

Each non-blank line is one JSON object ``{"type": str, "data": ...}``. Known
types become ``IngestRecord``; anything else becomes ``UnrecognizedRecord`` so
newer indexers can add record kinds without breaking older readers.
"""

from __future__ import annotations

import codecs
import json
from collections.abc import AsyncIterable, AsyncIterator, Iterable, Iterator
from typing import Any

from cigraph.core.errors import IngestError
from cigraph.graph.records import IngestRecord, ParsedRecord, RecordKind, UnrecognizedRecord

StreamChunk = str | bytes
StreamSource = AsyncIterable[StreamChunk] | Iterable[StreamChunk]

_KNOWN_TYPES = {kind.value: kind for kind in RecordKind}


def parse_record(obj: Any, line: int | None = None) -> ParsedRecord:
    """Classify one decoded JSON value.

    Raises:
        IngestError: If the value is not a ``{"type", "data"}`` object or
            ``data`` is not an object.
    """
    if not isinstance(obj, dict):
        raise IngestError.malformed("record_not_object", line)
    record_type = obj.get("type")
    if not isinstance(record_type, str):
        raise IngestError.malformed("record_missing_type", line)
    if "data" not in obj:
        raise IngestError.malformed("record_missing_data", line)
    if not isinstance(obj["data"], dict):
        raise IngestError.malformed("record_data_not_object", line)
    kind = _KNOWN_TYPES.get(record_type)
    if kind is None:
        return UnrecognizedRecord(type=record_type, data=obj["data"], line=line)
    return IngestRecord(kind=kind, data=obj["data"], line=line)


def parse_line(raw: str, line: int) -> ParsedRecord | None:
    """Parse one line; None for blank lines."""
    text = raw.strip()
    if not text:
        return None
    try:
        obj = json.loads(text)
    except json.JSONDecodeError as e:
        raise IngestError.malformed(f"invalid_json: {e.msg}", line) from e
    return parse_record(obj, line)


def parse_ndjson_text(text: str) -> Iterator[ParsedRecord]:
    """Yield parsed records from a complete NDJSON blob, in order."""
    for lineno, raw in enumerate(text.split("\n"), start=1):
        record = parse_line(raw, lineno)
        if record is not None:
            yield record


async def _chunks(source: StreamSource) -> AsyncIterator[StreamChunk]:
    if isinstance(source, str | bytes):
        yield source
    elif isinstance(source, AsyncIterable):
        async for chunk in source:
            yield chunk
    else:
        # Sync sources yield whole lines, with or without the newline
        for chunk in source:
            if isinstance(chunk, bytes):
                yield chunk if chunk.endswith(b"\n") else chunk + b"\n"
            else:
                yield chunk if chunk.endswith("\n") else chunk + "\n"


async def parse_ndjson_stream(source: StreamSource) -> AsyncIterator[ParsedRecord]:
    """Yield parsed records from an incremental source.

    Async sources are read as arbitrary chunks that need not align with
    lines; a record split across chunks is reassembled before parsing. Sync
    sources are read as lines. Byte chunks are decoded as UTF-8; invalid
    UTF-8 raises ``IngestError`` for the line holding the bad bytes.
    """
    # Incremental so a multi-byte character split across chunks decodes intact
    decoder = codecs.getincrementaldecoder("utf-8")()
    buffer = ""
    lineno = 0

    def decode(chunk: StreamChunk, final: bool = False) -> str:
        if not isinstance(chunk, bytes):
            return chunk
        try:
            return decoder.decode(chunk, final=final)
        except UnicodeDecodeError as e:
            line = lineno + 1 + bytes(e.object[: e.start]).count(b"\n")
            raise IngestError.malformed("invalid_utf8", line) from e

    async for chunk in _chunks(source):
        buffer += decode(chunk)
        *complete, buffer = buffer.split("\n")
        for raw in complete:
            lineno += 1
            record = parse_line(raw, lineno)
            if record is not None:
                yield record
    buffer += decode(b"", final=True)
    if buffer:
        record = parse_line(buffer, lineno + 1)
        if record is not None:
            yield record
