"""Incremental extraction of array elements from a growing JSON document.

The generation service streams one document shaped like
``{"schedule": [{...}, {...}]}`` in arbitrary fragments. This module finds every
complete element of the target array as soon as its closing brace arrives,
without rescanning consumed text.

Stdlib only: imported by both the server-side stream driver and the client
assembler so that both sides extract identically.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from typing import Any

logger = logging.getLogger(__name__)

SEPARATORS = frozenset(",\n\r\t ")
OPENERS = frozenset("{[")
CLOSERS = frozenset("}]")

DEFAULT_ARRAY_KEY = "schedule"


def find_closing_delimiter(text: str, start: int) -> int | None:
    """Return the offset of the delimiter closing the one at ``start``.

    Returns ``None`` when ``text`` ends before the depth returns to zero, which
    is the normal outcome while a stream is still growing.
    """
    if start >= len(text):
        return None
    if text[start] not in OPENERS:
        raise ValueError(f"Expected '{{' or '[' at offset {start}, got {text[start]!r}")

    depth = 0
    in_string = False
    escape_next = False

    for offset in range(start, len(text)):
        char = text[offset]
        if escape_next:
            escape_next = False
            continue
        if char == "\\" and in_string:
            escape_next = True
            continue
        if char == '"':
            in_string = not in_string
            continue
        if in_string:
            continue
        if char in OPENERS:
            depth += 1
        elif char in CLOSERS:
            depth -= 1
            if depth == 0:
                return offset
    return None


def locate_array_start(text: str, key: str = DEFAULT_ARRAY_KEY) -> int | None:
    """Return the offset just past the ``[`` that follows the quoted ``key``."""
    marker = json.dumps(key)
    key_index = text.find(marker)
    if key_index < 0:
        return None
    bracket_index = text.find("[", key_index + len(marker))
    if bracket_index < 0:
        return None
    return bracket_index + 1


@dataclass(frozen=True, slots=True)
class ExtractionBatch:
    """Records completed by one extraction pass and the cursor to resume from."""

    records: list[Any]
    cursor: int
    skipped: int = 0


def extract_records(buffer: str, cursor: int) -> ExtractionBatch:
    """Parse every complete object in ``buffer`` starting at ``cursor``.

    Stops at the first element that is not an object start (including the
    array's closing ``]``) or that is still incomplete; the returned cursor then
    points at or before that element so the next call picks it up again.
    """
    records: list[Any] = []
    skipped = 0

    while True:
        index = cursor
        while index < len(buffer) and buffer[index] in SEPARATORS:
            index += 1

        if index >= len(buffer) or buffer[index] != "{":
            break

        end = find_closing_delimiter(buffer, index)
        if end is None:
            break

        fragment = buffer[index : end + 1]
        try:
            records.append(json.loads(fragment))
        except json.JSONDecodeError as exc:
            skipped += 1
            logger.warning(
                "Skipping malformed array element at offset %d: %s", index, exc.msg
            )
        cursor = end + 1

    return ExtractionBatch(records=records, cursor=cursor, skipped=skipped)


@dataclass(frozen=True, slots=True)
class ExtractedRecord:
    """A record paired with its emission index."""

    index: int
    value: Any


@dataclass(slots=True)
class IncrementalRecordExtractor:
    """Stateful extractor owning the buffer, cursor and anchor for one session."""

    array_key: str = DEFAULT_ARRAY_KEY
    _buffer: str = field(default="", init=False)
    _cursor: int = field(default=0, init=False)
    _anchored: bool = field(default=False, init=False)
    _emitted: int = field(default=0, init=False)
    _skipped: int = field(default=0, init=False)

    @property
    def anchored(self) -> bool:
        return self._anchored

    @property
    def records_emitted(self) -> int:
        return self._emitted

    @property
    def records_skipped(self) -> int:
        return self._skipped

    @property
    def buffered_chars(self) -> int:
        return len(self._buffer)

    def feed(self, chunk: str) -> list[ExtractedRecord]:
        """Append ``chunk`` and return the records it completed, in order."""
        if chunk:
            self._buffer += chunk

        if not self._anchored:
            start = locate_array_start(self._buffer, self.array_key)
            if start is None:
                return []
            self._anchored = True
            self._cursor = start

        batch = extract_records(self._buffer, self._cursor)
        self._cursor = batch.cursor
        self._skipped += batch.skipped

        extracted: list[ExtractedRecord] = []
        for value in batch.records:
            extracted.append(ExtractedRecord(index=self._emitted, value=value))
            self._emitted += 1
        return extracted


def iter_document_records(
    document: str, array_key: str = DEFAULT_ARRAY_KEY
) -> list[ExtractedRecord]:
    """Extract every complete record from a document available in full."""
    return IncrementalRecordExtractor(array_key=array_key).feed(document)


__all__ = [
    "DEFAULT_ARRAY_KEY",
    "ExtractedRecord",
    "ExtractionBatch",
    "IncrementalRecordExtractor",
    "extract_records",
    "find_closing_delimiter",
    "iter_document_records",
    "locate_array_start",
]
