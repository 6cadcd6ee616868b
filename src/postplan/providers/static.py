"""Offline provider replaying a fixed document in fixed-size fragments."""

from __future__ import annotations

from pathlib import Path
from typing import AsyncIterator, Mapping, Optional

from postplan.providers.base import GenerationDelta


class StaticDocumentProvider:
    """Replay ``document`` as ``chunk_size`` character fragments.

    The prompt is ignored. When ``usage`` is given it is attached to the final
    fragment, mirroring providers that report token counts at the end.
    """

    name = "static"
    model = "static"

    def __init__(
        self,
        document: str,
        *,
        chunk_size: int = 64,
        usage: Optional[Mapping[str, int]] = None,
    ) -> None:
        if chunk_size < 1:
            raise ValueError("chunk_size must be at least 1")
        self.document = document
        self.chunk_size = chunk_size
        self.usage = dict(usage) if usage else None

    @classmethod
    def from_file(cls, path: Path, *, chunk_size: int = 64) -> "StaticDocumentProvider":
        return cls(path.read_text(encoding="utf-8"), chunk_size=chunk_size)

    def fragments(self) -> list[str]:
        return [
            self.document[offset : offset + self.chunk_size]
            for offset in range(0, len(self.document), self.chunk_size)
        ]

    async def stream(self, prompt: str) -> AsyncIterator[GenerationDelta]:
        fragments = self.fragments()
        for position, fragment in enumerate(fragments):
            is_last = position == len(fragments) - 1
            yield GenerationDelta(text=fragment, usage=self.usage if is_last else None)


__all__ = ["StaticDocumentProvider"]
