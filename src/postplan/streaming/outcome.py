"""Session lifecycle primitives shared by the driver and metrics."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Literal, Mapping, Optional

SessionState = Literal["idle", "streaming", "completed", "failed", "cancelled"]

TERMINAL_STATES: frozenset[str] = frozenset({"completed", "failed", "cancelled"})


@dataclass(slots=True)
class SessionOutcome:
    """Aggregate result of one generation session."""

    session_id: str
    provider: str
    model: str
    state: SessionState
    started_at: float
    ended_at: float
    records_emitted: int = 0
    records_skipped: int = 0
    usage: Mapping[str, int] = field(default_factory=dict)
    cost_usd: float = 0.0
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.state == "completed"

    @property
    def duration_ms(self) -> float:
        return max(0.0, (self.ended_at - self.started_at) * 1000.0)


__all__ = ["SessionOutcome", "SessionState", "TERMINAL_STATES"]
