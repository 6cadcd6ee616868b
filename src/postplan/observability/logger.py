"""Per-session ledger with cost tracking."""

from __future__ import annotations

import json
import os
import tempfile
import time
from pathlib import Path
from typing import Any, Dict, Optional


class ObservabilityLogger:
    """Append-only ledger for one generation session.

    Writes ``logs.jsonl``, ``metrics.json`` and ``summary.json`` under
    ``base_dir/<session_id>``.
    """

    def __init__(
        self,
        session_id: str,
        slug: Optional[str] = None,
        base_dir: Optional[Path] = None,
    ):
        self.session_id = session_id
        self.slug = slug
        self.base_dir = base_dir or Path.cwd() / ".runs" / "sessions"
        self.run_dir = self.base_dir / session_id
        self.run_dir.mkdir(parents=True, exist_ok=True)
        self.logs: list[dict[str, Any]] = []
        self.metrics: dict[str, list[dict[str, Any]]] = {}
        self.cost_usd: float = 0.0
        self.input_tokens: int = 0
        self.output_tokens: int = 0
        self.model: Optional[str] = None
        self.provider: Optional[str] = None

    def _atomic_write(self, path: Path, payload: str) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        with tempfile.NamedTemporaryFile(
            "w", delete=False, dir=path.parent, encoding="utf-8"
        ) as tmp:
            tmp.write(payload)
            tmp_path = Path(tmp.name)
        os.replace(tmp_path, path)

    def _write_json(self, path: Path, content: Any) -> None:
        payload = json.dumps(content, ensure_ascii=False, indent=2)
        self._atomic_write(path, payload + "\n")

    def log(self, event: str, data: Dict[str, Any]) -> None:
        """Append an event to the session log."""
        entry = {
            "session_id": self.session_id,
            "event": event,
            "timestamp": time.time(),
            "data": data,
        }
        self.logs.append(entry)
        log_file = self.run_dir / "logs.jsonl"
        with open(log_file, "a", encoding="utf-8") as f:
            f.write(json.dumps(entry, ensure_ascii=False) + "\n")

    def metric(self, key: str, value: Any) -> None:
        """Record a metric value."""
        if key not in self.metrics:
            self.metrics[key] = []
        self.metrics[key].append(
            {"session_id": self.session_id, "value": value, "timestamp": time.time()}
        )
        self._write_json(self.run_dir / "metrics.json", self.metrics)

    def record_cost(
        self,
        cost_usd: float,
        *,
        model: Optional[str] = None,
        provider: Optional[str] = None,
        input_tokens: int = 0,
        output_tokens: int = 0,
    ) -> None:
        """Record generation cost and token usage."""
        self.cost_usd += cost_usd
        self.input_tokens += input_tokens
        self.output_tokens += output_tokens
        self.model = model or self.model
        self.provider = provider or self.provider
        self.metric("cost_usd", cost_usd)
        self.metric("tokens", input_tokens + output_tokens)

    def finalize(self, **extra: Any) -> None:
        """Write the final summary with cost totals."""
        summary: dict[str, Any] = {
            "session_id": self.session_id,
            "total_logs": len(self.logs),
            "metrics": self.metrics,
            "run_dir": str(self.run_dir),
            "cost_usd": self.cost_usd,
            "input_tokens": self.input_tokens,
            "output_tokens": self.output_tokens,
        }
        if self.slug:
            summary["slug"] = self.slug
        if self.model:
            summary["model"] = self.model
        if self.provider:
            summary["provider"] = self.provider
        summary.update(extra)
        self._write_json(self.run_dir / "summary.json", summary)


__all__ = ["ObservabilityLogger"]
