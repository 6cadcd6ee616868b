"""Account profiles used to personalise schedule prompts."""

from __future__ import annotations

import threading
from pathlib import Path
from typing import Any, Iterable, Optional
from uuid import UUID

import yaml
from pydantic import BaseModel, ConfigDict, Field


class AccountProfile(BaseModel):
    """Brand profile of one publishing account."""

    model_config = ConfigDict(extra="ignore", frozen=True)

    id: UUID = Field(..., description="Account identifier")
    username: str = Field(..., description="Public handle without the leading @")
    niche: Optional[str] = Field(default=None, description="Content niche")
    target_audience: Optional[str] = Field(default=None, description="Intended audience")
    brand_voice: str = Field(default="friendly", description="Tone used in every caption")
    main_goal: str = Field(default="grow_followers", description="Primary account objective")
    content_pillars: list[str] = Field(default_factory=list, description="Recurring themes")
    strategic_notes: Optional[str] = Field(default=None, description="Free-form guidance")
    color_palette: list[str] = Field(default_factory=list, description="Brand hex colours")
    negative_words: list[str] = Field(
        default_factory=list, description="Words that must never appear in generated content"
    )

    def echo(self) -> dict[str, Any]:
        """Subset of the profile echoed back in the completion summary."""
        return {
            "username": self.username,
            "niche": self.niche,
            "brand_voice": self.brand_voice,
            "main_goal": self.main_goal,
        }


class AccountDirectory:
    """Thread-safe in-memory lookup of account profiles."""

    def __init__(self, accounts: Iterable[AccountProfile] = ()) -> None:
        self._accounts: dict[UUID, AccountProfile] = {}
        self._lock = threading.RLock()
        for account in accounts:
            self.add(account)

    def add(self, account: AccountProfile) -> None:
        with self._lock:
            self._accounts[account.id] = account

    def get(self, account_id: UUID) -> Optional[AccountProfile]:
        with self._lock:
            return self._accounts.get(account_id)

    def list_accounts(self) -> list[AccountProfile]:
        with self._lock:
            return sorted(self._accounts.values(), key=lambda account: account.username)

    def __len__(self) -> int:
        with self._lock:
            return len(self._accounts)

    @classmethod
    def from_yaml(cls, path: Path) -> "AccountDirectory":
        """Load profiles from a YAML file with a top-level ``accounts`` list."""
        if not path.exists():
            return cls()
        with open(path, encoding="utf-8") as handle:
            data = yaml.safe_load(handle) or {}
        if not isinstance(data, dict):
            raise ValueError(f"Accounts file {path} must contain a mapping")
        entries = data.get("accounts") or []
        if not isinstance(entries, list):
            raise ValueError(f"'accounts' in {path} must be a list")
        return cls(AccountProfile.model_validate(entry) for entry in entries)


__all__ = ["AccountDirectory", "AccountProfile"]
