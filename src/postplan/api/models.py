"""Pydantic models for API request/response schemas."""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, Field


class ApiError(BaseModel):
    """Standard API error response."""

    code: Literal[
        "account_not_found",
        "invalid_payload",
        "not_found",
        "method_not_allowed",
        "provider_unavailable",
        "rate_limit_exceeded",
        "internal_error",
    ] = Field(..., description="Machine-readable error code")
    message: str = Field(..., description="Human-readable error message")
    details: dict[str, Any] | None = Field(default=None, description="Additional error context")


class HealthMetrics(BaseModel):
    """Aggregated session metrics."""

    metrics: dict[str, Any] = Field(..., description="Snapshot of the metrics registry")
