"""Core base classes for domain and wire models."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict


class DomainModel(BaseModel):
    """Immutable domain model base with strict validation."""

    model_config = ConfigDict(frozen=True, extra="forbid", validate_assignment=True)


class WireModel(BaseModel):
    """Immutable model for objects produced by the remote service.

    Field aliases carry the backend's literal names; the Python names are
    accepted too so tests and callers can build instances directly. Unknown
    keys are ignored because the backend adds fields without notice.
    """

    model_config = ConfigDict(frozen=True, extra="ignore", populate_by_name=True)
