"""Lightweight application configuration loader."""

from __future__ import annotations

import os
from dataclasses import dataclass


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() not in {"0", "false", "no"}


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    return float(raw)


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    return int(raw)


@dataclass(frozen=True)
class AppSettings:
    """Immutable configuration sourced from environment variables."""

    environment: str = "development"
    api_base: str = "https://cloud.example.invalid"
    api_token: str | None = None
    request_timeout_seconds: float = 30.0
    status_check_interval_seconds: float = 1.5
    status_check_attempts: int = 8
    transformed_result_interval_seconds: float = 0.5
    transformed_result_max_wait_seconds: float = 3.0
    shared_cloud: bool = False
    log_level: str = "WARNING"

    @classmethod
    def from_env(cls) -> AppSettings:
        return cls(
            environment=os.getenv("CLOUDOPS_ENV", cls.environment),
            api_base=os.getenv("CLOUDOPS_API_BASE", cls.api_base),
            api_token=os.getenv("CLOUDOPS_API_TOKEN") or None,
            request_timeout_seconds=_env_float(
                "CLOUDOPS_REQUEST_TIMEOUT", cls.request_timeout_seconds
            ),
            status_check_interval_seconds=_env_float(
                "CLOUDOPS_STATUS_INTERVAL", cls.status_check_interval_seconds
            ),
            status_check_attempts=_env_int("CLOUDOPS_STATUS_ATTEMPTS", cls.status_check_attempts),
            transformed_result_interval_seconds=_env_float(
                "CLOUDOPS_TRANSFORMED_INTERVAL", cls.transformed_result_interval_seconds
            ),
            transformed_result_max_wait_seconds=_env_float(
                "CLOUDOPS_TRANSFORMED_MAX_WAIT", cls.transformed_result_max_wait_seconds
            ),
            shared_cloud=_env_bool("CLOUDOPS_SHARED_CLOUD", cls.shared_cloud),
            log_level=os.getenv("CLOUDOPS_LOG_LEVEL", cls.log_level).upper(),
        )


__all__ = ["AppSettings"]
