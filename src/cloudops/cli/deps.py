"""Lazily built service container shared by CLI commands."""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path

from dotenv import load_dotenv

from cloudops.config import AppSettings
from cloudops.container import ServiceContainer, build_container


@lru_cache(maxsize=1)
def get_container() -> ServiceContainer:
    """Build the container once per process, reading `.env` from the working directory."""

    env_path = Path.cwd() / ".env"
    if env_path.exists():
        load_dotenv(env_path)
    settings = AppSettings.from_env()
    return build_container(settings)


def reset_container() -> None:
    """Forget the cached container so the next command re-reads the environment."""

    get_container.cache_clear()
