"""Helpers for names sent to the remote service."""

from __future__ import annotations

import re

_INVALID_NAME_CHARS = re.compile(r"[^A-Za-z0-9_]")


def sanitize_name(name: str) -> str:
    """Strip characters the build machines reject in application names."""

    return _INVALID_NAME_CHARS.sub("", name)
