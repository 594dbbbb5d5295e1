from __future__ import annotations

import json
import sys
from pathlib import Path

import pytest

# Ensure the src/ directory is importable when tests run via `uv run pytest`.
sys.path.append(str(Path(__file__).resolve().parents[1] / "src"))

from fakes import FakeCloud  # noqa: E402


@pytest.fixture
def cloud() -> FakeCloud:
    return FakeCloud()


@pytest.fixture
def project_dir(tmp_path: Path) -> Path:
    root = tmp_path / "My App"
    root.mkdir()
    (root / "package.json").write_text(
        json.dumps(
            {
                "name": "my-app",
                "nativescript": {
                    "id": {"android": "org.example.android", "ios": "org.example.ios"},
                    "tns-android": {"version": "8.0.0"},
                },
            }
        ),
        encoding="utf-8",
    )
    return root
