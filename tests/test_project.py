from __future__ import annotations

import json
from pathlib import Path

import pytest

from cloudops.exceptions import ValidationError
from cloudops.project import PackageJsonProjectData
from cloudops.utils import sanitize_name


def test_reads_per_platform_identifiers(project_dir: Path) -> None:
    project = PackageJsonProjectData().get_project_data(project_dir)

    assert project.project_name == "my-app"
    assert project.project_id_for("Android") == "org.example.android"
    assert project.project_id_for("iOS") == "org.example.ios"

    settings = project.to_settings("iOS", clean=True)
    assert settings.project_id == "org.example.ios"
    assert settings.clean is True
    assert settings.nativescript_data["tns-android"] == {"version": "8.0.0"}


def test_single_identifier_applies_to_every_platform(tmp_path: Path) -> None:
    (tmp_path / "package.json").write_text(
        json.dumps({"nativescript": {"id": "org.example.shared"}}), encoding="utf-8"
    )

    project = PackageJsonProjectData().get_project_data(tmp_path)

    assert project.project_id_for("Android") == "org.example.shared"
    assert project.project_id_for("iOS") == "org.example.shared"
    assert project.project_name == tmp_path.resolve().name


@pytest.mark.parametrize(
    ("content", "message"),
    [
        (None, "No package.json found"),
        ("{broken", "is not valid JSON"),
        (json.dumps({"name": "x"}), "does not define nativescript.id"),
    ],
)
def test_invalid_project_is_rejected(tmp_path: Path, content: str | None, message: str) -> None:
    if content is not None:
        (tmp_path / "package.json").write_text(content, encoding="utf-8")

    with pytest.raises(ValidationError, match=message):
        PackageJsonProjectData().get_project_data(tmp_path)


def test_sanitize_name_strips_unsupported_characters() -> None:
    assert sanitize_name("My App-2.0") == "MyApp20"
    assert sanitize_name("plain_name") == "plain_name"
