"""Project metadata needed to address the remote service."""

from __future__ import annotations

import json
from collections.abc import Mapping
from pathlib import Path
from typing import Any, Protocol, runtime_checkable

from cloudops.domain import DomainModel, ProjectSettings
from cloudops.exceptions import ValidationError

PACKAGE_JSON_FILE_NAME = "package.json"


class ProjectData(DomainModel):
    project_dir: Path
    project_name: str
    project_ids: Mapping[str, str]
    nativescript_data: Mapping[str, Any]

    def project_id_for(self, platform: str) -> str:
        """Application identifier for ``platform``, falling back to the shared one."""

        return self.project_ids.get(platform.lower()) or self.project_ids.get("", "")

    def to_settings(self, platform: str, *, clean: bool = False) -> ProjectSettings:
        return ProjectSettings(
            project_dir=self.project_dir,
            project_id=self.project_id_for(platform),
            project_name=self.project_name,
            nativescript_data=self.nativescript_data,
            clean=clean,
        )


@runtime_checkable
class ProjectDataProvider(Protocol):
    def get_project_data(self, project_dir: Path) -> ProjectData: ...


class PackageJsonProjectData(ProjectDataProvider):
    """Reads identifiers from the ``nativescript`` key of ``package.json``."""

    def get_project_data(self, project_dir: Path) -> ProjectData:
        package_json = Path(project_dir) / PACKAGE_JSON_FILE_NAME
        if not package_json.is_file():
            raise ValidationError(f"No {PACKAGE_JSON_FILE_NAME} found in {project_dir}")
        try:
            data = json.loads(package_json.read_text(encoding="utf-8"))
        except json.JSONDecodeError as exc:
            raise ValidationError(f"{package_json} is not valid JSON: {exc}") from exc

        nativescript = data.get("nativescript") or {}
        raw_id = nativescript.get("id")
        if isinstance(raw_id, str):
            project_ids = {"": raw_id}
        elif isinstance(raw_id, Mapping):
            project_ids = {str(key).lower(): str(value) for key, value in raw_id.items()}
        else:
            raise ValidationError(f"{package_json} does not define nativescript.id")

        return ProjectData(
            project_dir=Path(project_dir),
            project_name=str(data.get("name") or Path(project_dir).resolve().name),
            project_ids=project_ids,
            nativescript_data=nativescript,
        )


__all__ = [
    "PackageJsonProjectData",
    "ProjectData",
    "ProjectDataProvider",
]
