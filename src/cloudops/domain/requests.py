"""Caller-facing inputs and results of the build, codesign and publish services."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from pathlib import Path
from typing import Any

from pydantic import Field

from .base import DomainModel
from .types import OperationId

DEFAULT_ANDROID_PUBLISH_TRACK = "beta"


class ProjectSettings(DomainModel):
    """Describes the project being built."""

    project_dir: Path
    project_id: str
    project_name: str
    nativescript_data: Mapping[str, Any] = Field(default_factory=dict)
    clean: bool = False


class AndroidBuildData(DomainModel):
    """Signing inputs for Android builds; required only for Release."""

    path_to_certificate: Path | None = None
    certificate_password: str | None = None


class IOSBuildData(DomainModel):
    """Signing inputs for iOS builds; ignored for simulator builds."""

    build_for_device: bool = True
    path_to_provision: Path | None = None
    path_to_certificate: Path | None = None
    certificate_password: str | None = None
    device_identifier: str | None = None


class DeviceInfo(DomainModel):
    """A device that generated provisions should include."""

    identifier: str
    display_name: str | None = None


class CodesignData(DomainModel):
    """Apple account and target information for codesign generation."""

    username: str
    password: str
    platform: str = "iOS"
    clean: bool = True
    shared_cloud: bool = False
    attached_devices: Sequence[DeviceInfo] = ()


class PublishCredentials(DomainModel):
    username: str
    password: str
    app_specific_password: str | None = None


class PublishDataCore(DomainModel):
    """Fields shared by every publish target."""

    project_dir: Path | None = None
    package_paths: Sequence[str] = ()
    shared_cloud: bool = False


class ItunesConnectPublishData(PublishDataCore):
    credentials: PublishCredentials | None = None
    team_id: str | None = None


class GooglePlayPublishData(PublishDataCore):
    path_to_auth_json: Path | None = None
    track: str | None = None
    android_release_status: str | None = None


class OperationResultData(DomainModel):
    """Output common to every finished operation."""

    operation_id: OperationId
    stdout: str = ""
    stderr: str = ""


class QrData(DomainModel):
    """Package location plus a scannable image pointing a device at it."""

    original_url: str
    image_data: str


class ItmsPlistOptions(DomainModel):
    """Inputs of the itms-services manifest used for over-the-air iOS installs."""

    url: str
    project_id: str
    project_name: str
    bundle_version: str = "1.0"
    path_to_provision: Path | None = None


class BuildResultData(OperationResultData):
    full_output: str = ""
    output_file_path: Path | None = None
    output_file_paths: tuple[Path, ...] = ()
    package_url: str | None = None
    qr_data: QrData | None = None


class CodesignResultData(OperationResultData):
    output_file_paths: tuple[Path, ...] = ()


class PublishResultData(OperationResultData):
    pass


__all__ = [
    "DEFAULT_ANDROID_PUBLISH_TRACK",
    "AndroidBuildData",
    "BuildResultData",
    "CodesignData",
    "CodesignResultData",
    "DeviceInfo",
    "GooglePlayPublishData",
    "IOSBuildData",
    "ItmsPlistOptions",
    "ItunesConnectPublishData",
    "OperationResultData",
    "ProjectSettings",
    "PublishCredentials",
    "PublishDataCore",
    "PublishResultData",
    "QrData",
]
