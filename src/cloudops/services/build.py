"""Cloud build service."""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Any

from cloudops.domain import (
    AndroidBuildData,
    BuildConfiguration,
    BuildResultData,
    BuildStep,
    Disposition,
    IOSBuildData,
    ItmsPlistOptions,
    OperationId,
    OperationKind,
    OperationRequest,
    OutputDirectoryOptions,
    Platform,
    ProjectSettings,
    QrData,
    new_operation_id,
)
from cloudops.events import EventSink, NullEventSink, OutputRecorder
from cloudops.exceptions import ToolFailureError, ValidationError
from cloudops.operations import filter_artifacts, variant_for
from cloudops.runtime import OperationRuntime
from cloudops.utils import sanitize_name

from .base import report_step, tagged_errors
from .qr import allows_device_install, build_itms_plist, build_qr_data, itms_services_link


def _require_existing(path: Path | None, kind: str) -> None:
    if path is not None and not Path(path).exists():
        raise ValidationError(
            f"The specified {kind}: {path} does not exist. Verify the location is correct."
        )


class CloudBuildService:
    """Builds an application remotely and downloads the produced packages."""

    def __init__(
        self,
        runtime: OperationRuntime,
        *,
        shared_cloud: bool = False,
        logger: logging.Logger | None = None,
    ) -> None:
        self._runtime = runtime
        self._shared_cloud = shared_cloud
        self._variant = variant_for(OperationKind.BUILD)
        self._logger = logger or logging.getLogger(__name__)

    def validate_build_properties(
        self,
        platform: str,
        build_configuration: str,
        project_id: str,
        android_data: AndroidBuildData | None = None,
        ios_data: IOSBuildData | None = None,
    ) -> None:
        """Reject builds the remote service would refuse, before any request is sent."""

        try:
            target = Platform(platform)
        except ValueError as exc:
            raise ValidationError(
                f"Platform {platform} is not supported. Supported platforms are Android and iOS."
            ) from exc
        try:
            configuration = BuildConfiguration(build_configuration)
        except ValueError as exc:
            raise ValidationError(
                f"Build configuration {build_configuration} is not supported. "
                "Use Debug or Release."
            ) from exc
        if not project_id:
            raise ValidationError("Cannot build without an application identifier.")

        if target is Platform.ANDROID:
            if configuration is not BuildConfiguration.RELEASE:
                return
            if (
                android_data is None
                or not android_data.path_to_certificate
                or not android_data.certificate_password
            ):
                raise ValidationError(
                    "When building for Release configuration, you must specify "
                    "valid Certificate and its password."
                )
            _require_existing(android_data.path_to_certificate, "certificate")
            return

        if ios_data is not None and not ios_data.build_for_device:
            return
        if (
            ios_data is None
            or not ios_data.path_to_provision
            or not ios_data.path_to_certificate
            or not ios_data.certificate_password
        ):
            raise ValidationError(
                "When building for iOS you must specify valid Mobile Provision, "
                "Certificate and its password."
            )
        _require_existing(ios_data.path_to_certificate, "certificate")
        _require_existing(ios_data.path_to_provision, "provision")

    async def build(
        self,
        project: ProjectSettings,
        platform: str,
        build_configuration: str,
        android_data: AndroidBuildData | None = None,
        ios_data: IOSBuildData | None = None,
        *,
        sink: EventSink | None = None,
        cancel: asyncio.Event | None = None,
    ) -> BuildResultData:
        self.validate_build_properties(
            platform, build_configuration, project.project_id, android_data, ios_data
        )
        operation_id = new_operation_id()
        with tagged_errors(operation_id):
            return await self._execute(
                operation_id,
                project,
                Platform(platform),
                BuildConfiguration(build_configuration),
                android_data,
                ios_data,
                sink=sink or NullEventSink(),
                cancel=cancel,
            )

    async def _execute(
        self,
        operation_id: OperationId,
        project: ProjectSettings,
        platform: Platform,
        configuration: BuildConfiguration,
        android_data: AndroidBuildData | None,
        ios_data: IOSBuildData | None,
        *,
        sink: EventSink,
        cancel: asyncio.Event | None,
    ) -> BuildResultData:
        recorder = OutputRecorder(operation_id, inner=sink)
        report_step(recorder, operation_id, BuildStep.PREPARE, 0)
        properties = self._build_properties(platform, android_data, ios_data)
        report_step(recorder, operation_id, BuildStep.PREPARE, 100)

        report_step(recorder, operation_id, BuildStep.UPLOAD, 0)
        build_files = await self._upload_build_files(platform, configuration, android_data, ios_data)
        report_step(recorder, operation_id, BuildStep.UPLOAD, 100)

        request = OperationRequest(
            operation_id=operation_id,
            kind=OperationKind.BUILD,
            payload={
                "appId": project.project_id,
                "appName": sanitize_name(project.project_name),
                "platform": platform.value,
                "buildConfiguration": configuration.value,
                "clean": project.clean,
                "sharedCloud": self._shared_cloud,
                "nativescriptData": dict(project.nativescript_data),
                "buildFiles": build_files,
                "properties": properties,
            },
        )

        self._logger.info("Starting %s %s cloud build.", platform.value, configuration.value)
        report_step(recorder, operation_id, BuildStep.BUILD, 0)
        outcome = await self._runtime.run(self._variant, request, sink=recorder, cancel=cancel)
        report_step(recorder, operation_id, BuildStep.BUILD, 100)

        result = outcome.result
        self._logger.debug("Build result: %s", result)
        if not result.items:
            raise ToolFailureError(
                f"Build failed. Reason is: {result.errors or 'no build items were produced'}.",
                stdout=result.stdout,
                stderr=result.stderr,
            )

        transformed = await self._runtime.fetch_transformed(outcome.handle, cancel=cancel)
        if transformed is not None and transformed.items:
            result = result.model_copy(update={"items": transformed.items})

        self._logger.info("Finished cloud build successfully. Downloading result...")
        report_step(recorder, operation_id, BuildStep.DOWNLOAD, 0)
        emulator = platform is Platform.IOS and ios_data is not None and not ios_data.build_for_device
        paths = await self._runtime.download(
            self._variant,
            request,
            result,
            OutputDirectoryOptions(
                project_dir=project.project_dir,
                platform=platform.value,
                emulator=emulator,
            ),
            sink=recorder,
        )
        self._logger.info("The result of cloud build successfully downloaded: %s", paths)

        packages = filter_artifacts(self._variant, result.items)
        package_url = packages[0].remote_location if packages else None
        qr_data = None
        if package_url:
            qr_data = await self._qr_data(project, platform, package_url, ios_data)
        return BuildResultData(
            operation_id=operation_id,
            stdout=result.stdout,
            stderr=result.stderr,
            full_output=recorder.text,
            output_file_path=paths[0] if paths else None,
            output_file_paths=tuple(paths),
            package_url=package_url,
            qr_data=qr_data,
        )

    async def _qr_data(
        self,
        project: ProjectSettings,
        platform: Platform,
        package_url: str,
        ios_data: IOSBuildData | None,
    ) -> QrData:
        """QR data for the package; iOS device builds point at an itms-services manifest."""

        if platform is not Platform.IOS or ios_data is None or not ios_data.build_for_device:
            return build_qr_data(package_url)

        options = ItmsPlistOptions(
            url=package_url,
            project_id=project.project_id,
            project_name=project.project_name,
            path_to_provision=ios_data.path_to_provision,
        )
        if not allows_device_install(options):
            return build_qr_data(package_url)
        manifest_url = await self._runtime.backend.upload_content(
            build_itms_plist(options), f"{sanitize_name(project.project_name)}.plist"
        )
        return build_qr_data(package_url, itms_services_link(manifest_url))

    def _build_properties(
        self,
        platform: Platform,
        android_data: AndroidBuildData | None,
        ios_data: IOSBuildData | None,
    ) -> dict[str, Any]:
        if platform is Platform.ANDROID:
            if android_data is None or not android_data.certificate_password:
                return {}
            return {"keyStorePassword": android_data.certificate_password}

        if ios_data is None:
            return {"buildForDevice": True}
        properties: dict[str, Any] = {"buildForDevice": ios_data.build_for_device}
        if ios_data.certificate_password:
            properties["certificatePassword"] = ios_data.certificate_password
        if ios_data.device_identifier:
            properties["deviceIdentifier"] = ios_data.device_identifier
        return properties

    async def _upload_build_files(
        self,
        platform: Platform,
        configuration: BuildConfiguration,
        android_data: AndroidBuildData | None,
        ios_data: IOSBuildData | None,
    ) -> list[dict[str, str]]:
        files: list[tuple[str, Path]] = []
        if platform is Platform.ANDROID:
            if (
                configuration is BuildConfiguration.RELEASE
                and android_data is not None
                and android_data.path_to_certificate
            ):
                files.append((Disposition.KEYSTORE, Path(android_data.path_to_certificate)))
        elif ios_data is not None and ios_data.build_for_device:
            if ios_data.path_to_certificate:
                files.append((Disposition.KEYCHAIN, Path(ios_data.path_to_certificate)))
            if ios_data.path_to_provision:
                files.append((Disposition.BUILD_PROVISION, Path(ios_data.path_to_provision)))

        build_files: list[dict[str, str]] = []
        for disposition, path in files:
            source_uri = await self._runtime.backend.upload_file(path)
            build_files.append({"disposition": disposition, "sourceUri": source_uri})
        return build_files


__all__ = ["CloudBuildService"]
