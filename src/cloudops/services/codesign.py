"""Generation of iOS signing certificates and provisioning profiles."""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path

from cloudops.domain import (
    CodesignData,
    CodesignResultData,
    OperationId,
    OperationKind,
    OperationRequest,
    OutputDirectoryOptions,
    ResultObject,
    new_operation_id,
)
from cloudops.events import EventSink, NullEventSink
from cloudops.exceptions import (
    CloudOperationError,
    OperationCancelledError,
    OperationFailedError,
    ToolFailureError,
    ValidationError,
)
from cloudops.operations import filter_artifacts, variant_for
from cloudops.project import ProjectDataProvider
from cloudops.runtime import OperationRuntime
from cloudops.utils import sanitize_name

from .base import tagged_errors

_SERVICE_UNAVAILABLE_MARKER = "403 Forbidden"
_SERVICE_UNAVAILABLE_MESSAGE = (
    "The Code Signing Assistance service is temporary unavailable. Please try again later."
)
_OPERATION_DESCRIPTION = "generation of iOS certificate and provision files"


class CloudCodesignService:
    """Asks the remote service to create codesign files for a project."""

    def __init__(
        self,
        runtime: OperationRuntime,
        projects: ProjectDataProvider,
        *,
        shared_cloud: bool = False,
        logger: logging.Logger | None = None,
    ) -> None:
        self._runtime = runtime
        self._projects = projects
        self._shared_cloud = shared_cloud
        self._variant = variant_for(OperationKind.CODESIGN)
        self._logger = logger or logging.getLogger(__name__)

    async def generate_codesign_files(
        self,
        codesign_data: CodesignData | None,
        project_dir: Path | None,
        *,
        sink: EventSink | None = None,
        cancel: asyncio.Event | None = None,
    ) -> CodesignResultData:
        data, target_dir = self._validate(codesign_data, project_dir)
        operation_id = new_operation_id()
        with tagged_errors(operation_id):
            return await self._execute(
                operation_id,
                data,
                target_dir,
                sink=sink or NullEventSink(),
                cancel=cancel,
            )

    def _validate(
        self, codesign_data: CodesignData | None, project_dir: Path | None
    ) -> tuple[CodesignData, Path]:
        if codesign_data is None or not codesign_data.username or not codesign_data.password:
            raise ValidationError(
                "Codesign failed. Reason is missing code sign data. "
                "Apple Id and Apple Id password are required."
            )
        if not project_dir:
            raise ValidationError("Codesign failed. Reason is invalid project path.")
        return codesign_data, Path(project_dir)

    async def _execute(
        self,
        operation_id: OperationId,
        codesign_data: CodesignData,
        project_dir: Path,
        *,
        sink: EventSink,
        cancel: asyncio.Event | None,
    ) -> CodesignResultData:
        self._logger.info("Starting %s.", _OPERATION_DESCRIPTION)
        project = self._projects.get_project_data(project_dir)
        request = OperationRequest(
            operation_id=operation_id,
            kind=OperationKind.CODESIGN,
            payload={
                "appId": project.project_id_for(codesign_data.platform),
                "appName": sanitize_name(project.project_name),
                "clean": codesign_data.clean,
                "username": codesign_data.username,
                "password": codesign_data.password,
                "sharedCloud": codesign_data.shared_cloud or self._shared_cloud,
                "devices": [
                    {"identifier": device.identifier, "displayName": device.display_name}
                    for device in codesign_data.attached_devices
                ],
            },
        )

        handle = await self._runtime.submit(self._variant, request)
        result: ResultObject | None = None
        try:
            await self._runtime.wait(self._variant, request, handle, sink=sink, cancel=cancel)
        except OperationCancelledError:
            raise
        except OperationFailedError as exc:
            result = exc.result
            if result is None:
                raise
            self._logger.debug("Codesign generation failed with err: %s", exc)
        except CloudOperationError as exc:
            # A result object may still exist even though the wait gave up
            result = await self._runtime.try_retrieve_result(handle)
            if result is None:
                raise
            self._logger.debug("Codesign generation failed with err: %s", exc)
        if result is None:
            result = await self._runtime.retrieve_result(handle)

        self._logger.debug("Codesign result: %s", result)
        if not result.items:
            error_text = result.errors
            if _SERVICE_UNAVAILABLE_MARKER in error_text:
                self._logger.debug("Codesign errors: %s", error_text)
                error_text = _SERVICE_UNAVAILABLE_MESSAGE
            raise ToolFailureError(
                f"Codesign failed. Reason is: {error_text}.",
                stdout=result.stdout,
                stderr=result.stderr,
            )
        if not filter_artifacts(self._variant, result.items):
            raise ToolFailureError(
                "No item with disposition certificate or provision found in the server result items.",
                stdout=result.stdout,
                stderr=result.stderr,
            )

        self._logger.info("Finished %s successfully. Downloading result...", _OPERATION_DESCRIPTION)
        paths = await self._runtime.download(
            self._variant,
            request,
            result,
            OutputDirectoryOptions(
                project_dir=project.project_dir,
                platform=codesign_data.platform,
                emulator=False,
            ),
            sink=sink,
        )
        self._logger.info(
            "The result of %s successfully downloaded. Codesign files paths: %s",
            _OPERATION_DESCRIPTION,
            paths,
        )

        return CodesignResultData(
            operation_id=operation_id,
            stdout=result.stdout,
            stderr=result.stderr,
            output_file_paths=tuple(paths),
        )


__all__ = ["CloudCodesignService"]
