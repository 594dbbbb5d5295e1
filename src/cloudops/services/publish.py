"""Publishing of built packages to the application stores."""

from __future__ import annotations

import asyncio
import json
import logging
from collections.abc import Callable, Sequence
from pathlib import Path

from cloudops.domain import (
    DEFAULT_ANDROID_PUBLISH_TRACK,
    GooglePlayPublishData,
    ItunesConnectPublishData,
    OperationId,
    OperationKind,
    OperationRequest,
    Platform,
    PublishDataCore,
    PublishResultData,
    ResultObject,
    new_operation_id,
)
from cloudops.events import EventSink, NullEventSink
from cloudops.exceptions import OperationFailedError, ToolFailureError, ValidationError
from cloudops.operations import (
    classify_android_publish_failure,
    classify_ios_publish_failure,
    variant_for,
)
from cloudops.project import ProjectDataProvider
from cloudops.runtime import OperationRuntime

from .base import tagged_errors

FailureClassifier = Callable[[ResultObject], ToolFailureError]


class CloudPublishService:
    """Uploads packages and asks the remote service to publish them."""

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
        self._variant = variant_for(OperationKind.PUBLISH)
        self._logger = logger or logging.getLogger(__name__)

    async def publish_to_itunes_connect(
        self,
        publish_data: ItunesConnectPublishData,
        *,
        sink: EventSink | None = None,
        cancel: asyncio.Event | None = None,
    ) -> PublishResultData:
        project_dir = self._validate_publish_data(publish_data)
        credentials = publish_data.credentials
        if credentials is None or not credentials.username or not credentials.password:
            raise ValidationError("Cannot perform publish - credentials are required.")

        app_identifier = self._projects.get_project_data(project_dir).project_id_for(
            Platform.IOS.value
        )
        operation_id = new_operation_id()
        with tagged_errors(operation_id):
            package_paths = await self._prepare_package_paths(publish_data.package_paths)
            payload = {
                "appIdentifier": app_identifier,
                "credentials": {
                    "username": credentials.username,
                    "password": credentials.password,
                    "appSpecificPassword": credentials.app_specific_password,
                },
                "packagePaths": package_paths,
                "platform": Platform.IOS.value,
                "teamId": publish_data.team_id,
                "sharedCloud": publish_data.shared_cloud or self._shared_cloud,
            }

            def classify(result: ResultObject) -> ToolFailureError:
                return classify_ios_publish_failure(result, package_paths)

            return await self._publish_core(operation_id, payload, classify, sink=sink, cancel=cancel)

    async def publish_to_google_play(
        self,
        publish_data: GooglePlayPublishData,
        *,
        sink: EventSink | None = None,
        cancel: asyncio.Event | None = None,
    ) -> PublishResultData:
        project_dir = self._validate_publish_data(publish_data)
        auth_path = publish_data.path_to_auth_json
        if not auth_path or not Path(auth_path).is_file():
            raise ValidationError(
                "Cannot perform publish - auth json file is not supplied or missing."
            )
        try:
            auth_json = json.dumps(json.loads(Path(auth_path).read_text(encoding="utf-8")))
        except (json.JSONDecodeError, UnicodeDecodeError) as exc:
            raise ValidationError(
                "Cannot perform publish - auth json file is not in JSON format."
            ) from exc

        app_identifier = self._projects.get_project_data(project_dir).project_id_for(
            Platform.ANDROID.value
        )
        operation_id = new_operation_id()
        with tagged_errors(operation_id):
            package_paths = await self._prepare_package_paths(publish_data.package_paths)
            payload = {
                "appIdentifier": app_identifier,
                "credentials": {"authJson": auth_json},
                "packagePaths": package_paths,
                "platform": Platform.ANDROID.value,
                "track": publish_data.track or DEFAULT_ANDROID_PUBLISH_TRACK,
                "androidReleaseStatus": publish_data.android_release_status,
                "sharedCloud": publish_data.shared_cloud or self._shared_cloud,
            }
            return await self._publish_core(
                operation_id,
                payload,
                classify_android_publish_failure,
                sink=sink,
                cancel=cancel,
            )

    def _validate_publish_data(self, publish_data: PublishDataCore) -> Path:
        if not publish_data.package_paths:
            raise ValidationError("Cannot upload without packages")
        if not publish_data.project_dir:
            raise ValidationError("Cannot perform publish - projectDir is required.")
        return Path(publish_data.project_dir)

    async def _prepare_package_paths(self, package_paths: Sequence[str]) -> list[str]:
        """Upload local packages; remote locations are passed through unchanged."""

        prepared: list[str] = []
        for package_path in package_paths:
            local = Path(package_path)
            if local.is_file():
                prepared.append(await self._runtime.backend.upload_file(local, local.name))
            else:
                prepared.append(package_path)
        return prepared

    async def _publish_core(
        self,
        operation_id: OperationId,
        payload: dict[str, object],
        classify: FailureClassifier,
        *,
        sink: EventSink | None,
        cancel: asyncio.Event | None,
    ) -> PublishResultData:
        request = OperationRequest(
            operation_id=operation_id,
            kind=OperationKind.PUBLISH,
            payload=payload,
        )
        self._logger.info("Starting publishing.")
        handle = await self._runtime.submit(self._variant, request)

        wait_error: OperationFailedError | None = None
        result: ResultObject | None = None
        try:
            await self._runtime.wait(
                self._variant,
                request,
                handle,
                sink=sink or NullEventSink(),
                cancel=cancel,
            )
        except OperationFailedError as exc:
            # The result object explains the failure better than the status does
            self._logger.debug("Publishing failed with err: %s", exc)
            if exc.result is None:
                raise
            wait_error = exc
            result = exc.result

        if result is None:
            result = await self._runtime.retrieve_result(handle)
        self._logger.debug("Publish result: %s", result)
        if result.has_errors:
            raise classify(result) from wait_error
        if wait_error is not None:
            raise wait_error

        self._logger.info("Publishing finished successfully.")
        return PublishResultData(
            operation_id=operation_id,
            stdout=result.stdout,
            stderr=result.stderr,
        )


__all__ = ["CloudPublishService"]
