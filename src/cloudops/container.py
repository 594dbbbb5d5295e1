"""Service container wiring application components."""

from __future__ import annotations

import logging
from dataclasses import dataclass

import httpx

from cloudops.config import AppSettings
from cloudops.project import PackageJsonProjectData, ProjectDataProvider
from cloudops.runtime import OperationRuntime, ResultDownloader, StatusPoller
from cloudops.services import CloudBuildService, CloudCodesignService, CloudPublishService
from cloudops.transport import CloudBackendClient, ObjectStoreReader

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class ServiceContainer:
    """Aggregates the services of one process with shared configuration."""

    settings: AppSettings
    reader: ObjectStoreReader
    backend: CloudBackendClient
    runtime: OperationRuntime
    project_data: ProjectDataProvider
    build_service: CloudBuildService
    codesign_service: CloudCodesignService
    publish_service: CloudPublishService


def build_container(
    settings: AppSettings | None = None,
    *,
    transport: httpx.AsyncBaseTransport | None = None,
    project_data: ProjectDataProvider | None = None,
) -> ServiceContainer:
    """Construct the primary service container.

    ``transport`` replaces the network for every HTTP client; tests use it
    with :class:`httpx.MockTransport`.
    """

    resolved_settings = settings or AppSettings.from_env()
    reader = ObjectStoreReader(
        request_timeout=resolved_settings.request_timeout_seconds,
        transport=transport,
    )
    backend = CloudBackendClient(
        endpoint=resolved_settings.api_base,
        api_token=resolved_settings.api_token,
        request_timeout=resolved_settings.request_timeout_seconds,
        transport=transport,
    )
    if not resolved_settings.api_token:
        logger.debug("No API token configured; requests are sent unauthenticated")

    poller = StatusPoller(
        reader,
        interval_seconds=resolved_settings.status_check_interval_seconds,
        first_status_attempts=resolved_settings.status_check_attempts,
    )
    runtime = OperationRuntime(
        backend,
        reader,
        poller,
        ResultDownloader(reader),
        transformed_interval_seconds=resolved_settings.transformed_result_interval_seconds,
        transformed_max_wait_seconds=resolved_settings.transformed_result_max_wait_seconds,
    )
    projects = project_data or PackageJsonProjectData()

    return ServiceContainer(
        settings=resolved_settings,
        reader=reader,
        backend=backend,
        runtime=runtime,
        project_data=projects,
        build_service=CloudBuildService(runtime, shared_cloud=resolved_settings.shared_cloud),
        codesign_service=CloudCodesignService(
            runtime, projects, shared_cloud=resolved_settings.shared_cloud
        ),
        publish_service=CloudPublishService(
            runtime, projects, shared_cloud=resolved_settings.shared_cloud
        ),
    )


__all__ = ["ServiceContainer", "build_container"]
