"""The closed set of operation variants and their shared contract."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from pathlib import Path
from typing import Protocol, runtime_checkable

from cloudops.domain import (
    ArtifactRef,
    Disposition,
    LogCursor,
    OperationHandle,
    OperationId,
    OperationKind,
    OperationRequest,
    OutputDirectoryOptions,
    OutputPipe,
    Platform,
)
from cloudops.events import EventSink, OutputEvent
from cloudops.exceptions import FetchError
from cloudops.transport import CloudBackendClient, ObjectStoreReader

CLOUD_BUILD_DIR_NAME = ".cloud"
CODESIGN_FILES_DIR_NAME = ".codesign"
DEVICE_DIR_NAME = "device"
EMULATOR_DIR_NAME = "emulator"

logger = logging.getLogger(__name__)


@runtime_checkable
class OperationVariant(Protocol):
    """What each operation contributes to the shared submit/wait/download flow."""

    kind: OperationKind
    failed_message: str
    failed_to_start_message: str

    async def submit(
        self, backend: CloudBackendClient, request: OperationRequest
    ) -> OperationHandle: ...

    def accepts(self, item: ArtifactRef) -> bool: ...

    async def emit_logs(
        self,
        reader: ObjectStoreReader,
        sink: EventSink,
        log_location: str,
        operation_id: OperationId,
        cursor: LogCursor,
    ) -> None: ...

    def output_directory(self, options: OutputDirectoryOptions) -> Path | None: ...


def filter_artifacts(variant: OperationVariant, items: Iterable[ArtifactRef]) -> list[ArtifactRef]:
    """Items of a result the variant wants downloaded, in result order."""

    return [item for item in items if variant.accepts(item)]


def _is_ios(platform: str) -> bool:
    try:
        return Platform(platform) is Platform.IOS
    except ValueError:
        return False


class BuildVariant(OperationVariant):
    """Cloud builds stream their cumulative log and download every artifact."""

    kind = OperationKind.BUILD
    failed_message = "Build failed."
    failed_to_start_message = "Failed to start cloud build."

    async def submit(
        self, backend: CloudBackendClient, request: OperationRequest
    ) -> OperationHandle:
        return await backend.submit(request)

    def accepts(self, item: ArtifactRef) -> bool:
        return True

    async def emit_logs(
        self,
        reader: ObjectStoreReader,
        sink: EventSink,
        log_location: str,
        operation_id: OperationId,
        cursor: LogCursor,
    ) -> None:
        try:
            text = await reader.fetch_text(log_location)
        except FetchError as exc:
            # The log object is created lazily by the build machine
            logger.debug("Build log for %s not readable yet: %s", operation_id, exc)
            return

        fresh = text[cursor.offset :]
        if not fresh:
            return
        cursor.advance(len(fresh))
        sink.emit(OutputEvent(operation_id=operation_id, data=fresh, pipe=OutputPipe.STDOUT))

    def output_directory(self, options: OutputDirectoryOptions) -> Path | None:
        result = options.project_dir / CLOUD_BUILD_DIR_NAME / options.platform.lower()
        if _is_ios(options.platform):
            result = result / (EMULATOR_DIR_NAME if options.emulator else DEVICE_DIR_NAME)
        return result


class CodesignVariant(OperationVariant):
    """Codesign generation keeps only certificates and provisioning profiles."""

    kind = OperationKind.CODESIGN
    failed_message = "Generation of codesign files failed."
    failed_to_start_message = "Failed to start generation of codesign files."

    async def submit(
        self, backend: CloudBackendClient, request: OperationRequest
    ) -> OperationHandle:
        return await backend.submit(request)

    def accepts(self, item: ArtifactRef) -> bool:
        return item.disposition in Disposition.CODESIGN_FILES

    async def emit_logs(
        self,
        reader: ObjectStoreReader,
        sink: EventSink,
        log_location: str,
        operation_id: OperationId,
        cursor: LogCursor,
    ) -> None:
        return None

    def output_directory(self, options: OutputDirectoryOptions) -> Path | None:
        return options.project_dir / CODESIGN_FILES_DIR_NAME / options.platform.lower()


class PublishVariant(OperationVariant):
    """Publishing produces no artifacts and no incremental output."""

    kind = OperationKind.PUBLISH
    failed_message = "Publishing failed."
    failed_to_start_message = "Failed to start publishing."

    async def submit(
        self, backend: CloudBackendClient, request: OperationRequest
    ) -> OperationHandle:
        return await backend.submit(request)

    def accepts(self, item: ArtifactRef) -> bool:
        return False

    async def emit_logs(
        self,
        reader: ObjectStoreReader,
        sink: EventSink,
        log_location: str,
        operation_id: OperationId,
        cursor: LogCursor,
    ) -> None:
        return None

    def output_directory(self, options: OutputDirectoryOptions) -> Path | None:
        return None


def variant_for(kind: OperationKind) -> OperationVariant:
    """Return the variant implementing ``kind``."""

    if kind is OperationKind.BUILD:
        return BuildVariant()
    if kind is OperationKind.CODESIGN:
        return CodesignVariant()
    if kind is OperationKind.PUBLISH:
        return PublishVariant()
    raise ValueError(f"Unsupported operation kind {kind!r}")


__all__ = [
    "CLOUD_BUILD_DIR_NAME",
    "CODESIGN_FILES_DIR_NAME",
    "BuildVariant",
    "CodesignVariant",
    "OperationVariant",
    "PublishVariant",
    "filter_artifacts",
    "variant_for",
]
