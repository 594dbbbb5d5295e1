"""Async runtime coordinating submission → polling → result → download."""

from __future__ import annotations

import asyncio
import logging
from functools import partial
from pathlib import Path

from cloudops.domain import (
    OperationHandle,
    OperationRequest,
    OutputDirectoryOptions,
    ResultObject,
)
from cloudops.events import EventSink, NullEventSink
from cloudops.exceptions import FetchError, OperationFailedError
from cloudops.operations import OperationVariant
from cloudops.transport import CloudBackendClient, ObjectStoreReader
from cloudops.utils import elapsed_seconds, utc_now

from .downloader import ResultDownloader
from .models import OperationOutcome
from .poller import StatusPoller, WaitOutcome
from .transformed import (
    GET_TRANSFORMED_RESULT_MAX_WAIT,
    GET_TRANSFORMED_RESULT_REQUEST_INTERVAL,
    fetch_transformed_result,
)


class OperationRuntime:
    """Runs the protocol steps for one operation variant at a time."""

    def __init__(
        self,
        backend: CloudBackendClient,
        reader: ObjectStoreReader,
        poller: StatusPoller,
        downloader: ResultDownloader,
        *,
        transformed_interval_seconds: float = GET_TRANSFORMED_RESULT_REQUEST_INTERVAL,
        transformed_max_wait_seconds: float = GET_TRANSFORMED_RESULT_MAX_WAIT,
        logger: logging.Logger | None = None,
    ) -> None:
        self._backend = backend
        self._reader = reader
        self._poller = poller
        self._downloader = downloader
        self._transformed_interval_seconds = transformed_interval_seconds
        self._transformed_max_wait_seconds = transformed_max_wait_seconds
        self._logger = logger or logging.getLogger(__name__)

    @property
    def backend(self) -> CloudBackendClient:
        return self._backend

    async def submit(self, variant: OperationVariant, request: OperationRequest) -> OperationHandle:
        handle = await variant.submit(self._backend, request)
        self._logger.debug("Operation %s submitted: %s", request.operation_id, handle)
        return handle

    async def wait(
        self,
        variant: OperationVariant,
        request: OperationRequest,
        handle: OperationHandle,
        *,
        sink: EventSink | None = None,
        cancel: asyncio.Event | None = None,
    ) -> WaitOutcome:
        """Wait for a terminal status.

        On ``Failed`` the result object is read once and attached to the
        raised :class:`OperationFailedError` together with its output.
        """

        events = sink or NullEventSink()
        try:
            return await self._poller.wait(
                handle,
                operation_id=request.operation_id,
                emit_logs=partial(variant.emit_logs, self._reader, events),
                failed_message=variant.failed_message,
                failed_to_start_message=variant.failed_to_start_message,
                cancel=cancel,
            )
        except OperationFailedError as exc:
            result = await self.try_retrieve_result(handle)
            exc.result = result
            if result is not None:
                exc.stdout = result.stdout
                exc.stderr = result.stderr
            raise

    async def retrieve_result(self, handle: OperationHandle) -> ResultObject:
        return await self._reader.fetch_json(handle.result_location, ResultObject)

    async def try_retrieve_result(self, handle: OperationHandle) -> ResultObject | None:
        """Single best-effort fetch of the result object."""

        try:
            return await self.retrieve_result(handle)
        except FetchError as exc:
            self._logger.debug("Result object not available: %s", exc)
            return None

    async def fetch_transformed(
        self,
        handle: OperationHandle,
        *,
        cancel: asyncio.Event | None = None,
    ) -> ResultObject | None:
        if not handle.transformed_result_location:
            return None
        return await fetch_transformed_result(
            self._reader,
            handle.transformed_result_location,
            interval_seconds=self._transformed_interval_seconds,
            max_wait_seconds=self._transformed_max_wait_seconds,
            cancel=cancel,
        )

    async def run(
        self,
        variant: OperationVariant,
        request: OperationRequest,
        *,
        sink: EventSink | None = None,
        cancel: asyncio.Event | None = None,
    ) -> OperationOutcome:
        """Submit, wait for completion, and fetch the result object."""

        started_at = utc_now()
        handle = await self.submit(variant, request)
        wait_outcome = await self.wait(variant, request, handle, sink=sink, cancel=cancel)
        result = await self.retrieve_result(handle)
        completed_at = utc_now()
        self._logger.debug(
            "Operation %s finished in %.1fs",
            request.operation_id,
            elapsed_seconds(started_at, completed_at),
        )
        return OperationOutcome(
            handle=handle,
            result=result,
            wait=wait_outcome,
            started_at=started_at,
            completed_at=completed_at,
        )

    async def download(
        self,
        variant: OperationVariant,
        request: OperationRequest,
        result: ResultObject,
        options: OutputDirectoryOptions,
        *,
        sink: EventSink | None = None,
    ) -> list[Path]:
        """Download the variant's artifacts into its output directory."""

        return await self._downloader.download(
            result,
            options,
            directory_policy=variant.output_directory,
            accept=variant.accepts,
            operation_id=request.operation_id,
            sink=sink,
        )


__all__ = ["OperationRuntime"]
