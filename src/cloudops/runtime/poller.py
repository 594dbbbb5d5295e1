"""Submit-to-terminal state machine driven by polling the status object."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from cloudops.domain import (
    LogCursor,
    OperationHandle,
    OperationId,
    OperationStatus,
    StatusObject,
)
from cloudops.exceptions import (
    FailedToStartError,
    FetchError,
    OperationCancelledError,
    OperationFailedError,
)
from cloudops.transport import ObjectStoreReader

OPERATION_STATUS_CHECK_INTERVAL = 1.5
OPERATION_STATUS_CHECK_ATTEMPTS = 8

LogStep = Callable[[str, OperationId, LogCursor], Awaitable[None]]
"""Pulls log text newer than the cursor and advances it by what was delivered."""


async def sleep_or_cancel(delay: float, cancel: asyncio.Event | None) -> bool:
    """Sleep for ``delay`` seconds; return ``True`` if ``cancel`` fired first."""

    if cancel is None:
        await asyncio.sleep(delay)
        return False
    if cancel.is_set():
        return True
    try:
        await asyncio.wait_for(cancel.wait(), timeout=delay)
    except TimeoutError:
        return False
    return True


@dataclass(slots=True)
class WaitOutcome:
    """How a successful wait ended."""

    status: OperationStatus
    status_checks: int
    log_offset: int


class StatusPoller:
    """Waits for a submitted operation to reach a terminal status.

    States: awaiting the first status object (bounded, linear retry), then
    polling at a fixed interval until ``Success`` or ``Failed``. The log step
    runs on every check that observed a known status, including the terminal
    one, so the caller sees all output with no gaps and no repeats. There is
    no overall deadline once the first status was read.
    """

    def __init__(
        self,
        reader: ObjectStoreReader,
        *,
        interval_seconds: float = OPERATION_STATUS_CHECK_INTERVAL,
        first_status_attempts: int = OPERATION_STATUS_CHECK_ATTEMPTS,
        logger: logging.Logger | None = None,
    ) -> None:
        if first_status_attempts < 1:
            raise ValueError("first_status_attempts must be >= 1")
        self._reader = reader
        self._interval_seconds = interval_seconds
        self._first_status_attempts = first_status_attempts
        self._logger = logger or logging.getLogger(__name__)

    async def wait(
        self,
        handle: OperationHandle,
        *,
        operation_id: OperationId,
        emit_logs: LogStep,
        failed_message: str,
        failed_to_start_message: str,
        cancel: asyncio.Event | None = None,
    ) -> WaitOutcome:
        cursor = LogCursor()
        status = await self._await_first_status(
            handle,
            operation_id=operation_id,
            failed_to_start_message=failed_to_start_message,
            cancel=cancel,
        )

        checks = 0
        while True:
            if await sleep_or_cancel(self._interval_seconds, cancel):
                raise OperationCancelledError(
                    f"Waiting for operation {operation_id} was cancelled",
                    operation_id=operation_id,
                )

            state = status.state
            if state is None:
                self._logger.debug(
                    "Operation %s reported unknown status %r", operation_id, status.status
                )
            else:
                checks += 1
                await emit_logs(handle.log_location, operation_id, cursor)

                if state is OperationStatus.SUCCESS:
                    self._logger.debug("Operation %s completed after %d checks", operation_id, checks)
                    return WaitOutcome(status=state, status_checks=checks, log_offset=cursor.offset)
                if state is OperationStatus.FAILED:
                    self._logger.debug("Operation %s failed after %d checks", operation_id, checks)
                    raise OperationFailedError(failed_message, operation_id=operation_id)

            try:
                status = await self._reader.fetch_json(handle.status_location, StatusObject)
            except FetchError as exc:
                # Keep the last observed status; the next tick tries again
                self._logger.warning("Status check for operation %s failed: %s", operation_id, exc)

    async def _await_first_status(
        self,
        handle: OperationHandle,
        *,
        operation_id: OperationId,
        failed_to_start_message: str,
        cancel: asyncio.Event | None,
    ) -> StatusObject:
        last_error: FetchError | None = None
        for attempt in range(1, self._first_status_attempts + 1):
            if attempt > 1 and await sleep_or_cancel(self._interval_seconds, cancel):
                raise OperationCancelledError(
                    f"Waiting for operation {operation_id} was cancelled",
                    operation_id=operation_id,
                )
            try:
                return await self._reader.fetch_json(handle.status_location, StatusObject)
            except FetchError as exc:
                last_error = exc
                self._logger.debug(
                    "Status of operation %s not available yet (attempt %d/%d): %s",
                    operation_id,
                    attempt,
                    self._first_status_attempts,
                    exc,
                )

        raise FailedToStartError(failed_to_start_message, operation_id=operation_id) from last_error


__all__ = [
    "OPERATION_STATUS_CHECK_ATTEMPTS",
    "OPERATION_STATUS_CHECK_INTERVAL",
    "LogStep",
    "StatusPoller",
    "WaitOutcome",
    "sleep_or_cancel",
]
