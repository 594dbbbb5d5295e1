"""Best-effort retrieval of the derived result object."""

from __future__ import annotations

import asyncio
import logging
import math

from cloudops.domain import ResultObject
from cloudops.exceptions import FetchError
from cloudops.transport import ObjectStoreReader

from .poller import sleep_or_cancel

GET_TRANSFORMED_RESULT_MAX_WAIT = 3.0
GET_TRANSFORMED_RESULT_REQUEST_INTERVAL = 0.5

logger = logging.getLogger(__name__)


async def fetch_transformed_result(
    reader: ObjectStoreReader,
    location: str,
    *,
    interval_seconds: float = GET_TRANSFORMED_RESULT_REQUEST_INTERVAL,
    max_wait_seconds: float = GET_TRANSFORMED_RESULT_MAX_WAIT,
    cancel: asyncio.Event | None = None,
) -> ResultObject | None:
    """Poll ``location`` for a transformed result, giving up quietly.

    The backend writes this object some time after the primary result, so
    each attempt waits one interval first. Exhaustion and cancellation both
    return ``None``; this function never raises on missing data.
    """

    attempts = max(1, math.floor(max_wait_seconds / interval_seconds)) if interval_seconds > 0 else 1
    for attempt in range(1, attempts + 1):
        if await sleep_or_cancel(interval_seconds, cancel):
            logger.debug("Transformed result fetch cancelled")
            return None
        try:
            return await reader.fetch_json(location, ResultObject)
        except FetchError as exc:
            logger.debug(
                "Transformed result not available (attempt %d/%d): %s", attempt, attempts, exc
            )

    logger.warning("Transformed result at %s did not appear within %.1fs", location, max_wait_seconds)
    return None


__all__ = [
    "GET_TRANSFORMED_RESULT_MAX_WAIT",
    "GET_TRANSFORMED_RESULT_REQUEST_INTERVAL",
    "fetch_transformed_result",
]
