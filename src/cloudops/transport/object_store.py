"""Read-only access to objects the backend writes to blob storage."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, TypeVar, overload

import httpx
from pydantic import BaseModel
from pydantic import ValidationError as SchemaError

from cloudops.exceptions import FetchError

ModelT = TypeVar("ModelT", bound=BaseModel)

logger = logging.getLogger(__name__)


class ObjectStoreReader:
    """Fetches small JSON/text objects and streams artifacts by URL.

    The reader never retries; callers own their retry and timeout budgets.
    """

    def __init__(
        self,
        *,
        request_timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._request_timeout = request_timeout
        self._transport = transport

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            timeout=self._request_timeout,
            transport=self._transport,
            follow_redirects=True,
        )

    async def fetch_text(self, location: str) -> str:
        try:
            async with self._client() as client:
                response = await client.get(location)
                response.raise_for_status()
                return response.text
        except httpx.HTTPStatusError as exc:
            msg = f"Object at {location} returned HTTP {exc.response.status_code}"
            raise FetchError(msg, location=location) from exc
        except httpx.HTTPError as exc:
            raise FetchError(f"Unable to read object at {location}: {exc}", location=location) from exc

    @overload
    async def fetch_json(self, location: str) -> Any: ...

    @overload
    async def fetch_json(self, location: str, model: type[ModelT]) -> ModelT: ...

    async def fetch_json(self, location: str, model: type[ModelT] | None = None) -> Any:
        """Fetch and decode a JSON object, optionally validating it into ``model``."""

        body = await self.fetch_text(location)
        try:
            data = json.loads(body)
        except json.JSONDecodeError as exc:
            raise FetchError(f"Malformed JSON at {location}: {exc}", location=location) from exc
        if model is None:
            return data
        try:
            return model.model_validate(data)
        except SchemaError as exc:
            msg = f"Object at {location} does not match {model.__name__}: {exc}"
            raise FetchError(msg, location=location) from exc

    async def download_to(self, location: str, target: Path) -> Path:
        """Stream the object at ``location`` into ``target``."""

        logger.debug("Downloading %s to %s", location, target)
        try:
            async with self._client() as client:
                async with client.stream("GET", location) as response:
                    response.raise_for_status()
                    with target.open("wb") as handle:
                        async for chunk in response.aiter_bytes():
                            handle.write(chunk)
        except httpx.HTTPStatusError as exc:
            msg = f"Artifact at {location} returned HTTP {exc.response.status_code}"
            raise FetchError(msg, location=location) from exc
        except httpx.HTTPError as exc:
            raise FetchError(f"Unable to download {location}: {exc}", location=location) from exc
        except OSError as exc:
            raise FetchError(f"Unable to write {target}: {exc}", location=location) from exc
        return target


__all__ = ["ObjectStoreReader"]
