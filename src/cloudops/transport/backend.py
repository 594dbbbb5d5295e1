"""HTTP client for the remote operations backend."""

from __future__ import annotations

import json
import logging
from collections.abc import Mapping
from pathlib import Path

import httpx
from pydantic import ValidationError as SchemaError

from cloudops.domain import OperationHandle, OperationKind, OperationRequest
from cloudops.exceptions import SubmissionError

_SUBMIT_ENDPOINTS: Mapping[OperationKind, str] = {
    OperationKind.BUILD: "/api/build",
    OperationKind.CODESIGN: "/api/codesign",
    OperationKind.PUBLISH: "/api/publish",
}
_UPLOAD_URLS_ENDPOINT = "/api/upload-urls"

logger = logging.getLogger(__name__)


class CloudBackendClient:
    """Submits operations and uploads local files referenced by them."""

    def __init__(
        self,
        *,
        endpoint: str,
        api_token: str | None = None,
        request_timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._endpoint = endpoint.rstrip("/")
        self._api_token = api_token
        self._request_timeout = request_timeout
        self._transport = transport

    def _headers(self) -> Mapping[str, str]:
        if not self._api_token:
            return {}
        return {"Authorization": f"Bearer {self._api_token}"}

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=self._endpoint,
            timeout=self._request_timeout,
            headers=self._headers(),
            transport=self._transport,
        )

    async def submit(self, request: OperationRequest) -> OperationHandle:
        """Submit ``request`` and return the locations to watch."""

        path = _SUBMIT_ENDPOINTS[request.kind]
        try:
            async with self._client() as client:
                response = await client.post(path, json=request.body())
                response.raise_for_status()
                data = response.json()
        except httpx.HTTPStatusError as exc:
            msg = (
                f"Submission of {request.kind} operation was rejected "
                f"(HTTP {exc.response.status_code}): {exc.response.text}"
            )
            raise SubmissionError(msg, operation_id=request.operation_id) from exc
        except httpx.HTTPError as exc:
            msg = f"Unable to submit {request.kind} operation: {exc}"
            raise SubmissionError(msg, operation_id=request.operation_id) from exc
        except json.JSONDecodeError as exc:
            msg = f"Submission response for {request.kind} operation is not JSON"
            raise SubmissionError(msg, operation_id=request.operation_id) from exc

        logger.debug("%s response: %s", request.kind, data)
        try:
            return OperationHandle.model_validate(data)
        except SchemaError as exc:
            msg = f"Submission response for {request.kind} operation is missing locations"
            raise SubmissionError(msg, operation_id=request.operation_id) from exc

    async def upload_file(self, path: Path, name: str | None = None) -> str:
        """Upload a local file through a pre-signed URL and return its public URL."""

        if not path.is_file():
            raise SubmissionError(f"Cannot upload {path}: file does not exist")
        public_url = await self.upload_content(path.read_bytes(), name or path.name)
        logger.debug("Uploaded %s to %s", path, public_url)
        return public_url

    async def upload_content(self, content: bytes, file_name: str) -> str:
        """Upload in-memory ``content`` as ``file_name`` and return its public URL."""

        try:
            async with self._client() as client:
                response = await client.post(_UPLOAD_URLS_ENDPOINT, params={"fileName": file_name})
                response.raise_for_status()
                urls = response.json()
            if not isinstance(urls, dict):
                raise SubmissionError(f"Upload URL response for {file_name} is not an object")
            upload_url = urls.get("uploadPreSignedUrl")
            public_url = urls.get("publicDownloadUrl")
            if not upload_url or not public_url:
                raise SubmissionError(f"Upload URL response for {file_name} is incomplete")

            # Pre-signed URLs carry their own credentials
            async with httpx.AsyncClient(
                timeout=self._request_timeout,
                transport=self._transport,
            ) as storage:
                put = await storage.put(upload_url, content=content)
                put.raise_for_status()
        except httpx.HTTPStatusError as exc:
            msg = f"Upload of {file_name} failed (HTTP {exc.response.status_code})"
            raise SubmissionError(msg) from exc
        except httpx.HTTPError as exc:
            raise SubmissionError(f"Upload of {file_name} failed: {exc}") from exc
        except json.JSONDecodeError as exc:
            raise SubmissionError(f"Upload URL response for {file_name} is not JSON") from exc

        return str(public_url)


__all__ = ["CloudBackendClient"]
