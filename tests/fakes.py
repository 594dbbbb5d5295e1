from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any

import httpx

from cloudops.config import AppSettings
from cloudops.container import ServiceContainer, build_container

API_BASE = "https://api.test"
STORE = "https://store.test/ops/op-1"
STATUS_URL = f"{STORE}/status.json"
OUTPUT_URL = f"{STORE}/output.txt"
RESULT_URL = f"{STORE}/result.json"
TRANSFORMED_URL = f"{STORE}/transformed.json"


@dataclass(frozen=True)
class Reply:
    status_code: int = 200
    body: Any = ""

    def render(self) -> httpx.Response:
        if isinstance(self.body, bytes):
            return httpx.Response(self.status_code, content=self.body)
        if isinstance(self.body, str):
            return httpx.Response(self.status_code, text=self.body)
        return httpx.Response(self.status_code, text=json.dumps(self.body))


MISSING = Reply(404, "NoSuchKey")


def _without_query(request: httpx.Request) -> str:
    return str(request.url).split("?", 1)[0]


class FakeCloud:
    """In-memory backend and object store served through ``httpx.MockTransport``.

    Each route holds a queue of replies; the last reply repeats once the
    queue is drained. Unknown URLs answer 404 like a missing object.
    """

    def __init__(self) -> None:
        self.requests: list[httpx.Request] = []
        self._routes: dict[tuple[str, str], list[Reply]] = {}

    def route(self, method: str, url: str, *replies: Reply) -> None:
        self._routes[(method, url)] = list(replies)

    def get(self, url: str, *replies: Reply) -> None:
        self.route("GET", url, *replies)

    def statuses(self, *values: str | None) -> None:
        self.get(
            STATUS_URL,
            *(MISSING if value is None else Reply(body={"status": value}) for value in values),
        )

    def result(self, **fields: Any) -> None:
        self.get(RESULT_URL, Reply(body=fields))

    def accept_submissions(self, kind: str, *, transformed: bool = False) -> None:
        handle = {"statusUrl": STATUS_URL, "outputUrl": OUTPUT_URL, "resultUrl": RESULT_URL}
        if transformed:
            handle["transformedResultUrl"] = TRANSFORMED_URL
        self.route("POST", f"{API_BASE}/api/{kind}", Reply(body=handle))

    def accept_uploads(self) -> None:
        self.route(
            "POST",
            f"{API_BASE}/api/upload-urls",
            Reply(
                body={
                    "uploadPreSignedUrl": "https://uploads.test/put",
                    "publicDownloadUrl": "https://uploads.test/public/file",
                }
            ),
        )
        self.route("PUT", "https://uploads.test/put", Reply(200, ""))

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        queue = self._routes.get((request.method, _without_query(request)))
        if not queue:
            return MISSING.render()
        reply = queue.pop(0) if len(queue) > 1 else queue[0]
        return reply.render()

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)

    def hits(self, method: str, url: str) -> int:
        return sum(
            1
            for request in self.requests
            if request.method == method and _without_query(request) == url
        )

    def submitted(self, kind: str) -> dict[str, Any]:
        for request in self.requests:
            if request.method == "POST" and _without_query(request) == f"{API_BASE}/api/{kind}":
                return json.loads(request.content)
        raise AssertionError(f"no {kind} submission recorded")


def fast_settings(**overrides: Any) -> AppSettings:
    """Settings pointing at :class:`FakeCloud` with every wait collapsed to zero."""

    values: dict[str, Any] = {
        "environment": "test",
        "api_base": API_BASE,
        "status_check_interval_seconds": 0.0,
        "transformed_result_interval_seconds": 0.0,
        "transformed_result_max_wait_seconds": 0.0,
    }
    values.update(overrides)
    return AppSettings(**values)


def make_container(cloud: FakeCloud, **overrides: Any) -> ServiceContainer:
    return build_container(fast_settings(**overrides), transport=cloud.transport)
