from __future__ import annotations

import asyncio
from pathlib import Path

import pytest
from fakes import RESULT_URL, FakeCloud, Reply, make_container

from cloudops.domain import (
    LogCursor,
    OperationId,
    OperationKind,
    OperationRequest,
    OperationStatus,
    OutputDirectoryOptions,
    OutputPipe,
    ResultObject,
)
from cloudops.events import CallbackEventSink, OutputEvent, OutputRecorder, StepEvent
from cloudops.operations import BuildVariant, variant_for


def _request(kind: OperationKind) -> OperationRequest:
    return OperationRequest(operation_id=OperationId("op-1"), kind=kind, payload={})


def test_runtime_run_returns_outcome(cloud: FakeCloud) -> None:
    cloud.accept_submissions("publish")
    cloud.statuses("Building", "Success")
    cloud.result(code=0, stdout="all good")
    runtime = make_container(cloud).runtime

    outcome = asyncio.run(
        runtime.run(variant_for(OperationKind.PUBLISH), _request(OperationKind.PUBLISH))
    )

    assert outcome.result.stdout == "all good"
    assert outcome.wait is not None
    assert outcome.wait.status is OperationStatus.SUCCESS
    assert outcome.completed_at >= outcome.started_at
    assert cloud.hits("GET", RESULT_URL) == 1


def test_try_retrieve_result_is_best_effort(cloud: FakeCloud) -> None:
    cloud.accept_submissions("publish")
    runtime = make_container(cloud).runtime
    request = _request(OperationKind.PUBLISH)

    async def _scenario() -> tuple[ResultObject | None, ResultObject | None]:
        handle = await runtime.submit(variant_for(OperationKind.PUBLISH), request)
        missing = await runtime.try_retrieve_result(handle)
        cloud.get(RESULT_URL, Reply(body={"errors": "late"}))
        present = await runtime.try_retrieve_result(handle)
        return missing, present

    missing, present = asyncio.run(_scenario())

    assert missing is None
    assert present is not None and present.errors == "late"


def test_download_is_skipped_for_variants_without_artifacts(
    cloud: FakeCloud, tmp_path: Path
) -> None:
    runtime = make_container(cloud).runtime
    result = ResultObject(
        items=({"disposition": "BuildResult", "filename": "a.ipa", "fullPath": "https://x/a"},)
    )

    paths = asyncio.run(
        runtime.download(
            variant_for(OperationKind.PUBLISH),
            _request(OperationKind.PUBLISH),
            result,
            OutputDirectoryOptions(project_dir=tmp_path, platform="iOS"),
        )
    )

    assert paths == []
    assert cloud.requests == []
    assert list(tmp_path.iterdir()) == []


class RecordingBuildVariant(BuildVariant):
    def __init__(self) -> None:
        self.seen: list[OutputDirectoryOptions] = []

    def output_directory(self, options: OutputDirectoryOptions) -> Path | None:
        self.seen.append(options)
        return super().output_directory(options)


def test_download_uses_the_variant_directory_policy(cloud: FakeCloud, tmp_path: Path) -> None:
    cloud.get("https://x/app.app.zip", Reply(body=b"zip"))
    runtime = make_container(cloud).runtime
    variant = RecordingBuildVariant()
    options = OutputDirectoryOptions(project_dir=tmp_path, platform="iOS", emulator=True)
    result = ResultObject(
        items=(
            {
                "disposition": "BuildResult",
                "filename": "app.app.zip",
                "fullPath": "https://x/app.app.zip",
            },
        )
    )

    paths = asyncio.run(runtime.download(variant, _request(OperationKind.BUILD), result, options))

    assert paths == [tmp_path / ".cloud" / "ios" / "emulator" / "app.app.zip"]
    assert variant.seen == [options]


def test_fetch_transformed_requires_location(cloud: FakeCloud) -> None:
    cloud.accept_submissions("build")
    runtime = make_container(cloud).runtime

    async def _scenario() -> ResultObject | None:
        variant = variant_for(OperationKind.BUILD)
        handle = await runtime.submit(variant, _request(OperationKind.BUILD))
        return await runtime.fetch_transformed(handle)

    assert asyncio.run(_scenario()) is None


def test_output_recorder_keeps_own_operation_text() -> None:
    forwarded: list[OutputEvent | StepEvent] = []
    recorder = OutputRecorder("op-1", inner=CallbackEventSink(on_output=forwarded.append))

    recorder.emit(OutputEvent(operation_id=OperationId("op-1"), data="a"))
    recorder.emit(OutputEvent(operation_id=OperationId("op-2"), data="b"))
    recorder.emit(OutputEvent(operation_id=OperationId("op-1"), data="c", pipe=OutputPipe.STDERR))

    assert recorder.text == "ac"
    assert len(forwarded) == 3


def test_step_progress_is_bounded() -> None:
    with pytest.raises(ValueError):
        StepEvent(operation_id=OperationId("op-1"), step="build", progress=101)


def test_log_cursor_only_moves_forward() -> None:
    cursor = LogCursor()
    cursor.advance(5)

    with pytest.raises(ValueError):
        cursor.advance(-1)

    cursor.reset()
    assert cursor.offset == 0


def test_operation_status_from_wire() -> None:
    assert OperationStatus.from_wire("Building") is OperationStatus.IN_PROGRESS
    assert OperationStatus.from_wire("InProgress") is OperationStatus.IN_PROGRESS
    assert OperationStatus.from_wire("Queued") is None
    assert OperationStatus.FAILED.is_terminal
