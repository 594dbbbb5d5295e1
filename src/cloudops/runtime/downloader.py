"""Saves remote artifacts named by a terminal result to the local disk."""

from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from pathlib import Path, PurePosixPath

from cloudops.domain import (
    ArtifactRef,
    BuildStep,
    OperationId,
    OutputDirectoryOptions,
    ResultObject,
)
from cloudops.events import EventSink, NullEventSink, StepEvent
from cloudops.exceptions import DownloadError, FetchError
from cloudops.transport import ObjectStoreReader

DirectoryPolicy = Callable[[OutputDirectoryOptions], Path | None]
ArtifactPredicate = Callable[[ArtifactRef], bool]

logger = logging.getLogger(__name__)


def accept_all(item: ArtifactRef) -> bool:
    return True


def artifact_target(destination: Path, filename: str) -> Path:
    """Map an artifact ``filename`` to a path inside ``destination``.

    Relative sub-directories are kept. Raises ``ValueError`` when the name is
    empty or would resolve outside ``destination``.
    """

    relative = PurePosixPath(filename.replace("\\", "/"))
    parts = [part for part in relative.parts if part not in ("/", ".", "")]
    if not parts:
        raise ValueError(f"Artifact filename {filename!r} is empty")
    target = destination.joinpath(*parts)
    root = destination.resolve()
    resolved = target.resolve()
    if resolved == root or not resolved.is_relative_to(root):
        raise ValueError(f"Artifact filename {filename!r} escapes {destination}")
    return target


def _plan_targets(
    destination: Path, items: Sequence[ArtifactRef], operation_id: OperationId | None
) -> list[Path]:
    targets: list[Path] = []
    seen: dict[Path, str] = {}
    for item in items:
        try:
            target = artifact_target(destination, item.filename)
        except ValueError as exc:
            raise DownloadError(str(exc), operation_id=operation_id) from exc
        key = target.resolve()
        if key in seen:
            msg = f"Artifacts {seen[key]!r} and {item.filename!r} map to the same file {target}"
            raise DownloadError(msg, operation_id=operation_id)
        seen[key] = item.filename
        targets.append(target)
    return targets


class ResultDownloader:
    """Downloads matching artifacts sequentially into a policy-chosen directory."""

    def __init__(self, reader: ObjectStoreReader) -> None:
        self._reader = reader

    async def download(
        self,
        result: ResultObject,
        options: OutputDirectoryOptions,
        *,
        directory_policy: DirectoryPolicy,
        accept: ArtifactPredicate = accept_all,
        operation_id: OperationId | None = None,
        sink: EventSink | None = None,
    ) -> list[Path]:
        """Return local paths of the downloaded artifacts in result order.

        A policy that yields no directory means nothing is kept locally, so
        nothing is fetched. Every target is checked before the first transfer
        starts. Files written before a failed transfer are left in place and
        listed on the raised :class:`DownloadError`.
        """

        events = sink or NullEventSink()
        destination = directory_policy(options)
        if destination is None:
            return []
        destination.mkdir(parents=True, exist_ok=True)

        selected = [item for item in result.items if accept(item)]
        targets = _plan_targets(destination, selected, operation_id)
        written: list[Path] = []
        for index, (item, target) in enumerate(zip(selected, targets, strict=True), start=1):
            target.parent.mkdir(parents=True, exist_ok=True)
            try:
                await self._reader.download_to(item.remote_location, target)
            except FetchError as exc:
                msg = f"Failed to download {item.filename}: {exc}"
                raise DownloadError(msg, written=written, operation_id=operation_id) from exc
            written.append(target)
            if operation_id is not None:
                events.emit(
                    StepEvent(
                        operation_id=operation_id,
                        step=BuildStep.DOWNLOAD,
                        progress=int(index * 100 / len(selected)),
                    )
                )

        logger.debug("Downloaded %d artifact(s) to %s", len(written), destination)
        return written


__all__ = [
    "ArtifactPredicate",
    "DirectoryPolicy",
    "ResultDownloader",
    "accept_all",
    "artifact_target",
]
