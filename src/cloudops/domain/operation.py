"""Models exchanged with the remote service during a single operation."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from pydantic import Field, field_validator

from .base import DomainModel, WireModel
from .enums import OperationKind, OperationStatus
from .types import JsonMapping, OperationId


class OperationRequest(DomainModel):
    """Payload submitted for one operation, tagged with its identifier."""

    operation_id: OperationId
    kind: OperationKind
    payload: JsonMapping = Field(default_factory=dict)

    def body(self) -> dict[str, object]:
        """Return the JSON body sent to the backend."""

        return {"cloudOperationId": self.operation_id, **dict(self.payload)}


class OperationHandle(WireModel):
    """Object-store locations returned by the backend on submission."""

    status_location: str = Field(alias="statusUrl")
    log_location: str = Field(alias="outputUrl")
    result_location: str = Field(alias="resultUrl")
    transformed_result_location: str | None = Field(default=None, alias="transformedResultUrl")


class StatusObject(WireModel):
    """Contents of the status object; overwritten by the backend as work progresses."""

    status: str

    @property
    def state(self) -> OperationStatus | None:
        return OperationStatus.from_wire(self.status)


class ArtifactRef(WireModel):
    """A remote artifact produced by the operation."""

    disposition: str
    filename: str
    remote_location: str = Field(alias="fullPath")
    platform: str = ""
    extension: str = ""


class ResultObject(WireModel):
    """Terminal result written once the remote work has finished."""

    code: int = 0
    errors: str = ""
    stdout: str = ""
    stderr: str = ""
    items: tuple[ArtifactRef, ...] = Field(default=(), alias="buildItems")

    @field_validator("errors", "stdout", "stderr", mode="before")
    @classmethod
    def coerce_text(cls, value: object) -> object:
        # Absent streams are written as null by some workers
        return "" if value is None else value

    @field_validator("code", mode="before")
    @classmethod
    def coerce_code(cls, value: object) -> object:
        return 0 if value is None else value

    @field_validator("items", mode="before")
    @classmethod
    def coerce_items(cls, value: object) -> object:
        return () if value is None else value

    @property
    def has_errors(self) -> bool:
        return bool(self.code) or bool(self.errors)


class OutputDirectoryOptions(DomainModel):
    """Inputs of a per-operation output directory policy."""

    project_dir: Path
    platform: str
    emulator: bool = False


@dataclass(slots=True)
class LogCursor:
    """Offset into the cumulative log text already delivered for one wait."""

    offset: int = 0

    def advance(self, consumed: int) -> None:
        if consumed < 0:
            raise ValueError("Log cursor cannot move backwards")
        self.offset += consumed

    def reset(self) -> None:
        self.offset = 0


__all__ = [
    "ArtifactRef",
    "LogCursor",
    "OperationHandle",
    "OperationRequest",
    "OutputDirectoryOptions",
    "ResultObject",
    "StatusObject",
]
