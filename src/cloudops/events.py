"""Typed output channel for incremental logs and step progress."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Protocol, runtime_checkable

from pydantic import Field

from cloudops.domain import BuildStep, DomainModel, OperationId, OutputPipe


class OutputEvent(DomainModel):
    """A chunk of remote output delivered exactly once."""

    operation_id: OperationId
    data: str
    pipe: OutputPipe = OutputPipe.STDOUT


class StepEvent(DomainModel):
    """Progress of a coarse operation step, in percent."""

    operation_id: OperationId
    step: BuildStep
    progress: int = Field(ge=0, le=100)


Event = OutputEvent | StepEvent


@runtime_checkable
class EventSink(Protocol):
    """Receives events for one or more waits."""

    def emit(self, event: Event) -> None: ...


class NullEventSink(EventSink):
    """Discards every event."""

    def emit(self, event: Event) -> None:
        return None


@dataclass(slots=True)
class CallbackEventSink(EventSink):
    """Routes each event kind to an optional callable."""

    on_output: Callable[[OutputEvent], None] | None = None
    on_step: Callable[[StepEvent], None] | None = None

    def emit(self, event: Event) -> None:
        if isinstance(event, OutputEvent):
            if self.on_output is not None:
                self.on_output(event)
        elif self.on_step is not None:
            self.on_step(event)


@dataclass(slots=True)
class OutputRecorder(EventSink):
    """Forwards events while keeping the output text of one operation."""

    operation_id: str
    inner: EventSink = field(default_factory=NullEventSink)
    _chunks: list[str] = field(default_factory=list, init=False, repr=False)

    def emit(self, event: Event) -> None:
        if isinstance(event, OutputEvent) and event.operation_id == self.operation_id:
            self._chunks.append(event.data)
        self.inner.emit(event)

    @property
    def text(self) -> str:
        return "".join(self._chunks)


__all__ = [
    "CallbackEventSink",
    "Event",
    "EventSink",
    "NullEventSink",
    "OutputEvent",
    "OutputRecorder",
    "StepEvent",
]
