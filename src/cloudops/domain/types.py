"""Shared type aliases for the domain layer."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, NewType
from uuid import uuid4

OperationId = NewType("OperationId", str)
JsonMapping = Mapping[str, Any]


def new_operation_id() -> OperationId:
    """Return a fresh identifier for a single remote operation."""

    return OperationId(str(uuid4()))


__all__ = [
    "JsonMapping",
    "OperationId",
    "new_operation_id",
]
