"""Domain layer exports."""

from .base import DomainModel, WireModel
from .enums import (
    BuildConfiguration,
    BuildStep,
    Disposition,
    OperationKind,
    OperationStatus,
    OutputPipe,
    Platform,
)
from .operation import (
    ArtifactRef,
    LogCursor,
    OperationHandle,
    OperationRequest,
    OutputDirectoryOptions,
    ResultObject,
    StatusObject,
)
from .requests import (
    DEFAULT_ANDROID_PUBLISH_TRACK,
    AndroidBuildData,
    BuildResultData,
    CodesignData,
    CodesignResultData,
    DeviceInfo,
    GooglePlayPublishData,
    IOSBuildData,
    ItmsPlistOptions,
    ItunesConnectPublishData,
    OperationResultData,
    ProjectSettings,
    PublishCredentials,
    PublishDataCore,
    PublishResultData,
    QrData,
)
from .types import JsonMapping, OperationId, new_operation_id

__all__ = [
    "DEFAULT_ANDROID_PUBLISH_TRACK",
    "AndroidBuildData",
    "ArtifactRef",
    "BuildConfiguration",
    "BuildResultData",
    "BuildStep",
    "CodesignData",
    "CodesignResultData",
    "DeviceInfo",
    "Disposition",
    "DomainModel",
    "GooglePlayPublishData",
    "IOSBuildData",
    "ItmsPlistOptions",
    "ItunesConnectPublishData",
    "JsonMapping",
    "LogCursor",
    "OperationHandle",
    "OperationId",
    "OperationKind",
    "OperationRequest",
    "OperationResultData",
    "OperationStatus",
    "OutputDirectoryOptions",
    "OutputPipe",
    "Platform",
    "ProjectSettings",
    "PublishCredentials",
    "PublishDataCore",
    "PublishResultData",
    "QrData",
    "ResultObject",
    "StatusObject",
    "WireModel",
    "new_operation_id",
]
