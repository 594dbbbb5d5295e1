"""Enumerations used across the cloudops domain layer."""

from __future__ import annotations

from enum import StrEnum


class OperationKind(StrEnum):
    """Remote operations the service can run."""

    BUILD = "build"
    CODESIGN = "codesign"
    PUBLISH = "publish"


class OperationStatus(StrEnum):
    """Status literals written to the status object.

    The backend reports in-progress work as ``Building``; ``InProgress`` is
    accepted as an alias.
    """

    IN_PROGRESS = "Building"
    SUCCESS = "Success"
    FAILED = "Failed"

    @classmethod
    def _missing_(cls, value: object) -> OperationStatus | None:
        if value == "InProgress":
            return cls.IN_PROGRESS
        return None

    @classmethod
    def from_wire(cls, value: str | None) -> OperationStatus | None:
        """Map a raw status string, returning ``None`` for unknown values."""

        if value is None:
            return None
        try:
            return cls(value)
        except ValueError:
            return None

    @property
    def is_terminal(self) -> bool:
        return self is not OperationStatus.IN_PROGRESS


class Platform(StrEnum):
    """Mobile platforms supported by the remote service."""

    ANDROID = "Android"
    IOS = "iOS"

    @classmethod
    def _missing_(cls, value: object) -> Platform | None:
        if isinstance(value, str):
            lowered = value.strip().lower()
            for member in cls:
                if member.value.lower() == lowered:
                    return member
        return None


class BuildConfiguration(StrEnum):
    """Build configurations accepted by the build service."""

    DEBUG = "Debug"
    RELEASE = "Release"

    @classmethod
    def _missing_(cls, value: object) -> BuildConfiguration | None:
        if isinstance(value, str):
            lowered = value.strip().lower()
            for member in cls:
                if member.value.lower() == lowered:
                    return member
        return None


class OutputPipe(StrEnum):
    """Stream an output chunk originated from."""

    STDOUT = "stdout"
    STDERR = "stderr"


class BuildStep(StrEnum):
    """Coarse steps reported through step-progress events."""

    PREPARE = "prepare"
    UPLOAD = "upload"
    BUILD = "build"
    DOWNLOAD = "download"


class Disposition:
    """Artifact and build-file role tags used on the wire."""

    BUILD_RESULT = "BuildResult"
    PACKAGE_OUTPUT = "PackageOutput"
    CERTIFICATE = "CertificateFile"
    PROVISION = "ProvisionFile"
    KEYSTORE = "KeyStore"
    KEYCHAIN = "Keychain"
    BUILD_PROVISION = "Provision"

    CODESIGN_FILES = frozenset({"certificate", "provision", CERTIFICATE, PROVISION})


__all__ = [
    "BuildConfiguration",
    "BuildStep",
    "Disposition",
    "OperationKind",
    "OperationStatus",
    "OutputPipe",
    "Platform",
]
