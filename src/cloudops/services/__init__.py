"""Operation services exports."""

from .build import CloudBuildService
from .codesign import CloudCodesignService
from .publish import CloudPublishService

__all__ = [
    "CloudBuildService",
    "CloudCodesignService",
    "CloudPublishService",
]
