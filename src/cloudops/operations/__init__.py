"""Operation variants and result classification."""

from .classification import (
    classify_android_publish_failure,
    classify_ios_publish_failure,
    extract_marked_lines,
    parse_team_names,
)
from .variants import (
    BuildVariant,
    CodesignVariant,
    OperationVariant,
    PublishVariant,
    filter_artifacts,
    variant_for,
)

__all__ = [
    "BuildVariant",
    "CodesignVariant",
    "OperationVariant",
    "PublishVariant",
    "classify_android_publish_failure",
    "classify_ios_publish_failure",
    "extract_marked_lines",
    "filter_artifacts",
    "parse_team_names",
    "variant_for",
]
