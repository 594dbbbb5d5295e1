"""Turns tool-level failures encoded in a result object into errors.

A ``Success`` status only means the orchestration finished; the publishing
tool itself may still have failed. Its diagnostics are scattered through
stdout/stderr, so the interesting lines are pulled out and placed next to
the raw ``errors`` text rather than replacing it.
"""

from __future__ import annotations

import re
from collections.abc import Sequence

from cloudops.domain import ResultObject
from cloudops.exceptions import ToolFailureError

# Lines printed by the iTunes transporter wrapper on upload failures
ITMS_ERROR_PATTERN = re.compile(r"\[Transporter Error Output\]:.*")
GENERAL_ERROR_PATTERN = re.compile(r"\[!\].*")
IOS_TEAMS_PATTERN = re.compile(r'\d+\) "(.*)" \(.*\)')
MULTIPLE_TEAMS_MARKER = "Multiple iTunes Connect Teams found"


def extract_marked_lines(text: str | None, pattern: re.Pattern[str]) -> list[str]:
    """Return unique matches of ``pattern`` in first-occurrence order."""

    if not text:
        return []
    matches = (match.group(0).rstrip() for match in pattern.finditer(text))
    return list(dict.fromkeys(matches))


def format_marked_lines(text: str | None, pattern: re.Pattern[str]) -> str:
    return "\n".join(extract_marked_lines(text, pattern))


def has_multiple_teams_marker(stderr: str | None) -> bool:
    return bool(stderr) and MULTIPLE_TEAMS_MARKER.lower() in stderr.lower()


def parse_team_names(stdout: str | None) -> list[str]:
    """Team names from a numbered ``N) "Name" (id)`` selection list."""

    if not stdout:
        return []
    return [match.group(1) for match in IOS_TEAMS_PATTERN.finditer(stdout)]


def compose_message(errors: str, *details: str) -> str:
    parts = [part for part in (errors, *details) if part]
    return "\n".join(parts) or "Publishing failed."


def classify_ios_publish_failure(
    result: ResultObject,
    package_paths: Sequence[str] = (),
) -> ToolFailureError:
    itms_message = format_marked_lines(result.stdout, ITMS_ERROR_PATTERN)
    general_message = format_marked_lines(result.stderr, GENERAL_ERROR_PATTERN)
    message = compose_message(result.errors, itms_message, general_message)

    team_names: list[str] = []
    paths: Sequence[str] = ()
    if has_multiple_teams_marker(result.stderr):
        # The tool cannot pick a team non-interactively; hand the choice back
        team_names = parse_team_names(result.stdout)
        paths = package_paths

    return ToolFailureError(
        message,
        team_names=team_names,
        package_paths=paths,
        stdout=result.stdout,
        stderr=result.stderr,
    )


def classify_android_publish_failure(result: ResultObject) -> ToolFailureError:
    general_message = format_marked_lines(result.stderr, GENERAL_ERROR_PATTERN)
    return ToolFailureError(
        compose_message(result.errors, general_message),
        stdout=result.stdout,
        stderr=result.stderr,
    )


__all__ = [
    "GENERAL_ERROR_PATTERN",
    "IOS_TEAMS_PATTERN",
    "ITMS_ERROR_PATTERN",
    "MULTIPLE_TEAMS_MARKER",
    "classify_android_publish_failure",
    "classify_ios_publish_failure",
    "compose_message",
    "extract_marked_lines",
    "format_marked_lines",
    "has_multiple_teams_marker",
    "parse_team_names",
]
