from __future__ import annotations

from cloudops.domain import ResultObject
from cloudops.operations import (
    classify_android_publish_failure,
    classify_ios_publish_failure,
    extract_marked_lines,
    parse_team_names,
)
from cloudops.operations.classification import GENERAL_ERROR_PATTERN

TEAMS_STDOUT = """Multiple teams found on the Developer Portal, please enter the number of the team you want to use:
1) "Team A" (ABCDE12345)
2) "Team B" (FGHIJ67890)
"""


def test_parse_team_names() -> None:
    assert parse_team_names(TEAMS_STDOUT) == ["Team A", "Team B"]
    assert parse_team_names("") == []


def test_marked_lines_are_deduplicated_in_order() -> None:
    stderr = (
        "[!] Something failed\nnoise\n[!] Other\n"
        "[!] Something failed\nmore\n[!] Something failed\n"
    )

    assert extract_marked_lines(stderr, GENERAL_ERROR_PATTERN) == [
        "[!] Something failed",
        "[!] Other",
    ]


def test_ios_failure_combines_errors_with_tool_lines() -> None:
    result = ResultObject(
        code=1,
        errors="Upload failed",
        stdout="[Transporter Error Output]: ERROR ITMS-90189: Redundant Binary Upload\n",
        stderr="[!] Error uploading ipa file\n",
    )

    error = classify_ios_publish_failure(result, ["https://uploads.test/app.ipa"])

    assert error.message == (
        "Upload failed\n"
        "[Transporter Error Output]: ERROR ITMS-90189: Redundant Binary Upload\n"
        "[!] Error uploading ipa file"
    )
    assert error.team_names == []
    assert error.package_paths == []
    assert error.stderr == result.stderr


def test_ios_multiple_teams_hands_back_choice() -> None:
    result = ResultObject(
        code=1,
        errors="",
        stdout=TEAMS_STDOUT,
        stderr="[!] Multiple iTunes Connect Teams found, please enter the number of the team\n",
    )

    error = classify_ios_publish_failure(result, ["https://uploads.test/app.ipa"])

    assert error.team_names == ["Team A", "Team B"]
    assert error.package_paths == ["https://uploads.test/app.ipa"]
    assert "[!] Multiple iTunes Connect Teams found" in error.message


def test_android_failure_uses_general_lines_only() -> None:
    result = ResultObject(
        errors="",
        stdout="[Transporter Error Output]: ignored on android",
        stderr="[!] Google Api Error: apkUpgradeVersionConflict\n",
    )

    error = classify_android_publish_failure(result)

    assert error.message == "[!] Google Api Error: apkUpgradeVersionConflict"
    assert error.team_names == []


def test_failure_without_details_has_fallback_message() -> None:
    error = classify_android_publish_failure(ResultObject(code=2))

    assert error.message == "Publishing failed."
