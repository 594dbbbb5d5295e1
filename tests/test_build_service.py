from __future__ import annotations

import asyncio
import plistlib
from importlib import import_module
from pathlib import Path
from urllib.parse import quote

import pytest
from fakes import OUTPUT_URL, TRANSFORMED_URL, FakeCloud, Reply, make_container

from cloudops.domain import (
    AndroidBuildData,
    BuildStep,
    IOSBuildData,
    ProjectSettings,
)
from cloudops.events import CallbackEventSink, StepEvent
from cloudops.exceptions import (
    FailedToStartError,
    OperationFailedError,
    ToolFailureError,
    ValidationError,
)

qr_module = import_module("cloudops.services.qr")


def _project(tmp_path: Path) -> ProjectSettings:
    return ProjectSettings(
        project_dir=tmp_path,
        project_id="org.example.app",
        project_name="My App!",
        nativescript_data={"id": "org.example.app"},
    )


def _item(filename: str) -> dict[str, str]:
    return {
        "disposition": "BuildResult",
        "filename": filename,
        "fullPath": f"https://store.test/artifacts/{filename}",
    }


def test_android_debug_build_downloads_transformed_items(cloud: FakeCloud, tmp_path: Path) -> None:
    cloud.accept_submissions("build", transformed=True)
    cloud.statuses("Building", "Success")
    cloud.get(OUTPUT_URL, Reply(body="Compiling\n"), Reply(body="Compiling\nDone\n"))
    cloud.result(code=0, stdout="ok", buildItems=[_item("app.apk")])
    cloud.get(TRANSFORMED_URL, Reply(body={"buildItems": [_item("app.aab")]}))
    cloud.get("https://store.test/artifacts/app.aab", Reply(body=b"aab"))
    steps: list[StepEvent] = []
    service = make_container(cloud).build_service

    result = asyncio.run(
        service.build(
            _project(tmp_path),
            "android",
            "debug",
            sink=CallbackEventSink(on_step=steps.append),
        )
    )

    target = tmp_path / ".cloud" / "android" / "app.aab"
    assert result.output_file_paths == (target,)
    assert result.output_file_path == target
    assert target.read_bytes() == b"aab"
    assert result.full_output == "Compiling\nDone\n"
    assert result.package_url == "https://store.test/artifacts/app.aab"
    assert result.qr_data is not None
    assert result.qr_data.original_url == "https://store.test/artifacts/app.aab"
    assert result.qr_data.image_data.startswith("data:image/png;base64,")
    assert cloud.hits("GET", "https://store.test/artifacts/app.apk") == 0

    payload = cloud.submitted("build")
    assert payload["cloudOperationId"] == result.operation_id
    assert payload["appName"] == "MyApp"
    assert payload["platform"] == "Android"
    assert payload["buildConfiguration"] == "Debug"
    assert payload["buildFiles"] == []
    assert [event.step for event in steps if event.progress == 0] == [
        BuildStep.PREPARE,
        BuildStep.UPLOAD,
        BuildStep.BUILD,
        BuildStep.DOWNLOAD,
    ]


def test_ios_device_build_uploads_signing_files(cloud: FakeCloud, tmp_path: Path) -> None:
    certificate = tmp_path / "cert.p12"
    certificate.write_bytes(b"cert")
    provision = tmp_path / "app.mobileprovision"
    provision.write_bytes(b"prov")
    cloud.accept_uploads()
    cloud.accept_submissions("build")
    cloud.statuses("Failed")
    cloud.result(code=1, stderr="signing error")
    service = make_container(cloud).build_service

    with pytest.raises(OperationFailedError) as excinfo:
        asyncio.run(
            service.build(
                _project(tmp_path),
                "iOS",
                "Release",
                ios_data=IOSBuildData(
                    path_to_certificate=certificate,
                    path_to_provision=provision,
                    certificate_password="secret",
                ),
            )
        )

    payload = cloud.submitted("build")
    assert excinfo.value.message == "Build failed."
    assert excinfo.value.operation_id == payload["cloudOperationId"]
    assert excinfo.value.stderr == "signing error"
    assert [entry["disposition"] for entry in payload["buildFiles"]] == ["Keychain", "Provision"]
    assert payload["properties"] == {"buildForDevice": True, "certificatePassword": "secret"}


def test_ios_device_build_qr_points_at_install_manifest(
    cloud: FakeCloud, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    encoded: list[str] = []

    def fake_image(text: str) -> str:
        encoded.append(text)
        return "data:image/png;base64,stub"

    monkeypatch.setattr(qr_module, "qr_image_data", fake_image)
    certificate = tmp_path / "cert.p12"
    certificate.write_bytes(b"cert")
    provision = tmp_path / "app.mobileprovision"
    provision.write_bytes(b"\x30\x82" + plistlib.dumps({"ProvisionedDevices": ["udid-1"]}) + b"sig")
    cloud.accept_uploads()
    cloud.accept_submissions("build")
    cloud.statuses("Success")
    cloud.result(code=0, buildItems=[_item("app.ipa")])
    cloud.get("https://store.test/artifacts/app.ipa", Reply(body=b"ipa"))
    service = make_container(cloud).build_service

    result = asyncio.run(
        service.build(
            _project(tmp_path),
            "iOS",
            "Release",
            ios_data=IOSBuildData(
                path_to_certificate=certificate,
                path_to_provision=provision,
                certificate_password="secret",
            ),
        )
    )

    upload_requests = [request for request in cloud.requests if request.method == "POST"]
    assert upload_requests[-1].url.params["fileName"] == "MyApp.plist"
    manifest_put = [request for request in cloud.requests if request.method == "PUT"][-1]
    item = plistlib.loads(manifest_put.content)["items"][0]
    assert item["assets"] == [
        {"kind": "software-package", "url": "https://store.test/artifacts/app.ipa"}
    ]
    assert item["metadata"]["bundle-identifier"] == "org.example.app"
    assert item["metadata"]["title"] == "My App!"
    assert result.qr_data is not None
    assert result.qr_data.original_url == "https://store.test/artifacts/app.ipa"
    assert encoded == [
        "itms-services://?action=download-manifest&url="
        + quote("https://uploads.test/public/file", safe="")
    ]


def test_empty_result_is_a_tool_failure(cloud: FakeCloud, tmp_path: Path) -> None:
    cloud.accept_submissions("build")
    cloud.statuses("Success")
    cloud.result(code=1, errors="compile error", buildItems=None)
    service = make_container(cloud).build_service

    with pytest.raises(ToolFailureError) as excinfo:
        asyncio.run(service.build(_project(tmp_path), "Android", "Debug"))

    assert excinfo.value.message == "Build failed. Reason is: compile error."
    assert excinfo.value.operation_id == cloud.submitted("build")["cloudOperationId"]


def test_missing_status_reports_failed_to_start(cloud: FakeCloud, tmp_path: Path) -> None:
    cloud.accept_submissions("build")
    service = make_container(cloud).build_service

    with pytest.raises(FailedToStartError) as excinfo:
        asyncio.run(service.build(_project(tmp_path), "Android", "Debug"))

    assert excinfo.value.message == "Failed to start cloud build."
    assert excinfo.value.operation_id == cloud.submitted("build")["cloudOperationId"]


@pytest.mark.parametrize(
    ("platform", "configuration", "android_data", "ios_data", "message"),
    [
        ("windows", "Debug", None, None, "Platform windows is not supported"),
        ("Android", "Profile", None, None, "Build configuration Profile is not supported"),
        (
            "Android",
            "Release",
            AndroidBuildData(certificate_password="pw"),
            None,
            "When building for Release configuration",
        ),
        (
            "iOS",
            "Debug",
            None,
            IOSBuildData(certificate_password="pw"),
            "When building for iOS you must specify valid Mobile Provision",
        ),
    ],
)
def test_invalid_build_is_rejected_before_any_request(
    cloud: FakeCloud,
    tmp_path: Path,
    platform: str,
    configuration: str,
    android_data: AndroidBuildData | None,
    ios_data: IOSBuildData | None,
    message: str,
) -> None:
    service = make_container(cloud).build_service

    with pytest.raises(ValidationError, match=message):
        asyncio.run(
            service.build(_project(tmp_path), platform, configuration, android_data, ios_data)
        )

    assert cloud.requests == []


def test_missing_certificate_file_is_rejected(cloud: FakeCloud, tmp_path: Path) -> None:
    service = make_container(cloud).build_service

    with pytest.raises(ValidationError, match="does not exist"):
        service.validate_build_properties(
            "Android",
            "Release",
            "org.example.app",
            AndroidBuildData(path_to_certificate=tmp_path / "nope.jks", certificate_password="pw"),
        )


def test_application_identifier_is_required(cloud: FakeCloud) -> None:
    service = make_container(cloud).build_service

    with pytest.raises(ValidationError, match="application identifier"):
        service.validate_build_properties("Android", "Debug", "")


def test_simulator_build_needs_no_signing(cloud: FakeCloud) -> None:
    service = make_container(cloud).build_service

    service.validate_build_properties(
        "iOS", "Release", "org.example.app", ios_data=IOSBuildData(build_for_device=False)
    )
