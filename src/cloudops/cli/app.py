"""Typer CLI wiring cloudops services."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable
from pathlib import Path
from typing import TypeVar

import typer
from rich.console import Console
from rich.markup import escape

from cloudops.domain import (
    AndroidBuildData,
    CodesignData,
    GooglePlayPublishData,
    IOSBuildData,
    ItunesConnectPublishData,
    Platform,
    PublishCredentials,
)
from cloudops.events import CallbackEventSink, OutputEvent, StepEvent
from cloudops.exceptions import CloudOperationError, ToolFailureError

from .deps import get_container

T = TypeVar("T")

app = typer.Typer(help="Run builds, codesign generation and publishing in the cloud")
publish_app = typer.Typer(help="Publish packages to the application stores")
app.add_typer(publish_app, name="publish")

console = Console()
err_console = Console(stderr=True)


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
) -> None:
    """Configure logging for every command."""

    level = logging.DEBUG if verbose else get_container().settings.log_level
    logging.basicConfig(level=level, format="%(levelname)s %(name)s: %(message)s")


def _console_sink() -> CallbackEventSink:
    def on_output(event: OutputEvent) -> None:
        console.print(event.data, end="", markup=False, highlight=False)

    def on_step(event: StepEvent) -> None:
        console.print(f"[dim]{event.step.value}: {event.progress}%[/dim]")

    return CallbackEventSink(on_output=on_output, on_step=on_step)


def _report_failure(exc: CloudOperationError) -> None:
    err_console.print(f"[red]{escape(exc.message)}[/red]", highlight=False)
    if exc.operation_id:
        err_console.print(f"Operation id: {exc.operation_id}", highlight=False)
    if exc.stderr:
        err_console.print(exc.stderr, markup=False, highlight=False)
    if isinstance(exc, ToolFailureError) and exc.team_names:
        err_console.print("Multiple teams are available; pass one with --team-id:")
        for name in exc.team_names:
            err_console.print(f"  {name}", markup=False, highlight=False)


def _run(coro: Awaitable[T]) -> T:
    async def _await() -> T:
        return await coro

    try:
        return asyncio.run(_await())
    except CloudOperationError as exc:
        _report_failure(exc)
        raise typer.Exit(code=1) from exc


@app.command("show-settings")
def show_settings() -> None:
    """Print the resolved application settings."""

    settings = get_container().settings
    typer.echo("Environment:\t" + settings.environment)
    typer.echo("API base:\t" + settings.api_base)
    typer.echo("Status interval:\t" + f"{settings.status_check_interval_seconds}s")
    typer.echo("Shared cloud:\t" + str(settings.shared_cloud))


@app.command("build")
def build(
    platform: str,
    configuration: str = typer.Option("Debug", help="Debug or Release"),
    project_dir: Path = typer.Option(Path("."), help="Directory containing package.json"),
    certificate: Path | None = typer.Option(None, help="Signing certificate (.p12/.keystore)"),
    certificate_password: str | None = typer.Option(None, help="Certificate password"),
    provision: Path | None = typer.Option(None, help="iOS mobile provision"),
    emulator: bool = typer.Option(False, help="Build for the iOS simulator"),
    clean: bool = typer.Option(False, help="Perform a clean build"),
) -> None:
    """Build the project in the cloud and download the package."""

    container = get_container()
    try:
        target = Platform(platform)
    except ValueError as exc:
        typer.echo(f"Unsupported platform '{platform}'. Available: Android, iOS")
        raise typer.Exit(code=1) from exc

    try:
        project = container.project_data.get_project_data(project_dir).to_settings(
            target.value, clean=clean
        )
    except CloudOperationError as exc:
        _report_failure(exc)
        raise typer.Exit(code=1) from exc

    android_data = None
    ios_data = None
    if target is Platform.ANDROID:
        android_data = AndroidBuildData(
            path_to_certificate=certificate,
            certificate_password=certificate_password,
        )
    else:
        ios_data = IOSBuildData(
            build_for_device=not emulator,
            path_to_certificate=certificate,
            certificate_password=certificate_password,
            path_to_provision=provision,
        )

    result = _run(
        container.build_service.build(
            project,
            target.value,
            configuration,
            android_data,
            ios_data,
            sink=_console_sink(),
        )
    )
    typer.echo(f"Build {result.operation_id} finished")
    for path in result.output_file_paths:
        typer.echo(f"Package: {path}")


@app.command("codesign")
def codesign(
    username: str = typer.Option(..., help="Apple ID"),
    password: str = typer.Option(..., help="Apple ID password"),
    project_dir: Path = typer.Option(Path("."), help="Directory containing package.json"),
    platform: str = typer.Option("iOS"),
    clean: bool = typer.Option(True),
) -> None:
    """Generate a certificate and provisioning profile for the project."""

    container = get_container()
    data = CodesignData(
        username=username,
        password=password,
        platform=platform,
        clean=clean,
        shared_cloud=container.settings.shared_cloud,
    )
    result = _run(
        container.codesign_service.generate_codesign_files(
            data, project_dir, sink=_console_sink()
        )
    )
    typer.echo(f"Codesign {result.operation_id} finished")
    for path in result.output_file_paths:
        typer.echo(f"File: {path}")


@publish_app.command("ios")
def publish_ios(
    username: str,
    password: str,
    package: list[str] = typer.Option(..., "--package", help="Package path or URL"),
    team_id: str | None = typer.Option(None, help="iTunes Connect team id or name"),
    app_specific_password: str | None = typer.Option(None),
    project_dir: Path = typer.Option(Path("."), help="Directory containing package.json"),
) -> None:
    """Publish packages to iTunes Connect."""

    container = get_container()
    data = ItunesConnectPublishData(
        project_dir=project_dir,
        package_paths=tuple(package),
        credentials=PublishCredentials(
            username=username,
            password=password,
            app_specific_password=app_specific_password,
        ),
        team_id=team_id,
        shared_cloud=container.settings.shared_cloud,
    )
    result = _run(container.publish_service.publish_to_itunes_connect(data, sink=_console_sink()))
    typer.echo(f"Publish {result.operation_id} finished")


@publish_app.command("android")
def publish_android(
    auth_json: Path,
    package: list[str] = typer.Option(..., "--package", help="Package path or URL"),
    track: str | None = typer.Option(None, help="Google Play track (default: beta)"),
    release_status: str | None = typer.Option(None, help="Google Play release status"),
    project_dir: Path = typer.Option(Path("."), help="Directory containing package.json"),
) -> None:
    """Publish packages to Google Play."""

    container = get_container()
    data = GooglePlayPublishData(
        project_dir=project_dir,
        package_paths=tuple(package),
        path_to_auth_json=auth_json,
        track=track,
        android_release_status=release_status,
        shared_cloud=container.settings.shared_cloud,
    )
    result = _run(container.publish_service.publish_to_google_play(data, sink=_console_sink()))
    typer.echo(f"Publish {result.operation_id} finished")
