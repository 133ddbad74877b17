"""Command-line interface for sttsync.

Every mutating command goes through :class:`ConfigSyncController`, the same
path the settings form uses, so validation and logging are identical.
"""

import asyncio
import sys
from pathlib import Path
from typing import Awaitable, Callable, Optional

import click
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from sttsync import __version__
from sttsync.core.config import ConfigManager
from sttsync.core.errors import SttApiUnavailableError
from sttsync.core.provider_catalog import ProviderCatalog
from sttsync.core.remote_service import LocalConfigService
from sttsync.core.store import SettingsStore
from sttsync.core.sync_controller import ConfigSyncController, MutationResult, SyncStatus
from sttsync.core.transcription_target import resolve_transcription_target
from sttsync.utils.log import get_logger, init_logger

console = Console()
logger = get_logger()


def mask_secret(value: str) -> str:
    """Render an API key for display without revealing it."""
    if not value:
        return "Not set"
    if len(value) <= 8:
        return "***"
    return f"{value[:3]}***{value[-4:]}"


async def _open_controller(manager: ConfigManager) -> ConfigSyncController:
    controller = ConfigSyncController(SettingsStore(), LocalConfigService(manager))
    await controller.load()
    return controller


async def _run_mutation(
    manager: ConfigManager,
    mutate: Callable[[ConfigSyncController], Awaitable[MutationResult]],
) -> MutationResult:
    controller = await _open_controller(manager)
    try:
        return await mutate(controller)
    finally:
        controller.close()


def _report(result: MutationResult, message: str) -> None:
    if result.status == SyncStatus.APPLIED:
        console.print(f"[green]{escape(message)}[/green]")
        return
    if result.status == SyncStatus.SKIPPED:
        reason = f"{result.field} cannot be changed for the current provider"
    else:
        reason = result.error or f"Failed to update {result.field}"
    logger.info(
        "[cli] Mutation did not apply",
        extra={"field": result.field, "status": result.status.value},
    )
    raise click.ClickException(reason)


def _apply(
    ctx: click.Context,
    mutate: Callable[[ConfigSyncController], Awaitable[MutationResult]],
    message: str,
) -> None:
    manager: ConfigManager = ctx.obj["config_manager"]
    result = asyncio.run(_run_mutation(manager, mutate))
    _report(result, message)


@click.group()
@click.version_option(version=__version__)
@click.option(
    "--config",
    "config_path",
    type=click.Path(dir_okay=False, path_type=Path),
    help="Settings file (defaults to $STTSYNC_CONFIG_PATH or ~/.sttsync.json)",
)
@click.option(
    "--log-dir",
    type=click.Path(file_okay=False, path_type=Path),
    help="Also write debug logs to this directory",
)
@click.pass_context
def cli(ctx: click.Context, config_path: Optional[Path], log_dir: Optional[Path]) -> None:
    """sttsync - speech-to-text API settings"""
    if log_dir:
        init_logger(log_dir=log_dir)
    ctx.ensure_object(dict)
    ctx.obj["config_manager"] = ConfigManager(config_path)


@cli.command(name="show")
@click.pass_context
def show_cmd(ctx: click.Context) -> None:
    """Show the STT API settings"""
    manager: ConfigManager = ctx.obj["config_manager"]
    settings = manager.get_app_settings()
    stt_api = settings.stt_api

    console.print("\n[bold]STT API Settings[/bold]\n")
    console.print(f"Settings file: {escape(str(manager.config_path))}")
    console.print(f"Enabled: {stt_api.enabled}")
    console.print(f"Language: {escape(settings.selected_language)}")
    try:
        target = resolve_transcription_target(settings)
    except SttApiUnavailableError as exc:
        console.print(f"Transcription: {escape(str(exc))}\n", soft_wrap=True)
    else:
        auth = "Bearer key" if target.has_auth else "none"
        console.print(f"Endpoint: {escape(target.transcriptions_url)}", soft_wrap=True)
        console.print(f"Auth: {auth}\n")

    table = Table(show_header=True, header_style="bold")
    table.add_column("", width=1)
    table.add_column("Provider")
    table.add_column("Label")
    table.add_column("Base URL")
    table.add_column("Model")
    table.add_column("API Key")
    for provider in stt_api.providers:
        marker = "*" if provider.id == stt_api.active_provider_id else ""
        table.add_row(
            marker,
            escape(provider.id),
            escape(provider.label),
            escape(provider.base_url),
            escape(stt_api.model_for(provider.id)),
            escape(mask_secret(stt_api.api_key_for(provider.id))),
        )
    console.print(table)


@cli.command(name="enable")
@click.pass_context
def enable_cmd(ctx: click.Context) -> None:
    """Enable transcription through the STT API"""
    _apply(ctx, lambda c: c.toggle_enabled(True), "STT API enabled")


@cli.command(name="disable")
@click.pass_context
def disable_cmd(ctx: click.Context) -> None:
    """Disable transcription through the STT API"""
    _apply(ctx, lambda c: c.toggle_enabled(False), "STT API disabled")


@cli.command(name="provider")
@click.argument("provider_id")
@click.pass_context
def provider_cmd(ctx: click.Context, provider_id: str) -> None:
    """Select the active provider"""
    manager: ConfigManager = ctx.obj["config_manager"]
    catalog = ProviderCatalog.from_settings(manager.get_stt_api_settings())
    if provider_id not in catalog:
        raise click.BadParameter(
            f"unknown provider '{provider_id}' (choose from: {', '.join(catalog.ids())})",
            param_hint="PROVIDER_ID",
        )
    _apply(ctx, lambda c: c.select_provider(provider_id), f"Active provider: {provider_id}")


@cli.command(name="base-url")
@click.argument("url")
@click.pass_context
def base_url_cmd(ctx: click.Context, url: str) -> None:
    """Set the base URL of the active provider"""
    _apply(ctx, lambda c: c.set_base_url(url), f"Base URL set to {url}")


@cli.command(name="api-key")
@click.argument("key")
@click.pass_context
def api_key_cmd(ctx: click.Context, key: str) -> None:
    """Set the API key of the active provider"""
    _apply(ctx, lambda c: c.set_api_key(key), "API key updated")


@cli.command(name="model")
@click.argument("name")
@click.pass_context
def model_cmd(ctx: click.Context, name: str) -> None:
    """Set the model of the active provider"""
    _apply(ctx, lambda c: c.set_model(name), f"Model set to {name}")


@cli.command(name="tui")
@click.pass_context
def tui_cmd(ctx: click.Context) -> None:
    """Open the interactive settings form"""
    from sttsync.cli.ui.stt_api_tui.textual_app import run_stt_api_tui

    run_stt_api_tui(ctx.obj["config_manager"])


def main() -> None:
    """Main entry point."""
    try:
        cli()
    except KeyboardInterrupt:
        console.print("\n[yellow]Interrupted[/yellow]")
        sys.exit(130)


if __name__ == "__main__":
    main()
