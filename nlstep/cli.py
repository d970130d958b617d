"""CLI entry point for the natural-language step runner."""

from __future__ import annotations

import asyncio
import logging
import sys
from pathlib import Path

import click
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.table import Table

from nlstep.ai.backends import create_backend
from nlstep.ai.client import set_debug_dir
from nlstep.artifacts.store import ArtifactStore
from nlstep.errors import ConfigurationError
from nlstep.models.artifact import Scenario
from nlstep.models.config import DEFAULT_CONFIG_FILE, RunnerConfig
from nlstep.models.run_result import ScenarioResult
from nlstep.orchestrator import Orchestrator
from nlstep.translator.cache import CachingTranslator, TranslationCache
from nlstep.translator.remote import BridgeClient, RemoteArtifactStore, RemoteTranslator
from nlstep.translator.translator import Translator

console = Console()


def setup_logging(verbose: bool = False) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, rich_tracebacks=True)],
    )


def _load_config(path: str) -> RunnerConfig:
    cfg = RunnerConfig.load_or_default(path)
    if cfg.debug_dir:
        set_debug_dir(cfg.debug_dir)
    return cfg


@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
def cli(verbose: bool) -> None:
    """Natural-language UI test steps, translated once and replayed."""
    setup_logging(verbose)


@cli.command()
@click.option("--artifacts-dir", "-a", default=None, help="Directory for scenario artifacts")
def init(artifacts_dir: str | None) -> None:
    """Create a default configuration file."""
    config_path = Path(DEFAULT_CONFIG_FILE)
    if config_path.exists():
        if not click.confirm(f"{DEFAULT_CONFIG_FILE} already exists. Overwrite?"):
            return

    cfg = RunnerConfig()
    if artifacts_dir:
        cfg.artifacts_dir = artifacts_dir
    cfg.save(config_path)
    console.print(f"[green]Created {config_path}[/green]")
    console.print("\nSet OPENAI_API_KEY or ANTHROPIC_API_KEY, then run:")
    console.print("  [blue]nlstep run scenario.json --url http://localhost:3000[/blue]")


@cli.command()
@click.option("--host", default=None, help="Bind address")
@click.option("--port", "-p", type=int, default=None, help="Port")
@click.option("--artifacts-dir", "-a", default=None, help="Directory for scenario artifacts")
@click.option("--config", "-c", default=DEFAULT_CONFIG_FILE, help="Config file path")
def serve(host: str | None, port: int | None, artifacts_dir: str | None, config: str) -> None:
    """Start the translation bridge server."""
    import uvicorn

    from nlstep.server.app import create_app

    cfg = _load_config(config)
    if host:
        cfg.bridge.host = host
    if port:
        cfg.bridge.port = port
    if artifacts_dir:
        cfg.artifacts_dir = artifacts_dir

    try:
        create_backend(cfg)
    except ConfigurationError as e:
        console.print(f"[red]{e}[/red]")
        sys.exit(1)

    console.print(f"Bridge listening on [blue]http://{cfg.bridge.host}:{cfg.bridge.port}[/blue]")
    uvicorn.run(create_app(cfg), host=cfg.bridge.host, port=cfg.bridge.port)


@cli.command()
@click.argument("scenario_file", type=click.Path(exists=True, dir_okay=False))
@click.option("--url", "-u", required=True, help="URL of the application under test")
@click.option("--bridge", "-b", default=None, help="Translate through a bridge at this URL")
@click.option("--headed", is_flag=True, help="Show the browser window")
@click.option("--config", "-c", default=DEFAULT_CONFIG_FILE, help="Config file path")
def run(scenario_file: str, url: str, bridge: str | None, headed: bool, config: str) -> None:
    """Run a scenario file against a web page."""
    from nlstep.executor.playwright_adapter import PlaywrightUIAdapter, open_page

    cfg = _load_config(config)
    scenario = Scenario.load(scenario_file)
    bridge_url = bridge or cfg.bridge.url

    if bridge_url:
        client = BridgeClient(bridge_url, timeout=cfg.ai_timeout_seconds)
        store: ArtifactStore = RemoteArtifactStore(cfg.artifacts_dir, client)

        def translator_factory():
            if not client.check_health():
                raise ConfigurationError(f"Bridge service not responding at {bridge_url}")
            return RemoteTranslator(client)
    else:
        store = ArtifactStore(cfg.artifacts_dir)

        def translator_factory():
            translator = Translator(create_backend(cfg))
            if cfg.translation_cache_enabled:
                return CachingTranslator(translator, TranslationCache())
            return translator

    async def _run() -> ScenarioResult:
        async with open_page(url, headless=cfg.headless and not headed) as page:
            adapter = PlaywrightUIAdapter(
                page,
                settle_timeout_ms=cfg.settle_timeout_ms,
                settle_delay_ms=cfg.settle_delay_ms,
            )
            orchestrator = Orchestrator(adapter, store, translator_factory=translator_factory)
            return await orchestrator.run_async(scenario)

    try:
        result = asyncio.run(_run())
    except ConfigurationError as e:
        console.print(f"[red]{e}[/red]")
        sys.exit(1)

    _print_result(result)
    if not result.passed:
        sys.exit(1)


def _print_result(result: ScenarioResult) -> None:
    color = "green" if result.passed else "red"
    table = Table(title=f"Scenario: {result.scenario}")
    table.add_column("Metric", style="bold")
    table.add_column("Value")
    table.add_row("State", f"[{color}]{result.state.value}[/{color}]")
    table.add_row("Mode", result.mode or "-")
    table.add_row("Steps", f"{result.steps_executed}/{result.steps_total}")
    table.add_row("Actions", str(result.actions_executed))
    table.add_row("Translator calls", str(result.translator_calls))
    table.add_row("Duration", f"{result.duration_seconds}s")
    if result.artifact_path:
        table.add_row("Artifact", result.artifact_path)
    console.print(table)
    if result.failure:
        console.print(f"[red]{escape(result.failure.summary())}[/red]")


@cli.command()
@click.option("--bridge", "-b", default=None, help="Bridge URL")
@click.option("--config", "-c", default=DEFAULT_CONFIG_FILE, help="Config file path")
def health(bridge: str | None, config: str) -> None:
    """Check that a translation bridge is up."""
    cfg = _load_config(config)
    client = BridgeClient(bridge or cfg.bridge.base_url, timeout=5.0)
    try:
        if not client.check_health():
            console.print(f"[red]Bridge not responding at {client.base_url}[/red]")
            sys.exit(1)
        info = client.health()
    finally:
        client.close()
    for key, value in info.items():
        console.print(f"  {key}: {value}")


@cli.group()
def artifact() -> None:
    """Inspect and manage stored scenario artifacts."""
    pass


@artifact.command("list")
@click.option("--config", "-c", default=DEFAULT_CONFIG_FILE, help="Config file path")
def artifact_list(config: str) -> None:
    """List stored artifacts."""
    store = ArtifactStore(_load_config(config).artifacts_dir)
    names = store.list_names()
    if not names:
        console.print("[yellow]No artifacts stored[/yellow]")
        return
    for name in names:
        console.print(f"  {name}")


@artifact.command("show")
@click.argument("name")
@click.option("--config", "-c", default=DEFAULT_CONFIG_FILE, help="Config file path")
def artifact_show(name: str, config: str) -> None:
    """Show the steps and actions of an artifact."""
    store = ArtifactStore(_load_config(config).artifacts_dir)
    loaded = store.load(name)
    if loaded is None:
        console.print(f"[red]No readable artifact named {name}[/red]")
        sys.exit(1)

    table = Table(title=f"{loaded.test_name} ({loaded.created_at})")
    table.add_column("#", style="bold")
    table.add_column("Step")
    table.add_column("Actions")
    for i, step in enumerate(loaded.steps, 1):
        table.add_row(str(i), escape(step.description), escape("\n".join(a.describe() for a in step.actions)))
    console.print(table)


@artifact.command("check")
@click.argument("name")
@click.argument("scenario_file", type=click.Path(exists=True, dir_okay=False))
@click.option("--config", "-c", default=DEFAULT_CONFIG_FILE, help="Config file path")
def artifact_check(name: str, scenario_file: str, config: str) -> None:
    """Tell whether an artifact can replay a scenario file without translation."""
    store = ArtifactStore(_load_config(config).artifacts_dir)
    scenario = Scenario.load(scenario_file)
    if store.is_valid(store.load(name), scenario.steps):
        console.print(f"[green]{name} is up to date; the next run replays it[/green]")
    else:
        console.print(f"[yellow]{name} is missing or outdated; the next run translates live[/yellow]")
        sys.exit(1)


@artifact.command("delete")
@click.argument("name")
@click.option("--config", "-c", default=DEFAULT_CONFIG_FILE, help="Config file path")
def artifact_delete(name: str, config: str) -> None:
    """Delete an artifact, forcing live translation on the next run."""
    store = ArtifactStore(_load_config(config).artifacts_dir)
    if store.delete(name):
        console.print(f"[green]Deleted {name}[/green]")
    else:
        console.print(f"[yellow]No artifact named {name}[/yellow]")


if __name__ == "__main__":
    cli()
