"""CLI entry point for yoloc.

    yoloc --repo owner/name [--image REF]     check once, exit with the YOLO level
    yoloc --serve [--port N]                  run the web service
"""

from __future__ import annotations

import importlib.metadata
import logging

import click
from rich.console import Console
from rich.logging import RichHandler

from yoloc_cli.render import Renderer

console = Console()


def _setup_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
    )


def _version() -> str:
    try:
        return importlib.metadata.version("yoloc")
    except importlib.metadata.PackageNotFoundError:
        return "0.0.0"


@click.command()
@click.version_option(version=_version(), prog_name="yoloc")
@click.option("--repo", default="google/triage-party", show_default=True, help="GitHub repository to check (owner/name).")
@click.option("--image", default="", help="Container image to check.")
@click.option("--serve", "serve_mode", is_flag=True, help="Run as a web service instead of checking once.")
@click.option(
    "--port",
    type=int,
    default=None,
    help="Port for --serve. An explicit --port wins over $PORT, which wins over the config file; default 8080.",
)
@click.option(
    "--config",
    "config_path",
    default=".yoloc.yml",
    show_default=True,
    help="Path to the configuration file.",
    envvar="YOLOC_CONFIG",
)
@click.option(
    "--persist",
    default=None,
    type=click.Choice(["none", "disk", "gist"]),
    help="Result persistence backend. Overrides config file and $PERSIST_BACKEND.",
)
@click.option("--signatures", default=None, help="Path to a secret-scanner signatures YAML file.")
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging.")
@click.pass_context
def main(
    ctx: click.Context,
    repo: str,
    image: str,
    serve_mode: bool,
    port: int | None,
    config_path: str,
    persist: str | None,
    signatures: str | None,
    verbose: bool,
):
    """YOLO compliance checker: how recklessly is this repository run?

    The exit code is the YOLO level (0-4).

    \b
    Environment variables:
      GITHUB_TOKEN       GitHub token (or use gh CLI)
      PERSIST_BACKEND    none | disk | gist
      PORT               Port for --serve
    """
    from yoloc_cli.auth import resolve_github_token
    from yoloc_cli.runtime import Runtime
    from yoloc_core.config import load_config
    from yoloc_core.errors import ConfigError, RunCancelled
    from yoloc_core.orchestrator import default_checks, run_cached

    _setup_logging(verbose)

    settings = load_config(config_path, cli_overrides={"port": port, "persist": persist, "signatures": signatures})

    token = resolve_github_token()
    if token:
        settings["github_token"] = token
    if not settings.get("github_token"):
        raise click.UsageError(
            "No GitHub token found. Set GITHUB_TOKEN or run `gh auth login` first.\n"
            "Create a token at https://github.com/settings/tokens"
        )

    try:
        runtime = Runtime.from_settings(settings)
    except FileNotFoundError as e:
        raise click.UsageError(str(e))
    ctx.call_on_close(runtime.close)

    renderer = Renderer(console)
    renderer.banner()

    if serve_mode:
        from yoloc_cli.serve import serve

        serve(runtime, int(settings["port"]))
        return

    config = runtime.new_config(repo, image)
    renderer.header(repo, image)
    try:
        summary = run_cached(default_checks(), config, runtime.persister, on_row=renderer.row)
    except ConfigError as e:
        raise click.UsageError(str(e))
    except (RunCancelled, KeyboardInterrupt):
        config.cancel.set()
        console.print("\n[yellow]Cancelled.[/yellow]")
        ctx.exit(130)

    renderer.summary(summary)
    ctx.exit(summary.level)
