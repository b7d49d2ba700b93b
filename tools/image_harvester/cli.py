"""CLI entry-point for the image harvester."""

from __future__ import annotations

import logging
import sys
from pathlib import Path

import click
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.table import Table

from .config import FetchConfig, HarvesterConfig
from .errors import HarvesterError
from .harvester import Harvester, RunMode, select_mode
from .storage import ArtifactSummary, inspect_artifact

console = Console()
err_console = Console(stderr=True)


def _setup_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(rich_tracebacks=True, console=err_console)],
    )
    # Suppress noisy libraries
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)


def _print_stats(stats: dict) -> None:
    table = Table(title="Harvest Summary", show_header=True, header_style="bold cyan")
    table.add_column("Metric", style="bold")
    table.add_column("Count", justify="right")
    for key, val in stats.items():
        table.add_row(key.capitalize(), str(val))
    console.print(table)


def _print_summary(summary: ArtifactSummary) -> None:
    if summary.empty:
        console.print(f"No images found in {summary.path}", markup=False, soft_wrap=True)
        return
    console.print(f"URL: {summary.url}", markup=False, highlight=False, soft_wrap=True)
    console.print(f"Image size (bytes): {summary.size}", highlight=False)
    console.print(f"Image data sample: {list(summary.sample)}", markup=False, highlight=False, soft_wrap=True)


def _fail(message: str, code: int = 1) -> None:
    err_console.print(f"[red]✗[/red] {escape(message)}", highlight=False, soft_wrap=True)
    sys.exit(code)


def _make_config(ctx: click.Context) -> HarvesterConfig:
    opts = ctx.obj
    env = FetchConfig.from_env()
    fetch = FetchConfig(
        timeout=opts["timeout"] if opts["timeout"] is not None else env.timeout,
        max_workers=opts["workers"] if opts["workers"] is not None else env.max_workers,
        user_agent=env.user_agent,
    )
    return HarvesterConfig(
        input_path=opts["input_path"],
        artifact_path=opts["artifact_path"],
        fetch=fetch,
        show_progress=opts["progress"],
    )


@click.group(invoke_without_command=True)
@click.option("-i", "--input", "input_path", envvar="HARVESTER_INPUT", default="backup.json",
              type=click.Path(dir_okay=False, path_type=Path), help="Posts backup JSON file")
@click.option("-o", "--output", "artifact_path", envvar="HARVESTER_OUTPUT", default="images.bin",
              type=click.Path(dir_okay=False, path_type=Path), help="Artifact file to write or inspect")
@click.option("-w", "--workers", envvar="HARVESTER_WORKERS", default=None, type=click.IntRange(min=1),
              help="Concurrent download workers")
@click.option("--timeout", envvar="HARVESTER_TIMEOUT", default=None, type=click.FloatRange(min=0, min_open=True),
              help="Per-request timeout in seconds")
@click.option("--progress/--no-progress", default=True, help="Show the progress bar")
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging")
@click.pass_context
def cli(ctx: click.Context, **kwargs: object) -> None:
    """Image Harvester – download every image referenced by a posts backup.

    If the artifact already exists it is inspected instead of re-fetched.
    """
    _setup_logging(bool(kwargs.pop("verbose")))
    ctx.ensure_object(dict)
    ctx.obj.update(kwargs)
    if ctx.invoked_subcommand is None:
        ctx.invoke(run)


# ─── Commands ────────────────────────────────────────────────────


@cli.command()
@click.pass_context
def run(ctx: click.Context) -> None:
    """Fetch all images, or inspect the artifact if it already exists.

    Example: image-harvester -i backup.json -o images.bin run
    """
    cfg = _make_config(ctx)
    if select_mode(cfg.artifact_path) is RunMode.INSPECT:
        console.print(f"File '{cfg.artifact_path}' exists. Loading saved images...", highlight=False, soft_wrap=True)
        _inspect(cfg)
        return

    try:
        with Harvester(cfg, console=err_console) as h:
            report = h.run_fetch()
    except HarvesterError as exc:
        _fail(str(exc))
    except KeyboardInterrupt:
        _fail("Interrupted; artifact not written", code=130)

    console.print(f"[green]✓[/green] Image downloads complete! Saved to {cfg.artifact_path}", highlight=False, soft_wrap=True)
    _print_stats(report.stats)


@cli.command()
@click.pass_context
def inspect(ctx: click.Context) -> None:
    """Inspect an existing artifact without fetching anything.

    Example: image-harvester -o images.bin inspect
    """
    _inspect(_make_config(ctx))


def _inspect(cfg: HarvesterConfig) -> None:
    try:
        summary = inspect_artifact(cfg.artifact_path)
    except HarvesterError as exc:
        _fail(str(exc))
    _print_summary(summary)


def main() -> None:
    cli()


if __name__ == "__main__":
    main()
