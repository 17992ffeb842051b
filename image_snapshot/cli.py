"""CLI entry point for image snapshot maintenance."""

from __future__ import annotations

import logging
import shutil
import sys
import tempfile
from pathlib import Path

import click
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from image_snapshot.baseline.differ import compare_images
from image_snapshot.baseline.store import clean_diff_outputs, list_baselines
from image_snapshot.matcher.classifier import classify, failure_message
from image_snapshot.models.config import DEFAULT_CONFIG_FILE, SnapshotConfig
from image_snapshot.models.snapshot import DiffOutcome, SnapshotOptions

console = Console()


def setup_logging(verbose: bool = False) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, rich_tracebacks=True)],
    )


def _load_config(config: str) -> SnapshotConfig:
    path = Path(config)
    if not path.exists():
        return SnapshotConfig().apply_env()
    return SnapshotConfig.load(path).apply_env()


@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
def cli(verbose: bool) -> None:
    """Image snapshot baselines and diffs"""
    setup_logging(verbose)


@cli.command()
@click.option("--config", "-c", default=DEFAULT_CONFIG_FILE, help="Config file path")
@click.option("--timeout-ms", type=int, default=5000, help="Retry timeout per snapshot call")
@click.option("--delay-ms", type=int, default=2000, help="Delay between attempts")
def init(config: str, timeout_ms: int, delay_ms: int) -> None:
    """Create a default configuration file."""
    config_path = Path(config)
    if config_path.exists():
        if not click.confirm(f"{config_path} already exists. Overwrite?"):
            return

    cfg = SnapshotConfig(timeout_ms=timeout_ms, delay_between_tries_ms=delay_ms)
    cfg.save(config_path)
    console.print(f"[green]Created {config_path}[/green]")
    console.print("\nEnable the pytest plugin from your conftest.py:")
    console.print('  [blue]pytest_plugins = ["image_snapshot.pytest_plugin"][/blue]')


@cli.command("list")
@click.option("--config", "-c", default=DEFAULT_CONFIG_FILE, help="Config file path")
def list_cmd(config: str) -> None:
    """List stored baseline images."""
    cfg = _load_config(config)
    baselines = list_baselines(Path(cfg.snapshots_folder))
    if not baselines:
        console.print(f"[yellow]No baselines found in {cfg.snapshots_folder}[/yellow]")
        return

    table = Table(title=f"Baselines in {cfg.snapshots_folder}")
    table.add_column("Test file", style="bold")
    table.add_column("Snapshot")
    table.add_column("Size", justify="right")
    for b in baselines:
        table.add_row(b.spec_file_name, b.screenshot_name, f"{b.size_bytes / 1024:.1f} KB")
    console.print(table)


@cli.command()
@click.option("--config", "-c", default=DEFAULT_CONFIG_FILE, help="Config file path")
@click.option("--screenshots", is_flag=True, help="Also delete received screenshots")
def clean(config: str, screenshots: bool) -> None:
    """Delete diff output images."""
    cfg = _load_config(config)
    removed = clean_diff_outputs(Path(cfg.snapshots_folder))
    console.print(f"[green]Removed {removed} diff image(s)[/green]")
    if screenshots and Path(cfg.screenshots_folder).exists():
        shutil.rmtree(cfg.screenshots_folder)
        console.print(f"[green]Removed {cfg.screenshots_folder}[/green]")


@cli.command()
@click.argument("baseline", type=click.Path(exists=True, dir_okay=False))
@click.argument("received", type=click.Path(exists=True, dir_okay=False))
@click.option("--threshold", type=float, default=0, help="Allowed difference")
@click.option("--threshold-type", type=click.Choice(["pixel", "percent"]), default="pixel")
@click.option("--diff-output", default=None, help="Where to write the diff image")
def compare(baseline: str, received: str, threshold: float, threshold_type: str,
            diff_output: str | None) -> None:
    """Compare two images the way snapshot calls do."""
    options = SnapshotOptions(failure_threshold=threshold, failure_threshold_type=threshold_type)
    if diff_output:
        _compare(Path(baseline), Path(received), Path(diff_output), options)
        return

    # without --diff-output the diff image is discarded with its directory
    with tempfile.TemporaryDirectory(prefix="image-snapshot-") as tmp:
        _compare(Path(baseline), Path(received), Path(tmp) / "diff.png", options, keep_diff=False)


def _compare(baseline: Path, received: Path, diff_path: Path, options: SnapshotOptions,
             keep_diff: bool = True) -> None:
    raw = compare_images(received, baseline, diff_path, options)
    diff = classify(raw)
    if diff.outcome == DiffOutcome.PASS:
        console.print(f"[green]Match[/green] ({raw.diff_pixel_count} different pixels)")
        return

    message = failure_message(diff)
    if not keep_diff:
        message = message.splitlines()[0] + "\nPass --diff-output to keep the diff image."
    console.print(f"[red]{message}[/red]")
    sys.exit(1)


if __name__ == "__main__":
    cli()
