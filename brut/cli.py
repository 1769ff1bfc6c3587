"""Command-line interface for Brut.

This module defines the CLI commands using Click framework.

Commands:
- build: Build the site into the output directory.
"""

from __future__ import annotations

import logging
from pathlib import Path

import click

from . import __version__


@click.group()
@click.version_option(version=__version__, prog_name="brut")
def cli():
    """Brut static site builder."""


@cli.command()
@click.option(
    "--project",
    "project_root",
    type=click.Path(exists=True, file_okay=False, path_type=Path),
    default=".",
    help="Project root (defaults to the current directory)",
)
@click.option(
    "--config",
    "config_file",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Config file (defaults to brut.yaml in the project root)",
)
@click.option("--strict", is_flag=True, help="Exit with an error if any page fails")
@click.option("--no-minify", is_flag=True, help="Write pages without minifying them")
@click.option(
    "--concurrency",
    type=click.IntRange(min=1),
    default=None,
    help="Maximum number of files processed at once (overrides brut.yaml)",
)
@click.option("-v", "--verbose", is_flag=True, help="Log every written page")
def build(
    project_root: Path,
    config_file: Path | None,
    strict: bool,
    no_minify: bool,
    concurrency: int | None,
    verbose: bool,
):
    """Build the site into the output directory."""
    from .build import BuildError, PageFailuresError, build_site
    from .config import ConfigError, load_config

    _setup_logging(verbose)
    project_root = project_root.absolute()
    try:
        config = load_config(project_root, config_file)
    except ConfigError as exc:
        raise click.ClickException(str(exc)) from None
    if no_minify:
        config.minify = False
    if concurrency is not None:
        config.concurrency = concurrency
    if strict:
        config.fail_on_error = True

    try:
        report = build_site(config)
    except BuildError as exc:
        click.echo(click.style("Build failed:", fg="red", bold=True), err=True)
        click.echo(
            click.style(f"  File: {_display_path(exc.source_path, project_root)}", fg="yellow"),
            err=True,
        )
        click.echo(click.style(f"  Error: {exc.message}", fg="white"), err=True)
        if isinstance(exc, PageFailuresError):
            _echo_failures(exc.report.failed, project_root)
        raise SystemExit(1) from None

    _echo_failures(report.failed, project_root)
    click.echo(f"Built {len(report.written)} pages into {report.out_dir}")


def _echo_failures(failed, project_root: Path) -> None:
    """Print one line per page that was skipped."""
    for result in failed:
        click.echo(
            click.style(
                f"Skipped {_display_path(result.page.path, project_root)}: {result.error}",
                fg="yellow",
            ),
            err=True,
        )


def _display_path(path: Path, project_root: Path) -> Path:
    """Return path relative to the project root when possible."""
    try:
        return path.relative_to(project_root)
    except ValueError:
        return path


def _setup_logging(verbose: bool) -> None:
    """Configure root logging for a CLI run."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(levelname)s %(name)s: %(message)s",
    )


def main():
    """Entry point for the CLI application."""
    cli()
