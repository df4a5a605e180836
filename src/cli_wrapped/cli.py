"""CLI entry point for CLI Wrapped."""

from __future__ import annotations

import logging
import sys
from datetime import datetime
from pathlib import Path
from typing import Optional

import click

from . import __version__
from .config import (
    DATA_SOURCES,
    SOURCE_NAMES,
    check_data_exists,
    default_data_paths,
    get_available_sources,
    get_data_path,
)
from .exporters import export_json, to_json
from .models import WrappedStats
from .stats import calculate_stats


def format_number(value: int) -> str:
    return f"{value:,}"


def summary_lines(stats: WrappedStats) -> list[str]:
    """Lines of the terminal summary."""
    lines = [
        f"Sessions:      {format_number(stats.total_sessions)}",
        f"Messages:      {format_number(stats.total_messages)}",
        f"Total Tokens:  {format_number(stats.total_tokens)}",
        f"Projects:      {format_number(stats.total_projects)}",
        f"Streak:        {stats.max_streak} days",
    ]
    if stats.total_cost > 0:
        lines.append(f"Cost:          ${stats.total_cost:.2f}")
    if stats.most_active_day:
        lines.append(f"Most Active:   {stats.most_active_day.formatted_date}")
    return lines


@click.command()
@click.option(
    "--year",
    "-y",
    type=int,
    default=None,
    help="Year to summarize. Defaults to the current year.",
)
@click.option(
    "--source",
    "-s",
    type=click.Choice(DATA_SOURCES),
    default=None,
    help="Data source. Auto-detected when omitted.",
)
@click.option(
    "--data-dir",
    type=click.Path(file_okay=False, dir_okay=True, path_type=Path),
    default=None,
    help="Override the data directory of the selected source.",
)
@click.option(
    "--output",
    "-o",
    type=click.Path(file_okay=False, dir_okay=True, path_type=Path),
    default=None,
    help="Directory to write stats.json to.",
)
@click.option(
    "--json-only",
    is_flag=True,
    default=False,
    help="Print the stats as JSON instead of the summary.",
)
@click.option("--verbose", "-v", is_flag=True, default=False, help="Enable debug logging.")
@click.version_option(__version__, prog_name="cli-wrapped")
def main(
    year: Optional[int],
    source: Optional[str],
    data_dir: Optional[Path],
    output: Optional[Path],
    json_only: bool,
    verbose: bool,
) -> None:
    """Generate your AI coding agent year in review."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    year = year or datetime.now().year
    paths = default_data_paths()

    if data_dir is not None:
        if source is None:
            click.echo("Error: --data-dir requires --source", err=True)
            sys.exit(1)
        paths = paths.with_root(source, data_dir)

    if source is not None:
        if not check_data_exists(source, paths):
            click.echo(
                f"Error: {SOURCE_NAMES[source]} data not found at {get_data_path(source, paths)}",
                err=True,
            )
            sys.exit(1)
    else:
        available = get_available_sources(paths)
        if not available:
            click.echo("Error: No session data found. Expected locations:", err=True)
            for name in DATA_SOURCES:
                click.echo(f"  {SOURCE_NAMES[name]}: {get_data_path(name, paths)}", err=True)
            sys.exit(1)
        if len(available) == 1:
            source = available[0]
        else:
            source = click.prompt(
                "Which source would you like to wrap?",
                type=click.Choice(available),
                default=available[0],
            )

    if not json_only:
        click.echo(f"Scanning your {SOURCE_NAMES[source]} history...")

    stats = calculate_stats(year, source, paths=paths)

    if json_only:
        click.echo(to_json(stats))
    elif stats.total_sessions == 0:
        click.echo(f"No {SOURCE_NAMES[source]} activity found for {year}")
        return
    else:
        click.echo(f"Your {year} in {SOURCE_NAMES[source]}")
        for line in summary_lines(stats):
            click.echo(f"  {line}")

    if output is not None:
        json_file = export_json(stats, output)
        if not json_only:
            click.echo(f"Stats exported to {json_file}")


if __name__ == "__main__":
    main()
