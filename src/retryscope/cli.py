"""CLI interface for retryscope"""

import json
import logging
import random
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

import click

from retryscope.application.chart_service import (
    active_point_for_retry,
    build_chart_series,
    y_axis_title,
)
from retryscope.application.explanation_service import build_chart_math_explanation
from retryscope.application.formula_renderer import render_bindings, render_formula
from retryscope.application.schedule_service import generate_schedule, summarize_schedule
from retryscope.domain.config.modes import DisplayMode, resolve_display_mode
from retryscope.domain.models.schedule import RetryPoint, ScheduleSummary
from retryscope.domain.validators.config_validator import ValidationIssue
from retryscope.infrastructure.config.config_manager import ConfigManager, ConfigurationError
from retryscope.infrastructure.display import format_duration, unit_label
from retryscope.infrastructure.input_parser import parse_config_fields

logger = logging.getLogger(__name__)

# CLI option name -> external config field name
_BACKOFF_OPTIONS = {
    "strategy": "strategy",
    "initial_delay_ms": "initialDelayMs",
    "max_retries": "maxRetries",
    "max_delay_ms": "maxDelayMs",
    "factor": "factor",
    "increment_ms": "incrementMs",
    "jitter": "jitter",
}


def setup_logging(verbose: bool = False) -> None:
    """Setup logging configuration"""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        force=True,
    )
    logging.getLogger().setLevel(level)


def _die(message: str, verbose: bool = False, exc: Optional[Exception] = None) -> None:
    """Exit with a user-friendly error message"""
    if exc is not None:
        logger.error(message, exc_info=verbose)
    else:
        logger.error(message)
    raise click.ClickException(message)


def backoff_options(func):
    """Add the string-valued backoff override options to a command"""
    options = [
        click.option(
            "--strategy",
            type=str,
            help="Backoff strategy (exponential, linear, fixed). Overrides config.",
        ),
        click.option("--initial-delay-ms", type=str, help="Delay before the first retry, in ms"),
        click.option("--max-retries", type=str, help="Number of retries (0-1000)"),
        click.option("--max-delay-ms", type=str, help="Delay cap in ms (empty string = uncapped)"),
        click.option("--factor", type=str, help="Exponential growth factor (> 1)"),
        click.option("--increment-ms", type=str, help="Linear step in ms (>= 0)"),
        click.option("--jitter", type=str, help="Jitter mode (none, equal, full)"),
    ]
    for option in reversed(options):
        func = option(func)
    return func


def _collect_overrides(options: Dict[str, Any]) -> Dict[str, Any]:
    """Pick the backoff override fields out of the command options"""
    fields = {
        field: options[name]
        for name, field in _BACKOFF_OPTIONS.items()
        if options.get(name) is not None
    }
    return parse_config_fields(fields)


def _load_config(
    ctx: click.Context, options: Dict[str, Any]
) -> Tuple[Optional[ConfigManager], List[ValidationIssue]]:
    """Load config file/env with the CLI overrides applied on top

    Returns:
        Tuple of (config manager, backoff validation issues); the manager is
        None when the merged backoff policy has issues
    """
    verbose = ctx.obj.get("verbose", False)
    try:
        config_manager = ConfigManager(
            config_path=ctx.obj.get("config_path"),
            backoff_overrides=_collect_overrides(options),
        )
    except ConfigurationError as e:
        if e.issues:
            return None, e.issues
        _die(str(e), verbose=verbose, exc=e)
    return config_manager, []


def _format_issues(issues: List[ValidationIssue]) -> str:
    return "\n".join(f"  - {issue.field}: {issue.message}" for issue in issues)


def _require_valid(ctx: click.Context, issues: List[ValidationIssue]) -> None:
    if issues:
        _die(
            "Invalid configuration:\n" + _format_issues(issues),
            verbose=ctx.obj.get("verbose", False),
        )


def format_schedule_table(
    points: List[RetryPoint], summary: ScheduleSummary, display_mode: DisplayMode
) -> str:
    """Render a schedule and its summary as a text table"""
    headers = ["Retry", "Raw", "Delay", "Min", "Max", "Cumulative"]
    rows = [
        [
            str(point.retry),
            format_duration(point.raw_delay_ms, display_mode),
            format_duration(point.delay_ms, display_mode),
            format_duration(point.min_delay_ms, display_mode),
            format_duration(point.max_delay_ms, display_mode),
            format_duration(point.cumulative_delay_ms, display_mode),
        ]
        for point in points
    ]
    widths = [max(len(row[i]) for row in [headers] + rows) for i in range(len(headers))]

    lines = ["  ".join(cell.rjust(width) for cell, width in zip(headers, widths))]
    lines.append("  ".join("-" * width for width in widths))
    for row in rows:
        lines.append("  ".join(cell.rjust(width) for cell, width in zip(row, widths)))

    lines.append("")
    lines.append(f"Total retries: {summary.total_retries}")
    lines.append(f"Final delay: {format_duration(summary.final_delay_ms, display_mode)}")
    lines.append(f"Total delay: {format_duration(summary.total_delay_ms, display_mode)}")
    return "\n".join(lines)


@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose logging")
@click.option(
    "--config",
    type=click.Path(exists=True, path_type=Path),
    help="Path to .retryscope.yml config file",
)
@click.pass_context
def cli(ctx, verbose: bool, config: Path):
    """retryscope - retry backoff schedule calculator"""
    ctx.ensure_object(dict)
    setup_logging(verbose)
    ctx.obj["config_path"] = config
    ctx.obj["verbose"] = verbose


@cli.command()
@backoff_options
@click.pass_context
def validate(ctx, **options):
    """Validate a backoff policy and list every problem found."""
    _, issues = _load_config(ctx, options)
    if not issues:
        click.echo("OK")
        return
    for issue in issues:
        click.echo(f"{issue.field}: {issue.message}", err=True)
    ctx.exit(1)


@cli.command()
@backoff_options
@click.option(
    "--display-mode",
    type=str,
    help="Duration unit (ms, s, min, h, humanize). Overrides config.",
)
@click.option("--json", "as_json", is_flag=True, help="Print the schedule as JSON")
@click.pass_context
def schedule(ctx, display_mode: Optional[str], as_json: bool, **options):
    """Print the retry schedule of a backoff policy."""
    config_manager, issues = _load_config(ctx, options)
    _require_valid(ctx, issues)
    backoff = config_manager.get_backoff_config()

    points = generate_schedule(backoff)
    summary = summarize_schedule(points)

    if as_json:
        payload = {
            "points": [point.to_dict() for point in points],
            "summary": summary.to_dict(),
        }
        click.echo(json.dumps(payload, indent=2))
        return

    mode = resolve_display_mode(display_mode or config_manager.get_display_config().display_mode)
    click.echo(f"Delays ({unit_label(mode)})\n")
    click.echo(format_schedule_table(points, summary, mode))


@cli.command()
@backoff_options
@click.option("--retry", "retry", type=int, help="Retry to resolve (omit for the general formula)")
@click.option("--chart-mode", type=str, help="delay or cumulative. Overrides config.")
@click.option("--series-mode", type=str, help="expected or simulated. Overrides config.")
@click.option("--seed", type=int, help="Seed for simulated jitter draws")
@click.pass_context
def explain(
    ctx,
    retry: Optional[int],
    chart_mode: Optional[str],
    series_mode: Optional[str],
    seed: Optional[int],
    **options,
):
    """Explain the formula behind a charted retry."""
    config_manager, issues = _load_config(ctx, options)
    _require_valid(ctx, issues)
    backoff = config_manager.get_backoff_config()

    display = config_manager.get_display_config()
    chart_mode = chart_mode or display.chart_mode
    series_mode = series_mode or display.chart_series_mode
    if seed is None:
        seed = display.simulation_seed

    points = generate_schedule(backoff)
    series = build_chart_series(points, chart_mode, series_mode, rng=random.Random(seed))

    active_point = None
    if retry is not None:
        active_point = active_point_for_retry(series, retry)
        if active_point is None:
            _die(
                f"Retry {retry} is outside 1..{len(points)}",
                verbose=ctx.obj.get("verbose", False),
            )

    explanation = build_chart_math_explanation(
        backoff,
        chart_mode=chart_mode,
        chart_series_mode=series_mode,
        active_point=active_point,
    )

    click.echo(
        f"Strategy: {explanation.strategy.value}, jitter: {explanation.jitter.value}, "
        f"chart: {y_axis_title(display.display_mode, explanation.chart_mode)} "
        f"[{explanation.chart_series_mode.value}]"
    )
    click.echo("")
    for line in render_bindings(explanation):
        click.echo(line)
    click.echo("")
    for line in render_formula(explanation):
        click.echo(line)

    if explanation.active_retry is not None:
        click.echo("")
        for line in render_formula(explanation, substituted=True):
            click.echo(line)
        click.echo("")
        click.echo(
            f"Charted value at retry {explanation.active_retry}: "
            f"{format_duration(explanation.resolved.charted_value_ms, display.display_mode)}"
        )


def main():
    """Main entry point"""
    cli(obj={})


if __name__ == "__main__":
    main()
