"""
Command Line Interface Module

This module provides a CLI for browsing MGNREGA district performance:
listings, the current-month dashboard, trends over time and comparisons
against other districts.
"""

# Standard library imports
import os
import sys
import logging
from pathlib import Path
from typing import Optional

# Third-party imports
import click

# Local imports
from . import __version__
from .api_client import MGNREGAClient
from .data_processor import (
    COMPARISON_METRICS,
    METRICS,
    TREND_METRICS,
    VALID_GRANULARITIES,
    DEFAULT_COMPARISON_LIMIT,
    build_kpi_summary,
    build_trend_series,
    calculate_trend_stats,
    compare_districts,
    comparison_to_dataframe,
    extract_districts,
    format_metric,
    records_for_district,
    select_comparison_candidates,
    trend_series_to_dataframe,
)
from .exceptions import MGNREGAError
from .visualizer import DistrictChartBuilder

# Constants
DEFAULT_OUTPUT_DIR = './outputs'
LOG_FILE = 'mgnrega_tracker.log'
SECTION_TITLES = {
    'performance': 'Key Performance Indicators',
    'social_inclusion': 'Social Inclusion',
    'financial': 'Financial Overview',
    'additional': 'Additional Information',
}
TREND_ARROWS = {'up': '↑', 'down': '↓', 'stable': '→'}

logger = logging.getLogger(__name__)


def setup_logging(verbose: bool = False) -> logging.Logger:
    """
    Setup logging configuration.

    Args:
        verbose: Enable debug logging if True

    Returns:
        Configured logger instance
    """
    level = logging.DEBUG if verbose else logging.INFO

    logging.basicConfig(
        level=level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S',
        handlers=[
            logging.StreamHandler(sys.stderr),
            logging.FileHandler(LOG_FILE)
        ],
        force=True
    )

    return logging.getLogger(__name__)


def _client() -> MGNREGAClient:
    try:
        return MGNREGAClient()
    except MGNREGAError as e:
        raise click.ClickException(f"API client initialization failed: {e}")


def _output_path(ctx: click.Context, filename: str) -> Path:
    output_dir = Path(ctx.obj['output_dir'])
    try:
        output_dir.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise click.ClickException(f"Failed to create output directory {output_dir}: {e}")
    return output_dir / filename


def _slug(name: str) -> str:
    return '_'.join(name.lower().split())


@click.group()
@click.version_option(version=__version__, prog_name='MGNREGA Performance Tracker')
@click.option(
    '--verbose', '-v',
    is_flag=True,
    help='Enable verbose logging with debug information'
)
@click.option(
    '--output-dir',
    type=click.Path(file_okay=False, dir_okay=True),
    help='Directory for CSV and chart outputs. Created on first write.'
)
@click.pass_context
def cli(ctx: click.Context, verbose: bool, output_dir: Optional[str]) -> None:
    """
    MGNREGA Performance Tracker.

    Look up a district's employment-scheme performance from data.gov.in:
    latest figures, trends and comparisons with other districts. Requires
    MGNREGA_API_KEY in the environment or a .env file.

    Example:
        $ mgnrega-tracker trends --district PATNA --metric employment --granularity yearly
    """
    ctx.ensure_object(dict)

    global logger
    logger = setup_logging(verbose=verbose)
    if verbose:
        logger.debug("Verbose logging enabled")

    ctx.obj['verbose'] = verbose
    ctx.obj['output_dir'] = str(Path(output_dir or os.getenv('OUTPUT_DIR', DEFAULT_OUTPUT_DIR)))


@cli.command()
@click.pass_context
def states(ctx: click.Context) -> None:
    """List states present in the dataset."""
    try:
        names = _client().get_available_states()
    except MGNREGAError as e:
        logger.error(f"Failed to fetch states: {e}")
        raise click.ClickException(f"Failed to fetch states: {e}")

    if not names:
        click.echo(click.style("No states found.", fg='yellow'))
        return

    for name in names:
        click.echo(name)


@cli.command()
@click.option('--state', help='Only districts of this state (exact name, e.g. BIHAR)')
@click.pass_context
def districts(ctx: click.Context, state: Optional[str]) -> None:
    """List districts with their state and codes."""
    try:
        found = _client().list_districts(state)
    except MGNREGAError as e:
        logger.error(f"Failed to fetch districts: {e}")
        raise click.ClickException(f"Failed to fetch districts: {e}")

    if not found:
        click.echo(click.style("No districts found.", fg='yellow'))
        return

    for d in found:
        click.echo(f"  {d.district_name:<30} | {d.state_name:<25} | {d.district_code}")
    click.echo(click.style(f"✓ {len(found)} districts", fg='green'))


@cli.command()
@click.pass_context
def years(ctx: click.Context) -> None:
    """List financial years, most recent first."""
    try:
        found = _client().get_available_financial_years()
    except MGNREGAError as e:
        logger.error(f"Failed to fetch financial years: {e}")
        raise click.ClickException(f"Failed to fetch financial years: {e}")

    for year in found:
        click.echo(year)


@cli.command()
@click.option('--district', required=True, help='District name (exact, e.g. PATNA)')
@click.pass_context
def dashboard(ctx: click.Context, district: str) -> None:
    """Show the latest performance figures for a district."""
    try:
        latest = _client().get_latest_district_data(district)
    except MGNREGAError as e:
        logger.error(f"Failed to fetch data for {district}: {e}")
        raise click.ClickException(f"Failed to fetch data for {district}: {e}")

    if latest is None:
        click.echo(click.style(f"No data available for {district}.", fg='yellow'))
        return

    click.echo(click.style(
        f"{latest.get('district_name', district)} Performance", fg='blue', bold=True
    ))
    click.echo(f"{latest.get('month', '')} {latest.get('fin_year', '')} • {latest.get('state_name', '')}")

    for section, cards in build_kpi_summary(latest).items():
        click.echo("\n" + click.style(SECTION_TITLES[section], bold=True))
        for card in cards:
            share = f"  ({card.percentage}% of individuals)" if card.percentage is not None else ''
            click.echo(f"  {card.title:<32} {card.value:>12}{share}")


@cli.command()
@click.option('--district', required=True, help='District name (exact, e.g. PATNA)')
@click.option(
    '--metric',
    type=click.Choice(list(TREND_METRICS)),
    default='employment',
    show_default=True,
    help='Metric to summarise'
)
@click.option(
    '--granularity',
    type=click.Choice(VALID_GRANULARITIES),
    default='monthly',
    show_default=True,
    help='One point per month, or one per financial year'
)
@click.option('--year', 'financial_year', help='Restrict to one financial year, e.g. 2024-2025')
@click.option('--output', help='Write the series to this CSV file in the output directory')
@click.option('--chart', is_flag=True, help='Write an HTML line chart to the output directory')
@click.pass_context
def trends(
    ctx: click.Context,
    district: str,
    metric: str,
    granularity: str,
    financial_year: Optional[str],
    output: Optional[str],
    chart: bool
) -> None:
    """Show how a metric has changed over time for a district."""
    try:
        records = records_for_district(_client().fetch_records(district=district)['records'], district)
    except MGNREGAError as e:
        logger.error(f"Failed to fetch data for {district}: {e}")
        raise click.ClickException(f"Failed to fetch data for {district}: {e}")

    series = build_trend_series(records, granularity, financial_year)
    stats = calculate_trend_stats(series, metric)
    if stats is None:
        click.echo(click.style(f"No trend data available for {district}.", fg='yellow'))
        return

    field_name = TREND_METRICS[metric]
    label = METRICS[field_name].name

    click.echo(click.style(f"{label} - {district} ({granularity})", fg='blue', bold=True))
    for point in series:
        click.echo(f"  {point.period:<20} {format_metric(field_name, point.values[metric]):>12}")

    click.echo("")
    click.echo(
        f"Current: {format_metric(field_name, stats.current_value)}  "
        f"{TREND_ARROWS[stats.trend]} {stats.percentage_change:+.1f}%"
    )
    click.echo(
        f"Min: {format_metric(field_name, stats.min_value)}  "
        f"Max: {format_metric(field_name, stats.max_value)}  "
        f"Average: {format_metric(field_name, stats.average_value)}"
    )

    if output:
        if not output.endswith('.csv'):
            output += '.csv'
        path = _output_path(ctx, output)
        trend_series_to_dataframe(series).to_csv(path, index=False, encoding='utf-8')
        click.echo(click.style(f"✓ Saved to {path}", fg='green'))

    if chart:
        charts = DistrictChartBuilder()
        fig = charts.create_trend_chart(series, metric, district)
        path = charts.save_figure(
            fig, f"{_slug(district)}_{metric}_{granularity}", output_dir=ctx.obj['output_dir']
        )
        click.echo(click.style(f"✓ Chart saved to {path}", fg='green'))


@cli.command()
@click.option('--district', required=True, help='District name (exact, e.g. PATNA)')
@click.option(
    '--metric',
    type=click.Choice(COMPARISON_METRICS),
    default='Total_Individuals_Worked',
    show_default=True,
    help='Record field to compare'
)
@click.option(
    '--scope',
    type=click.Choice(['all', 'state']),
    default='all',
    show_default=True,
    help='Compare with all districts or only those in the same state'
)
@click.option('--limit', default=DEFAULT_COMPARISON_LIMIT, show_default=True, type=click.IntRange(min=1),
              help='Number of districts to compare with')
@click.option('--output', help='Write the comparison to this CSV file in the output directory')
@click.option('--chart', is_flag=True, help='Write an HTML bar chart to the output directory')
@click.pass_context
def compare(
    ctx: click.Context,
    district: str,
    metric: str,
    scope: str,
    limit: int,
    output: Optional[str],
    chart: bool
) -> None:
    """Rank a district against other districts on one metric."""
    client = _client()
    try:
        current_records = records_for_district(client.fetch_records(district=district)['records'], district)
        current_districts = extract_districts(current_records)
        if not current_districts:
            click.echo(click.style(f"No data available for {district}.", fg='yellow'))
            return

        current = current_districts[0]
        pool = client.list_districts(current.state_name if scope == 'state' else None)
    except MGNREGAError as e:
        logger.error(f"Failed to fetch comparison data for {district}: {e}")
        raise click.ClickException(f"Failed to fetch comparison data for {district}: {e}")

    candidates = select_comparison_candidates(pool, current, scope == 'state', limit)
    candidate_records = client.fetch_multiple_districts([d.district_name for d in candidates])
    result = compare_districts(current_records, candidate_records, metric)

    definition = METRICS[metric]
    click.echo(click.style(f"{definition.name} - {current.district_name}", fg='blue', bold=True))
    click.echo(
        f"Current: {definition.format(result.current_value)}  "
        f"Rank: {result.rank} of {result.total}"
    )

    if not result.rows:
        click.echo(click.style("No comparison districts with data.", fg='yellow'))
        return

    for row in result.rows:
        click.echo(
            f"  {row.district:<30} {definition.format(row.value):>12}  "
            f"{row.percentage_diff:+.1f}% {row.status}"
        )
    click.echo(
        f"Average: {definition.format(result.average_value)}  "
        f"Max: {definition.format(result.max_value)}  "
        f"Min: {definition.format(result.min_value)}"
    )

    if output:
        if not output.endswith('.csv'):
            output += '.csv'
        path = _output_path(ctx, output)
        comparison_to_dataframe(result).to_csv(path, index=False, encoding='utf-8')
        click.echo(click.style(f"✓ Saved to {path}", fg='green'))

    if chart:
        charts = DistrictChartBuilder()
        fig = charts.create_comparison_chart(result)
        path = charts.save_figure(
            fig, f"{_slug(current.district_name)}_{metric}_comparison", output_dir=ctx.obj['output_dir']
        )
        click.echo(click.style(f"✓ Chart saved to {path}", fg='green'))


@cli.command()
@click.pass_context
def health(ctx: click.Context) -> None:
    """Check that the data source is reachable."""
    status = _client().check_api_health()
    if status['healthy']:
        click.echo(click.style(f"✓ API healthy ({status['response_time_ms']:.0f} ms)", fg='green'))
        return
    raise click.ClickException(f"API unhealthy: {status.get('error', 'unknown error')}")


def main():
    """Main entry point for CLI"""
    cli()


if __name__ == '__main__':
    main()
