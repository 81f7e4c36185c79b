"""Rich console rendering of reports and export files."""

from datetime import UTC, datetime

from typing import Any

from rich.console import Console
from rich.table import Table

from stakewatch.analysis.models import Category, FilterResult, ValidatorAnalysis
from stakewatch.analysis.pipeline import EventReport, TopDelegatorsReport, UnbondReport
from stakewatch.helpers.constants import TOKEN_SYMBOL
from stakewatch.helpers.export import ExportDocument
from stakewatch.helpers.parsers import format_token_amount


def pol(base_units: int) -> str:
    """Display an amount in whole tokens with the symbol."""
    return f"{format_token_amount(base_units)} {TOKEN_SYMBOL}"


def format_time(timestamp: int | None) -> str:
    """Render a Unix time as a UTC date and time."""
    if timestamp is None:
        return "-"
    return datetime.fromtimestamp(timestamp, tz=UTC).strftime("%Y-%m-%d %H:%M")


def print_warnings(console: Console, warnings: list[str]) -> None:
    for warning in warnings:
        console.print(f"[yellow]⚠ {warning}[/yellow]")


def print_event_report(console: Console, report: EventReport) -> None:
    """Show recent events and per-validator activity."""
    print_warnings(console, report.warnings)
    block_range = (
        f" in blocks {report.from_block:,}-{report.to_block:,}"
        if report.from_block is not None and report.to_block is not None
        else ""
    )
    console.print(
        f"\n[bold]{len(report.events)} {report.kind} events found{block_range}[/bold] "
        f"(source: {report.source})"
    )
    if not report.ranked:
        return

    table = Table(title=f"Most Recent {report.kind.title()} Events")
    table.add_column("#", justify="right", style="dim")
    table.add_column("Time (UTC)", style="magenta")
    table.add_column("Validator", justify="right", style="cyan")
    table.add_column("Address", style="cyan")
    table.add_column("Amount", justify="right", style="green")
    table.add_column("Block", justify="right", style="yellow")

    for item in report.ranked:
        event = item.event
        table.add_row(
            str(item.rank),
            format_time(event.timestamp),
            str(event.validator_id),
            event.address,
            pol(event.amount_base_units),
            f"{event.block_number:,}" if event.block_number is not None else "-",
        )
    console.print(table)

    activity = Table(title="Activity by Validator")
    activity.add_column("Validator", justify="right", style="cyan")
    activity.add_column("Events", justify="right", style="yellow")
    activity.add_column("Total", justify="right", style="green")
    for entry in report.activity[:20]:
        activity.add_row(
            str(entry.validator_id), f"{entry.event_count:,}", pol(entry.total_base_units)
        )
    console.print(activity)


def print_filter_result(console: Console, result: FilterResult) -> None:
    """Show how many addresses each category accounted for."""
    table = Table(title="Address Classification")
    table.add_column("Category", style="cyan")
    table.add_column("Addresses", justify="right", style="yellow")
    table.add_column("Excluded", justify="right", style="red")
    for category in Category:
        table.add_row(
            str(category),
            f"{result.counts.get(category, 0):,}",
            f"{len(result.excluded_in(category)):,}",
        )
    table.add_row("total", f"{result.total:,}", f"{len(result.excluded):,}", style="bold")
    console.print(table)


def print_top_delegators(console: Console, report: TopDelegatorsReport) -> None:
    """Show the net-stake ranking."""
    print_warnings(console, report.warnings)
    console.print(
        f"\n[bold]{report.delegation_count:,} delegation events and "
        f"{report.unbonding_count:,} unbonding events found[/bold]"
    )
    console.print(
        f"{report.address_count:,} unique addresses, "
        f"{report.active_address_count:,} with positive net stake"
    )
    if report.failed_validators:
        console.print(
            f"[yellow]Unbonds unavailable for {len(report.failed_validators)} "
            f"validator(s): {', '.join(map(str, report.failed_validators))}[/yellow]"
        )
    print_filter_result(console, report.filter_result)

    if not report.ranked:
        console.print("[yellow]0 delegators to show[/yellow]")
        return

    table = Table(title=f"Top {len(report.ranked)} Delegators by Net Stake")
    table.add_column("#", justify="right", style="dim")
    table.add_column("Address", style="cyan")
    table.add_column("Net Stake", justify="right", style="green")
    table.add_column("Delegated", justify="right")
    table.add_column("Unbonded", justify="right", style="red")
    table.add_column("Validators", style="magenta")

    for item in report.ranked:
        stake = item.stake
        validators = ", ".join(
            report.validator_names.get(validator_id, str(validator_id))
            for validator_id in stake.validator_ids[:3]
        )
        if len(stake.validator_ids) > 3:
            validators += f" +{len(stake.validator_ids) - 3}"
        table.add_row(
            str(item.rank),
            stake.address,
            pol(stake.net_base_units),
            pol(stake.delegated_base_units),
            pol(stake.unbonded_base_units),
            validators or "-",
        )
    console.print(table)

    summary = report.summary
    console.print(
        f"\n{summary.delegator_count:,} delegators hold "
        f"{pol(summary.total_net_base_units)} net across "
        f"{summary.validator_count:,} validators"
    )


def print_unbond_report(console: Console, report: UnbondReport) -> None:
    """Show the largest single unbondings."""
    console.print(
        f"\n[bold]{report.unbonding_count:,} unbonding events found across "
        f"{report.validators_queried:,} validator(s)[/bold]"
    )
    if report.failed_validators:
        console.print(
            f"[yellow]Unbonds unavailable for {len(report.failed_validators)} "
            f"validator(s)[/yellow]"
        )
    if not report.ranked:
        return

    table = Table(title=f"Top {len(report.ranked)} Unbonding Events")
    table.add_column("#", justify="right", style="dim")
    table.add_column("Validator", style="cyan")
    table.add_column("Address", style="cyan")
    table.add_column("Amount", justify="right", style="red")
    table.add_column("Started (UTC)", style="magenta")

    for item in report.ranked:
        event = item.event
        table.add_row(
            str(item.rank),
            report.validator_names.get(event.validator_id, str(event.validator_id)),
            event.address,
            pol(event.amount_base_units),
            format_time(event.timestamp),
        )
    console.print(table)


def print_validator_analysis(console: Console, analysis: ValidatorAnalysis) -> None:
    """Show a validator's stake breakdown and individual-delegator movement."""
    name = (
        analysis.validator.display_name
        if analysis.validator
        else f"Validator {analysis.validator_id}"
    )
    console.print(f"\n[bold]{name}[/bold] (id {analysis.validator_id})")
    console.print(
        f"{analysis.unfiltered_delegation_count:,} delegation and "
        f"{analysis.unfiltered_unbonding_count:,} unbonding events found since "
        f"{format_time(analysis.since)}"
    )
    print_filter_result(console, analysis.filter_result)

    table = Table(title="Individual Delegators")
    table.add_column("Metric", style="cyan")
    table.add_column("Value", justify="right", style="green")
    individual = analysis.individual
    table.add_row("Individual delegators", f"{analysis.individual_delegator_count:,}")
    table.add_row(
        "Total delegated",
        f"{pol(individual.delegated_base_units)} ({individual.delegation_count:,} events)",
    )
    table.add_row(
        "Total unbonded",
        f"{pol(individual.unbonded_base_units)} ({individual.unbonding_count:,} events)",
    )
    table.add_row("Net change", pol(individual.net_base_units))
    table.add_row("Current stake", pol(analysis.current_stake_base_units))
    table.add_row("Self stake", pol(analysis.self_stake_base_units))
    table.add_row("Delegated stake", pol(analysis.delegated_stake_base_units))
    percentage = analysis.percentage_change
    if percentage is not None:
        table.add_row("Percentage change", f"{percentage:.4f}%")
    console.print(table)


def _cell(value: Any) -> str:
    if value is None:
        return "-"
    if isinstance(value, float):
        return f"{value:,.4f}"
    if isinstance(value, int) and not isinstance(value, bool):
        return f"{value:,}"
    return str(value)


def _display_columns(rows: list[dict[str, Any]]) -> list[str]:
    """Scalar keys worth showing, in first-seen order."""
    columns: dict[str, None] = {}
    for row in rows:
        for key, value in row.items():
            if key.endswith("BaseUnits") or isinstance(value, (dict, list)):
                continue
            columns.setdefault(key, None)
    return list(columns)


def print_export(console: Console, document: ExportDocument, limit: int = 50) -> None:
    """Render an export file: parameters, summary and the first result rows."""
    console.print(
        f"\n[bold]{document.command}[/bold] generated "
        f"{document.generated_at.strftime('%Y-%m-%d %H:%M:%S %Z')}"
    )

    overview = Table(title="Summary")
    overview.add_column("Key", style="cyan")
    overview.add_column("Value", justify="right", style="green")
    for key, value in document.parameters.items():
        overview.add_row(f"param: {key}", _cell(value))
    for key, value in document.summary.items():
        if not key.endswith("BaseUnits"):
            overview.add_row(key, _cell(value))
    console.print(overview)

    console.print(f"{len(document.results):,} results in file")
    if not document.results:
        return

    rows = document.results[:limit]
    table = Table(title="Results")
    columns = _display_columns(rows)
    for column in columns:
        table.add_column(column)
    for row in rows:
        table.add_row(*(_cell(row.get(column)) for column in columns))
    console.print(table)
    if len(document.results) > limit:
        console.print(
            f"[yellow]Showing first {limit} of {len(document.results)} results[/yellow]"
        )


__all__ = [
    "format_time",
    "pol",
    "print_event_report",
    "print_export",
    "print_filter_result",
    "print_top_delegators",
    "print_unbond_report",
    "print_validator_analysis",
]
