"""Command line interface.

Usage:
    stakewatch fetch-events --days 2 --kind delegation
    stakewatch top-delegators --months 6 --top 100 --export
    stakewatch biggest-unbonds --days 7 --top 10
    stakewatch analyze-validator 7 --months 6
    stakewatch report top_delegators_20250131_120000.json
    stakewatch check-config
"""

import sys
from argparse import ArgumentParser, ArgumentTypeError, Namespace
from asyncio import run
from collections.abc import Awaitable, Callable
from pathlib import Path

from typing import Any

import httpx
from rich.console import Console
from rich.table import Table

from stakewatch.analysis.pipeline import (
    LogSource,
    Pipeline,
    validator_analysis_export,
    window_start,
)
from stakewatch.data.etherscan.client import EtherscanClient
from stakewatch.data.events.models import EventKind
from stakewatch.helpers.cache import RunCache
from stakewatch.helpers.config import (
    ConfigurationError,
    get_eth_rpc_urls,
    get_etherscan_api_key,
    get_label_api_key,
    get_log_level,
    get_staking_api_url,
)
from stakewatch.helpers.constants import DEFAULT_LOG_BATCH_SIZE
from stakewatch.helpers.errors import (
    BatchSplitError,
    EtherscanError,
    RPCError,
    StakingAPIError,
)
from stakewatch.helpers.export import (
    ExportDocument,
    default_export_path,
    read_export,
    write_export,
)
from stakewatch.helpers.http import create_http_client
from stakewatch.helpers.logging import LOG_LEVELS, get_logger, set_log_level
from stakewatch.helpers.progress import create_simple_progress, create_standard_progress
from stakewatch.reporting.console import (
    print_event_report,
    print_export,
    print_top_delegators,
    print_unbond_report,
    print_validator_analysis,
)


logger = get_logger(__name__)

Handler = Callable[[Namespace, Console], Awaitable[ExportDocument | None]]

EXPECTED_ERRORS = (
    ConfigurationError,
    httpx.HTTPError,
    RPCError,
    BatchSplitError,
    EtherscanError,
    StakingAPIError,
)


def positive_int(value: str) -> int:
    """argparse type for counts and batch sizes of at least 1."""
    try:
        number = int(value)
    except ValueError as e:
        msg = f"{value!r} is not an integer"
        raise ArgumentTypeError(msg) from e
    if number < 1:
        msg = f"{value} is not a positive integer"
        raise ArgumentTypeError(msg)
    return number


def _parameters(args: Namespace) -> dict[str, Any]:
    """Command arguments worth recording in an export."""
    return {
        key: value
        for key, value in vars(args).items()
        if key not in {"handler", "export", "log_level", "command"}
    }


def _pipeline(args: Namespace) -> Pipeline:
    return Pipeline.from_env(
        rpc_urls=getattr(args, "rpc_url", None),
        batch_size=getattr(args, "batch_size", DEFAULT_LOG_BATCH_SIZE),
        cache=RunCache(),
    )


def _source(args: Namespace) -> LogSource | None:
    return LogSource(args.source) if getattr(args, "source", None) else None


async def fetch_events_command(args: Namespace, console: Console) -> ExportDocument:
    """Fetch on-chain delegation or unbonding events in a window."""
    pipeline = _pipeline(args)
    since = window_start(days=args.days, months=args.months)
    async with create_http_client() as client:
        with create_simple_progress(console) as progress:
            report = await pipeline.fetch_events(
                client,
                kind=EventKind(args.kind),
                since=since,
                source=_source(args),
                validator_id=args.validator_id,
                top=args.top,
                with_timestamps=args.with_timestamps,
                progress=progress,
            )
    print_event_report(console, report)
    return report.to_export(_parameters(args))


async def top_delegators_command(args: Namespace, console: Console) -> ExportDocument:
    """Rank delegators by net stake."""
    pipeline = _pipeline(args)
    since = window_start(months=args.months)
    async with create_http_client() as client:
        with create_standard_progress(console) as progress:
            report = await pipeline.top_delegators(
                client,
                since=since,
                top=args.top,
                source=_source(args),
                include_exchanges=args.include_exchanges,
                include_defi=args.include_defi,
                include_institutional=args.include_institutional,
                progress=progress,
            )
    print_top_delegators(console, report)
    return report.to_export(_parameters(args))


async def biggest_unbonds_command(args: Namespace, console: Console) -> ExportDocument:
    """Rank the largest single unbondings."""
    pipeline = _pipeline(args)
    since = window_start(days=args.days)
    async with create_http_client() as client:
        with create_standard_progress(console) as progress:
            report = await pipeline.biggest_unbonds(
                client,
                since=since,
                top=args.top,
                validator_id=args.validator_id,
                progress=progress,
            )
    print_unbond_report(console, report)
    return report.to_export(_parameters(args))


async def analyze_validator_command(args: Namespace, console: Console) -> ExportDocument:
    """Summarize individual-delegator movement for one validator."""
    pipeline = _pipeline(args)
    since = window_start(months=args.months)
    async with create_http_client() as client:
        with create_standard_progress(console) as progress:
            analysis = await pipeline.analyze_validator(
                client,
                args.validator_id,
                since=since,
                source=_source(args),
                include_exchanges=args.include_exchanges,
                include_defi=args.include_defi,
                include_institutional=args.include_institutional,
                progress=progress,
            )
    print_validator_analysis(console, analysis)
    return validator_analysis_export(analysis, _parameters(args))


async def report_command(args: Namespace, console: Console) -> ExportDocument:
    """Render an export file."""
    document = read_export(args.path)
    print_export(console, document, limit=args.limit)
    return document


async def check_config_command(args: Namespace, console: Console) -> ExportDocument:
    """Show which settings are present and test the Etherscan key."""
    rpc_urls = get_eth_rpc_urls()
    etherscan = EtherscanClient(get_etherscan_api_key())
    label_key = get_label_api_key()

    table = Table(title="Configuration")
    table.add_column("Setting", style="cyan")
    table.add_column("Value", style="green")
    table.add_row("RPC endpoints", f"{len(rpc_urls)} ({rpc_urls[0]} first)")
    table.add_row("ETHERSCAN_API_KEY", "set" if etherscan.is_configured else "not set")
    table.add_row("Label service key", "set" if label_key else "not set (static list only)")
    table.add_row("Staking API", get_staking_api_url())
    console.print(table)

    async with create_http_client() as client:
        check = await etherscan.test_connection(client)
    style = "green" if check.success else "yellow"
    console.print(f"[{style}]Etherscan: {check.message}[/{style}]")

    return ExportDocument(
        command="check-config",
        summary={
            "rpcEndpoints": len(rpc_urls),
            "etherscanConfigured": etherscan.is_configured,
            "etherscanCheck": check.model_dump(),
            "labelServiceConfigured": bool(label_key),
            "stakingApiUrl": get_staking_api_url(),
        },
    )


def _add_export(parser: ArgumentParser) -> None:
    parser.add_argument(
        "--export",
        nargs="?",
        const="",
        default=None,
        metavar="PATH",
        help="Write results to a JSON file (timestamped name if PATH is omitted)",
    )


def _add_source(parser: ArgumentParser) -> None:
    parser.add_argument(
        "--source",
        choices=[source.value for source in LogSource],
        default=None,
        help="Log source (default: etherscan when a key is set, else rpc)",
    )
    parser.add_argument(
        "--rpc-url",
        action="append",
        default=None,
        help="JSON-RPC endpoint; repeat to give fallbacks (default: ETH_RPC_URLS)",
    )
    parser.add_argument(
        "--batch-size",
        type=positive_int,
        default=DEFAULT_LOG_BATCH_SIZE,
        help=f"Blocks per log query (default: {DEFAULT_LOG_BATCH_SIZE})",
    )


def _add_filters(parser: ArgumentParser) -> None:
    parser.add_argument(
        "--include-exchanges", action="store_true", help="Keep exchange addresses"
    )
    parser.add_argument(
        "--include-defi", action="store_true", help="Keep DeFi protocol addresses"
    )
    parser.add_argument(
        "--include-institutional",
        action="store_true",
        help="Keep institutional addresses",
    )


def build_parser() -> ArgumentParser:
    """Build the argument parser with all subcommands."""
    parser = ArgumentParser(
        prog="stakewatch",
        description="Polygon staking delegation and unbonding reports",
    )
    parser.add_argument(
        "--log-level",
        choices=list(LOG_LEVELS),
        default=None,
        help="Log level (default: LOG_LEVEL or WARNING)",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    fetch = subparsers.add_parser("fetch-events", help="Fetch events in a time window")
    window = fetch.add_mutually_exclusive_group()
    window.add_argument("--days", type=float, default=None, help="Look back N days")
    window.add_argument("--months", type=positive_int, default=None, help="Look back N months")
    fetch.add_argument(
        "--kind",
        choices=[kind.value for kind in EventKind],
        default=EventKind.DELEGATION.value,
    )
    fetch.add_argument("--validator-id", type=int, default=None)
    fetch.add_argument("--top", type=positive_int, default=20, help="Events to show")
    fetch.add_argument(
        "--with-timestamps",
        action="store_true",
        help="Look up block times for logs that lack them",
    )
    _add_source(fetch)
    _add_export(fetch)
    fetch.set_defaults(handler=fetch_events_command)

    top = subparsers.add_parser("top-delegators", help="Rank delegators by net stake")
    top.add_argument("--months", type=positive_int, default=6)
    top.add_argument("--top", type=positive_int, default=100)
    _add_source(top)
    _add_filters(top)
    _add_export(top)
    top.set_defaults(handler=top_delegators_command)

    unbonds = subparsers.add_parser(
        "biggest-unbonds", help="Rank the largest single unbondings"
    )
    unbonds.add_argument("--days", type=float, default=7)
    unbonds.add_argument("--top", type=positive_int, default=10)
    unbonds.add_argument("--validator-id", type=int, default=None)
    _add_export(unbonds)
    unbonds.set_defaults(handler=biggest_unbonds_command)

    analyze = subparsers.add_parser(
        "analyze-validator", help="Individual-delegator summary for one validator"
    )
    analyze.add_argument("validator_id", type=int)
    analyze.add_argument("--months", type=positive_int, default=6)
    _add_source(analyze)
    _add_filters(analyze)
    _add_export(analyze)
    analyze.set_defaults(handler=analyze_validator_command)

    report = subparsers.add_parser("report", help="Render an exported JSON file")
    report.add_argument("path", type=Path)
    report.add_argument("--limit", type=positive_int, default=50)
    _add_export(report)
    report.set_defaults(handler=report_command)

    check = subparsers.add_parser("check-config", help="Show configuration status")
    _add_export(check)
    check.set_defaults(handler=check_config_command)

    return parser


def main(argv: list[str] | None = None, console: Console | None = None) -> int:
    """Run the CLI.

    Returns:
        0 on success, 1 on any unrecovered error
    """
    args = build_parser().parse_args(argv)
    console = console or Console()
    error_console = Console(stderr=True)

    try:
        set_log_level(args.log_level or get_log_level("WARNING"))
        if args.command == "fetch-events" and args.days is None and args.months is None:
            args.days = 2.0

        handler: Handler = args.handler
        document = run(handler(args, console))

        if args.export is not None and document is not None:
            path = args.export or default_export_path(args.command)
            written = write_export(path, document)
            console.print(f"Exported to {written}")
    except EXPECTED_ERRORS as e:
        error_console.print(f"Error: {e}", markup=False, highlight=False)
        return 1
    except Exception as e:
        logger.debug("Unhandled error", exc_info=True)
        error_console.print(f"Error: {e}", markup=False, highlight=False)
        return 1
    return 0


def cli() -> None:
    """Console script entry point."""
    sys.exit(main())


if __name__ == "__main__":
    cli()
