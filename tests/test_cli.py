"""Tests for the command line interface."""

from argparse import ArgumentTypeError
from io import StringIO
from pathlib import Path
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from rich.console import Console

from stakewatch.analysis.pipeline import EventReport, LogSource, UnbondReport
from stakewatch.cli import build_parser, main, positive_int
from stakewatch.data.events.models import EventKind
from stakewatch.helpers.errors import StakingAPIError
from stakewatch.helpers.export import ExportDocument, read_export, write_export
from tests.builders import ADDRESS_A


def recording_console() -> Console:
    return Console(file=StringIO(), width=200, color_system=None)


def output(console: Console) -> str:
    return console.file.getvalue()  # type: ignore[attr-defined]


def mock_pipeline() -> MagicMock:
    pipeline = MagicMock()
    pipeline.fetch_events = AsyncMock(
        return_value=EventReport(kind=EventKind.DELEGATION, source=LogSource.RPC, since=0)
    )
    pipeline.biggest_unbonds = AsyncMock(return_value=UnbondReport(since=0))
    return pipeline


class TestParser:
    """Tests for build_parser function."""

    def test_top_delegators_defaults(self) -> None:
        """Test default window, size and filters."""
        args = build_parser().parse_args(["top-delegators"])

        assert args.months == 6
        assert args.top == 100
        assert args.source is None
        assert args.batch_size == 5000
        assert not args.include_exchanges
        assert not args.include_defi
        assert not args.include_institutional
        assert args.export is None

    def test_export_without_path(self) -> None:
        """Test a bare --export asks for a generated file name."""
        args = build_parser().parse_args(["biggest-unbonds", "--export"])

        assert args.export == ""
        assert args.days == 7
        assert args.top == 10

    def test_rpc_urls_repeat(self) -> None:
        """Test --rpc-url can be given more than once."""
        args = build_parser().parse_args(
            ["fetch-events", "--rpc-url", "https://a.rpc", "--rpc-url", "https://b.rpc"]
        )

        assert args.rpc_url == ["https://a.rpc", "https://b.rpc"]
        assert args.kind == "delegation"

    def test_days_and_months_are_exclusive(self) -> None:
        """Test fetch-events rejects both window options."""
        with pytest.raises(SystemExit):
            build_parser().parse_args(["fetch-events", "--days", "1", "--months", "1"])

    def test_analyze_validator_requires_id(self) -> None:
        """Test the validator id is positional and required."""
        assert build_parser().parse_args(["analyze-validator", "7"]).validator_id == 7
        with pytest.raises(SystemExit):
            build_parser().parse_args(["analyze-validator"])

    @pytest.mark.parametrize("value", ["0", "-3"])
    def test_positive_int_rejects(self, value: str) -> None:
        """Test zero and negative values are refused."""
        with pytest.raises(ArgumentTypeError, match="not a positive integer"):
            positive_int(value)

    def test_positive_int_message_reaches_user(self, capsys: pytest.CaptureFixture[str]) -> None:
        """Test argparse shows the type's own message for a bad batch size."""
        with pytest.raises(SystemExit):
            build_parser().parse_args(["top-delegators", "--batch-size", "0"])

        assert "0 is not a positive integer" in capsys.readouterr().err


@pytest.mark.usefixtures("clean_env", "restore_log_level")
class TestMain:
    """Tests for main function."""

    def test_report_renders_export(self, tmp_path: Path) -> None:
        """Test an export file is printed back."""
        path = write_export(
            tmp_path / "top.json",
            ExportDocument(
                command="top-delegators",
                summary={"delegatorsShown": 1},
                results=[{"rank": 1, "address": ADDRESS_A, "netStakeBaseUnits": "5"}],
            ),
        )
        console = recording_console()

        assert main(["report", str(path)], console=console) == 0

        text = output(console)
        assert "top-delegators" in text
        assert ADDRESS_A in text
        assert "netStakeBaseUnits" not in text

    def test_missing_report_file_fails(
        self, tmp_path: Path, capsys: pytest.CaptureFixture[str]
    ) -> None:
        """Test a missing file prints an error and exits non-zero."""
        assert main(["report", str(tmp_path / "missing.json")], console=recording_console()) == 1

        assert "Error:" in capsys.readouterr().err

    def test_check_config_without_key(self) -> None:
        """Test the configuration table without an Etherscan key."""
        console = recording_console()

        assert main(["check-config"], console=console) == 0

        text = output(console)
        assert "not set" in text
        assert "API key not configured" in text

    def test_fetch_events_defaults_to_two_days(self) -> None:
        """Test fetch-events looks back two days when no window is given."""
        pipeline = mock_pipeline()

        with (
            patch("stakewatch.cli.Pipeline.from_env", return_value=pipeline),
            patch("stakewatch.cli.window_start", return_value=123) as mock_window,
        ):
            assert main(["fetch-events", "--source", "rpc"], console=recording_console()) == 0

        mock_window.assert_called_once_with(days=2.0, months=None)
        kwargs = pipeline.fetch_events.call_args.kwargs
        assert kwargs["since"] == 123
        assert kwargs["source"] == LogSource.RPC
        assert kwargs["kind"] == EventKind.DELEGATION

    def test_export_writes_document(self, tmp_path: Path) -> None:
        """Test --export PATH writes the command's results."""
        pipeline = mock_pipeline()
        path = tmp_path / "out" / "unbonds.json"
        console = recording_console()

        with patch("stakewatch.cli.Pipeline.from_env", return_value=pipeline):
            code = main(["biggest-unbonds", "--days", "3", "--export", str(path)], console=console)

        assert code == 0
        document = read_export(path)
        assert document.command == "biggest-unbonds"
        assert document.parameters["days"] == 3.0
        assert "handler" not in document.parameters
        assert f"Exported to {path}" in output(console)

    def test_expected_error_exits_one(self, capsys: pytest.CaptureFixture[str]) -> None:
        """Test a provider error is reported on stderr with exit code 1."""
        pipeline = mock_pipeline()
        pipeline.biggest_unbonds.side_effect = StakingAPIError("Validator 9 not found")

        with patch("stakewatch.cli.Pipeline.from_env", return_value=pipeline):
            code = main(["biggest-unbonds", "--validator-id", "9"], console=recording_console())

        assert code == 1
        assert "Error: Validator 9 not found" in capsys.readouterr().err
