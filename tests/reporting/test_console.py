"""Tests for console rendering."""

from io import StringIO

from rich.console import Console

from stakewatch.analysis.aggregator import aggregate_stakes, rank_by_net_stake, summarize_delegators
from stakewatch.analysis.models import StakeTotals, ValidatorAnalysis
from stakewatch.analysis.pipeline import LogSource, TopDelegatorsReport
from stakewatch.data.events.models import EventKind
from stakewatch.data.staking.models import Validator
from stakewatch.helpers.export import ExportDocument
from stakewatch.reporting.console import (
    format_time,
    pol,
    print_export,
    print_top_delegators,
    print_validator_analysis,
)
from tests.builders import ADDRESS_A, stake_event


def make_console() -> Console:
    return Console(file=StringIO(), width=200, color_system=None)


def output(console: Console) -> str:
    return console.file.getvalue()  # type: ignore[attr-defined]


class TestFormatting:
    """Tests for amount and time formatting."""

    def test_pol(self) -> None:
        """Test amounts show two truncated decimals and the symbol."""
        assert pol(1_234_567_891_000_000_000_000) == "1,234.56 POL"
        assert pol(-5 * 10**17) == "-0.50 POL"

    def test_format_time(self) -> None:
        """Test Unix times render in UTC."""
        assert format_time(0) == "1970-01-01 00:00"
        assert format_time(None) == "-"


class TestPrintTopDelegators:
    """Tests for print_top_delegators function."""

    def test_renders_ranking(self) -> None:
        """Test the table lists addresses and validator names."""
        stakes = aggregate_stakes(
            [stake_event(EventKind.DELEGATION, ADDRESS_A, 3 * 10**18, validator_id=4)]
        )
        ranked = rank_by_net_stake(stakes.values())
        report = TopDelegatorsReport(
            since=0,
            source=LogSource.RPC,
            delegation_count=1,
            address_count=1,
            active_address_count=1,
            ranked=ranked,
            summary=summarize_delegators(ranked),
            validator_names={4: "Four"},
            failed_validators=[9],
            warnings=["check your key"],
        )
        console = make_console()

        print_top_delegators(console, report)

        text = output(console)
        assert ADDRESS_A in text
        assert "3.00 POL" in text
        assert "Four" in text
        assert "check your key" in text
        assert "Unbonds unavailable for 1 validator(s): 9" in text

    def test_empty_ranking(self) -> None:
        """Test an empty ranking says so."""
        console = make_console()

        print_top_delegators(console, TopDelegatorsReport(since=0, source=LogSource.RPC))

        assert "0 delegators to show" in output(console)


class TestPrintValidatorAnalysis:
    """Tests for print_validator_analysis function."""

    def test_percentage_shown_with_stake(self) -> None:
        """Test the percentage row appears when the current stake is known."""
        analysis = ValidatorAnalysis(
            validator_id=4,
            validator=Validator(id=4, name="Four"),
            since=0,
            individual=StakeTotals(delegated_base_units=50, delegation_count=1),
            current_stake_base_units=1000,
        )
        console = make_console()

        print_validator_analysis(console, analysis)

        text = output(console)
        assert "Four" in text
        assert "5.0000%" in text

    def test_percentage_hidden_without_stake(self) -> None:
        """Test no percentage is shown when the validator is unknown."""
        console = make_console()

        print_validator_analysis(console, ValidatorAnalysis(validator_id=4, since=0))

        text = output(console)
        assert "Validator 4" in text
        assert "Percentage change" not in text


class TestPrintExport:
    """Tests for print_export function."""

    def test_limits_rows(self) -> None:
        """Test only the first rows are shown for long exports."""
        document = ExportDocument(
            command="biggest-unbonds",
            parameters={"days": 7.0},
            results=[{"rank": rank, "amount": str(rank)} for rank in range(1, 6)],
        )
        console = make_console()

        print_export(console, document, limit=2)

        text = output(console)
        assert "5 results in file" in text
        assert "Showing first 2 of 5 results" in text
        assert "param: days" in text
