"""Tests for net-stake aggregation and rankings."""

import pytest

from stakewatch.analysis.aggregator import (
    active_stakes,
    aggregate_stakes,
    rank_by_net_stake,
    rank_recent,
    rank_unbonds,
    summarize_delegators,
    totals_for_addresses,
    validator_breakdown,
)
from stakewatch.data.events.models import EventKind
from tests.builders import ADDRESS_A, ADDRESS_B, ADDRESS_C, stake_event


DELEGATION = EventKind.DELEGATION
UNBONDING = EventKind.UNBONDING


class TestAggregateStakes:
    """Tests for aggregate_stakes function."""

    def test_delegations_minus_unbonds(self) -> None:
        """Test three delegations and one unbond net out exactly."""
        events = [
            stake_event(DELEGATION, ADDRESS_A, 100),
            stake_event(DELEGATION, ADDRESS_A, 200),
            stake_event(DELEGATION, ADDRESS_A, 50),
            stake_event(UNBONDING, ADDRESS_A, 80),
        ]

        stake = aggregate_stakes(events)[ADDRESS_A]

        assert stake.delegated_base_units == 350
        assert stake.unbonded_base_units == 80
        assert stake.net_base_units == 270
        assert stake.delegation_count == 3
        assert stake.unbonding_count == 1

    @pytest.mark.parametrize(
        "events",
        [
            [stake_event(UNBONDING, ADDRESS_B, 40)],
            [
                stake_event(DELEGATION, ADDRESS_B, 10, validator_id=1),
                stake_event(UNBONDING, ADDRESS_B, 10, validator_id=2),
            ],
            [
                stake_event(DELEGATION, ADDRESS_B, 10**30),
                stake_event(DELEGATION, ADDRESS_B, 1),
                stake_event(UNBONDING, ADDRESS_B, 10**29),
            ],
        ],
    )
    def test_net_is_delegated_minus_unbonded(self, events: list) -> None:
        """Test net equals delegated minus unbonded, including negative nets."""
        stake = aggregate_stakes(events)[ADDRESS_B]

        assert stake.net_base_units == stake.delegated_base_units - stake.unbonded_base_units

    def test_unbond_only_address_is_kept(self) -> None:
        """Test an address with no delegations in the window is still present."""
        stakes = aggregate_stakes([stake_event(UNBONDING, ADDRESS_C, 40)])

        assert stakes[ADDRESS_C].net_base_units == -40

    def test_per_validator_totals(self) -> None:
        """Test totals are also kept per validator."""
        events = [
            stake_event(DELEGATION, ADDRESS_A, 100, validator_id=1),
            stake_event(DELEGATION, ADDRESS_A, 30, validator_id=2),
            stake_event(UNBONDING, ADDRESS_A, 30, validator_id=2),
        ]

        stake = aggregate_stakes(events)[ADDRESS_A]

        assert stake.per_validator[1].net_base_units == 100
        assert stake.per_validator[2].net_base_units == 0
        assert stake.validator_ids == [1]
        assert stake.net_base_units == 100

    def test_tracks_last_timestamp(self) -> None:
        """Test the most recent known event time is kept."""
        events = [
            stake_event(DELEGATION, ADDRESS_A, 1, timestamp=300),
            stake_event(DELEGATION, ADDRESS_A, 1, timestamp=None),
            stake_event(DELEGATION, ADDRESS_A, 1, timestamp=200),
        ]

        assert aggregate_stakes(events)[ADDRESS_A].last_timestamp == 300


class TestActiveStakes:
    """Tests for active_stakes function."""

    def test_drops_exited_positions(self) -> None:
        """Test non-positive addresses and validator pairs are removed."""
        stakes = aggregate_stakes(
            [
                stake_event(DELEGATION, ADDRESS_A, 100, validator_id=1),
                stake_event(DELEGATION, ADDRESS_A, 50, validator_id=2),
                stake_event(UNBONDING, ADDRESS_A, 60, validator_id=2),
                stake_event(DELEGATION, ADDRESS_B, 20),
                stake_event(UNBONDING, ADDRESS_B, 20),
                stake_event(UNBONDING, ADDRESS_C, 5),
            ]
        )

        active = active_stakes(stakes)

        assert list(active) == [ADDRESS_A]
        assert list(active[ADDRESS_A].per_validator) == [1]
        assert active[ADDRESS_A].net_base_units == 90
        # Input is left untouched
        assert list(stakes[ADDRESS_A].per_validator) == [1, 2]


class TestRankings:
    """Tests for ranking functions."""

    def test_rank_by_net_stake_breaks_ties_by_address(self) -> None:
        """Test equal nets order by address and ranks start at 1."""
        stakes = aggregate_stakes(
            [
                stake_event(DELEGATION, ADDRESS_C, 50),
                stake_event(DELEGATION, ADDRESS_B, 50),
                stake_event(DELEGATION, ADDRESS_A, 10),
            ]
        )

        ranked = rank_by_net_stake(stakes.values())

        assert [item.stake.address for item in ranked] == [ADDRESS_B, ADDRESS_C, ADDRESS_A]
        assert [item.rank for item in ranked] == [1, 2, 3]

    def test_rank_by_net_stake_top(self) -> None:
        """Test the ranking is truncated to top."""
        stakes = aggregate_stakes(
            [stake_event(DELEGATION, address, 1) for address in (ADDRESS_A, ADDRESS_B, ADDRESS_C)]
        )

        assert len(rank_by_net_stake(stakes.values(), top=2)) == 2

    def test_rank_unbonds_ignores_delegations(self) -> None:
        """Test only unbonding events are ranked, largest first."""
        events = [
            stake_event(DELEGATION, ADDRESS_A, 10**24),
            stake_event(UNBONDING, ADDRESS_B, 5, timestamp=100),
            stake_event(UNBONDING, ADDRESS_C, 9, timestamp=50),
            stake_event(UNBONDING, ADDRESS_B, 5, timestamp=200),
        ]

        ranked = rank_unbonds(events)

        assert [item.event.amount_base_units for item in ranked] == [9, 5, 5]
        # Same amount and address: more recent first
        assert [item.event.timestamp for item in ranked[1:]] == [200, 100]

    def test_rank_recent_puts_undated_last(self) -> None:
        """Test newest events come first and undated ones trail."""
        events = [
            stake_event(DELEGATION, ADDRESS_A, 1, timestamp=None, block_number=5),
            stake_event(DELEGATION, ADDRESS_B, 1, timestamp=100),
            stake_event(DELEGATION, ADDRESS_C, 1, timestamp=300),
        ]

        ranked = rank_recent(events, top=10)

        assert [item.event.address for item in ranked] == [ADDRESS_C, ADDRESS_B, ADDRESS_A]


class TestBreakdownsAndTotals:
    """Tests for per-validator breakdowns, summaries and address totals."""

    def test_validator_breakdown(self) -> None:
        """Test events are counted and summed per validator by volume."""
        events = [
            stake_event(DELEGATION, ADDRESS_A, 10, validator_id=1),
            stake_event(DELEGATION, ADDRESS_B, 15, validator_id=1),
            stake_event(DELEGATION, ADDRESS_A, 100, validator_id=2),
        ]

        breakdown = validator_breakdown(events)

        assert [(entry.validator_id, entry.event_count, entry.total_base_units) for entry in breakdown] == [
            (2, 1, 100),
            (1, 2, 25),
        ]

    def test_summarize_delegators(self) -> None:
        """Test ranked delegators are summed."""
        stakes = aggregate_stakes(
            [
                stake_event(DELEGATION, ADDRESS_A, 100, validator_id=1),
                stake_event(UNBONDING, ADDRESS_A, 30, validator_id=1),
                stake_event(DELEGATION, ADDRESS_B, 50, validator_id=2),
            ]
        )

        summary = summarize_delegators(rank_by_net_stake(stakes.values()))

        assert summary.delegator_count == 2
        assert summary.total_net_base_units == 120
        assert summary.total_delegated_base_units == 150
        assert summary.total_unbonded_base_units == 30
        assert summary.validator_count == 2

    def test_totals_for_addresses(self) -> None:
        """Test only the given addresses are summed."""
        events = [
            stake_event(DELEGATION, ADDRESS_A, 100),
            stake_event(UNBONDING, ADDRESS_A, 40),
            stake_event(DELEGATION, ADDRESS_B, 999),
        ]

        overall, per_address = totals_for_addresses(events, {ADDRESS_A})

        assert overall.net_base_units == 60
        assert list(per_address) == [ADDRESS_A]
        assert per_address[ADDRESS_A].unbonding_count == 1
