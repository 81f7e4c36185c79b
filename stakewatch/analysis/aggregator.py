"""Net-stake aggregation and rankings over decoded events.

All sums are exact integers in base units.
"""

from collections.abc import Collection, Iterable, Mapping

from stakewatch.analysis.models import (
    AddressStake,
    DelegatorSummary,
    RankedEvent,
    RankedStake,
    StakeTotals,
    ValidatorActivity,
    ValidatorStake,
)
from stakewatch.data.events.models import EventKind, StakeEvent


def aggregate_stakes(events: Iterable[StakeEvent]) -> dict[str, AddressStake]:
    """Sum delegations and unbondings per address and per (address, validator).

    Every address that appears in any event is present in the result, even
    when its net stake is zero or negative.
    """
    stakes: dict[str, AddressStake] = {}
    for event in events:
        stake = stakes.get(event.address)
        if stake is None:
            stake = stakes[event.address] = AddressStake(address=event.address)
        stake.add(event)

        per_validator = stake.per_validator.get(event.validator_id)
        if per_validator is None:
            per_validator = stake.per_validator[event.validator_id] = ValidatorStake(
                validator_id=event.validator_id
            )
        per_validator.add(event)

        if event.timestamp is not None and (
            stake.last_timestamp is None or event.timestamp > stake.last_timestamp
        ):
            stake.last_timestamp = event.timestamp
    return stakes


def active_stakes(stakes: Mapping[str, AddressStake]) -> dict[str, AddressStake]:
    """Drop fully exited positions.

    Validator pairs whose net is not strictly positive are removed from each
    address, and addresses whose overall net is not strictly positive are
    removed entirely. Address totals are left as computed.
    """
    active: dict[str, AddressStake] = {}
    for address, stake in stakes.items():
        if stake.net_base_units <= 0:
            continue
        active[address] = stake.model_copy(
            update={
                "per_validator": {
                    validator_id: per_validator
                    for validator_id, per_validator in stake.per_validator.items()
                    if per_validator.net_base_units > 0
                }
            }
        )
    return active


def rank_by_net_stake(
    stakes: Iterable[AddressStake], top: int | None = None
) -> list[RankedStake]:
    """Rank by net stake, largest first, ties by address ascending."""
    ordered = sorted(stakes, key=lambda stake: (-stake.net_base_units, stake.address))
    if top is not None:
        ordered = ordered[:top]
    return [RankedStake(rank=rank, stake=stake) for rank, stake in enumerate(ordered, 1)]


def rank_unbonds(
    events: Iterable[StakeEvent], top: int | None = None
) -> list[RankedEvent]:
    """Rank single unbonding events by amount, largest first.

    Ties go to the lower address, then the more recent event.
    """
    unbonds = [event for event in events if event.kind == EventKind.UNBONDING]
    unbonds.sort(
        key=lambda event: (
            -event.amount_base_units,
            event.address,
            -(event.timestamp or 0),
            event.validator_id,
        )
    )
    if top is not None:
        unbonds = unbonds[:top]
    return [RankedEvent(rank=rank, event=event) for rank, event in enumerate(unbonds, 1)]


def rank_recent(
    events: Iterable[StakeEvent], top: int | None = None
) -> list[RankedEvent]:
    """Rank events by time, most recent first; undated events go last."""
    ordered = sorted(
        events,
        key=lambda event: (
            event.timestamp is None,
            -(event.timestamp or 0),
            -(event.block_number or 0),
            event.address,
        ),
    )
    if top is not None:
        ordered = ordered[:top]
    return [RankedEvent(rank=rank, event=event) for rank, event in enumerate(ordered, 1)]


def validator_breakdown(events: Iterable[StakeEvent]) -> list[ValidatorActivity]:
    """Count and total events per validator, busiest (by volume) first."""
    activity: dict[int, ValidatorActivity] = {}
    for event in events:
        entry = activity.get(event.validator_id)
        if entry is None:
            entry = activity[event.validator_id] = ValidatorActivity(
                validator_id=event.validator_id
            )
        entry.event_count += 1
        entry.total_base_units += event.amount_base_units
    return sorted(
        activity.values(),
        key=lambda entry: (-entry.total_base_units, entry.validator_id),
    )


def summarize_delegators(ranked: Iterable[RankedStake]) -> DelegatorSummary:
    """Totals over a ranked delegator list."""
    summary = DelegatorSummary()
    validator_ids: set[int] = set()
    for item in ranked:
        summary.delegator_count += 1
        summary.total_net_base_units += item.stake.net_base_units
        summary.total_delegated_base_units += item.stake.delegated_base_units
        summary.total_unbonded_base_units += item.stake.unbonded_base_units
        validator_ids.update(item.stake.per_validator)
    summary.validator_count = len(validator_ids)
    return summary


def totals_for_addresses(
    events: Iterable[StakeEvent], addresses: Collection[str]
) -> tuple[StakeTotals, dict[str, StakeTotals]]:
    """Sum events of the given addresses, overall and per address."""
    overall = StakeTotals()
    per_address: dict[str, StakeTotals] = {}
    for event in events:
        if event.address not in addresses:
            continue
        overall.add(event)
        per_address.setdefault(event.address, StakeTotals()).add(event)
    return overall, per_address


__all__ = [
    "active_stakes",
    "aggregate_stakes",
    "rank_by_net_stake",
    "rank_recent",
    "rank_unbonds",
    "summarize_delegators",
    "totals_for_addresses",
    "validator_breakdown",
]
