"""End-to-end flows: fetch events, aggregate, classify and rank.

Each flow returns a report model that the CLI renders and can turn into an
export document.
"""

import calendar
from collections.abc import Sequence
from datetime import UTC, datetime, timedelta
from enum import StrEnum

from typing import Any

import httpx
from pydantic import BaseModel, Field
from rich.progress import Progress

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
from stakewatch.analysis.classifier import AddressClassifier
from stakewatch.analysis.labels import LabelServiceClient
from stakewatch.analysis.models import (
    DelegatorSummary,
    FilterResult,
    RankedEvent,
    RankedStake,
    ValidatorActivity,
    ValidatorAnalysis,
)
from stakewatch.data.etherscan.client import MISSING_KEY_HELP, EtherscanClient
from stakewatch.data.events.decoder import decode_logs, sort_chronologically
from stakewatch.data.events.fetcher import LogFetcher, LogReader
from stakewatch.data.events.models import EventKind, StakeEvent
from stakewatch.data.events.shapes import SHAPES_BY_KIND
from stakewatch.data.staking.client import StakingAPIClient
from stakewatch.data.staking.models import Validator
from stakewatch.helpers.cache import RunCache
from stakewatch.helpers.config import (
    get_eth_rpc_urls,
    get_etherscan_api_key,
    get_label_api_key,
    get_label_api_url,
    get_staking_api_url,
)
from stakewatch.helpers.constants import DEFAULT_LOG_BATCH_SIZE, RPC_REQUEST_INTERVAL
from stakewatch.helpers.errors import StakingAPIError
from stakewatch.helpers.export import ExportDocument, amount_fields
from stakewatch.helpers.logging import get_logger
from stakewatch.helpers.rate_limit import IntervalGate
from stakewatch.helpers.rpc import RPCClient


logger = get_logger(__name__)


class LogSource(StrEnum):
    """Where on-chain logs are read from."""

    RPC = "rpc"
    ETHERSCAN = "etherscan"


def subtract_months(moment: datetime, months: int) -> datetime:
    """Go back a number of calendar months, clamping to the month's last day."""
    month_index = moment.year * 12 + moment.month - 1 - months
    year, month = divmod(month_index, 12)
    day = min(moment.day, calendar.monthrange(year, month + 1)[1])
    return moment.replace(year=year, month=month + 1, day=day)


def window_start(
    *,
    days: float | None = None,
    months: int | None = None,
    now: datetime | None = None,
) -> int:
    """Unix time at the start of a look-back window ending now.

    Months are calendar months; days may be fractional.
    """
    current = now or datetime.now(UTC)
    start = current
    if months:
        start = subtract_months(start, months)
    if days:
        start = start - timedelta(days=days)
    return int(start.timestamp())


def event_record(
    event: StakeEvent,
    validator_names: dict[int, str] | None = None,
    rank: int | None = None,
) -> dict[str, Any]:
    """Export row for one event."""
    record: dict[str, Any] = {} if rank is None else {"rank": rank}
    record.update(
        {
            "kind": str(event.kind),
            "validatorId": event.validator_id,
            "validatorName": (validator_names or {}).get(event.validator_id),
            "address": event.address,
            **amount_fields("amount", event.amount_base_units),
            "timestamp": event.timestamp,
            "date": event.time.isoformat() if event.time else None,
            "blockNumber": event.block_number,
            "transactionHash": event.transaction_hash,
            "nonce": event.nonce,
            "source": str(event.source),
        }
    )
    return record


def stake_record(
    ranked: RankedStake, validator_names: dict[int, str] | None = None
) -> dict[str, Any]:
    """Export row for one ranked delegator."""
    stake = ranked.stake
    names = validator_names or {}
    classification = ranked.classification
    return {
        "rank": ranked.rank,
        "address": stake.address,
        "category": str(classification.category) if classification else None,
        "name": classification.name if classification else None,
        **amount_fields("netStake", stake.net_base_units),
        **amount_fields("totalDelegated", stake.delegated_base_units),
        **amount_fields("totalUnbonded", stake.unbonded_base_units),
        "delegationCount": stake.delegation_count,
        "unbondingCount": stake.unbonding_count,
        "lastActivity": stake.last_timestamp,
        "validators": [
            {
                "validatorId": per_validator.validator_id,
                "validatorName": names.get(per_validator.validator_id),
                **amount_fields("netStake", per_validator.net_base_units),
            }
            for per_validator in sorted(
                stake.per_validator.values(),
                key=lambda item: (-item.net_base_units, item.validator_id),
            )
        ],
    }


class EventReport(BaseModel):
    """Events of one kind in a time window."""

    kind: EventKind
    source: LogSource
    since: int
    from_block: int | None = None
    to_block: int | None = None
    events: list[StakeEvent] = Field(default_factory=list)
    ranked: list[RankedEvent] = Field(default_factory=list)
    activity: list[ValidatorActivity] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)

    def to_export(self, parameters: dict[str, Any]) -> ExportDocument:
        total = sum(event.amount_base_units for event in self.events)
        return ExportDocument(
            command="fetch-events",
            parameters=parameters,
            summary={
                "eventCount": len(self.events),
                "fromBlock": self.from_block,
                "toBlock": self.to_block,
                **amount_fields("totalAmount", total),
                "validatorCount": len(self.activity),
            },
            results=[event_record(item.event, rank=item.rank) for item in self.ranked],
        )


class TopDelegatorsReport(BaseModel):
    """Delegators ranked by net stake over a window."""

    since: int
    source: LogSource
    delegation_count: int = 0
    unbonding_count: int = 0
    address_count: int = 0
    active_address_count: int = 0
    ranked: list[RankedStake] = Field(default_factory=list)
    summary: DelegatorSummary = Field(default_factory=DelegatorSummary)
    filter_result: FilterResult = Field(default_factory=FilterResult)
    validator_names: dict[int, str] = Field(default_factory=dict)
    failed_validators: list[int] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)

    def to_export(self, parameters: dict[str, Any]) -> ExportDocument:
        return ExportDocument(
            command="top-delegators",
            parameters=parameters,
            summary={
                "delegationEvents": self.delegation_count,
                "unbondingEvents": self.unbonding_count,
                "uniqueAddresses": self.address_count,
                "addressesWithPositiveStake": self.active_address_count,
                "delegatorsShown": self.summary.delegator_count,
                **amount_fields("totalNetStake", self.summary.total_net_base_units),
                "validatorCount": self.summary.validator_count,
                "excludedAddresses": len(self.filter_result.excluded),
                "failedValidators": self.failed_validators,
            },
            results=[stake_record(item, self.validator_names) for item in self.ranked],
        )


class UnbondReport(BaseModel):
    """Largest single unbondings over a window."""

    since: int
    validator_id: int | None = None
    validators_queried: int = 0
    unbonding_count: int = 0
    ranked: list[RankedEvent] = Field(default_factory=list)
    validator_names: dict[int, str] = Field(default_factory=dict)
    failed_validators: list[int] = Field(default_factory=list)

    def to_export(self, parameters: dict[str, Any]) -> ExportDocument:
        return ExportDocument(
            command="biggest-unbonds",
            parameters=parameters,
            summary={
                "validatorsQueried": self.validators_queried,
                "unbondingEvents": self.unbonding_count,
                "shown": len(self.ranked),
                "failedValidators": self.failed_validators,
            },
            results=[
                event_record(item.event, self.validator_names, rank=item.rank)
                for item in self.ranked
            ],
        )


def validator_analysis_export(
    analysis: ValidatorAnalysis, parameters: dict[str, Any]
) -> ExportDocument:
    """Export document for a per-validator analysis."""
    percentage = analysis.percentage_change
    return ExportDocument(
        command="analyze-validator",
        parameters=parameters,
        summary={
            "validatorId": analysis.validator_id,
            "validatorName": analysis.validator.display_name if analysis.validator else None,
            **amount_fields("totalDelegated", analysis.individual.delegated_base_units),
            **amount_fields("totalUnbonded", analysis.individual.unbonded_base_units),
            **amount_fields("netChange", analysis.individual.net_base_units),
            **amount_fields("currentStake", analysis.current_stake_base_units),
            **amount_fields("selfStake", analysis.self_stake_base_units),
            **amount_fields("delegatedStake", analysis.delegated_stake_base_units),
            "percentageChange": None if percentage is None else round(percentage, 4),
            "delegationEvents": analysis.individual.delegation_count,
            "unbondingEvents": analysis.individual.unbonding_count,
            "unfilteredDelegationEvents": analysis.unfiltered_delegation_count,
            "unfilteredUnbondingEvents": analysis.unfiltered_unbonding_count,
            "individualDelegators": analysis.individual_delegator_count,
        },
        results=[
            {
                "address": address,
                **amount_fields("delegated", totals.delegated_base_units),
                **amount_fields("unbonded", totals.unbonded_base_units),
                **amount_fields("net", totals.net_base_units),
            }
            for address, totals in sorted(
                analysis.per_address.items(),
                key=lambda item: (-item[1].net_base_units, item[0]),
            )
        ],
    )


class Pipeline:
    """Wires the provider clients, fetcher and classifier for one run."""

    def __init__(
        self,
        *,
        rpc: RPCClient,
        etherscan: EtherscanClient,
        staking: StakingAPIClient,
        classifier: AddressClassifier,
        cache: RunCache,
        batch_size: int = DEFAULT_LOG_BATCH_SIZE,
    ) -> None:
        self.rpc = rpc
        self.etherscan = etherscan
        self.staking = staking
        self.classifier = classifier
        self.cache = cache
        self.batch_size = batch_size

    @classmethod
    def from_env(
        cls,
        rpc_urls: list[str] | None = None,
        batch_size: int = DEFAULT_LOG_BATCH_SIZE,
        cache: RunCache | None = None,
    ) -> "Pipeline":
        """Build a pipeline from environment configuration."""
        cache = cache if cache is not None else RunCache()
        label_service = LabelServiceClient(get_label_api_key(), get_label_api_url())
        if not label_service.is_configured:
            logger.debug("No label service key, classifying from the static table only")
        return cls(
            rpc=RPCClient(get_eth_rpc_urls(rpc_urls), gate=IntervalGate(RPC_REQUEST_INTERVAL)),
            etherscan=EtherscanClient(get_etherscan_api_key()),
            staking=StakingAPIClient(get_staking_api_url()),
            classifier=AddressClassifier(cache=cache, label_service=label_service),
            cache=cache,
            batch_size=batch_size,
        )

    def resolve_source(self, requested: LogSource | None) -> LogSource:
        """Use Etherscan when asked or when a key is set, else JSON-RPC."""
        if requested is not None:
            return requested
        return LogSource.ETHERSCAN if self.etherscan.is_configured else LogSource.RPC

    def fetcher(self, source: LogSource) -> LogFetcher:
        """Log fetcher reading from the given source."""
        reader: LogReader = self.etherscan if source == LogSource.ETHERSCAN else self.rpc
        return LogFetcher(
            reader,
            batch_size=self.batch_size,
            indexer=self.etherscan if self.etherscan.is_configured else None,
            cache=self.cache,
        )

    async def _validator_names(
        self, client: httpx.AsyncClient
    ) -> tuple[list[Validator], dict[int, str]]:
        validators = await self.staking.get_validators(client)
        return validators, {validator.id: validator.display_name for validator in validators}

    async def fetch_events(
        self,
        client: httpx.AsyncClient,
        *,
        kind: EventKind,
        since: int,
        source: LogSource | None = None,
        validator_id: int | None = None,
        top: int | None = None,
        with_timestamps: bool = False,
        progress: Progress | None = None,
    ) -> EventReport:
        """Fetch and decode on-chain events of one kind since a time.

        With Etherscan selected but no key configured, the report is empty
        and carries a warning instead of failing.
        """
        source = self.resolve_source(source)
        report = EventReport(kind=kind, source=source, since=since)
        if source == LogSource.ETHERSCAN and not self.etherscan.is_configured:
            logger.warning(MISSING_KEY_HELP)
            report.warnings.append(MISSING_KEY_HELP)
            return report

        fetcher = self.fetcher(source)
        shape = SHAPES_BY_KIND[kind]
        from_block, to_block = await fetcher.resolve_block_range(client, since)
        logs = await fetcher.fetch_logs(
            client, shape.log_filter(validator_id), from_block, to_block, progress
        )
        events = decode_logs(logs, shape.source)
        if with_timestamps:
            events = await fetcher.attach_timestamps(client, events)
        events = [
            event for event in events if event.timestamp is None or event.timestamp >= since
        ]

        report.from_block = from_block
        report.to_block = to_block
        report.events = sort_chronologically(events)
        report.ranked = rank_recent(report.events, top)
        report.activity = validator_breakdown(report.events)
        logger.info("%d %s events found", len(report.events), kind)
        return report

    async def top_delegators(
        self,
        client: httpx.AsyncClient,
        *,
        since: int,
        top: int | None = None,
        source: LogSource | None = None,
        include_exchanges: bool = False,
        include_defi: bool = False,
        include_institutional: bool = False,
        progress: Progress | None = None,
    ) -> TopDelegatorsReport:
        """Rank addresses by net stake: on-chain delegations minus API unbonds."""
        delegations = await self.fetch_events(
            client,
            kind=EventKind.DELEGATION,
            since=since,
            source=source,
            progress=progress,
        )
        validators, names = await self._validator_names(client)
        unbonds = await self.staking.fetch_unbond_events(
            client, validators, since=since, progress=progress
        )

        stakes = aggregate_stakes([*delegations.events, *unbonds.events])
        active = active_stakes(stakes)
        filter_result = await self.classifier.filter_addresses_remote(
            client,
            active,
            exclude_exchanges=not include_exchanges,
            exclude_defi=not include_defi,
            exclude_institutional=not include_institutional,
        )
        kept = set(filter_result.kept)
        ranked = rank_by_net_stake(
            (stake for address, stake in active.items() if address in kept), top
        )
        for item in ranked:
            item.classification = filter_result.classifications.get(item.stake.address)

        return TopDelegatorsReport(
            since=since,
            source=delegations.source,
            delegation_count=len(delegations.events),
            unbonding_count=len(unbonds.events),
            address_count=len(stakes),
            active_address_count=len(active),
            ranked=ranked,
            summary=summarize_delegators(ranked),
            filter_result=filter_result,
            validator_names=names,
            failed_validators=unbonds.failed_validators,
            warnings=delegations.warnings,
        )

    async def biggest_unbonds(
        self,
        client: httpx.AsyncClient,
        *,
        since: int,
        top: int | None = None,
        validator_id: int | None = None,
        progress: Progress | None = None,
    ) -> UnbondReport:
        """Rank single unbondings by amount, across all validators or one."""
        if validator_id is None:
            validators, names = await self._validator_names(client)
        else:
            validator = await self.staking.get_validator(client, validator_id)
            validators, names = [validator], {validator.id: validator.display_name}

        unbonds = await self.staking.fetch_unbond_events(
            client, validators, since=since, progress=progress
        )
        return UnbondReport(
            since=since,
            validator_id=validator_id,
            validators_queried=unbonds.validators_queried,
            unbonding_count=len(unbonds.events),
            ranked=rank_unbonds(unbonds.events, top),
            validator_names=names,
            failed_validators=unbonds.failed_validators,
        )

    async def analyze_validator(
        self,
        client: httpx.AsyncClient,
        validator_id: int,
        *,
        since: int,
        source: LogSource | None = None,
        include_exchanges: bool = False,
        include_defi: bool = False,
        include_institutional: bool = False,
        progress: Progress | None = None,
    ) -> ValidatorAnalysis:
        """Stake movement of individual delegators for one validator."""
        validator: Validator | None
        try:
            validator = await self.staking.get_validator(client, validator_id)
        except (httpx.HTTPError, StakingAPIError) as e:
            logger.warning("Could not fetch validator %d info: %s", validator_id, e)
            validator = None

        unbonds = await self.staking.fetch_unbond_events(
            client, [validator or Validator(id=validator_id)], since=since
        )
        delegations = await self.fetch_events(
            client,
            kind=EventKind.DELEGATION,
            since=since,
            source=source,
            validator_id=validator_id,
            progress=progress,
        )

        events: Sequence[StakeEvent] = [*delegations.events, *unbonds.events]
        filter_result = await self.classifier.filter_addresses_remote(
            client,
            (event.address for event in events),
            exclude_exchanges=not include_exchanges,
            exclude_defi=not include_defi,
            exclude_institutional=not include_institutional,
        )
        individual, per_address = totals_for_addresses(events, set(filter_result.kept))

        return ValidatorAnalysis(
            validator_id=validator_id,
            validator=validator,
            since=since,
            individual=individual,
            per_address=per_address,
            unfiltered_delegation_count=len(delegations.events),
            unfiltered_unbonding_count=len(unbonds.events),
            individual_delegator_count=len(filter_result.kept),
            filter_result=filter_result,
            current_stake_base_units=(validator.total_staked or 0) if validator else 0,
            self_stake_base_units=(validator.self_stake or 0) if validator else 0,
        )


__all__ = [
    "EventReport",
    "LogSource",
    "Pipeline",
    "TopDelegatorsReport",
    "UnbondReport",
    "event_record",
    "stake_record",
    "subtract_months",
    "validator_analysis_export",
    "window_start",
]
