"""Pydantic models for classification and stake aggregation results."""

from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field, computed_field

from stakewatch.data.events.models import EventKind, StakeEvent
from stakewatch.data.staking.models import Validator


class Category(StrEnum):
    """What kind of holder an address is."""

    EXCHANGE = "exchange"
    DEFI = "defi"
    INSTITUTIONAL = "institutional"
    INDIVIDUAL = "individual"
    UNKNOWN = "unknown"


class ClassificationSource(StrEnum):
    """Where a classification came from."""

    STATIC_LIST = "static_list"
    DEFAULT = "default"
    LABEL_SERVICE = "label_service"


class AddressClassification(BaseModel):
    """Classification of one address."""

    address: str = Field(..., description="Lower-cased address")
    category: Category
    source: ClassificationSource
    name: str | None = Field(default=None, description="Entity name when known")

    model_config = ConfigDict(frozen=True)


class StakeTotals(BaseModel):
    """Delegated and unbonded sums in base units."""

    delegated_base_units: int = 0
    unbonded_base_units: int = 0
    delegation_count: int = 0
    unbonding_count: int = 0

    @computed_field  # type: ignore[prop-decorator]
    @property
    def net_base_units(self) -> int:
        """Delegated minus unbonded; negative means more left than came in."""
        return self.delegated_base_units - self.unbonded_base_units

    def add(self, event: StakeEvent) -> None:
        """Fold one event into the totals."""
        if event.kind == EventKind.DELEGATION:
            self.delegated_base_units += event.amount_base_units
            self.delegation_count += 1
        else:
            self.unbonded_base_units += event.amount_base_units
            self.unbonding_count += 1


class ValidatorStake(StakeTotals):
    """Totals of one address scoped to one validator."""

    validator_id: int


class AddressStake(StakeTotals):
    """Totals of one address across all validators."""

    address: str
    per_validator: dict[int, ValidatorStake] = Field(default_factory=dict)
    last_timestamp: int | None = Field(
        default=None, description="Unix time of the most recent event, if known"
    )

    @property
    def validator_ids(self) -> list[int]:
        """Validators this address still has positive net stake with."""
        return sorted(
            validator_id
            for validator_id, stake in self.per_validator.items()
            if stake.net_base_units > 0
        )


class RankedStake(BaseModel):
    """An address stake at a position in a ranking."""

    rank: int = Field(..., ge=1)
    stake: AddressStake
    classification: AddressClassification | None = None


class RankedEvent(BaseModel):
    """A single event at a position in a ranking."""

    rank: int = Field(..., ge=1)
    event: StakeEvent


class ValidatorActivity(BaseModel):
    """Event count and volume for one validator."""

    validator_id: int
    event_count: int = 0
    total_base_units: int = 0


class DelegatorSummary(BaseModel):
    """Totals over a ranked list of delegators."""

    delegator_count: int = 0
    total_net_base_units: int = 0
    total_delegated_base_units: int = 0
    total_unbonded_base_units: int = 0
    validator_count: int = 0


class FilterResult(BaseModel):
    """Outcome of classifying and filtering a set of addresses."""

    kept: list[str] = Field(
        default_factory=list, description="Addresses that passed the filter"
    )
    excluded: list[AddressClassification] = Field(default_factory=list)
    classifications: dict[str, AddressClassification] = Field(default_factory=dict)
    counts: dict[Category, int] = Field(
        default_factory=lambda: dict.fromkeys(Category, 0)
    )

    @property
    def total(self) -> int:
        """Number of distinct addresses examined."""
        return len(self.classifications)

    def excluded_in(self, category: Category) -> list[AddressClassification]:
        """Excluded addresses of one category."""
        return [item for item in self.excluded if item.category == category]


class ValidatorAnalysis(BaseModel):
    """Individual-delegator stake movement for one validator."""

    validator_id: int
    validator: Validator | None = None
    since: int = Field(..., description="Unix time the window starts at")
    individual: StakeTotals = Field(default_factory=StakeTotals)
    per_address: dict[str, StakeTotals] = Field(default_factory=dict)
    unfiltered_delegation_count: int = 0
    unfiltered_unbonding_count: int = 0
    individual_delegator_count: int = 0
    filter_result: FilterResult = Field(default_factory=FilterResult)
    current_stake_base_units: int = 0
    self_stake_base_units: int = 0

    @computed_field  # type: ignore[prop-decorator]
    @property
    def delegated_stake_base_units(self) -> int:
        """Stake not owned by the validator itself."""
        return max(0, self.current_stake_base_units - self.self_stake_base_units)

    @property
    def percentage_change(self) -> float | None:
        """Net individual change relative to the current stake, in percent."""
        if self.current_stake_base_units <= 0:
            return None
        return self.individual.net_base_units * 100 / self.current_stake_base_units


__all__ = [
    "AddressClassification",
    "AddressStake",
    "Category",
    "ClassificationSource",
    "DelegatorSummary",
    "FilterResult",
    "RankedEvent",
    "RankedStake",
    "StakeTotals",
    "ValidatorActivity",
    "ValidatorAnalysis",
    "ValidatorStake",
]
