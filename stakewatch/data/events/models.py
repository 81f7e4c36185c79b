"""Pydantic models for decoded staking events."""

from datetime import UTC, datetime
from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field, field_validator

from stakewatch.helpers.parsers import format_units, normalize_address


class EventKind(StrEnum):
    """Direction of a stake movement."""

    DELEGATION = "delegation"
    UNBONDING = "unbonding"


class EventSource(StrEnum):
    """Wire format an event was decoded from; selects the decoder."""

    SHARE_MINTED = "share_minted"
    UNSTAKE_INIT = "unstake_init"
    STAKING_API_UNBOND = "staking_api_unbond"


class StakeEvent(BaseModel):
    """A single delegation or unbonding, decoded once and never mutated."""

    kind: EventKind
    validator_id: int = Field(..., ge=0)
    address: str
    amount_base_units: int = Field(..., ge=0)
    source: EventSource
    block_number: int | None = None
    transaction_hash: str | None = None
    timestamp: int | None = Field(default=None, description="Unix seconds")
    nonce: int | None = None

    model_config = ConfigDict(frozen=True)

    @field_validator("address")
    @classmethod
    def _lower_address(cls, value: str) -> str:
        return normalize_address(value)

    @property
    def amount(self) -> str:
        """Amount in display units as an exact decimal string."""
        return format_units(self.amount_base_units)

    @property
    def time(self) -> datetime | None:
        """Event time as an aware UTC datetime."""
        if self.timestamp is None:
            return None
        return datetime.fromtimestamp(self.timestamp, tz=UTC)


__all__ = [
    "EventKind",
    "EventSource",
    "StakeEvent",
]
