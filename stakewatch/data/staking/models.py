"""Models for the Polygon staking index API."""

from decimal import Decimal, InvalidOperation

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator


def _base_units(value: Any) -> int:
    """Accept an integer amount of base units given as int, digit string or float.

    Large amounts arrive as JSON floats; those are read through their decimal
    repr and must still be whole numbers.
    """
    if isinstance(value, bool):
        msg = "Amount cannot be a boolean"
        raise ValueError(msg)
    if isinstance(value, int):
        return value
    if isinstance(value, str) and value.strip().isdigit():
        return int(value.strip())
    if isinstance(value, float):
        try:
            amount = Decimal(repr(value))
        except InvalidOperation as e:
            msg = f"Invalid amount: {value!r}"
            raise ValueError(msg) from e
        if amount.is_finite() and amount == amount.to_integral_value():
            return int(amount)
    msg = f"Expected integer base units, got {value!r}"
    raise ValueError(msg)


class Validator(BaseModel):
    """Validator metadata from ``/validators``."""

    id: int
    name: str | None = None
    owner: str | None = None
    signer: str | None = None
    status: str | None = None
    total_staked: int | None = Field(default=None, alias="totalStaked")
    self_stake: int | None = Field(default=None, alias="selfStake")
    delegated_stake: int | None = Field(default=None, alias="delegatedStake")
    commission_percent: float | None = Field(default=None, alias="commissionPercent")

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    @field_validator("total_staked", "self_stake", "delegated_stake", mode="before")
    @classmethod
    def _stake_base_units(cls, value: Any) -> int | None:
        if value is None:
            return None
        return _base_units(value)

    @property
    def display_name(self) -> str:
        """Name to show in reports."""
        return self.name or f"Validator {self.id}"


class StakingUnbond(BaseModel):
    """One record of ``/validators/unbonds/{id}``."""

    user: str
    amount: int
    unbond_started_timestamp: int = Field(..., alias="unbondStartedTimeStamp")
    nonce: int | None = None

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    @field_validator("amount", "unbond_started_timestamp", mode="before")
    @classmethod
    def _integer(cls, value: Any) -> int:
        return _base_units(value)


__all__ = [
    "StakingUnbond",
    "Validator",
]
