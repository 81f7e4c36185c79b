"""Client for the Polygon staking index API."""

from collections.abc import Sequence

from typing import Any

import httpx
from pydantic import BaseModel, Field, ValidationError
from rich.progress import Progress

from stakewatch.data.events.decoder import decode_unbond_records
from stakewatch.data.events.models import StakeEvent
from stakewatch.data.staking.models import Validator
from stakewatch.helpers.constants import (
    DEFAULT_TIMEOUT,
    STAKING_API_REQUEST_INTERVAL,
    STAKING_API_URL,
)
from stakewatch.helpers.errors import StakingAPIError
from stakewatch.helpers.http import log_and_suppress_errors, retry_with_backoff
from stakewatch.helpers.logging import get_logger
from stakewatch.helpers.rate_limit import IntervalGate


logger = get_logger(__name__)


class UnbondFetchResult(BaseModel):
    """Unbonding events gathered across validators."""

    events: list[StakeEvent] = Field(default_factory=list)
    validators_queried: int = 0
    failed_validators: list[int] = Field(
        default_factory=list, description="Validators whose unbond list could not be fetched"
    )


class StakingAPIClient:
    """Read validator metadata and unbonding lists from the staking API."""

    def __init__(
        self,
        base_url: str = STAKING_API_URL,
        timeout: float = DEFAULT_TIMEOUT,
        *,
        gate: IntervalGate | None = None,
    ) -> None:
        """Initialize the client.

        Args:
            base_url: API root, e.g. ``https://staking-api.polygon.technology/api/v2``
            timeout: Per-request timeout in seconds
            gate: Throttle for this provider
        """
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.gate = gate or IntervalGate(STAKING_API_REQUEST_INTERVAL)

    async def _get_result(self, client: httpx.AsyncClient, path: str) -> Any:
        await self.gate.wait()
        response = await client.get(f"{self.base_url}{path}", timeout=self.timeout)
        response.raise_for_status()
        payload = response.json()
        if not isinstance(payload, dict) or "result" not in payload:
            msg = f"Unexpected staking API response for {path}"
            raise StakingAPIError(msg)
        return payload["result"]

    @retry_with_backoff()
    async def get_validators(self, client: httpx.AsyncClient) -> list[Validator]:
        """Get every validator.

        Raises:
            StakingAPIError: If the response is not a validator list
        """
        result = await self._get_result(client, "/validators")
        if not isinstance(result, list):
            msg = "Validator list is not a list"
            raise StakingAPIError(msg)

        validators: list[Validator] = []
        for entry in result:
            try:
                validators.append(Validator.model_validate(entry))
            except ValidationError as e:
                logger.warning("Skipping malformed validator entry: %s", e.errors()[0]["msg"])
        logger.info("Found %d validators", len(validators))
        return validators

    @retry_with_backoff()
    async def get_validator(
        self, client: httpx.AsyncClient, validator_id: int
    ) -> Validator:
        """Get one validator's metadata.

        Raises:
            StakingAPIError: If the validator is missing or malformed
        """
        result = await self._get_result(client, f"/validators/{validator_id}")
        if not isinstance(result, dict) or not result:
            msg = f"Validator {validator_id} not found"
            raise StakingAPIError(msg)
        try:
            return Validator.model_validate({"id": validator_id, **result})
        except ValidationError as e:
            msg = f"Malformed validator {validator_id}: {e.errors()[0]['msg']}"
            raise StakingAPIError(msg) from e

    @retry_with_backoff()
    async def get_unbonds(
        self, client: httpx.AsyncClient, validator_id: int
    ) -> list[dict[str, Any]]:
        """Get the raw unbonding records of one validator."""
        result = await self._get_result(client, f"/validators/unbonds/{validator_id}")
        if result is None:
            return []
        if not isinstance(result, list):
            msg = f"Unbond list for validator {validator_id} is not a list"
            raise StakingAPIError(msg)
        return result

    async def fetch_unbond_events(
        self,
        client: httpx.AsyncClient,
        validators: Sequence[Validator],
        since: int | None = None,
        progress: Progress | None = None,
    ) -> UnbondFetchResult:
        """Collect unbonding events from every validator, one at a time.

        A validator whose list cannot be fetched is logged, counted in
        ``failed_validators`` and skipped; the rest still contribute.

        Args:
            client: HTTP client instance
            validators: Validators to query
            since: Keep only unbonds started at or after this Unix time
            progress: Optional progress display

        Returns:
            Decoded events and per-validator bookkeeping
        """
        result = UnbondFetchResult()
        task_id = (
            progress.add_task("Fetching unbonds", total=len(validators))
            if progress is not None
            else None
        )

        for validator in validators:
            fetched = False
            async with log_and_suppress_errors(
                f"Fetching unbonds for validator {validator.id}"
            ):
                records = await self.get_unbonds(client, validator.id)
                events = decode_unbond_records(records, validator.id)
                result.events.extend(
                    event
                    for event in events
                    if since is None
                    or (event.timestamp is not None and event.timestamp >= since)
                )
                fetched = True

            result.validators_queried += 1
            if not fetched:
                result.failed_validators.append(validator.id)
            if progress is not None and task_id is not None:
                progress.update(task_id, advance=1)

        logger.info(
            "Found %d unbonding events across %d validators (%d failed)",
            len(result.events),
            result.validators_queried,
            len(result.failed_validators),
        )
        return result


__all__ = [
    "StakingAPIClient",
    "UnbondFetchResult",
]
