"""Layouts of the staking manager events this project decodes."""

from pydantic import BaseModel, ConfigDict

from stakewatch.data.events.models import EventKind, EventSource
from stakewatch.helpers.constants import (
    SHARE_MINTED_TOPIC,
    STAKING_MANAGER_CONTRACT,
    UNSTAKE_INIT_TOPIC,
)
from stakewatch.helpers.parsers import encode_uint_topic
from stakewatch.helpers.rpc_models import LogFilter


class LogEventShape(BaseModel):
    """Where each field of one event lives in a raw log.

    Topic indexes count from 0 (the signature). Data slots are 32-byte words
    of the ``data`` blob in declaration order.
    """

    name: str
    source: EventSource
    kind: EventKind
    topic0: str
    validator_topic: int
    address_topic: int
    amount_slot: int = 0
    data_words: int = 1
    contract: str = STAKING_MANAGER_CONTRACT

    model_config = ConfigDict(frozen=True)

    @property
    def topic_count(self) -> int:
        """Number of topics a well-formed log of this event carries."""
        return max(self.validator_topic, self.address_topic) + 1

    def log_filter(self, validator_id: int | None = None) -> LogFilter:
        """Build a log filter for this event, optionally for one validator."""
        topics: list[str | None] = [self.topic0] + [None] * (self.topic_count - 1)
        if validator_id is not None:
            topics[self.validator_topic] = encode_uint_topic(validator_id)
        while len(topics) > 1 and topics[-1] is None:
            topics.pop()
        return LogFilter(address=self.contract, topics=topics)


# ShareMinted(uint256 indexed validatorId, address indexed user, uint256 amount, uint256 tokens)
SHARE_MINTED = LogEventShape(
    name="ShareMinted",
    source=EventSource.SHARE_MINTED,
    kind=EventKind.DELEGATION,
    topic0=SHARE_MINTED_TOPIC,
    validator_topic=1,
    address_topic=2,
    amount_slot=0,
    data_words=2,
)

# UnstakeInit(address indexed user, uint256 indexed validatorId, uint256 amount, uint256 deactivationEpoch)
UNSTAKE_INIT = LogEventShape(
    name="UnstakeInit",
    source=EventSource.UNSTAKE_INIT,
    kind=EventKind.UNBONDING,
    topic0=UNSTAKE_INIT_TOPIC,
    validator_topic=2,
    address_topic=1,
    amount_slot=0,
    data_words=2,
)

LOG_SHAPES: dict[EventSource, LogEventShape] = {
    SHARE_MINTED.source: SHARE_MINTED,
    UNSTAKE_INIT.source: UNSTAKE_INIT,
}

SHAPES_BY_KIND: dict[EventKind, LogEventShape] = {
    SHARE_MINTED.kind: SHARE_MINTED,
    UNSTAKE_INIT.kind: UNSTAKE_INIT,
}


__all__ = [
    "LOG_SHAPES",
    "SHAPES_BY_KIND",
    "SHARE_MINTED",
    "UNSTAKE_INIT",
    "LogEventShape",
]
