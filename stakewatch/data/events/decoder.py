"""Decode raw logs and staking API records into StakeEvents.

Each wire format has one narrow decoder, chosen by an explicit
``EventSource`` tag. A record that does not match its declared shape is
dropped with a warning; it never aborts the rest of the batch.
"""

from collections.abc import Iterable, Mapping

from typing import Any

from stakewatch.data.events.models import EventKind, EventSource, StakeEvent
from stakewatch.data.events.shapes import LOG_SHAPES, LogEventShape
from stakewatch.data.staking.models import StakingUnbond
from stakewatch.helpers.logging import get_logger
from stakewatch.helpers.parsers import (
    decode_address_topic,
    decode_uint_topic,
    split_data_words,
)
from stakewatch.helpers.rpc_models import RawLog


logger = get_logger(__name__)


def decode_log(log: RawLog, shape: LogEventShape) -> StakeEvent:
    """Decode one raw log with a known event shape.

    Raises:
        ValueError: If the log does not match the shape (wrong signature,
            missing topics, malformed hex or too few data words)
    """
    if len(log.topics) < shape.topic_count:
        msg = f"{shape.name} needs {shape.topic_count} topics, got {len(log.topics)}"
        raise ValueError(msg)

    if log.topics[0].lower() != shape.topic0:
        msg = f"Log signature {log.topics[0]} is not {shape.name}"
        raise ValueError(msg)

    words = split_data_words(log.data)
    if len(words) < shape.data_words:
        msg = f"{shape.name} needs {shape.data_words} data words, got {len(words)}"
        raise ValueError(msg)

    return StakeEvent(
        kind=shape.kind,
        validator_id=decode_uint_topic(log.topics[shape.validator_topic]),
        address=decode_address_topic(log.topics[shape.address_topic]),
        amount_base_units=words[shape.amount_slot],
        source=shape.source,
        block_number=log.block,
        transaction_hash=log.transaction_hash,
        timestamp=log.timestamp,
    )


def decode_logs(logs: Iterable[RawLog], source: EventSource) -> list[StakeEvent]:
    """Decode a batch of logs of one event type, skipping undecodable ones.

    Args:
        logs: Raw logs as returned by the fetcher
        source: Which log event the batch holds

    Returns:
        Decoded events in input order

    Raises:
        ValueError: If the source is not a log-based event
    """
    shape = LOG_SHAPES.get(source)
    if shape is None:
        msg = f"{source} is not a log event source"
        raise ValueError(msg)

    events: list[StakeEvent] = []
    for log in logs:
        try:
            events.append(decode_log(log, shape))
        except ValueError as e:
            logger.warning(
                "Dropping %s log in tx %s: %s",
                shape.name,
                log.transaction_hash,
                e,
            )
    return events


def decode_unbond_record(record: Mapping[str, Any], validator_id: int) -> StakeEvent:
    """Decode one staking API unbond record for a validator.

    Raises:
        ValueError: If the record does not have the expected fields
    """
    unbond = StakingUnbond.model_validate(record)
    return StakeEvent(
        kind=EventKind.UNBONDING,
        validator_id=validator_id,
        address=unbond.user,
        amount_base_units=unbond.amount,
        source=EventSource.STAKING_API_UNBOND,
        timestamp=unbond.unbond_started_timestamp,
        nonce=unbond.nonce,
    )


def decode_unbond_records(
    records: Iterable[Mapping[str, Any]], validator_id: int
) -> list[StakeEvent]:
    """Decode a validator's unbond list, skipping malformed records."""
    events: list[StakeEvent] = []
    for record in records:
        try:
            events.append(decode_unbond_record(record, validator_id))
        except ValueError as e:
            logger.warning(
                "Dropping unbond record for validator %d: %s", validator_id, e
            )
    return events


def sort_chronologically(events: Iterable[StakeEvent]) -> list[StakeEvent]:
    """Stable sort by timestamp, then block number; unknown times go last."""
    return sorted(
        events,
        key=lambda event: (
            event.timestamp is None,
            event.timestamp or 0,
            event.block_number or 0,
        ),
    )


__all__ = [
    "decode_log",
    "decode_logs",
    "decode_unbond_record",
    "decode_unbond_records",
    "sort_chronologically",
]
