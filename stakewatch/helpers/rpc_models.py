"""Pydantic models for JSON-RPC requests and log queries."""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from stakewatch.helpers.parsers import normalize_address, parse_hex_int


class JsonRpcRequest(BaseModel):
    """JSON-RPC 2.0 request model."""

    jsonrpc: str = Field(default="2.0", description="JSON-RPC version")
    method: str = Field(..., description="Method name to call")
    params: list[Any] = Field(
        default_factory=list, description="Method parameters"
    )
    id: int | str = Field(default=1, description="Request ID")


class JsonRpcError(BaseModel):
    """Error member of a JSON-RPC 2.0 response."""

    code: int | None = None
    message: str = ""
    data: Any = None

    model_config = ConfigDict(extra="allow")


class LogFilter(BaseModel):
    """Contract log filter: one emitting address and positional topics.

    ``topics[0]`` is the event signature; later positions hold indexed
    values, with None meaning "any value".
    """

    address: str
    topics: list[str | None] = Field(..., min_length=1)

    model_config = ConfigDict(frozen=True)

    @field_validator("address")
    @classmethod
    def _lower_address(cls, value: str) -> str:
        return normalize_address(value)

    @field_validator("topics")
    @classmethod
    def _require_topic0(cls, value: list[str | None]) -> list[str | None]:
        if not value[0]:
            msg = "topic0 is required"
            raise ValueError(msg)
        return [topic.lower() if topic else None for topic in value]

    def to_rpc_params(self, from_block: int, to_block: int) -> dict[str, Any]:
        """Build the eth_getLogs filter object for a block range."""
        return {
            "address": self.address,
            "topics": list(self.topics),
            "fromBlock": hex(from_block),
            "toBlock": hex(to_block),
        }

    def to_etherscan_params(self, from_block: int, to_block: int) -> dict[str, Any]:
        """Build Etherscan ``module=logs&action=getLogs`` query parameters."""
        params: dict[str, Any] = {
            "address": self.address,
            "fromBlock": from_block,
            "toBlock": to_block,
        }
        present = [idx for idx, topic in enumerate(self.topics) if topic]
        for idx in present:
            params[f"topic{idx}"] = self.topics[idx]
        for left, right in zip(present, present[1:], strict=False):
            params[f"topic{left}_{right}_opr"] = "and"
        return params


class RawLog(BaseModel):
    """Event log as returned by eth_getLogs or Etherscan getLogs.

    Numeric fields stay hex-encoded, exactly as on the wire. Etherscan adds
    ``timeStamp``; JSON-RPC providers do not.
    """

    address: str
    topics: list[str]
    data: str
    block_number: str = Field(..., alias="blockNumber")
    transaction_hash: str = Field(..., alias="transactionHash")
    log_index: str | None = Field(default=None, alias="logIndex")
    time_stamp: str | None = Field(default=None, alias="timeStamp")

    model_config = ConfigDict(extra="allow", populate_by_name=True, frozen=True)

    @field_validator("block_number", "log_index", "time_stamp")
    @classmethod
    def _require_hex(cls, value: str | None) -> str | None:
        if value is not None:
            parse_hex_int(value)
        return value

    @property
    def block(self) -> int:
        """Block number as an integer."""
        return parse_hex_int(self.block_number)

    @property
    def index(self) -> int:
        """Log index within the block (0 when absent)."""
        return parse_hex_int(self.log_index)

    @property
    def timestamp(self) -> int | None:
        """Unix timestamp when the provider included one."""
        if self.time_stamp is None:
            return None
        return parse_hex_int(self.time_stamp)

    @property
    def sort_key(self) -> tuple[int, int]:
        """Chain order: block number, then log index."""
        return self.block, self.index


__all__ = [
    "JsonRpcError",
    "JsonRpcRequest",
    "LogFilter",
    "RawLog",
]
