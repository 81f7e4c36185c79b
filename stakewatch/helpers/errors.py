"""Exception types raised by the provider clients and the log fetcher."""

TOO_LARGE_MARKERS = (
    "query returned more than",
    "exceed maximum",
    "exceeds maximum",
    "too many results",
    "response size exceeded",
    "result window is too large",
)
"""Provider error fragments that mean "narrow the block range and retry"."""


class RPCError(ValueError):
    """JSON-RPC error response from a provider."""

    def __init__(self, message: str, code: int | None = None) -> None:
        super().__init__(f"RPC error: {message}")
        self.message = message
        self.code = code


class LogQueryTooLargeError(RPCError):
    """The provider rejected a log query because the result set is too large."""


class BatchSplitError(RuntimeError):
    """A log query was still too large at the minimum batch size."""

    def __init__(self, from_block: int, to_block: int) -> None:
        super().__init__(
            f"Log query for blocks {from_block}-{to_block} is too large "
            "and cannot be split further"
        )
        self.from_block = from_block
        self.to_block = to_block


class EtherscanError(RuntimeError):
    """Etherscan answered with an application-level error status."""


class StakingAPIError(RuntimeError):
    """The staking index API returned an unexpected response shape."""


def is_too_large_message(message: str) -> bool:
    """Check whether a provider error message asks for a smaller query."""
    lowered = message.lower()
    return any(marker in lowered for marker in TOO_LARGE_MARKERS)


__all__ = [
    "TOO_LARGE_MARKERS",
    "BatchSplitError",
    "EtherscanError",
    "LogQueryTooLargeError",
    "RPCError",
    "StakingAPIError",
    "is_too_large_message",
]
