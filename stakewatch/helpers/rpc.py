"""Ethereum JSON-RPC client with endpoint rotation."""

import asyncio
from collections.abc import Sequence

from typing import Any

import httpx
from pydantic import ValidationError

from stakewatch.helpers.constants import (
    DEFAULT_TIMEOUT,
    ENDPOINT_ROTATION_DELAY,
)
from stakewatch.helpers.errors import (
    LogQueryTooLargeError,
    RPCError,
    is_too_large_message,
)
from stakewatch.helpers.logging import get_logger
from stakewatch.helpers.parsers import parse_hex_int
from stakewatch.helpers.rate_limit import IntervalGate
from stakewatch.helpers.rpc_models import (
    JsonRpcError,
    JsonRpcRequest,
    LogFilter,
    RawLog,
)


logger = get_logger(__name__)


class RPCClient:
    """Ethereum JSON-RPC client that fails over across a list of endpoints."""

    def __init__(
        self,
        rpc_urls: str | Sequence[str],
        timeout: float = DEFAULT_TIMEOUT,
        *,
        gate: IntervalGate | None = None,
        rotation_delay: float = ENDPOINT_ROTATION_DELAY,
    ) -> None:
        """Initialize RPC client.

        Args:
            rpc_urls: One endpoint URL or an ordered list of alternates
            timeout: Default timeout for requests in seconds
            gate: Throttle shared by every call to these endpoints
            rotation_delay: Pause in seconds before retrying on the next endpoint

        Raises:
            ValueError: If no non-empty URL is given
        """
        if isinstance(rpc_urls, str) or rpc_urls is None:
            rpc_urls = [rpc_urls]
        urls = [url for url in rpc_urls if url]
        if not urls:
            msg = "RPC URL cannot be empty"
            raise ValueError(msg)

        self.rpc_urls = urls
        self.timeout = timeout
        self.gate = gate or IntervalGate()
        self.rotation_delay = rotation_delay
        self._endpoint_index = 0

    @property
    def rpc_url(self) -> str:
        """Endpoint currently in use."""
        return self.rpc_urls[self._endpoint_index]

    def _rotate(self) -> None:
        self._endpoint_index = (self._endpoint_index + 1) % len(self.rpc_urls)

    async def _post(
        self,
        client: httpx.AsyncClient,
        url: str,
        payload: dict[str, Any],
        timeout: float,
    ) -> Any:
        response = await client.post(url, json=payload, timeout=timeout)
        if response.is_error and is_too_large_message(response.text):
            raise LogQueryTooLargeError(response.text[:200])
        response.raise_for_status()
        result = response.json()

        if not isinstance(result, dict):
            msg = f"Unexpected response shape from {url}"
            raise RPCError(msg)

        if result.get("error") is not None:
            error = JsonRpcError.model_validate(
                result["error"]
                if isinstance(result["error"], dict)
                else {"message": str(result["error"])}
            )
            if is_too_large_message(error.message):
                raise LogQueryTooLargeError(error.message, error.code)
            raise RPCError(error.message, error.code)

        return result.get("result")

    async def call(
        self,
        client: httpx.AsyncClient,
        method: str,
        params: list[Any] | None = None,
        *,
        timeout: float | None = None,
    ) -> Any:
        """Make a single JSON-RPC call, failing over to alternate endpoints.

        "Result too large" errors are raised immediately so the caller can
        narrow its query. Any other failure moves on to the next endpoint,
        once per remaining alternate; the endpoint that finally answered stays
        selected for later calls.

        Args:
            client: HTTP client instance
            method: RPC method name (e.g., "eth_blockNumber")
            params: Method parameters list
            timeout: Optional timeout override

        Returns:
            RPC result value

        Raises:
            LogQueryTooLargeError: If the provider rejects the query size
            httpx.HTTPError: If every endpoint failed at the HTTP level
            RPCError: If every endpoint failed and the last one returned an error
        """
        payload = JsonRpcRequest(method=method, params=params or []).model_dump()
        attempts = len(self.rpc_urls)
        last_exception: Exception | None = None

        for attempt in range(attempts):
            url = self.rpc_url
            await self.gate.wait()
            try:
                return await self._post(
                    client, url, payload, timeout or self.timeout
                )
            except LogQueryTooLargeError:
                raise
            except (httpx.HTTPError, ValueError) as e:
                # RPCError and JSON decode errors are ValueErrors
                last_exception = e
                if attempt < attempts - 1:
                    self._rotate()
                    logger.warning(
                        "%s failed on %s, trying %s: %s",
                        method,
                        url,
                        self.rpc_url,
                        e,
                    )
                    if self.rotation_delay > 0:
                        await asyncio.sleep(self.rotation_delay)

        if last_exception is None:
            msg = f"{method} failed without exception"
            raise RuntimeError(msg)

        logger.error("%s failed on all %d endpoint(s)", method, attempts)
        raise last_exception

    async def get_block_number(self, client: httpx.AsyncClient) -> int:
        """Get the latest block number."""
        result = await self.call(client, "eth_blockNumber", [])
        return parse_hex_int(result)

    async def get_block(
        self, client: httpx.AsyncClient, block_number: int | str = "latest"
    ) -> dict[str, Any]:
        """Get a block header (without transactions).

        Raises:
            RPCError: If the provider does not know the block
        """
        block_param = (
            hex(block_number) if isinstance(block_number, int) else block_number
        )
        result = await self.call(client, "eth_getBlockByNumber", [block_param, False])
        if not result:
            msg = f"Block {block_number} not found"
            raise RPCError(msg)
        return result

    async def get_block_timestamp(
        self, client: httpx.AsyncClient, block_number: int
    ) -> int:
        """Get the Unix timestamp of a block."""
        block = await self.get_block(client, block_number)
        return parse_hex_int(block.get("timestamp"))

    async def get_logs(
        self,
        client: httpx.AsyncClient,
        log_filter: LogFilter,
        from_block: int,
        to_block: int,
    ) -> list[RawLog]:
        """Run one eth_getLogs range query.

        Raises:
            LogQueryTooLargeError: If the range holds too many logs for the provider
        """
        result = await self.call(
            client, "eth_getLogs", [log_filter.to_rpc_params(from_block, to_block)]
        )
        return parse_raw_logs(result or [])


def parse_raw_logs(entries: list[Any]) -> list[RawLog]:
    """Validate wire log objects, dropping malformed entries with a warning."""
    logs: list[RawLog] = []
    for entry in entries:
        try:
            logs.append(RawLog.model_validate(entry))
        except ValidationError as e:
            logger.warning("Skipping malformed log entry: %s", e.errors()[0]["msg"])
    return logs


__all__ = ["RPCClient", "parse_raw_logs"]
