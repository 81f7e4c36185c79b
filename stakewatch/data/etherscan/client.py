"""Etherscan v2 REST client for logs and block lookups on Ethereum mainnet."""

from typing import Any

import httpx
from pydantic import BaseModel

from stakewatch.helpers.config import ETHERSCAN_KEY_PLACEHOLDER
from stakewatch.helpers.constants import (
    ETHEREUM_CHAIN_ID,
    ETHERSCAN_API_URL,
    ETHERSCAN_MAX_RESULTS,
    ETHERSCAN_REQUEST_INTERVAL,
    ETHERSCAN_TIMEOUT,
)
from stakewatch.helpers.errors import (
    EtherscanError,
    LogQueryTooLargeError,
    RPCError,
    is_too_large_message,
)
from stakewatch.helpers.logging import get_logger
from stakewatch.helpers.parsers import parse_hex_int
from stakewatch.helpers.rate_limit import IntervalGate
from stakewatch.helpers.rpc import parse_raw_logs
from stakewatch.helpers.rpc_models import LogFilter, RawLog


logger = get_logger(__name__)

NO_RECORDS_MESSAGE = "No records found"

MISSING_KEY_HELP = (
    "Etherscan API key not configured. Set ETHERSCAN_API_KEY in your environment "
    "or .env file (free keys at https://etherscan.io/myapikey), or use the RPC source."
)


class ConnectionCheck(BaseModel):
    """Result of probing the Etherscan API with the configured key."""

    success: bool
    message: str


class EtherscanClient:
    """Etherscan API client.

    Every request goes through one interval gate. Application errors are
    reported by Etherscan in a ``status`` field next to an HTTP 200, so they
    are checked separately from HTTP failures.
    """

    def __init__(
        self,
        api_key: str | None,
        base_url: str = ETHERSCAN_API_URL,
        chain_id: int = ETHEREUM_CHAIN_ID,
        timeout: float = ETHERSCAN_TIMEOUT,
        *,
        gate: IntervalGate | None = None,
    ) -> None:
        """Initialize the client.

        Args:
            api_key: Etherscan API key (None or the placeholder means unconfigured)
            base_url: v2 API endpoint
            chain_id: Chain to query
            timeout: Per-request timeout in seconds
            gate: Throttle for this provider
        """
        self.api_key = api_key
        self.base_url = base_url
        self.chain_id = chain_id
        self.timeout = timeout
        self.gate = gate or IntervalGate(ETHERSCAN_REQUEST_INTERVAL)

    @property
    def is_configured(self) -> bool:
        """Whether a usable API key is set."""
        return bool(self.api_key) and self.api_key != ETHERSCAN_KEY_PLACEHOLDER

    async def _get(self, client: httpx.AsyncClient, params: dict[str, Any]) -> dict[str, Any]:
        await self.gate.wait()
        response = await client.get(
            self.base_url,
            params={"chainid": self.chain_id, **params, "apikey": self.api_key},
            timeout=self.timeout,
        )
        response.raise_for_status()
        payload = response.json()
        if not isinstance(payload, dict):
            msg = f"Unexpected Etherscan response: {str(payload)[:100]}"
            raise EtherscanError(msg)
        return payload

    async def _query(
        self, client: httpx.AsyncClient, params: dict[str, Any]
    ) -> Any | None:
        """Run a REST-style query and return ``result``.

        Returns None when Etherscan reports that nothing matched.
        """
        payload = await self._get(client, params)
        if str(payload.get("status")) == "1":
            return payload.get("result")

        message = str(payload.get("message") or "")
        detail = payload.get("result")
        if message.startswith(NO_RECORDS_MESSAGE):
            return None
        text = f"{message}: {detail}" if detail else message
        if is_too_large_message(text):
            raise LogQueryTooLargeError(text)
        msg = f"Etherscan error: {text}"
        raise EtherscanError(msg)

    async def _proxy(
        self, client: httpx.AsyncClient, action: str, **params: Any
    ) -> Any:
        """Call one of the JSON-RPC passthrough actions."""
        payload = await self._get(client, {"module": "proxy", "action": action, **params})
        if str(payload.get("status")) == "0":
            msg = f"Etherscan error: {payload.get('result') or payload.get('message')}"
            raise EtherscanError(msg)
        error = payload.get("error")
        if error is not None:
            if isinstance(error, dict):
                raise RPCError(str(error.get("message")), error.get("code"))
            raise RPCError(str(error))
        return payload.get("result")

    async def get_logs(
        self,
        client: httpx.AsyncClient,
        log_filter: LogFilter,
        from_block: int,
        to_block: int,
    ) -> list[RawLog]:
        """Fetch logs for one block range.

        A full page means the range may hold more logs than Etherscan will
        return, so it is reported as too large and the caller splits it.

        Returns:
            Matching logs, or an empty list when no API key is configured

        Raises:
            LogQueryTooLargeError: If the page limit was reached
            EtherscanError: If Etherscan rejected the query
        """
        if not self.is_configured:
            logger.warning(MISSING_KEY_HELP)
            return []

        params = {
            "module": "logs",
            "action": "getLogs",
            **log_filter.to_etherscan_params(from_block, to_block),
            "page": 1,
            "offset": ETHERSCAN_MAX_RESULTS,
        }
        result = await self._query(client, params)
        if not result:
            return []
        if not isinstance(result, list):
            msg = f"Unexpected getLogs result: {str(result)[:100]}"
            raise EtherscanError(msg)
        if len(result) >= ETHERSCAN_MAX_RESULTS:
            msg = (
                f"Etherscan returned {len(result)} logs for blocks "
                f"{from_block}-{to_block}, result window is too large"
            )
            raise LogQueryTooLargeError(msg)
        return parse_raw_logs(result)

    async def get_block_number_by_time(
        self, client: httpx.AsyncClient, timestamp: int, closest: str = "before"
    ) -> int | None:
        """Find the block closest to a Unix timestamp.

        Returns:
            Block number, or None when no key is configured or nothing matched

        Raises:
            EtherscanError: If Etherscan rejected the query
        """
        if not self.is_configured:
            return None

        result = await self._query(
            client,
            {
                "module": "block",
                "action": "getblocknobytime",
                "timestamp": timestamp,
                "closest": closest,
            },
        )
        if result is None:
            return None
        try:
            return int(str(result), 10)
        except ValueError as e:
            msg = f"Unexpected getblocknobytime result: {result}"
            raise EtherscanError(msg) from e

    async def get_block_number(self, client: httpx.AsyncClient) -> int:
        """Get the latest block number."""
        return parse_hex_int(await self._proxy(client, "eth_blockNumber"))

    async def get_block_timestamp(
        self, client: httpx.AsyncClient, block_number: int
    ) -> int:
        """Get the Unix timestamp of a block.

        Raises:
            RPCError: If the block is unknown
        """
        block = await self._proxy(
            client, "eth_getBlockByNumber", tag=hex(block_number), boolean="false"
        )
        if not isinstance(block, dict):
            msg = f"Block {block_number} not found"
            raise RPCError(msg)
        return parse_hex_int(block.get("timestamp"))

    async def test_connection(self, client: httpx.AsyncClient) -> ConnectionCheck:
        """Check that the key is set and accepted."""
        if not self.is_configured:
            return ConnectionCheck(success=False, message="API key not configured")

        try:
            head = await self.get_block_number(client)
        except httpx.HTTPStatusError as e:
            if e.response.status_code == 401:
                return ConnectionCheck(success=False, message="Invalid API key")
            return ConnectionCheck(success=False, message=str(e))
        except (httpx.HTTPError, ValueError, RuntimeError) as e:
            return ConnectionCheck(success=False, message=str(e))

        if head <= 0:
            return ConnectionCheck(success=False, message="Invalid API response")
        return ConnectionCheck(
            success=True, message=f"API connection successful (block {head})"
        )


__all__ = [
    "MISSING_KEY_HELP",
    "ConnectionCheck",
    "EtherscanClient",
]
