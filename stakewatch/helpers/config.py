"""Configuration management and environment variable utilities."""

import os

from dotenv import load_dotenv

from stakewatch.helpers.constants import (
    LABEL_API_URL,
    PUBLIC_RPC_ENDPOINTS,
    STAKING_API_URL,
)


# Load environment variables from .env file
load_dotenv()

ETHERSCAN_KEY_PLACEHOLDER = "YourApiKeyToken"


class ConfigurationError(ValueError):
    """A required setting is missing or invalid."""


def get_required_env(key: str) -> str:
    """Get a required environment variable.

    Args:
        key: Environment variable name

    Returns:
        Environment variable value

    Raises:
        ConfigurationError: If the environment variable is not set

    Example:
        ```python
        from stakewatch.helpers.config import get_required_env

        api_key = get_required_env("ETHERSCAN_API_KEY")
        ```
    """
    value = os.getenv(key)
    if not value:
        msg = f"{key} environment variable is not set"
        raise ConfigurationError(msg)
    return value


def get_optional_env(key: str, default: str | None = None) -> str | None:
    """Get an optional environment variable with a default value.

    Args:
        key: Environment variable name
        default: Default value if not set

    Returns:
        Environment variable value or default
    """
    return os.getenv(key, default)


def get_eth_rpc_urls(rpc_urls: list[str] | None = None) -> list[str]:
    """Get the ordered list of Ethereum RPC endpoints.

    Explicit URLs win, then ``ETH_RPC_URLS`` (comma separated), then
    ``ETH_RPC_URL``, then the public endpoint fallback chain.

    Args:
        rpc_urls: Optional endpoints to use directly

    Returns:
        Non-empty list of RPC URLs

    Example:
        ```python
        from stakewatch.helpers.config import get_eth_rpc_urls

        urls = get_eth_rpc_urls()
        urls = get_eth_rpc_urls(["https://eth.llamarpc.com"])
        ```
    """
    if rpc_urls:
        return list(rpc_urls)

    env_urls = os.getenv("ETH_RPC_URLS")
    if env_urls:
        urls = [url.strip() for url in env_urls.split(",") if url.strip()]
        if urls:
            return urls

    env_url = os.getenv("ETH_RPC_URL")
    if env_url:
        return [env_url]

    return list(PUBLIC_RPC_ENDPOINTS)


def get_etherscan_api_key() -> str | None:
    """Get the Etherscan API key, or None when it is not configured.

    The ``YourApiKeyToken`` placeholder counts as not configured.
    """
    key = os.getenv("ETHERSCAN_API_KEY")
    if not key or key == ETHERSCAN_KEY_PLACEHOLDER:
        return None
    return key


def get_label_api_key() -> str | None:
    """Get the bearer token for the optional address label service."""
    return os.getenv("LABEL_API_KEY") or os.getenv("ARKHAM_API_KEY") or None


def get_label_api_url() -> str:
    """Get the base URL of the address label service."""
    return os.getenv("LABEL_API_URL") or LABEL_API_URL


def get_staking_api_url() -> str:
    """Get the base URL of the staking index API."""
    return (os.getenv("STAKING_API_URL") or STAKING_API_URL).rstrip("/")


def get_log_level(default: str = "INFO") -> str:
    """Get the log level name from ``LOG_LEVEL``.

    Raises:
        ConfigurationError: If the value is not a known level name
    """
    level = (os.getenv("LOG_LEVEL") or default).upper()
    if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
        msg = f"Invalid LOG_LEVEL: {level}"
        raise ConfigurationError(msg)
    return level


__all__ = [
    "ETHERSCAN_KEY_PLACEHOLDER",
    "ConfigurationError",
    "get_eth_rpc_urls",
    "get_etherscan_api_key",
    "get_label_api_key",
    "get_label_api_url",
    "get_log_level",
    "get_optional_env",
    "get_required_env",
    "get_staking_api_url",
]
