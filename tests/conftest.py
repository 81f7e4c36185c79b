"""Pytest configuration and shared fixtures."""

import os

import pytest

from typing import TYPE_CHECKING

from stakewatch.helpers.logging import set_log_level


if TYPE_CHECKING:
    from collections.abc import Generator


CONFIG_ENV_KEYS = (
    "ETH_RPC_URL",
    "ETH_RPC_URLS",
    "ETHERSCAN_API_KEY",
    "LABEL_API_KEY",
    "LABEL_API_URL",
    "ARKHAM_API_KEY",
    "STAKING_API_URL",
    "LOG_LEVEL",
)


@pytest.fixture
def clean_env() -> "Generator[None]":
    """Clear configuration variables before a test and restore them after."""
    saved_env = {key: os.environ.get(key) for key in CONFIG_ENV_KEYS}
    for key in saved_env:
        if key in os.environ:
            del os.environ[key]

    yield

    for key, value in saved_env.items():
        if value is not None:
            os.environ[key] = value
        elif key in os.environ:
            del os.environ[key]


@pytest.fixture
def restore_log_level() -> "Generator[None]":
    """Put every cached logger back to INFO after a test changes levels."""
    yield
    set_log_level("INFO")
