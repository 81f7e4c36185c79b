"""Optional address label service and keyword-based categorization."""

import httpx
from pydantic import BaseModel, ConfigDict

from stakewatch.analysis.models import (
    AddressClassification,
    Category,
    ClassificationSource,
)
from stakewatch.helpers.constants import (
    LABEL_API_URL,
    LABEL_SERVICE_REQUEST_INTERVAL,
    LABEL_SERVICE_TIMEOUT,
)
from stakewatch.helpers.http import handle_http_errors
from stakewatch.helpers.logging import get_logger
from stakewatch.helpers.parsers import normalize_address
from stakewatch.helpers.rate_limit import IntervalGate


logger = get_logger(__name__)

EXCHANGE_KEYWORDS = (
    "exchange",
    "deposit",
    "withdraw",
    "binance",
    "coinbase",
    "okx",
    "kraken",
    "huobi",
    "gate.io",
    "kucoin",
    "bitfinex",
    "gemini",
    "crypto.com",
    "bybit",
    "ftx",
    "cex.io",
    "bitstamp",
)

DEFI_KEYWORDS = (
    "defi",
    "uniswap",
    "aave",
    "compound",
    "curve",
    "sushiswap",
    "balancer",
    "yearn",
    "makerdao",
    "synthetix",
    "chainlink",
    "quickswap",
    "polygon bridge",
    "protocol",
    "vault",
    "pool",
    "lending",
    "staking",
    "farming",
    "liquidity",
)

INSTITUTIONAL_KEYWORDS = (
    "fund",
    "treasury",
    "institution",
    "custody",
    "foundation",
)


def category_from_labels(*labels: str | None) -> Category:
    """Categorize an address from free-text labels (entity name, type, tag).

    Exchange keywords are checked first, then DeFi, then institutional;
    labels matching none of them describe an individual.
    """
    texts = [label.lower() for label in labels if label]
    for category, keywords in (
        (Category.EXCHANGE, EXCHANGE_KEYWORDS),
        (Category.DEFI, DEFI_KEYWORDS),
        (Category.INSTITUTIONAL, INSTITUTIONAL_KEYWORDS),
    ):
        if any(keyword in text for text in texts for keyword in keywords):
            return category
    return Category.INDIVIDUAL


class LabelEntity(BaseModel):
    """Entity an address is attributed to."""

    name: str | None = None
    type: str | None = None

    model_config = ConfigDict(extra="allow")


class AddressLabel(BaseModel):
    """Label service response for one address."""

    address: str | None = None
    entity: LabelEntity | None = None

    model_config = ConfigDict(extra="allow")


class LabelServiceClient:
    """Bearer-token client for the address label service.

    Without an API key every lookup returns None, so classification falls
    back to the static table.
    """

    def __init__(
        self,
        api_key: str | None,
        base_url: str = LABEL_API_URL,
        timeout: float = LABEL_SERVICE_TIMEOUT,
        *,
        gate: IntervalGate | None = None,
    ) -> None:
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.gate = gate or IntervalGate(LABEL_SERVICE_REQUEST_INTERVAL)

    @property
    def is_configured(self) -> bool:
        """Whether an API key is set."""
        return bool(self.api_key)

    @handle_http_errors(default_return=None)
    async def get_label(
        self, client: httpx.AsyncClient, address: str
    ) -> AddressLabel | None:
        """Look up the label of one address.

        Returns:
            The label, or None when unconfigured, unknown or on any failure
        """
        if not self.is_configured:
            return None

        await self.gate.wait()
        response = await client.get(
            f"{self.base_url}/v1/address/{normalize_address(address)}",
            headers={"Authorization": f"Bearer {self.api_key}"},
            timeout=self.timeout,
        )
        response.raise_for_status()
        return AddressLabel.model_validate(response.json())

    async def classify(
        self, client: httpx.AsyncClient, address: str
    ) -> AddressClassification | None:
        """Classify an address from its label, or None if it has no entity."""
        label = await self.get_label(client, address)
        if label is None or label.entity is None:
            return None

        entity = label.entity
        category = category_from_labels(entity.name, entity.type)
        logger.debug("Label service: %s is %s (%s)", address, category, entity.name)
        return AddressClassification(
            address=normalize_address(address),
            category=category,
            source=ClassificationSource.LABEL_SERVICE,
            name=entity.name,
        )


__all__ = [
    "DEFI_KEYWORDS",
    "EXCHANGE_KEYWORDS",
    "INSTITUTIONAL_KEYWORDS",
    "AddressLabel",
    "LabelEntity",
    "LabelServiceClient",
    "category_from_labels",
]
