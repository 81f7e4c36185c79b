"""Classify delegator addresses and filter out non-individual holders."""

from collections.abc import Iterable, Mapping

import httpx

from stakewatch.analysis.known_addresses import KNOWN_ADDRESSES, KnownAddress
from stakewatch.analysis.labels import LabelServiceClient
from stakewatch.analysis.models import (
    AddressClassification,
    Category,
    ClassificationSource,
    FilterResult,
)
from stakewatch.helpers.cache import RunCache
from stakewatch.helpers.logging import get_logger


logger = get_logger(__name__)

DEFAULT_CATEGORY = Category.INDIVIDUAL
"""Category of addresses nothing is known about.

Absence from every table is taken to mean an individual delegator. This
undercounts exchanges and protocols that are missing from the table.
"""


def _unique_lower(addresses: Iterable[str]) -> list[str]:
    seen: dict[str, None] = {}
    for address in addresses:
        if address:
            seen.setdefault(address.strip().lower(), None)
    return list(seen)


class AddressClassifier:
    """Look addresses up in the static table, optionally the label service.

    Lookups are case-insensitive and memoized in the run cache.
    """

    def __init__(
        self,
        known: Mapping[str, KnownAddress] | None = None,
        default_category: Category = DEFAULT_CATEGORY,
        cache: RunCache | None = None,
        label_service: LabelServiceClient | None = None,
    ) -> None:
        """Initialize the classifier.

        Args:
            known: Labelled addresses keyed by address (any case)
            default_category: Category for addresses found nowhere
            cache: Run cache for classification results
            label_service: Optional remote label lookup
        """
        table = KNOWN_ADDRESSES if known is None else known
        self.known = {address.lower(): entry for address, entry in table.items()}
        self.default_category = default_category
        self.cache = cache if cache is not None else RunCache()
        self.label_service = label_service

    def classify(self, address: str) -> AddressClassification:
        """Classify an address from the static table alone."""
        key = address.strip().lower()
        cached = self.cache.classifications.get(key)
        if cached is not None:
            return cached

        entry = self.known.get(key)
        if entry is not None:
            result = AddressClassification(
                address=key,
                category=entry.category,
                source=ClassificationSource.STATIC_LIST,
                name=entry.name,
            )
        else:
            result = AddressClassification(
                address=key,
                category=self.default_category,
                source=ClassificationSource.DEFAULT,
            )
        self.cache.classifications[key] = result
        return result

    async def classify_remote(
        self, client: httpx.AsyncClient, address: str
    ) -> AddressClassification:
        """Classify an address, asking the label service about unlisted ones.

        The static table always wins. Any label service failure, or a missing
        key, leaves the static/default result in place.
        """
        static = self.classify(address)
        if static.source != ClassificationSource.DEFAULT:
            return static
        if self.label_service is None or not self.label_service.is_configured:
            return static

        key = static.address
        if key not in self.cache.label_lookups:
            self.cache.label_lookups.add(key)
            labelled = await self.label_service.classify(client, key)
            if labelled is not None:
                self.cache.classifications[key] = labelled
        return self.cache.classifications[key]

    def filter_addresses(
        self,
        addresses: Iterable[str],
        *,
        exclude_exchanges: bool = True,
        exclude_defi: bool = True,
        exclude_institutional: bool = True,
    ) -> FilterResult:
        """Split addresses into kept and excluded using the static table."""
        classifications = [self.classify(address) for address in _unique_lower(addresses)]
        return filter_classifications(
            classifications,
            exclude_exchanges=exclude_exchanges,
            exclude_defi=exclude_defi,
            exclude_institutional=exclude_institutional,
        )

    async def filter_addresses_remote(
        self,
        client: httpx.AsyncClient,
        addresses: Iterable[str],
        *,
        exclude_exchanges: bool = True,
        exclude_defi: bool = True,
        exclude_institutional: bool = True,
    ) -> FilterResult:
        """Like ``filter_addresses`` but consults the label service too."""
        classifications = [
            await self.classify_remote(client, address)
            for address in _unique_lower(addresses)
        ]
        return filter_classifications(
            classifications,
            exclude_exchanges=exclude_exchanges,
            exclude_defi=exclude_defi,
            exclude_institutional=exclude_institutional,
        )


def filter_classifications(
    classifications: Iterable[AddressClassification],
    *,
    exclude_exchanges: bool = True,
    exclude_defi: bool = True,
    exclude_institutional: bool = True,
) -> FilterResult:
    """Keep individuals plus any category not excluded.

    ``Unknown`` addresses are always excluded. Counts are per category over
    every address, kept or not.
    """
    excluded_categories = {Category.UNKNOWN}
    if exclude_exchanges:
        excluded_categories.add(Category.EXCHANGE)
    if exclude_defi:
        excluded_categories.add(Category.DEFI)
    if exclude_institutional:
        excluded_categories.add(Category.INSTITUTIONAL)

    result = FilterResult()
    for classification in classifications:
        if classification.address in result.classifications:
            continue
        result.classifications[classification.address] = classification
        result.counts[classification.category] += 1
        if classification.category in excluded_categories:
            result.excluded.append(classification)
        else:
            result.kept.append(classification.address)

    logger.info(
        "Filtered %d addresses: %d kept, %d exchanges, %d DeFi, %d institutional excluded",
        result.total,
        len(result.kept),
        len(result.excluded_in(Category.EXCHANGE)),
        len(result.excluded_in(Category.DEFI)),
        len(result.excluded_in(Category.INSTITUTIONAL)),
    )
    return result


__all__ = [
    "DEFAULT_CATEGORY",
    "AddressClassifier",
    "filter_classifications",
]
