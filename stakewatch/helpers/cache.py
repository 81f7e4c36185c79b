"""Run-scoped memoization shared by the classifier and the log fetcher."""

from pydantic import BaseModel, Field

from stakewatch.analysis.models import AddressClassification


class RunCache(BaseModel):
    """Memo tables for one CLI invocation.

    Construct one per run and pass it to the objects that need it; nothing
    is persisted and nothing is shared between runs.
    """

    classifications: dict[str, AddressClassification] = Field(default_factory=dict)
    block_timestamps: dict[int, int] = Field(default_factory=dict)
    label_lookups: set[str] = Field(
        default_factory=set, description="Addresses already sent to the label service"
    )

    def clear(self) -> None:
        """Drop every memoized entry."""
        self.classifications.clear()
        self.block_timestamps.clear()
        self.label_lookups.clear()


__all__ = ["RunCache"]
