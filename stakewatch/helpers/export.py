"""JSON export files: one self-describing snapshot per command run."""

from datetime import UTC, datetime
from pathlib import Path

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from stakewatch.helpers.logging import get_logger
from stakewatch.helpers.parsers import format_units


logger = get_logger(__name__)


class ExportDocument(BaseModel):
    """Export file contents.

    Amounts inside ``summary`` and ``results`` are written twice: exact base
    units as a decimal string, and the formatted token amount.
    """

    generated_at: datetime = Field(
        default_factory=lambda: datetime.now(UTC), alias="generatedAt"
    )
    command: str
    parameters: dict[str, Any] = Field(default_factory=dict)
    summary: dict[str, Any] = Field(default_factory=dict)
    results: list[dict[str, Any]] = Field(default_factory=list)

    model_config = ConfigDict(populate_by_name=True)


def amount_fields(name: str, base_units: int) -> dict[str, str]:
    """Both renderings of an amount, keyed ``<name>BaseUnits`` and ``<name>``."""
    return {
        f"{name}BaseUnits": str(base_units),
        name: format_units(base_units),
    }


def default_export_path(
    command: str, now: datetime | None = None, directory: Path | str = "."
) -> Path:
    """Timestamped file name for a command's export.

    Example:
        ``top-delegators`` at 2025-01-31 12:00:00 gives
        ``top_delegators_20250131_120000.json``
    """
    stamp = (now or datetime.now()).strftime("%Y%m%d_%H%M%S")
    return Path(directory) / f"{command.replace('-', '_')}_{stamp}.json"


def write_export(path: Path | str, document: ExportDocument) -> Path:
    """Write an export document as indented JSON, creating parent directories."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(document.model_dump_json(by_alias=True, indent=2) + "\n")
    logger.info("Exported %d results to %s", len(document.results), path)
    return path


def read_export(path: Path | str) -> ExportDocument:
    """Load an export file.

    Raises:
        FileNotFoundError: If the file does not exist
        pydantic.ValidationError: If the file is not an export document
    """
    return ExportDocument.model_validate_json(Path(path).read_text())


__all__ = [
    "ExportDocument",
    "amount_fields",
    "default_export_path",
    "read_export",
    "write_export",
]
