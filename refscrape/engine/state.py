"""Dataset persistence and resume bookkeeping."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, Mapping

import structlog

from ..errors import PersistFailure
from .exporter import JsonExporter
from .records import ExtractedRecord, Link


@dataclass
class Dataset:
    """Most recent record known per identifier."""

    records: dict[str, ExtractedRecord] = field(default_factory=dict)

    @property
    def successful(self) -> set[str]:
        return {identifier for identifier, record in self.records.items() if record.ok}

    @property
    def failed(self) -> set[str]:
        return {identifier for identifier, record in self.records.items() if not record.ok}

    def __len__(self) -> int:
        return len(self.records)

    def __contains__(self, identifier: object) -> bool:
        return identifier in self.records

    def get(self, identifier: str) -> ExtractedRecord | None:
        return self.records.get(identifier)


class StateStore:
    """Load, filter, merge and persist the dataset file of one profile."""

    def __init__(
        self,
        path: Path,
        identifier_key: str = "url",
        logger: structlog.BoundLogger | None = None,
    ) -> None:
        self.path = path
        self.identifier_key = identifier_key
        self.logger = logger or structlog.get_logger("refscrape.state")

    def load(self) -> Dataset:
        """Return the prior dataset; a missing or unreadable file is empty state."""

        if not self.path.exists():
            self.logger.info("no_prior_dataset", path=str(self.path))
            return Dataset()
        try:
            payload = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, UnicodeDecodeError, json.JSONDecodeError) as exc:
            self.logger.warning("prior_dataset_unreadable", path=str(self.path), error=str(exc))
            return Dataset()
        if not isinstance(payload, list):
            self.logger.warning("prior_dataset_unreadable", path=str(self.path), error="not a JSON array")
            return Dataset()

        dataset = Dataset()
        for item in payload:
            if not isinstance(item, dict):
                continue
            try:
                record = ExtractedRecord.from_json(item, self.identifier_key)
            except ValueError:
                self.logger.debug("prior_record_skipped", reason="missing_identifier")
                continue
            dataset.records[record.identifier] = record
        self.logger.info(
            "prior_dataset_loaded",
            total_entries=len(dataset),
            successful=len(dataset.successful),
        )
        return dataset

    def pending(self, links: Iterable[Link], prior: Dataset) -> list[Link]:
        """Links that still need fetching: failed before or never seen."""

        done = prior.successful
        return [link for link in links if link.identifier not in done]

    def merge(self, prior: Dataset, current: Mapping[str, ExtractedRecord]) -> Dataset:
        """Overlay ``current`` on ``prior``; current records always win."""

        merged = dict(prior.records)
        for identifier, record in current.items():
            previous = merged.get(identifier)
            if previous is not None and previous.ok and not record.ok:
                self.logger.warning(
                    "success_overwritten_by_error", url=identifier, error=record.error
                )
            merged[identifier] = record
        return Dataset(merged)

    def serialise(self, dataset: Dataset) -> list[dict]:
        return [
            dataset.records[identifier].to_json(self.identifier_key)
            for identifier in sorted(dataset.records)
        ]

    def persist(self, dataset: Dataset) -> None:
        """Replace the dataset file with the full merged dataset."""

        exporter = JsonExporter(self.path)
        try:
            exporter.export_many(self.serialise(dataset))
            exporter.flush()
        except (OSError, TypeError, ValueError) as exc:
            raise PersistFailure(f"failed to write {self.path}: {exc}") from exc
        finally:
            exporter.close()
        errors = len(dataset.failed)
        self.logger.info("dataset_saved", path=str(self.path), total=len(dataset), errors=errors)
        if errors:
            self.logger.warning("dataset_contains_errors", error_count=errors)


__all__ = ["Dataset", "StateStore"]
