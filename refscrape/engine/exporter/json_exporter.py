"""Whole-document JSON output."""

from __future__ import annotations

import json
import os
import tempfile
from pathlib import Path
from typing import Iterable


def dumps_document(records: list[dict]) -> str:
    """Serialise records as an indented JSON array without escaping text."""

    return json.dumps(records, ensure_ascii=False, indent=2) + "\n"


class JsonExporter:
    """Buffer records and replace ``path`` with one JSON array on flush.

    The document is written to a sibling temp file and moved into place with
    ``os.replace``, so readers never see a partially written dataset.
    """

    def __init__(self, path: Path) -> None:
        self.path = path
        self._records: list[dict] = []

    def export(self, record: dict) -> None:
        self._records.append(record)

    def export_many(self, records: Iterable[dict]) -> None:
        self._records.extend(records)

    def flush(self) -> None:
        payload = dumps_document(self._records)
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(prefix=f".{self.path.name}.", dir=self.path.parent)
        try:
            with os.fdopen(fd, "w", encoding="utf-8", newline="\n") as stream:
                stream.write(payload)
            os.replace(tmp_name, self.path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise

    def close(self) -> None:
        self._records = []


__all__ = ["JsonExporter", "dumps_document"]
