"""Failure taxonomy shared by the extraction pipeline."""

from __future__ import annotations


class RefscrapeError(Exception):
    """Base class for all pipeline failures."""


class DiscoveryFailure(RefscrapeError):
    """Index page could not be fetched or parsed; aborts the run."""


class FetchFailure(RefscrapeError):
    """A single page request failed (transport error or non-2xx status)."""

    def __init__(self, url: str, reason: str, status_code: int | None = None) -> None:
        super().__init__(reason)
        self.url = url
        self.reason = reason
        self.status_code = status_code


class ParseFailure(RefscrapeError):
    """Fetched bytes could not be turned into a DOM tree."""


class PersistFailure(RefscrapeError):
    """The merged dataset could not be serialised or written."""


__all__ = [
    "DiscoveryFailure",
    "FetchFailure",
    "ParseFailure",
    "PersistFailure",
    "RefscrapeError",
]
