"""Run orchestration: load → discover → filter → dispatch → merge → persist."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Callable

import httpx
import structlog

from .config import ConfigRepository, GlobalConfig, ProfileMode, SiteProfile
from .engine import (
    CatalogExtractor,
    Dispatcher,
    ExtractedRecord,
    Fetcher,
    LinkDiscoverer,
    StateStore,
    StructuralExtractor,
)
from .engine.exporter import JsonExporter
from .errors import DiscoveryFailure, FetchFailure, ParseFailure, PersistFailure
from .logging_conf import profile_logger
from .ui import ProgressReporter


@dataclass(slots=True)
class RunSummary:
    """Counts reported at the end of a run."""

    profile: str
    output_path: Path
    discovered: int = 0
    skipped: int = 0
    scraped: int = 0
    errors: int = 0
    dataset_total: int = 0
    dataset_errors: int = 0

    @property
    def attempted(self) -> int:
        return self.scraped + self.errors



class Orchestrator:
    """Central coordinator for profile runs."""

    def __init__(
        self,
        config_repository: ConfigRepository,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self.config_repository = config_repository
        self.global_config: GlobalConfig = config_repository.load_global_config()
        self.transport = transport
        self.logger = structlog.get_logger("refscrape").bind(component="orchestrator")

    # ------------------------------------------------------------------
    def run_profile(
        self,
        profile_name: str,
        output: Path | None = None,
        max_workers: int | None = None,
        progress_factory: Callable[[str], ProgressReporter] | None = None,
    ) -> RunSummary:
        profile = self.config_repository.load_profile(profile_name)
        log = profile_logger(profile.profile_name)
        output_path = output or self.output_path(profile)
        log.info("run_started", mode=profile.mode.value, output=str(output_path))
        if profile.mode is ProfileMode.CATALOG:
            summary = self._run_catalog(profile, output_path, log)
        else:
            progress = (
                progress_factory(profile.profile_name)
                if progress_factory
                else ProgressReporter(enabled=False)
            )
            summary = self._run_pages(profile, output_path, log, max_workers, progress)
        log.info(
            "run_completed",
            scraped=summary.scraped,
            errors=summary.errors,
            skipped=summary.skipped,
            dataset_total=summary.dataset_total,
        )
        return summary

    def _run_pages(
        self,
        profile: SiteProfile,
        output_path: Path,
        log: structlog.BoundLogger,
        max_workers: int | None,
        progress: ProgressReporter,
    ) -> RunSummary:
        summary = RunSummary(profile=profile.profile_name, output_path=output_path)
        store = StateStore(output_path, profile.identifier_key, logger=log)
        prior = store.load()

        with self._create_fetcher(profile, log) as fetcher:
            links = LinkDiscoverer(profile, logger=log).fetch_links(fetcher)
            candidates = store.pending(links, prior)
            summary.discovered = len(links)
            summary.skipped = len(links) - len(candidates)
            log.info("links_filtered", total_on_index=len(links), to_scrape=len(candidates))

            extractor = StructuralExtractor(profile.page, fetcher, logger=log)
            dispatcher = Dispatcher(self._worker_limit(profile, max_workers), logger=log)
            progress.set_label(profile.profile_name)
            progress.start(len(candidates), skipped=summary.skipped)
            try:
                records = dispatcher.dispatch(
                    candidates,
                    extractor.extract,
                    on_result=lambda record: progress.advance(
                        failed=not record.ok, current_url=record.identifier
                    ),
                )
            finally:
                progress.close()

        current: dict[str, ExtractedRecord] = {}
        for record in records:
            if record.ok:
                summary.scraped += 1
                log.debug(
                    "page_scraped",
                    url=record.identifier,
                    title=record.text(profile.page.title_field),
                )
            else:
                summary.errors += 1
                log.error("page_failed", url=record.identifier, error=record.error)
            current[record.identifier] = record

        merged = store.merge(prior, current)
        store.persist(merged)
        summary.dataset_total = len(merged)
        summary.dataset_errors = len(merged.failed)
        return summary

    def _run_catalog(
        self, profile: SiteProfile, output_path: Path, log: structlog.BoundLogger
    ) -> RunSummary:
        summary = RunSummary(profile=profile.profile_name, output_path=output_path)
        with self._create_fetcher(profile, log) as fetcher:
            try:
                response = fetcher.fetch(profile.index_url)
            except FetchFailure as exc:
                raise DiscoveryFailure(f"failed to fetch catalog page: {exc.reason}") from exc
        try:
            records = CatalogExtractor(profile.catalog, logger=log).extract(response.content)
        except ParseFailure as exc:
            raise DiscoveryFailure(f"failed to parse catalog page HTML: {exc}") from exc

        exporter = JsonExporter(output_path)
        try:
            exporter.export_many(records)
            exporter.flush()
        except (OSError, TypeError, ValueError) as exc:
            raise PersistFailure(f"failed to write {output_path}: {exc}") from exc
        finally:
            exporter.close()
        log.info("catalog_saved", path=str(output_path), count=len(records))
        summary.discovered = summary.scraped = summary.dataset_total = len(records)
        return summary

    # ------------------------------------------------------------------
    def _create_fetcher(self, profile: SiteProfile, log: structlog.BoundLogger) -> Fetcher:
        return Fetcher(self.global_config, profile, logger=log, transport=self.transport)

    def _worker_limit(self, profile: SiteProfile, override: int | None) -> int:
        return override or profile.max_workers or self.global_config.max_workers

    def output_path(self, profile: SiteProfile) -> Path:
        return profile.resolved_output_path(self.config_repository.outputs_dir())

    def dataset_status(self, profile_name: str) -> dict:
        profile = self.config_repository.load_profile(profile_name)
        path = self.output_path(profile)
        status = {"path": str(path), "exists": path.exists(), "total": 0, "successful": 0, "failed": 0}
        if profile.mode is ProfileMode.PAGES and path.exists():
            dataset = StateStore(path, profile.identifier_key).load()
            status.update(
                total=len(dataset),
                successful=len(dataset.successful),
                failed=len(dataset.failed),
            )
        return status

    def reset_dataset(self, profile_name: str) -> bool:
        profile = self.config_repository.load_profile(profile_name)
        path = self.output_path(profile)
        if path.exists():
            path.unlink()
            return True
        return False


__all__ = ["Orchestrator", "RunSummary"]
