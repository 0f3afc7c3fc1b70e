"""Bounded worker pool pulling links from a shared queue."""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor, wait
from queue import Empty, Queue
from threading import Lock
from typing import Callable, Sequence

import structlog

from .records import ExtractedRecord, Link

Work = Callable[[Link], ExtractedRecord]
ResultCallback = Callable[[ExtractedRecord], None]


class Dispatcher:
    """Run ``work`` over links on ``min(max_workers, len(links))`` threads.

    Every input link yields exactly one record. Results are only drained
    once all workers have returned.
    """

    def __init__(
        self,
        max_workers: int = 50,
        logger: structlog.BoundLogger | None = None,
        thread_name_prefix: str = "refscrape",
    ) -> None:
        if max_workers < 1:
            raise ValueError("max_workers must be >= 1")
        self.max_workers = max_workers
        self.thread_name_prefix = thread_name_prefix
        self.logger = logger or structlog.get_logger("refscrape.dispatcher")
        self._callback_lock = Lock()

    def worker_count(self, pending: int) -> int:
        return min(self.max_workers, pending)

    def dispatch(
        self,
        links: Sequence[Link],
        work: Work,
        on_result: ResultCallback | None = None,
    ) -> list[ExtractedRecord]:
        if not links:
            self.logger.info("nothing_to_dispatch")
            return []

        jobs: Queue[Link] = Queue(maxsize=len(links))
        for link in links:
            jobs.put_nowait(link)
        results: Queue[ExtractedRecord] = Queue()

        workers = self.worker_count(len(links))
        self.logger.info("dispatch_started", workers=workers, total_links=len(links))
        with ThreadPoolExecutor(
            max_workers=workers, thread_name_prefix=self.thread_name_prefix
        ) as executor:
            futures = [
                executor.submit(self._worker, worker_id, jobs, results, work, on_result)
                for worker_id in range(workers)
            ]
            wait(futures)
        for future in futures:
            future.result()

        collected: list[ExtractedRecord] = []
        while True:
            try:
                collected.append(results.get_nowait())
            except Empty:
                break
        self.logger.info("dispatch_finished", collected=len(collected))
        return collected

    def _worker(
        self,
        worker_id: int,
        jobs: Queue[Link],
        results: Queue[ExtractedRecord],
        work: Work,
        on_result: ResultCallback | None,
    ) -> None:
        while True:
            try:
                link = jobs.get_nowait()
            except Empty:
                return
            self.logger.debug("worker_pull", worker=worker_id, url=link.identifier)
            try:
                record = work(link)
            except Exception as exc:  # noqa: BLE001
                self.logger.error(
                    "worker_unexpected_error", worker=worker_id, url=link.identifier, error=str(exc)
                )
                record = ExtractedRecord.failure(link, f"unexpected error: {exc}")
            results.put(record)
            if on_result is not None:
                with self._callback_lock:
                    try:
                        on_result(record)
                    except Exception as exc:  # noqa: BLE001
                        self.logger.warning("result_callback_failed", error=str(exc))


__all__ = ["Dispatcher"]
