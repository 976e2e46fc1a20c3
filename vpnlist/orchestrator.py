"""Coordinator wiring the catalog, feed, probe pool and result sink together."""

from __future__ import annotations

from contextlib import closing
from threading import Event
from typing import Iterable, Iterator

import structlog

from .config import GlobalConfig, QueryFilter
from .engine import FeedFetcher, ProbeOutcome, ProbeTarget, ProbeWorkerPool, TcpProber
from .engine.exporter import BaseExporter
from .engine.prober import Prober
from .infra import RecordStore
from .ui import ResultSink


class Orchestrator:
    """Central coordinator for update, listing, probing and export flows."""

    def __init__(
        self,
        store: RecordStore,
        global_config: GlobalConfig,
        prober: Prober | None = None,
        feed: FeedFetcher | None = None,
    ) -> None:
        self.store = store
        self.global_config = global_config
        self.prober = prober or TcpProber(port=global_config.probe.port)
        self._feed = feed
        self.logger = structlog.get_logger("vpnlist.orchestrator")

    @property
    def feed(self) -> FeedFetcher:
        if self._feed is None:
            self._feed = FeedFetcher(
                self.global_config.feed_url, timeout=self.global_config.feed_timeout
            )
        return self._feed

    # ------------------------------------------------------------------
    def update(self) -> dict[str, int]:
        """Download the feed and merge it into the catalog."""

        result = self.feed.fetch()
        written = self.store.upsert_all(result.records)
        summary = {
            "received": written,
            "skipped": result.skipped,
            "total": self.store.count(),
        }
        self.logger.info("catalog_updated", **summary)
        return summary

    def probe_targets(
        self,
        targets: Iterable[ProbeTarget],
        workers: int | None = None,
        timeout: float | None = None,
        cancel_event: Event | None = None,
    ) -> Iterator[ProbeOutcome]:
        """Stream outcomes for ``targets`` in completion order."""

        probe_cfg = self.global_config.probe
        pool = ProbeWorkerPool(
            self.prober,
            workers=workers or probe_cfg.workers,
            timeout=timeout or probe_cfg.timeout,
            queue_size=probe_cfg.queue_size,
            cancel_event=cancel_event,
        )
        return pool.stream(targets)

    def probe(
        self,
        query: QueryFilter,
        sink: ResultSink,
        workers: int | None = None,
        timeout: float | None = None,
        cancel_event: Event | None = None,
    ) -> dict[str, int]:
        """Probe every record matching ``query`` and render the outcomes.

        Returns only after all workers exited and the sink rendered every
        outcome.
        """

        targets = self.store.query_filtered(query)
        if not targets:
            return {"total": 0, "online": 0, "offline": 0}
        self.logger.info(
            "probe_started",
            targets=len(targets),
            workers=workers or self.global_config.probe.workers,
        )
        sink.header()
        outcomes = self.probe_targets(
            targets, workers=workers, timeout=timeout, cancel_event=cancel_event
        )
        with closing(outcomes):
            summary = sink.consume(outcomes)
        result = {"total": summary.total, "online": summary.online, "offline": summary.offline}
        self.logger.info("probe_finished", **result)
        return result

    def export_configs(self, query: QueryFilter, exporter: BaseExporter) -> int:
        records = self.store.query_records(query)
        try:
            count = exporter.export_many(records)
            exporter.flush()
        finally:
            exporter.close()
        self.logger.info("configs_exported", count=count)
        return count

    def close(self) -> None:
        if self._feed is not None:
            self._feed.close()
        self.store.close()


__all__ = ["Orchestrator"]
