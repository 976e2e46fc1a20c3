"""Bounded fan-out/fan-in pool running liveness probes."""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from queue import Empty, Queue
from threading import Event
from typing import Iterable, Iterator

import structlog

from ..errors import ProbeSetupError
from .prober import Prober
from .records import ProbeOutcome, ProbeTarget

# One per worker on the inbox; each worker posts one on the outbox when it exits.
_END_OF_INPUT = object()
_WORKER_DONE = object()


class ProbeWorkerPool:
    """Probe targets with ``workers`` threads over two bounded queues.

    Outcomes are yielded in completion order, one per submitted target.
    Shutdown is two-phase: the feeder closes the inbox with a sentinel per
    worker, and the consumer stops once every worker reported completion.
    """

    def __init__(
        self,
        prober: Prober,
        workers: int = 1,
        timeout: float = 0.5,
        queue_size: int = 50,
        cancel_event: Event | None = None,
        logger: structlog.BoundLogger | None = None,
    ) -> None:
        if workers < 1:
            raise ValueError("workers must be >= 1")
        if timeout <= 0:
            raise ValueError("timeout must be > 0")
        if queue_size < 1:
            raise ValueError("queue_size must be >= 1")
        self.prober = prober
        self.workers = workers
        self.timeout = timeout
        self.queue_size = queue_size
        self.cancel_event = cancel_event
        self.logger = logger or structlog.get_logger("vpnlist.worker_pool")

    def run(self, targets: Iterable[ProbeTarget]) -> list[ProbeOutcome]:
        return list(self.stream(targets))

    def stream(self, targets: Iterable[ProbeTarget]) -> Iterator[ProbeOutcome]:
        inbox: Queue = Queue(maxsize=self.queue_size)
        outbox: Queue = Queue(maxsize=self.queue_size)
        cancel = self.cancel_event if self.cancel_event is not None else Event()
        executor = ThreadPoolExecutor(max_workers=self.workers + 1, thread_name_prefix="prober")
        feeder = executor.submit(self._feed, targets, inbox, cancel)
        workers = [
            executor.submit(self._work, inbox, outbox, cancel) for _ in range(self.workers)
        ]
        finished = 0
        try:
            while finished < self.workers:
                item = outbox.get()
                if item is _WORKER_DONE:
                    finished += 1
                    continue
                yield item
            for future in (feeder, *workers):
                future.result()
        finally:
            if finished < self.workers:
                # Consumer left early: stop the feeder, let workers skip the rest.
                cancel.set()
                while finished < self.workers:
                    if outbox.get() is _WORKER_DONE:
                        finished += 1
            while not feeder.done():
                try:
                    inbox.get(timeout=0.05)
                except Empty:
                    pass
            executor.shutdown(wait=True)

    def _feed(self, targets: Iterable[ProbeTarget], inbox: Queue, cancel: Event) -> int:
        submitted = 0
        try:
            for target in targets:
                if cancel.is_set():
                    self.logger.info("probe_submission_cancelled", submitted=submitted)
                    break
                inbox.put(target)
                submitted += 1
        finally:
            for _ in range(self.workers):
                inbox.put(_END_OF_INPUT)
        return submitted

    def _work(self, inbox: Queue, outbox: Queue, cancel: Event) -> None:
        try:
            while True:
                target = inbox.get()
                if target is _END_OF_INPUT:
                    return
                if cancel.is_set():
                    continue
                outbox.put(self._probe(target))
        finally:
            outbox.put(_WORKER_DONE)

    def _probe(self, target: ProbeTarget) -> ProbeOutcome:
        try:
            reachable, latency = self.prober(target.ip, self.timeout)
        except ProbeSetupError as exc:
            self.logger.warning(
                "probe_setup_failed", host=target.host_name, ip=target.ip, error=str(exc)
            )
            return ProbeOutcome(target=target, reachable=False, error=str(exc))
        except Exception as exc:  # noqa: BLE001
            self.logger.error(
                "probe_failed", host=target.host_name, ip=target.ip, error=str(exc)
            )
            return ProbeOutcome(target=target, reachable=False, error=str(exc))
        if not reachable:
            return ProbeOutcome(target=target, reachable=False)
        return ProbeOutcome(target=target, reachable=True, latency_ms=float(latency))


__all__ = ["ProbeWorkerPool"]
