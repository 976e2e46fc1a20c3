from __future__ import annotations

import time
from threading import Event, Lock

import pytest

from vpnlist.engine.records import ProbeTarget
from vpnlist.engine.worker_pool import ProbeWorkerPool
from vpnlist.errors import ProbeSetupError


def _targets(count: int) -> list[ProbeTarget]:
    return [
        ProbeTarget(
            host_name=f"host-{index}",
            ip=f"10.0.{index // 250}.{index % 250 + 1}",
            country_short="JP",
            speed=1_000_000,
            ping=index,
        )
        for index in range(count)
    ]


def always_up(address: str, timeout: float) -> tuple[bool, float]:
    return True, 10.0


class RecordingProber:
    def __init__(self, delay: float = 0.0) -> None:
        self.delay = delay
        self.calls: list[str] = []
        self.active = 0
        self.max_active = 0
        self._lock = Lock()

    def __call__(self, address: str, timeout: float) -> tuple[bool, float]:
        with self._lock:
            self.calls.append(address)
            self.active += 1
            self.max_active = max(self.max_active, self.active)
        time.sleep(self.delay)
        with self._lock:
            self.active -= 1
        return address.endswith("1"), 1.5


def test_two_targets_always_reachable() -> None:
    pool = ProbeWorkerPool(always_up, workers=2, timeout=0.5)
    outcomes = pool.run(_targets(2))
    assert len(outcomes) == 2
    assert all(o.reachable for o in outcomes)
    assert all(o.latency_ms == 10.0 for o in outcomes)


@pytest.mark.parametrize("workers", [1, 3, 8])
def test_every_target_yields_exactly_one_outcome(workers: int) -> None:
    targets = _targets(37)
    outcomes = ProbeWorkerPool(RecordingProber(), workers=workers, timeout=0.5).run(targets)
    assert sorted(o.target.host_name for o in outcomes) == sorted(t.host_name for t in targets)
    assert len({o.target for o in outcomes}) == len(targets)


def test_small_queues_do_not_deadlock() -> None:
    targets = _targets(120)
    pool = ProbeWorkerPool(RecordingProber(), workers=3, timeout=0.5, queue_size=4)
    outcomes = []
    for outcome in pool.stream(targets):
        time.sleep(0.001)  # slow consumer keeps the outbox full
        outcomes.append(outcome)
    assert len(outcomes) == 120


def test_concurrency_is_bounded_by_worker_count() -> None:
    prober = RecordingProber(delay=0.02)
    ProbeWorkerPool(prober, workers=3, timeout=0.5).run(_targets(15))
    assert 1 <= prober.max_active <= 3


def test_unreachable_outcome_has_no_latency() -> None:
    outcomes = ProbeWorkerPool(lambda a, t: (False, 3.0), workers=1, timeout=0.5).run(_targets(1))
    assert outcomes[0].reachable is False
    assert outcomes[0].latency_ms is None
    assert outcomes[0].error is None


def test_setup_error_is_scoped_to_one_target() -> None:
    def prober(address: str, timeout: float) -> tuple[bool, float]:
        if address == "10.0.0.2":
            raise ProbeSetupError(address, "bad address")
        return True, 5.0

    outcomes = ProbeWorkerPool(prober, workers=2, timeout=0.5).run(_targets(4))
    assert len(outcomes) == 4
    failed = [o for o in outcomes if o.error]
    assert [o.target.ip for o in failed] == ["10.0.0.2"]
    assert failed[0].reachable is False
    assert sum(o.reachable for o in outcomes) == 3


def test_unexpected_probe_failure_does_not_abort_batch() -> None:
    def prober(address: str, timeout: float) -> tuple[bool, float]:
        if address == "10.0.0.1":
            raise RuntimeError("boom")
        return True, 5.0

    outcomes = ProbeWorkerPool(prober, workers=2, timeout=0.5).run(_targets(3))
    assert len(outcomes) == 3
    assert [o.error for o in outcomes if o.error] == ["boom"]


def test_single_worker_preserves_submission_order() -> None:
    targets = _targets(10)
    outcomes = ProbeWorkerPool(RecordingProber(), workers=1, timeout=0.5).run(targets)
    assert [o.target for o in outcomes] == targets


def test_empty_input_completes() -> None:
    assert ProbeWorkerPool(always_up, workers=4, timeout=0.5).run([]) == []


def test_cancel_event_stops_submission() -> None:
    cancel = Event()
    cancel.set()
    prober = RecordingProber()
    outcomes = ProbeWorkerPool(prober, workers=2, timeout=0.5, cancel_event=cancel).run(_targets(20))
    assert outcomes == []
    assert prober.calls == []


def test_abandoned_stream_shuts_down_workers() -> None:
    prober = RecordingProber(delay=0.005)
    stream = ProbeWorkerPool(prober, workers=2, timeout=0.5, queue_size=2).stream(_targets(200))
    first = next(stream)
    stream.close()
    assert first.target.host_name.startswith("host-")
    assert len(prober.calls) < 200


def test_feeder_error_propagates() -> None:
    def broken_targets():
        yield _targets(1)[0]
        raise RuntimeError("feed exploded")

    with pytest.raises(RuntimeError, match="feed exploded"):
        ProbeWorkerPool(always_up, workers=2, timeout=0.5).run(broken_targets())


@pytest.mark.parametrize(
    "kwargs",
    [{"workers": 0}, {"timeout": 0}, {"queue_size": 0}],
)
def test_invalid_configuration(kwargs) -> None:
    with pytest.raises(ValueError):
        ProbeWorkerPool(always_up, **kwargs)
