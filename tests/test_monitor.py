import threading
import time

import pytest

from app.decision_engine import TRIGGERED_PAYLOAD
from app.monitor import FeeMonitor, MonitorPolicy
from app.relay import AlertRelay
from app.sampler import Sampler
from domain.errors import DeliveryFailure, SampleFetchFailure
from domain.models import DecisionKind
from infra.clock import SystemClock


# --- Mocks ---

class FakeClock:
    def __init__(self, now=0.0):
        self.now = now
        self.sleeps = []

    def now_epoch(self):
        return self.now

    def sleep(self, seconds, stop_event=None):
        self.sleeps.append(seconds)
        self.now += seconds


class ScriptedSource:
    """Devolve os valores em ordem; instâncias de Exception são levantadas."""

    def __init__(self, script, clock=None, cost_sec=0.0):
        self._script = list(script)
        self._clock = clock
        self._cost = cost_sec

    def fetch_base_fee(self):
        if self._clock is not None:
            self._clock.now += self._cost
        item = self._script.pop(0)
        if isinstance(item, Exception):
            raise item
        return item


class RecordingSink:
    def __init__(self, failures=0):
        self.failures = failures
        self.attempts = 0
        self.events = []

    def publish(self, event):
        self.attempts += 1
        if self.attempts <= self.failures:
            raise DeliveryFailure("webhook down")
        self.events.append(event)


# --- Fixtures ---

@pytest.fixture
def clock():
    return FakeClock()


def make_monitor(script, clock, sink=None, **policy):
    sink = sink if sink is not None else RecordingSink()
    monitor = FeeMonitor(
        sampler=Sampler(ScriptedSource(script)),
        relay=AlertRelay(sink),
        clock=clock,
        policy=MonitorPolicy(**policy),
    )
    return monitor, sink


# --- Tests ---

def test_first_tick_only_warms_up(clock):
    monitor, sink = make_monitor([100], clock)

    d = monitor.tick()

    assert d.kind is DecisionKind.NOT_ENOUGH_DATA
    assert monitor.window == (100,)
    assert sink.events == []


def test_triggered_decision_is_relayed(clock):
    monitor, sink = make_monitor([100, 102], clock)

    monitor.tick()
    d = monitor.tick()

    assert d.should_respond is True
    assert monitor.window == (102, 100)
    assert [e.payload for e in sink.events] == [TRIGGERED_PAYLOAD.encode()]
    assert monitor.total_triggered == 1


def test_stable_decision_is_not_relayed(clock):
    monitor, sink = make_monitor([100, 101], clock)

    monitor.tick()
    d = monitor.tick()

    assert d.kind is DecisionKind.STABLE
    assert sink.events == []


def test_window_keeps_only_two_newest_samples(clock):
    monitor, _ = make_monitor([100, 100, 100, 150], clock)

    for _ in range(4):
        monitor.tick()

    assert monitor.window == (150, 100)


def test_fetch_failure_skips_cycle_without_touching_window(clock):
    monitor, sink = make_monitor(
        [100, SampleFetchFailure("rpc timeout"), 102], clock
    )

    monitor.tick()
    assert monitor.tick() is None
    assert monitor.window == (100,)
    assert monitor.total_fetch_failures == 1

    # a falha não vira amostra zero: compara 102 com 100
    d = monitor.tick()
    assert (d.delta, d.threshold) == (2, 1)
    assert len(sink.events) == 1


def test_delivery_is_retried_with_backoff(clock):
    sink = RecordingSink(failures=2)
    monitor, _ = make_monitor([100, 200], clock, sink=sink, delivery_retries=3)

    monitor.tick()
    monitor.tick()

    assert sink.attempts == 3
    assert len(sink.events) == 1
    assert clock.sleeps == [0.25, 0.5]
    assert monitor.total_delivery_failures == 0


def test_delivery_gives_up_after_retries(clock):
    sink = RecordingSink(failures=10)
    monitor, _ = make_monitor([100, 200, 300], clock, sink=sink, delivery_retries=2)

    monitor.tick()
    monitor.tick()

    assert sink.attempts == 3
    assert sink.events == []
    assert monitor.total_delivery_failures == 1

    # o ciclo seguinte continua normalmente
    assert monitor.tick().should_respond is True


def test_run_sleeps_one_period_between_cycles(clock):
    monitor, _ = make_monitor([100, 100, 100], clock, period_sec=10)

    monitor.run(max_cycles=3)

    assert monitor.total_cycles == 3
    assert clock.sleeps == [10.0, 10.0]


def test_run_does_not_sleep_when_cycle_overruns(clock):
    monitor = FeeMonitor(
        sampler=Sampler(ScriptedSource([100, 100, 100], clock=clock, cost_sec=15.0)),
        relay=AlertRelay(RecordingSink()),
        clock=clock,
        policy=MonitorPolicy(period_sec=10),
    )

    monitor.run(max_cycles=3)

    assert monitor.total_cycles == 3
    assert clock.sleeps == []


def test_stopped_monitor_does_not_tick(clock):
    monitor, _ = make_monitor([100], clock)
    monitor.stop()

    monitor.run()

    assert monitor.total_cycles == 0


class SteadySource:
    def fetch_base_fee(self):
        return 100


def test_stop_interrupts_run_while_waiting_for_next_period():
    monitor = FeeMonitor(
        sampler=Sampler(SteadySource()),
        relay=AlertRelay(RecordingSink()),
        clock=SystemClock(),
        policy=MonitorPolicy(period_sec=30),
    )
    t = threading.Thread(target=monitor.run, daemon=True)

    t.start()
    time.sleep(0.2)
    started = time.monotonic()
    monitor.stop()
    t.join(timeout=5)

    assert not t.is_alive()
    assert time.monotonic() - started < 1.0
    assert monitor.total_cycles == 1
