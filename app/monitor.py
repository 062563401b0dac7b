from __future__ import annotations

import logging
import threading
from collections import deque
from dataclasses import dataclass
from typing import Deque, Optional, Tuple

from domain.errors import DeliveryFailure, SampleFetchFailure
from domain.models import Decision, DecisionKind, Sample
from domain.ports import Clock

from .decision_engine import evaluate
from .relay import AlertRelay
from .sampler import Sampler

logger = logging.getLogger(__name__)


@dataclass
class MonitorPolicy:
    period_sec: float = 12.0
    delivery_retries: int = 3


class FeeMonitor:
    """
    Orquestrador do ciclo de amostragem.

    A cada período:
      1) coleta uma amostra (falha -> pula o ciclo, janela intacta)
      2) empurra na janela (no máximo 2 amostras, mais recente primeiro)
      3) avalia; só encaminha ao relay quando TRIGGERED
    """

    def __init__(
        self,
        sampler: Sampler,
        relay: AlertRelay,
        clock: Clock,
        policy: MonitorPolicy | None = None,
    ):
        self.sampler = sampler
        self.relay = relay
        self.clock = clock
        self.policy = policy or MonitorPolicy()

        self._window: Deque[Sample] = deque(maxlen=2)
        self._stop = threading.Event()

        # métricas simples
        self.total_cycles = 0
        self.total_fetch_failures = 0
        self.total_triggered = 0
        self.total_delivery_failures = 0

    @property
    def window(self) -> Tuple[Sample, ...]:
        return tuple(self._window)

    def tick(self) -> Optional[Decision]:
        self.total_cycles += 1

        try:
            sample = self.sampler.collect()
        except SampleFetchFailure as e:
            self.total_fetch_failures += 1
            logger.warning("sample fetch failed, skipping cycle: %s", e)
            return None

        self._window.appendleft(sample)
        decision = evaluate(self._window)

        if decision.kind is DecisionKind.NOT_ENOUGH_DATA:
            logger.info("warming up: %s", decision.payload)
            return decision

        logger.info(
            "basefee current=%d delta=%d threshold=%d -> %s",
            sample,
            decision.delta,
            decision.threshold,
            decision.kind.value,
        )

        if decision.should_respond:
            self.total_triggered += 1
            self._deliver(decision.payload.encode("utf-8"))

        return decision

    def _deliver(self, payload: bytes) -> None:
        attempt = 0
        while True:
            try:
                self.relay.transmit(payload)
                return
            except DeliveryFailure as e:
                attempt += 1
                if attempt > self.policy.delivery_retries:
                    self.total_delivery_failures += 1
                    logger.error("alert delivery failed after %d attempts: %s", attempt, e)
                    return
                logger.warning("alert delivery failed (attempt %d): %s", attempt, e)
                self.clock.sleep(min(0.25 * (2 ** (attempt - 1)), 2.0), self._stop)

    def run(self, max_cycles: Optional[int] = None) -> None:
        period = float(self.policy.period_sec)
        next_due = self.clock.now_epoch()
        done = 0

        while not self._stop.is_set():
            self.tick()
            done += 1
            if max_cycles is not None and done >= max_cycles:
                return

            next_due += period
            now = self.clock.now_epoch()
            if now >= next_due:
                # atrasou: não faz catch-up, amostra antiga não tem valor
                logger.warning("cycle overran period by %.3fs", now - next_due)
                next_due = now
                continue
            self.clock.sleep(next_due - now, self._stop)

    def stop(self) -> None:
        self._stop.set()
