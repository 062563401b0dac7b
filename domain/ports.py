from __future__ import annotations

import threading
from typing import Optional, Protocol

from .models import AlertEvent


class Clock(Protocol):
    def now_epoch(self) -> float: ...

    def sleep(self, seconds: float, stop_event: Optional[threading.Event] = None) -> None:
        """Espera `seconds`; retorna antes se `stop_event` for setado."""
        ...


class FeeSource(Protocol):
    def fetch_base_fee(self) -> int:
        """Valor atual da métrica. Levanta SampleFetchFailure se não conseguir ler."""
        ...


# -----------------------------
# Publicação de alertas (log, webhook, csv, etc.)
# -----------------------------

class AlertSink(Protocol):
    def publish(self, event: AlertEvent) -> None: ...
