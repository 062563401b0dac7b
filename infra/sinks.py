from __future__ import annotations

import logging
from typing import Iterable, List

from domain.models import AlertEvent
from domain.ports import AlertSink

logger = logging.getLogger(__name__)


class LogAlertSink(AlertSink):
    def __init__(self, name: str = "basefee.alerts"):
        self._log = logging.getLogger(name)

    def publish(self, event: AlertEvent) -> None:
        try:
            text = event.payload.decode("utf-8")
        except UnicodeDecodeError:
            text = event.payload.hex()
        self._log.warning("ALERT payload=%r", text)


class FanoutAlertSink(AlertSink):
    """Entrega o mesmo evento a todos os sinks; primeira falha interrompe."""

    def __init__(self, sinks: Iterable[AlertSink]):
        self._sinks: List[AlertSink] = list(sinks)

    def publish(self, event: AlertEvent) -> None:
        for s in self._sinks:
            s.publish(event)
