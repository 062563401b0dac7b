from __future__ import annotations

import logging
from typing import Union

from domain.models import AlertEvent
from domain.ports import AlertSink

logger = logging.getLogger(__name__)


class AlertRelay:
    """
    Republica o payload da decisão como evento observável.
    Não interpreta nem filtra: um evento por transmit(), payload intacto.
    """

    def __init__(self, sink: AlertSink):
        self._sink = sink

        # métricas simples
        self.total_transmitted = 0

    def transmit(self, payload: Union[bytes, str]) -> None:
        if isinstance(payload, str):
            payload = payload.encode("utf-8")

        if not isinstance(payload, (bytes, bytearray, memoryview)):
            raise TypeError(f"payload deve ser bytes ou str, veio {type(payload).__name__}")

        event = AlertEvent(payload=bytes(payload))

        # DeliveryFailure sobe para o orquestrador
        self._sink.publish(event)
        self.total_transmitted += 1
        logger.debug("alert transmitted (%d bytes)", len(event.payload))
