from __future__ import annotations

import base64
from typing import Optional

import httpx

from domain.errors import DeliveryFailure
from domain.models import AlertEvent
from domain.ports import AlertSink


def _encode_payload(payload: bytes) -> dict:
    try:
        return {"payload": payload.decode("utf-8"), "encoding": "utf-8"}
    except UnicodeDecodeError:
        return {"payload": base64.b64encode(payload).decode("ascii"), "encoding": "base64"}


class HttpAlertSink(AlertSink):
    """
    POST de cada alerta num webhook.
    Sem retry aqui: falha vira DeliveryFailure e o orquestrador decide.
    """

    def __init__(
        self,
        url: str,
        *,
        timeout_sec: float = 2.0,
        client: Optional[httpx.Client] = None,
    ) -> None:
        self._url = url
        self._timeout = timeout_sec
        self._client = client
        self._owns_client = client is None

        # métricas simples (opcional)
        self.total_sent = 0
        self.total_failed = 0

    def start(self) -> None:
        if self._client is None:
            self._client = httpx.Client(timeout=self._timeout)

    def stop(self) -> None:
        if self._client is not None and self._owns_client:
            self._client.close()
            self._client = None

    def publish(self, event: AlertEvent) -> None:
        if self._client is None:
            raise RuntimeError("HttpAlertSink.publish chamado antes de start()")

        try:
            r = self._client.post(self._url, json=_encode_payload(event.payload))
            r.raise_for_status()
        except httpx.HTTPError as e:
            self.total_failed += 1
            raise DeliveryFailure(f"webhook {self._url}: {e}") from e

        self.total_sent += 1
