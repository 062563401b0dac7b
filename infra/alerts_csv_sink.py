from __future__ import annotations

import csv
import logging
import os
import threading
import time
from queue import Queue, Full, Empty
from datetime import datetime, timezone
from typing import List, Tuple

from domain.models import AlertEvent
from domain.ports import AlertSink, Clock

logger = logging.getLogger(__name__)


class AsyncCsvAlertWriter(AlertSink):
    """
    Log de alertas em CSV, escrita assíncrona.
    Não bloqueia o ciclo de amostragem.
    """

    def __init__(
        self,
        csv_path: str,
        clock: Clock,
        *,
        queue_max: int = 20000,
        drop_on_full: bool = True,
        flush_every_n: int = 200,
        flush_every_sec: float = 2.0,
    ):
        self.csv_path = csv_path
        self.clock = clock
        self.drop_on_full = drop_on_full
        self.flush_every_n = flush_every_n
        self.flush_every_sec = flush_every_sec

        self.total_dropped = 0
        self.total_write_errors = 0

        self._q: Queue[Tuple[float, AlertEvent]] = Queue(maxsize=queue_max)
        self._stop = threading.Event()
        self._t = threading.Thread(target=self._worker, daemon=True)

    def start(self) -> None:
        self._t.start()

    def stop(self) -> None:
        self._stop.set()
        self._t.join(timeout=5)

    def publish(self, event: AlertEvent) -> None:
        item = (self.clock.now_epoch(), event)
        try:
            self._q.put_nowait(item)
        except Full:
            if self.drop_on_full:
                self.total_dropped += 1
                logger.warning("alert csv queue full, dropping event")
            else:
                self._q.put(item)

    @staticmethod
    def _fmt_epoch(epoch: float) -> str:
        dt = datetime.fromtimestamp(epoch, tz=timezone.utc)
        return dt.strftime("%Y-%m-%d %H:%M:%S.%f")[:-3]

    def _ensure_header(self) -> None:
        if not os.path.exists(self.csv_path) or os.path.getsize(self.csv_path) == 0:
            with open(self.csv_path, "a", newline="", encoding="utf-8") as f:
                csv.writer(f).writerow(["utc_time", "payload_hex"])

    def _flush(self, batch: List[Tuple[float, AlertEvent]]) -> None:
        if not batch:
            return
        self._ensure_header()
        with open(self.csv_path, "a", newline="", encoding="utf-8") as f:
            w = csv.writer(f)
            for t_epoch, ev in batch:
                w.writerow([self._fmt_epoch(t_epoch), ev.payload.hex()])

    def _drain(self, batch: List[Tuple[float, AlertEvent]]) -> None:
        while True:
            try:
                batch.append(self._q.get_nowait())
            except Empty:
                return

    def _try_flush(self, batch: List[Tuple[float, AlertEvent]]) -> bool:
        try:
            self._flush(batch)
            return True
        except OSError:
            # mantém o lote; nova tentativa depois de flush_every_sec
            self.total_write_errors += 1
            logger.exception("failed writing %d alert(s) to %s", len(batch), self.csv_path)
            return False

    def _worker(self) -> None:
        batch: List[Tuple[float, AlertEvent]] = []
        last_flush = time.time()
        retry_at = 0.0

        while not self._stop.is_set():
            try:
                batch.append(self._q.get(timeout=0.2))
            except Empty:
                pass

            now = time.time()
            if batch and now >= retry_at and (
                len(batch) >= self.flush_every_n
                or (now - last_flush) >= self.flush_every_sec
            ):
                if self._try_flush(batch):
                    batch.clear()
                    last_flush = now
                else:
                    retry_at = now + self.flush_every_sec

        # o que sobrou na fila também vai para o arquivo
        self._drain(batch)
        if batch:
            self._try_flush(batch)
