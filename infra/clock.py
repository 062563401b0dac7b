import threading
import time
from typing import Optional

from domain.ports import Clock

# epoch seconds (float)
class SystemClock(Clock):
    def now_epoch(self) -> float:
        return time.time()

    def sleep(self, seconds: float, stop_event: Optional[threading.Event] = None) -> None:
        if seconds <= 0:
            return
        # com evento: acorda assim que stop() for chamado
        if stop_event is not None:
            stop_event.wait(seconds)
        else:
            time.sleep(seconds)
