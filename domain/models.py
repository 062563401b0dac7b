from __future__ import annotations
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Sequence

# base fee em wei; int do Python não tem overflow
Sample = int

# mais recente primeiro: window[0] = atual, window[1] = anterior
SampleWindow = Sequence[Sample]


class DecisionKind(Enum):
    NOT_ENOUGH_DATA = "not_enough_data"
    STABLE = "stable"
    TRIGGERED = "triggered"


@dataclass(frozen=True)
class Decision:
    kind: DecisionKind
    payload: str

    # diagnóstico (None quando não houve avaliação)
    delta: Optional[int] = None
    threshold: Optional[int] = None

    @property
    def should_respond(self) -> bool:
        return self.kind is DecisionKind.TRIGGERED

    def as_tuple(self) -> tuple[bool, str]:
        return self.should_respond, self.payload


@dataclass(frozen=True)
class AlertEvent:
    payload: bytes
