from __future__ import annotations

from domain.models import Decision, DecisionKind, SampleWindow
from domain.thresholds import FluxThreshold

INSUFFICIENT_PAYLOAD = "Insufficient samples"
STABLE_PAYLOAD = "Stable basefee"
TRIGGERED_PAYLOAD = "Basefee flux >1.5%"

_RULE = FluxThreshold()


def evaluate(window: SampleWindow, rule: FluxThreshold = _RULE) -> Decision:
    """
    Compara as duas amostras mais recentes (window[0] = atual, window[1] = anterior).

    - Menos de 2 amostras: NOT_ENOUGH_DATA (só esperar mais dados)
    - |atual - anterior| > anterior // 66: TRIGGERED
    - caso contrário: STABLE

    Função pura: sem relógio, sem I/O, sem estado entre chamadas.
    """
    if len(window) < 2:
        return Decision(kind=DecisionKind.NOT_ENOUGH_DATA, payload=INSUFFICIENT_PAYLOAD)

    current = int(window[0])
    previous = int(window[1])

    delta = rule.delta(current, previous)
    threshold = rule.threshold(previous)

    if delta > threshold:
        return Decision(
            kind=DecisionKind.TRIGGERED,
            payload=TRIGGERED_PAYLOAD,
            delta=delta,
            threshold=threshold,
        )

    return Decision(
        kind=DecisionKind.STABLE,
        payload=STABLE_PAYLOAD,
        delta=delta,
        threshold=threshold,
    )
