from __future__ import annotations

from dataclasses import dataclass

# 1/66 ~= 1.515%, não exatamente 1.5%
FLUX_DIVISOR = 66


@dataclass(frozen=True)
class FluxThreshold:
    divisor: int = FLUX_DIVISOR

    def threshold(self, previous: int) -> int:
        # divisão inteira (floor); previous == 0 -> 0
        return previous // self.divisor

    @staticmethod
    def delta(current: int, previous: int) -> int:
        return current - previous if current >= previous else previous - current

    def violated(self, current: int, previous: int) -> bool:
        return self.delta(current, previous) > self.threshold(previous)

    def label(self) -> str:
        return f"|delta| > previous // {self.divisor}"
