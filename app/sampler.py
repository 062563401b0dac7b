from __future__ import annotations

from domain.errors import SampleFetchFailure
from domain.models import Sample
from domain.ports import FeeSource


class Sampler:
    """Lê o valor atual da métrica na fonte injetada."""

    def __init__(self, source: FeeSource):
        self._source = source

    def collect(self) -> Sample:
        value = self._source.fetch_base_fee()

        # bool é subclasse de int, mas não é uma amostra válida
        if isinstance(value, bool) or not isinstance(value, int):
            raise SampleFetchFailure(f"fonte devolveu valor não-inteiro: {value!r}")
        if value < 0:
            raise SampleFetchFailure(f"fonte devolveu valor negativo: {value}")
        return value
