from __future__ import annotations


class MonitorError(Exception):
    """Base dos erros tratados pelo orquestrador."""


class SampleFetchFailure(MonitorError):
    """
    Falha ao ler a métrica (rede, provider, resposta inválida).
    O ciclo é pulado e a janela não avança.
    """


class DeliveryFailure(MonitorError):
    """Transporte de alerta não confirmou a entrega."""
