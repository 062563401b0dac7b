from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Mapping

import yaml

SOURCE_KINDS = ("rpc", "sequence")


@dataclass(frozen=True)
class SourceConfig:
    kind: str = "rpc"
    url: str = ""
    timeout_sec: float = 5.0

    # somente kind == "sequence"
    values: tuple[int, ...] = ()


@dataclass(frozen=True)
class WebhookConfig:
    url: str
    timeout_sec: float = 2.0


@dataclass(frozen=True)
class CsvAlertConfig:
    path: str = "alerts.csv"
    queue_max: int = 20000
    drop_on_full: bool = True
    flush_every_n: int = 200
    flush_every_sec: float = 2.0


@dataclass(frozen=True)
class AlertsConfig:
    log: bool = True
    webhook: WebhookConfig | None = None
    csv: CsvAlertConfig | None = None


@dataclass(frozen=True)
class AppConfig:
    source: SourceConfig

    period_sec: float = 12.0
    delivery_retries: int = 3
    log_level: str = "INFO"

    alerts: AlertsConfig = field(default_factory=AlertsConfig)


def _req(d: Mapping[str, Any], path: str) -> Any:
    cur: Any = d
    for part in path.split("."):
        if not isinstance(cur, Mapping) or part not in cur:
            raise ValueError(f"Config inválida: campo obrigatório '{path}' ausente.")
        cur = cur[part]
    return cur


def _opt(d: Mapping[str, Any], path: str, default: Any) -> Any:
    cur: Any = d
    for part in path.split("."):
        if not isinstance(cur, Mapping) or part not in cur:
            return default
        cur = cur[part]
    return cur


def _to_values(x: Any, path: str) -> tuple[int, ...]:
    if not isinstance(x, list):
        raise ValueError(f"Config inválida: '{path}' deve ser uma lista.")
    out: list[int] = []
    for i, v in enumerate(x):
        if isinstance(v, bool):
            raise ValueError(f"Config inválida: '{path}[{i}]' não é inteiro: {v!r}")
        try:
            n = int(v)
        except (TypeError, ValueError) as e:
            raise ValueError(f"Config inválida: '{path}[{i}]' não é inteiro: {v!r}") from e
        if n < 0:
            raise ValueError(f"Config inválida: '{path}[{i}]' é negativo: {n}")
        out.append(n)
    return tuple(out)


def _parse_source(data: Mapping[str, Any]) -> SourceConfig:
    raw = _req(data, "source")
    if not isinstance(raw, Mapping):
        raise ValueError("Config inválida: 'source' deve ser um mapa (dict).")

    kind = str(_opt(raw, "kind", "rpc"))
    if kind not in SOURCE_KINDS:
        raise ValueError(f"Config inválida: 'source.kind' deve ser um de {SOURCE_KINDS}, veio {kind!r}.")

    if kind == "rpc":
        return SourceConfig(
            kind=kind,
            url=str(_req(data, "source.url")),
            timeout_sec=float(_opt(raw, "timeout_sec", 5.0)),
        )

    return SourceConfig(kind=kind, values=_to_values(_req(data, "source.values"), "source.values"))


def _parse_alerts(data: Mapping[str, Any]) -> AlertsConfig:
    raw = _opt(data, "alerts", None)
    if raw is None:
        return AlertsConfig()
    if not isinstance(raw, Mapping):
        raise ValueError("Config inválida: 'alerts' deve ser um mapa (dict).")

    log = bool(_opt(raw, "log", True))

    # ---- webhook (opcional) ----
    webhook = None
    wh_raw = _opt(raw, "webhook", None)
    if isinstance(wh_raw, Mapping) and bool(_opt(wh_raw, "enabled", True)):
        webhook = WebhookConfig(
            url=str(_req(data, "alerts.webhook.url")),
            timeout_sec=float(_opt(wh_raw, "timeout_sec", 2.0)),
        )

    # ---- csv (opcional) ----
    csv_cfg = None
    csv_raw = _opt(raw, "csv", None)
    if isinstance(csv_raw, Mapping) and bool(_opt(csv_raw, "enabled", True)):
        csv_cfg = CsvAlertConfig(
            path=str(_opt(csv_raw, "path", "alerts.csv")),
            queue_max=int(_opt(csv_raw, "queue_max", 20000)),
            drop_on_full=bool(_opt(csv_raw, "drop_on_full", True)),
            flush_every_n=int(_opt(csv_raw, "flush_every_n", 200)),
            flush_every_sec=float(_opt(csv_raw, "flush_every_sec", 2.0)),
        )

    return AlertsConfig(log=log, webhook=webhook, csv=csv_cfg)


def load_config(path: str = "config.yaml") -> AppConfig:
    p = Path(path)
    data = yaml.safe_load(p.read_text(encoding="utf-8")) or {}

    source = _parse_source(data)

    period_sec = float(_opt(data, "period_sec", 12.0))
    if period_sec <= 0:
        raise ValueError(f"Config inválida: 'period_sec' deve ser > 0, veio {period_sec}.")

    delivery_retries = int(_opt(data, "delivery_retries", 3))
    if delivery_retries < 0:
        raise ValueError(f"Config inválida: 'delivery_retries' deve ser >= 0, veio {delivery_retries}.")

    log_level = str(_opt(data, "log_level", "INFO")).upper()

    return AppConfig(
        source=source,
        period_sec=period_sec,
        delivery_retries=delivery_retries,
        log_level=log_level,
        alerts=_parse_alerts(data),
    )
