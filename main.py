import logging
import sys
from urllib.parse import urlparse

from config import AppConfig, load_config
from app.monitor import FeeMonitor, MonitorPolicy
from app.relay import AlertRelay
from app.sampler import Sampler
from infra.alerts_csv_sink import AsyncCsvAlertWriter
from infra.clock import SystemClock
from infra.http_alert_sink import HttpAlertSink
from infra.rpc_fee_source import JsonRpcFeeSource, SequenceFeeSource
from infra.sinks import FanoutAlertSink, LogAlertSink

logger = logging.getLogger("basefee")


def _check_url(url: str, what: str) -> None:
    u = urlparse(url)
    if u.scheme not in ("http", "https") or not u.netloc:
        raise SystemExit(f"{what} inválida: {url!r}")


def build_source(cfg: AppConfig):
    if cfg.source.kind == "sequence":
        return SequenceFeeSource(cfg.source.values)
    _check_url(cfg.source.url, "source.url")
    return JsonRpcFeeSource(cfg.source.url, timeout_sec=cfg.source.timeout_sec)


def main():
    path = sys.argv[1] if len(sys.argv) > 1 else "config.yaml"
    cfg = load_config(path)

    logging.basicConfig(
        level=getattr(logging, cfg.log_level, logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    clock = SystemClock()
    source = build_source(cfg)

    # ---- sinks de alerta ----
    sinks = []
    webhook = None
    csv_writer = None

    if cfg.alerts.log:
        sinks.append(LogAlertSink())

    if cfg.alerts.webhook is not None:
        _check_url(cfg.alerts.webhook.url, "alerts.webhook.url")
        webhook = HttpAlertSink(cfg.alerts.webhook.url, timeout_sec=cfg.alerts.webhook.timeout_sec)
        webhook.start()
        sinks.append(webhook)

    if cfg.alerts.csv is not None:
        csv_writer = AsyncCsvAlertWriter(
            cfg.alerts.csv.path,
            clock,
            queue_max=cfg.alerts.csv.queue_max,
            drop_on_full=cfg.alerts.csv.drop_on_full,
            flush_every_n=cfg.alerts.csv.flush_every_n,
            flush_every_sec=cfg.alerts.csv.flush_every_sec,
        )
        csv_writer.start()
        sinks.append(csv_writer)

    if not sinks:
        logger.warning("no alert sink enabled; triggered decisions will not be observable")

    monitor = FeeMonitor(
        sampler=Sampler(source),
        relay=AlertRelay(FanoutAlertSink(sinks)),
        clock=clock,
        policy=MonitorPolicy(period_sec=cfg.period_sec, delivery_retries=cfg.delivery_retries),
    )

    logger.info(
        "monitoring basefee source=%s period=%.1fs sinks=%s",
        cfg.source.kind,
        cfg.period_sec,
        [type(s).__name__ for s in sinks],
    )

    try:
        monitor.run()
    except KeyboardInterrupt:
        logger.info("interrupted")
    finally:
        try:
            if webhook is not None:
                webhook.stop()
        finally:
            try:
                if csv_writer is not None:
                    csv_writer.stop()
            finally:
                if isinstance(source, JsonRpcFeeSource):
                    source.close()

    logger.info(
        "cycles=%d triggered=%d fetch_failures=%d delivery_failures=%d",
        monitor.total_cycles,
        monitor.total_triggered,
        monitor.total_fetch_failures,
        monitor.total_delivery_failures,
    )


if __name__ == "__main__":
    main()
