"""Prometheus collector for SLLP client sessions."""

from __future__ import annotations

import logging
import re
from collections.abc import Iterator
from typing import TYPE_CHECKING, Any, cast

import msgspec
from prometheus_client import CollectorRegistry, generate_latest
from prometheus_client.core import (
    GaugeMetricFamily,
    InfoMetricFamily,
)
from prometheus_client.registry import Collector

if TYPE_CHECKING:
    from .client import Client

logger = logging.getLogger("sllp.metrics")


_SANITIZE_RE = re.compile(r"[^a-zA-Z0-9_]")
_INFO_METRIC = "sllp_info"
_GAUGE_DOC = "SLLP client auto-generated metric"
_INFO_DOC = "SLLP client informational metric"


def build_metrics_snapshot(client: Client) -> dict[str, Any]:
    version = client.version
    return {
        "session": {
            "ready": client.initialized,
            "state": client.fsm_state,
            "version": version.text if version is not None else None,
        },
        "exchange": client.stats,
        "catalog": {
            "variables": len(client.variables),
            "groups": len(client.groups),
            "curves": len(client.curves),
            "functions": len(client.functions),
        },
    }


class SllpCollector(Collector):
    """Prometheus collector that projects one client's exchange stats and catalogs."""

    def __init__(self, client: Client) -> None:
        self._client = client

    def collect(self) -> Iterator[Any]:
        snapshot = build_metrics_snapshot(self._client)

        info_values: list[tuple[str, str]] = []
        for metric_type, name, value in self._flatten("sllp", snapshot):
            if metric_type == "gauge":
                metric = GaugeMetricFamily(
                    _sanitize_metric_name(name),
                    _GAUGE_DOC,
                )
                metric.add_metric((), value)
                yield metric
            else:
                info_values.append((name, value))
        if info_values:
            info_metric = InfoMetricFamily(
                _INFO_METRIC,
                _INFO_DOC,
                labels=("key",),
            )
            for key, value in info_values:
                info_metric.add_metric((key,), {"value": value})
            yield info_metric

    def _flatten(
        self,
        prefix: str,
        value: Any,
    ) -> Iterator[tuple[str, str, Any]]:
        if isinstance(value, msgspec.Struct):
            yield from self._flatten(prefix, msgspec.structs.asdict(value))
            return
        if isinstance(value, dict):
            typed_dict = cast(dict[Any, Any], value)
            for raw_key, sub_value in typed_dict.items():
                key = raw_key if isinstance(raw_key, str) else str(raw_key)
                yield from self._flatten(f"{prefix}_{key}" if prefix else key, sub_value)
            return
        if isinstance(value, bool):
            yield ("gauge", prefix, 1.0 if value else 0.0)
            return
        if isinstance(value, (int, float)):
            yield ("gauge", prefix, float(value))
            return
        if value is None:
            yield ("info", prefix, "null")
            return
        yield ("info", prefix, str(value))


def register_client(client: Client, registry: CollectorRegistry | None = None) -> CollectorRegistry:
    """Attach a :class:`SllpCollector` for *client* to *registry* (a fresh one by default)."""
    registry = registry if registry is not None else CollectorRegistry()
    registry.register(SllpCollector(client))
    logger.debug("Registered metrics collector for %r", client)
    return registry


def render_metrics(registry: CollectorRegistry) -> bytes:
    return generate_latest(registry)


def _sanitize_metric_name(name: str) -> str:
    cleaned = _SANITIZE_RE.sub("_", name.lower())
    cleaned = cleaned.strip("_") or "sllp_metric"
    if cleaned[0].isdigit():
        cleaned = f"_{cleaned}"
    return cleaned


__all__ = ["SllpCollector", "build_metrics_snapshot", "register_client", "render_metrics"]
