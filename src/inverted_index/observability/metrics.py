"""Prometheus metrics for index builds and queries, mirrored into OpenTelemetry."""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from contextlib import contextmanager
from dataclasses import dataclass
from enum import Enum
import time
from typing import TYPE_CHECKING, Any

from opentelemetry import metrics as otel_metrics
from opentelemetry.sdk.metrics import MeterProvider
from opentelemetry.sdk.metrics.export import MetricReader
from opentelemetry.sdk.resources import Resource
from prometheus_client import CONTENT_TYPE_LATEST, Counter, Gauge, Histogram, generate_latest


if TYPE_CHECKING:
    from collections.abc import Iterator


INSTRUMENTATION_NAME = "inverted_index"


class MetricKind(str, Enum):
    COUNTER = "counter"
    GAUGE = "gauge"
    HISTOGRAM = "histogram"


_PROMETHEUS_TYPES: dict[MetricKind, type[Counter] | type[Gauge] | type[Histogram]] = {
    MetricKind.COUNTER: Counter,
    MetricKind.GAUGE: Gauge,
    MetricKind.HISTOGRAM: Histogram,
}


class _MeterRegistry:
    provider: MeterProvider | None = None
    meter: Any = None


def init_metrics(
    service_name: str = "inverted-index",
    metric_readers: Iterable[MetricReader] = (),
) -> MeterProvider:
    """Install the global meter provider once; later calls return it unchanged."""
    if _MeterRegistry.provider is None:
        provider = MeterProvider(
            resource=Resource.create({"service.name": service_name}),
            metric_readers=list(metric_readers),
        )
        otel_metrics.set_meter_provider(provider)
        _MeterRegistry.provider = provider
        _MeterRegistry.meter = provider.get_meter(INSTRUMENTATION_NAME)
    return _MeterRegistry.provider


def _meter() -> Any:
    if _MeterRegistry.meter is None:
        _MeterRegistry.meter = otel_metrics.get_meter(INSTRUMENTATION_NAME)
    return _MeterRegistry.meter


@dataclass(frozen=True)
class LabeledMetric:
    """A bridge bound to one set of label values."""

    bridge: MetricBridge
    labels: dict[str, str]

    def inc(self, amount: float = 1.0) -> None:
        self.bridge.record(self.labels, amount)

    def observe(self, value: float) -> None:
        self.bridge.record(self.labels, value)

    def set(self, value: float) -> None:
        self.bridge.record(self.labels, value)


class MetricBridge:
    """A Prometheus metric plus the OpenTelemetry instrument mirroring it.

    Gauges are mirrored by an up-down counter fed with the change since the
    last value recorded for the same labels.
    """

    def __init__(
        self,
        kind: MetricKind,
        name: str,
        documentation: str,
        labelnames: Sequence[str],
        *,
        buckets: Sequence[float] | None = None,
    ) -> None:
        self.kind = MetricKind(kind)
        self.name = name
        self.documentation = documentation
        options: dict[str, Any] = {"buckets": tuple(buckets)} if buckets else {}
        self.prometheus = _PROMETHEUS_TYPES[self.kind](name, documentation, list(labelnames), **options)
        self._instrument: Any = None
        self._gauge_values: dict[tuple[tuple[str, str], ...], float] = {}

    def labels(self, **labels: str) -> LabeledMetric:
        return LabeledMetric(self, labels)

    def record(self, labels: dict[str, str], value: float) -> None:
        child = self.prometheus.labels(**labels)
        if self.kind is MetricKind.COUNTER:
            child.inc(value)
            self._otel_instrument().add(value, labels)
        elif self.kind is MetricKind.HISTOGRAM:
            child.observe(value)
            self._otel_instrument().record(value, labels)
        else:
            child.set(value)
            key = tuple(sorted(labels.items()))
            delta = value - self._gauge_values.get(key, 0.0)
            self._gauge_values[key] = value
            if delta:
                self._otel_instrument().add(delta, labels)

    def _otel_instrument(self) -> Any:
        if self._instrument is None:
            meter = _meter()
            factories = {
                MetricKind.COUNTER: meter.create_counter,
                MetricKind.HISTOGRAM: meter.create_histogram,
                MetricKind.GAUGE: meter.create_up_down_counter,
            }
            self._instrument = factories[self.kind](self.name, description=self.documentation)
        return self._instrument


INDEX_BUILD_LATENCY = MetricBridge(
    MetricKind.HISTOGRAM,
    "index_build_latency_seconds",
    "Duration of sort, filter and posting-list assembly",
    ["lexicon"],
    buckets=(0.001, 0.01, 0.05, 0.1, 0.5, 1.0, 5.0, 30.0),
)

INDEX_TERM_COUNT = MetricBridge(
    MetricKind.GAUGE,
    "index_term_count",
    "Distinct terms in the last built index",
    ["lexicon"],
)

QUERY_LATENCY = MetricBridge(
    MetricKind.HISTOGRAM,
    "query_latency_seconds",
    "Boolean query evaluation latency",
    ["engine"],
    buckets=(0.0001, 0.0005, 0.001, 0.005, 0.01, 0.05, 0.1),
)

QUERY_COUNT = MetricBridge(
    MetricKind.COUNTER,
    "queries_total",
    "Boolean queries evaluated, by whether they matched any document",
    ["engine", "outcome"],
)


@contextmanager
def track_latency(histogram: MetricBridge, **labels: str) -> Iterator[None]:
    """Observe the wall-clock duration of the block into ``histogram``."""
    started = time.perf_counter()
    try:
        yield
    finally:
        histogram.labels(**labels).observe(time.perf_counter() - started)


def get_metrics() -> bytes:
    """Prometheus text exposition of every registered metric."""
    return generate_latest()


def get_metrics_content_type() -> str:
    return CONTENT_TYPE_LATEST
