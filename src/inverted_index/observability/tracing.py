"""OpenTelemetry spans around index builds and query evaluation."""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from contextlib import contextmanager
import logging
from typing import TYPE_CHECKING, Any

from opentelemetry import trace
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import SpanProcessor, TracerProvider
from opentelemetry.trace import SpanKind, Status, StatusCode

from inverted_index.observability.context import bind_fields, reset_fields


if TYPE_CHECKING:
    from collections.abc import Iterator

    from opentelemetry.trace import Span, Tracer

logger = logging.getLogger(__name__)

INSTRUMENTATION_NAME = "inverted_index"


class _TracerRegistry:
    tracer: Tracer | None = None


def init_tracing(
    service_name: str = "inverted-index",
    *,
    span_processors: Iterable[SpanProcessor] = (),
    resource_attributes: Mapping[str, str] | None = None,
) -> TracerProvider:
    """Create a tracer provider, install it globally and use it for :func:`create_span`."""
    resource = Resource.create({"service.name": service_name, **(resource_attributes or {})})
    provider = TracerProvider(resource=resource)
    for processor in span_processors:
        provider.add_span_processor(processor)
    trace.set_tracer_provider(provider)
    _TracerRegistry.tracer = provider.get_tracer(INSTRUMENTATION_NAME)
    logger.debug("Tracing initialized for %s", service_name)
    return provider


def get_tracer() -> Tracer:
    if _TracerRegistry.tracer is None:
        _TracerRegistry.tracer = trace.get_tracer(INSTRUMENTATION_NAME)
    return _TracerRegistry.tracer


@contextmanager
def create_span(
    name: str,
    attributes: Mapping[str, Any] | None = None,
    kind: SpanKind = SpanKind.INTERNAL,
) -> Iterator[Span]:
    """Run the block inside a span whose ids are bound to the log context.

    An exception escaping the block is recorded on the span, marks it as
    failed and is re-raised.
    """
    with get_tracer().start_as_current_span(
        name,
        kind=kind,
        attributes=dict(attributes or {}),
        record_exception=False,
        set_status_on_exception=False,
    ) as span:
        span_context = span.get_span_context()
        token = None
        if span_context.is_valid:
            token = bind_fields(
                trace_id=format(span_context.trace_id, "032x"),
                span_id=format(span_context.span_id, "016x"),
            )
        try:
            yield span
        except Exception as exc:
            span.record_exception(exc)
            span.set_status(Status(StatusCode.ERROR, str(exc)))
            raise
        finally:
            if token is not None:
                reset_fields(token)
