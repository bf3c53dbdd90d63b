"""
Span helpers used throughout the validator.

trace_operation() opens a child of the current span; the two add_*
helpers decorate whatever span is current and do nothing when tracing
is not recording.
"""

from contextlib import contextmanager

from opentelemetry import trace
from opentelemetry.trace import Status, StatusCode

from .tracer import get_tracer


def _stringify(attributes: dict) -> dict[str, str]:
    return {key: str(value) for key, value in attributes.items()}


@contextmanager
def trace_operation(
    operation_name: str,
    kind: trace.SpanKind = trace.SpanKind.INTERNAL,
    **attributes
):
    """
    Run the body inside a new span named ``operation_name``.

    Attribute values are stored as strings. An exception escaping the
    body marks the span as failed and is re-raised unchanged.

    Example:
        >>> with trace_operation("compare_table", table="user_info") as span:
        ...     result = engine.compare_table("user_info")
        ...     span.set_attribute("consistent", result.consistent)
    """
    with get_tracer().start_as_current_span(
        operation_name,
        kind=kind,
        attributes=_stringify(attributes),
        record_exception=False,
        set_status_on_exception=False,
    ) as span:
        try:
            yield span
        except Exception as e:
            span.set_attributes({
                "error": True,
                "error.type": type(e).__name__,
                "error.message": str(e),
            })
            span.record_exception(e)
            span.set_status(Status(StatusCode.ERROR, str(e)))
            raise


def add_span_attributes(**attributes):
    """Set string attributes on the current span."""
    span = trace.get_current_span()
    if span.is_recording():
        span.set_attributes(_stringify(attributes))


def add_span_event(name: str, **attributes):
    """Add an event with string attributes to the current span."""
    span = trace.get_current_span()
    if span.is_recording():
        span.add_event(name, attributes=_stringify(attributes))
