import logging
from contextlib import contextmanager

from opentelemetry import trace
from opentelemetry.trace import Span, Status, StatusCode

from logtracer.errors import InvalidArgument, SpanCreationFailed

logger = logging.getLogger(__name__)

DEFAULT_SCOPE = "logtracer"


class SpanManager:
    """
    Thin layer over an OpenTelemetry tracer.

    Spans are started as children of whatever span is current in the
    OpenTelemetry context when create_span() is called. The manager never
    makes a span current by itself; use activate() for that.
    """

    def __init__(self, tracer: trace.Tracer = None):
        self._tracer = tracer

    @property
    def tracer(self) -> trace.Tracer:
        # Resolved lazily so a provider installed after import is picked up
        if self._tracer is None:
            return trace.get_tracer(DEFAULT_SCOPE)
        return self._tracer

    def create_span(self, name: str) -> Span:
        if not isinstance(name, str) or not name.strip():
            raise InvalidArgument(f"Span name must be a non-empty string, got {name!r}")

        parent = trace.get_current_span()
        try:
            span = self.tracer.start_span(name, context=trace.set_span_in_context(parent))
        except Exception as e:
            raise SpanCreationFailed(f"Failed to create span {name!r}: {e}") from e

        if span is None:
            raise SpanCreationFailed(f"Failed to create span {name!r}: tracer returned no span")
        return span

    def add_event(self, span: Span, description: str):
        if span is None or description is None:
            return
        try:
            span.add_event(description)
        except Exception:
            logger.debug("Dropped span event %r", description, exc_info=True)

    def mark_error(self, span: Span, failure: BaseException):
        if span is None or failure is None:
            return
        span.record_exception(failure)
        span.set_status(Status(StatusCode.ERROR, str(failure)))

    def end_span(self, span: Span):
        if span is not None:
            span.end()

    @contextmanager
    def activate(self, span: Span):
        """Make ``span`` the current span for the block, restoring the previous one on exit."""
        with trace.use_span(
            span,
            end_on_exit=False,
            record_exception=False,
            set_status_on_exception=False,
        ):
            yield span
