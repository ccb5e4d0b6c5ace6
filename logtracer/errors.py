class LogTracerError(Exception):
    """Base class for errors raised by the instrumentation layer."""


class InvalidArgument(LogTracerError, ValueError):
    """Raised when an operation is described with an unusable span name."""


class SpanCreationFailed(LogTracerError, RuntimeError):
    """Raised when the tracing backend cannot allocate a span."""
