"""
Span and log instrumentation for plain Python callables.

    from logtracer import log_tracer

    @log_tracer("processOrder", log_output=True)
    def process_order(items): ...
"""

from logtracer.errors import InvalidArgument, LogTracerError, SpanCreationFailed
from logtracer.interceptor import Interceptor, OperationDescriptor
from logtracer.logging_service import LoggingService
from logtracer.serializer import JsonSerializer
from logtracer.spans import SpanManager
from logtracer.tracing import configure, get_interceptor, instrument, log_tracer, reset

__all__ = [
    "log_tracer",
    "instrument",
    "configure",
    "get_interceptor",
    "reset",
    "Interceptor",
    "OperationDescriptor",
    "JsonSerializer",
    "SpanManager",
    "LoggingService",
    "LogTracerError",
    "InvalidArgument",
    "SpanCreationFailed",
]
