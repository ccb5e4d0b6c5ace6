"""
Around-invocation pipeline shared by every instrumented operation.

For one call the order is always:

    create span -> make it current -> [log + event args] -> run the call
        -> success: [log + event output]
        -> failure: log error, mark span errored, re-raise as-is
    -> end span -> restore the previous current span

Recording steps are best-effort. If the serializer, the logging service or
the span manager blows up while observing, the failure is logged at DEBUG and
the call carries on; it never replaces the outcome of the wrapped call.

A synchronous call that hands back an awaitable keeps its span open until the
awaitable is awaited; output and failures are recorded at that point.
"""

import inspect
import logging
from dataclasses import dataclass

from logtracer.errors import SpanCreationFailed
from logtracer.logging_service import LoggingService
from logtracer.serializer import JsonSerializer
from logtracer.spans import SpanManager

logger = logging.getLogger("logtracer")

ARGS_EVENT_PREFIX = "args - "
OUTPUT_EVENT_PREFIX = "out - "


@dataclass(frozen=True)
class OperationDescriptor:
    """Static instrumentation settings for one call site."""

    name: str
    log_input: bool = True
    log_output: bool = False


def _observe(step, *args, **kwargs):
    try:
        return step(*args, **kwargs)
    except Exception:
        logger.debug("Observation step %s failed", getattr(step, "__name__", step), exc_info=True)
        return None


class Interceptor:
    def __init__(
        self,
        serializer: JsonSerializer = None,
        span_manager: SpanManager = None,
        logging_service: LoggingService = None,
        fail_open: bool = False,
    ):
        self.serializer = serializer or JsonSerializer()
        self.span_manager = span_manager or SpanManager()
        self.logging_service = logging_service or LoggingService()
        # When True a SpanCreationFailed runs the call without instrumentation
        self.fail_open = fail_open

    def _start(self, descriptor: OperationDescriptor):
        try:
            return self.span_manager.create_span(descriptor.name)
        except SpanCreationFailed:
            if not self.fail_open:
                raise
            logger.warning(
                "Span creation failed for %s, running uninstrumented",
                descriptor.name,
                exc_info=True,
            )
            return None

    def _record_input(self, descriptor, span, args, call_logger):
        if not descriptor.log_input:
            return
        rendered = _observe(self.serializer.render_sequence, args)
        _observe(self.logging_service.log_input, descriptor.name, rendered, call_logger)
        _observe(self.span_manager.add_event, span, ARGS_EVENT_PREFIX + str(rendered))

    def _record_output(self, descriptor, span, result, call_logger):
        if not descriptor.log_output:
            return
        rendered = _observe(self.serializer.render, result)
        _observe(self.logging_service.log_output, descriptor.name, rendered, call_logger)
        _observe(self.span_manager.add_event, span, OUTPUT_EVENT_PREFIX + str(rendered))

    def _record_error(self, descriptor, span, failure, call_logger):
        _observe(self.logging_service.log_error, descriptor.name, failure, call_logger)
        _observe(self.span_manager.mark_error, span, failure)

    def invoke(
        self, descriptor: OperationDescriptor, call, args=(), call_logger: logging.Logger = None
    ):
        """
        Run ``call()`` inside a span for ``descriptor``.

        Args:
            descriptor: name and logging flags of the operation
            call: zero-argument callable performing the real work
            args: the original arguments, used only for input logging
            call_logger: logger for the input/output/error records

        Returns:
            Whatever ``call()`` returned. Failures from ``call()`` are
            re-raised unchanged after being recorded. When ``call()`` hands
            back an awaitable, a coroutine is returned instead that keeps the
            span open until the awaitable settles.
        """
        span = self._start(descriptor)
        if span is None:
            return call()

        deferred = False
        try:
            with self.span_manager.activate(span):
                self._record_input(descriptor, span, args, call_logger)
                try:
                    result = call()
                except BaseException as e:
                    self._record_error(descriptor, span, e, call_logger)
                    raise
                if inspect.isawaitable(result):
                    # outcome is only known once the caller awaits it
                    deferred = True
                    return self._settle(descriptor, span, result, call_logger)
                self._record_output(descriptor, span, result, call_logger)
                return result
        finally:
            if not deferred:
                _observe(self.span_manager.end_span, span)

    async def _settle(self, descriptor, span, awaitable, call_logger):
        try:
            with self.span_manager.activate(span):
                try:
                    result = await awaitable
                except BaseException as e:
                    self._record_error(descriptor, span, e, call_logger)
                    raise
                self._record_output(descriptor, span, result, call_logger)
                return result
        finally:
            _observe(self.span_manager.end_span, span)

    async def invoke_async(
        self, descriptor: OperationDescriptor, call, args=(), call_logger: logging.Logger = None
    ):
        """Coroutine counterpart of invoke(); ``call()`` must return an awaitable."""
        span = self._start(descriptor)
        if span is None:
            return await call()

        try:
            with self.span_manager.activate(span):
                self._record_input(descriptor, span, args, call_logger)
                try:
                    result = await call()
                except BaseException as e:
                    self._record_error(descriptor, span, e, call_logger)
                    raise
                self._record_output(descriptor, span, result, call_logger)
                return result
        finally:
            _observe(self.span_manager.end_span, span)
