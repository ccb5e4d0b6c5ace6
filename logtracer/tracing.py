import inspect
import logging
from functools import wraps

from opentelemetry import trace

from logtracer.interceptor import Interceptor, OperationDescriptor
from logtracer.logging_service import LoggingService
from logtracer.serializer import JsonSerializer
from logtracer.spans import SpanManager

_default_interceptor: Interceptor = None


def get_interceptor() -> Interceptor:
    """Return the process-wide interceptor, building a lazy default on first use."""
    global _default_interceptor
    if _default_interceptor is None:
        _default_interceptor = Interceptor()
    return _default_interceptor


def configure(
    tracer: trace.Tracer = None,
    fail_open: bool = False,
    serializer: JsonSerializer = None,
    logging_service: LoggingService = None,
) -> Interceptor:
    """Replace the process-wide interceptor used by log_tracer() and instrument()."""
    global _default_interceptor
    _default_interceptor = Interceptor(
        serializer=serializer,
        span_manager=SpanManager(tracer),
        logging_service=logging_service,
        fail_open=fail_open,
    )
    return _default_interceptor


def reset():
    global _default_interceptor
    _default_interceptor = None


def _call_arguments(signature, args, kwargs) -> list:
    """Flatten a call into the ordered argument list that gets logged."""
    if signature is None:
        return list(args) + list(kwargs.values())
    try:
        bound = signature.bind(*args, **kwargs)
    except TypeError:
        # The call itself will fail with the same TypeError
        return list(args) + list(kwargs.values())

    values = []
    for index, (name, value) in enumerate(bound.arguments.items()):
        if index == 0 and name in ("self", "cls"):
            continue
        kind = signature.parameters[name].kind
        if kind is inspect.Parameter.VAR_POSITIONAL:
            values.extend(value)
        elif kind is inspect.Parameter.VAR_KEYWORD:
            if value:
                values.append(dict(value))
        else:
            values.append(value)
    return values


def instrument(descriptor: OperationDescriptor, func, interceptor: Interceptor = None):
    """
    Wrap ``func`` so every call goes through the interception pipeline.

    Coroutine functions get a coroutine wrapper. The interceptor is looked up
    on each call, so functions can be wrapped before telemetry is configured.
    """
    try:
        signature = inspect.signature(func)
    except (TypeError, ValueError):
        signature = None
    call_logger = logging.getLogger(getattr(func, "__module__", None) or "logtracer")

    if inspect.iscoroutinefunction(func):

        @wraps(func)
        async def async_wrapper(*args, **kwargs):
            return await (interceptor or get_interceptor()).invoke_async(
                descriptor,
                lambda: func(*args, **kwargs),
                _call_arguments(signature, args, kwargs),
                call_logger,
            )

        return async_wrapper

    @wraps(func)
    def wrapper(*args, **kwargs):
        return (interceptor or get_interceptor()).invoke(
            descriptor,
            lambda: func(*args, **kwargs),
            _call_arguments(signature, args, kwargs),
            call_logger,
        )

    return wrapper


def log_tracer(
    span_name: str,
    log_input: bool = True,
    log_output: bool = False,
    interceptor: Interceptor = None,
):
    """
    Decorator: run the function inside a span named ``span_name``.

    Arguments are logged and attached to the span as an ``args - `` event
    when ``log_input`` is set, the return value as an ``out - `` event when
    ``log_output`` is set. Exceptions are logged, recorded on the span and
    re-raised untouched.

    Example:
        @log_tracer("processOrder", log_output=True)
        def process_order(order): ...
    """
    descriptor = OperationDescriptor(span_name, log_input=log_input, log_output=log_output)

    def decorator(func):
        return instrument(descriptor, func, interceptor)

    return decorator
