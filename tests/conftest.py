"""
Pytest configuration and fixtures.
Tracer setup backed by an in-memory exporter, plus recording collaborators.
"""

import logging
from contextlib import contextmanager

import pytest
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import SimpleSpanProcessor
from opentelemetry.sdk.trace.export.in_memory_span_exporter import InMemorySpanExporter

from logtracer import tracing
from logtracer.interceptor import Interceptor
from logtracer.spans import SpanManager


@pytest.fixture
def span_exporter():
    return InMemorySpanExporter()


@pytest.fixture
def provider(span_exporter):
    provider = TracerProvider()
    provider.add_span_processor(SimpleSpanProcessor(span_exporter))
    yield provider
    provider.shutdown()


@pytest.fixture
def tracer(provider):
    return provider.get_tracer("tests")


@pytest.fixture
def span_manager(tracer):
    return SpanManager(tracer)


@pytest.fixture
def interceptor(span_manager):
    return Interceptor(span_manager=span_manager)


@pytest.fixture
def configured(tracer):
    """Point log_tracer()-decorated functions at the in-memory tracer."""
    interceptor = tracing.configure(tracer=tracer)
    yield interceptor
    tracing.reset()


@pytest.fixture
def info_logs(caplog):
    caplog.set_level(logging.INFO)
    return caplog


class FakeSpan:
    def __init__(self, name):
        self.name = name
        self.events = []
        self.error = None
        self.end_count = 0


class RecordingSpanManager:
    """SpanManager double that keeps every call in ``calls``."""

    def __init__(self, calls=None, create_error=None):
        self.calls = calls if calls is not None else []
        self.create_error = create_error
        self.spans = []

    def create_span(self, name):
        self.calls.append(("create_span", name))
        if self.create_error is not None:
            raise self.create_error
        span = FakeSpan(name)
        self.spans.append(span)
        return span

    def add_event(self, span, description):
        self.calls.append(("add_event", description))
        span.events.append(description)

    def mark_error(self, span, failure):
        self.calls.append(("mark_error", failure))
        span.error = failure

    def end_span(self, span):
        self.calls.append(("end_span", span.name))
        span.end_count += 1

    @contextmanager
    def activate(self, span):
        self.calls.append(("activate", span.name))
        try:
            yield span
        finally:
            self.calls.append(("deactivate", span.name))


class RecordingLoggingService:
    def __init__(self, calls=None):
        self.calls = calls if calls is not None else []

    def log_input(self, operation_name, arguments, logger=None):
        self.calls.append(("log_input", operation_name, arguments))

    def log_output(self, operation_name, output, logger=None):
        self.calls.append(("log_output", operation_name, output))

    def log_error(self, operation_name, failure, logger=None):
        self.calls.append(("log_error", operation_name, failure))


@pytest.fixture
def calls():
    return []


@pytest.fixture
def fake_spans(calls):
    return RecordingSpanManager(calls)


@pytest.fixture
def fake_logs(calls):
    return RecordingLoggingService(calls)


@pytest.fixture
def recording_interceptor(fake_spans, fake_logs):
    return Interceptor(span_manager=fake_spans, logging_service=fake_logs)
