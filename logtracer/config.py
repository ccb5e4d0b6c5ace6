import logging
import os

from dotenv import find_dotenv, load_dotenv
from opentelemetry import trace
from opentelemetry.exporter.otlp.proto.http.trace_exporter import OTLPSpanExporter
from opentelemetry.sdk.resources import SERVICE_NAME, Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import (
    BatchSpanProcessor,
    ConsoleSpanExporter,
    SimpleSpanProcessor,
)
from pydantic import BaseModel, field_validator
from rich.logging import RichHandler

from logtracer import tracing
from logtracer.exporter import get_exporter

logger = logging.getLogger(__name__)

DEFAULT_ACTIVITY_LOG = os.path.join("telemetry", "activity.log")


def _env_flag(name: str, default: bool = False) -> bool:
    return os.getenv(name, str(default)).strip().lower() in ("1", "true", "yes", "on")


class TelemetrySettings(BaseModel):
    """Where traces go and how this service identifies itself in them."""

    collector_endpoint: str
    service_name: str
    scope_name: str
    activity_log_path: str = DEFAULT_ACTIVITY_LOG
    activity_export: bool = False
    console_export: bool = False
    fail_open: bool = False

    @field_validator("collector_endpoint", "service_name", "scope_name")
    @classmethod
    def _not_blank(cls, value: str, info) -> str:
        value = value.strip()
        if not value:
            raise ValueError(f"{info.field_name} cannot be empty")
        return value

    @classmethod
    def from_env(cls) -> "TelemetrySettings":
        """Read LOGTRACER_* variables, from the environment or a .env file."""
        load_dotenv(find_dotenv(usecwd=True))
        return cls(
            collector_endpoint=os.getenv("LOGTRACER_COLLECTOR_ENDPOINT", ""),
            service_name=os.getenv("LOGTRACER_SERVICE_NAME", ""),
            scope_name=os.getenv("LOGTRACER_SCOPE_NAME", ""),
            activity_log_path=os.getenv("LOGTRACER_ACTIVITY_LOG", DEFAULT_ACTIVITY_LOG),
            activity_export=_env_flag("LOGTRACER_ACTIVITY_EXPORT"),
            console_export=_env_flag("LOGTRACER_CONSOLE_EXPORT"),
            fail_open=_env_flag("LOGTRACER_FAIL_OPEN"),
        )


def build_provider(settings: TelemetrySettings, exporters=None) -> TracerProvider:
    """Create a TracerProvider exporting to the configured collector."""
    provider = TracerProvider(resource=Resource.create({SERVICE_NAME: settings.service_name}))

    provider.add_span_processor(
        BatchSpanProcessor(OTLPSpanExporter(endpoint=settings.collector_endpoint))
    )
    logger.info("OTLP exporter configured -> %s", settings.collector_endpoint)

    if settings.activity_export:
        provider.add_span_processor(
            BatchSpanProcessor(get_exporter(settings.activity_log_path, settings.scope_name))
        )

    if settings.console_export:
        provider.add_span_processor(BatchSpanProcessor(ConsoleSpanExporter()))

    for exporter in exporters or []:
        provider.add_span_processor(SimpleSpanProcessor(exporter))

    return provider


def setup_telemetry(settings: TelemetrySettings = None) -> trace.Tracer:
    """Install the global tracer provider and point log_tracer() at it."""
    settings = settings or TelemetrySettings.from_env()

    provider = build_provider(settings)
    trace.set_tracer_provider(provider)

    tracer = trace.get_tracer(settings.scope_name)
    tracing.configure(tracer=tracer, fail_open=settings.fail_open)

    logger.info("Telemetry initialized: %s (scope %s)", settings.service_name, settings.scope_name)
    return tracer


def setup_logging(level: str = "INFO"):
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(rich_tracebacks=True)],
    )
    logging.getLogger("opentelemetry").setLevel(logging.WARNING)
    logging.getLogger("urllib3").setLevel(logging.WARNING)
