import json
import os
from datetime import datetime, timezone

from opentelemetry.sdk.trace.export import SpanExporter, SpanExportResult
from opentelemetry.trace import StatusCode
from rich.console import Console
from rich.syntax import Syntax


def _safe_serialize(obj):
    """Convert values json cannot handle into strings, keeping dict/list shape."""
    try:
        json.dumps(obj)
        return obj
    except (TypeError, ValueError):
        if isinstance(obj, dict):
            return {str(k): _safe_serialize(v) for k, v in obj.items()}
        elif isinstance(obj, (list, tuple, set)):
            return [_safe_serialize(v) for v in obj]
        else:
            return str(obj)


def _hex(value, width):
    return format(value, f"0{width}x") if value else None


class ActivityExporter(SpanExporter):
    """
    Human-readable span exporter for local development.

    - prints each finished span to the terminal with rich highlighting
    - appends the same text to ``filepath`` so the activity viewer can tail it
    - optionally keeps only spans from one instrumentation scope
    """

    def __init__(self, filepath="telemetry/activity.log", scope_name=None, console=None):
        self.filepath = filepath
        self.scope_name = scope_name
        self.console = console or Console()
        os.makedirs(os.path.dirname(filepath) or ".", exist_ok=True)

    def _wanted(self, span) -> bool:
        if self.scope_name is None:
            return True
        scope = getattr(span, "instrumentation_scope", None)
        return scope is not None and scope.name == self.scope_name

    def _body(self, span) -> dict:
        ctx = span.context
        return {
            "trace_id": _hex(ctx.trace_id, 32) if ctx else None,
            "span_id": _hex(ctx.span_id, 16) if ctx else None,
            "parent_id": _hex(span.parent.span_id, 16) if span.parent else None,
            "status": span.status.status_code.name,
            "attributes": _safe_serialize(dict(span.attributes or {})),
            "events": [
                {"name": event.name, "attributes": _safe_serialize(dict(event.attributes or {}))}
                for event in span.events
            ],
        }

    def format_span(self, span):
        """Return (prefix, pretty_json) for one finished span."""
        level = "ERROR" if span.status.status_code is StatusCode.ERROR else "INFO"
        timestamp = datetime.now(timezone.utc).isoformat(timespec="seconds")
        prefix = f"[{level}] {timestamp} {span.name}"
        pretty_json = json.dumps(self._body(span), indent=2, ensure_ascii=False)
        return prefix, pretty_json

    def export(self, spans):
        log_lines = []
        for span in spans:
            if not self._wanted(span):
                continue

            prefix, pretty_json = self.format_span(span)

            self.console.print(prefix, markup=False, highlight=False)
            self.console.print(Syntax(pretty_json, "json", theme="ansi_dark", word_wrap=True))

            log_lines.append(f"{prefix}\n{pretty_json}\n")

        if log_lines:
            with open(self.filepath, "a", encoding="utf-8") as f:
                for line in log_lines:
                    f.write(line + "\n")

        return SpanExportResult.SUCCESS

    def shutdown(self):
        pass


def get_exporter(filepath="telemetry/activity.log", scope_name=None):
    return ActivityExporter(filepath=filepath, scope_name=scope_name)
