"""
Application Metrics.

In-process Prometheus-style counters exposed at /metrics.
"""

from collections import defaultdict
from dataclasses import dataclass, field
from threading import Lock
from typing import Dict, List, Optional

from flask import Flask, Response, request


@dataclass
class MetricValue:
    """A single metric value with labels."""
    value: float
    labels: Dict[str, str] = field(default_factory=dict)


class Counter:
    """A monotonically increasing counter metric."""

    def __init__(self, name: str, description: str) -> None:
        self.name = name
        self.description = description
        self._values: Dict[tuple, float] = defaultdict(float)
        self._lock = Lock()

    def inc(self, value: float = 1.0, **labels: str) -> None:
        """Increment the counter."""
        key = tuple(sorted(labels.items()))
        with self._lock:
            self._values[key] += value

    def value(self, **labels: str) -> float:
        """Current value for a label set (0 when never incremented)."""
        with self._lock:
            return self._values.get(tuple(sorted(labels.items())), 0.0)

    def collect(self) -> List[MetricValue]:
        """Collect all values."""
        with self._lock:
            return [
                MetricValue(value=v, labels=dict(k))
                for k, v in self._values.items()
            ]


class MetricsRegistry:
    """Registry for all application metrics."""

    def __init__(self) -> None:
        self.http_requests_total = Counter(
            "http_requests_total",
            "Total number of HTTP requests",
        )
        self.resend_requests_total = Counter(
            "resend_requests_total",
            "Resend requests by flow and outcome",
        )
        self.emails_sent_total = Counter(
            "emails_sent_total",
            "Emails handed to Gmail by template",
        )
        self.attachment_downloads_total = Counter(
            "attachment_downloads_total",
            "Attachment download attempts by credential source and status",
        )
        self.external_requests_total = Counter(
            "external_requests_total",
            "Total number of external service requests",
        )

    @property
    def counters(self) -> List[Counter]:
        return [
            self.http_requests_total,
            self.resend_requests_total,
            self.emails_sent_total,
            self.attachment_downloads_total,
            self.external_requests_total,
        ]

    def to_prometheus_format(self) -> str:
        """Export metrics in Prometheus text format."""
        lines = []
        for counter in self.counters:
            lines.append(f"# HELP {counter.name} {counter.description}")
            lines.append(f"# TYPE {counter.name} counter")
            for mv in counter.collect():
                labels = ",".join(f'{k}="{v}"' for k, v in mv.labels.items())
                label_str = f"{{{labels}}}" if labels else ""
                lines.append(f"{counter.name}{label_str} {mv.value}")
        return "\n".join(lines) + "\n"


# Global metrics registry
_metrics: Optional[MetricsRegistry] = None


def get_metrics() -> MetricsRegistry:
    """Get global metrics registry."""
    global _metrics
    if _metrics is None:
        _metrics = MetricsRegistry()
    return _metrics


def setup_metrics_middleware(app: Flask) -> None:
    """
    Count every HTTP response by endpoint and status.

    Args:
        app: Flask application instance.
    """
    @app.after_request
    def count_request(response):
        get_metrics().http_requests_total.inc(
            method=request.method,
            endpoint=request.endpoint or "unknown",
            status=str(response.status_code),
        )
        return response


def metrics_endpoint() -> Response:
    """Prometheus metrics endpoint handler."""
    return Response(
        get_metrics().to_prometheus_format(),
        mimetype="text/plain; charset=utf-8",
    )
