"""
Lightweight Prometheus-compatible metrics collector.

Tracks request counts, response times and error rates, plus uploads per
asset kind and storage backend.
"""

import time
from collections import defaultdict
from typing import Any

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint

PREFIX = "asset_store"


class MetricsCollector:
    """In-process metrics collector."""

    def __init__(self) -> None:
        self._request_count: dict[str, int] = defaultdict(int)
        self._error_count: dict[str, int] = defaultdict(int)
        self._response_time_sum: dict[str, float] = defaultdict(float)
        self._status_counts: dict[int, int] = defaultdict(int)
        self._upload_count: dict[tuple[str, str], int] = defaultdict(int)
        self._upload_bytes: dict[tuple[str, str], int] = defaultdict(int)
        self._start_time: float = time.time()

    def record_request(
        self,
        method: str,
        path: str,
        status_code: int,
        duration: float,
    ) -> None:
        """Record a completed request."""
        key = f"{method} {path}"
        self._request_count[key] += 1
        self._response_time_sum[key] += duration
        self._status_counts[status_code] += 1

        if status_code >= 400:
            self._error_count[key] += 1

    def record_upload(self, asset_kind: str, storage_kind: str, size: int) -> None:
        """Record a stored upload."""
        self._upload_count[(asset_kind, storage_kind)] += 1
        self._upload_bytes[(asset_kind, storage_kind)] += size

    def get_metrics(self) -> dict[str, Any]:
        """Get metrics as a structured dictionary."""
        total_requests = sum(self._request_count.values())
        total_errors = sum(self._error_count.values())

        return {
            "uptime_seconds": round(time.time() - self._start_time, 2),
            "total_requests": total_requests,
            "total_errors": total_errors,
            "error_rate": round(total_errors / total_requests, 4) if total_requests > 0 else 0,
            "requests_by_endpoint": dict(self._request_count),
            "errors_by_endpoint": dict(self._error_count),
            "status_code_counts": {str(k): v for k, v in sorted(self._status_counts.items())},
            "avg_response_time_ms": {
                k: round((self._response_time_sum[k] / count) * 1000, 2)
                for k, count in self._request_count.items()
            },
            "uploads": {
                f"{kind}/{storage}": {"count": count, "bytes": self._upload_bytes[(kind, storage)]}
                for (kind, storage), count in sorted(self._upload_count.items())
            },
        }

    def to_prometheus(self) -> str:
        """
        Export metrics in Prometheus text exposition format.
        See: https://prometheus.io/docs/instrumenting/exposition_formats/
        """
        lines: list[str] = []

        def family(name: str, kind: str, help_text: str) -> None:
            lines.append(f"# HELP {PREFIX}_{name} {help_text}")
            lines.append(f"# TYPE {PREFIX}_{name} {kind}")

        family("uptime_seconds", "gauge", "Time since service start in seconds")
        lines.append(f"{PREFIX}_uptime_seconds {time.time() - self._start_time:.2f}")
        lines.append("")

        family("http_requests_total", "counter", "Total HTTP requests")
        for key, count in sorted(self._request_count.items()):
            method, path = key.split(" ", 1)
            lines.append(f'{PREFIX}_http_requests_total{{method="{method}",path="{path}"}} {count}')
        lines.append("")

        family("http_errors_total", "counter", "Total HTTP errors (4xx/5xx)")
        for key, count in sorted(self._error_count.items()):
            method, path = key.split(" ", 1)
            lines.append(f'{PREFIX}_http_errors_total{{method="{method}",path="{path}"}} {count}')
        lines.append("")

        family("http_status_total", "counter", "HTTP responses by status code")
        for code, count in sorted(self._status_counts.items()):
            lines.append(f'{PREFIX}_http_status_total{{code="{code}"}} {count}')
        lines.append("")

        family("http_response_time_seconds", "gauge", "Average response time in seconds")
        for key, count in sorted(self._request_count.items()):
            method, path = key.split(" ", 1)
            avg = self._response_time_sum[key] / count
            lines.append(
                f'{PREFIX}_http_response_time_seconds{{method="{method}",path="{path}"}} {avg:.6f}'
            )
        lines.append("")

        family("uploads_total", "counter", "Stored uploads by asset kind and backend")
        for (kind, storage), count in sorted(self._upload_count.items()):
            lines.append(f'{PREFIX}_uploads_total{{kind="{kind}",storage="{storage}"}} {count}')
        lines.append("")

        family("upload_bytes_total", "counter", "Stored upload bytes by asset kind and backend")
        for (kind, storage), size in sorted(self._upload_bytes.items()):
            lines.append(f'{PREFIX}_upload_bytes_total{{kind="{kind}",storage="{storage}"}} {size}')
        lines.append("")

        return "\n".join(lines) + "\n"

    def gauge(self, name: str, help_text: str, samples: dict[str, int]) -> str:
        """Render a labelled gauge keyed by asset kind."""
        lines = [
            f"# HELP {PREFIX}_{name} {help_text}",
            f"# TYPE {PREFIX}_{name} gauge",
        ]
        for kind, value in sorted(samples.items()):
            lines.append(f'{PREFIX}_{name}{{kind="{kind}"}} {value}')
        return "\n".join(lines) + "\n\n"


# Global singleton
_metrics_collector: MetricsCollector | None = None


def get_metrics_collector() -> MetricsCollector:
    """Get or create the global metrics collector."""
    global _metrics_collector
    if _metrics_collector is None:
        _metrics_collector = MetricsCollector()
    return _metrics_collector


def normalize_path(path: str) -> str:
    """Replace UUID segments with {id} so per-record paths aggregate."""
    return "/".join(
        "{id}" if len(part) == 36 and part.count("-") == 4 else part
        for part in path.split("/")
    )


class MetricsMiddleware(BaseHTTPMiddleware):
    """ASGI middleware that records request duration and status codes."""

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        # Skip metrics endpoints themselves
        if "/metrics" in request.url.path:
            return await call_next(request)

        start = time.time()
        response = await call_next(request)
        duration = time.time() - start

        get_metrics_collector().record_request(
            method=request.method,
            path=normalize_path(request.url.path),
            status_code=response.status_code,
            duration=duration,
        )
        return response
