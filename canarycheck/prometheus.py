"""Latency and uptime lookups against a Prometheus server."""

from __future__ import annotations

import time
from typing import Any

import requests

_QUERY_PATH = "/api/v1/query"


class PrometheusError(RuntimeError):
    """The Prometheus server rejected a query or returned an unusable result."""


def latency_query(percentile: str, check_key: str, duration: str) -> str:
    """PromQL for a latency percentile of one check over ``duration``."""
    return (
        f"histogram_quantile({percentile}, sum(rate(canary_check_duration_bucket"
        f"{{key='{check_key}'}}[{duration}])) by (le))"
    )


def uptime_query(check_key: str, duration: str) -> str:
    """PromQL whose value is the failing rate of one check over ``duration``."""
    success = f"rate(canary_check_success_count{{key='{check_key}'}}[{duration}])"
    failed = f"rate(canary_check_failed_count{{key='{check_key}'}}[{duration}])"
    return f"{failed}/{failed} + {success}"


class PrometheusClient:
    """A minimal client for the Prometheus instant query API."""

    def __init__(self, url: str, session: requests.Session | None = None) -> None:
        self.url = url.rstrip("/")
        self.session = session or requests.Session()
        self.session.verify = False

    def query(self, expression: str) -> list[tuple[dict[str, str], float]] | None:
        """Run an instant query; return the vector samples, or None without a result."""
        form = {"query": expression, "time": f"{time.time():.3f}"}
        endpoint = self.url + _QUERY_PATH
        try:
            response = self.session.post(endpoint, data=form)
            if response.status_code == 405:
                response = self.session.get(endpoint, params=form)
        except requests.RequestException as exc:
            raise PrometheusError(str(exc)) from exc

        try:
            body: Any = response.json()
        except ValueError:
            body = None
        if not isinstance(body, dict):
            raise PrometheusError(f"unexpected response from {endpoint}: HTTP {response.status_code}")
        if body.get("status") != "success":
            kind = body.get("errorType") or f"HTTP {response.status_code}"
            raise PrometheusError(f"{kind}: {body.get('error', '')}")

        data = body.get("data")
        if not data or data.get("result") is None:
            return None
        if data.get("resultType") != "vector":
            raise PrometheusError(f"expected a vector result, got {data.get('resultType')!r}")
        return [(sample.get("metric") or {}, float(sample["value"][1])) for sample in data["result"]]

    def _first_value(self, expression: str) -> float | None:
        samples = self.query(expression)
        if samples is None:
            return None
        if not samples:
            raise PrometheusError(f"no samples returned for {expression}")
        return samples[0][1]

    def get_histogram_quantile_latency(self, percentile: str, check_key: str, duration: str) -> float:
        value = self._first_value(latency_query(percentile, check_key, duration))
        return 0.0 if value is None else value

    def get_uptime(self, check_key: str, duration: str) -> float:
        value = self._first_value(uptime_query(check_key, duration))
        if value is None:
            raise PrometheusError(f"no result for uptime of {check_key}")
        return 100 - value


def new_prometheus_api(url: str) -> PrometheusClient | None:
    """A client for ``url``, or None when no url is configured."""
    if not url:
        return None
    return PrometheusClient(url)