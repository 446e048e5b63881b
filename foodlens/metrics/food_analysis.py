"""Instrumentation helpers for the food analysis pipeline.

Metrics:
* Counter food_analysis_requests_total{status}   status = success | error
* Counter food_analysis_errors_total{kind}       kind = AnalysisError.kind
* Samples food_analysis_latency_ms{model}
"""

from __future__ import annotations

from typing import Optional

from .core import MetricsRegistry, registry as default_registry

REQUESTS_TOTAL = "food_analysis_requests_total"
ERRORS_TOTAL = "food_analysis_errors_total"
LATENCY_MS = "food_analysis_latency_ms"


def record_success(latency_ms: float, *, model: str, reg: Optional[MetricsRegistry] = None) -> None:
    reg = reg or default_registry
    reg.inc(REQUESTS_TOTAL, status="success")
    reg.observe(LATENCY_MS, latency_ms, model=model)


def record_failure(
    kind: str, latency_ms: float, *, model: str, reg: Optional[MetricsRegistry] = None
) -> None:
    """Count a failed analysis under its error kind."""
    reg = reg or default_registry
    reg.inc(REQUESTS_TOTAL, status="error")
    reg.inc(ERRORS_TOTAL, kind=kind)
    reg.observe(LATENCY_MS, latency_ms, model=model)
