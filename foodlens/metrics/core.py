"""In-memory metrics registry.

Counters and bounded latency sample windows keyed by metric name plus
labels. ``foodlens-analyze --metrics`` prints ``registry.snapshot()`` after
the run; tests read individual values with ``counter_value``.
"""

from __future__ import annotations

from collections import defaultdict, deque
from threading import Lock
from typing import Any, DefaultDict, Deque, Dict, Tuple

MetricKey = Tuple[str, Tuple[Tuple[str, str], ...]]

DEFAULT_MAX_SAMPLES = 1000


def _key(name: str, labels: Dict[str, str]) -> MetricKey:
    return name, tuple(sorted(labels.items()))


def render_key(key: MetricKey) -> str:
    """('latency', (('model', 'x'),)) -> 'latency{model="x"}'"""
    name, labels = key
    if not labels:
        return name
    rendered = ",".join(f'{k}="{v}"' for k, v in labels)
    return f"{name}{{{rendered}}}"


class MetricsRegistry:
    """
    Thread-safe counters and latency windows.

    Example:
        >>> reg = MetricsRegistry()
        >>> reg.inc("food_analysis_requests_total", status="success")
        >>> reg.counter_value("food_analysis_requests_total", status="success")
        1
    """

    def __init__(self, max_samples: int = DEFAULT_MAX_SAMPLES) -> None:
        self._lock = Lock()
        self._max_samples = max_samples
        self._counters: DefaultDict[MetricKey, int] = defaultdict(int)
        self._samples: Dict[MetricKey, Deque[float]] = {}

    def inc(self, name: str, amount: int = 1, **labels: str) -> None:
        with self._lock:
            self._counters[_key(name, labels)] += amount

    def observe(self, name: str, value: float, **labels: str) -> None:
        """Record one sample; the oldest sample drops out once the window is full."""
        key = _key(name, labels)
        with self._lock:
            window = self._samples.get(key)
            if window is None:
                window = self._samples[key] = deque(maxlen=self._max_samples)
            window.append(value)

    def counter_value(self, name: str, **labels: str) -> int:
        """Current value, 0 if the counter was never touched."""
        with self._lock:
            return self._counters.get(_key(name, labels), 0)

    def sample_summary(self, name: str, **labels: str) -> Dict[str, float]:
        """count/avg/max of the current window (all zero when empty)."""
        with self._lock:
            samples = list(self._samples.get(_key(name, labels), ()))
        return _summarize(samples)

    def snapshot(self) -> Dict[str, Any]:
        """JSON-ready view of every counter and sample window."""
        with self._lock:
            counters = dict(self._counters)
            windows = {key: list(window) for key, window in self._samples.items()}
        return {
            "counters": {render_key(k): v for k, v in sorted(counters.items())},
            "latency": {render_key(k): _summarize(v) for k, v in sorted(windows.items())},
        }


def _summarize(samples: list[float]) -> Dict[str, float]:
    if not samples:
        return {"count": 0, "avg": 0.0, "max": 0.0}
    return {
        "count": len(samples),
        "avg": sum(samples) / len(samples),
        "max": max(samples),
    }


registry = MetricsRegistry()
