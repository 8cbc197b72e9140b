from __future__ import annotations

import math
import time
from collections import defaultdict, deque
from dataclasses import dataclass
from typing import Deque


@dataclass(frozen=True)
class ExternalCallSample:
    ts: float
    integration: str
    latency_ms: float
    success: bool


_external_samples: Deque[ExternalCallSample] = deque(maxlen=10000)
_counters: dict[str, int] = defaultdict(int)


def record_external_call(*, integration: str, latency_ms: float, success: bool) -> None:
    # Capture transport latency and outcomes.
    _external_samples.append(
        ExternalCallSample(
            ts=time.time(),
            integration=integration,
            latency_ms=latency_ms,
            success=success,
        )
    )


def increment_counter(name: str, value: int = 1) -> None:
    # Store counters for ops dashboards.
    _counters[name] += value


def get_counter(name: str) -> int:
    return int(_counters.get(name, 0))


def counters_snapshot() -> dict[str, int]:
    return dict(_counters)


def external_success_rate(window_s: int, *, integration: str | None = None) -> float | None:
    # Report % of successful transport calls in the window; None when there were no calls.
    cutoff = time.time() - window_s
    samples = [
        sample
        for sample in _external_samples
        if sample.ts >= cutoff and (integration is None or sample.integration == integration)
    ]
    if not samples:
        return None
    successes = sum(1 for sample in samples if sample.success)
    return (successes / len(samples)) * 100.0


def external_p95_latency(window_s: int, *, integration: str | None = None) -> float | None:
    cutoff = time.time() - window_s
    latencies = sorted(
        sample.latency_ms
        for sample in _external_samples
        if sample.ts >= cutoff and (integration is None or sample.integration == integration)
    )
    if not latencies:
        return None
    idx = max(0, math.ceil(0.95 * len(latencies)) - 1)
    return latencies[idx]


def reset_telemetry() -> None:
    # Reset in-process state for deterministic tests.
    _external_samples.clear()
    _counters.clear()
