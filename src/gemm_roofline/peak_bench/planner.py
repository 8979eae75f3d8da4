from __future__ import annotations

from .config import BenchmarkConfig, ReferencePeaks
from .model import IterationPlan

# Each configuration is sized to about this much work at the declared peak.
TARGET_SECONDS_AT_PEAK = 2.0
MIN_TIMED_CALLS = 5
MAX_TIMED_CALLS = 200
WARMUP_DIVISOR = 5


def plan(config: BenchmarkConfig, peaks: ReferencePeaks) -> IterationPlan:
    """Pick warmup and timed call counts for one configuration.

    Small problems get up to `MAX_TIMED_CALLS` calls so their timing is not
    dominated by noise; large problems get at least `MIN_TIMED_CALLS` so the
    whole sweep finishes in bounded time.
    """
    seconds_per_call = config.shape.approx_flop / peaks.peak_flops
    target_calls = TARGET_SECONDS_AT_PEAK / seconds_per_call
    timed_calls = max(MIN_TIMED_CALLS, min(MAX_TIMED_CALLS, round(target_calls)))
    warmup_calls = max(1, timed_calls // WARMUP_DIVISOR)
    return IterationPlan(warmup_calls=warmup_calls, timed_calls=timed_calls)
