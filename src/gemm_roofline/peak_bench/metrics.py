from __future__ import annotations

import math

from .config import BenchmarkConfig, ReferencePeaks
from .model import BoundBy, ClassificationResult, Metrics, TimingResult

FP32_ELEMENT_SIZE = 4


def compute_metrics(config: BenchmarkConfig, timing: TimingResult, *, element_size: int = FP32_ELEMENT_SIZE) -> Metrics:
    """Convert the summed device time of the timed calls into FLOP/s and bytes/s.

    Bytes count each of A, B and C once per call.
    """
    seconds = timing.total_elapsed_seconds
    if not math.isfinite(seconds) or seconds <= 0:
        raise ZeroDivisionError(f"Non-positive total elapsed time ({seconds!r} s) for {config.describe()}")

    flop = config.shape.exact_flop * timing.timed_calls
    nbytes = config.shape.element_count * element_size * timing.timed_calls
    return Metrics(
        flop=flop,
        bytes=nbytes,
        flops_per_second=flop / seconds,
        bytes_per_second=nbytes / seconds,
    )


def classify(metrics: Metrics, peaks: ReferencePeaks) -> ClassificationResult:
    flops_pct = metrics.flops_per_second / peaks.peak_flops * 100
    bandwidth_pct = metrics.bytes_per_second / peaks.peak_bytes_per_sec * 100
    # Equal utilization counts as memory-bound.
    bound_by: BoundBy = "compute" if flops_pct > bandwidth_pct else "memory"
    return ClassificationResult(
        flops_percent_of_peak=flops_pct,
        bandwidth_percent_of_peak=bandwidth_pct,
        bound_by=bound_by,
        bound_percent=max(flops_pct, bandwidth_pct),
    )
