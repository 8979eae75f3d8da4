from __future__ import annotations

import math

from .backend import ComputeBackend, OperationHandle, operand_dims
from .config import BenchmarkConfig
from .errors import OperationFailure
from .model import IterationPlan, TimingResult


def execute(config: BenchmarkConfig, plan: IterationPlan, backend: ComputeBackend) -> TimingResult:
    """Run warmup calls, then timed calls one at a time, summing device time.

    Each timed call is waited on before the next is submitted so the sum is
    device busy time, not queueing time. Any backend error or unusable
    timestamp invalidates the whole configuration.
    """
    if plan.timed_calls < 1:
        raise OperationFailure(f"{config.describe()}: no timed calls planned")

    m, n, k = config.m, config.n, config.k
    try:
        a = backend.allocate_matrix(*operand_dims(m, k, config.transpose_left))
        b = backend.allocate_matrix(*operand_dims(k, n, config.transpose_right))
        c = backend.allocate_matrix(m, n)
    except RuntimeError as e:
        raise OperationFailure(f"{config.describe()}: matrix allocation failed: {e}") from e

    def submit() -> OperationHandle:
        return backend.submit_gemm(
            a,
            b,
            c,
            transpose_left=config.transpose_left,
            transpose_right=config.transpose_right,
            result_rows=m,
            result_cols=n,
            interior_dim=k,
            alpha=1.0,
            beta=0.0,
        )

    # Warmups are not waited on individually; draining the last one surfaces
    # any device error before timing starts.
    try:
        last = None
        for _ in range(plan.warmup_calls):
            last = submit()
        if last is not None:
            backend.wait(last)
    except RuntimeError as e:
        raise OperationFailure(f"{config.describe()}: warmup failed: {e}") from e

    total = 0.0
    call_min: float | None = None
    call_max: float | None = None
    for i in range(plan.timed_calls):
        try:
            op = submit()
            backend.wait(op)
            seconds = float(backend.elapsed_seconds(op))
        except RuntimeError as e:
            raise OperationFailure(f"{config.describe()}: timed call {i} failed: {e}") from e
        if not math.isfinite(seconds) or seconds <= 0:
            raise OperationFailure(f"{config.describe()}: timed call {i} reported non-positive device time {seconds!r}")
        total += seconds
        call_min = seconds if call_min is None else min(call_min, seconds)
        call_max = seconds if call_max is None else max(call_max, seconds)

    return TimingResult(
        timed_calls=plan.timed_calls,
        total_elapsed_seconds=total,
        min_call_seconds=call_min,
        max_call_seconds=call_max,
    )
