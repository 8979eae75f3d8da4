from __future__ import annotations

from typing import Any, Literal

import attrs

from .config import BenchmarkConfig

BoundBy = Literal["compute", "memory"]
RecordStatus = Literal["pass", "fail"]


@attrs.define(frozen=True, slots=True)
class IterationPlan:
    warmup_calls: int
    timed_calls: int

    def to_dict(self) -> dict[str, Any]:
        return {"warmup_calls": self.warmup_calls, "timed_calls": self.timed_calls}


@attrs.define(frozen=True, slots=True)
class TimingResult:
    timed_calls: int
    total_elapsed_seconds: float
    min_call_seconds: float | None = None
    max_call_seconds: float | None = None

    @property
    def mean_call_seconds(self) -> float:
        return self.total_elapsed_seconds / self.timed_calls

    def to_dict(self) -> dict[str, Any]:
        return {
            "timed_calls": self.timed_calls,
            "total_elapsed_s": self.total_elapsed_seconds,
            "mean_call_ms": self.mean_call_seconds * 1e3,
            "min_call_ms": None if self.min_call_seconds is None else self.min_call_seconds * 1e3,
            "max_call_ms": None if self.max_call_seconds is None else self.max_call_seconds * 1e3,
        }


@attrs.define(frozen=True, slots=True)
class Metrics:
    flop: int
    bytes: int
    flops_per_second: float
    bytes_per_second: float

    def to_dict(self) -> dict[str, Any]:
        return {
            "flop": self.flop,
            "bytes": self.bytes,
            "gflops": self.flops_per_second * 1e-9,
            "gbps": self.bytes_per_second * 1e-9,
        }


@attrs.define(frozen=True, slots=True)
class ClassificationResult:
    flops_percent_of_peak: float
    bandwidth_percent_of_peak: float
    bound_by: BoundBy
    bound_percent: float

    def to_dict(self) -> dict[str, Any]:
        return {
            "flops_pct_of_peak": self.flops_percent_of_peak,
            "bandwidth_pct_of_peak": self.bandwidth_percent_of_peak,
            "bound_by": self.bound_by,
            "bound_pct": self.bound_percent,
        }


@attrs.define(frozen=True, slots=True)
class BenchmarkRecord:
    ordinal: int
    index: int
    config: BenchmarkConfig
    plan: IterationPlan
    status: RecordStatus
    timing: TimingResult | None = None
    metrics: Metrics | None = None
    classification: ClassificationResult | None = None
    failure_reason: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "ordinal": self.ordinal,
            "index": self.index,
            "mode": self.config.mode,
            "transpose_left": self.config.transpose_left,
            "transpose_right": self.config.transpose_right,
            "shape": {"m": self.config.m, "n": self.config.n, "k": self.config.k},
            "plan": self.plan.to_dict(),
            "status": self.status,
            "failure_reason": self.failure_reason,
            "timing": None if self.timing is None else self.timing.to_dict(),
            "metrics": None if self.metrics is None else self.metrics.to_dict(),
            "classification": None if self.classification is None else self.classification.to_dict(),
        }
