from __future__ import annotations

import sys
from collections.abc import Callable, Iterable
from pathlib import Path

from .backend import ComputeBackend
from .config import SHAPES, TRANSPOSE_FLAGS, ReferencePeaks, Shape, get_dtype, iter_configs
from .errors import BackendUnavailable, OperationFailure
from .executor import execute
from .export import build_results, default_run_id, utc_now_iso, write_results
from .metrics import classify, compute_metrics
from .model import BenchmarkRecord
from .planner import plan
from .report import format_record_block, generate_report


def expected_record_count(shapes: Iterable[Shape] = SHAPES) -> int:
    return len(TRANSPOSE_FLAGS) ** 2 * len(list(shapes))


def run_sweep(
    peaks: ReferencePeaks,
    backend: ComputeBackend,
    *,
    keep_going: bool = False,
    on_record: Callable[[BenchmarkRecord], None] | None = None,
    shapes: Iterable[Shape] = SHAPES,
) -> list[BenchmarkRecord]:
    """Benchmark every configuration of the sweep, in sweep order.

    An `OperationFailure` aborts the sweep unless `keep_going` is set, in which
    case the configuration is recorded as failed (no metrics) and the sweep
    continues.
    """
    records: list[BenchmarkRecord] = []
    for ordinal, (index, config) in enumerate(iter_configs(shapes)):
        it_plan = plan(config, peaks)
        try:
            timing = execute(config, it_plan, backend)
        except OperationFailure as e:
            if not keep_going:
                raise
            record = BenchmarkRecord(
                ordinal=ordinal, index=index, config=config, plan=it_plan, status="fail", failure_reason=str(e)
            )
        else:
            metrics = compute_metrics(config, timing, element_size=backend.element_size)
            record = BenchmarkRecord(
                ordinal=ordinal,
                index=index,
                config=config,
                plan=it_plan,
                status="pass",
                timing=timing,
                metrics=metrics,
                classification=classify(metrics, peaks),
            )
        records.append(record)
        if on_record is not None:
            on_record(record)
    return records


def _default_backend(device: str, dtype: str) -> ComputeBackend:
    # Deferred so CLI parsing and report rendering never initialize the GPU runtime.
    from .torch_backend import TorchBackend

    return TorchBackend.create(device=device, dtype=dtype)


def sweep_run(
    *,
    peaks: ReferencePeaks,
    device: str,
    dtype: str,
    out_dir: Path | None,
    keep_going: bool = False,
    backend: ComputeBackend | None = None,
) -> int:
    """Run the full sweep, print one block per configuration and optionally export results.

    Returns 0 when every configuration passed, 1 on measurement failures and 2
    when no compute device is available.
    """
    dtype_cfg = get_dtype(dtype)
    if backend is None:
        try:
            backend = _default_backend(device, dtype)
        except BackendUnavailable as e:
            print(str(e), file=sys.stderr)
            return 2

    print(
        f"device: {backend.device_name}  dtype: {dtype_cfg.key}  "
        f"peaks: {peaks.gflops:.1f} GFLOP/s, {peaks.gbps:.1f} GB/s"
    )

    run_id = default_run_id()
    started_at = utc_now_iso()
    records: list[BenchmarkRecord] = []

    def _emit(record: BenchmarkRecord) -> None:
        records.append(record)
        print(format_record_block(record), flush=True)

    failure_reason = ""
    try:
        run_sweep(peaks, backend, keep_going=keep_going, on_record=_emit)
    except OperationFailure as e:
        failure_reason = f"aborted after {len(records)} of {expected_record_count()} configuration(s): {e}"
        print(failure_reason, file=sys.stderr)

    if out_dir is not None:
        out_dir.mkdir(parents=True, exist_ok=True)
        results = build_results(
            records,
            peaks=peaks,
            dtype_cfg=dtype_cfg,
            device_name=backend.device_name,
            run_id=run_id,
            started_at=started_at,
            finished_at=utc_now_iso(),
            failure_reason=failure_reason,
        )
        write_results(out_dir / "results.json", results)
        generate_report(results, out_path=out_dir / "report.md")

    if failure_reason or any(r.status == "fail" for r in records):
        return 1
    return 0
