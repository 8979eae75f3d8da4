from __future__ import annotations

from pathlib import Path

import pytest
from jsonschema import ValidationError

from gemm_roofline.peak_bench.config import DTYPES, BenchmarkConfig, ReferencePeaks, Shape
from gemm_roofline.peak_bench.export import build_results, validate_results_schema
from gemm_roofline.peak_bench.metrics import classify, compute_metrics
from gemm_roofline.peak_bench.model import BenchmarkRecord, IterationPlan, TimingResult

PEAKS = ReferencePeaks.from_giga(100, 50)
GIT = {"branch": "main", "commit": "deadbeef", "dirty": False}


def _passed() -> BenchmarkRecord:
    cfg = BenchmarkConfig(shape=Shape(512, 512, 512), transpose_left=False, transpose_right=False)
    timing = TimingResult(timed_calls=5, total_elapsed_seconds=0.01, min_call_seconds=0.002, max_call_seconds=0.002)
    metrics = compute_metrics(cfg, timing)
    return BenchmarkRecord(
        ordinal=0,
        index=0,
        config=cfg,
        plan=IterationPlan(warmup_calls=1, timed_calls=5),
        status="pass",
        timing=timing,
        metrics=metrics,
        classification=classify(metrics, PEAKS),
    )


def _failed() -> BenchmarkRecord:
    return BenchmarkRecord(
        ordinal=1,
        index=1,
        config=BenchmarkConfig(shape=Shape(1024, 1024, 1024), transpose_left=False, transpose_right=False),
        plan=IterationPlan(warmup_calls=1, timed_calls=5),
        status="fail",
        failure_reason="timed call 0 failed",
    )


def _build(records: list[BenchmarkRecord], failure_reason: str = "") -> dict:
    return build_results(
        records,
        peaks=PEAKS,
        dtype_cfg=DTYPES["fp32"],
        device_name="Test GPU",
        run_id="2026-01-01T00-00-00Z",
        started_at="2026-01-01T00:00:00Z",
        finished_at="2026-01-01T00:00:01Z",
        failure_reason=failure_reason,
        git=GIT,
    )


def test_build_results_pass() -> None:
    results = _build([_passed()])
    assert results["schema_version"] == "0.1.0"
    assert results["run"]["status"] == "pass"
    assert results["run"]["failure_reason"] == ""
    assert results["run"]["settings"]["peak_gflops"] == pytest.approx(100.0)
    rec = results["records"][0]
    assert rec["mode"] == "NN"
    assert rec["metrics"]["flop"] == 512 * 512 * 1023 * 5
    assert rec["timing"]["mean_call_ms"] == pytest.approx(2.0)


def test_build_results_marks_failures() -> None:
    results = _build([_passed(), _failed()], failure_reason="aborted after 2 of 44 configuration(s): boom")
    assert results["run"]["status"] == "fail"
    assert results["run"]["failure_reason"] == "aborted after 2 of 44 configuration(s): boom; 1 configuration(s) failed"
    assert results["records"][1]["metrics"] is None


def test_schema_rejects_passed_record_without_metrics() -> None:
    results = _build([_passed()])
    results["records"][0]["metrics"] = None
    with pytest.raises(ValidationError):
        validate_results_schema(results)


def test_schema_rejects_zero_elapsed_time() -> None:
    results = _build([_passed()])
    results["records"][0]["timing"]["total_elapsed_s"] = 0.0
    with pytest.raises(ValidationError):
        validate_results_schema(results)


def test_schema_rejects_failed_record_with_metrics() -> None:
    results = _build([_passed(), _failed()])
    results["records"][1]["metrics"] = results["records"][0]["metrics"]
    with pytest.raises(ValidationError):
        validate_results_schema(results)


def test_results_schema_file_is_packaged() -> None:
    import gemm_roofline.peak_bench as pkg

    assert (Path(pkg.__file__).resolve().parent / "schemas" / "results.schema.json").exists()
