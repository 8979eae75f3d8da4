from __future__ import annotations

import json
from pathlib import Path

import pytest

from gemm_roofline.peak_bench.config import BenchmarkConfig, ReferencePeaks, Shape
from gemm_roofline.peak_bench.errors import BackendUnavailable
from gemm_roofline.peak_bench.executor import execute
from gemm_roofline.peak_bench.export import validate_results_schema
from gemm_roofline.peak_bench.metrics import classify, compute_metrics
from gemm_roofline.peak_bench.model import IterationPlan
from gemm_roofline.peak_bench.sweep import sweep_run


def _cuda_backend():
    torch_backend = pytest.importorskip("gemm_roofline.peak_bench.torch_backend")
    try:
        return torch_backend.TorchBackend.create(device="cuda", dtype="fp32")
    except BackendUnavailable:
        pytest.skip("requires CUDA GPU")


@pytest.mark.integration
@pytest.mark.parametrize("ta,tb", [(False, False), (False, True), (True, False), (True, True)])
def test_single_configuration_on_gpu(ta: bool, tb: bool) -> None:
    backend = _cuda_backend()
    cfg = BenchmarkConfig(shape=Shape(256, 128, 64), transpose_left=ta, transpose_right=tb)

    timing = execute(cfg, IterationPlan(warmup_calls=1, timed_calls=5), backend)
    assert timing.total_elapsed_seconds > 0

    metrics = compute_metrics(cfg, timing, element_size=backend.element_size)
    result = classify(metrics, ReferencePeaks.from_giga(1e6, 1e6))
    assert result.bound_by in {"compute", "memory"}
    assert result.bound_percent > 0


@pytest.mark.integration
def test_full_sweep_on_gpu(tmp_path: Path) -> None:
    backend = _cuda_backend()
    rc = sweep_run(
        peaks=ReferencePeaks.from_giga(1e5, 1e4),
        device="cuda",
        dtype="fp32",
        out_dir=tmp_path,
        backend=backend,
    )
    assert rc == 0

    results = json.loads((tmp_path / "results.json").read_text())
    validate_results_schema(results)
    assert len(results["records"]) == 44
