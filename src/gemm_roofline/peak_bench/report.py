from __future__ import annotations

from pathlib import Path
from typing import Any

from mdutils.mdutils import MdUtils  # type: ignore[import-untyped]

from .export import load_results
from .model import BenchmarkRecord

MODES: tuple[str, ...] = ("NN", "NT", "TN", "TT")


def _limited_label(bound_by: str) -> str:
    return "gflops" if bound_by == "compute" else "memory"


def format_record_block(record: BenchmarkRecord) -> str:
    """Two-line human-readable block for one configuration."""
    cfg = record.config
    head = f"  {cfg.mode} {record.index:2d}: {cfg.m:4d}, {cfg.n:4d}, {cfg.k:4d} "
    if record.status != "pass" or record.metrics is None or record.classification is None:
        return f"{head}\n  FAILED: {record.failure_reason or 'unknown error'}\n"

    m = record.metrics
    c = record.classification
    body = (
        f"  {m.flops_per_second * 1e-9:8.1f} GFlops ({c.flops_percent_of_peak:5.2f}%)"
        f" {m.bytes_per_second * 1e-9:8.1f} GB/s ({c.bandwidth_percent_of_peak:5.2f}%)"
        f" limited by {_limited_label(c.bound_by)} {c.bound_percent:5.2f}%"
    )
    return f"{head}\n{body}\n"


def _format_float(v: float | None, fmt: str = ".2f") -> str:
    if v is None:
        return "NA"
    return format(v, fmt)


def _bound_summary(records: list[dict[str, Any]]) -> dict[str, dict[str, int]]:
    summary = {mode: {"compute": 0, "memory": 0, "fail": 0} for mode in MODES}
    for r in records:
        counts = summary.setdefault(r["mode"], {"compute": 0, "memory": 0, "fail": 0})
        cls = r.get("classification")
        if r.get("status") != "pass" or not cls:
            counts["fail"] += 1
        else:
            counts[cls["bound_by"]] += 1
    return summary


def generate_report(results: dict[str, Any], *, out_path: Path) -> Path:
    """Render a Markdown report from a `results.json` payload. Returns the written path."""
    records = list(results.get("records", []) or [])
    run = results.get("run", {}) or {}
    settings = run.get("settings", {}) or {}
    env = run.get("environment", {}) or {}
    git = run.get("git", {}) or {}

    file_stem = out_path.with_suffix("")
    md = MdUtils(file_name=str(file_stem), title="GEMM Peak Benchmark Report")
    md.new_list(
        [
            f"Device: `{env.get('device_name', 'unknown')}`",
            f"Dtype: `{settings.get('dtype', 'unknown')}` ({settings.get('element_size', 'NA')} bytes/element)",
            f"Reference peaks: `{_format_float(settings.get('peak_gflops'), '.1f')}` GFLOP/s, "
            f"`{_format_float(settings.get('peak_gbps'), '.1f')}` GB/s",
            f"Branch: `{git.get('branch', '')}`",
            f"Commit: `{git.get('commit', '')}`",
            f"Status: `{run.get('status', '')}`",
        ]
    )
    if run.get("failure_reason"):
        md.new_paragraph(f"Failure reason: {run['failure_reason']}")

    md.new_header(level=1, title="Results")
    header = [
        "mode",
        "idx",
        "M",
        "N",
        "K",
        "warmup",
        "calls",
        "mean_ms",
        "GFLOP/s",
        "flops_%",
        "GB/s",
        "bw_%",
        "bound_by",
        "bound_%",
    ]
    cells: list[str] = list(header)
    for r in records:
        s = r["shape"]
        plan = r.get("plan", {}) or {}
        timing = r.get("timing") or {}
        metrics = r.get("metrics") or {}
        cls = r.get("classification") or {}
        cells += [
            r["mode"],
            str(r["index"]),
            str(s["m"]),
            str(s["n"]),
            str(s["k"]),
            str(plan.get("warmup_calls", "NA")),
            str(plan.get("timed_calls", "NA")),
            _format_float(timing.get("mean_call_ms"), ".3f"),
            _format_float(metrics.get("gflops"), ".1f"),
            _format_float(cls.get("flops_pct_of_peak")),
            _format_float(metrics.get("gbps"), ".1f"),
            _format_float(cls.get("bandwidth_pct_of_peak")),
            cls.get("bound_by", "fail") if r.get("status") == "pass" else "fail",
            _format_float(cls.get("bound_pct")),
        ]
    md.new_table(columns=len(header), rows=len(records) + 1, text=cells, text_align="left")

    md.new_header(level=1, title="Bound Summary")
    summary = _bound_summary(records)
    summary_cells = ["mode", "compute", "memory", "fail"]
    for mode, counts in summary.items():
        summary_cells += [mode, str(counts["compute"]), str(counts["memory"]), str(counts["fail"])]
    md.new_table(columns=4, rows=len(summary) + 1, text=summary_cells, text_align="left")

    md.new_header(level=1, title="Column Definitions")
    md.new_list(
        [
            "`mode`: transpose flags of the left/right operand (`N` = as stored, `T` = transposed).",
            "`idx`: position of the shape in the fixed sweep table.",
            "`warmup` / `calls`: untimed warmup calls and timed calls planned for the configuration.",
            "`mean_ms`: mean device time per timed call (sum of per-call device intervals / calls).",
            "`GFLOP/s`: `M*N*(2K-1)` per call over total device time.",
            "`GB/s`: `(M*K + K*N + M*N) * element_size` per call over total device time.",
            "`flops_%` / `bw_%`: achieved throughput as a percentage of the declared peak.",
            "`bound_by`: `compute` when `flops_%` is strictly greater than `bw_%`, otherwise `memory`.",
            "`bound_%`: the larger of `flops_%` and `bw_%`.",
        ]
    )
    md.new_paragraph("`NA` means the value is missing (the configuration failed).")
    md.create_md_file()
    return file_stem.with_suffix(".md")


def report_run(*, out_dir: Path) -> int:
    results_path = out_dir / "results.json"
    if not results_path.exists():
        raise FileNotFoundError(f"Missing results.json at {results_path}")

    generate_report(load_results(results_path), out_path=out_dir / "report.md")
    return 0
