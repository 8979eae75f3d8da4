from __future__ import annotations

import argparse
import math
import os
from pathlib import Path

from .config import DEFAULT_DTYPE, DTYPES, ReferencePeaks
from .errors import ConfigurationError
from .report import report_run
from .sweep import sweep_run


def _abs_path(p: str) -> Path:
    return Path(p).expanduser().resolve()


def _positive_float(v: str) -> float:
    try:
        f = float(v)
    except ValueError:
        raise argparse.ArgumentTypeError(f"expected a number, got {v!r}") from None
    if not math.isfinite(f) or f <= 0:
        raise argparse.ArgumentTypeError(f"expected a finite positive number, got {v!r}")
    return f


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="gemm_roofline.peak_bench",
        description="GEMM peak-throughput sweep: achieved GFLOP/s and GB/s vs declared peaks.",
    )
    sub = parser.add_subparsers(dest="cmd", required=True)

    run = sub.add_parser("run", help="Run the fixed GEMM sweep on a GPU.")
    run.add_argument(
        "--gflops", "-gflops", type=_positive_float, required=True, help="Reference compute peak in GFLOP/s."
    )
    run.add_argument(
        "--gbps", "-bps", type=_positive_float, required=True, help="Reference memory bandwidth peak in GB/s."
    )
    run.add_argument("--out-dir", type=_abs_path, default=None, help="Write results.json and report.md here.")
    run.add_argument(
        "--device",
        default=os.environ.get("GEMM_ROOFLINE_DEVICE", "cuda"),
        help="Torch device (e.g. cuda, cuda:1, mps). Default: $GEMM_ROOFLINE_DEVICE or cuda.",
    )
    run.add_argument("--dtype", default=DEFAULT_DTYPE, choices=sorted(DTYPES), help="Matrix element type.")
    run.add_argument(
        "--keep-going",
        action="store_true",
        help="Record failed configurations and continue instead of aborting the sweep.",
    )

    report = sub.add_parser("report", help="Generate report.md from results.json (no benchmark run).")
    report.add_argument("--out-dir", type=_abs_path, required=True)

    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    ns = parser.parse_args(argv)

    if ns.cmd == "run":
        try:
            peaks = ReferencePeaks.from_giga(ns.gflops, ns.gbps)
        except ConfigurationError as e:
            parser.error(str(e))
        return sweep_run(
            peaks=peaks,
            device=ns.device,
            dtype=ns.dtype,
            out_dir=ns.out_dir,
            keep_going=ns.keep_going,
        )
    if ns.cmd == "report":
        return report_run(out_dir=ns.out_dir)

    raise AssertionError(f"Unhandled cmd: {ns.cmd}")


if __name__ == "__main__":
    raise SystemExit(main())
