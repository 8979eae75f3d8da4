from __future__ import annotations

import json
import platform
import subprocess
from collections.abc import Sequence
from datetime import datetime, timezone
from importlib import metadata
from pathlib import Path
from typing import Any

from jsonschema import Draft202012Validator

from .config import DtypeConfig, ReferencePeaks
from .model import BenchmarkRecord

SCHEMA_VERSION = "0.1.0"


def _default_results_schema_path() -> Path:
    return Path(__file__).resolve().parent / "schemas" / "results.schema.json"


def validate_results_schema(results: dict[str, Any], *, schema_path: Path | None = None) -> None:
    schema_path = _default_results_schema_path() if schema_path is None else schema_path
    schema = json.loads(schema_path.read_text())
    Draft202012Validator(schema).validate(results)


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="seconds").replace("+00:00", "Z")


def default_run_id() -> str:
    return datetime.now(timezone.utc).strftime("%Y-%m-%dT%H-%M-%SZ")


def git_info(cwd: Path | None = None) -> dict[str, Any]:
    def _run(cmd: list[str]) -> str:
        out = subprocess.check_output(cmd, cwd=cwd, stderr=subprocess.DEVNULL)
        return out.decode().strip()

    try:
        branch = _run(["git", "rev-parse", "--abbrev-ref", "HEAD"])
        commit = _run(["git", "rev-parse", "HEAD"])
        dirty = bool(_run(["git", "status", "--porcelain=v1"]))
        return {"branch": branch, "commit": commit, "dirty": dirty}
    except (OSError, subprocess.CalledProcessError):
        return {"branch": "unknown", "commit": "unknown", "dirty": False}


def _package_version(name: str) -> str:
    try:
        return metadata.version(name)
    except metadata.PackageNotFoundError:
        return "unknown"


def build_results(
    records: Sequence[BenchmarkRecord],
    *,
    peaks: ReferencePeaks,
    dtype_cfg: DtypeConfig,
    device_name: str,
    run_id: str,
    started_at: str,
    finished_at: str,
    failure_reason: str = "",
    git: dict[str, Any] | None = None,
) -> dict[str, Any]:
    """Assemble the `results.json` payload and validate it against the bundled schema."""
    reasons: list[str] = []
    if failure_reason:
        reasons.append(failure_reason)
    failures = [r for r in records if r.status == "fail"]
    if failures:
        reasons.append(f"{len(failures)} configuration(s) failed")

    run_obj = {
        "run_id": run_id,
        "started_at": started_at,
        "finished_at": finished_at,
        "status": "fail" if reasons else "pass",
        "failure_reason": "; ".join(reasons),
        "git": git_info() if git is None else git,
        "environment": {
            "platform": {"os": platform.system().lower(), "arch": platform.machine().lower()},
            "device_name": device_name,
            "torch_version": _package_version("torch"),
        },
        "settings": {
            "peak_gflops": peaks.gflops,
            "peak_gbps": peaks.gbps,
            "dtype": dtype_cfg.key,
            "element_size": dtype_cfg.element_size,
        },
    }

    out = {"schema_version": SCHEMA_VERSION, "run": run_obj, "records": [r.to_dict() for r in records]}
    validate_results_schema(out)
    return out


def load_results(path: Path) -> dict[str, Any]:
    return json.loads(path.read_text())


def write_results(path: Path, results: dict[str, Any]) -> None:
    path.write_text(json.dumps(results, indent=2, sort_keys=True) + "\n")
