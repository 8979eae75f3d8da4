from __future__ import annotations

from typing import Any

import attrs
import torch

from .config import DEFAULT_DTYPE, DtypeConfig, get_dtype
from .errors import BackendUnavailable, OperationFailure


@attrs.define(frozen=True, slots=True)
class GemmOperation:
    start: Any
    end: Any
    description: str


def _device_available(device: torch.device) -> bool:
    if device.type == "cuda":
        return torch.cuda.is_available() and (device.index is None or device.index < torch.cuda.device_count())
    if device.type == "mps":
        return torch.backends.mps.is_available()
    return False


def _device_name(device: torch.device) -> str:
    if device.type == "cuda":
        return torch.cuda.get_device_name(device)
    return "Apple MPS"


@attrs.define(slots=True)
class TorchBackend:
    """PyTorch compute backend (CUDA/ROCm or Apple MPS).

    Every GEMM is bracketed by a pair of timing events recorded on the current
    stream, so `elapsed_seconds` measures only that kernel's device interval.
    """

    device: torch.device
    dtype_cfg: DtypeConfig
    device_name: str

    @property
    def element_size(self) -> int:
        return self.dtype_cfg.element_size

    @property
    def torch_dtype(self) -> torch.dtype:
        return getattr(torch, self.dtype_cfg.torch_name)

    @staticmethod
    def create(device: str = "cuda", dtype: str = DEFAULT_DTYPE) -> "TorchBackend":
        dtype_cfg = get_dtype(dtype)
        try:
            dev = torch.device(device)
        except RuntimeError as e:
            raise BackendUnavailable(f"Invalid device {device!r}: {e}") from e
        if not _device_available(dev):
            raise BackendUnavailable(f"No compatible compute device available for {device!r}")
        if dev.type == "cuda" and dev.index is not None:
            torch.cuda.set_device(dev)
        return TorchBackend(device=dev, dtype_cfg=dtype_cfg, device_name=_device_name(dev))

    def _new_event(self) -> Any:
        if self.device.type == "cuda":
            return torch.cuda.Event(enable_timing=True)
        return torch.mps.Event(enable_timing=True)

    def allocate_matrix(self, rows: int, cols: int) -> torch.Tensor:
        return torch.empty((rows, cols), dtype=self.torch_dtype, device=self.device)

    def submit_gemm(
        self,
        a: torch.Tensor,
        b: torch.Tensor,
        c: torch.Tensor,
        *,
        transpose_left: bool,
        transpose_right: bool,
        result_rows: int,
        result_cols: int,
        interior_dim: int,
        alpha: float = 1.0,
        beta: float = 0.0,
    ) -> GemmOperation:
        op_a = a.t() if transpose_left else a
        op_b = b.t() if transpose_right else b
        if tuple(op_a.shape) != (result_rows, interior_dim) or tuple(op_b.shape) != (interior_dim, result_cols):
            raise OperationFailure(
                f"Operand shapes {tuple(op_a.shape)} x {tuple(op_b.shape)} do not match "
                f"{result_rows}x{result_cols}x{interior_dim}"
            )

        start = self._new_event()
        end = self._new_event()
        try:
            start.record()
            c.addmm_(op_a, op_b, beta=beta, alpha=alpha)
            end.record()
        except RuntimeError as e:
            raise OperationFailure(f"GEMM submission failed: {e}") from e
        return GemmOperation(start=start, end=end, description=f"{result_rows}x{result_cols}x{interior_dim}")

    def wait(self, op: GemmOperation) -> None:
        try:
            op.end.synchronize()
        except RuntimeError as e:
            raise OperationFailure(f"GEMM {op.description} failed on device: {e}") from e

    def elapsed_seconds(self, op: GemmOperation) -> float:
        try:
            return op.start.elapsed_time(op.end) / 1e3
        except RuntimeError as e:
            raise OperationFailure(f"Could not read device timestamps for GEMM {op.description}: {e}") from e
