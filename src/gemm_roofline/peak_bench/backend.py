"""Compute backend contract consumed by the timed executor.

A backend owns device storage and GEMM execution. The benchmark only needs four
operations from it: allocate a matrix, submit one GEMM, wait for it, and read
the device-measured execution interval of that single GEMM.
"""

from __future__ import annotations

from typing import Any, Protocol

MatrixHandle = Any
OperationHandle = Any


class ComputeBackend(Protocol):
    element_size: int
    device_name: str

    def allocate_matrix(self, rows: int, cols: int) -> MatrixHandle:
        """Allocate device storage for a `rows x cols` matrix (contents undefined)."""
        ...

    def submit_gemm(
        self,
        a: MatrixHandle,
        b: MatrixHandle,
        c: MatrixHandle,
        *,
        transpose_left: bool,
        transpose_right: bool,
        result_rows: int,
        result_cols: int,
        interior_dim: int,
        alpha: float = 1.0,
        beta: float = 0.0,
    ) -> OperationHandle:
        """Enqueue `C := alpha * op(A) @ op(B) + beta * C` and return a waitable handle."""
        ...

    def wait(self, op: OperationHandle) -> None:
        """Block until `op` completes; raise `OperationFailure` on execution errors."""
        ...

    def elapsed_seconds(self, op: OperationHandle) -> float:
        """Device-side execution time of a completed `op`, in seconds."""
        ...


def operand_dims(rows: int, cols: int, transposed: bool) -> tuple[int, int]:
    """Storage dims of an operand whose logical (post-op) shape is `rows x cols`."""
    return (cols, rows) if transposed else (rows, cols)
