from __future__ import annotations

from collections.abc import Callable
from typing import Any

import attrs
import pytest

from gemm_roofline.peak_bench.errors import OperationFailure


@attrs.define
class FakeMatrix:
    rows: int
    cols: int


@attrs.define
class FakeOperation:
    seq: int
    transpose_left: bool
    transpose_right: bool
    done: bool = False


@attrs.define
class FakeBackend:
    """In-memory backend that records every call and reports a fixed device time per GEMM."""

    call_seconds: float = 1e-3
    element_size: int = 4
    device_name: str = "Fake GPU"
    fail_submit_at: int | None = None
    fail_wait_at: int | None = None
    elapsed_override: dict[int, float] = attrs.field(factory=dict)
    elapsed_error: Exception | None = None
    events: list[tuple[Any, ...]] = attrs.field(factory=list)
    _seq: int = 0

    def allocate_matrix(self, rows: int, cols: int) -> FakeMatrix:
        self.events.append(("alloc", rows, cols))
        return FakeMatrix(rows, cols)

    def submit_gemm(
        self,
        a: FakeMatrix,
        b: FakeMatrix,
        c: FakeMatrix,
        *,
        transpose_left: bool,
        transpose_right: bool,
        result_rows: int,
        result_cols: int,
        interior_dim: int,
        alpha: float = 1.0,
        beta: float = 0.0,
    ) -> FakeOperation:
        seq = self._seq
        self._seq += 1
        if self.fail_submit_at == seq:
            raise OperationFailure(f"submit {seq} rejected")
        op_a = (a.cols, a.rows) if transpose_left else (a.rows, a.cols)
        op_b = (b.cols, b.rows) if transpose_right else (b.rows, b.cols)
        assert op_a == (result_rows, interior_dim)
        assert op_b == (interior_dim, result_cols)
        assert (c.rows, c.cols) == (result_rows, result_cols)
        assert (alpha, beta) == (1.0, 0.0)
        self.events.append(("submit", seq))
        return FakeOperation(seq=seq, transpose_left=transpose_left, transpose_right=transpose_right)

    def wait(self, op: FakeOperation) -> None:
        if self.fail_wait_at == op.seq:
            raise OperationFailure(f"wait {op.seq} failed")
        op.done = True
        self.events.append(("wait", op.seq))

    def elapsed_seconds(self, op: FakeOperation) -> float:
        assert op.done, "elapsed time read before completion"
        if self.elapsed_error is not None:
            raise self.elapsed_error
        self.events.append(("elapsed", op.seq))
        return self.elapsed_override.get(op.seq, self.call_seconds)

    @property
    def submit_count(self) -> int:
        return sum(1 for e in self.events if e[0] == "submit")


@pytest.fixture
def make_backend() -> Callable[..., FakeBackend]:
    def _make(**kwargs: Any) -> FakeBackend:
        return FakeBackend(**kwargs)

    return _make
