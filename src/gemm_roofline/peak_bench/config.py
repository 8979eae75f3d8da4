from __future__ import annotations

import math
from collections.abc import Iterable, Iterator

import attrs

from .errors import ConfigurationError


@attrs.define(frozen=True, slots=True)
class Shape:
    m: int
    n: int
    k: int

    @property
    def approx_flop(self) -> int:
        return 2 * self.m * self.n * self.k

    @property
    def exact_flop(self) -> int:
        # K multiplies + (K-1) adds per output element.
        return self.m * self.n * (2 * self.k - 1)

    @property
    def element_count(self) -> int:
        return self.m * self.k + self.k * self.n + self.m * self.n

    def to_axis_value(self) -> str:
        return f"{self.m}x{self.n}x{self.k}"


@attrs.define(frozen=True, slots=True)
class BenchmarkConfig:
    shape: Shape
    transpose_left: bool
    transpose_right: bool

    @property
    def m(self) -> int:
        return self.shape.m

    @property
    def n(self) -> int:
        return self.shape.n

    @property
    def k(self) -> int:
        return self.shape.k

    @property
    def mode(self) -> str:
        return ("T" if self.transpose_left else "N") + ("T" if self.transpose_right else "N")

    def describe(self) -> str:
        return f"{self.mode} {self.shape.to_axis_value()}"


def _positive_finite(instance: object, attribute: attrs.Attribute, value: float) -> None:
    if not math.isfinite(value) or value <= 0:
        raise ConfigurationError(f"{attribute.name} must be a finite positive number, got {value!r}")


@attrs.define(frozen=True, slots=True)
class ReferencePeaks:
    """Declared hardware peaks, in FLOP/s and bytes/s."""

    peak_flops: float = attrs.field(converter=float, validator=_positive_finite)
    peak_bytes_per_sec: float = attrs.field(converter=float, validator=_positive_finite)

    @staticmethod
    def from_giga(gflops: float, gbps: float) -> "ReferencePeaks":
        return ReferencePeaks(peak_flops=gflops * 1e9, peak_bytes_per_sec=gbps * 1e9)

    @property
    def gflops(self) -> float:
        return self.peak_flops * 1e-9

    @property
    def gbps(self) -> float:
        return self.peak_bytes_per_sec * 1e-9


@attrs.define(frozen=True, slots=True)
class DtypeConfig:
    key: str
    torch_name: str
    element_size: int


DTYPES: dict[str, DtypeConfig] = {
    "fp32": DtypeConfig(key="fp32", torch_name="float32", element_size=4),
    "fp16": DtypeConfig(key="fp16", torch_name="float16", element_size=2),
    "bf16": DtypeConfig(key="bf16", torch_name="bfloat16", element_size=2),
}

DEFAULT_DTYPE = "fp32"


def get_dtype(dtype: str) -> DtypeConfig:
    if dtype not in DTYPES:
        raise ConfigurationError(f"Unknown dtype={dtype!r}. Known: {sorted(DTYPES)}")
    return DTYPES[dtype]


# Fixed sweep: square sizes straddling powers of two, then skinny/flat shapes
# that push the kernel towards the bandwidth limit.
SHAPES: tuple[Shape, ...] = (
    Shape(512, 512, 512),
    Shape(1024, 1024, 1024),
    Shape(1025, 1025, 1025),
    Shape(2048, 2048, 2048),
    Shape(2049, 2049, 2049),
    Shape(64, 2048, 64),
    Shape(2048, 64, 2048),
    Shape(2048, 2048, 64),
    Shape(2048, 64, 64),
    Shape(64, 2048, 2048),
    Shape(64, 64, 2048),
)

TRANSPOSE_FLAGS: tuple[bool, bool] = (False, True)


def iter_configs(shapes: Iterable[Shape] = SHAPES) -> Iterator[tuple[int, BenchmarkConfig]]:
    """Yield `(shape_index, config)` in sweep order.

    Outer loop is transpose_left, then transpose_right, then the shape table.
    """
    shape_list = list(shapes)
    for ta in TRANSPOSE_FLAGS:
        for tb in TRANSPOSE_FLAGS:
            for i, shape in enumerate(shape_list):
                yield i, BenchmarkConfig(shape=shape, transpose_left=ta, transpose_right=tb)
