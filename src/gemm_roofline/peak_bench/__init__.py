"""GEMM peak-throughput micro-benchmark.

This package plans iteration counts per configuration, times GEMM calls on a
GPU through a compute backend, converts device time into FLOP/s and bytes/s, and
labels each configuration as compute- or memory-bound relative to user-declared
peaks.
"""

from __future__ import annotations
