"""GEMM roofline tooling.

Subpackages:

- `peak_bench`: sweep a fixed GEMM shape table on a GPU and classify each
  configuration as compute- or memory-bound against declared hardware peaks.
"""
