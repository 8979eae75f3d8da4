from __future__ import annotations


class ConfigurationError(ValueError):
    """Invalid startup input (peaks, dtype)."""


class BackendUnavailable(RuntimeError):
    """No compatible compute device could be acquired."""


class OperationFailure(RuntimeError):
    """A GEMM submission/wait failed or the device reported unusable timing."""
