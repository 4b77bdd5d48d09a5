"""Global configuration for uv-query CPU/GPU backends.

This module provides a package-wide configuration surface to select and manage
the array backend (NumPy on CPU or CuPy on GPU) used by the vectorized parts of
the locator (bounding boxes and the nearest-edge fallback). It also exposes a
dynamic `xp` proxy that always reflects the current backend, logging level
control and the default point-in-triangle tolerance.
"""

from __future__ import annotations

from dataclasses import dataclass
import contextlib
import logging
import os
from typing import Any, ContextManager, Iterator, Optional


# -----------------------------------------------------------------------------
# Logging
# -----------------------------------------------------------------------------
_LOGGER = logging.getLogger("uv_query.config")
_PACKAGE_LOGGER = logging.getLogger("uv_query")


def _parse_log_level(val: str | int | None, default: int = logging.WARNING) -> int:
    """Parse a logging level string or int into a `logging` level constant.

    Args:
        val: The desired level (e.g., "DEBUG", 10). May be None.
        default: Fallback level if `val` cannot be parsed.

    Returns:
        An integer logging level (e.g., logging.DEBUG).
    """
    if val is None:
        return default
    if isinstance(val, int):
        return val
    lvl = getattr(logging, str(val).upper(), None)
    if isinstance(lvl, int):
        return lvl
    return default


def set_log_level(level: str | int = "WARNING") -> None:
    """Set the package logger level programmatically.

    Args:
        level: A standard logging level name or integer.
    """
    _PACKAGE_LOGGER.setLevel(_parse_log_level(level))


# Default level can be overridden by env.
set_log_level(os.getenv("UV_QUERY_LOGLEVEL", "WARNING"))


# -----------------------------------------------------------------------------
# Env helpers
# -----------------------------------------------------------------------------
def float_env(varname: str, default: float) -> float:
    """Read an environment variable and interpret it as a float.

    Args:
        varname: The name of the environment variable.
        default: The default value if the variable is unset.

    Returns:
        The float value parsed from the environment.

    Raises:
        ValueError: If the value is not a finite, non-negative number.
    """
    raw = os.getenv(varname, repr(default))
    val = float(raw)
    if not (val >= 0.0 and val != float("inf")):
        raise ValueError(f"invalid tolerance {raw!r} for environment {varname!r}")
    return val


def _device_env() -> str:
    """Parse UV_QUERY_GPU into a device string ('gpu'|'cpu'|'auto')."""
    raw = os.getenv("UV_QUERY_GPU", "").strip().lower()
    if raw in {"1", "true", "y", "yes", "on", "gpu"}:
        dev = "gpu"
    elif raw in {"0", "false", "n", "no", "off", "cpu"}:
        dev = "cpu"
    else:
        dev = "auto"
    _LOGGER.debug("Env UV_QUERY_GPU=%r -> device=%s", raw, dev)
    return dev


# -----------------------------------------------------------------------------
# Array backend abstraction
# -----------------------------------------------------------------------------
@dataclass
class ArrayBackend:
    """Descriptor for the active array backend (NumPy or CuPy)."""

    name: str
    is_gpu: bool
    xp: Any

    def to_cpu(self, a: Any) -> Any:
        """Copy an array to CPU if it is a CuPy array."""
        if self.is_gpu:
            import cupy as cp

            if isinstance(a, cp.ndarray):
                _LOGGER.debug(
                    "Transferring array from GPU->CPU (shape=%s)",
                    getattr(a, "shape", None),
                )
                return cp.asnumpy(a)
        return a

    def to_device(self, a: Any, dtype: Any | None = None) -> Any:
        """Copy an array to the active backend (NumPy or CuPy).

        Args:
            a: Input array-like.
            dtype: Optional dtype to cast to.

        Returns:
            An array on the current backend.
        """
        _LOGGER.debug(
            "Transferring array to %s (dtype=%s, shape=%s)",
            self.name,
            dtype,
            getattr(a, "shape", None),
        )
        return self.xp.asarray(a, dtype=dtype)


def _make_cpu_backend() -> ArrayBackend:
    """Create a CPU (NumPy) backend."""
    import numpy as np

    be = ArrayBackend(name="numpy", is_gpu=False, xp=np)
    _LOGGER.info("Initialized CPU backend (NumPy)")
    return be


def _try_make_gpu_backend() -> ArrayBackend:
    """Create a GPU (CuPy) backend or raise if initialization fails.

    Returns:
        An initialized `ArrayBackend` for GPU.

    Raises:
        RuntimeError: If no CUDA device is visible to CuPy.
    """
    import cupy as cp

    dev_count = cp.cuda.runtime.getDeviceCount()
    _LOGGER.debug("CuPy detected devices: %d", dev_count)
    if dev_count < 1:
        raise RuntimeError("No CUDA device visible to CuPy")

    be = ArrayBackend(name="cupy", is_gpu=True, xp=cp)
    _LOGGER.info("Initialized GPU backend (CuPy)")
    return be


def _auto_backend(device: str, *, strict: bool = False) -> ArrayBackend:
    """Select and initialize the backend based on `device` and availability.

    Args:
        device: One of 'cpu', 'gpu', or 'auto'.
        strict: If True, raise on GPU init failure instead of falling back.

    Returns:
        An initialized `ArrayBackend`.
    """
    _LOGGER.debug("Selecting backend: device=%s strict=%s", device, strict)
    if device == "cpu":
        return _make_cpu_backend()
    if device == "gpu":
        try:
            return _try_make_gpu_backend()
        except Exception as err:
            _LOGGER.error("GPU backend init failed: %r", err)
            if strict:
                raise
            _LOGGER.warning("Falling back to CPU backend.")
            return _make_cpu_backend()
    if device != "auto":
        raise ValueError(f"device must be 'cpu', 'gpu' or 'auto'; got {device!r}")
    # auto: prefer GPU, else CPU
    try:
        return _try_make_gpu_backend()
    except Exception as err:
        _LOGGER.info("Auto GPU init failed (%r); using CPU.", err)
        return _make_cpu_backend()


# -----------------------------------------------------------------------------
# Config singleton + dynamic proxies
# -----------------------------------------------------------------------------
class Config:
    """Global configuration for the uv-query array backend and tolerances.

    Provides global device selection (cpu/gpu/auto), the default containment
    tolerance, and a dynamic proxy so code importing `xp` always sees the
    current backend.
    """

    def __init__(self) -> None:
        """Initialize config using environment defaults."""
        self._tolerance = float_env("UV_QUERY_TOL", 1e-12)
        device = _device_env()  # 'cpu' | 'gpu' | 'auto'
        self._backend: ArrayBackend = _auto_backend(device)
        _LOGGER.info(
            "Config initialized: device=%s tol=%g backend=%s",
            device,
            self._tolerance,
            self._backend.name,
        )

    def configure(
        self,
        device: str = "auto",
        *,
        tolerance: Optional[float] = None,
        strict: bool = False,
    ) -> Config:
        """Reconfigure the active backend and, optionally, the tolerance.

        Args:
            device: One of 'cpu', 'gpu', or 'auto'.
            tolerance: Optional new default containment tolerance.
            strict: If True, raise on GPU init failure instead of fallback.

        Returns:
            The `Config` instance (for chaining).
        """
        _LOGGER.info(
            "Reconfiguring: device=%s tol=%s strict=%s", device, tolerance, strict
        )
        self._backend = _auto_backend(device, strict=strict)
        if tolerance is not None:
            self.tolerance = tolerance
        return self

    @contextlib.contextmanager
    def use(
        self,
        device: str,
        *,
        tolerance: Optional[float] = None,
        strict: bool = False,
    ) -> Iterator[None]:
        """Temporarily switch backend (and tolerance) within a context manager.

        Args:
            device: One of 'cpu' or 'gpu'.
            tolerance: Optional temporary containment tolerance.
            strict: If True, raise on GPU init failure instead of fallback.

        Yields:
            None. Restores the previous backend and tolerance on exit.
        """
        prev = self._backend
        prev_tol = self._tolerance
        try:
            self.configure(device=device, tolerance=tolerance, strict=strict)
            yield
        finally:
            self._backend = prev
            self._tolerance = prev_tol
            _LOGGER.info("Restored previous backend: %s", self._backend.name)

    @property
    def tolerance(self) -> float:
        """Return the default point-in-triangle tolerance."""
        return self._tolerance

    @tolerance.setter
    def tolerance(self, value: float) -> None:
        value = float(value)
        if not (value >= 0.0 and value != float("inf")):
            raise ValueError(f"tolerance must be finite and >= 0; got {value!r}")
        self._tolerance = value

    @property
    def is_gpu(self) -> bool:
        """Return True if the active backend is a GPU backend."""
        return self._backend.is_gpu

    @property
    def backend_name(self) -> str:
        """Return the name of the active backend ('numpy' or 'cupy')."""
        return self._backend.name

    @property
    def xp(self) -> Any:
        """Return the active array module (NumPy or CuPy)."""
        return self._backend.xp

    def to_cpu(self, a: Any) -> Any:
        """Copy an array to CPU if needed."""
        return self._backend.to_cpu(a)

    def to_device(self, a: Any, dtype: Any | None = None) -> Any:
        """Copy an array to the active backend."""
        return self._backend.to_device(a, dtype=dtype)


class _XPProxy:
    """Proxy for `xp` that forwards attribute access to the current backend."""

    def __init__(self, _cfg: Config) -> None:
        self._cfg = _cfg

    def __getattr__(self, name: str) -> Any:  # noqa: D401
        return getattr(self._cfg.xp, name)


# Singleton & forwards
config = Config()
xp = _XPProxy(config)


def to_cpu(a: Any) -> Any:
    """Copy an array to CPU if needed (module-level)."""
    return config.to_cpu(a)


def to_device(a: Any, dtype: Any | None = None) -> Any:
    """Copy an array to the active backend (module-level)."""
    return config.to_device(a, dtype=dtype)


def is_gpu() -> bool:
    """Return True if the active backend is a GPU backend (module-level)."""
    return config.is_gpu


def backend_name() -> str:
    """Return the name of the active backend (module-level)."""
    return config.backend_name


def tolerance() -> float:
    """Return the default point-in-triangle tolerance (module-level)."""
    return config.tolerance


def configure(
    device: str = "auto",
    *,
    tolerance: Optional[float] = None,
    strict: bool = False,
) -> Config:
    """Reconfigure the active backend (module-level)."""
    return config.configure(device, tolerance=tolerance, strict=strict)


def use(
    device: str,
    *,
    tolerance: Optional[float] = None,
    strict: bool = False,
) -> ContextManager[None]:
    """Temporarily switch backend within a context manager (module-level)."""
    return config.use(device, tolerance=tolerance, strict=strict)
