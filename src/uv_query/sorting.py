"""Stable index sorting used to order sweep events."""

from __future__ import annotations

import logging
from typing import Any, Sequence, Union

import numpy as np
from numpy.typing import NDArray

_LOGGER = logging.getLogger(__name__)


def argsort(values: Union[NDArray[Any], Sequence[float]]) -> NDArray[np.intp]:
    """Return the permutation of indices that stably sorts `values`.

    Equal values keep their original relative order, so repeated calls on the
    same input always yield the same event order.

    Args:
        values: One-dimensional sequence of comparable numbers.

    Returns:
        NDArray[np.intp]: Permutation `p` of `[0, N)` with `values[p]`
        non-decreasing.

    Raises:
        ValueError: If `values` is not one-dimensional.
    """
    arr = np.asarray(values)
    if arr.ndim != 1:
        _LOGGER.error("argsort: expected a 1-D sequence; got shape %s", arr.shape)
        raise ValueError(f"argsort expects a 1-D sequence; got shape {arr.shape}")
    return np.argsort(arr, kind="stable")
