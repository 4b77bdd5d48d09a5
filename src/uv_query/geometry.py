"""Elementary 2D geometry used by the locator.

Provides:
  - Inclusive point-in-triangle test with a tolerance on the barycentric weights.
  - Barycentric coordinates of a point with respect to a triangle.
  - Closest point on a segment (clamped projection).

All routines work on plain scalars so they can be called once per sweep event
without array overhead.
"""

from __future__ import annotations

import logging
from typing import Any, Optional, Sequence, Tuple, Union

import numpy as np
from numpy.typing import NDArray

from .config import tolerance as default_tolerance

_LOGGER = logging.getLogger(__name__)

PointLike = Union[NDArray[Any], Sequence[float]]


def _weights(
    p: PointLike, v0: PointLike, v1: PointLike, v2: PointLike
) -> Optional[Tuple[float, float, float]]:
    """Return barycentric weights of `p`, or None for a zero-area triangle."""
    ax, ay = float(v0[0]), float(v0[1])
    ux, uy = float(v1[0]) - ax, float(v1[1]) - ay
    vx, vy = float(v2[0]) - ax, float(v2[1]) - ay
    wx, wy = float(p[0]) - ax, float(p[1]) - ay

    det = ux * vy - uy * vx
    if det == 0.0:
        return None

    b1 = (wx * vy - wy * vx) / det
    b2 = (ux * wy - uy * wx) / det
    return 1.0 - b1 - b2, b1, b2


def containing_weights(
    p: PointLike,
    v0: PointLike,
    v1: PointLike,
    v2: PointLike,
    tol: float,
) -> Optional[Tuple[float, float, float]]:
    """Barycentric weights of `p` if the triangle contains it, else None.

    Same containment rule as `point_in_triangle`, returning the weights so a
    hit does not need a second `barycentric` call.
    """
    w = _weights(p, v0, v1, v2)
    if w is None or w[0] < -tol or w[1] < -tol or w[2] < -tol:
        return None
    return w


def point_in_triangle(
    p: PointLike,
    v0: PointLike,
    v1: PointLike,
    v2: PointLike,
    tol: Optional[float] = None,
) -> bool:
    """Test whether a point lies inside or on the boundary of a triangle.

    Works for either vertex winding. Zero-area triangles contain nothing.

    Args:
        p (PointLike): Query point (x, y).
        v0 (PointLike): First triangle vertex.
        v1 (PointLike): Second triangle vertex.
        v2 (PointLike): Third triangle vertex.
        tol (Optional[float]): Slack allowed below zero on each barycentric
            weight. Defaults to the configured tolerance.

    Returns:
        bool: True if the point is contained (boundary inclusive).
    """
    if tol is None:
        tol = default_tolerance()
    return containing_weights(p, v0, v1, v2, tol) is not None


def barycentric(
    p: PointLike, v0: PointLike, v1: PointLike, v2: PointLike
) -> Tuple[float, float, float]:
    """Barycentric coordinates of `p` with respect to triangle (v0, v1, v2).

    Returns:
        Tuple[float, float, float]: Weights (b0, b1, b2) with b0 + b1 + b2 == 1
        and p == b0*v0 + b1*v1 + b2*v2.

    Raises:
        ValueError: If the triangle has zero area.
    """
    w = _weights(p, v0, v1, v2)
    if w is None:
        _LOGGER.error("barycentric: degenerate triangle %s, %s, %s", v0, v1, v2)
        raise ValueError("Degenerate triangle: zero area, barycentric undefined.")
    return w


def closest_point_on_segment(
    p: PointLike, a: PointLike, b: PointLike
) -> Tuple[NDArray[Any], float]:
    """Project `p` onto segment [a, b], clamping to the endpoints.

    Args:
        p (PointLike): Query point.
        a (PointLike): Segment start.
        b (PointLike): Segment end.

    Returns:
        Tuple[NDArray[Any], float]: Closest point on the segment and the clamped
        parameter t in [0, 1] (0 at `a`, 1 at `b`). A zero-length segment
        yields `a` and t = 0.
    """
    pa = np.asarray(p, dtype=float)
    aa = np.asarray(a, dtype=float)
    d = np.asarray(b, dtype=float) - aa

    dr2 = float(np.dot(d, d))
    if dr2 == 0.0:
        return aa.copy(), 0.0

    t = float(np.dot(pa - aa, d)) / dr2
    if t <= 0.0:
        return aa.copy(), 0.0
    if t >= 1.0:
        # exact end point; a + 1*d can be one ulp off b
        return np.asarray(b, dtype=float).copy(), 1.0
    return aa + t * d, t
