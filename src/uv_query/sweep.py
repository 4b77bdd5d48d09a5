"""Sweep-line point location over a UV triangulation.

A vertical line is swept from left to right across three sorted event streams:
triangle activations (by xmin), query points (by x) and triangle deactivations
(by xmax). Each query point is only tested against the triangles whose x-extent
straddles it, and among those only the ones whose y-extent covers it.

At equal x the events are processed in the order activate -> test ->
deactivate, so a triangle that just touches a query x is still active when the
point is tested.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

import numpy as np
from numpy.typing import NDArray

from .bounds import TriangleBounds, compute_bounds
from .config import tolerance as default_tolerance
from .geometry import containing_weights
from .mesh import as_points, as_triangles
from .sorting import argsort

_LOGGER = logging.getLogger(__name__)

UNSET: int = -1
"""Triangle index stored for query points that have no triangle (yet)."""


@dataclass
class SweepResult:
    """Output of a sweep over one batch of query points.

    Attributes:
        tri_idxs (NDArray[np.intp]): Containing triangle per query point, or
            `UNSET` for points the sweep could not place. Shape (n_points,).
        missing (NDArray[np.intp]): Indices of the query points that were not
            placed, in increasing-x order.
        barys (NDArray[np.float64]): Barycentric weights per query point with
            respect to its triangle; NaN rows for unplaced points. Shape
            (n_points, 3).
    """

    tri_idxs: NDArray[np.intp]
    missing: NDArray[np.intp]
    barys: NDArray[np.float64]


def sweep(
    q_points: NDArray[Any],
    uvs: NDArray[Any],
    tris: NDArray[Any],
    *,
    bounds: Optional[TriangleBounds] = None,
    tol: Optional[float] = None,
) -> SweepResult:
    """Find the triangle containing each query point.

    Args:
        q_points (NDArray[Any]): Query points, shape (n_points, 2).
        uvs (NDArray[Any]): Triangulated UV coordinates, shape (n_uvs, 2).
        tris (NDArray[Any]): Flat triangle indices (3*n_tris,) or (n_tris, 3).
        bounds (Optional[TriangleBounds]): Precomputed triangle bounds; computed
            from `uvs`/`tris` when omitted.
        tol (Optional[float]): Containment tolerance; defaults to the configured
            one.

    Returns:
        SweepResult: Triangle index, barycentric weights and unplaced list.

    Raises:
        ValueError: On malformed inputs (shapes, non-finite coordinates,
            out-of-range indices, bounds of the wrong size).
    """
    qpts = as_points(q_points, "q_points")
    uv_arr = as_points(uvs, "uvs")
    conn = as_triangles(tris, uv_arr.shape[0])

    n_points = int(qpts.shape[0])
    n_tris = int(conn.shape[0])

    tri_idxs = np.full(n_points, UNSET, dtype=np.intp)
    barys = np.full((n_points, 3), np.nan, dtype=float)
    missing: List[int] = []

    if n_points == 0:
        _LOGGER.debug("sweep: empty query set; nothing to do.")
        return SweepResult(tri_idxs, np.empty(0, dtype=np.intp), barys)

    if bounds is None:
        bounds = compute_bounds(uv_arr, conn)
    elif bounds.n_tris != n_tris:
        _LOGGER.error(
            "sweep: bounds describe %d triangle(s) but mesh has %d",
            bounds.n_tris,
            n_tris,
        )
        raise ValueError(
            f"bounds size {bounds.n_tris} does not match triangle count {n_tris}"
        )
    if tol is None:
        tol = default_tolerance()

    # Plain lists: the loop below touches one element at a time.
    qpx: List[float] = qpts[:, 0].tolist()
    pts: List[List[float]] = qpts.tolist()
    verts: List[List[float]] = uv_arr.tolist()
    corners: List[List[int]] = conn.tolist()
    # A weight may dip to -tol, which moves the triangle outline by at most
    # 2*tol times its extent along each axis.
    pad_x = 2.0 * tol * (bounds.xmax - bounds.xmin)
    pad_y = 2.0 * tol * (bounds.ymax - bounds.ymin)
    xmns: List[float] = (bounds.xmin - pad_x).tolist()
    xmxs: List[float] = (bounds.xmax + pad_x).tolist()
    ymns: List[float] = (bounds.ymin - pad_y).tolist()
    ymxs: List[float] = (bounds.ymax + pad_y).tolist()

    qp_order: List[int] = argsort(qpx).tolist()
    mx_order: List[int] = argsort(xmxs).tolist()
    mn_order: List[int] = argsort(xmns).tolist()

    qp_s = mx_s = mn_s = 0
    qp_idx = qp_order[0]
    qp = qpx[qp_idx]
    mx = xmxs[mx_order[0]] if n_tris else math.inf
    mn = xmns[mn_order[0]] if n_tris else math.inf

    # Triangles entirely left of the first query point can never contain one.
    skip = [qp > x for x in xmxs]
    active = [False] * n_tris
    at_set: Dict[int, None] = {}  # insertion-ordered set of active triangles

    _LOGGER.debug(
        "sweep: %d point(s), %d triangle(s), %d skipped left of x=%.6g",
        n_points,
        n_tris,
        sum(skip),
        qp,
    )

    while True:
        if mn <= mx and mn <= qp:
            t = mn_order[mn_s]
            if not active[t] and not skip[t]:
                active[t] = True
                at_set[t] = None
            mn_s += 1
            mn = xmns[mn_order[mn_s]] if mn_s < n_tris else math.inf
        elif qp <= mx:
            point = pts[qp_idx]
            yv = point[1]
            for t in at_set:
                if ymns[t] <= yv <= ymxs[t]:
                    a, b, c = corners[t]
                    w = containing_weights(point, verts[a], verts[b], verts[c], tol)
                    if w is not None:
                        tri_idxs[qp_idx] = t
                        barys[qp_idx] = w
                        break
            else:
                _LOGGER.debug(
                    "sweep: point %d at (%.6g, %.6g) not inside any of %d active triangle(s)",
                    qp_idx,
                    point[0],
                    yv,
                    len(at_set),
                )
                missing.append(qp_idx)

            qp_s += 1
            if qp_s == n_points:
                break
            qp_idx = qp_order[qp_s]
            qp = qpx[qp_idx]
        else:
            t = mx_order[mx_s]
            if active[t] and not skip[t]:
                active[t] = False
                del at_set[t]
            mx_s += 1
            mx = xmxs[mx_order[mx_s]] if mx_s < n_tris else math.inf

    _LOGGER.info(
        "sweep: located %d/%d point(s); %d unplaced",
        n_points - len(missing),
        n_points,
        len(missing),
    )
    return SweepResult(tri_idxs, np.asarray(missing, dtype=np.intp), barys)
