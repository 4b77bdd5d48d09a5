"""Axis-aligned bounding boxes for the triangles of a UV mesh."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

import numpy as np
from numpy.typing import NDArray

from .config import backend_name, to_cpu, xp

_LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True)
class TriangleBounds:
    """Per-triangle extents along both UV axes.

    Attributes:
        xmin (NDArray[Any]): Minimum x per triangle, shape (n_tris,).
        xmax (NDArray[Any]): Maximum x per triangle, shape (n_tris,).
        ymin (NDArray[Any]): Minimum y per triangle, shape (n_tris,).
        ymax (NDArray[Any]): Maximum y per triangle, shape (n_tris,).
    """

    xmin: NDArray[Any]
    xmax: NDArray[Any]
    ymin: NDArray[Any]
    ymax: NDArray[Any]

    @property
    def n_tris(self) -> int:
        """Number of triangles described."""
        return int(self.xmin.shape[0])


def compute_bounds(uvs: NDArray[Any], tris: NDArray[Any]) -> TriangleBounds:
    """Compute the bounding box of every triangle.

    The min/max reductions run on the active array backend; the results are
    brought back to the CPU since the sweep walks them one event at a time.

    Args:
        uvs (NDArray[Any]): UV coordinates, shape (n_uvs, 2).
        tris (NDArray[Any]): Triangle indices, shape (n_tris, 3) or flat (3*n_tris,).
            Indices are assumed valid.

    Returns:
        TriangleBounds: Extents for each triangle.
    """
    conn = np.asarray(tris, dtype=np.intp).reshape(-1, 3)

    vxp = xp.asarray(np.asarray(uvs, dtype=float))  # (n_uvs, 2)
    txp = xp.asarray(conn)  # (n_tris, 3)
    corners = vxp[txp]  # (n_tris, 3, 2)

    lo = to_cpu(corners.min(axis=1))
    hi = to_cpu(corners.max(axis=1))

    a, b, c = corners[:, 0, :], corners[:, 1, :], corners[:, 2, :]
    u = b - a
    v = c - a
    cross = to_cpu(u[:, 0] * v[:, 1] - u[:, 1] * v[:, 0])
    n_degenerate = int(np.count_nonzero(cross == 0.0))
    if n_degenerate:
        _LOGGER.warning(
            "compute_bounds: %d degenerate triangle(s) with zero area; "
            "they will never contain a query point.",
            n_degenerate,
        )

    bounds = TriangleBounds(
        xmin=np.ascontiguousarray(lo[:, 0]),
        xmax=np.ascontiguousarray(hi[:, 0]),
        ymin=np.ascontiguousarray(lo[:, 1]),
        ymax=np.ascontiguousarray(hi[:, 1]),
    )
    _LOGGER.debug(
        "compute_bounds: %d triangle(s) on backend=%s", bounds.n_tris, backend_name()
    )
    return bounds
