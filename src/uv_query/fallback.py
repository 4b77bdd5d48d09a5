"""Nearest-border-edge fallback for query points the sweep could not place.

Each unplaced point is projected onto every boundary edge of the mesh (clamped
to the segment); the edge with the smallest squared distance wins and the point
is assigned to the triangle that owns that edge. The scan is brute force over
the edges, vectorized on the active array backend; it only runs for the
usually small set of unplaced points.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Optional, Tuple

import numpy as np
from numpy.typing import NDArray

from .config import backend_name, to_cpu, to_device, xp
from .geometry import barycentric
from .mesh import as_borders, as_points, as_triangles

_LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True)
class BorderEdges:
    """Precomputed segment data for every border edge.

    Arrays live on the backend that was active when they were built.

    Attributes:
        starts (Any): Start point per edge, shape (n_edges, 2).
        ends (Any): End point per edge, shape (n_edges, 2).
        dirs (Any): Direction (end - start) per edge, shape (n_edges, 2).
        len2 (Any): Squared length of each direction, shape (n_edges,).
    """

    starts: Any
    ends: Any
    dirs: Any
    len2: Any

    @classmethod
    def from_mesh(cls, uvs: NDArray[Any], borders: NDArray[Any]) -> BorderEdges:
        """Build the edge table from UV coordinates and (n_edges, 2) border indices."""
        uv_arr = np.asarray(uvs, dtype=float)
        edges = np.asarray(borders, dtype=np.intp).reshape(-1, 2)

        starts = to_device(uv_arr[edges[:, 0]], dtype=float)
        ends = to_device(uv_arr[edges[:, 1]], dtype=float)
        dirs = ends - starts
        len2 = xp.sum(dirs * dirs, axis=1)

        n_zero = int(to_cpu(xp.count_nonzero(len2 == 0.0)))
        if n_zero:
            _LOGGER.warning(
                "BorderEdges: %d zero-length border edge(s); treated as points.",
                n_zero,
            )
        return cls(starts=starts, ends=ends, dirs=dirs, len2=len2)

    @property
    def n_edges(self) -> int:
        """Number of border edges."""
        return int(self.len2.shape[0])


def closest_edge(edges: BorderEdges, point: Any) -> Tuple[int, float]:
    """Find the border edge closest to `point`.

    Args:
        edges (BorderEdges): Precomputed border segments (at least one).
        point (Any): Query point (x, y).

    Returns:
        Tuple[int, float]: Index of the closest edge (the first one on ties)
        and the clamped projection parameter along it.

    Raises:
        ValueError: If there are no edges.
    """
    if edges.n_edges == 0:
        _LOGGER.error("closest_edge: no border edges to search.")
        raise ValueError("closest_edge: no border edges available.")

    p = to_device(point, dtype=float)
    diff = p - edges.starts  # (n_edges, 2)

    has_len = edges.len2 > 0.0
    denom = xp.where(has_len, edges.len2, 1.0)
    lerp = xp.where(has_len, xp.sum(diff * edges.dirs, axis=1) / denom, 0.0)
    lerp = xp.clip(lerp, 0.0, 1.0)

    # Clamped projections snap to the stored end points, so edges sharing a
    # vertex yield bit-identical distances there.
    proj = edges.starts + edges.dirs * lerp[:, None]
    proj = xp.where((lerp == 0.0)[:, None], edges.starts, proj)
    proj = xp.where((lerp == 1.0)[:, None], edges.ends, proj)
    c = proj - p
    l2 = xp.sum(c * c, axis=1)

    idx = int(to_cpu(xp.argmin(l2)))
    t = float(to_cpu(lerp[idx]))
    return idx, t


def handle_missing(
    points: NDArray[Any],
    uvs: NDArray[Any],
    borders: NDArray[Any],
    missing: NDArray[Any],
    border_to_tri: NDArray[Any],
    tri_idxs: NDArray[Any],
    *,
    tris: Optional[NDArray[Any]] = None,
    barys: Optional[NDArray[Any]] = None,
) -> None:
    """Assign every unplaced query point to the owner of its nearest border edge.

    `tri_idxs` (and `barys`, when given) are updated in place.

    Args:
        points (NDArray[Any]): All query points, shape (n_points, 2).
        uvs (NDArray[Any]): UV coordinates, shape (n_uvs, 2).
        borders (NDArray[Any]): Border edges as UV index pairs, shape (n_edges, 2).
        missing (NDArray[Any]): Indices into `points` still to be assigned.
        border_to_tri (NDArray[Any]): Owning triangle per border edge.
        tri_idxs (NDArray[Any]): Per-point triangle index output (n_points,).
        tris (Optional[NDArray[Any]]): Triangle indices; needed to fill `barys`
            and to range-check `border_to_tri`.
        barys (Optional[NDArray[Any]]): Per-point barycentric output
            (n_points, 3). Filled with the weights of the projection on the
            chosen edge, relative to the owning triangle.

    Raises:
        ValueError: If points are missing but there are no border edges, or on
            malformed inputs.
    """
    miss = np.asarray(to_cpu(missing), dtype=np.intp).reshape(-1)
    if miss.size == 0:
        _LOGGER.debug("handle_missing: no unplaced points.")
        return

    pts = as_points(points, "points")
    uv_arr = as_points(uvs, "uvs")
    if (miss < 0).any() or (miss >= pts.shape[0]).any():
        _LOGGER.error("handle_missing: missing indices outside [0, %d).", pts.shape[0])
        raise ValueError("missing contains out-of-range query indices.")

    conn: Optional[NDArray[np.intp]] = None
    if tris is not None:
        conn = as_triangles(tris, uv_arr.shape[0])
        n_tris = int(conn.shape[0])
    else:
        n_tris = int(np.max(border_to_tri, initial=-1)) + 1
    if barys is not None and conn is None:
        _LOGGER.error("handle_missing: barys requested without tris.")
        raise ValueError("tris is required to fill barycentric coordinates.")

    edges_idx, owners = as_borders(borders, border_to_tri, uv_arr.shape[0], n_tris)
    if edges_idx.shape[0] == 0:
        _LOGGER.error(
            "handle_missing: %d unplaced point(s) but no border edges.", miss.size
        )
        raise ValueError(
            f"{miss.size} point(s) could not be located and no border edges "
            "were given to place them."
        )

    edges = BorderEdges.from_mesh(uv_arr, edges_idx)
    _LOGGER.debug(
        "handle_missing: %d point(s) against %d border edge(s) on backend=%s",
        miss.size,
        edges.n_edges,
        backend_name(),
    )

    for m_idx in miss.tolist():
        pt = pts[m_idx]
        e_idx, t = closest_edge(edges, pt)
        tri_idx = int(owners[e_idx])
        tri_idxs[m_idx] = tri_idx
        _LOGGER.debug(
            "handle_missing: point %d -> edge %d (t=%.6g) -> tri %d",
            m_idx,
            e_idx,
            t,
            tri_idx,
        )

        if barys is not None and conn is not None:
            a, b = edges_idx[e_idx]
            proj = uv_arr[b] if t == 1.0 else uv_arr[a] + t * (uv_arr[b] - uv_arr[a])
            v0, v1, v2 = (uv_arr[i] for i in conn[tri_idx])
            try:
                barys[m_idx] = barycentric(proj, v0, v1, v2)
            except ValueError:
                _LOGGER.warning(
                    "handle_missing: owner tri %d of point %d is degenerate; "
                    "barycentric left unset.",
                    tri_idx,
                    m_idx,
                )
                barys[m_idx] = np.nan

    _LOGGER.info("handle_missing: assigned %d point(s) via border edges", miss.size)
