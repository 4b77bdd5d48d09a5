"""One-call point location: sweep first, nearest border edge for the rest."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Optional

import numpy as np
from numpy.typing import NDArray

from .bounds import TriangleBounds
from .fallback import handle_missing
from .mesh import UVMesh, as_borders, as_points, as_triangles
from .sweep import sweep

_LOGGER = logging.getLogger(__name__)


@dataclass
class QueryResult:
    """Triangle assignment for a batch of query points.

    Attributes:
        tri_idxs (NDArray[np.intp]): Triangle index per query point.
        missing (NDArray[np.intp]): Query indices that needed the border-edge
            fallback.
        barys (NDArray[np.float64]): Barycentric weights per query point,
            shape (n_points, 3). For fallback points these are the weights of
            the point's projection onto the chosen border edge.
    """

    tri_idxs: NDArray[np.intp]
    missing: NDArray[np.intp]
    barys: NDArray[np.float64]


def locate_points(
    points: NDArray[Any],
    uvs: NDArray[Any],
    tris: NDArray[Any],
    borders: Optional[NDArray[Any]] = None,
    border_to_tri: Optional[NDArray[Any]] = None,
    *,
    bounds: Optional[TriangleBounds] = None,
    tol: Optional[float] = None,
) -> QueryResult:
    """Assign every query point to a triangle of the UV mesh.

    Points inside the mesh get their containing triangle from the sweep; the
    rest are given the triangle owning the nearest border edge. When `borders`
    is omitted the boundary is detected from `tris`.

    Args:
        points (NDArray[Any]): Query points, shape (n_points, 2).
        uvs (NDArray[Any]): UV coordinates, shape (n_uvs, 2).
        tris (NDArray[Any]): Flat triangle indices or (n_tris, 3).
        borders (Optional[NDArray[Any]]): Boundary edges, shape (n_edges, 2).
        border_to_tri (Optional[NDArray[Any]]): Owning triangle per edge.
        bounds (Optional[TriangleBounds]): Precomputed triangle bounds.
        tol (Optional[float]): Containment tolerance.

    Returns:
        QueryResult: Triangle index, fallback list and barycentric weights.

    Raises:
        ValueError: On malformed inputs, or when points fall outside the mesh
            and no border edges exist.
    """
    pts = as_points(points, "points")
    uv_arr = as_points(uvs, "uvs")
    conn = as_triangles(tris, uv_arr.shape[0])

    if borders is None and border_to_tri is None:
        edges = owners = None
    elif borders is None or border_to_tri is None:
        _LOGGER.error("locate_points: borders and border_to_tri must be given together.")
        raise ValueError("borders and border_to_tri must be given together.")
    else:
        # Validate up front so a bad border table fails before the sweep runs.
        edges, owners = as_borders(
            borders, border_to_tri, uv_arr.shape[0], conn.shape[0]
        )

    result = sweep(pts, uv_arr, conn, bounds=bounds, tol=tol)

    if result.missing.size:
        if edges is None:
            mesh = UVMesh(uv_arr, conn)
            mesh.detect_boundary()
            edges, owners = mesh.borders, mesh.border_to_tri
        handle_missing(
            pts,
            uv_arr,
            edges,
            result.missing,
            owners,
            result.tri_idxs,
            tris=conn,
            barys=result.barys,
        )

    _LOGGER.info(
        "locate_points: %d point(s), %d via fallback",
        pts.shape[0],
        result.missing.size,
    )
    return QueryResult(
        tri_idxs=result.tri_idxs, missing=result.missing, barys=result.barys
    )
