"""Module defining the UVMesh class and input validation for UV point queries.

This module provides:
  - Validation/normalization of point arrays, triangle lists and border data.
  - The UVMesh container with lazily computed triangle bounds.
  - Boundary-edge detection with the owning triangle of each edge.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Dict, List, Optional, Tuple

import numpy as np
from numpy.typing import NDArray

from .bounds import TriangleBounds, compute_bounds
from .config import to_cpu

if TYPE_CHECKING:
    from .query import QueryResult

_LOGGER = logging.getLogger(__name__)


def as_points(points: Any, name: str = "points") -> NDArray[np.float64]:
    """Return `points` as a finite (n, 2) float array on CPU.

    An empty sequence is accepted and yields shape (0, 2).

    Raises:
        ValueError: If the array is not (n, 2) or holds non-finite values.
    """
    arr = np.asarray(to_cpu(points), dtype=float)
    if arr.size == 0:
        return arr.reshape(0, 2)
    if arr.ndim != 2 or arr.shape[1] != 2:
        _LOGGER.error("%s must be (n, 2); got %s", name, arr.shape)
        raise ValueError(f"{name} must be (n, 2); got {arr.shape}")
    if not np.isfinite(arr).all():
        _LOGGER.error("%s contains non-finite coordinates.", name)
        raise ValueError(f"{name} contains non-finite coordinates.")
    return arr


def _as_index_array(values: Any, name: str) -> NDArray[np.intp]:
    """Cast an index array to intp, rejecting non-integral values."""
    arr = np.asarray(to_cpu(values))
    if arr.size == 0:
        return arr.astype(np.intp)
    if not np.issubdtype(arr.dtype, np.integer):
        if not np.issubdtype(arr.dtype, np.floating) or not np.all(
            np.mod(arr, 1) == 0
        ):
            _LOGGER.error("%s must hold integer indices; got dtype %s", name, arr.dtype)
            raise ValueError(f"{name} must hold integer indices; got dtype {arr.dtype}")
    return arr.astype(np.intp)


def as_triangles(tris: Any, n_uvs: int) -> NDArray[np.intp]:
    """Return the triangle list as an (n_tris, 3) index array.

    Accepts either a flat sequence whose length is a multiple of 3 or an
    (n_tris, 3) array.

    Raises:
        ValueError: On a bad shape or an index outside [0, n_uvs).
    """
    conn = _as_index_array(tris, "tris")
    if conn.ndim == 1:
        if conn.shape[0] % 3 != 0:
            _LOGGER.error(
                "tris length %d is not a multiple of 3", int(conn.shape[0])
            )
            raise ValueError(
                f"flattened tris length {conn.shape[0]} is not a multiple of 3"
            )
        conn = conn.reshape(-1, 3)
    elif conn.ndim != 2 or conn.shape[1] != 3:
        _LOGGER.error("tris must be flat or (n_tri, 3); got %s", conn.shape)
        raise ValueError(f"tris must be flat or (n_tri, 3); got {conn.shape}")

    if conn.size and ((conn < 0).any() or (conn >= n_uvs).any()):
        _LOGGER.error("tris has indices outside [0, %d).", n_uvs)
        raise ValueError("Triangle list contains out-of-range vertex indices.")
    return conn


def as_borders(
    borders: Any, border_to_tri: Any, n_uvs: int, n_tris: int
) -> Tuple[NDArray[np.intp], NDArray[np.intp]]:
    """Validate border edges and their owning triangles.

    Returns:
        Tuple[NDArray[np.intp], NDArray[np.intp]]: borders (n_edges, 2) and
        border_to_tri (n_edges,).

    Raises:
        ValueError: On bad shapes, a length mismatch or out-of-range indices.
    """
    edges = _as_index_array(borders, "borders")
    owners = _as_index_array(border_to_tri, "border_to_tri").reshape(-1)
    if edges.size == 0:
        edges = edges.reshape(0, 2)
    if edges.ndim != 2 or edges.shape[1] != 2:
        _LOGGER.error("borders must be (n_edges, 2); got %s", edges.shape)
        raise ValueError(f"borders must be (n_edges, 2); got {edges.shape}")
    if edges.shape[0] != owners.shape[0]:
        _LOGGER.error(
            "borders (%d) and border_to_tri (%d) differ in length",
            edges.shape[0],
            owners.shape[0],
        )
        raise ValueError(
            f"borders has {edges.shape[0]} edge(s) but border_to_tri has "
            f"{owners.shape[0]} entries"
        )
    if edges.size and ((edges < 0).any() or (edges >= n_uvs).any()):
        _LOGGER.error("borders has indices outside [0, %d).", n_uvs)
        raise ValueError("Border edges contain out-of-range vertex indices.")
    if owners.size and ((owners < 0).any() or (owners >= n_tris).any()):
        _LOGGER.error("border_to_tri has indices outside [0, %d).", n_tris)
        raise ValueError("border_to_tri contains out-of-range triangle indices.")
    return edges, owners


class UVMesh:
    """A validated 2D triangulation in UV space.

    Args:
        uvs (NDArray[Any]): UV coordinates (n_uvs×2).
        tris (NDArray[Any]): Triangle indices, flat (3*n_tris) or (n_tris×3).
        borders (Optional[NDArray[Any]]): Boundary edges (n_edges×2). Detected
            from the triangulation when omitted.
        border_to_tri (Optional[NDArray[Any]]): Owning triangle per boundary edge.

    Attributes:
        uvs (NDArray[Any]): UV array, shape (n_uvs, 2).
        tris (NDArray[Any]): Triangle indices, shape (n_tris, 3).
        borders (Optional[NDArray[Any]]): Boundary edges, shape (n_edges, 2).
        border_to_tri (Optional[NDArray[Any]]): Owner per boundary edge.
    """

    uvs: NDArray[np.float64]
    tris: NDArray[np.intp]
    borders: Optional[NDArray[np.intp]]
    border_to_tri: Optional[NDArray[np.intp]]

    def __init__(
        self,
        uvs: NDArray[Any],
        tris: NDArray[Any],
        borders: Optional[NDArray[Any]] = None,
        border_to_tri: Optional[NDArray[Any]] = None,
    ) -> None:
        self.uvs = as_points(uvs, "uvs")
        self.tris = as_triangles(tris, self.n_uvs)
        self._bounds: Optional[TriangleBounds] = None

        if (borders is None) != (border_to_tri is None):
            _LOGGER.error("UVMesh: borders and border_to_tri must be given together.")
            raise ValueError("borders and border_to_tri must be given together.")
        self.borders = None
        self.border_to_tri = None
        if borders is not None:
            self.borders, self.border_to_tri = as_borders(
                borders, border_to_tri, self.n_uvs, self.n_tris
            )

        _LOGGER.info(
            "UVMesh initialized with %d uvs and %d triangles", self.n_uvs, self.n_tris
        )

    @property
    def n_uvs(self) -> int:
        """Number of UV points."""
        return int(self.uvs.shape[0])

    @property
    def n_tris(self) -> int:
        """Number of triangles."""
        return int(self.tris.shape[0])

    @property
    def bounds(self) -> TriangleBounds:
        """Per-triangle bounding boxes, computed on first access."""
        if self._bounds is None:
            self._bounds = compute_bounds(self.uvs, self.tris)
        return self._bounds

    def detect_boundary(self) -> None:
        """Identify boundary edges (edges in exactly one triangle).

        Each edge keeps the orientation it has in its owning triangle, and
        `border_to_tri` records that triangle.
        """
        # key -> [count, oriented edge, first owner]
        edge_info: Dict[Tuple[int, int], List[Any]] = {}
        for tri_idx, (a, b, c) in enumerate(self.tris.tolist()):
            for u, v in ((a, b), (b, c), (c, a)):
                key = (u, v) if u < v else (v, u)
                info = edge_info.get(key)
                if info is None:
                    edge_info[key] = [1, (u, v), tri_idx]
                else:
                    info[0] += 1

        boundary = [(e, t) for k, e, t in edge_info.values() if k == 1]
        n_nonmanifold = sum(1 for k, _, _ in edge_info.values() if k > 2)
        if n_nonmanifold:
            _LOGGER.warning(
                "detect_boundary: %d non-manifold edge(s) detected (used by >2 tris).",
                n_nonmanifold,
            )

        self.borders = np.asarray([e for e, _ in boundary], dtype=np.intp).reshape(
            -1, 2
        )
        self.border_to_tri = np.asarray([t for _, t in boundary], dtype=np.intp)

        _LOGGER.debug(
            "detect_boundary: tris=%d -> boundary_edges=%d (unique undirected edges=%d).",
            self.n_tris,
            len(boundary),
            len(edge_info),
        )

    def locate(self, points: NDArray[Any], tol: Optional[float] = None) -> QueryResult:
        """Locate query points on this mesh (sweep plus nearest-edge fallback).

        Boundary edges are detected first if they were not supplied.
        """
        from .query import locate_points

        if self.borders is None:
            self.detect_boundary()
        return locate_points(
            points,
            self.uvs,
            self.tris,
            borders=self.borders,
            border_to_tri=self.border_to_tri,
            bounds=self.bounds,
            tol=tol,
        )
