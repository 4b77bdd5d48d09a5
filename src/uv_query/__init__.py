"""The uv_query package locates query points on a 2D triangulated UV mesh.

This package offers:
  - A sweep-line locator that finds the triangle containing each query point.
  - A nearest-border-edge fallback for points that fall in gaps or outside.
  - Barycentric coordinates of every located point.

Submodules:
  - bounds: Per-triangle bounding boxes.
  - config: Array backend (NumPy/CuPy), logging level and tolerance.
  - fallback: Nearest border edge search.
  - geometry: Point-in-triangle, barycentric and segment projection.
  - mesh: UVMesh container, input validation and boundary detection.
  - query: locate_points pipeline.
  - sorting: Stable argsort.
  - sweep: Sweep-line locator.

Classes:
  BorderEdges, QueryResult, SweepResult, TriangleBounds, UVMesh
"""

from .config import (
    config,
    configure,
    use,
    is_gpu,
    backend_name,
    tolerance,
    to_cpu,
    to_device,
    set_log_level,
)

from uv_query.bounds import TriangleBounds, compute_bounds
from uv_query.fallback import BorderEdges, closest_edge, handle_missing
from uv_query.geometry import barycentric, closest_point_on_segment, point_in_triangle
from uv_query.mesh import UVMesh
from uv_query.query import QueryResult, locate_points
from uv_query.sorting import argsort
from uv_query.sweep import UNSET, SweepResult, sweep

__all__ = [
    # Core
    "locate_points",
    "sweep",
    "handle_missing",
    "closest_edge",
    "QueryResult",
    "SweepResult",
    "UNSET",
    "UVMesh",
    "BorderEdges",
    "TriangleBounds",
    "compute_bounds",
    "argsort",
    # Geometry
    "point_in_triangle",
    "barycentric",
    "closest_point_on_segment",
    # Configuration and backend
    "config",
    "configure",
    "use",
    "is_gpu",
    "backend_name",
    "tolerance",
    "to_cpu",
    "to_device",
    "set_log_level",
]
