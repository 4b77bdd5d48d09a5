from __future__ import annotations
import pytest

import numpy as np
from uv_query.mesh import UVMesh


def _gpu_available() -> bool:
    try:
        import cupy

        return cupy.cuda.runtime.getDeviceCount() > 0
    except Exception:
        return False


def pytest_collection_modifyitems(
    config: pytest.Config, items: list[pytest.Item]
) -> None:
    """Auto-skip tests marked 'gpu' when no CUDA device is present."""
    if _gpu_available():
        return
    skip_marker = pytest.mark.skip(reason="GPU not available for CuPy.")
    for item in items:
        if "gpu" in item.keywords:
            item.add_marker(skip_marker)


@pytest.fixture()
def uvq_cpu():
    import uv_query as uvq

    with uvq.use("cpu", strict=False):
        yield uvq


@pytest.fixture()
def uvq_gpu():
    if not _gpu_available():
        pytest.skip("No CUDA device available for CuPy.")
    import uv_query as uvq

    with uvq.use("gpu", strict=True):
        yield uvq


@pytest.fixture
def unit_square():
    """
    Unit square split into two triangles along the diagonal (0-2):
      v3 (0,1) ---- v2 (1,1)
        |  \\           |
        |    \\         |
        |      \\       |
      v0 (0,0) ---- v1 (1,0)
    Triangles (flat): [0,1,2, 0,2,3]
    Boundary edges: (0,1),(1,2) owned by tri 0; (2,3),(3,0) owned by tri 1
    """
    uvs = np.array(
        [
            [0.0, 0.0],  # v0
            [1.0, 0.0],  # v1
            [1.0, 1.0],  # v2
            [0.0, 1.0],  # v3
        ],
        dtype=float,
    )
    tris = np.array([0, 1, 2, 0, 2, 3], dtype=int)
    borders = np.array([[0, 1], [1, 2], [2, 3], [3, 0]], dtype=int)
    border_to_tri = np.array([0, 0, 1, 1], dtype=int)
    return uvs, tris, borders, border_to_tri


@pytest.fixture
def grid_mesh():
    """
    3x3 grid of vertices on [0, 2]^2, each cell split along its diagonal:
    8 triangles. Returned as a UVMesh without border data.
    """
    xs, ys = np.meshgrid(np.arange(3.0), np.arange(3.0))
    uvs = np.column_stack([xs.ravel(), ys.ravel()])
    tris = []
    for j in range(2):
        for i in range(2):
            v0 = 3 * j + i
            v1 = v0 + 1
            v2 = v0 + 4
            v3 = v0 + 3
            tris.append([v0, v1, v2])
            tris.append([v0, v2, v3])
    return UVMesh(uvs, np.asarray(tris, dtype=int))


@pytest.fixture
def single_triangle():
    """One triangle (0,0), (1,0), (0,1)."""
    uvs = np.array([[0.0, 0.0], [1.0, 0.0], [0.0, 1.0]], dtype=float)
    tris = np.array([0, 1, 2], dtype=int)
    return uvs, tris
