import numpy as np
import pytest

import uv_query as uvq


@pytest.mark.gpu
def test_locate_cpu_vs_gpu_identical(unit_square) -> None:
    """Sweep and fallback must agree across backends."""
    uvs, tris, borders, border_to_tri = unit_square
    q = np.array([[0.75, 0.25], [0.25, 0.75], [3.0, 0.5], [-1.0, -1.0]])

    with uvq.use("cpu", strict=True):
        res_cpu = uvq.locate_points(q, uvs, tris, borders, border_to_tri)

    with uvq.use("gpu", strict=True):
        res_gpu = uvq.locate_points(q, uvs, tris, borders, border_to_tri)

    np.testing.assert_array_equal(res_gpu.tri_idxs, res_cpu.tri_idxs)
    np.testing.assert_array_equal(res_gpu.missing, res_cpu.missing)
    np.testing.assert_allclose(res_gpu.barys, res_cpu.barys, rtol=1e-12, atol=1e-12)


@pytest.mark.gpu
def test_bounds_cpu_vs_gpu_identical(uvq_gpu, unit_square) -> None:
    uvs, tris, _, _ = unit_square
    b = uvq_gpu.compute_bounds(uvs, tris)
    assert isinstance(b.xmin, np.ndarray)
    np.testing.assert_allclose(b.xmax, [1.0, 1.0])


def test_locate_on_cpu_fixture(uvq_cpu, unit_square) -> None:
    uvs, tris, borders, border_to_tri = unit_square
    assert uvq_cpu.backend_name() == "numpy"
    res = uvq_cpu.locate_points(np.array([[0.9, 0.05]]), uvs, tris, borders, border_to_tri)
    assert res.tri_idxs.tolist() == [0]
