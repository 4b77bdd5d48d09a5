"""Unit tests for the UVMesh container and boundary detection."""
from __future__ import annotations

import logging

import numpy as np
import pytest

from uv_query.mesh import UVMesh, as_borders


def test_mesh_init_flat_and_2d(unit_square):
    uvs, tris, _, _ = unit_square
    m_flat = UVMesh(uvs, tris)
    m_2d = UVMesh(uvs, tris.reshape(-1, 3))

    assert m_flat.n_uvs == 4
    assert m_flat.n_tris == 2
    np.testing.assert_array_equal(m_flat.tris, m_2d.tris)
    assert m_flat.borders is None
    assert m_flat.border_to_tri is None


def test_mesh_bounds_cached(unit_square):
    uvs, tris, _, _ = unit_square
    m = UVMesh(uvs, tris)
    assert m.bounds is m.bounds
    assert m.bounds.n_tris == 2


def test_detect_boundary_unit_square(unit_square):
    uvs, tris, _, _ = unit_square
    m = UVMesh(uvs, tris)
    m.detect_boundary()

    boundary = {tuple(sorted(e)) for e in m.borders.tolist()}
    assert boundary == {(0, 1), (1, 2), (2, 3), (0, 3)}
    # Interior diagonal is not a border edge
    assert (0, 2) not in boundary

    owners = dict(zip(map(tuple, m.borders.tolist()), m.border_to_tri.tolist()))
    assert owners == {(0, 1): 0, (1, 2): 0, (2, 3): 1, (3, 0): 1}


def test_detect_boundary_grid(grid_mesh):
    grid_mesh.detect_boundary()
    borders = grid_mesh.borders
    owners = grid_mesh.border_to_tri

    assert borders.shape == (8, 2)
    assert owners.shape == (8,)
    for (a, b), t in zip(borders.tolist(), owners.tolist()):
        assert a in grid_mesh.tris[t] and b in grid_mesh.tris[t]
        # every border vertex lies on the outline of [0, 2]^2
        for v in (a, b):
            x, y = grid_mesh.uvs[v]
            assert x in (0.0, 2.0) or y in (0.0, 2.0)


def test_detect_boundary_warns_on_nonmanifold(caplog):
    uvs = np.array([[0.0, 0.0], [1.0, 0.0], [0.5, 1.0], [0.5, -1.0], [0.5, 2.0]])
    tris = np.array([[0, 1, 2], [0, 1, 3], [1, 0, 4]])
    m = UVMesh(uvs, tris)
    with caplog.at_level(logging.WARNING, logger="uv_query.mesh"):
        m.detect_boundary()
    assert "non-manifold" in caplog.text


def test_mesh_border_args_must_pair(unit_square):
    uvs, tris, borders, _ = unit_square
    with pytest.raises(ValueError):
        UVMesh(uvs, tris, borders=borders)


def test_mesh_rejects_bad_inputs(unit_square):
    uvs, tris, _, _ = unit_square
    with pytest.raises(ValueError):
        UVMesh(uvs[:, :1], tris)
    with pytest.raises(ValueError):
        UVMesh(uvs, np.array([[0, 1, 2, 3]]))
    with pytest.raises(ValueError):
        UVMesh(np.array([[0.0, 0.0], [np.inf, 0.0], [0.0, 1.0]]), np.array([0, 1, 2]))


def test_as_borders_validation():
    with pytest.raises(ValueError):
        as_borders([[0, 1]], [0, 0], n_uvs=2, n_tris=1)
    with pytest.raises(ValueError):
        as_borders([[0, 5]], [0], n_uvs=2, n_tris=1)
    with pytest.raises(ValueError):
        as_borders([[0, 1, 1]], [0], n_uvs=2, n_tris=1)
    edges, owners = as_borders([], [], n_uvs=2, n_tris=1)
    assert edges.shape == (0, 2)
    assert owners.shape == (0,)


def test_mesh_locate_detects_boundary(unit_square):
    uvs, tris, _, _ = unit_square
    m = UVMesh(uvs, tris)
    res = m.locate(np.array([[0.75, 0.25], [-1.0, 0.5]]))

    assert m.borders is not None
    assert res.tri_idxs.tolist() == [0, 1]
    assert res.missing.tolist() == [1]
