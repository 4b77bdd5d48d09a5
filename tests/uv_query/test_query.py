"""Tests for the locate_points pipeline (sweep followed by border fallback)."""
from __future__ import annotations

import numpy as np
import pytest
from numpy.testing import assert_allclose

import uv_query.query as query_mod
from uv_query import locate_points


def test_locate_center_of_square(unit_square):
    uvs, tris, borders, border_to_tri = unit_square
    res = locate_points(np.array([[0.5, 0.5]]), uvs, tris, borders, border_to_tri)

    assert res.tri_idxs[0] in (0, 1)
    assert res.missing.size == 0
    assert np.all((res.barys[0] >= -1e-12) & (res.barys[0] <= 1 + 1e-12))


def test_locate_outside_point_single_border_edge(unit_square):
    uvs, tris, _, _ = unit_square
    res = locate_points(
        np.array([[-1.0, -1.0]]), uvs, tris, np.array([[0, 1]]), np.array([0])
    )
    assert res.missing.tolist() == [0]
    assert res.tri_idxs.tolist() == [0]


def test_locate_every_point_receives_a_triangle(unit_square):
    uvs, tris, borders, border_to_tri = unit_square
    rng = np.random.default_rng(11)
    q = rng.uniform(-2.0, 3.0, size=(300, 2))

    res = locate_points(q, uvs, tris, borders, border_to_tri)

    assert np.all(res.tri_idxs >= 0)
    assert np.all(res.tri_idxs < 2)
    assert not np.isnan(res.barys).any()
    assert_allclose(res.barys.sum(axis=1), 1.0)

    outside = (q < 0.0).any(axis=1) | (q > 1.0).any(axis=1)
    assert set(res.missing.tolist()) == set(np.flatnonzero(outside).tolist())


def test_locate_derives_borders_when_omitted(unit_square):
    uvs, tris, borders, border_to_tri = unit_square
    q = np.array([[3.0, 0.5], [-1.0, 0.5], [0.3, 0.1]])
    given = locate_points(q, uvs, tris, borders, border_to_tri)
    derived = locate_points(q, uvs, tris)

    np.testing.assert_array_equal(given.tri_idxs, derived.tri_idxs)
    assert derived.tri_idxs.tolist() == [0, 1, 0]


def test_locate_empty_query_skips_fallback(unit_square, monkeypatch):
    uvs, tris, _, _ = unit_square

    def _fail(*args, **kwargs):
        raise AssertionError("fallback must not run")

    monkeypatch.setattr(query_mod, "handle_missing", _fail)
    res = locate_points(np.empty((0, 2)), uvs, tris)

    assert res.tri_idxs.shape == (0,)
    assert res.missing.shape == (0,)
    assert res.barys.shape == (0, 3)


def test_locate_without_borders_and_unplaced_points_raises(unit_square):
    uvs, tris, _, _ = unit_square
    with pytest.raises(ValueError):
        locate_points(
            np.array([[-1.0, -1.0]]),
            uvs,
            tris,
            np.zeros((0, 2), dtype=int),
            np.zeros(0, dtype=int),
        )


def test_locate_rejects_half_border_data(unit_square):
    uvs, tris, borders, _ = unit_square
    with pytest.raises(ValueError):
        locate_points(np.array([[0.5, 0.5]]), uvs, tris, borders=borders)


def test_locate_rejects_bad_border_table_before_sweep(unit_square, monkeypatch):
    uvs, tris, borders, _ = unit_square

    def _fail(*args, **kwargs):
        raise AssertionError("sweep must not run")

    monkeypatch.setattr(query_mod, "sweep", _fail)
    with pytest.raises(ValueError):
        locate_points(np.array([[0.5, 0.5]]), uvs, tris, borders, np.array([0, 1]))


def test_locate_tolerance_widens_containment(single_triangle):
    uvs, tris = single_triangle
    q = np.array([[-1e-8, 0.5]])
    strict = locate_points(q, uvs, tris, tol=0.0)
    loose = locate_points(q, uvs, tris, tol=1e-6)

    assert strict.missing.tolist() == [0]
    assert loose.missing.size == 0
    assert strict.tri_idxs.tolist() == loose.tri_idxs.tolist() == [0]
