import numpy as np
import pytest

from vertex_sampler.analysis import (
    NO_CELL, VertexBatch, cell_frequency_test, count_bound_violations,
    sample_vertices, time_law_test, time_statistics, validate_sampler,
)
from vertex_sampler.constants import TimeMode, VertexMode
from vertex_sampler.sampler import VertexSampler


def _batch(t, cell=None, x=None):
    t = np.asarray(t, dtype=float)
    n = len(t)
    return VertexBatch(
        x=np.zeros(n) if x is None else np.asarray(x, dtype=float),
        y=np.zeros(n), z=np.zeros(n), t=t,
        cell=np.full(n, NO_CELL) if cell is None else np.asarray(cell),
    )


def test_sample_vertices_shapes(two_cell_catalog, two_cell_config):
    sampler = VertexSampler(42)
    sampler.configure(two_cell_config, two_cell_catalog)
    batch = sample_vertices(sampler, 100)
    assert batch.n == 100
    assert batch.positions.shape == (100, 3)
    assert set(np.unique(batch.cell)) <= {0, 1}


def test_cell_frequency_exact_match():
    batch = _batch(np.zeros(4), cell=[0, 1, 1, 1])
    result = cell_frequency_test(batch, np.array([0.25, 0.75]))
    assert result.statistic == pytest.approx(0.0)
    assert result.p_value == pytest.approx(1.0)
    np.testing.assert_allclose(result.observed_fraction, [0.25, 0.75])


def test_cell_frequency_hit_in_massless_cell():
    batch = _batch(np.zeros(3), cell=[0, 1, 2])
    result = cell_frequency_test(batch, np.array([0.5, 0.5, 0.0]))
    assert result.p_value == 0.0


def test_cell_frequency_detects_wrong_weights():
    batch = _batch(np.zeros(1000), cell=[0] * 500 + [1] * 500)
    result = cell_frequency_test(batch, np.array([0.25, 0.75]))
    assert result.p_value < 1e-6


def test_bound_violations(two_cell_catalog):
    batch = _batch([0.0, 0.0], cell=[0, 1], x=[5.0, 5.0])
    batch.y[:] = 5.0
    batch.z[:] = 5.0
    assert count_bound_violations(batch, two_cell_catalog) == 1


def test_time_statistics():
    stats = time_statistics(_batch([1.0, 2.0, 3.0]))
    assert stats["mean"] == pytest.approx(2.0)
    assert stats["std"] == pytest.approx(1.0)
    assert (stats["min"], stats["max"]) == (1.0, 3.0)


def test_time_law_point_mass():
    assert time_law_test(_batch([2.0] * 10), TimeMode.UNIFORM, 2.0, 0.0) == 1.0
    assert time_law_test(_batch([2.0, 2.5]), TimeMode.GAUSSIAN, 2.0, 0.0) == 0.0


def test_time_law_rejects_wrong_law():
    rng = np.random.default_rng(3)
    batch = _batch(rng.uniform(-1.0, 1.0, 20000))
    assert time_law_test(batch, TimeMode.UNIFORM, 0.0, 1.0) > 1e-4
    assert time_law_test(batch, TimeMode.GAUSSIAN, 0.0, 1.0) < 1e-6


def test_validate_sampled(two_cell_catalog, two_cell_config):
    sampler = VertexSampler(42, name="two_cell")
    sampler.configure(two_cell_config, two_cell_catalog)
    report = validate_sampler(sampler, n_vertices=20000, keep_batch=True)

    assert report.vertex_mode is VertexMode.SAMPLED
    assert report.n_vertices == 20000
    assert report.bound_violations == 0
    assert report.cell_test is not None
    assert report.batch is not None and report.batch.n == 20000
    assert report.passed(alpha=1e-6)
    assert 4.0 <= report.time_stats["min"] and report.time_stats["max"] <= 6.0

    text = report.summary()
    assert "two_cell" in text and "PASS" in text


def test_validate_fixed():
    sampler = VertexSampler(8)
    sampler.configure({"type": "fixed", "position": [1, 2, 3], "T0": 4.0})
    report = validate_sampler(sampler, n_vertices=200)
    assert report.fixed_mismatches == 0
    assert report.cell_test is None
    assert report.time_p_value == 1.0
    assert report.batch is None
    assert report.passed()
