"""
Tests for the vertex sampler facade.

These tests verify:
- Reproducibility of the vertex sequence for a fixed seed
- Draw order: cell, x, y, z, then t
- Bounds and mass weighting in sampled mode
- Fixed and box techniques
- Lifecycle: no sampling before configure, failed configure leaves state intact
"""

import logging

import numpy as np
import pytest
from scipy import stats

from vertex_sampler.exceptions import (
    ConfigurationError, NotConfiguredError, VertexSamplerError,
)
from vertex_sampler.geometry import CellCatalog
from vertex_sampler.sampler import SampledVertex, VertexSampler
from vertex_sampler.seeds import SeedService, derive_seed
from vertex_sampler.settings import SamplerConfig


def _draw(sampler, n):
    return [sampler.sample_vertex() for _ in range(n)]


class TestTwoCellScenario:
    """Cells of mass 1 and 3, uniform time around T0 = 5 with SigmaT = 1, seed 42."""

    @pytest.fixture
    def sampler(self, two_cell_catalog, two_cell_config):
        s = VertexSampler(42)
        s.configure(two_cell_config, two_cell_catalog)
        return s

    def test_rerun_reproduces_sequence(self, sampler, two_cell_catalog, two_cell_config):
        again = VertexSampler(42)
        again.configure(two_cell_config, two_cell_catalog)
        assert _draw(sampler, 500) == _draw(again, 500)

    def test_weighting(self, sampler):
        vertices = _draw(sampler, 20000)
        cells = np.array([v.cell_index for v in vertices])
        frac_1 = np.mean(cells == 1)
        assert frac_1 == pytest.approx(0.75, abs=0.02)

        observed = np.bincount(cells, minlength=2)
        _, p_value = stats.chisquare(observed, [0.25 * 20000, 0.75 * 20000])
        assert p_value > 1e-4

    def test_bounds_and_times(self, sampler, two_cell_catalog):
        for v in _draw(sampler, 5000):
            assert two_cell_catalog[v.cell_index].contains(v.x, v.y, v.z)
            assert 4.0 <= v.t <= 6.0
            if v.cell_index == 0:
                assert 0.0 <= v.x <= 10.0
            else:
                assert 100.0 <= v.x <= 110.0

    def test_draw_order(self, sampler, two_cell_catalog):
        ref = np.random.Generator(np.random.PCG64(np.random.SeedSequence(42)))
        for v in _draw(sampler, 50):
            index = 0 if ref.random() < 0.25 else 1
            cell = two_cell_catalog[index]
            expected = SampledVertex(
                x=ref.uniform(cell.min_x, cell.max_x),
                y=ref.uniform(cell.min_y, cell.max_y),
                z=ref.uniform(cell.min_z, cell.max_z),
                t=ref.uniform(4.0, 6.0),
                cell_index=index,
            )
            assert v == expected

    def test_counts_vertices(self, sampler):
        _draw(sampler, 7)
        assert sampler.n_sampled == 7


class TestLifecycle:

    def test_sample_before_configure(self):
        sampler = VertexSampler(1)
        assert not sampler.is_configured
        with pytest.raises(NotConfiguredError):
            sampler.sample_vertex()

    def test_errors_share_a_base(self):
        with pytest.raises(VertexSamplerError):
            VertexSampler(1).sample_vertex()

    def test_rejected_configure_on_fresh_sampler(self, two_cell_catalog):
        sampler = VertexSampler(1)
        with pytest.raises(ConfigurationError):
            sampler.configure({"time_type": "exponential"}, two_cell_catalog)
        assert not sampler.is_configured

    def test_rejected_reconfigure_keeps_state(self, two_cell_catalog, two_cell_config):
        sampler = VertexSampler(42)
        sampler.configure(two_cell_config, two_cell_catalog)
        untouched = VertexSampler(42)
        untouched.configure(two_cell_config, two_cell_catalog)
        _draw(sampler, 10)
        _draw(untouched, 10)

        bad = dict(two_cell_config, time_type="exponential")
        with pytest.raises(ConfigurationError, match="exponential"):
            sampler.configure(bad, two_cell_catalog)

        assert sampler.config == SamplerConfig.from_dict(two_cell_config)
        assert _draw(sampler, 20) == _draw(untouched, 20)

    def test_sampled_mode_needs_catalog(self, two_cell_config):
        with pytest.raises(ConfigurationError, match="catalog"):
            VertexSampler(1).configure(two_cell_config)

    def test_zero_total_mass(self, two_cell_config):
        empty_mass = CellCatalog.from_records([
            dict(min_x=0, max_x=1, min_y=0, max_y=1, min_z=0, max_z=1, active_mass=0.0)])
        with pytest.raises(ConfigurationError):
            VertexSampler(1).configure(two_cell_config, empty_mass)

    def test_reconfigure_reads_new_catalog(self, two_cell_config):
        sampler = VertexSampler(3)
        first = CellCatalog.from_records([
            dict(min_x=0, max_x=1, min_y=0, max_y=1, min_z=0, max_z=1, active_mass=1.0),
            dict(min_x=5, max_x=6, min_y=0, max_y=1, min_z=0, max_z=1, active_mass=0.0)])
        second = CellCatalog.from_records([
            dict(min_x=0, max_x=1, min_y=0, max_y=1, min_z=0, max_z=1, active_mass=0.0),
            dict(min_x=5, max_x=6, min_y=0, max_y=1, min_z=0, max_z=1, active_mass=1.0)])

        sampler.configure(two_cell_config, first)
        assert {v.cell_index for v in _draw(sampler, 50)} == {0}
        sampler.configure(two_cell_config, second)
        assert {v.cell_index for v in _draw(sampler, 50)} == {1}
        np.testing.assert_allclose(sampler.cell_probabilities, [0.0, 1.0])

    def test_catalog_like_object(self, two_cell_catalog, two_cell_config):
        class Geometry:
            def list_cells(self):
                return two_cell_catalog.list_cells()

        sampler = VertexSampler(42)
        sampler.configure(two_cell_config, Geometry())
        assert len(sampler.catalog) == 2

    def test_config_is_a_copy(self, two_cell_catalog, two_cell_config):
        sampler = VertexSampler(1)
        sampler.configure(two_cell_config, two_cell_catalog)
        cfg = sampler.config
        cfg.t_center = 99.0
        assert sampler.config.t_center == 5.0


class TestFixedMode:

    CONFIG = {"type": "fixed", "position": [1.0, -2.0, 30.0],
              "time_type": "gaussian", "T0": 10.0, "SigmaT": 0.5}

    def test_every_axis_from_its_component(self):
        sampler = VertexSampler(11)
        sampler.configure(self.CONFIG)
        for v in _draw(sampler, 100):
            assert v.position == (1.0, -2.0, 30.0)
            assert v.cell_index is None

    def test_only_time_is_drawn(self):
        sampler = VertexSampler(11)
        sampler.configure(self.CONFIG)
        ref = np.random.Generator(np.random.PCG64(np.random.SeedSequence(11)))
        times = [v.t for v in _draw(sampler, 20)]
        assert times == [ref.normal(10.0, 0.5) for _ in range(20)]

    def test_zero_spread(self):
        sampler = VertexSampler(11)
        sampler.configure(dict(self.CONFIG, SigmaT=0.0))
        assert all(v.t == 10.0 for v in _draw(sampler, 50))

    def test_gaussian_moments(self):
        sampler = VertexSampler(12)
        sampler.configure(self.CONFIG)
        t = np.array([v.t for v in _draw(sampler, 20000)])
        assert t.mean() == pytest.approx(10.0, abs=0.03)
        assert t.std(ddof=1) == pytest.approx(0.5, rel=0.05)


class TestBoxMode:

    def test_plain_box(self):
        sampler = VertexSampler(5)
        sampler.configure({"type": "box", "min_position": [0, 0, 0],
                           "max_position": [200, 10, 10]})
        for v in _draw(sampler, 500):
            assert 0 <= v.x <= 200 and 0 <= v.y <= 10 and 0 <= v.z <= 10
            assert v.cell_index is None

    def test_check_active_rejects_gap(self, two_cell_catalog):
        sampler = VertexSampler(5)
        sampler.configure({"type": "box", "min_position": [0, 0, 0],
                           "max_position": [110, 10, 10], "check_active": True},
                          two_cell_catalog)
        vertices = _draw(sampler, 2000)
        for v in vertices:
            assert two_cell_catalog[v.cell_index].contains(v.x, v.y, v.z)
        # Equal-volume cells: uniform in the active part of the box
        share = np.mean([v.cell_index == 1 for v in vertices])
        assert share == pytest.approx(0.5, abs=0.05)

    def test_box_outside_active_volume(self, two_cell_catalog):
        with pytest.raises(ConfigurationError, match="does not overlap"):
            VertexSampler(5).configure(
                {"type": "box", "min_position": [20, 0, 0],
                 "max_position": [90, 10, 10], "check_active": True},
                two_cell_catalog)

    def test_check_active_needs_catalog(self):
        with pytest.raises(ConfigurationError, match="catalog"):
            VertexSampler(5).configure(
                {"type": "box", "min_position": [0, 0, 0],
                 "max_position": [1, 1, 1], "check_active": True})

    def test_cell_probabilities_only_in_sampled_mode(self):
        sampler = VertexSampler(5)
        sampler.configure({"type": "box", "min_position": [0, 0, 0],
                           "max_position": [1, 1, 1]})
        with pytest.raises(ConfigurationError):
            sampler.cell_probabilities


class TestSeeding:

    def test_seed_service_derives_per_name(self, two_cell_catalog, two_cell_config):
        seeds = SeedService(42)
        a = VertexSampler(seeds, name="A")
        b = VertexSampler(seeds, name="B")
        assert a.seed == derive_seed(42, "A")
        assert a.seed != b.seed
        a.configure(two_cell_config, two_cell_catalog)
        b.configure(two_cell_config, two_cell_catalog)
        assert _draw(a, 10) != _draw(b, 10)

    def test_configure_with_other_seed_rejected(self, two_cell_catalog, two_cell_config):
        sampler = VertexSampler(42)
        sampler.configure(two_cell_config, two_cell_catalog)
        reference = VertexSampler(42)
        reference.configure(two_cell_config, two_cell_catalog)

        with pytest.raises(ConfigurationError, match="new sampler"):
            sampler.configure(dict(two_cell_config, seed=7), two_cell_catalog)
        assert sampler.config.seed is None
        assert _draw(sampler, 10) == _draw(reference, 10)

    def test_configure_with_own_seed_accepted(self, two_cell_catalog, two_cell_config):
        sampler = VertexSampler(42)
        sampler.configure(dict(two_cell_config, seed=42), two_cell_catalog)
        assert sampler.config.seed == 42

    def test_failed_from_config_leaves_service_untouched(self, two_cell_catalog,
                                                         two_cell_config):
        seeds = SeedService(42)
        no_overlap = {"type": "box", "min_position": [20, 0, 0],
                      "max_position": [90, 10, 10], "check_active": True}
        with pytest.raises(ConfigurationError, match="does not overlap"):
            VertexSampler.from_config(no_overlap, two_cell_catalog, seeds, name="gen")
        assert seeds.registered == {}

        sampler = VertexSampler.from_config(two_cell_config, two_cell_catalog, seeds,
                                            name="gen")
        assert sampler.seed == derive_seed(42, "gen")
        assert seeds.registered == {"gen": sampler.seed}

    def test_zero_mass_from_config_leaves_service_untouched(self, two_cell_config):
        seeds = SeedService(42)
        massless = CellCatalog.from_records([
            dict(min_x=0, max_x=1, min_y=0, max_y=1, min_z=0, max_z=1, active_mass=0.0)])
        with pytest.raises(ConfigurationError):
            VertexSampler.from_config(two_cell_config, massless, seeds, name="gen")
        assert "gen" not in seeds

    def test_same_name_twice(self):
        seeds = SeedService(42)
        VertexSampler(seeds, name="A")
        with pytest.raises(ConfigurationError):
            VertexSampler(seeds, name="A")

    def test_config_seed_overrides(self, two_cell_catalog, two_cell_config):
        table = dict(two_cell_config, seed=42)
        sampler = VertexSampler.from_config(table, two_cell_catalog, SeedService(7),
                                            name="gen")
        reference = VertexSampler(42)
        reference.configure(two_cell_config, two_cell_catalog)
        assert sampler.seed == 42
        assert _draw(sampler, 25) == _draw(reference, 25)


class TestLogging:

    def test_configure_logs_at_info(self, caplog, two_cell_catalog, two_cell_config):
        with caplog.at_level(logging.INFO, logger="vertex_sampler"):
            VertexSampler(1, name="logged").configure(two_cell_config, two_cell_catalog)
        assert any("logged" in r.getMessage() and r.levelno == logging.INFO
                   for r in caplog.records)

    def test_vertices_log_at_debug(self, caplog, two_cell_catalog, two_cell_config):
        sampler = VertexSampler(1, name="verbose")
        sampler.configure(two_cell_config, two_cell_catalog)
        with caplog.at_level(logging.DEBUG, logger="vertex_sampler"):
            sampler.sample_vertex()
        assert any("cell #" in r.getMessage() and r.levelno == logging.DEBUG
                   for r in caplog.records)
