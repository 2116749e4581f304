import json

import numpy as np
import pytest

from vertex_sampler.exceptions import ConfigurationError
from vertex_sampler.geometry import Cell, CellCatalog, build_cell_grid, load_catalog


def _cell(index=0, lo=(0.0, 0.0, 0.0), hi=(1.0, 1.0, 1.0), mass=1.0):
    return Cell(index=index, min_x=lo[0], max_x=hi[0], min_y=lo[1], max_y=hi[1],
                min_z=lo[2], max_z=hi[2], active_mass=mass)


class TestCell:

    def test_volume_and_center(self):
        c = _cell(lo=(0.0, -1.0, 2.0), hi=(2.0, 1.0, 5.0))
        assert c.volume == pytest.approx(12.0)
        assert c.center == (1.0, 0.0, 3.5)

    def test_contains_includes_boundaries(self):
        c = _cell()
        assert c.contains(0.0, 0.0, 0.0)
        assert c.contains(1.0, 1.0, 1.0)
        assert not c.contains(1.0001, 0.5, 0.5)

    def test_min_above_max_rejected(self):
        with pytest.raises(ConfigurationError, match="min_y"):
            _cell(lo=(0.0, 2.0, 0.0), hi=(1.0, 1.0, 1.0))

    def test_negative_mass_rejected(self):
        with pytest.raises(ConfigurationError, match="active_mass"):
            _cell(mass=-0.5)

    def test_nan_bound_rejected(self):
        with pytest.raises(ConfigurationError):
            _cell(lo=(float("nan"), 0.0, 0.0))

    def test_extent_overflow_rejected(self):
        with pytest.raises(ConfigurationError, match="too large"):
            _cell(lo=(-1e308, 0.0, 0.0), hi=(1e308, 1.0, 1.0))

    def test_degenerate_extent_allowed(self):
        c = _cell(lo=(3.0, 0.0, 0.0), hi=(3.0, 1.0, 1.0))
        assert c.volume == 0.0
        assert c.contains(3.0, 0.5, 0.5)


class TestCellCatalog:

    def test_cells_must_be_in_index_order(self):
        with pytest.raises(ConfigurationError, match="index order"):
            CellCatalog([_cell(index=1)])

    def test_from_records_missing_key(self):
        with pytest.raises(ConfigurationError, match="active_mass"):
            CellCatalog.from_records([dict(min_x=0, max_x=1, min_y=0, max_y=1,
                                           min_z=0, max_z=1)])

    def test_records_survive_export(self, two_cell_catalog):
        rebuilt = CellCatalog.from_records(two_cell_catalog.to_records())
        assert rebuilt.list_cells() == two_cell_catalog.list_cells()

    def test_masses_and_totals(self, two_cell_catalog):
        np.testing.assert_array_equal(two_cell_catalog.masses, [1.0, 3.0])
        assert two_cell_catalog.total_active_mass == 4.0
        assert two_cell_catalog.total_volume == pytest.approx(2000.0)

    def test_bounding_box(self, two_cell_catalog):
        lo, hi = two_cell_catalog.bounding_box()
        np.testing.assert_array_equal(lo, [0.0, 0.0, 0.0])
        np.testing.assert_array_equal(hi, [110.0, 10.0, 10.0])

    def test_find_cell(self, two_cell_catalog):
        assert two_cell_catalog.find_cell(5.0, 5.0, 5.0) == 0
        assert two_cell_catalog.find_cell(105.0, 5.0, 5.0) == 1
        assert two_cell_catalog.find_cell(50.0, 5.0, 5.0) is None
        assert not two_cell_catalog.contains(50.0, 5.0, 5.0)

    def test_overlap_fraction(self):
        catalog = CellCatalog([_cell(0), _cell(1, lo=(2.0, 0.0, 0.0), hi=(3.0, 1.0, 1.0))])
        assert catalog.overlap_fraction((0, 0, 0), (4, 1, 1)) == pytest.approx(0.5)
        assert catalog.overlap_fraction((10, 10, 10), (11, 11, 11)) == 0.0

    def test_overlap_fraction_degenerate_axis(self):
        catalog = CellCatalog([_cell(0)])
        assert catalog.overlap_fraction((0.5, 0, 0), (0.5, 1, 1)) == pytest.approx(1.0)
        assert catalog.overlap_fraction((1.5, 0, 0), (1.5, 1, 1)) == 0.0

    def test_summary_lists_every_cell(self, two_cell_catalog):
        text = two_cell_catalog.summary()
        assert "#0" in text and "#1" in text
        assert "75.0%" in text


class TestBuilders:

    def test_grid_ordering_and_mass(self):
        catalog = build_cell_grid(origin=(0, 0, 0), cell_size=(2, 3, 4),
                                  shape=(2, 1, 3), density=0.5, gap=1.0)
        assert len(catalog) == 6
        # z varies fastest
        assert catalog[1].min_z == pytest.approx(5.0)
        assert catalog[1].min_x == 0.0
        assert catalog[3].min_x == pytest.approx(3.0)
        for cell in catalog:
            assert cell.active_mass == pytest.approx(cell.volume * 0.5)

    def test_grid_rejects_bad_shape(self):
        with pytest.raises(ConfigurationError):
            build_cell_grid((0, 0, 0), (1, 1, 1), (0, 1, 1), density=1.0)

    def test_load_catalog_object_and_list(self, tmp_path, two_cell_catalog):
        records = two_cell_catalog.to_records()
        as_object = tmp_path / "cells.json"
        as_object.write_text(json.dumps({"cells": records}))
        as_list = tmp_path / "cells_list.json"
        as_list.write_text(json.dumps(records))

        assert load_catalog(str(as_object)).list_cells() == two_cell_catalog.list_cells()
        assert len(load_catalog(str(as_list))) == 2

    def test_load_catalog_rejects_other_documents(self, tmp_path):
        path = tmp_path / "bad.json"
        path.write_text(json.dumps({"tpcs": []}))
        with pytest.raises(ConfigurationError):
            load_catalog(str(path))
