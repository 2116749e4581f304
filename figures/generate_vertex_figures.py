#!/usr/bin/env python3
"""
Vertex Sampler - Distribution Figures
Two-module liquid argon TPC demonstrator

Generates, for each built-in scenario (sampled, fixed, box):
  1. <scenario>_vertex_xy.png    - Vertex positions, top view, colored by TPC
  2. <scenario>_vertex_xz.png    - Vertex positions, side view, colored by TPC
  3. <scenario>_vertex_time.png  - Vertex time histogram with the configured law
  4. <scenario>_cell_freq.png    - Sampled vs. active-mass fraction per TPC
                                   (sampled scenario only)

Usage:
    python figures/generate_vertex_figures.py [--quick]
"""

import argparse
import os
import sys

# Ensure project root is on path
_project_root = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
if _project_root not in sys.path:
    sys.path.insert(0, _project_root)

import config
from utils.plotting import (
    create_cell_frequency_plot, create_time_histogram, create_vertex_projection,
)
from vertex_sampler.analysis import validate_sampler
from vertex_sampler.sampler import VertexSampler
from vertex_sampler.seeds import SeedService


def plot_report(report, catalog, prefix, output_dir=None):
    """Draw the figures of one validation run.

    Args:
        report: ValidationReport produced with keep_batch=True
        catalog: CellCatalog the sampler was configured with
        prefix: Filename prefix
        output_dir: Target directory (default figures/)

    Returns:
        list of saved figure paths
    """
    batch = report.batch
    if batch is None:
        raise ValueError("Validation report carries no vertex batch; "
                         "run validate_sampler(..., keep_batch=True)")

    label = f"{report.sampler_name} ({report.vertex_mode.value})"
    paths = [
        create_vertex_projection(batch.positions, batch.cell, catalog, ('x', 'y'),
                                 f"{label} - top view", f"{prefix}_vertex_xy",
                                 output_dir=output_dir),
        create_vertex_projection(batch.positions, batch.cell, catalog, ('x', 'z'),
                                 f"{label} - side view", f"{prefix}_vertex_xz",
                                 output_dir=output_dir),
        create_time_histogram(batch.t, report.time_mode, report.t_center,
                              report.t_spread, f"{label} - vertex time",
                              f"{prefix}_vertex_time", output_dir=output_dir),
    ]
    if report.cell_test is not None:
        paths.append(create_cell_frequency_plot(
            report.cell_test.observed_fraction,
            report.cell_test.expected_fraction,
            f"{label} - vertices per TPC", f"{prefix}_cell_freq",
            output_dir=output_dir,
        ))
    return paths


def generate_all(n_vertices=config.N_VERTICES, output_dir=None):
    """Sample every built-in scenario and draw its figures."""
    catalog = config.build_demo_catalog()
    seeds = SeedService(config.MASTER_SEED)
    paths = []

    scenarios = sorted(config.VERTEX_TABLES.items())
    for i, (scenario, table) in enumerate(scenarios, start=1):
        print(f"[{i}/{len(scenarios)}] Scenario '{scenario}' ...")
        sampler = VertexSampler.from_config(
            table, catalog, seeds, name=f"{config.SAMPLER_NAME}_{scenario}")
        report = validate_sampler(sampler, n_vertices=n_vertices, keep_batch=True)
        paths += plot_report(report, catalog, prefix=scenario, output_dir=output_dir)

    return paths


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description='Vertex distribution figures')
    parser.add_argument('--quick', action='store_true',
                        help=f'Use {config.N_VERTICES_QUICK} vertices per scenario')
    parser.add_argument('--output', type=str, default=None,
                        help='Output directory (default: figures/)')
    args = parser.parse_args()

    n = config.N_VERTICES_QUICK if args.quick else config.N_VERTICES
    saved = generate_all(n_vertices=n, output_dir=args.output)
    print(f"\nGenerated {len(saved)} figures.")
