#!/usr/bin/env python3
"""
Active-Volume Vertex Sampler - Master Runner
============================================

Exercises every vertex sampling technique on the two-module liquid argon
TPC demonstrator and collects the validation results into one summary.

Run sequence:
  [1/4] Foundation  - Detector catalog and derived parameters
  [2/4] Sampled     - Mass-weighted TPC selection, uniform time window
  [3/4] Fixed       - Fixed vertex position, gaussian time spread
  [4/4] Box         - Uniform box restricted to the active volume

Usage:
    python main.py [--quick] [--figures]
"""

import argparse
import os
import sys
import time
import traceback
from datetime import datetime

import numpy as np

# Ensure project root is on path
PROJECT_ROOT = os.path.dirname(os.path.abspath(__file__))
sys.path.insert(0, PROJECT_ROOT)

import config
from config import build_demo_catalog, compute_derived, print_summary
from utils.logging import get_logger
from utils.tables import (
    cell_table_rows, format_value, markdown_table, print_param_table,
    results_to_markdown,
)
from vertex_sampler.analysis import validate_sampler
from vertex_sampler.sampler import VertexSampler
from vertex_sampler.seeds import SeedService


# =============================================================================
# Banner
# =============================================================================

BANNER = r"""
================================================================================

     Active-Volume Vertex Sampler
     Validation Runs

     Detector:   Two-module liquid argon TPC demonstrator (4 TPCs)
     Techniques: sampled / fixed / box
     Engine:     PCG64, SeedSequence-seeded per sampler instance

================================================================================
"""


# =============================================================================
# Helper
# =============================================================================

def step_header(step, total, title):
    """Print a progress step header."""
    tag = f"[{step}/{total}]"
    print(f"\n{'=' * 80}")
    print(f"  {tag} {title}")
    print(f"{'=' * 80}")


# =============================================================================
# Step runners - each returns a results dict
# =============================================================================

def run_foundation():
    """[1/4] Foundation: detector catalog and derived parameters."""
    step_header(1, 4, "FOUNDATION - Detector Catalog & Derived Parameters")

    catalog = build_demo_catalog()
    d = compute_derived(catalog)
    print_summary(d)

    results = {
        "TPCs": (d.n_cells, ""),
        "Active volume": (d.total_active_volume / 1e6, "m3"),
        "Active mass": (d.total_active_mass, "kg"),
        "Envelope fill fraction": (d.active_fraction_of_envelope, ""),
    }
    for i, frac in enumerate(d.cell_fractions):
        results[f"TPC {i} expected share"] = (float(frac), "")

    return catalog, d, results


def run_scenario(step, scenario, catalog, seeds, n_vertices, figures=False):
    """Configure, sample and validate one built-in scenario."""
    table = config.VERTEX_TABLES[scenario]
    step_header(step, 4, f"{scenario.upper()} - {table['type']} vertex, "
                         f"{table['time_type']} time")

    sampler = VertexSampler.from_config(
        table, catalog, seeds, name=f"{config.SAMPLER_NAME}_{scenario}")

    t_start = time.time()
    report = validate_sampler(sampler, n_vertices=n_vertices, keep_batch=figures)
    t_elapsed = time.time() - t_start
    report.print_summary()

    ts = report.time_stats
    params = [
        ("Seed", sampler.seed, ""),
        ("Vertices", report.n_vertices, ""),
        ("Mean time", ts['mean'], "s"),
        ("Time std", ts['std'], "s"),
        ("Time law p-value", report.time_p_value, ""),
        ("Out-of-cell vertices", report.bound_violations, ""),
        ("Sampling rate", report.n_vertices / max(t_elapsed, 1e-9), "vertices/s"),
    ]
    if report.cell_test is not None:
        params.insert(5, ("Cell chi2 p-value", report.cell_test.p_value, ""))
    print_param_table(f"{scenario.capitalize()} scenario", params)

    if figures:
        from figures.generate_vertex_figures import plot_report
        plot_report(report, catalog, prefix=scenario)

    results = {name: (value, unit) for name, value, unit in params}
    passed = report.passed(config.SIGNIFICANCE)
    results["Result"] = ("PASS" if passed else "FAIL", "")
    return report, results


# =============================================================================
# Summary
# =============================================================================

def print_run_summary(all_results):
    """Print the collected results of every step."""
    width = 80
    print("\n" + "=" * width)
    print("  VERTEX SAMPLER VALIDATION SUMMARY")
    print("=" * width)

    for section, results in all_results.items():
        print(f"\n  {section}")
        print("  " + "-" * (width - 4))
        if results is None:
            print("    *** FAILED - see console output ***")
            continue
        for key, (value, unit) in results.items():
            print(f"    {key:<40s}  {format_value(value):>14s}  {unit}")

    print("\n" + "=" * width)


def save_results(all_results, reports, output_dir):
    """Save results to results/ directory."""
    os.makedirs(output_dir, exist_ok=True)

    md_results = {}
    for section, results in all_results.items():
        if results is None:
            md_results[section] = "Run FAILED - see console output for errors."
        else:
            md_results[section] = results

    for scenario, report in reports.items():
        if report.cell_test is None:
            continue
        md_results[f"{scenario.capitalize()} - vertices per TPC"] = markdown_table(
            "Observed vs. expected cell fractions",
            cell_table_rows(report.cell_test.expected_fraction,
                            report.cell_test.observed_fraction),
            headers=['TPC', 'Expected', 'Observed', 'Difference'],
        )

    md_path = os.path.join(output_dir, "vertex_summary.md")
    results_to_markdown(md_results, md_path)
    return md_path


# =============================================================================
# Main
# =============================================================================

def main(argv=None):
    """Run every validation scenario."""
    parser = argparse.ArgumentParser(description='Vertex sampler validation runs')
    parser.add_argument('--quick', action='store_true',
                        help=f'Use {config.N_VERTICES_QUICK} vertices per scenario')
    parser.add_argument('--figures', action='store_true',
                        help='Save vertex distribution figures')
    parser.add_argument('--no-save', action='store_true',
                        help='Do not write results/vertex_summary.md')
    args = parser.parse_args(argv)

    get_logger("vertex_sampler")

    print(BANNER)
    print(f"  Run started: {datetime.now().strftime('%Y-%m-%d %H:%M:%S')}")
    print(f"  Python {sys.version.split()[0]}, NumPy {np.__version__}")
    print()

    n_vertices = config.N_VERTICES_QUICK if args.quick else config.N_VERTICES
    t_start = time.time()

    all_results = {}
    reports = {}
    errors = []

    # ---- [1/4] Foundation ----
    try:
        catalog, _, all_results["1. Foundation"] = run_foundation()
    except Exception as e:
        print(f"\n  *** FOUNDATION FAILED: {e} ***")
        traceback.print_exc()
        print("\n  FATAL: Cannot proceed without the detector catalog.")
        return 1

    # ---- [2/4] .. [4/4] Scenarios ----
    seeds = SeedService(config.MASTER_SEED)
    for step, scenario in enumerate(("sampled", "fixed", "box"), start=2):
        section = f"{step}. {scenario.capitalize()}"
        try:
            report, all_results[section] = run_scenario(
                step, scenario, catalog, seeds, n_vertices, figures=args.figures)
            reports[scenario] = report
        except Exception as e:
            print(f"\n  *** {scenario.upper()} FAILED: {e} ***")
            traceback.print_exc()
            errors.append((scenario, str(e)))
            all_results[section] = None

    t_elapsed = time.time() - t_start
    print_run_summary(all_results)

    if not args.no_save:
        save_results(all_results, reports, os.path.join(PROJECT_ROOT, "results"))

    n_pass = sum(1 for r in reports.values() if r.passed(config.SIGNIFICANCE))
    print(f"\n{'=' * 80}")
    print(f"  RUNS COMPLETE")
    print(f"  Scenarios passed: {n_pass}/3")
    print(f"  Elapsed time:     {t_elapsed:.1f} s")
    if errors:
        print(f"\n  ERRORS ({len(errors)}):")
        for scenario, err in errors:
            print(f"    - {scenario}: {err}")
    print(f"{'=' * 80}\n")

    return 0 if n_pass == 3 else 1


if __name__ == '__main__':
    sys.exit(main())
