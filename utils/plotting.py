"""
Vertex Sampler Reports - Plotting Utilities
Provides consistent figure formatting for the vertex distribution figures.
"""
import matplotlib
matplotlib.use('Agg')  # Non-interactive backend
import matplotlib.pyplot as plt
from matplotlib.patches import Rectangle
import numpy as np
from scipy import stats
import os

plt.rcParams['font.size'] = 11
plt.rcParams['figure.figsize'] = (10, 7)
plt.rcParams['figure.dpi'] = 150
plt.rcParams['axes.grid'] = True
plt.rcParams['grid.alpha'] = 0.3
plt.rcParams['axes.labelsize'] = 12
plt.rcParams['axes.titlesize'] = 13
plt.rcParams['legend.fontsize'] = 10
plt.rcParams['lines.linewidth'] = 1.5

FIGURES_DIR = os.path.join(os.path.dirname(os.path.dirname(__file__)), 'figures')

# Color palette (colorblind-safe)
COLORS = {
    'primary': '#2196F3',
    'secondary': '#FF9800',
    'danger': '#F44336',
    'success': '#4CAF50',
    'info': '#00BCD4',
    'dark': '#37474F',
    'inactive': '#9E9E9E',
}

# One color per cell index, cycled
CELL_COLORS = ['#2196F3', '#FF9800', '#4CAF50', '#9C27B0',
               '#00BCD4', '#E91E63', '#795548', '#607D8B']

_AXIS_INDEX = {'x': 0, 'y': 1, 'z': 2}


def save_figure(fig, name, tight=True, output_dir=None):
    """Save figure to the figures directory.

    Args:
        fig: matplotlib Figure object
        name: Base filename (without extension)
        tight: Apply tight_layout before saving (default True)
        output_dir: Target directory (default FIGURES_DIR)

    Returns:
        str: Absolute path to saved file
    """
    output_dir = output_dir or FIGURES_DIR
    os.makedirs(output_dir, exist_ok=True)
    path = os.path.abspath(os.path.join(output_dir, f'{name}.png'))
    if tight:
        fig.tight_layout()
    fig.savefig(path, dpi=150, bbox_inches='tight')
    plt.close(fig)
    print(f"  Figure saved: {path}")
    return path


def create_vertex_projection(positions, cells, catalog, axes, title, filename,
                             output_dir=None, max_points=20000):
    """Scatter of vertex positions projected on two axes, colored by cell.

    Cell outlines from the catalog are drawn underneath. Vertices with no
    cell (cell index < 0) are drawn in grey.

    Args:
        positions: (n, 3) array of vertex positions
        cells: (n,) array of cell indices (negative for none)
        catalog: CellCatalog or None
        axes: Pair of axis names, e.g. ('x', 'y')
        title: Plot title string
        filename: Base filename for saving (without extension)
        output_dir: Target directory (default FIGURES_DIR)
        max_points: Plot at most this many vertices

    Returns:
        str: Path of the saved figure
    """
    a, b = (_AXIS_INDEX[axes[0]], _AXIS_INDEX[axes[1]])
    positions = np.asarray(positions)[:max_points]
    cells = np.asarray(cells)[:max_points]

    fig, ax = plt.subplots(figsize=(8, 7))

    if catalog is not None:
        for cell in catalog:
            lo, hi = zip(*cell.bounds)
            color = CELL_COLORS[cell.index % len(CELL_COLORS)]
            ax.add_patch(Rectangle((lo[a], lo[b]), hi[a] - lo[a], hi[b] - lo[b],
                                   fill=False, edgecolor=color, linewidth=1.5))
            ax.text(lo[a] + 0.02 * (hi[a] - lo[a]), hi[b] - 0.06 * (hi[b] - lo[b]),
                    f"#{cell.index}", color=color, fontsize=9, weight='bold')

    outside = cells < 0
    if np.any(outside):
        ax.scatter(positions[outside, a], positions[outside, b], s=2,
                   color=COLORS['inactive'], alpha=0.5, label='no cell')
    for index in np.unique(cells[~outside]):
        sel = cells == index
        ax.scatter(positions[sel, a], positions[sel, b], s=2, alpha=0.5,
                   color=CELL_COLORS[int(index) % len(CELL_COLORS)],
                   label=f'cell #{int(index)}')

    ax.set_xlabel(f'{axes[0]} [cm]')
    ax.set_ylabel(f'{axes[1]} [cm]')
    ax.set_title(title)
    ax.set_aspect('equal', adjustable='datalim')
    ax.autoscale_view()
    if len(positions) > 0:
        ax.legend(loc='upper right', markerscale=4)
    return save_figure(fig, filename, output_dir=output_dir)


def create_time_histogram(times, mode, t_center, t_spread, title, filename,
                          output_dir=None, bins=60):
    """Histogram of vertex times with the configured density overlaid.

    Args:
        times: Array of vertex times
        mode: TimeMode of the sampler
        t_center: T0
        t_spread: SigmaT (semi-interval or standard deviation)
        title: Plot title string
        filename: Base filename for saving (without extension)
        output_dir: Target directory (default FIGURES_DIR)
        bins: Number of histogram bins

    Returns:
        str: Path of the saved figure
    """
    times = np.asarray(times)
    fig, ax = plt.subplots()

    if t_spread > 0:
        ax.hist(times, bins=bins, density=True, color=COLORS['primary'],
                alpha=0.6, label='sampled')
        if mode.value == 'gaussian':
            dist = stats.norm(loc=t_center, scale=t_spread)
            grid = np.linspace(t_center - 4 * t_spread, t_center + 4 * t_spread, 400)
        else:
            dist = stats.uniform(loc=t_center - t_spread, scale=2 * t_spread)
            grid = np.linspace(t_center - 1.2 * t_spread, t_center + 1.2 * t_spread, 400)
        ax.plot(grid, dist.pdf(grid), color=COLORS['danger'], linewidth=2,
                label=f'{mode.value} law')
        ax.set_ylabel('Probability density')
    else:
        # Point mass: all times equal T0
        ax.axvline(t_center, color=COLORS['danger'], linewidth=2, label='T0')
        ax.set_ylabel('Vertices')

    ax.set_xlabel('t [s]')
    ax.set_title(title)
    ax.legend()
    return save_figure(fig, filename, output_dir=output_dir)


def create_cell_frequency_plot(observed, expected, title, filename,
                               output_dir=None):
    """Bar chart of observed vs. expected fraction of vertices per cell.

    Args:
        observed: Observed fraction per cell
        expected: Expected (mass) fraction per cell
        title: Plot title string
        filename: Base filename for saving (without extension)
        output_dir: Target directory (default FIGURES_DIR)

    Returns:
        str: Path of the saved figure
    """
    observed = np.asarray(observed, dtype=float)
    expected = np.asarray(expected, dtype=float)
    idx = np.arange(len(expected))
    width = 0.38

    fig, ax = plt.subplots()
    ax.bar(idx - width / 2, expected, width, color=COLORS['dark'],
           label='active-mass fraction')
    ax.bar(idx + width / 2, observed, width, color=COLORS['secondary'],
           label='sampled fraction')
    ax.set_xticks(idx)
    ax.set_xticklabels([f'#{i}' for i in idx])
    ax.set_xlabel('Cell')
    ax.set_ylabel('Fraction of vertices')
    ax.set_title(title)
    ax.legend()
    return save_figure(fig, filename, output_dir=output_dir)
