"""
Vertex Sampler Reports - Table Generation Utilities
Console and markdown tables for the validation runs: scenario parameters,
per-cell vertex fractions and the collected run summary.
"""

import math
import numbers

# (lower magnitude bound, format) for floats, checked in order
_FLOAT_FORMATS = (
    (1e6, "{:.3e}"),      # sampling rates, large counts
    (100.0, "{:.1f}"),    # masses in kg
    (1.0, "{:.3f}"),
    (1e-3, "{:.4f}"),     # fractions, p-values
    (0.0, "{:.3e}"),      # vertex times in s
)


def format_value(value, unit=''):
    """Render one table entry.

    Strings and booleans pass through, integers (Python or numpy) keep
    every digit, NaN prints as ``n/a``, and floats are rounded by
    magnitude (see ``_FLOAT_FORMATS``); exact zero prints as ``0``.

    Args:
        value: Number or string
        unit: Optional unit string appended after the value

    Returns:
        str
    """
    if isinstance(value, (str, bool)):
        text = str(value)
    elif isinstance(value, numbers.Integral):
        text = f"{int(value):d}"
    elif math.isnan(value):
        text = "n/a"
    elif value == 0:
        text = "0"
    else:
        magnitude = abs(value)
        fmt = next(f for bound, f in _FLOAT_FORMATS if magnitude >= bound)
        text = fmt.format(value)
    return f"{text} {unit}".strip()


def _markdown_row(cells):
    return '| ' + ' | '.join(cells) + ' |'


def markdown_table(title, rows, headers=None):
    """Markdown table under a ``###`` heading.

    Args:
        title: Table heading
        rows: Row sequences; floats go through format_value, the rest
              through str(); short rows are padded with empty cells
        headers: Column names (default: Parameter | Value | Unit)

    Returns:
        str
    """
    headers = list(headers or ['Parameter', 'Value', 'Unit'])
    lines = [f"\n### {title}\n", _markdown_row(headers),
             _markdown_row(['---'] * len(headers))]
    for row in rows:
        cells = [format_value(v) if isinstance(v, float) else str(v) for v in row]
        cells += [''] * (len(headers) - len(cells))
        lines.append(_markdown_row(cells))
    return '\n'.join(lines)


def cell_table_rows(expected, observed=None):
    """Rows of (cell, expected fraction[, observed fraction, difference]).

    Args:
        expected: Expected selection fraction per cell
        observed: Observed fraction per cell (optional)

    Returns:
        list of row lists, suitable for markdown_table
    """
    rows = []
    for i, exp in enumerate(expected):
        row = [f"#{i}", float(exp)]
        if observed is not None:
            obs = float(observed[i])
            row += [obs, f"{(obs - exp) * 100:+.2f}%"]
        rows.append(row)
    return rows


def print_section_header(title, char='='):
    """Print a title between two rules at least 60 characters wide."""
    rule = char * max(60, len(title) + 4)
    print(f"\n{rule}\n  {title}\n{rule}")


def print_param_table(title, params):
    """Print (name, value, unit) rows as aligned columns under a header.

    Args:
        title: Table title string
        params: List of (name, value, unit) tuples
    """
    print_section_header(title, '-')
    if not params:
        print("  (none)\n")
        return
    texts = [(name, format_value(value), unit) for name, value, unit in params]
    name_w = max(len(t[0]) for t in texts) + 2
    value_w = max(len(t[1]) for t in texts) + 2
    for name, text, unit in texts:
        print(f"  {name:<{name_w}} {text:>{value_w}}  {unit}")
    print()


def results_to_markdown(results_dict, filename, title="Vertex Sampler Validation Results"):
    """Write the collected run results as a markdown document.

    Each key of ``results_dict`` becomes a ``##`` section. A dict section
    is written as bullets of ``(value, unit)`` entries; a string section
    (a failure note or a markdown_table) is written as is.

    Args:
        results_dict: Dict mapping section title -> dict or str
        filename: Output file path
        title: Document heading
    """
    lines = [f"# {title}\n"]
    for section, content in results_dict.items():
        lines.append(f"\n## {section}\n")
        if isinstance(content, str):
            lines.append(content)
            continue
        for key, entry in content.items():
            value, unit = entry if isinstance(entry, tuple) else (entry, '')
            lines.append(f"- **{key}**: {format_value(value, unit)}")

    with open(filename, 'w', encoding='utf-8') as f:
        f.write('\n'.join(lines) + '\n')
    print(f"  Results saved: {filename}")
