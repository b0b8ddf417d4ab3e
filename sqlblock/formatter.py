"""
Trace formatter for inspecting how a block is laid out.

Separates presentation logic from rendering logic.
"""

from typing import Iterable
from tabulate import tabulate

from .statements.renderer import trace


def format_capabilities(node) -> str:
    """Comma separated capability names of a node, or "-" when it has none."""
    names = node.capabilities.names()
    return ", ".join(names) if names else "-"


def format_trace(nodes: Iterable, start_depth: int = 0) -> str:
    """
    Format the renderer's placement of each node as an ASCII table.

    Args:
        nodes: Statement nodes in order
        start_depth: Depth of the first node

    Returns:
        Formatted string with table
    """
    rows = []
    for entry in trace(nodes, start_depth):
        lines = entry.node.text().splitlines()
        first_line = lines[0].strip() if lines else ""
        if len(lines) > 1:
            first_line += f" (+{len(lines) - 1} lines)"
        rows.append([
            entry.index,
            entry.depth,
            type(entry.node).__name__,
            format_capabilities(entry.node),
            first_line,
        ])

    if not rows:
        return "(0 statements)"

    table = tabulate(
        rows,
        headers=["#", "depth", "kind", "capabilities", "sql"],
        tablefmt='grid'
    )
    count = f"\n({len(rows)} statement{'s' if len(rows) != 1 else ''})"

    return table + count
