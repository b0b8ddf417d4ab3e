"""
Statement renderer.

Turns an ordered sequence of statement nodes into indented text. This is
the only place the Opening/Closing/BlockLike rules are applied; block-like
nodes call back into render() for their own children.

Rendering is pure: it reads immutable nodes and keeps all state local, so
the same snapshot can be rendered from any number of callers.
"""

from dataclasses import dataclass
from typing import Any, Iterable, Iterator

from .capabilities import Capability, INDENT


@dataclass(frozen=True)
class TraceEntry:
    """How one node was placed by the renderer."""
    index: int
    node: Any
    depth: int          # depth the node was emitted at
    depth_after: int    # depth applied to the next sibling


def trace(nodes: Iterable, start_depth: int = 0) -> Iterator[TraceEntry]:
    """
    Walk nodes applying the depth rules, without producing text.

    For each node:
    1. Closing nodes decrement the depth before they are emitted.
    2. The node is emitted at the current depth.
    3. Opening nodes increment the depth for the following siblings.

    Depth is not floored at zero; a negative depth means the caller
    closed more blocks than it opened.

    Args:
        nodes: Statement nodes in order
        start_depth: Depth of the first node

    Yields:
        TraceEntry per node
    """
    depth = start_depth
    for index, node in enumerate(nodes):
        capabilities = node.capabilities
        if Capability.CLOSING in capabilities:
            depth -= 1
        emitted_at = depth
        if Capability.OPENING in capabilities:
            depth += 1
        yield TraceEntry(index=index, node=node, depth=emitted_at, depth_after=depth)


def render_node(node, depth: int) -> str:
    """
    Render a single node at a depth.

    Block-like nodes indent themselves; every other node is one line
    prefixed with depth indentation units.
    """
    if Capability.BLOCK_LIKE in node.capabilities:
        return node.render(depth)
    return INDENT * depth + node.text()


def render(nodes: Iterable, start_depth: int = 0) -> str:
    """
    Render nodes as newline separated text.

    Block-like nodes that produce no text (Empty, an empty Block) still
    take a line, which is how blank separator lines are made.

    Args:
        nodes: Statement nodes in order
        start_depth: Depth of the first node

    Returns:
        Rendered text without a trailing newline
    """
    return "\n".join(render_node(entry.node, entry.depth) for entry in trace(nodes, start_depth))


def final_depth(nodes: Iterable, start_depth: int = 0) -> int:
    """Depth in effect after the last node has been processed."""
    depth = start_depth
    for entry in trace(nodes, start_depth):
        depth = entry.depth_after
    return depth
