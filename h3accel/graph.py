"""
Graph compression utilities.

This module folds the chains of a graph built from directed edges into
long edges, reducing the number of nodes a routing engine has to visit.
"""

import logging
from collections import defaultdict
from typing import Dict, List, NamedTuple, Optional, Tuple

from .grid import GridSystem, default_grid
from .io import ColumnLike, iter_valid_identifiers, to_index_column
from .longedge import LongEdge

logger = logging.getLogger(__name__)


class CompressedGraph(NamedTuple):
    """Result of ``compress_edge_graph``."""
    long_edges: List[LongEdge]
    remaining_edges: List[int]


def compress_edge_graph(edges: ColumnLike, min_edges: int = 2,
                        grid: Optional[GridSystem] = None) -> CompressedGraph:
    """
    Compress chains of directed edges into long edges (topological simplification).

    A cell with exactly one incoming and one outgoing edge only passes the
    path through. Starting at every other cell, paths are traced along
    such pass-through cells until a cell with a different degree is reached.

    Args:
        edges: column of directed edges, missing entries are ignored
        min_edges: minimum number of edges a chain needs to become a long edge
        grid: grid system used to decode the edges, defaults to H3

    Returns:
        CompressedGraph with the long edges and all edges which were not
        folded into one, in input order

    Raises:
        ValueError: If ``min_edges`` is smaller than 2
        EdgeEndpointInvalidError: If an edge can not be decoded

    Example:
        >>> compressed = h3accel.compress_edge_graph(df["edge"])
        >>> print(f"{len(compressed.long_edges)} long edges, "
        ...       f"{len(compressed.remaining_edges)} edges left")

    Notes:
        - Preserves all branching cells and connectivity
        - Cycles consisting only of pass-through cells are not compressed
        - O(n) in the number of edges
    """
    if min_edges < 2:
        raise ValueError(f"min_edges must be at least 2, got {min_edges}")
    grid = grid or default_grid()

    # unique edges in input order
    unique_edges = list(dict.fromkeys(
        identifier for _, identifier in iter_valid_identifiers(to_index_column(edges))
    ))

    endpoints: Dict[int, Tuple[int, int]] = {}
    outgoing = defaultdict(list)
    in_degree = defaultdict(int)
    for edge in unique_edges:
        origin, destination = grid.edge_origin(edge), grid.edge_destination(edge)
        endpoints[edge] = (origin, destination)
        outgoing[origin].append(edge)
        in_degree[destination] += 1

    def passes_through(cell: int) -> bool:
        return in_degree[cell] == 1 and len(outgoing[cell]) == 1

    long_edges = []
    absorbed = set()
    for edge in unique_edges:
        origin, destination = endpoints[edge]
        if passes_through(origin):
            continue

        path = [edge]
        while passes_through(destination):
            next_edge = outgoing[destination][0]
            path.append(next_edge)
            destination = endpoints[next_edge][1]

        if len(path) >= min_edges:
            long_edges.append(LongEdge.from_edges(path, grid))
            absorbed.update(path)

    remaining_edges = [edge for edge in unique_edges if edge not in absorbed]
    logger.debug("Compressed %d edges into %d long edges, %d edges remaining",
                 len(unique_edges), len(long_edges), len(remaining_edges))
    return CompressedGraph(long_edges, remaining_edges)
