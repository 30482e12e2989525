"""
Long edges: a continuous path of directed edges folded into one edge.

Long edges compress paths of a graph made of directed edges, so routing
and graph algorithms can skip over the cells of the path at once.
"""

from typing import AbstractSet, Iterable, List, Optional

from shapely.geometry import LineString, MultiLineString

from .compressed import CompressedEdgeBlock, DecompressedEdges
from .errors import InsufficientNumberOfEdgesError, SegmentedPathError
from .grid import GridSystem, default_grid


def h3edge_path_to_h3cell_path(h3edge_path: Iterable[int], grid: Optional[GridSystem] = None) -> List[int]:
    """
    Cells visited by a path of directed edges.

    The origin of the first edge followed by the destination of every edge.

    Raises:
        EdgeEndpointInvalidError: if an edge can not be decoded
    """
    grid = grid or default_grid()
    cells = []
    for h3edge in h3edge_path:
        if not cells:
            cells.append(grid.edge_origin(h3edge))
        cells.append(grid.edge_destination(h3edge))
    return cells


def edges_to_multilinestring(h3edges: Iterable[int], grid: Optional[GridSystem] = None) -> MultiLineString:
    """
    Lines connecting the centers of origin and destination of each edge.

    Segments continuing where the previous one ended are joined into one
    line, so a continuous path results in a single line.
    """
    grid = grid or default_grid()
    lines = []
    for h3edge in h3edges:
        start = grid.cell_center(grid.edge_origin(h3edge))
        end = grid.cell_center(grid.edge_destination(h3edge))
        if lines and lines[-1][-1] == start:
            lines[-1].append(end)
        else:
            lines.append([start, end])
    return MultiLineString(lines)


class LongEdge:
    """
    A continuous path of directed edges combined into a single edge.

    Attributes:
        in_edge: first edge of the path
        out_edge: last edge of the path
        edge_path: all edges of the path, compressed
        cell_lookup: every cell visited by the path

    Build instances with ``LongEdge.from_edges``.
    """

    __slots__ = ("in_edge", "out_edge", "edge_path", "cell_lookup", "_grid")

    def __init__(self, in_edge: int, out_edge: int, edge_path: CompressedEdgeBlock,
                 cell_lookup: AbstractSet[int], grid: Optional[GridSystem] = None):
        """
        Initialize from already built parts. Use ``LongEdge.from_edges``.

        Raises:
            InsufficientNumberOfEdgesError: if ``edge_path`` holds less than two edges
            ValueError: if ``in_edge`` / ``out_edge`` are not the ends of ``edge_path``
        """
        if len(edge_path) < 2:
            raise InsufficientNumberOfEdgesError(
                f"A long edge requires at least 2 distinct edges, got {len(edge_path)}"
            )
        first = last = None
        for h3edge in edge_path:
            if first is None:
                first = h3edge
            last = h3edge
        if (first, last) != (in_edge, out_edge):
            raise ValueError(
                f"in_edge/out_edge ({in_edge:#x}, {out_edge:#x}) do not match "
                f"the ends of the edge path ({first:#x}, {last:#x})"
            )

        self.in_edge = in_edge
        self.out_edge = out_edge
        self.edge_path = edge_path
        self.cell_lookup = frozenset(cell_lookup)
        self._grid = grid or default_grid()

    @classmethod
    def from_edges(cls, h3edges: Iterable[int], grid: Optional[GridSystem] = None) -> "LongEdge":
        """
        Construct a long edge from directed edges ordered along their path.

        Consecutive duplicates are dropped.

        Raises:
            InsufficientNumberOfEdgesError: if less than two edges remain
            EdgeEndpointInvalidError: if an edge can not be decoded
        """
        grid = grid or default_grid()
        edges = []
        for h3edge in h3edges:
            h3edge = int(h3edge)
            if not edges or edges[-1] != h3edge:
                edges.append(h3edge)
        if len(edges) < 2:
            raise InsufficientNumberOfEdgesError(
                f"A long edge requires at least 2 distinct edges, got {len(edges)}"
            )

        cell_lookup = frozenset(h3edge_path_to_h3cell_path(edges, grid))
        return cls(edges[0], edges[-1], CompressedEdgeBlock.from_edges(edges), cell_lookup, grid)

    def origin_cell(self) -> int:
        return self._grid.edge_origin(self.in_edge)

    def destination_cell(self) -> int:
        return self._grid.edge_destination(self.out_edge)

    def is_disjoint(self, cells: Iterable[int]) -> bool:
        """True when none of ``cells`` is visited by this edge."""
        return self.cell_lookup.isdisjoint(cells)

    def h3edges_len(self) -> int:
        """Number of directed edges in the path."""
        return len(self.edge_path)

    def h3edge_path(self) -> DecompressedEdges:
        """The directed edges of the path, in order."""
        return self.edge_path.iter_uncompressed()

    def cells(self) -> List[int]:
        """The cells of the path, in order."""
        return h3edge_path_to_h3cell_path(self.h3edge_path(), self._grid)

    def to_linestring(self) -> LineString:
        """
        The path as a line through the cell centers.

        Raises:
            SegmentedPathError: if the edges do not connect into a single line
        """
        mls = edges_to_multilinestring(self.h3edge_path(), self._grid)
        if len(mls.geoms) != 1:
            raise SegmentedPathError(
                f"Edge path consists of {len(mls.geoms)} disconnected lines"
            )
        return mls.geoms[0]

    def __eq__(self, other) -> bool:
        if not isinstance(other, LongEdge):
            return NotImplemented
        return self.edge_path == other.edge_path

    def __hash__(self) -> int:
        return hash(self.edge_path)

    def __getstate__(self):
        return self.in_edge, self.out_edge, self.edge_path, self.cell_lookup, self._grid

    def __setstate__(self, state):
        self.in_edge, self.out_edge, self.edge_path, self.cell_lookup, self._grid = state

    def __repr__(self) -> str:
        return f"LongEdge(in_edge={self.in_edge:#x}, out_edge={self.out_edge:#x}, edges={self.h3edges_len()})"
