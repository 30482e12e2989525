"""
Spatial index over a column of grid identifiers.

This module provides ``PackedSpatialIndex``, which answers range and
distance queries on the bounding boxes of the cells (or directed edges) of
a column and reports the matches as boolean masks aligned to that column.
"""

import logging
from typing import Optional

import numpy as np
import pandas as pd

from .errors import SpatialIndexError
from .geometry import Rect
from .grid import GridSystem, default_grid
from .hilbert_rtree import DEFAULT_NODE_SIZE, PackedHilbertRTree
from .io import ColumnLike, iter_valid_identifiers, to_index_column

logger = logging.getLogger(__name__)


class PackedSpatialIndex:
    """
    Packed Hilbert R-tree over the bounding rects of an identifier column.

    Missing entries and values which are neither valid cells nor valid
    directed edges are not part of the tree. ``positions`` maps the item
    positions of the tree back to row positions in the column, so query
    results always refer to the original rows.

    The index is immutable; changes to the column require building a new
    index.
    """

    def __init__(self, column: pd.Series, tree: Optional[PackedHilbertRTree], positions: np.ndarray):
        """Initialize from already built parts. Use ``PackedSpatialIndex.build``."""
        self.column = column
        self._tree = tree
        # tree item position -> row position in ``column``
        self.positions = positions

    @classmethod
    def build(cls, values: ColumnLike, grid: Optional[GridSystem] = None,
              node_size: int = DEFAULT_NODE_SIZE) -> "PackedSpatialIndex":
        """
        Build the index for a column of identifiers.

        Args:
            values: column of cells or directed edges, missing entries allowed
            grid: grid system used to compute bounding rects, defaults to H3
            node_size: maximum number of children per tree node

        Returns:
            PackedSpatialIndex over all entries with a bounding rect

        Raises:
            SpatialIndexError: If the tree can not be built from the rects

        Example:
            >>> index = h3accel.PackedSpatialIndex.build(df["cell"])
            >>> df[index.envelopes_intersect(Rect(8.0, 49.0, 8.5, 49.5))]
        """
        grid = grid or default_grid()
        column = to_index_column(values)

        positions = []
        rects = []
        for position, identifier in iter_valid_identifiers(column):
            rect = grid.bounding_rect(identifier)
            if rect is not None:
                positions.append(position)
                rects.append(rect)

        tree = None
        if rects:
            try:
                tree = PackedHilbertRTree(np.array(rects, dtype=np.float64), node_size=node_size)
            except ValueError as e:
                raise SpatialIndexError(f"Could not build spatial index: {e}", e)

        logger.debug("Built spatial index over %d of %d rows", len(rects), len(column))
        return cls(column, tree, np.array(positions, dtype=np.intp))

    def __len__(self) -> int:
        return len(self.column)

    @property
    def n_indexed(self) -> int:
        """Number of rows contained in the tree."""
        return len(self.positions)

    def _mask(self, tree_positions) -> pd.Series:
        mask = np.zeros(len(self.column), dtype=bool)
        if len(tree_positions):
            mask[self.positions[np.asarray(tree_positions, dtype=np.intp)]] = True
        return pd.Series(mask, index=self.column.index, name=self.column.name)

    def envelopes_intersect(self, rect: Rect) -> pd.Series:
        """
        Rows whose bounding rect intersects ``rect``.

        Returns:
            Boolean Series aligned to the indexed column. Rows not contained
            in the tree are always False.
        """
        if self._tree is None:
            return self._mask([])
        if not isinstance(rect, Rect):
            rect = Rect(*rect)
        return self._mask(self._tree.query(rect))

    def envelopes_within_distance(self, x: float, y: float, distance_squared: float) -> pd.Series:
        """
        Rows whose bounding rect is within a squared distance of the point ``(x, y)``.

        The distance is measured in coordinate units (degrees) to the nearest
        point of each rect.
        """
        if self._tree is None:
            return self._mask([])

        return self._mask(self._tree.neighbors(x, y, max_distance_squared=distance_squared))

    def bounding_rect(self) -> Optional[Rect]:
        """Extent of all indexed rects, None for an empty index."""
        if self._tree is None:
            return None
        return self._tree.bounds

    def __repr__(self) -> str:
        return f"PackedSpatialIndex(rows={len(self)}, indexed={self.n_indexed})"


def build_spatial_index(values: ColumnLike, grid: Optional[GridSystem] = None) -> PackedSpatialIndex:
    """Shortcut for ``PackedSpatialIndex.build``."""
    return PackedSpatialIndex.build(values, grid=grid)
