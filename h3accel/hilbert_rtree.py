"""
Static packed Hilbert R-tree.

The tree is built once over a fixed set of axis-aligned boxes: the boxes
are sorted along a Hilbert curve through their centers and packed bottom-up
into nodes of ``node_size`` children. Based on the flatbush layout, with
one numpy array of boxes per tree level.
"""

import heapq
from enum import Enum
from typing import Callable, List, Optional, Sequence, Tuple, Union

import numpy as np

from .geometry import Rect

DEFAULT_NODE_SIZE = 16

# side length of the grid the box centers are snapped to before computing Hilbert distances
HILBERT_ORDER = 1 << 16


class VisitControl(Enum):
    """Return values of neighbor visitors."""
    CONTINUE = "continue"
    STOP = "stop"


NeighborVisitor = Callable[[int, float], VisitControl]


def hilbert_distance(x: np.ndarray, y: np.ndarray, order: int = HILBERT_ORDER) -> np.ndarray:
    """Positions of the grid coordinates ``(x, y)`` along a Hilbert curve covering an ``order`` x ``order`` grid."""
    x = np.asarray(x, dtype=np.int64).copy()
    y = np.asarray(y, dtype=np.int64).copy()
    d = np.zeros_like(x)
    s = order >> 1
    while s > 0:
        rx = ((x & s) > 0).astype(np.int64)
        ry = ((y & s) > 0).astype(np.int64)
        d += s * s * ((3 * rx) ^ ry)

        # rotate the quadrant
        flip = (ry == 0) & (rx == 1)
        x = np.where(flip, order - 1 - x, x)
        y = np.where(flip, order - 1 - y, y)
        swap = ry == 0
        x, y = np.where(swap, y, x), np.where(swap, x, y)
        s >>= 1
    return d


def _as_rect(rect: Union[Rect, Sequence[float]]) -> Rect:
    return rect if isinstance(rect, Rect) else Rect(*rect)


class PackedHilbertRTree:
    """
    Spatial index over a static set of boxes.

    Items are addressed by their position in the ``boxes`` array the tree was
    built from.

    Example:
        >>> tree = PackedHilbertRTree([(0, 0, 1, 1), (5, 5, 6, 6)])
        >>> tree.query(Rect(0.5, 0.5, 2.0, 2.0))
        [0]
    """

    def __init__(self, boxes, node_size: int = DEFAULT_NODE_SIZE):
        """
        Build the tree.

        Args:
            boxes: sequence or ``(n, 4)`` array of ``(min_x, min_y, max_x, max_y)``
            node_size: maximum number of children per node

        Raises:
            ValueError: for an empty set of boxes, non-finite coordinates,
                boxes with min > max or ``node_size`` < 2
        """
        if node_size < 2:
            raise ValueError(f"node_size must be at least 2, got {node_size}")
        boxes = np.asarray(boxes, dtype=np.float64)
        if boxes.size == 0:
            raise ValueError("Can not build a tree without boxes")
        if boxes.ndim != 2 or boxes.shape[1] != 4:
            raise ValueError(f"Expected boxes of shape (n, 4), got {boxes.shape}")
        if not np.isfinite(boxes).all():
            raise ValueError("Boxes contain non-finite coordinates")
        if (boxes[:, 0] > boxes[:, 2]).any() or (boxes[:, 1] > boxes[:, 3]).any():
            raise ValueError("Boxes must have min <= max on both axes")

        self.node_size = node_size
        self._ids, self._levels = self._pack(boxes, node_size)

    @staticmethod
    def _pack(boxes: np.ndarray, node_size: int) -> Tuple[np.ndarray, List[np.ndarray]]:
        min_x, min_y = boxes[:, 0].min(), boxes[:, 1].min()
        width = boxes[:, 2].max() - min_x
        height = boxes[:, 3].max() - min_y

        hilbert_max = HILBERT_ORDER - 1
        center_x = (boxes[:, 0] + boxes[:, 2]) / 2.0 - min_x
        center_y = (boxes[:, 1] + boxes[:, 3]) / 2.0 - min_y
        grid_x = np.floor(hilbert_max * center_x / width) if width > 0 else np.zeros(len(boxes))
        grid_y = np.floor(hilbert_max * center_y / height) if height > 0 else np.zeros(len(boxes))
        order = np.argsort(hilbert_distance(grid_x, grid_y), kind="stable")

        levels = [boxes[order]]
        while len(levels[-1]) > 1:
            children = levels[-1]
            starts = np.arange(0, len(children), node_size)
            parents = np.empty((len(starts), 4), dtype=np.float64)
            parents[:, 0] = np.minimum.reduceat(children[:, 0], starts)
            parents[:, 1] = np.minimum.reduceat(children[:, 1], starts)
            parents[:, 2] = np.maximum.reduceat(children[:, 2], starts)
            parents[:, 3] = np.maximum.reduceat(children[:, 3], starts)
            levels.append(parents)
        return order, levels

    def __len__(self) -> int:
        return len(self._ids)

    @property
    def bounds(self) -> Rect:
        """Extent of all boxes in the tree."""
        return Rect(*(float(v) for v in self._levels[-1][0]))

    def _children(self, level: int, node: int) -> Tuple[int, np.ndarray]:
        child_boxes = self._levels[level - 1]
        begin = node * self.node_size
        return begin, child_boxes[begin:begin + self.node_size]

    def query(self, rect: Union[Rect, Sequence[float]]) -> List[int]:
        """Positions of all items whose box intersects ``rect``, sorted ascending."""
        rect = _as_rect(rect)
        top = len(self._levels) - 1
        stack = [(top, 0)] if self.bounds.intersects(rect) else []

        results = []
        while stack:
            level, node = stack.pop()
            if level == 0:
                results.append(int(self._ids[node]))
                continue
            begin, boxes = self._children(level, node)
            hit = (
                (boxes[:, 0] <= rect.max_x)
                & (boxes[:, 2] >= rect.min_x)
                & (boxes[:, 1] <= rect.max_y)
                & (boxes[:, 3] >= rect.min_y)
            )
            stack.extend((level - 1, begin + int(offset)) for offset in np.flatnonzero(hit))
        results.sort()
        return results

    @staticmethod
    def _distances_squared(boxes: np.ndarray, x: float, y: float) -> np.ndarray:
        dx = np.maximum(np.maximum(boxes[:, 0] - x, 0.0), x - boxes[:, 2])
        dy = np.maximum(np.maximum(boxes[:, 1] - y, 0.0), y - boxes[:, 3])
        return dx * dx + dy * dy

    def visit_neighbors(self, x: float, y: float, visitor: NeighborVisitor) -> None:
        """
        Visit items in order of increasing distance from the point ``(x, y)``.

        ``visitor`` is called with the item position and the squared distance
        from the point to the item's box. Returning ``VisitControl.STOP``
        ends the search; as items arrive ordered by distance, every item
        not visited yet is at least as far away.
        """
        top = len(self._levels) - 1
        root_distance = float(self._distances_squared(self._levels[top][:1], x, y)[0])
        queue = [(root_distance, top, 0)]

        while queue:
            distance, level, node = heapq.heappop(queue)
            if level == 0:
                if visitor(int(self._ids[node]), distance) is VisitControl.STOP:
                    return
                continue
            begin, boxes = self._children(level, node)
            for offset, child_distance in enumerate(self._distances_squared(boxes, x, y).tolist()):
                heapq.heappush(queue, (child_distance, level - 1, begin + offset))

    def neighbors(self, x: float, y: float, max_results: Optional[int] = None,
                  max_distance_squared: float = float("inf")) -> List[int]:
        """Positions of the items nearest to ``(x, y)``, nearest first."""
        found = []

        def visitor(position: int, distance_squared: float) -> VisitControl:
            if distance_squared > max_distance_squared:
                return VisitControl.STOP
            found.append(position)
            if max_results is not None and len(found) >= max_results:
                return VisitControl.STOP
            return VisitControl.CONTINUE

        if max_results is None or max_results > 0:
            self.visit_neighbors(x, y, visitor)
        return found

    def __repr__(self) -> str:
        return f"PackedHilbertRTree(items={len(self)}, levels={len(self._levels)}, node_size={self.node_size})"
