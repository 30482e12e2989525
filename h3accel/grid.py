"""
Access to the native primitives of the hexagonal grid system.

The algorithms of this package only talk to the grid through the
``GridSystem`` interface. ``H3GridSystem`` is the production adapter built
on the ``h3`` library (v4 API, integer identifiers).

Coordinates passed in and out of a ``GridSystem`` are ``(x, y)`` pairs with
``x`` the longitude and ``y`` the latitude, matching raster transforms.
"""

from abc import ABC, abstractmethod
from typing import Iterable, List, Optional, Sequence, Tuple

import h3
from h3.api import basic_int as h3int

from .errors import EdgeEndpointInvalidError, InvalidResolutionError
from .geometry import Rect

# H3 resolution levels
# 0  = ~4.3 million km² per cell
# 10 = ~15,000 m² per cell
# 15 = ~0.9 m² per cell
H3_MIN_RESOLUTION = 0
H3_MAX_RESOLUTION = 15


class GridSystem(ABC):
    """Interface to the cell and edge primitives of a hierarchical grid."""

    min_resolution: int = 0
    max_resolution: int = 15

    def validate_resolution(self, resolution: int) -> int:
        """Return ``resolution`` as int or raise ``InvalidResolutionError``."""
        if isinstance(resolution, bool) or int(resolution) != resolution:
            raise InvalidResolutionError(f"Resolution must be an integer, got {resolution!r}")
        resolution = int(resolution)
        if not self.min_resolution <= resolution <= self.max_resolution:
            raise InvalidResolutionError(
                f"Resolution {resolution} outside of "
                f"[{self.min_resolution}, {self.max_resolution}]"
            )
        return resolution

    @abstractmethod
    def cell_from_coordinate(self, x: float, y: float, resolution: int) -> int:
        """The cell containing the coordinate at the given resolution."""

    @abstractmethod
    def cell_area(self, cell: int) -> float:
        """Exact area of the cell polygon in square meters."""

    @abstractmethod
    def cell_center(self, cell: int) -> Tuple[float, float]:
        """Center of the cell as ``(x, y)``."""

    @abstractmethod
    def cell_boundary(self, cell: int) -> List[Tuple[float, float]]:
        """Vertices of the cell polygon as ``(x, y)`` pairs."""

    @abstractmethod
    def is_valid_cell(self, value: int) -> bool:
        """Whether ``value`` is a structurally valid cell identifier."""

    @abstractmethod
    def is_valid_edge(self, value: int) -> bool:
        """Whether ``value`` is a structurally valid directed edge identifier."""

    @abstractmethod
    def edge_origin(self, edge: int) -> int:
        """Origin cell of a directed edge. Raises ``EdgeEndpointInvalidError``."""

    @abstractmethod
    def edge_destination(self, edge: int) -> int:
        """Destination cell of a directed edge. Raises ``EdgeEndpointInvalidError``."""

    @abstractmethod
    def edge_boundary(self, edge: int) -> List[Tuple[float, float]]:
        """Vertices of the boundary line shared by the two cells of the edge."""

    @abstractmethod
    def polygon_to_cells(self, exterior: Sequence[Tuple[float, float]], resolution: int) -> List[int]:
        """Cells whose centers lie within the polygon given by its ``(x, y)`` exterior ring."""

    @abstractmethod
    def compact(self, cells: Iterable[int]) -> List[int]:
        """Replace complete sets of sibling cells by their parents."""

    def bounding_rect(self, value: int) -> Optional[Rect]:
        """
        Geographic bounding rect of a cell or a directed edge.

        Returns None for values which are neither.

        Rects of values crossing the antimeridian extend east beyond
        ``x = 180`` instead of spanning the whole longitude range, so they
        only match queries near 180 (or shifted by +360 for the western part).
        """
        if self.is_valid_cell(value):
            coords = self.cell_boundary(value)
        elif self.is_valid_edge(value):
            coords = self.edge_boundary(value)
        else:
            return None
        xs = [c[0] for c in coords]
        ys = [c[1] for c in coords]
        if max(xs) - min(xs) > 180.0:
            xs = [x + 360.0 if x < 0.0 else x for x in xs]
        return Rect(min(xs), min(ys), max(xs), max(ys))


class H3GridSystem(GridSystem):
    """``GridSystem`` adapter for the H3 library."""

    min_resolution = H3_MIN_RESOLUTION
    max_resolution = H3_MAX_RESOLUTION

    def cell_from_coordinate(self, x: float, y: float, resolution: int) -> int:
        resolution = self.validate_resolution(resolution)
        return h3int.latlng_to_cell(y, x, resolution)

    def cell_area(self, cell: int) -> float:
        return h3int.cell_area(cell, unit="m^2")

    def cell_center(self, cell: int) -> Tuple[float, float]:
        lat, lng = h3int.cell_to_latlng(cell)
        return lng, lat

    def cell_boundary(self, cell: int) -> List[Tuple[float, float]]:
        return [(lng, lat) for lat, lng in h3int.cell_to_boundary(cell)]

    def is_valid_cell(self, value: int) -> bool:
        return _in_u64_range(value) and bool(h3int.is_valid_cell(value))

    def is_valid_edge(self, value: int) -> bool:
        return _in_u64_range(value) and bool(h3int.is_valid_directed_edge(value))

    def edge_origin(self, edge: int) -> int:
        self._check_edge(edge)
        return h3int.get_directed_edge_origin(edge)

    def edge_destination(self, edge: int) -> int:
        self._check_edge(edge)
        return h3int.get_directed_edge_destination(edge)

    def edge_boundary(self, edge: int) -> List[Tuple[float, float]]:
        self._check_edge(edge)
        return [(lng, lat) for lat, lng in h3int.directed_edge_to_boundary(edge)]

    def polygon_to_cells(self, exterior: Sequence[Tuple[float, float]], resolution: int) -> List[int]:
        resolution = self.validate_resolution(resolution)
        poly = h3.LatLngPoly([(y, x) for x, y in exterior])
        return list(h3int.polygon_to_cells(poly, resolution))

    def compact(self, cells: Iterable[int]) -> List[int]:
        try:
            return list(h3int.compact_cells(list(cells)))
        except h3.H3BaseException as e:
            raise InvalidResolutionError(f"Can not compact cells: {e}", e)

    def _check_edge(self, edge: int) -> None:
        if not self.is_valid_edge(edge):
            raise EdgeEndpointInvalidError(f"Invalid directed edge: {int(edge):#x}")


def _in_u64_range(value: int) -> bool:
    return 0 <= value < 2 ** 64


_default_grid: Optional[GridSystem] = None


def default_grid() -> GridSystem:
    """The shared ``H3GridSystem`` used when no grid is passed explicitly."""
    global _default_grid
    if _default_grid is None:
        _default_grid = H3GridSystem()
    return _default_grid
