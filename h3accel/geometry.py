"""
Axis-aligned rectangles shared by the raster and indexing modules.

A ``Rect`` is used in two coordinate spaces:
    - array index space: ``x`` is the index along axis 0 and ``y`` the index
      along axis 1, both bounds inclusive.
    - geographic space: ``x`` is the longitude and ``y`` the latitude in degrees.
"""

from typing import NamedTuple, Tuple


class Rect(NamedTuple):
    """
    Axis-aligned bounding box given by its min and max corners.

    Degenerate rects (zero width and/or height) are valid and describe a
    line or a single point.
    """
    min_x: float
    min_y: float
    max_x: float
    max_y: float

    @classmethod
    def from_corners(cls, a: Tuple[float, float], b: Tuple[float, float]) -> "Rect":
        """Build a rect from two opposite corners given in any order."""
        return cls(min(a[0], b[0]), min(a[1], b[1]), max(a[0], b[0]), max(a[1], b[1]))

    @property
    def width(self) -> float:
        return self.max_x - self.min_x

    @property
    def height(self) -> float:
        return self.max_y - self.min_y

    @property
    def area(self) -> float:
        return self.width * self.height

    def center(self) -> Tuple[float, float]:
        return (self.min_x + self.max_x) / 2.0, (self.min_y + self.max_y) / 2.0

    def intersects(self, other: "Rect") -> bool:
        return not (
            other.min_x > self.max_x
            or other.max_x < self.min_x
            or other.min_y > self.max_y
            or other.max_y < self.min_y
        )

    def contains_point(self, x: float, y: float) -> bool:
        return self.min_x <= x <= self.max_x and self.min_y <= y <= self.max_y

    def distance_squared(self, x: float, y: float) -> float:
        """Squared distance from a point to the nearest point of the rect."""
        dx = max(self.min_x - x, 0.0, x - self.max_x)
        dy = max(self.min_y - y, 0.0, y - self.max_y)
        return dx * dx + dy * dy

    def slices(self) -> Tuple[slice, slice]:
        """Array slices selecting the (inclusive) box in array index space."""
        return (
            slice(int(self.min_x), int(self.max_x) + 1),
            slice(int(self.min_y), int(self.max_y) + 1),
        )

    def n_elements(self) -> int:
        """Number of array elements covered by the box in array index space."""
        return (int(self.max_x) - int(self.min_x) + 1) * (int(self.max_y) - int(self.min_y) + 1)
