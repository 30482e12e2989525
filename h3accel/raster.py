"""
Raster preprocessing for the conversion of arrays to grid cells.

This module provides the two steps which make converting large, sparse
rasters tractable: restricting the work to the regions of the array which
actually contain data, and choosing the grid resolution which matches the
size of a pixel. ``raster_to_cells`` combines both into a full conversion.

Coordinates follow the ``affine`` convention: ``transform @ (col, row)``
gives the geographic ``(x, y)`` of the upper left corner of a pixel.
"""

import logging
import math
from collections import defaultdict
from enum import Enum
from typing import Dict, List, Optional, Sequence, Tuple, Union

import numpy as np
from affine import Affine

from .errors import EmptyArrayError, NoMatchingResolutionError
from .geometry import Rect
from .grid import GridSystem, default_grid

logger = logging.getLogger(__name__)

# authalic radius of the earth as used by H3
EARTH_RADIUS_M = 6371007.180918475


class AxisOrder(Enum):
    """Mapping of the array axes to the geographic axes."""

    #: axis 0 is x (columns of the geographic grid), axis 1 is y
    XY = "xy"
    #: axis 0 is y (rows), axis 1 is x. The layout of arrays read with rasterio/GDAL.
    YX = "yx"

    @classmethod
    def parse(cls, value: Union[str, "AxisOrder"]) -> "AxisOrder":
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).lower())
        except ValueError:
            raise ValueError(f"Unknown axis order: {value!r}, expected 'xy' or 'yx'")

    def to_transform_coordinate(self, i: float, j: float) -> Tuple[float, float]:
        """Array position ``(i, j)`` -> ``(col, row)`` as expected by the transform."""
        if self is AxisOrder.YX:
            return j, i
        return i, j

    def from_transform_coordinate(self, col: float, row: float) -> Tuple[float, float]:
        """Inverse of ``to_transform_coordinate``."""
        if self is AxisOrder.YX:
            return row, col
        return col, row


class SearchMode(Enum):
    """Policies for ``nearest_h3_resolution``."""

    #: the resolution where the difference between cell area and pixel area is smallest
    SMALLEST_AREA_DIFFERENCE = "smallest_area_difference"
    #: the first resolution where the cell area is smaller than the pixel area
    INDEX_AREA_SMALLER_THAN_PIXEL_AREA = "index_area_smaller_than_pixel_area"

    @classmethod
    def parse(cls, value: Union[str, "SearchMode"]) -> "SearchMode":
        if isinstance(value, cls):
            return value
        aliases = {
            "min_diff": cls.SMALLEST_AREA_DIFFERENCE,
            "smaller_than_pixel": cls.INDEX_AREA_SMALLER_THAN_PIXEL_AREA,
        }
        key = str(value).lower()
        if key in aliases:
            return aliases[key]
        try:
            return cls(key)
        except ValueError:
            raise ValueError(f"Unknown search mode: {value!r}")


def as_transform(value: Union[Affine, Sequence[float]]) -> Affine:
    """
    Coerce ``value`` to an ``Affine`` transform.

    Sequences of six coefficients are read in GDAL order
    (origin x, pixel width, row rotation, origin y, column rotation, pixel height).
    """
    if isinstance(value, Affine):
        return value
    coefficients = tuple(float(c) for c in value)
    if len(coefficients) != 6:
        raise ValueError(f"A transform needs 6 coefficients, got {len(coefficients)}")
    return Affine.from_gdal(*coefficients)


def transform_from_rasterio(coefficients: Sequence[float]) -> Affine:
    """Build a transform from the first six coefficients in rasterio order (a, b, c, d, e, f)."""
    coefficients = tuple(float(c) for c in coefficients)
    if len(coefficients) < 6:
        raise ValueError(f"A transform needs 6 coefficients, got {len(coefficients)}")
    return Affine(*coefficients[:6])


# --- Box clustering ---

def _data_mask(array: np.ndarray, nodata_value) -> np.ndarray:
    if nodata_value is None:
        return np.ones(array.shape, dtype=bool)
    if isinstance(nodata_value, (float, np.floating)) and np.isnan(nodata_value):
        return ~np.isnan(array)
    return array != nodata_value


def _find_continuous_chunks_along_axis(mask: np.ndarray, axis: int) -> List[Tuple[int, int]]:
    """Inclusive ranges of consecutive positions along ``axis`` containing any data."""
    has_data = mask.any(axis=1 - axis)
    padded = np.concatenate(([False], has_data, [False]))
    changes = np.flatnonzero(padded[1:] != padded[:-1])
    return list(zip(changes[0::2].tolist(), (changes[1::2] - 1).tolist()))


def find_boxes_containing_data(array: np.ndarray, nodata_value) -> List[Rect]:
    """
    Find boxes in a 2D array which together contain all values except ``nodata_value``.

    The array is split along axis 0 at rows containing only nodata, each
    resulting band is split along axis 1 the same way and every band/column
    block is tightened once more along axis 0.

    Args:
        array: 2-dimensional array
        nodata_value: value marking empty elements. ``None`` treats every
            element as data, NaN matches NaN elements.

    Returns:
        List of ``Rect`` in array index space (``x`` = axis 0, ``y`` = axis 1,
        inclusive bounds). Empty for arrays containing only nodata.

    Notes:
        - Coverage is complete: no data element lies outside all boxes
        - Boxes are not minimal. Sparse clusters sharing rows and columns
          end up in one box, including the nodata elements between them
        - O(rows * cols) per pass, three passes
    """
    array = np.asarray(array)
    if array.ndim != 2:
        raise ValueError(f"Expected a 2-dimensional array, got {array.ndim} dimensions")

    mask = _data_mask(array, nodata_value)
    boxes = []
    for row_begin, row_end in _find_continuous_chunks_along_axis(mask, 0):
        band = mask[row_begin:row_end + 1, :]
        for col_begin, col_end in _find_continuous_chunks_along_axis(band, 1):
            block = band[:, col_begin:col_end + 1]

            # one more pass along axis 0 to get the specific rows of that column range
            for sub_begin, sub_end in _find_continuous_chunks_along_axis(block, 0):
                boxes.append(Rect(
                    row_begin + sub_begin,
                    col_begin,
                    row_begin + sub_end,
                    col_end,
                ))

    logger.debug("Found %d boxes containing data in array of shape %s", len(boxes), array.shape)
    return boxes


# --- Resolution matching ---

def area_rect(rect: Rect) -> float:
    """Area of a geographic (degree) rect on the sphere in square meters."""
    lambda_span = math.radians(rect.max_x - rect.min_x)
    sin_span = math.sin(math.radians(rect.max_y)) - math.sin(math.radians(rect.min_y))
    return abs(EARTH_RADIUS_M ** 2 * lambda_span * sin_span)


def array_bounding_rect(shape: Sequence[int], transform: Affine,
                        axis_order: AxisOrder = AxisOrder.YX) -> Rect:
    """Geographic rect spanned by the first and the last element of an array."""
    first = transform @ axis_order.to_transform_coordinate(0.0, 0.0)
    last = transform @ axis_order.to_transform_coordinate(float(shape[0] - 1), float(shape[1] - 1))
    return Rect.from_corners(first, last)


def nearest_h3_resolution(shape: Sequence[int], transform: Union[Affine, Sequence[float]],
                          search_mode: Union[str, SearchMode] = SearchMode.SMALLEST_AREA_DIFFERENCE,
                          axis_order: Union[str, AxisOrder] = AxisOrder.YX,
                          grid: Optional[GridSystem] = None) -> int:
    """
    Find the resolution whose cell area is closest to the area of a pixel.

    The pixel area is the area of the array's bounding box divided by the
    number of elements. Cell areas are calculated from the polygon of the
    cell containing the center of the array, not from the average areas of
    the resolutions.

    Args:
        shape: ``(n_axis0, n_axis1)`` shape of the array
        transform: ``Affine`` or six GDAL-ordered coefficients
        search_mode: ``SearchMode`` or its string name
        axis_order: ``AxisOrder`` or ``"yx"`` / ``"xy"``
        grid: grid system to use, defaults to H3

    Returns:
        The matching resolution

    Raises:
        EmptyArrayError: a dimension of ``shape`` is zero
        NoMatchingResolutionError: with ``INDEX_AREA_SMALLER_THAN_PIXEL_AREA``,
            when even the finest cells are larger than a pixel

    Example:
        >>> transform = Affine(0.0012, 0.0, 8.11, 0.0, -0.0012, 49.4)
        >>> h3accel.nearest_h3_resolution((2000, 2000), transform)
        10
    """
    grid = grid or default_grid()
    search_mode = SearchMode.parse(search_mode)
    axis_order = AxisOrder.parse(axis_order)
    transform = as_transform(transform)

    if len(shape) != 2:
        raise ValueError(f"Expected a 2-dimensional shape, got {tuple(shape)}")
    if shape[0] == 0 or shape[1] == 0:
        raise EmptyArrayError(f"Array of shape {tuple(shape)} is empty")

    bbox = array_bounding_rect(shape, transform, axis_order)
    area_pixel = area_rect(bbox) / (shape[0] * shape[1])
    center_x, center_y = bbox.center()

    area_difference = None
    for resolution in range(grid.min_resolution, grid.max_resolution + 1):
        area_cell = grid.cell_area(grid.cell_from_coordinate(center_x, center_y, resolution))

        if search_mode is SearchMode.INDEX_AREA_SMALLER_THAN_PIXEL_AREA:
            if area_cell <= area_pixel:
                logger.debug("Resolution %d: cell area %.2f <= pixel area %.2f",
                             resolution, area_cell, area_pixel)
                return resolution
        else:
            new_area_difference = abs(area_cell - area_pixel)
            if area_difference is not None and area_difference < new_area_difference:
                return resolution - 1
            area_difference = new_area_difference

    if search_mode is SearchMode.SMALLEST_AREA_DIFFERENCE:
        # the difference was still shrinking at the finest resolution
        return grid.max_resolution
    raise NoMatchingResolutionError(
        f"No resolution has cells smaller than the pixel area of {area_pixel:.6f} m²"
    )


# --- Conversion ---

def raster_to_cells(array: np.ndarray, transform: Union[Affine, Sequence[float]],
                    nodata_value, resolution: int,
                    axis_order: Union[str, AxisOrder] = AxisOrder.YX,
                    compact: bool = True,
                    grid: Optional[GridSystem] = None) -> Dict[object, np.ndarray]:
    """
    Convert a raster to grid cells grouped by pixel value.

    Every cell whose center falls on a pixel is assigned that pixel's
    value. Only the boxes found by ``find_boxes_containing_data`` are
    visited.

    Args:
        array: 2-dimensional array of pixel values
        transform: ``Affine`` or six GDAL-ordered coefficients
        nodata_value: pixel value to skip, ``None`` to keep all pixels
        resolution: resolution of the generated cells
        axis_order: ``AxisOrder`` or ``"yx"`` / ``"xy"``
        compact: replace complete child sets by their parents
        grid: grid system to use, defaults to H3

    Returns:
        Dict mapping each pixel value to a uint64 array of cells

    Raises:
        InvalidResolutionError: if the grid does not support ``resolution``
    """
    grid = grid or default_grid()
    resolution = grid.validate_resolution(resolution)
    axis_order = AxisOrder.parse(axis_order)
    transform = as_transform(transform)
    inverse = ~transform

    array = np.asarray(array)
    boxes = find_boxes_containing_data(array, nodata_value)
    mask = _data_mask(array, nodata_value)

    cells_by_value = defaultdict(set)
    for box in boxes:
        corners = [
            (box.min_x, box.min_y),
            (box.max_x + 1, box.min_y),
            (box.max_x + 1, box.max_y + 1),
            (box.min_x, box.max_y + 1),
        ]
        exterior = [transform @ axis_order.to_transform_coordinate(i, j) for i, j in corners]

        for cell in grid.polygon_to_cells(exterior, resolution):
            col, row = inverse @ grid.cell_center(cell)
            i, j = axis_order.from_transform_coordinate(col, row)
            i, j = int(math.floor(i)), int(math.floor(j))
            if not (box.min_x <= i <= box.max_x and box.min_y <= j <= box.max_y):
                continue
            if mask[i, j]:
                value = array[i, j]
                cells_by_value[value.item() if hasattr(value, "item") else value].add(cell)

    result = {}
    for value, cells in cells_by_value.items():
        if compact:
            cells = grid.compact(cells)
        result[value] = np.array(sorted(cells), dtype=np.uint64)

    logger.debug("Converted %d boxes to cells of %d distinct values at resolution %d",
                 len(boxes), len(result), resolution)
    return result
