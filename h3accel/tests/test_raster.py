"""
Tests for the raster preprocessing module.

Covers box clustering, resolution matching and the conversion of arrays
to grid cells.
"""

import warnings

import numpy as np
import pytest
from affine import Affine
from h3.api import basic_int as h3int

import h3accel
from h3accel.raster import area_rect, array_bounding_rect


SPARSE_ARRAY = np.array([
    [0, 0, 0, 0, 0, 0, 0, 0, 0, 0, 0, 0],
    [0, 1, 0, 0, 0, 0, 0, 0, 1, 0, 0, 0],
    [0, 1, 1, 0, 0, 0, 0, 1, 1, 1, 0, 0],
    [0, 0, 0, 0, 0, 0, 0, 1, 1, 1, 0, 0],
    [0, 0, 0, 0, 0, 0, 0, 0, 1, 0, 0, 0],
    [0, 0, 0, 0, 0, 0, 0, 0, 0, 0, 0, 0],
    [0, 0, 0, 1, 0, 0, 0, 0, 0, 0, 0, 0],
    [0, 0, 0, 1, 0, 0, 0, 0, 0, 0, 1, 1],
    [0, 0, 0, 1, 1, 0, 0, 0, 0, 0, 1, 1],
])

# transform of a 2000x2000 raster with ~0.0012 degree pixels in south west Germany
RASTER_TRANSFORM = h3accel.transform_from_rasterio([
    0.0011965049999999992, 0.0, 8.11377, 0.0, -0.001215135, 49.40792
])


def clear_boxes(array, boxes, nodata_value=0):
    cleared = array.copy()
    for box in boxes:
        cleared[box.slices()] = nodata_value
    return cleared


class TestFindBoxesContainingData:
    """Test cases for box clustering."""

    def test_all_data_covered(self):
        """Clearing all boxes removes every data element."""
        boxes = h3accel.find_boxes_containing_data(SPARSE_ARRAY, 0)

        assert clear_boxes(SPARSE_ARRAY, boxes).sum() == 0

    def test_boxes_reduce_visited_elements(self):
        """The boxes cover less than half of the sparse array."""
        boxes = h3accel.find_boxes_containing_data(SPARSE_ARRAY, 0)
        n_elements_in_boxes = sum(box.n_elements() for box in boxes)

        assert len(boxes) >= 2
        assert n_elements_in_boxes < SPARSE_ARRAY.size / 2

    def test_expected_boxes(self):
        """The sparse array splits into its four clusters."""
        boxes = h3accel.find_boxes_containing_data(SPARSE_ARRAY, 0)

        assert sorted(boxes) == sorted([
            h3accel.Rect(1, 1, 2, 2),
            h3accel.Rect(1, 7, 4, 9),
            h3accel.Rect(6, 3, 8, 4),
            h3accel.Rect(7, 10, 8, 11),
        ])

    def test_every_box_contains_data(self):
        """No box consists of nodata only."""
        for box in h3accel.find_boxes_containing_data(SPARSE_ARRAY, 0):
            assert (SPARSE_ARRAY[box.slices()] != 0).any()

    def test_only_nodata(self):
        """An array without data yields no boxes."""
        assert h3accel.find_boxes_containing_data(np.zeros((5, 7), dtype=np.uint8), 0) == []

    def test_full_array(self):
        """An array without nodata is one box."""
        array = np.ones((3, 4))
        boxes = h3accel.find_boxes_containing_data(array, 0)

        assert boxes == [h3accel.Rect(0, 0, 2, 3)]

    def test_single_element(self):
        """A single data element results in a degenerate box."""
        array = np.zeros((6, 6), dtype=np.int32)
        array[4, 2] = 7
        boxes = h3accel.find_boxes_containing_data(array, 0)

        assert boxes == [h3accel.Rect(4, 2, 4, 2)]
        assert boxes[0].n_elements() == 1

    @pytest.mark.parametrize("seed", [0, 1, 2, 3, 4])
    def test_random_sparse_arrays_covered(self, seed):
        """Coverage holds for random sparse arrays."""
        rng = np.random.default_rng(seed)
        array = np.where(rng.random((40, 60)) < 0.02, rng.integers(1, 10, (40, 60)), 0)

        boxes = h3accel.find_boxes_containing_data(array, 0)

        assert clear_boxes(array, boxes).sum() == 0
        for box in boxes:
            assert (array[box.slices()] != 0).any()

    def test_nan_nodata(self):
        """NaN as nodata value matches NaN elements."""
        array = np.full((5, 5), np.nan)
        array[1, 1] = 3.0
        array[3, 4] = 1.5

        boxes = h3accel.find_boxes_containing_data(array, np.nan)

        assert h3accel.Rect(1, 1, 1, 1) in boxes
        assert h3accel.Rect(3, 4, 3, 4) in boxes

    def test_none_nodata(self):
        """Without a nodata value the whole array is data."""
        boxes = h3accel.find_boxes_containing_data(np.zeros((2, 3)), None)

        assert boxes == [h3accel.Rect(0, 0, 1, 2)]

    def test_not_2d(self):
        """Only 2-dimensional arrays are accepted."""
        with pytest.raises(ValueError, match="2-dimensional"):
            h3accel.find_boxes_containing_data(np.zeros((2, 3, 4)), 0)


class TestNearestH3Resolution:
    """Test cases for resolution matching."""

    def test_smallest_area_difference(self):
        """Pixels of ~0.0012 degrees match resolution 10."""
        resolution = h3accel.nearest_h3_resolution(
            (2000, 2000), RASTER_TRANSFORM, h3accel.SearchMode.SMALLEST_AREA_DIFFERENCE
        )
        assert resolution == 10

    def test_index_area_smaller_than_pixel_area(self):
        """The first resolution with cells smaller than those pixels is 11."""
        resolution = h3accel.nearest_h3_resolution(
            (2000, 2000), RASTER_TRANSFORM, h3accel.SearchMode.INDEX_AREA_SMALLER_THAN_PIXEL_AREA
        )
        assert resolution == 11

    def test_search_mode_strings(self):
        """Search modes can be given by name."""
        assert h3accel.nearest_h3_resolution((2000, 2000), RASTER_TRANSFORM, "min_diff") == 10
        assert h3accel.nearest_h3_resolution((2000, 2000), RASTER_TRANSFORM, "smaller_than_pixel") == 11
        assert h3accel.nearest_h3_resolution(
            (2000, 2000), RASTER_TRANSFORM, "smallest_area_difference", axis_order="xy"
        ) == 10

    def test_unknown_search_mode(self):
        with pytest.raises(ValueError, match="Unknown search mode"):
            h3accel.nearest_h3_resolution((10, 10), RASTER_TRANSFORM, "closest")

    def test_gdal_coefficients(self):
        """Transforms can be passed as GDAL ordered coefficients."""
        gdal = RASTER_TRANSFORM.to_gdal()
        assert h3accel.nearest_h3_resolution((2000, 2000), gdal) == 10

    @pytest.mark.parametrize("shape", [(0, 10), (10, 0), (0, 0)])
    def test_empty_array(self, shape):
        """Shapes with a zero dimension are rejected."""
        with pytest.raises(h3accel.EmptyArrayError, match="empty"):
            h3accel.nearest_h3_resolution(shape, RASTER_TRANSFORM)

    @pytest.mark.parametrize("pixel_size", [0.5, 0.05, 0.004, 0.0003, 0.00002])
    def test_smaller_than_pixel_never_coarser(self, pixel_size):
        """Cells smaller than the pixel are never coarser than the closest cells."""
        transform = Affine(pixel_size, 0.0, 10.0, 0.0, -pixel_size, 50.0)

        closest = h3accel.nearest_h3_resolution(
            (100, 100), transform, h3accel.SearchMode.SMALLEST_AREA_DIFFERENCE
        )
        smaller = h3accel.nearest_h3_resolution(
            (100, 100), transform, h3accel.SearchMode.INDEX_AREA_SMALLER_THAN_PIXEL_AREA
        )
        assert smaller >= closest

    def test_pixels_smaller_than_finest_cells(self):
        """Tiny pixels match the finest resolution, but no cell is smaller than them."""
        transform = Affine(1e-7, 0.0, 10.0, 0.0, -1e-7, 50.0)

        assert h3accel.nearest_h3_resolution(
            (100, 100), transform, h3accel.SearchMode.SMALLEST_AREA_DIFFERENCE
        ) == 15
        with pytest.raises(h3accel.NoMatchingResolutionError):
            h3accel.nearest_h3_resolution(
                (100, 100), transform, h3accel.SearchMode.INDEX_AREA_SMALLER_THAN_PIXEL_AREA
            )

    def test_huge_pixels(self):
        """Pixels larger than the coarsest cells match resolution 0."""
        transform = Affine(80.0, 0.0, -40.0, 0.0, -80.0, 80.0)

        assert h3accel.nearest_h3_resolution((2, 2), transform, "min_diff") == 0
        assert h3accel.nearest_h3_resolution((2, 2), transform, "smaller_than_pixel") == 0


class TestAreaHelpers:
    """Test cases for the area helpers."""

    def test_area_rect_one_degree_at_equator(self):
        """One square degree at the equator is about 12,364 km²."""
        area = area_rect(h3accel.Rect(0.0, 0.0, 1.0, 1.0))
        assert area == pytest.approx(12.364e9, rel=1e-3)

    def test_area_rect_shrinks_towards_poles(self):
        assert area_rect(h3accel.Rect(0.0, 60.0, 1.0, 61.0)) < area_rect(h3accel.Rect(0.0, 0.0, 1.0, 1.0))

    def test_array_bounding_rect_axis_order(self):
        """Axis order decides which array axis maps to x."""
        transform = Affine(1.0, 0.0, 0.0, 0.0, -1.0, 0.0)

        yx = array_bounding_rect((3, 5), transform, h3accel.AxisOrder.YX)
        xy = array_bounding_rect((3, 5), transform, h3accel.AxisOrder.XY)

        assert yx == h3accel.Rect(0.0, -2.0, 4.0, 0.0)
        assert xy == h3accel.Rect(0.0, -4.0, 2.0, 0.0)


class TestRasterToCells:
    """Test cases for the conversion of arrays to cells."""

    @pytest.fixture
    def raster(self):
        """Two small clusters of values with ~1 km pixels."""
        array = np.array([
            [1, 1, 0, 0],
            [1, 1, 0, 0],
            [0, 0, 0, 2],
            [0, 0, 0, 2],
        ], dtype=np.uint8)
        transform = Affine(0.01, 0.0, 8.0, 0.0, -0.01, 49.0)
        return array, transform

    def test_values_present(self, raster):
        """Every data value gets cells, nodata does not."""
        array, transform = raster
        result = h3accel.raster_to_cells(array, transform, 0, 9)

        assert set(result.keys()) == {1, 2}
        assert all(len(cells) > 0 for cells in result.values())

    def test_cell_centers_on_matching_pixels(self, raster):
        """Uncompacted cells lie on pixels of their value."""
        array, transform = raster
        inverse = ~transform
        result = h3accel.raster_to_cells(array, transform, 0, 9, compact=False)

        for value, cells in result.items():
            assert cells.dtype == np.uint64
            for cell in cells.tolist():
                assert h3int.get_resolution(cell) == 9
                lat, lng = h3int.cell_to_latlng(cell)
                col, row = inverse @ (lng, lat)
                assert array[int(np.floor(row)), int(np.floor(col))] == value

    def test_compacted_cells_cover_the_same_cells(self, raster):
        """Compaction does not change the covered area."""
        array, transform = raster
        compacted = h3accel.raster_to_cells(array, transform, 0, 10, compact=True)
        plain = h3accel.raster_to_cells(array, transform, 0, 10, compact=False)

        for value in plain:
            uncompacted = set(h3int.uncompact_cells(compacted[value].tolist(), 10))
            assert uncompacted == set(plain[value].tolist())

    def test_no_transform_deprecation_warnings(self, raster):
        """Transforms are applied with the matmul operator."""
        array, transform = raster
        with warnings.catch_warnings():
            warnings.simplefilter("error", PendingDeprecationWarning)
            h3accel.nearest_h3_resolution(array.shape, transform)
            h3accel.raster_to_cells(array, transform, 0, 9)

    def test_invalid_resolution(self, raster):
        array, transform = raster
        with pytest.raises(h3accel.InvalidResolutionError):
            h3accel.raster_to_cells(array, transform, 0, 16)

    def test_only_nodata(self, raster):
        _, transform = raster
        assert h3accel.raster_to_cells(np.zeros((3, 3)), transform, 0, 8) == {}
