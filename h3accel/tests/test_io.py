"""
Tests for loading identifier columns.
"""

import numpy as np
import pandas as pd
import pytest

import h3accel
from h3accel.io import iter_valid_identifiers

CELL = 0x8A1FB46622DFFFF


class TestToIndexColumn:
    """Test cases for the normalization of identifier columns."""

    def test_list_with_missing_values(self):
        column = h3accel.to_index_column([CELL, None, np.nan, pd.NA])

        assert str(column.dtype) == "UInt64"
        assert column.isna().tolist() == [False, True, True, True]
        assert int(column.iloc[0]) == CELL

    def test_hex_strings(self):
        column = h3accel.to_index_column(["8a1fb46622dffff", None])
        assert int(column.iloc[0]) == CELL

    def test_invalid_string(self):
        with pytest.raises(ValueError, match="Not a hexadecimal identifier"):
            h3accel.to_index_column(["not-a-cell"])

    def test_fractional_float(self):
        with pytest.raises(ValueError, match="Not an integer identifier"):
            h3accel.to_index_column([1.5])

    def test_small_integral_float(self):
        column = h3accel.to_index_column([5.0, np.nan])
        assert column.tolist()[0] == 5
        assert column.isna().tolist() == [False, True]

    def test_float_series_too_large_for_exact_identifiers(self):
        """Identifiers rounded by a float64 column are rejected instead of silently changed."""
        series = pd.Series([0x87195DA49FFFFFF, None])
        assert series.dtype == np.float64

        with pytest.raises(ValueError, match="too large to be stored exactly"):
            h3accel.to_index_column(series)

    def test_float_array_too_large_for_exact_identifiers(self):
        with pytest.raises(ValueError, match="too large to be stored exactly"):
            h3accel.to_index_column(np.array([float(CELL), np.nan]))

    def test_numpy_array(self):
        column = h3accel.to_index_column(np.array([CELL, 1], dtype=np.uint64), name="cell")

        assert column.name == "cell"
        assert column.tolist() == [CELL, 1]

    def test_numpy_array_not_1d(self):
        with pytest.raises(ValueError, match="1-dimensional"):
            h3accel.to_index_column(np.zeros((2, 2), dtype=np.uint64))

    def test_series_keeps_index_and_name(self):
        series = pd.Series([CELL, None], index=[10, 20], name="h3", dtype="object")
        column = h3accel.to_index_column(series)

        assert list(column.index) == [10, 20]
        assert column.name == "h3"
        assert column.isna().tolist() == [False, True]

    def test_iter_valid_identifiers(self):
        column = h3accel.to_index_column([None, CELL, None, 5])
        assert list(iter_valid_identifiers(column)) == [(1, CELL), (3, 5)]


class TestLoadIndexColumn:
    """Test cases for loading columns from DataFrames."""

    def test_load(self):
        df = pd.DataFrame({"cell": pd.Series([CELL, None], dtype="object"), "value": [1, 2]})
        column = h3accel.load_index_column(df, "cell")

        assert column.name == "cell"
        assert int(column.iloc[0]) == CELL
        assert column.isna().tolist() == [False, True]

    def test_missing_column(self):
        df = pd.DataFrame({"value": [1, 2]})
        with pytest.raises(ValueError, match="missing required columns"):
            h3accel.load_index_column(df, "cell")
