"""
Input module for loading columns of grid identifiers.

This module normalizes the different containers identifier columns arrive
in into one nullable pandas representation, so the indexing and graph
modules only deal with a single format.

Column Format Standards:
    - An ordered sequence of 64-bit cell or directed edge identifiers
    - Accepted containers: list, tuple, numpy array, pandas Series
    - Accepted values: int, H3 hex strings (e.g. "8a1fb46622dffff"),
      None / NaN / pd.NA for missing entries
    - Normalized to a pandas Series of dtype "UInt64" keeping the original
      index, so row positions survive every operation
"""

from typing import Iterator, Optional, Sequence, Tuple, Union

import numpy as np
import pandas as pd

ColumnLike = Union[pd.Series, np.ndarray, Sequence]

INDEX_DTYPE = "UInt64"

# largest integer a float64 holds without rounding
MAX_EXACT_FLOAT = 2 ** 53


def _parse_identifier(value) -> Optional[int]:
    if value is None or value is pd.NA:
        return None
    if isinstance(value, str):
        try:
            return int(value, 16)
        except ValueError:
            raise ValueError(f"Not a hexadecimal identifier: {value!r}")
    if isinstance(value, (float, np.floating)):
        if np.isnan(value):
            return None
        if not float(value).is_integer():
            raise ValueError(f"Not an integer identifier: {value!r}")
        if abs(value) > MAX_EXACT_FLOAT:
            raise ValueError(
                f"Identifier {value!r} is too large to be stored exactly as float, "
                "load the column with an integer or object dtype"
            )
    return int(value)


def to_index_column(values: ColumnLike, name: Optional[str] = None) -> pd.Series:
    """
    Normalize a column of identifiers to a nullable "UInt64" Series.

    Args:
        values: identifiers, missing entries allowed
        name: name for the resulting Series, defaults to the input name

    Returns:
        pandas Series with dtype "UInt64" and the index of ``values`` when
        it is a Series, a RangeIndex otherwise

    Raises:
        ValueError: if a value can not be read as an identifier, including
            floats above 2**53 which lost precision already (a Series of
            identifiers with missing values defaults to float64)

    Example:
        >>> column = h3accel.to_index_column([0x8a1fb46622dffff, None, "8a1fb46622d7fff"])
        >>> column.isna().tolist()
        [False, True, False]
    """
    if isinstance(values, pd.Series):
        index = values.index
        name = values.name if name is None else name
        if str(values.dtype) == INDEX_DTYPE:
            return values.rename(name).copy()
        raw = values.tolist()
    elif isinstance(values, np.ndarray):
        if values.ndim != 1:
            raise ValueError(f"Identifier column must be 1-dimensional, got shape {values.shape}")
        index = None
        if values.dtype.kind in "iu":
            return pd.Series(values.astype(np.uint64), dtype=INDEX_DTYPE, name=name)
        raw = values.tolist()
    else:
        index = None
        raw = list(values)

    parsed = [_parse_identifier(v) for v in raw]
    return pd.Series(pd.array(parsed, dtype=INDEX_DTYPE), index=index, name=name)


def load_index_column(df: pd.DataFrame, column: str) -> pd.Series:
    """
    Load an identifier column from a DataFrame.

    Raises:
        ValueError: If the column is missing
    """
    if column not in df.columns:
        raise ValueError(f"DataFrame missing required columns: {[column]}")
    return to_index_column(df[column], name=column)


def iter_valid_identifiers(column: pd.Series) -> Iterator[Tuple[int, int]]:
    """Yield ``(row_position, identifier)`` for every non-missing entry."""
    missing = column.isna().to_numpy()
    values = column.to_numpy(dtype=np.uint64, na_value=0)
    for position in np.flatnonzero(~missing):
        yield int(position), int(values[position])
