"""
h3accel - Acceleration primitives for hexagonal grid workloads

A Python library of indexing and compression building blocks for large-scale
analytics on H3 cells and directed edges.

Main Components:
    - find_boxes_containing_data: restrict raster conversion to populated regions
    - nearest_h3_resolution: match the grid resolution to the pixel size of a raster
    - raster_to_cells: convert a raster to compacted cells grouped by value
    - PackedSpatialIndex: range and distance queries over columns of identifiers
    - LongEdge: a continuous path of directed edges folded into one edge
    - compress_edge_graph: fold the chains of an edge graph into long edges
"""

from .compressed import CompressedEdgeBlock
from .errors import (
    EdgeEndpointInvalidError,
    EmptyArrayError,
    H3AccelError,
    InsufficientNumberOfEdgesError,
    InvalidResolutionError,
    NoMatchingResolutionError,
    SegmentedPathError,
    SpatialIndexError,
)
from .geometry import Rect
from .graph import CompressedGraph, compress_edge_graph
from .grid import GridSystem, H3GridSystem
from .io import load_index_column, to_index_column
from .longedge import LongEdge
from .raster import (
    AxisOrder,
    SearchMode,
    as_transform,
    find_boxes_containing_data,
    nearest_h3_resolution,
    raster_to_cells,
    transform_from_rasterio,
)
from .spatial_index import PackedSpatialIndex, build_spatial_index

__version__ = "0.1.0"
__all__ = [
    "AxisOrder",
    "CompressedEdgeBlock",
    "CompressedGraph",
    "EdgeEndpointInvalidError",
    "EmptyArrayError",
    "GridSystem",
    "H3AccelError",
    "H3GridSystem",
    "InsufficientNumberOfEdgesError",
    "InvalidResolutionError",
    "LongEdge",
    "NoMatchingResolutionError",
    "PackedSpatialIndex",
    "Rect",
    "SearchMode",
    "SegmentedPathError",
    "SpatialIndexError",
    "as_transform",
    "build_spatial_index",
    "compress_edge_graph",
    "find_boxes_containing_data",
    "load_index_column",
    "nearest_h3_resolution",
    "raster_to_cells",
    "to_index_column",
    "transform_from_rasterio",
]
