"""
Example usage of long edges.

This example demonstrates how to:
1. Fold a path of directed edges into a LongEdge
2. Inspect the compressed path
3. Compress a small edge graph with a branch
"""

import sys
import os
sys.path.insert(0, os.path.dirname(os.path.dirname(__file__)))

import h3accel
from h3.api import basic_int as h3int


def path_edges(cells):
    return [h3int.cells_to_directed_edge(a, b) for a, b in zip(cells[:-1], cells[1:])]


def main():
    print("=" * 70)
    print("h3accel - Long Edges")
    print("=" * 70)
    print()

    # Step 1: A path of resolution 10 cells
    print("[1/3] Creating edge path...")
    start = h3int.latlng_to_cell(49.40, 8.68, 10)
    end = h3int.latlng_to_cell(49.43, 8.74, 10)
    cells = list(h3int.grid_path_cells(start, end))
    edges = path_edges(cells)
    print(f"  Cells: {len(cells)}")
    print(f"  Edges: {len(edges)}")
    print()

    # Step 2: The long edge
    print("[2/3] Building long edge...")
    long_edge = h3accel.LongEdge.from_edges(edges)
    print(f"  {long_edge}")
    print(f"  Uncompressed size: {8 * len(edges)} bytes")
    print(f"  Compressed size:   {long_edge.edge_path.nbytes} bytes")
    print(f"  Line length:       {long_edge.to_linestring().length:.5f} degrees")
    elsewhere = {h3int.latlng_to_cell(52.52, 13.405, 10)}
    print(f"  Disjoint from Berlin: {long_edge.is_disjoint(elsewhere)}")
    print()

    # Step 3: A graph with a branch in the middle
    print("[3/3] Compressing edge graph...")
    middle = cells[len(cells) // 2]
    side = next(c for c in h3int.grid_ring(middle, 1) if c not in cells)
    branch = h3int.cells_to_directed_edge(middle, side)
    compressed = h3accel.compress_edge_graph(edges + [branch])
    print(f"  Long edges: {len(compressed.long_edges)}")
    for le in compressed.long_edges:
        print(f"    {le.h3edges_len()} edges, {le.origin_cell():x} -> {le.destination_cell():x}")
    print(f"  Remaining edges: {len(compressed.remaining_edges)}")
    print()

    print("=" * 70)
    print("Example completed successfully!")
    print("=" * 70)


if __name__ == "__main__":
    main()
