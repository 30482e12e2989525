"""
Example usage of the raster conversion.

This example demonstrates how to:
1. Find the boxes of a sparse raster which contain data
2. Pick the H3 resolution matching the pixel size
3. Convert the raster to compacted cells grouped by value
"""

import sys
import os
sys.path.insert(0, os.path.dirname(os.path.dirname(__file__)))

import h3accel
import numpy as np
from affine import Affine


def main():
    print("=" * 70)
    print("h3accel - Raster Conversion")
    print("=" * 70)
    print()

    # Step 1: A sparse land cover raster, 0 is nodata
    print("[1/3] Creating sample raster...")
    array = np.zeros((200, 300), dtype=np.uint8)
    array[20:60, 30:90] = 1
    array[120:180, 200:280] = 2
    array[130:140, 40:50] = 1
    transform = Affine(0.001, 0.0, 8.6, 0.0, -0.001, 49.45)
    print(f"  Shape: {array.shape}")
    print(f"  Transform: {tuple(transform)[:6]}")
    print()

    boxes = h3accel.find_boxes_containing_data(array, 0)
    print(f"  Boxes containing data: {len(boxes)}")
    for box in boxes:
        print(f"    {box} ({box.n_elements()} pixels)")
    print()

    # Step 2: Resolution matching
    print("[2/3] Matching resolution...")
    for mode in h3accel.SearchMode:
        resolution = h3accel.nearest_h3_resolution(array.shape, transform, search_mode=mode)
        print(f"  {mode.value:<40} -> resolution {resolution}")
    print()

    # Step 3: Conversion
    print("[3/3] Converting to cells...")
    resolution = h3accel.nearest_h3_resolution(array.shape, transform)
    cells = h3accel.raster_to_cells(array, transform, 0, resolution)
    for value, value_cells in sorted(cells.items()):
        print(f"  Value {value}: {len(value_cells)} compacted cells")
    print()

    print("=" * 70)
    print("Example completed successfully!")
    print("=" * 70)


if __name__ == "__main__":
    main()
