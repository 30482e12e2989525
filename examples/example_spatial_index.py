"""
Example usage of the spatial index.

This example demonstrates how to:
1. Load a column of H3 identifiers from a pandas DataFrame
2. Build a PackedSpatialIndex over it
3. Filter the DataFrame with envelope and distance queries
"""

import sys
import os
sys.path.insert(0, os.path.dirname(os.path.dirname(__file__)))

import h3accel
import pandas as pd
from h3.api import basic_int as h3int


def main():
    print("=" * 70)
    print("h3accel - Spatial Index")
    print("=" * 70)
    print()

    # Step 1: Sample data, one cell per city plus a missing value
    print("[1/3] Creating sample data...")
    cities = pd.DataFrame({
        'name': ['Heidelberg', 'Mannheim', 'Berlin', 'Paris', 'unknown'],
        'lat': [49.4094, 49.4875, 52.5200, 48.8566, None],
        'lng': [8.6937, 8.4660, 13.4050, 2.3522, None],
    })
    # object dtype, a float column would round the 64-bit identifiers
    cities['h3index'] = pd.Series([
        h3int.latlng_to_cell(lat, lng, 7) if pd.notna(lat) else None
        for lat, lng in zip(cities['lat'], cities['lng'])
    ], dtype='object')
    column = h3accel.load_index_column(cities, 'h3index')
    print(f"  Rows: {len(cities)}")
    print()

    # Step 2: Build the index
    print("[2/3] Building spatial index...")
    index = h3accel.build_spatial_index(column)
    print(f"  {index}")
    print(f"  Extent: {index.bounding_rect()}")
    print()

    # Step 3: Queries
    print("[3/3] Querying...")
    rhine_neckar = h3accel.Rect(8.3, 49.3, 8.8, 49.6)
    mask = index.envelopes_intersect(rhine_neckar)
    print(f"  Within {rhine_neckar}:")
    print(f"    {cities.loc[mask, 'name'].tolist()}")

    mask = index.envelopes_within_distance(8.69, 49.41, 0.5 ** 2)
    print("  Within 0.5 degrees of Heidelberg:")
    print(f"    {cities.loc[mask, 'name'].tolist()}")
    print()

    print("=" * 70)
    print("Example completed successfully!")
    print("=" * 70)


if __name__ == "__main__":
    main()
