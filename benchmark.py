#!/usr/bin/env python3
"""
Performance benchmark comparing a linear scan vs the packed Hilbert R-tree
Tests range queries over increasingly large columns of H3 cells
"""
import time

import numpy as np
from h3.api import basic_int as h3int

import h3accel
from h3accel.geometry import Rect


def random_cells(n, resolution=9, seed=42):
    """Random cells in a 2 x 2 degree window around Heidelberg"""
    rng = np.random.default_rng(seed)
    lats = rng.uniform(48.4, 50.4, n)
    lngs = rng.uniform(7.7, 9.7, n)
    return [h3int.latlng_to_cell(lat, lng, resolution) for lat, lng in zip(lats, lngs)]


def benchmark_size(n_cells, n_queries=100, seed=42):
    """Benchmark both approaches with a column of the given size"""
    rng = np.random.default_rng(seed)
    cells = random_cells(n_cells, seed=seed)

    start = time.time()
    index = h3accel.build_spatial_index(cells)
    time_build = time.time() - start

    # the rects of all cells, as the linear scan sees them
    rects = np.array([h3accel.H3GridSystem().bounding_rect(c) for c in cells])

    queries = []
    for _ in range(n_queries):
        x, y = rng.uniform(7.7, 9.5), rng.uniform(48.4, 50.2)
        queries.append(Rect(x, y, x + 0.05, y + 0.05))

    # Benchmark linear scan
    start = time.time()
    scan_masks = [
        (rects[:, 0] <= q.max_x) & (rects[:, 2] >= q.min_x) & (rects[:, 1] <= q.max_y) & (rects[:, 3] >= q.min_y)
        for q in queries
    ]
    time_scan = time.time() - start

    # Benchmark index
    start = time.time()
    index_masks = [index.envelopes_intersect(q).to_numpy() for q in queries]
    time_index = time.time() - start

    # Verify results match
    match_correct = all(np.array_equal(a, b) for a, b in zip(scan_masks, index_masks))

    return {
        'n_cells': n_cells,
        'time_build': time_build,
        'time_scan': time_scan,
        'time_index': time_index,
        'speedup': time_scan / time_index if time_index > 0 else float('inf'),
        'match_correct': match_correct,
    }


def print_results_table(results):
    """Print formatted results table"""
    print("\n" + "="*90)
    print(f"{'Cells':>10} | {'Build':>10} | {'Scan':>10} | {'Index':>10} | {'Speedup':>10} | {'Match':>7}")
    print(f"{'':>10} | {'Time (s)':>10} | {'Time (s)':>10} | {'Time (s)':>10} | {'(x)':>10} | {'OK':>7}")
    print("="*90)

    for r in results:
        speedup_str = f"{r['speedup']:.2f}x"
        match_str = "✓" if r['match_correct'] else "✗"

        print(f"{r['n_cells']:>10,} | {r['time_build']:>10.4f} | "
              f"{r['time_scan']:>10.4f} | {r['time_index']:>10.4f} | "
              f"{speedup_str:>10} | {match_str:>7}")

    print("="*90)


def main():
    print("\n" + "="*40)
    print("   SPATIAL INDEX - PERFORMANCE BENCHMARK")
    print("="*40 + "\n")

    test_sizes = [1000, 5000, 20000, 100000]

    results = []
    for i, n_cells in enumerate(test_sizes, 1):
        print(f"[{i}/{len(test_sizes)}] Benchmarking {n_cells:,} cells...", end=" ", flush=True)
        result = benchmark_size(n_cells)
        results.append(result)
        print(f"Done! Speedup: {result['speedup']:.2f}x")

    print_results_table(results)

    print("\nKEY INSIGHTS:")
    print("-" * 90)
    print("• Linear scan complexity: O(N) per query")
    print("• Packed Hilbert R-tree: O(N log N) construction + O(log N + K) per query")
    print("• The build cost is paid once per column snapshot")

    print("\n" + "="*90)
    print("  Benchmark Complete!")
    print("="*90 + "\n")


if __name__ == "__main__":
    main()
