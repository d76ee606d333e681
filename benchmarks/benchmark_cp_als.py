"""
Benchmark for CP-ALS and Tucker fit performance.

Measures:
- CP-ALS time per sweep vs. rank
- CP-ALS time per sweep vs. tensor size
- HOSVD vs. HOOI time and error
- Allocating vs. destination-buffer contraction

Usage:
    python benchmarks/benchmark_cp_als.py
"""

import time
import warnings

import numpy as np

from multilinear import (
    CPALSConfig,
    TuckerConfig,
    candecomp,
    contract_matrices,
    contract_matrices_into,
    hosvd,
    tucker,
)


def random_cp_tensor(shape, rank, rng):
    factors = [rng.standard_normal((d, rank)) for d in shape]
    T = np.zeros(shape)
    for j in range(rank):
        outer = factors[0][:, j]
        for F in factors[1:]:
            outer = np.multiply.outer(outer, F[:, j])
        T += outer
    return T


def benchmark_rank_scaling() -> None:
    """Benchmark CP-ALS sweep time vs. rank."""
    print("=" * 70)
    print("BENCHMARK 1: CP-ALS Sweep Time vs. Rank")
    print("=" * 70)

    rng = np.random.default_rng(0)
    shape = (40, 50, 60)
    max_iter = 20

    print(f"\nTensor shape: {shape}, {max_iter} sweeps")
    print(f"{'Rank':>6} {'Total (ms)':>12} {'Per sweep (ms)':>16} {'Error':>12}")
    print("-" * 50)

    for rank in [1, 2, 4, 8, 16]:
        T = random_cp_tensor(shape, rank, rng)
        config = CPALSConfig(max_iter=max_iter, tol=0.0, error_tol=0.0, random_state=0)

        with warnings.catch_warnings():
            warnings.simplefilter("ignore", UserWarning)
            start = time.perf_counter()
            cp = candecomp(T, rank, config=config)
            elapsed = (time.perf_counter() - start) * 1000

        print(f"{rank:6} {elapsed:12.2f} {elapsed / cp.iterations:16.3f} {cp.error:12.2e}")


def benchmark_size_scaling() -> None:
    """Benchmark CP-ALS sweep time vs. tensor size."""
    print("\n" + "=" * 70)
    print("BENCHMARK 2: CP-ALS Sweep Time vs. Tensor Size")
    print("=" * 70)

    rng = np.random.default_rng(1)
    rank = 4
    max_iter = 10

    print(f"\nRank: {rank}, {max_iter} sweeps")
    print(f"{'Shape':>18} {'Elements':>12} {'Per sweep (ms)':>16}")
    print("-" * 50)

    for d in [10, 20, 40, 80]:
        shape = (d, d, d)
        T = random_cp_tensor(shape, rank, rng)
        config = CPALSConfig(max_iter=max_iter, tol=0.0, error_tol=0.0, random_state=0)

        with warnings.catch_warnings():
            warnings.simplefilter("ignore", UserWarning)
            start = time.perf_counter()
            candecomp(T, rank, config=config)
            elapsed = (time.perf_counter() - start) * 1000

        print(f"{str(shape):>18} {T.size:12,} {elapsed / max_iter:16.3f}")


def benchmark_tucker() -> None:
    """Compare one-shot HOSVD against HOOI."""
    print("\n" + "=" * 70)
    print("BENCHMARK 3: HOSVD vs. HOOI")
    print("=" * 70)

    rng = np.random.default_rng(2)
    T = rng.standard_normal((30, 40, 50))

    print(f"\nTensor shape: {T.shape} (Gaussian, no low-rank structure)")
    print(f"{'Core dims':>14} {'HOSVD (ms)':>12} {'HOSVD err':>12} {'HOOI (ms)':>12} {'HOOI err':>12}")
    print("-" * 66)

    for r in [2, 5, 10]:
        start = time.perf_counter()
        h = hosvd(T, r)
        t_hosvd = (time.perf_counter() - start) * 1000

        with warnings.catch_warnings():
            warnings.simplefilter("ignore", UserWarning)
            start = time.perf_counter()
            hooi = tucker(T, r, config=TuckerConfig(max_iter=20))
            t_hooi = (time.perf_counter() - start) * 1000

        print(f"{str((r, r, r)):>14} {t_hosvd:12.2f} {h.error:12.6f} {t_hooi:12.2f} {hooi.error:12.6f}")


def benchmark_destination_buffer() -> None:
    """Allocating contraction vs. writing into a preallocated buffer."""
    print("\n" + "=" * 70)
    print("BENCHMARK 4: Allocating vs. Destination-Buffer Contraction")
    print("=" * 70)

    rng = np.random.default_rng(3)
    T = rng.standard_normal((60, 60, 60))
    U = [rng.standard_normal((60, 8)) for _ in range(3)]
    dest = np.empty((8, 8, 8))
    n_runs = 50

    start = time.perf_counter()
    for _ in range(n_runs):
        contract_matrices(T, U)
    t_alloc = (time.perf_counter() - start) / n_runs * 1000

    start = time.perf_counter()
    for _ in range(n_runs):
        contract_matrices_into(dest, T, U)
    t_into = (time.perf_counter() - start) / n_runs * 1000

    print(f"\n{'Variant':>20} {'Time (ms)':>12}")
    print("-" * 34)
    print(f"{'allocating':>20} {t_alloc:12.3f}")
    print(f"{'destination buffer':>20} {t_into:12.3f}")


def main():
    """Run all decomposition benchmarks."""
    print("\n" + "=" * 70)
    print("MULTILINEAR DECOMPOSITION BENCHMARK SUITE")
    print("=" * 70)

    benchmark_rank_scaling()
    benchmark_size_scaling()
    benchmark_tucker()
    benchmark_destination_buffer()

    print("\n" + "=" * 70)
    print("SUMMARY")
    print("=" * 70)
    print("\nComplexity per CP-ALS sweep: O(N × prod(d) × r)")
    print("  - N: number of modes")
    print("  - d: mode sizes")
    print("  - r: CP rank")


if __name__ == "__main__":
    main()
