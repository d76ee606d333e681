import numpy as np


def test_hosvd_full_core():
    """Test 1: HOSVD with full core dims is exact."""
    from multilinear import hosvd

    T = np.random.randn(6, 7, 8)
    result = hosvd(T, T.shape)

    assert result.error < 1e-12, f"Full HOSVD failed: error={result.error}"
    print("✓ Full-core HOSVD test passed")


def test_cp_rank1():
    """Test 2: A rank-1 tensor is recovered by rank-1 CP in a few sweeps."""
    from multilinear import candecomp, CPALSConfig

    a, b, c = np.random.randn(5), np.random.randn(6), np.random.randn(7)
    T = np.einsum("i,j,k->ijk", a, b, c)
    cp = candecomp(T, 1, config=CPALSConfig(random_state=0))

    scale = np.linalg.norm(a) * np.linalg.norm(b) * np.linalg.norm(c)
    assert cp.error < 1e-10, f"Rank-1 CP failed: error={cp.error}"
    assert abs(abs(cp.lambdas[0]) - scale) < 1e-8 * scale
    print(f"✓ Rank-1 CP test passed ({cp.iterations} sweeps)")


def test_hooi_improves_hosvd():
    """Test 3: HOOI never fits worse than its HOSVD start."""
    from multilinear import hosvd, tucker

    T = np.random.randn(8, 9, 10)
    start = hosvd(T, 3)
    refined = tucker(T, 3)

    assert refined.error <= start.error + 1e-10
    print(f"✓ HOOI test passed (HOSVD {start.error:.4f} -> HOOI {refined.error:.4f})")


def test_noisy_cp():
    """Test 4: CP error on a noisy rank-3 tensor tracks the noise level."""
    from multilinear import candecomp, CPALSConfig

    rng = np.random.default_rng(0)
    factors = [rng.standard_normal((d, 3)) for d in (10, 11, 12)]
    T = np.einsum("ir,jr,kr->ijk", *factors)
    noise = 1e-3 * rng.standard_normal(T.shape)
    cp = candecomp(T + noise, 3, config=CPALSConfig(max_iter=500, random_state=0))

    level = np.linalg.norm(noise) / np.linalg.norm(T + noise)
    assert cp.error < 2 * level, f"Noisy CP failed: error={cp.error}, noise={level}"
    print(f"✓ Noisy CP test passed (error {cp.error:.2e}, noise {level:.2e})")


if __name__ == "__main__":
    np.random.seed(42)
    test_hosvd_full_core()
    test_cp_rank1()
    test_hooi_improves_hosvd()
    test_noisy_cp()
    print("\nAll validation tests passed.")
