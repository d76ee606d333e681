import numpy as np
from multilinear import CPALSConfig, candecomp, hosvd, tucker, rel_residue

rng = np.random.default_rng(1)

# Sum of two rank-1 terms, sizes 10 x 20 x 30
T = np.zeros((10, 20, 30))
for _ in range(2):
    a, b, c = rng.standard_normal(10), rng.standard_normal(20), rng.standard_normal(30)
    T += np.einsum("i,j,k->ijk", a, b, c)

# CP-ALS recovers the two components
cp = candecomp(T, 2, config=CPALSConfig(max_iter=1000, random_state=1, verbose=True))
print(cp)
print("weights:", cp.lambdas)
print("factor shapes:", [F.shape for F in cp.factors])
print("residue of compose():", rel_residue(T, cp.compose()))

# The same tensor has multilinear rank (2, 2, 2)
print(hosvd(T, 2))
print(tucker(T, (2, 2, 2)))

# Save factors for reuse
np.savez("cp_factors.npz", *cp.factors, lambdas=cp.lambdas)
