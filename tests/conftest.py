import numpy as np
import pytest

from ngsdiseq import shared


def simulate(M, N, P, depth=15, phi=0.1, missing=0.1, seed=1):
	"""Read counts of N individuals at M loci under the beta-binomial model."""
	rng = np.random.default_rng(seed)
	f = rng.uniform(0.1, 0.9, size=M)
	e = np.full(M, 0.01)
	c = 1.0/phi - 1.0
	G = np.zeros((N, M), dtype=int)
	for l in range(M):
		p = rng.beta(f[l]*c, (1.0 - f[l])*c, size=N)
		G[:, l] = rng.binomial(P, p)
	T = rng.poisson(depth, size=(N, M)).astype(np.int32)
	g = G/P
	R = rng.binomial(T, g*(1.0 - e) + (1.0 - g)*e).astype(np.int32)
	mask = rng.uniform(size=(N, M)) < missing
	T[mask] = shared.MISSING
	R[mask] = shared.MISSING
	return T, R, e


@pytest.fixture
def diploid():
	return simulate(20, 15, 2)


@pytest.fixture
def tetraploid():
	return simulate(12, 10, 4, depth=30, seed=7)


@pytest.fixture
def scenario():
	"""One locus, three diploids, the first one unobserved."""
	T = np.array([[shared.MISSING], [10], [10]], dtype=np.int32)
	R = np.array([[shared.MISSING], [5], [9]], dtype=np.int32)
	e = np.array([0.01])
	return T, R, e


@pytest.fixture
def dispersed():
	return simulate(30, 12, 2, depth=20, phi=0.3, seed=5)
