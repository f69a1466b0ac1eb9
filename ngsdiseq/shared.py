import numpy as np

# Sentinels
MISSING = -9 # Absent read count observation (and missing genotype call)
BADLIK = 0.0 # Neutral genotype log-likelihood of a missing observation

##### Functions #####
# Read matrix of read counts (individuals x loci)
def readCounts(path, N, M):
	C = np.loadtxt(path, dtype=np.int32, ndmin=2)
	assert C.shape == (N, M), \
		f"{path} has shape {C.shape[0]}x{C.shape[1]}, expected {N}x{M}!"
	return np.ascontiguousarray(C)

# Read vector of per-locus sequencing error rates
def readErrors(path, M):
	e = np.loadtxt(path, dtype=float, ndmin=1).ravel()
	assert e.shape[0] == M, \
		f"{path} has {e.shape[0]} error rates, expected {M}!"
	return np.ascontiguousarray(e)

# Sanity checks of loaded data
def checkInput(T, R, e):
	assert T.shape == R.shape, "Read count matrices must have the same shape!"
	assert e.shape[0] == T.shape[1], "Number of error rates must match number of loci!"
	mask = T != MISSING
	assert np.array_equal(mask, R != MISSING), \
		"Missing data must coincide in total and reference read counts!"
	assert np.all(T[mask] >= 0) and np.all(R[mask] >= 0), \
		"Read counts must be non-negative!"
	assert np.all(R[mask] <= T[mask]), \
		"Reference read counts cannot exceed total read counts!"
	assert np.all((e > 0.0) & (e < 1.0)), "Error rates must be in (0, 1)!"

# Initial allele frequencies and disequilibrium coefficients
def initParams(M, N, rng):
	f = rng.uniform(size=M)
	phi = 0.1*rng.uniform(size=N) + 0.01
	return f, phi

# Write genotype calls (individuals x loci)
def writeGeno(path, G):
	np.savetxt(path, G, fmt="%i", delimiter="\t")

# Write vector with one value per line
def writeVector(path, v):
	np.savetxt(path, v, fmt="%.7f")
