import threading
from enum import Enum

import numpy as np
from scipy.optimize import minimize_scalar

from ngsdiseq import diseq_cy
from ngsdiseq import shared

##### Disequilibrium model #####
class Status(Enum):
	RUNNING = 0
	CONVERGED = 1
	ITERATION_LIMIT_REACHED = 2

### Objective functions of the CM-step ###
class FreqObjective:
	"""Negative expected log-likelihood of a single site frequency.

	Captures the site index and reads the frozen coefficients and the current
	genotype posteriors of the model it is bound to.
	"""
	def __init__(self, model, l):
		self.model = model
		self.l = l

	def __call__(self, x):
		m = self.model
		return diseq_cy.freqLogLike(m.gLiks, m.gExp, m.obs, m.phi, self.l, x)

class PhiObjective:
	"""Negative expected log-likelihood of a single disequilibrium coefficient.

	The coefficient is converted to the beta shape sum without clamping.
	"""
	def __init__(self, model, i):
		self.model = model
		self.i = i

	def __call__(self, x):
		m = self.model
		return diseq_cy.phiLogLike(m.gLiks, m.gExp, m.obs, m.freqs, self.i, x)

# Bounded scalar minimization on [0, 1]
def localMin(fun, tole):
	res = minimize_scalar(fun, bounds=(0.0, 1.0), method="bounded", \
		options={"xatol":tole})
	return float(res.x), float(res.fun)

### Genotype log-likelihood tensor ###
def genoLiks(T, R, e, ploidy, t=1):
	N, M = T.shape
	assert R.shape == (N, M), "Read count matrices must have the same shape!"
	assert e.shape[0] == M, "Number of error rates must match number of loci!"
	assert ploidy > 0, "Please select a valid ploidy!"
	assert np.all((e > 0.0) & (e < 1.0)), "Error rates must be in (0, 1)!"
	G = np.zeros((M, N, ploidy + 1))
	diseq_cy.genoLiks(np.ascontiguousarray(T, dtype=np.int32), \
		np.ascontiguousarray(R, dtype=np.int32), \
		np.ascontiguousarray(e, dtype=float), G, shared.BADLIK, shared.MISSING, t)
	return G

### Fitting session ###
class DiseqModel:
	"""ECM fit of allele frequencies and disequilibrium coefficients.

	T and R are (N, L) matrices of total and reference read counts with
	MISSING marking absent observations, e holds one error rate per locus.
	gLiks holds genotype log-likelihoods. All parameter vectors and tensors
	are owned by the instance and sized once at construction.
	"""
	def __init__(self, T, R, e, ploidy, tole=1e-5, stop=1e-5, iter=1000, \
			rng=None, threads=1, verbose=True):
		assert tole > 0.0, "Please select a valid tolerance!"
		assert stop >= 0.0, "Please select a valid stop threshold!"
		assert iter > 0, "Please select a valid number of iterations!"
		assert threads > 0, "Please select a valid number of threads!"
		self.N, self.M = T.shape
		self.P = ploidy
		self.tole = tole
		self.stop = stop
		self.iter = iter
		self.threads = threads
		self.verbose = verbose
		if rng is None:
			rng = np.random.default_rng()

		# Data
		self.T = T
		self.R = R
		self.e = e
		self.obs = np.ascontiguousarray(T != shared.MISSING, dtype=np.uint8)
		self.gLiks = genoLiks(T, R, e, ploidy, threads)
		self.gExp = np.zeros_like(self.gLiks)

		# Parameters
		self.freqs, self.phi = shared.initParams(self.M, self.N, rng)
		self.perSiteLogLik = np.zeros(self.M)
		self.perIndLogLik = np.zeros(self.N)
		self.siteLogLik = np.zeros(self.M)

		# Entities without observations are never optimized
		self.infoLoci = self.obs.any(axis=0)
		self.infoInd = self.obs.any(axis=1)
		self.convergedLoci = ~self.infoLoci
		self.convergedInd = ~self.infoInd

		# Driver state
		self.status = Status.RUNNING
		self.iterations = 0
		self.logLiks = []

	# Genotype posteriors
	def eStep(self):
		diseq_cy.post(self.gLiks, self.obs, self.freqs, self.phi, self.gExp, \
			self.threads)

	# Optimize a contiguous chunk of loci
	def _updateLoci(self, loci):
		for l in loci:
			prev = self.freqs[l]
			x, fun = localMin(FreqObjective(self, l), self.tole)
			self.freqs[l] = x
			self.perSiteLogLik[l] = -fun
			if abs(x - prev) < self.stop:
				self.convergedLoci[l] = True

	# Optimize a contiguous chunk of individuals
	def _updateInd(self, inds):
		for i in inds:
			prev = self.phi[i]
			x, fun = localMin(PhiObjective(self, i), self.tole)
			self.phi[i] = x
			self.perIndLogLik[i] = -fun
			if abs(x - prev) < self.stop:
				self.convergedInd[i] = True

	def _chunked(self, target, idx):
		if (self.threads == 1) or (idx.shape[0] < 2):
			target(idx)
			return
		chunks = np.array_split(idx, min(self.threads, idx.shape[0]))
		threads = [threading.Thread(target=target, args=(chunk,)) \
			for chunk in chunks]
		for thread in threads:
			thread.start()
		for thread in threads:
			thread.join()

	# Conditional maximization of frequencies, then coefficients
	def mStep(self):
		self._chunked(self._updateLoci, np.flatnonzero(~self.convergedLoci))
		self._chunked(self._updateInd, np.flatnonzero(~self.convergedInd))

	# Observed data log-likelihood
	def calcLogLik(self):
		diseq_cy.loglike(self.gLiks, self.obs, self.freqs, self.phi, \
			self.siteLogLik, self.threads)
		return float(np.sum(self.siteLogLik))

	def checkConvergence(self):
		nLoci = int(np.sum(self.convergedLoci))
		nInd = int(np.sum(self.convergedInd))
		return (nLoci == self.M) and (nInd == self.N)

	### ECM algorithm ###
	def ecm(self):
		curr = 0.0
		for it in range(self.iter):
			prev = curr
			self.eStep()
			self.mStep()
			curr = self.calcLogLik()
			self.logLiks.append(curr)
			self.iterations = it + 1
			if self.verbose:
				print(f"Step: {it+1}\tlogLik: {curr:.16g}\tDiff: {curr - prev:.16g}")
			if self.checkConvergence() or (abs(curr - prev) < 1e-8):
				self.status = Status.CONVERGED
				break
		if self.status is Status.RUNNING:
			self.status = Status.ITERATION_LIMIT_REACHED
		if self.verbose:
			if self.status is Status.CONVERGED:
				print(f"ECM converged at iteration: {self.iterations}")
			else:
				print("ECM did not converge!")
		return self.status

	### Results ###
	# Genotype posteriors at the current parameters
	def estimatePost(self):
		E = np.zeros_like(self.gLiks)
		diseq_cy.post(self.gLiks, self.obs, self.freqs, self.phi, E, self.threads)
		return E

	# Most probable genotype dosages
	def callGeno(self):
		G = np.argmax(self.estimatePost(), axis=2).T.astype(np.int8)
		G[self.obs == 0] = shared.MISSING
		return G

	# Posterior expectation of the genotype dosages
	def estimateDosage(self):
		E = self.estimatePost()
		D = np.dot(E, np.arange(self.P + 1, dtype=float)).T
		D[self.obs == 0] = np.nan
		return D
