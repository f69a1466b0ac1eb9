"""Tests for the numerical kernels."""

import numpy as np
import pytest
from scipy.stats import betabinom, binom

from ngsdiseq import diseq_cy
from ngsdiseq import shared
from ngsdiseq.diseq import genoLiks


class TestPrimitives:
	@pytest.mark.parametrize("n,k,p", [(10, 5, 0.5), (10, 9, 0.01), (0, 0, 0.3), (25, 3, 0.2), (40000, 26000, 0.99)])
	def test_binom_logpdf(self, n, k, p):
		expected = binom.logpmf(k, n, p)
		assert diseq_cy.binom_logpdf(n, k, p) == pytest.approx(expected, rel=1e-9, abs=1e-9)

	def test_binom_logpdf_degenerate_probability(self):
		assert diseq_cy.binom_logpdf(8, 0, 0.0) == 0.0
		assert diseq_cy.binom_logpdf(8, 1, 0.0) == -np.inf
		assert diseq_cy.binom_logpdf(8, 8, 1.0) == 0.0
		assert diseq_cy.binom_logpdf(8, 7, 1.0) == -np.inf

	@pytest.mark.parametrize("n,k,a,b", [(2, 0, 0.3, 0.7), (2, 1, 45.0, 5.0), (4, 3, 0.01, 0.09), (6, 6, 900.0, 100.0)])
	def test_betabinom_logpdf(self, n, k, a, b):
		expected = betabinom.logpmf(k, n, a, b)
		assert diseq_cy.betabinom_logpdf(n, k, a, b) == pytest.approx(expected, rel=1e-9)

	def test_f_epsilon(self):
		assert diseq_cy.f_epsilon(0, 2, 0.01) == pytest.approx(0.01)
		assert diseq_cy.f_epsilon(1, 2, 0.01) == pytest.approx(0.5)
		assert diseq_cy.f_epsilon(2, 2, 0.01) == pytest.approx(0.99)
		assert diseq_cy.f_epsilon(1, 4, 0.0) == pytest.approx(0.25)

	def test_phi_convert_clamped(self):
		assert diseq_cy.phi_convert(0.5) == pytest.approx(1.0)
		assert diseq_cy.phi_convert(0.01) == pytest.approx(99.0)
		assert diseq_cy.phi_convert(1e-3) == pytest.approx(999.0)
		assert diseq_cy.phi_convert(1e-4) == 1000.0
		assert diseq_cy.phi_convert(1e-9) == 1000.0


class TestGenoLiks:
	def test_values(self, scenario):
		T, R, e = scenario
		G = genoLiks(T, R, e, 2)
		assert G.shape == (1, 3, 3)
		for a in range(3):
			p = diseq_cy.f_epsilon(a, 2, 0.01)
			assert G[0, 1, a] == pytest.approx(binom.logpmf(5, 10, p), rel=1e-9)
			assert G[0, 2, a] == pytest.approx(binom.logpmf(9, 10, p), rel=1e-9)

	def test_missing_is_badlik(self, scenario):
		T, R, e = scenario
		G = genoLiks(T, R, e, 2)
		assert np.all(G[0, 0] == shared.BADLIK)

	def test_deterministic(self, tetraploid):
		T, R, e = tetraploid
		np.testing.assert_array_equal(genoLiks(T, R, e, 4), genoLiks(T, R, e, 4))

	def test_threads_identical(self, diploid):
		T, R, e = diploid
		np.testing.assert_array_equal(genoLiks(T, R, e, 2, 1), genoLiks(T, R, e, 2, 3))

	def test_shape_mismatch(self, diploid):
		T, R, e = diploid
		with pytest.raises(AssertionError):
			genoLiks(T, R[:, :-1], e, 2)
		with pytest.raises(AssertionError):
			genoLiks(T, R, e[:-1], 2)
		with pytest.raises(AssertionError):
			genoLiks(T, R, e, 0)

	def test_error_rates_open_interval(self, scenario):
		T, R, _ = scenario
		for rate in (0.0, 1.0):
			with pytest.raises(AssertionError, match="Error rates"):
				genoLiks(T, R, np.array([rate]), 2)

	def test_deep_coverage_finite(self):
		T = np.array([[40000, 40000]], dtype=np.int32)
		R = np.array([[26000, 20000]], dtype=np.int32)
		G = genoLiks(T, R, np.full(2, 0.01), 2)
		assert np.all(np.isfinite(G))
		assert np.argmax(G[0, 0]) == 1
