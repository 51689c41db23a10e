"""
Tests for the 1-D spline kernels and the monomial basis.
"""

import numpy as np
import pytest

from mpmcore.mls import basis
from mpmcore.mls.kernels import SUPPORT_RADIUS, cubic_spline, quadratic_spline, spline_weight


class TestSplineKernels:

    def test_peak_values(self):
        assert quadratic_spline(0.0) == pytest.approx(0.75)
        assert cubic_spline(0.0) == pytest.approx(2.0 / 3.0)

    @pytest.mark.parametrize("order", [2, 3])
    def test_zero_outside_support(self, order):
        radius = SUPPORT_RADIUS[order]
        for d in (radius, radius + 1e-9, radius + 0.5, 10.0):
            assert spline_weight(order, d) == 0.0
            assert spline_weight(order, -d) == 0.0

    def test_quadratic_continuous_at_breakpoint(self):
        eps = 1e-9
        assert quadratic_spline(0.5) == pytest.approx(0.5)
        assert quadratic_spline(0.5 + eps) == pytest.approx(0.5, abs=1e-8)
        assert quadratic_spline(0.5 - eps) == pytest.approx(0.5, abs=1e-8)

    def test_cubic_continuous_at_breakpoint(self):
        eps = 1e-9
        assert cubic_spline(0.5) == pytest.approx(1.0 / 6.0)
        assert cubic_spline(0.5 + eps) == pytest.approx(1.0 / 6.0, abs=1e-8)
        assert cubic_spline(0.5 - eps) == pytest.approx(1.0 / 6.0, abs=1e-8)

    @pytest.mark.parametrize("order", [2, 3])
    def test_symmetric_and_non_negative(self, order):
        for d in np.linspace(0.0, 2.0, 41):
            w = spline_weight(order, d)
            assert w >= 0.0
            assert spline_weight(order, -d) == pytest.approx(w)

    def test_unsupported_order(self):
        with pytest.raises(ValueError):
            spline_weight(4, 0.1)


class TestMonomialBasis:

    def test_number_of_monomials(self):
        assert basis.number_of_monomials(2, 0) == 1
        assert basis.number_of_monomials(2, 1) == 3
        assert basis.number_of_monomials(2, 2) == 6
        assert basis.number_of_monomials(3, 1) == 4
        assert basis.number_of_monomials(3, 2) == 10

    def test_ordering_2d(self):
        assert basis.monomial_exponents(2, 2) == ((0, 0), (1, 0), (0, 1), (2, 0), (1, 1), (0, 2))

    def test_evaluate(self):
        np.testing.assert_allclose(basis.monomials([2.0, 3.0], 1), [1.0, 2.0, 3.0])
        np.testing.assert_allclose(basis.monomials([2.0, 3.0], 2), [1.0, 2.0, 3.0, 4.0, 6.0, 9.0])

    def test_invalid_arguments(self):
        with pytest.raises(ValueError):
            basis.monomial_exponents(4, 1)
        with pytest.raises(ValueError):
            basis.monomial_exponents(2, -1)
