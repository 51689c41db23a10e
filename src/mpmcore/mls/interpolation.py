"""
Moving Least Squares Interpolation
==================================
Generalized shape functions built from scattered data points.

For a query point x and data points x_i with kernel weights w_i, the local
polynomial fit solves

    M a = B,    M = Σ w_i p(x_i) p(x_i)ᵀ,    B = Σ w_i p(x_i) φ_i

and the interpolated value is p(x)ᵀ a. The matching shape functions are
N_i(x) = p(x)ᵀ M⁻¹ p(x_i) w_i.

The basis p is evaluated in local coordinates (x_i - x) / span, so p(x) is
(1, 0, ..., 0) and the coefficients are those of the fit centred on the query
point. Conditioning of M then does not depend on how far the grid sits from
the origin.

The weight of a data point is a product of 1-D spline kernels over the axes
(tensor-product support, not a radial kernel). The moment matrix is singular
when too few independent data points lie inside the support; this module
reports that condition but never regularizes it.
"""
from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Callable, Optional, Sequence, Union

import numpy as np
import scipy as sp

from mpmcore import config
from mpmcore.mls import basis
from mpmcore.mls.kernels import spline_weight

if TYPE_CHECKING:
    import numpy.typing as npt

logger = logging.getLogger(__name__)

FieldValues = Union[Sequence[float], "npt.NDArray[np.float64]", Callable[["npt.NDArray[np.float64]"], float]]


class MLSInputError(ValueError):
    """Malformed MLS input (bad spline order, empty data, bad span)."""


class SingularMomentMatrixError(np.linalg.LinAlgError):
    """The moment matrix cannot be inverted reliably."""


class MLSInterpolation:
    """
    MLS fit around a single query point.

    Constructed fresh for every query point and discarded after use.
    """
    def __init__(
        self,
        point: list[float] | npt.NDArray[np.float64],
        data_points: list[list[float]] | npt.NDArray[np.float64],
        spline_order: int,
        poly_order: int = 1,
        span: float = 1.0,
    ) -> None:
        """
        Initialize the fit. See `initialise`.
        """
        self.point: npt.NDArray[np.float64] = np.empty(0, dtype=np.float64)
        self.data_points: npt.NDArray[np.float64] = np.empty((0, 0), dtype=np.float64)
        self.spline_order = spline_order
        self.poly_order = poly_order
        self.span = span

        self.weights: npt.NDArray[np.float64] = np.empty(0, dtype=np.float64)
        self.data_monomials: npt.NDArray[np.float64] = np.empty((0, 0), dtype=np.float64)
        self.point_monomials: npt.NDArray[np.float64] = np.empty(0, dtype=np.float64)
        self.moment_matrix: npt.NDArray[np.float64] = np.empty((0, 0), dtype=np.float64)
        self.rhs_vector: npt.NDArray[np.float64] = np.empty(0, dtype=np.float64)

        self.initialise(point, data_points, spline_order, poly_order, span)

    def __repr__(self) -> str:
        """String representation of the fit."""
        return (f"{self.__class__.__name__}(point={self.point}, n_data={self.n_data_points}, "
                f"spline_order={self.spline_order}, poly_order={self.poly_order}, span={self.span})")

    @property
    def dim(self) -> int:
        return self.point.size

    @property
    def n_data_points(self) -> int:
        return self.data_points.shape[0]

    @property
    def n_monomials(self) -> int:
        return self.point_monomials.size

    def initialise(
        self,
        point: list[float] | npt.NDArray[np.float64],
        data_points: list[list[float]] | npt.NDArray[np.float64],
        spline_order: int,
        poly_order: int,
        span: float,
    ) -> None:
        """
        Compute weights, moment matrix and monomials for a query point.

        The right-hand side is left as a zero placeholder until field values
        are supplied through `initialise_B_vector`.

        Args:
            point: Query point coordinates.
            data_points: (n, dim) scattered data point coordinates.
            spline_order: 2 (quadratic) or 3 (cubic) kernel.
            poly_order: Maximum total degree of the polynomial basis.
            span: Kernel span used to normalize distances.

        Raises:
            MLSInputError: If the spline order is unsupported, there are no
                data points, the span is not positive or the dimensions differ.
        """
        if spline_order not in config.SUPPORTED_SPLINE_ORDERS:
            raise MLSInputError(f"Unsupported spline order: {spline_order}. "
                                f"'spline_order' must be one of {config.SUPPORTED_SPLINE_ORDERS}.")
        if not span > 0.0:
            raise MLSInputError(f"Span must be positive, got {span}.")
        if poly_order < 0:
            raise MLSInputError(f"Polynomial order must be non-negative, got {poly_order}.")

        point = np.asarray(point, dtype=np.float64).reshape(-1)
        data_points = np.asarray(data_points, dtype=np.float64)
        if data_points.size == 0:
            raise MLSInputError("At least one data point is required.")
        data_points = data_points.reshape(-1, point.size) if data_points.ndim == 1 else data_points
        if data_points.shape[1] != point.size:
            raise MLSInputError(f"Data points have dimension {data_points.shape[1]}, "
                                f"query point has dimension {point.size}.")

        self.point = point
        self.data_points = data_points
        self.spline_order = spline_order
        self.poly_order = poly_order
        self.span = float(span)

        self.compute_weights()
        self.point_monomials = basis.monomials(np.zeros(self.dim), self.poly_order)
        local_points = (self.data_points - self.point[np.newaxis, :]) / self.span
        self.data_monomials = np.array([basis.monomials(x, self.poly_order) for x in local_points])
        self.initialise_M_matrix()
        self.initialise_B_vector()

    def compute_weights(self) -> npt.NDArray[np.float64]:
        """
        Kernel weight of each data point.

        Each weight is the product over axes of the 1-D spline evaluated at
        ``|point - data| / span``.

        Returns:
            (n,) array of non-negative weights.
        """
        distances = np.abs(self.data_points - self.point[np.newaxis, :]) / self.span

        weights = np.ones(self.n_data_points, dtype=np.float64)
        for i, row in enumerate(distances):
            for d in row:
                weights[i] *= spline_weight(self.spline_order, d)
                if weights[i] == 0.0:
                    break

        self.weights = weights
        return weights

    def initialise_M_matrix(self) -> npt.NDArray[np.float64]:
        """
        Assemble the moment matrix M = Σ w_i p_i p_iᵀ.

        Returns:
            (n_monomials, n_monomials) symmetric matrix.
        """
        P = self.data_monomials
        self.moment_matrix = P.T @ (self.weights[:, np.newaxis] * P)
        return self.moment_matrix

    def initialise_B_vector(self, values: Optional[FieldValues] = None) -> npt.NDArray[np.float64]:
        """
        Assemble the right-hand side B = Σ w_i p_i φ_i.

        Args:
            values: Field values aligned with the data points, or a callable
                returning the value at a data point. None leaves B at zero.

        Returns:
            (n_monomials,) array.

        Raises:
            MLSInputError: If the number of values does not match the data points.
        """
        if values is None:
            self.rhs_vector = np.zeros(self.data_monomials.shape[1], dtype=np.float64)
            return self.rhs_vector

        phi = self._field_values(values)
        self.rhs_vector = self.data_monomials.T @ (self.weights * phi)
        return self.rhs_vector

    def _field_values(self, values: FieldValues) -> npt.NDArray[np.float64]:
        if callable(values):
            return np.array([values(x) for x in self.data_points], dtype=np.float64)

        phi = np.asarray(values, dtype=np.float64).reshape(-1)
        if phi.size != self.n_data_points:
            raise MLSInputError(f"Expected {self.n_data_points} field values, got {phi.size}.")
        return phi

    def condition_number(self) -> float:
        """2-norm condition number of the moment matrix (inf when singular)."""
        with np.errstate(divide="ignore", invalid="ignore"):
            cond = float(np.linalg.cond(self.moment_matrix))
        return cond if np.isfinite(cond) else np.inf

    def is_singular(self, rcond: float = config.SINGULAR_RCOND) -> bool:
        """
        Check whether the moment matrix is too ill-conditioned to solve.

        Args:
            rcond: Reciprocal condition number below which M counts as singular.
        """
        return self.condition_number() * rcond > 1.0

    def _solve(self, rhs: npt.NDArray[np.float64]) -> npt.NDArray[np.float64]:
        if self.is_singular():
            n_active = int(np.count_nonzero(self.weights))
            logger.debug(f"Singular moment matrix at {self.point}: {n_active} active data point(s) "
                         f"for {self.n_monomials} monomial(s).")
            raise SingularMomentMatrixError(
                f"Moment matrix at {self.point} is singular (condition number {self.condition_number():.3e})."
            )
        return sp.linalg.solve(self.moment_matrix, rhs, assume_a="sym")

    def coefficients(self) -> npt.NDArray[np.float64]:
        """
        Local polynomial coefficients a solving M a = B.

        The coefficients are in the local coordinates (x - point) / span.

        Raises:
            SingularMomentMatrixError: If M is singular.
        """
        return self._solve(self.rhs_vector)

    def interpolate(self, values: Optional[FieldValues] = None) -> float:
        """
        Interpolated field value at the query point.

        Args:
            values: Field values; if given, B is rebuilt from them first.

        Raises:
            SingularMomentMatrixError: If M is singular.
        """
        if values is not None:
            self.initialise_B_vector(values)
        return float(self.point_monomials @ self.coefficients())

    def shape_functions(self) -> npt.NDArray[np.float64]:
        """
        MLS shape functions N_i(x) = p(x)ᵀ M⁻¹ p(x_i) w_i.

        Returns:
            (n,) array aligned with the data points.

        Raises:
            SingularMomentMatrixError: If M is singular.
        """
        A = self._solve(self.data_monomials.T * self.weights[np.newaxis, :])
        return self.point_monomials @ A
