from mpmcore.mls.kernels import SUPPORT_RADIUS, cubic_spline, quadratic_spline, spline_weight
from mpmcore.mls.basis import monomial_exponents, monomials, number_of_monomials
from mpmcore.mls.interpolation import MLSInputError, MLSInterpolation, SingularMomentMatrixError

__all__ = [
    "MLSInputError",
    "MLSInterpolation",
    "SUPPORT_RADIUS",
    "SingularMomentMatrixError",
    "cubic_spline",
    "monomial_exponents",
    "monomials",
    "number_of_monomials",
    "quadratic_spline",
    "spline_weight",
]
