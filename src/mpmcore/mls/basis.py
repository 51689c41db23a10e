from __future__ import annotations

from functools import lru_cache
from itertools import product
from typing import TYPE_CHECKING

import numpy as np

if TYPE_CHECKING:
    import numpy.typing as npt


@lru_cache(maxsize=None)
def monomial_exponents(dim: int, poly_order: int) -> tuple[tuple[int, ...], ...]:
    """
    Exponents of every monomial of total degree <= `poly_order`.

    Ordered by total degree, then lexicographically with the first axis
    highest, e.g. dim=2, poly_order=2 gives 1, x, y, x², xy, y².

    Raises:
        ValueError: If `dim` is not 1, 2 or 3, or `poly_order` is negative.
    """
    if dim not in (1, 2, 3):
        raise ValueError(f"Unsupported dimension: {dim}. 'dim' must be 1, 2 or 3.")
    if poly_order < 0:
        raise ValueError(f"Polynomial order must be non-negative, got {poly_order}.")

    exponents = [e for e in product(range(poly_order + 1), repeat=dim) if sum(e) <= poly_order]
    exponents.sort(key=lambda e: (sum(e), tuple(-k for k in e)))
    return tuple(exponents)


def number_of_monomials(dim: int, poly_order: int) -> int:
    return len(monomial_exponents(dim, poly_order))


def monomials(
    point: list[float] | npt.NDArray[np.float64],
    poly_order: int,
) -> npt.NDArray[np.float64]:
    """
    Evaluate the monomial basis at a point.

    Args:
        point: Coordinates (1 to 3 components).
        poly_order: Maximum total degree.

    Returns:
        (n_monomials,) array.
    """
    x = np.asarray(point, dtype=np.float64).reshape(-1)
    exponents = np.array(monomial_exponents(x.size, poly_order), dtype=np.int64)
    return np.prod(x[np.newaxis, :] ** exponents, axis=1)
