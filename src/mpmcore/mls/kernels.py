from __future__ import annotations

import numba as nb

# Compact support of each spline in normalized distance
SUPPORT_RADIUS: dict[int, float] = {2: 1.5, 3: 1.0}


@nb.jit(cache=True)
def quadratic_spline(d: float) -> float:
    """
    Quadratic B-spline kernel.

    Args:
        d: Normalized distance |x - x_i| / span.

    Returns:
        Kernel value, zero for d >= 1.5.
    """
    d = abs(d)
    if d <= 0.5:
        return 0.75 - d * d
    elif d < 1.5:
        return 0.5 * (1.5 - d) ** 2
    return 0.0


@nb.jit(cache=True)
def cubic_spline(d: float) -> float:
    """
    Cubic spline kernel with unit support.

    Args:
        d: Normalized distance |x - x_i| / span.

    Returns:
        Kernel value, zero for d >= 1.0.
    """
    d = abs(d)
    if d <= 0.5:
        return 2.0 / 3.0 - 4.0 * d * d + 4.0 * d * d * d
    elif d < 1.0:
        return 4.0 / 3.0 - 4.0 * d + 4.0 * d * d - 4.0 * d * d * d / 3.0
    return 0.0


def spline_weight(spline_order: int, d: float) -> float:
    """
    Evaluate the 1-D kernel of the given order.

    Raises:
        ValueError: If `spline_order` is not 2 or 3.
    """
    if spline_order == 2:
        return quadratic_spline(float(d))
    elif spline_order == 3:
        return cubic_spline(float(d))
    else:
        raise ValueError(f"Unsupported spline order: {spline_order}. "
                         f"'spline_order' must be 2 or 3.")
