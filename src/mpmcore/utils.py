from __future__ import annotations

from typing import TYPE_CHECKING

import numpy as np

if TYPE_CHECKING:
    import numpy.typing as npt


def sign(value: float) -> float:
    """Sign of a value where zero counts as negative (+1.0 or -1.0)."""
    return 1.0 if value > 0.0 else -1.0


def zero_small_entries(
    array: npt.NDArray[np.float64],
    threshold: float,
) -> None:
    """
    Set entries whose magnitude is below a threshold to exactly zero.

    :var array: Array to clean. Modified in-place.
    :var threshold: Magnitude below which entries are zeroed.
    """
    array[np.abs(array) < threshold] = 0.0


def as_vector(
    value: float | list[float] | npt.NDArray[np.float64],
    size: int,
) -> npt.NDArray[np.float64]:
    """
    Convert the input into a flat float64 vector of the given size.

    Raises:
        ValueError: If the number of components does not match `size`.
    """
    vector = np.asarray(value, dtype=np.float64).reshape(-1)
    if vector.size != size:
        raise ValueError(f"Expected a vector with {size} components, got {vector.size}.")
    return vector
