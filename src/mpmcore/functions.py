from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

import numpy as np

if TYPE_CHECKING:
    import numpy.typing as npt


class TimeFunction(ABC):
    """
    Abstract base class for time-dependent load multipliers.
    """
    NAME: str = "Time Function"

    @abstractmethod
    def value(self, current_time: float) -> float:
        """
        Get the multiplier at a given time.

        Args:
            current_time: Analysis time.

        Returns:
            Scalar multiplier.
        """
        pass

    def __call__(self, current_time: float) -> float:
        return self.value(current_time)


class ConstantFunction(TimeFunction):
    """
    Multiplier that does not change with time.
    """
    NAME = "Constant"

    def __init__(self, constant: float = 1.0) -> None:
        self.constant = float(constant)

    def value(self, current_time: float) -> float:
        return self.constant


class LinearFunction(TimeFunction):
    """
    Piecewise-linear multiplier defined by a table of (time, value) pairs.

    Outside the table the first or last value is held constant.
    """
    NAME = "Linear"

    def __init__(
        self,
        xs: list[float] | npt.NDArray[np.float64],
        fxs: list[float] | npt.NDArray[np.float64],
    ) -> None:
        """
        Initialize the table.

        Args:
            xs: Strictly increasing times.
            fxs: Multiplier at each time.

        Raises:
            ValueError: If the table is shorter than two points, the lengths
                differ or `xs` is not strictly increasing.
        """
        self.xs = np.asarray(xs, dtype=np.float64).reshape(-1)
        self.fxs = np.asarray(fxs, dtype=np.float64).reshape(-1)

        if self.xs.size != self.fxs.size:
            raise ValueError(f"Table length mismatch: {self.xs.size} times, {self.fxs.size} values.")
        if self.xs.size < 2:
            raise ValueError("A linear function needs at least two points.")
        if np.any(np.diff(self.xs) <= 0.0):
            raise ValueError("Times of a linear function must be strictly increasing.")

    def value(self, current_time: float) -> float:
        return float(np.interp(current_time, self.xs, self.fxs))
