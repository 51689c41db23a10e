"""
Nodal Property Store
====================
Per-node storage of named scalar, vector and boolean attributes.

Scalar and vector properties are kept per phase: a scalar kind is a
``(1, n_phases)`` array, a vector kind is a ``(dim, n_phases)`` array. Every
write either adds to the stored value (``update=True``, used when particles
accumulate into a node) or overwrites it (``update=False``, used by boundary
conditions).
"""
from __future__ import annotations

from enum import IntEnum, StrEnum
from typing import TYPE_CHECKING, Iterable

import numpy as np

from mpmcore.utils import as_vector

if TYPE_CHECKING:
    import numpy.typing as npt


class NodePhase(IntEnum):
    SOLID = 0
    LIQUID = 1
    # Mixture quantities share the solid column
    MIXTURE = 0


class ScalarProperty(StrEnum):
    MASS = "mass"
    VOLUME = "volume"
    MASS_PRESSURE = "mass_pressure"
    PRESSURE = "pressure"


class VectorProperty(StrEnum):
    MOMENTUM = "momentum"
    VELOCITY = "velocity"
    ACCELERATION = "acceleration"
    EXTERNAL_FORCE = "external_force"
    INTERNAL_FORCE = "internal_force"
    DRAG_FORCE = "drag_force"


class BooleanProperty(StrEnum):
    FRICTION = "friction"
    GENERIC_BC = "generic_bc"


class PropertyStore:
    """
    Closed-enumeration keyed storage of nodal properties.
    """
    def __init__(self, dim: int, n_phases: int) -> None:
        """
        Initialize zeroed storage for every enumerated property kind.

        Args:
            dim: Spatial dimension of vector properties.
            n_phases: Number of phases stored per property.
        """
        self.dim = dim
        self.n_phases = n_phases

        self._scalars: dict[ScalarProperty, npt.NDArray[np.float64]] = {
            kind: np.zeros((1, n_phases), dtype=np.float64) for kind in ScalarProperty
        }
        self._vectors: dict[VectorProperty, npt.NDArray[np.float64]] = {
            kind: np.zeros((dim, n_phases), dtype=np.float64) for kind in VectorProperty
        }
        self._booleans: dict[BooleanProperty, bool] = {kind: False for kind in BooleanProperty}

    def __repr__(self) -> str:
        """String representation of the store."""
        return f"{self.__class__.__name__}(dim={self.dim}, n_phases={self.n_phases})"

    def update_or_assign(
        self,
        kind: ScalarProperty | VectorProperty,
        phase: int,
        value: float | list[float] | npt.NDArray[np.float64],
        update: bool,
    ) -> None:
        """
        Add `value` to, or overwrite, the stored value of `kind` for `phase`.

        Args:
            kind: Scalar or vector property kind.
            phase: Phase index. Not validated here.
            value: Scalar, or vector with `dim` components.
            update: True to add to the existing value, False to overwrite.

        Raises:
            KeyError: If `kind` is not an enumerated property kind.
        """
        if isinstance(kind, ScalarProperty):
            column = self._scalars[kind][:, phase]
            value = float(value)
        elif isinstance(kind, VectorProperty):
            column = self._vectors[kind][:, phase]
            value = as_vector(value, self.dim)
        else:
            raise KeyError(f"Unknown property kind: {kind!r}")

        if update:
            column += value
        else:
            column[:] = value

    def read(
        self,
        kind: ScalarProperty | VectorProperty,
        phase: int,
    ) -> float | npt.NDArray[np.float64]:
        """
        Return the stored value of `kind` for `phase`.

        Scalars are returned as float, vectors as a copy of the phase column.
        """
        if isinstance(kind, ScalarProperty):
            return float(self._scalars[kind][0, phase])
        if isinstance(kind, VectorProperty):
            return self._vectors[kind][:, phase].copy()
        raise KeyError(f"Unknown property kind: {kind!r}")

    def scalars(self, kind: ScalarProperty) -> npt.NDArray[np.float64]:
        """Direct (1, n_phases) view of a scalar property."""
        return self._scalars[kind]

    def vectors(self, kind: VectorProperty) -> npt.NDArray[np.float64]:
        """Direct (dim, n_phases) view of a vector property."""
        return self._vectors[kind]

    def assign_boolean(self, kind: BooleanProperty, value: bool) -> None:
        if kind not in self._booleans:
            raise KeyError(f"Unknown boolean property: {kind!r}")
        self._booleans[kind] = bool(value)

    def read_boolean(self, kind: BooleanProperty) -> bool:
        return self._booleans[kind]

    def reset(self, keep_booleans: Iterable[BooleanProperty] = ()) -> None:
        """
        Zero every scalar and vector accumulator and clear boolean flags.

        Args:
            keep_booleans: Boolean kinds whose current value survives the reset.
        """
        for array in self._scalars.values():
            array.fill(0.0)
        for array in self._vectors.values():
            array.fill(0.0)

        kept = set(keep_booleans)
        for kind in self._booleans:
            if kind not in kept:
                self._booleans[kind] = False
