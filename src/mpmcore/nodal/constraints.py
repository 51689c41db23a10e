"""
Nodal Constraints
=================
Velocity, friction and rotated-frame boundary conditions of a node, plus the
concentrated force applied to it.

Directions are encoded as ``phase * dim + component`` so a single integer
addresses one velocity component of one phase. Constraints persist across
time steps until they are reassigned.
"""
from __future__ import annotations

from dataclasses import dataclass
import logging
from typing import TYPE_CHECKING, Optional

import numpy as np

from mpmcore.utils import sign

if TYPE_CHECKING:
    import numpy.typing as npt
    from mpmcore.functions import TimeFunction

logger = logging.getLogger(__name__)

# Tangential directions for each normal direction in 3D
_TANGENTS_3D: dict[int, tuple[int, int]] = {0: (1, 2), 1: (0, 2), 2: (0, 1)}


@dataclass
class FrictionConstraint:
    direction: int
    sign: int
    coefficient: float


class ConstraintSet:
    """
    Boundary condition state of a single node.
    """
    def __init__(self, dim: int, n_phases: int) -> None:
        """
        Initialize an unconstrained set.

        Args:
            dim: Spatial dimension.
            n_phases: Number of phases at the node.
        """
        self.dim = dim
        self.n_phases = n_phases

        self.velocity_constraints: dict[int, float] = {}
        self.friction: Optional[FrictionConstraint] = None

        self.rotation_matrix: Optional[npt.NDArray[np.float64]] = None
        self._inverse_rotation: Optional[npt.NDArray[np.float64]] = None

        self.concentrated_force: npt.NDArray[np.float64] = np.zeros((dim, n_phases), dtype=np.float64)
        self.force_function: Optional[TimeFunction] = None

    @property
    def n_directions(self) -> int:
        """Number of addressable directions (dim * n_phases)."""
        return self.dim * self.n_phases

    @property
    def has_rotation(self) -> bool:
        return self.rotation_matrix is not None

    def assign_velocity_constraint(self, direction: int, velocity: float) -> bool:
        """
        Prescribe a velocity component.

        Args:
            direction: Encoded direction in ``[0, dim * n_phases)``.
            velocity: Prescribed velocity (in the local frame if rotated).

        Returns:
            False if the direction is out of range.
        """
        if not 0 <= direction < self.n_directions:
            logger.error(f"Velocity constraint direction {direction} is out of bounds "
                         f"(0 <= dir < {self.n_directions}).")
            return False
        self.velocity_constraints[direction] = float(velocity)
        return True

    def assign_friction_constraint(self, direction: int, sign_n: int, coefficient: float) -> bool:
        """
        Assign a Coulomb friction constraint.

        Args:
            direction: Encoded normal direction in ``[0, dim * n_phases)``.
            sign_n: Sign of the outward normal with respect to the axis.
            coefficient: Friction coefficient.

        Returns:
            False if the direction is out of range.
        """
        if not 0 <= direction < self.n_directions:
            logger.error(f"Friction constraint direction {direction} is out of bounds "
                         f"(0 <= dir < {self.n_directions}).")
            return False
        self.friction = FrictionConstraint(direction=direction, sign=int(sign_n), coefficient=float(coefficient))
        return True

    def assign_rotation_matrix(self, rotation_matrix: list[list[float]] | npt.NDArray[np.float64]) -> None:
        """
        Set the rotation from the local constraint frame to the global frame.

        Raises:
            ValueError: If the matrix is not ``(dim, dim)`` or is singular.
        """
        matrix = np.asarray(rotation_matrix, dtype=np.float64)
        if matrix.shape != (self.dim, self.dim):
            raise ValueError(f"Rotation matrix must be {self.dim}x{self.dim}, got {matrix.shape}.")
        try:
            inverse = np.linalg.inv(matrix)
        except np.linalg.LinAlgError as e:
            raise ValueError("Rotation matrix is singular.") from e

        self.rotation_matrix = matrix
        self._inverse_rotation = inverse

    def assign_concentrated_force(
        self,
        phase: int,
        direction: int,
        force: float,
        function: Optional[TimeFunction] = None,
    ) -> bool:
        """
        Store a concentrated force and its optional time multiplier.

        Returns:
            False if the phase or direction is out of range.
        """
        if not 0 <= phase < self.n_phases or not 0 <= direction < self.n_directions:
            logger.error(f"Concentrated force (phase={phase}, direction={direction}) is out of bounds.")
            return False
        self.concentrated_force[direction % self.dim, phase] = float(force)
        self.force_function = function
        return True

    def concentrated_force_at(self, phase: int, current_time: float) -> npt.NDArray[np.float64]:
        """Concentrated force of a phase scaled by the time function."""
        factor = self.force_function.value(current_time) if self.force_function is not None else 1.0
        return factor * self.concentrated_force[:, phase]

    def to_local(self, vector: npt.NDArray[np.float64]) -> npt.NDArray[np.float64]:
        if self._inverse_rotation is None:
            return vector.copy()
        return self._inverse_rotation @ vector

    def to_global(self, vector: npt.NDArray[np.float64]) -> npt.NDArray[np.float64]:
        if self.rotation_matrix is None:
            return vector.copy()
        return self.rotation_matrix @ vector

    def apply_velocity_constraints(
        self,
        velocity: npt.NDArray[np.float64],
        acceleration: npt.NDArray[np.float64],
    ) -> None:
        """
        Overwrite constrained velocity components and zero their acceleration.

        Args:
            velocity: (dim, n_phases) nodal velocity. Modified in-place.
            acceleration: (dim, n_phases) nodal acceleration. Modified in-place.
        """
        for direction, prescribed in self.velocity_constraints.items():
            phase, component = divmod(direction, self.dim)

            if not self.has_rotation:
                velocity[component, phase] = prescribed
                acceleration[component, phase] = 0.0
                continue

            local_velocity = self.to_local(velocity[:, phase])
            local_acceleration = self.to_local(acceleration[:, phase])
            local_velocity[component] = prescribed
            local_acceleration[component] = 0.0
            velocity[:, phase] = self.to_global(local_velocity)
            acceleration[:, phase] = self.to_global(local_acceleration)

    def apply_friction_constraints(
        self,
        velocity: npt.NDArray[np.float64],
        acceleration: npt.NDArray[np.float64],
        dt: float,
    ) -> None:
        """
        Apply explicit Coulomb friction to the tangential acceleration.

        Friction acts only while the normal acceleration points along the
        constraint sign. A sliding node is decelerated by ``mu * |a_n|`` (and
        brought to rest if that is enough within `dt`); a node at rest stays at
        rest unless the tangential acceleration exceeds ``mu * |a_n|``.

        Args:
            velocity: (dim, n_phases) nodal velocity.
            acceleration: (dim, n_phases) nodal acceleration. Modified in-place.
            dt: Time step.
        """
        if self.friction is None:
            return

        phase, dir_n = divmod(self.friction.direction, self.dim)
        sign_n = sign(self.friction.sign)
        mu = self.friction.coefficient

        if self.dim == 1:
            return
        if self.dim == 2:
            tangents = [1 - dir_n]
        else:
            tangents = list(_TANGENTS_3D[dir_n])

        acc = self.to_local(acceleration[:, phase])
        vel = self.to_local(velocity[:, phase])

        acc_n = acc[dir_n]
        if acc_n * sign_n <= 0.0:
            return

        acc_t = acc[tangents]
        vel_t = vel[tangents]
        limit = mu * abs(acc_n)

        vel_t_norm = float(np.linalg.norm(vel_t))
        if vel_t_norm != 0.0:
            # Kinetic friction
            vel_net = vel_t + dt * acc_t
            vel_net_norm = float(np.linalg.norm(vel_net))
            if vel_net_norm <= dt * limit:
                acc_t = -vel_t / dt
            else:
                acc_t = acc_t - limit * (vel_net / vel_net_norm)
        else:
            # Static friction
            acc_t_norm = float(np.linalg.norm(acc_t))
            if acc_t_norm <= limit:
                acc_t = np.zeros_like(acc_t)
            else:
                acc_t = acc_t - limit * (acc_t / acc_t_norm)

        acc[tangents] = acc_t
        acceleration[:, phase] = self.to_global(acc)
