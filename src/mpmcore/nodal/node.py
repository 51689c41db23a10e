"""
Background Grid Node
====================
The nodal state and explicit time-integration engine of the MPM core.

Why is this file needed?
------------------------
1. Accumulation: Particle-to-node mapping pushes mass, momentum and forces into
   the node. Many mappers may write into the same node concurrently, so every
   accumulating write holds the node lock.
2. Integration: The node solves the explicit equations of motion per phase (or
   the coupled solid-fluid system) and applies its boundary conditions.
3. Contact: Multi-material quantities are kept in a shared property pool and
   processed by `mpmcore.nodal.contact`.

A node is reset once per step (`initialise`), accumulated into, integrated and
read back. Accumulating twice without a reset double-counts contributions.
"""
from __future__ import annotations

import logging
import threading
from typing import TYPE_CHECKING, Optional

import numpy as np

from mpmcore import config
from mpmcore.nodal import contact
from mpmcore.nodal.constraints import ConstraintSet
from mpmcore.nodal.properties import (
    BooleanProperty,
    NodePhase,
    PropertyStore,
    ScalarProperty,
    VectorProperty,
)
from mpmcore.utils import as_vector, zero_small_entries

if TYPE_CHECKING:
    import numpy.typing as npt
    from mpmcore.functions import TimeFunction
    from mpmcore.nodal.nodal_properties import NodalProperties

logger = logging.getLogger(__name__)


class Node:
    """
    Represents a node of the MPM background grid.
    """
    def __init__(
        self,
        index: int,
        coords: list[float] | npt.NDArray[np.float64],
        n_phases: int = 1,
        dof: Optional[int] = None,
    ) -> None:
        """
        Initialize the node with coordinates.

        Args:
            index: Unique node id.
            coords: Coordinates of the node in the global system (2 or 3 components).
            n_phases: Number of phases tracked at the node.
            dof: Degrees of freedom. Defaults to the dimension.

        Raises:
            ValueError: If the dimension is not 2 or 3 or `n_phases` < 1.
        """
        self.coords = np.array(coords, dtype=np.float64).reshape(-1)
        if self.coords.size not in (2, 3):
            raise ValueError(f"Node coordinates must have 2 or 3 components, got {self.coords.size}.")
        if n_phases < 1:
            raise ValueError(f"Number of phases must be at least 1, got {n_phases}.")

        self._uid = index
        self.dim: int = self.coords.size
        self.n_phases = n_phases
        self.dof: int = self.dim if dof is None else dof

        self.status = False
        self.properties = PropertyStore(self.dim, n_phases)
        self.constraints = ConstraintSet(self.dim, n_phases)
        self.material_ids: set[int] = set()
        self.mpi_ranks: set[int] = set()
        self.ghost_id: Optional[int] = None

        self.prop_id: Optional[int] = None
        self.property_handle: Optional[NodalProperties] = None

        self._lock = threading.Lock()

    def __repr__(self) -> str:
        """String representation of the node."""
        return f"{self.__class__.__name__}(id={self.uid}, coords={self.coords})"

    @property
    def uid(self) -> int:
        """Node id."""
        return self._uid

    @property
    def id(self) -> int:
        return self._uid

    @property
    def x(self) -> float:
        """X-coordinate of the node."""
        return self.coords[0]

    @property
    def y(self) -> float:
        """Y-coordinate of the node."""
        return self.coords[1]

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------
    def initialise(self) -> None:
        """
        Reset the per-step state before particles are mapped.

        Constraint flags (friction, rotated boundary) persist.
        """
        self.status = False
        self.properties.reset(keep_booleans=(BooleanProperty.FRICTION, BooleanProperty.GENERIC_BC))
        self.material_ids.clear()

    def initialise_property_handle(self, prop_id: int, property_handle: NodalProperties) -> None:
        """
        Attach the shared nodal property pool.

        Args:
            prop_id: Row block of this node in the pool.
            property_handle: Pool shared by the nodes of a partition.
        """
        self.prop_id = prop_id
        self.property_handle = property_handle

    def assign_coordinates(self, coords: list[float] | npt.NDArray[np.float64]) -> None:
        """Reposition the node (boundary-fitted schemes)."""
        self.coords = as_vector(coords, self.dim)

    def assign_status(self, status: bool) -> None:
        self.status = bool(status)

    def append_material_id(self, mat_id: int) -> None:
        with self._lock:
            self.material_ids.add(mat_id)

    def mpi_rank(self, rank: int) -> bool:
        """
        Register an owning or ghost rank.

        Returns:
            True if the rank was not registered before.
        """
        with self._lock:
            if rank in self.mpi_ranks:
                return False
            self.mpi_ranks.add(rank)
            return True

    def clear_mpi_ranks(self) -> None:
        self.mpi_ranks.clear()

    # ------------------------------------------------------------------
    # Generic property access
    # ------------------------------------------------------------------
    def _check_phase(self, phase: int) -> None:
        if not 0 <= phase < self.n_phases:
            raise IndexError(f"Phase {phase} is out of range for a node with {self.n_phases} phase(s).")

    def update_scalar_property(self, kind: ScalarProperty, update: bool, phase: int, value: float) -> None:
        """
        Update (add) or assign a scalar property of a phase.

        Args:
            kind: Scalar property kind.
            update: True to add to the existing value, False to overwrite.
            phase: Phase index.
            value: Contribution from the particles in a cell.
        """
        self._check_phase(phase)
        with self._lock:
            self.properties.update_or_assign(kind, phase, value, update)

    def scalar_property(self, kind: ScalarProperty, phase: int) -> float:
        self._check_phase(phase)
        return self.properties.read(kind, phase)

    def update_vector_property(
        self,
        kind: VectorProperty,
        update: bool,
        phase: int,
        value: list[float] | npt.NDArray[np.float64],
    ) -> None:
        """
        Update (add) or assign a vector property of a phase.

        Args:
            kind: Vector property kind.
            update: True to add to the existing value, False to overwrite.
            phase: Phase index.
            value: Contribution with `dim` components.
        """
        self._check_phase(phase)
        with self._lock:
            self.properties.update_or_assign(kind, phase, value, update)

    def vector_property(self, kind: VectorProperty, phase: int) -> npt.NDArray[np.float64]:
        self._check_phase(phase)
        return self.properties.read(kind, phase)

    def assign_boolean_property(self, kind: BooleanProperty, value: bool) -> None:
        with self._lock:
            self.properties.assign_boolean(kind, value)

    def boolean_property(self, kind: BooleanProperty) -> bool:
        return self.properties.read_boolean(kind)

    # ------------------------------------------------------------------
    # Named accumulators
    # ------------------------------------------------------------------
    def update_mass(self, update: bool, phase: int, mass: float) -> None:
        self.update_scalar_property(ScalarProperty.MASS, update, phase, mass)

    def mass(self, phase: int) -> float:
        return self.scalar_property(ScalarProperty.MASS, phase)

    def update_volume(self, update: bool, phase: int, volume: float) -> None:
        self.update_scalar_property(ScalarProperty.VOLUME, update, phase, volume)

    def volume(self, phase: int) -> float:
        return self.scalar_property(ScalarProperty.VOLUME, phase)

    def update_mass_pressure(self, update: bool, phase: int, mass_pressure: float) -> None:
        """Accumulate the product of particle mass and pressure."""
        self.update_scalar_property(ScalarProperty.MASS_PRESSURE, update, phase, mass_pressure)

    def update_pressure(self, update: bool, phase: int, pressure: float) -> None:
        self.update_scalar_property(ScalarProperty.PRESSURE, update, phase, pressure)

    def pressure(self, phase: int) -> float:
        return self.scalar_property(ScalarProperty.PRESSURE, phase)

    def update_momentum(self, update: bool, phase: int, momentum: list[float] | npt.NDArray[np.float64]) -> None:
        self.update_vector_property(VectorProperty.MOMENTUM, update, phase, momentum)

    def momentum(self, phase: int) -> npt.NDArray[np.float64]:
        return self.vector_property(VectorProperty.MOMENTUM, phase)

    def velocity(self, phase: int) -> npt.NDArray[np.float64]:
        return self.vector_property(VectorProperty.VELOCITY, phase)

    def update_acceleration(
        self,
        update: bool,
        phase: int,
        acceleration: list[float] | npt.NDArray[np.float64],
    ) -> None:
        self.update_vector_property(VectorProperty.ACCELERATION, update, phase, acceleration)

    def acceleration(self, phase: int) -> npt.NDArray[np.float64]:
        return self.vector_property(VectorProperty.ACCELERATION, phase)

    def update_external_force(self, update: bool, phase: int, force: list[float] | npt.NDArray[np.float64]) -> None:
        self.update_vector_property(VectorProperty.EXTERNAL_FORCE, update, phase, force)

    def external_force(self, phase: int) -> npt.NDArray[np.float64]:
        return self.vector_property(VectorProperty.EXTERNAL_FORCE, phase)

    def update_internal_force(self, update: bool, phase: int, force: list[float] | npt.NDArray[np.float64]) -> None:
        self.update_vector_property(VectorProperty.INTERNAL_FORCE, update, phase, force)

    def internal_force(self, phase: int) -> npt.NDArray[np.float64]:
        return self.vector_property(VectorProperty.INTERNAL_FORCE, phase)

    def update_drag_force_coefficient(self, update: bool, drag_force: list[float] | npt.NDArray[np.float64]) -> None:
        """Accumulate the solid-fluid drag coefficient (stored on the solid phase)."""
        self.update_vector_property(VectorProperty.DRAG_FORCE, update, NodePhase.SOLID, drag_force)

    def drag_force_coefficient(self) -> npt.NDArray[np.float64]:
        return self.vector_property(VectorProperty.DRAG_FORCE, NodePhase.SOLID)

    def update_property(
        self,
        update: bool,
        name: str,
        value: float | npt.NDArray[np.float64],
        mat_id: int,
        nprops: int,
    ) -> None:
        """
        Update (add) or assign a per-material quantity in the property pool.

        Args:
            update: True to add to the existing value, False to overwrite.
            name: Pool property name (e.g. "masses", "momenta").
            value: Contribution (scalar or `nprops` components).
            mat_id: Material id (pool column).
            nprops: Components per node (1 for scalars, dim for vectors).

        Raises:
            RuntimeError: If no property pool is attached.
        """
        if self.property_handle is None or self.prop_id is None:
            raise RuntimeError(f"Node {self.uid} has no nodal property pool.")
        with self._lock:
            if update:
                self.property_handle.update_property(name, self.prop_id, mat_id, value, nprops)
            else:
                self.property_handle.assign_property(name, self.prop_id, mat_id, value, nprops)

    # ------------------------------------------------------------------
    # Integration
    # ------------------------------------------------------------------
    def compute_velocity(self, phase: Optional[int] = None) -> None:
        """
        Compute velocity from momentum for one phase, or for all phases.

        Phases with negligible mass keep their previous velocity. Velocity
        constraints are applied afterwards.
        """
        phases = range(self.n_phases) if phase is None else [phase]
        masses = self.properties.scalars(ScalarProperty.MASS)
        momentum = self.properties.vectors(VectorProperty.MOMENTUM)
        velocity = self.properties.vectors(VectorProperty.VELOCITY)

        for p in phases:
            self._check_phase(p)
            if masses[0, p] > config.MASS_TOLERANCE:
                velocity[:, p] = momentum[:, p] / masses[0, p]
                zero_small_entries(velocity[:, p], config.VELOCITY_THRESHOLD)

        self.apply_velocity_constraints()

    def compute_acceleration_velocity(self, phase: int, dt: float) -> bool:
        """
        Solve a = (f_ext + f_int) / m and integrate the velocity.

        Args:
            phase: Phase index.
            dt: Time step.

        Returns:
            False (state unchanged) if the phase mass is below tolerance.
        """
        return self._integrate_phase(phase, dt, damping_factor=0.0)

    def compute_acceleration_velocity_cundall(self, phase: int, dt: float, damping_factor: float) -> bool:
        """
        Same as `compute_acceleration_velocity` with Cundall damping.

        Each component of the net force is scaled by
        ``1 - damping_factor * sign(f_i * v_i)``.

        Raises:
            ValueError: If `damping_factor` is not in [0, 1).
        """
        _check_damping(damping_factor)
        return self._integrate_phase(phase, dt, damping_factor=damping_factor)

    def _integrate_phase(self, phase: int, dt: float, damping_factor: float) -> bool:
        self._check_phase(phase)
        mass = self.properties.scalars(ScalarProperty.MASS)[0, phase]
        if mass <= config.MASS_TOLERANCE:
            logger.debug(f"Node {self.uid}: phase {phase} mass {mass:.3e} below tolerance, skipped.")
            return False

        velocity = self.properties.vectors(VectorProperty.VELOCITY)
        acceleration = self.properties.vectors(VectorProperty.ACCELERATION)

        force = self.external_force(phase) + self.internal_force(phase)
        force = _cundall_damped(force, velocity[:, phase], damping_factor)
        acceleration[:, phase] = force / mass

        self.constraints.apply_friction_constraints(velocity, acceleration, dt)

        velocity[:, phase] += acceleration[:, phase] * dt

        self.apply_velocity_constraints()

        zero_small_entries(velocity[:, phase], config.VELOCITY_THRESHOLD)
        zero_small_entries(acceleration[:, phase], config.VELOCITY_THRESHOLD)
        return True

    def compute_acceleration_velocity_twophase_explicit(self, dt: float) -> bool:
        """
        Integrate the coupled solid-fluid equations of motion.

        Returns:
            False if either phase mass is below tolerance.
        """
        return self._integrate_twophase(dt, damping_factor=0.0)

    def compute_acceleration_velocity_twophase_explicit_cundall(self, dt: float, damping_factor: float) -> bool:
        """
        Two-phase integration with Cundall damping on both phases.

        Raises:
            ValueError: If `damping_factor` is not in [0, 1).
        """
        _check_damping(damping_factor)
        return self._integrate_twophase(dt, damping_factor=damping_factor)

    def _integrate_twophase(self, dt: float, damping_factor: float) -> bool:
        """
        Per direction, the solid (s) and liquid (l) accelerations solve

            [ m_s  m_l ] [ a_s ]   [ f_mix              ]
            [ 0    m_l ] [ a_l ] = [ f_l - c (v_l - v_s) ]

        where the mixture force lives on the solid column and `c` is the drag
        coefficient. The system is upper-triangular, so it is solved by back
        substitution. Damping is applied to each unbalanced force.
        """
        if self.n_phases < 2:
            raise ValueError(f"Two-phase integration needs 2 phases, node {self.uid} has {self.n_phases}.")

        solid, liquid = NodePhase.SOLID, NodePhase.LIQUID
        masses = self.properties.scalars(ScalarProperty.MASS)
        velocity = self.properties.vectors(VectorProperty.VELOCITY)
        acceleration = self.properties.vectors(VectorProperty.ACCELERATION)
        mass_s, mass_l = masses[0, solid], masses[0, liquid]

        status = mass_s > config.MASS_TOLERANCE and mass_l > config.MASS_TOLERANCE
        if status:
            drag_force = self.drag_force_coefficient() * (velocity[:, liquid] - velocity[:, solid])

            force_l = self.external_force(liquid) + self.internal_force(liquid) - drag_force
            force_l = _cundall_damped(force_l, velocity[:, liquid], damping_factor)
            acceleration[:, liquid] = force_l / mass_l

            force_s = (self.external_force(NodePhase.MIXTURE) + self.internal_force(NodePhase.MIXTURE)
                       - mass_l * acceleration[:, liquid])
            force_s = _cundall_damped(force_s, velocity[:, solid], damping_factor)
            acceleration[:, solid] = force_s / mass_s

            self.constraints.apply_friction_constraints(velocity, acceleration, dt)

            # Solid and liquid columns are 0 and 1
            velocity[:, :2] += acceleration[:, :2] * dt
        else:
            logger.debug(f"Node {self.uid}: two-phase masses ({mass_s:.3e}, {mass_l:.3e}) below tolerance.")

        self.apply_velocity_constraints()

        zero_small_entries(velocity, config.VELOCITY_THRESHOLD)
        zero_small_entries(acceleration, config.VELOCITY_THRESHOLD)
        return bool(status)

    def compute_pressure(self) -> None:
        """Recover pressure = mass_pressure / mass for every phase with mass."""
        masses = self.properties.scalars(ScalarProperty.MASS)
        mass_pressure = self.properties.scalars(ScalarProperty.MASS_PRESSURE)
        pressure = self.properties.scalars(ScalarProperty.PRESSURE)
        for phase in range(self.n_phases):
            if masses[0, phase] > config.PRESSURE_MASS_TOLERANCE:
                pressure[0, phase] = mass_pressure[0, phase] / masses[0, phase]

    # ------------------------------------------------------------------
    # Constraints and loads
    # ------------------------------------------------------------------
    def assign_velocity_constraint(self, direction: int, velocity: float) -> bool:
        """
        Prescribe a velocity. Directions range over ``[0, dim * n_phases)``.

        Returns:
            Assignment status.
        """
        return self.constraints.assign_velocity_constraint(direction, velocity)

    def apply_velocity_constraints(self) -> None:
        """Clamp constrained velocity components (and zero their acceleration)."""
        self.constraints.apply_velocity_constraints(
            self.properties.vectors(VectorProperty.VELOCITY),
            self.properties.vectors(VectorProperty.ACCELERATION),
        )

    def assign_friction_constraint(self, direction: int, sign: int, friction: float) -> bool:
        """
        Assign a friction constraint on the boundary with the given normal.

        Returns:
            Assignment status.
        """
        status = self.constraints.assign_friction_constraint(direction, sign, friction)
        if status:
            self.assign_boolean_property(BooleanProperty.FRICTION, True)
        return status

    def apply_friction_constraints(self, dt: float) -> None:
        self.constraints.apply_friction_constraints(
            self.properties.vectors(VectorProperty.VELOCITY),
            self.properties.vectors(VectorProperty.ACCELERATION),
            dt,
        )

    def assign_rotation_matrix(self, rotation_matrix: list[list[float]] | npt.NDArray[np.float64]) -> None:
        """Rotate the constraint frame: ``global = R @ local``."""
        self.constraints.assign_rotation_matrix(rotation_matrix)
        self.assign_boolean_property(BooleanProperty.GENERIC_BC, True)

    def assign_concentrated_force(
        self,
        phase: int,
        direction: int,
        force: float,
        function: Optional[TimeFunction] = None,
    ) -> bool:
        """
        Assign a concentrated nodal force.

        Args:
            phase: Phase index.
            direction: Direction index, must be below ``dim * n_phases``.
            force: Base magnitude.
            function: Optional shared time multiplier.

        Returns:
            Assignment status.
        """
        return self.constraints.assign_concentrated_force(phase, direction, force, function)

    def apply_concentrated_force(self, phase: int, current_time: float) -> None:
        """Add the (time-scaled) concentrated force to the external force."""
        self.update_external_force(True, phase, self.constraints.concentrated_force_at(phase, current_time))

    # ------------------------------------------------------------------
    # Multi-material contact
    # ------------------------------------------------------------------
    def compute_multimaterial_change_in_momentum(self) -> npt.NDArray[np.float64]:
        return contact.compute_multimaterial_change_in_momentum(self)

    def compute_multimaterial_separation_vector(self) -> dict[tuple[int, int], float]:
        return contact.compute_multimaterial_separation_vector(self)

    def compute_multimaterial_normal_unit_vector(self) -> None:
        contact.compute_multimaterial_normal_unit_vector(self)


def _check_damping(damping_factor: float) -> None:
    if not 0.0 <= damping_factor < 1.0:
        raise ValueError(f"Damping factor must be in [0, 1), got {damping_factor}.")


def _cundall_damped(
    force: npt.NDArray[np.float64],
    velocity: npt.NDArray[np.float64],
    damping_factor: float,
) -> npt.NDArray[np.float64]:
    """Scale each force component by (1 - alpha * sign(f_i * v_i))."""
    if damping_factor == 0.0:
        return force
    return force * (1.0 - damping_factor * np.sign(force * velocity))
