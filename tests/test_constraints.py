"""
Tests for rotated velocity constraints and Coulomb friction.
"""

import numpy as np
import pytest

from mpmcore.nodal import ConstraintSet, Node
from mpmcore.nodal.properties import BooleanProperty


def rotation_2d(angle):
    c, s = np.cos(angle), np.sin(angle)
    return np.array([[c, -s], [s, c]])


def sliding_node(coords, velocity, force, mass=1.0):
    node = Node(index=0, coords=coords)
    node.update_mass(True, 0, mass)
    node.update_momentum(True, 0, [mass * v for v in velocity])
    node.update_external_force(True, 0, force)
    node.compute_velocity()
    return node


class TestConstraintSet:

    def test_direction_encodes_phase(self):
        constraints = ConstraintSet(dim=2, n_phases=2)
        velocity = np.zeros((2, 2))
        acceleration = np.ones((2, 2))

        assert constraints.assign_velocity_constraint(3, 2.5) is True
        constraints.apply_velocity_constraints(velocity, acceleration)

        assert velocity[1, 1] == 2.5
        assert acceleration[1, 1] == 0.0
        assert acceleration[0, 1] == 1.0

    def test_rotation_matrix_shape_is_checked(self):
        constraints = ConstraintSet(dim=2, n_phases=1)
        with pytest.raises(ValueError):
            constraints.assign_rotation_matrix(np.eye(3))
        with pytest.raises(ValueError):
            constraints.assign_rotation_matrix(np.zeros((2, 2)))


class TestRotatedVelocityConstraints:

    def test_normal_velocity_removed_in_rotated_frame(self):
        node = sliding_node([0.0, 0.0], velocity=[1.0, 0.0], force=[0.0, 0.0])
        node.assign_rotation_matrix(rotation_2d(np.pi / 4))
        node.assign_velocity_constraint(0, 0.0)

        node.apply_velocity_constraints()

        # Only the tangential part along (-sin, cos) survives
        np.testing.assert_allclose(node.velocity(0), [0.5, -0.5], atol=1e-12)
        normal = rotation_2d(np.pi / 4)[:, 0]
        assert node.velocity(0) @ normal == pytest.approx(0.0, abs=1e-12)
        assert node.boolean_property(BooleanProperty.GENERIC_BC) is True

    def test_rotated_constraint_is_idempotent(self):
        node = sliding_node([0.0, 0.0], velocity=[0.3, -1.2], force=[0.0, 0.0])
        node.assign_rotation_matrix(rotation_2d(0.3))
        node.assign_velocity_constraint(1, 0.7)

        node.apply_velocity_constraints()
        once = node.velocity(0)
        node.apply_velocity_constraints()

        np.testing.assert_allclose(node.velocity(0), once, atol=1e-14)


class TestFriction2D:

    def test_static_friction_holds_node(self):
        node = sliding_node([0.0, 0.0], velocity=[0.0, 0.0], force=[0.3, -1.0])
        node.assign_velocity_constraint(1, 0.0)
        node.assign_friction_constraint(1, -1, 0.5)

        node.compute_acceleration_velocity(0, 0.1)

        np.testing.assert_allclose(node.acceleration(0), [0.0, 0.0])
        np.testing.assert_allclose(node.velocity(0), [0.0, 0.0])

    def test_static_friction_exceeded(self):
        node = sliding_node([0.0, 0.0], velocity=[0.0, 0.0], force=[2.0, -1.0])
        node.assign_velocity_constraint(1, 0.0)
        node.assign_friction_constraint(1, -1, 0.5)

        node.compute_acceleration_velocity(0, 0.1)

        np.testing.assert_allclose(node.acceleration(0), [1.5, 0.0])
        np.testing.assert_allclose(node.velocity(0), [0.15, 0.0])

    def test_kinetic_friction_decelerates(self):
        node = sliding_node([0.0, 0.0], velocity=[1.0, 0.0], force=[0.0, -1.0])
        node.assign_velocity_constraint(1, 0.0)
        node.assign_friction_constraint(1, -1, 0.5)

        node.compute_acceleration_velocity(0, 0.1)

        np.testing.assert_allclose(node.acceleration(0), [-0.5, 0.0])
        np.testing.assert_allclose(node.velocity(0), [0.95, 0.0])

    def test_kinetic_friction_stops_slow_node(self):
        node = sliding_node([0.0, 0.0], velocity=[0.01, 0.0], force=[0.0, -1.0])
        node.assign_velocity_constraint(1, 0.0)
        node.assign_friction_constraint(1, -1, 0.5)

        node.compute_acceleration_velocity(0, 0.1)

        np.testing.assert_allclose(node.velocity(0), [0.0, 0.0], atol=1e-14)

    def test_no_friction_when_separating(self):
        node = sliding_node([0.0, 0.0], velocity=[0.0, 0.0], force=[2.0, 1.0])
        node.assign_friction_constraint(1, -1, 0.5)

        node.compute_acceleration_velocity(0, 0.1)

        np.testing.assert_allclose(node.acceleration(0), [2.0, 1.0])


class TestFriction3D:

    def test_kinetic_friction_opposes_tangential_velocity(self):
        node = sliding_node([0.0, 0.0, 0.0], velocity=[0.3, 0.4, 0.0], force=[0.0, 0.0, -1.0])
        node.assign_velocity_constraint(2, 0.0)
        node.assign_friction_constraint(2, -1, 0.5)

        node.compute_acceleration_velocity(0, 0.1)

        np.testing.assert_allclose(node.acceleration(0), [-0.3, -0.4, 0.0])
        np.testing.assert_allclose(node.velocity(0), [0.27, 0.36, 0.0])

    def test_static_friction_3d(self):
        node = sliding_node([0.0, 0.0, 0.0], velocity=[0.0, 0.0, 0.0], force=[0.3, 0.4, -2.0])
        node.assign_velocity_constraint(2, 0.0)
        node.assign_friction_constraint(2, -1, 0.5)

        node.compute_acceleration_velocity(0, 0.1)

        # |a_t| = 0.5 <= mu * |a_n| = 1.0
        np.testing.assert_allclose(node.velocity(0), [0.0, 0.0, 0.0])
