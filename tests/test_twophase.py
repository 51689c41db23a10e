"""
Tests for the coupled solid-fluid explicit integration.
"""

import numpy as np
import pytest

from mpmcore.nodal import Node, NodePhase


def twophase_node(liquid_velocity=(0.0, 0.0), drag=(0.0, 0.0), liquid_mass=1.0):
    node = Node(index=0, coords=[0.0, 0.0], n_phases=2)
    node.update_mass(True, NodePhase.SOLID, 2.0)
    node.update_mass(True, NodePhase.LIQUID, liquid_mass)
    node.update_momentum(True, NodePhase.LIQUID, [liquid_mass * v for v in liquid_velocity])
    node.update_external_force(True, NodePhase.MIXTURE, [0.0, -3.0])
    node.update_external_force(True, NodePhase.LIQUID, [0.0, -1.0])
    node.update_drag_force_coefficient(True, list(drag))
    node.compute_velocity()
    return node


class TestTwoPhaseExplicit:

    def test_without_drag(self):
        node = twophase_node()

        assert node.compute_acceleration_velocity_twophase_explicit(0.1) is True

        np.testing.assert_allclose(node.acceleration(NodePhase.LIQUID), [0.0, -1.0])
        np.testing.assert_allclose(node.acceleration(NodePhase.SOLID), [0.0, -1.0])
        np.testing.assert_allclose(node.velocity(NodePhase.SOLID), [0.0, -0.1])
        np.testing.assert_allclose(node.velocity(NodePhase.LIQUID), [0.0, -0.1])

    def test_drag_couples_phases(self):
        node = twophase_node(liquid_velocity=(1.0, 0.0), drag=(2.0, 2.0))

        node.compute_acceleration_velocity_twophase_explicit(0.1)

        a_s = node.acceleration(NodePhase.SOLID)
        a_l = node.acceleration(NodePhase.LIQUID)
        np.testing.assert_allclose(a_l, [-2.0, -1.0])
        np.testing.assert_allclose(a_s, [1.0, -1.0])
        np.testing.assert_allclose(node.velocity(NodePhase.SOLID), [0.1, -0.1])
        np.testing.assert_allclose(node.velocity(NodePhase.LIQUID), [0.8, -0.1])

        # Mixture momentum balance: m_s a_s + m_l a_l = f_mix
        np.testing.assert_allclose(2.0 * a_s + 1.0 * a_l, [0.0, -3.0])

    def test_massless_liquid_returns_false(self):
        node = twophase_node(liquid_mass=0.0)

        assert node.compute_acceleration_velocity_twophase_explicit(0.1) is False
        assert node.compute_acceleration_velocity_twophase_explicit_cundall(0.1, 0.2) is False

        np.testing.assert_allclose(node.velocity(NodePhase.SOLID), [0.0, 0.0])
        np.testing.assert_allclose(node.acceleration(NodePhase.SOLID), [0.0, 0.0])

    def test_velocity_constraints_applied_even_when_skipped(self):
        node = twophase_node(liquid_mass=0.0)
        node.assign_velocity_constraint(2, 0.4)

        node.compute_acceleration_velocity_twophase_explicit(0.1)

        assert node.velocity(NodePhase.LIQUID)[0] == pytest.approx(0.4)

    def test_cundall_without_damping_matches_undamped(self):
        plain = twophase_node(liquid_velocity=(1.0, 0.5), drag=(2.0, 1.0))
        damped = twophase_node(liquid_velocity=(1.0, 0.5), drag=(2.0, 1.0))

        plain.compute_acceleration_velocity_twophase_explicit(0.05)
        damped.compute_acceleration_velocity_twophase_explicit_cundall(0.05, 0.0)

        for phase in (NodePhase.SOLID, NodePhase.LIQUID):
            np.testing.assert_allclose(damped.velocity(phase), plain.velocity(phase))

    def test_single_phase_node_rejected(self):
        node = Node(index=0, coords=[0.0, 0.0])
        with pytest.raises(ValueError):
            node.compute_acceleration_velocity_twophase_explicit(0.1)
