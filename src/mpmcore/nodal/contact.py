"""
Multi-Material Contact
======================
Momentum correction and contact geometry for nodes shared by several
materials.

The per-material quantities live in the node's property pool
(`mpmcore.nodal.nodal_properties.NodalProperties`). None of these functions
fail the step: a node without a pool, with fewer than two materials or with
negligible mass is simply left alone.
"""
from __future__ import annotations

from itertools import combinations
import logging
from typing import TYPE_CHECKING

import numpy as np

from mpmcore import config

if TYPE_CHECKING:
    import numpy.typing as npt
    from mpmcore.nodal.node import Node

logger = logging.getLogger(__name__)


def _is_multimaterial(node: Node) -> bool:
    if node.property_handle is None or node.prop_id is None:
        logger.debug(f"Node {node.uid}: no property pool, contact skipped.")
        return False
    if len(node.material_ids) < 2:
        return False
    return node.mass(0) > config.MASS_TOLERANCE


def compute_multimaterial_change_in_momentum(node: Node) -> npt.NDArray[np.float64]:
    """
    Momentum increment that brings every material to the common velocity.

    ``delta_i = v_cm * m_i - p_i`` with ``v_cm = p_node / m_node``. The result
    is stored as "change_in_momenta" in the pool.

    Args:
        node: Node to process.

    Returns:
        (dim, n_materials) array of increments. Zeros (or an empty array
        without a pool) when the node is not shared by several materials.
    """
    if not _is_multimaterial(node):
        return _zeros_like_pool(node, "change_in_momenta")

    pool = node.property_handle
    masses = pool.property("masses", node.prop_id)
    momenta = pool.property("momenta", node.prop_id, nprops=node.dim)

    velocity_cm = node.momentum(0) / node.mass(0)
    delta_momenta = np.outer(velocity_cm, masses[0]) - momenta

    pool.assign_property("change_in_momenta", node.prop_id, 0, delta_momenta, node.dim)
    return delta_momenta


def compute_multimaterial_separation_vector(node: Node) -> dict[tuple[int, int], float]:
    """
    Separation of each material from the centre of mass, and between pairs.

    The pool stores mass-weighted displacements ``d_i``. The separation vector
    ``s_i = d_i - d_cm * m_i`` (``d_cm = sum(d_i) / m_node``) is stored as
    "separation_vectors". For every pair ``(a, b)`` of materials at the node
    the relative mean displacement ``s_a / m_a - s_b / m_b`` is projected on
    the contact normal of `a`; a positive value means `a` moves along its
    normal relative to `b`.

    Returns:
        ``{(a, b): projected separation}`` for ``a < b``. Empty if not
        applicable; 0.0 for pairs without a well-defined normal.
    """
    if not _is_multimaterial(node):
        return {}

    pool = node.property_handle
    masses = pool.property("masses", node.prop_id)[0]
    displacements = pool.property("displacements", node.prop_id, nprops=node.dim)

    displacement_cm = displacements.sum(axis=1) / node.mass(0)
    separation_vectors = displacements - np.outer(displacement_cm, masses)
    pool.assign_property("separation_vectors", node.prop_id, 0, separation_vectors, node.dim)

    normals = pool.property("normal_unit_vectors", node.prop_id, nprops=node.dim)

    separations: dict[tuple[int, int], float] = {}
    for a, b in combinations(sorted(node.material_ids), 2):
        if masses[a] <= config.MASS_TOLERANCE or masses[b] <= config.MASS_TOLERANCE:
            separations[(a, b)] = 0.0
            continue
        relative = separation_vectors[:, a] / masses[a] - separation_vectors[:, b] / masses[b]
        separations[(a, b)] = float(relative @ normals[:, a])
    return separations


def compute_multimaterial_normal_unit_vector(node: Node) -> None:
    """
    Normalize each material's domain gradient into a contact normal.

    Gradients shorter than machine epsilon give a zero normal, which means
    "no contact correction here".
    """
    pool = node.property_handle
    if pool is None or node.prop_id is None:
        logger.debug(f"Node {node.uid}: no property pool, normals skipped.")
        return

    for mat_id in sorted(node.material_ids):
        domain_gradient = pool.property("domain_gradients", node.prop_id, mat_id, node.dim)
        norm = float(np.linalg.norm(domain_gradient))

        normal_unit_vector = np.zeros(node.dim, dtype=np.float64)
        if norm > config.NORMAL_EPSILON:
            normal_unit_vector = domain_gradient / norm

        pool.assign_property("normal_unit_vectors", node.prop_id, mat_id, normal_unit_vector, node.dim)


def _zeros_like_pool(node: Node, name: str) -> npt.NDArray[np.float64]:
    pool = node.property_handle
    if pool is None or name not in pool.properties:
        return np.zeros((node.dim, 0), dtype=np.float64)
    return np.zeros((node.dim, pool.properties[name].shape[1]), dtype=np.float64)
