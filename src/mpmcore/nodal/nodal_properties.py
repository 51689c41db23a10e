"""
Nodal Property Pool
===================
Shared storage of per-node, per-material quantities.

Why is this file needed?
------------------------
1. Multi-material contact needs each material's mass, momentum, displacement
   and domain gradient at a node, not just the node totals.
2. The pool is shared by all nodes in a partition, so cross-rank reductions can
   work on one array per quantity instead of walking every node.

Each named property is a ``(n_nodes * nprops, n_materials)`` array. The rows
``[prop_id * nprops, (prop_id + 1) * nprops)`` belong to the node with that
property id; the columns are material ids.
"""
from __future__ import annotations

import logging
from typing import TYPE_CHECKING

import numpy as np

if TYPE_CHECKING:
    import numpy.typing as npt

logger = logging.getLogger(__name__)

# Property name -> number of components per node (None means "dim")
CONTACT_PROPERTIES: dict[str, int | None] = {
    "masses": 1,
    "momenta": None,
    "change_in_momenta": None,
    "displacements": None,
    "separation_vectors": None,
    "domain_gradients": None,
    "normal_unit_vectors": None,
}


class NodalProperties:
    """
    Pool of named per-node, per-material property matrices.
    """
    def __init__(self) -> None:
        self.properties: dict[str, npt.NDArray[np.float64]] = {}

    def __repr__(self) -> str:
        """String representation of the pool."""
        return f"{self.__class__.__name__}(properties={sorted(self.properties)})"

    @classmethod
    def create_contact_properties(cls, n_nodes: int, n_materials: int, dim: int) -> NodalProperties:
        """
        Build a pool holding every property used by multi-material contact.

        Args:
            n_nodes: Number of nodes sharing the pool.
            n_materials: Number of material columns (material ids 0..n_materials-1).
            dim: Spatial dimension.

        Returns:
            A zero-initialized pool.
        """
        pool = cls()
        for name, nprops in CONTACT_PROPERTIES.items():
            pool.create_property(name, n_nodes * (nprops or dim), n_materials)
        return pool

    def create_property(self, name: str, rows: int, columns: int) -> bool:
        """
        Create a zeroed property matrix.

        Returns:
            False if a property with that name already exists.
        """
        if name in self.properties:
            logger.error(f"Nodal property '{name}' already exists.")
            return False
        self.properties[name] = np.zeros((rows, columns), dtype=np.float64)
        return True

    def property(
        self,
        name: str,
        node_id: int,
        mat_id: int | None = None,
        nprops: int = 1,
    ) -> npt.NDArray[np.float64]:
        """
        Return a copy of a node's block of a property.

        Args:
            name: Property name.
            node_id: Property id of the node in the pool.
            mat_id: Material id. If None, all materials are returned.
            nprops: Number of components per node (1 for scalars, dim for vectors).

        Returns:
            ``(nprops, n_materials)`` array if `mat_id` is None, else ``(nprops,)``.

        Raises:
            KeyError: If the property does not exist.
        """
        block = self.properties[name][node_id * nprops:(node_id + 1) * nprops]
        if mat_id is None:
            return block.copy()
        return block[:, mat_id].copy()

    def assign_property(
        self,
        name: str,
        node_id: int,
        mat_id: int,
        value: float | npt.NDArray[np.float64],
        nprops: int = 1,
    ) -> None:
        """
        Overwrite a node's block for one material, or for all materials.

        A two-dimensional `value` of shape ``(nprops, k)`` is written to the
        material columns ``mat_id .. mat_id + k - 1``.
        """
        self._write(name, node_id, mat_id, value, nprops, update=False)

    def update_property(
        self,
        name: str,
        node_id: int,
        mat_id: int,
        value: float | npt.NDArray[np.float64],
        nprops: int = 1,
    ) -> None:
        """Add to a node's block for one material (see `assign_property`)."""
        self._write(name, node_id, mat_id, value, nprops, update=True)

    def initialise_nodal_properties(self) -> None:
        """Zero every property, keeping the allocated shapes."""
        for array in self.properties.values():
            array.fill(0.0)

    def _write(
        self,
        name: str,
        node_id: int,
        mat_id: int,
        value: float | npt.NDArray[np.float64],
        nprops: int,
        update: bool,
    ) -> None:
        array = np.asarray(value, dtype=np.float64)
        if array.ndim < 2:
            array = array.reshape(nprops, 1)
        rows = slice(node_id * nprops, (node_id + 1) * nprops)
        cols = slice(mat_id, mat_id + array.shape[1])

        target = self.properties[name]
        if update:
            target[rows, cols] += array
        else:
            target[rows, cols] = array
