from mpmcore.nodal.properties import (
    BooleanProperty,
    NodePhase,
    PropertyStore,
    ScalarProperty,
    VectorProperty,
)
from mpmcore.nodal.nodal_properties import NodalProperties
from mpmcore.nodal.constraints import ConstraintSet, FrictionConstraint
from mpmcore.nodal.node import Node

__all__ = [
    "BooleanProperty",
    "ConstraintSet",
    "FrictionConstraint",
    "NodalProperties",
    "Node",
    "NodePhase",
    "PropertyStore",
    "ScalarProperty",
    "VectorProperty",
]
