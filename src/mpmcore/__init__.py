"""
The computational core of a Material Point Method solver.

Two subsystems live here and have no knowledge of meshes, particles or I/O:

- `mpmcore.nodal`: background-grid node state, explicit time integration,
  boundary conditions and multi-material contact response.
- `mpmcore.mls`: moving-least-squares interpolation for generalized shape
  functions.
"""
import logging

from mpmcore.functions import ConstantFunction, LinearFunction, TimeFunction
from mpmcore.nodal import NodalProperties, Node, NodePhase
from mpmcore.mls import MLSInterpolation

logging.getLogger(__name__).addHandler(logging.NullHandler())

__all__ = [
    "ConstantFunction",
    "LinearFunction",
    "MLSInterpolation",
    "NodalProperties",
    "Node",
    "NodePhase",
    "TimeFunction",
]

__version__ = "0.1.0"
