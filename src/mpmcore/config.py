"""
Numerical Configuration
=======================
This module serves as the central registry for the numerical constants of the
nodal and MLS engines.

Why is this file needed?
------------------------
1. Consistency: The same tolerance must be used wherever a node decides that
   its mass is "negligible", otherwise integration and pressure recovery
   disagree about which nodes are active.
2. Tuning: Tolerances live in one place instead of being scattered as magic
   numbers throughout the code.

Exports:
    MASS_TOLERANCE (float): Mass below which a node phase is treated as empty.
    VELOCITY_THRESHOLD (float): Kinematic components below this snap to zero.
    PRESSURE_MASS_TOLERANCE (float): Mass guard used for pressure recovery.
    NORMAL_EPSILON (float): Minimum gradient norm for a contact normal.
    SINGULAR_RCOND (float): Reciprocal condition number below which the MLS
        moment matrix is reported as singular.
    SUPPORTED_SPLINE_ORDERS (tuple[int, ...]): Valid MLS kernel orders.
"""
import sys

# Nodal integration
MASS_TOLERANCE: float = 1.0e-15
VELOCITY_THRESHOLD: float = 1.0e-15
PRESSURE_MASS_TOLERANCE: float = 1.0e-16

# Multi-material contact
NORMAL_EPSILON: float = sys.float_info.epsilon

# Moving least squares
SINGULAR_RCOND: float = 1.0e-12
SUPPORTED_SPLINE_ORDERS: tuple[int, ...] = (2, 3)
