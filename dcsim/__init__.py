"""
DC circuit solver based on Modified Nodal Analysis.

Build a Circuit from nodes, resistors and independent current/voltage
sources, then call Circuit.solve() for node voltages and source currents.
"""

from .circuit import Circuit, Node, Solution, MnaSystem  # noqa: F401
from .components import Component, Resistor, CurrentSource, VoltageSource  # noqa: F401
from .solver import LinearSolver, DenseSolver, SolverConfig  # noqa: F401
from .errors import (  # noqa: F401
    CircuitError,
    InvalidTopology,
    SingularSystem,
    IllConditioned,
    IllConditionedWarning,
    CircuitBusy,
)
from . import components  # noqa: F401

__all__ = [
    "Circuit",
    "Node",
    "Solution",
    "MnaSystem",
    "Component",
    "Resistor",
    "CurrentSource",
    "VoltageSource",
    "LinearSolver",
    "DenseSolver",
    "SolverConfig",
    "CircuitError",
    "InvalidTopology",
    "SingularSystem",
    "IllConditioned",
    "IllConditionedWarning",
    "CircuitBusy",
    "components",
]
