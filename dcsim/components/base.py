from __future__ import annotations
from dataclasses import dataclass
from abc import ABC, abstractmethod
from typing import Dict, Tuple
import numpy as np

from ..errors import InvalidTopology

Array = np.ndarray


@dataclass
class StampData:
    """
    Shared view of the MNA system during stamping.

    Attributes:
        A:   Coefficient matrix (real, shape n_nodes + n_aux).
        b:   Right-hand side vector (injected currents and source voltages).
        node_rows: Mapping node arena index -> row/column index (ground excluded).
        aux_map: Mapping component name -> tuple of auxiliary indices.
    """
    A: Array
    b: Array
    node_rows: Dict[int, int]
    aux_map: Dict[str, Tuple[int, ...]]

    def row(self, node: int) -> int | None:
        return self.node_rows.get(node)

    def aux(self, name: str) -> Tuple[int, ...]:
        return self.aux_map.get(name, tuple())


@dataclass(frozen=True)
class OperatingPoint:
    """
    Solved unknowns as seen by the components, used once at solve time to
    derive branch quantities.

    Attributes:
        voltages: Node voltages indexed by node arena index (ground included).
        aux_values: Mapping component name -> values of its auxiliary unknowns.
    """
    voltages: Array
    aux_values: Dict[str, Tuple[float, ...]]

    def voltage(self, node: int) -> float:
        return float(self.voltages[node])

    def aux(self, name: str) -> Tuple[float, ...]:
        if name not in self.aux_values:
            raise KeyError(f"No auxiliary variable associated with '{name}'.")
        return self.aux_values[name]


def stamp_conductance(data: StampData, node_a: int, node_b: int, conductance: float) -> None:
    ia = data.row(node_a)
    ib = data.row(node_b)
    if ia is not None:
        data.A[ia, ia] += conductance
    if ib is not None:
        data.A[ib, ib] += conductance
    if ia is not None and ib is not None:
        data.A[ia, ib] -= conductance
        data.A[ib, ia] -= conductance


def stamp_current_source(data: StampData, node_a: int, node_b: int, current: float) -> None:
    """
    Current is drawn out of node_a and injected into node_b.
    """
    ia = data.row(node_a)
    ib = data.row(node_b)
    if ia is not None:
        data.b[ia] -= current
    if ib is not None:
        data.b[ib] += current


def stamp_voltage_source(data: StampData, aux_idx: int, node_a: int, node_b: int, voltage: float) -> None:
    """
    Enforce V(node_b) - V(node_a) = voltage through the auxiliary row aux_idx.
    """
    ia = data.row(node_a)
    ib = data.row(node_b)
    if ia is not None:
        data.A[ia, aux_idx] -= 1.0
        data.A[aux_idx, ia] -= 1.0
    if ib is not None:
        data.A[ib, aux_idx] += 1.0
        data.A[aux_idx, ib] += 1.0
    data.b[aux_idx] += voltage


def require_finite(value: float, what: str) -> float:
    try:
        value = float(value)
    except (TypeError, ValueError) as exc:
        raise InvalidTopology(f"{what} must be a real number, got {value!r}.") from exc
    if not np.isfinite(value):
        raise InvalidTopology(f"{what} must be finite, got {value!r}.")
    return value


class Component(ABC):
    """
    Base class for two-terminal components stamped into the MNA system.

    Terminals are arena indices into the owning circuit's node list. node_a is
    the "-" terminal and node_b the "+" terminal.
    """

    prefix = "X"

    def __init__(self, name: str, node_a: int, node_b: int) -> None:
        self.name = name
        self.node_a = node_a
        self.node_b = node_b

    def num_aux_vars(self) -> int:
        return 0

    @abstractmethod
    def stamp(self, data: StampData) -> None:
        """
        Add this component's contribution to the global A,b system.
        """

    @abstractmethod
    def branch_current(self, point: OperatingPoint) -> float:
        """
        Return the current through the component in its reference direction.

        The reference direction enters the terminal that branch_voltage treats
        as positive, so branch_voltage * branch_current is absorbed power.
        """

    def branch_voltage(self, point: OperatingPoint) -> float:
        va = point.voltage(self.node_a)
        vb = point.voltage(self.node_b)
        return va - vb
