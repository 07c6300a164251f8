from __future__ import annotations
from dataclasses import dataclass
from .base import (
    Component,
    StampData,
    require_finite,
    stamp_current_source,
    stamp_voltage_source,
)


@dataclass
class CurrentSource(Component):
    """
    Ideal current source driving `current` from node_a ("-") to node_b ("+").
    """
    name: str
    node_a: int
    node_b: int
    current: float

    prefix = "I"

    def __post_init__(self) -> None:
        Component.__init__(self, self.name, self.node_a, self.node_b)
        self.current = require_finite(self.current, f"Current of '{self.name}'")

    def stamp(self, data: StampData) -> None:
        current = require_finite(self.current, f"Current of '{self.name}'")
        stamp_current_source(data, self.node_a, self.node_b, current)

    def branch_current(self, point) -> float:
        return self.current


@dataclass
class VoltageSource(Component):
    """
    Ideal voltage source holding V(node_b) - V(node_a) = voltage.

    Its current is an extra unknown of the MNA system. The solved value is
    positive when current enters the "+" terminal (node_b) from the external
    circuit, so a source delivering power reports a negative current.
    """
    name: str
    node_a: int
    node_b: int
    voltage: float

    prefix = "V"

    def __post_init__(self) -> None:
        Component.__init__(self, self.name, self.node_a, self.node_b)
        self.voltage = require_finite(self.voltage, f"Voltage of '{self.name}'")

    def num_aux_vars(self) -> int:
        return 1

    def stamp(self, data: StampData) -> None:
        aux = data.aux(self.name)
        if len(aux) != 1:
            raise RuntimeError("VoltageSource requires a single auxiliary variable.")
        voltage = require_finite(self.voltage, f"Voltage of '{self.name}'")
        stamp_voltage_source(data, aux[0], self.node_a, self.node_b, voltage)

    def branch_voltage(self, point) -> float:
        return point.voltage(self.node_b) - point.voltage(self.node_a)

    def branch_current(self, point) -> float:
        return point.aux(self.name)[0]
