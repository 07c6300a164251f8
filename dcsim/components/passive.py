from __future__ import annotations
from dataclasses import dataclass
from ..errors import InvalidTopology
from .base import Component, StampData, stamp_conductance, require_finite


def _check_resistance(name: str, resistance: float) -> float:
    resistance = require_finite(resistance, f"Resistance of '{name}'")
    if resistance <= 0:
        raise InvalidTopology(f"Resistance of '{name}' must be positive, got {resistance!r}.")
    return resistance


@dataclass
class Resistor(Component):
    name: str
    node_a: int
    node_b: int
    resistance: float

    prefix = "R"

    def __post_init__(self) -> None:
        Component.__init__(self, self.name, self.node_a, self.node_b)
        self.resistance = _check_resistance(self.name, self.resistance)

    @property
    def conductance(self) -> float:
        return 1.0 / self.resistance

    def stamp(self, data: StampData) -> None:
        # value may have been edited since construction
        _check_resistance(self.name, self.resistance)
        stamp_conductance(data, self.node_a, self.node_b, self.conductance)

    def branch_current(self, point) -> float:
        return self.branch_voltage(point) / self.resistance
