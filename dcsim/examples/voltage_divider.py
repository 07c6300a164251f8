"""
DC analysis example (loaded voltage divider with a bias current).

Circuit:
    Vs (12 V) -> R1 (1 kΩ) -> node 2 -> R2 (2 kΩ) -> ground.
    Rload (6 kΩ) from node 2 to ground, plus a 1 mA source injecting into node 2.

The script solves the circuit and reports:
- Node voltages.
- Branch currents and absorbed power for every component.
- The power balance, which must be zero.
"""

from dcsim import Circuit, CurrentSource, Resistor, VoltageSource

GND, VIN, VOUT = 0, 1, 2


def build() -> Circuit:
    circuit = Circuit(ground_id=GND)
    circuit.add_node(VIN)
    circuit.add_node(VOUT)

    circuit.connect(VoltageSource, GND, VIN, 12.0, name="Vs")
    circuit.connect(Resistor, VIN, VOUT, 1_000.0, name="R1")
    circuit.connect(Resistor, VOUT, GND, 2_000.0, name="R2")
    circuit.connect(Resistor, VOUT, GND, 6_000.0, name="Rload")
    circuit.connect(CurrentSource, GND, VOUT, 1e-3, name="Ibias")
    return circuit


def main() -> None:
    circuit = build()
    solution = circuit.solve()

    for node_id in solution.node_order:
        print(f"V({node_id}) = {solution.node_voltage(node_id):.4f} V")

    total = 0.0
    for component in circuit.components:
        current = solution.branch_current(component.name)
        power = solution.branch_power(component.name)
        total += power
        print(f"{component.name:>6}: I = {current * 1e3:8.4f} mA, P = {power * 1e3:8.4f} mW")

    print(f"Power balance: {total:.3e} W")


if __name__ == "__main__":
    main()
