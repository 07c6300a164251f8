import pytest

from dcsim import Circuit, CurrentSource, InvalidTopology, Resistor, VoltageSource


def test_connect_registers_component_on_both_nodes():
    """
    Connecting a resistor between a node and ground registers it once in the
    circuit and once in each terminal's incidence list.
    """
    circuit = Circuit(ground_id=3)
    n1 = circuit.add_node(0)
    circuit.add_node(1)
    circuit.add_node(2)

    circuit.connect(Resistor, n1, circuit.ground, 1000.0)

    assert len(n1.connections) == 1
    assert len(circuit.ground.connections) == 1
    assert len(circuit.components) == 1
    assert circuit.incident(n1) == [circuit.components[0]]


def test_ground_is_created_with_the_circuit():
    circuit = Circuit(ground_id=99)
    assert circuit.ground.id == 99
    assert circuit.ground.is_ground
    assert circuit.ground.voltage == 0.0
    assert circuit.nodes == (circuit.ground,)

    with pytest.raises(AttributeError):
        circuit.ground = circuit.add_node(1)


def test_nodes_keep_creation_order_and_arena_index():
    circuit = Circuit(ground_id=0)
    created = [circuit.add_node(i) for i in (7, 3, 5)]
    assert [n.id for n in circuit.nodes] == [0, 7, 3, 5]
    assert [n.index for n in created] == [1, 2, 3]
    assert circuit.node(3) is created[1]


def test_duplicate_node_id_is_rejected():
    circuit = Circuit(ground_id=0)
    circuit.add_node(1)
    with pytest.raises(InvalidTopology, match="already exists"):
        circuit.add_node(1)
    with pytest.raises(InvalidTopology):
        circuit.add_node(0)
    assert len(circuit.nodes) == 2


def test_connect_accepts_ids_and_nodes():
    circuit = Circuit(ground_id=0)
    a = circuit.add_node(1)
    r = circuit.connect(Resistor, a, 0, 10.0)
    s = circuit.connect(CurrentSource, 0, 1, 1.0)
    assert circuit.terminals(r) == (1, 0)
    assert circuit.terminals("I1") == (0, 1)
    assert circuit.incident(1) == [r, s]


def test_ground_cannot_be_reassigned():
    """
    The reference node is fixed at construction: neither the circuit's
    ground id nor a node's ground flag can be changed afterwards.
    """
    circuit = Circuit(ground_id=0)
    node = circuit.add_node(1)
    circuit.add_node(2)
    circuit.connect(Resistor, 1, 2, 1.0)
    circuit.connect(Resistor, 2, 0, 2.0)
    circuit.connect(CurrentSource, 0, 1, 1.0)

    with pytest.raises(AttributeError):
        circuit.ground_id = 1
    with pytest.raises(AttributeError):
        circuit.node(2).is_ground = True
    with pytest.raises(AttributeError):
        node.index = 0
    with pytest.raises(AttributeError):
        node.voltage = 5.0

    solution = circuit.solve()
    assert circuit.ground_id == 0
    assert [n.is_ground for n in circuit.nodes] == [True, False, False]
    assert solution.node_voltage(1) == pytest.approx(3.0)
    assert solution.node_voltage(2) == pytest.approx(2.0)


def test_incidence_list_is_read_only():
    circuit = Circuit(ground_id=0)
    node = circuit.add_node(1)
    circuit.connect(Resistor, node, 0, 1.0)

    assert node.connections == (0,)
    with pytest.raises(AttributeError):
        node.connections.append(5)
    with pytest.raises(AttributeError):
        node.connections = (5,)
    assert circuit.incident(node) == [circuit.component("R1")]


def test_terminals_reject_foreign_components():
    circuit = Circuit(ground_id=0)
    circuit.add_node(1)
    other = Circuit(ground_id=0)
    other.add_node(1)
    foreign = other.connect(Resistor, 1, 0, 1.0)

    with pytest.raises(InvalidTopology):
        circuit.terminals(foreign)
    with pytest.raises(KeyError):
        circuit.terminals("R1")


def test_unknown_node_id_is_rejected():
    circuit = Circuit(ground_id=0)
    circuit.add_node(1)
    with pytest.raises(InvalidTopology, match="does not belong"):
        circuit.connect(Resistor, 1, 42, 100.0)
    assert circuit.components == ()


def test_node_from_another_circuit_is_rejected():
    circuit = Circuit(ground_id=0)
    circuit.add_node(1)
    other = Circuit(ground_id=0)
    foreign = other.add_node(1)

    with pytest.raises(InvalidTopology):
        circuit.connect(Resistor, foreign, 0, 100.0)
    with pytest.raises(InvalidTopology):
        circuit.connect(Resistor, other.ground, 1, 100.0)


def test_components_are_auto_named_per_kind():
    circuit = Circuit(ground_id=0)
    circuit.add_node(1)
    names = [
        circuit.connect(Resistor, 1, 0, 1.0).name,
        circuit.connect(Resistor, 1, 0, 2.0).name,
        circuit.connect(CurrentSource, 0, 1, 1.0).name,
        circuit.connect(VoltageSource, 0, 1, 1.0).name,
    ]
    assert names == ["R1", "R2", "I1", "V1"]
    assert circuit.component("R2").resistance == 2.0


def test_auto_name_skips_names_already_taken():
    circuit = Circuit(ground_id=0)
    circuit.add_node(1)
    circuit.connect(Resistor, 1, 0, 1.0, name="R2")
    assert circuit.connect(Resistor, 1, 0, 1.0).name == "R3"


def test_duplicate_component_name_is_rejected():
    circuit = Circuit(ground_id=0)
    circuit.add_node(1)
    circuit.connect(Resistor, 1, 0, 1.0, name="Rload")
    with pytest.raises(InvalidTopology, match="Rload"):
        circuit.connect(Resistor, 1, 0, 2.0, name="Rload")


@pytest.mark.parametrize("resistance", [0.0, -5.0, float("inf"), float("nan")])
def test_invalid_resistance_is_rejected_at_connect(resistance):
    circuit = Circuit(ground_id=0)
    node = circuit.add_node(1)
    with pytest.raises(InvalidTopology):
        circuit.connect(Resistor, node, 0, resistance)
    assert circuit.components == ()
    assert node.connections == ()


def test_non_finite_source_values_are_rejected():
    circuit = Circuit(ground_id=0)
    circuit.add_node(1)
    with pytest.raises(InvalidTopology):
        circuit.connect(CurrentSource, 0, 1, float("nan"))
    with pytest.raises(InvalidTopology):
        circuit.connect(VoltageSource, 0, 1, float("inf"))


def test_connect_requires_a_component_type():
    circuit = Circuit(ground_id=0)
    circuit.add_node(1)
    with pytest.raises(TypeError):
        circuit.connect(dict, 0, 1)
    with pytest.raises(TypeError):
        circuit.connect(Resistor(name="R", node_a=0, node_b=1, resistance=1.0), 0, 1)


def test_unknown_lookups_raise_key_error():
    circuit = Circuit(ground_id=0)
    with pytest.raises(KeyError):
        circuit.node(5)
    with pytest.raises(KeyError):
        circuit.component("R1")
