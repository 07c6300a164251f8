from __future__ import annotations
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Dict, Iterator, List, Tuple, Type
import logging
import threading
import numpy as np

from .components.base import Component, OperatingPoint, StampData
from .errors import CircuitBusy, InvalidTopology, SingularSystem
from .solver import DenseSolver, LinearSolver

Array = np.ndarray

logger = logging.getLogger(__name__)


@dataclass(frozen=True, eq=False)
class Node:
    """
    A connection point of the circuit.

    Nodes are created by Circuit.add_node and are read-only for callers; only
    the solve writes the voltage back.

    Attributes:
        id: Caller-supplied identifier, unique within the circuit.
        index: Slot of the node in the circuit's node arena. Slot 0 is ground.
        voltage: Node voltage, 0.0 until the circuit is solved.
    """
    id: int
    index: int
    voltage: float = 0.0
    _connections: List[int] = field(default_factory=list, init=False, repr=False)

    @property
    def is_ground(self) -> bool:
        return self.index == 0

    @property
    def connections(self) -> Tuple[int, ...]:
        """Arena indices of the components touching this node."""
        return tuple(self._connections)


@dataclass
class MnaSystem:
    """
    Assembled MNA equations A x = b.

    The first len(node_order) unknowns are node voltages in node_order; the
    remaining ones are voltage source currents, located through aux_map.
    """
    A: Array
    b: Array
    node_order: List[int]
    node_index: Dict[int, int]
    aux_map: Dict[str, Tuple[int, ...]]

    @property
    def size(self) -> int:
        return self.b.shape[0]


@dataclass(frozen=True)
class Solution:
    """
    Result of a solve. Every value is captured when the solve completes, so
    later edits to the circuit do not change it.

    Attributes:
        ground: Id of the reference node.
        node_order: Non-ground node ids in matrix row order.
        node_index: Mapping node id -> matrix row.
        node_voltages: Mapping node id -> voltage (ground excluded).
        source_currents: Mapping voltage source name -> solved branch current.
        branch_voltages: Mapping component name -> voltage in its reference direction.
        branch_currents: Mapping component name -> current in its reference direction.
        terminals: Mapping component name -> (node_a id, node_b id).
        residual: 2-norm of A x - b.
    """
    ground: int
    node_order: List[int]
    node_index: Dict[int, int]
    node_voltages: Dict[int, float]
    source_currents: Dict[str, float]
    branch_voltages: Dict[str, float]
    branch_currents: Dict[str, float]
    terminals: Dict[str, Tuple[int, int]]
    residual: float = 0.0

    def node_voltage(self, node_id: int) -> float:
        if node_id == self.ground:
            return 0.0
        if node_id not in self.node_voltages:
            raise KeyError(f"Unknown node {node_id!r}.")
        return self.node_voltages[node_id]

    def source_current(self, name: str) -> float:
        if name not in self.source_currents:
            raise KeyError(f"No auxiliary current associated with '{name}'.")
        return self.source_currents[name]

    def branch_voltage(self, element_name: str) -> float:
        self._check(element_name)
        return self.branch_voltages[element_name]

    def branch_current(self, element_name: str) -> float:
        self._check(element_name)
        return self.branch_currents[element_name]

    def branch_power(self, element_name: str) -> float:
        """
        Power absorbed by a component; negative when it delivers power.
        """
        return self.branch_voltage(element_name) * self.branch_current(element_name)

    def _check(self, name: str) -> None:
        if name not in self.branch_currents:
            raise KeyError(f"Component '{name}' not present in the circuit.")


@dataclass(frozen=True, eq=False)
class Circuit:
    """
    Linear DC circuit solved with Modified Nodal Analysis.

    The circuit owns its nodes and components in two flat arenas. Components
    and nodes refer to each other by arena index. The ground node is created
    with the circuit in slot 0 and cannot be changed afterwards.
    """

    ground_id: int
    _nodes: List[Node] = field(default_factory=list, init=False, repr=False)
    _components: List[Component] = field(default_factory=list, init=False, repr=False)
    _node_ids: Dict[int, int] = field(default_factory=dict, init=False, repr=False)
    _names: Dict[str, int] = field(default_factory=dict, init=False, repr=False)
    _lock: threading.Lock = field(default_factory=threading.Lock, init=False, repr=False)

    def __post_init__(self) -> None:
        self._insert_node(self.ground_id)

    @property
    def ground(self) -> Node:
        return self._nodes[0]

    @property
    def nodes(self) -> Tuple[Node, ...]:
        return tuple(self._nodes)

    @property
    def components(self) -> Tuple[Component, ...]:
        return tuple(self._components)

    def terminals(self, component: Component | str) -> Tuple[int, int]:
        """Ids of the ("-", "+") nodes a component is connected between."""
        if isinstance(component, str):
            component = self.component(component)
        else:
            slot = self._names.get(component.name)
            if slot is None or self._components[slot] is not component:
                raise InvalidTopology(f"Component '{component.name}' does not belong to this circuit.")
        return self._nodes[component.node_a].id, self._nodes[component.node_b].id

    def node(self, node_id: int) -> Node:
        if node_id not in self._node_ids:
            raise KeyError(f"Unknown node {node_id!r}.")
        return self._nodes[self._node_ids[node_id]]

    def component(self, name: str) -> Component:
        if name not in self._names:
            raise KeyError(f"Component '{name}' not present in the circuit.")
        return self._components[self._names[name]]

    def incident(self, node: Node | int) -> List[Component]:
        """Components touching a node, in the order they were connected."""
        index = self._resolve(node)
        return [self._components[c] for c in self._nodes[index].connections]

    def add_node(self, node_id: int) -> Node:
        with self._exclusive("add a node"):
            return self._insert_node(node_id)

    def connect(
        self,
        kind: Type[Component],
        node_a: Node | int,
        node_b: Node | int,
        *args,
        name: str | None = None,
        **kwargs,
    ) -> Component:
        """
        Create a component of type `kind` between two nodes of this circuit.

        node_a is the "-" terminal and node_b the "+" terminal. Remaining
        arguments are passed to the component constructor, e.g.
        ``circuit.connect(Resistor, 0, 1, 1000.0)``.

        Raises:
            TypeError: kind is not a Component subclass.
            InvalidTopology: A node does not belong to this circuit, the name
                is already taken or the component value is invalid.
        """
        if not (isinstance(kind, type) and issubclass(kind, Component)):
            raise TypeError(f"{kind!r} is not a Component type.")
        with self._exclusive("connect a component"):
            ia = self._resolve(node_a)
            ib = self._resolve(node_b)
            if name is None:
                name = self._next_name(kind.prefix)
            elif name in self._names:
                raise InvalidTopology(f"Component '{name}' already exists.")
            component = kind(name, ia, ib, *args, **kwargs)

            slot = len(self._components)
            self._components.append(component)
            self._names[name] = slot
            self._nodes[ia]._connections.append(slot)
            self._nodes[ib]._connections.append(slot)
            logger.debug(
                "Connected %s '%s' between nodes %r and %r.",
                kind.__name__, name, self._nodes[ia].id, self._nodes[ib].id,
            )
            return component

    def assemble(self) -> MnaSystem:
        """
        Build the MNA system for the current topology without solving it.
        """
        with self._exclusive("assemble"):
            return self._assemble(tuple(self._nodes), tuple(self._components))

    def solve(self, solver: LinearSolver | None = None) -> Solution:
        """
        Solve the circuit and write the node voltages back onto the nodes.

        Returns:
            Solution with node voltages keyed by node id and voltage source
            currents keyed by component name.

        Raises:
            InvalidTopology: A component value is invalid.
            SingularSystem: The circuit has no unique solution.
            IllConditioned: The solver rejected the system as unreliable.
            CircuitBusy: Another solve on this circuit is in flight.
        """
        solver = solver or DenseSolver()
        with self._exclusive("solve"):
            nodes = tuple(self._nodes)
            components = tuple(self._components)
            system = self._assemble(nodes, components)
            self._check_empty_rows(system)
            if system.size:
                x = np.asarray(solver.solve(system.A, system.b), dtype=float)
                if x.shape != (system.size,) or not np.all(np.isfinite(x)):
                    raise SingularSystem("Linear solver returned no usable solution.")
                residual = float(np.linalg.norm(system.A @ x - system.b))
            else:
                x = np.zeros(0)
                residual = 0.0

            n_nodes = len(system.node_order)
            node_voltages = {nid: float(x[i]) for i, nid in enumerate(system.node_order)}
            source_currents = {name: float(x[idx[0]]) for name, idx in system.aux_map.items()}

            arena_voltages = np.zeros(len(nodes))
            for node in nodes:
                if not node.is_ground:
                    arena_voltages[node.index] = node_voltages[node.id]
            point = OperatingPoint(
                voltages=arena_voltages,
                aux_values={
                    name: tuple(float(x[i]) for i in idx) for name, idx in system.aux_map.items()
                },
            )
            branch_voltages = {c.name: float(c.branch_voltage(point)) for c in components}
            branch_currents = {c.name: float(c.branch_current(point)) for c in components}

            for node in nodes:
                object.__setattr__(node, "voltage", float(arena_voltages[node.index]))

            logger.info(
                "Solved circuit: %d node voltages, %d source currents (residual %.2e).",
                n_nodes, len(source_currents), residual,
            )
            return Solution(
                ground=self.ground_id,
                node_order=list(system.node_order),
                node_index=dict(system.node_index),
                node_voltages=node_voltages,
                source_currents=source_currents,
                branch_voltages=branch_voltages,
                branch_currents=branch_currents,
                terminals={
                    c.name: (nodes[c.node_a].id, nodes[c.node_b].id) for c in components
                },
                residual=residual,
            )

    def _assemble(self, nodes: Tuple[Node, ...], components: Tuple[Component, ...]) -> MnaSystem:
        node_rows: Dict[int, int] = {}
        node_order: List[int] = []
        for node in nodes:
            if node.is_ground:
                continue
            node_rows[node.index] = len(node_order)
            node_order.append(node.id)

        aux_map: Dict[str, Tuple[int, ...]] = {}
        cursor = len(node_order)
        for component in components:
            n_aux = component.num_aux_vars()
            if n_aux:
                aux_map[component.name] = tuple(range(cursor, cursor + n_aux))
                cursor += n_aux

        size = cursor
        A = np.zeros((size, size), dtype=float)
        b = np.zeros(size, dtype=float)
        data = StampData(A=A, b=b, node_rows=node_rows, aux_map=aux_map)
        for component in components:
            component.stamp(data)

        logger.debug(
            "Assembled %dx%d MNA system (%d nodes, %d auxiliary unknowns).",
            size, size, len(node_order), size - len(node_order),
        )
        return MnaSystem(
            A=A,
            b=b,
            node_order=node_order,
            node_index={nid: i for i, nid in enumerate(node_order)},
            aux_map=aux_map,
        )

    def _check_empty_rows(self, system: MnaSystem) -> None:
        if system.size == 0:
            return
        empty = np.flatnonzero(~system.A.any(axis=1))
        if empty.size == 0:
            return
        n_nodes = len(system.node_order)
        node_ids = [system.node_order[i] for i in empty if i < n_nodes]
        if node_ids:
            raise SingularSystem(
                f"Node(s) {node_ids} have no conductive connection; their voltage is undetermined.",
                size=system.size,
            )
        empty_rows = set(empty.tolist())
        sources = [name for name, idx in system.aux_map.items() if idx[0] in empty_rows]
        raise SingularSystem(
            f"Voltage source(s) {sources} constrain no node voltage.", size=system.size
        )

    def _insert_node(self, node_id: int) -> Node:
        if node_id in self._node_ids:
            raise InvalidTopology(f"Node {node_id!r} already exists.")
        node = Node(id=node_id, index=len(self._nodes))
        self._nodes.append(node)
        self._node_ids[node_id] = node.index
        logger.debug("Added %snode %r.", "ground " if node.is_ground else "", node_id)
        return node

    def _resolve(self, node: Node | int) -> int:
        if isinstance(node, Node):
            if node.index < len(self._nodes) and self._nodes[node.index] is node:
                return node.index
            raise InvalidTopology(f"Node {node.id!r} does not belong to this circuit.")
        if node not in self._node_ids:
            raise InvalidTopology(f"Node {node!r} does not belong to this circuit.")
        return self._node_ids[node]

    def _next_name(self, prefix: str) -> str:
        count = sum(1 for c in self._components if c.prefix == prefix) + 1
        name = f"{prefix}{count}"
        while name in self._names:
            count += 1
            name = f"{prefix}{count}"
        return name

    @contextmanager
    def _exclusive(self, action: str) -> Iterator[None]:
        if not self._lock.acquire(blocking=False):
            raise CircuitBusy(f"Cannot {action} while the circuit is being solved.")
        try:
            yield
        finally:
            self._lock.release()
