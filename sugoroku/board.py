"""
Map graph: typed nodes joined by symmetric adjacency.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Iterable, List, Optional, Tuple

from sugoroku.exceptions import MapError

logger = logging.getLogger(__name__)


class NodeType(Enum):
    """Types of tiles on the map."""

    START = "start"
    PROPERTY = "property"
    BONUS = "bonus"
    PENALTY = "penalty"


@dataclass(frozen=True)
class Property:
    """A purchasable asset on a property node. Ownership lives on the player."""

    id: str
    name: str
    price: int
    base_income: int


@dataclass(frozen=True)
class Node:
    """A map tile. Immutable once the map is built."""

    id: int
    name: str
    node_type: NodeType
    adjacency: Tuple[int, ...]
    properties: Tuple[Property, ...] = ()
    group_id: Optional[str] = None
    amount: Optional[int] = None

    def __repr__(self) -> str:
        return f"Node(id={self.id}, name='{self.name}', type={self.node_type.value})"


@dataclass
class NodeSpec:
    """Declarative node as authored: forward adjacency only, reverse edges are implied."""

    id: int
    name: str
    node_type: NodeType
    next: List[int] = field(default_factory=list)
    properties: List[Property] = field(default_factory=list)
    group_id: Optional[str] = None
    amount: Optional[int] = None


class GameMap:
    """
    Undirected map graph built from declarative node specs.

    Every declared edge A->B is completed with B->A at load time. References to
    unknown node ids, duplicate ids and self loops are corrupt data and raise MapError.
    """

    def __init__(self, specs: Iterable[NodeSpec], start_node_id: int, map_id: str = "custom", name: str = ""):
        specs = list(specs)
        self.map_id = map_id
        self.name = name or map_id

        adjacency: Dict[int, List[int]] = {}
        for spec in specs:
            if spec.id in adjacency:
                raise MapError(f"duplicate node id {spec.id}")
            adjacency[spec.id] = []

        for spec in specs:
            for next_id in spec.next:
                if next_id not in adjacency:
                    raise MapError(f"node {spec.id} references unknown node {next_id}")
                if next_id == spec.id:
                    raise MapError(f"node {spec.id} is adjacent to itself")
                if next_id not in adjacency[spec.id]:
                    adjacency[spec.id].append(next_id)

        # Complete reverse edges in declaration order
        for spec in specs:
            for next_id in spec.next:
                if spec.id not in adjacency[next_id]:
                    adjacency[next_id].append(spec.id)

        if start_node_id not in adjacency:
            raise MapError(f"start node {start_node_id} is not on the map")
        self.start_node_id = start_node_id

        self.nodes: Dict[int, Node] = {}
        self._property_index: Dict[str, int] = {}
        self._groups: Dict[str, List[int]] = {}
        for spec in specs:
            node = Node(
                id=spec.id,
                name=spec.name,
                node_type=spec.node_type,
                adjacency=tuple(adjacency[spec.id]),
                properties=tuple(spec.properties),
                group_id=spec.group_id,
                amount=spec.amount,
            )
            self.nodes[node.id] = node
            for prop in node.properties:
                if prop.id in self._property_index:
                    raise MapError(f"duplicate property id '{prop.id}'")
                self._property_index[prop.id] = node.id
            if node.group_id is not None:
                self._groups.setdefault(node.group_id, []).append(node.id)

        logger.debug(
            "Loaded map %s: %d nodes, %d edges, %d properties",
            self.map_id,
            len(self.nodes),
            len(self.edges),
            len(self._property_index),
        )

    def __contains__(self, node_id: int) -> bool:
        return node_id in self.nodes

    def __len__(self) -> int:
        return len(self.nodes)

    def node(self, node_id: int) -> Node:
        """Get the node with the given id."""
        try:
            return self.nodes[node_id]
        except KeyError:
            raise MapError(f"unknown node {node_id}") from None

    def neighbors(self, node_id: int) -> List[int]:
        """Adjacent node ids, forward edges first."""
        return list(self.node(node_id).adjacency)

    @property
    def node_ids(self) -> List[int]:
        return list(self.nodes)

    @property
    def edges(self) -> List[Tuple[int, int]]:
        """Each undirected edge once, as (low id, high id)."""
        return [
            (node.id, other)
            for node in self.nodes.values()
            for other in node.adjacency
            if node.id < other
        ]

    def nodes_of_type(self, node_type: NodeType) -> List[Node]:
        return [n for n in self.nodes.values() if n.node_type == node_type]

    def owning_node(self, property_id: str) -> Node:
        """Node carrying the given property (indexed at load time)."""
        try:
            return self.nodes[self._property_index[property_id]]
        except KeyError:
            raise MapError(f"unknown property '{property_id}'") from None

    def get_property(self, property_id: str) -> Property:
        node = self.owning_node(property_id)
        for prop in node.properties:
            if prop.id == property_id:
                return prop
        raise MapError(f"unknown property '{property_id}'")

    def has_property(self, property_id: str) -> bool:
        return property_id in self._property_index

    def group_node_ids(self, group_id: str) -> List[int]:
        """Get all node ids tagged with a group."""
        return list(self._groups.get(group_id, []))

    def group_property_ids(self, group_id: str) -> List[str]:
        return [
            prop.id
            for node_id in self._groups.get(group_id, [])
            for prop in self.nodes[node_id].properties
        ]

    @property
    def group_ids(self) -> List[str]:
        return list(self._groups)
