"""
Built-in maps.

The Classic map is a hand-authored Japan route network; Treasure maps are built
from 3x3 grid clusters joined by single corridor nodes.
"""

import math
from dataclasses import dataclass
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Tuple

from sugoroku.board import GameMap, NodeSpec, NodeType, Property
from sugoroku.exceptions import MapError

# Share of a node's price/income carried by each of its three properties
PROPERTY_TIERS: List[Tuple[str, str, float]] = [
    ("1", "Stall", 0.2),
    ("2", "Shop", 0.3),
    ("3", "Building", 0.5),
]

# (id, name, type, next, price, base income, group, amount)
_CLASSIC_NODES: List[Tuple[int, str, str, List[int], Optional[int], Optional[int], Optional[str], Optional[int]]] = [
    (0, "Start", "start", [7, 8], None, None, None, None),
    (1, "Sapporo", "property", [2], 400, 40, "hokkaido", None),
    (2, "Hakodate", "property", [3], 300, 30, "hokkaido", None),
    (3, "Aomori", "property", [4, 5], 250, 25, "tohoku", None),
    (4, "Sendai", "property", [5, 6], 350, 35, "tohoku", None),
    (5, "Yamagata", "bonus", [6, 17], None, None, None, 150),
    (6, "Fukushima", "property", [11, 17], 280, 28, "tohoku", None),
    (7, "Tokyo", "property", [8], 600, 60, "kanto", None),
    (8, "Yokohama", "property", [14], 550, 55, "kanto", None),
    (9, "Chiba", "penalty", [7, 10], None, None, None, -150),
    (10, "Saitama", "property", [7, 11, 12], 400, 40, "kanto", None),
    (11, "Utsunomiya", "property", [], 320, 32, "kanto", None),
    (12, "Maebashi", "bonus", [16], None, None, None, 200),
    (13, "Nagoya", "property", [19, 21], 500, 50, "chubu", None),
    (14, "Shizuoka", "property", [13], 380, 38, "chubu", None),
    (15, "Kanazawa", "property", [19], 360, 36, "chubu", None),
    (16, "Nagano", "penalty", [13, 15, 17], None, None, None, -200),
    (17, "Niigata", "property", [15], 300, 30, "chubu", None),
    (18, "Osaka", "property", [20, 21, 22], 580, 58, "kinki", None),
    (19, "Kyoto", "property", [18, 20, 32], 520, 52, "kinki", None),
    (20, "Kobe", "property", [23, 24], 460, 46, "kinki", None),
    (21, "Nara", "bonus", [22], None, None, None, 100),
    (22, "Wakayama", "property", [], 280, 28, "kinki", None),
    (23, "Hiroshima", "property", [25, 33], 420, 42, "chugoku_shikoku", None),
    (24, "Takamatsu", "property", [25, 26], 320, 32, "chugoku_shikoku", None),
    (25, "Matsuyama", "penalty", [], None, None, None, -100),
    (26, "Kochi", "property", [25], 280, 28, "chugoku_shikoku", None),
    (27, "Fukuoka", "property", [28], 480, 48, "kyushu", None),
    (28, "Kumamoto", "property", [29], 350, 35, "kyushu", None),
    (29, "Kagoshima", "bonus", [30], None, None, None, 200),
    (30, "Naha", "property", [], 380, 38, "kyushu", None),
    (31, "Matsue", "property", [33], 260, 26, "chugoku_shikoku", None),
    (32, "Tottori", "bonus", [31], None, None, None, 150),
    (33, "Yamaguchi", "property", [27], 300, 30, "chugoku_shikoku", None),
]


def tiered_properties(node_id: int, name: str, price: int, base_income: int) -> List[Property]:
    """Split a node's price and income into its three floored property tiers."""
    return [
        Property(
            id=f"{node_id}-{suffix}",
            name=f"{name} {label}",
            price=math.floor(price * share),
            base_income=math.floor(base_income * share),
        )
        for suffix, label, share in PROPERTY_TIERS
    ]


def build_classic_map() -> GameMap:
    """Create the Japan route map used by Classic games."""
    specs = []
    for node_id, name, kind, nxt, price, income, group, amount in _CLASSIC_NODES:
        node_type = NodeType(kind)
        properties: List[Property] = []
        if node_type == NodeType.PROPERTY:
            properties = tiered_properties(node_id, name, price, income)
        specs.append(
            NodeSpec(
                id=node_id,
                name=name,
                node_type=node_type,
                next=list(nxt),
                properties=properties,
                group_id=group,
                amount=amount,
            )
        )
    return GameMap(specs, start_node_id=0, map_id="japan", name="Japan")


def build_map_from_dicts(
    nodes: Iterable[Mapping[str, Any]],
    start_node_id: int,
    map_id: str = "custom",
) -> GameMap:
    """
    Build a map from plain dict node records.

    Accepted keys: id, name, type, next, properties (dicts with id/name/price/
    baseIncome or base_income), groupId/group_id, amount. Layout keys such as
    x and y are ignored.
    """
    specs = []
    for raw in nodes:
        try:
            node_id = int(raw["id"])
            node_type = NodeType(raw.get("type", "property"))
        except (KeyError, ValueError) as exc:
            raise MapError(f"invalid node record {dict(raw)!r}") from exc
        props = [
            Property(
                id=str(p["id"]),
                name=str(p.get("name", p["id"])),
                price=int(p["price"]),
                base_income=int(p.get("base_income", p.get("baseIncome", 0))),
            )
            for p in raw.get("properties") or []
        ]
        specs.append(
            NodeSpec(
                id=node_id,
                name=str(raw.get("name", node_id)),
                node_type=node_type,
                next=[int(n) for n in raw.get("next", [])],
                properties=props,
                group_id=raw.get("group_id", raw.get("groupId")),
                amount=raw.get("amount"),
            )
        )
    return GameMap(specs, start_node_id=start_node_id, map_id=map_id)


# ---- Treasure maps ----

# Grid offsets of the nine cluster cells, row-major; index 4 is the center
_CLUSTER_OFFSETS: List[Tuple[int, int]] = [
    (-1, -1), (0, -1), (1, -1),
    (-1, 0), (0, 0), (1, 0),
    (-1, 1), (0, 1), (1, 1),
]
_CLUSTER_EDGES: List[Tuple[int, int]] = [
    (0, 1), (1, 2),
    (3, 4), (4, 5),
    (6, 7), (7, 8),
    (0, 3), (1, 4), (2, 5),
    (3, 6), (4, 7), (5, 8),
]
CARD_CELL = 4


class _TreasureMapBuilder:
    """Accumulates cluster and corridor node specs for a treasure map."""

    def __init__(self):
        self.specs: List[NodeSpec] = []
        self._by_id: Dict[int, NodeSpec] = {}

    def cluster(self, start_id: int, name: str) -> List[int]:
        ids = [start_id + i for i in range(len(_CLUSTER_OFFSETS))]
        for i, node_id in enumerate(ids):
            is_card = i == CARD_CELL
            spec = NodeSpec(
                id=node_id,
                name=f"{name}-{i + 1}",
                node_type=NodeType.BONUS if is_card else NodeType.PROPERTY,
                amount=100 if is_card else None,
            )
            self.specs.append(spec)
            self._by_id[node_id] = spec
        for a, b in _CLUSTER_EDGES:
            self._by_id[ids[a]].next.append(ids[b])
        return ids

    def corridor(self, a: int, b: int, corridor_id: int, name: str, is_card: bool = False) -> None:
        spec = NodeSpec(
            id=corridor_id,
            name=name,
            node_type=NodeType.BONUS if is_card else NodeType.PROPERTY,
            next=[a, b],
            amount=100 if is_card else None,
        )
        self.specs.append(spec)
        self._by_id[corridor_id] = spec

    def build(self, map_id: str, name: str) -> GameMap:
        return GameMap(self.specs, start_node_id=self.specs[0].id, map_id=map_id, name=name)


def build_five_islands() -> GameMap:
    """Four corner clusters and a center cluster."""
    b = _TreasureMapBuilder()
    nw = b.cluster(0, "Northwest")
    ne = b.cluster(9, "Northeast")
    center = b.cluster(18, "Center")
    sw = b.cluster(27, "Southwest")
    se = b.cluster(36, "Southeast")

    b.corridor(nw[8], center[0], 45, "Northwest Pass", True)
    b.corridor(ne[6], center[2], 46, "Northeast Pass")
    b.corridor(sw[2], center[6], 47, "Southwest Pass")
    b.corridor(se[0], center[8], 48, "Southeast Pass", True)
    b.corridor(nw[2], ne[0], 49, "North Road", True)
    b.corridor(sw[8], se[6], 50, "South Road", True)
    b.corridor(nw[6], sw[0], 51, "West Road")
    b.corridor(ne[8], se[2], 52, "East Road")
    return b.build("five_islands", "Five Islands")


def build_twin_continents() -> GameMap:
    """Two stacked cluster pairs joined by two bridges."""
    b = _TreasureMapBuilder()
    left_top = b.cluster(0, "Upper West")
    left_bot = b.cluster(9, "Lower West")
    right_top = b.cluster(18, "Upper East")
    right_bot = b.cluster(27, "Lower East")

    b.corridor(left_top[7], left_bot[1], 36, "West Inland Road")
    b.corridor(right_top[7], right_bot[1], 37, "East Inland Road")
    b.corridor(left_top[5], right_top[3], 38, "North Bridge", True)
    b.corridor(left_bot[5], right_bot[3], 39, "South Bridge", True)
    return b.build("twin_continents", "Twin Continents")


def _edge_cell_towards(angle: float) -> int:
    """Cluster cell index lying furthest in the direction of ``angle``."""
    best_idx = 0
    best_score = -math.inf
    for i, (dx, dy) in enumerate(_CLUSTER_OFFSETS):
        score = dx * math.cos(angle) + dy * math.sin(angle)
        if score > best_score:
            best_score = score
            best_idx = i
    return best_idx


def build_ring_of_fire() -> GameMap:
    """Six clusters on a ring, neighbours joined by corridors."""
    names = ["Volcano", "Coral", "Jungle", "Glacier", "Desert", "Mine"]
    b = _TreasureMapBuilder()
    clusters = [b.cluster(i * 9, name) for i, name in enumerate(names)]

    next_id = 54
    for i in range(6):
        current = clusters[i]
        following = clusters[(i + 1) % 6]
        angle = ((i + 0.5) / 6) * math.pi * 2 - math.pi / 2
        b.corridor(
            current[_edge_cell_towards(angle)],
            following[_edge_cell_towards(angle + math.pi)],
            next_id,
            f"{names[i]}-{names[(i + 1) % 6]} Strait",
            i % 2 == 0,
        )
        next_id += 1
    return b.build("ring_of_fire", "Ring of Fire")


@dataclass(frozen=True)
class TreasureMapDef:
    id: str
    name: str
    description: str
    build: Callable[[], GameMap]


TREASURE_MAPS: Dict[str, TreasureMapDef] = {
    "five_islands": TreasureMapDef(
        "five_islands",
        "Five Islands",
        "Islands in the corners and the center: hold the middle or farm the rim.",
        build_five_islands,
    ),
    "twin_continents": TreasureMapDef(
        "twin_continents",
        "Twin Continents",
        "Two landmasses joined by bridges. Cramped, so raids are frequent.",
        build_twin_continents,
    ),
    "ring_of_fire": TreasureMapDef(
        "ring_of_fire",
        "Ring of Fire",
        "Six islands chained in a ring. Dig your way around.",
        build_ring_of_fire,
    ),
}


def get_treasure_map(map_id: str) -> GameMap:
    """Build a fresh copy of a registered treasure map."""
    try:
        return TREASURE_MAPS[map_id].build()
    except KeyError:
        raise MapError(f"unknown treasure map '{map_id}'") from None
