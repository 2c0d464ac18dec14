"""CPU policy for Classic games: destination chasing and payback-based buying."""

import random
from typing import TYPE_CHECKING, List

from sugoroku.agents.base import CpuAgent
from sugoroku.board import GameMap, Node, Property
from sugoroku.player import ClassicPlayer
from sugoroku.routes import Route

if TYPE_CHECKING:
    from sugoroku.game import ClassicGame

# Price ceilings as a share of current money
BUY_CEILING = 0.6
LAST_OF_GROUP_CEILING = 0.9
TWO_LEFT_CEILING = 0.7
MAX_PAYBACK_CYCLES = 10


def remaining_in_group(player: ClassicPlayer, node: Node, game_map: GameMap) -> int:
    """Nodes of the node's group not yet fully owned by ``player``."""
    remaining = 0
    for node_id in game_map.group_node_ids(node.group_id):
        group_node = game_map.node(node_id)
        if not all(player.owns(p.id) for p in group_node.properties):
            remaining += 1
    return remaining


def decide_buy(player: ClassicPlayer, prop: Property, game_map: GameMap) -> bool:
    """
    Decide whether a CPU buys a property.

    Never spends more than 60% of current money. Near-complete groups are bought
    eagerly (one node left: up to 90%, two left: up to 70%); anything else must
    pay for itself within ten settlement cycles.
    """
    node = game_map.owning_node(prop.id)

    if prop.price > player.money * BUY_CEILING:
        return False

    if node.group_id is not None:
        remaining = remaining_in_group(player, node, game_map)
        if remaining == 1:
            return prop.price <= player.money * LAST_OF_GROUP_CEILING
        if remaining == 2:
            return prop.price <= player.money * TWO_LEFT_CEILING

    if prop.base_income <= 0:
        return False
    return prop.price / prop.base_income <= MAX_PAYBACK_CYCLES


def decide_route(routes: List[Route], rng: random.Random) -> Route:
    """
    Pick a route: land on the destination if possible, else get as close as
    possible, else anything. Ties are broken uniformly at random.
    """
    on_target = [r for r in routes if r.distance_to_destination == 0]
    if on_target:
        return rng.choice(on_target)

    with_distance = [r for r in routes if r.distance_to_destination is not None]
    if with_distance:
        best = min(r.distance_to_destination for r in with_distance)
        return rng.choice([r for r in with_distance if r.distance_to_destination == best])

    return rng.choice(routes)


class ClassicCpu(CpuAgent):
    """Classic CPU player."""

    def choose_route(self, game: "ClassicGame", routes: List[Route]) -> Route:
        return decide_route(routes, self.rng)

    def should_buy(self, game: "ClassicGame", prop: Property) -> bool:
        player = game.get_player(self.player_id)
        return player.money >= prop.price and decide_buy(player, prop, game.map)
