"""Shared test fixtures for the sugoroku engine tests."""

import random
from collections import deque
from typing import Iterable

import pytest

from sugoroku.board import GameMap, NodeSpec, NodeType, Property
from sugoroku.config import LobbyPlayer, PlayerColor
from sugoroku.settings import EngineSettings


class ScriptedRandom(random.Random):
    """
    random.Random whose ``random()`` and ``randint()`` return queued values first.

    Everything else (choice, shuffle, getrandbits) behaves like a seeded Random.
    """

    def __init__(self, values: Iterable[float] = (), ints: Iterable[int] = (), seed: int = 0):
        self.values = deque(values)
        self.ints = deque(ints)
        super().__init__(seed)

    def random(self):
        if self.values:
            return self.values.popleft()
        return super().random()

    def getrandbits(self, k):
        return super().getrandbits(k)

    def randint(self, a, b):
        if self.ints:
            return self.ints.popleft()
        return super().randint(a, b)


@pytest.fixture
def timing():
    """Engine timing with default delays (the sync driver ignores them)."""
    return EngineSettings()


@pytest.fixture
def line_map():
    """Start node followed by three single-property nodes of one group: 0-1-2-3."""
    specs = [NodeSpec(0, "Start", NodeType.START, next=[1])]
    for node_id in (1, 2, 3):
        specs.append(
            NodeSpec(
                node_id,
                f"Town {node_id}",
                NodeType.PROPERTY,
                next=[node_id + 1] if node_id < 3 else [],
                properties=[Property(f"p{node_id}", f"Shop {node_id}", 100, 10)],
                group_id="line",
            )
        )
    return GameMap(specs, start_node_id=0, map_id="line")


@pytest.fixture
def treasure_line_map():
    """Five diggable nodes in a row: 0-1-2-3-4."""
    specs = [
        NodeSpec(i, f"Dig {i}", NodeType.PROPERTY, next=[i + 1] if i < 4 else [])
        for i in range(5)
    ]
    return GameMap(specs, start_node_id=0, map_id="treasure_line")


@pytest.fixture
def two_humans():
    """Two human players."""
    return [
        LobbyPlayer(name="Alice", color=PlayerColor.RED, is_human=True),
        LobbyPlayer(name="Bob", color=PlayerColor.BLUE, is_human=True),
    ]


@pytest.fixture
def four_humans():
    """Four human players."""
    return [
        LobbyPlayer(name="Alice", color=PlayerColor.RED, is_human=True),
        LobbyPlayer(name="Bob", color=PlayerColor.BLUE, is_human=True),
        LobbyPlayer(name="Charlie", color=PlayerColor.GREEN, is_human=True),
        LobbyPlayer(name="Diana", color=PlayerColor.YELLOW, is_human=True),
    ]


@pytest.fixture
def four_cpus():
    """Four CPU players."""
    return [
        {"name": "Akira", "color": "red"},
        {"name": "Hana", "color": "blue"},
        {"name": "Kenji", "color": "green"},
        {"name": "Sora", "color": "yellow"},
    ]


@pytest.fixture
def scripted():
    """Factory for ScriptedRandom instances."""
    return ScriptedRandom
