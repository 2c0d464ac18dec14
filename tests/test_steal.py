"""
Tests for steal attempts, counter-steals and substitutes.
"""

import random

import pytest

from sugoroku.cards import Card, CardType
from sugoroku.config import PlayerColor
from sugoroku.player import TreasurePlayer
from sugoroku.treasure import StealKind, perform_steal, resolve_steal, steal_chance


def _player(pid, treasures=0, cards=()):
    return TreasurePlayer(
        pid,
        pid.title(),
        PlayerColor.RED,
        True,
        0,
        treasures=treasures,
        cards=[Card(f"{pid}-c{i}", t) for i, t in enumerate(cards)],
    )


def test_power_ups_raise_chance():
    """Two power-ups on a same-node steal give min(1, 0.60 + 0.30)."""
    attacker = _player("attacker", cards=[CardType.POWER_UP, CardType.POWER_UP])
    assert steal_chance(StealKind.SAME_NODE, attacker) == pytest.approx(0.90)
    assert steal_chance(StealKind.PASS_BY, _player("plain")) == pytest.approx(0.30)


def test_chance_is_capped_at_one():
    attacker = _player("attacker", cards=[CardType.POWER_UP] * 5)
    assert steal_chance(StealKind.SAME_NODE, attacker) == 1.0


def test_powered_steal_succeeds(scripted):
    attacker = _player("attacker", treasures=1, cards=[CardType.POWER_UP, CardType.POWER_UP])
    target = _player("target", treasures=3)

    result = resolve_steal(StealKind.SAME_NODE, attacker, target, scripted([0.85]))

    assert result.success
    assert not result.is_counter
    assert result.transferred
    assert attacker.treasures == 2
    assert target.treasures == 2


def test_failed_steal_can_be_countered(scripted):
    attacker = _player("attacker", treasures=2)
    target = _player("target", treasures=1)

    result = resolve_steal(StealKind.PASS_BY, attacker, target, scripted([0.5, 0.1]))

    assert not result.success
    assert result.is_counter
    assert attacker.treasures == 1
    assert target.treasures == 2


def test_counter_against_empty_attacker_transfers_nothing(scripted):
    attacker = _player("attacker", treasures=0)
    target = _player("target", treasures=1)

    result = resolve_steal(StealKind.SAME_NODE, attacker, target, scripted([0.9, 0.1]))

    assert result.is_counter
    assert not result.transferred
    assert target.treasures == 1


def test_missed_steal_changes_nothing(scripted):
    attacker = _player("attacker", treasures=1)
    target = _player("target", treasures=1)

    result = resolve_steal(StealKind.PASS_BY, attacker, target, scripted([0.9, 0.9]))

    assert not result.success and not result.is_counter
    assert (attacker.treasures, target.treasures) == (1, 1)


def test_substitute_blocks_without_rolling(scripted):
    attacker = _player("attacker", cards=[CardType.POWER_UP])
    target = _player("target", treasures=2, cards=[CardType.SUBSTITUTE, CardType.SUBSTITUTE])
    rng = scripted([0.0])

    result = resolve_steal(StealKind.SAME_NODE, attacker, target, rng)

    assert result.substitute_used
    assert not result.success and not result.is_counter
    assert target.treasures == 2
    assert target.count_cards(CardType.SUBSTITUTE) == 1
    assert list(rng.values) == [0.0]


def test_success_and_counter_are_exclusive():
    rng = random.Random(7)
    for _ in range(500):
        result = perform_steal(StealKind.SAME_NODE, _player("a", 1), _player("b", 1), rng)
        assert not (result.success and result.is_counter)
