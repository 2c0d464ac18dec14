"""
Tests for status effect bookkeeping and the card catalogue.
"""

import random

from sugoroku.cards import CARD_STATIC_DATA, Card, CardType, draw_card, make_card
from sugoroku.config import PlayerColor
from sugoroku.player import EffectType, TreasurePlayer
from sugoroku.treasure import add_effect, leader, remove_effect, tick_effects


def _player(pid="player_0", treasures=0):
    return TreasurePlayer(pid, pid, PlayerColor.RED, True, 0, treasures=treasures)


def test_effect_in_force_for_its_duration():
    """A 3-turn seal covers exactly the next three turns of its holder."""
    player = _player()
    add_effect(player, EffectType.SEALED, 3)

    for _ in range(3):
        in_force, expired = tick_effects(player)
        assert EffectType.SEALED in in_force

    assert expired == [EffectType.SEALED]
    assert player.active_effects == []
    in_force, expired = tick_effects(player)
    assert in_force == [] and expired == []


def test_one_turn_effect_expires_after_first_tick():
    player = _player()
    add_effect(player, EffectType.PARALYZED, 1)

    in_force, expired = tick_effects(player)

    assert in_force == [EffectType.PARALYZED]
    assert expired == [EffectType.PARALYZED]
    assert not player.has_effect(EffectType.PARALYZED)


def test_remove_effect_drops_only_first():
    player = _player()
    add_effect(player, EffectType.DICE_1, 1)
    add_effect(player, EffectType.DICE_1, 1)

    remove_effect(player, EffectType.DICE_1)

    assert len(player.active_effects) == 1
    remove_effect(player, EffectType.DICE_10)
    assert len(player.active_effects) == 1


def test_leader_prefers_first_seat_on_ties():
    players = [_player("a", 2), _player("b", 5), _player("c", 5)]

    assert leader(players).player_id == "b"
    assert leader(players, exclude_id="b").player_id == "c"
    assert leader([players[0]], exclude_id="a") is None


def test_catalogue_passive_flags():
    passive = {t for t, data in CARD_STATIC_DATA.items() if data.is_passive}
    assert passive == {CardType.POWER_UP, CardType.SUBSTITUTE}
    assert len(CARD_STATIC_DATA) == len(CardType)


def test_card_properties_come_from_catalogue():
    card = Card("c1", CardType.SEAL)

    assert not card.is_passive
    assert card.name == CARD_STATIC_DATA[CardType.SEAL].name
    assert card.to_dict()["type"] == "seal"


def test_drawn_cards_have_unique_ids():
    rng = random.Random(3)
    cards = [draw_card(rng) for _ in range(50)]

    assert len({c.id for c in cards}) == 50
    assert all(c.card_type in CARD_STATIC_DATA for c in cards)


def test_make_card_is_deterministic_per_seed():
    assert make_card(CardType.DICE_1, random.Random(1)) == make_card(CardType.DICE_1, random.Random(1))


def test_hand_helpers():
    player = _player()
    player.cards = [Card("a", CardType.POWER_UP), Card("b", CardType.SEAL), Card("c", CardType.POWER_UP)]

    assert player.count_cards(CardType.POWER_UP) == 2
    assert [c.id for c in player.active_cards()] == ["b"]
    assert player.find_card("b").card_type == CardType.SEAL
    player.remove_card("b")
    assert player.find_card("b") is None
