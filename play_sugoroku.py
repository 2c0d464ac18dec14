#!/usr/bin/env python3
"""
Minimal CLI for simulating Sugoroku games.

Runs an all-CPU game to completion with the synchronous step driver (delays
are skipped) and prints the final standings.
"""

import argparse
import json
import logging
from typing import List, Optional

from sugoroku import ClassicGame, GameMode, LobbyPlayer, TreasureGame, create_game
from sugoroku.config import PLAYER_COLORS
from sugoroku.maps import TREASURE_MAPS

PLAYER_NAMES = ["Akira", "Hana", "Kenji", "Sora"]


def build_roster(num_players: int) -> List[LobbyPlayer]:
    return [
        LobbyPlayer(name=PLAYER_NAMES[i], color=PLAYER_COLORS[i], is_human=False)
        for i in range(num_players)
    ]


def print_game_summary(game) -> None:
    """Print final game summary."""
    print("\n" + "=" * 60)
    print("GAME OVER")
    print("=" * 60)

    winner = game.get_player(game.winner_id)
    print(f"\nWinner: {winner.name}")

    print("\nFinal Standings:")
    for place, player in enumerate(game.rankings, start=1):
        if isinstance(game, TreasureGame):
            score = f"{player.treasures} treasures, {len(player.cards)} cards"
        else:
            score = f"{player.total_assets} assets (money {player.money}, {len(player.owned_property_ids)} properties)"
        print(f"  {place}. {player.name}: {score}")

    print(f"\nRounds played: {min(game.round, game.settings.total_rounds)}")
    if isinstance(game, ClassicGame):
        print(f"Settlements: {len(game.settlements)}, destinations reached: {game.destination_reach_count}")
    else:
        print(f"Mined nodes: {len(game.mined_nodes)}, ended by: {game.end_reason}")


def write_event_log(game, log_file: str) -> None:
    with open(log_file, "w", encoding="utf-8") as fh:
        for event in game.event_log.get_events():
            fh.write(json.dumps(event.to_dict()) + "\n")


def simulate_game(
    mode: str = "classic",
    num_players: int = 4,
    seed: Optional[int] = None,
    total_rounds: Optional[int] = None,
    treasure_map: Optional[str] = None,
    verbose: bool = True,
    log_file: Optional[str] = None,
):
    """
    Simulate a complete game.

    Args:
        mode: "classic" or "treasure"
        num_players: Number of CPU players (2-4)
        seed: Random seed for reproducibility
        total_rounds: Round limit override
        treasure_map: Treasure map id (treasure mode only)
        verbose: Whether to print the summary
        log_file: Optional path for a JSONL dump of the event log
    """
    settings = {"seed": seed}
    if total_rounds is not None:
        settings["total_rounds"] = total_rounds
    if mode == GameMode.TREASURE.value and treasure_map is not None:
        settings["treasure_map_id"] = treasure_map

    game = create_game(mode, settings, build_roster(num_players))
    if verbose:
        print(f"Starting {mode} game with {len(game.players)} CPU players on {game.map.name}")
        print(f"Seed: {seed}")

    steps_run = game.steps.run_until_idle()

    if log_file is not None:
        write_event_log(game, log_file)

    if verbose:
        print(f"Ran {steps_run} steps, {len(game.event_log.events)} events")
        print_game_summary(game)
        if log_file is not None:
            print(f"\nEvents logged to: {log_file}")

    return game


def main():
    """Main entry point for CLI."""
    parser = argparse.ArgumentParser(description="Simulate a Sugoroku game")
    parser.add_argument(
        "--mode",
        type=str,
        default="classic",
        choices=[m.value for m in GameMode],
        help="Game mode",
    )
    parser.add_argument(
        "--players",
        type=int,
        default=4,
        choices=range(2, 5),
        help="Number of CPU players (2-4)",
    )
    parser.add_argument("--seed", type=int, default=None, help="Random seed")
    parser.add_argument("--rounds", type=int, default=None, help="Total rounds")
    parser.add_argument(
        "--map",
        type=str,
        default=None,
        choices=sorted(TREASURE_MAPS),
        help="Treasure map (treasure mode only)",
    )
    parser.add_argument("--quiet", action="store_true", help="Reduce output verbosity")
    parser.add_argument("--debug", action="store_true", help="Enable debug logging")
    parser.add_argument("--log-file", type=str, default=None, help="Write the event log as JSONL")

    args = parser.parse_args()
    logging.basicConfig(level=logging.DEBUG if args.debug else logging.WARNING)

    simulate_game(
        mode=args.mode,
        num_players=args.players,
        seed=args.seed,
        total_rounds=args.rounds,
        treasure_map=args.map,
        verbose=not args.quiet,
        log_file=args.log_file,
    )


if __name__ == "__main__":
    main()
