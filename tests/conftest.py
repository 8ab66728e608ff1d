"""Shared builders for Codenames tests."""

from __future__ import annotations

import pytest

from codenames.codenames_game import CodenamesGame
from codenames.codenames_state import (
    Card,
    CardType,
    GameState,
    OccupantKind,
    Role,
    Roster,
    Seat,
    Team,
    cards_from_pairs,
    player_for,
)


def fixed_cards(starting_team: Team = Team.RED) -> tuple[Card, ...]:
    """Words W00..W24: 0-8 starting team, 9-16 other team, 17-23 neutral, 24 assassin."""
    first = CardType.RED if starting_team is Team.RED else CardType.BLUE
    second = CardType.BLUE if starting_team is Team.RED else CardType.RED
    colors = [first] * 9 + [second] * 8 + [CardType.NEUTRAL] * 7 + [CardType.ASSASSIN]
    return cards_from_pairs((f"W{index:02d}", color) for index, color in enumerate(colors))


class FixedBoardGenerator:
    """Board generator returning a known layout."""

    def __init__(self, cards: tuple[Card, ...] | None = None):
        self.cards = cards
        self.calls: list[dict[str, int]] = []

    def generate(self, *, starting_team, starting_team_count, other_team_count, neutral_count, assassin_count, rng):
        self.calls.append(
            {
                "starting_team_count": starting_team_count,
                "other_team_count": other_team_count,
                "neutral_count": neutral_count,
                "assassin_count": assassin_count,
            }
        )
        return list(self.cards if self.cards is not None else fixed_cards(starting_team))


def make_roster(automated: set[str] | None = None) -> Roster:
    automated = automated or set()
    seats = {}
    for team in (Team.RED, Team.BLUE):
        for role in (Role.SPYMASTER, Role.OPERATIVE):
            player_id = player_for(team, role)
            kind = OccupantKind.AUTOMATED if player_id in automated else OccupantKind.HUMAN
            seats[player_id] = Seat(occupant=kind, display_name=player_id.lower(), role=role)
    return Roster.from_seats(seats)


def new_red_game(automated: set[str] | None = None) -> tuple[CodenamesGame, GameState]:
    game = CodenamesGame(board_generator=FixedBoardGenerator())
    state = game.new_game(seed=7, roster=make_roster(automated), config={"starting_team": "RED"})
    return game, state


@pytest.fixture
def red_game() -> tuple[CodenamesGame, GameState]:
    """Fixed layout, RED starts, all seats human."""
    return new_red_game()


@pytest.fixture
def make_game():
    """Factory: `make_game(automated_player_ids)` -> (game, state) on the fixed layout."""
    return new_red_game


@pytest.fixture
def roster_factory():
    return make_roster


@pytest.fixture
def board_generator_factory():
    return FixedBoardGenerator


@pytest.fixture
def layout():
    """Factory: `layout(starting_team)` -> the fixed 25 cards."""
    return fixed_cards
