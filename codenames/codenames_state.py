"""State, value objects and enums for Codenames."""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Iterable, Mapping, Self

from framework.errors import (
    AlreadyRevealedError,
    InvalidCardIndexError,
    InvalidLayoutError,
    InvalidRosterError,
    InvalidStateError,
)
from framework.state import State


class Team(str, Enum):
    """Codenames teams."""

    RED = "RED"
    BLUE = "BLUE"


class Role(str, Enum):
    """Team roles."""

    SPYMASTER = "SPYMASTER"
    OPERATIVE = "OPERATIVE"


class OccupantKind(str, Enum):
    """Who fills a seat."""

    HUMAN = "HUMAN"
    AUTOMATED = "AUTOMATED"


class Phase(str, Enum):
    """Turn phases."""

    WAITING = "WAITING"
    GUESSING = "GUESSING"
    FINISHED = "FINISHED"


class CardType(str, Enum):
    """Colour of each board card."""

    RED = "RED"
    BLUE = "BLUE"
    NEUTRAL = "NEUTRAL"
    ASSASSIN = "ASSASSIN"


BOARD_SIZE = 25
STARTING_TEAM_CARDS = 9
SECOND_TEAM_CARDS = 8
NEUTRAL_CARDS = 7
ASSASSIN_CARDS = 1

MIN_RATING = 1
MAX_RATING = 5

TEAM_PLAYER_IDS: dict[tuple[Team, str], str] = {
    (Team.RED, "SPYMASTER"): "RED_SPYMASTER",
    (Team.RED, "OPERATIVE"): "RED_OPERATIVE",
    (Team.BLUE, "SPYMASTER"): "BLUE_SPYMASTER",
    (Team.BLUE, "OPERATIVE"): "BLUE_OPERATIVE",
}

PLAYER_TO_TEAM_ROLE: dict[str, tuple[Team, Role]] = {
    player_id: (team, Role(role))
    for (team, role), player_id in TEAM_PLAYER_IDS.items()
}


def player_for(team: Team, role: Role | str) -> str:
    """Return the canonical player ID for a team/role seat."""
    role_name = role.value if isinstance(role, Role) else role
    return TEAM_PLAYER_IDS[(team, role_name)]


def team_role_for_player(player_id: str) -> tuple[Team, Role]:
    """Return team + role for player ID."""
    if player_id not in PLAYER_TO_TEAM_ROLE:
        raise ValueError(f"Unknown Codenames player_id: {player_id!r}")
    return PLAYER_TO_TEAM_ROLE[player_id]


def other_team(team: Team) -> Team:
    """Return the opposing team."""
    return Team.BLUE if team is Team.RED else Team.RED


def card_type_for(team: Team) -> CardType:
    """Return the card colour owned by `team`."""
    return CardType.RED if team is Team.RED else CardType.BLUE


def expected_distribution(starting_team: Team) -> dict[CardType, int]:
    """Return the exact colour counts a board must have; the starting team holds the majority."""
    return {
        card_type_for(starting_team): STARTING_TEAM_CARDS,
        card_type_for(other_team(starting_team)): SECOND_TEAM_CARDS,
        CardType.NEUTRAL: NEUTRAL_CARDS,
        CardType.ASSASSIN: ASSASSIN_CARDS,
    }


@dataclass(frozen=True)
class Card:
    """One board cell. Word and colour never change; `revealed` flips once."""

    word: str
    color: CardType
    revealed: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {"word": self.word, "color": self.color.value, "revealed": self.revealed}

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Card":
        return cls(word=str(data["word"]), color=CardType(str(data["color"])), revealed=bool(data.get("revealed", False)))


@dataclass(frozen=True)
class Board:
    """Ordered 25-card layout with reveal flags."""

    cards: tuple[Card, ...]
    starting_team: Team

    def __post_init__(self) -> None:
        cards = tuple(self.cards)
        object.__setattr__(self, "cards", cards)
        if len(cards) != BOARD_SIZE:
            raise InvalidLayoutError(f"Board must contain exactly {BOARD_SIZE} cards; received {len(cards)}.")
        if not all(isinstance(card, Card) for card in cards):
            raise InvalidLayoutError("Board entries must be Card instances.")

        counts = Counter(card.color for card in cards)
        expected = expected_distribution(self.starting_team)
        actual = {color: counts.get(color, 0) for color in CardType}
        if actual != expected:
            readable = ", ".join(f"{color.value}={actual[color]}" for color in CardType)
            wanted = ", ".join(f"{color.value}={expected[color]}" for color in CardType)
            raise InvalidLayoutError(
                f"Invalid colour distribution for starting team {self.starting_team.value}: "
                f"got {readable}; expected {wanted}."
            )

    @property
    def words(self) -> tuple[str, ...]:
        return tuple(card.word for card in self.cards)

    def card_at(self, index: int) -> Card:
        """Return the card at `index`."""
        if isinstance(index, bool) or not isinstance(index, int) or not 0 <= index < len(self.cards):
            raise InvalidCardIndexError(index)
        return self.cards[index]

    def count_unrevealed(self, color: CardType) -> int:
        """Count face-down cards of `color`."""
        return sum(1 for card in self.cards if card.color is color and not card.revealed)

    def all_of_color_revealed(self, color: CardType) -> bool:
        """Return whether every card of `color` is face up."""
        return self.count_unrevealed(color) == 0

    def unrevealed_counts(self) -> dict[str, int]:
        """Return face-down counts for every colour."""
        return {color.value: self.count_unrevealed(color) for color in CardType}

    def unrevealed_indices(self) -> list[int]:
        return [index for index, card in enumerate(self.cards) if not card.revealed]

    def with_revealed(self, index: int) -> "Board":
        """Return a copy of the board with card `index` face up."""
        card = self.card_at(index)
        if card.revealed:
            raise AlreadyRevealedError(index)
        cards = list(self.cards)
        cards[index] = replace(card, revealed=True)
        return replace(self, cards=tuple(cards))

    def to_dict(self) -> dict[str, Any]:
        return {
            "cards": [card.to_dict() for card in self.cards],
            "starting_team": self.starting_team.value,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Board":
        return cls(
            cards=tuple(Card.from_dict(card) for card in data["cards"]),
            starting_team=Team(str(data["starting_team"])),
        )


@dataclass(frozen=True)
class Seat:
    """A team seat and who occupies it."""

    occupant: OccupantKind
    display_name: str
    role: Role

    @property
    def is_automated(self) -> bool:
        return self.occupant is OccupantKind.AUTOMATED

    def to_dict(self) -> dict[str, Any]:
        return {"occupant": self.occupant.value, "display_name": self.display_name, "role": self.role.value}

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Seat":
        return cls(
            occupant=OccupantKind(str(data["occupant"]).upper()),
            display_name=str(data.get("display_name", "")),
            role=Role(str(data["role"]).upper()),
        )


@dataclass(frozen=True)
class TeamSeats:
    """One team's two seats: a spymaster and an operative."""

    color: Team
    seats: tuple[Seat, ...]

    def __post_init__(self) -> None:
        seats = tuple(self.seats)
        object.__setattr__(self, "seats", seats)
        roles = sorted(seat.role.value for seat in seats)
        if roles != sorted([Role.SPYMASTER.value, Role.OPERATIVE.value]):
            raise InvalidRosterError(
                f"Team {self.color.value} must have exactly one SPYMASTER and one OPERATIVE seat; got {roles}."
            )

    def seat(self, role: Role) -> Seat:
        return next(seat for seat in self.seats if seat.role is role)

    def to_dict(self) -> dict[str, Any]:
        return {"color": self.color.value, "seats": [seat.to_dict() for seat in self.seats]}

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "TeamSeats":
        return cls(color=Team(str(data["color"])), seats=tuple(Seat.from_dict(seat) for seat in data["seats"]))


@dataclass(frozen=True)
class Roster:
    """Both teams' seats. Fixed for the whole game."""

    red: TeamSeats
    blue: TeamSeats

    def __post_init__(self) -> None:
        if self.red.color is not Team.RED or self.blue.color is not Team.BLUE:
            raise InvalidRosterError("Roster teams must be RED and BLUE respectively.")

    @classmethod
    def from_seats(cls, seats: Mapping[str, Seat]) -> "Roster":
        """Build a roster from a player_id -> Seat mapping (e.g. RED_SPYMASTER)."""
        unknown = sorted(set(seats) - set(PLAYER_TO_TEAM_ROLE))
        if unknown:
            raise InvalidRosterError(f"Unknown seat IDs: {unknown}")
        by_team: dict[Team, list[Seat]] = {Team.RED: [], Team.BLUE: []}
        for player_id, seat in seats.items():
            team, role = team_role_for_player(player_id)
            if seat.role is not role:
                raise InvalidRosterError(f"Seat {player_id} declares role {seat.role.value}.")
            by_team[team].append(seat)
        return cls(
            red=TeamSeats(color=Team.RED, seats=tuple(by_team[Team.RED])),
            blue=TeamSeats(color=Team.BLUE, seats=tuple(by_team[Team.BLUE])),
        )

    def team(self, team: Team) -> TeamSeats:
        return self.red if team is Team.RED else self.blue

    def spymaster_for(self, team: Team) -> Seat:
        """Return the spymaster seat of `team`."""
        return self.team(team).seat(Role.SPYMASTER)

    def operative_for(self, team: Team) -> Seat:
        """Return the operative seat of `team`."""
        return self.team(team).seat(Role.OPERATIVE)

    def seat_for(self, player_id: str) -> Seat:
        team, role = team_role_for_player(player_id)
        return self.team(team).seat(role)

    def automated_player_ids(self) -> list[str]:
        return [
            player_id
            for player_id in PLAYER_TO_TEAM_ROLE
            if self.seat_for(player_id).is_automated
        ]

    def to_dict(self) -> dict[str, Any]:
        return {"RED": self.red.to_dict(), "BLUE": self.blue.to_dict()}

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Roster":
        return cls(red=TeamSeats.from_dict(data["RED"]), blue=TeamSeats.from_dict(data["BLUE"]))


@dataclass(frozen=True)
class Clue:
    """A spymaster clue. `intended_words` is display-only metadata."""

    word: str
    count: int
    intended_words: tuple[str, ...] | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "word": self.word,
            "count": self.count,
            "intended_words": list(self.intended_words) if self.intended_words is not None else None,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Clue":
        intended = data.get("intended_words")
        return cls(
            word=str(data["word"]),
            count=int(data["count"]),
            intended_words=tuple(str(word) for word in intended) if intended is not None else None,
        )


@dataclass(frozen=True)
class ClueHistoryEntry:
    """Append-only record of an issued clue."""

    clue_word: str
    intended_words: tuple[str, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        return {"clue_word": self.clue_word, "intended_words": list(self.intended_words)}

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "ClueHistoryEntry":
        return cls(
            clue_word=str(data["clue_word"]),
            intended_words=tuple(str(word) for word in data.get("intended_words", ())),
        )


def _optional_team(raw: Any) -> Team | None:
    return Team(str(raw)) if raw is not None else None


def _optional_int(raw: Any) -> int | None:
    return int(raw) if raw is not None else None


@dataclass(frozen=True)
class GameState(State):
    """Immutable Codenames aggregate. Every transition returns a new instance."""

    seed: int
    board: Board
    roster: Roster
    active_team: Team
    phase: Phase
    active_clue: Clue | None = None
    guesses_remaining: int | None = None
    winner: Team | None = None
    termination_reason: str | None = None
    clue_history: tuple[ClueHistoryEntry, ...] = field(default_factory=tuple)
    clue_rating: int | None = None
    guess_rating: int | None = None
    turn_index: int = 0
    last_move: dict[str, Any] | None = None

    def __post_init__(self) -> None:
        if self.phase is Phase.GUESSING:
            if self.active_clue is None:
                raise InvalidStateError("GUESSING requires an active clue.")
            if self.guesses_remaining is None or self.guesses_remaining < 0:
                raise InvalidStateError(
                    f"GUESSING requires guesses_remaining >= 0; received {self.guesses_remaining!r}."
                )
        elif self.phase is Phase.WAITING:
            if self.active_clue is not None or self.guesses_remaining is not None:
                raise InvalidStateError("WAITING cannot carry an active clue or a guess budget.")

        if (self.phase is Phase.FINISHED) != (self.winner is not None):
            raise InvalidStateError("A winner is set exactly when the phase is FINISHED.")

        for name in ("clue_rating", "guess_rating"):
            value = getattr(self, name)
            if value is None:
                continue
            if self.phase is not Phase.FINISHED:
                raise InvalidStateError(f"{name} is only allowed on a finished game.")
            if not MIN_RATING <= value <= MAX_RATING:
                raise InvalidStateError(f"{name} must be in {MIN_RATING}..{MAX_RATING}; received {value}.")

    @property
    def starting_team(self) -> Team:
        return self.board.starting_team

    @property
    def is_finished(self) -> bool:
        return self.phase is Phase.FINISHED

    def team_words_remaining(self, team: Team) -> int:
        """Count unrevealed words assigned to `team`."""
        return self.board.count_unrevealed(card_type_for(team))

    def unrevealed_counts(self) -> dict[str, int]:
        return self.board.unrevealed_counts()

    def clue_words_used(self) -> set[str]:
        """Lower-cased clue words issued so far."""
        return {entry.clue_word.casefold() for entry in self.clue_history}

    def to_dict(self) -> dict[str, Any]:
        return {
            "seed": self.seed,
            "board": self.board.to_dict(),
            "roster": self.roster.to_dict(),
            "active_team": self.active_team.value,
            "phase": self.phase.value,
            "active_clue": self.active_clue.to_dict() if self.active_clue is not None else None,
            "guesses_remaining": self.guesses_remaining,
            "winner": self.winner.value if self.winner is not None else None,
            "termination_reason": self.termination_reason,
            "clue_history": [entry.to_dict() for entry in self.clue_history],
            "clue_rating": self.clue_rating,
            "guess_rating": self.guess_rating,
            "turn_index": self.turn_index,
            "last_move": dict(self.last_move) if self.last_move is not None else None,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Self:
        active_clue = data.get("active_clue")
        last_move = data.get("last_move")
        return cls(
            seed=int(data["seed"]),
            board=Board.from_dict(data["board"]),
            roster=Roster.from_dict(data["roster"]),
            active_team=Team(str(data["active_team"])),
            phase=Phase(str(data["phase"])),
            active_clue=Clue.from_dict(active_clue) if active_clue is not None else None,
            guesses_remaining=_optional_int(data.get("guesses_remaining")),
            winner=_optional_team(data.get("winner")),
            termination_reason=data.get("termination_reason"),
            clue_history=tuple(ClueHistoryEntry.from_dict(entry) for entry in data.get("clue_history", ())),
            clue_rating=_optional_int(data.get("clue_rating")),
            guess_rating=_optional_int(data.get("guess_rating")),
            turn_index=int(data.get("turn_index", 0)),
            last_move=dict(last_move) if last_move is not None else None,
        )


def cards_from_pairs(pairs: Iterable[tuple[str, CardType | str]]) -> tuple[Card, ...]:
    """Build unrevealed cards from (word, colour) pairs."""
    return tuple(Card(word=str(word), color=CardType(color)) for word, color in pairs)
