"""Board generation: the default word-list generator and the generator protocol."""

from __future__ import annotations

import random
from typing import Protocol, Sequence

from framework.errors import InvalidLayoutError

from .codenames_state import (
    ASSASSIN_CARDS,
    NEUTRAL_CARDS,
    SECOND_TEAM_CARDS,
    STARTING_TEAM_CARDS,
    Board,
    Card,
    CardType,
    Team,
    card_type_for,
    other_team,
)

DEFAULT_WORDS: tuple[str, ...] = (
    "Acorn", "Alloy", "Amber", "Anvil", "Arcade", "Atlas", "Avalanche", "Badge",
    "Balloon", "Bamboo", "Banner", "Barrel", "Beacon", "Biscuit", "Blizzard", "Bonnet",
    "Boomerang", "Bracelet", "Buckle", "Cactus", "Canal", "Candle", "Canyon", "Carousel",
    "Cathedral", "Cello", "Chimney", "Cobweb", "Comet", "Compass", "Coral", "Corset",
    "Crater", "Cricket", "Crystal", "Cupboard", "Dagger", "Dynamo", "Easel", "Eclipse",
    "Falcon", "Ferry", "Fiddle", "Fossil", "Fountain", "Galaxy", "Gargoyle", "Geyser",
    "Glacier", "Goblet", "Gondola", "Granite", "Hammock", "Harbor", "Harp", "Helmet",
    "Hive", "Hourglass", "Igloo", "Ivory", "Jigsaw", "Kayak", "Kettle", "Labyrinth",
    "Lagoon", "Lantern", "Lasso", "Locket", "Magnet", "Mammoth", "Marble", "Meadow",
    "Meteor", "Mosaic", "Nectar", "Oasis", "Orchard", "Origami", "Paddle", "Parachute",
    "Parrot", "Pendulum", "Pepper", "Pharaoh", "Pickle", "Pyramid", "Quasar", "Quill",
    "Radar", "Reef", "Saddle", "Satchel", "Scarecrow", "Scroll", "Sequoia", "Shovel",
    "Skeleton", "Sphinx", "Spindle", "Sponge", "Stencil", "Submarine", "Tambourine", "Telescope",
    "Thimble", "Thunder", "Torch", "Trellis", "Trumpet", "Tundra", "Turbine", "Umbrella",
    "Unicorn", "Vault", "Velvet", "Volcano", "Waffle", "Walrus", "Whistle", "Windmill",
    "Yacht", "Zephyr", "Zeppelin", "Zipper",
)


class BoardGenerator(Protocol):
    """Produces the initial card layout; the caller validates the result."""

    def generate(
        self,
        *,
        starting_team: Team,
        starting_team_count: int,
        other_team_count: int,
        neutral_count: int,
        assassin_count: int,
        rng: random.Random,
    ) -> Sequence[Card]:
        """Return the cards for a new board."""


class WordListBoardGenerator:
    """Samples distinct words from a list and shuffles the colour key over them."""

    def __init__(self, words: Sequence[str] | None = None):
        self.words = tuple(words) if words is not None else DEFAULT_WORDS

    def generate(
        self,
        *,
        starting_team: Team,
        starting_team_count: int,
        other_team_count: int,
        neutral_count: int,
        assassin_count: int,
        rng: random.Random,
    ) -> list[Card]:
        total = starting_team_count + other_team_count + neutral_count + assassin_count
        unique_words = list(dict.fromkeys(word.strip() for word in self.words if word.strip()))
        if len(unique_words) < total:
            raise ValueError(f"word_list must contain at least {total} distinct words.")
        words = rng.sample(unique_words, total)

        colors = (
            [card_type_for(starting_team)] * starting_team_count
            + [card_type_for(other_team(starting_team))] * other_team_count
            + [CardType.NEUTRAL] * neutral_count
            + [CardType.ASSASSIN] * assassin_count
        )
        rng.shuffle(colors)
        return [Card(word=word, color=color) for word, color in zip(words, colors, strict=True)]


def build_board(generator: BoardGenerator, starting_team: Team, rng: random.Random) -> Board:
    """Ask `generator` for a layout and validate it; raises InvalidLayoutError on a bad layout."""
    cards = generator.generate(
        starting_team=starting_team,
        starting_team_count=STARTING_TEAM_CARDS,
        other_team_count=SECOND_TEAM_CARDS,
        neutral_count=NEUTRAL_CARDS,
        assassin_count=ASSASSIN_CARDS,
        rng=rng,
    )
    board = Board(cards=tuple(cards), starting_team=starting_team)
    if any(card.revealed for card in board.cards):
        raise InvalidLayoutError("A new board must start with every card face down.")
    folded = [word.casefold() for word in board.words]
    if len(set(folded)) != len(folded):
        raise InvalidLayoutError("Board words must be unique.")
    return board
