# app_types.py
"""
Type aliases and data classes for the Rotation Scheduler.

This module defines type aliases to improve code readability and provide
semantic meaning to complex type hints, plus the schedule data classes
(Pair, Game, Round) that every engine module passes around.

Games and pairs only hold player ids; the Player records themselves live
in the session roster, keyed by id.
"""

import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import Protocol

# =============================================================================
# Basic Type Aliases
# =============================================================================


class Gender(str, Enum):
    """Player gender enumeration for strict type checking."""

    MALE = "Male"
    FEMALE = "Female"


class GameStatus(str, Enum):
    """Lifecycle state of a single game."""

    AWAITING = "awaiting"
    IN_PLAY = "in_play"
    FINISHED = "finished"


class GameType(str, Enum):
    DOUBLES = "doubles"
    SINGLES = "singles"


class PairSide(str, Enum):
    """Which side of a game a pair plays on."""

    A = "A"
    B = "B"


class Decision(str, Enum):
    """Answer returned by a confirmation dialog."""

    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"


# A player's stable unique identifier
PlayerId = str

# An unordered partnership, stored sorted
PlayerPair = tuple[PlayerId, PlayerId]

# Who has already partnered whom during one schedule generation
PartnerHistory = dict[PlayerId, set[PlayerId]]


def new_game_id() -> str:
    """Returns a fresh unique game identifier."""
    return uuid.uuid4().hex


# =============================================================================
# Schedule Data Classes
# =============================================================================


@dataclass
class Pair:
    """Two players (or one, for a singles half-pair) playing as a unit.

    Attributes:
        p1: First player's id
        p2: Second player's id, or None for a singles half-pair
        strength: Sum of the members' scores
    """

    p1: PlayerId
    p2: PlayerId | None = None
    strength: float = 0.0

    @property
    def members(self) -> list[PlayerId]:
        return [pid for pid in (self.p1, self.p2) if pid is not None]


@dataclass
class Game:
    """A doubles or singles game within a round.

    Attributes:
        pair_a: Side A of the game
        pair_b: Side B of the game
        game_type: Doubles, or singles when built from a leftover pair
        status: Current lifecycle state
        score_a: Games won by side A
        score_b: Games won by side B
        id: Unique identifier
    """

    pair_a: Pair
    pair_b: Pair
    game_type: GameType = GameType.DOUBLES
    status: GameStatus = GameStatus.AWAITING
    score_a: int = 0
    score_b: int = 0
    id: str = field(default_factory=new_game_id)

    def pair(self, side: PairSide) -> Pair:
        return self.pair_a if side == PairSide.A else self.pair_b

    @property
    def player_ids(self) -> list[PlayerId]:
        return self.pair_a.members + self.pair_b.members


@dataclass
class Round:
    """One round of games.

    Attributes:
        round_number: 1-based round number
        games: Ordered games of this round
        sit_outs: Players sitting out (always empty with an even roster)
    """

    round_number: int
    games: list[Game]
    sit_outs: list[PlayerId] = field(default_factory=list)


# The full list of rounds produced by one generation
Schedule = list[Round]


@dataclass(frozen=True)
class SlotLocation:
    """Address of one player slot in a schedule.

    Attributes:
        round_index: 0-based index into the schedule
        game_index: 0-based index into the round's games
        side: Pair side (A or B)
        slot: 1 for p1, 2 for p2
    """

    round_index: int
    game_index: int
    side: PairSide
    slot: int

    def __post_init__(self) -> None:
        if self.slot not in (1, 2):
            raise ValueError(f"Slot must be 1 or 2, got {self.slot}")


# =============================================================================
# Result Data Classes
# =============================================================================


@dataclass
class ConflictReport:
    """Repeated partnerships found in a schedule.

    Attributes:
        player_ids: Every player involved in a repeated partnership
        repeated_pairs: Repeated partnership -> round numbers it appears in
        message: Advisory text, empty when there is no conflict
    """

    player_ids: set[PlayerId] = field(default_factory=set)
    repeated_pairs: dict[PlayerPair, list[int]] = field(default_factory=dict)
    message: str = ""

    @property
    def has_conflicts(self) -> bool:
        return bool(self.player_ids)


@dataclass
class StandingRow:
    """One leaderboard line."""

    player_id: PlayerId
    name: str
    gender: Gender
    points: int
    played: int


# =============================================================================
# Collaborator Protocols
# =============================================================================


class Dialog(Protocol):
    """Confirmation/alert surface provided by the hosting shell."""

    def confirm(self, title: str, message: str) -> Decision: ...

    def alert(self, title: str, message: str) -> None: ...
