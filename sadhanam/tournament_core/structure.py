"""
Tournament structures shared by every format.

This module provides the immutable snapshot types the engine consumes and
produces:
- Players (with optional seed, club and group preference)
- Games within matches (a single table-tennis game score)
- Matches, as knockout or round-robin variants over a common scoring shape
- Groups and stage configuration for round-robin and knockout stages

Callers own identity and persistence. Every transformation returns new
objects; nothing here is mutated in place.
"""

from dataclasses import dataclass, field, replace
from enum import Enum
from numbers import Integral
from typing import ClassVar, Optional, Tuple

from sadhanam.tournament_core import conf


def is_whole_number(value) -> bool:
    """True for integers of any integral type. Booleans are not numbers here."""
    return isinstance(value, Integral) and not isinstance(value, bool)


class MatchFormat(Enum):
    """Best-of-K match formats."""

    BO3 = "bo3"
    BO5 = "bo5"
    BO7 = "bo7"


class MatchStatus(Enum):
    PENDING = "pending"
    LIVE = "live"
    COMPLETE = "complete"
    BYE = "bye"


class MatchKind(Enum):
    KNOCKOUT = "knockout"
    ROUND_ROBIN = "round_robin"


class FinalizationRule(Enum):
    """When a round-robin stage may be closed."""

    REQUIRE_ALL = "require_all"  # every non-bye match must be complete
    MANUAL = "manual"  # admin may force-close at any point


@dataclass(frozen=True)
class Player:
    """A tournament entrant.

    ``seed`` is only honoured when it is an integer between 1 and the
    configured maximum seed (64 by default); anything else is treated as
    unseeded. ``preferred_group`` is a 1-based group number.
    """

    player_id: str
    name: str
    seed: Optional[int] = None
    club: Optional[str] = None
    preferred_group: Optional[int] = None

    @property
    def has_valid_seed(self) -> bool:
        return (
            is_whole_number(self.seed)
            and 1 <= self.seed <= conf.max_seed()
        )


@dataclass(frozen=True)
class Game:
    """A single game score within a match. Game numbers are 1-based."""

    game_number: int
    score1: int
    score2: int

    @property
    def winner_slot(self) -> Optional[int]:
        """Return 1 or 2 for the winning side, or None for a tied score."""
        if self.score1 > self.score2:
            return 1
        if self.score2 > self.score1:
            return 2
        return None

    def winner_id(
        self, player1_id: Optional[str], player2_id: Optional[str]
    ) -> Optional[str]:
        slot = self.winner_slot
        if slot == 1:
            return player1_id
        if slot == 2:
            return player2_id
        return None


@dataclass(frozen=True)
class Match:
    """Common scoring shape for both match variants.

    ``round`` is the knockout round or the round-robin matchday. ``match_id``
    is an opaque identity owned by the caller and is passed through untouched.
    """

    kind: ClassVar[Optional[MatchKind]] = None

    round: int
    match_number: int
    player1_id: Optional[str] = None
    player2_id: Optional[str] = None
    status: MatchStatus = MatchStatus.PENDING
    winner_id: Optional[str] = None
    games: Tuple[Game, ...] = field(default_factory=tuple)
    match_id: Optional[str] = None

    @property
    def key(self) -> Tuple[int, int]:
        """(round, match_number), unique within a tournament."""
        return (self.round, self.match_number)

    @property
    def has_both_players(self) -> bool:
        return self.player1_id is not None and self.player2_id is not None

    @property
    def player_ids(self) -> Tuple[str, ...]:
        return tuple(p for p in (self.player1_id, self.player2_id) if p is not None)

    @property
    def is_decided(self) -> bool:
        return self.status in (MatchStatus.COMPLETE, MatchStatus.BYE)

    def involves(self, player_id: str) -> bool:
        return player_id in (self.player1_id, self.player2_id)

    def slot_player(self, slot: int) -> Optional[str]:
        return self.player1_id if slot == 1 else self.player2_id

    def with_slot(self, slot: int, player_id: Optional[str]) -> "Match":
        if slot == 1:
            return replace(self, player1_id=player_id)
        return replace(self, player2_id=player_id)


@dataclass(frozen=True)
class KnockoutMatch(Match):
    """A bracket match wired to the match that receives its winner.

    The final has no ``next_match_number``.
    """

    kind: ClassVar[Optional[MatchKind]] = MatchKind.KNOCKOUT

    next_match_number: Optional[int] = None
    next_slot: Optional[int] = None
    round_name: str = ""

    @property
    def next_key(self) -> Optional[Tuple[int, int]]:
        if self.next_match_number is None:
            return None
        return (self.round + 1, self.next_match_number)


@dataclass(frozen=True)
class RoundRobinMatch(Match):
    """A group fixture. ``round`` is the matchday shared across all groups."""

    kind: ClassVar[Optional[MatchKind]] = MatchKind.ROUND_ROBIN

    group_number: int = 0

    @property
    def matchday(self) -> int:
        return self.round


@dataclass(frozen=True)
class Group:
    """A round-robin group. ``group_number`` is 1-based and drives seeding order."""

    group_number: int
    name: str
    player_ids: Tuple[str, ...] = field(default_factory=tuple)

    def __contains__(self, player_id: str) -> bool:
        return player_id in self.player_ids

    @property
    def size(self) -> int:
        return len(self.player_ids)


@dataclass(frozen=True)
class RoundRobinStageConfig:
    number_of_groups: int
    advance_count: int
    match_format: MatchFormat = MatchFormat.BO3
    allow_best_third: bool = False
    best_third_count: int = 0
    finalization_rule: FinalizationRule = FinalizationRule.REQUIRE_ALL


@dataclass(frozen=True)
class KnockoutStageConfig:
    match_format: MatchFormat = MatchFormat.BO3
    seeded_from_round_robin: bool = False


def default_match_format() -> MatchFormat:
    """The configured default format (``SADHANAM_DEFAULT_MATCH_FORMAT``)."""
    return MatchFormat(conf.default_match_format())
