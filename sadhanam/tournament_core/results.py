"""
Result values returned by every tournament_core operation.

Nothing in tournament_core raises for bad input. Validation failures (an
impossible game score, a misconfigured group count) and precondition failures
(too few players for a bracket) are both returned as a ``Result`` carrying one
or more ``CoreError`` entries, so a caller can surface every problem at once.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Generic, Optional, Tuple, TypeVar

T = TypeVar("T")


class ErrorCode(Enum):
    """Stable machine-readable error codes."""

    # Game score
    SCORE_NOT_INTEGER = "SCORE_NOT_INTEGER"
    SCORE_NEGATIVE = "SCORE_NEGATIVE"
    SCORE_BOTH_ZERO = "SCORE_BOTH_ZERO"
    SCORE_TIE_NOT_DEUCE = "SCORE_TIE_NOT_DEUCE"
    GAME_WINNER_UNCLEAR = "GAME_WINNER_UNCLEAR"
    WINNER_BELOW_MINIMUM = "WINNER_BELOW_MINIMUM"
    WINNER_EXCEEDS_NORMAL = "WINNER_EXCEEDS_NORMAL"
    LEAD_TOO_SMALL = "LEAD_TOO_SMALL"
    DEUCE_NOT_WIN_BY_TWO = "DEUCE_NOT_WIN_BY_TWO"

    # Match state
    MATCH_ALREADY_COMPLETE = "MATCH_ALREADY_COMPLETE"
    GAME_NUMBER_OUT_OF_RANGE = "GAME_NUMBER_OUT_OF_RANGE"
    GAME_ALREADY_DECIDED = "GAME_ALREADY_DECIDED"
    GAME_NOT_FOUND = "GAME_NOT_FOUND"
    MISSING_PLAYER = "MISSING_PLAYER"
    MATCH_IS_BYE = "MATCH_IS_BYE"

    # Draws and schedules
    INSUFFICIENT_PLAYERS = "INSUFFICIENT_PLAYERS"
    TOO_MANY_PLAYERS = "TOO_MANY_PLAYERS"
    DUPLICATE_PLAYER = "DUPLICATE_PLAYER"
    DUPLICATE_SEED = "DUPLICATE_SEED"
    INVALID_GROUP_COUNT = "INVALID_GROUP_COUNT"
    GROUP_TOO_SMALL = "GROUP_TOO_SMALL"
    GROUP_TOO_LARGE = "GROUP_TOO_LARGE"
    WRONG_FIXTURE_COUNT = "WRONG_FIXTURE_COUNT"
    DUPLICATE_FIXTURE = "DUPLICATE_FIXTURE"
    MISSING_FIXTURE = "MISSING_FIXTURE"
    PLAYER_DOUBLE_BOOKED = "PLAYER_DOUBLE_BOOKED"

    # Knockout progression
    MATCH_NOT_FOUND = "MATCH_NOT_FOUND"
    NEXT_MATCH_LOCKED = "NEXT_MATCH_LOCKED"

    # Stages and qualification
    INVALID_ADVANCE_COUNT = "INVALID_ADVANCE_COUNT"
    ADVANCE_COUNT_TOO_LARGE = "ADVANCE_COUNT_TOO_LARGE"
    INVALID_BEST_THIRD_COUNT = "INVALID_BEST_THIRD_COUNT"
    STAGE_INCOMPLETE = "STAGE_INCOMPLETE"
    NOT_ENOUGH_QUALIFIERS = "NOT_ENOUGH_QUALIFIERS"


class ErrorField(Enum):
    """Which caller input an error implicates."""

    SCORE1 = "score1"
    SCORE2 = "score2"
    BOTH = "both"
    MATCH = "match"
    PLAYERS = "players"
    GROUPS = "groups"
    CONFIG = "config"


@dataclass(frozen=True)
class CoreError:
    code: ErrorCode
    message: str
    field: Optional[ErrorField] = None


@dataclass(frozen=True)
class Result(Generic[T]):
    """Either a value or a non-empty tuple of errors."""

    value: Optional[T] = None
    errors: Tuple[CoreError, ...] = field(default_factory=tuple)

    @property
    def ok(self) -> bool:
        return not self.errors

    @property
    def first_error(self) -> Optional[CoreError]:
        return self.errors[0] if self.errors else None

    @property
    def codes(self) -> Tuple[ErrorCode, ...]:
        return tuple(error.code for error in self.errors)

    @classmethod
    def success(cls, value: Optional[T] = None) -> "Result[T]":
        return cls(value=value)

    @classmethod
    def failure(cls, *errors: CoreError) -> "Result[T]":
        if not errors:
            raise ValueError("A failed result needs at least one error")
        return cls(errors=tuple(errors))

    @classmethod
    def error(
        cls, code: ErrorCode, message: str, field: Optional[ErrorField] = None
    ) -> "Result[T]":
        """Shortcut for a failure with a single error."""
        return cls.failure(CoreError(code, message, field))


# Validation results never carry a value.
ValidationResult = Result[None]
