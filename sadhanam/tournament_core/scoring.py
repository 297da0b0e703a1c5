"""
Table-tennis scoring rules for games and matches.

This module defines:
- Match formats (best of 3, 5 or 7) and their win conditions
- Validation of a single game score against table-tennis law
- Derivation of the match state from a list of saved games
- Gating of score entry and the pure part of recording/removing a game

Game rules: a game is played to 11 and must be won by 2. Below 10–10 the
game ends the moment a player reaches 11, so the winner has exactly 11. Once
both players reach 10 (deuce) play continues until one leads by exactly 2.
A best-of-K match is won by the first player to take ceil(K/2) games.
"""

import logging
from dataclasses import dataclass, replace
from enum import Enum
from typing import Dict, List, Optional, Sequence, Tuple

from sadhanam.tournament_core.results import (
    CoreError,
    ErrorCode,
    ErrorField,
    Result,
    ValidationResult,
)
from sadhanam.tournament_core.structure import (
    Game,
    Match,
    MatchFormat,
    MatchStatus,
    is_whole_number,
)

logger = logging.getLogger(__name__)

GAME_POINT = 11
DEUCE_THRESHOLD = 10
WINNING_MARGIN = 2


@dataclass(frozen=True)
class FormatConfig:
    format: MatchFormat
    games_needed: int
    max_games: int
    label: str


FORMAT_CONFIGS: Dict[MatchFormat, FormatConfig] = {
    MatchFormat.BO3: FormatConfig(MatchFormat.BO3, 2, 3, "Best of 3"),
    MatchFormat.BO5: FormatConfig(MatchFormat.BO5, 3, 5, "Best of 5"),
    MatchFormat.BO7: FormatConfig(MatchFormat.BO7, 4, 7, "Best of 7"),
}


class MatchOutcome(Enum):
    IN_PROGRESS = "in_progress"
    PLAYER1_WINS = "player1_wins"
    PLAYER2_WINS = "player2_wins"


@dataclass(frozen=True)
class ComputedGame:
    game_number: int
    score1: int
    score2: int
    winner_slot: Optional[int]
    is_deuce: bool
    counts_toward_result: bool = True


@dataclass(frozen=True)
class ComputedMatchState:
    player1_games: int
    player2_games: int
    outcome: MatchOutcome
    games: Tuple[ComputedGame, ...]
    deciding_game: Optional[int]
    games_remaining: int

    @property
    def is_decided(self) -> bool:
        return self.outcome != MatchOutcome.IN_PROGRESS

    @property
    def winner_slot(self) -> Optional[int]:
        if self.outcome == MatchOutcome.PLAYER1_WINS:
            return 1
        if self.outcome == MatchOutcome.PLAYER2_WINS:
            return 2
        return None


@dataclass(frozen=True)
class CanAddGameResult:
    allowed: bool
    next_game_number: int
    reason: Optional[str] = None
    code: Optional[ErrorCode] = None


def validate_game_score(score1, score2) -> ValidationResult:
    """
    Validate a single game score under table-tennis law.

    Returns every applicable error, not just the first, so a score form can
    highlight all problems at once. Type, sign, 0–0 and tie problems stop
    further checks since the remaining rules are meaningless without a winner.

    >>> validate_game_score(11, 9).ok
    True
    >>> validate_game_score(12, 10).ok
    True
    >>> validate_game_score(11, 10).codes
    (<ErrorCode.LEAD_TOO_SMALL: 'LEAD_TOO_SMALL'>,)
    """
    if not is_whole_number(score1) or not is_whole_number(score2):
        return Result.error(
            ErrorCode.SCORE_NOT_INTEGER,
            "Scores must be whole numbers.",
            ErrorField.BOTH,
        )

    errors: List[CoreError] = []
    if score1 < 0:
        errors.append(
            CoreError(
                ErrorCode.SCORE_NEGATIVE,
                "Player 1 score cannot be negative.",
                ErrorField.SCORE1,
            )
        )
    if score2 < 0:
        errors.append(
            CoreError(
                ErrorCode.SCORE_NEGATIVE,
                "Player 2 score cannot be negative.",
                ErrorField.SCORE2,
            )
        )
    if errors:
        return Result.failure(*errors)

    if score1 == 0 and score2 == 0:
        return Result.error(
            ErrorCode.SCORE_BOTH_ZERO,
            "A 0-0 game is not a valid result.",
            ErrorField.BOTH,
        )

    if score1 == score2:
        if score1 < DEUCE_THRESHOLD:
            return Result.error(
                ErrorCode.SCORE_TIE_NOT_DEUCE,
                f"A {score1}-{score2} tie is impossible. Games can only be level "
                f"at 10-10 or higher (deuce).",
                ErrorField.BOTH,
            )
        return Result.error(
            ErrorCode.GAME_WINNER_UNCLEAR,
            f"At {score1}-{score2} the game is still in progress (deuce). Enter "
            f"the final score once a player leads by 2.",
            ErrorField.BOTH,
        )

    if score1 > score2:
        winner_score, loser_score, winner_field = score1, score2, ErrorField.SCORE1
    else:
        winner_score, loser_score, winner_field = score2, score1, ErrorField.SCORE2
    margin = winner_score - loser_score

    if winner_score < GAME_POINT:
        errors.append(
            CoreError(
                ErrorCode.WINNER_BELOW_MINIMUM,
                f"The winning score must be at least {GAME_POINT}. Got {winner_score}.",
                winner_field,
            )
        )

    if margin < WINNING_MARGIN:
        errors.append(
            CoreError(
                ErrorCode.LEAD_TOO_SMALL,
                f"A game must be won by 2 clear points. The margin is only {margin}.",
                ErrorField.BOTH,
            )
        )

    # The game stops at 11 unless the opponent also reached 10.
    if loser_score < DEUCE_THRESHOLD and winner_score > GAME_POINT:
        errors.append(
            CoreError(
                ErrorCode.WINNER_EXCEEDS_NORMAL,
                f"If the opponent has {loser_score} points the game ends at "
                f"11-{loser_score}. {winner_score}-{loser_score} is impossible.",
                winner_field,
            )
        )

    if loser_score >= DEUCE_THRESHOLD and margin > WINNING_MARGIN:
        errors.append(
            CoreError(
                ErrorCode.DEUCE_NOT_WIN_BY_TWO,
                f"In deuce the margin must be exactly 2. Got {winner_score}-"
                f"{loser_score}; did you mean {loser_score + 2}-{loser_score}?",
                ErrorField.BOTH,
            )
        )

    if errors:
        return Result.failure(*errors)
    return Result.success()


def compute_match_state(
    games: Sequence[Game], match_format: MatchFormat
) -> ComputedMatchState:
    """
    Derive the match state from saved games.

    Games are sorted by game number first, so storage order never matters.
    Counting stops at the game where the win condition is first met; any
    later games are still returned (for display and cleanup) but flagged with
    ``counts_toward_result=False``.
    """
    config = FORMAT_CONFIGS[match_format]
    ordered = sorted(games, key=lambda g: g.game_number)

    p1_games = 0
    p2_games = 0
    deciding_game = None
    counted = 0
    computed = []

    for game in ordered:
        counts = deciding_game is None
        computed.append(
            ComputedGame(
                game_number=game.game_number,
                score1=game.score1,
                score2=game.score2,
                winner_slot=game.winner_slot,
                is_deuce=game.score1 >= DEUCE_THRESHOLD
                and game.score2 >= DEUCE_THRESHOLD,
                counts_toward_result=counts,
            )
        )
        if not counts:
            continue

        counted += 1
        if game.winner_slot == 1:
            p1_games += 1
        elif game.winner_slot == 2:
            p2_games += 1

        if p1_games >= config.games_needed or p2_games >= config.games_needed:
            deciding_game = game.game_number

    if p1_games >= config.games_needed:
        outcome = MatchOutcome.PLAYER1_WINS
    elif p2_games >= config.games_needed:
        outcome = MatchOutcome.PLAYER2_WINS
    else:
        outcome = MatchOutcome.IN_PROGRESS

    if outcome == MatchOutcome.IN_PROGRESS:
        games_remaining = max(0, config.max_games - counted)
    else:
        games_remaining = 0

    return ComputedMatchState(
        player1_games=p1_games,
        player2_games=p2_games,
        outcome=outcome,
        games=tuple(computed),
        deciding_game=deciding_game,
        games_remaining=games_remaining,
    )


def next_game_number(existing_games: Sequence[Game]) -> int:
    if not existing_games:
        return 1
    return max(g.game_number for g in existing_games) + 1


def can_add_another_game(
    existing_games: Sequence[Game],
    match_format: MatchFormat,
    player1_id: Optional[str],
    player2_id: Optional[str],
    game_number: int,
) -> CanAddGameResult:
    """
    Decide whether a new game may be saved for a match.

    ``next_game_number`` is always filled in, whether or not entry is
    allowed, so a score form can pre-fill it.
    """
    config = FORMAT_CONFIGS[match_format]
    next_number = next_game_number(existing_games)

    def refuse(code: ErrorCode, reason: str) -> CanAddGameResult:
        return CanAddGameResult(
            allowed=False, next_game_number=next_number, reason=reason, code=code
        )

    if not player1_id or not player2_id:
        return refuse(
            ErrorCode.MISSING_PLAYER,
            "Both player slots must be filled before scores can be entered.",
        )

    if game_number < 1 or game_number > config.max_games:
        return refuse(
            ErrorCode.GAME_NUMBER_OUT_OF_RANGE,
            f"Game {game_number} is outside 1-{config.max_games} for "
            f"{config.label.lower()}.",
        )

    state = compute_match_state(existing_games, match_format)
    if state.is_decided:
        if game_number > state.deciding_game:
            return refuse(
                ErrorCode.GAME_ALREADY_DECIDED,
                f"The match was decided in game {state.deciding_game}. "
                f"Game {game_number} should not exist.",
            )
        return refuse(
            ErrorCode.MATCH_ALREADY_COMPLETE,
            f"The match is already complete (player {state.winner_slot} won). "
            f"Delete the deciding game first to make a correction.",
        )

    return CanAddGameResult(allowed=True, next_game_number=next_number)


def derive_game_winner_id(
    score1: int, score2: int, player1_id: str, player2_id: str
) -> str:
    """Winner of a validated game score."""
    return player1_id if score1 > score2 else player2_id


def format_validation_errors(result: ValidationResult) -> str:
    """Flatten all error messages into one user-facing string."""
    return " ".join(error.message for error in result.errors)


def errors_for_field(result: ValidationResult, field: ErrorField) -> List[CoreError]:
    """Errors that apply to one score input, including those flagged for both."""
    return [e for e in result.errors if e.field in (field, ErrorField.BOTH)]


def game_numbers_to_show(
    existing_games: Sequence[Game], match_format: MatchFormat
) -> List[int]:
    """
    Game rows a score-entry UI should render.

    A decided match shows rows through the deciding game; an open match shows
    every saved game plus one empty row, never past the format ceiling.
    """
    config = FORMAT_CONFIGS[match_format]
    state = compute_match_state(existing_games, match_format)
    if state.is_decided:
        return list(range(1, state.deciding_game + 1))
    show_through = min(next_game_number(existing_games), config.max_games)
    return list(range(1, show_through + 1))


def apply_match_state(match: Match, match_format: MatchFormat) -> Match:
    """Return ``match`` with status and winner re-derived from its games."""
    state = compute_match_state(match.games, match_format)
    winner_id = match.slot_player(state.winner_slot) if state.is_decided else None
    if winner_id is not None:
        status = MatchStatus.COMPLETE
    elif match.games:
        status = MatchStatus.LIVE
    else:
        status = MatchStatus.PENDING
    return replace(match, status=status, winner_id=winner_id)


def record_game(
    match: Match,
    game_number: int,
    score1,
    score2,
    match_format: MatchFormat,
) -> Result[Match]:
    """
    Save one game score into a match and re-derive its state.

    Re-saving an existing game number is an edit and skips the entry gate;
    a new game number must pass ``can_add_another_game``.
    """
    if match.status == MatchStatus.BYE:
        return Result.error(
            ErrorCode.MATCH_IS_BYE,
            "Scores cannot be entered for a bye.",
            ErrorField.MATCH,
        )

    validation = validate_game_score(score1, score2)
    if not validation.ok:
        return Result.failure(*validation.errors)

    is_edit = any(g.game_number == game_number for g in match.games)
    if not is_edit:
        gate = can_add_another_game(
            match.games,
            match_format,
            match.player1_id,
            match.player2_id,
            game_number,
        )
        if not gate.allowed:
            return Result.error(gate.code, gate.reason, ErrorField.MATCH)
    elif not match.has_both_players:
        return Result.error(
            ErrorCode.MISSING_PLAYER,
            "Both player slots must be filled before scores can be entered.",
            ErrorField.MATCH,
        )

    games = tuple(g for g in match.games if g.game_number != game_number)
    games = tuple(
        sorted(games + (Game(game_number, score1, score2),), key=lambda g: g.game_number)
    )
    updated = apply_match_state(replace(match, games=games), match_format)
    logger.debug(
        "Recorded game %s (%s-%s) in match %s: %s",
        game_number,
        score1,
        score2,
        match.key,
        updated.status.value,
    )
    return Result.success(updated)


def remove_game(
    match: Match, game_number: int, match_format: MatchFormat
) -> Result[Match]:
    """Delete one saved game and re-derive the match state."""
    if not any(g.game_number == game_number for g in match.games):
        return Result.error(
            ErrorCode.GAME_NOT_FOUND,
            f"Game {game_number} has not been recorded for this match.",
            ErrorField.MATCH,
        )
    games = tuple(g for g in match.games if g.game_number != game_number)
    return Result.success(apply_match_state(replace(match, games=games), match_format))
