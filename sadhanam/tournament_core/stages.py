"""
Stage lifecycle checks and planning pipelines.

A tournament runs one of three formats: a single knockout, a single round
robin, or a round-robin stage whose qualifiers go on to a knockout stage.
The caller sequences the steps (create stage, assign groups, generate
fixtures, close the stage, extract qualifiers, generate the bracket) and
persists what each returns; the functions here are the pure parts of those
steps.

- A stage whose matches hold any game score is locked: its structure (groups
  and fixtures) may no longer be regenerated.
- A round-robin stage closes when every non-bye match is complete, or, under
  the manual finalization rule, when an admin forces it.
"""

import logging
from dataclasses import dataclass
from typing import Optional, Sequence, Tuple

from sadhanam.tournament_core import conf
from sadhanam.tournament_core.knockout import BracketResult, generate_bracket
from sadhanam.tournament_core.qualifiers import (
    Qualifier,
    avoid_same_group_clashes,
    extract_qualifiers,
    qualifiers_to_players,
)
from sadhanam.tournament_core.results import (
    CoreError,
    ErrorCode,
    ErrorField,
    Result,
    ValidationResult,
)
from sadhanam.tournament_core.round_robin import (
    assign_groups,
    build_round_robin_matches,
)
from sadhanam.tournament_core.standings import (
    GroupStandings,
    compute_all_group_standings,
)
from sadhanam.tournament_core.structure import (
    FinalizationRule,
    Group,
    KnockoutStageConfig,
    Match,
    MatchStatus,
    Player,
    RoundRobinMatch,
    RoundRobinStageConfig,
    is_whole_number,
)

logger = logging.getLogger(__name__)

MAX_ADVANCE_COUNT = 4
MAX_BEST_THIRD_COUNT = 4


@dataclass(frozen=True)
class StageCloseSummary:
    completed: int
    skipped: int
    forced: bool = False


@dataclass(frozen=True)
class RoundRobinPlan:
    groups: Tuple[Group, ...]
    matches: Tuple[RoundRobinMatch, ...]


@dataclass(frozen=True)
class KnockoutFromRoundRobinPlan:
    standings: Tuple[GroupStandings, ...]
    qualifiers: Tuple[Qualifier, ...]
    bracket: BracketResult


def validate_round_robin_config(
    config: RoundRobinStageConfig, player_count: Optional[int] = None
) -> ValidationResult:
    """Check a round-robin stage configuration, collecting every problem.

    With ``player_count`` given, also checks that every group can get at
    least two players.
    """
    errors = []
    max_groups = conf.max_groups()
    groups_ok = is_whole_number(config.number_of_groups) and (
        1 <= config.number_of_groups <= max_groups
    )
    if not groups_ok:
        errors.append(
            CoreError(
                ErrorCode.INVALID_GROUP_COUNT,
                f"Number of groups must be between 1 and {max_groups}.",
                ErrorField.GROUPS,
            )
        )
    if not is_whole_number(config.advance_count) or not (
        1 <= config.advance_count <= MAX_ADVANCE_COUNT
    ):
        errors.append(
            CoreError(
                ErrorCode.INVALID_ADVANCE_COUNT,
                f"Advance count must be between 1 and {MAX_ADVANCE_COUNT}.",
                ErrorField.CONFIG,
            )
        )
    if config.allow_best_third and (
        not is_whole_number(config.best_third_count)
        or not 1 <= config.best_third_count <= MAX_BEST_THIRD_COUNT
    ):
        errors.append(
            CoreError(
                ErrorCode.INVALID_BEST_THIRD_COUNT,
                f"Best-placed count must be between 1 and {MAX_BEST_THIRD_COUNT}.",
                ErrorField.CONFIG,
            )
        )
    if player_count is not None and groups_ok:
        if player_count < 2 * config.number_of_groups:
            errors.append(
                CoreError(
                    ErrorCode.GROUP_TOO_SMALL,
                    f"{player_count} players cannot fill {config.number_of_groups} "
                    f"groups of at least 2. Add players or reduce the number of groups.",
                    ErrorField.GROUPS,
                )
            )
    if errors:
        return Result.failure(*errors)
    return Result.success()


def stage_has_scores(matches: Sequence[Match]) -> bool:
    """True once any game has been recorded; the stage structure is then locked."""
    return any(match.games for match in matches)


def check_stage_can_close(
    matches: Sequence[Match],
    finalization_rule: FinalizationRule = FinalizationRule.REQUIRE_ALL,
    force: bool = False,
) -> Result[StageCloseSummary]:
    """
    Decide whether a round-robin stage may be closed.

    Byes never block closing. Under ``REQUIRE_ALL`` every other match must be
    complete. Under ``MANUAL`` incomplete matches block closing unless
    ``force`` is set, in which case they are reported as skipped.
    """
    real = [m for m in matches if m.status != MatchStatus.BYE]
    completed = sum(1 for m in real if m.status == MatchStatus.COMPLETE)
    skipped = len(real) - completed

    if skipped == 0:
        return Result.success(StageCloseSummary(completed=completed, skipped=0))

    if finalization_rule == FinalizationRule.MANUAL and force:
        logger.info("Force-closing stage with %s incomplete matches", skipped)
        return Result.success(
            StageCloseSummary(completed=completed, skipped=skipped, forced=True)
        )

    if finalization_rule == FinalizationRule.MANUAL:
        message = (
            f"{skipped} match(es) are not complete. Confirm a forced close to "
            f"finish the stage anyway."
        )
    else:
        message = f"{skipped} match(es) must be completed before the stage can close."
    return Result.error(ErrorCode.STAGE_INCOMPLETE, message, ErrorField.MATCH)


def plan_round_robin_stage(
    players: Sequence[Player],
    config: RoundRobinStageConfig,
    rng_seed: Optional[int] = None,
    match_number_offset: int = 0,
) -> Result[RoundRobinPlan]:
    """Assign groups and generate every fixture for a round-robin stage."""
    validation = validate_round_robin_config(config, len(players))
    if not validation.ok:
        return Result.failure(*validation.errors)

    groups = assign_groups(players, config.number_of_groups, rng_seed)
    if not groups.ok:
        return Result.failure(*groups.errors)

    smallest = min(g.size for g in groups.value)
    if config.advance_count >= smallest:
        return Result.error(
            ErrorCode.ADVANCE_COUNT_TOO_LARGE,
            f"The smallest group has {smallest} players, so fewer than {smallest} "
            f"can advance. Got {config.advance_count}.",
            ErrorField.CONFIG,
        )

    matches = build_round_robin_matches(groups.value, match_number_offset)
    if not matches.ok:
        return Result.failure(*matches.errors)
    return Result.success(RoundRobinPlan(groups.value, matches.value))


def plan_knockout_stage(
    players: Sequence[Player],
    config: Optional[KnockoutStageConfig] = None,
    rng_seed: Optional[int] = None,
    match_number_offset: int = 0,
) -> Result[BracketResult]:
    """Generate the bracket for a single-knockout tournament."""
    config = config or KnockoutStageConfig()
    result = generate_bracket(players, rng_seed, match_number_offset)
    if result.ok:
        logger.debug(
            "Planned %s knockout bracket for %s players",
            config.match_format.value,
            len(players),
        )
    return result


def plan_knockout_from_round_robin(
    groups: Sequence[Group],
    players: Sequence[Player],
    matches: Sequence[Match],
    config: RoundRobinStageConfig,
    rng_seed: Optional[int] = None,
    match_number_offset: Optional[int] = None,
    force: bool = False,
) -> Result[KnockoutFromRoundRobinPlan]:
    """
    Close a round-robin stage and seed its qualifiers into a knockout bracket.

    Standings are computed, qualifiers extracted and reordered to keep group
    mates apart in round one, then seeded into the bracket. Knockout match
    numbers start after the highest round-robin match number unless
    ``match_number_offset`` is given.
    """
    closing = check_stage_can_close(matches, config.finalization_rule, force)
    if not closing.ok:
        return Result.failure(*closing.errors)

    standings = compute_all_group_standings(groups, players, matches, config)
    if not standings.ok:
        return Result.failure(*standings.errors)

    qualifiers = extract_qualifiers(standings.value, config)
    if not qualifiers.ok:
        return Result.failure(*qualifiers.errors)
    ordered = avoid_same_group_clashes(qualifiers.value)

    if match_number_offset is None:
        match_number_offset = max((m.match_number for m in matches), default=0)
    bracket = generate_bracket(
        qualifiers_to_players(ordered), rng_seed, match_number_offset
    )
    if not bracket.ok:
        return Result.failure(*bracket.errors)
    return Result.success(
        KnockoutFromRoundRobinPlan(standings.value, ordered, bracket.value)
    )
