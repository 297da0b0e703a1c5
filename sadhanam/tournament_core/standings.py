"""
Group standings for round-robin stages.

Standings are derived from match snapshots every time, never stored. Only
complete round-robin matches between two members of the group count. Games
won and lost come from the games that decided the match; points come from
every saved game of a counted match.
"""

import logging
from dataclasses import dataclass, field, replace
from typing import Dict, Optional, Sequence, Tuple

from sadhanam.tournament_core.results import (
    CoreError,
    ErrorCode,
    ErrorField,
    Result,
)
from sadhanam.tournament_core.scoring import compute_match_state
from sadhanam.tournament_core.structure import (
    Group,
    Match,
    MatchFormat,
    MatchStatus,
    Player,
    RoundRobinMatch,
    RoundRobinStageConfig,
    is_whole_number,
)
from sadhanam.tournament_core.tiebreaks import (
    TiebreakReason,
    cross_group_key,
    rank_standings,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PlayerStanding:
    player_id: str
    name: str
    group_number: int
    seed: Optional[int] = None
    club: Optional[str] = None
    matches_played: int = 0
    wins: int = 0
    losses: int = 0
    games_won: int = 0
    games_lost: int = 0
    points_scored: int = 0
    points_conceded: int = 0
    rank: int = 0
    advances: bool = False
    best_placed: bool = False
    decided_by: Optional[TiebreakReason] = None

    @property
    def game_difference(self) -> int:
        return self.games_won - self.games_lost

    @property
    def points_difference(self) -> int:
        return self.points_scored - self.points_conceded


@dataclass(frozen=True)
class GroupStandings:
    group: Group
    standings: Tuple[PlayerStanding, ...] = field(default_factory=tuple)
    advance_count: int = 0

    def at_rank(self, rank: int) -> Optional[PlayerStanding]:
        for standing in self.standings:
            if standing.rank == rank:
                return standing
        return None

    def for_player(self, player_id: str) -> Optional[PlayerStanding]:
        for standing in self.standings:
            if standing.player_id == player_id:
                return standing
        return None


@dataclass(frozen=True)
class GroupProgress:
    completed: int
    total: int

    @property
    def all_done(self) -> bool:
        return self.total > 0 and self.completed == self.total


def _check_advance_count(group: Group, advance_count: int) -> Optional[CoreError]:
    if (
        not is_whole_number(advance_count) or advance_count < 0
    ):
        return CoreError(
            ErrorCode.INVALID_ADVANCE_COUNT,
            f"Advance count must be a non-negative whole number. Got {advance_count}.",
            ErrorField.CONFIG,
        )
    if advance_count >= group.size:
        return CoreError(
            ErrorCode.ADVANCE_COUNT_TOO_LARGE,
            f"{group.name} has {group.size} players, so fewer than {group.size} "
            f"can advance. Got {advance_count}.",
            ErrorField.CONFIG,
        )
    return None


def counted_matches(group: Group, matches: Sequence[Match]) -> Tuple[Match, ...]:
    return tuple(
        m
        for m in matches
        if isinstance(m, RoundRobinMatch)
        and m.status == MatchStatus.COMPLETE
        and m.has_both_players
        and m.player1_id in group
        and m.player2_id in group
    )


def compute_group_standings(
    group: Group,
    players: Sequence[Player],
    matches: Sequence[Match],
    match_format: MatchFormat,
    advance_count: int,
) -> Result[GroupStandings]:
    """
    Compute ranked standings for one group.

    Args:
        group: The group whose members are ranked (members with no matches
            yet show all zeros).
        players: Player records; used for names, seeds and clubs.
        matches: Matches of this group; others are ignored.
        match_format: Format used to work out which games decided a match.
        advance_count: How many players advance from the group.
    """
    error = _check_advance_count(group, advance_count)
    if error is not None:
        return Result.failure(error)

    by_id = {p.player_id: p for p in players}
    totals: Dict[str, Dict[str, int]] = {
        pid: dict(
            matches_played=0,
            wins=0,
            losses=0,
            games_won=0,
            games_lost=0,
            points_scored=0,
            points_conceded=0,
        )
        for pid in group.player_ids
    }

    counted = counted_matches(group, matches)
    for match in counted:
        p1 = totals[match.player1_id]
        p2 = totals[match.player2_id]
        p1["matches_played"] += 1
        p2["matches_played"] += 1

        if match.winner_id == match.player1_id:
            p1["wins"] += 1
            p2["losses"] += 1
        elif match.winner_id == match.player2_id:
            p2["wins"] += 1
            p1["losses"] += 1

        state = compute_match_state(match.games, match_format)
        p1["games_won"] += state.player1_games
        p1["games_lost"] += state.player2_games
        p2["games_won"] += state.player2_games
        p2["games_lost"] += state.player1_games

        for game in match.games:
            p1["points_scored"] += game.score1
            p1["points_conceded"] += game.score2
            p2["points_scored"] += game.score2
            p2["points_conceded"] += game.score1

    unranked = []
    for pid in group.player_ids:
        player = by_id.get(pid)
        unranked.append(
            PlayerStanding(
                player_id=pid,
                name=player.name if player else pid,
                group_number=group.group_number,
                seed=player.seed if player else None,
                club=player.club if player else None,
                **totals[pid],
            )
        )

    ranked = tuple(
        replace(
            standing,
            rank=position,
            advances=position <= advance_count,
            decided_by=reason,
        )
        for position, (standing, reason) in enumerate(
            rank_standings(unranked, counted), start=1
        )
    )
    return Result.success(GroupStandings(group, ranked, advance_count))


def group_matches(group: Group, matches: Sequence[Match]) -> Tuple[Match, ...]:
    """The round-robin matches of ``group``. Knockout matches never count."""
    return tuple(
        m
        for m in matches
        if isinstance(m, RoundRobinMatch) and m.group_number == group.group_number
    )


def compute_all_group_standings(
    groups: Sequence[Group],
    players: Sequence[Player],
    matches: Sequence[Match],
    config: RoundRobinStageConfig,
) -> Result[Tuple[GroupStandings, ...]]:
    """Standings for every group, in group-number order.

    When the stage allows best-placed qualifiers, the best players at rank
    ``advance_count + 1`` across groups are flagged as advancing too.
    """
    results = []
    errors = []
    for group in sorted(groups, key=lambda g: g.group_number):
        result = compute_group_standings(
            group,
            players,
            group_matches(group, matches),
            config.match_format,
            config.advance_count,
        )
        if result.ok:
            results.append(result.value)
        else:
            errors.extend(result.errors)
    if errors:
        return Result.failure(*errors)

    all_standings = tuple(results)
    if config.allow_best_third and config.best_third_count > 0:
        all_standings = mark_best_placed(
            all_standings, config.advance_count + 1, config.best_third_count
        )
    return Result.success(all_standings)


def best_placed_candidates(
    group_standings: Sequence[GroupStandings], rank: int
) -> Tuple[PlayerStanding, ...]:
    """Players at ``rank`` in every group, best first across groups."""
    candidates = [gs.at_rank(rank) for gs in group_standings]
    return tuple(sorted((c for c in candidates if c is not None), key=cross_group_key))


def mark_best_placed(
    group_standings: Sequence[GroupStandings], rank: int, count: int
) -> Tuple[GroupStandings, ...]:
    """
    Flag the best ``count`` players finishing at ``rank`` across all groups.

    Comparison across groups is wins, then game difference, then points
    difference, then player id. Flagged players get ``advances`` and
    ``best_placed`` set.
    """
    chosen = {
        s.player_id for s in best_placed_candidates(group_standings, rank)[:count]
    }
    logger.debug("Best placed at rank %s: %s", rank, sorted(chosen))
    return tuple(
        replace(
            gs,
            standings=tuple(
                replace(s, advances=True, best_placed=True)
                if s.player_id in chosen
                else s
                for s in gs.standings
            ),
        )
        for gs in group_standings
    )


def group_progress(matches: Sequence[Match]) -> GroupProgress:
    """How many real (non-bye) matches are complete, e.g. "3/6 matches complete"."""
    real = [m for m in matches if m.status != MatchStatus.BYE]
    completed = sum(1 for m in real if m.status == MatchStatus.COMPLETE)
    return GroupProgress(completed=completed, total=len(real))
