"""
Convert JSON-style snapshot rows to and from tournament_core structures.

A caller that stores tournaments elsewhere hands the engine plain dict rows
(as parsed from JSON) and gets plain dict rows back. This module is the only
place that knows the row shapes:

- players: ``{"id", "name", "seed", "club", "preferred_group"}``
- groups: ``{"group_number", "name", "player_ids"}``
- matches: ``{"kind", "round", "match_number", "player1_id", "player2_id",
  "status", "winner_id", "games", ...}`` plus ``group_number`` for group
  matches and ``next_match_number``/``next_slot``/``round_name`` for
  knockout matches
- stage config: ``{"number_of_groups", "advance_count", "match_format", ...}``
"""

from dataclasses import dataclass
from typing import Dict, List, Sequence, Tuple

from sadhanam.tournament_core.knockout import BracketResult
from sadhanam.tournament_core.qualifiers import Qualifier
from sadhanam.tournament_core.standings import GroupStandings
from sadhanam.tournament_core.structure import (
    FinalizationRule,
    Game,
    Group,
    KnockoutMatch,
    Match,
    MatchFormat,
    MatchKind,
    MatchStatus,
    Player,
    RoundRobinMatch,
    RoundRobinStageConfig,
    default_match_format,
)


class SnapshotError(ValueError):
    """A snapshot row is missing a field or holds an unusable value."""


@dataclass(frozen=True)
class Snapshot:
    players: Tuple[Player, ...]
    groups: Tuple[Group, ...]
    matches: Tuple[Match, ...]
    config: RoundRobinStageConfig


def _require(row: Dict, key: str, what: str):
    if key not in row:
        raise SnapshotError(f"{what} row is missing '{key}': {row!r}")
    return row[key]


def _enum(enum_cls, value, what: str):
    try:
        return enum_cls(value)
    except ValueError:
        raise SnapshotError(f"Unknown {what}: {value!r}")


def players_from_rows(rows: Sequence[Dict]) -> Tuple[Player, ...]:
    return tuple(
        Player(
            player_id=str(_require(row, "id", "Player")),
            name=row.get("name") or str(row["id"]),
            seed=row.get("seed"),
            club=row.get("club"),
            preferred_group=row.get("preferred_group"),
        )
        for row in rows
    )


def groups_from_rows(rows: Sequence[Dict]) -> Tuple[Group, ...]:
    groups = []
    for row in rows:
        number = _require(row, "group_number", "Group")
        groups.append(
            Group(
                group_number=number,
                name=row.get("name") or f"Group {number}",
                player_ids=tuple(str(pid) for pid in row.get("player_ids", ())),
            )
        )
    return tuple(sorted(groups, key=lambda g: g.group_number))


def games_from_rows(rows: Sequence[Dict]) -> Tuple[Game, ...]:
    return tuple(
        sorted(
            (
                Game(
                    game_number=_require(row, "game_number", "Game"),
                    score1=_require(row, "score1", "Game"),
                    score2=_require(row, "score2", "Game"),
                )
                for row in rows
            ),
            key=lambda g: g.game_number,
        )
    )


def match_from_row(row: Dict) -> Match:
    kind = _enum(MatchKind, row.get("kind", MatchKind.ROUND_ROBIN.value), "match kind")
    common = dict(
        round=_require(row, "round", "Match"),
        match_number=_require(row, "match_number", "Match"),
        player1_id=row.get("player1_id"),
        player2_id=row.get("player2_id"),
        status=_enum(MatchStatus, row.get("status", "pending"), "match status"),
        winner_id=row.get("winner_id"),
        games=games_from_rows(row.get("games", ())),
        match_id=row.get("match_id"),
    )
    if kind == MatchKind.KNOCKOUT:
        return KnockoutMatch(
            next_match_number=row.get("next_match_number"),
            next_slot=row.get("next_slot"),
            round_name=row.get("round_name", ""),
            **common,
        )
    return RoundRobinMatch(
        group_number=_require(row, "group_number", "Match"), **common
    )


def matches_from_rows(rows: Sequence[Dict]) -> Tuple[Match, ...]:
    return tuple(match_from_row(row) for row in rows)


def config_from_row(row: Dict, number_of_groups: int = 1) -> RoundRobinStageConfig:
    match_format = row.get("match_format", default_match_format().value)
    return RoundRobinStageConfig(
        number_of_groups=row.get("number_of_groups", number_of_groups),
        advance_count=row.get("advance_count", 2),
        match_format=_enum(MatchFormat, match_format, "match format"),
        allow_best_third=bool(row.get("allow_best_third", False)),
        best_third_count=row.get("best_third_count", 0),
        finalization_rule=_enum(
            FinalizationRule,
            row.get("finalization_rule", FinalizationRule.REQUIRE_ALL.value),
            "finalization rule",
        ),
    )


def snapshot_from_data(data: Dict) -> Snapshot:
    """Read a whole tournament snapshot (players, groups, matches, config)."""
    if not isinstance(data, dict):
        raise SnapshotError("A snapshot must be a JSON object")
    groups = groups_from_rows(data.get("groups", ()))
    return Snapshot(
        players=players_from_rows(data.get("players", ())),
        groups=groups,
        matches=matches_from_rows(data.get("matches", ())),
        config=config_from_row(data.get("config", {}), len(groups) or 1),
    )


def player_to_row(player: Player) -> Dict:
    return {
        "id": player.player_id,
        "name": player.name,
        "seed": player.seed,
        "club": player.club,
        "preferred_group": player.preferred_group,
    }


def group_to_row(group: Group) -> Dict:
    return {
        "group_number": group.group_number,
        "name": group.name,
        "player_ids": list(group.player_ids),
    }


def match_to_row(match: Match) -> Dict:
    row = {
        "kind": match.kind.value,
        "round": match.round,
        "match_number": match.match_number,
        "player1_id": match.player1_id,
        "player2_id": match.player2_id,
        "status": match.status.value,
        "winner_id": match.winner_id,
        "games": [
            {"game_number": g.game_number, "score1": g.score1, "score2": g.score2}
            for g in match.games
        ],
    }
    if match.match_id is not None:
        row["match_id"] = match.match_id
    if isinstance(match, KnockoutMatch):
        row["next_match_number"] = match.next_match_number
        row["next_slot"] = match.next_slot
        row["round_name"] = match.round_name
    elif isinstance(match, RoundRobinMatch):
        row["group_number"] = match.group_number
    return row


def bracket_to_rows(bracket: BracketResult) -> Dict:
    return {
        "bracket_size": bracket.bracket_size,
        "bye_count": bracket.bye_count,
        "total_rounds": bracket.total_rounds,
        "slots": [
            {
                "slot_number": slot.slot_number,
                "player_id": slot.player.player_id if slot.player else None,
                "is_bye": slot.is_bye,
            }
            for slot in bracket.slots
        ],
        "matches": [match_to_row(m) for m in bracket.matches],
    }


def round_robin_matches_to_rows(matches: Sequence[Match]) -> List[Dict]:
    return [match_to_row(m) for m in matches]


def standings_to_rows(group_standings: Sequence[GroupStandings]) -> List[Dict]:
    rows = []
    for gs in group_standings:
        rows.append(
            {
                "group": group_to_row(gs.group),
                "advance_count": gs.advance_count,
                "standings": [
                    {
                        "rank": s.rank,
                        "player_id": s.player_id,
                        "name": s.name,
                        "played": s.matches_played,
                        "wins": s.wins,
                        "losses": s.losses,
                        "games_won": s.games_won,
                        "games_lost": s.games_lost,
                        "game_difference": s.game_difference,
                        "points_scored": s.points_scored,
                        "points_conceded": s.points_conceded,
                        "points_difference": s.points_difference,
                        "advances": s.advances,
                        "best_placed": s.best_placed,
                        "decided_by": s.decided_by.value if s.decided_by else None,
                    }
                    for s in gs.standings
                ],
            }
        )
    return rows


def qualifiers_to_rows(qualifiers: Sequence[Qualifier]) -> List[Dict]:
    return [
        {
            "ko_seed": q.ko_seed,
            "player_id": q.player_id,
            "name": q.name,
            "group_name": q.group_name,
            "rr_rank": q.rr_rank,
            "is_best_placed": q.is_best_placed,
        }
        for q in qualifiers
    ]
