"""
Tiebreak rules for round-robin standings.

Players are ordered by match wins. Players level on wins are separated by:
1. Head-to-head, only when exactly two players are level. Three or more
   players can beat each other in a cycle, so a multi-way tie skips this step.
2. Game difference (games won minus games lost)
3. Points difference (points scored minus points conceded)
4. Player id, ascending. This is an arbitrary but stable coin flip for
   players who cannot be separated any other way.

The functions here work on any standing-like object exposing ``player_id``,
``wins``, ``game_difference`` and ``points_difference``.
"""

from enum import Enum
from typing import List, Optional, Sequence, Tuple

from sadhanam.tournament_core.structure import Match, MatchStatus


class TiebreakReason(Enum):
    """Which rule placed a player below the one directly above."""

    WINS = "wins"
    HEAD_TO_HEAD = "head_to_head"
    GAME_DIFFERENCE = "game_difference"
    POINTS_DIFFERENCE = "points_difference"
    PLAYER_ID = "player_id"


def head_to_head_winner(
    player_a_id: str, player_b_id: str, matches: Sequence[Match]
) -> Optional[str]:
    """
    Winner of the completed match between two players.

    Returns None when they have not completed a match against each other.
    """
    for match in matches:
        if match.status != MatchStatus.COMPLETE:
            continue
        if {match.player1_id, match.player2_id} == {player_a_id, player_b_id}:
            return match.winner_id
    return None


def difference_key(standing) -> Tuple:
    """Sort key for the game difference, points difference and id steps."""
    return (-standing.game_difference, -standing.points_difference, standing.player_id)


def cross_group_key(standing) -> Tuple:
    """Sort key for comparing players from different groups (no head-to-head)."""
    return (-standing.wins,) + difference_key(standing)


def _reason_by_difference(higher, lower) -> TiebreakReason:
    if higher.game_difference != lower.game_difference:
        return TiebreakReason.GAME_DIFFERENCE
    if higher.points_difference != lower.points_difference:
        return TiebreakReason.POINTS_DIFFERENCE
    return TiebreakReason.PLAYER_ID


def resolve_tied_group(
    tied: Sequence, matches: Sequence[Match]
) -> List[Tuple[object, Optional[TiebreakReason]]]:
    """
    Order players that are level on wins.

    Returns ``(standing, reason)`` pairs; the reason explains the placement
    relative to the previous entry and is None for the first one.
    """
    if len(tied) == 2:
        a, b = tied
        winner = head_to_head_winner(a.player_id, b.player_id, matches)
        if winner == a.player_id:
            return [(a, None), (b, TiebreakReason.HEAD_TO_HEAD)]
        if winner == b.player_id:
            return [(b, None), (a, TiebreakReason.HEAD_TO_HEAD)]

    ordered = sorted(tied, key=difference_key)
    result = [(ordered[0], None)]
    for higher, lower in zip(ordered, ordered[1:]):
        result.append((lower, _reason_by_difference(higher, lower)))
    return result


def rank_standings(
    standings: Sequence, matches: Sequence[Match]
) -> List[Tuple[object, Optional[TiebreakReason]]]:
    """
    Order a group's standings by the full tiebreak chain.

    Returns ``(standing, reason)`` pairs in final order, where the reason for
    the leader is None.
    """
    by_wins = sorted(standings, key=lambda s: -s.wins)
    result = []
    i = 0
    while i < len(by_wins):
        j = i + 1
        while j < len(by_wins) and by_wins[j].wins == by_wins[i].wins:
            j += 1
        block = resolve_tied_group(by_wins[i:j], matches)
        if result:
            block[0] = (block[0][0], TiebreakReason.WINS)
        result.extend(block)
        i = j
    return result


def get_tiebreaker_reason(
    higher, lower, matches: Sequence[Match], tied_count: int = 2
) -> TiebreakReason:
    """
    Explain why ``higher`` is ranked above ``lower``.

    ``tied_count`` is the number of players level on wins with them; head to
    head is only reported for an exact two-way tie.
    """
    if higher.wins != lower.wins:
        return TiebreakReason.WINS
    if tied_count == 2:
        winner = head_to_head_winner(higher.player_id, lower.player_id, matches)
        if winner == higher.player_id:
            return TiebreakReason.HEAD_TO_HEAD
    return _reason_by_difference(higher, lower)
