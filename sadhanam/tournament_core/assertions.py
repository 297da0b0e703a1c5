"""
Fluent assertion interface for testing standings and brackets.

This module provides a readable way to assert group standings and knockout
outcomes in tests:

    assert_standings(standings, snapshot.name_to_id).player("Alice").assert_()
        .wins(2).rank(1).advances()

Failures raise the built-in AssertionError so any test runner reports them.
"""

from dataclasses import dataclass
from typing import Dict, Optional, Sequence

from sadhanam.tournament_core.knockout import get_knockout_winner
from sadhanam.tournament_core.standings import GroupStandings, PlayerStanding
from sadhanam.tournament_core.structure import KnockoutMatch, MatchStatus
from sadhanam.tournament_core.tiebreaks import TiebreakReason


@dataclass
class StandingsAssertion:
    """Fluent interface for asserting group standings."""

    group_standings: Sequence[GroupStandings]
    name_to_id: Optional[Dict[str, str]] = None

    def _get_player_id(self, name: str) -> str:
        if self.name_to_id is None:
            return name
        if name not in self.name_to_id:
            raise AssertionError(f"Player '{name}' not found in tournament")
        return self.name_to_id[name]

    def player(self, name: str) -> "PlayerAssertion":
        player_id = self._get_player_id(name)
        for gs in self.group_standings:
            standing = gs.for_player(player_id)
            if standing is not None:
                return PlayerAssertion(name, standing)
        raise AssertionError(f"Player '{name}' has no standing in any group")

    def group_order(self, group_number: int, *names: str) -> "StandingsAssertion":
        """Assert the full finishing order of one group."""
        for gs in self.group_standings:
            if gs.group.group_number == group_number:
                expected = [self._get_player_id(n) for n in names]
                actual = [s.player_id for s in gs.standings]
                if actual != expected:
                    raise AssertionError(
                        f"{gs.group.name} expected order {expected}, got {actual}"
                    )
                return self
        raise AssertionError(f"Group {group_number} not found")


@dataclass
class PlayerAssertion:
    name: str
    standing: PlayerStanding

    def assert_(self) -> "PlayerResultAssertion":
        """Start a chain of assertions for this player."""
        return PlayerResultAssertion(self.name, self.standing)


class PlayerResultAssertion(PlayerAssertion):
    """Fluent interface for asserting one player's standing."""

    def _check(self, label: str, expected, actual) -> "PlayerResultAssertion":
        if actual != expected:
            raise AssertionError(f"{self.name} expected {expected} {label}, got {actual}")
        return self

    def played(self, expected: int) -> "PlayerResultAssertion":
        return self._check("matches played", expected, self.standing.matches_played)

    def wins(self, expected: int) -> "PlayerResultAssertion":
        return self._check("wins", expected, self.standing.wins)

    def losses(self, expected: int) -> "PlayerResultAssertion":
        return self._check("losses", expected, self.standing.losses)

    def games(self, won: int, lost: int) -> "PlayerResultAssertion":
        return self._check(
            "games won-lost",
            (won, lost),
            (self.standing.games_won, self.standing.games_lost),
        )

    def game_difference(self, expected: int) -> "PlayerResultAssertion":
        return self._check("game difference", expected, self.standing.game_difference)

    def points_difference(self, expected: int) -> "PlayerResultAssertion":
        return self._check(
            "points difference", expected, self.standing.points_difference
        )

    def rank(self, expected: int) -> "PlayerResultAssertion":
        return self._check("rank", expected, self.standing.rank)

    def decided_by(self, expected: Optional[TiebreakReason]) -> "PlayerResultAssertion":
        return self._check("tiebreak reason", expected, self.standing.decided_by)

    def advances(self, expected: bool = True) -> "PlayerResultAssertion":
        return self._check("advances", expected, self.standing.advances)

    def best_placed(self, expected: bool = True) -> "PlayerResultAssertion":
        return self._check("best placed", expected, self.standing.best_placed)


@dataclass
class BracketAssertion:
    """Fluent interface for asserting knockout bracket outcomes."""

    matches: Sequence[KnockoutMatch]
    name_to_id: Optional[Dict[str, str]] = None

    def _get_player_id(self, name: str) -> str:
        if self.name_to_id is None:
            return name
        return self.name_to_id[name]

    def has_bye(self, name: str, round_number: int = 1) -> "BracketAssertion":
        player_id = self._get_player_id(name)
        for match in self.matches:
            if (
                match.round == round_number
                and match.status == MatchStatus.BYE
                and match.winner_id == player_id
            ):
                return self
        raise AssertionError(f"{name} has no bye in round {round_number}")

    def reaches(self, name: str, round_name: str) -> "BracketAssertion":
        player_id = self._get_player_id(name)
        for match in self.matches:
            if match.round_name == round_name and match.involves(player_id):
                return self
        raise AssertionError(f"{name} does not reach the {round_name}")

    def winner(self, name: Optional[str]) -> "BracketAssertion":
        expected = self._get_player_id(name) if name is not None else None
        actual = get_knockout_winner(self.matches)
        if actual != expected:
            raise AssertionError(f"Expected winner {expected}, got {actual}")
        return self


def assert_standings(
    group_standings: Sequence[GroupStandings],
    name_to_id: Optional[Dict[str, str]] = None,
) -> StandingsAssertion:
    """Entry point for standings assertions."""
    return StandingsAssertion(group_standings, name_to_id)


def assert_bracket(
    matches: Sequence[KnockoutMatch], name_to_id: Optional[Dict[str, str]] = None
) -> BracketAssertion:
    """Entry point for bracket assertions."""
    return BracketAssertion(matches, name_to_id)
