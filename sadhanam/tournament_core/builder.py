"""
Builder for creating tournament snapshots with a fluent API.

This module provides a builder for round-robin and knockout snapshots written
in terms of player names and score strings, so tests and demo data can read
like a results sheet:

    builder = TournamentBuilder()
    builder.group("A", "Alice", "Bob", "Chen")
    builder.round(1).match("Alice", "Bob", "11-7", "11-9")
    snapshot = builder.build()

No database is involved; the output is the same immutable structures the
engine consumes.
"""

from dataclasses import dataclass, field, replace
from typing import Dict, List, Optional, Sequence, Tuple

from sadhanam.tournament_core.knockout import BracketResult, apply_match_result
from sadhanam.tournament_core.round_robin import group_name
from sadhanam.tournament_core.scoring import apply_match_state
from sadhanam.tournament_core.structure import (
    Game,
    Group,
    KnockoutMatch,
    MatchFormat,
    MatchStatus,
    Player,
    RoundRobinMatch,
    RoundRobinStageConfig,
)


def parse_score(score: str) -> Tuple[int, int]:
    """Parse a game score such as ``"11-9"`` or ``"12-10"``."""
    left, sep, right = score.partition("-")
    if not sep:
        raise ValueError(f"Invalid game score: {score!r}")
    return int(left.strip()), int(right.strip())


@dataclass(frozen=True)
class TournamentSnapshot:
    """Everything a standings or stage computation needs, keyed by name too."""

    players: Tuple[Player, ...]
    groups: Tuple[Group, ...]
    matches: Tuple[RoundRobinMatch, ...]
    match_format: MatchFormat
    name_to_id: Dict[str, str] = field(default_factory=dict)

    def config(self, advance_count: int, **kwargs) -> RoundRobinStageConfig:
        return RoundRobinStageConfig(
            number_of_groups=len(self.groups),
            advance_count=advance_count,
            match_format=self.match_format,
            **kwargs,
        )


class TournamentBuilder:
    """Builder for round-robin snapshots."""

    def __init__(self, match_format: MatchFormat = MatchFormat.BO3):
        self.match_format = match_format
        self.players: Dict[str, Player] = {}
        self.groups: List[Group] = []
        self.matches: List[RoundRobinMatch] = []
        self.current_round = 1
        self._next_match_number = 1

    def player(
        self,
        name: str,
        seed: Optional[int] = None,
        club: Optional[str] = None,
        preferred_group: Optional[int] = None,
    ) -> "TournamentBuilder":
        """Add a player. The player id is derived from the name."""
        player_id = self._player_id(name)
        self.players[name] = Player(
            player_id=player_id,
            name=name,
            seed=seed,
            club=club,
            preferred_group=preferred_group,
        )
        return self

    def group(self, label: str, *names: str) -> "TournamentBuilder":
        """Add a group; players not yet added are created unseeded."""
        for name in names:
            if name not in self.players:
                self.player(name)
        number = len(self.groups) + 1
        self.groups.append(
            Group(
                group_number=number,
                name=f"Group {label}" if label else group_name(number),
                player_ids=tuple(self.players[n].player_id for n in names),
            )
        )
        return self

    def round(self, number: int) -> "TournamentBuilder":
        self.current_round = number
        return self

    def match(self, player1: str, player2: str, *scores: str) -> "TournamentBuilder":
        """Add a group match with its game scores (``"11-9"``), in game order.

        The match status follows from the games: complete once someone has
        won, live with some games, pending with none.
        """
        games = tuple(
            Game(number, *parse_score(score))
            for number, score in enumerate(scores, start=1)
        )
        match = RoundRobinMatch(
            round=self.current_round,
            match_number=self._take_match_number(),
            player1_id=self._get_player_id(player1),
            player2_id=self._get_player_id(player2),
            games=games,
            group_number=self._group_of(player1, player2),
        )
        self.matches.append(apply_match_state(match, self.match_format))
        return self

    def win(self, winner: str, loser: str) -> "TournamentBuilder":
        """Add a straight-games win with 11-5 in every game."""
        needed = {MatchFormat.BO3: 2, MatchFormat.BO5: 3, MatchFormat.BO7: 4}
        return self.match(winner, loser, *["11-5"] * needed[self.match_format])

    def bye(self, name: str) -> "TournamentBuilder":
        """Add a bye fixture for a player in an odd group."""
        player_id = self._get_player_id(name)
        self.matches.append(
            RoundRobinMatch(
                round=self.current_round,
                match_number=self._take_match_number(),
                player1_id=player_id,
                status=MatchStatus.BYE,
                winner_id=player_id,
                group_number=self._group_of(name),
            )
        )
        return self

    def build(self) -> TournamentSnapshot:
        return TournamentSnapshot(
            players=tuple(self.players.values()),
            groups=tuple(self.groups),
            matches=tuple(self.matches),
            match_format=self.match_format,
            name_to_id={name: p.player_id for name, p in self.players.items()},
        )

    def _take_match_number(self) -> int:
        number = self._next_match_number
        self._next_match_number += 1
        return number

    def _player_id(self, name: str) -> str:
        return name.strip().lower().replace(" ", "-")

    def _get_player_id(self, name: str) -> str:
        if name not in self.players:
            raise ValueError(f"Player '{name}' not found")
        return self.players[name].player_id

    def _group_of(self, *names: str) -> int:
        ids = {self._get_player_id(n) for n in names}
        for group in self.groups:
            if all(pid in group for pid in ids):
                return group.group_number
        raise ValueError(f"Players {', '.join(names)} do not share a group")


class BracketBuilder:
    """Plays results into a generated bracket by player name.

    Each result is carried through the bracket the way a score entry would
    be, so winners advance and the final can be read off at the end.
    """

    def __init__(self, bracket: BracketResult, players: Sequence[Player]):
        self.matches: Tuple[KnockoutMatch, ...] = bracket.matches
        self.match_format = MatchFormat.BO3
        self.name_to_id = {p.name: p.player_id for p in players}

    def winner(self, name: str) -> "BracketBuilder":
        """Give ``name`` a straight-games win in their next open match."""
        player_id = self.name_to_id[name]
        for match in self.matches:
            if (
                match.status == MatchStatus.PENDING
                and match.has_both_players
                and match.involves(player_id)
            ):
                break
        else:
            raise ValueError(f"{name} has no open match")

        slot = 1 if match.player1_id == player_id else 2
        win, loss = (11, 5) if slot == 1 else (5, 11)
        games = (Game(1, win, loss), Game(2, win, loss))
        decided = apply_match_state(replace(match, games=games), self.match_format)
        result = apply_match_result(self.matches, decided)
        if not result.ok:
            raise ValueError(result.first_error.message)
        self.matches = result.value
        return self

    def build(self) -> Tuple[KnockoutMatch, ...]:
        return self.matches
