"""
Round-robin group assignment and fixture scheduling.

Group assignment places players in three passes:
- players with a valid group preference go to that group, in input order
- remaining seeded players are snaked across groups (1..G, then G..1, ...)
- unseeded players are shuffled and each joins the currently smallest group

Fixtures use the circle method. Seat 0 stays fixed and the tail rotates one
step each round (the last seat moves to position 1); seat i plays seat
n-1-i. A group with an odd number of players gets a virtual bye seat, so
every player sits out exactly one round.

    Initial: [A, B, C, D]
    Round 1: A-D, B-C
    Round 2: A-C, D-B    seats: [A, D, B, C]
    Round 3: A-B, C-D    seats: [A, C, D, B]
"""

import logging
from dataclasses import dataclass
from itertools import combinations
from typing import Dict, List, Optional, Sequence, Tuple

from sadhanam.tournament_core import conf
from sadhanam.tournament_core.results import (
    CoreError,
    ErrorCode,
    ErrorField,
    Result,
    ValidationResult,
)
from sadhanam.tournament_core.shuffling import make_rng, shuffled
from sadhanam.tournament_core.structure import (
    Group,
    MatchStatus,
    Player,
    RoundRobinMatch,
    is_whole_number,
)

logger = logging.getLogger(__name__)

_BYE = object()


@dataclass(frozen=True)
class Fixture:
    """One pairing of a group schedule. A bye has ``player2_id`` set to None."""

    round: int
    player1_id: str
    player2_id: Optional[str]
    is_bye: bool


@dataclass(frozen=True)
class ScheduledFixture:
    round: int
    match_number: int
    group_number: int
    player1_id: str
    player2_id: Optional[str]
    is_bye: bool


def group_name(group_number: int) -> str:
    """Group 1 -> "Group A" ... Group 26 -> "Group Z", then "Group 27"."""
    if 1 <= group_number <= 26:
        return f"Group {chr(ord('A') + group_number - 1)}"
    return f"Group {group_number}"


def _duplicate_errors(player_ids: Sequence[str]) -> List[CoreError]:
    seen = set()
    errors = []
    for player_id in player_ids:
        if player_id in seen:
            errors.append(
                CoreError(
                    ErrorCode.DUPLICATE_PLAYER,
                    f"Player {player_id} is entered more than once.",
                    ErrorField.PLAYERS,
                )
            )
        seen.add(player_id)
    return errors


def assign_groups(
    players: Sequence[Player],
    number_of_groups: int,
    rng_seed: Optional[int] = None,
) -> Result[Tuple[Group, ...]]:
    """Split players into ``number_of_groups`` balanced groups."""
    limit = conf.max_groups()
    if (
        not is_whole_number(number_of_groups)
        or not 1 <= number_of_groups <= limit
    ):
        return Result.error(
            ErrorCode.INVALID_GROUP_COUNT,
            f"Number of groups must be between 1 and {limit}. Got {number_of_groups}.",
            ErrorField.GROUPS,
        )
    errors = _duplicate_errors([p.player_id for p in players])
    if errors:
        return Result.failure(*errors)

    members: Dict[int, List[str]] = {g: [] for g in range(1, number_of_groups + 1)}
    placed = set()

    for player in players:
        pref = player.preferred_group
        if is_whole_number(pref) and pref in members:
            members[pref].append(player.player_id)
            placed.add(player.player_id)

    seeded = sorted(
        (p for p in players if p.player_id not in placed and p.has_valid_seed),
        key=lambda p: (p.seed, p.player_id),
    )
    for index, player in enumerate(seeded):
        snake_pass, position = divmod(index, number_of_groups)
        if snake_pass % 2 == 0:
            group_number = position + 1
        else:
            group_number = number_of_groups - position
        members[group_number].append(player.player_id)
        placed.add(player.player_id)

    unseeded = shuffled(
        [p for p in players if p.player_id not in placed], make_rng(rng_seed)
    )
    for player in unseeded:
        smallest = min(members, key=lambda g: (len(members[g]), g))
        members[smallest].append(player.player_id)

    groups = tuple(
        Group(number, group_name(number), tuple(ids)) for number, ids in members.items()
    )
    too_small = [
        CoreError(
            ErrorCode.GROUP_TOO_SMALL,
            f"{group.name} has {group.size} player(s); every group needs at least 2.",
            ErrorField.GROUPS,
        )
        for group in groups
        if group.size < 2
    ]
    if too_small:
        return Result.failure(*too_small)

    logger.debug(
        "Assigned %s players to %s groups: %s",
        len(players),
        number_of_groups,
        [g.size for g in groups],
    )
    return Result.success(groups)


def _rotate_tail(seats: List) -> List:
    if len(seats) <= 2:
        return seats
    return [seats[0], seats[-1]] + seats[1:-1]


def generate_group_schedule(player_ids: Sequence[str]) -> Result[Tuple[Fixture, ...]]:
    """All-play-all fixtures for one group, numbered by round from 1.

    Even groups of n players take n-1 rounds; odd groups take n rounds with
    one bye per round. Every pair meets exactly once.
    """
    n = len(player_ids)
    if n < 2:
        return Result.error(
            ErrorCode.GROUP_TOO_SMALL,
            f"Round robin requires at least 2 players per group. Got {n}.",
            ErrorField.PLAYERS,
        )
    limit = conf.max_group_size()
    if n > limit:
        return Result.error(
            ErrorCode.GROUP_TOO_LARGE,
            f"Round robin group size is capped at {limit}. Got {n}. "
            f"Split into more groups.",
            ErrorField.PLAYERS,
        )
    errors = _duplicate_errors(player_ids)
    if errors:
        return Result.failure(*errors)

    seats = list(player_ids)
    if len(seats) % 2:
        seats.append(_BYE)

    fixtures = []
    size = len(seats)
    for round_number in range(1, size):
        for i in range(size // 2):
            home, away = seats[i], seats[size - 1 - i]
            if home is _BYE:
                home, away = away, home
            fixtures.append(
                Fixture(
                    round=round_number,
                    player1_id=home,
                    player2_id=None if away is _BYE else away,
                    is_bye=away is _BYE,
                )
            )
        seats = _rotate_tail(seats)
    return Result.success(tuple(fixtures))


def generate_multi_group_schedule(
    groups: Sequence[Group], match_number_offset: int = 0
) -> Result[Tuple[ScheduledFixture, ...]]:
    """Schedule every group on shared matchdays.

    Match numbers come from one counter that starts after
    ``match_number_offset`` and runs round by round, with groups in
    group-number order inside each round.
    """
    per_group = []
    errors = []
    for group in sorted(groups, key=lambda g: g.group_number):
        result = generate_group_schedule(group.player_ids)
        if result.ok:
            per_group.append((group.group_number, result.value))
        else:
            errors.extend(result.errors)
    if errors:
        return Result.failure(*errors)

    rounds = sorted({f.round for _, fixtures in per_group for f in fixtures})
    scheduled = []
    match_number = match_number_offset
    for round_number in rounds:
        for group_number, fixtures in per_group:
            for fixture in fixtures:
                if fixture.round != round_number:
                    continue
                match_number += 1
                scheduled.append(
                    ScheduledFixture(
                        round=fixture.round,
                        match_number=match_number,
                        group_number=group_number,
                        player1_id=fixture.player1_id,
                        player2_id=fixture.player2_id,
                        is_bye=fixture.is_bye,
                    )
                )
    logger.debug(
        "Scheduled %s fixtures over %s matchdays for %s groups",
        len(scheduled),
        len(rounds),
        len(per_group),
    )
    return Result.success(tuple(scheduled))


def build_round_robin_matches(
    groups: Sequence[Group], match_number_offset: int = 0
) -> Result[Tuple[RoundRobinMatch, ...]]:
    """Turn the multi-group schedule into matches; byes are decided at once."""
    schedule = generate_multi_group_schedule(groups, match_number_offset)
    if not schedule.ok:
        return Result.failure(*schedule.errors)
    matches = []
    for fixture in schedule.value:
        if fixture.is_bye:
            status, winner_id = MatchStatus.BYE, fixture.player1_id
        else:
            status, winner_id = MatchStatus.PENDING, None
        matches.append(
            RoundRobinMatch(
                round=fixture.round,
                match_number=fixture.match_number,
                player1_id=fixture.player1_id,
                player2_id=fixture.player2_id,
                status=status,
                winner_id=winner_id,
                group_number=fixture.group_number,
            )
        )
    return Result.success(tuple(matches))


def verify_schedule(
    player_ids: Sequence[str], fixtures: Sequence[Fixture]
) -> ValidationResult:
    """Check a schedule pairs every player with every other exactly once."""
    real = [f for f in fixtures if not f.is_bye]
    n = len(player_ids)
    expected = n * (n - 1) // 2
    if len(real) != expected:
        return Result.error(
            ErrorCode.WRONG_FIXTURE_COUNT,
            f"Expected {expected} fixtures for {n} players, got {len(real)}.",
            ErrorField.PLAYERS,
        )

    seen = set()
    booked = set()
    for fixture in real:
        pair = frozenset((fixture.player1_id, fixture.player2_id))
        if pair in seen:
            return Result.error(
                ErrorCode.DUPLICATE_FIXTURE,
                f"Duplicate fixture: {fixture.player1_id} vs {fixture.player2_id}.",
                ErrorField.PLAYERS,
            )
        seen.add(pair)
        for player_id in (fixture.player1_id, fixture.player2_id):
            if (fixture.round, player_id) in booked:
                return Result.error(
                    ErrorCode.PLAYER_DOUBLE_BOOKED,
                    f"{player_id} plays twice in round {fixture.round}.",
                    ErrorField.PLAYERS,
                )
            booked.add((fixture.round, player_id))

    for a, b in combinations(player_ids, 2):
        if frozenset((a, b)) not in seen:
            return Result.error(
                ErrorCode.MISSING_FIXTURE,
                f"Missing fixture: {a} vs {b}.",
                ErrorField.PLAYERS,
            )
    return Result.success()
