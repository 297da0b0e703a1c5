"""
Knockout bracket generation and progression.

This module provides functionality for:
- Sizing a bracket (next power of two) and naming its rounds
- Standard elimination seeding, with byes awarded to the best seeds
- Materialising every round, with later rounds as empty shell matches
- Resolving byes and advancing winners through the bracket
- Retracting a superseded winner after a score correction

Wiring is pure index arithmetic: match ``i`` (0-based) of round ``r`` feeds
slot ``(i % 2) + 1`` of match ``i // 2`` in round ``r + 1``.
"""

import logging
from collections import defaultdict
from dataclasses import dataclass, replace
from typing import Dict, List, Optional, Sequence, Tuple

from sadhanam.tournament_core import conf
from sadhanam.tournament_core.results import (
    CoreError,
    ErrorCode,
    ErrorField,
    Result,
)
from sadhanam.tournament_core.shuffling import make_rng, shuffled
from sadhanam.tournament_core.structure import KnockoutMatch, MatchStatus, Player

logger = logging.getLogger(__name__)


def validate_bracket_size(size: int) -> bool:
    """Check if a bracket size is a power of 2 (and at least 2)."""
    return size > 1 and (size & (size - 1)) == 0


def next_power_of_two(n: int) -> int:
    """Smallest power of two >= n, never below 2."""
    size = 2
    while size < n:
        size *= 2
    return size


def calculate_rounds_needed(player_count: int) -> int:
    """Number of rounds needed to reduce ``player_count`` entrants to one winner."""
    return next_power_of_two(player_count).bit_length() - 1


def get_round_name(round_number: int, total_rounds: int) -> str:
    """Name a round by its distance from the final."""
    from_final = total_rounds - round_number
    if from_final == 0:
        return "Final"
    if from_final == 1:
        return "Semifinal"
    if from_final == 2:
        return "Quarterfinal"
    return f"Round of {2 ** (from_final + 1)}"


def build_seed_order(size: int) -> List[int]:
    """Return the seed rank that belongs in each bracket slot.

    Adjacent slots (0, 1), (2, 3), ... are first-round opponents.

    Base case: a 2-slot bracket is ``[1, 2]``. Recursive step: take the order
    for half the size and replace each seed ``x`` with the pair
    ``x, size + 1 - x``. Every pair sums to ``size + 1``, so each seed meets
    its complement first, and the top two seeds of any sub-bracket end up in
    opposite halves of it: 1 and 2 can only meet in the final, 1 and 3 no
    earlier than the semifinal, and so on.

        2 -> [1, 2]
        4 -> [1, 4, 2, 3]
        8 -> [1, 8, 4, 5, 2, 7, 3, 6]
    """
    if size <= 1:
        return [1]
    if size == 2:
        return [1, 2]
    order = []
    for seed in build_seed_order(size // 2):
        order.append(seed)
        order.append(size + 1 - seed)
    return order


@dataclass(frozen=True)
class SlotAssignment:
    slot_number: int  # 1-based
    player: Optional[Player]
    is_bye: bool


@dataclass(frozen=True)
class MatchWiring:
    """A first-round match and where its winner goes.

    ``match_number`` is 1-based within the bracket; ``next_match_index`` is
    0-based within round 2 and is None when round 1 is the final.
    """

    match_number: int
    slot1: SlotAssignment
    slot2: SlotAssignment
    is_bye: bool
    next_match_index: Optional[int]
    next_slot: Optional[int]
    round_name: str


@dataclass(frozen=True)
class BracketResult:
    bracket_size: int
    bye_count: int
    total_rounds: int
    slots: Tuple[SlotAssignment, ...]
    first_round_matches: Tuple[MatchWiring, ...]
    matches: Tuple[KnockoutMatch, ...]

    def round_matches(self, round_number: int) -> Tuple[KnockoutMatch, ...]:
        return tuple(m for m in self.matches if m.round == round_number)


@dataclass(frozen=True)
class BracketRound:
    round_number: int
    round_name: str
    matches: Tuple[KnockoutMatch, ...]


def _check_entrants(players: Sequence[Player]) -> List[CoreError]:
    errors = []
    seen_ids = set()
    for player in players:
        if player.player_id in seen_ids:
            errors.append(
                CoreError(
                    ErrorCode.DUPLICATE_PLAYER,
                    f"Player {player.player_id} is entered more than once.",
                    ErrorField.PLAYERS,
                )
            )
        seen_ids.add(player.player_id)

    seen_seeds: Dict[int, str] = {}
    for player in players:
        if not player.has_valid_seed:
            continue
        if player.seed in seen_seeds:
            errors.append(
                CoreError(
                    ErrorCode.DUPLICATE_SEED,
                    f"Seed {player.seed} is given to both "
                    f"{seen_seeds[player.seed]} and {player.name}.",
                    ErrorField.PLAYERS,
                )
            )
        else:
            seen_seeds[player.seed] = player.name
    return errors


def rank_players(players: Sequence[Player], rng_seed: Optional[int] = None) -> List[Player]:
    """Order entrants by effective rank (index 0 is rank 1).

    A player with a valid seed takes rank = seed. Seeded players whose seed is
    larger than the field fill the best free ranks next, in seed order, and
    unseeded players fill what is left in shuffled order.
    """
    n = len(players)
    seeded = sorted(
        (p for p in players if p.has_valid_seed), key=lambda p: (p.seed, p.player_id)
    )
    unseeded = shuffled(
        [p for p in players if not p.has_valid_seed], make_rng(rng_seed)
    )

    ranks: List[Optional[Player]] = [None] * n
    displaced = []
    for player in seeded:
        if player.seed <= n and ranks[player.seed - 1] is None:
            ranks[player.seed - 1] = player
        else:
            displaced.append(player)

    remaining = iter(displaced + unseeded)
    return [player if player is not None else next(remaining) for player in ranks]


def generate_bracket(
    players: Sequence[Player],
    rng_seed: Optional[int] = None,
    match_number_offset: int = 0,
) -> Result[BracketResult]:
    """Seed players into a single-elimination bracket.

    Args:
        players: Entrants in any order; a subset may carry seeds.
        rng_seed: Seed for the unseeded shuffle (same input + seed gives the
            same bracket).
        match_number_offset: Highest match number already used in the
            tournament; knockout match numbers start after it in every round.

    Returns:
        A result holding the ``BracketResult`` with every round materialised
        and byes already advanced.
    """
    n = len(players)
    if n < 2:
        return Result.error(
            ErrorCode.INSUFFICIENT_PLAYERS,
            f"A knockout bracket needs at least 2 players. Got {n}.",
            ErrorField.PLAYERS,
        )
    limit = conf.max_bracket_players()
    if n > limit:
        return Result.error(
            ErrorCode.TOO_MANY_PLAYERS,
            f"A knockout bracket holds at most {limit} players. Got {n}.",
            ErrorField.PLAYERS,
        )
    errors = _check_entrants(players)
    if errors:
        return Result.failure(*errors)

    bracket_size = next_power_of_two(n)
    total_rounds = calculate_rounds_needed(bracket_size)
    ranked = rank_players(players, rng_seed)

    slots = tuple(
        SlotAssignment(
            slot_number=i + 1,
            player=ranked[rank - 1] if rank <= n else None,
            is_bye=rank > n,
        )
        for i, rank in enumerate(build_seed_order(bracket_size))
    )

    round_name = get_round_name(1, total_rounds)
    first_round = []
    for index in range(bracket_size // 2):
        slot1 = slots[2 * index]
        slot2 = slots[2 * index + 1]
        has_next = total_rounds > 1
        first_round.append(
            MatchWiring(
                match_number=index + 1,
                slot1=slot1,
                slot2=slot2,
                is_bye=slot1.is_bye or slot2.is_bye,
                next_match_index=index // 2 if has_next else None,
                next_slot=(index % 2) + 1 if has_next else None,
                round_name=round_name,
            )
        )
    first_round = tuple(first_round)

    matches = build_bracket_matches(first_round, total_rounds, match_number_offset)
    logger.debug(
        "Generated %s-slot bracket for %s players (%s byes, %s rounds)",
        bracket_size,
        n,
        bracket_size - n,
        total_rounds,
    )
    return Result.success(
        BracketResult(
            bracket_size=bracket_size,
            bye_count=bracket_size - n,
            total_rounds=total_rounds,
            slots=slots,
            first_round_matches=first_round,
            matches=matches,
        )
    )


def build_bracket_matches(
    first_round: Sequence[MatchWiring],
    total_rounds: int,
    match_number_offset: int = 0,
) -> Tuple[KnockoutMatch, ...]:
    """Turn first-round wiring into every match of the bracket.

    Rounds after the first are empty shells; byes are resolved and advanced.
    """
    matches = []
    for wiring in first_round:
        next_number = None
        if wiring.next_match_index is not None:
            next_number = wiring.next_match_index + 1 + match_number_offset
        matches.append(
            KnockoutMatch(
                round=1,
                match_number=wiring.match_number + match_number_offset,
                player1_id=wiring.slot1.player.player_id if wiring.slot1.player else None,
                player2_id=wiring.slot2.player.player_id if wiring.slot2.player else None,
                next_match_number=next_number,
                next_slot=wiring.next_slot,
                round_name=wiring.round_name,
            )
        )

    count = len(first_round)
    for round_number in range(2, total_rounds + 1):
        count //= 2
        is_final = round_number == total_rounds
        for index in range(count):
            matches.append(
                KnockoutMatch(
                    round=round_number,
                    match_number=index + 1 + match_number_offset,
                    next_match_number=None
                    if is_final
                    else index // 2 + 1 + match_number_offset,
                    next_slot=None if is_final else (index % 2) + 1,
                    round_name=get_round_name(round_number, total_rounds),
                )
            )
    return propagate_byes(matches)


def _feeders(
    matches: Sequence[KnockoutMatch],
) -> Dict[Tuple[int, int], Dict[int, Tuple[int, int]]]:
    feeders = defaultdict(dict)
    for match in matches:
        if match.next_key is not None:
            feeders[match.next_key][match.next_slot] = match.key
    return feeders


def propagate_byes(matches: Sequence[KnockoutMatch]) -> Tuple[KnockoutMatch, ...]:
    """Resolve byes and push their winners forward, round by round.

    A match becomes a bye when exactly one slot holds a player and the other
    can never be filled: it is empty and either has no feeder or its feeder
    is void (holds nobody and can never receive anybody). A bye's winner is
    placed into its next match before that round is examined, so a bye can
    complete another bye further along the chain. Running this again on its
    own output changes nothing.
    """
    by_key = {m.key: m for m in matches}
    feeders = _feeders(matches)
    void_cache: Dict[Tuple[int, int], bool] = {}

    def is_void(key) -> bool:
        if key not in void_cache:
            match = by_key[key]
            if match.player_ids:
                void_cache[key] = False
            else:
                slot_feeders = feeders.get(key, {})
                void_cache[key] = all(
                    slot not in slot_feeders or is_void(slot_feeders[slot])
                    for slot in (1, 2)
                )
        return void_cache[key]

    def slot_is_dead(match, slot) -> bool:
        if match.slot_player(slot) is not None:
            return False
        feeder = feeders.get(match.key, {}).get(slot)
        return feeder is None or is_void(feeder)

    for key in sorted(by_key):
        match = by_key[key]
        if match.status == MatchStatus.PENDING and not match.games:
            present = [s for s in (1, 2) if match.slot_player(s) is not None]
            if len(present) == 1 and slot_is_dead(match, 3 - present[0]):
                match = replace(
                    match,
                    status=MatchStatus.BYE,
                    winner_id=match.slot_player(present[0]),
                )
                by_key[key] = match

        if match.status == MatchStatus.BYE and match.next_key in by_key:
            target = by_key[match.next_key]
            if target.slot_player(match.next_slot) is None:
                by_key[match.next_key] = target.with_slot(
                    match.next_slot, match.winner_id
                )
                void_cache.clear()

    return tuple(by_key[key] for key in sorted(by_key))


def _push_winner(by_key, match: KnockoutMatch) -> Optional[CoreError]:
    """Make ``match``'s next slot hold its current winner (or nobody)."""
    next_key = match.next_key
    if next_key is None or next_key not in by_key:
        return None
    target = by_key[next_key]
    occupant = match.winner_id if match.is_decided else None
    if target.slot_player(match.next_slot) == occupant:
        return None
    if target.games or target.status in (MatchStatus.LIVE, MatchStatus.COMPLETE):
        return CoreError(
            ErrorCode.NEXT_MATCH_LOCKED,
            f"{target.round_name} match {target.match_number} already has scores; "
            f"clear them before changing who plays in it.",
            ErrorField.MATCH,
        )

    updated = target.with_slot(match.next_slot, occupant)
    if target.status == MatchStatus.BYE:
        # Re-resolved by propagate_byes once the slot settles.
        updated = replace(updated, status=MatchStatus.PENDING, winner_id=None)
        by_key[next_key] = updated
        return _push_winner(by_key, updated)
    by_key[next_key] = updated
    return None


def apply_match_result(
    matches: Sequence[KnockoutMatch], match: KnockoutMatch
) -> Result[Tuple[KnockoutMatch, ...]]:
    """Store an updated match and carry its result through the bracket.

    A decided match places its winner into the next match's slot. If the
    match is no longer decided, or its winner changed, the previous winner is
    taken back out of the next match, provided that match has no scores yet.
    """
    by_key = {m.key: m for m in matches}
    if match.key not in by_key:
        return Result.error(
            ErrorCode.MATCH_NOT_FOUND,
            f"Round {match.round} match {match.match_number} is not in this bracket.",
            ErrorField.MATCH,
        )
    by_key[match.key] = match
    error = _push_winner(by_key, match)
    if error is not None:
        return Result.failure(error)
    if match.is_decided and match.next_key is None:
        logger.info("Knockout final decided: %s wins", match.winner_id)
    return Result.success(propagate_byes(list(by_key.values())))


def knockout_rounds(matches: Sequence[KnockoutMatch]) -> Tuple[BracketRound, ...]:
    """Group matches by round, in round and match-number order."""
    rounds: Dict[int, List[KnockoutMatch]] = defaultdict(list)
    for match in sorted(matches, key=lambda m: m.key):
        rounds[match.round].append(match)
    return tuple(
        BracketRound(number, ms[0].round_name, tuple(ms))
        for number, ms in sorted(rounds.items())
    )


def get_final(matches: Sequence[KnockoutMatch]) -> Optional[KnockoutMatch]:
    finals = [m for m in matches if m.next_match_number is None]
    return finals[0] if len(finals) == 1 else None


def is_knockout_complete(matches: Sequence[KnockoutMatch]) -> bool:
    final = get_final(matches)
    return final is not None and final.is_decided and final.winner_id is not None


def get_knockout_winner(matches: Sequence[KnockoutMatch]) -> Optional[str]:
    """Winner of a completed bracket, or None while the final is open."""
    if not is_knockout_complete(matches):
        return None
    return get_final(matches).winner_id
