"""
Qualification from a round-robin stage into a knockout stage.

Qualifiers are listed rank tier by rank tier: every group winner first (in
group-number order), then every runner-up, and so on up to the advance
count. Best-placed players from the next rank, when the stage allows them,
are appended last. Knockout seeds follow this order (1..n), so group winners
take the top seeds and the bracket's seeding keeps them apart.
"""

import logging
from dataclasses import dataclass, replace
from math import ceil
from typing import List, Optional, Sequence, Tuple

from sadhanam.tournament_core.knockout import build_seed_order, next_power_of_two
from sadhanam.tournament_core.results import ErrorCode, ErrorField, Result
from sadhanam.tournament_core.standings import (
    GroupStandings,
    PlayerStanding,
    best_placed_candidates,
)
from sadhanam.tournament_core.structure import Player, RoundRobinStageConfig

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Qualifier:
    player_id: str
    name: str
    group_number: int
    group_name: str
    rr_rank: int
    ko_seed: int
    seed: Optional[int] = None
    club: Optional[str] = None
    is_best_placed: bool = False


def _qualifier(standing: PlayerStanding, group_standings: GroupStandings, best: bool):
    return Qualifier(
        player_id=standing.player_id,
        name=standing.name,
        group_number=group_standings.group.group_number,
        group_name=group_standings.group.name,
        rr_rank=standing.rank,
        ko_seed=0,
        seed=standing.seed,
        club=standing.club,
        is_best_placed=best,
    )


def extract_qualifiers(
    group_standings: Sequence[GroupStandings], config: RoundRobinStageConfig
) -> Result[Tuple[Qualifier, ...]]:
    """Ordered qualifier list with knockout seeds assigned."""
    ordered = sorted(group_standings, key=lambda gs: gs.group.group_number)
    by_group = {gs.group.group_number: gs for gs in ordered}

    qualifiers = []
    for rank in range(1, config.advance_count + 1):
        for gs in ordered:
            standing = gs.at_rank(rank)
            if standing is not None:
                qualifiers.append(_qualifier(standing, gs, best=False))

    if config.allow_best_third and config.best_third_count > 0:
        candidates = best_placed_candidates(ordered, config.advance_count + 1)
        for standing in candidates[: config.best_third_count]:
            qualifiers.append(
                _qualifier(standing, by_group[standing.group_number], best=True)
            )

    if len(qualifiers) < 2:
        return Result.error(
            ErrorCode.NOT_ENOUGH_QUALIFIERS,
            f"A knockout stage needs at least 2 qualifiers. Got {len(qualifiers)}.",
            ErrorField.CONFIG,
        )
    return Result.success(
        tuple(replace(q, ko_seed=i) for i, q in enumerate(qualifiers, start=1))
    )


def first_round_pairs(count: int) -> List[Tuple[int, int]]:
    """Seed pairs that meet in the first knockout round among ``count`` seeds.

    Pairs involving a bye are left out since they cannot clash.
    """
    order = build_seed_order(next_power_of_two(count))
    pairs = []
    for i in range(0, len(order), 2):
        a, b = sorted((order[i], order[i + 1]))
        if b <= count:
            pairs.append((a, b))
    return pairs


def avoid_same_group_clashes(qualifiers: Sequence[Qualifier]) -> Tuple[Qualifier, ...]:
    """
    Reorder qualifiers so group mates avoid each other in round one.

    For each first-round pair from the same group the higher seed stays put
    and the lower seed is swapped with a player from the lower half of the
    list, provided the swap creates no new clash. Knockout seeds are then
    reassigned 1..n in the new order. Clashes that cannot be avoided are
    logged and left in place.
    """
    n = len(qualifiers)
    if n < 2:
        return tuple(qualifiers)

    q = sorted(qualifiers, key=lambda x: x.ko_seed)
    pairs = first_round_pairs(n)
    partner = {}
    for a, b in pairs:
        partner[a] = b
        partner[b] = a

    for seed_a, seed_b in pairs:
        qa = q[seed_a - 1]
        qb = q[seed_b - 1]
        if qa.group_number != qb.group_number:
            continue

        swapped = False
        for ci in range(ceil(n / 2), n):
            if ci == seed_b - 1:
                continue
            candidate = q[ci]
            partner_seed = partner.get(ci + 1)
            candidate_partner = q[partner_seed - 1] if partner_seed else None
            if candidate.group_number == qa.group_number:
                continue
            if (
                candidate_partner is not None
                and candidate_partner.group_number == qb.group_number
            ):
                continue
            q[seed_b - 1], q[ci] = candidate, qb
            swapped = True
            break

        if not swapped:
            logger.warning(
                "Could not avoid same-group first round clash: %s (%s) vs %s (%s)",
                qa.name,
                qa.group_name,
                qb.name,
                qb.group_name,
            )

    return tuple(replace(x, ko_seed=i) for i, x in enumerate(q, start=1))


def qualifiers_to_players(qualifiers: Sequence[Qualifier]) -> Tuple[Player, ...]:
    """Knockout entrants seeded by their knockout seed."""
    return tuple(
        Player(player_id=q.player_id, name=q.name, seed=q.ko_seed, club=q.club)
        for q in sorted(qualifiers, key=lambda x: x.ko_seed)
    )
