"""
Tests for stage configuration, closing rules and the planning pipelines.
"""

import unittest
from dataclasses import replace

from sadhanam.tournament_core.builder import TournamentBuilder
from sadhanam.tournament_core.results import ErrorCode
from sadhanam.tournament_core.stages import (
    check_stage_can_close,
    plan_knockout_from_round_robin,
    plan_knockout_stage,
    plan_round_robin_stage,
    stage_has_scores,
    validate_round_robin_config,
)
from sadhanam.tournament_core.structure import (
    FinalizationRule,
    MatchStatus,
    Player,
    RoundRobinStageConfig,
)


def players(count):
    return [Player(f"p{i}", f"Player {i}") for i in range(1, count + 1)]


def finished_groups():
    builder = TournamentBuilder()
    builder.group("A", "A1", "A2", "A3", "A4")
    builder.group("B", "B1", "B2", "B3", "B4")
    for prefix in ("A", "B"):
        for higher, lower in [(1, 2), (1, 3), (1, 4), (2, 3), (2, 4), (3, 4)]:
            builder.win(f"{prefix}{higher}", f"{prefix}{lower}")
    return builder


class ValidateConfigTests(unittest.TestCase):
    def test_valid(self):
        config = RoundRobinStageConfig(number_of_groups=2, advance_count=2)
        self.assertTrue(validate_round_robin_config(config, 8).ok)

    def test_every_problem_is_reported(self):
        config = RoundRobinStageConfig(
            number_of_groups=0,
            advance_count=5,
            allow_best_third=True,
            best_third_count=0,
        )
        self.assertEqual(
            validate_round_robin_config(config).codes,
            (
                ErrorCode.INVALID_GROUP_COUNT,
                ErrorCode.INVALID_ADVANCE_COUNT,
                ErrorCode.INVALID_BEST_THIRD_COUNT,
            ),
        )

    def test_best_third_count_ignored_when_not_allowed(self):
        config = RoundRobinStageConfig(
            number_of_groups=1, advance_count=1, best_third_count=9
        )
        self.assertTrue(validate_round_robin_config(config).ok)

    def test_too_few_players_for_groups(self):
        config = RoundRobinStageConfig(number_of_groups=2, advance_count=1)
        self.assertEqual(
            validate_round_robin_config(config, 3).codes, (ErrorCode.GROUP_TOO_SMALL,)
        )


class StageCloseTests(unittest.TestCase):
    def setUp(self):
        builder = TournamentBuilder()
        builder.group("A", "A", "B", "C")
        builder.round(1).win("A", "B").bye("C")
        builder.round(2).match("B", "C", "11-5").bye("A")
        self.matches = builder.build().matches

    def test_require_all_blocks(self):
        result = check_stage_can_close(self.matches)
        self.assertEqual(result.codes, (ErrorCode.STAGE_INCOMPLETE,))

    def test_manual_needs_force(self):
        result = check_stage_can_close(self.matches, FinalizationRule.MANUAL)
        self.assertEqual(result.codes, (ErrorCode.STAGE_INCOMPLETE,))
        self.assertIn("forced close", result.first_error.message)

        forced = check_stage_can_close(self.matches, FinalizationRule.MANUAL, force=True)
        self.assertTrue(forced.ok)
        self.assertEqual(
            (forced.value.completed, forced.value.skipped, forced.value.forced),
            (1, 1, True),
        )

    def test_force_ignored_under_require_all(self):
        result = check_stage_can_close(
            self.matches, FinalizationRule.REQUIRE_ALL, force=True
        )
        self.assertFalse(result.ok)

    def test_byes_never_block(self):
        matches = [
            replace(m, status=MatchStatus.COMPLETE)
            if m.status == MatchStatus.LIVE
            else m
            for m in self.matches
        ]
        summary = check_stage_can_close(matches).value
        self.assertEqual((summary.completed, summary.skipped), (2, 0))
        self.assertFalse(summary.forced)

    def test_stage_has_scores(self):
        self.assertTrue(stage_has_scores(self.matches))
        plan = plan_round_robin_stage(
            players(4), RoundRobinStageConfig(number_of_groups=1, advance_count=2)
        ).value
        self.assertFalse(stage_has_scores(plan.matches))


class PlanRoundRobinTests(unittest.TestCase):
    def test_seven_players_in_two_groups(self):
        config = RoundRobinStageConfig(number_of_groups=2, advance_count=2)
        plan = plan_round_robin_stage(players(7), config, rng_seed=11).value
        self.assertEqual(sorted(g.size for g in plan.groups), [3, 4])
        self.assertEqual(len(plan.matches), 12)
        self.assertEqual(
            sum(1 for m in plan.matches if m.status == MatchStatus.BYE), 3
        )

    def test_offset_applies_to_match_numbers(self):
        config = RoundRobinStageConfig(number_of_groups=1, advance_count=1)
        plan = plan_round_robin_stage(players(4), config, match_number_offset=100).value
        self.assertEqual(
            [m.match_number for m in plan.matches], list(range(101, 107))
        )

    def test_advance_count_must_fit_smallest_group(self):
        config = RoundRobinStageConfig(number_of_groups=2, advance_count=3)
        result = plan_round_robin_stage(players(7), config)
        self.assertEqual(result.codes, (ErrorCode.ADVANCE_COUNT_TOO_LARGE,))

    def test_invalid_config_is_returned(self):
        config = RoundRobinStageConfig(number_of_groups=3, advance_count=1)
        result = plan_round_robin_stage(players(5), config)
        self.assertEqual(result.codes, (ErrorCode.GROUP_TOO_SMALL,))


class PlanKnockoutTests(unittest.TestCase):
    def test_single_knockout(self):
        bracket = plan_knockout_stage(players(5), rng_seed=2).value
        self.assertEqual((bracket.bracket_size, bracket.bye_count), (8, 3))

    def test_too_few_players(self):
        self.assertEqual(
            plan_knockout_stage(players(1)).codes, (ErrorCode.INSUFFICIENT_PLAYERS,)
        )


class KnockoutFromRoundRobinTests(unittest.TestCase):
    def test_full_pipeline(self):
        snapshot = finished_groups().build()
        config = snapshot.config(2)
        plan = plan_knockout_from_round_robin(
            snapshot.groups, snapshot.players, snapshot.matches, config
        ).value

        self.assertEqual(
            [q.player_id for q in plan.qualifiers], ["a1", "b1", "a2", "b2"]
        )
        # Knockout numbering continues after the last group match.
        self.assertEqual(
            [m.key for m in plan.bracket.matches], [(1, 13), (1, 14), (2, 13)]
        )
        first_round = plan.bracket.round_matches(1)
        self.assertEqual(
            [(m.player1_id, m.player2_id) for m in first_round],
            [("a1", "b2"), ("b1", "a2")],
        )
        self.assertEqual(len(plan.standings), 2)

    def test_explicit_offset(self):
        snapshot = finished_groups().build()
        plan = plan_knockout_from_round_robin(
            snapshot.groups,
            snapshot.players,
            snapshot.matches,
            snapshot.config(1),
            match_number_offset=0,
        ).value
        self.assertEqual([m.key for m in plan.bracket.matches], [(1, 1)])

    def test_incomplete_stage_is_refused(self):
        builder = finished_groups()
        builder.round(4).match("A1", "A2", "11-5")
        snapshot = builder.build()
        result = plan_knockout_from_round_robin(
            snapshot.groups, snapshot.players, snapshot.matches, snapshot.config(2)
        )
        self.assertEqual(result.codes, (ErrorCode.STAGE_INCOMPLETE,))

    def test_manual_force_closes_incomplete_stage(self):
        builder = finished_groups()
        builder.round(4).match("A1", "A2", "11-5")
        snapshot = builder.build()
        config = snapshot.config(2, finalization_rule=FinalizationRule.MANUAL)
        result = plan_knockout_from_round_robin(
            snapshot.groups, snapshot.players, snapshot.matches, config, force=True
        )
        self.assertTrue(result.ok)
        self.assertEqual(result.value.bracket.matches[0].match_number, 14)


if __name__ == "__main__":
    unittest.main()
