"""
Tests for group assignment and circle-method fixture scheduling.
"""

import unittest
from collections import Counter

from sadhanam.tournament_core.results import ErrorCode
from sadhanam.tournament_core.round_robin import (
    Fixture,
    assign_groups,
    build_round_robin_matches,
    generate_group_schedule,
    generate_multi_group_schedule,
    group_name,
    verify_schedule,
)
from sadhanam.tournament_core.structure import Group, MatchStatus, Player


def players(count, seeded=0):
    return [
        Player(f"p{i}", f"Player {i}", seed=i if i <= seeded else None)
        for i in range(1, count + 1)
    ]


class GroupScheduleTests(unittest.TestCase):
    def test_four_players(self):
        ids = ["a", "b", "c", "d"]
        fixtures = generate_group_schedule(ids).value
        self.assertEqual(len(fixtures), 6)
        self.assertFalse(any(f.is_bye for f in fixtures))

        appearances = Counter()
        for f in fixtures:
            appearances.update([f.player1_id, f.player2_id])
        self.assertEqual(appearances, Counter({"a": 3, "b": 3, "c": 3, "d": 3}))

        for round_number in (1, 2, 3):
            in_round = [
                pid
                for f in fixtures
                if f.round == round_number
                for pid in (f.player1_id, f.player2_id)
            ]
            self.assertEqual(len(in_round), len(set(in_round)))

        self.assertTrue(verify_schedule(ids, fixtures).ok)

    def test_circle_method_order(self):
        fixtures = generate_group_schedule(["a", "b", "c", "d"]).value
        self.assertEqual(
            [(f.round, f.player1_id, f.player2_id) for f in fixtures],
            [
                (1, "a", "d"),
                (1, "b", "c"),
                (2, "a", "c"),
                (2, "d", "b"),
                (3, "a", "b"),
                (3, "c", "d"),
            ],
        )

    def test_three_players_one_bye_per_round(self):
        fixtures = generate_group_schedule(["a", "b", "c"]).value
        self.assertEqual({f.round for f in fixtures}, {1, 2, 3})
        for round_number in (1, 2, 3):
            in_round = [f for f in fixtures if f.round == round_number]
            self.assertEqual(sum(1 for f in in_round if f.is_bye), 1)
            self.assertEqual(sum(1 for f in in_round if not f.is_bye), 1)

        for bye in (f for f in fixtures if f.is_bye):
            self.assertIsNotNone(bye.player1_id)
            self.assertIsNone(bye.player2_id)
        self.assertEqual(
            sorted(f.player1_id for f in fixtures if f.is_bye), ["a", "b", "c"]
        )

    def test_larger_groups_are_complete(self):
        for size in (2, 5, 8, 11, 32):
            ids = [f"p{i}" for i in range(size)]
            fixtures = generate_group_schedule(ids).value
            self.assertTrue(verify_schedule(ids, fixtures).ok, size)

    def test_errors(self):
        self.assertEqual(
            generate_group_schedule(["a"]).codes, (ErrorCode.GROUP_TOO_SMALL,)
        )
        self.assertEqual(
            generate_group_schedule([f"p{i}" for i in range(33)]).codes,
            (ErrorCode.GROUP_TOO_LARGE,),
        )
        self.assertEqual(
            generate_group_schedule(["a", "b", "a"]).codes,
            (ErrorCode.DUPLICATE_PLAYER,),
        )


class VerifyScheduleTests(unittest.TestCase):
    def test_wrong_count(self):
        fixtures = [Fixture(1, "a", "b", False)]
        self.assertEqual(
            verify_schedule(["a", "b", "c"], fixtures).codes,
            (ErrorCode.WRONG_FIXTURE_COUNT,),
        )

    def test_duplicate_fixture(self):
        fixtures = [
            Fixture(1, "a", "b", False),
            Fixture(2, "b", "a", False),
            Fixture(3, "b", "c", False),
        ]
        self.assertEqual(
            verify_schedule(["a", "b", "c"], fixtures).codes,
            (ErrorCode.DUPLICATE_FIXTURE,),
        )

    def test_double_booked(self):
        fixtures = [
            Fixture(1, "a", "b", False),
            Fixture(1, "a", "c", False),
            Fixture(2, "b", "c", False),
        ]
        self.assertEqual(
            verify_schedule(["a", "b", "c"], fixtures).codes,
            (ErrorCode.PLAYER_DOUBLE_BOOKED,),
        )

    def test_missing_fixture(self):
        fixtures = [
            Fixture(1, "a", "b", False),
            Fixture(2, "a", "c", False),
            Fixture(3, "b", "x", False),
        ]
        self.assertEqual(
            verify_schedule(["a", "b", "c"], fixtures).codes,
            (ErrorCode.MISSING_FIXTURE,),
        )


class MultiGroupScheduleTests(unittest.TestCase):
    def setUp(self):
        self.groups = [
            Group(2, "Group B", ("e", "f", "g")),
            Group(1, "Group A", ("a", "b", "c", "d")),
        ]

    def test_shared_matchdays_and_numbering(self):
        scheduled = generate_multi_group_schedule(self.groups, match_number_offset=10).value
        self.assertEqual(len(scheduled), 12)
        self.assertEqual([f.match_number for f in scheduled], list(range(11, 23)))
        self.assertEqual(
            [(f.round, f.group_number) for f in scheduled[:4]],
            [(1, 1), (1, 1), (1, 2), (1, 2)],
        )
        self.assertEqual(sorted({f.round for f in scheduled}), [1, 2, 3])

    def test_build_matches_decides_byes(self):
        matches = build_round_robin_matches(self.groups).value
        byes = [m for m in matches if m.status == MatchStatus.BYE]
        self.assertEqual(len(byes), 3)
        for bye in byes:
            self.assertEqual(bye.winner_id, bye.player1_id)
            self.assertEqual(bye.group_number, 2)
        pending = [m for m in matches if m.status == MatchStatus.PENDING]
        self.assertEqual(len(pending), 9)
        self.assertEqual(len({m.key for m in matches}), len(matches))

    def test_group_errors_are_collected(self):
        groups = [Group(1, "Group A", ("a",)), Group(2, "Group B", ("b",))]
        self.assertEqual(
            generate_multi_group_schedule(groups).codes,
            (ErrorCode.GROUP_TOO_SMALL, ErrorCode.GROUP_TOO_SMALL),
        )


class AssignGroupsTests(unittest.TestCase):
    def test_group_names(self):
        self.assertEqual(group_name(1), "Group A")
        self.assertEqual(group_name(26), "Group Z")
        self.assertEqual(group_name(27), "Group 27")

    def test_snake_seeding(self):
        groups = assign_groups(players(8, seeded=4), 2, rng_seed=7).value
        self.assertEqual([g.name for g in groups], ["Group A", "Group B"])
        self.assertEqual(groups[0].player_ids[:2], ("p1", "p4"))
        self.assertEqual(groups[1].player_ids[:2], ("p2", "p3"))
        self.assertEqual([g.size for g in groups], [4, 4])

    def test_snake_over_three_groups(self):
        groups = assign_groups(players(6, seeded=6), 3).value
        self.assertEqual(
            [g.player_ids for g in groups],
            [("p1", "p6"), ("p2", "p5"), ("p3", "p4")],
        )

    def test_preference_placed_first(self):
        entrants = players(6, seeded=2)
        entrants[0] = Player("p1", "Player 1", seed=1, preferred_group=2)
        groups = assign_groups(entrants, 2, rng_seed=3).value
        self.assertEqual(groups[1].player_ids[0], "p1")
        self.assertEqual(groups[0].player_ids[0], "p2")
        self.assertEqual([g.size for g in groups], [3, 3])

    def test_invalid_preference_is_ignored(self):
        entrants = [Player("a", "A", preferred_group=9)] + players(3)
        groups = assign_groups(entrants, 2, rng_seed=1).value
        self.assertEqual(sum(g.size for g in groups), 4)

    def test_unseeded_fill_smallest_group(self):
        groups = assign_groups(players(7, seeded=0), 3, rng_seed=5).value
        self.assertEqual([g.size for g in groups], [3, 2, 2])

    def test_reproducible(self):
        entrants = players(20, seeded=4)
        self.assertEqual(
            assign_groups(entrants, 4, rng_seed=99), assign_groups(entrants, 4, rng_seed=99)
        )

    def test_errors(self):
        self.assertEqual(
            assign_groups(players(4), 0).codes, (ErrorCode.INVALID_GROUP_COUNT,)
        )
        self.assertEqual(
            assign_groups(players(40), 17).codes, (ErrorCode.INVALID_GROUP_COUNT,)
        )
        self.assertEqual(
            assign_groups(players(3), 2).codes, (ErrorCode.GROUP_TOO_SMALL,)
        )
        duplicated = players(3) + [Player("p1", "Again")]
        self.assertEqual(
            assign_groups(duplicated, 1).codes, (ErrorCode.DUPLICATE_PLAYER,)
        )


if __name__ == "__main__":
    unittest.main()
