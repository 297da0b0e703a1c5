"""
Tests for game score validation and match state derivation.
No database, no Django models - just pure function tests.
"""

import unittest

from sadhanam.tournament_core.results import ErrorCode, ErrorField
from sadhanam.tournament_core.scoring import (
    MatchOutcome,
    can_add_another_game,
    compute_match_state,
    errors_for_field,
    format_validation_errors,
    game_numbers_to_show,
    record_game,
    remove_game,
    validate_game_score,
)
from sadhanam.tournament_core.structure import (
    Game,
    MatchFormat,
    MatchStatus,
    RoundRobinMatch,
)


class ValidateGameScoreTests(unittest.TestCase):
    def test_valid_scores(self):
        for score1, score2 in [(11, 0), (11, 9), (9, 11), (12, 10), (10, 12), (25, 23)]:
            with self.subTest(score=(score1, score2)):
                self.assertTrue(validate_game_score(score1, score2).ok)

    def test_every_valid_score_follows_the_winning_rule(self):
        """Below deuce the winner has exactly 11; from deuce the margin is exactly 2."""
        for score1 in range(0, 20):
            for score2 in range(0, 20):
                if not validate_game_score(score1, score2).ok:
                    continue
                winner, loser = max(score1, score2), min(score1, score2)
                if loser < 10:
                    self.assertEqual(winner, 11, (score1, score2))
                else:
                    self.assertEqual(winner - loser, 2, (score1, score2))

    def test_non_integer_scores(self):
        for score1, score2 in [(11.0, 9), ("11", 9), (True, 11), (None, 11)]:
            with self.subTest(score=(score1, score2)):
                result = validate_game_score(score1, score2)
                self.assertEqual(result.codes, (ErrorCode.SCORE_NOT_INTEGER,))
                self.assertEqual(result.first_error.field, ErrorField.BOTH)

    def test_negative_scores_reported_per_side(self):
        result = validate_game_score(-1, -3)
        self.assertEqual(result.codes, (ErrorCode.SCORE_NEGATIVE,) * 2)
        self.assertEqual(
            [e.field for e in result.errors], [ErrorField.SCORE1, ErrorField.SCORE2]
        )

    def test_zero_zero(self):
        self.assertEqual(validate_game_score(0, 0).codes, (ErrorCode.SCORE_BOTH_ZERO,))

    def test_ties(self):
        self.assertEqual(
            validate_game_score(5, 5).codes, (ErrorCode.SCORE_TIE_NOT_DEUCE,)
        )
        self.assertEqual(
            validate_game_score(10, 10).codes, (ErrorCode.GAME_WINNER_UNCLEAR,)
        )
        self.assertEqual(
            validate_game_score(14, 14).codes, (ErrorCode.GAME_WINNER_UNCLEAR,)
        )

    def test_winner_below_minimum_collects_all_errors(self):
        result = validate_game_score(10, 9)
        self.assertEqual(
            result.codes, (ErrorCode.WINNER_BELOW_MINIMUM, ErrorCode.LEAD_TOO_SMALL)
        )
        self.assertEqual(result.first_error.field, ErrorField.SCORE1)

    def test_winner_below_minimum_on_player_two(self):
        result = validate_game_score(3, 9)
        self.assertEqual(result.codes, (ErrorCode.WINNER_BELOW_MINIMUM,))
        self.assertEqual(result.first_error.field, ErrorField.SCORE2)

    def test_lead_too_small(self):
        self.assertEqual(validate_game_score(11, 10).codes, (ErrorCode.LEAD_TOO_SMALL,))

    def test_winner_exceeds_normal(self):
        self.assertEqual(
            validate_game_score(13, 5).codes, (ErrorCode.WINNER_EXCEEDS_NORMAL,)
        )
        self.assertEqual(
            validate_game_score(9, 12).codes, (ErrorCode.WINNER_EXCEEDS_NORMAL,)
        )

    def test_deuce_not_win_by_two(self):
        self.assertEqual(
            validate_game_score(15, 10).codes, (ErrorCode.DEUCE_NOT_WIN_BY_TWO,)
        )

    def test_error_helpers(self):
        result = validate_game_score(10, 9)
        self.assertIn("at least 11", format_validation_errors(result))
        self.assertEqual(
            [e.code for e in errors_for_field(result, ErrorField.SCORE1)],
            [ErrorCode.WINNER_BELOW_MINIMUM, ErrorCode.LEAD_TOO_SMALL],
        )
        self.assertEqual(
            [e.code for e in errors_for_field(result, ErrorField.SCORE2)],
            [ErrorCode.LEAD_TOO_SMALL],
        )


class ComputeMatchStateTests(unittest.TestCase):
    def test_best_of_three_won_in_two(self):
        state = compute_match_state(
            [Game(1, 11, 5), Game(2, 11, 7)], MatchFormat.BO3
        )
        self.assertEqual(state.outcome, MatchOutcome.PLAYER1_WINS)
        self.assertEqual((state.player1_games, state.player2_games), (2, 0))
        self.assertEqual(state.deciding_game, 2)
        self.assertEqual(state.games_remaining, 0)
        self.assertEqual(state.winner_slot, 1)

    def test_in_progress(self):
        state = compute_match_state([Game(1, 11, 5), Game(2, 5, 11)], MatchFormat.BO5)
        self.assertEqual(state.outcome, MatchOutcome.IN_PROGRESS)
        self.assertIsNone(state.deciding_game)
        self.assertEqual(state.games_remaining, 3)
        self.assertFalse(state.is_decided)

    def test_insertion_order_does_not_matter(self):
        games = [Game(1, 11, 5), Game(2, 9, 11), Game(3, 12, 10), Game(4, 11, 13)]
        forward = compute_match_state(games, MatchFormat.BO5)
        backward = compute_match_state(list(reversed(games)), MatchFormat.BO5)
        self.assertEqual(forward, backward)
        self.assertEqual([g.game_number for g in forward.games], [1, 2, 3, 4])

    def test_games_after_decision_do_not_count(self):
        state = compute_match_state(
            [Game(1, 11, 5), Game(2, 11, 5), Game(3, 5, 11)], MatchFormat.BO3
        )
        self.assertEqual((state.player1_games, state.player2_games), (2, 0))
        self.assertEqual(state.deciding_game, 2)
        self.assertFalse(state.games[2].counts_toward_result)

    def test_deuce_flag(self):
        state = compute_match_state([Game(1, 12, 10), Game(2, 11, 3)], MatchFormat.BO3)
        self.assertTrue(state.games[0].is_deuce)
        self.assertFalse(state.games[1].is_deuce)

    def test_best_of_seven_player_two(self):
        games = [Game(n, 5, 11) for n in range(1, 5)]
        state = compute_match_state(games, MatchFormat.BO7)
        self.assertEqual(state.outcome, MatchOutcome.PLAYER2_WINS)
        self.assertEqual(state.deciding_game, 4)


class CanAddAnotherGameTests(unittest.TestCase):
    def test_first_game(self):
        result = can_add_another_game([], MatchFormat.BO3, "a", "b", 1)
        self.assertTrue(result.allowed)
        self.assertEqual(result.next_game_number, 1)

    def test_missing_player(self):
        result = can_add_another_game([], MatchFormat.BO3, "a", None, 1)
        self.assertFalse(result.allowed)
        self.assertEqual(result.code, ErrorCode.MISSING_PLAYER)

    def test_game_beyond_format_maximum(self):
        games = [Game(1, 11, 5), Game(2, 5, 11)]
        result = can_add_another_game(games, MatchFormat.BO3, "a", "b", 4)
        self.assertFalse(result.allowed)
        self.assertEqual(result.code, ErrorCode.GAME_NUMBER_OUT_OF_RANGE)
        self.assertEqual(result.next_game_number, 3)

    def test_game_zero(self):
        result = can_add_another_game([], MatchFormat.BO3, "a", "b", 0)
        self.assertEqual(result.code, ErrorCode.GAME_NUMBER_OUT_OF_RANGE)

    def test_game_beyond_deciding_game(self):
        games = [Game(1, 11, 5), Game(2, 11, 5)]
        result = can_add_another_game(games, MatchFormat.BO3, "a", "b", 3)
        self.assertFalse(result.allowed)
        self.assertEqual(result.code, ErrorCode.GAME_ALREADY_DECIDED)

    def test_match_already_complete(self):
        games = [Game(1, 11, 5), Game(3, 11, 5)]
        result = can_add_another_game(games, MatchFormat.BO3, "a", "b", 2)
        self.assertEqual(result.code, ErrorCode.MATCH_ALREADY_COMPLETE)

    def test_deciding_game_allowed(self):
        games = [Game(1, 11, 5), Game(2, 5, 11)]
        result = can_add_another_game(games, MatchFormat.BO3, "a", "b", 3)
        self.assertTrue(result.allowed)

    def test_game_numbers_to_show(self):
        self.assertEqual(game_numbers_to_show([], MatchFormat.BO3), [1])
        self.assertEqual(
            game_numbers_to_show([Game(1, 11, 5)], MatchFormat.BO3), [1, 2]
        )
        self.assertEqual(
            game_numbers_to_show([Game(1, 11, 5), Game(2, 11, 5)], MatchFormat.BO3),
            [1, 2],
        )
        self.assertEqual(
            game_numbers_to_show(
                [Game(1, 11, 5), Game(2, 5, 11), Game(3, 5, 11)], MatchFormat.BO3
            ),
            [1, 2, 3],
        )


class RecordGameTests(unittest.TestCase):
    def setUp(self):
        self.match = RoundRobinMatch(
            round=1, match_number=1, player1_id="a", player2_id="b", group_number=1
        )

    def test_record_until_complete(self):
        first = record_game(self.match, 1, 11, 5, MatchFormat.BO3)
        self.assertTrue(first.ok)
        self.assertEqual(first.value.status, MatchStatus.LIVE)
        self.assertIsNone(first.value.winner_id)

        second = record_game(first.value, 2, 11, 8, MatchFormat.BO3)
        self.assertEqual(second.value.status, MatchStatus.COMPLETE)
        self.assertEqual(second.value.winner_id, "a")

    def test_invalid_score_rejected(self):
        result = record_game(self.match, 1, 11, 10, MatchFormat.BO3)
        self.assertEqual(result.codes, (ErrorCode.LEAD_TOO_SMALL,))

    def test_game_after_decision_rejected(self):
        match = record_game(self.match, 1, 11, 5, MatchFormat.BO3).value
        match = record_game(match, 2, 11, 5, MatchFormat.BO3).value
        result = record_game(match, 3, 11, 5, MatchFormat.BO3)
        self.assertEqual(result.codes, (ErrorCode.GAME_ALREADY_DECIDED,))

    def test_edit_existing_game_can_flip_winner(self):
        match = record_game(self.match, 1, 11, 5, MatchFormat.BO3).value
        match = record_game(match, 2, 11, 5, MatchFormat.BO3).value
        edited = record_game(match, 2, 5, 11, MatchFormat.BO3)
        self.assertTrue(edited.ok)
        self.assertEqual(edited.value.status, MatchStatus.LIVE)
        self.assertIsNone(edited.value.winner_id)

    def test_bye_rejected(self):
        bye = RoundRobinMatch(
            round=1,
            match_number=2,
            player1_id="c",
            status=MatchStatus.BYE,
            winner_id="c",
        )
        self.assertEqual(
            record_game(bye, 1, 11, 5, MatchFormat.BO3).codes, (ErrorCode.MATCH_IS_BYE,)
        )

    def test_open_slot_rejected(self):
        open_match = RoundRobinMatch(round=1, match_number=3, player1_id="a")
        self.assertEqual(
            record_game(open_match, 1, 11, 5, MatchFormat.BO3).codes,
            (ErrorCode.MISSING_PLAYER,),
        )

    def test_remove_game(self):
        match = record_game(self.match, 1, 11, 5, MatchFormat.BO3).value
        match = record_game(match, 2, 11, 5, MatchFormat.BO3).value
        result = remove_game(match, 2, MatchFormat.BO3)
        self.assertEqual(result.value.status, MatchStatus.LIVE)
        self.assertEqual(len(result.value.games), 1)

        emptied = remove_game(result.value, 1, MatchFormat.BO3).value
        self.assertEqual(emptied.status, MatchStatus.PENDING)

    def test_remove_unknown_game(self):
        self.assertEqual(
            remove_game(self.match, 1, MatchFormat.BO3).codes, (ErrorCode.GAME_NOT_FOUND,)
        )


if __name__ == "__main__":
    unittest.main()
