from django.test import SimpleTestCase

from realtime.engine.rotation import first_turn, next_turn


class TurnRotationTests(SimpleTestCase):
    def test_three_players_cycle_and_round_grows_on_wrap(self):
        players = ["a", "b", "c"]
        turn = first_turn(players)
        seen = [(turn.drawer_id, turn.round)]
        for _ in range(3):
            turn = next_turn(players, turn.drawer_index, turn.round)
            seen.append((turn.drawer_id, turn.round))
        self.assertEqual(seen, [("a", 1), ("b", 1), ("c", 1), ("a", 2)])

    def test_disconnect_before_rotation_picks_from_remaining(self):
        turn = next_turn(["a", "b"], drawer_index=1, round_number=1)
        self.assertEqual((turn.drawer_id, turn.drawer_index, turn.round), ("a", 0, 2))

    def test_nobody_connected(self):
        self.assertIsNone(first_turn([]))
        self.assertIsNone(next_turn([], 0, 1))
