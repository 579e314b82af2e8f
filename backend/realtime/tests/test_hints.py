import random

from django.test import SimpleTestCase

from realtime.engine import hints


class HintMaskTests(SimpleTestCase):
    def test_non_letters_are_always_visible(self):
        mask = hints.initial_mask("ice cream")
        self.assertEqual(hints.render_hint("ice cream", mask), "___ _____")
        self.assertEqual(hints.revealed_letters("ice cream", mask), 0)

    def test_checkpoints_at_half_and_quarter(self):
        self.assertEqual(hints.hint_checkpoints(60), frozenset({30, 15}))

    def test_no_reveal_between_checkpoints(self):
        mask = hints.initial_mask("apple")
        self.assertEqual(hints.next_hint_mask("apple", mask, 40, 60, rng=random.Random(1)), mask)

    def test_checkpoint_reveals_one_hidden_letter(self):
        mask = hints.initial_mask("apple")
        revealed = hints.next_hint_mask("apple", mask, 30, 60, rng=random.Random(1))
        self.assertEqual(hints.revealed_letters("apple", revealed), 1)
        self.assertEqual(len(hints.render_hint("apple", revealed)), 5)

    def test_reveals_are_monotonic_over_a_round(self):
        word = "hot air balloon"
        rng = random.Random(5)
        mask = hints.initial_mask(word)
        previous = 0
        for remaining in range(60, -1, -1):
            next_mask = hints.next_hint_mask(word, mask, remaining, 60, rng=rng)
            self.assertTrue(all(new or not old for old, new in zip(mask, next_mask)))
            count = hints.revealed_letters(word, next_mask)
            self.assertGreaterEqual(count, previous)
            self.assertLessEqual(count, len(word))
            previous, mask = count, next_mask
        self.assertEqual(previous, 2)

    def test_coinciding_checkpoints_reveal_once(self):
        word = "cat"
        mask = hints.initial_mask(word)
        for remaining in (1, 0):
            mask = hints.next_hint_mask(word, mask, remaining, 1, rng=random.Random(2))
        self.assertEqual(hints.revealed_letters(word, mask), 1)

    def test_fully_revealed_word_is_left_alone(self):
        mask = (True, True)
        self.assertEqual(hints.next_hint_mask("ox", mask, 30, 60), mask)
