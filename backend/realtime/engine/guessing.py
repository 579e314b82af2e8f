"""Guess evaluation: exact and close matching, plus scoring."""
from __future__ import annotations

import math
from dataclasses import dataclass

EXACT = "exact"
CLOSE = "close"
MISS = "miss"

MAX_CLOSE_DISTANCE = 2


@dataclass(frozen=True)
class GuessResult:
    verdict: str
    distance: int

    @property
    def is_exact(self) -> bool:
        return self.verdict == EXACT

    @property
    def is_close(self) -> bool:
        return self.verdict == CLOSE


def normalize(text: str) -> str:
    return (text or "").strip().lower()


def levenshtein(a: str, b: str) -> int:
    previous = list(range(len(b) + 1))
    for i, char_a in enumerate(a, start=1):
        current = [i]
        for j, char_b in enumerate(b, start=1):
            if char_a == char_b:
                current.append(previous[j - 1])
            else:
                current.append(1 + min(previous[j - 1], previous[j], current[j - 1]))
        previous = current
    return previous[-1]


def close_tolerance(word: str) -> int:
    return min(MAX_CLOSE_DISTANCE, max(2, len(word) // 3))


def evaluate_guess(guess: str, secret_word: str) -> GuessResult:
    candidate = normalize(guess)
    secret = normalize(secret_word)
    if candidate == secret:
        return GuessResult(EXACT, 0)
    tolerance = close_tolerance(secret)
    gap = abs(len(candidate) - len(secret))
    if gap > tolerance:
        # The length gap is a lower bound on the edit distance.
        return GuessResult(MISS, gap)
    distance = levenshtein(candidate, secret)
    if 0 < distance <= tolerance:
        return GuessResult(CLOSE, distance)
    return GuessResult(MISS, distance)


def mentions_word(text: str, secret_word: str) -> bool:
    secret = normalize(secret_word)
    return bool(secret) and secret in normalize(text)


def guess_points(
    time_remaining: int,
    round_duration: int,
    minimum: int = 50,
    maximum: int = 100,
) -> int:
    """Points for an exact guess; faster guesses score more, never below ``minimum``."""
    if round_duration <= 0:
        return minimum
    remaining = max(0, min(time_remaining or 0, round_duration))
    return max(minimum, math.ceil(remaining * maximum / round_duration))
