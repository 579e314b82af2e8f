from __future__ import annotations

import math
import random
from typing import FrozenSet, Optional, Sequence, Tuple

HIDDEN = "_"

Mask = Tuple[bool, ...]


def initial_mask(word: str) -> Mask:
    """Letters start hidden; spaces and other non-letters are always shown."""
    return tuple(not char.isalpha() for char in word)


def hint_checkpoints(duration: int, fractions: Sequence[float] = (0.5, 0.25)) -> FrozenSet[int]:
    return frozenset(math.floor(duration * fraction) for fraction in fractions)


def hidden_positions(mask: Sequence[bool]):
    return [idx for idx, shown in enumerate(mask) if not shown]


def revealed_letters(word: str, mask: Sequence[bool]) -> int:
    return sum(1 for char, shown in zip(word, mask) if shown and char.isalpha())


def next_hint_mask(
    word: str,
    mask: Sequence[bool],
    time_remaining: int,
    duration: int,
    rng: Optional[random.Random] = None,
    fractions: Sequence[float] = (0.5, 0.25),
) -> Mask:
    current = tuple(mask)
    if len(current) != len(word):
        current = initial_mask(word)
    if time_remaining not in hint_checkpoints(duration, fractions):
        return current
    candidates = hidden_positions(current)
    if not candidates:
        return current
    pick = (rng or random).choice(candidates)
    revealed = list(current)
    revealed[pick] = True
    return tuple(revealed)


def render_hint(word: Optional[str], mask: Sequence[bool]) -> str:
    if not word:
        return ""
    if len(mask) != len(word):
        mask = initial_mask(word)
    return "".join(char if shown else HIDDEN for char, shown in zip(word, mask))
