from __future__ import annotations

from dataclasses import dataclass
from typing import Hashable, Optional, Sequence


@dataclass(frozen=True)
class Turn:
    drawer_index: int
    drawer_id: Hashable
    round: int


def first_turn(connected_ids: Sequence[Hashable]) -> Optional[Turn]:
    if not connected_ids:
        return None
    return Turn(drawer_index=0, drawer_id=connected_ids[0], round=1)


def next_turn(connected_ids: Sequence[Hashable], drawer_index: int, round_number: int) -> Optional[Turn]:
    """Advance to the next connected drawer; the round only grows on wrap-around.

    ``connected_ids`` is the join-ordered list of connected players at the time
    of rotation, so the same index may now point at a different player.
    Returns ``None`` when nobody is connected.
    """
    if not connected_ids:
        return None
    index = (drawer_index + 1) % len(connected_ids)
    next_round = round_number + 1 if index == 0 else round_number
    return Turn(drawer_index=index, drawer_id=connected_ids[index], round=next_round)
