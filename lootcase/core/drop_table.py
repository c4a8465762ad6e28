"""Drop table resolver: weighted item selection, pure Python

Chances are relative weights. They are scaled so the cumulative boundaries
span [0, 100], and a draw in [0, 100) picks the first entry (in catalog row
order) whose boundary reaches it.
"""

from __future__ import annotations

import math
import random
from typing import Protocol, Sequence

from lootcase.core.errors import InvalidDropTable
from lootcase.core.logging import get_logger
from lootcase.core.models import DropEntry, Item

logger = get_logger(__name__)

DRAW_SCALE = 100.0


class UniformSource(Protocol):
    """Anything with `random() -> float` in [0, 1): random.Random, SystemRandom."""

    def random(self) -> float: ...


def validate_entries(
    entries: Sequence[DropEntry], case_id: int | None = None
) -> float:
    """Reject unusable tables. Returns the total weight."""
    if not entries:
        raise InvalidDropTable("no entries", case_id)

    total = 0.0
    for entry in entries:
        chance = entry.chance
        if not math.isfinite(chance) or chance < 0:
            raise InvalidDropTable(
                f"bad chance {chance!r} for item {entry.item.id}", case_id
            )
        total += chance

    if total <= 0:
        raise InvalidDropTable("all weights are zero", case_id)
    return total


def cumulative_boundaries(entries: Sequence[DropEntry]) -> list[float]:
    """C_i = (chance_1 + ... + chance_i) * (100 / total)."""
    total = validate_entries(entries)
    multiplier = DRAW_SCALE / total
    boundaries = []
    running = 0.0
    for entry in entries:
        running += entry.chance * multiplier
        boundaries.append(running)
    return boundaries


def select_entry(entries: Sequence[DropEntry], draw: float) -> DropEntry:
    """Pick the entry for a draw in [0, 100).

    Zero-weight entries are never selected. When summation drift leaves the
    final boundary just under the draw, the last weighted entry wins.
    """
    if not 0 <= draw < DRAW_SCALE:
        raise ValueError(f"draw must be in [0, {DRAW_SCALE}): {draw}")

    boundaries = cumulative_boundaries(entries)
    for entry, boundary in zip(entries, boundaries):
        if entry.chance > 0 and boundary >= draw:
            return entry

    fallback = next(e for e in reversed(entries) if e.chance > 0)
    logger.debug(
        "Draw %.12f above final boundary %.12f, falling back to item %d",
        draw,
        boundaries[-1],
        fallback.item.id,
    )
    return fallback


def select_item(entries: Sequence[DropEntry], draw: float) -> Item:
    return select_entry(entries, draw).item


def roll(entries: Sequence[DropEntry], rng: UniformSource) -> Item:
    """Fresh uniform draw from the injected generator."""
    draw = rng.random() * DRAW_SCALE
    return select_item(entries, draw)


def default_rng() -> random.Random:
    return random.SystemRandom()
