"""Ledger domain models (DB-agnostic)"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime
from enum import Enum
from typing import Optional


class Rarity(str, Enum):
    """Cosmetic classification. Not used in selection math."""

    COMMON = "common"
    RARE = "rare"
    EPIC = "epic"
    LEGENDARY = "legendary"


@dataclass(frozen=True)
class Item:
    """Catalog item. Immutable after creation."""

    id: int
    name: str
    price: int  # smallest currency unit
    image: str
    rarity: Rarity


@dataclass(frozen=True)
class DropEntry:
    """One drop table row: an item and its relative weight."""

    item: Item
    chance: float  # arbitrary non-negative weight, not a probability


@dataclass(frozen=True)
class Case:
    id: int
    name: str
    price: int  # cost to open
    image: str
    description: Optional[str] = None
    entries: tuple[DropEntry, ...] = ()  # catalog row order


@dataclass
class Profile:
    """Per-user ledger row. `version` guards concurrent writes."""

    user_id: str
    balance: int
    total_opened: int = 0
    best_drop: int = 0
    version: int = 1

    def copy(self) -> Profile:
        return replace(self)


@dataclass
class InventoryRecord:
    """One won item instance. Sold rows are kept as history."""

    id: int
    user_id: str
    item_id: int
    is_sold: bool = False
    acquired_at: Optional[datetime] = None
    version: int = 1


@dataclass(frozen=True)
class InventoryEntry:
    """Active inventory row joined to its catalog item."""

    record: InventoryRecord
    item: Item


# === Operation results ===


@dataclass(frozen=True)
class OpenResult:
    item: Item
    record: InventoryRecord
    balance: int
    profile: Profile


@dataclass(frozen=True)
class SellResult:
    balance: int
    sold_amount: int


@dataclass(frozen=True)
class SellAllResult:
    balance: int
    sold_count: int = 0
    total_amount: int = 0
    record_ids: tuple[int, ...] = field(default=(), repr=False)
