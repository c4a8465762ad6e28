"""API request/response schemas."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel

from lootcase.core.models import (
    Case,
    DropEntry,
    InventoryEntry,
    InventoryRecord,
    Item,
    Profile,
)


# === Catalog ===


class ItemInfo(BaseModel):
    """Catalog item"""

    id: int
    name: str
    price: int
    image: str
    rarity: str

    @classmethod
    def from_core(cls, item: Item) -> "ItemInfo":
        return cls(
            id=item.id,
            name=item.name,
            price=item.price,
            image=item.image,
            rarity=item.rarity.value,
        )


class DropEntryInfo(ItemInfo):
    """Catalog item with its drop weight"""

    chance: float

    @classmethod
    def from_entry(cls, entry: DropEntry) -> "DropEntryInfo":
        return cls(**ItemInfo.from_core(entry.item).model_dump(), chance=entry.chance)


class CaseInfo(BaseModel):
    """Case with its drop table"""

    id: int
    name: str
    price: int
    image: str
    description: Optional[str] = None
    items: list[DropEntryInfo] = []

    @classmethod
    def from_core(cls, case: Case) -> "CaseInfo":
        return cls(
            id=case.id,
            name=case.name,
            price=case.price,
            image=case.image,
            description=case.description,
            items=[DropEntryInfo.from_entry(e) for e in case.entries],
        )


# === Ledger ===


class ProfileInfo(BaseModel):
    user_id: str
    balance: int
    total_opened: int
    best_drop: int

    @classmethod
    def from_core(cls, profile: Profile) -> "ProfileInfo":
        return cls(
            user_id=profile.user_id,
            balance=profile.balance,
            total_opened=profile.total_opened,
            best_drop=profile.best_drop,
        )


class InventoryRecordInfo(BaseModel):
    id: int
    user_id: str
    item_id: int
    is_sold: bool
    acquired_at: Optional[datetime] = None

    @classmethod
    def from_core(cls, record: InventoryRecord) -> "InventoryRecordInfo":
        return cls(
            id=record.id,
            user_id=record.user_id,
            item_id=record.item_id,
            is_sold=record.is_sold,
            acquired_at=record.acquired_at,
        )


class InventoryItemInfo(InventoryRecordInfo):
    """Inventory record joined to its item"""

    item: ItemInfo

    @classmethod
    def from_entry(cls, entry: InventoryEntry) -> "InventoryItemInfo":
        return cls(
            **InventoryRecordInfo.from_core(entry.record).model_dump(),
            item=ItemInfo.from_core(entry.item),
        )


# === Operation responses ===


class OpenCaseResponse(BaseModel):
    item: ItemInfo
    user_item: InventoryRecordInfo
    balance: int
    profile: ProfileInfo


class SellResponse(BaseModel):
    balance: int
    sold_amount: int


class SellAllResponse(BaseModel):
    balance: int
    sold_count: int
    total_amount: int


class ErrorDetail(BaseModel):
    error: str
    message: str


class ErrorResponse(BaseModel):
    """Error response: `{"detail": {"error": code, "message": text}}`"""

    detail: ErrorDetail
