"""Ledger core: pure Python, DB-agnostic"""

from lootcase.core.drop_table import roll, select_entry, select_item, validate_entries
from lootcase.core.errors import (
    BusinessError,
    CaseNotFound,
    CatalogError,
    ConflictError,
    InsufficientFunds,
    InvalidDropTable,
    ItemNotFound,
    LootcaseError,
    NotFound,
    StoreError,
)
from lootcase.core.models import (
    Case,
    DropEntry,
    InventoryEntry,
    InventoryRecord,
    Item,
    OpenResult,
    Profile,
    Rarity,
    SellAllResult,
    SellResult,
)

__all__ = [
    "roll",
    "select_entry",
    "select_item",
    "validate_entries",
    "BusinessError",
    "CaseNotFound",
    "CatalogError",
    "ConflictError",
    "InsufficientFunds",
    "InvalidDropTable",
    "ItemNotFound",
    "LootcaseError",
    "NotFound",
    "StoreError",
    "Case",
    "DropEntry",
    "InventoryEntry",
    "InventoryRecord",
    "Item",
    "OpenResult",
    "Profile",
    "Rarity",
    "SellAllResult",
    "SellResult",
]
