"""Catalog Service: item/case definitions and drop tables

Catalog rows are immutable once written; the only writes are inserts.
"""

from __future__ import annotations

import json
import math
from pathlib import Path

from lootcase.core.errors import CatalogError
from lootcase.core.logging import get_logger
from lootcase.core.models import Case, Item, Rarity
from lootcase.db.ledger import LedgerStore

logger = get_logger(__name__)


def _parse_rarity(value: str | Rarity) -> Rarity:
    try:
        return Rarity(value)
    except ValueError as e:
        raise CatalogError(f"Unknown rarity: {value!r}") from e


def _check_price(price: int, what: str) -> int:
    if isinstance(price, bool) or not isinstance(price, int) or price < 0:
        raise CatalogError(f"{what} price must be a non-negative integer: {price!r}")
    return price


def _check_chance(chance: float) -> float:
    try:
        chance = float(chance)
    except (TypeError, ValueError) as e:
        raise CatalogError(f"Chance must be a number: {chance!r}") from e
    if not math.isfinite(chance) or chance < 0:
        raise CatalogError(f"Chance must be a non-negative number: {chance!r}")
    return chance


class CatalogService:
    """Catalog CRUD used by admin tooling and the read API."""

    def __init__(self, store: LedgerStore):
        self._store = store

    # === Reads ===

    def list_cases(self) -> list[Case]:
        return self._store.run("list_cases", lambda tx: tx.list_cases())

    def get_case(self, case_id: int) -> Case:
        """Case with its drop table. Raises CaseNotFound."""
        return self._store.run("get_case", lambda tx: tx.get_case(case_id))

    # === Writes ===

    def create_item(
        self, name: str, price: int, rarity: str | Rarity, image: str = ""
    ) -> Item:
        name = (name or "").strip()
        if not name:
            raise CatalogError("Item name required")
        price = _check_price(price, "Item")
        parsed = _parse_rarity(rarity)
        item = self._store.run(
            "create_item", lambda tx: tx.insert_item(name, price, parsed, image)
        )
        logger.debug("Created item %d %r (price=%d)", item.id, item.name, item.price)
        return item

    def create_case(
        self,
        name: str,
        price: int,
        image: str = "",
        description: str | None = None,
    ) -> Case:
        name = (name or "").strip()
        if not name:
            raise CatalogError("Case name required")
        price = _check_price(price, "Case")
        case = self._store.run(
            "create_case",
            lambda tx: tx.insert_case(name, price, image, description),
        )
        logger.debug("Created case %d %r (price=%d)", case.id, case.name, case.price)
        return case

    def add_entry(self, case_id: int, item_id: int, chance: float) -> Case:
        """Append a drop table row. Returns the case with its updated table."""
        chance = _check_chance(chance)

        def _add(tx):
            tx.insert_case_entry(case_id, item_id, chance)
            return tx.get_case(case_id)

        return self._store.run("add_entry", _add)

    # === Import ===

    def load_from_json(self, path: str | Path) -> int:
        """Import a catalog file into an empty catalog. Returns cases created.

        Format::

            {"items": [{"key": "ak", "name": "...", "price": 1200,
                        "rarity": "epic", "image": "..."}],
             "cases": [{"name": "...", "price": 100, "image": "...",
                        "description": "...",
                        "entries": [{"item": "ak", "chance": 40}]}]}

        The import runs in a single transaction; any bad row aborts it.
        """
        path = Path(path)
        with path.open("r", encoding="utf-8") as f:
            raw = json.load(f)

        raw_items: list[dict] = raw.get("items", [])
        raw_cases: list[dict] = raw.get("cases", [])

        def _import(tx) -> int:
            if tx.count_cases() > 0:
                logger.info("Catalog not empty, skipping import from %s", path)
                return 0

            items_by_key: dict[str, Item] = {}
            for raw_item in raw_items:
                try:
                    key = str(raw_item.get("key", raw_item["name"]))
                    name = str(raw_item["name"]).strip()
                except KeyError as e:
                    raise CatalogError(f"Item missing field {e}") from e
                if not name:
                    raise CatalogError("Item name required")
                items_by_key[key] = tx.insert_item(
                    name,
                    _check_price(raw_item.get("price"), "Item"),
                    _parse_rarity(raw_item.get("rarity", "")),
                    raw_item.get("image", ""),
                )

            for raw_case in raw_cases:
                case_name = str(raw_case.get("name", "")).strip()
                if not case_name:
                    raise CatalogError("Case name required")
                case = tx.insert_case(
                    case_name,
                    _check_price(raw_case.get("price"), "Case"),
                    raw_case.get("image", ""),
                    raw_case.get("description"),
                )
                for raw_entry in raw_case.get("entries", []):
                    item = items_by_key.get(str(raw_entry.get("item")))
                    if item is None:
                        raise CatalogError(
                            f"Case {case.name!r} references unknown item "
                            f"{raw_entry.get('item')!r}"
                        )
                    tx.insert_case_entry(
                        case.id, item.id, _check_chance(raw_entry.get("chance", 0))
                    )
            return len(raw_cases)

        created = self._store.run("load_catalog", _import)
        if created:
            logger.info(
                "Imported %d items and %d cases from %s",
                len(raw_items),
                created,
                path,
            )
        return created
