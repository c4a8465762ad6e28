"""Case Service: open / sell / sell-all as atomic ledger units

Each public operation is one `LedgerStore.run` call. Nothing is cached
between calls; every attempt re-reads the rows it touches. Events are
published only after the transaction has committed.
"""

from __future__ import annotations

from lootcase.config import settings
from lootcase.core import drop_table
from lootcase.core.drop_table import UniformSource
from lootcase.core.errors import InvalidDropTable, ItemNotFound, NotFound
from lootcase.core.event_bus import EventBus, LedgerEvent
from lootcase.core.event_types import EventTypes
from lootcase.core.logging import get_logger
from lootcase.core.models import (
    InventoryEntry,
    OpenResult,
    Profile,
    SellAllResult,
    SellResult,
)
from lootcase.core.stats import apply_credit, apply_drop, apply_open
from lootcase.db.ledger import LedgerStore, LedgerTransaction

logger = get_logger(__name__)

SOURCE = "case_service"


class CaseService:
    """Transaction engine for case opening and item selling."""

    def __init__(
        self,
        store: LedgerStore,
        event_bus: EventBus,
        rng: UniformSource | None = None,
        starting_balance: int | None = None,
    ):
        self._store = store
        self._bus = event_bus
        self._rng = rng if rng is not None else drop_table.default_rng()
        self._starting_balance = (
            settings.STARTING_BALANCE if starting_balance is None else starting_balance
        )

    # === Reads ===

    def get_profile(self, user_id: str) -> Profile:
        """Profile for the user, created with the starting balance if new."""
        return self._store.run(
            "get_profile",
            lambda tx: tx.get_or_create_profile(user_id, self._starting_balance),
        )

    def get_inventory(self, user_id: str) -> list[InventoryEntry]:
        """Active (unsold) inventory."""
        return self._store.run(
            "get_inventory", lambda tx: tx.get_active_inventory(user_id)
        )

    # === Open ===

    def open_case(self, user_id: str, case_id: int) -> OpenResult:
        """Debit the case price, roll the drop table, deliver the item.

        Raises CaseNotFound, InsufficientFunds or InvalidDropTable with no
        state change.
        """
        try:
            result = self._store.run(
                "open_case", lambda tx: self._open_case(tx, user_id, case_id)
            )
        except InvalidDropTable as e:
            logger.warning("Rejected open of case %d for %s: %s", case_id, user_id, e)
            self._bus.emit(
                LedgerEvent(
                    event_type=EventTypes.DROP_TABLE_REJECTED,
                    data={"case_id": case_id, "reason": e.reason},
                    source=SOURCE,
                )
            )
            raise

        logger.info(
            "User %s opened case %d: item %d (price=%d), balance=%d",
            user_id,
            case_id,
            result.item.id,
            result.item.price,
            result.balance,
        )
        self._bus.emit(
            LedgerEvent(
                event_type=EventTypes.CASE_OPENED,
                data={
                    "user_id": user_id,
                    "case_id": case_id,
                    "item_id": result.item.id,
                    "record_id": result.record.id,
                    "item_price": result.item.price,
                    "balance": result.balance,
                },
                source=SOURCE,
            )
        )
        return result

    def _open_case(
        self, tx: LedgerTransaction, user_id: str, case_id: int
    ) -> OpenResult:
        case = tx.get_case(case_id)
        profile = tx.get_or_create_profile(user_id, self._starting_balance)

        # Funds first, then the table; neither check writes anything
        debited = apply_open(profile, case.price)
        drop_table.validate_entries(case.entries, case_id=case.id)

        winner = drop_table.roll(case.entries, self._rng)
        record = tx.insert_inventory_record(user_id, winner.id)
        updated = tx.update_profile(apply_drop(debited, winner.price))

        return OpenResult(
            item=winner, record=record, balance=updated.balance, profile=updated
        )

    # === Sell ===

    def sell_item(self, user_id: str, record_id: int) -> SellResult:
        """Retire one unsold record owned by the user and credit its price."""
        result = self._store.run(
            "sell_item", lambda tx: self._sell_item(tx, user_id, record_id)
        )
        logger.info(
            "User %s sold record %d for %d, balance=%d",
            user_id,
            record_id,
            result.sold_amount,
            result.balance,
        )
        self._bus.emit(
            LedgerEvent(
                event_type=EventTypes.ITEM_SOLD,
                data={
                    "user_id": user_id,
                    "record_id": record_id,
                    "amount": result.sold_amount,
                    "balance": result.balance,
                },
                source=SOURCE,
            )
        )
        return result

    def _sell_item(
        self, tx: LedgerTransaction, user_id: str, record_id: int
    ) -> SellResult:
        # Lock order: profile, then inventory rows (same as sell-all)
        profile = tx.get_or_create_profile(user_id, self._starting_balance)
        record = tx.get_inventory_record(record_id)
        if record.user_id != user_id or record.is_sold:
            raise ItemNotFound(record_id)

        try:
            item = tx.get_item(record.item_id)
        except NotFound as e:
            raise ItemNotFound(record_id) from e

        tx.mark_sold(user_id, [record.id])
        updated = tx.update_profile(apply_credit(profile, item.price))
        return SellResult(balance=updated.balance, sold_amount=item.price)

    def sell_all_items(self, user_id: str) -> SellAllResult:
        """Retire every unsold record of the user in one bulk update."""
        result = self._store.run(
            "sell_all_items", lambda tx: self._sell_all_items(tx, user_id)
        )
        if result.sold_count == 0:
            logger.debug("User %s sell-all: nothing to sell", user_id)
            return result

        logger.info(
            "User %s sold %d items for %d, balance=%d",
            user_id,
            result.sold_count,
            result.total_amount,
            result.balance,
        )
        self._bus.emit(
            LedgerEvent(
                event_type=EventTypes.INVENTORY_SOLD,
                data={
                    "user_id": user_id,
                    "record_ids": list(result.record_ids),
                    "sold_count": result.sold_count,
                    "total_amount": result.total_amount,
                    "balance": result.balance,
                },
                source=SOURCE,
            )
        )
        return result

    def _sell_all_items(self, tx: LedgerTransaction, user_id: str) -> SellAllResult:
        profile = tx.get_or_create_profile(user_id, self._starting_balance)
        active = tx.get_active_inventory(user_id)
        if not active:
            return SellAllResult(balance=profile.balance)

        total_amount = sum(entry.item.price for entry in active)
        record_ids = tuple(entry.record.id for entry in active)

        tx.mark_sold(user_id, record_ids)
        updated = tx.update_profile(apply_credit(profile, total_amount))
        return SellAllResult(
            balance=updated.balance,
            sold_count=len(record_ids),
            total_amount=total_amount,
            record_ids=record_ids,
        )
