"""Ledger Store: transactional persistence for profiles, catalog and inventory

Every engine operation runs inside one `LedgerStore.transaction()` scope:
commit on normal exit, rollback on any exception, session always closed.
Profile and inventory writes are compare-and-swap statements, so two
transactions that read the same row cannot both commit a change to it.
The loser gets a ConflictError, which `LedgerStore.run` retries.
"""

from __future__ import annotations

from collections.abc import Callable, Iterator, Sequence
from contextlib import contextmanager
from typing import TypeVar

from sqlalchemy import func, select, update
from sqlalchemy.exc import DBAPIError, IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session, selectinload, sessionmaker

from lootcase.core.errors import (
    CaseNotFound,
    ConflictError,
    ItemNotFound,
    NotFound,
    StoreError,
)
from lootcase.core.logging import get_logger
from lootcase.core.models import (
    Case,
    DropEntry,
    InventoryEntry,
    InventoryRecord,
    Item,
    Profile,
    Rarity,
)
from lootcase.db.models import (
    CaseItemModel,
    CaseModel,
    ItemModel,
    ProfileModel,
    UserItemModel,
)

logger = get_logger(__name__)

T = TypeVar("T")

# SQLSTATE serialization_failure, deadlock_detected
_RETRYABLE_SQLSTATES = frozenset({"40001", "40P01"})
_RETRYABLE_MESSAGES = ("database is locked", "deadlock", "could not serialize")


def is_transient(error: DBAPIError) -> bool:
    """Lock contention the backend expects the client to retry."""
    orig = error.orig
    sqlstate = getattr(orig, "sqlstate", None) or getattr(orig, "pgcode", None)
    if sqlstate in _RETRYABLE_SQLSTATES:
        return True
    message = str(orig).lower()
    return any(fragment in message for fragment in _RETRYABLE_MESSAGES)


class LedgerTransaction:
    """Reads and writes issued within one logical operation."""

    def __init__(self, db: Session):
        self._db = db

    # === Profile ===

    def get_profile(self, user_id: str, for_update: bool = False) -> Profile | None:
        stmt = select(ProfileModel).where(ProfileModel.user_id == user_id)
        if for_update:
            stmt = stmt.with_for_update()
        orm = self._db.execute(
            stmt.execution_options(populate_existing=True)
        ).scalar_one_or_none()
        if orm is None:
            return None
        return _profile_to_core(orm)

    def get_or_create_profile(self, user_id: str, starting_balance: int) -> Profile:
        """Row-locked read; lazy insert with the starting balance.

        A concurrent insert of the same user surfaces as ConflictError.
        """
        profile = self.get_profile(user_id, for_update=True)
        if profile is not None:
            return profile

        orm = ProfileModel(
            user_id=user_id,
            balance=starting_balance,
            total_opened=0,
            best_drop=0,
            version=1,
        )
        self._db.add(orm)
        try:
            self._db.flush()
        except IntegrityError as e:
            raise ConflictError(f"Profile {user_id} created concurrently") from e

        logger.info("Created profile %s (balance=%d)", user_id, starting_balance)
        return _profile_to_core(orm)

    def update_profile(self, profile: Profile) -> Profile:
        """Write balance/stats if the row still has `profile.version`.

        Returns the profile with its bumped version.
        """
        new_version = profile.version + 1
        result = self._db.execute(
            update(ProfileModel)
            .where(
                ProfileModel.user_id == profile.user_id,
                ProfileModel.version == profile.version,
            )
            .values(
                balance=profile.balance,
                total_opened=profile.total_opened,
                best_drop=profile.best_drop,
                version=new_version,
            )
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            raise ConflictError(
                f"Profile {profile.user_id} changed since version {profile.version}"
            )
        return Profile(
            user_id=profile.user_id,
            balance=profile.balance,
            total_opened=profile.total_opened,
            best_drop=profile.best_drop,
            version=new_version,
        )

    # === Catalog ===

    def get_item(self, item_id: int) -> Item:
        orm = self._db.get(ItemModel, item_id)
        if orm is None:
            raise NotFound(f"Item {item_id} not in catalog")
        return _item_to_core(orm)

    def get_case(self, case_id: int) -> Case:
        """Case with its drop table in catalog row order."""
        orm = self._db.execute(
            select(CaseModel)
            .where(CaseModel.id == case_id)
            .options(selectinload(CaseModel.entries))
        ).scalar_one_or_none()
        if orm is None:
            raise CaseNotFound(case_id)
        return _case_to_core(orm)

    def list_cases(self) -> list[Case]:
        rows = self._db.execute(
            select(CaseModel)
            .order_by(CaseModel.id)
            .options(selectinload(CaseModel.entries))
        ).scalars()
        return [_case_to_core(r) for r in rows]

    def count_cases(self) -> int:
        return self._db.execute(select(func.count()).select_from(CaseModel)).scalar_one()

    def insert_item(
        self, name: str, price: int, rarity: Rarity, image: str = ""
    ) -> Item:
        orm = ItemModel(name=name, price=price, rarity=rarity.value, image=image)
        self._db.add(orm)
        self._db.flush()
        return _item_to_core(orm)

    def insert_case(
        self, name: str, price: int, image: str = "", description: str | None = None
    ) -> Case:
        orm = CaseModel(name=name, price=price, image=image, description=description)
        self._db.add(orm)
        self._db.flush()
        return Case(
            id=orm.id,
            name=orm.name,
            price=orm.price,
            image=orm.image,
            description=orm.description,
        )

    def insert_case_entry(self, case_id: int, item_id: int, chance: float) -> None:
        if self._db.get(CaseModel, case_id) is None:
            raise CaseNotFound(case_id)
        if self._db.get(ItemModel, item_id) is None:
            raise NotFound(f"Item {item_id} not in catalog")
        self._db.add(CaseItemModel(case_id=case_id, item_id=item_id, chance=chance))
        self._db.flush()

    # === Inventory ===

    def get_inventory_record(self, record_id: int) -> InventoryRecord:
        orm = self._db.execute(
            select(UserItemModel)
            .where(UserItemModel.id == record_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        ).scalar_one_or_none()
        if orm is None:
            raise ItemNotFound(record_id)
        return _record_to_core(orm)

    def get_active_inventory(self, user_id: str) -> list[InventoryEntry]:
        """Unsold records joined to their items, oldest first."""
        rows = self._db.execute(
            select(UserItemModel)
            .where(UserItemModel.user_id == user_id, UserItemModel.is_sold.is_(False))
            .order_by(UserItemModel.id)
            .execution_options(populate_existing=True)
        ).scalars()
        return [
            InventoryEntry(record=_record_to_core(r), item=_item_to_core(r.item))
            for r in rows
        ]

    def insert_inventory_record(self, user_id: str, item_id: int) -> InventoryRecord:
        orm = UserItemModel(user_id=user_id, item_id=item_id, is_sold=False, version=1)
        self._db.add(orm)
        self._db.flush()
        return _record_to_core(orm)

    def mark_sold(self, user_id: str, record_ids: Sequence[int]) -> int:
        """One bulk update flipping `is_sold` on the user's unsold rows.

        Raises ConflictError when any requested row was sold in the meantime.
        """
        ids = list(dict.fromkeys(record_ids))
        if not ids:
            return 0
        result = self._db.execute(
            update(UserItemModel)
            .where(
                UserItemModel.id.in_(ids),
                UserItemModel.user_id == user_id,
                UserItemModel.is_sold.is_(False),
            )
            .values(is_sold=True, version=UserItemModel.version + 1)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != len(ids):
            raise ConflictError(
                f"Inventory of {user_id} changed: {result.rowcount}/{len(ids)} rows matched"
            )
        return result.rowcount


class LedgerStore:
    """Scoped transactions plus transparent retry on write conflicts."""

    def __init__(self, session_factory: sessionmaker, max_retries: int = 3):
        self._session_factory = session_factory
        self._max_retries = max_retries

    @contextmanager
    def transaction(self) -> Iterator[LedgerTransaction]:
        session: Session = self._session_factory()
        try:
            yield LedgerTransaction(session)
            session.commit()
        except DBAPIError as e:
            session.rollback()
            if is_transient(e):
                raise ConflictError(f"Lock contention: {e.orig}") from e
            raise StoreError(f"Ledger transaction failed: {e}") from e
        except SQLAlchemyError as e:
            session.rollback()
            raise StoreError(f"Ledger transaction failed: {e}") from e
        except Exception:
            session.rollback()
            raise
        finally:
            # close() also discards anything left uncommitted by a cancelled scope
            session.close()

    def run(self, operation: str, fn: Callable[[LedgerTransaction], T]) -> T:
        """Run `fn` in a fresh transaction, retrying on ConflictError.

        `fn` must touch nothing outside the transaction it is handed.
        """
        attempts = self._max_retries + 1
        for attempt in range(1, attempts + 1):
            try:
                with self.transaction() as tx:
                    return fn(tx)
            except ConflictError as e:
                if attempt == attempts:
                    logger.error(
                        "%s: conflict persisted after %d attempts: %s",
                        operation,
                        attempts,
                        e,
                    )
                    raise StoreError(
                        f"{operation} failed after {attempts} attempts"
                    ) from e
                logger.info(
                    "%s: conflict on attempt %d/%d, retrying (%s)",
                    operation,
                    attempt,
                    attempts,
                    e,
                )
        raise AssertionError("unreachable")


# === ORM → Core ===


def _item_to_core(orm: ItemModel) -> Item:
    return Item(
        id=orm.id,
        name=orm.name,
        price=orm.price,
        image=orm.image,
        rarity=Rarity(orm.rarity),
    )


def _case_to_core(orm: CaseModel) -> Case:
    return Case(
        id=orm.id,
        name=orm.name,
        price=orm.price,
        image=orm.image,
        description=orm.description,
        entries=tuple(
            DropEntry(item=_item_to_core(e.item), chance=e.chance) for e in orm.entries
        ),
    )


def _profile_to_core(orm: ProfileModel) -> Profile:
    return Profile(
        user_id=orm.user_id,
        balance=orm.balance,
        total_opened=orm.total_opened,
        best_drop=orm.best_drop,
        version=orm.version,
    )


def _record_to_core(orm: UserItemModel) -> InventoryRecord:
    return InventoryRecord(
        id=orm.id,
        user_id=orm.user_id,
        item_id=orm.item_id,
        is_sold=orm.is_sold,
        acquired_at=orm.acquired_at,
        version=orm.version,
    )
