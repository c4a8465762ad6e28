"""SQLAlchemy declarative models for the ledger and the catalog."""

from datetime import datetime, timezone

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    DateTime,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Base(DeclarativeBase):
    """Base class for all database models."""


# ── Catalog (read-mostly) ──────────────────────────────────


class ItemModel(Base):
    """ORM model for catalog items."""

    __tablename__ = "items"
    __table_args__ = (CheckConstraint("price >= 0", name="ck_items_price"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String, nullable=False)
    price: Mapped[int] = mapped_column(Integer, nullable=False)
    image: Mapped[str] = mapped_column(String, nullable=False, default="")
    rarity: Mapped[str] = mapped_column(String, nullable=False)


class CaseModel(Base):
    """ORM model for cases."""

    __tablename__ = "cases"
    __table_args__ = (CheckConstraint("price >= 0", name="ck_cases_price"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String, nullable=False)
    price: Mapped[int] = mapped_column(Integer, nullable=False)
    image: Mapped[str] = mapped_column(String, nullable=False, default="")
    description: Mapped[str | None] = mapped_column(Text, nullable=True)

    # Drop table order is the join's natural row order
    entries: Mapped[list["CaseItemModel"]] = relationship(
        "CaseItemModel",
        back_populates="case",
        order_by="CaseItemModel.id",
        cascade="all, delete-orphan",
    )


class CaseItemModel(Base):
    """ORM model for drop table rows (case ↔ item with a weight)."""

    __tablename__ = "case_items"
    __table_args__ = (
        CheckConstraint("chance >= 0", name="ck_case_items_chance"),
        Index("ix_case_items_case_id", "case_id"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    case_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("cases.id", ondelete="CASCADE"), nullable=False
    )
    item_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("items.id"), nullable=False
    )
    chance: Mapped[float] = mapped_column(Float, nullable=False)

    case: Mapped["CaseModel"] = relationship("CaseModel", back_populates="entries")
    item: Mapped["ItemModel"] = relationship("ItemModel", lazy="joined")


# ── Ledger (per user) ──────────────────────────────────────


class ProfileModel(Base):
    """ORM model for user profiles. `version` is bumped on every write."""

    __tablename__ = "profiles"
    __table_args__ = (
        CheckConstraint("balance >= 0", name="ck_profiles_balance"),
        CheckConstraint("total_opened >= 0", name="ck_profiles_total_opened"),
    )

    user_id: Mapped[str] = mapped_column(String, primary_key=True)
    balance: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    total_opened: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    best_drop: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    version: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=_utcnow
    )


class UserItemModel(Base):
    """ORM model for inventory records. Never deleted; sold rows stay as history."""

    __tablename__ = "user_items"
    __table_args__ = (Index("ix_user_items_user_sold", "user_id", "is_sold"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[str] = mapped_column(String, nullable=False)
    item_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("items.id"), nullable=False
    )
    is_sold: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    version: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    acquired_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=_utcnow
    )

    item: Mapped["ItemModel"] = relationship("ItemModel", lazy="joined")
