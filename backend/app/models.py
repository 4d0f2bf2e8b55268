from __future__ import annotations

import uuid
from datetime import date, datetime, timezone
from decimal import Decimal
from typing import Optional

from sqlalchemy import (
    Boolean,
    Date,
    DateTime,
    Enum,
    ForeignKey,
    Index,
    Integer,
    JSON,
    Numeric,
    String,
    Text,
    UniqueConstraint,
    text,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from backend.app.db import Base
from backend.app.domain.contracts import RemoteEntityType


# -------------------------
# Helpers
# -------------------------

def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def uuid_str() -> str:
    return str(uuid.uuid4())


# -------------------------
# Tenant
# -------------------------

class Practice(Base):
    __tablename__ = "practices"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=uuid_str)
    name: Mapped[str] = mapped_column(String(200), nullable=False)

    # Slug into the industry template registry (dental, chiropractic, ...).
    industry: Mapped[Optional[str]] = mapped_column(
        String(80),
        nullable=True,
        default="dental",
        server_default=text("'dental'"),
    )
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, nullable=False)

    transactions = relationship(
        "Transaction",
        back_populates="practice",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
    user_rules = relationship(
        "UserRule",
        back_populates="practice",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
    account_mappings = relationship(
        "AccountMapping",
        back_populates="practice",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
    remote_connection = relationship(
        "RemoteConnection",
        back_populates="practice",
        uselist=False,
        cascade="all, delete-orphan",
        passive_deletes=True,
    )


class RemoteConnection(Base):
    """
    Link between a practice and its remote accounting company (QBO realm).
    Token acquisition and refresh happen elsewhere; this core only reads access_token.
    """
    __tablename__ = "remote_connections"
    __table_args__ = (
        UniqueConstraint("practice_id", name="uq_remote_connection_practice"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=uuid_str)
    practice_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("practices.id", ondelete="CASCADE"),
        nullable=False,
    )
    provider: Mapped[str] = mapped_column(String(40), nullable=False, default="qbo")
    realm_id: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    access_token: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    status: Mapped[str] = mapped_column(String(32), nullable=False, default="connected")
    last_sync_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    last_error: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        onupdate=utcnow,
    )

    practice = relationship("Practice", back_populates="remote_connection")


# -------------------------
# Transactions + categorization history
# -------------------------

class Transaction(Base):
    """
    Transaction synced from the remote accounting system.
    Written only by the sync process, except account_ref which write-back refreshes.
    """
    __tablename__ = "transactions"
    __table_args__ = (
        UniqueConstraint("practice_id", "remote_txn_id", name="uq_txn_practice_remote_id"),
        Index("ix_txn_practice_date", "practice_id", "date"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=uuid_str)
    practice_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("practices.id", ondelete="CASCADE"),
        nullable=False,
    )

    remote_txn_id: Mapped[str] = mapped_column(String(64), nullable=False)
    remote_entity_type: Mapped[RemoteEntityType] = mapped_column(
        Enum(RemoteEntityType, native_enum=False, length=20, values_callable=lambda e: [m.value for m in e]),
        nullable=False,
        default=RemoteEntityType.PURCHASE,
    )

    date: Mapped[date] = mapped_column(Date, nullable=False)
    amount: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    vendor_name: Mapped[Optional[str]] = mapped_column(String(200), nullable=True)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    account_ref: Mapped[Optional[str]] = mapped_column(String(200), nullable=True)
    raw_json: Mapped[Optional[dict]] = mapped_column(JSON, nullable=True)

    synced_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, nullable=False)

    practice = relationship("Practice", back_populates="transactions")
    categorizations = relationship(
        "Categorization",
        back_populates="transaction",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="Categorization.id",
    )


class Categorization(Base):
    """
    Append-only classification fact. Latest created_at wins (ties: highest id).
    Rows are never updated or deleted; a correction inserts a new row.
    """
    __tablename__ = "categorizations"
    __table_args__ = (
        Index("ix_cat_transaction_created", "transaction_id", "created_at"),
        Index("ix_cat_confidence", "confidence"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    transaction_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("transactions.id", ondelete="CASCADE"),
        nullable=False,
    )

    category: Mapped[str] = mapped_column(String(20), nullable=False)  # business/personal/ambiguous
    confidence: Mapped[int] = mapped_column(Integer, nullable=False)  # 0-100
    source: Mapped[str] = mapped_column(String(20), nullable=False)  # rule/model/user
    # No FK: deleting a rule must not rewrite history that references it.
    rule_id: Mapped[Optional[str]] = mapped_column(String(36), nullable=True, index=True)
    reasoning: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, nullable=False)

    transaction = relationship("Transaction", back_populates="categorizations")


class UserRule(Base):
    __tablename__ = "user_rules"
    __table_args__ = (
        Index("ix_user_rules_practice_priority", "practice_id", "priority"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=uuid_str)
    practice_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("practices.id", ondelete="CASCADE"),
        nullable=False,
    )

    match_type: Mapped[str] = mapped_column(String(20), nullable=False)  # vendor/description/amount_range
    match_value: Mapped[str] = mapped_column(String(200), nullable=False)
    category: Mapped[str] = mapped_column(String(20), nullable=False)
    priority: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, nullable=False)

    practice = relationship("Practice", back_populates="user_rules")


# -------------------------
# Configuration
# -------------------------

class IndustryConfigRecord(Base):
    """
    Stored industry configuration.
    practice_id set   -> practice-level override
    practice_id NULL  -> named template (global), looked up by industry_slug
    """
    __tablename__ = "industry_configs"
    __table_args__ = (
        Index("ix_industry_configs_practice_id", "practice_id"),
        Index("ix_industry_configs_slug", "industry_slug"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=uuid_str)
    practice_id: Mapped[Optional[str]] = mapped_column(
        String(36),
        ForeignKey("practices.id", ondelete="CASCADE"),
        nullable=True,
    )
    industry_slug: Mapped[str] = mapped_column(String(80), nullable=False)
    config_json: Mapped[dict] = mapped_column(JSON, nullable=False)
    is_custom: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=False,
        server_default=text("false"),
    )
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)


class AccountMapping(Base):
    """
    Per practice: category -> one remote account (id + display name).
    Used by write-back only.
    """
    __tablename__ = "account_mappings"
    __table_args__ = (
        UniqueConstraint("practice_id", "category", name="uq_account_mapping_practice_category"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=uuid_str)
    practice_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("practices.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    category: Mapped[str] = mapped_column(String(20), nullable=False)
    remote_account_id: Mapped[str] = mapped_column(String(64), nullable=False)
    remote_account_name: Mapped[str] = mapped_column(String(200), nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, nullable=False)

    practice = relationship("Practice", back_populates="account_mappings")


# -------------------------
# Audit
# -------------------------

class AuditLog(Base):
    """
    Append-only audit log for categorization and write-back activity.
    """
    __tablename__ = "audit_logs"
    __table_args__ = (
        Index("ix_audit_logs_practice_id", "practice_id"),
        Index("ix_audit_logs_created_at", "created_at"),
        Index("ix_audit_logs_entity", "entity_type", "entity_id"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=uuid_str)

    practice_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("practices.id", ondelete="CASCADE"),
        nullable=False,
    )

    actor_id: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    action: Mapped[str] = mapped_column(String(80), nullable=False)
    entity_type: Mapped[str] = mapped_column(String(60), nullable=False)
    entity_id: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)

    old_value: Mapped[Optional[dict]] = mapped_column(JSON, nullable=True)
    new_value: Mapped[Optional[dict]] = mapped_column(JSON, nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, nullable=False)
