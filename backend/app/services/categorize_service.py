from __future__ import annotations

import logging
from typing import Any, Dict, Iterable, List, Optional, Sequence

from fastapi import HTTPException
from sqlalchemy import and_, exists, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from backend.app.api.config import account_fallback_policy
from backend.app.api.deps import require_practice
from backend.app.categorization.account_mapping import with_account_fallback
from backend.app.categorization.rules_engine import categorize_transaction, parse_amount_range
from backend.app.categorization.types import RuleSpec, TransactionInput
from backend.app.domain.contracts import CATEGORIES, MATCH_TYPES
from backend.app.industries.types import IndustryConfig
from backend.app.models import Categorization, Transaction, UserRule
from backend.app.services import audit_service
from backend.app.services.industry_config_service import resolve_config


logger = logging.getLogger(__name__)

MANUAL_BATCH_MAX = 200


# -------------------------
# Lookups
# -------------------------

def require_transaction(db: Session, practice_id: str, txn_id: str) -> Transaction:
    txn = db.execute(
        select(Transaction).where(
            and_(Transaction.practice_id == practice_id, Transaction.id == txn_id)
        )
    ).scalar_one_or_none()
    if not txn:
        raise HTTPException(404, "transaction not found")
    return txn


def latest_categorization(db: Session, txn_id: str) -> Optional[Categorization]:
    """Latest created_at wins; equal timestamps resolve to the later insert (higher id)."""
    return (
        db.execute(
            select(Categorization)
            .where(Categorization.transaction_id == txn_id)
            .order_by(Categorization.created_at.desc(), Categorization.id.desc())
            .limit(1)
        )
        .scalars()
        .first()
    )


def latest_categorizations(db: Session, txn_ids: Iterable[str]) -> Dict[str, Categorization]:
    ids = list(dict.fromkeys(txn_ids))
    if not ids:
        return {}
    rows = (
        db.execute(
            select(Categorization)
            .where(Categorization.transaction_id.in_(ids))
            .order_by(Categorization.created_at.asc(), Categorization.id.asc())
        )
        .scalars()
        .all()
    )
    latest: Dict[str, Categorization] = {}
    for row in rows:
        latest[row.transaction_id] = row
    return latest


def categorization_history(db: Session, practice_id: str, txn_id: str) -> List[Categorization]:
    require_practice(db, practice_id)
    require_transaction(db, practice_id, txn_id)
    return (
        db.execute(
            select(Categorization)
            .where(Categorization.transaction_id == txn_id)
            .order_by(Categorization.created_at.desc(), Categorization.id.desc())
        )
        .scalars()
        .all()
    )


def uncategorized_transactions(db: Session, practice_id: str) -> List[Transaction]:
    has_any = exists().where(Categorization.transaction_id == Transaction.id)
    return (
        db.execute(
            select(Transaction)
            .where(Transaction.practice_id == practice_id, ~has_any)
            .order_by(Transaction.date.asc(), Transaction.id.asc())
        )
        .scalars()
        .all()
    )


def transaction_input(txn: Transaction) -> TransactionInput:
    return TransactionInput(
        vendor_name=txn.vendor_name,
        description=txn.description,
        amount=txn.amount,
        account_ref=txn.account_ref,
    )


# -------------------------
# User rules
# -------------------------

def list_user_rules(db: Session, practice_id: str) -> List[UserRule]:
    require_practice(db, practice_id)
    return (
        db.execute(
            select(UserRule)
            .where(UserRule.practice_id == practice_id)
            .order_by(UserRule.priority.asc(), UserRule.created_at.asc(), UserRule.id.asc())
        )
        .scalars()
        .all()
    )


def snapshot_rules(rules: Sequence[UserRule]) -> List[RuleSpec]:
    return [
        RuleSpec(
            id=r.id,
            match_type=r.match_type,
            match_value=r.match_value,
            category=r.category,
            priority=r.priority or 0,
        )
        for r in rules
    ]


def _validate_rule_fields(match_type: str, match_value: str, category: str) -> None:
    if match_type not in MATCH_TYPES:
        raise ValueError(f"match_type must be one of {', '.join(MATCH_TYPES)}")
    if category not in CATEGORIES:
        raise ValueError(f"category must be one of {', '.join(CATEGORIES)}")
    if not (match_value or "").strip():
        raise ValueError("match_value is required")
    if match_type == "amount_range" and parse_amount_range(match_value) is None:
        raise ValueError("amount_range match_value must look like 'min-max' with 0 <= min <= max")


def create_user_rule(
    db: Session,
    practice_id: str,
    *,
    match_type: str,
    match_value: str,
    category: str,
    priority: int = 0,
    actor_id: Optional[str] = None,
) -> UserRule:
    require_practice(db, practice_id)
    _validate_rule_fields(match_type, match_value, category)

    rule = UserRule(
        practice_id=practice_id,
        match_type=match_type,
        match_value=match_value.strip(),
        category=category,
        priority=priority,
    )
    db.add(rule)
    db.flush()
    audit_service.log_audit_event(
        db,
        practice_id=practice_id,
        actor_id=actor_id,
        action="create_rule",
        entity_type="user_rule",
        entity_id=rule.id,
        new_value=_rule_state(rule),
    )
    db.commit()
    db.refresh(rule)
    return rule


def _rule_state(rule: UserRule) -> Dict[str, Any]:
    return {
        "match_type": rule.match_type,
        "match_value": rule.match_value,
        "category": rule.category,
        "priority": rule.priority,
    }


def _require_rule(db: Session, practice_id: str, rule_id: str) -> UserRule:
    rule = db.execute(
        select(UserRule).where(and_(UserRule.practice_id == practice_id, UserRule.id == rule_id))
    ).scalar_one_or_none()
    if not rule:
        raise HTTPException(404, "rule not found")
    return rule


def update_user_rule(
    db: Session,
    practice_id: str,
    rule_id: str,
    *,
    match_type: Optional[str] = None,
    match_value: Optional[str] = None,
    category: Optional[str] = None,
    priority: Optional[int] = None,
    actor_id: Optional[str] = None,
) -> UserRule:
    require_practice(db, practice_id)
    rule = _require_rule(db, practice_id, rule_id)
    before = _rule_state(rule)

    new_type = match_type if match_type is not None else rule.match_type
    new_value = match_value if match_value is not None else rule.match_value
    new_category = category if category is not None else rule.category
    _validate_rule_fields(new_type, new_value, new_category)

    rule.match_type = new_type
    rule.match_value = new_value.strip()
    rule.category = new_category
    if priority is not None:
        rule.priority = priority
    db.add(rule)
    db.flush()

    audit_service.log_audit_event(
        db,
        practice_id=practice_id,
        actor_id=actor_id,
        action="update_rule",
        entity_type="user_rule",
        entity_id=rule.id,
        old_value=before,
        new_value=_rule_state(rule),
    )
    db.commit()
    db.refresh(rule)
    return rule


def delete_user_rule(
    db: Session,
    practice_id: str,
    rule_id: str,
    *,
    actor_id: Optional[str] = None,
) -> None:
    # Existing categorizations keep their rule_id; history is not rewritten.
    require_practice(db, practice_id)
    rule = _require_rule(db, practice_id, rule_id)
    before = _rule_state(rule)
    db.delete(rule)
    audit_service.log_audit_event(
        db,
        practice_id=practice_id,
        actor_id=actor_id,
        action="delete_rule",
        entity_type="user_rule",
        entity_id=rule_id,
        old_value=before,
    )
    db.commit()


# -------------------------
# Batch categorization (rule tier)
# -------------------------

def run_batch_categorization(
    db: Session,
    practice_id: str,
    *,
    config: Optional[IndustryConfig] = None,
    user_rules: Optional[Sequence[RuleSpec]] = None,
    fallback_policy: Optional[str] = None,
    actor_id: Optional[str] = None,
) -> Dict[str, int]:
    """
    Categorize every transaction of the practice that has no categorization row yet.

    Config, rules and fallback policy are read once up front (or supplied by the
    caller) and stay fixed for the whole run. Each insert runs in its own
    savepoint so one bad row is counted as failed without losing the others.
    """
    require_practice(db, practice_id)
    if config is None:
        config = resolve_config(db, practice_id)
    if user_rules is None:
        user_rules = snapshot_rules(list_user_rules(db, practice_id))
    if fallback_policy is None:
        fallback_policy = account_fallback_policy()

    categorized = 0
    uncategorized = 0
    failed = 0
    fallback_applied = 0

    for txn in uncategorized_transactions(db, practice_id):
        engine_result = categorize_transaction(transaction_input(txn), user_rules, config)
        result = with_account_fallback(engine_result, txn.account_ref, config, policy=fallback_policy)
        if result is None:
            uncategorized += 1
            continue

        try:
            with db.begin_nested():
                db.add(
                    Categorization(
                        transaction_id=txn.id,
                        category=result.category,
                        confidence=result.confidence,
                        source="rule",
                        rule_id=result.rule_id,
                        reasoning=result.reasoning,
                    )
                )
                db.flush()
        except SQLAlchemyError as exc:
            failed += 1
            logger.warning(
                "categorization insert failed practice_id=%s txn_id=%s: %s",
                practice_id,
                txn.id,
                exc,
            )
            continue

        categorized += 1
        if engine_result is None:
            fallback_applied += 1

    summary = {
        "categorized": categorized,
        "uncategorized": uncategorized,
        "failed": failed,
        "fallback_applied": fallback_applied,
    }
    audit_service.log_audit_event(
        db,
        practice_id=practice_id,
        actor_id=actor_id,
        action="categorize_batch_run",
        entity_type="practice",
        entity_id=practice_id,
        new_value={**summary, "industry": config.slug, "fallback_policy": fallback_policy},
    )
    db.commit()
    logger.info(
        "batch categorization practice_id=%s categorized=%s uncategorized=%s failed=%s",
        practice_id,
        categorized,
        uncategorized,
        failed,
    )
    return summary


# -------------------------
# Manual categorization (source=user)
# -------------------------

def _require_category(category: str) -> None:
    if category not in CATEGORIES:
        raise ValueError(f"category must be one of {', '.join(CATEGORIES)}")


def categorize_manually(
    db: Session,
    practice_id: str,
    txn_id: str,
    *,
    category: str,
    confidence: int = 100,
    actor_id: Optional[str] = None,
) -> Categorization:
    require_practice(db, practice_id)
    _require_category(category)
    if not 0 <= confidence <= 100:
        raise ValueError("confidence must be between 0 and 100")
    txn = require_transaction(db, practice_id, txn_id)

    previous = latest_categorization(db, txn.id)
    row = Categorization(
        transaction_id=txn.id,
        category=category,
        confidence=confidence,
        source="user",
        reasoning=f"Manually categorized as {category} by user",
    )
    db.add(row)
    db.flush()

    audit_service.log_audit_event(
        db,
        practice_id=practice_id,
        actor_id=actor_id,
        action="categorize",
        entity_type="transaction",
        entity_id=txn.id,
        old_value=(
            {"category": previous.category, "confidence": previous.confidence, "source": previous.source}
            if previous
            else None
        ),
        new_value={"category": category, "confidence": confidence, "source": "user"},
    )
    db.commit()
    db.refresh(row)
    return row


def categorize_batch_manually(
    db: Session,
    practice_id: str,
    txn_ids: Sequence[str],
    *,
    category: str,
    actor_id: Optional[str] = None,
) -> Dict[str, Any]:
    """All-or-nothing: every id must belong to the practice or nothing is written."""
    require_practice(db, practice_id)
    _require_category(category)
    ids = list(dict.fromkeys(txn_ids))
    if not ids:
        raise ValueError("transaction_ids must not be empty")
    if len(ids) > MANUAL_BATCH_MAX:
        raise ValueError(f"at most {MANUAL_BATCH_MAX} transactions per batch")

    found = set(
        db.execute(
            select(Transaction.id).where(
                Transaction.practice_id == practice_id,
                Transaction.id.in_(ids),
            )
        )
        .scalars()
        .all()
    )
    missing = [txn_id for txn_id in ids if txn_id not in found]
    if missing:
        raise ValueError(f"unknown transaction ids: {', '.join(missing[:10])}")

    for txn_id in ids:
        db.add(
            Categorization(
                transaction_id=txn_id,
                category=category,
                confidence=100,
                source="user",
                reasoning=f"Batch categorized as {category} by user",
            )
        )
    db.flush()

    audit_service.log_audit_event(
        db,
        practice_id=practice_id,
        actor_id=actor_id,
        action="batch_categorize",
        entity_type="transaction",
        new_value={"category": category, "count": len(ids), "transaction_ids": ids},
    )
    db.commit()
    return {"categorized": len(ids), "category": category}
