from __future__ import annotations

import copy
from datetime import date, timedelta
from typing import Any, Dict, List, Optional, Tuple

from backend.app.domain.contracts import RemoteEntityType
from backend.app.integrations.base import (
    RemoteAccount,
    RemoteConflictError,
    RemoteEntity,
    RemoteNotFoundError,
    RemoteTransaction,
)
from backend.app.integrations.utils import entity_from_payload, transaction_from_payload


DEMO_ACCOUNTS: List[RemoteAccount] = [
    RemoteAccount(id="1", name="Business Checking", account_type="Bank"),
    RemoteAccount(id="2", name="Business Savings", account_type="Bank"),
    RemoteAccount(id="10", name="Business Operating Expenses", account_type="Expense"),
    RemoteAccount(id="11", name="Rent & Lease", account_type="Expense"),
    RemoteAccount(id="12", name="Utilities", account_type="Expense"),
    RemoteAccount(id="13", name="Insurance", account_type="Expense"),
    RemoteAccount(id="14", name="Payroll", account_type="Expense"),
    RemoteAccount(id="15", name="Supplies", account_type="Expense"),
    RemoteAccount(id="16", name="Professional Fees", account_type="Expense"),
    RemoteAccount(id="17", name="Marketing & Advertising", account_type="Expense"),
    RemoteAccount(id="18", name="Equipment & Maintenance", account_type="Expense"),
    RemoteAccount(id="19", name="Continuing Education", account_type="Expense"),
    RemoteAccount(id="20", name="Owner Draw", account_type="Equity"),
    RemoteAccount(id="21", name="Personal Expenses", account_type="Expense"),
    RemoteAccount(id="30", name="Uncategorized Expenses", account_type="Expense"),
    RemoteAccount(id="40", name="Revenue - Services", account_type="Income"),
    RemoteAccount(id="41", name="Revenue - Products", account_type="Income"),
]


def _demo_entities(today: Optional[date] = None) -> List[Tuple[RemoteEntityType, Dict[str, Any]]]:
    # Dated relative to today so a default sync window always picks them up.
    today = today or date.today()

    def ago(days: int) -> str:
        return (today - timedelta(days=days)).isoformat()

    return [
        (RemoteEntityType.PURCHASE, {
            "Id": "demo-101", "SyncToken": "0", "TxnDate": ago(40), "TotalAmt": 1842.50,
            "PaymentType": "CreditCard",
            "EntityRef": {"value": "501", "name": "Henry Schein Inc #4432"},
            "AccountRef": {"value": "30", "name": "Uncategorized Expenses"},
            "Line": [{"Description": "Composite resin, gloves"}],
        }),
        (RemoteEntityType.PURCHASE, {
            "Id": "demo-102", "SyncToken": "0", "TxnDate": ago(38), "TotalAmt": 64.99,
            "PaymentType": "CreditCard",
            "EntityRef": {"value": "502", "name": "Amazon.com"},
            "AccountRef": {"value": "30", "name": "Uncategorized Expenses"},
        }),
        (RemoteEntityType.PURCHASE, {
            "Id": "demo-103", "SyncToken": "0", "TxnDate": ago(35), "TotalAmt": 15.49,
            "PaymentType": "CreditCard",
            "EntityRef": {"value": "503", "name": "Netflix"},
            "AccountRef": {"value": "30", "name": "Uncategorized Expenses"},
        }),
        (RemoteEntityType.PURCHASE, {
            "Id": "demo-104", "SyncToken": "0", "TxnDate": ago(33), "TotalAmt": 612.00,
            "PaymentType": "Check",
            "EntityRef": {"value": "504", "name": "Burbank Dental Lab"},
            "AccountRef": {"value": "30", "name": "Uncategorized Expenses"},
            "PrivateNote": "Crown case 2231",
        }),
        (RemoteEntityType.PURCHASE, {
            "Id": "demo-105", "SyncToken": "0", "TxnDate": ago(31), "TotalAmt": 9800.00,
            "PaymentType": "Cash",
            "EntityRef": {"value": "505", "name": "Gusto"},
            "AccountRef": {"value": "14", "name": "Payroll"},
        }),
        (RemoteEntityType.DEPOSIT, {
            "Id": "demo-201", "SyncToken": "0", "TxnDate": ago(28), "TotalAmt": 12500.00,
            "DepositToAccountRef": {"value": "1", "name": "Business Checking"},
            "Line": [{"Description": "Patient collections", "Amount": 12500.00}],
        }),
        (RemoteEntityType.TRANSFER, {
            "Id": "demo-301", "SyncToken": "0", "TxnDate": ago(23), "Amount": 2000.00,
            "FromAccountRef": {"value": "1", "name": "Business Checking"},
            "ToAccountRef": {"value": "2", "name": "Business Savings"},
        }),
    ]


class QboStubAdapter:
    """
    In-memory QBO company used in demo mode and tests.
    Entities keep a SyncToken that increments on every successful update, and a
    stale token is rejected the way QBO rejects it (code 5010).
    """

    provider = "qbo"

    def __init__(self, *, auto_create: bool = True):
        # Unknown ids are materialized on first read so locally seeded data works in demo mode.
        self.auto_create = auto_create
        self.entities: Dict[Tuple[RemoteEntityType, str], Dict[str, Any]] = {}
        self.reset()

    def reset(self, *, today: Optional[date] = None) -> None:
        self.entities = {
            (entity_type, payload["Id"]): payload
            for entity_type, payload in _demo_entities(today)
        }

    def close(self) -> None:
        # Shared process-wide in demo mode; its state outlives any one request.
        pass

    def _get(self, entity_type: RemoteEntityType, entity_id: str) -> Dict[str, Any]:
        key = (entity_type, str(entity_id))
        payload = self.entities.get(key)
        if payload is None:
            if not self.auto_create:
                raise RemoteNotFoundError(
                    f"Object Not Found: {entity_type.value} {entity_id}",
                    status_code=400,
                    code="610",
                )
            payload = {"Id": str(entity_id), "SyncToken": "0"}
            self.entities[key] = payload
        return payload

    def read_entity(self, entity_type: RemoteEntityType, entity_id: str) -> RemoteEntity:
        return entity_from_payload(entity_type, copy.deepcopy(self._get(entity_type, entity_id)))

    def sparse_update(
        self,
        entity_type: RemoteEntityType,
        entity_id: str,
        *,
        sync_token: str,
        changes: Dict[str, Any],
    ) -> RemoteEntity:
        payload = self._get(entity_type, entity_id)
        if str(sync_token) != str(payload.get("SyncToken", "0")):
            raise RemoteConflictError(
                f"Stale Object Error: {entity_type.value} {entity_id} was modified by another writer",
                status_code=400,
                code="5010",
            )
        payload.update(copy.deepcopy(changes))
        payload["SyncToken"] = str(int(payload.get("SyncToken", "0")) + 1)
        return entity_from_payload(entity_type, copy.deepcopy(payload))

    def fetch_transactions(self, *, since: Optional[date]) -> List[RemoteTransaction]:
        results: List[RemoteTransaction] = []
        for (entity_type, _), payload in self.entities.items():
            txn = transaction_from_payload(entity_type, copy.deepcopy(payload))
            if txn is None:
                continue
            if since and txn.date < since:
                continue
            results.append(txn)
        return results

    def list_accounts(self) -> List[RemoteAccount]:
        return list(DEMO_ACCOUNTS)
