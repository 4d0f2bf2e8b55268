from __future__ import annotations

from typing import Optional

from backend.app.api.config import qbo_demo_mode
from backend.app.integrations.base import (
    AccountingClient,
    ProviderName,
    RemoteAccount,
    RemoteAccountingError,
    RemoteAuthError,
    RemoteConflictError,
    RemoteEntity,
    RemoteNotFoundError,
    RemoteRejectedError,
    RemoteTransaction,
    RemoteTransportError,
)
from backend.app.integrations.qbo import QboAdapter, QboClient
from backend.app.integrations.qbo_stub import QboStubAdapter


QBO_STUB_ADAPTER = QboStubAdapter()


def get_accounting_client(
    *,
    realm_id: Optional[str],
    access_token: Optional[str],
) -> AccountingClient:
    """
    Demo mode -> shared in-memory stub.
    Otherwise a live QBO adapter; callers must have checked the connection first.
    """
    if qbo_demo_mode():
        return QBO_STUB_ADAPTER
    if not realm_id or not access_token:
        raise ValueError("remote connection is missing realm_id or access_token")
    return QboAdapter(client=QboClient(realm_id=realm_id, access_token=access_token))


__all__ = [
    "AccountingClient",
    "ProviderName",
    "QBO_STUB_ADAPTER",
    "RemoteAccount",
    "RemoteAccountingError",
    "RemoteAuthError",
    "RemoteConflictError",
    "RemoteEntity",
    "RemoteNotFoundError",
    "RemoteRejectedError",
    "RemoteTransaction",
    "RemoteTransportError",
    "get_accounting_client",
]
