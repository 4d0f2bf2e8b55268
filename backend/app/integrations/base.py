from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from typing import Any, Dict, List, Optional, Protocol

from backend.app.domain.contracts import RemoteEntityType


ProviderName = str


class RemoteAccountingError(Exception):
    """Base for failures reported by (or while talking to) the remote accounting system."""

    def __init__(self, message: str, *, status_code: Optional[int] = None, code: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.code = code


class RemoteAuthError(RemoteAccountingError):
    """Token expired or revoked. Systemic: every later call will fail too."""


class RemoteConflictError(RemoteAccountingError):
    """Stale SyncToken: someone else wrote the entity since we read it."""


class RemoteRejectedError(RemoteAccountingError):
    """Validation or business-rule rejection of a write."""


class RemoteNotFoundError(RemoteAccountingError):
    pass


class RemoteTransportError(RemoteAccountingError):
    """Network failure, timeout or remote 5xx."""


@dataclass(frozen=True)
class RemoteEntity:
    entity_type: RemoteEntityType
    id: str
    sync_token: str
    account_ref_id: Optional[str] = None
    account_ref_name: Optional[str] = None
    raw: Dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class RemoteTransaction:
    """A remote transaction flattened into the fields the local store keeps."""

    entity_type: RemoteEntityType
    remote_txn_id: str
    date: date
    amount: Any
    vendor_name: Optional[str]
    description: Optional[str]
    account_ref: Optional[str]
    raw: Dict[str, Any]


@dataclass(frozen=True)
class RemoteAccount:
    id: str
    name: str
    account_type: Optional[str] = None
    sub_type: Optional[str] = None


class AccountingClient(Protocol):
    provider: ProviderName

    def read_entity(self, entity_type: RemoteEntityType, entity_id: str) -> RemoteEntity:
        ...

    def sparse_update(
        self,
        entity_type: RemoteEntityType,
        entity_id: str,
        *,
        sync_token: str,
        changes: Dict[str, Any],
    ) -> RemoteEntity:
        ...

    def fetch_transactions(self, *, since: Optional[date]) -> List[RemoteTransaction]:
        ...

    def list_accounts(self) -> List[RemoteAccount]:
        ...

    def close(self) -> None:
        ...
