from __future__ import annotations

import logging
import os
from datetime import date
from typing import Any, Dict, List, Optional

import httpx

from backend.app.domain.contracts import RemoteEntityType
from backend.app.integrations.base import (
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
from backend.app.integrations.utils import entity_from_payload, transaction_from_payload


logger = logging.getLogger(__name__)


QBO_ENV_URLS = {
    "sandbox": "https://sandbox-quickbooks.api.intuit.com",
    "production": "https://quickbooks.api.intuit.com",
}

# QBO fault codes
STALE_OBJECT_CODE = "5010"
OBJECT_NOT_FOUND_CODE = "610"

QUERY_MAX_RESULTS = 1000
ACCOUNT_QUERY_MAX_RESULTS = 500


def qbo_environment() -> str:
    return (os.getenv("QBO_ENVIRONMENT") or "sandbox").strip().lower()


def qbo_base_url() -> str:
    override = os.getenv("QBO_BASE_URL")
    if override:
        return override
    return QBO_ENV_URLS.get(qbo_environment(), QBO_ENV_URLS["sandbox"])


def _build_httpx_client(base_url: str) -> httpx.Client:
    return httpx.Client(base_url=base_url, timeout=20.0)


def _fault_details(response: httpx.Response) -> tuple[list[str], str]:
    """Pull (codes, message) out of a QBO Fault body; falls back to the raw text."""
    try:
        body = response.json()
    except ValueError:
        return [], response.text or f"HTTP {response.status_code}"

    fault = body.get("Fault") if isinstance(body, dict) else None
    errors = fault.get("Error") if isinstance(fault, dict) else None
    if not isinstance(errors, list) or not errors:
        return [], response.text or f"HTTP {response.status_code}"

    codes = [str(e.get("code")) for e in errors if isinstance(e, dict) and e.get("code") is not None]
    first = errors[0] if isinstance(errors[0], dict) else {}
    message = first.get("Message") or "QBO error"
    detail = first.get("Detail")
    if detail:
        message = f"{message}: {detail}"
    return codes, message


def raise_for_qbo_response(response: httpx.Response) -> None:
    status = response.status_code
    if status < 400:
        return

    codes, message = _fault_details(response)
    code = codes[0] if codes else None
    if status in (401, 403):
        raise RemoteAuthError(message, status_code=status, code=code)
    if STALE_OBJECT_CODE in codes:
        raise RemoteConflictError(message, status_code=status, code=STALE_OBJECT_CODE)
    if status == 404 or OBJECT_NOT_FOUND_CODE in codes:
        raise RemoteNotFoundError(message, status_code=status, code=code)
    if status < 500:
        raise RemoteRejectedError(message, status_code=status, code=code)
    raise RemoteTransportError(message, status_code=status, code=code)


class QboClient:
    """Thin HTTP wrapper scoped to one company (realm)."""

    def __init__(
        self,
        *,
        realm_id: str,
        access_token: str,
        base_url: Optional[str] = None,
        client: Optional[httpx.Client] = None,
    ):
        if not realm_id or not access_token:
            raise ValueError("realm_id and access_token are required")
        self.realm_id = realm_id
        self.access_token = access_token
        self.base_url = base_url or qbo_base_url()
        # Only a client built here is closed by close(); an injected one belongs to the caller.
        self._owns_client = client is None
        self._client = client or _build_httpx_client(self.base_url)

    def _headers(self) -> dict:
        return {
            "Authorization": f"Bearer {self.access_token}",
            "Accept": "application/json",
        }

    def _path(self, suffix: str) -> str:
        return f"/v3/company/{self.realm_id}/{suffix}"

    def get(self, suffix: str, *, params: Optional[dict] = None, retry_once: bool = True) -> dict:
        attempts = 2 if retry_once else 1
        for attempt in range(attempts):
            try:
                response = self._client.get(self._path(suffix), params=params, headers=self._headers())
            except httpx.TransportError as exc:
                if attempt + 1 < attempts:
                    logger.warning("qbo GET %s transport error, retrying: %s", suffix, exc)
                    continue
                raise RemoteTransportError(str(exc) or exc.__class__.__name__) from exc
            raise_for_qbo_response(response)
            return response.json()
        raise RemoteTransportError("unreachable")  # pragma: no cover

    def post(self, suffix: str, payload: dict, *, params: Optional[dict] = None) -> dict:
        # Writes are never retried: a lost response may still have been applied remotely.
        try:
            response = self._client.post(
                self._path(suffix),
                params=params,
                json=payload,
                headers={**self._headers(), "Content-Type": "application/json"},
            )
        except httpx.TransportError as exc:
            raise RemoteTransportError(str(exc) or exc.__class__.__name__) from exc
        raise_for_qbo_response(response)
        return response.json()

    def query(self, statement: str) -> dict:
        data = self.get("query", params={"query": statement})
        return data.get("QueryResponse") or {}

    def close(self) -> None:
        if self._owns_client:
            self._client.close()


class QboAdapter:
    provider = "qbo"

    def __init__(self, *, client: QboClient):
        self.client = client

    def close(self) -> None:
        self.client.close()

    def read_entity(self, entity_type: RemoteEntityType, entity_id: str) -> RemoteEntity:
        data = self.client.get(f"{entity_type.endpoint}/{entity_id}")
        payload = data.get(entity_type.value)
        if not isinstance(payload, dict):
            raise RemoteNotFoundError(f"Could not read QBO {entity_type.value} {entity_id}")
        return entity_from_payload(entity_type, payload)

    def sparse_update(
        self,
        entity_type: RemoteEntityType,
        entity_id: str,
        *,
        sync_token: str,
        changes: Dict[str, Any],
    ) -> RemoteEntity:
        body = {**changes, "Id": entity_id, "SyncToken": sync_token, "sparse": True}
        data = self.client.post(entity_type.endpoint, body, params={"operation": "update"})
        payload = data.get(entity_type.value)
        if not isinstance(payload, dict):
            raise RemoteAccountingError(f"Unexpected QBO update response for {entity_type.value} {entity_id}")
        return entity_from_payload(entity_type, payload)

    def fetch_transactions(self, *, since: Optional[date]) -> List[RemoteTransaction]:
        results: List[RemoteTransaction] = []
        for entity_type in RemoteEntityType:
            statement = f"SELECT * FROM {entity_type.value}"
            if since:
                statement += f" WHERE TxnDate >= '{since.isoformat()}'"
            statement += f" MAXRESULTS {QUERY_MAX_RESULTS}"
            rows = self.client.query(statement).get(entity_type.value) or []
            for row in rows:
                txn = transaction_from_payload(entity_type, row)
                if txn is None:
                    logger.warning("qbo %s without Id/TxnDate skipped", entity_type.value)
                    continue
                results.append(txn)
        return results

    def list_accounts(self) -> List[RemoteAccount]:
        statement = f"SELECT * FROM Account WHERE Active = true MAXRESULTS {ACCOUNT_QUERY_MAX_RESULTS}"
        rows = self.client.query(statement).get("Account") or []
        return [
            RemoteAccount(
                id=str(row.get("Id")),
                name=row.get("Name") or "",
                account_type=row.get("AccountType"),
                sub_type=row.get("AccountSubType"),
            )
            for row in rows
            if row.get("Id") is not None
        ]


__all__ = [
    "QboAdapter",
    "QboClient",
    "qbo_base_url",
    "qbo_environment",
    "raise_for_qbo_response",
]
