from __future__ import annotations

from datetime import date
import json
import os
from pathlib import Path
import sys

import pytest

sys.path.append(str(Path(__file__).resolve().parents[2]))
os.environ.setdefault("DATABASE_URL", "sqlite:///./test_qbo_client.db")

httpx = pytest.importorskip("httpx")

from backend.app.domain.contracts import RemoteEntityType
from backend.app.integrations import (
    QBO_STUB_ADAPTER,
    RemoteAuthError,
    RemoteConflictError,
    RemoteNotFoundError,
    RemoteRejectedError,
    RemoteTransportError,
    get_accounting_client,
)
from backend.app.integrations.qbo import QboAdapter, QboClient, qbo_base_url
from backend.app.integrations.qbo_stub import QboStubAdapter


BASE = "https://qbo.test"


def _fault(code: str, message: str, detail: str = ""):
    return {"Fault": {"Error": [{"Message": message, "Detail": detail, "code": code}], "type": "ValidationFault"}}


def _adapter(handler):
    http = httpx.Client(base_url=BASE, transport=httpx.MockTransport(handler))
    return QboAdapter(client=QboClient(realm_id="9130", access_token="tok", base_url=BASE, client=http))


def test_read_entity_uses_company_path_and_bearer_token():
    seen = {}

    def handler(request):
        seen["path"] = request.url.path
        seen["auth"] = request.headers.get("Authorization")
        return httpx.Response(200, json={"Purchase": {"Id": "42", "SyncToken": "3", "AccountRef": {"value": "30", "name": "Uncategorized Expenses"}}})

    entity = _adapter(handler).read_entity(RemoteEntityType.PURCHASE, "42")

    assert seen["path"] == "/v3/company/9130/purchase/42"
    assert seen["auth"] == "Bearer tok"
    assert entity.sync_token == "3"
    assert entity.account_ref_id == "30"
    assert entity.account_ref_name == "Uncategorized Expenses"


def test_sparse_update_sends_sync_token_and_sparse_flag():
    seen = {}

    def handler(request):
        seen["path"] = request.url.path
        seen["operation"] = request.url.params.get("operation")
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json={"Deposit": {"Id": "7", "SyncToken": "4"}})

    entity = _adapter(handler).sparse_update(
        RemoteEntityType.DEPOSIT,
        "7",
        sync_token="3",
        changes={"AccountRef": {"value": "10", "name": "Business Operating Expenses"}},
    )

    assert seen["path"] == "/v3/company/9130/deposit"
    assert seen["operation"] == "update"
    assert seen["body"] == {
        "AccountRef": {"value": "10", "name": "Business Operating Expenses"},
        "Id": "7",
        "SyncToken": "3",
        "sparse": True,
    }
    assert entity.sync_token == "4"


@pytest.mark.parametrize(
    "status,body,error_type",
    [
        (401, {"fault": "nope"}, RemoteAuthError),
        (403, _fault("003", "Forbidden"), RemoteAuthError),
        (400, _fault("5010", "Stale Object Error"), RemoteConflictError),
        (400, _fault("610", "Object Not Found"), RemoteNotFoundError),
        (404, {}, RemoteNotFoundError),
        (400, _fault("6000", "A business validation error has occurred"), RemoteRejectedError),
        (503, _fault("3200", "Service unavailable"), RemoteTransportError),
    ],
)
def test_fault_mapping(status, body, error_type):
    def handler(request):
        return httpx.Response(status, json=body)

    with pytest.raises(error_type):
        _adapter(handler).sparse_update(RemoteEntityType.PURCHASE, "1", sync_token="0", changes={})


def test_fault_message_includes_detail():
    def handler(request):
        return httpx.Response(400, json=_fault("5010", "Stale Object Error", "You and Jane were working on this at the same time."))

    with pytest.raises(RemoteConflictError) as exc:
        _adapter(handler).sparse_update(RemoteEntityType.PURCHASE, "1", sync_token="0", changes={})
    assert exc.value.code == "5010"
    assert exc.value.status_code == 400
    assert exc.value.message.startswith("Stale Object Error: You and Jane")


def test_get_retries_once_on_transport_error():
    attempts = []

    def handler(request):
        attempts.append(request.url.path)
        if len(attempts) == 1:
            raise httpx.ConnectError("connection reset", request=request)
        return httpx.Response(200, json={"Transfer": {"Id": "5", "SyncToken": "0"}})

    entity = _adapter(handler).read_entity(RemoteEntityType.TRANSFER, "5")

    assert len(attempts) == 2
    assert entity.id == "5"


def test_get_gives_up_after_second_transport_error():
    attempts = []

    def handler(request):
        attempts.append(1)
        raise httpx.ConnectError("down", request=request)

    with pytest.raises(RemoteTransportError):
        _adapter(handler).read_entity(RemoteEntityType.TRANSFER, "5")
    assert len(attempts) == 2


def test_writes_are_never_retried():
    attempts = []

    def handler(request):
        attempts.append(1)
        raise httpx.ReadTimeout("slow", request=request)

    with pytest.raises(RemoteTransportError):
        _adapter(handler).sparse_update(RemoteEntityType.PURCHASE, "1", sync_token="0", changes={})
    assert len(attempts) == 1


def test_fetch_transactions_queries_each_entity_type():
    statements = []

    def handler(request):
        statement = request.url.params.get("query")
        statements.append(statement)
        entity = statement.split(" FROM ")[1].split(" ")[0]
        rows = [{"Id": f"{entity}-1", "TxnDate": "2024-02-01", "TotalAmt": 10}, {"Id": f"{entity}-bad"}]
        return httpx.Response(200, json={"QueryResponse": {entity: rows}})

    rows = _adapter(handler).fetch_transactions(since=date(2024, 1, 1))

    assert statements == [
        "SELECT * FROM Purchase WHERE TxnDate >= '2024-01-01' MAXRESULTS 1000",
        "SELECT * FROM Deposit WHERE TxnDate >= '2024-01-01' MAXRESULTS 1000",
        "SELECT * FROM Transfer WHERE TxnDate >= '2024-01-01' MAXRESULTS 1000",
    ]
    assert [(r.entity_type, r.remote_txn_id) for r in rows] == [
        (RemoteEntityType.PURCHASE, "Purchase-1"),
        (RemoteEntityType.DEPOSIT, "Deposit-1"),
        (RemoteEntityType.TRANSFER, "Transfer-1"),
    ]


def test_list_accounts_reads_active_accounts():
    def handler(request):
        assert request.url.params.get("query") == "SELECT * FROM Account WHERE Active = true MAXRESULTS 500"
        return httpx.Response(
            200,
            json={"QueryResponse": {"Account": [{"Id": "10", "Name": "Supplies", "AccountType": "Expense"}]}},
        )

    accounts = _adapter(handler).list_accounts()

    assert [(a.id, a.name, a.account_type) for a in accounts] == [("10", "Supplies", "Expense")]


def test_base_url_follows_environment(monkeypatch):
    monkeypatch.delenv("QBO_BASE_URL", raising=False)
    monkeypatch.setenv("QBO_ENVIRONMENT", "production")
    assert qbo_base_url() == "https://quickbooks.api.intuit.com"
    monkeypatch.setenv("QBO_ENVIRONMENT", "sandbox")
    assert qbo_base_url() == "https://sandbox-quickbooks.api.intuit.com"


def test_client_requires_credentials():
    with pytest.raises(ValueError):
        QboClient(realm_id="", access_token="tok", base_url=BASE)


def test_close_releases_only_an_owned_http_client():
    owned = QboClient(realm_id="9130", access_token="tok", base_url=BASE)
    QboAdapter(client=owned).close()
    assert owned._client.is_closed

    http = httpx.Client(base_url=BASE, transport=httpx.MockTransport(lambda request: httpx.Response(200, json={})))
    injected = QboClient(realm_id="9130", access_token="tok", base_url=BASE, client=http)
    injected.close()
    assert not http.is_closed
    http.close()


def test_stub_close_keeps_demo_state():
    stub = QboStubAdapter()
    stub.sparse_update(RemoteEntityType.PURCHASE, "demo-101", sync_token="0", changes={})
    stub.close()
    assert stub.read_entity(RemoteEntityType.PURCHASE, "demo-101").sync_token == "1"


def test_factory_returns_stub_in_demo_mode(monkeypatch):
    monkeypatch.delenv("QBO_CLIENT_ID", raising=False)
    assert get_accounting_client(realm_id=None, access_token=None) is QBO_STUB_ADAPTER

    monkeypatch.setenv("QBO_CLIENT_ID", "client")
    monkeypatch.setenv("QBO_USE_STUB", "true")
    assert get_accounting_client(realm_id=None, access_token=None) is QBO_STUB_ADAPTER


def test_factory_builds_live_adapter_with_credentials(monkeypatch):
    monkeypatch.setenv("QBO_CLIENT_ID", "client")
    monkeypatch.delenv("QBO_USE_STUB", raising=False)

    with pytest.raises(ValueError):
        get_accounting_client(realm_id=None, access_token="tok")

    adapter = get_accounting_client(realm_id="9130", access_token="tok")
    assert isinstance(adapter, QboAdapter)
    assert adapter.client.realm_id == "9130"


def test_stub_sync_token_lifecycle():
    stub = QboStubAdapter()
    first = stub.read_entity(RemoteEntityType.PURCHASE, "demo-101")
    assert first.sync_token == "0"

    updated = stub.sparse_update(
        RemoteEntityType.PURCHASE, "demo-101", sync_token="0", changes={"AccountRef": {"value": "10", "name": "X"}}
    )
    assert updated.sync_token == "1"

    with pytest.raises(RemoteConflictError):
        stub.sparse_update(RemoteEntityType.PURCHASE, "demo-101", sync_token="0", changes={})

    stub.reset()
    assert stub.read_entity(RemoteEntityType.PURCHASE, "demo-101").sync_token == "0"


def test_stub_unknown_ids():
    assert QboStubAdapter().read_entity(RemoteEntityType.DEPOSIT, "local-1").id == "local-1"
    with pytest.raises(RemoteNotFoundError):
        QboStubAdapter(auto_create=False).read_entity(RemoteEntityType.DEPOSIT, "local-1")
