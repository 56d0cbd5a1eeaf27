from __future__ import annotations

import json

import pytest
from fastapi.testclient import TestClient
from google.api_core.exceptions import ServiceUnavailable

from order_archive.config import ArchiveConfig
from order_archive.handler import OrderArchiveHandler
from order_archive.push_app import create_app
from tests.fakes import FakeStore, push_body


@pytest.fixture
def client(handler):
    with TestClient(create_app(handler)) as c:
        yield c


def test_healthz(client):
    r = client.get("/healthz")
    assert r.status_code == 200
    assert r.json() == {"status": "ok"}


def test_readyz_with_handler(client):
    r = client.get("/readyz")
    assert r.status_code == 200
    assert r.json() == {"status": "ok", "collection": "orders"}


def test_readyz_before_startup():
    # No `with`: startup never runs, so no handler is built.
    c = TestClient(create_app())
    assert c.get("/readyz").status_code == 503


def test_push_valid_order_acks(client, fake_store, valid_order):
    r = client.post("/pubsub/push", json=push_body(valid_order, message_id="mid-1"))
    assert r.status_code == 200
    body = r.json()
    assert body["ok"] is True
    assert body["status"] == "archived"
    assert body["message"] == "Success"
    assert body["eventId"] == "mid-1"
    assert body["documentId"] == "doc-1"
    assert fake_store.written() == [valid_order]


def test_push_invalid_order_acks_without_write(client, fake_store, valid_order):
    valid_order["orderId"] = "ord-1"
    r = client.post("/pubsub/push", json=push_body(valid_order))
    assert r.status_code == 200
    assert r.json()["status"] == "rejected"
    assert r.json()["message"].startswith("Order Invalid")
    assert fake_store.written() == []


def test_push_bad_base64_is_400(client, fake_store):
    body = {"message": {"data": "@@@", "messageId": "mid-2"}, "subscription": "s"}
    r = client.post("/pubsub/push", json=body)
    assert r.status_code == 400
    assert fake_store.opened == 0


def test_push_missing_message_is_400(client):
    r = client.post("/pubsub/push", json={"subscription": "s"})
    assert r.status_code == 400


def test_push_body_not_object_is_400(client):
    r = client.post("/pubsub/push", json=[1, 2])
    assert r.status_code == 400


def test_push_invalid_json_body_is_400(client):
    r = client.post("/pubsub/push", content=b"{nope", headers={"content-type": "application/json"})
    assert r.status_code == 400


def test_push_requires_json_content_type(client):
    r = client.post("/pubsub/push", content=b"hello", headers={"content-type": "text/plain"})
    assert r.status_code == 415


def test_push_store_failure_is_500(valid_order):
    store = FakeStore(fail_with=ServiceUnavailable("down"))
    handler = OrderArchiveHandler(ArchiveConfig(project_id="p", collection_name="orders"), store_factory=store.factory)
    with TestClient(create_app(handler)) as c:
        r = c.post("/pubsub/push", json=push_body(valid_order))
    assert r.status_code == 500
    assert store.closed == 1


def test_startup_builds_handler_from_env(monkeypatch):
    monkeypatch.setenv("PROJECTID", "p1")
    monkeypatch.setenv("COLLECTION_NAME", "orders")
    app = create_app()
    with TestClient(app) as c:
        r = c.get("/readyz")
    assert r.status_code == 200
    assert r.json()["collection"] == "orders"


def test_push_accepts_json_with_charset(client, fake_store, valid_order):
    r = client.post(
        "/pubsub/push",
        content=json.dumps(push_body(valid_order)).encode("utf-8"),
        headers={"content-type": "application/json; charset=utf-8"},
    )
    assert r.status_code == 200
    assert fake_store.written() == [valid_order]


@pytest.mark.parametrize(
    "content_type",
    ["text/plain; x=application/json", "application/jsonp", "application/json-patch+json"],
)
def test_push_rejects_non_json_media_types(client, fake_store, valid_order, content_type):
    r = client.post(
        "/pubsub/push",
        content=json.dumps(push_body(valid_order)).encode("utf-8"),
        headers={"content-type": content_type},
    )
    assert r.status_code == 415
    assert fake_store.written() == []


def test_push_log_records_carry_subscription(client, valid_order, log_records):
    client.post("/pubsub/push", json=push_body(valid_order, message_id="mid-5"))
    valid_order["orderId"] = "ord-1"
    client.post("/pubsub/push", json=push_body(valid_order, message_id="mid-6"))

    by_type = {r["event_type"]: r for r in log_records}
    for event_type, event_id in (("order_archive.success", "mid-5"), ("order_archive.rejected", "mid-6")):
        rec = by_type[event_type]
        assert rec["eventId"] == event_id
        assert rec["subscription"] == "projects/p/subscriptions/order-archive"
        assert rec["attributes"] == {}
