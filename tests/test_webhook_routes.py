import asyncio

import pytest

from visa_checkout.errors import SignatureError
from visa_checkout.routes import webhooks


def _thread_kind():
    try:
        asyncio.get_running_loop()
        return "event-loop"
    except RuntimeError:
        return "worker"


@pytest.fixture
def handler_threads(monkeypatch):
    seen = []

    def fake_wise(session, body, signature):
        seen.append(("wise", _thread_kind(), body, signature))
        return {"received": True, "processed": False}

    def fake_stripe(session, body, signature):
        seen.append(("stripe", _thread_kind(), body, signature))
        return {"received": True, "processed": False}

    monkeypatch.setattr(webhooks, "handle_wise_webhook", fake_wise)
    monkeypatch.setattr(webhooks, "handle_stripe_webhook", fake_stripe)
    return seen


def test_wise_handler_runs_off_the_event_loop(client, handler_threads):
    resp = client.post("/webhooks/wise", content=b'{"a": 1}', headers={"X-Signature-SHA256": "abc"})

    assert resp.status_code == 200
    assert handler_threads == [("wise", "worker", b'{"a": 1}', "abc")]


def test_stripe_handler_runs_off_the_event_loop(client, handler_threads):
    resp = client.post("/webhooks/stripe", content=b"{}", headers={"Stripe-Signature": "t=1,v1=x"})

    assert resp.status_code == 200
    assert handler_threads == [("stripe", "worker", b"{}", "t=1,v1=x")]


def test_stripe_signature_error_from_worker_is_400(client, monkeypatch):
    def reject(session, body, signature):
        raise SignatureError("Invalid signature: bad")

    monkeypatch.setattr(webhooks, "handle_stripe_webhook", reject)

    resp = client.post("/webhooks/stripe", content=b"{}", headers={"Stripe-Signature": "bad"})

    assert resp.status_code == 400
    assert resp.json() == {"error": "Invalid signature: bad"}
