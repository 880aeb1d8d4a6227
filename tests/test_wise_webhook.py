import json

from sqlmodel import select

from visa_checkout.models.email import EmailLog
from visa_checkout.models.order_event import OrderEvent
from visa_checkout.models.wise_transfer import WiseTransfer
from visa_checkout.services.wise_webhook import compute_wise_signature

SECRET = "wise-test-secret"


def _event(transfer_id=48151623, state="outgoing_payment_sent", event_type="transfers#state-change"):
    return json.dumps({
        "subscription_id": "sub-1",
        "event_type": event_type,
        "data": {
            "resource": {"id": transfer_id, "type": "transfer"},
            "current_state": state,
            "previous_state": "processing",
            "occurred_at": "2026-01-01T12:00:00Z",
            "transfer_id": transfer_id,
        },
    }).encode()


def _post(client, body, signature=None):
    headers = {"Content-Type": "application/json"}
    if signature is not None:
        headers["X-Signature-SHA256"] = signature
    return client.post("/webhooks/wise", content=body, headers=headers)


def _signed(client, body):
    return _post(client, body, compute_wise_signature(body, SECRET))


def test_completed_transfer_completes_order(client, session, make_order, pdf_calls, sent_emails):
    order = make_order(payment_method="wise", wise_transfer_id="48151623")

    resp = _signed(client, _event())

    assert resp.status_code == 200
    assert resp.json() == {"received": True, "processed": True}
    session.refresh(order)
    assert order.payment_status == "completed"
    assert order.wise_payment_status == "outgoing_payment_sent"
    assert pdf_calls == [order.order_number]
    assert len(sent_emails) == 1
    assert sent_emails[0]["to"] == "maria@example.com"

    transfer = session.exec(select(WiseTransfer)).one()
    assert transfer.order_id == order.id
    assert transfer.status == "outgoing_payment_sent"


def test_completion_emails_only_the_client(client, session, make_order, pdf_calls, sent_emails):
    order = make_order(payment_method="wise", wise_transfer_id="48151623")

    _signed(client, _event())

    assert len(pdf_calls) == 1
    assert [e["to"] for e in sent_emails] == [order.client_email]
    logged = session.exec(select(EmailLog)).all()
    assert [row.to_email for row in logged] == [order.client_email]


def test_redelivered_event_is_idempotent(client, session, make_order, pdf_calls, sent_emails):
    order = make_order(payment_method="wise", wise_transfer_id="48151623")
    body = _event()

    _signed(client, body)
    resp = _signed(client, body)

    assert resp.status_code == 200
    session.refresh(order)
    assert order.payment_status == "completed"
    assert len(sent_emails) == 1
    assert len(session.exec(select(WiseTransfer)).all()) == 1


def test_bounced_transfer_fails_order(client, session, make_order, pdf_calls, sent_emails):
    order = make_order(payment_method="wise", wise_transfer_id="48151623")

    _signed(client, _event(state="bounced_back"))

    session.refresh(order)
    assert order.payment_status == "failed"
    assert pdf_calls == []
    assert sent_emails == []


def test_intermediate_state_only_updates_wise_status(client, session, make_order, pdf_calls, sent_emails):
    order = make_order(payment_method="wise", wise_transfer_id="48151623")

    _signed(client, _event(state="processing"))

    session.refresh(order)
    assert order.payment_status == "pending"
    assert order.wise_payment_status == "processing"
    assert sent_emails == []


def test_unknown_transfer_is_acknowledged_without_writes(client, session, make_order, pdf_calls, sent_emails):
    order = make_order(payment_method="wise", wise_transfer_id="1")
    events_before = len(session.exec(select(OrderEvent)).all())

    resp = _signed(client, _event(transfer_id=999))

    assert resp.status_code == 200
    assert resp.json()["processed"] is False
    session.refresh(order)
    assert order.payment_status == "pending"
    assert len(session.exec(select(OrderEvent)).all()) == events_before
    assert session.exec(select(WiseTransfer)).all() == []


def test_unsigned_request_is_acknowledged_but_ignored(client, session, make_order, sent_emails):
    order = make_order(payment_method="wise", wise_transfer_id="48151623")

    resp = _post(client, _event())

    assert resp.status_code == 200
    assert resp.json()["received"] is True
    session.refresh(order)
    assert order.payment_status == "pending"


def test_bad_signature_is_acknowledged_but_ignored(client, session, make_order, sent_emails):
    order = make_order(payment_method="wise", wise_transfer_id="48151623")

    resp = _post(client, _event(), signature="deadbeef")

    assert resp.status_code == 200
    assert resp.json() == {"received": True, "processed": False}
    session.refresh(order)
    assert order.payment_status == "pending"


def test_other_event_types_are_ignored(client, session, make_order, sent_emails):
    order = make_order(payment_method="wise", wise_transfer_id="48151623")

    resp = _signed(client, _event(event_type="balances#credit"))

    assert resp.json()["processed"] is False
    session.refresh(order)
    assert order.payment_status == "pending"
