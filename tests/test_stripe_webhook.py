import hashlib
import hmac
import json
import time

from sqlmodel import select

from visa_checkout.models.payment import Payment

SECRET = "whsec_test_dummy"

METADATA = {
    "base_amount": "140.00",
    "final_amount": "145.76",
    "fee_amount": "5.76",
    "fee_percentage": "0.039",
    "currency": "USD",
    "extra_units": 1,
}


def _sign(payload: str, secret: str = SECRET) -> str:
    timestamp = int(time.time())
    signature = hmac.new(
        secret.encode(), f"{timestamp}.{payload}".encode(), hashlib.sha256
    ).hexdigest()
    return f"t={timestamp},v1={signature}"


def _event(event_type="checkout.session.completed", session_id="cs_test_abc", event_id="evt_1", **obj):
    data = {
        "id": session_id,
        "object": "checkout.session",
        "payment_intent": "pi_123",
        "payment_method_types": ["card"],
    }
    data.update(obj)
    return json.dumps({"id": event_id, "type": event_type, "data": {"object": data}})


def _post(client, payload, signature=None):
    return client.post(
        "/webhooks/stripe",
        content=payload.encode(),
        headers={"Stripe-Signature": signature or _sign(payload)},
    )


def _stripe_order(session, make_order):
    order = make_order(stripe_session_id="cs_test_abc", payment_metadata=dict(METADATA))
    session.add(Payment(order_id=order.id, amount=140, external_payment_id="cs_test_abc"))
    session.commit()
    return order


def test_completed_session_completes_order(client, session, make_order, pdf_calls, sent_emails):
    order = _stripe_order(session, make_order)

    resp = _post(client, _event())

    assert resp.status_code == 200
    assert resp.json() == {"received": True, "processed": True}
    session.refresh(order)
    assert order.payment_status == "completed"
    assert order.payment_method == "stripe_card"
    assert order.stripe_payment_intent_id == "pi_123"
    assert order.payment_metadata["payment_method"] == "card"
    assert order.payment_metadata["session_id"] == "cs_test_abc"
    assert pdf_calls == [order.order_number]
    assert len(sent_emails) == 1

    payment = session.exec(select(Payment).where(Payment.order_id == order.id)).one()
    assert payment.status == "paid"
    assert payment.external_payment_id == "pi_123"


def test_async_pix_success_marks_pix(client, session, make_order, pdf_calls, sent_emails):
    order = _stripe_order(session, make_order)

    _post(client, _event("checkout.session.async_payment_succeeded", payment_method_types=["pix"]))

    session.refresh(order)
    assert order.payment_status == "completed"
    assert order.payment_method == "stripe_pix"


def test_expired_session_cancels_order(client, session, make_order, pdf_calls, sent_emails):
    order = _stripe_order(session, make_order)

    _post(client, _event("checkout.session.expired"))

    session.refresh(order)
    assert order.payment_status == "cancelled"
    assert pdf_calls == []
    assert sent_emails == []


def test_async_failure_fails_order(client, session, make_order, sent_emails):
    order = _stripe_order(session, make_order)

    _post(client, _event("checkout.session.async_payment_failed"))

    session.refresh(order)
    assert order.payment_status == "failed"


def test_redelivered_completion_sends_one_email(client, session, make_order, pdf_calls, sent_emails):
    order = _stripe_order(session, make_order)
    payload = _event()

    _post(client, payload)
    _post(client, payload)

    session.refresh(order)
    assert order.payment_status == "completed"
    assert len(sent_emails) == 1


def test_bad_signature_is_400(client, session, make_order, sent_emails):
    order = _stripe_order(session, make_order)
    payload = _event()

    resp = _post(client, payload, signature=_sign(payload, secret="whsec_wrong"))

    assert resp.status_code == 400
    assert "error" in resp.json()
    session.refresh(order)
    assert order.payment_status == "pending"


def test_missing_signature_is_400(client):
    resp = client.post("/webhooks/stripe", content=_event().encode())
    assert resp.status_code == 400


def test_unknown_session_is_acknowledged(client, session, make_order, sent_emails):
    _stripe_order(session, make_order)

    resp = _post(client, _event(session_id="cs_test_other"))

    assert resp.status_code == 200
    assert resp.json()["processed"] is False


def test_unhandled_event_type_is_acknowledged(client, session, make_order):
    _stripe_order(session, make_order)

    resp = _post(client, _event("payment_intent.created"))

    assert resp.status_code == 200
    assert resp.json()["processed"] is False
