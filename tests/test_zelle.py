from datetime import datetime, timedelta

from sqlmodel import select

from visa_checkout.models.contract_token import CheckoutPrefillToken
from visa_checkout.models.zelle_payment import ZellePayment


def test_approving_zelle_completes_order(client, session, zelle_order, pdf_calls, sent_emails):
    resp = client.post(
        "/admin/zelle/approve",
        json={"order_id": zelle_order.id, "processed_by": "admin-1"},
    )

    assert resp.status_code == 200
    assert resp.json()["payment_status"] == "completed"

    session.refresh(zelle_order)
    assert zelle_order.payment_status == "completed"
    zelle = session.exec(select(ZellePayment)).one()
    assert zelle.status == "approved"
    assert zelle.processed_by_user_id == "admin-1"
    assert zelle.admin_approved_at is not None
    assert pdf_calls == [zelle_order.order_number]
    assert len(sent_emails) == 1


def test_rejecting_zelle_fails_order_and_sends_prefilled_link(client, session, zelle_order, sent_emails):
    before = datetime.utcnow()

    resp = client.post(
        "/admin/zelle/reject",
        json={
            "order_id": zelle_order.id,
            "processed_by": "admin-1",
            "rejection_reason": "Amount does not match",
        },
    )

    assert resp.status_code == 200
    session.refresh(zelle_order)
    assert zelle_order.payment_status == "failed"

    zelle = session.exec(select(ZellePayment)).one()
    assert zelle.status == "rejected"
    assert zelle.admin_notes == "Amount does not match"

    prefill = session.exec(select(CheckoutPrefillToken)).one()
    assert prefill.token.startswith("prefill_")
    assert prefill.product_slug == "b1-b2-visa"
    assert prefill.client_data["client_email"] == "maria@example.com"
    assert prefill.expires_at >= before + timedelta(days=7)

    html = sent_emails[0]["html"]
    assert f"https://migmainc.com/checkout/visa/b1-b2-visa?prefill={prefill.token}" in html
    assert "Amount does not match" in html


def test_zelle_actions_require_processed_by(client, zelle_order):
    resp = client.post("/admin/zelle/approve", json={"order_id": zelle_order.id})

    assert resp.status_code == 400
    assert resp.json() == {"success": False, "error": "processed_by is required"}


def test_zelle_actions_reject_card_orders(client, make_order):
    order = make_order()

    resp = client.post(
        "/admin/zelle/reject",
        json={"order_id": order.id, "processed_by": "admin-1"},
    )

    assert resp.status_code == 400
    assert resp.json()["success"] is False
