from datetime import datetime, timedelta

from sqlmodel import select

from visa_checkout.constants.order_status import ContractType
from visa_checkout.models.contract_token import ResubmissionToken
from visa_checkout.services.token_service import issue_resubmission_token


def _resubmission_token(session, order, contract_type=ContractType.contract, now=None):
    token = issue_resubmission_token(session, order.id, "admin-1", contract_type, now=now)
    session.commit()
    session.refresh(token)
    return token.token


def _resubmit(client, token):
    return client.post("/contracts/resubmit", json={
        "token": token,
        "contract_document_url": "https://cdn.example.com/new-doc.jpg",
        "contract_selfie_url": "https://cdn.example.com/new-selfie.jpg",
    })


def test_resubmission_link_is_valid(client, session, make_order):
    order = make_order(contract_approval_status="rejected")
    token = _resubmission_token(session, order)

    resp = client.get("/contracts/resubmit", params={"token": token})

    assert resp.status_code == 200
    data = resp.json()
    assert data["valid"] is True
    assert data["contract_type"] == "contract"
    assert data["order"]["order_number"] == order.order_number


def test_resubmission_resets_review_and_burns_token(client, session, make_order, pdf_calls):
    order = make_order(contract_approval_status="rejected")
    token = _resubmission_token(session, order)

    resp = _resubmit(client, token)

    assert resp.status_code == 200
    session.refresh(order)
    assert order.contract_approval_status == "pending"
    assert order.contract_document_url == "https://cdn.example.com/new-doc.jpg"
    assert order.contract_selfie_url == "https://cdn.example.com/new-selfie.jpg"
    assert order.contract_signed_at is not None
    assert pdf_calls == [order.order_number]

    row = session.exec(select(ResubmissionToken).where(ResubmissionToken.token == token)).one()
    assert row.used_at is not None

    again = _resubmit(client, token)
    assert again.status_code == 400
    assert "already resubmitted" in again.json()["error"]


def test_annex_resubmission_only_resets_annex(client, session, make_order, pdf_calls):
    order = make_order(contract_approval_status="approved", annex_approval_status="rejected")
    token = _resubmission_token(session, order, ContractType.annex)

    _resubmit(client, token)

    session.refresh(order)
    assert order.annex_approval_status == "pending"
    assert order.contract_approval_status == "approved"


def test_expired_resubmission_link_is_rejected(client, session, make_order):
    order = make_order()
    token = _resubmission_token(session, order, now=datetime.utcnow() - timedelta(days=31))

    resp = client.get("/contracts/resubmit", params={"token": token})

    assert resp.status_code == 400
    assert "expired" in resp.json()["error"]


def test_unknown_resubmission_link_is_404(client, session):
    resp = client.get("/contracts/resubmit", params={"token": "visa_reject_nope"})
    assert resp.status_code == 404


def test_view_link_returns_the_contract(client, session, make_order, sent_emails):
    order = make_order(contract_pdf_url="contracts/contract.pdf")
    token = client.post(
        "/admin/contracts/approve",
        json={"order_id": order.id, "reviewed_by": "admin-1"},
    ).json()["token"]

    resp = client.get("/contracts/view", params={"token": token})

    assert resp.status_code == 200
    data = resp.json()
    assert data["order_number"] == order.order_number
    assert data["contract_approval_status"] == "approved"
    assert data["contract_pdf_url"] == "contracts/contract.pdf"


def test_unknown_view_link_is_404(client, session):
    resp = client.get("/contracts/view", params={"token": "visa_view_nope"})
    assert resp.status_code == 404
