import os

# settings are read at import time
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["ENV"] = "test"
os.environ["SMTP_USER"] = ""
os.environ["SMTP_PASS"] = ""
os.environ["WISE_WEBHOOK_SECRET"] = "wise-test-secret"
os.environ["STRIPE_ENV"] = "test"
os.environ["STRIPE_SECRET_KEY_TEST"] = "sk_test_dummy"
os.environ["STRIPE_WEBHOOK_SECRET_TEST"] = "whsec_test_dummy"

from types import SimpleNamespace  # noqa: E402
from uuid import uuid4  # noqa: E402

import pytest  # noqa: E402
import stripe  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlmodel import SQLModel, Session  # noqa: E402

from visa_checkout import models  # noqa: E402,F401
from visa_checkout.config import settings  # noqa: E402
from visa_checkout.constants.order_status import CalculationType, PaymentMethod  # noqa: E402
from visa_checkout.database import engine, get_session  # noqa: E402
from visa_checkout.main import app  # noqa: E402
from visa_checkout.models.order import VisaOrder  # noqa: E402
from visa_checkout.models.product import VisaProduct  # noqa: E402
from visa_checkout.models.zelle_payment import ZellePayment  # noqa: E402
from visa_checkout.services import (  # noqa: E402
    contract_review,
    order_email_service,
    reconciliation,
)


@pytest.fixture
def session():
    SQLModel.metadata.create_all(engine)
    with Session(engine) as session:
        yield session
    SQLModel.metadata.drop_all(engine)


@pytest.fixture
def client(session):
    def override_get_session():
        yield session

    app.dependency_overrides[get_session] = override_get_session
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def sent_emails(monkeypatch):
    """Captures every email that reaches the SMTP layer."""
    outbox = []

    def fake_send(to_email, subject, html, from_email=None, max_retries=None):
        outbox.append({"to": to_email, "subject": subject, "html": html})
        return True

    monkeypatch.setattr(order_email_service, "send_email_with_retry", fake_send)
    return outbox


@pytest.fixture
def pdf_calls(monkeypatch):
    calls = []

    def fake_pdf(session, order):
        calls.append(order.order_number)

    monkeypatch.setattr(reconciliation, "generate_contract_pdf", fake_pdf)
    monkeypatch.setattr(contract_review, "generate_contract_pdf", fake_pdf)
    return calls


@pytest.fixture
def stripe_sessions(monkeypatch):
    """Replaces the Stripe API call; returns the kwargs of every create()."""
    created = []

    def fake_create(**kwargs):
        created.append(kwargs)
        session_id = f"cs_test_{len(created)}"
        return SimpleNamespace(id=session_id, url=f"https://checkout.stripe.com/c/pay/{session_id}")

    monkeypatch.setattr(stripe.checkout.Session, "create", fake_create)
    return created


@pytest.fixture
def contracts_dir(tmp_path, monkeypatch):
    monkeypatch.setattr(settings, "CONTRACTS_DIR", tmp_path / "contracts")
    return tmp_path / "contracts"


@pytest.fixture
def product(session):
    product = VisaProduct(
        slug="b1-b2-visa",
        name="B1/B2 Tourist Visa",
        description="US tourist visa consultation",
        base_price_usd=100,
        extra_unit_price=40,
        extra_unit_label="Dependents",
        calculation_type=CalculationType.base_plus_units.value,
    )
    session.add(product)
    session.commit()
    session.refresh(product)
    return product


@pytest.fixture
def units_product(session):
    product = VisaProduct(
        slug="document-translation",
        name="Document Translation",
        base_price_usd=0,
        extra_unit_price=25,
        extra_unit_label="Pages",
        calculation_type=CalculationType.units_only.value,
    )
    session.add(product)
    session.commit()
    session.refresh(product)
    return product


@pytest.fixture
def make_order(session):
    def _make(**overrides):
        values = dict(
            order_number=f"ORD-20260101-{uuid4().hex[:8]}",
            product_slug="b1-b2-visa",
            base_price_usd=100,
            extra_units=1,
            extra_unit_price_usd=40,
            calculation_type=CalculationType.base_plus_units.value,
            total_price_usd=140,
            client_name="Maria Silva",
            client_email="maria@example.com",
            payment_method=PaymentMethod.stripe_card.value,
        )
        values.update(overrides)
        order = VisaOrder(**values)
        session.add(order)
        session.commit()
        session.refresh(order)
        return order

    return _make


@pytest.fixture
def zelle_order(session, make_order):
    order = make_order(payment_method=PaymentMethod.zelle.value, zelle_proof_url="https://cdn.example.com/zelle.png")
    session.add(ZellePayment(order_id=order.id, amount=140, screenshot_url=order.zelle_proof_url))
    session.commit()
    return order
