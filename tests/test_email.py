from sqlmodel import select

from visa_checkout.models.email import EmailLog
from visa_checkout.services import email_retry, order_email_service
from visa_checkout.services.email_service import is_valid_email, send_email
from visa_checkout.services.order_email_service import dispatch_email, send_payment_confirmation_email


def test_is_valid_email():
    assert is_valid_email("maria@example.com")
    assert is_valid_email(["a@example.com", "b@example.com"])
    assert not is_valid_email("maria")
    assert not is_valid_email(None)


def test_send_email_without_smtp_credentials_returns_false():
    assert send_email("maria@example.com", "Hello", "<p>hi</p>") is False


def test_retry_stops_when_smtp_not_configured(monkeypatch):
    def no_sleep(seconds):
        raise AssertionError("should not back off on a config error")

    monkeypatch.setattr(email_retry.time, "sleep", no_sleep)
    assert email_retry.send_email_with_retry("maria@example.com", "Hello", "<p>hi</p>") is False


def test_retry_backs_off_between_attempts(monkeypatch):
    attempts = []
    sleeps = []

    def flaky(to, subject, html, from_email=None):
        attempts.append(to)
        return len(attempts) == 3

    monkeypatch.setattr(email_retry, "send_email", flaky)
    monkeypatch.setattr(email_retry, "smtp_configured", lambda: True)
    monkeypatch.setattr(email_retry.time, "sleep", sleeps.append)

    assert email_retry.send_email_with_retry("maria@example.com", "Hello", "<p>hi</p>", max_retries=3)
    assert len(attempts) == 3
    assert len(sleeps) == 2


def test_idempotency_key_suppresses_second_send(session, make_order, sent_emails):
    order = make_order()

    assert send_payment_confirmation_email(session, order, idempotency_key="evt-1")
    assert not send_payment_confirmation_email(session, order, idempotency_key="evt-1")

    assert len(sent_emails) == 1
    assert "ORD-" in sent_emails[0]["subject"]


def test_failed_sends_are_logged(session, make_order, monkeypatch):
    order = make_order()
    monkeypatch.setattr(order_email_service, "send_email_with_retry", lambda **kwargs: False)

    sent = dispatch_email(
        session,
        to="maria@example.com",
        subject="Hello",
        template="payment_confirmed.html",
        idempotency_key="evt-2",
        order=order,
    )

    assert sent is False
    log = session.exec(select(EmailLog)).one()
    assert log.status == "failed"
    assert log.idempotency_key is None
