from decimal import Decimal, ROUND_HALF_UP

import pytest

from visa_checkout.constants.order_status import PaymentMethod
from visa_checkout.services import fee_calculator
from visa_checkout.services.fee_calculator import (
    PIX_FEE_PERCENTAGE,
    calculate_fees,
    card_gross_cents,
    pix_gross_cents,
    resolve_exchange_rate,
)

NET_PRICES = ["0.01", "0.99", "1", "99.99", "140", "1234.56", "99999.99"]
RATES = ["4.87", "5.6", "6.123"]


def _half_up(value: Decimal) -> int:
    return int(value.to_integral_value(rounding=ROUND_HALF_UP))


def _fail_fx_call():
    raise AssertionError("FX API must not be called when a rate is supplied")


def test_card_fee_on_140_dollars():
    assert card_gross_cents(140) == 14576


def test_card_fee_on_zero_is_only_the_fixed_fee():
    assert card_gross_cents(0) == 30


@pytest.mark.parametrize("net", NET_PRICES)
def test_card_gross_is_net_plus_percentage_plus_fixed_fee(net):
    net_cents = _half_up(Decimal(net) * 100)
    expected = _half_up(Decimal(net_cents) * Decimal("1.039") + 30)

    gross = card_gross_cents(Decimal(net))

    assert gross == expected
    # the client always covers at least the fixed fee on top of the net
    assert gross - net_cents >= 30


def test_card_breakdown_reports_fee_amount():
    fees = calculate_fees(140, PaymentMethod.stripe_card)
    assert fees.gross_cents == 14576
    assert fees.currency == "USD"
    assert fees.fee_amount == Decimal("5.76")
    assert fees.gross_amount == Decimal("145.76")


@pytest.mark.parametrize("rate", RATES)
@pytest.mark.parametrize("net", NET_PRICES)
def test_pix_gross_returns_the_net_after_fees(net, rate):
    net, rate = Decimal(net), Decimal(rate)

    gross_brl = Decimal(pix_gross_cents(net, rate)) / 100
    received_usd = gross_brl * (1 - PIX_FEE_PERCENTAGE) / rate

    assert gross_brl > 0
    assert abs(received_usd - net) <= Decimal("0.01")


@pytest.mark.parametrize("rate", RATES)
def test_pix_breakdown_uses_supplied_rate(monkeypatch, rate):
    monkeypatch.setattr(fee_calculator, "fetch_exchange_rate", lambda: _fail_fx_call())
    fees = calculate_fees(140, PaymentMethod.stripe_pix, exchange_rate=float(rate))
    assert fees.currency == "BRL"
    assert fees.exchange_rate == Decimal(rate)
    assert fees.gross_cents == pix_gross_cents(140, Decimal(rate))


@pytest.mark.parametrize("bad_rate", [-5.6, 0, Decimal("-1")])
def test_pix_ignores_non_positive_rate(monkeypatch, bad_rate):
    monkeypatch.setattr(fee_calculator, "fetch_exchange_rate", lambda: None)

    fees = calculate_fees(140, PaymentMethod.stripe_pix, exchange_rate=bad_rate)

    assert fees.exchange_rate == Decimal("5.6")
    assert fees.gross_cents == pix_gross_cents(140, Decimal("5.6"))
    assert fees.gross_cents > 0


def test_pix_non_positive_rate_prefers_fx_api(monkeypatch):
    monkeypatch.setattr(fee_calculator, "fetch_exchange_rate", lambda: Decimal("5.20"))

    fees = calculate_fees(140, PaymentMethod.stripe_pix, exchange_rate=-5.6)

    assert fees.exchange_rate == Decimal("5.20")


@pytest.mark.parametrize("method", [PaymentMethod.zelle, PaymentMethod.wise])
@pytest.mark.parametrize("net", NET_PRICES)
def test_zelle_and_wise_charge_the_net_price(method, net):
    fees = calculate_fees(Decimal(net), method)
    assert fees.gross_cents == _half_up(Decimal(net) * 100)
    assert fees.fee_amount == 0
    assert fees.currency == "USD"


def test_exchange_rate_falls_back_when_fx_api_fails(monkeypatch):
    monkeypatch.setattr(fee_calculator, "fetch_exchange_rate", lambda: None)
    assert resolve_exchange_rate() == Decimal("5.6")


def test_exchange_rate_prefers_supplied_value(monkeypatch):
    monkeypatch.setattr(fee_calculator, "fetch_exchange_rate", lambda: Decimal("9.99"))
    assert resolve_exchange_rate(5.25) == Decimal("5.25")
    assert resolve_exchange_rate(0) == Decimal("9.99")
    assert resolve_exchange_rate(-5.6) == Decimal("9.99")


def test_fetch_exchange_rate_applies_commercial_margin(monkeypatch):
    class FakeResponse:
        def raise_for_status(self):
            pass

        def json(self):
            return {"rates": {"BRL": 5.0}}

    monkeypatch.setattr(fee_calculator.requests, "get", lambda url, timeout: FakeResponse())
    assert fee_calculator.fetch_exchange_rate() == Decimal("5.20")


def test_fetch_exchange_rate_returns_none_on_network_error(monkeypatch):
    def boom(url, timeout):
        raise fee_calculator.requests.ConnectionError("down")

    monkeypatch.setattr(fee_calculator.requests, "get", boom)
    assert fee_calculator.fetch_exchange_rate() is None
