import logging
from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP
from typing import Optional

import requests

from visa_checkout.config import settings
from visa_checkout.constants.order_status import PaymentMethod

logger = logging.getLogger(__name__)

CARD_FEE_PERCENTAGE = Decimal("0.039")   # 3.9%
CARD_FEE_FIXED_CENTS = Decimal("30")     # $0.30
PIX_FEE_PERCENTAGE = Decimal("0.0179")   # 1.19% processing + 0.6% conversion
FX_COMMERCIAL_MARGIN = Decimal("1.04")
FALLBACK_EXCHANGE_RATE = Decimal("5.6")

# Informational only: Wise and Zelle charge the client the net price.
WISE_FEE_PERCENTAGE = Decimal("0")
ZELLE_FEE_PERCENTAGE = Decimal("0")

CENT = Decimal("0.01")


@dataclass(frozen=True)
class FeeBreakdown:
    net_amount_usd: Decimal
    gross_cents: int
    currency: str
    fee_amount: Decimal
    fee_percentage: Decimal
    exchange_rate: Optional[Decimal] = None

    @property
    def gross_amount(self) -> Decimal:
        return Decimal(self.gross_cents) / 100


def _to_decimal(value) -> Decimal:
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def _round_int(value: Decimal) -> int:
    return int(value.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def card_gross_cents(net_usd) -> int:
    """net + 3.9% + $0.30, in cents."""
    net_cents = _round_int(_to_decimal(net_usd) * 100)
    return _round_int(net_cents + net_cents * CARD_FEE_PERCENTAGE + CARD_FEE_FIXED_CENTS)


def pix_gross_cents(net_usd, exchange_rate) -> int:
    """
    Convert to BRL and gross up so the net survives the combined 1.79%
    processor fee.
    """
    net_brl = _to_decimal(net_usd) * _to_decimal(exchange_rate)
    gross_brl = net_brl / (Decimal("1") - PIX_FEE_PERCENTAGE)
    return _round_int(gross_brl.quantize(CENT, rounding=ROUND_HALF_UP) * 100)


def fetch_exchange_rate() -> Optional[Decimal]:
    """USD->BRL from the public FX API, with the commercial margin applied."""
    try:
        response = requests.get(settings.FX_API_URL, timeout=settings.FX_TIMEOUT_SECONDS)
        response.raise_for_status()
        base_rate = _to_decimal(response.json()["rates"]["BRL"])
    except (requests.RequestException, KeyError, ValueError, ArithmeticError) as e:
        logger.error(f"[Exchange Rate] Error fetching rate: {e}")
        return None

    return base_rate * FX_COMMERCIAL_MARGIN


def resolve_exchange_rate(supplied_rate: Optional[float] = None) -> Decimal:
    # 1. caller supplied
    if supplied_rate is not None and supplied_rate > 0:
        return _to_decimal(supplied_rate)

    # 2. FX API with margin
    rate = fetch_exchange_rate()
    if rate is not None and rate > 0:
        return rate

    # 3. fallback
    logger.warning(f"[Exchange Rate] Using fallback rate {FALLBACK_EXCHANGE_RATE}")
    return FALLBACK_EXCHANGE_RATE


def calculate_fees(
    net_amount_usd,
    payment_method: PaymentMethod,
    exchange_rate=None,
) -> FeeBreakdown:
    """
    Gross charge for a net price. Pure when a positive exchange_rate is given
    for PIX; a missing or non-positive rate goes through resolve_exchange_rate().
    """
    net = _to_decimal(net_amount_usd)
    method = PaymentMethod(payment_method)

    if method == PaymentMethod.stripe_card:
        gross_cents = card_gross_cents(net)
        return FeeBreakdown(
            net_amount_usd=net,
            gross_cents=gross_cents,
            currency="USD",
            fee_amount=Decimal(gross_cents) / 100 - net,
            fee_percentage=CARD_FEE_PERCENTAGE,
        )

    if method == PaymentMethod.stripe_pix:
        rate = resolve_exchange_rate(exchange_rate)
        gross_cents = pix_gross_cents(net, rate)
        return FeeBreakdown(
            net_amount_usd=net,
            gross_cents=gross_cents,
            currency="BRL",
            fee_amount=Decimal(gross_cents) / 100 - net * rate,
            fee_percentage=PIX_FEE_PERCENTAGE,
            exchange_rate=rate,
        )

    fee_percentage = WISE_FEE_PERCENTAGE if method == PaymentMethod.wise else ZELLE_FEE_PERCENTAGE
    return FeeBreakdown(
        net_amount_usd=net,
        gross_cents=_round_int(net * 100),
        currency="USD",
        fee_amount=Decimal("0"),
        fee_percentage=fee_percentage,
    )
