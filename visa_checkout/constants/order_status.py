from enum import Enum


class PaymentStatus(str, Enum):
    pending = "pending"
    completed = "completed"
    failed = "failed"
    cancelled = "cancelled"


class ApprovalStatus(str, Enum):
    pending = "pending"
    approved = "approved"
    rejected = "rejected"


class PaymentMethod(str, Enum):
    stripe_card = "stripe_card"
    stripe_pix = "stripe_pix"
    wise = "wise"
    zelle = "zelle"


class ContractType(str, Enum):
    contract = "contract"
    annex = "annex"


class CalculationType(str, Enum):
    base_plus_units = "base_plus_units"
    units_only = "units_only"


class ZelleStatus(str, Enum):
    pending_verification = "pending_verification"
    approved = "approved"
    rejected = "rejected"


# Wise transfer states that move the order. Anything else only updates
# wise_payment_status.
WISE_STATE_TRANSITIONS = {
    "outgoing_payment_sent": PaymentStatus.completed,
    "bounced_back": PaymentStatus.failed,
    "funds_refunded": PaymentStatus.failed,
    "charged_back": PaymentStatus.failed,
    "cancelled": PaymentStatus.cancelled,
}

WISE_STATE_CHANGE_EVENT = "transfers#state-change"


# Stripe checkout events -> (order status, payments row status)
STRIPE_EVENT_TRANSITIONS = {
    "checkout.session.completed": (PaymentStatus.completed, "paid"),
    "checkout.session.async_payment_succeeded": (PaymentStatus.completed, "paid"),
    "checkout.session.async_payment_failed": (PaymentStatus.failed, "failed"),
    "checkout.session.expired": (PaymentStatus.cancelled, "failed"),
}
