import logging
from datetime import datetime
from pathlib import Path
from typing import Optional

from reportlab.lib.pagesizes import letter
from reportlab.lib.utils import simpleSplit
from reportlab.pdfgen import canvas
from sqlmodel import Session

from visa_checkout.config import settings
from visa_checkout.models.order import VisaOrder
from visa_checkout.services.order_event_service import log_order_event

logger = logging.getLogger(__name__)

LEFT = 72
LINE = 16

DEFAULT_TERMS = [
    "The client confirms that all information provided is accurate and truthful.",
    "The client understands that providing false information may result in cancellation of services.",
    "The client agrees to pay the total amount specified in this contract.",
    "MIGMA will provide visa consultation services as described in the service package.",
]

ANNEX_TERMS = [
    "ANNEX I - Payment authorization and chargeback policy.",
    "The client acknowledges the payment above was made voluntarily for the contracted services.",
    "The client agrees not to dispute this charge with the card issuer once services have started.",
]


def contract_pdf_path(order: VisaOrder) -> Path:
    return Path(settings.CONTRACTS_DIR) / f"contract_{order.order_number}.pdf"


class _Writer:
    def __init__(self, c: canvas.Canvas):
        self.c = c
        self.width, self.height = letter
        self.y = self.height - 60

    def line(self, text: str, font: str = "Helvetica", size: int = 11, gap: int = LINE):
        self.c.setFont(font, size)
        for chunk in simpleSplit(text, font, size, self.width - 2 * LEFT) or [""]:
            if self.y < 72:
                self.c.showPage()
                self.y = self.height - 60
                self.c.setFont(font, size)
            self.c.drawString(LEFT, self.y, chunk)
            self.y -= gap

    def space(self, amount: int = 10):
        self.y -= amount


def _fmt(value: Optional[datetime]) -> str:
    return value.strftime("%Y-%m-%d %H:%M UTC") if value else "-"


def generate_contract_pdf(session: Session, order: VisaOrder) -> Path:
    """
    Render the service contract (with Annex I) for an order and store the
    file path on the order. Raises on I/O errors; callers treat this as a
    best-effort side effect.
    """
    path = contract_pdf_path(order)
    path.parent.mkdir(parents=True, exist_ok=True)

    c = canvas.Canvas(str(path), pagesize=letter)
    w = _Writer(c)

    w.line(f"Visa Service Contract - {order.order_number}", "Helvetica-Bold", 18, gap=30)

    w.line("Client", "Helvetica-Bold", 12)
    w.line(f"Name: {order.client_name}")
    w.line(f"Email: {order.client_email}")
    if order.client_nationality:
        w.line(f"Nationality: {order.client_nationality}")
    if order.client_country:
        w.line(f"Country: {order.client_country}")
    w.space()

    w.line("Service", "Helvetica-Bold", 12)
    w.line(f"Product: {order.product_slug}")
    if order.extra_units:
        w.line(
            f"{order.extra_unit_label or 'Extra units'}: {order.extra_units} "
            f"x US$ {order.extra_unit_price_usd:.2f}"
        )
    w.line(f"Total (before processing fees): US$ {order.total_price_usd:.2f}")
    w.line(f"Payment method: {order.payment_method}")
    w.line(f"Payment status: {order.payment_status}")
    w.space()

    w.line("Terms and Conditions", "Helvetica-Bold", 12)
    for i, term in enumerate(DEFAULT_TERMS, start=1):
        w.line(f"{i}. {term}")
    w.space()

    w.line("Signature record", "Helvetica-Bold", 12)
    w.line(f"Contract accepted: {'yes' if order.contract_accepted else 'no'}")
    w.line(f"Signed at: {_fmt(order.contract_signed_at)}")
    w.line(f"IP address: {order.ip_address or '-'}")
    w.line(f"Document: {order.contract_document_url or '-'}")
    w.line(f"Selfie: {order.contract_selfie_url or '-'}")

    c.showPage()
    w = _Writer(c)
    w.line(f"Annex I - {order.order_number}", "Helvetica-Bold", 16, gap=26)
    for term in ANNEX_TERMS:
        w.line(term)
    w.space()
    w.line(f"Generated at: {_fmt(datetime.utcnow())}", size=9)

    c.save()

    order.contract_pdf_url = str(path)
    order.updated_at = datetime.utcnow()
    session.add(order)
    log_order_event(
        session,
        order.id,
        event_type="contract_pdf_generated",
        label=f"Contract PDF generated for {order.order_number}",
        meta={"path": str(path)},
    )
    session.commit()

    logger.info(f"Contract PDF generated for order {order.order_number}: {path}")
    return path
