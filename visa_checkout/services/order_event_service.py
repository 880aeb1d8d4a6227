# visa_checkout/services/order_event_service.py

from datetime import datetime
from typing import Optional
from uuid import uuid4
from sqlmodel import Session
from visa_checkout.models.order_event import OrderEvent


def log_order_event(
    session: Session,
    order_id: str,
    event_type: str,
    label: str,
    created_by: str = "system",
    meta: Optional[dict] = None,
):
    """
    Append-only event log for the order timeline.
    Added to the session only; the caller commits.
    """

    event = OrderEvent(
        id=str(uuid4()),
        order_id=order_id,
        event_type=event_type,
        label=label,
        meta=meta,
        created_by=created_by,
        created_at=datetime.utcnow(),
    )

    session.add(event)
    return event
