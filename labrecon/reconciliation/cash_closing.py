"""
Cash closing built on the cash/receivable split.

Expected cash for an envelope is the sum of the cash components of the
selected items. Items already assigned to an envelope are locked.
"""

from typing import List, Optional, Tuple
from uuid import uuid4

import structlog

from ..exceptions import ItemsAlreadyAssignedError
from ..models import EnvelopeClosing, PaymentStatus, ServiceItem

logger = structlog.get_logger()


def calculate_expected_cash(items: List[ServiceItem]) -> int:
    """Sum of cash components, in cents."""
    return sum(item.cash_component_cents or 0 for item in items)


def is_item_locked(item: ServiceItem) -> bool:
    return item.is_locked


def can_select_item(item: ServiceItem) -> bool:
    """Unlocked, not awaiting a payer, and with cash to put in the envelope."""
    return (
        not item.is_locked
        and item.payment_status != PaymentStatus.AWAITING_PAYMENT
        and item.cash_component_cents > 0
    )


def eligible_items(items: List[ServiceItem]) -> List[ServiceItem]:
    """Items pre-selected when a closing starts."""
    return [
        item for item in items
        if item.payment_status == PaymentStatus.PENDING_CLOSE and can_select_item(item)
    ]


def validate_items_not_assigned(items: List[ServiceItem]) -> Tuple[bool, List[str]]:
    """Returns (valid, conflicting item ids)."""
    conflicting = [item.id for item in items if item.is_locked]
    return not conflicting, conflicting


def close_envelope(
    items: List[ServiceItem],
    counted_cash_cents: int,
    envelope_id: Optional[str] = None,
    justification: Optional[str] = None,
) -> EnvelopeClosing:
    """
    Assign the selected items to a new envelope.

    Raises:
        ItemsAlreadyAssignedError: if any item already belongs to an envelope.
            No item is modified in that case.
    """
    valid, conflicting = validate_items_not_assigned(items)
    if not valid:
        raise ItemsAlreadyAssignedError(conflicting)

    envelope_id = envelope_id or str(uuid4())
    closing = EnvelopeClosing(
        envelope_id=envelope_id,
        item_ids=[item.id for item in items],
        lis_codes=[item.lis_code for item in items],
        expected_cash_cents=calculate_expected_cash(items),
        counted_cash_cents=counted_cash_cents,
        justification=justification,
    )

    for item in items:
        item.envelope_id = envelope_id
        item.payment_status = PaymentStatus.CLOSED_IN_ENVELOPE

    logger.info(
        "Envelope closed",
        envelope_id=envelope_id,
        items=len(items),
        expected_cash_cents=closing.expected_cash_cents,
        counted_cash_cents=counted_cash_cents,
        difference_cents=closing.difference_cents,
    )
    return closing
