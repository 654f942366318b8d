"""
Payment Component Splitter.

Decides how much of a service payment is cash in hand (goes into the
closing envelope) and how much is still receivable from a convenio.

| Payment                          | cash        | receivable        | status           |
|----------------------------------|-------------|-------------------|------------------|
| Not paid                         | 0           | gross or paid     | AWAITING_PAYMENT |
| Private pay                      | paid        | 0                 | PENDING_CLOSE    |
| Convenio with patient co-payment | paid        | gross - paid      | PENDING_CLOSE    |
| Pure convenio                    | 0           | gross             | AWAITING_PAYMENT |

When the gross amount is known, cash is capped at gross and the receivable
is whatever remains, so both components always add up to gross.
"""

from typing import Dict, List, Optional

import structlog

from ..models import (
    ComponentSplit,
    PaymentMethod,
    PaymentStatus,
    ServiceItem,
)

logger = structlog.get_logger()


def split(
    is_private_pay: bool,
    payment_method: PaymentMethod,
    amount_paid_cents: int,
    gross_amount_cents: Optional[int] = None,
) -> ComponentSplit:
    """
    Split a service payment into cash and receivable components.

    Pure function, never raises. Negative inputs are clamped to zero.
    """
    paid = max(0, amount_paid_cents or 0)
    gross = max(0, gross_amount_cents) if gross_amount_cents is not None else None

    if payment_method == PaymentMethod.UNPAID:
        return ComponentSplit(
            cash_cents=0,
            receivable_cents=gross if gross is not None else paid,
            payment_status=PaymentStatus.AWAITING_PAYMENT,
        )

    if is_private_pay or paid > 0:
        if gross is None:
            cash = paid
            receivable = 0
        else:
            cash = min(paid, gross)
            receivable = gross - cash
        return ComponentSplit(
            cash_cents=cash,
            receivable_cents=receivable,
            payment_status=PaymentStatus.PENDING_CLOSE,
        )

    return ComponentSplit(
        cash_cents=0,
        receivable_cents=gross if gross is not None else 0,
        payment_status=PaymentStatus.AWAITING_PAYMENT,
    )


class ComponentSplitter:
    """Applies the cash/receivable split to LIS service items."""

    def split_item(self, item: ServiceItem) -> ComponentSplit:
        """Compute the split for an item without touching it."""
        return split(
            is_private_pay=item.is_private_pay,
            payment_method=item.payment_method,
            amount_paid_cents=item.amount_paid_cents,
            gross_amount_cents=item.gross_amount_cents,
        )

    def apply_split(self, item: ServiceItem) -> bool:
        """
        Write the split onto the item.

        Returns False (item untouched) when the item is already locked
        in an envelope.
        """
        if item.is_locked:
            logger.debug(
                "Split skipped - item locked in envelope",
                item_id=item.id,
                envelope_id=item.envelope_id,
            )
            return False

        result = self.split_item(item)
        item.cash_component_cents = result.cash_cents
        item.receivable_component_cents = result.receivable_cents
        item.payment_status = result.payment_status
        return True

    def apply_many(self, items: List[ServiceItem]) -> Dict[str, int]:
        """Split every unlocked item; returns counters."""
        updated = 0
        locked = 0
        for item in items:
            if self.apply_split(item):
                updated += 1
            else:
                locked += 1

        stats = {"updated": updated, "skipped_locked": locked}
        logger.info("Component split complete", **stats)
        return stats
