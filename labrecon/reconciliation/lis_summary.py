"""
LIS financial cross-check for a period.

Groups reception-paid LIS items by code and incoming transactions by the
LIS code recorded on them, then reports both kinds of orphans, codes
recorded more than once, and clean one-to-one pairs.
"""

from collections import OrderedDict
from typing import Dict, List

import structlog

from ..models import (
    DuplicateEntry,
    LisFinancialSummary,
    LisFinancialTotals,
    LisMatchedPair,
    ServiceItem,
    Transaction,
    TransactionType,
)

logger = structlog.get_logger()


def _group(records, key) -> Dict[str, list]:
    grouped: Dict[str, list] = OrderedDict()
    for record in records:
        grouped.setdefault(key(record), []).append(record)
    return grouped


def summarize(
    items: List[ServiceItem],
    transactions: List[Transaction],
) -> LisFinancialSummary:
    """
    Cross-check LIS items against incoming transactions.

    Only items paid at the reception (cash, PIX, card) and non-deleted
    incoming transactions take part.
    """
    lis_items = [i for i in items if i.payment_method.is_paid_at_reception]
    incoming = [
        tx for tx in transactions
        if tx.transaction_type == TransactionType.CREDIT and not tx.is_deleted
    ]

    items_by_code = _group(lis_items, lambda i: i.lis_code)
    linked = [tx for tx in incoming if tx.lis_protocol_id]
    tx_by_code = _group(linked, lambda tx: tx.lis_protocol_id)

    summary = LisFinancialSummary()

    for lis_code, code_items in items_by_code.items():
        code_transactions = tx_by_code.get(lis_code, [])

        if not code_transactions:
            summary.lis_without_financial.extend(code_items)
        elif len(code_transactions) == 1 and len(code_items) == 1:
            item = code_items[0]
            tx = code_transactions[0]
            summary.matched.append(LisMatchedPair(
                lis_code=lis_code,
                item_id=item.id,
                transaction_id=tx.id,
                lis_amount_cents=item.amount_paid_cents,
                transaction_amount_cents=tx.amount_cents,
                lis_date=item.date,
                transaction_date=tx.date,
            ))
        elif len(code_transactions) > 1:
            summary.duplicates.append(DuplicateEntry(
                lis_code=lis_code,
                transaction_ids=[tx.id for tx in code_transactions],
                dates=[tx.date for tx in code_transactions],
                total_amount_cents=sum(tx.amount_cents for tx in code_transactions),
            ))

    summary.financial_without_lis = [tx for tx in incoming if not tx.lis_protocol_id]

    summary.totals = LisFinancialTotals(
        lis_count=len(lis_items),
        lis_amount_cents=sum(i.amount_paid_cents for i in lis_items),
        transaction_count=len(incoming),
        transaction_amount_cents=sum(tx.amount_cents for tx in incoming),
        matched_count=len(summary.matched),
        matched_amount_cents=sum(p.lis_amount_cents for p in summary.matched),
    )

    logger.info(
        "LIS financial summary built",
        lis_items=summary.totals.lis_count,
        transactions=summary.totals.transaction_count,
        matched=summary.totals.matched_count,
        lis_orphans=len(summary.lis_without_financial),
        financial_orphans=len(summary.financial_without_lis),
        duplicates=len(summary.duplicates),
    )
    return summary
