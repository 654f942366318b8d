"""
LIS-to-Transaction Reconciler.

Pairs each LIS service item of a closure with a recorded transaction that
carries its LIS code (in lis_protocol_id or as a "[LIS <code>]" /
"LIS:<code>" marker in the description), is dated within a tolerance of
the item date and has the same amount to the cent.

The reconciler never guesses: two or more equally valid transactions are
reported as DUPLICIDADE for a human to resolve.
"""

import re
from datetime import timedelta
from typing import Dict, List, Optional

import structlog

from ..config import get_settings
from ..integrations.lookups import TransactionLookup
from ..models import (
    ComprovanteStatus,
    DivergenceType,
    ReconciliationResult,
    ServiceItem,
    Transaction,
)

logger = structlog.get_logger()


_LIS_MARKER = re.compile(r"\[LIS\s+([^\]]+)\]", re.IGNORECASE)


def extract_lis_code(description: Optional[str]) -> Optional[str]:
    """Extract the LIS code from a "[LIS <code>]" description marker."""
    if not description:
        return None
    match = _LIS_MARKER.search(description)
    return match.group(1).strip() if match else None


def references_code(transaction: Transaction, lis_code: str) -> bool:
    """True when the transaction is tagged with the given LIS code."""
    if transaction.lis_protocol_id and transaction.lis_protocol_id.strip() == lis_code:
        return True
    description = transaction.description or ""
    code = re.escape(lis_code.strip())
    marker = re.compile(rf"\[LIS\s+{code}\s*\]|LIS:\s*{code}(?![0-9A-Za-z])", re.IGNORECASE)
    return marker.search(description) is not None


class LisReconciler:
    """Reconciles LIS closure items against recorded transactions."""

    def __init__(self, tolerance_days: Optional[int] = None):
        self.settings = get_settings()
        self.tolerance_days = (
            tolerance_days if tolerance_days is not None
            else self.settings.lis_date_tolerance_days
        )

    def reconcile(
        self,
        items: List[ServiceItem],
        lookup_transactions: TransactionLookup,
    ) -> List[ReconciliationResult]:
        """
        Reconcile a batch of items.

        Args:
            items: Service items of one closure
            lookup_transactions: Callable returning candidate transactions
                for an item. Errors raised by it degrade that item to
                SEM_COMPROVANTE and the batch continues.

        Returns:
            One result per item, in input order
        """
        logger.info("Starting LIS reconciliation", items=len(items))

        results = [self._reconcile_item(item, lookup_transactions) for item in items]

        counts = count_by_status(results)
        logger.info(
            "LIS reconciliation complete",
            lookup_failures=sum(1 for r in results if r.lookup_failed),
            **counts,
        )
        return results

    def _reconcile_item(
        self,
        item: ServiceItem,
        lookup_transactions: TransactionLookup,
    ) -> ReconciliationResult:
        if item.date is None:
            logger.debug("Item without date - no comparison possible", item_id=item.id)
            return self._no_proof(item)

        try:
            transactions = list(lookup_transactions(item))
        except Exception as exc:
            logger.warning(
                "Transaction lookup failed",
                item_id=item.id,
                lis_code=item.lis_code,
                error=str(exc),
            )
            return self._no_proof(item, lookup_failed=True)

        matching = [
            tx for tx in self._filter_candidates(item, transactions)
            if tx.amount_cents == item.amount_paid_cents
        ]

        if not matching:
            return self._no_proof(item)

        if len(matching) > 1:
            logger.info(
                "Ambiguous LIS match - manual review required",
                item_id=item.id,
                lis_code=item.lis_code,
                transaction_ids=[tx.id for tx in matching],
            )
            return ReconciliationResult(
                item_id=item.id,
                lis_code=item.lis_code,
                status=ComprovanteStatus.DUPLICIDADE,
                candidate_transaction_ids=[tx.id for tx in matching],
            )

        tx = matching[0]
        return ReconciliationResult(
            item_id=item.id,
            lis_code=item.lis_code,
            status=ComprovanteStatus.CONCILIADO,
            matched_transaction_id=tx.id,
            divergence_type=DivergenceType.DATA if tx.date != item.date else None,
            matched_amount_cents=tx.amount_cents,
            matched_date=tx.date,
            candidate_transaction_ids=[tx.id],
        )

    def _filter_candidates(
        self,
        item: ServiceItem,
        transactions: List[Transaction],
    ) -> List[Transaction]:
        """Referenced, dated inside the window, not soft deleted."""
        window_start = item.date - timedelta(days=self.tolerance_days)
        window_end = item.date + timedelta(days=self.tolerance_days)

        candidates = []
        seen = set()
        for tx in transactions:
            if tx.id in seen or tx.is_deleted or tx.date is None:
                continue
            if not window_start <= tx.date <= window_end:
                continue
            if not references_code(tx, item.lis_code):
                continue
            seen.add(tx.id)
            candidates.append(tx)
        return candidates

    def _no_proof(
        self,
        item: ServiceItem,
        lookup_failed: bool = False,
    ) -> ReconciliationResult:
        return ReconciliationResult(
            item_id=item.id,
            lis_code=item.lis_code,
            status=ComprovanteStatus.SEM_COMPROVANTE,
            lookup_failed=lookup_failed,
        )


def apply_results(
    items: List[ServiceItem],
    results: List[ReconciliationResult],
) -> int:
    """
    Write verdicts back onto the items.

    Sets comprovante_status and, for matched items, the transaction link.
    Existing links are never cleared. Idempotent: returns how many items
    actually changed, so a second application returns 0.
    """
    by_id: Dict[str, ServiceItem] = {item.id: item for item in items}
    changed = 0

    for result in results:
        item = by_id.get(result.item_id)
        if item is None:
            logger.warning("Result for unknown item ignored", item_id=result.item_id)
            continue

        updated = False
        if item.comprovante_status != result.status:
            item.comprovante_status = result.status
            updated = True

        if result.matched_transaction_id and item.transaction_id != result.matched_transaction_id:
            item.transaction_id = result.matched_transaction_id
            updated = True

        if updated:
            changed += 1

    logger.info("Reconciliation results applied", results=len(results), changed=changed)
    return changed


def count_by_status(results: List[ReconciliationResult]) -> Dict[str, int]:
    """Count results per comprovante status."""
    return {
        "conciliado": sum(1 for r in results if r.status == ComprovanteStatus.CONCILIADO),
        "sem_comprovante": sum(1 for r in results if r.status == ComprovanteStatus.SEM_COMPROVANTE),
        "duplicidade": sum(1 for r in results if r.status == ComprovanteStatus.DUPLICIDADE),
    }
