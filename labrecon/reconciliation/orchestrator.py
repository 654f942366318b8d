"""
Reconciliation Orchestrator - facade over the engine components.

Wires together:
1. Component splitting of LIS service items
2. Duplicate classification of submitted documents
3. Payable-to-bank matching
4. LIS-to-transaction reconciliation and period summary
5. Cash envelope closing

Every operation appends entries to a run-scoped audit trail.
"""

from pathlib import Path
from typing import Dict, List, Optional
from uuid import uuid4

import structlog

from ..config import get_settings
from ..exceptions import ItemsAlreadyAssignedError
from ..integrations.lookups import DocumentLookup, TransactionLookup
from ..models import (
    AuditAction,
    BankRecord,
    ComprovanteStatus,
    DocumentFingerprint,
    DuplicateVerdict,
    EnvelopeClosing,
    LisFinancialSummary,
    MatchCandidate,
    Payable,
    ReconciliationResult,
    ServiceItem,
    Transaction,
)
from ..utils.audit_logger import AuditLogger
from . import cash_closing
from .component_splitter import ComponentSplitter
from .duplicate_classifier import DuplicateClassifier
from .lis_reconciler import LisReconciler, apply_results
from .lis_summary import summarize
from .payable_matcher import PayableMatcher, find_unmatched_payables

logger = structlog.get_logger()


class ReconciliationOrchestrator:
    """
    Entry point for callers that want the engine plus an audit trail.

    Components can be injected for custom thresholds or scoring; defaults
    read their configuration from settings.
    """

    def __init__(
        self,
        run_id: Optional[str] = None,
        splitter: Optional[ComponentSplitter] = None,
        classifier: Optional[DuplicateClassifier] = None,
        matcher: Optional[PayableMatcher] = None,
        reconciler: Optional[LisReconciler] = None,
    ):
        self.settings = get_settings()
        self.run_id = run_id or str(uuid4())
        self.splitter = splitter or ComponentSplitter()
        self.classifier = classifier or DuplicateClassifier()
        self.matcher = matcher or PayableMatcher()
        self.reconciler = reconciler or LisReconciler()
        self.audit = AuditLogger(self.run_id)

    def split_components(self, items: List[ServiceItem]) -> Dict[str, int]:
        """Apply the cash/receivable split to every unlocked item."""
        locked_ids = [item.id for item in items if item.is_locked]
        stats = self.splitter.apply_many(items)

        self.audit.record(
            AuditAction.COMPONENTS_SPLIT,
            f"Split {stats['updated']} items into cash and receivable",
            record_ids=[item.id for item in items if not item.is_locked],
            **stats,
        )
        if locked_ids:
            self.audit.record(
                AuditAction.SPLIT_SKIPPED_LOCKED,
                f"{len(locked_ids)} items already in an envelope were not split",
                record_ids=locked_ids,
            )
        return stats

    def check_duplicate(
        self,
        candidate: DocumentFingerprint,
        lookup: DocumentLookup,
    ) -> DuplicateVerdict:
        """Classify a submitted document against existing records."""
        verdict = self.classifier.classify(candidate, lookup)

        if verdict.lookup_failed:
            self.audit.record(
                AuditAction.LOOKUP_FAILED,
                "Duplicate check ran with at least one failed lookup",
                success=False,
                error_message="document lookup failed",
            )

        self.audit.record(
            AuditAction.DUPLICATE_CHECKED,
            f"Duplicate check: {verdict.tier.value}",
            record_ids=[verdict.existing_id] if verdict.existing_id else [],
            tier=verdict.tier.value,
            reason=verdict.reason,
            allow_continue=verdict.allow_continue,
        )
        return verdict

    def match_payables(
        self,
        payables: List[Payable],
        bank_records: List[BankRecord],
    ) -> List[MatchCandidate]:
        """Propose payable links for a bank statement."""
        matches = self.matcher.find_matches(payables, bank_records)
        unmatched = find_unmatched_payables(payables, matches)

        self.audit.record(
            AuditAction.PAYABLES_MATCHED,
            f"Proposed {len(matches)} candidates for {len(payables)} payables",
            record_ids=sorted({m.payable_id for m in matches}),
            candidates=len(matches),
            unmatched_payables=len(unmatched),
        )
        return matches

    def reconcile_lis(
        self,
        items: List[ServiceItem],
        lookup_transactions: TransactionLookup,
    ) -> List[ReconciliationResult]:
        """Reconcile closure items against recorded transactions."""
        results = self.reconciler.reconcile(items, lookup_transactions)

        failed = [r.item_id for r in results if r.lookup_failed]
        ambiguous = [r for r in results if r.status == ComprovanteStatus.DUPLICIDADE]

        if failed:
            self.audit.record(
                AuditAction.LOOKUP_FAILED,
                f"Transaction lookup failed for {len(failed)} items",
                record_ids=failed,
                success=False,
                error_message="transaction lookup failed",
            )
        for result in ambiguous:
            self.audit.record(
                AuditAction.MANUAL_REVIEW_REQUIRED,
                f"LIS {result.lis_code} matches several transactions",
                record_ids=[result.item_id] + result.candidate_transaction_ids,
                lis_code=result.lis_code,
            )

        self.audit.record(
            AuditAction.LIS_RECONCILED,
            f"Reconciled {len(results)} LIS items",
            record_ids=[r.item_id for r in results],
            matched=sum(1 for r in results if r.is_matched),
            ambiguous=len(ambiguous),
        )
        return results

    def apply_lis_results(
        self,
        items: List[ServiceItem],
        results: List[ReconciliationResult],
    ) -> int:
        """Persist verdicts onto the items; returns how many changed."""
        changed = apply_results(items, results)
        self.audit.record(
            AuditAction.LIS_RESULTS_APPLIED,
            f"Applied reconciliation results to {changed} items",
            record_ids=[r.item_id for r in results],
            changed=changed,
        )
        return changed

    def summarize_lis(
        self,
        items: List[ServiceItem],
        transactions: List[Transaction],
    ) -> LisFinancialSummary:
        """Period cross-check between LIS and incoming transactions."""
        summary = summarize(items, transactions)
        self.audit.record(
            AuditAction.LIS_SUMMARIZED,
            "LIS financial summary built",
            matched=summary.totals.matched_count,
            lis_without_financial=len(summary.lis_without_financial),
            financial_without_lis=len(summary.financial_without_lis),
            duplicates=len(summary.duplicates),
        )
        return summary

    def close_envelope(
        self,
        items: List[ServiceItem],
        counted_cash_cents: int,
        envelope_id: Optional[str] = None,
        justification: Optional[str] = None,
    ) -> EnvelopeClosing:
        """
        Close a cash envelope.

        Raises:
            ItemsAlreadyAssignedError: propagated after being audited.
        """
        try:
            closing = cash_closing.close_envelope(
                items,
                counted_cash_cents,
                envelope_id=envelope_id,
                justification=justification,
            )
        except ItemsAlreadyAssignedError as e:
            logger.warning(
                "Envelope closing rejected",
                run_id=self.run_id,
                conflicting_ids=e.conflicting_ids,
            )
            self.audit.record(
                AuditAction.ENVELOPE_CLOSED,
                "Envelope closing rejected",
                record_ids=e.conflicting_ids,
                success=False,
                error_message=str(e),
            )
            raise

        self.audit.record(
            AuditAction.ENVELOPE_CLOSED,
            f"Envelope {closing.envelope_id} closed with {len(items)} items",
            record_ids=closing.item_ids,
            envelope_id=closing.envelope_id,
            expected_cash_cents=closing.expected_cash_cents,
            counted_cash_cents=closing.counted_cash_cents,
            difference_cents=closing.difference_cents,
        )
        return closing

    def export_audit(self, output_path: Optional[Path] = None) -> Path:
        """Write the audit trail of this run to a JSON report."""
        return self.audit.export_to_file(output_path)
