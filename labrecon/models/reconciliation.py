"""Reconciliation result models."""

from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from typing import Optional, List, Dict, Any
from uuid import uuid4

from .enums import (
    AuditAction,
    ComprovanteStatus,
    DivergenceType,
    MatchType,
    PaymentStatus,
)
from .transaction import Payable, ServiceItem, Transaction


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class MatchCandidate:
    """A proposed link between a payable and a bank statement line."""
    payable_id: str
    match_type: MatchType
    confidence: int  # 0-100
    value_diff_cents: int = 0
    date_diff_days: Optional[int] = None
    bank_record_id: Optional[str] = None
    bank_description: Optional[str] = None
    payable: Optional[Payable] = field(default=None, compare=False, repr=False)

    @property
    def value_diff(self) -> float:
        return self.value_diff_cents / 100.0


@dataclass(frozen=True)
class ComponentSplit:
    """Cash vs receivable split of a service payment."""
    cash_cents: int
    receivable_cents: int
    payment_status: PaymentStatus

    @property
    def total_cents(self) -> int:
        return self.cash_cents + self.receivable_cents


@dataclass
class ReconciliationResult:
    """Verdict of reconciling one LIS item against recorded transactions."""
    item_id: str
    lis_code: str
    status: ComprovanteStatus
    matched_transaction_id: Optional[str] = None
    divergence_type: Optional[DivergenceType] = None
    matched_amount_cents: Optional[int] = None
    matched_date: Optional[date] = None

    # Ambiguity and degradation details
    candidate_transaction_ids: List[str] = field(default_factory=list)
    lookup_failed: bool = False

    @property
    def is_matched(self) -> bool:
        return self.status == ComprovanteStatus.CONCILIADO

    @property
    def needs_review(self) -> bool:
        return self.status == ComprovanteStatus.DUPLICIDADE


@dataclass
class EnvelopeClosing:
    """Summary of a cash envelope assembled from selected items."""
    envelope_id: str
    item_ids: List[str] = field(default_factory=list)
    lis_codes: List[str] = field(default_factory=list)
    expected_cash_cents: int = 0
    counted_cash_cents: int = 0
    justification: Optional[str] = None
    closed_at: datetime = field(default_factory=_utcnow)

    @property
    def difference_cents(self) -> int:
        """Counted minus expected: positive is surplus, negative is shortage."""
        return self.counted_cash_cents - self.expected_cash_cents

    @property
    def is_balanced(self) -> bool:
        return self.difference_cents == 0


@dataclass
class DuplicateEntry:
    """A LIS code recorded by more than one transaction."""
    lis_code: str
    transaction_ids: List[str] = field(default_factory=list)
    dates: List[date] = field(default_factory=list)
    total_amount_cents: int = 0

    @property
    def occurrences(self) -> int:
        return len(self.transaction_ids)


@dataclass
class LisMatchedPair:
    """A LIS item paired one-to-one with a transaction by LIS code."""
    lis_code: str
    item_id: str
    transaction_id: str
    lis_amount_cents: int
    transaction_amount_cents: int
    lis_date: Optional[date] = None
    transaction_date: Optional[date] = None

    @property
    def amount_gap_cents(self) -> int:
        return self.transaction_amount_cents - self.lis_amount_cents


@dataclass
class LisFinancialTotals:
    lis_count: int = 0
    lis_amount_cents: int = 0
    transaction_count: int = 0
    transaction_amount_cents: int = 0
    matched_count: int = 0
    matched_amount_cents: int = 0


@dataclass
class LisFinancialSummary:
    """Period cross-check between LIS items and incoming transactions."""
    lis_without_financial: List[ServiceItem] = field(default_factory=list)
    financial_without_lis: List[Transaction] = field(default_factory=list)
    duplicates: List[DuplicateEntry] = field(default_factory=list)
    matched: List[LisMatchedPair] = field(default_factory=list)
    totals: LisFinancialTotals = field(default_factory=LisFinancialTotals)


@dataclass
class AuditEntry:
    """An entry in the audit log."""
    id: str = field(default_factory=lambda: str(uuid4()))
    timestamp: datetime = field(default_factory=_utcnow)

    # Action
    action: AuditAction = AuditAction.LIS_RECONCILED

    # Context
    record_ids: List[str] = field(default_factory=list)

    # Details
    message: str = ""
    details: Dict[str, Any] = field(default_factory=dict)

    # Outcome
    success: bool = True
    error_message: Optional[str] = None
