"""Data models for the reconciliation engine."""

from .enums import (
    TransactionType,
    PayableStatus,
    MatchType,
    ConfidenceLevel,
    PaymentMethod,
    PaymentStatus,
    ComprovanteStatus,
    DivergenceType,
    DuplicateTier,
    AuditAction,
)
from .transaction import (
    Payable,
    BankRecord,
    Transaction,
    ServiceItem,
)
from .documents import (
    DocumentFingerprint,
    ExistingDocument,
    TierConfig,
    DUPLICATE_TIER_CONFIG,
    DuplicateVerdict,
)
from .reconciliation import (
    MatchCandidate,
    ComponentSplit,
    ReconciliationResult,
    EnvelopeClosing,
    DuplicateEntry,
    LisMatchedPair,
    LisFinancialTotals,
    LisFinancialSummary,
    AuditEntry,
)

__all__ = [
    # Enums
    "TransactionType",
    "PayableStatus",
    "MatchType",
    "ConfidenceLevel",
    "PaymentMethod",
    "PaymentStatus",
    "ComprovanteStatus",
    "DivergenceType",
    "DuplicateTier",
    "AuditAction",
    # Records
    "Payable",
    "BankRecord",
    "Transaction",
    "ServiceItem",
    # Duplicates
    "DocumentFingerprint",
    "ExistingDocument",
    "TierConfig",
    "DUPLICATE_TIER_CONFIG",
    "DuplicateVerdict",
    # Results
    "MatchCandidate",
    "ComponentSplit",
    "ReconciliationResult",
    "EnvelopeClosing",
    "DuplicateEntry",
    "LisMatchedPair",
    "LisFinancialTotals",
    "LisFinancialSummary",
    "AuditEntry",
]
