"""Enumerations for the reconciliation engine."""

import unicodedata
from enum import Enum


class TransactionType(str, Enum):
    """Direction of a bank line or recorded transaction."""
    DEBIT = "debit"        # Money out (saida)
    CREDIT = "credit"      # Money in (entrada)


class PayableStatus(str, Enum):
    """Lifecycle of an accounts-payable record."""
    PENDING = "PENDENTE"
    PAID = "PAGO"
    OVERDUE = "VENCIDO"
    CANCELLED = "CANCELADO"


class MatchType(str, Enum):
    """
    Strategy that produced a payable/bank match.

    LINHA_DIGITAVEL: boleto digit line (or barcode) found in the bank description
    EXACT_VALUE_DATE: same amount within a few days of the due date
    BENEFICIARIO_NAME: beneficiary name found in the description, close amount
    MANUAL: linked by an operator
    """
    LINHA_DIGITAVEL = "linha_digitavel"
    EXACT_VALUE_DATE = "exact_value_date"
    BENEFICIARIO_NAME = "beneficiario_name"
    MANUAL = "manual"

    @property
    def priority(self) -> int:
        """Evaluation order, used to break confidence ties."""
        return _MATCH_TYPE_PRIORITY[self]


_MATCH_TYPE_PRIORITY = {
    MatchType.MANUAL: 0,
    MatchType.LINHA_DIGITAVEL: 1,
    MatchType.EXACT_VALUE_DATE: 2,
    MatchType.BENEFICIARIO_NAME: 3,
}


class ConfidenceLevel(str, Enum):
    """UI band of a match confidence."""
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class PaymentMethod(str, Enum):
    """How the patient paid for a service at the reception desk."""
    CASH = "DINHEIRO"
    PIX = "PIX"
    CARD = "CARTAO"
    UNPAID = "NAO_PAGO"

    @property
    def is_paid_at_reception(self) -> bool:
        return self in (PaymentMethod.CASH, PaymentMethod.PIX, PaymentMethod.CARD)

    @classmethod
    def from_lis_label(cls, label: str) -> "PaymentMethod":
        """
        Map a payment label exported by the LIS to a payment method.

        Unknown or empty labels default to PIX, as the LIS export does.
        """
        text = unicodedata.normalize("NFD", (label or "").lower())
        text = "".join(c for c in text if not unicodedata.combining(c)).strip()

        if "dinheiro" in text:
            return cls.CASH
        if "pix" in text:
            return cls.PIX
        if "cart" in text or "credito" in text or "debito" in text:
            return cls.CARD
        if "boleto" in text or "nao pago" in text or "faturar" in text:
            return cls.UNPAID
        return cls.PIX


class PaymentStatus(str, Enum):
    """
    Payment status of a LIS service item.

    PENDING_CLOSE: cash collected, waiting to be put in an envelope
    AWAITING_PAYMENT: nothing collected yet, value is owed by a payer
    CLOSED_IN_ENVELOPE: cash already assigned to a closing envelope
    """
    PENDING_CLOSE = "PENDENTE"
    AWAITING_PAYMENT = "A_RECEBER"
    CLOSED_IN_ENVELOPE = "FECHADO_EM_ENVELOPE"


class ComprovanteStatus(str, Enum):
    """Outcome of reconciling a LIS item against recorded transactions."""
    CONCILIADO = "CONCILIADO"
    SEM_COMPROVANTE = "SEM_COMPROVANTE"
    DUPLICIDADE = "DUPLICIDADE"


class DivergenceType(str, Enum):
    """Kind of divergence on a reconciled item."""
    DATA = "DATA"


class DuplicateTier(str, Enum):
    """Severity of a duplicate-document verdict."""
    BLOCKED = "blocked"
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"
    NONE = "none"


class AuditAction(str, Enum):
    """Type of audit action."""
    COMPONENTS_SPLIT = "components_split"
    SPLIT_SKIPPED_LOCKED = "split_skipped_locked"
    DUPLICATE_CHECKED = "duplicate_checked"
    PAYABLES_MATCHED = "payables_matched"
    LIS_RECONCILED = "lis_reconciled"
    LIS_RESULTS_APPLIED = "lis_results_applied"
    LIS_SUMMARIZED = "lis_summarized"
    LOOKUP_FAILED = "lookup_failed"
    ENVELOPE_CLOSED = "envelope_closed"
    MANUAL_REVIEW_REQUIRED = "manual_review_required"
