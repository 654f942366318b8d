"""Input record models supplied by the back-office collaborators."""

from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional

from .enums import (
    ComprovanteStatus,
    PayableStatus,
    PaymentMethod,
    PaymentStatus,
    TransactionType,
)


@dataclass
class Payable:
    """
    An outgoing obligation (boleto, tax guide, supplier installment).
    All monetary amounts are stored in CENTS (integer) to avoid floating point errors.
    """
    id: str
    beneficiary_name: str = ""
    amount_cents: int = 0
    due_date: Optional[date] = None

    # Strong identifiers printed on the boleto
    digit_line: Optional[str] = None  # linha digitavel
    barcode: Optional[str] = None  # codigo de barras

    # Weak identifiers
    taxpayer_id: Optional[str] = None  # beneficiary CNPJ
    document_number: Optional[str] = None

    status: PayableStatus = PayableStatus.PENDING

    @property
    def amount(self) -> float:
        """Return amount in standard units (reais)."""
        return self.amount_cents / 100.0

    @property
    def identifiers(self) -> list:
        """Strong identifiers in matching order."""
        return [i for i in (self.digit_line, self.barcode) if i]


@dataclass
class BankRecord:
    """A bank statement line for a reconciliation run."""
    id: str
    date: Optional[date] = None
    description: str = ""
    amount_cents: int = 0  # Sign is ignored, direction comes from transaction_type
    transaction_type: TransactionType = TransactionType.DEBIT

    @property
    def amount(self) -> float:
        return self.amount_cents / 100.0

    @property
    def abs_amount_cents(self) -> int:
        return abs(self.amount_cents)

    @property
    def is_debit(self) -> bool:
        return self.transaction_type == TransactionType.DEBIT


@dataclass
class Transaction:
    """A financial transaction already recorded in the ledger."""
    id: str
    date: Optional[date] = None
    amount_cents: int = 0
    description: Optional[str] = None
    lis_protocol_id: Optional[str] = None  # LIS code recorded on the transaction
    transaction_type: TransactionType = TransactionType.CREDIT
    deleted_at: Optional[datetime] = None

    @property
    def amount(self) -> float:
        return self.amount_cents / 100.0

    @property
    def is_deleted(self) -> bool:
        return self.deleted_at is not None


@dataclass
class ServiceItem:
    """
    A LIS attendance row for one closure.

    cash_component_cents + receivable_component_cents == gross_amount_cents
    whenever the gross amount is known. Once envelope_id is set the item is
    locked for selection and splitting.
    """
    id: str
    lis_code: str
    date: Optional[date] = None
    patient_name: Optional[str] = None
    convenio: Optional[str] = None  # None means private pay (particular)
    payment_method: PaymentMethod = PaymentMethod.CASH
    amount_paid_cents: int = 0
    gross_amount_cents: Optional[int] = None

    # Derived by the component splitter
    cash_component_cents: int = 0
    receivable_component_cents: int = 0
    payment_status: PaymentStatus = PaymentStatus.PENDING_CLOSE

    # Links
    closure_id: Optional[str] = None
    envelope_id: Optional[str] = None
    transaction_id: Optional[str] = None
    comprovante_status: Optional[ComprovanteStatus] = None

    @property
    def is_private_pay(self) -> bool:
        """Private pay when there is no convenio or it reads 'Particular' / 'Part.'."""
        if not self.convenio:
            return True
        convenio = self.convenio.lower()
        return "particular" in convenio or "part." in convenio

    @property
    def is_locked(self) -> bool:
        """Check if this item was already assigned to an envelope."""
        return self.envelope_id is not None

    @property
    def amount(self) -> float:
        return self.amount_paid_cents / 100.0

    @property
    def cash_component(self) -> float:
        return self.cash_component_cents / 100.0

    @property
    def receivable_component(self) -> float:
        return self.receivable_component_cents / 100.0
