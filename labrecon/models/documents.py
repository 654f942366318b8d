"""Duplicate-detection models and tier configuration."""

from dataclasses import dataclass
from datetime import date
from typing import Optional, Dict

from .enums import DuplicateTier, PayableStatus


@dataclass(frozen=True)
class DocumentFingerprint:
    """Identifying fields of a newly submitted payable or tax document."""
    barcode: Optional[str] = None
    digit_line: Optional[str] = None
    taxpayer_id: Optional[str] = None
    document_number: Optional[str] = None
    amount_cents: Optional[int] = None
    due_date: Optional[date] = None
    beneficiary_name: Optional[str] = None


@dataclass(frozen=True)
class ExistingDocument:
    """An already registered document, as returned by a DocumentLookup."""
    id: str
    beneficiary_name: str = ""
    amount_cents: int = 0
    due_date: Optional[date] = None
    status: PayableStatus = PayableStatus.PENDING
    document_number: Optional[str] = None
    taxpayer_id: Optional[str] = None
    barcode: Optional[str] = None
    digit_line: Optional[str] = None

    @property
    def is_cancelled(self) -> bool:
        return self.status == PayableStatus.CANCELLED


@dataclass(frozen=True)
class TierConfig:
    """Presentation and policy of a duplicate tier."""
    title: str
    description: str
    allow_continue: bool
    severity: int  # Higher is more severe


DUPLICATE_TIER_CONFIG: Dict[DuplicateTier, TierConfig] = {
    DuplicateTier.BLOCKED: TierConfig(
        title="Documento Duplicado",
        description="Este documento já está cadastrado no sistema e não pode ser registrado novamente.",
        allow_continue=False,
        severity=4,
    ),
    DuplicateTier.HIGH: TierConfig(
        title="Alta Probabilidade de Duplicidade",
        description="Encontramos um registro muito similar. Confirme se deseja cadastrar mesmo assim.",
        allow_continue=True,
        severity=3,
    ),
    DuplicateTier.MEDIUM: TierConfig(
        title="Possível Duplicidade",
        description="Existe um registro com dados semelhantes. Verifique antes de continuar.",
        allow_continue=True,
        severity=2,
    ),
    DuplicateTier.LOW: TierConfig(
        title="Registro Similar Encontrado",
        description="Encontramos um registro parecido, mas pode ser apenas coincidência.",
        allow_continue=True,
        severity=1,
    ),
    DuplicateTier.NONE: TierConfig(
        title="",
        description="",
        allow_continue=True,
        severity=0,
    ),
}


@dataclass(frozen=True)
class DuplicateVerdict:
    """Advisory result of a duplicate check."""
    tier: DuplicateTier = DuplicateTier.NONE
    reason: str = ""
    existing: Optional[ExistingDocument] = None
    allow_continue: bool = True
    lookup_failed: bool = False  # At least one lookup errored and was skipped

    @property
    def config(self) -> TierConfig:
        return DUPLICATE_TIER_CONFIG[self.tier]

    @property
    def severity(self) -> int:
        return self.config.severity

    @property
    def existing_id(self) -> Optional[str]:
        return self.existing.id if self.existing else None

    @property
    def requires_confirmation(self) -> bool:
        """Any tier other than none must be shown to a human before writing."""
        return self.tier != DuplicateTier.NONE
