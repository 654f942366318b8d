"""
Duplicate Classifier.

Classifies a newly submitted payable or tax document against existing
records. Tiers are evaluated from strongest to weakest evidence and the
first hit is returned:

1. blocked: same barcode or digit line (no override)
2. high:    same CNPJ + document number, or same CNPJ + amount + due date
3. medium:  same CNPJ with close amount and close due date
4. low:     similar beneficiary name with close amount (advisory)
5. none

The classifier is advisory: it never writes or locks anything.
"""

from dataclasses import replace
from typing import Callable, List, Optional

import structlog

from ..config import get_settings
from ..integrations.lookups import DocumentLookup
from ..models import (
    DUPLICATE_TIER_CONFIG,
    DocumentFingerprint,
    DuplicateTier,
    DuplicateVerdict,
    ExistingDocument,
)
from ..utils.normalization import (
    days_between,
    digits_only,
    name_similarity,
    values_within,
)

logger = structlog.get_logger()


def _active(documents: List[ExistingDocument]) -> List[ExistingDocument]:
    return [d for d in documents if not d.is_cancelled]


def _verdict(
    tier: DuplicateTier,
    reason: str,
    existing: ExistingDocument,
) -> DuplicateVerdict:
    return DuplicateVerdict(
        tier=tier,
        reason=reason,
        existing=existing,
        allow_continue=DUPLICATE_TIER_CONFIG[tier].allow_continue,
    )


class DuplicateClassifier:
    """Multi-tier duplicate detection for payables and tax documents."""

    def __init__(
        self,
        value_tolerance: Optional[float] = None,
        date_window_days: Optional[int] = None,
        low_value_tolerance: Optional[float] = None,
        name_similarity_threshold: Optional[float] = None,
    ):
        self.settings = get_settings()
        self.value_tolerance = (
            value_tolerance if value_tolerance is not None
            else self.settings.duplicate_value_tolerance
        )
        self.date_window = (
            date_window_days if date_window_days is not None
            else self.settings.duplicate_date_window_days
        )
        self.low_value_tolerance = (
            low_value_tolerance if low_value_tolerance is not None
            else self.settings.duplicate_low_value_tolerance
        )
        self.name_threshold = (
            name_similarity_threshold if name_similarity_threshold is not None
            else self.settings.duplicate_name_similarity
        )

    def classify(
        self,
        candidate: DocumentFingerprint,
        lookup: DocumentLookup,
    ) -> DuplicateVerdict:
        """
        Classify a candidate document.

        A failing lookup skips its tier only; the verdict then carries
        lookup_failed=True.
        """
        checks = [
            self._check_strong_identifiers,
            self._check_high,
            self._check_medium,
            self._check_low,
        ]
        return self._run_checks(candidate, lookup, checks)

    def check_simple(
        self,
        candidate: DocumentFingerprint,
        lookup: DocumentLookup,
    ) -> DuplicateVerdict:
        """Barcode / digit line only, for quick form validation."""
        return self._run_checks(candidate, lookup, [self._check_strong_identifiers])

    def _run_checks(
        self,
        candidate: DocumentFingerprint,
        lookup: DocumentLookup,
        checks: List[Callable],
    ) -> DuplicateVerdict:
        lookup_failed = False

        for check in checks:
            try:
                verdict = check(candidate, lookup)
            except Exception as exc:
                logger.warning(
                    "Duplicate lookup failed - tier skipped",
                    check=check.__name__,
                    error=str(exc),
                )
                lookup_failed = True
                continue

            if verdict is not None:
                logger.info(
                    "Duplicate candidate found",
                    tier=verdict.tier.value,
                    existing_id=verdict.existing_id,
                )
                return replace(verdict, lookup_failed=lookup_failed)

        return DuplicateVerdict(lookup_failed=lookup_failed)

    def _check_strong_identifiers(
        self,
        candidate: DocumentFingerprint,
        lookup: DocumentLookup,
    ) -> Optional[DuplicateVerdict]:
        barcode = digits_only(candidate.barcode)
        if barcode:
            found = _active(lookup.find_by_barcode(barcode))
            if found:
                return _verdict(
                    DuplicateTier.BLOCKED,
                    "Código de barras já cadastrado no sistema",
                    found[0],
                )

        digit_line = digits_only(candidate.digit_line)
        if digit_line:
            found = _active(lookup.find_by_digit_line(digit_line))
            if found:
                return _verdict(
                    DuplicateTier.BLOCKED,
                    "Linha digitável já cadastrada no sistema",
                    found[0],
                )

        return None

    def _check_high(
        self,
        candidate: DocumentFingerprint,
        lookup: DocumentLookup,
    ) -> Optional[DuplicateVerdict]:
        taxpayer = digits_only(candidate.taxpayer_id)
        if not taxpayer:
            return None

        same_taxpayer = _active(lookup.find_by_taxpayer(taxpayer))

        doc_number = (candidate.document_number or "").strip()
        if doc_number:
            for doc in same_taxpayer:
                if (doc.document_number or "").strip() == doc_number:
                    return _verdict(
                        DuplicateTier.HIGH,
                        "CNPJ e número do documento idênticos a registro existente",
                        doc,
                    )

        if candidate.amount_cents and candidate.due_date:
            for doc in same_taxpayer:
                if (
                    doc.amount_cents == candidate.amount_cents
                    and doc.due_date == candidate.due_date
                ):
                    return _verdict(
                        DuplicateTier.HIGH,
                        "CNPJ, valor e vencimento idênticos a registro existente",
                        doc,
                    )

        return None

    def _check_medium(
        self,
        candidate: DocumentFingerprint,
        lookup: DocumentLookup,
    ) -> Optional[DuplicateVerdict]:
        taxpayer = digits_only(candidate.taxpayer_id)
        if not taxpayer or not candidate.amount_cents or not candidate.due_date:
            return None

        for doc in _active(lookup.find_by_taxpayer(taxpayer)):
            days = days_between(doc.due_date, candidate.due_date)
            if days is None or days > self.date_window:
                continue
            if values_within(doc.amount_cents, candidate.amount_cents, self.value_tolerance):
                return _verdict(
                    DuplicateTier.MEDIUM,
                    "Mesmo CNPJ com valor e vencimento próximos a registro existente",
                    doc,
                )

        return None

    def _check_low(
        self,
        candidate: DocumentFingerprint,
        lookup: DocumentLookup,
    ) -> Optional[DuplicateVerdict]:
        if not candidate.beneficiary_name or not candidate.amount_cents:
            return None

        amount = candidate.amount_cents
        min_cents = int(amount * (1 - self.low_value_tolerance))
        max_cents = int(round(amount * (1 + self.low_value_tolerance)))

        for doc in _active(lookup.find_by_amount_range(min_cents, max_cents)):
            if not values_within(doc.amount_cents, amount, self.low_value_tolerance):
                continue
            similarity = name_similarity(candidate.beneficiary_name, doc.beneficiary_name)
            if similarity >= self.name_threshold:
                return _verdict(
                    DuplicateTier.LOW,
                    "Encontrado registro com beneficiário e valor similares",
                    doc,
                )

        return None


def classify_document(
    candidate: DocumentFingerprint,
    lookup: DocumentLookup,
) -> DuplicateVerdict:
    """Classify with default settings."""
    return DuplicateClassifier().classify(candidate, lookup)


def check_simple_duplicate(
    lookup: DocumentLookup,
    barcode: Optional[str] = None,
    digit_line: Optional[str] = None,
) -> DuplicateVerdict:
    """Quick barcode / digit line check used by data-entry forms."""
    candidate = DocumentFingerprint(barcode=barcode, digit_line=digit_line)
    return DuplicateClassifier().check_simple(candidate, lookup)
