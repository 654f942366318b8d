"""
Payable-to-Bank Matcher.

Proposes links between open payables and the debit lines of a bank
statement. Three strategies are tried per (payable, bank line), the first
that fires wins for that line:

1. Identifier: the boleto digit line (or barcode) appears in the description
2. Exact value + date: same amount, posted within a few days of the due date
3. Beneficiary name: name found in the description, amount within 5%

Each payable keeps its best few candidates; the final list is ranked by
confidence.
"""

from collections import OrderedDict
from typing import Dict, List, Optional

import structlog

from ..config import get_settings
from ..models import (
    BankRecord,
    MatchCandidate,
    MatchType,
    Payable,
)
from ..utils.normalization import (
    days_between,
    normalize_digit_line,
    normalize_name,
)
from .scoring import ConfidenceScorer, LinearConfidenceScorer

logger = structlog.get_logger()


MATCH_TYPE_LABELS: Dict[MatchType, str] = {
    MatchType.EXACT_VALUE_DATE: "Valor + Data",
    MatchType.LINHA_DIGITAVEL: "Linha Digitável",
    MatchType.BENEFICIARIO_NAME: "Nome Beneficiário",
    MatchType.MANUAL: "Manual",
}


def _rank_key(candidate: MatchCandidate):
    return (-candidate.confidence, candidate.match_type.priority)


class PayableMatcher:
    """
    Matches payables against bank statement debits.

    Deterministic and side-effect free: inputs are never mutated and every
    call returns freshly built candidates.
    """

    def __init__(
        self,
        scorer: Optional[ConfidenceScorer] = None,
        max_candidates_per_payable: Optional[int] = None,
    ):
        self.settings = get_settings()
        self.scorer = scorer or LinearConfidenceScorer()
        self.max_candidates = (
            max_candidates_per_payable if max_candidates_per_payable is not None
            else self.settings.max_candidates_per_payable
        )
        self.identifier_anchor = self.settings.identifier_anchor_length
        self.value_date_window = self.settings.value_date_window_days
        self.name_anchor = self.settings.name_anchor_length
        self.name_value_tolerance = self.settings.name_value_tolerance
        self.min_surfaced = self.settings.confidence_low

    def find_matches(
        self,
        payables: List[Payable],
        bank_records: List[BankRecord],
    ) -> List[MatchCandidate]:
        """
        Find ranked match candidates for every payable.

        Args:
            payables: Open payables
            bank_records: Bank statement lines for the period

        Returns:
            Candidates sorted by confidence, highest first
        """
        debits = [r for r in bank_records if r.is_debit]

        logger.info(
            "Starting payable matching",
            payables=len(payables),
            bank_records=len(bank_records),
            debits=len(debits),
        )

        results: List[MatchCandidate] = []
        for payable in payables:
            candidates = []
            for record in debits:
                candidate = self._match_record(payable, record)
                if candidate is None:
                    continue
                if candidate.confidence < self.min_surfaced:
                    continue
                candidates.append(candidate)

            candidates.sort(key=_rank_key)
            results.extend(candidates[:self.max_candidates])

        results.sort(key=_rank_key)

        logger.info(
            "Payable matching complete",
            candidates=len(results),
            matched_payables=len({c.payable_id for c in results}),
        )
        return results

    def best_match_for_payable(
        self,
        payable: Payable,
        bank_records: List[BankRecord],
    ) -> Optional[MatchCandidate]:
        """Highest-ranked candidate for a single payable, if any."""
        matches = self.find_matches([payable], bank_records)
        return matches[0] if matches else None

    def _match_record(
        self,
        payable: Payable,
        record: BankRecord,
    ) -> Optional[MatchCandidate]:
        """Try each strategy in order; the first hit wins for this record."""
        return (
            self._try_identifier_match(payable, record)
            or self._try_value_date_match(payable, record)
            or self._try_name_match(payable, record)
        )

    def _try_identifier_match(
        self,
        payable: Payable,
        record: BankRecord,
    ) -> Optional[MatchCandidate]:
        """Digit line / barcode prefix found in the normalized description."""
        description = normalize_digit_line(record.description)
        if not description:
            return None

        for identifier in payable.identifiers:
            anchor = normalize_digit_line(identifier)[:self.identifier_anchor]
            if anchor and anchor in description:
                return self._build_candidate(
                    payable,
                    record,
                    MatchType.LINHA_DIGITAVEL,
                    self.scorer.identifier_score(),
                )
        return None

    def _try_value_date_match(
        self,
        payable: Payable,
        record: BankRecord,
    ) -> Optional[MatchCandidate]:
        """Same amount to the cent, posted within the date window."""
        days = days_between(payable.due_date, record.date)
        if days is None:
            return None

        value_diff = abs(record.abs_amount_cents - payable.amount_cents)
        if value_diff != 0 or days > self.value_date_window:
            return None

        return self._build_candidate(
            payable,
            record,
            MatchType.EXACT_VALUE_DATE,
            self.scorer.value_date_score(days),
        )

    def _try_name_match(
        self,
        payable: Payable,
        record: BankRecord,
    ) -> Optional[MatchCandidate]:
        """Beneficiary name in the description with an amount within tolerance."""
        days = days_between(payable.due_date, record.date)
        if days is None or payable.amount_cents <= 0:
            return None

        beneficiary = normalize_name(payable.beneficiary_name)
        description = normalize_name(record.description)
        if not beneficiary or not description:
            return None

        name_found = (
            beneficiary in description
            or description[:self.name_anchor] in beneficiary
        )
        if not name_found:
            return None

        value_diff = abs(record.abs_amount_cents - payable.amount_cents)
        if value_diff / payable.amount_cents >= self.name_value_tolerance:
            return None

        return self._build_candidate(
            payable,
            record,
            MatchType.BENEFICIARIO_NAME,
            self.scorer.name_score(days),
        )

    def _build_candidate(
        self,
        payable: Payable,
        record: BankRecord,
        match_type: MatchType,
        confidence: int,
    ) -> MatchCandidate:
        return MatchCandidate(
            payable_id=payable.id,
            payable=payable,
            bank_record_id=record.id,
            bank_description=record.description,
            match_type=match_type,
            confidence=confidence,
            value_diff_cents=abs(record.abs_amount_cents - payable.amount_cents),
            date_diff_days=days_between(payable.due_date, record.date),
        )


def build_manual_match(
    payable: Payable,
    record: Optional[BankRecord] = None,
) -> MatchCandidate:
    """Candidate for a link chosen by an operator."""
    if record is None:
        return MatchCandidate(
            payable_id=payable.id,
            payable=payable,
            match_type=MatchType.MANUAL,
            confidence=100,
        )
    return MatchCandidate(
        payable_id=payable.id,
        payable=payable,
        bank_record_id=record.id,
        bank_description=record.description,
        match_type=MatchType.MANUAL,
        confidence=100,
        value_diff_cents=abs(record.abs_amount_cents - payable.amount_cents),
        date_diff_days=days_between(payable.due_date, record.date),
    )


def group_matches_by_payable(
    matches: List[MatchCandidate],
) -> Dict[str, List[MatchCandidate]]:
    """Group candidates by payable id, keeping their ranking order."""
    grouped: Dict[str, List[MatchCandidate]] = OrderedDict()
    for match in matches:
        grouped.setdefault(match.payable_id, []).append(match)
    return grouped


def find_unmatched_payables(
    payables: List[Payable],
    matches: List[MatchCandidate],
    min_confidence: Optional[int] = None,
) -> List[Payable]:
    """Payables without any candidate at or above min_confidence."""
    if min_confidence is None:
        min_confidence = get_settings().unmatched_min_confidence

    matched_ids = {m.payable_id for m in matches if m.confidence >= min_confidence}
    return [p for p in payables if p.id not in matched_ids]


def find_unmatched_bank_records(
    bank_records: List[BankRecord],
    matches: List[MatchCandidate],
    min_confidence: Optional[int] = None,
) -> List[BankRecord]:
    """Debit records not linked to any payable at or above min_confidence."""
    if min_confidence is None:
        min_confidence = get_settings().unmatched_min_confidence

    matched_ids = {
        m.bank_record_id
        for m in matches
        if m.confidence >= min_confidence and m.bank_record_id
    }
    return [r for r in bank_records if r.is_debit and r.id not in matched_ids]
