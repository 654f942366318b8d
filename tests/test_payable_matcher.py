"""
Tests for the Payable-to-Bank Matcher.
"""

import pytest
from datetime import date, timedelta

from labrecon.models import (
    BankRecord,
    ConfidenceLevel,
    MatchType,
    Payable,
    TransactionType,
)
from labrecon.reconciliation.payable_matcher import (
    PayableMatcher,
    build_manual_match,
    find_unmatched_bank_records,
    find_unmatched_payables,
    group_matches_by_payable,
)
from labrecon.reconciliation.scoring import (
    ConfidenceScorer,
    LinearConfidenceScorer,
    confidence_level,
)


DIGIT_LINE = "23793.38128 60000.000003 00000.000400 1 84340000015000"
DUE = date(2024, 3, 10)


@pytest.fixture
def matcher():
    return PayableMatcher()


def make_payable(payable_id="p1", amount_cents=15000, **kwargs) -> Payable:
    defaults = dict(beneficiary_name="Fornecedor Reagentes", due_date=DUE)
    defaults.update(kwargs)
    return Payable(id=payable_id, amount_cents=amount_cents, **defaults)


def make_debit(record_id, amount_cents, record_date, description="PAG BOLETO XYZ") -> BankRecord:
    return BankRecord(
        id=record_id,
        date=record_date,
        description=description,
        amount_cents=amount_cents,
        transaction_type=TransactionType.DEBIT,
    )


class FlatScorer(ConfidenceScorer):
    """Same confidence for every strategy."""

    def identifier_score(self) -> int:
        return 80

    def value_date_score(self, date_diff_days: int) -> int:
        return 80

    def name_score(self, date_diff_days: int) -> int:
        return 80


class TestPayableMatcher:
    """Matching strategies and ranking."""

    def test_value_date_one_day_late(self, matcher):
        """A boleto paid the day after its due date scores 85."""
        payable = make_payable()
        record = make_debit("b1", 15000, date(2024, 3, 11))

        matches = matcher.find_matches([payable], [record])

        assert len(matches) == 1
        assert matches[0].match_type == MatchType.EXACT_VALUE_DATE
        assert matches[0].confidence == 85
        assert matches[0].date_diff_days == 1
        assert matches[0].value_diff_cents == 0
        assert matches[0].bank_record_id == "b1"

    def test_value_date_same_day(self, matcher):
        matches = matcher.find_matches(
            [make_payable()], [make_debit("b1", 15000, DUE)]
        )

        assert matches[0].confidence == 90

    def test_value_date_outside_window(self, matcher):
        matches = matcher.find_matches(
            [make_payable()], [make_debit("b1", 15000, DUE + timedelta(days=4))]
        )

        assert matches == []

    def test_identifier_match(self, matcher):
        """Digit line in the description wins even with a different amount."""
        payable = make_payable(digit_line=DIGIT_LINE)
        record = make_debit(
            "b1",
            14990,
            DUE + timedelta(days=20),
            description="PAGTO TIT 23793381286000000000300000000400184340000015000",
        )

        matches = matcher.find_matches([payable], [record])

        assert len(matches) == 1
        assert matches[0].match_type == MatchType.LINHA_DIGITAVEL
        assert matches[0].confidence == 95

    def test_identifier_match_without_due_date(self, matcher):
        payable = make_payable(due_date=None, digit_line=DIGIT_LINE)
        record = make_debit("b1", 15000, DUE, description="BOLETO 2379338128600000000003")

        matches = matcher.find_matches([payable], [record])

        assert len(matches) == 1
        assert matches[0].match_type == MatchType.LINHA_DIGITAVEL
        assert matches[0].date_diff_days is None

    def test_name_match(self, matcher):
        payable = make_payable(beneficiary_name="Laboratório Alfa Ltda", amount_cents=10000)
        record = make_debit(
            "b1",
            10200,
            DUE + timedelta(days=5),
            description="Laboratorio Alfa Ltda pagamento",
        )

        matches = matcher.find_matches([payable], [record])

        assert len(matches) == 1
        assert matches[0].match_type == MatchType.BENEFICIARIO_NAME
        assert matches[0].confidence == 60
        assert matches[0].value_diff_cents == 200

    def test_name_match_rejects_large_value_gap(self, matcher):
        payable = make_payable(beneficiary_name="Laboratório Alfa Ltda", amount_cents=10000)
        record = make_debit("b1", 11000, DUE, description="LABORATORIO ALFA LTDA")

        assert matcher.find_matches([payable], [record]) == []

    def test_credits_never_considered(self, matcher):
        record = BankRecord(
            id="c1",
            date=DUE,
            description="PAG BOLETO XYZ",
            amount_cents=15000,
            transaction_type=TransactionType.CREDIT,
        )

        assert matcher.find_matches([make_payable()], [record]) == []

    def test_negative_debit_amount_uses_magnitude(self, matcher):
        matches = matcher.find_matches(
            [make_payable()], [make_debit("b1", -15000, DUE)]
        )

        assert len(matches) == 1
        assert matches[0].confidence == 90

    def test_top_candidates_per_payable(self, matcher):
        """Only the three best candidates of a payable are kept."""
        records = [
            make_debit(f"b{days}", 15000, DUE + timedelta(days=days))
            for days in range(4)
        ]

        matches = matcher.find_matches([make_payable()], records)

        assert [m.confidence for m in matches] == [90, 85, 80]
        assert [m.bank_record_id for m in matches] == ["b0", "b1", "b2"]

    def test_global_ranking_across_payables(self, matcher):
        payables = [
            make_payable("p1", amount_cents=15000),
            make_payable("p2", amount_cents=20000, digit_line=DIGIT_LINE),
        ]
        records = [
            make_debit("b1", 15000, DUE + timedelta(days=1)),
            make_debit("b2", 20000, DUE, description="TIT 23793381286000000000300000000400"),
        ]

        matches = matcher.find_matches(payables, records)

        assert [(m.payable_id, m.confidence) for m in matches] == [("p2", 95), ("p1", 85)]

    def test_ties_keep_strategy_order(self):
        matcher = PayableMatcher(scorer=FlatScorer())
        payable = make_payable(digit_line=DIGIT_LINE)
        records = [
            make_debit("value", 15000, DUE, description="DEBITO AUTOMATICO"),
            make_debit("ident", 99999, DUE, description="TIT 23793381286000000000300000000400"),
        ]

        matches = matcher.find_matches([payable], records)

        assert [m.match_type for m in matches] == [
            MatchType.LINHA_DIGITAVEL,
            MatchType.EXACT_VALUE_DATE,
        ]

    def test_inputs_not_mutated(self, matcher):
        payable = make_payable()
        record = make_debit("b1", 15000, DUE)

        matcher.find_matches([payable], [record])

        assert payable == make_payable()
        assert record == make_debit("b1", 15000, DUE)

    def test_deterministic(self, matcher):
        payables = [make_payable("p1"), make_payable("p2")]
        records = [make_debit(f"b{d}", 15000, DUE + timedelta(days=d)) for d in range(3)]

        assert matcher.find_matches(payables, records) == matcher.find_matches(payables, records)

    def test_best_match_for_payable(self, matcher):
        records = [
            make_debit("late", 15000, DUE + timedelta(days=2)),
            make_debit("exact", 15000, DUE),
        ]

        best = matcher.best_match_for_payable(make_payable(), records)

        assert best.bank_record_id == "exact"
        assert matcher.best_match_for_payable(make_payable(), []) is None


class TestScoring:
    """Confidence scoring and bands."""

    def test_confidence_always_in_range(self):
        scorer = LinearConfidenceScorer()
        for days in range(0, 40):
            for score in (scorer.value_date_score(days), scorer.name_score(days)):
                assert isinstance(score, int)
                assert 0 <= score <= 100

    def test_value_date_floor(self):
        scorer = LinearConfidenceScorer(value_date_floor=50)

        assert scorer.value_date_score(30) == 50

    def test_name_penalty_capped(self):
        scorer = LinearConfidenceScorer(name_penalty_cap_days=10)

        assert scorer.name_score(10) == 50
        assert scorer.name_score(25) == 50

    @pytest.mark.parametrize("confidence,level", [
        (100, ConfidenceLevel.HIGH),
        (85, ConfidenceLevel.HIGH),
        (84, ConfidenceLevel.MEDIUM),
        (70, ConfidenceLevel.MEDIUM),
        (60, ConfidenceLevel.LOW),
        (50, ConfidenceLevel.LOW),
        (49, None),
    ])
    def test_confidence_bands(self, confidence, level):
        assert confidence_level(confidence) == level

    def test_scorer_must_implement_every_strategy(self):
        class IdentifierOnly(ConfidenceScorer):
            def identifier_score(self) -> int:
                return 95

        with pytest.raises(TypeError):
            ConfidenceScorer()
        with pytest.raises(TypeError):
            IdentifierOnly()


class TestMatchHelpers:
    """Unmatched lists, grouping and manual links."""

    def test_find_unmatched_payables(self, matcher):
        payables = [make_payable("p1"), make_payable("p2", amount_cents=99900)]
        matches = matcher.find_matches(payables, [make_debit("b1", 15000, DUE)])

        unmatched = find_unmatched_payables(payables, matches)

        assert [p.id for p in unmatched] == ["p2"]

    def test_find_unmatched_payables_threshold(self, matcher):
        payable = make_payable(beneficiary_name="Laboratório Alfa Ltda", amount_cents=10000)
        record = make_debit("b1", 10000, DUE + timedelta(days=8), description="LABORATORIO ALFA LTDA")
        matches = matcher.find_matches([payable], [record])

        assert matches[0].confidence == 54
        assert find_unmatched_payables([payable], matches) == [payable]
        assert find_unmatched_payables([payable], matches, min_confidence=50) == []

    def test_find_unmatched_bank_records_debits_only(self, matcher):
        records = [
            make_debit("b1", 15000, DUE),
            make_debit("b2", 777, DUE),
            BankRecord(id="c1", date=DUE, amount_cents=15000, transaction_type=TransactionType.CREDIT),
        ]
        matches = matcher.find_matches([make_payable()], records)

        unmatched = find_unmatched_bank_records(records, matches)

        assert [r.id for r in unmatched] == ["b2"]

    def test_group_matches_by_payable(self, matcher):
        payables = [make_payable("p1"), make_payable("p2")]
        records = [make_debit("b1", 15000, DUE), make_debit("b2", 15000, DUE + timedelta(days=1))]

        grouped = group_matches_by_payable(matcher.find_matches(payables, records))

        assert set(grouped) == {"p1", "p2"}
        assert [m.bank_record_id for m in grouped["p1"]] == ["b1", "b2"]

    def test_build_manual_match(self):
        payable = make_payable()
        record = make_debit("b9", 14000, DUE + timedelta(days=2))

        match = build_manual_match(payable, record)

        assert match.match_type == MatchType.MANUAL
        assert match.confidence == 100
        assert match.value_diff_cents == 1000
        assert match.date_diff_days == 2
        assert build_manual_match(payable).bank_record_id is None


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
