"""
Tests for the LIS financial summary.
"""

import pytest
from datetime import date, datetime

from labrecon.models import (
    PaymentMethod,
    ServiceItem,
    Transaction,
    TransactionType,
)
from labrecon.reconciliation.lis_summary import summarize


DAY = date(2024, 5, 1)


@pytest.fixture
def items():
    return [
        ServiceItem(id="a", lis_code="100", date=DAY, payment_method=PaymentMethod.CASH, amount_paid_cents=5000),
        ServiceItem(id="b", lis_code="200", date=DAY, payment_method=PaymentMethod.PIX, amount_paid_cents=3000),
        ServiceItem(id="c", lis_code="300", date=DAY, payment_method=PaymentMethod.UNPAID, amount_paid_cents=0),
        ServiceItem(id="d", lis_code="400", date=DAY, payment_method=PaymentMethod.CARD, amount_paid_cents=7000),
    ]


@pytest.fixture
def transactions():
    return [
        Transaction(id="t1", date=DAY, amount_cents=5000, lis_protocol_id="100"),
        Transaction(id="t2", date=DAY, amount_cents=7000, lis_protocol_id="400"),
        Transaction(id="t3", date=date(2024, 5, 2), amount_cents=7000, lis_protocol_id="400"),
        Transaction(id="t4", date=DAY, amount_cents=1000, description="Recebimento avulso"),
        Transaction(
            id="t5",
            date=DAY,
            amount_cents=3000,
            lis_protocol_id="200",
            transaction_type=TransactionType.DEBIT,
        ),
        Transaction(
            id="t6",
            date=DAY,
            amount_cents=3000,
            lis_protocol_id="200",
            deleted_at=datetime(2024, 5, 1, 18, 0),
        ),
    ]


class TestLisSummary:
    """Cross-check between LIS items and incoming transactions."""

    def test_matched_pairs(self, items, transactions):
        summary = summarize(items, transactions)

        assert len(summary.matched) == 1
        pair = summary.matched[0]
        assert (pair.lis_code, pair.item_id, pair.transaction_id) == ("100", "a", "t1")
        assert pair.amount_gap_cents == 0

    def test_lis_without_financial(self, items, transactions):
        """Debits and deleted transactions do not count as proof."""
        summary = summarize(items, transactions)

        assert [i.id for i in summary.lis_without_financial] == ["b"]

    def test_duplicates(self, items, transactions):
        summary = summarize(items, transactions)

        assert len(summary.duplicates) == 1
        duplicate = summary.duplicates[0]
        assert duplicate.lis_code == "400"
        assert duplicate.transaction_ids == ["t2", "t3"]
        assert duplicate.occurrences == 2
        assert duplicate.total_amount_cents == 14000

    def test_financial_without_lis(self, items, transactions):
        summary = summarize(items, transactions)

        assert [tx.id for tx in summary.financial_without_lis] == ["t4"]

    def test_totals(self, items, transactions):
        totals = summarize(items, transactions).totals

        assert totals.lis_count == 3
        assert totals.lis_amount_cents == 15000
        assert totals.transaction_count == 4
        assert totals.transaction_amount_cents == 20000
        assert totals.matched_count == 1
        assert totals.matched_amount_cents == 5000

    def test_empty_inputs(self):
        summary = summarize([], [])

        assert summary.matched == []
        assert summary.totals.lis_count == 0
        assert summary.totals.transaction_amount_cents == 0


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
