"""
Tests for normalization helpers and lookup adapters.
"""

import pytest
from datetime import date
from decimal import Decimal

from labrecon.integrations.lookups import (
    DocumentLookup,
    InMemoryDocumentLookup,
    InMemoryTransactionLookup,
    with_retry,
)
from labrecon.models import ExistingDocument, ServiceItem, Transaction
from labrecon.utils.log_config import setup_logging
from labrecon.utils.normalization import (
    days_between,
    digits_only,
    name_similarity,
    normalize_digit_line,
    normalize_name,
    normalize_text,
    to_cents,
    values_within,
)


class TestNormalization:
    """Text canonicalization."""

    def test_normalize_digit_line(self):
        assert normalize_digit_line("23793.38128 60000") == "237933812860000"
        assert normalize_digit_line("PAG-BOLETO 123") == "pagboleto123"
        assert normalize_digit_line(None) == ""

    def test_digits_only(self):
        assert digits_only("12.345.678/0001-90") == "12345678000190"
        assert digits_only("sem numero") is None
        assert digits_only("") is None

    def test_normalize_name(self):
        assert normalize_name("Laboratório São José Ltda.") == "laboratoriosaojoseltda"

    def test_normalize_text(self):
        assert normalize_text("  Distribuidora  Beta, LTDA. ") == "distribuidora beta ltda"

    def test_name_similarity(self):
        assert name_similarity("São José", "SAO JOSE") == 1.0
        assert name_similarity("Distribuidora Beta", "Distribuidora Beta Ltda") == 0.8
        assert name_similarity("Distribuidora Beta", "Xyz Kwq") < 0.5
        assert name_similarity(None, "Beta") == 0.0

    def test_days_between(self):
        assert days_between(date(2024, 3, 10), date(2024, 3, 7)) == 3
        assert days_between(None, date(2024, 3, 7)) is None

    @pytest.mark.parametrize("v1,v2,tolerance,expected", [
        (10000, 10100, 0.01, True),
        (10000, 10200, 0.01, False),
        (0, 0, 0.01, True),
        (0, 100, 0.5, False),
        (None, 100, 0.5, False),
    ])
    def test_values_within(self, v1, v2, tolerance, expected):
        assert values_within(v1, v2, tolerance) is expected

    @pytest.mark.parametrize("value,expected", [
        ("R$ 1.234,56", 123456),
        ("80,00", 8000),
        ("150.00", 15000),
        (150, 15000),
        (10.005, 1001),
        (Decimal("0.01"), 1),
        ("abc", 0),
        (None, 0),
    ])
    def test_to_cents(self, value, expected):
        assert to_cents(value) == expected


class TestLookups:
    """In-memory adapters and retry wrapper."""

    def test_document_lookup_normalizes_identifiers(self):
        doc = ExistingDocument(id="d1", taxpayer_id="12.345.678/0001-90", amount_cents=5000)
        lookup = InMemoryDocumentLookup([doc])

        assert lookup.find_by_taxpayer("12345678000190") == [doc]
        assert lookup.find_by_taxpayer("") == []
        assert lookup.find_by_amount_range(4000, 6000) == [doc]
        assert lookup.find_by_amount_range(6000, 7000) == []

    def test_document_lookup_must_implement_every_finder(self):
        class BarcodeOnly(DocumentLookup):
            def find_by_barcode(self, barcode):
                return []

        with pytest.raises(TypeError):
            DocumentLookup()
        with pytest.raises(TypeError):
            BarcodeOnly()

    def test_transaction_lookup_window(self):
        transactions = [
            Transaction(id="t1", date=date(2024, 5, 1)),
            Transaction(id="t2", date=date(2024, 5, 2)),
            Transaction(id="t3", date=date(2024, 5, 4)),
            Transaction(id="t4", date=None),
        ]
        lookup = InMemoryTransactionLookup(transactions, tolerance_days=1)

        found = lookup(ServiceItem(id="i1", lis_code="1", date=date(2024, 5, 1)))

        assert [tx.id for tx in found] == ["t1", "t2"]
        assert lookup(ServiceItem(id="i2", lis_code="2")) == []

    def test_with_retry_recovers(self):
        calls = []

        def flaky(item):
            calls.append(item)
            if len(calls) < 3:
                raise ConnectionError("temporary")
            return ["ok"]

        wrapped = with_retry(flaky, attempts=3, max_wait_seconds=0)

        assert wrapped("item") == ["ok"]
        assert len(calls) == 3

    def test_with_retry_reraises_last_error(self):
        calls = []

        def broken(item):
            calls.append(item)
            raise ConnectionError("down")

        wrapped = with_retry(broken, attempts=2, max_wait_seconds=0)

        with pytest.raises(ConnectionError):
            wrapped("item")
        assert len(calls) == 2


class TestLogging:
    """structlog configuration."""

    def test_setup_logging_creates_log_dir(self, tmp_path):
        log_file = tmp_path / "logs" / "labrecon.log"

        setup_logging(log_file=log_file, level="debug")

        assert log_file.parent.is_dir()


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
