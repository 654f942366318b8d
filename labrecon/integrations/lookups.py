"""
Data-access adapters for the engine's lookups.

The engine never performs I/O itself. Callers hand it either one of the
in-memory lookups below (built from rows they already fetched) or their
own callables with the same shape. ``with_retry`` wraps a caller-owned
lookup so transient data-source errors are retried before the engine
degrades the affected item.
"""

from abc import ABC, abstractmethod
from collections import defaultdict
from typing import Callable, Dict, Iterable, List, Optional, TypeVar

import structlog
from tenacity import RetryCallState, retry, stop_after_attempt, wait_exponential

from ..config import get_settings
from ..models import ExistingDocument, ServiceItem, Transaction
from ..utils.normalization import digits_only

logger = structlog.get_logger()

T = TypeVar("T")

TransactionLookup = Callable[[ServiceItem], Iterable[Transaction]]


class DocumentLookup(ABC):
    """
    Interface for finding existing payables/tax documents.

    Implementations may return cancelled documents; the classifier
    filters them out.
    """

    @abstractmethod
    def find_by_barcode(self, barcode: str) -> List[ExistingDocument]:
        ...

    @abstractmethod
    def find_by_digit_line(self, digit_line: str) -> List[ExistingDocument]:
        ...

    @abstractmethod
    def find_by_taxpayer(self, taxpayer_id: str) -> List[ExistingDocument]:
        ...

    @abstractmethod
    def find_by_amount_range(
        self,
        min_cents: int,
        max_cents: int,
    ) -> List[ExistingDocument]:
        ...


class InMemoryDocumentLookup(DocumentLookup):
    """DocumentLookup over a list of documents, indexed by identifier."""

    def __init__(self, documents: Iterable[ExistingDocument]):
        self.documents: List[ExistingDocument] = list(documents)
        self._by_barcode = self._build_index(lambda d: d.barcode)
        self._by_digit_line = self._build_index(lambda d: d.digit_line)
        self._by_taxpayer = self._build_index(lambda d: d.taxpayer_id)

    def _build_index(
        self,
        key: Callable[[ExistingDocument], Optional[str]],
    ) -> Dict[str, List[ExistingDocument]]:
        index = defaultdict(list)
        for doc in self.documents:
            normalized = digits_only(key(doc))
            if normalized:
                index[normalized].append(doc)
        return index

    def find_by_barcode(self, barcode: str) -> List[ExistingDocument]:
        return list(self._by_barcode.get(digits_only(barcode) or "", []))

    def find_by_digit_line(self, digit_line: str) -> List[ExistingDocument]:
        return list(self._by_digit_line.get(digits_only(digit_line) or "", []))

    def find_by_taxpayer(self, taxpayer_id: str) -> List[ExistingDocument]:
        return list(self._by_taxpayer.get(digits_only(taxpayer_id) or "", []))

    def find_by_amount_range(
        self,
        min_cents: int,
        max_cents: int,
    ) -> List[ExistingDocument]:
        return [d for d in self.documents if min_cents <= d.amount_cents <= max_cents]


class InMemoryTransactionLookup:
    """
    Transaction lookup over a list of recorded transactions.

    Returns every transaction whose date falls inside the item's window;
    reference and amount filtering is left to the reconciler.
    """

    def __init__(
        self,
        transactions: Iterable[Transaction],
        tolerance_days: Optional[int] = None,
    ):
        self.transactions: List[Transaction] = list(transactions)
        self.tolerance_days = (
            tolerance_days if tolerance_days is not None
            else get_settings().lis_date_tolerance_days
        )

    def __call__(self, item: ServiceItem) -> List[Transaction]:
        if item.date is None:
            return []
        return [
            tx for tx in self.transactions
            if tx.date is not None
            and abs((tx.date - item.date).days) <= self.tolerance_days
        ]


def _log_retry(retry_state: RetryCallState) -> None:
    logger.warning(
        "Lookup failed, retrying",
        attempt=retry_state.attempt_number,
        error=str(retry_state.outcome.exception()),
    )


def with_retry(
    lookup: Callable[..., T],
    attempts: Optional[int] = None,
    max_wait_seconds: Optional[float] = None,
) -> Callable[..., T]:
    """
    Wrap a caller-owned lookup with exponential-backoff retries.

    The last error is re-raised once attempts are exhausted, and the
    engine then degrades the affected unit of work.
    """
    settings = get_settings()
    attempts = attempts if attempts is not None else settings.lookup_retry_attempts
    max_wait = (
        max_wait_seconds if max_wait_seconds is not None
        else settings.lookup_retry_max_wait_seconds
    )

    return retry(
        stop=stop_after_attempt(attempts),
        wait=wait_exponential(multiplier=1, min=0, max=max_wait),
        before_sleep=_log_retry,
        reraise=True,
    )(lookup)
