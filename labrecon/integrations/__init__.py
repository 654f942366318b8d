"""Data-access adapters for the reconciliation engine."""

from .lookups import (
    DocumentLookup,
    InMemoryDocumentLookup,
    InMemoryTransactionLookup,
    TransactionLookup,
    with_retry,
)

__all__ = [
    "DocumentLookup",
    "InMemoryDocumentLookup",
    "InMemoryTransactionLookup",
    "TransactionLookup",
    "with_retry",
]
