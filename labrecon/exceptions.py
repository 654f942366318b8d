"""Exceptions raised by the reconciliation engine."""

from typing import List, Optional


class ReconciliationError(Exception):
    """Base exception for reconciliation engine errors."""
    def __init__(self, message: str, details: Optional[dict] = None):
        super().__init__(message)
        self.details = details or {}


class ItemsAlreadyAssignedError(ReconciliationError):
    """Some selected LIS items already belong to another envelope."""
    def __init__(self, conflicting_ids: List[str]):
        super().__init__(
            f"Items already assigned to another envelope: {', '.join(conflicting_ids)}",
            details={"conflicting_ids": conflicting_ids},
        )
        self.conflicting_ids = conflicting_ids
