"""Reconciliation engine components."""

from .component_splitter import ComponentSplitter, split
from .duplicate_classifier import (
    DuplicateClassifier,
    check_simple_duplicate,
    classify_document,
)
from .scoring import ConfidenceScorer, LinearConfidenceScorer, confidence_level
from .payable_matcher import (
    MATCH_TYPE_LABELS,
    PayableMatcher,
    build_manual_match,
    find_unmatched_bank_records,
    find_unmatched_payables,
    group_matches_by_payable,
)
from .lis_reconciler import LisReconciler, apply_results, count_by_status, extract_lis_code
from .lis_summary import summarize
from .orchestrator import ReconciliationOrchestrator

__all__ = [
    "ComponentSplitter",
    "split",
    "DuplicateClassifier",
    "classify_document",
    "check_simple_duplicate",
    "ConfidenceScorer",
    "LinearConfidenceScorer",
    "confidence_level",
    "MATCH_TYPE_LABELS",
    "PayableMatcher",
    "build_manual_match",
    "find_unmatched_bank_records",
    "find_unmatched_payables",
    "group_matches_by_payable",
    "LisReconciler",
    "apply_results",
    "count_by_status",
    "extract_lis_code",
    "summarize",
    "ReconciliationOrchestrator",
]
