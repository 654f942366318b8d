"""Reconciliation and duplicate-detection engine for clinical laboratory finance."""

__version__ = "1.0.0"
