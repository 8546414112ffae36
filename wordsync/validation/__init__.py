"""
Post-hoc quality validation.

- report.py: Findings, severities and the scored ValidationReport
- validator.py: Structural, timing, coverage, sequence and confidence checks
- metrics.py: Letter-grade alignment quality
"""

from wordsync.validation.metrics import AlignmentQuality, QualityMetrics
from wordsync.validation.report import Finding, ReportSummary, Severity, ValidationReport
from wordsync.validation.validator import AlignmentValidator

__all__ = [
    "AlignmentQuality",
    "AlignmentValidator",
    "Finding",
    "QualityMetrics",
    "ReportSummary",
    "Severity",
    "ValidationReport",
]
