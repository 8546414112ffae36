"""Severity-tagged validation findings and the report that scores them."""

from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import StrEnum
from typing import Any

from wordsync import constants
from wordsync.config import ScoringConfig


class Severity(StrEnum):
    ERROR = "error"
    WARNING = "warning"
    INFO = "info"
    SUCCESS = "success"


@dataclass(frozen=True)
class Finding:
    """One validation observation.

    Attributes:
        severity: How much the finding weighs on the score.
        category: Area of the check (coverage, sequence, timing, ...).
        message: Human readable description.
        details: Structured data behind the message.
    """

    severity: Severity
    category: str
    message: str
    details: dict[str, Any] = field(default_factory=dict)

    def __str__(self) -> str:
        return f"[{self.severity.upper()}] {self.category}: {self.message}"

    def to_json(self) -> dict[str, Any]:
        return {
            "level": str(self.severity),
            "category": self.category,
            "message": self.message,
            "details": self.details,
        }


@dataclass(frozen=True)
class ReportSummary:
    quality: str
    score: float
    total_issues: int
    error_count: int
    warning_count: int
    is_valid: bool
    timestamp: str

    def to_json(self) -> dict[str, Any]:
        return {
            "quality": self.quality,
            "score": self.score,
            "totalIssues": self.total_issues,
            "errorCount": self.error_count,
            "warningCount": self.warning_count,
            "isValid": self.is_valid,
            "timestamp": self.timestamp,
        }


def quality_label(score: float) -> str:
    for minimum, label in constants.QUALITY_LABELS:
        if score >= minimum:
            return label
    return constants.POOR_QUALITY_LABEL


@dataclass
class ValidationReport:
    """Ordered findings and recommendations for one validated target.

    The score is ``clamp(100 - 15*E - 5*W - 1*I + 2*S, 0, 100)`` with the
    penalties taken from ScoringConfig.

    Attributes:
        target: Name of what was validated (a title, an id, "alignment").
        target_type: Level of the target (word, sentence, ..., book, alignment, inputs).
        findings: Findings in the order they were produced.
        recommendations: Free-text advice.
        scoring: Penalties and bonus per severity.
        created: ISO timestamp of creation.
    """

    target: str
    target_type: str = "unknown"
    findings: list[Finding] = field(default_factory=list)
    recommendations: list[str] = field(default_factory=list)
    scoring: ScoringConfig = field(default_factory=ScoringConfig)
    created: str = field(default_factory=lambda: datetime.now(tz=UTC).isoformat())

    def add(self, severity: Severity, category: str, message: str, **details: Any) -> "ValidationReport":
        self.findings.append(Finding(severity=severity, category=category, message=message, details=details))
        return self

    def add_recommendation(self, recommendation: str) -> "ValidationReport":
        self.recommendations.append(recommendation)
        return self

    def by_severity(self, severity: Severity) -> list[Finding]:
        return [f for f in self.findings if f.severity == severity]

    def by_category(self, category: str) -> list[Finding]:
        return [f for f in self.findings if f.category == category]

    @property
    def errors(self) -> list[Finding]:
        return self.by_severity(Severity.ERROR)

    @property
    def warnings(self) -> list[Finding]:
        return self.by_severity(Severity.WARNING)

    @property
    def has_errors(self) -> bool:
        return bool(self.errors)

    @property
    def has_warnings(self) -> bool:
        return bool(self.warnings)

    @property
    def is_valid(self) -> bool:
        return not self.has_errors

    @property
    def score(self) -> float:
        score = (
            100.0
            - self.scoring.error_penalty * len(self.errors)
            - self.scoring.warning_penalty * len(self.warnings)
            - self.scoring.info_penalty * len(self.by_severity(Severity.INFO))
            + self.scoring.success_bonus * len(self.by_severity(Severity.SUCCESS))
        )
        return max(0.0, min(100.0, score))

    @property
    def quality(self) -> str:
        return quality_label(self.score)

    def summary(self) -> ReportSummary:
        return ReportSummary(
            quality=self.quality,
            score=self.score,
            total_issues=len(self.findings),
            error_count=len(self.errors),
            warning_count=len(self.warnings),
            is_valid=self.is_valid,
            timestamp=self.created,
        )

    def to_json(self) -> dict[str, Any]:
        return {
            "target": self.target,
            "targetType": self.target_type,
            "results": [f.to_json() for f in self.findings],
            "recommendations": list(self.recommendations),
            "summary": self.summary().to_json(),
            "created": self.created,
        }
