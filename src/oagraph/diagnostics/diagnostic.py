"""Diagnostic records and their per-operation collector."""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

logger = logging.getLogger(__name__)


class DiagnosticSeverity(str, Enum):
    """Diagnostic severity levels."""
    ERROR = "error"       # Node dropped or required data missing
    WARNING = "warning"   # Model usable, something did not bind
    INFO = "info"         # Notable events such as lossy downgrades


class DiagnosticKind(str, Enum):
    """What went wrong."""
    UNRESOLVED_REFERENCE = "unresolved_reference"
    MALFORMED_REFERENCE = "malformed_reference"
    VERSION_DOWNGRADE_LOSSY = "version_downgrade_lossy"
    PARSE_ERROR = "parse_error"
    REQUIRED_FIELD = "required_field"
    UNKNOWN_FIELD = "unknown_field"


@dataclass
class DiagnosticIssue:
    """A single diagnostic entry."""
    kind: DiagnosticKind
    severity: DiagnosticSeverity
    message: str
    pointer: str = ""

    def __str__(self) -> str:
        location = f" at {self.pointer}" if self.pointer else ""
        return f"[{self.severity.value.upper()}] {self.kind.value}: {self.message}{location}"

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON output."""
        return {
            "kind": self.kind.value,
            "severity": self.severity.value,
            "message": self.message,
            "pointer": self.pointer,
        }


@dataclass
class Diagnostic:
    """Issues collected during one read, check or write operation.

    Errors and warnings are kept apart so callers can tell a usable model
    from one with dropped nodes; informational entries (lossy downgrades)
    are kept with the warnings.
    """
    errors: List[DiagnosticIssue] = field(default_factory=list)
    warnings: List[DiagnosticIssue] = field(default_factory=list)
    specification_version: Optional[str] = None

    def add_error(
        self,
        message: str,
        pointer: str = "",
        kind: DiagnosticKind = DiagnosticKind.PARSE_ERROR,
    ) -> DiagnosticIssue:
        """Record an error."""
        issue = DiagnosticIssue(kind, DiagnosticSeverity.ERROR, message, pointer)
        self.errors.append(issue)
        logger.debug(f"Diagnostic error: {issue}")
        return issue

    def add_warning(
        self,
        message: str,
        pointer: str = "",
        kind: DiagnosticKind = DiagnosticKind.UNRESOLVED_REFERENCE,
    ) -> DiagnosticIssue:
        """Record a warning."""
        issue = DiagnosticIssue(kind, DiagnosticSeverity.WARNING, message, pointer)
        self.warnings.append(issue)
        logger.debug(f"Diagnostic warning: {issue}")
        return issue

    def add_info(
        self,
        message: str,
        pointer: str = "",
        kind: DiagnosticKind = DiagnosticKind.VERSION_DOWNGRADE_LOSSY,
    ) -> DiagnosticIssue:
        """Record an informational entry."""
        issue = DiagnosticIssue(kind, DiagnosticSeverity.INFO, message, pointer)
        self.warnings.append(issue)
        return issue

    def extend(self, other: "Diagnostic") -> None:
        """Append all issues of another diagnostic."""
        self.errors.extend(other.errors)
        self.warnings.extend(other.warnings)

    @property
    def issues(self) -> List[DiagnosticIssue]:
        """All issues, errors first."""
        return [*self.errors, *self.warnings]

    def has_errors(self) -> bool:
        """Check if any errors have been collected."""
        return len(self.errors) > 0

    def of_kind(self, kind: DiagnosticKind) -> List[DiagnosticIssue]:
        """Issues of one kind, in the order they were recorded."""
        return [issue for issue in self.issues if issue.kind == kind]

    def get_counts(self) -> Dict[str, int]:
        """Get issue counts by severity."""
        counts = {severity.value: 0 for severity in DiagnosticSeverity}
        for issue in self.issues:
            counts[issue.severity.value] += 1
        return counts

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON output."""
        return {
            "specification_version": self.specification_version,
            "counts": self.get_counts(),
            "errors": [issue.to_dict() for issue in self.errors],
            "warnings": [issue.to_dict() for issue in self.warnings],
        }
