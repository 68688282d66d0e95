"""Diagnostics collected while reading, checking and writing documents.

Diagnostics are values returned next to the best-effort model; a single bad
node never aborts a whole document operation.
"""

from .diagnostic import (
    Diagnostic,
    DiagnosticIssue,
    DiagnosticKind,
    DiagnosticSeverity,
)

__all__ = [
    "Diagnostic",
    "DiagnosticIssue",
    "DiagnosticKind",
    "DiagnosticSeverity",
]
