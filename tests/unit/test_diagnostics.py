"""Tests for diagnostic collection."""

from oagraph.diagnostics import Diagnostic, DiagnosticKind, DiagnosticSeverity


class TestDiagnostic:
    """Test the per-operation collector."""

    def test_severities_kept_apart(self):
        """Test errors, warnings and info entries."""
        diagnostic = Diagnostic()
        diagnostic.add_error("broken", "/info")
        diagnostic.add_warning("dangling", "/paths")
        diagnostic.add_info("dropped")

        assert diagnostic.has_errors()
        assert len(diagnostic.errors) == 1
        assert [issue.severity for issue in diagnostic.warnings] == [
            DiagnosticSeverity.WARNING,
            DiagnosticSeverity.INFO,
        ]
        assert diagnostic.get_counts() == {"error": 1, "warning": 1, "info": 1}

    def test_default_kinds(self):
        """Test the kind each helper records by default."""
        diagnostic = Diagnostic()
        assert diagnostic.add_error("e").kind == DiagnosticKind.PARSE_ERROR
        assert diagnostic.add_warning("w").kind == DiagnosticKind.UNRESOLVED_REFERENCE
        assert diagnostic.add_info("i").kind == DiagnosticKind.VERSION_DOWNGRADE_LOSSY

    def test_issue_string(self):
        """Test the printable form of an issue."""
        diagnostic = Diagnostic()
        issue = diagnostic.add_error("Paths is a REQUIRED field at #/", "", DiagnosticKind.REQUIRED_FIELD)
        located = diagnostic.add_warning("Unresolved reference #/components/schemas/Pet", "/paths/~1pets")
        assert str(issue) == "[ERROR] required_field: Paths is a REQUIRED field at #/"
        assert str(located).endswith("at /paths/~1pets")

    def test_extend_and_filter(self):
        """Test merging diagnostics and filtering by kind."""
        first = Diagnostic()
        first.add_error("bad ref", kind=DiagnosticKind.MALFORMED_REFERENCE)
        second = Diagnostic()
        second.add_warning("unknown", kind=DiagnosticKind.UNKNOWN_FIELD)
        first.extend(second)

        assert [issue.message for issue in first.issues] == ["bad ref", "unknown"]
        assert len(first.of_kind(DiagnosticKind.UNKNOWN_FIELD)) == 1

    def test_to_dict(self):
        """Test the JSON form."""
        diagnostic = Diagnostic(specification_version="3.1")
        diagnostic.add_warning("dangling", "/paths")
        data = diagnostic.to_dict()
        assert data["specification_version"] == "3.1"
        assert data["errors"] == []
        assert data["warnings"] == [
            {"kind": "unresolved_reference", "severity": "warning", "message": "dangling", "pointer": "/paths"}
        ]
