from __future__ import annotations

from lsprotocol.types import Diagnostic, DiagnosticSeverity, Position, Range

from golangci_ls.schema import LintIssue


def issue_to_diagnostic(issue: LintIssue) -> Diagnostic:
    """Translate one report issue into a point diagnostic.

    golangci-lint positions are 1-based; LSP positions are 0-based. Only the
    start position is reported, so the range is empty (start == end). A column
    of 0 means the linter gave no column and maps to the start of the line.
    """
    start = Position(
        line=max(issue.pos.line - 1, 0),
        character=max(issue.pos.column - 1, 0),
    )
    return Diagnostic(
        range=Range(
            start=start,
            end=Position(line=start.line, character=start.character),
        ),
        message=issue.text,
        severity=DiagnosticSeverity.Error,
        source=issue.from_linter,
    )
