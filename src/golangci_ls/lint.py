from __future__ import annotations

import subprocess
from pathlib import Path
from typing import Callable, List, Optional, Sequence
from urllib.parse import unquote, urlparse

from loguru import logger
from lsprotocol.types import Diagnostic
from pydantic import ValidationError

from golangci_ls.diagnostics import issue_to_diagnostic
from golangci_ls.exceptions import LintExecutionError, LintOutputError
from golangci_ls.schema import LintIssue, LintResult

DEFAULT_COMMAND = "golangci-lint"
LINT_ARGS: tuple[str, ...] = ("run", "--enable-all", "--out-format", "json")

RunFn = Callable[..., "subprocess.CompletedProcess[bytes]"]


def uri_to_path(uri: str) -> Path:
    parsed = urlparse(uri)
    if parsed.scheme == "file":
        return Path(unquote(parsed.path))
    return Path(uri)


def issue_matches_uri(issue: LintIssue, uri: str) -> bool:
    """Whether a project-relative report path names the document at ``uri``."""
    filename = issue.pos.filename
    if not filename:
        return False
    if uri.endswith(filename):
        return True
    return uri_to_path(uri).as_posix().endswith(filename)


def parse_report(output: bytes) -> LintResult:
    text = output.decode("utf-8", errors="replace")
    try:
        return LintResult.model_validate_json(text)
    except ValidationError as exc:
        raise LintOutputError(str(exc), output=text) from exc


class LintRunner:
    """Runs golangci-lint over the whole project and keeps one document's issues."""

    def __init__(
        self,
        command: str = DEFAULT_COMMAND,
        *,
        run_fn: RunFn = subprocess.run,
    ) -> None:
        self.command = command
        self._run_fn = run_fn

    @property
    def argv(self) -> List[str]:
        return [self.command, *LINT_ARGS]

    def _run(self, root: Optional[Path]) -> "subprocess.CompletedProcess[bytes]":
        try:
            return self._run_fn(
                self.argv,
                stdout=subprocess.PIPE,
                stderr=subprocess.STDOUT,
                cwd=str(root) if root is not None else None,
                check=False,
            )
        except OSError as exc:
            raise LintExecutionError(self.command, str(exc)) from exc

    def lint(self, uri: str, *, root: Optional[Path] = None) -> List[Diagnostic]:
        logger.debug("lint requested for {}", uri)
        completed = self._run(root)
        if completed.returncode == 0:
            # golangci-lint only writes a report worth reading when it fails.
            return []
        output = completed.stdout or b""
        result = parse_report(output)
        logger.debug("lint report: {}", result.model_dump_json(by_alias=True))
        return diagnostics_for_uri(result.issues, uri)


def diagnostics_for_uri(issues: Sequence[LintIssue], uri: str) -> List[Diagnostic]:
    return [
        issue_to_diagnostic(issue)
        for issue in issues
        if issue_matches_uri(issue, uri)
    ]
