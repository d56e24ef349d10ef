"""Error taxonomy for golangci-ls."""

from __future__ import annotations


class GolangciLsError(RuntimeError):
    """Base class for errors raised by golangci-ls."""


class LintError(GolangciLsError):
    """A lint run could not produce diagnostics.

    Raised by the lint runner and handled by the linter worker, which logs it
    and moves on to the next request.
    """


class LintExecutionError(LintError):
    """The lint tool could not be started."""

    def __init__(self, command: str, reason: str) -> None:
        super().__init__(f"failed to run {command}: {reason}")
        self.command = command


class LintOutputError(LintError):
    """The lint tool exited nonzero without a readable JSON report."""

    def __init__(self, reason: str, *, output: str = "") -> None:
        super().__init__(f"unreadable lint report: {reason}")
        self.output = output


class RequestQueueClosed(GolangciLsError):
    def __init__(self, uri: str) -> None:
        super().__init__(f"lint request queue is closed; dropping {uri}")
        self.uri = uri


class SessionNotInitialized(GolangciLsError):
    pass
