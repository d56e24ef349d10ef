from __future__ import annotations

import queue
import threading
from typing import Iterator, Optional

from loguru import logger
from lsprotocol.types import PublishDiagnosticsParams

from golangci_ls.exceptions import LintError, RequestQueueClosed
from golangci_ls.lint import LintRunner
from golangci_ls.session import Session

_CLOSED = object()


class RequestQueue:
    """Unbounded FIFO of document URIs with a single consumer.

    ``close`` is distinct from empty: once closed, ``put`` raises and ``get``
    returns ``None`` after the queued URIs have been handed out.
    """

    def __init__(self) -> None:
        self._items: "queue.SimpleQueue[object]" = queue.SimpleQueue()
        self._lock = threading.Lock()
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def put(self, uri: str) -> None:
        with self._lock:
            if self._closed:
                raise RequestQueueClosed(uri)
            self._items.put(uri)

    def close(self) -> None:
        with self._lock:
            if self._closed:
                return
            self._closed = True
            self._items.put(_CLOSED)

    def get(self) -> Optional[str]:
        item = self._items.get()
        if item is _CLOSED:
            # Leave the marker for any later get().
            self._items.put(_CLOSED)
            return None
        return str(item)

    def __iter__(self) -> Iterator[str]:
        while True:
            uri = self.get()
            if uri is None:
                return
            yield uri


class LinterWorker:
    """Consumes lint requests one at a time and publishes their diagnostics."""

    def __init__(self, requests: RequestQueue, runner: LintRunner, session: Session) -> None:
        self.requests = requests
        self.runner = runner
        self.session = session
        self._thread: Optional[threading.Thread] = None

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        if self._thread is not None:
            return
        self._thread = threading.Thread(
            target=self.run, name="golangci-ls-linter", daemon=True
        )
        self._thread.start()

    def join(self, timeout: Optional[float] = None) -> None:
        if self._thread is not None:
            self._thread.join(timeout)

    def run(self) -> None:
        for uri in self.requests:
            self.handle(uri)
        logger.debug("lint request queue closed; linter stopped")

    def handle(self, uri: str) -> None:
        try:
            diagnostics = self.runner.lint(uri, root=self.session.root_path)
        except LintError as exc:
            logger.error("lint failed for {}: {}", uri, exc)
            return
        logger.debug("publishing {} diagnostic(s) for {}", len(diagnostics), uri)
        try:
            self.session.publish(
                PublishDiagnosticsParams(uri=uri, diagnostics=diagnostics)
            )
        except Exception:
            logger.exception("failed to publish diagnostics for {}", uri)
