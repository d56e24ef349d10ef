from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Any, Callable, Optional

from loguru import logger
from lsprotocol.types import (
    INITIALIZE,
    INITIALIZED,
    SHUTDOWN,
    TEXT_DOCUMENT_DID_CHANGE,
    TEXT_DOCUMENT_DID_CLOSE,
    TEXT_DOCUMENT_DID_OPEN,
    TEXT_DOCUMENT_DID_SAVE,
    DidChangeTextDocumentParams,
    DidCloseTextDocumentParams,
    DidOpenTextDocumentParams,
    DidSaveTextDocumentParams,
    InitializedParams,
    InitializeParams,
    PublishDiagnosticsParams,
    ResponseError,
    TextDocumentSyncKind,
)
from pygls.exceptions import JsonRpcException
from pygls.lsp.server import LanguageServer
from pygls.protocol import LanguageServerProtocol

from golangci_ls import __version__
from golangci_ls.exceptions import RequestQueueClosed
from golangci_ls.lint import LintRunner
from golangci_ls.session import PublishFn, Session
from golangci_ls.worker import LinterWorker, RequestQueue

SERVER_NAME = "golangci-lint-langserver"


class GolangciProtocol(LanguageServerProtocol):
    """Answers requests whose params cannot be deserialized.

    pygls raises from the reader's ``object_hook`` and drops the message, which
    would leave the client waiting on that request id forever.
    """

    def structure_message(self, data: dict[str, Any]):
        try:
            return super().structure_message(data)
        except JsonRpcException as exc:
            if "id" in data and "method" in data:
                method = data["method"]
                logger.warning("rejecting {} request {}: {}", method, data["id"], exc.message)
                self._send_response(
                    data["id"],
                    None,
                    ResponseError(code=exc.code, message=f"{exc.message}: {method}"),
                )
            raise


class GolangciLanguageServer(LanguageServer):
    """pygls server owning the session, the lint request queue and its worker.

    The worker thread starts with the server and stops once ``shutdown``
    closes the queue.
    """

    sync_kind = TextDocumentSyncKind.Full

    def __init__(self, runner: Optional[LintRunner] = None, *, start_worker: bool = True) -> None:
        super().__init__(
            SERVER_NAME,
            __version__,
            text_document_sync_kind=self.sync_kind,
            protocol_cls=GolangciProtocol,
        )
        self.session = Session()
        self.lint_queue = RequestQueue()
        self.linter = LinterWorker(self.lint_queue, runner or LintRunner(), self.session)
        if start_worker:
            self.linter.start()


def _root_uri(params: InitializeParams) -> Optional[str]:
    if params.root_uri:
        return params.root_uri
    if params.root_path:
        return Path(params.root_path).resolve().as_uri()
    return None


def _enqueue(ls: GolangciLanguageServer, uri: str) -> None:
    try:
        ls.lint_queue.put(uri)
    except RequestQueueClosed as exc:
        logger.warning("{}", exc)


def _loop_publisher(ls: GolangciLanguageServer) -> PublishFn:
    """Publish from the worker thread through the event loop that owns the transport."""
    try:
        loop = asyncio.get_running_loop()
    except RuntimeError:
        # Synchronous transport: writes happen on the caller's thread.
        return ls.text_document_publish_diagnostics

    def publish(params: PublishDiagnosticsParams) -> None:
        loop.call_soon_threadsafe(ls.text_document_publish_diagnostics, params)

    return publish


def initialize(ls: GolangciLanguageServer, params: InitializeParams) -> None:
    # Capabilities (full document sync) come from the server's sync kind.
    ls.session.bind(_root_uri(params), _loop_publisher(ls))


def initialized(ls: GolangciLanguageServer, params: InitializedParams) -> None:
    logger.debug("client initialized")


def shutdown(ls: GolangciLanguageServer, params: None = None) -> None:
    logger.info("shutdown requested; closing lint request queue")
    ls.lint_queue.close()


def did_open(ls: GolangciLanguageServer, params: DidOpenTextDocumentParams) -> None:
    _enqueue(ls, params.text_document.uri)


def did_save(ls: GolangciLanguageServer, params: DidSaveTextDocumentParams) -> None:
    _enqueue(ls, params.text_document.uri)


def did_change(ls: GolangciLanguageServer, params: DidChangeTextDocumentParams) -> None:
    """Edits are linted on save, not while typing."""


def did_close(ls: GolangciLanguageServer, params: DidCloseTextDocumentParams) -> None:
    """Closing a document leaves its last diagnostics in place."""


HANDLERS: dict[str, Callable[..., None]] = {
    INITIALIZE: initialize,
    INITIALIZED: initialized,
    SHUTDOWN: shutdown,
    TEXT_DOCUMENT_DID_OPEN: did_open,
    TEXT_DOCUMENT_DID_SAVE: did_save,
    TEXT_DOCUMENT_DID_CHANGE: did_change,
    TEXT_DOCUMENT_DID_CLOSE: did_close,
}
SUPPORTED_METHODS = frozenset(HANDLERS)


def create_server(
    runner: Optional[LintRunner] = None, *, start_worker: bool = True
) -> GolangciLanguageServer:
    """Build a server with every lifecycle handler registered.

    pygls answers any method without a handler with a JSON-RPC
    MethodNotFound error. Params that fail to deserialize never reach a
    handler; requests among them get an error response from
    ``GolangciProtocol``.
    """
    server = GolangciLanguageServer(runner, start_worker=start_worker)
    for method, handler in HANDLERS.items():
        server.feature(method)(handler)
    return server


def start(
    server: Optional[GolangciLanguageServer] = None,
    *,
    tcp: Optional[tuple[str, int]] = None,
) -> None:
    ls = server or create_server()
    if tcp is not None:
        host, port = tcp
        logger.info("serving on {}:{}", host, port)
        ls.start_tcp(host, port)
        return
    ls.start_io()


if __name__ == "__main__":  # pragma: no cover
    start()  # pragma: no cover
