from __future__ import annotations

import asyncio
import io
import json
import threading

from lsprotocol.types import ClientCapabilities, InitializeParams, PublishDiagnosticsParams
from pygls.io_ import run

from golangci_ls import server
from golangci_ls.session import Session
from tests.lint_helpers import PublishRecorder, StubRunner, point_diagnostic

_URI = "file:///proj/main.go"


class _MemoryWriter:
    def __init__(self) -> None:
        self.messages: list[dict[str, object]] = []

    def write(self, data: bytes) -> None:
        self.messages.append(json.loads(data))

    def close(self) -> None:
        pass


def _frame(message: dict[str, object]) -> bytes:
    body = json.dumps({"jsonrpc": "2.0", **message}).encode("utf-8")
    return f"Content-Length: {len(body)}\r\n\r\n".encode("ascii") + body


def _dispatch(ls: server.GolangciLanguageServer, *messages: dict[str, object]) -> _MemoryWriter:
    writer = _MemoryWriter()
    ls.protocol.set_writer(writer, include_headers=False)
    stream = io.BytesIO(b"".join(_frame(message) for message in messages))
    run(
        stop_event=threading.Event(),
        reader=stream,
        protocol=ls.protocol,
        error_handler=ls.report_server_error,
    )
    return writer


def _response(writer: _MemoryWriter, msg_id: int) -> dict[str, object]:
    matches = [message for message in writer.messages if message.get("id") == msg_id]
    assert len(matches) == 1, writer.messages
    return matches[0]


def _initialize(msg_id: int = 1) -> dict[str, object]:
    return {
        "id": msg_id,
        "method": "initialize",
        "params": {"processId": None, "rootUri": "file:///proj", "capabilities": {}},
    }


def _did_open(uri: str = _URI) -> dict[str, object]:
    return {
        "method": "textDocument/didOpen",
        "params": {
            "textDocument": {"uri": uri, "languageId": "go", "version": 1, "text": "package main\n"}
        },
    }


def _queued(ls: server.GolangciLanguageServer) -> list[str]:
    ls.lint_queue.close()
    return list(ls.lint_queue)


def test_initialize_response_declares_full_sync_and_binds_session() -> None:
    ls = server.create_server(StubRunner(), start_worker=False)
    writer = _dispatch(ls, _initialize())
    sync = _response(writer, 1)["result"]["capabilities"]["textDocumentSync"]
    assert sync["change"] == 1
    assert sync["openClose"] is True
    assert ls.session.initialized
    assert ls.session.root_uri == "file:///proj"


def test_unknown_method_gets_method_not_found_naming_it() -> None:
    ls = server.create_server(StubRunner(), start_worker=False)
    writer = _dispatch(ls, _initialize(), {"id": 2, "method": "golangci/explain", "params": {}})
    error = _response(writer, 2)["error"]
    assert error["code"] == -32601
    assert "golangci/explain" in error["message"]


def test_malformed_initialize_gets_invalid_params_response() -> None:
    ls = server.create_server(StubRunner(), start_worker=False)
    writer = _dispatch(
        ls,
        {"id": 1, "method": "initialize", "params": {"processId": "nope", "capabilities": 5}},
        {"id": 9, "method": "shutdown"},
    )
    error = _response(writer, 1)["error"]
    assert error["code"] == -32602
    assert "initialize" in error["message"]
    assert not ls.session.initialized
    assert "error" not in _response(writer, 9)


def test_malformed_did_open_enqueues_nothing_and_gets_no_response() -> None:
    ls = server.create_server(StubRunner(), start_worker=False)
    writer = _dispatch(
        ls,
        _initialize(),
        {"method": "textDocument/didOpen", "params": {"textDocument": {"uri": 5}}},
    )
    assert [message["id"] for message in writer.messages if "id" in message] == [1]
    assert _queued(ls) == []


def test_lifecycle_notifications_reach_user_handlers() -> None:
    ls = server.create_server(StubRunner(), start_worker=False)
    _dispatch(
        ls,
        _initialize(),
        {"method": "initialized", "params": {}},
        _did_open("file:///proj/a.go"),
        {
            "method": "textDocument/didChange",
            "params": {
                "textDocument": {"uri": "file:///proj/a.go", "version": 2},
                "contentChanges": [{"text": "package main\n\nfunc main() {}\n"}],
            },
        },
        {"method": "textDocument/didSave", "params": {"textDocument": {"uri": "file:///proj/a.go"}}},
        {"method": "textDocument/didClose", "params": {"textDocument": {"uri": "file:///proj/a.go"}}},
    )
    assert _queued(ls) == ["file:///proj/a.go", "file:///proj/a.go"]


def test_shutdown_request_stops_worker_after_publishing() -> None:
    diagnostic = point_diagnostic(4, 2, "errcheck", "unchecked error")
    runner = StubRunner(results={_URI: [diagnostic]})
    ls = server.create_server(runner)
    writer = _dispatch(ls, _initialize(), _did_open(), {"id": 2, "method": "shutdown"})
    ls.linter.join(timeout=5)

    assert not ls.linter.running
    assert "error" not in _response(writer, 2)
    published = [
        message["params"]
        for message in writer.messages
        if message.get("method") == "textDocument/publishDiagnostics"
    ]
    assert len(published) == 1
    assert published[0]["uri"] == _URI
    assert published[0]["diagnostics"][0]["source"] == "errcheck"
    assert published[0]["diagnostics"][0]["severity"] == 1
    assert published[0]["diagnostics"][0]["range"]["start"] == {"line": 4, "character": 2}


class _LoopServer:
    def __init__(self) -> None:
        self.session = Session()
        self.text_document_publish_diagnostics = PublishRecorder()


def test_publish_from_worker_thread_runs_on_event_loop_thread() -> None:
    ls = _LoopServer()
    params = PublishDiagnosticsParams(uri=_URI, diagnostics=[])

    async def _scenario() -> int:
        server.initialize(
            ls,
            InitializeParams(capabilities=ClientCapabilities(), process_id=None, root_uri="file:///proj"),
        )
        worker = threading.Thread(target=ls.session.publish, args=(params,))
        worker.start()
        await asyncio.get_running_loop().run_in_executor(None, worker.join)
        await asyncio.sleep(0)
        return threading.get_ident()

    loop_thread = asyncio.run(_scenario())
    assert ls.text_document_publish_diagnostics.threads == [loop_thread]
    assert ls.text_document_publish_diagnostics.published == [params]
