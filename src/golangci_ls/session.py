from __future__ import annotations

import threading
from pathlib import Path
from typing import Callable, Optional

from loguru import logger
from lsprotocol.types import PublishDiagnosticsParams

from golangci_ls.exceptions import SessionNotInitialized
from golangci_ls.lint import uri_to_path

PublishFn = Callable[[PublishDiagnosticsParams], None]


class Session:
    """Connection state written once by ``initialize`` and read by the worker."""

    def __init__(self) -> None:
        self._bound = threading.Event()
        self._lock = threading.Lock()
        self._root_uri: Optional[str] = None
        self._publish: Optional[PublishFn] = None

    @property
    def initialized(self) -> bool:
        return self._bound.is_set()

    @property
    def root_uri(self) -> Optional[str]:
        return self._root_uri

    @property
    def root_path(self) -> Optional[Path]:
        if not self._root_uri:
            return None
        return uri_to_path(self._root_uri)

    def bind(self, root_uri: Optional[str], publish: PublishFn) -> None:
        with self._lock:
            if self._bound.is_set():
                logger.warning("session already initialized; ignoring root {}", root_uri)
                return
            self._root_uri = root_uri
            self._publish = publish
            self._bound.set()
        logger.info("session initialized with root {}", root_uri)

    def publish(self, params: PublishDiagnosticsParams) -> None:
        if not self._bound.is_set() or self._publish is None:
            raise SessionNotInitialized(
                f"cannot publish diagnostics for {params.uri} before initialize"
            )
        self._publish(params)
