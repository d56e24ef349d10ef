from __future__ import annotations

from pathlib import Path
from typing import Callable, Optional

import typer

from golangci_ls.config import ServerConfig, merge_overrides, server_config
from golangci_ls.lint import LintRunner
from golangci_ls.logs import setup_logging
from golangci_ls.server import GolangciLanguageServer, create_server, start

app = typer.Typer(add_completion=False)

ServeFn = Callable[[GolangciLanguageServer, Optional[tuple[str, int]]], None]


def _serve(server: GolangciLanguageServer, tcp: Optional[tuple[str, int]]) -> None:
    start(server, tcp=tcp)


def resolve_config(
    *,
    config: Optional[Path],
    debug: bool,
    command: Optional[str],
    log_file: Optional[Path],
) -> ServerConfig:
    if config is not None and not config.is_file():
        raise typer.BadParameter(f"config file not found: {config}", param_hint="--config")
    base = server_config(config_path=config)
    return merge_overrides(
        base,
        command=command,
        log_level="DEBUG" if debug else None,
        log_file=log_file,
    )


def run(
    settings: ServerConfig,
    *,
    tcp: Optional[tuple[str, int]] = None,
    serve_fn: ServeFn = _serve,
) -> GolangciLanguageServer:
    setup_logging(settings.log_level, settings.log_file)
    server = create_server(LintRunner(settings.command))
    serve_fn(server, tcp)
    return server


@app.command()
def main(
    debug: bool = typer.Option(False, "--debug", help="Log requests, lint reports and diagnostics."),
    log_file: Optional[Path] = typer.Option(None, "--log-file"),
    command: Optional[str] = typer.Option(None, "--command", help="golangci-lint executable."),
    config: Optional[Path] = typer.Option(None, "--config"),
    tcp: bool = typer.Option(False, "--tcp", help="Serve over TCP instead of stdio."),
    host: str = typer.Option("127.0.0.1", "--host"),
    port: int = typer.Option(2087, "--port"),
) -> None:
    """Run the golangci-lint language server."""
    settings = resolve_config(config=config, debug=debug, command=command, log_file=log_file)
    run(settings, tcp=(host, port) if tcp else None)


if __name__ == "__main__":  # pragma: no cover
    app()  # pragma: no cover
