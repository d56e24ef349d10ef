"""golangci-lint as a language server."""

__all__ = ["__version__"]

__version__ = "0.1.0"
