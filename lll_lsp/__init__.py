"""lll-lsp - Language server and task provider for the lll line-length linter."""

__version__ = "0.1.0"
