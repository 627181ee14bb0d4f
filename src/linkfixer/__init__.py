"""linkfixer: rewrite links on the system clipboard as they are copied."""

__version__ = "1.1.0"
