"""extkit -- transactional scaffolding of extension projects."""

__version__ = "0.1.0"
