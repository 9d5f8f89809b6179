"""open-tasks — compose small commands over a shared, persisted context."""

__version__ = "0.1.0"
