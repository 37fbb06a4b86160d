"""increment: offline-first workout and profile persistence."""

__version__ = "0.1.0"
