"""Find and clean stale build and cache artifacts of recognized projects."""

__version__ = "0.1.0"
