"""Hierarchical finite state machine with guards, hooks and substates."""

__version__ = "0.1.0"
__all__ = ["errors", "machine", "transitions"]