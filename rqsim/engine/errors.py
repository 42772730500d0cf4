from __future__ import annotations

class RQSimError(Exception):
    pass

class ConfigurationError(RQSimError, ValueError):
    """Bad run arguments, config file values or queue capacity."""

class InterruptionError(RQSimError):
    """A blocking put, poll loop or pause was interrupted."""

class QueueClosedError(RQSimError):
    """Put attempted after the queue stopped accepting resources."""

class LatchError(RQSimError):
    """Attempt to reopen a queue that already stopped accepting resources."""
