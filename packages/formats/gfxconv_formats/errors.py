"""Error taxonomy for output emission."""

from __future__ import annotations

from pathlib import Path


class EmissionError(RuntimeError):
    pass


class ResourceOpenError(EmissionError, OSError):
    def __init__(self, path: Path | str, reason: str = "") -> None:
        self.path = Path(path)
        self.reason = reason
        message = f"opening {self.path} for output"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)


class OrderingViolation(EmissionError):
    """Raised when an emission call is made outside the stream protocol."""

    def __init__(self, operation: str, state: str, detail: str = "") -> None:
        self.operation = operation
        self.state = state
        message = f"{operation} not allowed in state {state}"
        if detail:
            message = f"{message} ({detail})"
        super().__init__(message)


class RelocationError(EmissionError):
    pass
