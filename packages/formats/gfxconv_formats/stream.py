"""Buffered file output for one side of a declaration/definition pair."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import IO

from .errors import OrderingViolation, ResourceOpenError
from .models import StreamState

logger = logging.getLogger("gfxconv.stream")


class OutputStream:
    """Owns one text file handle; writes are buffered until :meth:`flush`."""

    def __init__(self, role: str) -> None:
        self.role = role
        self.path: Path | None = None
        self.state = StreamState.IDLE
        self.bytes_written = 0
        self._handle: IO[str] | None = None
        self._buffer: list[str] = []
        self._short_circuit_logged = False

    @property
    def is_open(self) -> bool:
        return self._handle is not None and not self._handle.closed

    @property
    def failed(self) -> bool:
        return self.state is StreamState.FAILED

    def open(self, path: Path | str) -> None:
        if self.state is not StreamState.IDLE:
            raise OrderingViolation(f"open {self.role}", self.state.value, "stream may only be opened once")
        self.path = Path(path)
        try:
            self._handle = self.path.open("w", encoding="utf-8", newline="\n")
        except OSError as exc:
            self.state = StreamState.FAILED
            logger.error(
                f"cannot open {self.role} output {self.path}: {exc}",
                extra={"event": "stream_open_failed", "role": self.role, "path": str(self.path)},
            )
            raise ResourceOpenError(self.path, exc.strerror or str(exc)) from exc
        self.state = StreamState.OPEN
        logger.info(f"opened {self.role} output {self.path}", extra={"event": "stream_opened", "role": self.role})

    def write(self, text: str) -> None:
        if self.failed:
            if not self._short_circuit_logged:
                logger.warning(
                    f"skipping writes to unavailable {self.role} output {self.path}",
                    extra={"event": "write_short_circuited", "role": self.role},
                )
                self._short_circuit_logged = True
            return
        if not self.is_open:
            raise OrderingViolation(f"write {self.role}", self.state.value, "stream is not open")
        self._buffer.append(text)

    def flush(self) -> None:
        if not self.is_open or not self._buffer:
            return
        chunk = "".join(self._buffer)
        self._buffer.clear()
        self._handle.write(chunk)
        self._handle.flush()
        self.bytes_written += len(chunk.encode("utf-8"))

    def close(self) -> None:
        if self._handle is None:
            return
        try:
            self.flush()
        finally:
            self._handle.close()
            self._handle = None
            self._buffer.clear()
            self.state = StreamState.CLOSED
