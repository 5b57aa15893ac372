"""Emission backend interface shared by every output dialect.

A backend owns a declaration stream and a definition stream and enforces the
call protocol ``open -> prologue -> assets -> end header -> close``.  Each
stream tracks its own :class:`StreamState`; the backend state reported by
:attr:`EmissionBackend.state` is derived from both.

Array literals are opened by the ``print_image``/``print_tile``/... family,
filled with :meth:`print_byte` and closed by ``print_next_array_line(True)``.
Only one array may be open at a time.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path

from .errors import OrderingViolation
from .models import ArrayKind, BackendState, EmitStats, Palette, StreamState
from .stream import OutputStream

logger = logging.getLogger("gfxconv.backend")

DEFAULT_BANNER = "Converted using gfxconv"
_LIVE_STATES = (StreamState.OPEN, StreamState.EMITTING, StreamState.FINALIZED)


@dataclass
class OpenArray:
    name: str
    kind: ArrayKind
    declared: int
    count: int = 0
    line_fresh: bool = True


class EmissionBackend(ABC):
    dialect = ""
    header_suffix = ""
    source_suffix = ""

    def __init__(
        self,
        banner: str = DEFAULT_BANNER,
        image_type: str = "gfx_image_t",
        timage_type: str = "gfx_timage_t",
        loader_include: str = "fileioc.h",
        init_guard: bool = False,
    ) -> None:
        self.banner = banner
        self.image_type = image_type
        self.timage_type = timage_type
        self.loader_include = loader_include
        self.init_guard = init_guard

        self.header = OutputStream("declaration")
        self.source = OutputStream("definition")
        self.stats = EmitStats()
        self._array: OpenArray | None = None
        self._tiles_emitted: dict[str, int] = {}
        self._appvar_bases: dict[str, int] = {}
        self._appvar_counts: dict[str, int] = {}

    @property
    def state(self) -> BackendState:
        streams = (self.header, self.source)
        if all(s.state is StreamState.IDLE for s in streams):
            return BackendState.IDLE
        if not any(s.state in _LIVE_STATES for s in streams):
            return BackendState.CLOSED
        if self.header.state is StreamState.FINALIZED:
            return BackendState.FINALIZED
        if any(s.state is StreamState.EMITTING for s in streams):
            return BackendState.EMITTING
        return BackendState.STREAMS_OPEN

    @property
    def current_array(self) -> OpenArray | None:
        return self._array

    # -- stream lifecycle ---------------------------------------------------

    def open_output(self, path: Path | str, header: bool) -> None:
        self._stream(header).open(path)

    def close_output(self, header: bool) -> None:
        stream = self._stream(header)
        if not header and self._array is not None:
            logger.warning(
                f"closing definition output with array {self._array.name} still open",
                extra={"event": "array_left_open", "array": self._array.name},
            )
            self._array = None
        if header and stream.state is StreamState.EMITTING:
            logger.warning(
                "closing declaration output before end of header",
                extra={"event": "header_not_finalized"},
            )
        stream.close()

    def close_all(self) -> None:
        try:
            self.close_output(header=False)
        finally:
            self.close_output(header=True)

    # -- protocol guards ------------------------------------------------------

    def _stream(self, header: bool) -> OutputStream:
        return self.header if header else self.source

    def _begin(self, stream: OutputStream, operation: str) -> OutputStream:
        if stream.failed:
            return stream
        if stream.state is not StreamState.OPEN:
            raise OrderingViolation(operation, stream.state.value, "prologue must directly follow open")
        stream.state = StreamState.EMITTING
        return stream

    def _emitting(self, stream: OutputStream, operation: str) -> OutputStream:
        if not stream.failed and stream.state is not StreamState.EMITTING:
            raise OrderingViolation(operation, stream.state.value)
        return stream

    def _decl(self, operation: str) -> OutputStream:
        return self._emitting(self.header, operation)

    def _defn(self, operation: str) -> OutputStream:
        stream = self._emitting(self.source, operation)
        if self._array is not None:
            raise OrderingViolation(operation, "ArrayOpen", f"array {self._array.name} is still open")
        return stream

    def _finalize_header(self, operation: str) -> OutputStream:
        stream = self._decl(operation)
        if not stream.failed:
            stream.state = StreamState.FINALIZED
        return stream

    def _open_array(self, operation: str, name: str, kind: ArrayKind, declared: int, framing: int = 0) -> OutputStream:
        stream = self._defn(operation)
        self._array = OpenArray(name=name, kind=kind, declared=declared, count=framing)
        self.stats.defined.add(name)
        return stream

    def _require_array(self, operation: str) -> OpenArray:
        self._emitting(self.source, operation)
        if self._array is None:
            raise OrderingViolation(operation, self.source.state.value, "no array is open")
        return self._array

    def _element(self, operation: str, kind: ArrayKind | None = None) -> OpenArray:
        array = self._require_array(operation)
        if kind is not None and array.kind is not kind:
            raise OrderingViolation(operation, self.source.state.value, f"open array {array.name} is a {array.kind.value} array")
        if kind is None and array.kind is ArrayKind.APPVAR:
            raise OrderingViolation(operation, self.source.state.value, "appvar tables hold offsets, not bytes")
        return array

    def _close_array(self) -> OpenArray:
        array = self._array
        self._array = None
        if array.count != array.declared:
            logger.warning(
                f"array {array.name} declared {array.declared} elements but received {array.count}",
                extra={"event": "array_size_mismatch", "array": array.name},
            )
        self.stats.arrays += 1
        self.source.flush()
        return array

    def _expect_tile(self, operation: str, name: str, index: int) -> None:
        expected = self._tiles_emitted.get(name, 0)
        if index != expected:
            raise OrderingViolation(operation, self.source.state.value, f"expected tile {expected} of {name}, got {index}")
        self._tiles_emitted[name] = index + 1

    def _check_tile_count(self, operation: str, name: str, num_tiles: int) -> None:
        emitted = self._tiles_emitted.get(name, 0)
        if emitted != num_tiles:
            raise OrderingViolation(operation, self.source.state.value, f"{name} has {emitted} tiles, table wants {num_tiles}")

    def _open_appvar(self, operation: str, name: str, member_count: int) -> OutputStream:
        out = self._open_array(operation, name, ArrayKind.APPVAR, member_count)
        self._appvar_counts[name] = member_count
        return out

    def _appvar_entry(self, operation: str, offset: int) -> OpenArray:
        array = self._element(operation, ArrayKind.APPVAR)
        self._appvar_bases.setdefault(array.name, offset)
        array.count += 1
        return array

    # -- prologues / epilogues -----------------------------------------------

    @abstractmethod
    def print_source_header(self, header_file_name: str | None) -> None:
        """Definition-stream prologue for the group source file."""

    @abstractmethod
    def print_image_source_header(self, group_header_file_name: str) -> None:
        """Definition-stream prologue for a per-image source file."""

    @abstractmethod
    def print_header_header(self, group_name: str) -> None:
        """Declaration-stream prologue: banner and include guard."""

    @abstractmethod
    def print_end_header(self) -> None:
        """Close the include guard. Last write to the declaration stream."""

    # -- palettes ---------------------------------------------------------------

    @abstractmethod
    def print_palette(self, name: str, palette: Palette) -> None: ...

    @abstractmethod
    def print_transparent_index(self, name: str, index: int) -> None: ...

    @abstractmethod
    def print_palette_header(self, name: str, length: int) -> None: ...

    # -- images and tiles ---------------------------------------------------

    @abstractmethod
    def print_image(self, name: str, size: int, width: int, height: int, bpp: int = 8) -> None: ...

    @abstractmethod
    def print_compressed_image(self, name: str, size: int, bpp: int = 8) -> None: ...

    @abstractmethod
    def print_tile(self, name: str, tile_index: int, size: int, width: int, height: int) -> None: ...

    @abstractmethod
    def print_compressed_tile(self, name: str, tile_index: int, size: int) -> None: ...

    @abstractmethod
    def print_tile_ptrs(self, name: str, num_tiles: int, compressed: bool) -> None: ...

    @abstractmethod
    def print_byte(self, value: int) -> None:
        """Append one element to the open array. Never emits closing syntax."""

    @abstractmethod
    def print_next_array_line(self, at_end: bool) -> None:
        """Continue on a new line, or close the open array when ``at_end``."""

    @abstractmethod
    def print_image_header(self, name: str, size: int, compressed: bool) -> None: ...

    @abstractmethod
    def print_transparent_image_header(self, name: str, size: int, compressed: bool) -> None: ...

    @abstractmethod
    def print_tiles_header(self, name: str, num_tiles: int, compressed: bool) -> None: ...

    @abstractmethod
    def print_tiles_ptrs_header(self, name: str, num_tiles: int, compressed: bool) -> None: ...

    # -- appvars ----------------------------------------------------------------

    @abstractmethod
    def print_appvar_array(self, name: str, member_count: int) -> None: ...

    @abstractmethod
    def print_appvar_image(
        self,
        name: str,
        offset: int,
        image_name: str,
        index: int,
        compressed: bool,
        transparent_style: bool,
    ) -> None: ...

    @abstractmethod
    def print_appvar_palette(self, offset: int) -> None: ...

    @abstractmethod
    def print_appvar_palette_header(self, palette_name: str, name: str, index: int, length: int) -> None: ...

    @abstractmethod
    def print_appvar_load_function_header(self) -> None: ...

    @abstractmethod
    def print_appvar_load_function(self, name: str) -> None:
        """Emit ``<name>_init``, which turns the stored offsets into pointers."""
