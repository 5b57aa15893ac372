"""Executable model of the emitted ``<appvar>_init`` relocation routine.

The generated pointer table stores offsets relative to the start of the
archive.  At load time the routine adds ``data - base`` to every entry, where
``data`` is the archive's data pointer and ``base`` is the offset stored in
entry 0 at build time.  Calling it again adds the same delta again; only the
guarded variant remembers that it already ran.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping

from .errors import RelocationError
from .models import AppVarLayout

logger = logging.getLogger("gfxconv.relocation")

ADDRESS_SPACE = 1 << 24


def relocate(table: list[int], load_address: int, base: int) -> list[int]:
    """Shift every entry by ``load_address - base``; the table is left untouched on error."""
    delta = load_address - base
    values = [entry + delta for entry in table]
    for i, value in enumerate(values):
        if not 0 <= value < ADDRESS_SPACE:
            raise RelocationError(f"entry {i} relocates to {value:#x}, outside the 24-bit address space")
    table[:] = values
    return table


class AppvarLoader:
    def __init__(self, layout: AppVarLayout, guarded: bool = False) -> None:
        self.name = layout.name
        self.base = layout.base
        self.table = list(layout.offsets)
        self.guarded = guarded
        self.invocations = 0
        self._relocated = False

    @property
    def relocated(self) -> bool:
        return self._relocated

    def init(self, archives: Mapping[str, int]) -> bool:
        """Run the routine against ``archives`` (name -> data pointer)."""
        self.invocations += 1
        if self.guarded and self._relocated:
            logger.warning(
                f"{self.name}_init called again; table already relocated",
                extra={"event": "relocation_repeated", "appvar": self.name},
            )
            return True

        address = archives.get(self.name)
        if address is None:
            if self.guarded:
                return False
            # ti_GetDataPtr on a failed handle yields NULL; the table is still shifted.
            relocate(self.table, 0, self.base)
            return False

        relocate(self.table, address, self.base)
        self._relocated = True
        return True
