"""Built-in output dialects."""

from __future__ import annotations

from typing import Any

from .asm_format import AsmFormat
from .backend import EmissionBackend
from .c_format import CFormat

DEFAULT_DIALECT = "c"

DIALECTS: dict[str, type[EmissionBackend]] = {
    "c": CFormat,
    "asm": AsmFormat,
}


def list_dialects() -> list[str]:
    return sorted(DIALECTS.keys())


def get_backend(dialect: str | None, **options: Any) -> EmissionBackend:
    name = dialect or DEFAULT_DIALECT
    try:
        backend_type = DIALECTS[name]
    except KeyError:
        raise ValueError(f"Unknown output dialect: {name}") from None
    return backend_type(**options)
