"""Output dialects for converted palettes, images, tiles and appvars."""

from .backend import DEFAULT_BANNER, EmissionBackend
from .color import (
    image_from_pil,
    pack_color,
    pack_colors,
    pack_rgba,
    palette_from_pil,
    palette_to_le_bytes,
)
from .dialects import DEFAULT_DIALECT, get_backend, list_dialects
from .errors import EmissionError, OrderingViolation, RelocationError, ResourceOpenError
from .models import (
    AppVar,
    AppVarLayout,
    AppVarMember,
    BackendState,
    Color,
    CompressedBlob,
    EmitStats,
    Image,
    MemberKind,
    Palette,
    StreamState,
    Tile,
)
from .relocation import AppvarLoader, relocate

__all__ = [
    "AppVar",
    "AppVarLayout",
    "AppVarMember",
    "AppvarLoader",
    "BackendState",
    "Color",
    "CompressedBlob",
    "DEFAULT_BANNER",
    "DEFAULT_DIALECT",
    "EmissionBackend",
    "EmissionError",
    "EmitStats",
    "Image",
    "MemberKind",
    "OrderingViolation",
    "Palette",
    "RelocationError",
    "ResourceOpenError",
    "StreamState",
    "Tile",
    "get_backend",
    "image_from_pil",
    "list_dialects",
    "pack_color",
    "pack_colors",
    "pack_rgba",
    "palette_from_pil",
    "palette_to_le_bytes",
    "relocate",
]
