"""Typed models for converted assets, appvar layouts and emission state."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

VALID_BPP = (1, 2, 4, 8, 16)


class StreamState(str, Enum):
    IDLE = "Idle"
    OPEN = "Open"
    EMITTING = "Emitting"
    FINALIZED = "Finalized"
    CLOSED = "Closed"
    FAILED = "Failed"


class BackendState(str, Enum):
    IDLE = "Idle"
    STREAMS_OPEN = "StreamsOpen"
    EMITTING = "Emitting"
    FINALIZED = "Finalized"
    CLOSED = "Closed"


class ArrayKind(str, Enum):
    PALETTE = "palette"
    IMAGE = "image"
    TILE = "tile"
    APPVAR = "appvar"


class MemberKind(str, Enum):
    PALETTE = "palette"
    IMAGE = "image"
    TILE = "tile"


@dataclass(frozen=True)
class Color:
    r: int
    g: int
    b: int
    a: int = 255

    def __post_init__(self) -> None:
        for channel in (self.r, self.g, self.b, self.a):
            if not 0 <= channel <= 0xFF:
                raise ValueError(f"Color channel out of range: {channel}")


@dataclass(frozen=True)
class Palette:
    name: str
    colors: tuple[Color, ...]
    transparent_index: int | None = None

    def __post_init__(self) -> None:
        if not 1 <= len(self.colors) <= 256:
            raise ValueError("Palette must have between 1 and 256 entries")
        if self.transparent_index is not None and not 0 <= self.transparent_index < len(self.colors):
            raise ValueError(f"Transparent index {self.transparent_index} outside palette of {len(self.colors)}")

    def __len__(self) -> int:
        return len(self.colors)

    @property
    def size(self) -> int:
        return len(self.colors) * 2


@dataclass(frozen=True)
class CompressedBlob:
    data: bytes
    uncompressed_size: int

    @property
    def size(self) -> int:
        return len(self.data)


def _check_dimensions(width: int, height: int) -> None:
    if not (1 <= width <= 0xFF and 1 <= height <= 0xFF):
        raise ValueError(f"Dimensions must fit in 8 bits, got {width}x{height}")


@dataclass(frozen=True)
class Tile:
    index: int
    width: int
    height: int
    data: bytes
    compressed: CompressedBlob | None = None

    def __post_init__(self) -> None:
        _check_dimensions(self.width, self.height)

    @property
    def size(self) -> int:
        if self.compressed is not None:
            return self.compressed.size
        return 2 + len(self.data)


@dataclass(frozen=True)
class Image:
    """Converted image; ``tiles`` is empty unless the image was split."""

    name: str
    width: int
    height: int
    bpp: int
    data: bytes
    compressed: CompressedBlob | None = None
    tiles: tuple[Tile, ...] = ()
    transparent_style: bool = False

    def __post_init__(self) -> None:
        _check_dimensions(self.width, self.height)
        if self.bpp not in VALID_BPP:
            raise ValueError(f"Unsupported bits per pixel: {self.bpp}")
        for expected, tile in enumerate(self.tiles):
            if tile.index != expected:
                raise ValueError(f"Tile indices must be contiguous from 0, got {tile.index} at {expected}")
        if self.tiles and len({t.compressed is None for t in self.tiles}) != 1:
            raise ValueError("Tiles must be all compressed or all uncompressed")

    @property
    def size(self) -> int:
        if self.compressed is not None:
            return self.compressed.size
        return 2 + len(self.data)

    @property
    def is_tiled(self) -> bool:
        return bool(self.tiles)

    @property
    def tiles_compressed(self) -> bool:
        return bool(self.tiles) and self.tiles[0].compressed is not None


@dataclass(frozen=True)
class AppVarMember:
    kind: MemberKind
    asset: Palette | Image | Tile
    name: str
    compressed: bool = False
    transparent_style: bool = False

    @property
    def size(self) -> int:
        return self.asset.size

    @staticmethod
    def for_palette(palette: Palette) -> "AppVarMember":
        return AppVarMember(kind=MemberKind.PALETTE, asset=palette, name=palette.name)

    @staticmethod
    def for_image(image: Image) -> "AppVarMember":
        return AppVarMember(
            kind=MemberKind.IMAGE,
            asset=image,
            name=image.name,
            compressed=image.compressed is not None,
            transparent_style=image.transparent_style,
        )

    @staticmethod
    def for_tile(image: Image, tile: Tile) -> "AppVarMember":
        return AppVarMember(
            kind=MemberKind.TILE,
            asset=tile,
            name=f"{image.name}_tile_{tile.index}",
            compressed=tile.compressed is not None,
            transparent_style=image.transparent_style,
        )


@dataclass(frozen=True)
class AppVar:
    name: str
    members: tuple[AppVarMember, ...]

    def __post_init__(self) -> None:
        if not self.name or len(self.name) > 8:
            raise ValueError("Appvar names must be 1 to 8 characters")
        if not self.members:
            raise ValueError("Appvar must contain at least one member")


@dataclass(frozen=True)
class AppVarLayout:
    appvar: AppVar
    offsets: tuple[int, ...]
    total_size: int

    @property
    def name(self) -> str:
        return self.appvar.name

    @property
    def base(self) -> int:
        return self.offsets[0]

    def entries(self) -> list[tuple[int, AppVarMember, int]]:
        return [(i, m, self.offsets[i]) for i, m in enumerate(self.appvar.members)]


@dataclass
class EmitStats:
    arrays: int = 0
    bytes_emitted: int = 0
    declared: set[str] = field(default_factory=set)
    defined: set[str] = field(default_factory=set)

    def merge(self, other: "EmitStats") -> None:
        self.arrays += other.arrays
        self.bytes_emitted += other.bytes_emitted
        self.declared |= other.declared
        self.defined |= other.defined

    def unpaired(self) -> list[str]:
        """Symbols declared without a definition, or defined without a declaration."""
        return sorted(self.declared ^ self.defined)
