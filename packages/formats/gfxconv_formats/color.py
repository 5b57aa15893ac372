"""Packed 16-bit color conversion and Pillow adapters."""

from __future__ import annotations

from collections.abc import Iterable

import numpy as np
from PIL import Image as PILImage

from .models import Color, Image, Palette


def pack_rgba(r: int, g: int, b: int, a: int = 255) -> int:
    return ((r >> 3) << 11) | ((g >> 3) << 6) | ((b >> 3) << 1) | (a >> 7)


def pack_color(color: Color) -> int:
    return pack_rgba(color.r, color.g, color.b, color.a)


def pack_colors(colors: Iterable[Color]) -> np.ndarray:
    arr = np.array([(c.r, c.g, c.b, c.a) for c in colors], dtype=np.uint16).reshape((-1, 4))
    r = arr[:, 0]
    g = arr[:, 1]
    b = arr[:, 2]
    a = arr[:, 3]
    return ((r >> 3) << 11) | ((g >> 3) << 6) | ((b >> 3) << 1) | (a >> 7)


def palette_to_le_bytes(palette: Palette) -> bytes:
    return pack_colors(palette.colors).astype("<u2").tobytes()


def palette_from_pil(name: str, image: PILImage.Image) -> Palette:
    """Read the palette of an already-quantized ``P`` mode image."""
    if image.mode != "P":
        raise ValueError(f"Expected a paletted image, got mode {image.mode}")
    if image.palette is not None and image.palette.mode == "RGBA":
        raw = image.getpalette(rawmode="RGBA") or []
        colors = tuple(Color(*raw[i : i + 4]) for i in range(0, len(raw), 4))
    else:
        raw = image.getpalette() or []
        colors = tuple(Color(*raw[i : i + 3]) for i in range(0, len(raw) - len(raw) % 3, 3))
    colors = colors[:256]

    transparent = image.info.get("transparency")
    if isinstance(transparent, int) and transparent < len(colors):
        c = colors[transparent]
        colors = colors[:transparent] + (Color(c.r, c.g, c.b, 0),) + colors[transparent + 1 :]
    else:
        transparent = None
    return Palette(name=name, colors=colors, transparent_index=transparent)


def image_from_pil(name: str, image: PILImage.Image, transparent_style: bool = False) -> Image:
    if image.mode != "P":
        raise ValueError(f"Expected a paletted image, got mode {image.mode}")
    width, height = image.size
    return Image(
        name=name,
        width=width,
        height=height,
        bpp=8,
        data=image.tobytes(),
        transparent_style=transparent_style,
    )
