"""Appvar layout planning: cumulative member offsets and archive body bytes."""

from __future__ import annotations

import logging
from collections.abc import Iterable

from gfxconv_formats.color import palette_to_le_bytes
from gfxconv_formats.models import AppVar, AppVarLayout, AppVarMember, Image, MemberKind, Palette

logger = logging.getLogger("gfxconv.layout")


def appvar_from_assets(name: str, palettes: Iterable[Palette] = (), images: Iterable[Image] = ()) -> AppVar:
    """Members in archive order: palettes, then images, with tiled images expanded per tile."""
    members: list[AppVarMember] = [AppVarMember.for_palette(p) for p in palettes]
    for image in images:
        if image.is_tiled:
            members.extend(AppVarMember.for_tile(image, tile) for tile in image.tiles)
        else:
            members.append(AppVarMember.for_image(image))
    return AppVar(name=name, members=tuple(members))


def plan_appvar(appvar: AppVar) -> AppVarLayout:
    offsets: list[int] = []
    cursor = 0
    for member in appvar.members:
        offsets.append(cursor)
        cursor += member.size
    layout = AppVarLayout(appvar=appvar, offsets=tuple(offsets), total_size=cursor)
    logger.info(
        f"planned appvar {appvar.name}: {len(offsets)} members, {cursor} bytes",
        extra={"event": "appvar_planned", "appvar": appvar.name},
    )
    return layout


def member_payload(member: AppVarMember) -> bytes:
    asset = member.asset
    if member.kind is MemberKind.PALETTE:
        return palette_to_le_bytes(asset)
    if asset.compressed is not None:
        return asset.compressed.data
    return bytes([asset.width, asset.height]) + asset.data


def appvar_body(layout: AppVarLayout) -> bytes:
    body = b"".join(member_payload(m) for m in layout.appvar.members)
    if len(body) != layout.total_size:
        raise ValueError(f"Appvar {layout.name} body is {len(body)} bytes, layout expects {layout.total_size}")
    return body
