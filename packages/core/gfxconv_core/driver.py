"""Group conversion driver: issues backend calls in the fixed emission order."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from gfxconv_formats import EmissionBackend, EmitStats, ResourceOpenError, get_backend
from gfxconv_formats.models import AppVarLayout, Image, MemberKind, Palette

from .config import ConvertConfig, load_config
from .layout import appvar_from_assets, plan_appvar
from .logging_setup import configure_logging

logger = logging.getLogger("gfxconv.driver")


@dataclass(frozen=True)
class AssetGroup:
    """Assets converted together into one header/source pair.

    When ``appvar`` is set the palettes and images are stored in that archive
    and the output holds only the pointer table and its loader.
    """

    name: str
    palettes: tuple[Palette, ...] = ()
    images: tuple[Image, ...] = ()
    appvar: str | None = None


@dataclass
class EmitReport:
    group: str
    dialect: str
    files: list[str] = field(default_factory=list)
    arrays: int = 0
    bytes_emitted: int = 0
    unpaired: list[str] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)
    layout: AppVarLayout | None = None

    @property
    def success(self) -> bool:
        return not self.errors


class GroupConverter:
    def __init__(self, config: ConvertConfig | None = None, output_dir: Path | None = None) -> None:
        self.config = config or ConvertConfig()
        self.output_dir = Path(output_dir or self.config.output.directory)
        self._events: list[dict[str, Any]] = []

    def recent_events(self, limit: int = 200) -> list[dict[str, Any]]:
        return self._events[-limit:]

    def _log_event(self, event: str, **fields: Any) -> None:
        row = {"ts_utc": datetime.now(timezone.utc).isoformat(), "event": event}
        row.update(fields)
        self._events.append(row)
        if len(self._events) > 1000:
            self._events = self._events[-1000:]

    def _new_backend(self) -> EmissionBackend:
        return get_backend(self.config.format.dialect, **self.config.backend_options())

    def _open(self, backend: EmissionBackend, path: Path, header: bool, report: EmitReport) -> None:
        try:
            backend.open_output(path, header=header)
        except ResourceOpenError as exc:
            self._record_error(report, exc)
            return
        report.files.append(str(path))

    def _record_error(self, report: EmitReport, exc: ResourceOpenError) -> None:
        report.errors.append(str(exc))
        self._log_event("open_failed", path=str(exc.path))

    def convert(self, group: AssetGroup) -> EmitReport:
        backend = self._new_backend()
        report = EmitReport(group=group.name, dialect=backend.dialect)
        stats = EmitStats()
        header_path = self.output_dir / f"{group.name}{backend.header_suffix}"
        source_path = self.output_dir / f"{group.name}{backend.source_suffix}"
        claimed = {header_path, source_path}
        self._log_event("group_start", group=group.name, dialect=backend.dialect)

        try:
            self.output_dir.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            logger.error(
                f"cannot create output directory {self.output_dir}: {exc}",
                extra={"event": "output_dir_failed", "group": group.name, "path": str(self.output_dir)},
            )
            self._record_error(report, ResourceOpenError(self.output_dir, exc.strerror or str(exc)))
            self._log_event("group_done", group=group.name, arrays=0, errors=len(report.errors))
            return report

        try:
            self._open(backend, header_path, True, report)
            self._open(backend, source_path, False, report)
            backend.print_header_header(group.name)
            backend.print_source_header(header_path.name)

            if group.appvar:
                report.layout = self._emit_appvar(backend, group)
            else:
                for palette in group.palettes:
                    self._emit_palette(backend, palette)
                for image in group.images:
                    if self.config.output.split_sources:
                        stats.merge(self._emit_split_image(backend, image, header_path.name, report, claimed))
                    else:
                        self._emit_image(backend, backend, image)

            backend.print_end_header()
        finally:
            backend.close_all()
            stats.merge(backend.stats)

        report.arrays = stats.arrays
        report.bytes_emitted = stats.bytes_emitted
        report.unpaired = stats.unpaired()
        for symbol in report.unpaired:
            logger.warning(
                f"{group.name}: symbol {symbol} is not both declared and defined",
                extra={"event": "unpaired_symbol", "group": group.name, "symbol": symbol},
            )
        logger.info(
            f"emitted group {group.name}: {report.arrays} arrays, {report.bytes_emitted} bytes",
            extra={"event": "group_emitted", "group": group.name},
        )
        self._log_event("group_done", group=group.name, arrays=report.arrays, errors=len(report.errors))
        return report

    def _emit_bytes(self, backend: EmissionBackend, data: bytes) -> None:
        per_line = self.config.output.bytes_per_line
        total = len(data)
        for i, value in enumerate(data):
            backend.print_byte(value)
            if (i + 1) % per_line == 0 and i + 1 < total:
                backend.print_next_array_line(False)
        backend.print_next_array_line(True)

    def _emit_palette(self, backend: EmissionBackend, palette: Palette) -> None:
        backend.print_palette(palette.name, palette)
        backend.print_palette_header(palette.name, len(palette))
        if palette.transparent_index is not None:
            backend.print_transparent_index(palette.name, palette.transparent_index)

    def _emit_image(self, source: EmissionBackend, header: EmissionBackend, image: Image) -> None:
        """Definitions go to ``source``, declarations to ``header``."""
        if image.is_tiled:
            compressed = image.tiles_compressed
            for tile in image.tiles:
                if tile.compressed is not None:
                    source.print_compressed_tile(image.name, tile.index, tile.size)
                    self._emit_bytes(source, tile.compressed.data)
                else:
                    source.print_tile(image.name, tile.index, tile.size, tile.width, tile.height)
                    self._emit_bytes(source, tile.data)
            source.print_tile_ptrs(image.name, len(image.tiles), compressed)
            header.print_tiles_header(image.name, len(image.tiles), compressed)
            header.print_tiles_ptrs_header(image.name, len(image.tiles), compressed)
            return

        compressed = image.compressed is not None
        if compressed:
            source.print_compressed_image(image.name, image.size, image.bpp)
            self._emit_bytes(source, image.compressed.data)
        else:
            source.print_image(image.name, image.size, image.width, image.height, image.bpp)
            self._emit_bytes(source, image.data)

        if image.transparent_style:
            header.print_transparent_image_header(image.name, image.size, compressed)
        else:
            header.print_image_header(image.name, image.size, compressed)

    def _emit_split_image(
        self,
        header: EmissionBackend,
        image: Image,
        header_name: str,
        report: EmitReport,
        claimed: set[Path],
    ) -> EmitStats:
        """Emit ``image`` into its own source file; falls back to the group source on a name clash."""
        backend = self._new_backend()
        path = self.output_dir / f"{image.name}{backend.source_suffix}"
        if path in claimed:
            logger.error(
                f"image {image.name} would overwrite {path}, emitting it into the group source",
                extra={"event": "split_path_collision", "path": str(path)},
            )
            self._record_error(report, ResourceOpenError(path, f"already written for this group, image {image.name}"))
            self._emit_image(header, header, image)
            return EmitStats()
        claimed.add(path)
        try:
            self._open(backend, path, False, report)
            backend.print_image_source_header(header_name)
            self._emit_image(backend, header, image)
        finally:
            backend.close_output(header=False)
        return backend.stats

    def _emit_appvar(self, backend: EmissionBackend, group: AssetGroup) -> AppVarLayout:
        layout = plan_appvar(appvar_from_assets(group.appvar, group.palettes, group.images))
        members = layout.appvar.members

        backend.print_appvar_load_function_header()
        backend.print_appvar_array(layout.name, len(members))
        for index, member, offset in layout.entries():
            if member.kind is MemberKind.PALETTE:
                backend.print_appvar_palette(offset)
                backend.print_appvar_palette_header(member.name, layout.name, index, len(member.asset))
                if member.asset.transparent_index is not None:
                    backend.print_transparent_index(member.name, member.asset.transparent_index)
            else:
                backend.print_appvar_image(
                    layout.name,
                    offset,
                    member.name,
                    index,
                    member.compressed,
                    member.transparent_style,
                )
        backend.print_next_array_line(True)
        backend.print_appvar_load_function(layout.name)
        self._log_event("appvar_emitted", appvar=layout.name, members=len(members), total_size=layout.total_size)
        return layout


def convert_groups(
    groups: Iterable[AssetGroup],
    config: ConvertConfig | None = None,
    output_dir: Path | None = None,
) -> list[EmitReport]:
    """Configure logging from ``config`` and convert each group in order."""
    cfg = config or load_config()
    configure_logging(**cfg.logging_options())
    converter = GroupConverter(cfg, output_dir=output_dir)
    return [converter.convert(group) for group in groups]
