"""Persistent conversion settings schema and load/save helpers."""

from __future__ import annotations

import json
import os
import platform
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any

from gfxconv_formats import DEFAULT_BANNER, DEFAULT_DIALECT, list_dialects


CONFIG_VERSION = 2


@dataclass
class OutputConfig:
    directory: str = "."
    bytes_per_line: int = 16
    split_sources: bool = False


@dataclass
class FormatConfig:
    dialect: str = DEFAULT_DIALECT
    banner: str = DEFAULT_BANNER
    image_type: str = "gfx_image_t"
    timage_type: str = "gfx_timage_t"


@dataclass
class AppvarConfig:
    init_guard: bool = False
    loader_include: str = "fileioc.h"


@dataclass
class LoggingConfig:
    keep_files: int = 7
    console: bool = True
    directory: str | None = None


@dataclass
class ConvertConfig:
    config_version: int = CONFIG_VERSION
    output: OutputConfig = field(default_factory=OutputConfig)
    format: FormatConfig = field(default_factory=FormatConfig)
    appvar: AppvarConfig = field(default_factory=AppvarConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    def backend_options(self) -> dict[str, Any]:
        return {
            "banner": self.format.banner,
            "image_type": self.format.image_type,
            "timage_type": self.format.timage_type,
            "loader_include": self.appvar.loader_include,
            "init_guard": self.appvar.init_guard,
        }

    def logging_options(self) -> dict[str, Any]:
        directory = self.logging.directory
        return {
            "keep_files": self.logging.keep_files,
            "console": self.logging.console,
            "directory": Path(directory) if directory else None,
        }


def config_path() -> Path:
    system = platform.system()
    if system == "Windows":
        base = Path(os.environ.get("APPDATA", Path.home() / "AppData" / "Roaming"))
        return base / "gfxconv" / "config.json"
    if system == "Darwin":
        return Path.home() / "Library" / "Application Support" / "gfxconv" / "config.json"
    return Path.home() / ".config" / "gfxconv" / "config.json"


def _merge(dataclass_type, raw: dict[str, Any]):
    defaults = dataclass_type()  # type: ignore[misc]
    for k, v in raw.items():
        if hasattr(defaults, k):
            setattr(defaults, k, v)
    return defaults


def _normalize_output(cfg: ConvertConfig) -> None:
    cfg.output.bytes_per_line = max(1, min(64, int(cfg.output.bytes_per_line)))
    cfg.output.split_sources = bool(cfg.output.split_sources)


def _normalize_format(cfg: ConvertConfig) -> None:
    if cfg.format.dialect not in list_dialects():
        cfg.format.dialect = DEFAULT_DIALECT


def _normalize_logging(cfg: ConvertConfig) -> None:
    cfg.logging.keep_files = max(2, int(cfg.logging.keep_files))


def _migrate(raw: dict[str, Any]) -> dict[str, Any]:
    version = int(raw.get("config_version", 1))
    data = dict(raw)

    if version < 2:
        # v2 moves the top-level dialect under "format" and adds appvar options.
        fmt = dict(data.get("format", {}) or {})
        if "dialect" in data:
            fmt.setdefault("dialect", data.pop("dialect"))
        data["format"] = fmt
        data.setdefault("appvar", {})
        data["config_version"] = 2

    return data


def load_config(path: Path | None = None) -> ConvertConfig:
    path = path or config_path()
    if not path.exists():
        return ConvertConfig()

    try:
        raw = json.loads(path.read_text(encoding="utf-8"))
    except Exception:
        return ConvertConfig()

    data = _migrate(raw)
    cfg = ConvertConfig(
        config_version=int(data.get("config_version", CONFIG_VERSION)),
        output=_merge(OutputConfig, data.get("output", {})),
        format=_merge(FormatConfig, data.get("format", {})),
        appvar=_merge(AppvarConfig, data.get("appvar", {})),
        logging=_merge(LoggingConfig, data.get("logging", {})),
    )

    _normalize_output(cfg)
    _normalize_format(cfg)
    _normalize_logging(cfg)
    return cfg


def save_config(cfg: ConvertConfig, path: Path | None = None) -> Path:
    cfg.config_version = CONFIG_VERSION
    path = path or config_path()
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(asdict(cfg), indent=2, sort_keys=True), encoding="utf-8")
    return path
