"""Conversion services: settings, logging, appvar layout and group emission."""

from .config import ConvertConfig, load_config, save_config
from .driver import AssetGroup, EmitReport, GroupConverter, convert_groups
from .layout import appvar_body, appvar_from_assets, member_payload, plan_appvar
from .logging_setup import configure_logging, get_logger

__all__ = [
    "AssetGroup",
    "ConvertConfig",
    "EmitReport",
    "GroupConverter",
    "appvar_body",
    "appvar_from_assets",
    "configure_logging",
    "convert_groups",
    "get_logger",
    "load_config",
    "member_payload",
    "plan_appvar",
    "save_config",
]
