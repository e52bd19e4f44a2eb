"""Configuration loading for h5pcare (.h5pcare.yml)."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

import yaml

CONFIG_FILE_NAME = ".h5pcare.yml"
OUTPUT_FORMATS = ("json", "markdown")


class ConfigError(RuntimeError):
    """Raised when the configuration file cannot be parsed."""


@dataclass
class ReportsConfig:
    """Report enablement and execution settings."""

    enabled: List[str] = field(default_factory=list)
    parallel: bool = False


@dataclass
class OutputConfig:
    """How analysis results are serialized."""

    format: str = "json"
    include_raw: bool = False
    include_tree: bool = True


@dataclass
class CaretakerConfig:
    """Represents the settings defined in .h5pcare.yml."""

    root: Path
    locale: str = "en"
    catalog_dir: Optional[Path] = None
    reports: ReportsConfig = field(default_factory=ReportsConfig)
    output: OutputConfig = field(default_factory=OutputConfig)


def load_config(config_path: Path) -> CaretakerConfig:
    """Load configuration from disk."""
    config_file = _resolve_config_path(Path(config_path))
    root = config_file.parent.resolve()

    if not config_file.exists():
        return CaretakerConfig(root=root)

    data = _read_config(config_file)
    if not isinstance(data, dict):
        raise ConfigError(f"{CONFIG_FILE_NAME} must contain a mapping at the root")

    catalog_dir_str = _as_str(data.get("catalog_dir"))

    reports = ReportsConfig()
    reports_data = _as_dict(data.get("reports"))
    if reports_data:
        reports.enabled = _as_str_list(reports_data.get("enabled"))
        reports.parallel = _as_bool(reports_data.get("parallel")) or False

    output = OutputConfig()
    output_data = _as_dict(data.get("output"))
    if output_data:
        output_format = (_as_str(output_data.get("format")) or output.format).lower()
        if output_format not in OUTPUT_FORMATS:
            raise ConfigError(
                f"Unsupported output format '{output_format}'; expected one of "
                + ", ".join(OUTPUT_FORMATS)
            )
        output.format = output_format
        include_raw = _as_bool(output_data.get("include_raw"))
        if include_raw is not None:
            output.include_raw = include_raw
        include_tree = _as_bool(output_data.get("include_tree"))
        if include_tree is not None:
            output.include_tree = include_tree

    return CaretakerConfig(
        root=root,
        locale=_as_str(data.get("locale")) or "en",
        catalog_dir=root / catalog_dir_str if catalog_dir_str else None,
        reports=reports,
        output=output,
    )


def _resolve_config_path(config_path: Path) -> Path:
    config_path = config_path.expanduser()
    if config_path.is_dir():
        return (config_path / CONFIG_FILE_NAME).resolve()
    if config_path.name != CONFIG_FILE_NAME:
        return (config_path.parent / CONFIG_FILE_NAME).resolve()
    return config_path.resolve()


def _read_config(path: Path) -> Dict[str, Any]:
    text = path.read_text(encoding="utf-8")
    if not text.strip():
        return {}
    try:
        loaded = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ConfigError(f"Failed to parse {path.name}: {exc}") from exc
    return loaded if loaded is not None else {}


def _as_dict(value: Any) -> Dict[str, Any]:
    return value if isinstance(value, dict) else {}


def _as_str(value: Any) -> Optional[str]:
    return str(value) if isinstance(value, (str, int, float, bool)) else None


def _as_bool(value: Any) -> Optional[bool]:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in {"true", "yes", "1"}:
            return True
        if lowered in {"false", "no", "0"}:
            return False
    return None


def _as_str_list(value: Any) -> List[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [value]
    if isinstance(value, Sequence):
        return [str(item) for item in value if isinstance(item, (str, int, float, bool))]
    return []


__all__ = [
    "CONFIG_FILE_NAME",
    "CaretakerConfig",
    "ConfigError",
    "OutputConfig",
    "ReportsConfig",
    "load_config",
]
