"""Process-wide profiler settings.

Settings are read once into a :class:`ProfilerSettings` and handed to every
profiler at construction time. Keys follow the dotted ``<profiler>.<name>``
convention (``vtune.analysisType``) and each has an ``EXTPROF_*`` environment
equivalent. Malformed values never raise; they resolve to the documented
default.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field, fields, replace
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Union

import yaml
from omegaconf import DictConfig, OmegaConf

from .layout import ROOTS

_TRUE_VALUES = {"true", "yes", "on", "1"}
_FALSE_VALUES = {"false", "no", "off", "0"}


def parse_bool(value: Any, default: bool) -> bool:
    """Parse *value* as a boolean, returning *default* for anything unrecognised."""
    if isinstance(value, bool):
        return value
    if value is None:
        return default
    text = str(value).strip().lower()
    if text in _TRUE_VALUES:
        return True
    if text in _FALSE_VALUES:
        return False
    return default


@dataclass(frozen=True)
class _SettingKey:
    key: str
    env: str
    attr: str
    kind: str  # path | str | optional | bool


SETTING_KEYS = (
    _SettingKey("jfr.saveTo", "EXTPROF_JFR_SAVE_TO", "jfr_save_to", "path"),
    _SettingKey("jfr.duration", "EXTPROF_JFR_DURATION", "jfr_duration", "str"),
    _SettingKey("jfr.settingsFile", "EXTPROF_JFR_SETTINGS_FILE", "jfr_settings_file", "str"),
    _SettingKey("vtune.saveTo", "EXTPROF_VTUNE_SAVE_TO", "vtune_save_to", "path"),
    _SettingKey("vtune.analysisType", "EXTPROF_VTUNE_ANALYSIS_TYPE", "vtune_analysis_type", "str"),
    _SettingKey("vtune.extraOptions", "EXTPROF_VTUNE_EXTRA_OPTIONS", "vtune_extra_options", "optional"),
    _SettingKey("vtune.filePrefix", "EXTPROF_VTUNE_FILE_PREFIX", "vtune_file_prefix", "optional"),
    _SettingKey("vtune.quiet", "EXTPROF_VTUNE_QUIET", "vtune_quiet", "bool"),
    _SettingKey("vtune.command", "EXTPROF_VTUNE_COMMAND", "vtune_command", "str"),
)
_BY_KEY = {entry.key: entry for entry in SETTING_KEYS}


@dataclass(frozen=True)
class ProfilerSettings:
    """Resolved settings shared by the bundled profilers."""

    jfr_save_to: Path = field(default_factory=lambda: ROOTS.artifacts)
    jfr_duration: str = "60s"
    jfr_settings_file: str = "profile.jfc"
    vtune_save_to: Path = field(default_factory=lambda: ROOTS.artifacts)
    vtune_analysis_type: str = "hotspots"
    vtune_extra_options: Optional[str] = None
    vtune_file_prefix: Optional[str] = None
    vtune_quiet: bool = True
    vtune_command: str = "amplxe-cl"

    @classmethod
    def from_mapping(
        cls,
        values: Mapping[str, Any],
        base: Optional["ProfilerSettings"] = None,
    ) -> "ProfilerSettings":
        """Apply dotted-key *values* on top of *base* (or the defaults)."""
        current = base if base is not None else cls()
        defaults = _defaults()
        changes: Dict[str, Any] = {}
        for key, raw in values.items():
            entry = _BY_KEY.get(str(key))
            if entry is None:
                print(f"[WARN] Ignoring unknown profiler setting: {key}")
                continue
            default = defaults[entry.attr]
            if entry.kind == "bool":
                changes[entry.attr] = parse_bool(raw, default)
            elif entry.kind == "optional":
                text = "" if raw is None else str(raw).strip()
                changes[entry.attr] = text or None
            elif entry.kind == "path":
                text = "" if raw is None else str(raw).strip()
                changes[entry.attr] = Path(text).expanduser() if text else default
            else:
                text = "" if raw is None else str(raw).strip()
                changes[entry.attr] = text or default
        return replace(current, **changes)

    @classmethod
    def from_environment(
        cls,
        environ: Optional[Mapping[str, str]] = None,
        base: Optional["ProfilerSettings"] = None,
    ) -> "ProfilerSettings":
        env = os.environ if environ is None else environ
        values = {entry.key: env[entry.env] for entry in SETTING_KEYS if entry.env in env}
        return cls.from_mapping(values, base=base)

    @classmethod
    def from_yaml(cls, path: Union[str, Path], base: Optional["ProfilerSettings"] = None) -> "ProfilerSettings":
        data = yaml.safe_load(Path(path).read_text()) or {}
        if not isinstance(data, dict):
            raise ValueError(f"Profiler settings file must contain a mapping: {path}")
        return cls.from_mapping(flatten_settings(data), base=base)

    @classmethod
    def from_config(cls, cfg: Any, base: Optional["ProfilerSettings"] = None) -> "ProfilerSettings":
        if cfg is None:
            return base if base is not None else cls()
        if isinstance(cfg, DictConfig):
            cfg = OmegaConf.to_container(cfg, resolve=True)
        return cls.from_mapping(flatten_settings(dict(cfg)), base=base)

    def as_dict(self) -> Dict[str, Any]:
        """Return the settings keyed by their dotted names."""
        result: Dict[str, Any] = {}
        for entry in SETTING_KEYS:
            value = getattr(self, entry.attr)
            result[entry.key] = str(value) if isinstance(value, Path) else value
        return result


def flatten_settings(data: Mapping[str, Any], prefix: str = "") -> Dict[str, Any]:
    """Flatten ``{"vtune": {"quiet": False}}`` into ``{"vtune.quiet": False}``."""
    flat: Dict[str, Any] = {}
    for key, value in data.items():
        name = f"{prefix}.{key}" if prefix else str(key)
        if isinstance(value, Mapping):
            flat.update(flatten_settings(value, name))
        else:
            flat[name] = value
    return flat


def load_settings(
    path: Optional[Union[str, Path]] = None,
    overrides: Optional[Mapping[str, Any]] = None,
    *,
    environ: Optional[Mapping[str, str]] = None,
) -> ProfilerSettings:
    """Layer defaults, environment, an optional YAML file and explicit overrides."""
    settings = ProfilerSettings.from_environment(environ)
    if path is not None:
        settings = ProfilerSettings.from_yaml(path, base=settings)
    if overrides:
        settings = ProfilerSettings.from_config(overrides, base=settings)
    return settings


def _defaults() -> Dict[str, Any]:
    defaults = ProfilerSettings()
    return {f.name: getattr(defaults, f.name) for f in fields(ProfilerSettings)}


__all__ = [
    "ProfilerSettings",
    "SETTING_KEYS",
    "flatten_settings",
    "load_settings",
    "parse_bool",
]
