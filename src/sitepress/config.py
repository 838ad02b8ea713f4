"""Site configuration: directory layout, feature flags and commands.

A SiteConfig is built fresh for each operation, either from a key-value
settings store (the editor's persistence), from a ``.sitepress.toml``
file, or by ConfigDetector. Loading order for files mirrors the rest of
the tooling: defaults → file → env vars → CLI flags.
"""

from __future__ import annotations

import logging
import os
import tomllib
from pathlib import Path
from typing import TYPE_CHECKING, Any

from pydantic import BaseModel, Field, field_validator
from sitepress.errors import ConfigValidationError
from sitepress.settings import JsonSettingsStore, SettingsAccessor

if TYPE_CHECKING:
    from sitepress.validator import ConfigValidator

logger = logging.getLogger(__name__)

CONFIG_FILENAME = ".sitepress.toml"
CONFIG_SEARCH_PATHS = [
    Path("."),
]
GLOBAL_CONFIG_PATH = Path.home() / ".config" / "sitepress" / "config.toml"

DEFAULT_CMD_TIMEOUT_MS = 60000

# Settings names, shared with the editor's credential store
SETTING_LOCAL_SITE_PATH = "LocalSitePath"
SETTING_POSTS_PATH = "PostsPath"
SETTING_PAGES_ENABLED = "PagesEnabled"
SETTING_PAGES_PATH = "PagesPath"
SETTING_DRAFTS_ENABLED = "DraftsEnabled"
SETTING_DRAFTS_PATH = "DraftsPath"
SETTING_IMAGES_ENABLED = "ImagesEnabled"
SETTING_IMAGES_PATH = "ImagesPath"
SETTING_BUILDING_ENABLED = "BuildingEnabled"
SETTING_OUTPUT_PATH = "OutputPath"
SETTING_BUILD_COMMAND = "BuildCommand"
SETTING_PUBLISH_COMMAND = "PublishCommand"
SETTING_SITE_URL = "SiteUrl"
SETTING_SHOW_CMD_WINDOWS = "ShowCmdWindows"
SETTING_CMD_TIMEOUT_MS = "CmdTimeoutMs"
SETTING_INITIALIZED = "Initialized"

_PATH_SETTINGS: dict[str, str] = {
    "posts_path": SETTING_POSTS_PATH,
    "pages_path": SETTING_PAGES_PATH,
    "drafts_path": SETTING_DRAFTS_PATH,
    "images_path": SETTING_IMAGES_PATH,
    "output_path": SETTING_OUTPUT_PATH,
    "build_command": SETTING_BUILD_COMMAND,
    "publish_command": SETTING_PUBLISH_COMMAND,
    "site_url": SETTING_SITE_URL,
}

_FLAG_SETTINGS: dict[str, str] = {
    "pages_enabled": SETTING_PAGES_ENABLED,
    "drafts_enabled": SETTING_DRAFTS_ENABLED,
    "images_enabled": SETTING_IMAGES_ENABLED,
    "building_enabled": SETTING_BUILDING_ENABLED,
    "show_cmd_windows": SETTING_SHOW_CMD_WINDOWS,
    "initialized": SETTING_INITIALIZED,
}


class FrontMatterKeys(BaseModel):
    """Literal YAML keys used on disk for each logical front matter field."""

    id: str = "id"
    title: str = "title"
    date: str = "date"
    layout: str = "layout"
    tags: str = "tags"
    parent_id: str = "parent_id"
    permalink: str = "permalink"

    @field_validator("*", mode="before")
    @classmethod
    def _empty_means_default(cls, value: Any, info: Any) -> Any:
        """An empty override falls back to the field's default key."""
        if value is None or (isinstance(value, str) and not value.strip()):
            return cls.model_fields[info.field_name].default
        return value

    @classmethod
    def setting_name(cls, field: str) -> str:
        """Settings name for a field, e.g. ``parent_id`` → ``FrontMatterKey.ParentId``."""
        camel = "".join(part.capitalize() for part in field.split("_"))
        return f"FrontMatterKey.{camel}"

    def load_from_settings(self, settings: SettingsAccessor) -> None:
        for field in type(self).model_fields:
            value = settings.get(self.setting_name(field))
            if value:
                setattr(self, field, value)

    def save_to_settings(self, settings: SettingsAccessor) -> None:
        for field in type(self).model_fields:
            settings.set(self.setting_name(field), getattr(self, field))


class SiteConfig(BaseModel):
    """Layout and commands for one local static site project."""

    model_config = {"validate_assignment": True}

    local_site_path: str = ""
    posts_path: str = ""
    pages_enabled: bool = False
    pages_path: str = ""
    drafts_enabled: bool = False
    drafts_path: str = ""
    images_enabled: bool = False
    images_path: str = ""
    building_enabled: bool = False
    output_path: str = ""
    build_command: str = ""
    publish_command: str = ""
    cmd_timeout_ms: int = DEFAULT_CMD_TIMEOUT_MS
    show_cmd_windows: bool = False
    site_url: str = ""
    site_title: str = ""
    initialized: bool = False
    front_matter_keys: FrontMatterKeys = Field(default_factory=FrontMatterKeys)

    # ── Derived paths ────────────────────────────────────────────

    @property
    def root(self) -> Path:
        return Path(self.local_site_path)

    @property
    def posts_dir(self) -> Path:
        return self.root / self.posts_path

    @property
    def pages_dir(self) -> Path:
        return self.root / self.pages_path

    @property
    def drafts_dir(self) -> Path:
        return self.root / self.drafts_path

    @property
    def images_dir(self) -> Path:
        return self.root / self.images_path

    @property
    def output_dir(self) -> Path:
        return self.root / self.output_path

    @property
    def validator(self) -> ConfigValidator:
        from sitepress.validator import ConfigValidator

        return ConfigValidator(self)

    def clone(self) -> SiteConfig:
        return self.model_copy(deep=True)

    # ── Settings store ───────────────────────────────────────────

    @classmethod
    def from_settings(cls, settings: SettingsAccessor) -> SiteConfig:
        """Create a config and load it from a settings store."""
        config = cls()
        config.load_from_settings(settings)
        return config

    def load_from_settings(self, settings: SettingsAccessor) -> None:
        """Load values from a settings store.

        Missing values keep their current (default) value, except the
        plain string settings which the editor always writes.
        """
        self.local_site_path = settings.get(SETTING_LOCAL_SITE_PATH)
        for field, name in _PATH_SETTINGS.items():
            setattr(self, field, settings.get(name))
        for field, name in _FLAG_SETTINGS.items():
            setattr(self, field, settings.get(name) == "1")

        timeout_raw = settings.get(SETTING_CMD_TIMEOUT_MS)
        if timeout_raw:
            try:
                self.cmd_timeout_ms = int(timeout_raw)
            except ValueError as exc:
                raise ConfigValidationError(
                    f"{SETTING_CMD_TIMEOUT_MS} must be an integer, got {timeout_raw!r}."
                ) from exc

        keys = FrontMatterKeys()
        keys.load_from_settings(settings)
        self.front_matter_keys = keys

    def save_to_settings(self, settings: SettingsAccessor) -> None:
        """Write every value to a settings store."""
        settings.set(SETTING_LOCAL_SITE_PATH, self.local_site_path)
        for field, name in _PATH_SETTINGS.items():
            settings.set(name, getattr(self, field))
        for field, name in _FLAG_SETTINGS.items():
            settings.set(name, "1" if getattr(self, field) else "0")
        settings.set(SETTING_CMD_TIMEOUT_MS, str(self.cmd_timeout_ms))
        self.front_matter_keys.save_to_settings(settings)


# ── File loading ─────────────────────────────────────────────────


_TOML_MAPPING: dict[str, str] = {
    "site.path": "local_site_path",
    "site.url": "site_url",
    "site.title": "site_title",
    "paths.posts": "posts_path",
    "paths.pages": "pages_path",
    "paths.drafts": "drafts_path",
    "paths.images": "images_path",
    "paths.output": "output_path",
    "features.pages": "pages_enabled",
    "features.drafts": "drafts_enabled",
    "features.images": "images_enabled",
    "features.building": "building_enabled",
    "commands.build": "build_command",
    "commands.publish": "publish_command",
    "commands.timeout_ms": "cmd_timeout_ms",
    "commands.show_windows": "show_cmd_windows",
}


def load_config(path: str | Path | None = None) -> SiteConfig:
    """Load site configuration from a file.

    Search order:
    1. Explicit path (if provided). ``.json`` files are read as a
       JsonSettingsStore, anything else as TOML.
    2. .sitepress.toml in CWD
    3. ~/.config/sitepress/config.toml

    Then overlay environment variables.

    Args:
        path: Explicit path to a TOML or JSON settings file.

    Returns:
        Merged SiteConfig.
    """
    config = SiteConfig()

    if path is not None:
        config_path = Path(path)
        if not config_path.exists():
            logger.warning("Config file not found: %s", config_path)
        elif config_path.suffix.lower() == ".json":
            config = SiteConfig.from_settings(JsonSettingsStore(config_path))
            logger.info("Loaded settings from %s", config_path)
        else:
            config = _config_from_toml(config_path)
    else:
        for search_dir in CONFIG_SEARCH_PATHS:
            candidate = search_dir / CONFIG_FILENAME
            if candidate.exists():
                config = _config_from_toml(candidate)
                logger.info("Loaded config from %s", candidate)
                break
        else:
            if GLOBAL_CONFIG_PATH.exists():
                config = _config_from_toml(GLOBAL_CONFIG_PATH)
                logger.info("Loaded config from %s", GLOBAL_CONFIG_PATH)

    return _apply_env_vars(config)


def merge_cli_overrides(config: SiteConfig, **cli_kwargs: object) -> SiteConfig:
    """Overlay explicitly-set CLI flags onto the config.

    Only overrides values where the CLI flag was explicitly provided
    (i.e., not None). Keys are SiteConfig field names.
    """
    data = config.model_dump()
    for key, value in cli_kwargs.items():
        if value is None:
            continue
        if key not in SiteConfig.model_fields:
            raise ValueError(f"Unknown config field: {key!r}")
        data[key] = value
    return SiteConfig.model_validate(data)


def _load_toml(path: Path) -> dict[str, Any]:
    """Load a TOML file and return the data dict."""
    try:
        with open(path, "rb") as f:
            return tomllib.load(f)
    except (tomllib.TOMLDecodeError, OSError) as exc:
        logger.warning("Failed to parse %s: %s", path, exc)
        return {}


def _config_from_toml(path: Path) -> SiteConfig:
    raw = _load_toml(path)
    data: dict[str, Any] = {}
    for dotted, field in _TOML_MAPPING.items():
        section, key = dotted.split(".")
        section_data = raw.get(section)
        if isinstance(section_data, dict) and key in section_data:
            data[field] = section_data[key]

    keys = raw.get("front_matter")
    if isinstance(keys, dict):
        data["front_matter_keys"] = keys

    # A relative site path is relative to the config file, not the CWD
    site_path = data.get("local_site_path")
    if site_path and not Path(site_path).is_absolute():
        data["local_site_path"] = str((path.parent / site_path).resolve())

    return SiteConfig.model_validate(data)


def _apply_env_vars(config: SiteConfig) -> SiteConfig:
    """Apply environment variable overrides to config."""
    data = config.model_dump()

    env_mapping: dict[str, str] = {
        "SITEPRESS_SITE_PATH": "local_site_path",
        "SITEPRESS_BUILD_COMMAND": "build_command",
        "SITEPRESS_PUBLISH_COMMAND": "publish_command",
    }
    for env_var, field in env_mapping.items():
        value = os.environ.get(env_var)
        if value is not None:
            data[field] = value

    timeout_raw = os.environ.get("SITEPRESS_CMD_TIMEOUT_MS")
    if timeout_raw is not None:
        try:
            data["cmd_timeout_ms"] = int(timeout_raw)
        except ValueError as exc:
            raise ConfigValidationError(
                f"SITEPRESS_CMD_TIMEOUT_MS must be an integer, got {timeout_raw!r}."
            ) from exc
    show_raw = os.environ.get("SITEPRESS_SHOW_CMD_WINDOWS")
    if show_raw is not None:
        data["show_cmd_windows"] = show_raw.lower() in ("true", "1", "yes")

    return SiteConfig.model_validate(data)
