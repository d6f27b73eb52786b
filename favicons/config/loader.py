"""Load task configuration from YAML and environment variables. Every option has a default."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Mapping, Optional

import yaml
from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# Default config lives next to this module
_DEFAULT_CONFIG_PATH = Path(__file__).parent / "default.yaml"

AUTO = "auto"
NONE = "none"

# Documented option spelling -> field name
_OPTION_ALIASES = {
    "trueColor": "true_color",
    "HTMLPrefix": "html_prefix",
    "appleTouchBackgroundColor": "apple_touch_background_color",
    "appleTouchPadding": "apple_touch_padding",
    "windowsTile": "windows_tile",
    "tileBlackWhite": "tile_black_white",
    "tileColor": "tile_color",
    "firefoxRound": "firefox_round",
    "firefoxManifest": "firefox_manifest",
    "reportMissingResolutions": "report_missing_resolutions",
}


def _load_yaml(path: Path) -> dict[str, Any]:
    if not path.exists():
        return {}
    with open(path, "r", encoding="utf-8") as f:
        return yaml.safe_load(f) or {}


def _deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    result = dict(base)
    for k, v in override.items():
        if k in result and isinstance(result[k], dict) and isinstance(v, dict):
            result[k] = _deep_merge(result[k], v)
        else:
            result[k] = v
    return result


def normalize_options(raw: Mapping[str, Any] | None) -> dict[str, Any]:
    """Map camelCase option names onto field names. Unknown keys pass through and are ignored later."""
    return {_OPTION_ALIASES.get(k, k): v for k, v in (raw or {}).items()}


class FaviconOptions(BaseSettings):
    """Resolved generation options. Frozen: per-source colors go to PassContext, not here."""

    model_config = SettingsConfigDict(env_prefix="FAVICONS_", extra="ignore", frozen=True)

    debug: bool = False
    true_color: bool = False
    precomposed: bool = True
    html_prefix: str = ""
    apple_touch_background_color: str = AUTO
    apple_touch_padding: Optional[int] = Field(default=15, ge=0, le=99)
    windows_tile: bool = True
    coast: bool = False
    sharp: int = Field(default=0, ge=0)
    tile_black_white: bool = True
    tile_color: str = AUTO
    firefox: bool = False
    apple: bool = True
    regular: bool = True
    firefox_round: bool = False
    firefox_manifest: str = ""
    report_missing_resolutions: bool = True
    html: str = ""

    @classmethod
    def from_mapping(cls, raw: Mapping[str, Any] | None = None) -> "FaviconOptions":
        return cls(**normalize_options(raw))

    @property
    def html_enabled(self) -> bool:
        return bool(self.html)

    @property
    def manifest_enabled(self) -> bool:
        return bool(self.firefox_manifest)


class FileGroup(BaseModel):
    """One {src, dest} mapping: glob patterns in, destination directory out."""

    src: list[str] = Field(default_factory=list)
    dest: str

    @field_validator("src", mode="before")
    @classmethod
    def _single_pattern(cls, v: Any) -> Any:
        if isinstance(v, str):
            return [v]
        return v


class TaskConfig(BaseSettings):
    """Task config: YAML file groups and options, FAVICONS_* env for the rest."""

    model_config = SettingsConfigDict(env_prefix="FAVICONS_", extra="ignore")

    options: FaviconOptions = Field(default_factory=FaviconOptions)
    files: list[FileGroup] = Field(default_factory=list)
    executable: str = "convert"
    log_level: str = "INFO"
    log_json: bool = False

    @classmethod
    def load(cls, config_path: str | Path | None = None) -> "TaskConfig":
        yaml_data = _load_yaml(_DEFAULT_CONFIG_PATH)
        if config_path:
            yaml_data = _deep_merge(yaml_data, _load_yaml(Path(config_path)))
        options = normalize_options(yaml_data.pop("options", None))
        debug = os.getenv("FAVICONS_DEBUG", "").lower() in ("1", "true", "yes")
        if debug:
            options["debug"] = True
        html = os.getenv("FAVICONS_HTML")
        if html:
            options["html"] = html
        # Constructed directly so FAVICONS_* env fills options the file leaves out
        yaml_data["options"] = FaviconOptions(**options)
        return cls(**yaml_data)


def get_config(config_path: str | Path | None = None) -> TaskConfig:
    return TaskConfig.load(config_path)
