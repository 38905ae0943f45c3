"""
config.py

Typed configuration loading and validation for the autoplay command line.

Design goals
- Load at most one UTF-8 JSON config file
- Validate with pydantic (defaults included)
- Support environment variable overrides
- No other I/O beyond reading the config file (no directory creation)

The replay timing constants (RELEASE_DELAY, KEY_UP_DELAY) are fixed in
replay_generator.py and are not part of this config.

Config file location
- If AUTOPLAY_CONFIG_PATH is set, that file is used.
- Otherwise these paths are searched in order and the first one that exists is used:
  1) ./autoplay_config.json (current working directory)
  2) <user config dir>/ManiaAutoplay/ManiaAutoplay/autoplay_config.json
  3) <user config dir>/ManiaAutoplay/ManiaAutoplay/config.json
- If none exists, the defaults below are used.

Example config file (autoplay_config.json)
{
  "output": {
    "format": "json",
    "indent": 2
  },
  "charts": {
    "special_style_default": false,
    "dual_stages": false
  }
}
"""

from __future__ import annotations

import json
import os
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

from platformdirs import user_config_dir
from pydantic import BaseModel, Field, ValidationError, field_validator


class OutputConfig(BaseModel):
    format: str = Field(default="json", description="json or text")
    indent: int = Field(default=2, ge=0, le=8, description="JSON indent width. 0 prints compact JSON.")

    @field_validator("format")
    @classmethod
    def validate_format(cls, value: str) -> str:
        normalized = (value or "").strip().lower()
        allowed = {"json", "text"}
        if normalized not in allowed:
            raise ValueError("format must be one of: json, text")
        return normalized


class ChartsConfig(BaseModel):
    special_style_default: bool = Field(
        default=False,
        description="SpecialStyle used for .osu files whose [General] section does not set it.",
    )
    dual_stages: bool = Field(default=False, description="Split loaded single-stage charts into two equal stages when they divide evenly.")


class AutoplayConfig(BaseModel):
    output: OutputConfig = Field(default_factory=OutputConfig)
    charts: ChartsConfig = Field(default_factory=ChartsConfig)


def _default_config_candidates() -> List[Path]:
    config_directory = Path(user_config_dir("ManiaAutoplay", "ManiaAutoplay"))
    return [
        Path.cwd() / "autoplay_config.json",
        config_directory / "autoplay_config.json",
        config_directory / "config.json",
    ]


def _resolve_config_path() -> Optional[Path]:
    explicit_path_text = os.environ.get("AUTOPLAY_CONFIG_PATH", "").strip()
    if explicit_path_text:
        return Path(explicit_path_text)

    for candidate_path in _default_config_candidates():
        if candidate_path.exists():
            return candidate_path

    return None


def _read_json_file_utf8(config_path: Path) -> Dict[str, Any]:
    try:
        raw_text = config_path.read_text(encoding="utf-8")
    except OSError as exception:
        raise OSError(f"Failed to read config file: {config_path}. Error: {exception}") from exception

    try:
        parsed = json.loads(raw_text)
    except json.JSONDecodeError as exception:
        raise ValueError(f"Config file is not valid JSON: {config_path}. Error: {exception}") from exception

    if not isinstance(parsed, dict):
        raise ValueError(f"Config file root must be a JSON object: {config_path}")

    return parsed


def _apply_environment_overrides(config_dict: Dict[str, Any]) -> Dict[str, Any]:
    """
    Environment overrides are optional. The config file is the primary source of truth.

    Override variables:
    - AUTOPLAY_OUTPUT_FORMAT
    - AUTOPLAY_OUTPUT_INDENT
    - AUTOPLAY_SPECIAL_STYLE
    - AUTOPLAY_DUAL_STAGES
    """
    def ensure_nested(config_root: Dict[str, Any], section_name: str) -> Dict[str, Any]:
        section = config_root.get(section_name)
        if isinstance(section, dict):
            section = dict(section)
        else:
            section = {}
        config_root[section_name] = section
        return section

    updated_config = dict(config_dict)

    output_section = ensure_nested(updated_config, "output")
    charts_section = ensure_nested(updated_config, "charts")

    def override_string(env_name: str, target_dict: Dict[str, Any], key_name: str) -> None:
        value_text = os.environ.get(env_name, "")
        if value_text.strip():
            target_dict[key_name] = value_text.strip()

    def override_int(env_name: str, target_dict: Dict[str, Any], key_name: str) -> None:
        value_text = os.environ.get(env_name, "").strip()
        if not value_text:
            return
        try:
            target_dict[key_name] = int(value_text)
        except ValueError:
            return

    def override_bool(env_name: str, target_dict: Dict[str, Any], key_name: str) -> None:
        value_text = os.environ.get(env_name, "").strip().lower()
        if not value_text:
            return
        truthy = {"1", "true", "yes", "on"}
        falsy = {"0", "false", "no", "off"}
        if value_text in truthy:
            target_dict[key_name] = True
        elif value_text in falsy:
            target_dict[key_name] = False

    override_string("AUTOPLAY_OUTPUT_FORMAT", output_section, "format")
    override_int("AUTOPLAY_OUTPUT_INDENT", output_section, "indent")
    override_bool("AUTOPLAY_SPECIAL_STYLE", charts_section, "special_style_default")
    override_bool("AUTOPLAY_DUAL_STAGES", charts_section, "dual_stages")

    return updated_config


def load_config(config_path: Optional[Path] = None) -> Tuple[AutoplayConfig, Optional[Path]]:
    resolved_path = config_path if config_path is not None else _resolve_config_path()
    json_dict: Dict[str, Any] = {}
    if resolved_path is not None:
        json_dict = _read_json_file_utf8(resolved_path)
    json_dict = _apply_environment_overrides(json_dict)

    try:
        config = AutoplayConfig.model_validate(json_dict)
    except ValidationError as exception:
        source_text = str(resolved_path) if resolved_path is not None else "defaults"
        raise ValueError(f"Config validation failed for {source_text}:\n{exception}") from exception

    return config, resolved_path


@lru_cache(maxsize=1)
def get_config() -> Tuple[AutoplayConfig, Optional[Path]]:
    return load_config()


def main() -> int:
    try:
        config, resolved_path = load_config()
    except Exception as exception:
        error_payload = {"ok": False, "error": str(exception)}
        print(json.dumps(error_payload, ensure_ascii=False, indent=2))
        return 2

    output_payload = {
        "ok": True,
        "config_path": str(resolved_path) if resolved_path is not None else None,
        "config": config.model_dump(),
    }
    print(json.dumps(output_payload, ensure_ascii=False, indent=2))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
