"""Configuration management for bgforge_mls."""

from __future__ import annotations

import json
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from .exceptions import ConfigurationError

CONFIG_FILENAME = ".bgforge.yml"


@dataclass
class FalloutSettings:
    """Fallout SSL compiler and header settings."""

    compile_path: str = "compile"
    compile_options: str = "-q -p -l -O2 -XXXXX"
    output_directory: str = ""
    headers_directory: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {
            "compile_path": self.compile_path,
            "compile_options": self.compile_options,
            "output_directory": self.output_directory,
            "headers_directory": self.headers_directory,
        }


@dataclass
class WeiduSettings:
    """WeiDU executable settings."""

    path: str = "weidu"
    game_path: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {"path": self.path, "game_path": self.game_path}


@dataclass
class MlsConfig:
    """Main configuration for the language service.

    This configuration can be loaded from:
    - .bgforge.yml in the workspace root
    - The BGFORGE_MLS_CONFIG environment variable
    - Programmatic configuration
    """

    fallout: FalloutSettings = field(default_factory=FalloutSettings)
    weidu: WeiduSettings = field(default_factory=WeiduSettings)

    # Compile when a document is saved / changed
    validate_on_save: bool = True
    validate_on_change: bool = False

    def to_dict(self) -> dict[str, Any]:
        """Convert configuration to dictionary."""
        return {
            "fallout": self.fallout.to_dict(),
            "weidu": self.weidu.to_dict(),
            "validate_on_save": self.validate_on_save,
            "validate_on_change": self.validate_on_change,
        }

    def save(self, path: Path | str) -> None:
        """Save configuration to YAML file."""
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)

        with open(path, "w", encoding="utf-8") as f:
            yaml.dump(self.to_dict(), f, default_flow_style=False)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> MlsConfig:
        """Create configuration from dictionary."""
        if not isinstance(data, dict):
            raise ConfigurationError(
                "Configuration must be a mapping",
                {"type": type(data).__name__},
            )

        fallout_data = _section(data, "fallout")
        weidu_data = _section(data, "weidu")
        defaults = FalloutSettings()

        return cls(
            fallout=FalloutSettings(
                compile_path=fallout_data.get("compile_path", defaults.compile_path),
                compile_options=fallout_data.get("compile_options", defaults.compile_options),
                output_directory=fallout_data.get("output_directory", ""),
                headers_directory=fallout_data.get("headers_directory", ""),
            ),
            weidu=WeiduSettings(
                path=weidu_data.get("path", "weidu"),
                game_path=weidu_data.get("game_path", ""),
            ),
            validate_on_save=_flag(data, "validate_on_save", True),
            validate_on_change=_flag(data, "validate_on_change", False),
        )


def _section(data: dict[str, Any], name: str) -> dict[str, Any]:
    value = data.get(name)
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise ConfigurationError(
            "Configuration section must be a mapping",
            {"section": name, "type": type(value).__name__},
        )
    return value


def _flag(data: dict[str, Any], key: str, default: bool) -> bool:
    # Quoted YAML strings like "false" are rejected rather than coerced
    value = data.get(key)
    if value is None:
        return default
    if not isinstance(value, bool):
        raise ConfigurationError(
            "Configuration flag must be true or false",
            {"key": key, "value": repr(value)},
        )
    return value


def load_config(
    config_path: Path | str | None = None,
    search_paths: list[Path | str] | None = None,
) -> MlsConfig:
    """Load bgforge_mls configuration.

    Search order:
    1. Explicit config_path if provided
    2. BGFORGE_MLS_CONFIG environment variable
    3. search_paths if provided
    4. Default locations: ./.bgforge.yml, ./.bgforge.yaml, ~/.bgforge/mls.yaml

    Args:
        config_path: Explicit path to configuration file
        search_paths: Additional paths to search for configuration

    Returns:
        MlsConfig instance

    Raises:
        ConfigurationError: If configuration file has errors
    """
    paths_to_check: list[Path] = []

    if config_path:
        paths_to_check.append(Path(config_path))

    if env_config := os.environ.get("BGFORGE_MLS_CONFIG"):
        paths_to_check.append(Path(env_config))

    if search_paths:
        paths_to_check.extend(Path(p) for p in search_paths)

    paths_to_check.extend([
        Path.cwd() / CONFIG_FILENAME,
        Path.cwd() / ".bgforge.yaml",
        Path.home() / ".bgforge" / "mls.yaml",
    ])

    for path in paths_to_check:
        if path.is_file():
            try:
                with open(path, "r", encoding="utf-8") as f:
                    if path.suffix in (".yaml", ".yml"):
                        data = yaml.safe_load(f)
                    else:
                        data = json.load(f)
            except (yaml.YAMLError, json.JSONDecodeError) as e:
                raise ConfigurationError(
                    f"Failed to parse configuration file: {path}",
                    {"path": str(path), "error": str(e)},
                ) from e
            return MlsConfig.from_dict(data or {})

    return MlsConfig()


def load_workspace_config(workspace_root: Path | str) -> MlsConfig:
    """Load configuration for a workspace, preferring its own .bgforge.yml."""
    return load_config(search_paths=[Path(workspace_root) / CONFIG_FILENAME])
