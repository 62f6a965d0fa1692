"""Layered YAML configuration for the generator.

Layers, lowest precedence first: built-in defaults, the user file
(``~/.aiproj/config.yml``), the project file (``<cwd>/.aiproj/config.yml``)
and finally CLI overrides. Mappings merge key by key, so a project file can
change one provider setting without restating the whole block.
"""

import logging
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from aiproj.application.config_models import GeneratorConfig
from aiproj.domain.constants import CONFIG_DIRNAME, CONFIG_FILENAME

logger = logging.getLogger(__name__)


class ConfigLoadError(Exception):
    """A config file could not be read or parsed, or the merged config is invalid."""

    def __init__(self, message: str, *, path: Path | None = None, cause: Exception | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.path = path
        self.cause = cause

    def __str__(self) -> str:
        return self.message if self.path is None else f"{self.message}: {self.path}"


def config_layers(project_root: Path, user_home: Path) -> list[Path]:
    """Config file locations, lowest precedence first."""
    return [
        user_home / CONFIG_DIRNAME / CONFIG_FILENAME,
        project_root / CONFIG_DIRNAME / CONFIG_FILENAME,
    ]


def _deep_merge(base: dict[str, Any], overlay: dict[str, Any]) -> dict[str, Any]:
    """Return ``base`` updated with ``overlay``, recursing into nested mappings.

    Neither argument is modified.
    """
    merged = dict(base)
    for key, value in overlay.items():
        current = merged.get(key)
        if isinstance(current, dict) and isinstance(value, dict):
            value = _deep_merge(current, value)
        merged[key] = value
    return merged


def _load_yaml_mapping(path: Path) -> dict[str, Any]:
    """Read one config layer; a missing or empty file contributes nothing."""
    try:
        text = path.read_text(encoding="utf-8")
    except FileNotFoundError:
        return {}
    except OSError as e:
        raise ConfigLoadError("Failed to read config file", path=path, cause=e) from e

    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as e:
        raise ConfigLoadError("Malformed YAML", path=path, cause=e) from e

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigLoadError("YAML root must be a mapping", path=path)

    logger.debug(f"Loaded config layer {path}")
    return data


def load_config(*, project_root: Path | None = None, user_home: Path | None = None) -> dict[str, Any]:
    """Merge defaults with the user and project files into a plain dict."""
    layers = config_layers(project_root or Path.cwd(), user_home or Path.home())

    cfg: dict[str, Any] = GeneratorConfig().model_dump(mode="python")
    for path in layers:
        cfg = _deep_merge(cfg, _load_yaml_mapping(path))
    return cfg


def load_generator_config(
    *,
    project_root: Path | None = None,
    user_home: Path | None = None,
    overrides: dict[str, Any] | None = None,
) -> GeneratorConfig:
    """
    Load every layer, apply ``overrides`` and validate into a GeneratorConfig.

    Overrides with a None value are ignored, so unset CLI flags never mask a
    configured value. Relative directories are anchored at ``project_root``.

    Raises:
        ConfigLoadError: If a file is malformed or the merged config is invalid
    """
    project_root = project_root or Path.cwd()
    cfg = load_config(project_root=project_root, user_home=user_home)
    cfg = _deep_merge(cfg, {k: v for k, v in (overrides or {}).items() if v is not None})

    try:
        config = GeneratorConfig.model_validate(cfg)
    except ValidationError as e:
        raise ConfigLoadError(f"Invalid configuration: {e}", cause=e) from e

    return config.resolve_paths(project_root)
