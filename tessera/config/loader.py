# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Config loader — reads YAML from disk and produces validated, frozen configs.

The pipeline is linear: read the file, parse YAML into a plain dict, hand
the dict to pydantic, return the frozen model. Any failure stops right
there with a ConfigError; there are no fallback defaults for a broken file.
"""

from pathlib import Path
from typing import Any, Type, TypeVar

import yaml
from pydantic import BaseModel, ValidationError

from tessera.config.exceptions import ConfigLoadError, ConfigValidationError
from tessera.config.schema import EncoderConfig, TesseraConfig

_ModelT = TypeVar("_ModelT", bound=BaseModel)


def _read_yaml_file(config_path: Path) -> dict[str, Any]:
    """
    Read a YAML file and return the parsed dict.

    Raises:
        ConfigLoadError: If the file doesn't exist, isn't readable, or isn't a YAML mapping.
    """
    if not config_path.exists():
        raise ConfigLoadError(f"Config file not found: {config_path}")

    if not config_path.is_file():
        raise ConfigLoadError(f"Config path is not a file: {config_path}")

    try:
        raw_text = config_path.read_text(encoding="utf-8")
    except OSError as err:
        raise ConfigLoadError(f"Cannot read config file {config_path}: {err}") from err

    try:
        parsed = yaml.safe_load(raw_text)
    except yaml.YAMLError as err:
        raise ConfigLoadError(f"Invalid YAML in {config_path}: {err}") from err

    if not isinstance(parsed, dict):
        raise ConfigLoadError(
            f"Config file must contain a YAML mapping (dict), got {type(parsed).__name__}"
        )

    return parsed


def _validate(model: Type[_ModelT], raw_data: dict[str, Any], source: Path) -> _ModelT:
    try:
        return model.model_validate(raw_data)
    except ValidationError as err:
        raise ConfigValidationError(f"Config validation failed for {source}:\n{err}") from err


def load_config(config_path: Path) -> TesseraConfig:
    """
    Load a full project config (`global:` plus optional `encoder:`).

    Raises:
        ConfigLoadError: File I/O or YAML parse failures.
        ConfigValidationError: Schema violations.
    """
    return _validate(TesseraConfig, _read_yaml_file(config_path), config_path)


def load_encoder_config(config_path: Path) -> EncoderConfig:
    """
    Load a bare encoder section, the format bundles snapshot to encoder.yaml.

    Raises:
        ConfigLoadError: File I/O or YAML parse failures.
        ConfigValidationError: Schema violations.
    """
    return _validate(EncoderConfig, _read_yaml_file(config_path), config_path)
