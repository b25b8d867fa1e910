"""YAML configuration loading."""

from pathlib import Path
from typing import Any

import pydantic_yaml

from .schema import AppConfig


def load_config(config_path: Path | str) -> AppConfig:
    """
    Parse and validate a generelate YAML config.

    Raises:
        FileNotFoundError: If the file is missing
        pydantic.ValidationError: If a value is missing or out of range
    """
    config_path = Path(config_path)
    if not config_path.is_file():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    return pydantic_yaml.parse_yaml_raw_as(AppConfig, config_path.read_text())


def _set_dotted(tree: dict[str, Any], dotted_key: str, value: Any) -> None:
    *sections, leaf = dotted_key.split(".")
    node = tree
    for section in sections:
        if not isinstance(node.get(section), dict):
            raise KeyError(f"Unknown config section in override {dotted_key!r}: {section!r}")
        node = node[section]
    node[leaf] = value


def load_config_with_overrides(
    config_path: Path | str,
    overrides: dict[str, Any],
) -> AppConfig:
    """
    Load a config and apply command-line overrides before validation.

    Keys are dotted paths into the config ("plots.palette", "output_dir").
    Overrides whose value is None are ignored so unset CLI options keep the
    file value. The merged result is validated as a whole.
    """
    merged = load_config(config_path).model_dump()
    for dotted_key, value in overrides.items():
        if value is not None:
            _set_dotted(merged, dotted_key, value)
    return AppConfig.model_validate(merged)
