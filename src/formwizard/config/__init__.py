"""
Form Wizard Configuration - YAML loaders for settings and step registries.

Taxonomy:
- wizard.yaml: behaviour switches (live validation, masking, clearing)
- registry/steps.yaml: ordered steps, their fields and field rules

All human-edited configs are YAML with strict pydantic validation. A
malformed file is fatal at startup.
"""

import os
from pathlib import Path

import yaml

CONFIG_ROOT_ENV = "FORMWIZARD_CONFIG_ROOT"


class ConfigError(Exception):
    """Base exception for configuration errors."""
    pass


class ConfigValidationError(ConfigError):
    """Raised when configuration validation fails."""
    pass


class ConfigNotFoundError(ConfigError):
    """Raised when configuration file is not found."""
    pass


def load_yaml(path: Path) -> dict:
    """
    Load YAML file with proper error handling.

    Args:
        path: Path to YAML file

    Returns:
        Parsed YAML data as dict

    Raises:
        ConfigNotFoundError: If file doesn't exist
        ConfigValidationError: If YAML is malformed or not a mapping
    """
    if not path.exists():
        raise ConfigNotFoundError(f"Config file not found: {path}")

    try:
        data = yaml.safe_load(path.read_bytes())
    except yaml.YAMLError as e:
        raise ConfigValidationError(f"Invalid YAML in {path}: {e}")

    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ConfigValidationError(f"Expected a mapping at the top of {path}")
    return data


def get_config_root() -> Path:
    """Root directory for configuration files (``configs/`` unless overridden)."""
    return Path(os.getenv(CONFIG_ROOT_ENV, "configs"))


def get_settings_path() -> Path:
    return get_config_root() / "wizard.yaml"


def get_registry_path(filename: str = "steps.yaml") -> Path:
    return get_config_root() / "registry" / filename


def clear_config_caches() -> None:
    """Clear loader caches to force fresh loads."""
    from .settings import load_settings
    from .steps import load_step_registry

    load_settings.cache_clear()
    load_step_registry.cache_clear()


def __getattr__(name):
    if name in ("WizardSettings", "load_settings"):
        from . import settings
        return getattr(settings, name)
    if name in ("StepRegistryConfig", "load_step_registry"):
        from . import steps
        return getattr(steps, name)
    raise AttributeError(f"module 'formwizard.config' has no attribute '{name}'")


__all__ = [
    "ConfigError",
    "ConfigValidationError",
    "ConfigNotFoundError",
    "load_yaml",
    "get_config_root",
    "get_settings_path",
    "get_registry_path",
    "clear_config_caches",
    "WizardSettings",
    "load_settings",
    "StepRegistryConfig",
    "load_step_registry",
]
