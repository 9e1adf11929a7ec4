"""
Wizard Settings Loader

Behaviour switches for the wizard state machine and submission logging.
"""

from functools import lru_cache
from pathlib import Path
from typing import Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from . import ConfigError, get_settings_path, load_yaml


class WizardSettings(BaseModel):
    """Wizard behaviour configuration."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    version: str = Field(default="v1", description="Settings schema version")
    validate_on_change: bool = Field(
        default=False,
        description="Re-validate a field of the current step whenever it is updated",
    )
    masked_fields: Tuple[str, ...] = Field(
        default=("cardNumber", "cvv"),
        description="Fields never shown in clear in logs or review output",
    )
    mask_visible_chars: int = Field(default=4, ge=0, description="Trailing characters left visible")
    clear_values_on_submit: bool = Field(
        default=True,
        description="Drop collected values once the submission is accepted",
    )

    def mask(self, name: str, value: str) -> str:
        """Mask ``value`` if ``name`` is a masked field."""
        if name not in self.masked_fields:
            return value
        visible = self.mask_visible_chars
        if visible == 0 or len(value) <= visible:
            return "*" * len(value)
        return "*" * (len(value) - visible) + value[-visible:]


@lru_cache(maxsize=4)
def load_settings(path: Optional[Path] = None) -> WizardSettings:
    """
    Load wizard settings from YAML.

    Args:
        path: Optional settings file. Defaults to <config root>/wizard.yaml;
              when that default file does not exist, built-in defaults are used.

    Raises:
        ConfigError: If an explicit file is missing, or loading/validation fails
    """
    if path is None:
        path = get_settings_path()
        if not path.exists():
            return WizardSettings()

    data = load_yaml(path)
    try:
        return WizardSettings(**data)
    except ValidationError as e:
        raise ConfigError(f"Failed to validate wizard settings at {path}: {e}")
