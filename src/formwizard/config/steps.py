"""
Step Registry Loader

Builds a FieldSchemaRegistry from ``registry/steps.yaml``. Rule entries are
a tagged union on ``kind`` (required, pattern, email, not_expired).
Positions are implied by list order.
"""

import logging
from functools import lru_cache
from pathlib import Path
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from formwizard.contracts.wizard_steps import (
    FieldDefinition,
    FieldSchemaRegistry,
    StepDefinition,
    create_checkout_registry,
)

from . import ConfigError, get_registry_path, load_yaml

logger = logging.getLogger(__name__)


class StepConfig(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    title: str = Field(..., description="Step title")
    fields: List[FieldDefinition] = Field(..., description="Fields governed by the step")


class StepRegistryConfig(BaseModel):
    """Step registry configuration file."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    version: str = Field(..., description="Registry schema version")
    steps: List[StepConfig] = Field(..., description="Steps in display order")

    def to_registry(self) -> FieldSchemaRegistry:
        return FieldSchemaRegistry(
            steps=tuple(
                StepDefinition(position=index, title=step.title, fields=tuple(step.fields))
                for index, step in enumerate(self.steps, start=1)
            )
        )


@lru_cache(maxsize=4)
def load_step_registry(path: Optional[Path] = None) -> FieldSchemaRegistry:
    """
    Load the step registry from YAML.

    Args:
        path: Optional registry file. Defaults to <config root>/registry/steps.yaml;
              when that default file does not exist, the built-in checkout
              registry is used.

    Raises:
        ConfigError: If an explicit file is missing, or loading/validation fails
    """
    if path is None:
        path = get_registry_path()
        if not path.exists():
            logger.debug(f"No step registry at {path}, using built-in checkout steps")
            return create_checkout_registry()

    data = load_yaml(path)
    try:
        registry = StepRegistryConfig(**data).to_registry()
    except ValidationError as e:
        raise ConfigError(f"Failed to validate step registry at {path}: {e}")

    logger.info(f"Loaded {registry.step_count} wizard steps from {path}")
    return registry
