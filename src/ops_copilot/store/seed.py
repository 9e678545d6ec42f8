"""Load demo records into a store from a YAML seed file.

Example file::

    entities:
      - type: project
        title: Billing revamp
        category: saas
    metrics:
      - key: mrr
        value: 120000
        category: finance
"""

from pathlib import Path

import yaml
from pydantic import BaseModel, Field, ValidationError

from ops_copilot.store.base import EntityStore
from ops_copilot.store.types import Entity, Metric
from ops_copilot.telemetry import SEED_DATA_LOADED, get_logger

log = get_logger(__name__)


class SeedDataError(Exception):
    """Raised when a seed file cannot be read, parsed, or validated."""

    pass


class SeedData(BaseModel):
    """Validated content of a seed file."""

    entities: list[Entity] = Field(default_factory=list)
    metrics: list[Metric] = Field(default_factory=list)


def load_seed_file(path: Path) -> SeedData:
    """Read and validate a YAML seed file.

    Args:
        path: Path to the YAML file.

    Returns:
        Validated SeedData.

    Raises:
        SeedDataError: If the file is missing, is not valid YAML, or does not
            match the SeedData schema.
    """
    if not path.is_file():
        raise SeedDataError(f"Seed file not found: {path}")

    try:
        content = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as e:
        raise SeedDataError(f"Invalid YAML in seed file {path.name}: {e}") from None

    try:
        return SeedData.model_validate(content)
    except ValidationError as e:
        problems = "\n".join(
            f"{' -> '.join(str(loc) for loc in err['loc'])}: {err['msg']}" for err in e.errors()
        )
        raise SeedDataError(f"Seed file validation failed:\n{problems}") from None


async def seed_store(store: EntityStore, seed: SeedData) -> None:
    """Write every seeded entity and metric through the store interface."""
    for entity in seed.entities:
        await store.create(entity)
    for metric in seed.metrics:
        await store.record_metric(metric)
    log.info(SEED_DATA_LOADED, entities=len(seed.entities), metrics=len(seed.metrics))
