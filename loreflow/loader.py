"""
LoreFlow Loader module.

Reads world and seed files from disk. All file I/O happens here, once, before
the fact graph is built; the engine itself never touches the filesystem.

World file::

    {"entities": {"<entity_id>": {...}}, "facts": [{...}, ...]}

Seed file::

    {"scopes": {"<name>": {...}}, "npc_seeds": {"<agent_id>": {...}}}
"""

import json
import logging
import os
from typing import Dict, Any, List, Tuple

from .exceptions import ConfigError
from .graph_store import FactGraphStore
from .seeder import SeedConfig

logger = logging.getLogger('loreflow')


def read_json(path: str) -> Any:
    """
    Read a JSON document.

    Raises:
        ConfigError: If the file is missing or not valid JSON
    """
    if not os.path.exists(path):
        raise ConfigError(f"File not found: {path}")
    try:
        with open(path, "r", encoding="utf-8") as f:
            return json.load(f)
    except json.JSONDecodeError as e:
        raise ConfigError(f"Invalid JSON in {path}: {e}")
    except OSError as e:
        raise ConfigError(f"Cannot read {path}: {e}")


def load_world_tables(path: str) -> Tuple[Dict[str, Dict[str, Any]], List[Dict[str, Any]]]:
    """
    Load the entity and fact tables from a world file.

    Facts are sorted by ``fact_id``; duplicate ids are still rejected when
    the graph is built.

    Args:
        path: Path to the world JSON file

    Returns:
        ``(entity_table, fact_table)``
    """
    data = read_json(path)
    if not isinstance(data, dict) or "entities" not in data or "facts" not in data:
        raise ConfigError(f"World file {path} must contain 'entities' and 'facts'")
    facts = data["facts"]
    if not isinstance(facts, list):
        raise ConfigError(f"World file {path}: 'facts' must be a list")
    try:
        facts = sorted(facts, key=lambda row: row["fact_id"])
    except (KeyError, TypeError):
        raise ConfigError(f"World file {path}: every fact needs an integer 'fact_id'")

    logger.info(f"Read world file {path}")
    return data["entities"], facts


def load_world(path: str) -> FactGraphStore:
    """Load and validate a world file into a fact graph."""
    entity_table, fact_table = load_world_tables(path)
    return FactGraphStore(entity_table, fact_table)


def load_seed_config(path: str) -> SeedConfig:
    """Load and validate a seed file."""
    config = SeedConfig.from_dict(read_json(path))
    logger.info(f"Read seed file {path}: {len(config.scopes)} scopes, {len(config.npc_seeds)} agents")
    return config
