"""
LoreFlow: per-agent belief modelling over a shared canonical fact graph.

This package gives every non-player character its own partial, possibly
distorted view of a world's facts, resolves free-text references to world
entities, and answers "what does this agent believe about X" from that view
alone.
"""

from loreflow.manager import LoreFlowManager, NpcAgent
from loreflow.config import LoreFlowConfig, ConfigBuilder
from loreflow.graph_store import FactGraphStore
from loreflow.belief_store import BeliefStore
from loreflow.seeder import KnowledgeSeeder, SeedConfig
from loreflow.models import QueryContext, QueryResult
from loreflow.exceptions import LoreFlowError, ConfigError
from loreflow.version import __version__

__all__ = [
    "LoreFlowManager",
    "NpcAgent",
    "LoreFlowConfig",
    "ConfigBuilder",
    "FactGraphStore",
    "BeliefStore",
    "KnowledgeSeeder",
    "SeedConfig",
    "QueryContext",
    "QueryResult",
    "LoreFlowError",
    "ConfigError",
    "__version__",
]
