"""
LoreFlow Manager module.

The manager is the single read-only world handle for a process: it is built
once from the fact graph and seed configuration and injected wherever agents
are created or queried. Agents own their beliefs; the manager owns nothing
mutable.
"""

import logging
import time
from dataclasses import dataclass, field
from typing import Dict, Any, Optional, Callable

from .adapter import KnowledgeAdapter
from .belief_store import BeliefStore
from .config import LoreFlowConfig
from .entity_index import EntityIndex
from .graph_store import FactGraphStore
from .learning import observe_environment, share_belief, tell_fact, witness_fact
from .loader import load_seed_config, load_world
from .models import QueryContext, QueryResult
from .resolver import EntityResolver
from .seeder import KnowledgeSeeder, SeedConfig

logger = logging.getLogger('loreflow')


def configure_logging(verbose: bool = False):
    """Configure logging for the loreflow package."""
    level = logging.DEBUG if verbose else logging.INFO

    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    )
    logging.getLogger('loreflow').setLevel(level)


@dataclass
class NpcAgent:
    """An agent's identity, private beliefs and conversation context."""
    agent_id: str
    beliefs: BeliefStore
    context: QueryContext = field(default_factory=QueryContext)

    @property
    def identity_entity(self) -> Optional[str]:
        return self.beliefs.identity_entity


class LoreFlowManager:
    """
    Entry point tying the LoreFlow components together.

    Builds the entity index, resolver, adapter and seeder over one fact graph
    and routes agent creation, queries and learning events through them.
    """

    def __init__(self, graph_store: FactGraphStore, seed_config: Optional[SeedConfig] = None,
                 config: Optional[LoreFlowConfig] = None, clock: Optional[Callable[[], float]] = None):
        """
        Initialize the manager.

        Args:
            graph_store: Loaded fact graph
            seed_config: Seed configuration used for new agents
            config: LoreFlow configuration, defaults if None
            clock: Timestamp source for belief bookkeeping
        """
        self.config = config if config is not None else LoreFlowConfig()
        if self.config.verbose_logging:
            configure_logging(verbose=True)

        self.graph_store = graph_store
        self.entity_index = EntityIndex(graph_store)
        self.resolver = EntityResolver(graph_store, self.entity_index, self.config.resolver)
        self.adapter = KnowledgeAdapter(graph_store, self.entity_index, self.resolver, self.config.matching)
        self.seeder = KnowledgeSeeder(
            graph_store,
            self.entity_index,
            seed_config=seed_config,
            config=self.config.seeder,
            learning=self.config.learning,
            clock=clock or time.time,
        )

        logger.info("LoreFlow manager initialized")

    @classmethod
    def from_files(cls, world_path: str, seed_path: Optional[str] = None,
                   config: Optional[LoreFlowConfig] = None) -> 'LoreFlowManager':
        """Load a world file and optional seed file and build a manager."""
        graph_store = load_world(world_path)
        seed_config = load_seed_config(seed_path) if seed_path else None
        return cls(graph_store, seed_config, config)

    def create_agent(self, agent_id: str, allow_empty: Optional[bool] = None) -> NpcAgent:
        """
        Create an agent with freshly seeded beliefs.

        Every call seeds a new store, so two agents never share belief state.

        Args:
            agent_id: Agent to create
            allow_empty: Override ``config.allow_empty_beliefs``

        Raises:
            ConfigError: If the agent has no seed entry and empty stores are
                not allowed
        """
        if allow_empty is None:
            allow_empty = self.config.allow_empty_beliefs
        beliefs = self.seeder.seed(agent_id, allow_empty=allow_empty)
        context = QueryContext(recent_limit=self.config.resolver.recent_subjects_limit)
        return NpcAgent(agent_id=agent_id, beliefs=beliefs, context=context)

    def query(self, agent: NpcAgent, text: str, context: Optional[QueryContext] = None) -> QueryResult:
        """
        Ask an agent about a subject.

        A confident answer pushes its entity onto the recent-subject history;
        an ambiguous one records the candidates as pending disambiguation.
        """
        context = context if context is not None else agent.context
        result = self.adapter.query_belief(text, agent.beliefs, context)
        self._track(result, context)
        return result

    def resolve_disambiguation(self, agent: NpcAgent, text: str,
                               context: Optional[QueryContext] = None) -> QueryResult:
        """Answer a follow-up to an ambiguous query."""
        context = context if context is not None else agent.context
        result = self.adapter.resolve_disambiguation(text, agent.beliefs, context)
        self._track(result, context)
        return result

    @staticmethod
    def _track(result: QueryResult, context: QueryContext):
        if result.requires_disambiguation:
            context.pending_disambiguation = result.option_ids()
            return
        context.pending_disambiguation = set()
        if result.entity_id is not None:
            context.remember_subject(result.entity_id)

    def tell(self, listener: NpcAgent, speaker: NpcAgent, fact_id: int) -> bool:
        """
        Have one agent pass a belief on to another.

        The listener rates the speaker by the speaker's identity entity when
        it has one.

        Returns:
            True if the listener newly learned the fact
        """
        if not self.graph_store.has_fact(fact_id):
            logger.warning(f"Cannot tell unknown fact {fact_id}")
            return False
        learning = self.config.learning
        return share_belief(
            speaker.beliefs,
            listener.beliefs,
            fact_id,
            speaker_id=speaker.identity_entity or speaker.agent_id,
            threshold=learning.learn_threshold,
            base=learning.hearsay_decay,
        )

    def tell_fact(self, listener: NpcAgent, fact_id: int, speaker_id: str,
                  speaker_confidence: float, generation: int) -> bool:
        """Let an agent hear a fact from a speaker outside the agent population."""
        if not self.graph_store.has_fact(fact_id):
            logger.warning(f"Cannot tell unknown fact {fact_id}")
            return False
        learning = self.config.learning
        return tell_fact(listener.beliefs, fact_id, speaker_id, speaker_confidence, generation,
                         threshold=learning.learn_threshold, base=learning.hearsay_decay)

    def witness(self, agent: NpcAgent, fact_id: int, event_id: Optional[str] = None) -> bool:
        """Record that an agent saw a fact happen."""
        if not self.graph_store.has_fact(fact_id):
            logger.warning(f"Cannot witness unknown fact {fact_id}")
            return False
        return witness_fact(agent.beliefs, fact_id, event_id, strength=self.config.learning.witness_strength)

    def observe(self, agent: NpcAgent, fact_id: int, source_id: str, clarity: float) -> bool:
        """Record that an agent read or overheard a fact in its surroundings."""
        if not self.graph_store.has_fact(fact_id):
            logger.warning(f"Cannot observe unknown fact {fact_id}")
            return False
        return observe_environment(agent.beliefs, fact_id, source_id, clarity,
                                   threshold=self.config.learning.learn_threshold)

    def decay(self, agent: NpcAgent, elapsed: float) -> int:
        """Fade an agent's beliefs by ``elapsed`` time units; returns the number forgotten."""
        learning = self.config.learning
        return agent.beliefs.apply_decay(elapsed, learning.decay_rate, learning.forget_below)

    def get_stats(self, agent: Optional[NpcAgent] = None) -> Dict[str, Any]:
        """
        Get statistics about the world and, optionally, one agent.

        Returns:
            Dictionary with ``world`` and, if an agent was given, ``agent``
        """
        stats: Dict[str, Any] = {"world": self.graph_store.get_stats()}
        if agent is not None:
            beliefs = agent.beliefs
            stats["agent"] = {
                "agent_id": agent.agent_id,
                "identity_entity": agent.identity_entity,
                "belief_count": len(beliefs),
                "misinformation_count": len(beliefs.misinformation_map()),
                "recent_subjects": list(agent.context.recent_subjects),
            }
        return stats
