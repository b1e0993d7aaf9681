"""
LoreFlow Knowledge Seeder module.

This module bootstraps an agent's beliefs once, at creation, from declarative
seed configuration. Seeding runs four passes in a fixed order:

1. Scopes: reusable templates (with single-parent ``extends``) that grant a
   flat strength to every fact passing their access/tag/trust filters, plus
   all facts touching their ``seed_entities``.
2. Graph seeds: breadth-first traversal from a start entity, strength
   decaying geometrically with depth.
3. Misinformation: explicit distorted versions of specific facts.
4. Exclusion: drop every belief carrying one of the agent's excluded tags.

Only the exclusion pass removes beliefs; every other pass keeps the stronger
of the existing and the new strength. Iteration follows ascending fact ids
and FIFO queue order so identical configuration always yields identical
belief maps.
"""

import logging
import time
from collections import deque
from dataclasses import dataclass, field
from typing import List, Dict, Any, Optional, Callable

from .config import SeederConfig, LearningConfig
from .belief_store import BeliefStore
from .entity_index import EntityIndex
from .exceptions import ConfigError, UnknownEntity, UnknownScope
from .graph_store import FactGraphStore, render_content
from .models import AccessTier, Fact, SourceKind

logger = logging.getLogger('loreflow.seeder')


def _strength(value: Any, where: str) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)) or not 0.0 <= value <= 1.0:
        raise ConfigError(f"{where} must be a number between 0 and 1, got {value!r}")
    return float(value)


def _names(value: Any, where: str) -> List[str]:
    if value is None:
        return []
    if isinstance(value, str) or not isinstance(value, (list, tuple)):
        raise ConfigError(f"{where} must be a list")
    return [str(item) for item in value]


def _tiers(value: Any, where: str) -> List[AccessTier]:
    try:
        return [AccessTier(item) for item in _names(value, where)]
    except ValueError as e:
        raise ConfigError(f"{where}: {e}")


def _optional_name(value: Any, where: str) -> Optional[str]:
    if value is None:
        return None
    if not isinstance(value, str):
        raise ConfigError(f"{where} must be a string, got {value!r}")
    return value


@dataclass
class ScopeTemplate:
    """A named, inheritable rule set granting facts at a flat strength."""
    name: str
    base_strength: float = 0.5
    extends: Optional[str] = None
    include_access: List[AccessTier] = field(default_factory=list)
    exclude_access: List[AccessTier] = field(default_factory=list)
    include_tags: List[str] = field(default_factory=list)
    seed_entities: List[str] = field(default_factory=list)
    requires_trust_override: float = 0.0

    @property
    def filters_facts(self) -> bool:
        return bool(self.include_access or self.include_tags)

    @classmethod
    def from_dict(cls, name: str, data: Dict[str, Any]) -> 'ScopeTemplate':
        if not isinstance(data, dict):
            raise ConfigError(f"Scope '{name}' must be a mapping")
        where = f"Scope '{name}'"
        return cls(
            name=name,
            base_strength=_strength(data.get("base_strength", 0.5), f"{where} base_strength"),
            extends=_optional_name(data.get("extends"), f"{where} extends"),
            include_access=_tiers(data.get("include_access"), f"{where} include_access"),
            exclude_access=_tiers(data.get("exclude_access"), f"{where} exclude_access"),
            include_tags=_names(data.get("include_tags"), f"{where} include_tags"),
            seed_entities=_names(data.get("seed_entities"), f"{where} seed_entities"),
            requires_trust_override=_strength(
                data.get("requires_trust_override", 0.0), f"{where} requires_trust_override"
            ),
        )


@dataclass
class GraphSeed:
    """Breadth-first seeding rule rooted at one entity."""
    start_entity: str
    max_depth: int = 1
    base_strength: float = 0.5
    include_predicates: List[str] = field(default_factory=list)
    traverse_predicates: List[str] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Dict[str, Any], where: str) -> 'GraphSeed':
        if not isinstance(data, dict):
            raise ConfigError(f"{where} must be a mapping")
        start = data.get("start_entity", data.get("entity"))
        if not isinstance(start, str) or not start:
            raise ConfigError(f"{where} has no start_entity")
        depth = data.get("max_depth", data.get("depth", 1))
        if isinstance(depth, bool) or not isinstance(depth, int) or depth < 0:
            raise ConfigError(f"{where} max_depth must be a non-negative integer, got {depth!r}")
        return cls(
            start_entity=start,
            max_depth=depth,
            base_strength=_strength(data.get("base_strength", 0.5), f"{where} base_strength"),
            include_predicates=_names(data.get("include_predicates"), f"{where} include_predicates"),
            traverse_predicates=_names(data.get("traverse_predicates"), f"{where} traverse_predicates"),
        )


@dataclass
class MisinformationEntry:
    """A distorted object for one fact."""
    fact_id: int
    replace_object_literal: str
    strength: float


@dataclass
class NpcSeed:
    """Seeding instructions for one agent."""
    agent_id: str
    identity_entity: Optional[str] = None
    scopes: List[str] = field(default_factory=list)
    graph_seeds: List[GraphSeed] = field(default_factory=list)
    misinformation: Dict[int, MisinformationEntry] = field(default_factory=dict)
    exclude_tags: List[str] = field(default_factory=list)

    @classmethod
    def from_dict(cls, agent_id: str, data: Dict[str, Any]) -> 'NpcSeed':
        if not isinstance(data, dict):
            raise ConfigError(f"Seed for agent '{agent_id}' must be a mapping")
        where = f"Seed for agent '{agent_id}'"

        graph_seeds = [
            GraphSeed.from_dict(row, f"{where} graph seed {i}")
            for i, row in enumerate(data.get("graph_seeds") or [])
        ]

        misinformation: Dict[int, MisinformationEntry] = {}
        raw_misinformation = data.get("misinformation") or {}
        if not isinstance(raw_misinformation, dict):
            raise ConfigError(f"{where} misinformation must be a mapping of fact id to entry")
        for key, entry in raw_misinformation.items():
            try:
                fact_id = int(key)
            except (TypeError, ValueError):
                raise ConfigError(f"{where} misinformation key {key!r} is not a fact id")
            if not isinstance(entry, dict) or "replace_object_literal" not in entry:
                raise ConfigError(f"{where} misinformation for fact {fact_id} needs replace_object_literal")
            misinformation[fact_id] = MisinformationEntry(
                fact_id=fact_id,
                replace_object_literal=str(entry["replace_object_literal"]),
                strength=_strength(entry.get("strength", 0.5), f"{where} misinformation {fact_id} strength"),
            )

        return cls(
            agent_id=agent_id,
            identity_entity=_optional_name(data.get("identity_entity"), f"{where} identity_entity"),
            scopes=_names(data.get("scopes"), f"{where} scopes"),
            graph_seeds=graph_seeds,
            misinformation=dict(sorted(misinformation.items())),
            exclude_tags=_names(data.get("exclude_tags"), f"{where} exclude_tags"),
        )


@dataclass
class SeedConfig:
    """Scope templates and per-agent seeding instructions."""
    scopes: Dict[str, ScopeTemplate] = field(default_factory=dict)
    npc_seeds: Dict[str, NpcSeed] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'SeedConfig':
        """
        Parse and validate seed configuration.

        Args:
            data: ``{"scopes": {...}, "npc_seeds": {...}}``

        Returns:
            SeedConfig instance

        Raises:
            ConfigError: If the configuration is malformed
        """
        if not isinstance(data, dict):
            raise ConfigError("Seed configuration must be a mapping")
        scopes = data.get("scopes") or {}
        npc_seeds = data.get("npc_seeds") or {}
        if not isinstance(scopes, dict) or not isinstance(npc_seeds, dict):
            raise ConfigError("'scopes' and 'npc_seeds' must be mappings")
        return cls(
            scopes={name: ScopeTemplate.from_dict(name, row) for name, row in scopes.items()},
            npc_seeds={agent_id: NpcSeed.from_dict(agent_id, row) for agent_id, row in npc_seeds.items()},
        )


class KnowledgeSeeder:
    """Builds fresh belief stores from seed configuration."""

    def __init__(self, graph_store: FactGraphStore, entity_index: EntityIndex,
                 seed_config: Optional[SeedConfig] = None, config: Optional[SeederConfig] = None,
                 learning: Optional[LearningConfig] = None, clock: Optional[Callable[[], float]] = None):
        """
        Initialize the seeder.

        Args:
            graph_store: Loaded fact graph
            entity_index: Index over the same graph
            seed_config: Default seed configuration for ``seed``
            config: Seeder settings
            learning: Learning settings passed on to new belief stores
            clock: Timestamp source for new belief stores
        """
        self.graph_store = graph_store
        self.entity_index = entity_index
        self.seed_config = seed_config or SeedConfig()
        self.config = config or SeederConfig()
        self.learning = learning or LearningConfig()
        self.clock = clock or time.time

    def _new_store(self, agent_id: str, identity_entity: Optional[str]) -> BeliefStore:
        return BeliefStore(
            agent_id,
            identity_entity=identity_entity,
            default_trust=self.learning.default_trust,
            reinforce_fraction=self.learning.reinforce_fraction,
            clock=self.clock,
        )

    def seed(self, agent_id: str, scope_config: Optional[SeedConfig] = None,
             allow_empty: bool = False) -> BeliefStore:
        """
        Create a fresh belief store for an agent.

        Args:
            agent_id: Agent to seed
            scope_config: Seed configuration; the seeder's default if omitted
            allow_empty: Return an empty store instead of failing when the
                agent has no seed entry

        Returns:
            A new BeliefStore owned by the agent

        Raises:
            ConfigError: If the agent has no seed entry and ``allow_empty`` is
                False, or scope inheritance is cyclic
        """
        seed_config = scope_config or self.seed_config
        npc = seed_config.npc_seeds.get(agent_id)
        if npc is None:
            if not allow_empty:
                raise ConfigError(f"No seed configuration for agent '{agent_id}'")
            logger.warning(f"No seed configuration for agent '{agent_id}'; starting with no beliefs")
            return self._new_store(agent_id, None)

        identity = npc.identity_entity
        if identity is not None and not self.graph_store.has_entity(identity):
            logger.warning(f"Agent '{agent_id}' identity entity '{identity}' is not in the fact graph")
        store = self._new_store(agent_id, identity)

        for scope_name in npc.scopes:
            try:
                self._apply_scope(scope_name, seed_config, npc, store, ())
            except UnknownScope as e:
                logger.warning(f"Agent '{agent_id}': {e}; skipping")

        for graph_seed in npc.graph_seeds:
            try:
                self._apply_graph_seed(graph_seed, npc, store)
            except UnknownEntity as e:
                logger.warning(f"Agent '{agent_id}' graph seed: {e}; skipping")

        self._apply_misinformation(npc, store)
        removed = self._apply_exclusions(npc, store)

        logger.info(
            f"Seeded agent '{agent_id}' with {len(store)} beliefs "
            f"({len(npc.misinformation)} misinformation, {removed} excluded)"
        )
        return store

    @staticmethod
    def _owner_allows(fact: Fact, identity: Optional[str]) -> bool:
        return fact.access is not AccessTier.SELF_ONLY or (fact.owner is not None and fact.owner == identity)

    def _apply_scope(self, name: str, seed_config: SeedConfig, npc: NpcSeed, store: BeliefStore, chain):
        scope = seed_config.scopes.get(name)
        if scope is None:
            raise UnknownScope(name)
        if name in chain:
            raise ConfigError(f"Scope inheritance cycle: {' -> '.join(chain + (name,))}")

        if scope.extends:
            try:
                self._apply_scope(scope.extends, seed_config, npc, store, chain + (name,))
            except UnknownScope as e:
                logger.warning(f"Scope '{name}' extends {e}; applying its own rules only")

        source = f"scope:{name}"
        if scope.filters_facts:
            for fact in self.graph_store.facts():
                if scope.include_access and fact.access not in scope.include_access:
                    continue
                if fact.access in scope.exclude_access:
                    continue
                if scope.include_tags and not fact.has_any_tag(scope.include_tags):
                    continue
                if fact.requires_trust > scope.requires_trust_override:
                    continue
                if not self._owner_allows(fact, npc.identity_entity):
                    continue
                store.strengthen(fact.fact_id, scope.base_strength, SourceKind.INNATE, source)

        for entity_id in scope.seed_entities:
            if not self.graph_store.has_entity(entity_id):
                logger.warning(f"Scope '{name}': {UnknownEntity(entity_id)}; skipping")
                continue
            for fact_id in self.entity_index.facts_for_entity(entity_id):
                fact = self.graph_store.fact(fact_id)
                if fact.has_any_tag(npc.exclude_tags) or not self._owner_allows(fact, npc.identity_entity):
                    continue
                store.strengthen(fact_id, scope.base_strength, SourceKind.INNATE, source)

    def _apply_graph_seed(self, graph_seed: GraphSeed, npc: NpcSeed, store: BeliefStore):
        start = graph_seed.start_entity
        if not self.graph_store.has_entity(start):
            raise UnknownEntity(start)

        source = f"graph:{start}"
        visited = {start}
        queue = deque([(start, 0)])
        while queue:
            entity_id, depth = queue.popleft()
            strength = graph_seed.base_strength * self.config.depth_decay ** depth

            for fact_id in self.entity_index.facts_for_entity(entity_id):
                fact = self.graph_store.fact(fact_id)
                if depth == 0 and graph_seed.include_predicates \
                        and fact.predicate not in graph_seed.include_predicates:
                    continue
                if not self._owner_allows(fact, npc.identity_entity):
                    continue
                store.strengthen(fact_id, strength, SourceKind.INNATE, source)

            if depth >= graph_seed.max_depth:
                continue
            for _, predicate, neighbor in self.graph_store.edges_touching(entity_id):
                if graph_seed.traverse_predicates and predicate not in graph_seed.traverse_predicates:
                    continue
                if neighbor in visited:
                    continue
                visited.add(neighbor)
                queue.append((neighbor, depth + 1))

        logger.debug(f"Graph seed from '{start}' reached {len(visited)} entities")

    def _apply_misinformation(self, npc: NpcSeed, store: BeliefStore):
        for fact_id, entry in npc.misinformation.items():
            fact = self.graph_store.fact(fact_id)
            if fact is None:
                logger.warning(f"Agent '{npc.agent_id}' misinformation references unknown fact {fact_id}; skipping")
                continue
            store.set_belief(fact_id, entry.strength, SourceKind.INNATE, "misinformation")
            store.set_misinformation(fact_id, render_content(
                self.graph_store.display_name(fact.subject), fact.predicate, entry.replace_object_literal
            ))

    def _apply_exclusions(self, npc: NpcSeed, store: BeliefStore) -> int:
        if not npc.exclude_tags:
            return 0
        removed = 0
        for fact_id in store.fact_ids():
            fact = self.graph_store.fact(fact_id)
            if fact is not None and fact.has_any_tag(npc.exclude_tags):
                store.forget(fact_id)
                removed += 1
        return removed
