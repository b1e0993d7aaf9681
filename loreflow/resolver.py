"""
LoreFlow Entity Resolver module.

This module maps free-text references ("the blacksmith", "King Aldric") to
fact-graph entities. Matching is tiered, strongest evidence first:

1. exact entity id (100, final)
2. primary alias (90, final when unique)
3. qualified alias (80)
4. display name, exact (70) or containing the query (20)
5. ambiguous alias (30, flagged for disambiguation)

A later tier runs only while the candidates so far are empty or ambiguous.
Unless a unique primary alias or an exact id settled it, every candidate is
then rescored against the agent's context.
"""

import logging
from collections import defaultdict
from typing import List, Dict, Optional, Iterable

from .config import ResolverConfig
from .entity_index import EntityIndex
from .graph_store import FactGraphStore
from .models import Entity, EntityMatch, MatchTier, QueryContext
from .text_matching import normalize

logger = logging.getLogger('loreflow.resolver')

_ARTICLES = ("the ", "a ", "an ")


def _alias_map(entities: Iterable[Entity], attribute: str) -> Dict[str, List[str]]:
    mapping: Dict[str, List[str]] = defaultdict(list)
    for entity in entities:
        for alias in getattr(entity, attribute):
            key = normalize(alias)
            if entity.entity_id not in mapping[key]:
                mapping[key].append(entity.entity_id)
    return dict(mapping)


class EntityResolver:
    """Ranks entities for a free-text reference."""

    def __init__(self, graph_store: FactGraphStore, entity_index: EntityIndex,
                 config: Optional[ResolverConfig] = None):
        """
        Build alias lookup tables.

        Args:
            graph_store: Loaded fact graph
            entity_index: Index over the same graph, used for belief scoring
            config: Scoring settings
        """
        self.graph_store = graph_store
        self.entity_index = entity_index
        self.config = config or ResolverConfig()

        entities = graph_store.entities()
        self._ids = {entity.entity_id.lower(): entity.entity_id for entity in entities}
        self._primary = _alias_map(entities, "primary_aliases")
        self._qualified = _alias_map(entities, "qualified_aliases")
        self._ambiguous = _alias_map(entities, "ambiguous_aliases")
        self._displays = [(normalize(entity.display), entity.entity_id) for entity in entities]

    @staticmethod
    def _variants(query: str) -> List[str]:
        variants = [query]
        for article in _ARTICLES:
            if query.startswith(article) and len(query) > len(article):
                variants.append(query[len(article):])
                break
        return variants

    @staticmethod
    def _lookup(table: Dict[str, List[str]], variants: List[str]) -> List[str]:
        found: List[str] = []
        for variant in variants:
            for entity_id in table.get(variant, []):
                if entity_id not in found:
                    found.append(entity_id)
        return found

    def resolve(self, query: str, context: Optional[QueryContext] = None,
                beliefs=None) -> List[EntityMatch]:
        """
        Resolve a reference to ranked entity candidates.

        Args:
            query: Free-text reference
            context: Conversation context of the asking agent
            beliefs: Asking agent's BeliefStore, for the familiarity bonus

        Returns:
            Matches sorted by descending confidence; equal scores keep tier
            order
        """
        query = normalize(query)
        if not query:
            return []
        variants = self._variants(query)
        cfg = self.config

        for variant in variants:
            key = variant.replace(" ", "_")
            entity_id = self._ids.get(variant) or self._ids.get(key)
            if entity_id:
                return [EntityMatch(entity_id, cfg.exact_id_score, MatchTier.EXACT_ID,
                                    [f"exact id match '{entity_id}'"])]

        candidates: List[EntityMatch] = []
        seen = set()

        def add(entity_ids: List[str], score: int, tier: MatchTier, reason: str, flagged: bool = False):
            for entity_id in entity_ids:
                if entity_id in seen:
                    continue
                seen.add(entity_id)
                candidates.append(EntityMatch(entity_id, score, tier, [f"{reason} (+{score})"], flagged))

        add(self._lookup(self._primary, variants), cfg.primary_alias_score,
            MatchTier.PRIMARY_ALIAS, "primary alias")
        if len(candidates) == 1:
            return candidates

        add(self._lookup(self._qualified, variants), cfg.qualified_alias_score,
            MatchTier.QUALIFIED_ALIAS, "qualified alias")

        if len(candidates) != 1:
            exact = [eid for display, eid in self._displays if display in variants]
            add(exact, cfg.display_exact_score, MatchTier.DISPLAY_NAME, "display name")
            # the query must sit inside the display name, never the reverse
            partial = [
                eid for display, eid in self._displays
                if any(variant in display for variant in variants)
            ]
            add(partial, cfg.display_substring_score, MatchTier.DISPLAY_SUBSTRING, "display name substring")

        if len(candidates) != 1:
            add(self._lookup(self._ambiguous, variants), cfg.ambiguous_alias_score,
                MatchTier.AMBIGUOUS_ALIAS, "ambiguous alias", flagged=True)

        if not candidates:
            logger.debug(f"No entity matches '{query}'")
            return []

        for match in candidates:
            self._score_context(match, context, beliefs)

        # sorted() is stable, so equal scores keep their tier order
        ranked = sorted(candidates, key=lambda m: m.confidence, reverse=True)
        logger.debug(f"Resolved '{query}' to {[(m.entity_id, m.confidence) for m in ranked]}")
        return ranked

    def _score_context(self, match: EntityMatch, context: Optional[QueryContext], beliefs):
        cfg = self.config
        entity = self.graph_store.entity(match.entity_id)

        def adjust(amount: int, reason: str):
            match.confidence += amount
            match.reasons.append(f"{reason} ({amount:+d})")

        if beliefs is not None and any(
            beliefs.knows(fact_id) for fact_id in self.entity_index.facts_for_entity(match.entity_id)
        ):
            adjust(cfg.belief_bonus, "agent holds beliefs about it")

        if context is not None:
            if context.current_location and entity.location == context.current_location:
                adjust(cfg.location_bonus, f"located at {context.current_location}")
            if match.entity_id in context.recent_subjects:
                adjust(cfg.recent_subject_bonus, "recently discussed")
            if match.entity_id in context.focus_entities:
                adjust(cfg.focus_bonus, "in conversation focus")

        if entity.parent_concept is None:
            adjust(cfg.specific_concept_bonus, "specific concept")
        else:
            adjust(-cfg.generic_concept_penalty, f"child of {entity.parent_concept}")

    def is_ambiguous(self, matches: List[EntityMatch]) -> bool:
        """True when the top two candidates are too close to pick automatically."""
        if len(matches) < 2:
            return False
        return matches[0].confidence - matches[1].confidence < self.config.ambiguity_gap
