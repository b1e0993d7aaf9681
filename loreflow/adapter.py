"""
LoreFlow Knowledge Adapter module.

This module answers "what does this agent believe about X". It is the only
place where the canonical fact graph and an agent's beliefs meet, and it only
lets content through when the agent holds a positive-confidence belief. What
comes out is the agent's version (its misinformation when it has some), never
the fact graph's truth by itself.
"""

import logging
from typing import List, Dict, Optional, Tuple

from .config import MatchingConfig
from .entity_index import EntityIndex
from .graph_store import FactGraphStore
from .models import DisambiguationOption, EntityMatch, QueryContext, QueryResult
from .resolver import EntityResolver
from .text_matching import any_fuzzy_match, content_words, query_terms

logger = logging.getLogger('loreflow.adapter')


class KnowledgeAdapter:
    """Answers subject queries from an agent's beliefs."""

    def __init__(self, graph_store: FactGraphStore, entity_index: EntityIndex,
                 resolver: EntityResolver, matching: Optional[MatchingConfig] = None):
        """
        Initialize the adapter.

        Args:
            graph_store: Loaded fact graph
            entity_index: Index over the same graph
            resolver: Entity resolver over the same graph
            matching: Fuzzy fallback settings
        """
        self.graph_store = graph_store
        self.entity_index = entity_index
        self.resolver = resolver
        self.matching = matching or MatchingConfig()

    def query_belief(self, subject_text: str, beliefs, context: Optional[QueryContext] = None) -> QueryResult:
        """
        Find what an agent believes about a free-text subject.

        Args:
            subject_text: The subject as the speaker phrased it
            beliefs: The asked agent's BeliefStore
            context: The asked agent's conversation context

        Returns:
            A found result with believed content and confidence, a
            disambiguation result listing the close candidates, or a
            not-found result
        """
        matches = self.resolver.resolve(subject_text, context, beliefs)
        if not matches:
            logger.debug(f"'{subject_text}' names no entity; searching tags and content")
            return self._fuzzy_search(subject_text, beliefs)

        ranked = self._dedupe(matches)
        if self.resolver.is_ambiguous(ranked):
            return self._disambiguation(ranked)
        return self._answer_for_entity(ranked[0].entity_id, beliefs)

    def resolve_disambiguation(self, followup_text: str, beliefs, context: QueryContext) -> QueryResult:
        """
        Settle a pending disambiguation from the speaker's follow-up.

        Only entities recorded in ``context.pending_disambiguation`` are
        accepted.

        Args:
            followup_text: The clarifying utterance ("the one in the west")
            beliefs: The asked agent's BeliefStore
            context: Context holding the pending candidate ids

        Returns:
            The answer for the chosen entity, a narrower disambiguation, or
            not-found when the follow-up matches none of the candidates
        """
        pending = context.pending_disambiguation
        if not pending:
            return QueryResult.not_found()

        matches = [m for m in self.resolver.resolve(followup_text, context, beliefs) if m.entity_id in pending]
        if not matches:
            logger.debug(f"Follow-up '{followup_text}' matches none of {sorted(pending)}")
            return QueryResult.not_found()

        ranked = self._dedupe(matches)
        if self.resolver.is_ambiguous(ranked):
            return self._disambiguation(ranked)
        return self._answer_for_entity(ranked[0].entity_id, beliefs)

    def beliefs_about(self, entity_id: str, beliefs) -> List[Tuple[int, str, float]]:
        """
        Everything an agent believes about an entity.

        Access times are left untouched.

        Returns:
            ``(fact_id, content, confidence)`` in ascending fact id order
        """
        results = []
        for fact_id in self.entity_index.facts_for_entity(entity_id):
            if beliefs.knows(fact_id):
                content, confidence = beliefs.recall(fact_id, self.graph_store)
                results.append((fact_id, content, confidence))
        return results

    @staticmethod
    def _dedupe(matches: List[EntityMatch]) -> List[EntityMatch]:
        best: Dict[str, EntityMatch] = {}
        for match in matches:
            if match.entity_id not in best or match.confidence > best[match.entity_id].confidence:
                best[match.entity_id] = match
        return sorted(best.values(), key=lambda m: m.confidence, reverse=True)

    def _disambiguation(self, ranked: List[EntityMatch]) -> QueryResult:
        options = [
            DisambiguationOption(m.entity_id, self.graph_store.display_name(m.entity_id), m.confidence)
            for m in ranked
        ]
        logger.debug(f"Ambiguous reference; options {[o.entity_id for o in options]}")
        return QueryResult(found=False, requires_disambiguation=True, options=options)

    def _answer_for_entity(self, entity_id: str, beliefs) -> QueryResult:
        # First believed fact in ascending id order, not the most confident one
        for fact_id in self.entity_index.facts_for_entity(entity_id):
            if beliefs.knows(fact_id):
                return self._answer(fact_id, beliefs, entity_id)
        return QueryResult.not_found(entity_id)

    def _answer(self, fact_id: int, beliefs, entity_id: Optional[str]) -> QueryResult:
        content, confidence = beliefs.recall(fact_id, self.graph_store)
        beliefs.touch(fact_id)
        return QueryResult(found=True, content=content, confidence=confidence,
                           fact_id=fact_id, entity_id=entity_id)

    def _fuzzy_search(self, query: str, beliefs) -> QueryResult:
        """
        Search the facts the agent believes by tag and by believed wording.

        Content words come from the agent's own version of each fact, so a
        misinformed agent is matched on its misinformation. A query with no
        content words finds nothing.
        """
        cfg = self.matching
        terms = query_terms(query, cfg.min_word_length)
        if not terms:
            return QueryResult.not_found()

        for fact in self.graph_store.facts():
            if not beliefs.knows(fact.fact_id):
                continue
            content, _ = beliefs.recall(fact.fact_id, self.graph_store)
            words = [tag.lower() for tag in fact.tags] + content_words(content, cfg.min_word_length)
            if any_fuzzy_match(terms, words, short_length=cfg.short_word_length,
                               strict_distance=cfg.strict_edit_distance,
                               loose_distance=cfg.loose_edit_distance):
                return self._answer(fact.fact_id, beliefs, None)
        return QueryResult.not_found()
