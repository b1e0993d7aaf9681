"""
LoreFlow Entity Index module.

Reverse indices over the fact graph: which facts touch an entity, and which
entities a fact touches. Built once, read-only afterwards.
"""

import logging
from collections import defaultdict
from typing import Dict, List, Tuple

from .graph_store import FactGraphStore

logger = logging.getLogger('loreflow')


class EntityIndex:
    """``entity -> fact_ids`` and ``fact -> entity_ids`` lookups."""

    def __init__(self, graph_store: FactGraphStore):
        """
        Build the indices.

        Args:
            graph_store: Loaded fact graph
        """
        self.graph_store = graph_store

        entity_facts: Dict[str, List[int]] = defaultdict(list)
        fact_entities: Dict[int, Tuple[str, ...]] = {}
        for fact in graph_store.facts():
            fact_entities[fact.fact_id] = fact.entity_ids
            for entity_id in fact.entity_ids:
                entity_facts[entity_id].append(fact.fact_id)

        # Facts are visited in ascending id order, so every list is sorted
        self._entity_facts: Dict[str, Tuple[int, ...]] = {
            entity_id: tuple(fact_ids) for entity_id, fact_ids in entity_facts.items()
        }
        self._fact_entities = fact_entities

        logger.debug(f"Entity index built for {len(self._entity_facts)} entities")

    def facts_for_entity(self, entity_id: str) -> Tuple[int, ...]:
        """Fact ids touching an entity, ascending; empty for unknown entities."""
        return self._entity_facts.get(entity_id, ())

    def entities_for_fact(self, fact_id: int) -> Tuple[str, ...]:
        """Entity ids a fact touches, subject first; empty for unknown facts."""
        return self._fact_entities.get(fact_id, ())

    def touches(self, entity_id: str, fact_id: int) -> bool:
        return entity_id in self._fact_entities.get(fact_id, ())
