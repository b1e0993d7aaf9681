"""
LoreFlow Graph Store module.

This module provides the canonical fact graph: the objective truth of a world,
validated once at load time and read-only afterwards. Entities are graph nodes
and entity-to-entity facts are keyed edges of a frozen networkx multigraph.
"""

import logging
from typing import List, Dict, Any, Optional, Tuple, Iterable

import networkx as nx

from .exceptions import ConfigError
from .models import AccessTier, Entity, Fact

logger = logging.getLogger('loreflow')

CONTENT_SEPARATOR = " | "


def render_content(subject_display: str, predicate: str, object_text: str) -> str:
    """
    Render a fact as opaque believed content.

    Args:
        subject_display: Display name of the subject entity
        predicate: Predicate identifier; underscores become spaces
        object_text: Display name of the object entity, or the literal

    Returns:
        ``"subject | predicate words | object"``
    """
    return CONTENT_SEPARATOR.join([subject_display, predicate.replace("_", " "), object_text])


def _string_list(value: Any, what: str) -> Tuple[str, ...]:
    if value is None:
        return ()
    if isinstance(value, str) or not isinstance(value, (list, tuple)):
        raise ConfigError(f"{what} must be a list of strings")
    for item in value:
        if not isinstance(item, str):
            raise ConfigError(f"{what} must be a list of strings, got {item!r}")
    return tuple(value)


def _optional_string(value: Any, what: str) -> Optional[str]:
    if value is None:
        return None
    if not isinstance(value, str):
        raise ConfigError(f"{what} must be a string, got {value!r}")
    return value


class FactGraphStore:
    """Immutable-after-load store of entities and facts."""

    def __init__(self, entity_table: Dict[str, Dict[str, Any]], fact_table: Iterable[Dict[str, Any]]):
        """
        Validate and load the world.

        Args:
            entity_table: Mapping of entity id to entity row
            fact_table: Fact rows ordered by increasing ``fact_id``

        Raises:
            ConfigError: If any row is missing required fields or references
                an unknown entity
        """
        if not isinstance(entity_table, dict):
            raise ConfigError("Entity table must be a mapping of entity id to entity row")

        self._entities: Dict[str, Entity] = {}
        for entity_id, row in entity_table.items():
            self._entities[entity_id] = self._parse_entity(entity_id, row)

        self._facts: Dict[int, Fact] = {}
        last_id = None
        for row in fact_table:
            fact = self._parse_fact(row)
            if last_id is not None and fact.fact_id <= last_id:
                raise ConfigError(
                    f"Fact ids must be unique and increasing: {fact.fact_id} follows {last_id}"
                )
            last_id = fact.fact_id
            self._facts[fact.fact_id] = fact

        graph = nx.MultiDiGraph()
        for entity_id, entity in self._entities.items():
            graph.add_node(entity_id, entity=entity)
        for fact in self._facts.values():
            if fact.object_entity is not None:
                graph.add_edge(fact.subject, fact.object_entity, key=fact.fact_id, predicate=fact.predicate)
        self.graph = nx.freeze(graph)

        logger.info(
            f"Loaded fact graph with {len(self._entities)} entities and {len(self._facts)} facts"
        )

    @staticmethod
    def _parse_entity(entity_id: Any, row: Any) -> Entity:
        if not isinstance(entity_id, str) or not entity_id:
            raise ConfigError(f"Entity id must be a non-empty string, got {entity_id!r}")
        if not isinstance(row, dict):
            raise ConfigError(f"Entity '{entity_id}' must be a mapping")
        display = row.get("display")
        if not isinstance(display, str) or not display:
            raise ConfigError(f"Entity '{entity_id}' has no display name")

        where = f"Entity '{entity_id}'"
        return Entity(
            entity_id=entity_id,
            display=display,
            primary_aliases=_string_list(row.get("primary_aliases"), f"{where} primary_aliases"),
            qualified_aliases=_string_list(row.get("qualified_aliases"), f"{where} qualified_aliases"),
            ambiguous_aliases=_string_list(row.get("ambiguous_aliases"), f"{where} ambiguous_aliases"),
            location=_optional_string(row.get("location"), f"{where} location"),
            parent_concept=_optional_string(row.get("parent_concept"), f"{where} parent_concept"),
            subtype=_optional_string(row.get("subtype"), f"{where} subtype"),
        )

    def _parse_fact(self, row: Any) -> Fact:
        if not isinstance(row, dict):
            raise ConfigError(f"Fact row must be a mapping, got {row!r}")

        fact_id = row.get("fact_id")
        if isinstance(fact_id, bool) or not isinstance(fact_id, int):
            raise ConfigError(f"Fact row has invalid fact_id: {fact_id!r}")
        where = f"Fact {fact_id}"

        subject = row.get("subject")
        if subject not in self._entities:
            raise ConfigError(f"{where} references unknown subject {subject!r}")

        predicate = row.get("predicate")
        if not isinstance(predicate, str) or not predicate:
            raise ConfigError(f"{where} has no predicate")

        object_entity = row.get("object")
        object_literal = row.get("object_literal")
        if (object_entity is None) == (object_literal is None):
            raise ConfigError(f"{where} must set exactly one of 'object' and 'object_literal'")
        if object_entity is not None:
            if object_entity not in self._entities:
                raise ConfigError(f"{where} references unknown object {object_entity!r}")
            object_text = self._entities[object_entity].display
        else:
            object_literal = str(object_literal)
            object_text = object_literal

        try:
            access = AccessTier(row.get("access", AccessTier.PUBLIC.value))
        except ValueError:
            raise ConfigError(f"{where} has unknown access tier {row.get('access')!r}")

        requires_trust = row.get("requires_trust", 0.0)
        if isinstance(requires_trust, bool) or not isinstance(requires_trust, (int, float)) \
                or not 0.0 <= requires_trust <= 1.0:
            raise ConfigError(f"{where} has invalid requires_trust {requires_trust!r}")

        owner = row.get("owner")
        if owner is not None and owner not in self._entities:
            raise ConfigError(f"{where} references unknown owner {owner!r}")
        if access is AccessTier.SELF_ONLY and owner is None:
            logger.warning(f"{where} is self_only but has no owner; no agent will be seeded with it")

        return Fact(
            fact_id=fact_id,
            subject=subject,
            predicate=predicate,
            object_entity=object_entity,
            object_literal=object_literal,
            tags=_string_list(row.get("tags"), f"{where} tags"),
            access=access,
            requires_trust=float(requires_trust),
            owner=owner,
            raw_content=render_content(self._entities[subject].display, predicate, object_text),
        )

    def entity(self, entity_id: str) -> Optional[Entity]:
        """Get an entity by id, or None."""
        return self._entities.get(entity_id)

    def has_entity(self, entity_id: str) -> bool:
        return entity_id in self._entities

    def entities(self) -> List[Entity]:
        """All entities in load order."""
        return list(self._entities.values())

    def display_name(self, entity_id: str) -> str:
        entity = self._entities.get(entity_id)
        return entity.display if entity else entity_id

    def fact(self, fact_id: int) -> Optional[Fact]:
        """Get a fact by id, or None."""
        return self._facts.get(fact_id)

    def has_fact(self, fact_id: int) -> bool:
        return fact_id in self._facts

    def facts(self) -> List[Fact]:
        """All facts in ascending fact id order."""
        return list(self._facts.values())

    def object_text(self, fact: Fact) -> str:
        if fact.object_entity is not None:
            return self.display_name(fact.object_entity)
        return fact.object_literal

    def edges_touching(self, entity_id: str) -> List[Tuple[int, str, str]]:
        """
        Get entity-to-entity facts incident to an entity.

        Args:
            entity_id: Entity to inspect

        Returns:
            ``(fact_id, predicate, neighbor_id)`` tuples in ascending fact id
            order; facts with a literal object are not edges
        """
        if entity_id not in self._entities:
            return []

        edges: Dict[int, Tuple[int, str, str]] = {}
        for _, target, key, data in self.graph.out_edges(entity_id, keys=True, data=True):
            edges[key] = (key, data["predicate"], target)
        for source, _, key, data in self.graph.in_edges(entity_id, keys=True, data=True):
            edges.setdefault(key, (key, data["predicate"], source))
        return [edges[key] for key in sorted(edges)]

    def get_stats(self) -> Dict[str, Any]:
        """Summary counts for diagnostics."""
        by_access: Dict[str, int] = {}
        for fact in self._facts.values():
            by_access[fact.access.value] = by_access.get(fact.access.value, 0) + 1
        return {
            "entity_count": len(self._entities),
            "fact_count": len(self._facts),
            "edge_count": self.graph.number_of_edges(),
            "facts_by_access": by_access,
        }
