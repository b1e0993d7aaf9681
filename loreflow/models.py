"""
LoreFlow Models module.

This module defines the records shared by every LoreFlow component: canonical
entities and facts, per-agent beliefs with provenance, resolver matches, and
the query context and result bundles exchanged with the dialogue layer.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Dict, Any, Optional, Set, Tuple, FrozenSet


class AccessTier(str, Enum):
    """Who may plausibly know a fact."""
    PUBLIC = "public"
    LOCAL = "local"
    SECRET = "secret"
    SELF_ONLY = "self_only"


class SourceKind(str, Enum):
    """How an agent came to hold a belief."""
    INNATE = "innate"
    WITNESSED = "witnessed"
    TOLD = "told"
    ENVIRONMENTAL = "environmental"
    RUMOR = "rumor"


class MatchTier(str, Enum):
    """The resolver tier that produced an entity match."""
    EXACT_ID = "exact_id"
    PRIMARY_ALIAS = "primary_alias"
    QUALIFIED_ALIAS = "qualified_alias"
    DISPLAY_NAME = "display_name"
    DISPLAY_SUBSTRING = "display_substring"
    AMBIGUOUS_ALIAS = "ambiguous_alias"


@dataclass(frozen=True)
class Entity:
    """A node of the canonical fact graph."""
    entity_id: str
    display: str
    primary_aliases: Tuple[str, ...] = ()
    qualified_aliases: Tuple[str, ...] = ()
    ambiguous_aliases: Tuple[str, ...] = ()
    location: Optional[str] = None
    parent_concept: Optional[str] = None
    subtype: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert the entity to the entity-table row shape."""
        return {
            "display": self.display,
            "primary_aliases": list(self.primary_aliases),
            "qualified_aliases": list(self.qualified_aliases),
            "ambiguous_aliases": list(self.ambiguous_aliases),
            "location": self.location,
            "parent_concept": self.parent_concept,
            "subtype": self.subtype,
        }


@dataclass(frozen=True)
class Fact:
    """
    An immutable subject-predicate-object assertion.

    Exactly one of ``object_entity`` and ``object_literal`` is set. ``raw_content``
    is rendered once at load time as ``"subject | predicate | object"``.
    """
    fact_id: int
    subject: str
    predicate: str
    object_entity: Optional[str]
    object_literal: Optional[str]
    tags: Tuple[str, ...]
    access: AccessTier
    requires_trust: float
    owner: Optional[str]
    raw_content: str

    @property
    def tag_set(self) -> FrozenSet[str]:
        return frozenset(self.tags)

    @property
    def entity_ids(self) -> Tuple[str, ...]:
        """Entities this fact touches, subject first."""
        if self.object_entity is not None and self.object_entity != self.subject:
            return (self.subject, self.object_entity)
        return (self.subject,)

    def has_any_tag(self, tags) -> bool:
        return any(tag in self.tag_set for tag in tags)

    def to_dict(self) -> Dict[str, Any]:
        """Convert the fact to the fact-table row shape."""
        row = {
            "fact_id": self.fact_id,
            "tags": list(self.tags),
            "subject": self.subject,
            "predicate": self.predicate,
            "access": self.access.value,
            "requires_trust": self.requires_trust,
            "owner": self.owner,
        }
        if self.object_entity is not None:
            row["object"] = self.object_entity
        else:
            row["object_literal"] = self.object_literal
        return row


@dataclass
class Provenance:
    """Where a belief came from and how often it was reinforced."""
    source_kind: SourceKind
    source_id: Optional[str] = None
    hearsay_generation: int = 0
    learned_at: float = 0.0
    reinforcement_count: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "source_kind": self.source_kind.value,
            "source_id": self.source_id,
            "hearsay_generation": self.hearsay_generation,
            "learned_at": self.learned_at,
            "reinforcement_count": self.reinforcement_count,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Provenance':
        return cls(
            source_kind=SourceKind(data.get("source_kind", SourceKind.INNATE.value)),
            source_id=data.get("source_id"),
            hearsay_generation=int(data.get("hearsay_generation", 0)),
            learned_at=float(data.get("learned_at", 0.0)),
            reinforcement_count=int(data.get("reinforcement_count", 0)),
        )


@dataclass(frozen=True)
class Belief:
    """Read-only view of one agent's belief about one fact."""
    fact_id: int
    confidence: float
    misinformation: Optional[str]
    provenance: Optional[Provenance]
    last_accessed: Optional[float]


@dataclass
class EntityMatch:
    """A candidate entity for a free-text reference."""
    entity_id: str
    confidence: int
    tier: MatchTier
    reasons: List[str] = field(default_factory=list)
    requires_disambiguation: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "entity_id": self.entity_id,
            "confidence": self.confidence,
            "tier": self.tier.value,
            "reasons": list(self.reasons),
            "requires_disambiguation": self.requires_disambiguation,
        }


@dataclass
class QueryContext:
    """
    Conversation state supplied by the caller with every query.

    ``recent_subjects`` is ordered most-recent-first and bounded by
    ``recent_limit``.
    """
    current_location: Optional[str] = None
    recent_subjects: List[str] = field(default_factory=list)
    focus_entities: Set[str] = field(default_factory=set)
    pending_disambiguation: Set[str] = field(default_factory=set)
    recent_limit: int = 5

    def remember_subject(self, entity_id: str):
        """Move an entity to the front of the recent-subject history."""
        if entity_id in self.recent_subjects:
            self.recent_subjects.remove(entity_id)
        self.recent_subjects.insert(0, entity_id)
        del self.recent_subjects[self.recent_limit:]

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'QueryContext':
        """
        Create a context from a plain dictionary.

        Args:
            data: Context fields; ``npc_location`` is accepted as an alias of
                ``current_location``

        Returns:
            QueryContext instance
        """
        context = cls(
            current_location=data.get("current_location", data.get("npc_location")),
            focus_entities=set(data.get("focus_entities", [])),
            pending_disambiguation=set(data.get("pending_disambiguation", [])),
            recent_limit=int(data.get("recent_limit", 5)),
        )
        context.recent_subjects = list(data.get("recent_subjects", []))[:context.recent_limit]
        return context


@dataclass
class DisambiguationOption:
    """One candidate offered back to the speaker for clarification."""
    entity_id: str
    display: str
    confidence: int

    def to_dict(self) -> Dict[str, Any]:
        return {"entity_id": self.entity_id, "display": self.display, "confidence": self.confidence}


@dataclass
class QueryResult:
    """What an agent believes about a queried subject."""
    found: bool
    content: str = "unknown"
    confidence: float = 0.0
    fact_id: Optional[int] = None
    entity_id: Optional[str] = None
    requires_disambiguation: bool = False
    options: List[DisambiguationOption] = field(default_factory=list)

    @classmethod
    def not_found(cls, entity_id: Optional[str] = None) -> 'QueryResult':
        return cls(found=False, entity_id=entity_id)

    def option_ids(self) -> Set[str]:
        """Entity ids to store as the context's pending disambiguation."""
        return {option.entity_id for option in self.options}

    def to_dict(self) -> Dict[str, Any]:
        result = {
            "found": self.found,
            "content": self.content,
            "confidence": self.confidence,
            "fact_id": self.fact_id,
            "entity_id": self.entity_id,
        }
        if self.requires_disambiguation:
            result["requires_disambiguation"] = True
            result["options"] = [option.to_dict() for option in self.options]
        return result
