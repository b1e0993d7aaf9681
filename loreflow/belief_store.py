"""
LoreFlow Belief Store module.

This module provides the per-agent belief store: what one agent holds true,
how confident it is, where each belief came from and when it was last used.
Confidence is always clamped to [0, 1], and a distorted version of a fact can
only exist alongside a belief in that fact.
"""

import copy
import logging
import time
from dataclasses import replace
from typing import List, Dict, Any, Optional, Tuple, Callable

import numpy as np

from .learning import clamp, decay, reinforce, REINFORCE_FRACTION
from .models import Belief, Provenance, SourceKind

logger = logging.getLogger('loreflow.beliefs')

UNKNOWN_CONTENT = "unknown"


class BeliefStore:
    """Mutable beliefs owned by exactly one agent."""

    def __init__(self, agent_id: str, identity_entity: Optional[str] = None,
                 default_trust: float = 0.5, reinforce_fraction: float = REINFORCE_FRACTION,
                 clock: Optional[Callable[[], float]] = None):
        """
        Initialize an empty belief store.

        Args:
            agent_id: Owning agent
            identity_entity: Entity the agent is in the fact graph, if any
            default_trust: Trust assumed for speakers never rated
            reinforce_fraction: Share of a repeated learning's strength used
                to reinforce an already-known fact
            clock: Timestamp source, ``time.time`` by default
        """
        self.agent_id = agent_id
        self.identity_entity = identity_entity
        self.default_trust = default_trust
        self.reinforce_fraction = reinforce_fraction
        self.clock = clock or time.time

        self._confidence: Dict[int, float] = {}
        self._misinformation: Dict[int, str] = {}
        self._provenance: Dict[int, Provenance] = {}
        self._last_accessed: Dict[int, float] = {}
        self._trust: Dict[str, float] = {}

    def _now(self, now: Optional[float]) -> float:
        return self.clock() if now is None else now

    # Reads. None of these raise for unknown fact ids.

    def __contains__(self, fact_id: int) -> bool:
        return fact_id in self._confidence

    def __len__(self) -> int:
        return len(self._confidence)

    def confidence(self, fact_id: int) -> float:
        return self._confidence.get(fact_id, 0.0)

    def knows(self, fact_id: int) -> bool:
        """True if the agent holds a positive-confidence belief."""
        return self._confidence.get(fact_id, 0.0) > 0.0

    def misinformation(self, fact_id: int) -> Optional[str]:
        return self._misinformation.get(fact_id)

    def provenance(self, fact_id: int) -> Optional[Provenance]:
        record = self._provenance.get(fact_id)
        return replace(record) if record else None

    def last_accessed(self, fact_id: int) -> Optional[float]:
        return self._last_accessed.get(fact_id)

    def fact_ids(self) -> List[int]:
        """Believed fact ids, ascending."""
        return sorted(self._confidence)

    def confidence_map(self) -> Dict[int, float]:
        """Copy of the ``fact_id -> confidence`` map, ordered by fact id."""
        return {fact_id: self._confidence[fact_id] for fact_id in self.fact_ids()}

    def misinformation_map(self) -> Dict[int, str]:
        return {fact_id: self._misinformation[fact_id] for fact_id in sorted(self._misinformation)}

    def get_belief(self, fact_id: int) -> Optional[Belief]:
        if fact_id not in self._confidence:
            return None
        return Belief(
            fact_id=fact_id,
            confidence=self._confidence[fact_id],
            misinformation=self._misinformation.get(fact_id),
            provenance=self.provenance(fact_id),
            last_accessed=self._last_accessed.get(fact_id),
        )

    def recall(self, fact_id: int, graph_store) -> Tuple[str, float]:
        """
        What the agent would say about a fact.

        Args:
            fact_id: Fact to recall
            graph_store: FactGraphStore holding the fact's canonical content

        Returns:
            ``(content, confidence)``; ``("unknown", 0.0)`` when the agent
            holds no positive belief or the fact does not exist
        """
        confidence = self.confidence(fact_id)
        fact = graph_store.fact(fact_id)
        if confidence <= 0.0 or fact is None:
            return UNKNOWN_CONTENT, 0.0
        return self._misinformation.get(fact_id, fact.raw_content), confidence

    # Mutations

    def learn(self, fact_id: int, strength: float, source_kind: SourceKind = SourceKind.TOLD,
              source_id: Optional[str] = None, generation: int = 0, now: Optional[float] = None) -> bool:
        """
        Adopt a fact, or reinforce it if already known.

        Args:
            fact_id: Fact being learned
            strength: Confidence for a new belief
            source_kind: How the fact was learned
            source_id: Who or what it was learned from
            generation: Hearsay generation
            now: Timestamp override

        Returns:
            True if the fact was newly learned
        """
        if fact_id in self._confidence:
            self.reinforce(fact_id, strength * self.reinforce_fraction, now=now)
            return False

        timestamp = self._now(now)
        self._confidence[fact_id] = clamp(strength)
        self._provenance[fact_id] = Provenance(
            source_kind=source_kind,
            source_id=source_id,
            hearsay_generation=max(0, generation),
            learned_at=timestamp,
        )
        self._last_accessed[fact_id] = timestamp
        logger.debug(f"{self.agent_id} learned fact {fact_id} at {self._confidence[fact_id]:.3f}")
        return True

    def reinforce(self, fact_id: int, amount: float, now: Optional[float] = None) -> bool:
        """
        Strengthen a known belief with diminishing returns.

        Returns:
            False if the fact is not believed
        """
        if fact_id not in self._confidence:
            return False
        self._confidence[fact_id] = reinforce(self._confidence[fact_id], amount)
        self._provenance[fact_id].reinforcement_count += 1
        self._last_accessed[fact_id] = self._now(now)
        return True

    def strengthen(self, fact_id: int, strength: float, source_kind: SourceKind = SourceKind.INNATE,
                   source_id: Optional[str] = None, now: Optional[float] = None) -> float:
        """
        Merge a belief keeping the maximum of existing and new strength.

        Returns:
            Resulting confidence
        """
        strength = clamp(strength)
        if fact_id not in self._confidence:
            self.set_belief(fact_id, strength, source_kind, source_id, now=now)
        elif strength > self._confidence[fact_id]:
            self._confidence[fact_id] = strength
        return self._confidence[fact_id]

    def set_belief(self, fact_id: int, strength: float, source_kind: SourceKind = SourceKind.INNATE,
                   source_id: Optional[str] = None, generation: int = 0, now: Optional[float] = None):
        """Unconditionally set a belief, replacing any earlier one."""
        timestamp = self._now(now)
        self._confidence[fact_id] = clamp(strength)
        self._provenance[fact_id] = Provenance(
            source_kind=source_kind,
            source_id=source_id,
            hearsay_generation=max(0, generation),
            learned_at=timestamp,
        )
        self._last_accessed[fact_id] = timestamp

    def set_misinformation(self, fact_id: int, content: str) -> bool:
        """
        Make the agent hold a distorted version of a believed fact.

        Returns:
            False if the agent does not believe the fact at all
        """
        if fact_id not in self._confidence:
            logger.warning(f"{self.agent_id} cannot hold misinformation about unbelieved fact {fact_id}")
            return False
        self._misinformation[fact_id] = content
        return True

    def clear_misinformation(self, fact_id: int):
        self._misinformation.pop(fact_id, None)

    def forget(self, fact_id: int) -> bool:
        """Drop a belief together with its distortion and bookkeeping."""
        if fact_id not in self._confidence:
            return False
        del self._confidence[fact_id]
        self._misinformation.pop(fact_id, None)
        self._provenance.pop(fact_id, None)
        self._last_accessed.pop(fact_id, None)
        return True

    def touch(self, fact_id: int, now: Optional[float] = None):
        """Refresh the last-access time of a believed fact."""
        if fact_id in self._confidence:
            self._last_accessed[fact_id] = self._now(now)

    def apply_decay(self, elapsed: float, rate: float, forget_below: float = 0.0) -> int:
        """
        Fade every belief by the time that passed since the previous pass.

        Args:
            elapsed: Time units since the previous decay pass
            rate: Exponential decay rate
            forget_below: Beliefs whose confidence falls below this are dropped

        Returns:
            Number of beliefs forgotten
        """
        if not self._confidence or elapsed <= 0:
            return 0

        fact_ids = self.fact_ids()
        confidences = np.array([self._confidence[f] for f in fact_ids], dtype=float)
        reinforcements = np.array([self._provenance[f].reinforcement_count for f in fact_ids], dtype=float)
        confidences = np.clip(confidences * decay(elapsed, rate, reinforcements), 0.0, 1.0)

        forgotten = 0
        for fact_id, value in zip(fact_ids, confidences.tolist()):
            if value < forget_below:
                self.forget(fact_id)
                forgotten += 1
            else:
                self._confidence[fact_id] = value

        if forgotten:
            logger.info(f"{self.agent_id} forgot {forgotten} beliefs after decay")
        return forgotten

    # Trust

    def get_trust(self, entity_id: str) -> float:
        return self._trust.get(entity_id, self.default_trust)

    def set_trust(self, entity_id: str, value: float):
        self._trust[entity_id] = clamp(value)

    def adjust_trust(self, entity_id: str, delta: float) -> float:
        """Shift trust in a speaker and return the new value."""
        value = clamp(self.get_trust(entity_id) + delta)
        self._trust[entity_id] = value
        return value

    # Snapshots

    def copy(self) -> 'BeliefStore':
        """Fully independent deep copy."""
        clone = BeliefStore(self.agent_id, self.identity_entity, self.default_trust,
                            self.reinforce_fraction, self.clock)
        clone._confidence = dict(self._confidence)
        clone._misinformation = dict(self._misinformation)
        clone._provenance = copy.deepcopy(self._provenance)
        clone._last_accessed = dict(self._last_accessed)
        clone._trust = dict(self._trust)
        return clone

    def to_dict(self) -> Dict[str, Any]:
        """Serializable snapshot for the caller's persistence layer."""
        return {
            "agent_id": self.agent_id,
            "identity_entity": self.identity_entity,
            "beliefs": {str(f): c for f, c in self.confidence_map().items()},
            "misinformation": {str(f): text for f, text in self.misinformation_map().items()},
            "provenance": {str(f): self._provenance[f].to_dict() for f in self.fact_ids()},
            "last_accessed": {str(f): self._last_accessed[f] for f in self.fact_ids()},
            "trust": dict(sorted(self._trust.items())),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any], **kwargs) -> 'BeliefStore':
        """
        Restore a snapshot produced by ``to_dict``.

        Misinformation for facts without a belief is dropped.
        """
        store = cls(data["agent_id"], data.get("identity_entity"), **kwargs)
        for key, value in data.get("beliefs", {}).items():
            store._confidence[int(key)] = clamp(float(value))
        for key, value in data.get("provenance", {}).items():
            if int(key) in store._confidence:
                store._provenance[int(key)] = Provenance.from_dict(value)
        for fact_id in store._confidence:
            store._provenance.setdefault(fact_id, Provenance(SourceKind.INNATE))
        for key, value in data.get("last_accessed", {}).items():
            if int(key) in store._confidence:
                store._last_accessed[int(key)] = float(value)
        for key, value in data.get("misinformation", {}).items():
            if int(key) in store._confidence:
                store._misinformation[int(key)] = value
        for entity_id, value in data.get("trust", {}).items():
            store.set_trust(entity_id, float(value))
        return store
