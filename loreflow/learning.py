"""
LoreFlow Learning module.

Pure functions for how strongly an agent adopts new information and how
beliefs strengthen and fade, plus the learning events that apply them to a
belief store:

- ``tell_fact``: trust-weighted hearsay from a speaker
- ``share_belief``: one agent passing its own belief (and any distortion) on
- ``witness_fact``: direct first-hand observation
- ``observe_environment``: reading a sign, overhearing a crier, and so on
"""

import logging
from typing import Optional, Union

import numpy as np

from .models import SourceKind

logger = logging.getLogger('loreflow.learning')

HEARSAY_DECAY = 0.7
LEARN_THRESHOLD = 0.1
REINFORCE_FRACTION = 0.2
MAX_DECAY_PROTECTION = 0.3
PROTECTION_PER_REINFORCEMENT = 0.05

Number = Union[float, np.ndarray]


def clamp(value: float, low: float = 0.0, high: float = 1.0) -> float:
    return max(low, min(high, value))


def hearsay_penalty(generation: int, base: float = HEARSAY_DECAY) -> float:
    """
    Penalty for information that passed through ``generation`` retellings.

    Args:
        generation: Retellings between the listener and the original witness
        base: Per-retelling retention factor

    Returns:
        1.0 for first-hand information, ``base ** generation`` otherwise
    """
    if generation <= 0:
        return 1.0
    return base ** generation


def social_learning_strength(trust: float, speaker_confidence: float, generation: int,
                             base: float = HEARSAY_DECAY) -> float:
    """Strength with which a listener adopts what a speaker tells them."""
    strength = trust * speaker_confidence * hearsay_penalty(generation, base)
    return max(0.0, strength)


def reinforce(current: float, amount: float) -> float:
    """Diminishing-returns accumulation toward 1.0."""
    return clamp(current + amount * (1.0 - current))


def decay(elapsed: Number, rate: float, reinforcements: Number) -> Number:
    """
    Retention factor after ``elapsed`` time units.

    Reinforced beliefs fade more slowly; the protection is capped. Works
    element-wise when given numpy arrays.

    Args:
        elapsed: Time since the belief was last refreshed
        rate: Exponential decay rate
        reinforcements: Times the belief was reinforced

    Returns:
        Retention factor in [0, 1]
    """
    protection = np.minimum(MAX_DECAY_PROTECTION, np.multiply(reinforcements, PROTECTION_PER_REINFORCEMENT))
    retention = np.clip(np.exp(-rate * np.asarray(elapsed, dtype=float)) + protection, 0.0, 1.0)
    if np.ndim(retention) == 0:
        return float(retention)
    return retention


def tell_fact(beliefs, fact_id: int, speaker_id: str, speaker_confidence: float, generation: int,
              source_kind: SourceKind = SourceKind.TOLD, threshold: float = LEARN_THRESHOLD,
              base: float = HEARSAY_DECAY, now: Optional[float] = None) -> bool:
    """
    Let an agent hear a fact from a speaker.

    The listener's trust in the speaker, the speaker's confidence and the
    hearsay generation set the strength. Below ``threshold`` nothing changes.

    Args:
        beliefs: Listener's BeliefStore
        fact_id: Fact being told
        speaker_id: Entity id of the speaker, used for the trust lookup
        speaker_confidence: How sure the speaker sounds, 0-1
        generation: Hearsay generation of what the listener now holds
        source_kind: Provenance recorded for a newly learned belief
        threshold: Minimum strength to adopt the belief
        base: Per-retelling hearsay retention
        now: Timestamp override

    Returns:
        True if the fact was newly learned, False if rejected or reinforced
    """
    strength = social_learning_strength(beliefs.get_trust(speaker_id), speaker_confidence, generation, base)
    if strength < threshold:
        logger.debug(
            f"{beliefs.agent_id} rejected fact {fact_id} from {speaker_id}: strength {strength:.3f} < {threshold}"
        )
        return False
    return beliefs.learn(fact_id, strength, source_kind, speaker_id, generation, now=now)


def share_belief(speaker_beliefs, listener_beliefs, fact_id: int, speaker_id: Optional[str] = None,
                 threshold: float = LEARN_THRESHOLD, base: float = HEARSAY_DECAY,
                 now: Optional[float] = None) -> bool:
    """
    Pass one agent's belief on to another.

    The listener receives the speaker's version of the fact: a distorted
    belief travels with its distortion when the listener learns it fresh.

    Args:
        speaker_beliefs: Speaker's BeliefStore
        listener_beliefs: Listener's BeliefStore
        fact_id: Fact being shared
        speaker_id: Entity id the listener knows the speaker as; defaults to
            the speaker store's agent id
        threshold: Minimum strength to adopt the belief
        base: Per-retelling hearsay retention
        now: Timestamp override

    Returns:
        True if the listener newly learned the fact
    """
    speaker_confidence = speaker_beliefs.confidence(fact_id)
    if speaker_confidence <= 0.0:
        return False

    provenance = speaker_beliefs.provenance(fact_id)
    generation = (provenance.hearsay_generation if provenance else 0) + 1
    source_kind = SourceKind.TOLD if generation == 1 else SourceKind.RUMOR
    speaker_id = speaker_id or speaker_beliefs.agent_id

    learned = tell_fact(listener_beliefs, fact_id, speaker_id, speaker_confidence, generation,
                        source_kind=source_kind, threshold=threshold, base=base, now=now)
    distortion = speaker_beliefs.misinformation(fact_id)
    if learned and distortion is not None:
        listener_beliefs.set_misinformation(fact_id, distortion)
    return learned


def witness_fact(beliefs, fact_id: int, event_id: Optional[str] = None, strength: float = 1.0,
                 now: Optional[float] = None) -> bool:
    """
    Record first-hand observation of a fact.

    Seeing the truth replaces any distorted version the agent held.

    Returns:
        True if the fact was newly learned
    """
    beliefs.clear_misinformation(fact_id)
    return beliefs.learn(fact_id, strength, SourceKind.WITNESSED, event_id, 0, now=now)


def observe_environment(beliefs, fact_id: int, source_id: str, clarity: float,
                        threshold: float = LEARN_THRESHOLD, now: Optional[float] = None) -> bool:
    """
    Learn a fact from the surroundings (a notice board, a map, a town crier).

    Args:
        beliefs: Observer's BeliefStore
        fact_id: Fact conveyed
        source_id: Identifier of the environmental source
        clarity: How clearly the source conveys the fact, 0-1
        threshold: Minimum clarity to adopt the belief
        now: Timestamp override

    Returns:
        True if the fact was newly learned
    """
    if clarity < threshold:
        return False
    return beliefs.learn(fact_id, clarity, SourceKind.ENVIRONMENTAL, source_id, 0, now=now)
