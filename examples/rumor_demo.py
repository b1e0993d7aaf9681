#!/usr/bin/env python3
"""
Rumors and Misinformation Demo

This script demonstrates how LoreFlow keeps each NPC's knowledge separate:
1. Agents seeded from scopes and graph traversal know different things
2. Ambiguous references are offered back for clarification
3. A distorted belief spreads from one agent to another
4. Witnessing the truth corrects it
"""

import sys
import os
from typing import Any

# Add the parent directory to sys.path to import the loreflow module
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from loreflow import LoreFlowManager, FactGraphStore, SeedConfig, ConfigBuilder
from loreflow.models import QueryContext

ENTITIES = {
    "market": {"display": "Market Square", "primary_aliases": ["market"]},
    "docks": {"display": "The Docks", "primary_aliases": ["docks", "harbour"]},
    "baker": {"display": "Marta", "ambiguous_aliases": ["baker"], "location": "market"},
    "fishmonger": {"display": "Olek", "ambiguous_aliases": ["fishmonger"], "location": "docks"},
    "dock_baker": {"display": "Pell", "ambiguous_aliases": ["baker"], "location": "docks"},
    "duke": {"display": "Duke Renwick", "primary_aliases": ["duke"]},
}

FACTS = [
    {"fact_id": 1, "subject": "baker", "predicate": "sells_bread_at", "object": "market",
     "tags": ["trade"], "access": "public"},
    {"fact_id": 2, "subject": "dock_baker", "predicate": "bakes_for", "object": "docks",
     "tags": ["trade"], "access": "local"},
    {"fact_id": 3, "subject": "duke", "predicate": "returns_on", "object_literal": "the first frost",
     "tags": ["royalty", "news"], "access": "public"},
    {"fact_id": 4, "subject": "fishmonger", "predicate": "works_at", "object": "docks",
     "tags": ["trade"], "access": "public"},
]

SEEDS = {
    "scopes": {
        "townsfolk": {"include_access": ["public"], "base_strength": 0.7},
    },
    "npc_seeds": {
        "marta": {"identity_entity": "baker", "scopes": ["townsfolk"]},
        "olek": {
            "identity_entity": "fishmonger",
            "graph_seeds": [{"start_entity": "docks", "max_depth": 1, "base_strength": 0.9}],
            "misinformation": {"3": {"replace_object_literal": "never", "strength": 0.9}},
        },
    },
}


def print_separator(title: str):
    """Print a section separator with a title."""
    print("\n" + "=" * 80)
    print(f" {title} ".center(80, "="))
    print("=" * 80 + "\n")


def print_result(title: str, data: Any):
    """Print results in a formatted way."""
    print(f"\n-- {title} --")
    if isinstance(data, dict):
        for key, value in data.items():
            print(f"  {key}: {value}")
    else:
        print(f"  {data}")
    print()


def demonstrate_private_knowledge(manager: LoreFlowManager):
    """Show that two agents answer the same question differently."""
    print_separator("1. Private Knowledge")

    marta = manager.create_agent("marta")
    olek = manager.create_agent("olek")

    for agent in (marta, olek):
        result = manager.query(agent, "duke")
        print_result(f"{agent.agent_id} on the duke", result.to_dict())

    return marta, olek


def demonstrate_disambiguation(manager: LoreFlowManager, olek):
    """Show an ambiguous reference being clarified."""
    print_separator("2. Disambiguation")

    context = QueryContext()
    result = manager.query(olek, "baker", context)
    print_result("Olek asked about 'baker'", result.to_dict())

    if result.requires_disambiguation:
        answer = manager.resolve_disambiguation(olek, "Pell", context)
        print_result("After clarifying 'Pell'", answer.to_dict())


def demonstrate_rumor(manager: LoreFlowManager, marta, olek):
    """Show misinformation spreading and being corrected."""
    print_separator("3. Rumor Spreading")

    marta.beliefs.set_trust("fishmonger", 0.9)
    marta.beliefs.forget(3)
    learned = manager.tell(marta, olek, 3)
    print_result("Marta hears from Olek", {"learned": learned})
    print_result("Marta on the duke", manager.query(marta, "duke").to_dict())

    print_separator("4. Witnessing the Truth")
    manager.witness(marta, 3, "duke_arrival")
    print_result("Marta on the duke", manager.query(marta, "duke").to_dict())
    print_result("Stats", manager.get_stats(marta))


def main():
    config = ConfigBuilder().with_debug(verbose_logging=False).build()
    manager = LoreFlowManager(FactGraphStore(ENTITIES, FACTS), SeedConfig.from_dict(SEEDS), config)

    marta, olek = demonstrate_private_knowledge(manager)
    demonstrate_disambiguation(manager, olek)
    demonstrate_rumor(manager, marta, olek)


if __name__ == "__main__":
    main()
