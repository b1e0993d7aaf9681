import copy

import pytest

from loreflow.config import LoreFlowConfig
from loreflow.entity_index import EntityIndex
from loreflow.graph_store import FactGraphStore
from loreflow.manager import LoreFlowManager
from loreflow.resolver import EntityResolver
from loreflow.adapter import KnowledgeAdapter
from loreflow.seeder import KnowledgeSeeder, SeedConfig

FIXED_TIME = 1000.0

ENTITIES = {
    "forge_quarter": {"display": "Forge Quarter", "primary_aliases": ["forge quarter"]},
    "west_gate": {"display": "West Gate", "primary_aliases": ["west gate"]},
    "blacksmith_forge": {
        "display": "Gregor",
        "qualified_aliases": ["forge blacksmith"],
        "ambiguous_aliases": ["blacksmith"],
        "location": "forge_quarter",
    },
    "blacksmith_west": {
        "display": "Hilda",
        "qualified_aliases": ["west blacksmith"],
        "ambiguous_aliases": ["blacksmith"],
        "location": "west_gate",
    },
    "king": {"display": "King Aldric", "primary_aliases": ["king"]},
    "smuggler_den": {"display": "Smuggler Den", "primary_aliases": ["smuggler den"]},
    "city_watch": {"display": "City Watch", "primary_aliases": ["city watch", "watch"]},
    "captain": {"display": "Captain Mira"},
    "sergeant": {"display": "Sergeant Bram"},
    "recruit": {"display": "Recruit Tom"},
    "training_yard": {"display": "Training Yard"},
    "castle_guard": {"display": "Sir Osric", "ambiguous_aliases": ["guard"]},
    "watch_guard": {
        "display": "Corporal Venn",
        "ambiguous_aliases": ["guard"],
        "parent_concept": "city_watch",
    },
}

FACTS = [
    {"fact_id": 1, "subject": "blacksmith_forge", "predicate": "is_located_in", "object": "forge_quarter",
     "tags": ["location"], "access": "public"},
    {"fact_id": 2, "subject": "blacksmith_west", "predicate": "works_at", "object": "west_gate",
     "tags": ["trade"], "access": "local"},
    {"fact_id": 3, "subject": "captain", "predicate": "commands", "object": "city_watch",
     "tags": ["military"], "access": "public"},
    {"fact_id": 4, "subject": "king", "predicate": "is_named", "object_literal": "Aldric III",
     "tags": ["royalty"], "access": "public"},
    {"fact_id": 5, "subject": "smuggler_den", "predicate": "is_hidden_under", "object_literal": "the old tannery",
     "tags": ["secret", "smuggling"], "access": "secret", "requires_trust": 0.3},
    {"fact_id": 6, "subject": "sergeant", "predicate": "serves_in", "object": "city_watch",
     "tags": ["military"], "access": "public"},
    {"fact_id": 7, "subject": "recruit", "predicate": "reports_to", "object": "sergeant",
     "tags": ["military"], "access": "public"},
    {"fact_id": 8, "subject": "recruit", "predicate": "has_nickname", "object_literal": "Tadpole",
     "tags": ["gossip"], "access": "public"},
    {"fact_id": 9, "subject": "recruit", "predicate": "trains_at", "object": "training_yard",
     "tags": ["military"], "access": "public"},
    {"fact_id": 10, "subject": "training_yard", "predicate": "is_near", "object_literal": "the river",
     "tags": ["location"], "access": "public"},
    {"fact_id": 11, "subject": "captain", "predicate": "fears", "object_literal": "heights",
     "tags": ["personal"], "access": "self_only", "owner": "captain"},
    {"fact_id": 12, "subject": "castle_guard", "predicate": "guards", "object_literal": "the royal gate",
     "tags": ["military"], "access": "local"},
]

SEEDS = {
    "scopes": {
        "townsfolk": {"include_access": ["public"], "base_strength": 0.7},
        "local_knowledge": {"extends": "townsfolk", "include_access": ["local"], "base_strength": 0.5},
        "traveller": {"include_access": ["public", "local"], "base_strength": 0.6},
        "street_secrets": {"include_access": ["public", "secret"], "base_strength": 0.6},
        "underworld": {"include_access": ["secret"], "base_strength": 0.9, "requires_trust_override": 0.5},
    },
    "npc_seeds": {
        "innkeeper": {"scopes": ["townsfolk"]},
        "gossip": {
            "misinformation": {"4": {"replace_object_literal": "Aldric the Wise", "strength": 0.8}},
        },
        "stranger": {},
        "traveller": {"scopes": ["traveller"]},
        "beggar": {"scopes": ["street_secrets"]},
        "informant": {"scopes": ["underworld"]},
        "watchman": {
            "identity_entity": "sergeant",
            "graph_seeds": [{"start_entity": "city_watch", "max_depth": 2, "base_strength": 0.85}],
        },
        "captain_mira": {
            "identity_entity": "captain",
            "graph_seeds": [{"start_entity": "city_watch", "max_depth": 2, "base_strength": 0.85}],
        },
        "shopkeeper": {"scopes": ["local_knowledge"]},
        "pacifist": {"scopes": ["townsfolk"], "exclude_tags": ["military"]},
        "newcomer": {"scopes": ["townsfolk", "no_such_scope"]},
    },
}


@pytest.fixture
def entity_table():
    return copy.deepcopy(ENTITIES)


@pytest.fixture
def fact_table():
    return copy.deepcopy(FACTS)


@pytest.fixture
def seed_dict():
    return copy.deepcopy(SEEDS)


@pytest.fixture
def clock():
    return lambda: FIXED_TIME


@pytest.fixture
def graph_store(entity_table, fact_table):
    return FactGraphStore(entity_table, fact_table)


@pytest.fixture
def entity_index(graph_store):
    return EntityIndex(graph_store)


@pytest.fixture
def seed_config(seed_dict):
    return SeedConfig.from_dict(seed_dict)


@pytest.fixture
def seeder(graph_store, entity_index, seed_config, clock):
    return KnowledgeSeeder(graph_store, entity_index, seed_config=seed_config, clock=clock)


@pytest.fixture
def resolver(graph_store, entity_index):
    return EntityResolver(graph_store, entity_index)


@pytest.fixture
def adapter(graph_store, entity_index, resolver):
    return KnowledgeAdapter(graph_store, entity_index, resolver)


@pytest.fixture
def manager(graph_store, seed_config, clock):
    return LoreFlowManager(graph_store, seed_config, LoreFlowConfig(), clock=clock)
