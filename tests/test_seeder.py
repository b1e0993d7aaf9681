import pytest

from loreflow.entity_index import EntityIndex
from loreflow.exceptions import ConfigError
from loreflow.graph_store import FactGraphStore
from loreflow.models import SourceKind
from loreflow.seeder import GraphSeed, KnowledgeSeeder, SeedConfig


class TestSeedConfig:
    """Tests for seed configuration parsing"""

    def test_parse(self, seed_config):
        assert seed_config.scopes["local_knowledge"].extends == "townsfolk"
        assert seed_config.scopes["underworld"].requires_trust_override == 0.5
        gossip = seed_config.npc_seeds["gossip"]
        assert gossip.misinformation[4].replace_object_literal == "Aldric the Wise"
        assert gossip.misinformation[4].strength == 0.8
        watchman = seed_config.npc_seeds["watchman"]
        assert watchman.graph_seeds[0].max_depth == 2

    def test_graph_seed_aliases(self):
        seed = GraphSeed.from_dict({"entity": "king", "depth": 3}, "seed")
        assert seed.start_entity == "king"
        assert seed.max_depth == 3

    @pytest.mark.parametrize("data", [
        {"scopes": {"bad": {"base_strength": 1.5}}},
        {"scopes": {"bad": {"include_access": ["hidden"]}}},
        {"scopes": {"bad": {"include_tags": "military"}}},
        {"npc_seeds": {"x": {"graph_seeds": [{"max_depth": 1}]}}},
        {"npc_seeds": {"x": {"graph_seeds": [{"start_entity": "king", "max_depth": -1}]}}},
        {"npc_seeds": {"x": {"misinformation": {"four": {"replace_object_literal": "y"}}}}},
        {"npc_seeds": {"x": {"misinformation": {"4": {"strength": 0.5}}}}},
        {"scopes": {"bad": {"extends": ["base"]}}},
        {"npc_seeds": {"x": {"identity_entity": ["captain"]}}},
        {"npc_seeds": ["x"]},
    ])
    def test_invalid(self, data):
        with pytest.raises(ConfigError):
            SeedConfig.from_dict(data)


class TestScopes:
    """Tests for scope template seeding"""

    def test_access_filter(self, seeder):
        beliefs = seeder.seed("innkeeper")
        assert beliefs.fact_ids() == [1, 3, 4, 6, 7, 8, 9, 10]
        assert all(conf == 0.7 for conf in beliefs.confidence_map().values())
        provenance = beliefs.provenance(1)
        assert provenance.source_kind is SourceKind.INNATE
        assert provenance.source_id == "scope:townsfolk"

    def test_inheritance(self, seeder):
        """A scope applies its parent's rules before its own"""
        beliefs = seeder.seed("shopkeeper")
        assert beliefs.confidence(1) == 0.7
        assert beliefs.confidence(2) == 0.5
        assert beliefs.confidence(12) == 0.5
        assert 5 not in beliefs

    def test_trust_gate(self, seeder):
        """Facts requiring trust are skipped unless the scope overrides it"""
        assert 5 not in seeder.seed("beggar")
        informant = seeder.seed("informant")
        assert informant.confidence(5) == 0.9

    def test_unknown_scope_skipped(self, seeder, caplog):
        with caplog.at_level("WARNING", logger="loreflow.seeder"):
            beliefs = seeder.seed("newcomer")
        assert "no_such_scope" in caplog.text
        assert beliefs.fact_ids() == [1, 3, 4, 6, 7, 8, 9, 10]

    def test_unknown_parent_scope(self, graph_store, entity_index, caplog):
        config = SeedConfig.from_dict({
            "scopes": {"child": {"extends": "missing", "include_access": ["local"], "base_strength": 0.4}},
            "npc_seeds": {"x": {"scopes": ["child"]}},
        })
        seeder = KnowledgeSeeder(graph_store, entity_index, config)
        with caplog.at_level("WARNING", logger="loreflow.seeder"):
            beliefs = seeder.seed("x")
        assert beliefs.fact_ids() == [2, 12]
        assert "missing" in caplog.text

    def test_inheritance_cycle(self, graph_store, entity_index):
        config = SeedConfig.from_dict({
            "scopes": {"a": {"extends": "b"}, "b": {"extends": "a"}},
            "npc_seeds": {"x": {"scopes": ["a"]}},
        })
        seeder = KnowledgeSeeder(graph_store, entity_index, config)
        with pytest.raises(ConfigError, match="cycle"):
            seeder.seed("x")

    def test_seed_entities(self, graph_store, entity_index):
        """Entity seeding grants every fact touching the entity"""
        config = SeedConfig.from_dict({
            "scopes": {"recruits": {"seed_entities": ["recruit", "ghost"], "base_strength": 0.6}},
            "npc_seeds": {"x": {"scopes": ["recruits"]}},
        })
        beliefs = KnowledgeSeeder(graph_store, entity_index, config).seed("x")
        assert beliefs.fact_ids() == [7, 8, 9]

    def test_stronger_source_wins(self, graph_store, entity_index):
        """Overlapping scopes keep the maximum strength"""
        config = SeedConfig.from_dict({
            "scopes": {
                "weak": {"include_access": ["public"], "base_strength": 0.3},
                "strong": {"include_tags": ["royalty"], "base_strength": 0.9},
            },
            "npc_seeds": {"x": {"scopes": ["strong", "weak"]}},
        })
        beliefs = KnowledgeSeeder(graph_store, entity_index, config).seed("x")
        assert beliefs.confidence(4) == 0.9
        assert beliefs.confidence(1) == 0.3


class TestGraphSeeds:
    """Tests for breadth-first graph seeding"""

    def test_depth_decay(self, seeder):
        """Strength decays by 0.8 per hop; facts beyond max depth are not seeded"""
        beliefs = seeder.seed("watchman")
        assert beliefs.confidence(3) == pytest.approx(0.85)
        assert beliefs.confidence(6) == pytest.approx(0.85)
        assert beliefs.confidence(7) == pytest.approx(0.68)
        assert beliefs.confidence(8) == pytest.approx(0.544)
        assert beliefs.confidence(9) == pytest.approx(0.544)
        assert 10 not in beliefs
        assert beliefs.provenance(3).source_id == "graph:city_watch"

    def test_self_only_facts(self, seeder):
        """Private facts reach only their owner"""
        assert 11 not in seeder.seed("watchman")
        captain = seeder.seed("captain_mira")
        assert captain.confidence(11) == pytest.approx(0.68)

    def test_predicate_filters(self, graph_store, entity_index):
        config = SeedConfig.from_dict({"npc_seeds": {"x": {"graph_seeds": [{
            "start_entity": "recruit",
            "max_depth": 1,
            "base_strength": 1.0,
            "include_predicates": ["has_nickname", "reports_to"],
            "traverse_predicates": ["reports_to"],
        }]}}})
        beliefs = KnowledgeSeeder(graph_store, entity_index, config).seed("x")
        assert beliefs.confidence(7) == 1.0
        assert beliefs.confidence(8) == 1.0
        assert 9 not in beliefs
        assert beliefs.confidence(6) == pytest.approx(0.8)

    def test_unknown_start_entity(self, graph_store, entity_index, caplog):
        config = SeedConfig.from_dict({"npc_seeds": {"x": {"graph_seeds": [{"start_entity": "ghost"}]}}})
        with caplog.at_level("WARNING", logger="loreflow.seeder"):
            beliefs = KnowledgeSeeder(graph_store, entity_index, config).seed("x")
        assert len(beliefs) == 0
        assert "ghost" in caplog.text

    def test_shortest_path_depth(self):
        """An entity reached by two paths takes its depth from the shorter one"""
        store = FactGraphStore(
            {name: {"display": name.upper()} for name in ("a", "b", "c", "d", "e", "f")},
            [
                {"fact_id": 1, "subject": "a", "predicate": "knows", "object": "b"},
                {"fact_id": 2, "subject": "b", "predicate": "knows", "object": "c"},
                {"fact_id": 3, "subject": "a", "predicate": "knows", "object": "c"},
                {"fact_id": 4, "subject": "c", "predicate": "knows", "object": "d"},
                {"fact_id": 5, "subject": "d", "predicate": "is_called", "object_literal": "Dee"},
                {"fact_id": 6, "subject": "d", "predicate": "knows", "object": "e"},
                {"fact_id": 7, "subject": "e", "predicate": "knows", "object": "f"},
            ],
        )
        config = SeedConfig.from_dict({"npc_seeds": {"x": {"graph_seeds": [
            {"start_entity": "a", "max_depth": 2, "base_strength": 1.0},
        ]}}})
        beliefs = KnowledgeSeeder(store, EntityIndex(store), config).seed("x")

        # c is one hop from a even though a longer path through b exists
        assert beliefs.confidence(2) == pytest.approx(0.8)
        assert beliefs.confidence(3) == pytest.approx(1.0)
        assert beliefs.confidence(4) == pytest.approx(0.8)
        # d is therefore depth 2, not 3
        assert beliefs.confidence(5) == pytest.approx(0.64)
        assert beliefs.confidence(6) == pytest.approx(0.64)
        # e is past max depth and is not expanded
        assert 7 not in beliefs


class TestMisinformationAndExclusion:
    """Tests for distortions and excluded tags"""

    def test_misinformation(self, seeder, graph_store):
        beliefs = seeder.seed("gossip")
        assert beliefs.fact_ids() == [4]
        assert beliefs.misinformation(4) == "King Aldric | is named | Aldric the Wise"
        assert beliefs.recall(4, graph_store) == ("King Aldric | is named | Aldric the Wise", 0.8)

    def test_misinformation_overrides_scope_strength(self, graph_store, entity_index):
        config = SeedConfig.from_dict({
            "scopes": {"townsfolk": {"include_access": ["public"], "base_strength": 0.9}},
            "npc_seeds": {"x": {
                "scopes": ["townsfolk"],
                "misinformation": {"4": {"replace_object_literal": "Aldric the Wise", "strength": 0.4}},
            }},
        })
        beliefs = KnowledgeSeeder(graph_store, entity_index, config).seed("x")
        assert beliefs.confidence(4) == 0.4
        assert beliefs.provenance(4).source_id == "misinformation"

    def test_misinformation_unknown_fact(self, graph_store, entity_index, caplog):
        config = SeedConfig.from_dict({"npc_seeds": {"x": {
            "misinformation": {"999": {"replace_object_literal": "nothing"}},
        }}})
        with caplog.at_level("WARNING", logger="loreflow.seeder"):
            beliefs = KnowledgeSeeder(graph_store, entity_index, config).seed("x")
        assert len(beliefs) == 0
        assert "999" in caplog.text

    def test_exclusion(self, seeder):
        """Excluded tags are removed after every other pass"""
        beliefs = seeder.seed("pacifist")
        assert beliefs.fact_ids() == [1, 4, 8, 10]

    def test_exclusion_removes_misinformation(self, graph_store, entity_index):
        config = SeedConfig.from_dict({"npc_seeds": {"x": {
            "misinformation": {"4": {"replace_object_literal": "Aldric the Wise", "strength": 0.8}},
            "exclude_tags": ["royalty"],
        }}})
        beliefs = KnowledgeSeeder(graph_store, entity_index, config).seed("x")
        assert 4 not in beliefs
        assert beliefs.misinformation(4) is None


class TestSeedingContract:
    """Tests for determinism, isolation and missing agents"""

    def test_idempotent(self, seeder):
        for agent_id in ("innkeeper", "watchman", "gossip", "shopkeeper"):
            first = seeder.seed(agent_id)
            second = seeder.seed(agent_id)
            assert first.confidence_map() == second.confidence_map()
            assert first.misinformation_map() == second.misinformation_map()

    def test_stores_are_independent(self, seeder):
        first = seeder.seed("innkeeper")
        second = seeder.seed("innkeeper")
        first.forget(1)
        first.set_misinformation(4, "changed")
        assert 1 in second
        assert second.misinformation(4) is None

    def test_unknown_agent(self, seeder):
        with pytest.raises(ConfigError, match="nobody"):
            seeder.seed("nobody")

    def test_unknown_agent_allowed_empty(self, seeder):
        beliefs = seeder.seed("nobody", allow_empty=True)
        assert len(beliefs) == 0
        assert beliefs.agent_id == "nobody"

    def test_explicit_scope_config(self, seeder):
        override = SeedConfig.from_dict({"npc_seeds": {"innkeeper": {}}})
        assert len(seeder.seed("innkeeper", scope_config=override)) == 0

    def test_identity_entity(self, seeder):
        assert seeder.seed("watchman").identity_entity == "sergeant"
