import networkx as nx
import pytest

from loreflow.entity_index import EntityIndex
from loreflow.exceptions import ConfigError
from loreflow.graph_store import FactGraphStore, render_content
from loreflow.models import AccessTier


class TestRenderContent:
    """Tests for believed-content rendering"""

    def test_render(self):
        """Predicate underscores become spaces"""
        assert render_content("Gregor", "is_located_in", "Forge Quarter") == "Gregor | is located in | Forge Quarter"


class TestFactGraphStore:
    """Tests for the canonical fact graph"""

    def test_load(self, graph_store):
        """Entities and facts are loaded and rendered"""
        assert graph_store.has_entity("king")
        assert graph_store.entity("blacksmith_forge").location == "forge_quarter"
        assert graph_store.entity("blacksmith_forge").ambiguous_aliases == ("blacksmith",)

        fact = graph_store.fact(1)
        assert fact.raw_content == "Gregor | is located in | Forge Quarter"
        assert fact.access is AccessTier.PUBLIC

        literal = graph_store.fact(4)
        assert literal.object_entity is None
        assert literal.raw_content == "King Aldric | is named | Aldric III"

        assert graph_store.fact(999) is None
        assert graph_store.entity("nobody") is None

    def test_defaults(self, graph_store):
        """Access defaults to public and trust requirement to zero"""
        store = FactGraphStore(
            {"a": {"display": "A"}},
            [{"fact_id": 1, "subject": "a", "predicate": "is", "object_literal": "here"}],
        )
        fact = store.fact(1)
        assert fact.access is AccessTier.PUBLIC
        assert fact.requires_trust == 0.0
        assert fact.tags == ()

    def test_facts_ascending(self, graph_store):
        """Facts are returned in ascending id order"""
        ids = [fact.fact_id for fact in graph_store.facts()]
        assert ids == sorted(ids)
        assert ids[0] == 1 and ids[-1] == 12

    def test_graph_is_frozen(self, graph_store):
        """The underlying graph cannot be mutated after load"""
        assert nx.is_frozen(graph_store.graph)
        with pytest.raises(nx.NetworkXError):
            graph_store.graph.add_node("intruder")

    def test_only_entity_objects_are_edges(self, graph_store):
        """Literal-object facts are not graph edges"""
        assert graph_store.graph.has_edge("captain", "city_watch")
        assert graph_store.get_stats()["edge_count"] == 6

    def test_edges_touching(self, graph_store):
        """Incident edges in both directions, ascending by fact id"""
        assert graph_store.edges_touching("sergeant") == [
            (6, "serves_in", "city_watch"),
            (7, "reports_to", "recruit"),
        ]
        assert graph_store.edges_touching("king") == []
        assert graph_store.edges_touching("nobody") == []

    def test_stats(self, graph_store):
        """Counts by access tier"""
        stats = graph_store.get_stats()
        assert stats["entity_count"] == 13
        assert stats["fact_count"] == 12
        assert stats["facts_by_access"]["secret"] == 1
        assert stats["facts_by_access"]["self_only"] == 1

    @pytest.mark.parametrize("row, message", [
        ({"fact_id": 1, "subject": "ghost", "predicate": "is", "object_literal": "x"}, "unknown subject"),
        ({"fact_id": 1, "subject": "a", "predicate": "is", "object": "ghost"}, "unknown object"),
        ({"fact_id": 1, "subject": "a", "predicate": "is"}, "exactly one"),
        ({"fact_id": 1, "subject": "a", "predicate": "is", "object": "a", "object_literal": "x"}, "exactly one"),
        ({"fact_id": 1, "subject": "a", "object_literal": "x"}, "no predicate"),
        ({"fact_id": 1, "subject": "a", "predicate": "is", "object_literal": "x", "access": "hidden"}, "access tier"),
        ({"fact_id": 1, "subject": "a", "predicate": "is", "object_literal": "x", "requires_trust": 1.5},
         "requires_trust"),
        ({"fact_id": 1, "subject": "a", "predicate": "is", "object_literal": "x", "owner": "ghost"},
         "unknown owner"),
        ({"fact_id": "one", "subject": "a", "predicate": "is", "object_literal": "x"}, "fact_id"),
    ])
    def test_invalid_fact_rows(self, row, message):
        """Malformed facts fail the load"""
        with pytest.raises(ConfigError, match=message):
            FactGraphStore({"a": {"display": "A"}}, [row])

    def test_fact_ids_must_increase(self):
        """Duplicate or decreasing fact ids are rejected"""
        rows = [
            {"fact_id": 2, "subject": "a", "predicate": "is", "object_literal": "x"},
            {"fact_id": 2, "subject": "a", "predicate": "was", "object_literal": "y"},
        ]
        with pytest.raises(ConfigError, match="increasing"):
            FactGraphStore({"a": {"display": "A"}}, rows)

    def test_entity_without_display(self):
        """Every entity needs a display name"""
        with pytest.raises(ConfigError, match="display"):
            FactGraphStore({"a": {"primary_aliases": ["a"]}}, [])

    def test_bad_alias_list(self):
        """Alias lists must be lists of strings"""
        with pytest.raises(ConfigError):
            FactGraphStore({"a": {"display": "A", "primary_aliases": "a"}}, [])

    def test_self_only_without_owner_warns(self, caplog):
        """A self_only fact nobody owns is loaded with a warning"""
        rows = [{"fact_id": 1, "subject": "a", "predicate": "is", "object_literal": "x", "access": "self_only"}]
        with caplog.at_level("WARNING", logger="loreflow"):
            store = FactGraphStore({"a": {"display": "A"}}, rows)
        assert store.has_fact(1)
        assert "no owner" in caplog.text


class TestEntityIndex:
    """Tests for the entity/fact reverse index"""

    def test_facts_for_entity(self, entity_index):
        """Facts touching an entity as subject or object, ascending"""
        assert entity_index.facts_for_entity("recruit") == (7, 8, 9)
        assert entity_index.facts_for_entity("sergeant") == (6, 7)
        assert entity_index.facts_for_entity("city_watch") == (3, 6)
        assert entity_index.facts_for_entity("nobody") == ()

    def test_entities_for_fact(self, entity_index):
        """Subject first, then object entity"""
        assert entity_index.entities_for_fact(7) == ("recruit", "sergeant")
        assert entity_index.entities_for_fact(4) == ("king",)
        assert entity_index.entities_for_fact(999) == ()

    def test_self_loop_listed_once(self):
        """A fact relating an entity to itself touches it once"""
        store = FactGraphStore(
            {"a": {"display": "A"}},
            [{"fact_id": 1, "subject": "a", "predicate": "admires", "object": "a"}],
        )
        index = EntityIndex(store)
        assert index.facts_for_entity("a") == (1,)
        assert index.entities_for_fact(1) == ("a",)

    def test_touches(self, entity_index):
        assert entity_index.touches("captain", 3)
        assert not entity_index.touches("king", 3)
