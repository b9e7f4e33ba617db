"""Tests for the topology provider facade."""

import logging
import threading

import pytest
from topograph.config import load_settings
from topograph.topo.edges import EdgeStore
from topograph.topo.provider import (
    AbstractTopologyProvider, NamespaceMismatchError, TopologyProviderInfo,
)
from topograph.topo.refs import EdgeRef, Vertex, VertexRef
from topograph.topo.selection import ContentType, IdSelection, Selection
from topograph.topo.vertices import VertexStore


class StaticTopologyProvider(AbstractTopologyProvider):
    """Provider whose refresh is a no-op."""

    def refresh(self):
        pass


def _provider(namespace="nodes"):
    return StaticTopologyProvider(namespace, settings=load_settings())


def _triangle():
    # A - B - C, edges e0(A-B), e1(B-C)
    provider = _provider()
    a = Vertex("nodes", "A", node_id=1)
    b = Vertex("nodes", "B", node_id=2)
    c = Vertex("nodes", "C")
    provider.add_vertices(a, b, c)
    provider.connect_vertices(a, b)
    provider.connect_vertices(b, c)
    return provider, a, b, c


class TestConstruction:
    def test_namespace_from_argument(self):
        provider = _provider("nodes")
        assert provider.namespace == "nodes"
        assert provider.vertex_store.namespace == "nodes"
        assert provider.edge_store.namespace == "nodes"

    def test_namespace_mismatch_rejected(self):
        with pytest.raises(NamespaceMismatchError):
            StaticTopologyProvider(
                vertex_store=VertexStore("nodes"),
                edge_store=EdgeStore("links"),
                settings=load_settings(),
            )

    def test_namespace_mismatch_is_value_error(self):
        with pytest.raises(ValueError):
            StaticTopologyProvider(
                "nodes", edge_store=EdgeStore("links"), settings=load_settings()
            )

    def test_empty_stores_are_kept(self):
        vertices = VertexStore("nodes")
        assert len(vertices) == 0
        provider = StaticTopologyProvider(vertex_store=vertices, settings=load_settings())
        provider.add_vertices(Vertex("nodes", "v1"))
        assert vertices.contains_id("v1")

    def test_shared_stores(self):
        vertices, edges = VertexStore("nodes"), EdgeStore("nodes")
        provider = StaticTopologyProvider(
            vertex_store=vertices, edge_store=edges, settings=load_settings()
        )
        assert provider.vertex_store is vertices
        assert provider.edge_store is edges

    def test_abstract_refresh(self):
        with pytest.raises(TypeError):
            AbstractTopologyProvider("nodes")

    def test_provider_info_defaults(self):
        info = _provider().topology_provider_info
        assert info == TopologyProviderInfo()
        assert info.name == "Undefined"
        assert info.description == "No description available"
        assert not info.hierarchical


class TestIds:
    def test_vertex_ids_sequential(self):
        provider = _provider()
        assert [provider.get_next_vertex_id() for _ in range(3)] == ["v0", "v1", "v2"]

    def test_continuation_after_manual_insert_and_reset(self):
        provider = _provider()
        provider.add_vertices(Vertex("nodes", "v7"))
        provider.clear_counters()
        assert provider.get_next_vertex_id() == "v8"

    def test_edge_ids_track_edge_store(self):
        provider, *_ = _triangle()
        assert {e.id for e in provider.get_edges()} == {"e0", "e1"}
        assert provider.get_next_edge_id() == "e2"

    def test_configured_prefixes(self):
        settings = load_settings(topology={"vertex_id_prefix": "n", "edge_id_prefix": "l"})
        provider = StaticTopologyProvider("nodes", settings=settings)
        assert provider.get_next_vertex_id() == "n0"
        assert provider.get_next_edge_id() == "l0"

    def test_concurrent_vertex_ids_unique(self):
        provider = _provider()
        ids = []
        lock = threading.Lock()

        def worker():
            for _ in range(50):
                vid = provider.get_next_vertex_id()
                with lock:
                    ids.append(vid)

        threads = [threading.Thread(target=worker) for _ in range(4)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()
        assert len(set(ids)) == 200


class TestConnectVertices:
    def test_connect(self):
        provider = _provider()
        a, b = Vertex("nodes", "A"), Vertex("nodes", "B")
        provider.add_vertices(a, b)
        edge = provider.connect_vertices(a, b)
        assert edge.id == "e0"
        assert edge.namespace == "nodes"
        assert edge.source.id == "A-e0-connector"
        assert edge.target.id == "B-e0-connector"
        assert edge.source_vertex == a
        assert edge.target_vertex == b
        assert provider.get_edge(EdgeRef("nodes", "e0")) is edge

    @pytest.mark.parametrize("source, target", [
        (None, VertexRef("nodes", "B")),
        (VertexRef("nodes", "A"), None),
        (None, None),
    ])
    def test_connect_with_none_is_noop(self, source, target, caplog):
        provider = _provider()
        provider.add_vertices(Vertex("nodes", "A"), Vertex("nodes", "B"))
        with caplog.at_level(logging.WARNING, logger="topograph.topo.provider"):
            assert provider.connect_vertices(source, target) is None
        assert provider.get_edge_total_count() == 0
        assert provider.get_vertex_total_count() == 2
        assert "is None" in caplog.text or "are None" in caplog.text

    def test_connect_with_none_does_not_consume_id(self):
        provider = _provider()
        provider.connect_vertices(None, VertexRef("nodes", "B"))
        edge = provider.connect_vertices(VertexRef("nodes", "A"), VertexRef("nodes", "B"))
        assert edge.id == "e0"


class TestRemoveVertex:
    def test_cascading_delete(self):
        provider = _provider()
        a, b = Vertex("nodes", "A"), Vertex("nodes", "B")
        provider.add_vertices(a, b)
        edge = provider.connect_vertices(a, b)

        provider.remove_vertex(VertexRef("nodes", "A"))

        assert not provider.contains_vertex_id(a)
        assert provider.contains_vertex_id(b)
        assert provider.get_edge(edge) is None
        assert provider.get_edge_total_count() == 0

    def test_cascade_leaves_unrelated_edges(self):
        provider, a, b, c = _triangle()
        provider.remove_vertex(a)
        assert {e.id for e in provider.get_edges()} == {"e1"}
        provider.remove_vertex(c)
        assert provider.get_edge_total_count() == 0
        assert provider.get_vertex_total_count() == 1

    def test_vertex_removed_before_edges(self):
        provider, a, b, c = _triangle()
        observed = []
        provider.add_edge_listener(
            lambda store, event: observed.append(provider.contains_vertex_id(b))
        )
        provider.remove_vertex(b)
        assert observed == [False]

    def test_none_refs_ignored(self):
        provider, a, b, c = _triangle()
        provider.remove_vertex(None, a, None)
        assert provider.get_vertex_total_count() == 2

    def test_direct_vertex_store_removal_leaves_dangling_edges(self):
        provider, a, b, c = _triangle()
        provider.vertex_store.remove_vertices(a)
        assert {e.id for e in provider.get_edge_ids_for_vertex(a)} == {"e0"}


class TestQueries:
    def test_connectivity(self):
        provider, a, b, c = _triangle()
        assert {e.id for e in provider.get_edge_ids_for_vertex(b)} == {"e0", "e1"}
        assert {e.id for e in provider.get_edge_ids_for_vertex(a)} == {"e0"}
        mapping = provider.get_edge_ids_for_vertices(a, c)
        assert {e.id for e in mapping[a]} == {"e0"}
        assert {e.id for e in mapping[c]} == {"e1"}

    def test_lookups(self):
        provider, a, b, c = _triangle()
        assert provider.get_vertex(VertexRef("nodes", "A")) is a
        assert provider.get_vertex_by_id("nodes", "C") is c
        assert provider.get_vertex(VertexRef("nodes", "Z")) is None
        assert provider.get_edge_by_id("nodes", "e1").target_vertex == c
        assert [v.id for v in provider.get_vertices_for([a, VertexRef("nodes", "Z")])] == ["A"]
        assert [e.id for e in provider.get_edges_for([EdgeRef("nodes", "e1")])] == ["e1"]

    def test_counts(self):
        provider, *_ = _triangle()
        assert provider.get_vertex_total_count() == 3
        assert provider.get_edge_total_count() == 2

    def test_criteria_pass_through(self):
        provider, *_ = _triangle()
        bound = provider.get_vertices(lambda v: v.node_id is not None)
        assert {v.id for v in bound} == {"A", "B"}


class TestResetContainer:
    def test_reset(self):
        provider, *_ = _triangle()
        provider.get_next_vertex_id()
        provider.reset_container()
        assert provider.get_vertex_total_count() == 0
        assert provider.get_edge_total_count() == 0
        assert provider.get_next_vertex_id() == "v0"
        assert provider.get_next_edge_id() == "e0"

    def test_reset_notifies_both_stores(self):
        provider, *_ = _triangle()
        kinds = []
        provider.add_vertex_listener(lambda s, e: kinds.append(("vertex", e.kind)))
        provider.add_edge_listener(lambda s, e: kinds.append(("edge", e.kind)))
        provider.reset_container()
        assert kinds == [("vertex", "cleared"), ("edge", "cleared")]

    def test_reset_survives_failing_listener(self):
        provider, *_ = _triangle()

        def broken(store, event):
            raise RuntimeError("listener bug")

        provider.add_vertex_listener(broken)
        provider.reset_container()
        assert provider.get_edge_total_count() == 0
        assert provider.get_next_edge_id() == "e0"


class TestProviderSelection:
    def test_resolves_bare_refs(self):
        provider, *_ = _triangle()
        refs = [VertexRef("nodes", "A"), VertexRef("nodes", "B"), VertexRef("nodes", "C")]
        sel = provider.get_selection(refs, ContentType.NODE)
        assert isinstance(sel, IdSelection)
        assert sel.ids == {1, 2}

    def test_unknown_refs_and_content_type(self):
        provider, *_ = _triangle()
        sel = provider.get_selection([VertexRef("nodes", "Z")], ContentType.NODE)
        assert sel.is_empty
        assert provider.get_selection([VertexRef("nodes", "A")], ContentType.IP_SERVICE) is Selection.NONE


class TestConcurrency:
    def test_listener_connects_while_other_thread_removes(self):
        provider, a, b, c = _triangle()
        d = Vertex("nodes", "D")
        locked = threading.Event()
        in_listener = threading.Event()
        created = []

        def on_vertex(store, event):
            if d in event.added:
                in_listener.set()
                created.append(provider.connect_vertices(d, a))

        def remover():
            with provider._lock:
                locked.set()
                in_listener.wait(timeout=5)
                provider.remove_vertex(b)

        provider.add_vertex_listener(on_vertex)
        t_remove = threading.Thread(target=remover)
        t_remove.start()
        locked.wait(timeout=5)
        t_add = threading.Thread(target=provider.add_vertices, args=(d,))
        t_add.start()
        t_add.join(timeout=5)
        t_remove.join(timeout=5)

        assert not t_add.is_alive()
        assert not t_remove.is_alive()
        assert not provider.contains_vertex_id(b)
        assert created[0] is not None
        assert [e.id for e in provider.get_edge_ids_for_vertex(d)] == [created[0].id]
