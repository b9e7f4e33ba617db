"""
Topology graph provider.

The provider composes one VertexStore and one EdgeStore sharing a namespace
and adds the graph-level operations that must keep both consistent:
cascading vertex removal, edge synthesis between two vertices, id
generation and the reset lifecycle. Subclasses implement ``refresh()`` to
populate the stores from a topology source.
"""

import logging
import threading
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Iterable, Optional

from ..config import Settings, get_settings
from .edges import EdgeStore
from .events import EdgeListener, VertexListener
from .ids import IdGenerator
from .refs import Connector, Criteria, Edge, EdgeRef, Vertex, VertexRef
from .selection import ContentType, Selection, get_selection
from .vertices import VertexStore

logger = logging.getLogger(__name__)


class NamespaceMismatchError(ValueError):
    """Vertex and edge store of one provider live in different namespaces."""


@dataclass
class TopologyProviderInfo:
    name: str = "Undefined"
    description: str = "No description available"
    hierarchical: bool = False


class AbstractTopologyProvider(ABC):
    """
    Base class for graph providers.

    Either pass a ``namespace`` (fresh stores are created for it) or both
    stores. Thread-safety: each store serialises its own mutations; the
    composite operations below are additionally serialised by a provider
    lock. Listener failures are isolated by the stores, so no composite step
    raises and nothing needs rolling back.
    """

    def __init__(
        self,
        namespace: Optional[str] = None,
        vertex_store: Optional[VertexStore] = None,
        edge_store: Optional[EdgeStore] = None,
        settings: Optional[Settings] = None,
    ):
        settings = settings or get_settings()
        namespace = namespace or (
            vertex_store.namespace if vertex_store is not None
            else edge_store.namespace if edge_store is not None
            else settings.topology.namespace
        )
        # Empty stores are falsy (__len__), so test for None explicitly.
        self._vertex_store = (
            vertex_store if vertex_store is not None else VertexStore(namespace)
        )
        self._edge_store = (
            edge_store if edge_store is not None else EdgeStore(namespace)
        )
        if self._vertex_store.namespace != self._edge_store.namespace:
            raise NamespaceMismatchError(
                "Namespace of edge and vertex store must match: "
                f"{self._vertex_store.namespace!r} != {self._edge_store.namespace!r}"
            )
        if self._vertex_store.namespace != namespace:
            raise NamespaceMismatchError(
                f"Stores serve namespace {self._vertex_store.namespace!r}, "
                f"provider was asked for {namespace!r}"
            )

        self._vertex_ids = IdGenerator(
            settings.topology.vertex_id_prefix,
            content=self._vertex_store.get_vertices,
            contains=self._vertex_store.contains_id,
        )
        self._edge_ids = IdGenerator(
            settings.topology.edge_id_prefix,
            content=self._edge_store.get_edges,
            contains=self._edge_store.contains_id,
        )
        self._lock = threading.RLock()
        self.topology_provider_info = TopologyProviderInfo()

    @property
    def namespace(self) -> str:
        return self._vertex_store.namespace

    @property
    def vertex_store(self) -> VertexStore:
        return self._vertex_store

    @property
    def edge_store(self) -> EdgeStore:
        return self._edge_store

    @abstractmethod
    def refresh(self) -> None:
        """Populate the stores from the provider's topology source."""

    # ------------------------------------------------------------------
    # Ids
    # ------------------------------------------------------------------

    def get_next_vertex_id(self) -> str:
        return self._vertex_ids.next()

    def get_next_edge_id(self) -> str:
        return self._edge_ids.next()

    def clear_counters(self) -> None:
        self._vertex_ids.reset()
        self._edge_ids.reset()

    # ------------------------------------------------------------------
    # Graph-level operations
    # ------------------------------------------------------------------

    def connect_vertices(
        self, source: Optional[VertexRef], target: Optional[VertexRef]
    ) -> Optional[Edge]:
        """Create and store an edge between two vertices; None on a missing endpoint."""
        if source is None or target is None:
            if source is None and target is None:
                logger.warning("Source and target vertices are None")
            elif source is None:
                logger.warning("Source vertex is None")
            else:
                logger.warning("Target vertex is None")
            return None
        with self._lock:
            return self._connect(self.get_next_edge_id(), source, target)

    def _connect(self, edge_id: str, source: VertexRef, target: VertexRef) -> Edge:
        edge = Edge(
            namespace=self.namespace,
            id=edge_id,
            source=Connector.for_edge(source, edge_id),
            target=Connector.for_edge(target, edge_id),
        )
        self._edge_store.add_edges(edge)
        return edge

    def remove_vertex(self, *refs: Optional[VertexRef]) -> None:
        """Remove vertices and, after each one, every edge attached to it."""
        with self._lock:
            for ref in refs:
                if ref is None:
                    logger.warning("Ignoring None vertex in remove_vertex")
                    continue
                self._vertex_store.remove_vertices(ref)
                self._edge_store.remove_edges(
                    *self._edge_store.get_edge_ids_for_vertex(ref)
                )

    def reset_container(self) -> None:
        with self._lock:
            self.clear_vertices()
            self.clear_edges()
            self.clear_counters()
        logger.info("Topology container %s reset", self.namespace)

    def get_selection(
        self, selected_vertices: Iterable[VertexRef], content_type: ContentType
    ) -> Selection:
        """Selection for ``content_type``, resolving bare refs to stored vertices."""
        resolved = []
        for ref in selected_vertices:
            if ref is not None and not isinstance(ref, Vertex):
                ref = self._vertex_store.get_vertex(ref) or ref
            resolved.append(ref)
        return get_selection(self.namespace, resolved, content_type)

    # ------------------------------------------------------------------
    # Vertex delegation
    # ------------------------------------------------------------------

    def add_vertices(self, *vertices: Vertex) -> None:
        self._vertex_store.add_vertices(*vertices)

    def get_vertex(self, ref: VertexRef, *criteria: Criteria) -> Optional[Vertex]:
        return self._vertex_store.get_vertex(ref, *criteria)

    def get_vertex_by_id(self, namespace: str, vertex_id: str) -> Optional[Vertex]:
        return self._vertex_store.get_vertex_by_id(namespace, vertex_id)

    def get_vertices(self, *criteria: Criteria) -> list[Vertex]:
        return self._vertex_store.get_vertices(*criteria)

    def get_vertices_for(
        self, refs: Iterable[VertexRef], *criteria: Criteria
    ) -> list[Vertex]:
        return self._vertex_store.get_vertices_for(refs, *criteria)

    def get_children(self, ref: VertexRef, *criteria: Criteria) -> list[Vertex]:
        return self._vertex_store.get_children(ref, *criteria)

    def get_vertices_without_collapsible(self, *criteria: Criteria) -> list[Vertex]:
        return self._vertex_store.get_vertices_without_collapsible(*criteria)

    def contains_vertex_id(self, ref: VertexRef, *criteria: Criteria) -> bool:
        return self._vertex_store.contains_vertex_id(ref, *criteria)

    def get_vertex_total_count(self) -> int:
        return self._vertex_store.get_vertex_total_count()

    def contributes_to(self, namespace: str) -> bool:
        return self._vertex_store.contributes_to(namespace)

    def get_semantic_zoom_level(self, ref: VertexRef) -> int:
        return self._vertex_store.get_semantic_zoom_level(ref)

    def clear_vertices(self) -> None:
        self._vertex_store.clear_vertices()

    def add_vertex_listener(self, listener: VertexListener) -> None:
        self._vertex_store.add_vertex_listener(listener)

    def remove_vertex_listener(self, listener: VertexListener) -> None:
        self._vertex_store.remove_vertex_listener(listener)

    # ------------------------------------------------------------------
    # Edge delegation
    # ------------------------------------------------------------------

    def add_edges(self, *edges: Edge) -> None:
        self._edge_store.add_edges(*edges)

    def remove_edges(self, *refs: EdgeRef) -> None:
        self._edge_store.remove_edges(*refs)

    def get_edge(self, ref: EdgeRef, *criteria: Criteria) -> Optional[Edge]:
        return self._edge_store.get_edge(ref, *criteria)

    def get_edge_by_id(self, namespace: str, edge_id: str) -> Optional[Edge]:
        return self._edge_store.get_edge_by_id(namespace, edge_id)

    def get_edges(self, *criteria: Criteria) -> list[Edge]:
        return self._edge_store.get_edges(*criteria)

    def get_edges_for(self, refs: Iterable[EdgeRef], *criteria: Criteria) -> list[Edge]:
        return self._edge_store.get_edges_for(refs, *criteria)

    def get_edge_total_count(self) -> int:
        return self._edge_store.get_edge_total_count()

    def get_edge_ids_for_vertex(self, vertex: Optional[VertexRef]) -> list[Edge]:
        return self._edge_store.get_edge_ids_for_vertex(vertex)

    def get_edge_ids_for_vertices(
        self, *vertices: Optional[VertexRef]
    ) -> dict[VertexRef, set[Edge]]:
        return self._edge_store.get_edge_ids_for_vertices(*vertices)

    def clear_edges(self) -> None:
        self._edge_store.clear_edges()

    def add_edge_listener(self, listener: EdgeListener) -> None:
        self._edge_store.add_edge_listener(listener)

    def remove_edge_listener(self, listener: EdgeListener) -> None:
        self._edge_store.remove_edge_listener(listener)
