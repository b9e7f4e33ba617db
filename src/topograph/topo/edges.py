"""
In-memory edge store for one namespace, with vertex connectivity queries.
"""

import logging
import threading
from typing import Iterable, Optional

from .events import ChangeEvent, EdgeListener, ListenerRegistry
from .refs import Criteria, Edge, EdgeRef, VertexRef, matches_all

logger = logging.getLogger(__name__)


class EdgeStore:
    """
    Owns the edges of a namespace.

    Edges reference vertices only through their connectors. The store does
    not check that those vertices exist, so an edge can dangle when its
    vertex is removed from the vertex store directly. Edges of another
    namespace are rejected. Listeners are notified after the store lock is
    released.
    """

    def __init__(self, namespace: str):
        if not namespace:
            raise ValueError("Edge store needs a namespace")
        self.namespace = namespace
        self._edges: dict[tuple[str, str], Edge] = {}
        self._listeners = ListenerRegistry(self)
        self._lock = threading.RLock()

    def __len__(self) -> int:
        return len(self._edges)

    def __contains__(self, ref) -> bool:
        return self.contains_edge_id(ref)

    def add_edges(self, *edges: Edge) -> None:
        with self._lock:
            added, updated = [], []
            for edge in edges:
                if edge is None:
                    continue
                if edge.namespace != self.namespace:
                    logger.warning(
                        "Ignoring edge %r, store serves namespace %s",
                        edge, self.namespace,
                    )
                    continue
                if edge.key in self._edges:
                    updated.append(edge)
                else:
                    added.append(edge)
                self._edges[edge.key] = edge
            if not (added or updated):
                return
            logger.debug(
                "Namespace %s: %d edges added, %d updated",
                self.namespace, len(added), len(updated),
            )
        self._listeners.notify(ChangeEvent(
            self.namespace, added=tuple(added), updated=tuple(updated)
        ))

    def remove_edges(self, *refs: EdgeRef) -> None:
        with self._lock:
            removed = []
            for ref in refs:
                if ref is None:
                    continue
                edge = self._edges.pop(ref.key, None)
                if edge is not None:
                    removed.append(edge)
            if not removed:
                return
            logger.debug(
                "Namespace %s: %d edges removed", self.namespace, len(removed)
            )
        self._listeners.notify(ChangeEvent(self.namespace, removed=tuple(removed)))

    def clear_edges(self) -> None:
        with self._lock:
            removed = tuple(self._edges.values())
            self._edges.clear()
            logger.debug(
                "Namespace %s: cleared %d edges", self.namespace, len(removed)
            )
        self._listeners.notify(
            ChangeEvent(self.namespace, removed=removed, cleared=True)
        )

    def get_edge(self, ref: EdgeRef, *criteria: Criteria) -> Optional[Edge]:
        if ref is None:
            return None
        edge = self._edges.get(ref.key)
        if edge is None or not matches_all(edge, criteria):
            return None
        return edge

    def get_edge_by_id(self, namespace: str, edge_id: str) -> Optional[Edge]:
        return self._edges.get((namespace, edge_id))

    def get_edges(self, *criteria: Criteria) -> list[Edge]:
        with self._lock:
            return [e for e in self._edges.values() if matches_all(e, criteria)]

    def get_edges_for(self, refs: Iterable[EdgeRef], *criteria: Criteria) -> list[Edge]:
        result = []
        for ref in refs:
            edge = self.get_edge(ref, *criteria)
            if edge is not None:
                result.append(edge)
        return result

    def contains_edge_id(self, ref: EdgeRef) -> bool:
        return ref is not None and ref.key in self._edges

    def contains_id(self, edge_id: str) -> bool:
        return (self.namespace, edge_id) in self._edges

    def get_edge_total_count(self) -> int:
        return len(self._edges)

    def get_edge_ids_for_vertex(self, vertex: Optional[VertexRef]) -> list[Edge]:
        """Every edge whose source or target attaches to ``vertex``."""
        if vertex is None:
            return []
        return [edge for edge in self.get_edges() if edge.connects(vertex)]

    def get_edge_ids_for_vertices(
        self, *vertices: Optional[VertexRef]
    ) -> dict[VertexRef, set[Edge]]:
        """Map each vertex to its connected edges. One full scan per vertex."""
        edges = self.get_edges()
        result = {}
        for vertex in vertices:
            if vertex is None:
                continue
            result[vertex] = {edge for edge in edges if edge.connects(vertex)}
        return result

    def add_edge_listener(self, listener: EdgeListener) -> None:
        with self._lock:
            self._listeners.add(listener)

    def remove_edge_listener(self, listener: EdgeListener) -> None:
        with self._lock:
            self._listeners.remove(listener)
