"""
In-memory vertex store for one namespace.
"""

import logging
import threading
from typing import Iterable, Optional

from .events import ChangeEvent, ListenerRegistry, VertexListener
from .refs import Criteria, Vertex, VertexRef, matches_all

logger = logging.getLogger(__name__)


class VertexStore:
    """
    Owns the vertices of a namespace.

    Vertices are keyed by identity (namespace, id); adding a vertex whose id
    is already present replaces it. Vertices of another namespace are
    rejected. Every mutation notifies the registered vertex listeners after
    the store lock is released, so listeners may call back into the store or
    the owning provider from any thread.
    """

    def __init__(self, namespace: str):
        if not namespace:
            raise ValueError("Vertex store needs a namespace")
        self.namespace = namespace
        self._vertices: dict[tuple[str, str], Vertex] = {}
        self._listeners = ListenerRegistry(self)
        self._lock = threading.RLock()

    def __len__(self) -> int:
        return len(self._vertices)

    def __contains__(self, ref) -> bool:
        return self.contains_vertex_id(ref)

    # ------------------------------------------------------------------
    # Mutation
    # ------------------------------------------------------------------

    def add_vertices(self, *vertices: Vertex) -> None:
        with self._lock:
            added, updated = [], []
            for vertex in vertices:
                if vertex is None:
                    continue
                if vertex.namespace != self.namespace:
                    logger.warning(
                        "Ignoring vertex %r, store serves namespace %s",
                        vertex, self.namespace,
                    )
                    continue
                if vertex.key in self._vertices:
                    updated.append(vertex)
                else:
                    added.append(vertex)
                self._vertices[vertex.key] = vertex
            if not (added or updated):
                return
            logger.debug(
                "Namespace %s: %d vertices added, %d updated",
                self.namespace, len(added), len(updated),
            )
        self._fire(ChangeEvent(
            self.namespace, added=tuple(added), updated=tuple(updated)
        ))

    def remove_vertices(self, *refs: VertexRef) -> None:
        with self._lock:
            removed = []
            for ref in refs:
                if ref is None:
                    continue
                vertex = self._vertices.pop(ref.key, None)
                if vertex is not None:
                    removed.append(vertex)
            if not removed:
                return
            logger.debug(
                "Namespace %s: %d vertices removed", self.namespace, len(removed)
            )
        self._fire(ChangeEvent(self.namespace, removed=tuple(removed)))

    def clear_vertices(self) -> None:
        with self._lock:
            removed = tuple(self._vertices.values())
            self._vertices.clear()
            logger.debug(
                "Namespace %s: cleared %d vertices", self.namespace, len(removed)
            )
        self._fire(ChangeEvent(self.namespace, removed=removed, cleared=True))

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_vertex(self, ref: VertexRef, *criteria: Criteria) -> Optional[Vertex]:
        """Exact lookup; None when absent or rejected by a criterion."""
        if ref is None:
            return None
        vertex = self._vertices.get(ref.key)
        if vertex is None or not matches_all(vertex, criteria):
            return None
        return vertex

    def get_vertex_by_id(self, namespace: str, vertex_id: str) -> Optional[Vertex]:
        return self._vertices.get((namespace, vertex_id))

    def get_vertices(self, *criteria: Criteria) -> list[Vertex]:
        with self._lock:
            return [v for v in self._vertices.values() if matches_all(v, criteria)]

    def get_vertices_for(
        self, refs: Iterable[VertexRef], *criteria: Criteria
    ) -> list[Vertex]:
        """Stored vertices for ``refs``, skipping unknown refs."""
        result = []
        for ref in refs:
            vertex = self.get_vertex(ref, *criteria)
            if vertex is not None:
                result.append(vertex)
        return result

    def get_children(self, ref: VertexRef, *criteria: Criteria) -> list[Vertex]:
        """Stored members of a collapsible vertex; empty for any other vertex."""
        vertex = self.get_vertex(ref)
        if vertex is None or not vertex.is_collapsible:
            return []
        return self.get_vertices_for(vertex.children, *criteria)

    def get_vertices_without_collapsible(self, *criteria: Criteria) -> list[Vertex]:
        return [v for v in self.get_vertices(*criteria) if not v.is_collapsible]

    def contains_vertex_id(self, ref: VertexRef, *criteria: Criteria) -> bool:
        return self.get_vertex(ref, *criteria) is not None

    def contains_id(self, vertex_id: str) -> bool:
        return (self.namespace, vertex_id) in self._vertices

    def get_vertex_total_count(self) -> int:
        return len(self._vertices)

    def contributes_to(self, namespace: str) -> bool:
        # A plain store only serves its own namespace, it never decorates others.
        return False

    def get_semantic_zoom_level(self, ref: VertexRef) -> int:
        return 0

    # ------------------------------------------------------------------
    # Listeners
    # ------------------------------------------------------------------

    def add_vertex_listener(self, listener: VertexListener) -> None:
        with self._lock:
            self._listeners.add(listener)

    def remove_vertex_listener(self, listener: VertexListener) -> None:
        with self._lock:
            self._listeners.remove(listener)

    def _fire(self, event: ChangeEvent) -> None:
        self._listeners.notify(event)
