"""
Topology entity model.

Refs are identity pairs (namespace, id). Vertices and edges extend them
with payload, but equality and hashing always use the identity pair only,
so a bare ref can look up, remove or compare against a stored entity.
"""

from dataclasses import dataclass, field
from typing import Callable, ClassVar, Optional


Criteria = Callable[["Ref"], bool]


@dataclass(eq=False)
class Ref:
    """Identity of a topology entity inside a namespace."""
    namespace: str
    id: str

    kind: ClassVar[str] = "ref"

    @property
    def key(self) -> tuple[str, str]:
        return (self.namespace, self.id)

    def __eq__(self, other):
        if not isinstance(other, Ref):
            return NotImplemented
        return self.key == other.key

    def __hash__(self):
        return hash(self.key)

    def __repr__(self):
        return f"{type(self).__name__}({self.namespace}:{self.id})"


@dataclass(eq=False, repr=False)
class VertexRef(Ref):
    kind: ClassVar[str] = "vertex"


@dataclass(eq=False, repr=False)
class EdgeRef(Ref):
    kind: ClassVar[str] = "edge"


@dataclass(eq=False, repr=False)
class Vertex(VertexRef):
    """A topology vertex, optionally bound to a managed node."""
    label: Optional[str] = None
    tooltip: Optional[str] = None
    ip_address: Optional[str] = None
    node_id: Optional[int] = None

    @property
    def is_collapsible(self) -> bool:
        return False

    def as_ref(self) -> VertexRef:
        return VertexRef(self.namespace, self.id)


@dataclass(eq=False, repr=False)
class CollapsibleVertex(Vertex):
    """A vertex that aggregates other vertices (e.g. a group or site)."""
    children: set = field(default_factory=set)
    collapsed: bool = False

    @property
    def is_collapsible(self) -> bool:
        return True


@dataclass(eq=False, repr=False)
class Connector(Ref):
    """Attachment point of an edge on a vertex. Lives only inside its edge."""
    vertex: VertexRef

    kind: ClassVar[str] = "connector"

    def __post_init__(self):
        if self.vertex is None:
            raise ValueError(f"Connector {self.id} must reference a vertex")

    @classmethod
    def for_edge(cls, vertex: VertexRef, edge_id: str) -> "Connector":
        return cls(
            namespace=vertex.namespace,
            id=f"{vertex.id}-{edge_id}-connector",
            vertex=vertex,
        )


@dataclass(eq=False, repr=False)
class Edge(EdgeRef):
    """A link between two vertices, held through its connectors."""
    source: Connector
    target: Connector
    label: Optional[str] = None
    tooltip: Optional[str] = None

    def __post_init__(self):
        if self.source is None or self.target is None:
            raise ValueError(f"Edge {self.id} needs a source and a target connector")

    @property
    def source_vertex(self) -> VertexRef:
        return self.source.vertex

    @property
    def target_vertex(self) -> VertexRef:
        return self.target.vertex

    def connects(self, vertex: VertexRef) -> bool:
        """True if either endpoint attaches to ``vertex`` (ref equality)."""
        return vertex is not None and (
            self.source_vertex == vertex or self.target_vertex == vertex
        )

    def as_ref(self) -> EdgeRef:
        return EdgeRef(self.namespace, self.id)


def matches_all(entity: Ref, criteria: tuple) -> bool:
    """Logical AND of every criterion; vacuously true without criteria."""
    return all(criterion(entity) for criterion in criteria)
