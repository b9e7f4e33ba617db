"""
Selection mapping.

Turns a set of selected topology vertices into a selection value that
cooperating views (alarm list, node list, ...) use to filter their content.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Iterable

from .refs import Vertex, VertexRef


class ContentType(Enum):
    ALARM = "alarm"
    NODE = "node"
    APPLICATION = "application"
    BUSINESS_SERVICE = "business_service"
    IP_SERVICE = "ip_service"


@dataclass(frozen=True)
class Selection:
    """Base selection. The bare instance selects nothing."""

    @property
    def is_empty(self) -> bool:
        return True


@dataclass(frozen=True)
class IdSelection(Selection):
    """Selection of entities by id."""
    ids: frozenset = field(default_factory=frozenset)

    @property
    def is_empty(self) -> bool:
        return not self.ids

    def contains(self, entity_id) -> bool:
        return entity_id in self.ids


@dataclass(frozen=True)
class AlarmNodeIdSelection(IdSelection):
    """Selects the alarms raised on the given node ids."""


Selection.NONE = Selection()


def parse_content_type(name: str):
    """ContentType for a name or value such as "Node" or "alarm"; None if unknown."""
    if not isinstance(name, str):
        return None
    token = name.strip().lower().replace("-", "_").replace(" ", "_")
    for content_type in ContentType:
        if token in (content_type.value, content_type.name.lower()):
            return content_type
    return None


def get_selection(
    namespace: str,
    selected_vertices: Iterable[VertexRef],
    content_type: ContentType,
) -> Selection:
    """
    Map selected vertices to a selection for ``content_type``.

    Only vertices in ``namespace`` that carry a node id contribute. ALARM
    yields an AlarmNodeIdSelection, NODE an IdSelection, anything else
    Selection.NONE.
    """
    node_ids = frozenset(
        v.node_id
        for v in selected_vertices
        if v is not None
        and v.namespace == namespace
        and isinstance(v, Vertex)
        and v.node_id is not None
    )
    if content_type is ContentType.ALARM:
        return AlarmNodeIdSelection(node_ids)
    if content_type is ContentType.NODE:
        return IdSelection(node_ids)
    return Selection.NONE
