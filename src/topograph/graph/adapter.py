"""
NetworkX bridge.

Loads topology discovered elsewhere (LLDP/CDP walks, routing tables, exported
node-link JSON) into a provider, and exports the provider's current content
back to NetworkX graphs and NumPy adjacency matrices for analysis.
"""

import json
import logging
from typing import Callable, Optional

import networkx as nx
import numpy as np

from ..config import Settings
from ..topo.provider import AbstractTopologyProvider
from ..topo.refs import Vertex

logger = logging.getLogger(__name__)


class NetworkXTopologyProvider(AbstractTopologyProvider):
    """
    Provider whose ``refresh()`` rebuilds the topology from a NetworkX graph.

    ``loader`` is called on every refresh and must return the current graph.
    Node keys become vertex ids; the node attributes ``label``, ``tooltip``,
    ``ip_address`` (or ``mgmt_address``) and ``node_id`` fill the vertex.
    Each graph edge becomes one edge with a generated id.
    """

    def __init__(
        self,
        namespace: Optional[str] = None,
        loader: Optional[Callable[[], nx.Graph]] = None,
        settings: Optional[Settings] = None,
    ):
        super().__init__(namespace=namespace, settings=settings)
        self._loader = loader or nx.Graph

    def refresh(self) -> None:
        # Convert everything first: a bad graph must leave the current
        # topology in place.
        G = self._loader()
        vertices = {}
        for node, data in G.nodes(data=True):
            vertices[node] = _vertex_from_node(self.namespace, node, data)
        links = [(vertices[u], vertices[v]) for u, v in G.edges()]

        self.reset_container()
        self.add_vertices(*vertices.values())
        for source, target in links:
            self.connect_vertices(source, target)

        logger.info(
            "Refreshed %s: %d vertices, %d edges",
            self.namespace,
            self.get_vertex_total_count(),
            self.get_edge_total_count(),
        )


def _vertex_from_node(namespace: str, node, data: dict) -> Vertex:
    node_id = data.get("node_id")
    return Vertex(
        namespace=namespace,
        id=str(node),
        label=data.get("label", str(node)),
        tooltip=data.get("tooltip") or data.get("description"),
        ip_address=data.get("ip_address") or data.get("mgmt_address"),
        node_id=int(node_id) if node_id is not None else None,
    )


def load_node_link(filepath: str) -> nx.Graph:
    """Read a node-link JSON document (``{"nodes": [...], "links": [...]}``)."""
    with open(filepath) as f:
        data = json.load(f)
    return nx.node_link_graph(data, edges="links")


def to_networkx(provider: AbstractTopologyProvider) -> nx.MultiGraph:
    """
    Export the provider's vertices and edges.

    A MultiGraph keeps parallel edges between the same pair of vertices apart;
    edge keys are the edge ids. Dangling edges bring their missing endpoint
    in as a bare node.
    """
    G = nx.MultiGraph(namespace=provider.namespace)
    for vertex in provider.get_vertices():
        G.add_node(
            vertex.id,
            label=vertex.label,
            tooltip=vertex.tooltip,
            ip_address=vertex.ip_address,
            node_id=vertex.node_id,
            collapsible=vertex.is_collapsible,
        )
    for edge in provider.get_edges():
        G.add_edge(
            edge.source_vertex.id,
            edge.target_vertex.id,
            key=edge.id,
            label=edge.label,
            source_connector=edge.source.id,
            target_connector=edge.target.id,
        )
    return G


def adjacency_matrix(
    provider: AbstractTopologyProvider,
) -> tuple[np.ndarray, list[str]]:
    """
    Symmetric (N x N) adjacency matrix of the stored vertices.

    Cells count the edges between two vertices. Edges whose endpoints are not
    stored are ignored. Returns the matrix and the ordered vertex ids.
    """
    vertex_ids = sorted(v.id for v in provider.get_vertices())
    index = {vid: i for i, vid in enumerate(vertex_ids)}
    N = len(vertex_ids)
    matrix = np.zeros((N, N), dtype=np.float32)

    for edge in provider.get_edges():
        i = index.get(edge.source_vertex.id)
        j = index.get(edge.target_vertex.id)
        if i is None or j is None:
            continue
        matrix[i, j] += 1.0
        if i != j:
            matrix[j, i] += 1.0

    return matrix, vertex_ids
