"""
REST API for topograph.

Exposes the provider's query surface, cascading removal, edge creation and
selection mapping over HTTP.
"""

import time

try:
    from flask import Flask, Blueprint, jsonify, request, abort
except ImportError:
    Flask = None
    Blueprint = None

from ..topo.provider import AbstractTopologyProvider
from ..topo.refs import Edge, Vertex, VertexRef
from ..topo.selection import IdSelection, parse_content_type


class TopologyAPI:
    """
    REST API server for a topology provider.

    Endpoints:
      GET    /api/v1/health                 — API health check
      GET    /api/v1/vertices               — All vertices
      GET    /api/v1/vertices/<id>          — Single vertex
      DELETE /api/v1/vertices/<id>          — Remove vertex and its edges
      GET    /api/v1/vertices/<id>/edges    — Edges attached to a vertex
      GET    /api/v1/edges                  — All edges
      GET    /api/v1/edges/<id>             — Single edge
      POST   /api/v1/edges                  — Connect two vertices
      POST   /api/v1/selection              — Map vertex ids to a selection
      POST   /api/v1/refresh                — Reload from the topology source
      POST   /api/v1/reset                  — Clear the topology
    """

    def __init__(self, provider: AbstractTopologyProvider):
        self.provider = provider
        self._last_update: float = 0
        provider.add_vertex_listener(self._touch)
        provider.add_edge_listener(self._touch)

    def _touch(self, store, event):
        self._last_update = time.time()

    def _ref(self, vertex_id: str) -> VertexRef:
        return VertexRef(self.provider.namespace, vertex_id)

    def create_app(self) -> "Flask":
        """Create and configure the Flask application."""
        if Flask is None:
            raise ImportError("Flask is required: pip install flask")

        app = Flask(__name__)
        api = Blueprint("api", __name__, url_prefix="/api/v1")
        provider = self.provider

        @api.route("/health")
        def health():
            return jsonify({
                "status": "ok",
                "namespace": provider.namespace,
                "provider": provider.topology_provider_info.name,
                "vertices": provider.get_vertex_total_count(),
                "edges": provider.get_edge_total_count(),
                "last_update": self._last_update,
            })

        @api.route("/vertices")
        def vertices():
            items = [_vertex_dict(v) for v in provider.get_vertices()]
            return jsonify({"vertices": items, "count": len(items)})

        @api.route("/vertices/<vertex_id>")
        def vertex(vertex_id):
            v = provider.get_vertex(self._ref(vertex_id))
            if v is None:
                abort(404, f"Vertex {vertex_id} not found")
            return jsonify(_vertex_dict(v))

        @api.route("/vertices/<vertex_id>", methods=["DELETE"])
        def delete_vertex(vertex_id):
            ref = self._ref(vertex_id)
            if not provider.contains_vertex_id(ref):
                abort(404, f"Vertex {vertex_id} not found")
            removed_edges = [e.id for e in provider.get_edge_ids_for_vertex(ref)]
            provider.remove_vertex(ref)
            return jsonify({"removed": vertex_id, "removed_edges": removed_edges})

        @api.route("/vertices/<vertex_id>/edges")
        def vertex_edges(vertex_id):
            ref = self._ref(vertex_id)
            if not provider.contains_vertex_id(ref):
                abort(404, f"Vertex {vertex_id} not found")
            edges = provider.get_edge_ids_for_vertex(ref)
            return jsonify({
                "vertex": vertex_id,
                "edges": sorted(e.id for e in edges),
            })

        @api.route("/edges")
        def edges():
            items = [_edge_dict(e) for e in provider.get_edges()]
            return jsonify({"edges": items, "count": len(items)})

        @api.route("/edges/<edge_id>")
        def edge(edge_id):
            e = provider.get_edge_by_id(provider.namespace, edge_id)
            if e is None:
                abort(404, f"Edge {edge_id} not found")
            return jsonify(_edge_dict(e))

        @api.route("/edges", methods=["POST"])
        def connect():
            body = request.get_json(silent=True) or {}
            source = provider.get_vertex(self._ref(body.get("source", "")))
            target = provider.get_vertex(self._ref(body.get("target", "")))
            e = provider.connect_vertices(source, target)
            if e is None:
                abort(400, "Both source and target must be existing vertex ids")
            return jsonify(_edge_dict(e)), 201

        @api.route("/selection", methods=["POST"])
        def selection():
            body = request.get_json(silent=True) or {}
            content_type = parse_content_type(body.get("content_type"))
            refs = [self._ref(vid) for vid in body.get("vertices", [])]
            sel = provider.get_selection(refs, content_type)
            return jsonify({
                "type": type(sel).__name__,
                "content_type": content_type.value if content_type else None,
                "ids": sorted(sel.ids) if isinstance(sel, IdSelection) else [],
            })

        @api.route("/refresh", methods=["POST"])
        def refresh():
            provider.refresh()
            return jsonify({
                "status": "refreshed",
                "vertices": provider.get_vertex_total_count(),
                "edges": provider.get_edge_total_count(),
            })

        @api.route("/reset", methods=["POST"])
        def reset():
            provider.reset_container()
            return jsonify({"status": "reset"})

        app.register_blueprint(api)
        return app

    def run(self, host: str = "127.0.0.1", port: int = 5000, debug: bool = False):
        """Run the API server."""
        app = self.create_app()
        app.run(host=host, port=port, debug=debug)


def _vertex_dict(v: Vertex) -> dict:
    d = {
        "id": v.id,
        "namespace": v.namespace,
        "label": v.label,
        "tooltip": v.tooltip,
        "ip_address": v.ip_address,
        "node_id": v.node_id,
        "collapsible": v.is_collapsible,
    }
    if v.is_collapsible:
        d["children"] = sorted(c.id for c in v.children)
    return d


def _edge_dict(e: Edge) -> dict:
    return {
        "id": e.id,
        "namespace": e.namespace,
        "label": e.label,
        "source": _connector_dict(e.source),
        "target": _connector_dict(e.target),
    }


def _connector_dict(connector) -> dict:
    return {"id": connector.id, "vertex": connector.vertex.id}
