"""
topograph CLI — inspect topologies stored in node-link JSON files.

Commands:
  info    — Vertex/edge counts of a topology
  edges   — Edges attached to a vertex
  select  — Map selected vertices to a node/alarm selection
  matrix  — Print the adjacency matrix
  serve   — Serve a topology over the REST API
"""

import sys

try:
    import click
except ImportError:
    print("Click is required: pip install click")
    sys.exit(1)

from .config import configure_logging, get_settings


def _load_provider(graph_file, namespace):
    from .graph.adapter import NetworkXTopologyProvider, load_node_link

    provider = NetworkXTopologyProvider(
        namespace=namespace or get_settings().topology.namespace,
        loader=lambda: load_node_link(graph_file),
    )
    provider.topology_provider_info.name = graph_file
    provider.refresh()
    return provider


@click.group()
@click.version_option(version="0.1.0", prog_name="topograph")
@click.option("--namespace", "-n", default=None, help="Topology namespace")
@click.pass_context
def cli(ctx, namespace):
    """topograph — in-memory network topology graph provider."""
    configure_logging()
    ctx.ensure_object(dict)
    ctx.obj["namespace"] = namespace


@cli.command()
@click.argument("graph_file", type=click.Path(exists=True))
@click.pass_context
def info(ctx, graph_file):
    """Show vertex and edge counts of a topology."""
    provider = _load_provider(graph_file, ctx.obj["namespace"])
    collapsible = len(provider.get_vertices()) - len(
        provider.get_vertices_without_collapsible()
    )
    with_node = len(provider.get_vertices(lambda v: v.node_id is not None))

    click.echo(f"Namespace: {provider.namespace}")
    click.echo(f"  Vertices: {provider.get_vertex_total_count()}")
    click.echo(f"  Edges: {provider.get_edge_total_count()}")
    click.echo(f"  Vertices bound to nodes: {with_node}")
    if collapsible:
        click.echo(f"  Collapsible vertices: {collapsible}")


@cli.command()
@click.argument("graph_file", type=click.Path(exists=True))
@click.argument("vertex_ids", nargs=-1, required=True)
@click.pass_context
def edges(ctx, graph_file, vertex_ids):
    """List the edges attached to each VERTEX_ID."""
    from .topo.refs import VertexRef

    provider = _load_provider(graph_file, ctx.obj["namespace"])
    refs = [VertexRef(provider.namespace, vid) for vid in vertex_ids]
    missing = [r.id for r in refs if not provider.contains_vertex_id(r)]
    if missing:
        click.echo(f"Unknown vertices: {', '.join(missing)}", err=True)
        ctx.exit(1)

    for ref, connected in provider.get_edge_ids_for_vertices(*refs).items():
        click.echo(f"{ref.id}:")
        for edge in sorted(connected, key=lambda e: e.id):
            peer = edge.target_vertex if edge.source_vertex == ref else edge.source_vertex
            click.echo(f"  {edge.id} -> {peer.id}")


@cli.command()
@click.argument("graph_file", type=click.Path(exists=True))
@click.argument("vertex_ids", nargs=-1)
@click.option(
    "--content-type", "-t", default="node",
    help="Content type of the selection (node, alarm, ...)",
)
@click.pass_context
def select(ctx, graph_file, vertex_ids, content_type):
    """Map selected VERTEX_IDS to a selection for a content type."""
    from .topo.refs import VertexRef
    from .topo.selection import IdSelection, parse_content_type

    provider = _load_provider(graph_file, ctx.obj["namespace"])
    refs = [VertexRef(provider.namespace, vid) for vid in vertex_ids]
    selection = provider.get_selection(refs, parse_content_type(content_type))

    click.echo(f"Selection: {type(selection).__name__}")
    if isinstance(selection, IdSelection):
        click.echo(f"  Node ids: {sorted(selection.ids)}")


@cli.command()
@click.argument("graph_file", type=click.Path(exists=True))
@click.pass_context
def matrix(ctx, graph_file):
    """Print the adjacency matrix of a topology."""
    from .graph.adapter import adjacency_matrix

    provider = _load_provider(graph_file, ctx.obj["namespace"])
    A, vertex_ids = adjacency_matrix(provider)
    width = max((len(v) for v in vertex_ids), default=1)
    click.echo(" " * width + " " + " ".join(vertex_ids))
    for vid, row in zip(vertex_ids, A):
        click.echo(vid.ljust(width) + " " + " ".join(str(int(x)) for x in row))


@cli.command()
@click.argument("graph_file", type=click.Path(exists=True))
@click.option("--host", default=None, help="API host")
@click.option("--port", "-p", default=None, type=int, help="API port")
@click.pass_context
def serve(ctx, graph_file, host, port):
    """Serve a topology over the REST API."""
    from .api.routes import TopologyAPI

    settings = get_settings()
    provider = _load_provider(graph_file, ctx.obj["namespace"])
    host = host or settings.api.host
    port = port or settings.api.port

    click.echo(f"Serving {provider.namespace} on {host}:{port}")
    TopologyAPI(provider).run(host=host, port=port, debug=settings.api.debug)


if __name__ == "__main__":
    cli()
