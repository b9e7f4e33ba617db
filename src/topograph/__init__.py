"""
topograph — In-memory Network Topology Graph Provider.

Keeps the vertices and edges of a network topology per namespace, generates
collision-free ids, notifies listeners of every change, answers connectivity
queries and maps vertex selections to node/alarm selections for cooperating
views.

License: MIT
"""

__version__ = "0.1.0"
