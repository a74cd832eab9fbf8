"""
Renders a DependencyGraph with Graphviz.

The DOT graph is assembled with pydot and handed to the `dot` binary for
rasterization. Nodes and edges are emitted in the graph's sorted order so the
output is reproducible.
"""
import logging
from enum import Enum
from typing import Dict
from urllib.parse import quote_plus

import pydot

from gomodgraph.core.graph import DependencyGraph
from gomodgraph.core.model import DependencyEdge, ModuleNode
from gomodgraph.errors import RenderError

NO_VERSION_LABEL = "<no version yet>"

EDGE_COLOR = "dimgrey"
STALE_EDGE_COLOR = "darkorange"


class OutputFormat(Enum):
    SVG = ("svg", "image/svg+xml")
    PNG = ("png", "image/png")

    def __init__(self, extension: str, media_type: str) -> None:
        self.extension = extension
        self.media_type = media_type


def is_stale(edge: DependencyEdge) -> bool:
    """True if the required version is not the latest release of the target."""
    latest = edge.target.version
    return latest != "" and edge.required_version != latest


def node_label(module: ModuleNode, registry_prefix: str) -> str:
    name = module.name
    if registry_prefix and name.startswith(registry_prefix):
        name = name[len(registry_prefix):]

    version = module.version or NO_VERSION_LABEL

    # "\n" is the DOT escape for a centered line break
    return f"{name}\\n{version} (go{module.toolchain_version})"


def build_dot(graph: DependencyGraph, registry_prefix: str) -> pydot.Dot:
    # Edges with the same target and label can be combined
    dot = pydot.Dot(graph_type="digraph", concentrate="true", center="true")

    node_ids: Dict[str, str] = {}

    for idx, module in enumerate(graph):
        node_id = f"m{idx}"
        node_ids[module.name] = node_id

        # The node is filled in order to make the whole box a link
        attrs = {
            "label": node_label(module, registry_prefix),
            "style": "filled",
        }

        if module.highlighted:
            attrs.update(shape="egg", color="crimson", fillcolor="goldenrod1")
        else:
            attrs.update(shape="box", fillcolor="floralwhite", URL=f"/?mod={quote_plus(module.name)}")

        dot.add_node(pydot.Node(node_id, **attrs))

    for module, edge in graph.edges():
        color = STALE_EDGE_COLOR if is_stale(edge) else EDGE_COLOR

        dot.add_edge(pydot.Edge(
            node_ids[module.name],
            node_ids[edge.target.name],
            label=edge.required_version,
            color=color,
            fontcolor=color,
            arrowsize="0.5",
        ))

    return dot


def render(graph: DependencyGraph, registry_prefix: str, fmt: OutputFormat = OutputFormat.SVG) -> bytes:
    dot = build_dot(graph, registry_prefix)

    logging.debug(f"Rendering {len(graph)} modules as {fmt.extension}")

    try:
        output = dot.create(format=fmt.extension)
    except Exception as e:
        raise RenderError(f"rendering {fmt.extension.upper()}: {e}") from e

    if not output:
        raise RenderError(f"rendering {fmt.extension.upper()}: Graphviz produced no output")

    return output
