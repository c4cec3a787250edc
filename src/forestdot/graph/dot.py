"""Graphviz DOT renderer for tree graphs."""

import logging
from typing import TextIO

from .. import __version__
from ..config import DEFAULT_MAX_LEVELS_PER_EDGE, PrintTreeOptions
from .framework import GraphRenderer
from .models import TreeGraph, TreeNode, TreeSubgraph

logger = logging.getLogger(__name__)

HEADER = """/*
Generated by:
    forestdot {version}
*/

/*
Render with Graphviz:

$ dot -Tpng file.gv -o file.png
*/
"""


class DotRenderer(GraphRenderer):
    """Renders every subgraph of a tree graph as a DOT cluster.

    Nodes deeper than ``max_levels_per_edge`` edges from the root are not
    printed; split nodes at that depth are drawn as truncated leaves.
    """

    def __init__(self, options: PrintTreeOptions | None = None,
                 max_levels_per_edge: int = DEFAULT_MAX_LEVELS_PER_EDGE,
                 detail: bool = False, title: str | None = None):
        self.options = options or PrintTreeOptions()
        self.max_levels_per_edge = max_levels_per_edge
        self.detail = detail
        self.title = title

    @property
    def format_name(self) -> str:
        return "dot"

    def get_file_extension(self) -> str:
        return ".gv"

    def write(self, graph: TreeGraph, stream: TextIO) -> None:
        """Write the DOT document for all subgraphs."""
        stream.write(HEADER.format(version=__version__))
        stream.write("\n")
        stream.write("digraph G {\n")
        for subgraph in graph.subgraphs:
            self._write_subgraph(subgraph, stream)
        stream.write("\n")
        stream.write("}\n")
        logger.debug(f"Wrote {len(graph.subgraphs)} subgraph(s) as DOT")

    def _write_subgraph(self, subgraph: TreeSubgraph, stream: TextIO) -> None:
        font_size = self.options.font_size
        last_level = min(subgraph.max_depth, self.max_levels_per_edge)

        stream.write("\n")
        stream.write(f"subgraph cluster_{subgraph.number} {{\n")
        stream.write("/* Nodes */\n")
        for level in range(last_level + 1):
            stream.write("\n")
            stream.write(f"/* Level {level} */\n")
            stream.write("{\n")
            for node in subgraph.nodes_at_level(level):
                stream.write(self._render_node(node, subgraph.number) + "\n")
            stream.write("}\n")

        stream.write("\n")
        stream.write("/* Edges */\n")
        for node in subgraph.iter_depth_first():
            if node.is_leaf or node.depth >= self.max_levels_per_edge:
                continue
            for child, label in zip(subgraph.children(node), self._edge_labels(node)):
                stream.write(
                    f'"{node.dot_name(subgraph.number)}" -> "{child.dot_name(subgraph.number)}"'
                    f' [fontsize={font_size}, label="{escape_label(label)}"]\n'
                )

        title = self.title if self.title is not None else subgraph.name
        stream.write("\n")
        stream.write(f"fontsize={font_size}\n")
        stream.write(f'label="{escape_label(title)}"\n')
        stream.write("}\n")

    def _render_node(self, node: TreeNode, subgraph_number: int) -> str:
        """Render a single node statement."""
        font_size = self.options.font_size
        name = node.dot_name(subgraph_number)

        if node.is_leaf:
            lines = [self._format_number(node.prediction)]
            if node.predicted_class is not None:
                lines.insert(0, node.predicted_class)
            attributes = f"fontsize={font_size}"
        elif node.depth >= self.max_levels_per_edge:
            # Frontier of the printed tree
            lines = ["..."]
            attributes = f"shape=box, style=dashed, fontsize={font_size}"
        else:
            lines = [node.column]
            attributes = f"shape=box, fontsize={font_size}"

        if self.detail:
            lines.append("")
            lines.append(f"N{node.node_id}")
            if node.split_value is not None:
                lines.append(f"Split value: {self._format_number(node.split_value)}")
            lines.append(f"Weight: {self._format_number(node.weight)}")

        label = "\\n".join(escape_label(line) for line in lines)
        return f'"{name}" [{attributes}, label="{label}"]'

    def _edge_labels(self, node: TreeNode) -> list[str]:
        threshold = self._format_number(node.split_value)
        return [f"<= {threshold}", f"> {threshold}"]

    def _format_number(self, value: float | None) -> str:
        if value is None:
            return "NA"
        return repr(self.options.round_value(float(value)))


def escape_label(label: str) -> str:
    """Escape text for use inside a double-quoted DOT string."""
    return label.replace("\\", "\\\\").replace('"', '\\"')
