"""Tree graph data models shared by the converter and the renderers."""

from collections.abc import Iterator
from dataclasses import dataclass, field
from typing import TextIO


@dataclass
class TreeNode:
    """A single decision or leaf node of a tree."""
    node_id: int  # Position in the source tree arrays
    depth: int  # Edges from the root
    weight: float  # Weighted number of training samples reaching the node
    column: str | None = None  # Split column, None for leaves
    split_value: float | None = None  # Samples with value <= split_value go left
    left: int | None = None
    right: int | None = None
    prediction: float | None = None
    predicted_class: str | None = None

    @property
    def is_leaf(self) -> bool:
        return self.left is None and self.right is None

    def dot_name(self, subgraph_number: int) -> str:
        """Node identifier, unique across the whole DOT document."""
        return f"SG_{subgraph_number}_Node_{self.node_id}"


@dataclass
class TreeSubgraph:
    """One tree of the ensemble."""
    number: int  # Position in the rendered graph
    name: str  # Default title, e.g. "Tree 3, Class 1"
    nodes: dict[int, TreeNode] = field(default_factory=dict)
    root_id: int = 0

    def add_node(self, node: TreeNode) -> None:
        """Add a node to the tree."""
        self.nodes[node.node_id] = node

    @property
    def root(self) -> TreeNode:
        return self.nodes[self.root_id]

    def children(self, node: TreeNode) -> list[TreeNode]:
        """Left and right child of a split node, empty for a leaf."""
        if node.is_leaf:
            return []
        return [self.nodes[node.left], self.nodes[node.right]]

    def iter_depth_first(self) -> Iterator[TreeNode]:
        """Yield nodes in pre-order, left subtree before right subtree."""
        stack = [self.root]
        while stack:
            node = stack.pop()
            yield node
            stack.extend(reversed(self.children(node)))

    @property
    def max_depth(self) -> int:
        return max((node.depth for node in self.nodes.values()), default=0)

    def nodes_at_level(self, level: int) -> list[TreeNode]:
        """Nodes at the given depth, in depth-first order."""
        return [node for node in self.iter_depth_first() if node.depth == level]


@dataclass
class TreeGraph:
    """All trees selected for rendering."""
    subgraphs: list[TreeSubgraph] = field(default_factory=list)

    def add_subgraph(self, subgraph: TreeSubgraph) -> None:
        """Add a tree to the graph."""
        self.subgraphs.append(subgraph)

    @property
    def node_count(self) -> int:
        return sum(len(sg.nodes) for sg in self.subgraphs)

    def print_raw(self, stream: TextIO) -> None:
        """Write an unstructured dump of every node, for debugging."""
        stream.write("-" * 60 + "\n")
        stream.write("Graph\n")
        for sg in self.subgraphs:
            stream.write(f"Subgraph {sg.number}: {sg.name}\n")
            for node in sg.iter_depth_first():
                if node.is_leaf:
                    stream.write(
                        f"    Node {node.node_id}: depth={node.depth} leaf"
                        f" prediction={node.prediction!r} class={node.predicted_class}"
                        f" weight={node.weight!r}\n"
                    )
                else:
                    stream.write(
                        f"    Node {node.node_id}: depth={node.depth}"
                        f" column={node.column} split={node.split_value!r}"
                        f" left={node.left} right={node.right} weight={node.weight!r}\n"
                    )
        stream.write("-" * 60 + "\n")
