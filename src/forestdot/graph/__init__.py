"""Tree graph module for forestdot.

Converts fitted tree models into tree graphs and renders them as Graphviz
DOT text.
"""

from .converter import TreeGraphConverter, tree_grid
from .dot import DotRenderer
from .framework import GraphRenderer
from .models import TreeGraph, TreeNode, TreeSubgraph

__all__ = [
    "TreeGraphConverter",
    "tree_grid",
    "DotRenderer",
    "GraphRenderer",
    "TreeGraph",
    "TreeNode",
    "TreeSubgraph",
]
