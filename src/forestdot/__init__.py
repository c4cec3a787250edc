"""forestdot - Print decision trees of tree-ensemble models as Graphviz DOT.

forestdot loads a serialized scikit-learn tree ensemble, converts one or all
of its trees into a tree graph and writes it as DOT text, optionally
rendering a PNG image straight away.
"""

__version__ = "0.1.0"
__author__ = "forestdot developers"
__description__ = "Emit a human-consumable graph of a tree-ensemble model for use with dot (graphviz)"

from forestdot.config import PrintTreeOptions, RenderRequest

__all__ = [
    "__version__",
    "__author__",
    "__description__",
    "PrintTreeOptions",
    "RenderRequest",
]
