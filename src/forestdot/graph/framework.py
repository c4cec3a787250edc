"""Renderer interface for tree graphs."""

import io
from abc import ABC, abstractmethod
from typing import TextIO

from .models import TreeGraph


class GraphRenderer(ABC):
    """Abstract base class for tree graph renderers."""

    @property
    @abstractmethod
    def format_name(self) -> str:
        """Name of the output format."""
        pass

    @abstractmethod
    def write(self, graph: TreeGraph, stream: TextIO) -> None:
        """Write the rendered graph to a text stream."""
        pass

    @abstractmethod
    def get_file_extension(self) -> str:
        """Get file extension for this format."""
        pass

    def render(self, graph: TreeGraph) -> str:
        """Render graph to a string."""
        buffer = io.StringIO()
        self.write(graph, buffer)
        return buffer.getvalue()
