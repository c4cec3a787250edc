"""Output destinations for rendered DOT text.

Exactly one target is active per run:

- ``ConsoleTarget``: DOT text goes to stdout
- ``FileTarget``: DOT text goes to a named file
- ``ImageTarget``: DOT text goes to a temporary file, which is then read back
  by pydot and rendered as a PNG image
"""

import logging
import os
import sys
import tempfile
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path
from typing import Annotated, Literal, TextIO

import pydot
from pydantic import BaseModel, ConfigDict, Field

from .errors import OutputError
from .graph.framework import GraphRenderer
from .graph.models import TreeGraph

logger = logging.getLogger(__name__)

TEMP_PREFIX = "forestdot-"
TEMP_SUFFIX = ".gv"


class ConsoleTarget(BaseModel):
    """Write DOT text to standard output."""
    kind: Literal["console"] = "console"

    model_config = ConfigDict(frozen=True)


class FileTarget(BaseModel):
    """Write DOT text to a named file."""
    kind: Literal["file"] = "file"
    path: Path

    model_config = ConfigDict(frozen=True)


class ImageTarget(BaseModel):
    """Write DOT text to a temporary file and render it as PNG."""
    kind: Literal["image"] = "image"
    dot_path: Path
    image_path: Path

    model_config = ConfigDict(frozen=True)


OutputTarget = Annotated[ConsoleTarget | FileTarget | ImageTarget, Field(discriminator="kind")]


def create_temp_dot_file() -> Path:
    """Create an empty temporary DOT file and return its path."""
    try:
        fd, name = tempfile.mkstemp(prefix=TEMP_PREFIX, suffix=TEMP_SUFFIX)
    except OSError as e:
        raise OutputError(f"Cannot create temporary DOT file: {e}")
    os.close(fd)
    return Path(name)


def select_output_target(output: Path | None = None, image: Path | None = None) -> OutputTarget:
    """Choose where DOT text goes.

    An image request always writes the DOT text to a temporary file first,
    even when an output path was given as well.
    """
    if image is not None:
        if output is not None:
            logger.warning(f"Ignoring output file {output}: rendering {image} from a temporary DOT file")
        dot_path = create_temp_dot_file()
        logger.info(f"Writing DOT text to temporary file {dot_path}")
        return ImageTarget(dot_path=dot_path, image_path=image)
    if output is not None:
        return FileTarget(path=output)
    return ConsoleTarget()


@contextmanager
def open_sink(target: OutputTarget) -> Iterator[TextIO]:
    """Open the text stream DOT is written to; files are closed on exit."""
    if isinstance(target, ConsoleTarget):
        yield sys.stdout
        sys.stdout.flush()
        return

    path = target.path if isinstance(target, FileTarget) else target.dot_path
    try:
        f = open(path, "w", encoding="utf-8")
    except OSError as e:
        raise OutputError(f"Cannot open {path} for writing: {e}")

    with f:
        try:
            yield f
        except OSError as e:
            raise OutputError(f"Failed writing {path}: {e}")


def render_png(dot_path: Path, image_path: Path) -> None:
    """Parse a DOT file with pydot and rasterize it with Graphviz."""
    try:
        graphs = pydot.graph_from_dot_file(str(dot_path))
    except OSError as e:
        raise OutputError(f"Cannot read DOT file {dot_path}: {e}")
    if not graphs:
        raise OutputError(f"Could not parse DOT file: {dot_path}")

    try:
        graphs[0].write_png(str(image_path))
    except (OSError, AssertionError) as e:
        # pydot reports a failing dot process as AssertionError
        raise OutputError(f"Failed to render {image_path}: {e}")
    logger.info(f"Rendered {dot_path} to {image_path}")


class OutputRouter:
    """Sends a rendered tree graph to its output target."""

    def __init__(self, renderer: GraphRenderer, raw_stream: TextIO | None = None):
        self.renderer = renderer
        self.raw_stream = raw_stream

    def emit(self, graph: TreeGraph, target: OutputTarget, raw_dump: bool = False) -> None:
        """Write the graph to the target and render the image if requested.

        The raw dump is written to stdout, ahead of the DOT text, so that
        DOT files stay parseable.
        """
        if raw_dump:
            graph.print_raw(self.raw_stream or sys.stdout)

        with open_sink(target) as sink:
            self.renderer.write(graph, sink)

        if isinstance(target, FileTarget):
            logger.info(f"Wrote {self.renderer.format_name} output to {target.path}")
        elif isinstance(target, ImageTarget):
            render_png(target.dot_path, target.image_path)
