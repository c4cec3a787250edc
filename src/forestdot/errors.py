"""Error types raised by forestdot components.

Each error carries the process exit code the CLI terminates with.
"""


class ForestdotError(Exception):
    """Base class for forestdot errors."""

    exit_code = 2


class ValidationError(ForestdotError):
    """The request is incomplete or inconsistent."""

    exit_code = 1


class MissingInputError(ValidationError):
    """No model was given with -i/--input."""

    def __init__(self, message: str = "Must specify -i"):
        super().__init__(message)


class ModelLoadError(ValidationError):
    """The model file could not be deserialized."""


class UnsupportedModelError(ValidationError):
    """The loaded model cannot be converted to a tree graph."""


class TreeIndexError(ValidationError):
    """The requested tree does not exist in the model."""


class OutputError(ForestdotError):
    """Writing DOT text or rendering the image failed."""

    exit_code = 2
