"""Loading of serialized tree-ensemble models."""

import logging
from pathlib import Path
from typing import Any

import joblib

from .errors import ModelLoadError

logger = logging.getLogger(__name__)

# Keys under which training scripts commonly store the estimator when they
# dump a dict of artifacts (scaler, label encoder, feature list, ...).
ESTIMATOR_KEYS = ("model", "classifier", "regressor", "estimator", "pipeline")


def load_model(path: str | Path) -> Any:
    """Deserialize a model file and return the estimator it holds.

    Raises:
        ModelLoadError: If the file is missing or cannot be unpickled
    """
    path = Path(path)
    logger.info(f"Loading model from {path}")
    try:
        obj = joblib.load(path)
    except FileNotFoundError:
        raise ModelLoadError(f"Model file not found: {path}")
    except Exception as e:
        raise ModelLoadError(f"Failed to load model from {path}: {e}")

    return unwrap_estimator(obj)


def unwrap_estimator(obj: Any) -> Any:
    """Dig the final estimator out of artifact dicts and pipelines."""
    if isinstance(obj, dict):
        for key in ESTIMATOR_KEYS:
            if key in obj:
                logger.debug(f"Using estimator stored under '{key}'")
                return unwrap_estimator(obj[key])
        return obj

    steps = getattr(obj, "steps", None)
    if isinstance(steps, list) and steps:
        logger.debug(f"Using final step '{steps[-1][0]}' of pipeline")
        return unwrap_estimator(steps[-1][1])

    return obj
