"""Conversion of fitted scikit-learn tree models into tree graphs."""

import logging
from typing import Any

import numpy as np

from ..config import ALL_TREES
from ..errors import TreeIndexError, UnsupportedModelError
from .models import TreeGraph, TreeNode, TreeSubgraph

logger = logging.getLogger(__name__)

# Child id scikit-learn stores for leaves (sklearn.tree._tree.TREE_LEAF).
TREE_LEAF = -1


def _is_fitted_tree(estimator: Any) -> bool:
    tree = getattr(estimator, "tree_", None)
    return tree is not None and hasattr(tree, "children_left")


def tree_grid(model: Any) -> list[list[Any]] | None:
    """Trees of a model arranged per iteration.

    Each row holds the trees built in one iteration: a single tree for
    forests, or one tree per class for multi-class gradient boosting.
    Returns None when the model is not made of fitted trees.
    """
    if _is_fitted_tree(model):
        return [[model]]

    estimators = getattr(model, "estimators_", None)
    if estimators is None:
        return None

    rows = []
    for entry in estimators:
        row = list(entry) if isinstance(entry, (list, tuple, np.ndarray)) else [entry]
        if not row or not all(_is_fitted_tree(tree) for tree in row):
            return None
        rows.append(row)
    return rows or None


class TreeGraphConverter:
    """Builds a TreeGraph from one or all trees of a model."""

    def supports(self, model: Any) -> bool:
        """Whether the model can be converted to a tree graph."""
        return tree_grid(model) is not None

    def convert(self, model: Any, tree_index: int = ALL_TREES, internal: bool = False) -> TreeGraph:
        """Convert the selected tree(s) of ``model``.

        Args:
            model: Fitted tree or tree ensemble
            tree_index: Iteration to convert, or -1 for every tree
            internal: Source the raw stored per-node fields instead of
                      named columns and derived predictions

        Returns:
            TreeGraph with one subgraph per converted tree

        Raises:
            UnsupportedModelError: If the model is not made of trees
            TreeIndexError: If tree_index is out of range
        """
        if not self.supports(model):
            raise UnsupportedModelError(f"Unknown model type: {type(model).__name__}")
        grid = tree_grid(model)

        if tree_index == ALL_TREES:
            selected = list(enumerate(grid))
        elif 0 <= tree_index < len(grid):
            selected = [(tree_index, grid[tree_index])]
        else:
            raise TreeIndexError(
                f"Tree {tree_index} does not exist, model has {len(grid)} tree(s)"
            )

        feature_names = self._feature_names(model)
        feature_subsets = getattr(model, "estimators_features_", None)
        classes = self._classes(model)
        scale = self._leaf_scale(model)

        graph = TreeGraph()
        for iteration, row in selected:
            feature_map = feature_subsets[iteration] if feature_subsets is not None else None
            for class_number, estimator in enumerate(row):
                name = f"Tree {iteration}"
                if len(row) > 1:
                    label = classes[class_number] if classes is not None else class_number
                    name += f", Class {label}"
                subgraph = self._convert_tree(
                    estimator,
                    number=len(graph.subgraphs),
                    name=name,
                    feature_names=feature_names,
                    feature_map=feature_map,
                    classes=classes,
                    scale=scale,
                    internal=internal,
                )
                graph.add_subgraph(subgraph)

        logger.info(
            f"Converted {len(graph.subgraphs)} tree(s) with {graph.node_count} nodes"
            f" from {type(model).__name__}"
        )
        return graph

    def _convert_tree(self, estimator: Any, number: int, name: str, feature_names: list[str] | None,
                      feature_map: Any, classes: list[str] | None, scale: float,
                      internal: bool) -> TreeSubgraph:
        """Walk the arrays of one fitted tree.

        Bagging ensembles fit each tree on a subset of the columns; their
        ``feature_map`` translates the tree's feature indices back to the
        model's columns.
        """
        tree = estimator.tree_
        subgraph = TreeSubgraph(number=number, name=name)

        stack = [(0, 0)]
        while stack:
            node_id, depth = stack.pop()
            left = int(tree.children_left[node_id])
            right = int(tree.children_right[node_id])
            node = TreeNode(
                node_id=node_id,
                depth=depth,
                weight=float(tree.weighted_n_node_samples[node_id]),
            )
            if left == TREE_LEAF:
                self._fill_prediction(node, tree.value[node_id], classes, scale, internal)
            else:
                feature = int(tree.feature[node_id])
                if feature_map is not None:
                    feature = int(feature_map[feature])
                node.column = self._column_name(feature, feature_names, internal)
                node.split_value = float(tree.threshold[node_id])
                node.left = left
                node.right = right
                stack.append((right, depth + 1))
                stack.append((left, depth + 1))
            subgraph.add_node(node)

        return subgraph

    def _fill_prediction(self, node: TreeNode, value: Any, classes: list[str] | None,
                         scale: float, internal: bool) -> None:
        # First output only; multi-output trees show their leading target.
        values = np.asarray(value, dtype=float)[0]

        if values.shape[0] > 1:
            class_index = int(np.argmax(values))
            if internal:
                node.prediction = float(values[class_index])
                node.predicted_class = str(class_index)
            else:
                total = float(values.sum())
                node.prediction = float(values[class_index]) / total if total else 0.0
                node.predicted_class = classes[class_index] if classes is not None else str(class_index)
            return

        raw = float(values[0])
        node.prediction = raw if internal else raw * scale

    def _column_name(self, feature: int, feature_names: list[str] | None, internal: bool) -> str:
        if internal:
            return f"feature[{feature}]"
        if feature_names is not None and feature < len(feature_names):
            return feature_names[feature]
        return f"x{feature}"

    def _feature_names(self, model: Any) -> list[str] | None:
        names = getattr(model, "feature_names_in_", None)
        if names is None:
            return None
        return [str(name) for name in names]

    def _classes(self, model: Any) -> list[str] | None:
        classes = getattr(model, "classes_", None)
        if classes is None:
            return None
        # Multi-output classifiers keep one array of classes per output.
        if isinstance(classes, list):
            classes = classes[0]
        return [str(label) for label in classes]

    def _leaf_scale(self, model: Any) -> float:
        """Factor applied to regression leaves when predicting.

        Gradient boosting shrinks every tree by its learning rate, so the
        contribution of a leaf is its stored value times that rate.
        """
        estimators = getattr(model, "estimators_", None)
        if isinstance(estimators, np.ndarray) and estimators.ndim == 2:
            return float(getattr(model, "learning_rate", 1.0))
        return 1.0
