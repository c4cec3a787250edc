"""Pytest configuration and fixtures for forestdot tests."""

from pathlib import Path

import joblib
import numpy as np
import pytest
from sklearn.datasets import load_iris
from sklearn.ensemble import GradientBoostingClassifier, GradientBoostingRegressor, RandomForestClassifier
from sklearn.tree import DecisionTreeRegressor

from forestdot.graph.models import TreeGraph, TreeNode, TreeSubgraph


@pytest.fixture(scope="session")
def iris():
    """Iris features and labels."""
    data = load_iris()
    return data.data, data.target


@pytest.fixture(scope="session")
def forest(iris):
    """Small random forest classifier with three trees."""
    X, y = iris
    return RandomForestClassifier(n_estimators=3, max_depth=4, random_state=0).fit(X, y)


@pytest.fixture(scope="session")
def boosted_regressor(iris):
    """Gradient boosting regressor with two stages."""
    X, y = iris
    return GradientBoostingRegressor(n_estimators=2, max_depth=3, learning_rate=0.5, random_state=0).fit(X, y)


@pytest.fixture(scope="session")
def boosted_classifier(iris):
    """Multi-class gradient boosting, one tree per class and stage."""
    X, y = iris
    return GradientBoostingClassifier(n_estimators=2, max_depth=2, random_state=0).fit(X, y)


@pytest.fixture(scope="session")
def deep_tree():
    """Unbounded regression tree on noisy data, deeper than ten levels."""
    rng = np.random.RandomState(0)
    X = rng.uniform(size=(400, 3))
    y = rng.normal(size=400)
    return DecisionTreeRegressor(random_state=0).fit(X, y)


@pytest.fixture
def model_file(tmp_path: Path, forest) -> Path:
    """Random forest saved with joblib."""
    path = tmp_path / "forest.joblib"
    joblib.dump(forest, path)
    return path


@pytest.fixture
def small_graph() -> TreeGraph:
    """Hand-built graph: one split with two leaves, one of them a subtree.

    Tree layout::

        0: petal <= 2.45
        +-- 1: leaf 0.123456
        +-- 2: sepal <= 5.5
            +-- 3: leaf -1.25
            +-- 4: leaf 7.5
    """
    sg = TreeSubgraph(number=0, name="Tree 0")
    sg.add_node(TreeNode(node_id=0, depth=0, weight=10.0, column="petal", split_value=2.45, left=1, right=2))
    sg.add_node(TreeNode(node_id=1, depth=1, weight=4.0, prediction=0.123456))
    sg.add_node(TreeNode(node_id=2, depth=1, weight=6.0, column="sepal", split_value=5.5, left=3, right=4))
    sg.add_node(TreeNode(node_id=3, depth=2, weight=2.0, prediction=-1.25))
    sg.add_node(TreeNode(node_id=4, depth=2, weight=4.0, prediction=7.5, predicted_class="virginica"))
    return TreeGraph(subgraphs=[sg])
