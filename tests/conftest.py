"""Shared fixtures for the tree_graphs test suite."""

import copy

import numpy as np
import pytest

from tree_graphs.ingest import ingest
from tree_graphs.presets import ExplorerConfig

SAMPLE_DATA = {
    "id": "root",
    "children": [
        {
            "id": "A",
            "children": [{"id": f"A{i}"} for i in range(1, 6)],
        },
        {
            "id": "B",
            "children": [{"id": f"B{i}"} for i in range(1, 5)],
        },
        {
            "id": "C",
            "children": [{"id": "C1"}, {"id": "C2"}],
        },
    ],
}


@pytest.fixture
def sample_data():
    """Fresh copy of the three-branch hierarchy (A: 5, B: 4, C: 2 children)."""
    return copy.deepcopy(SAMPLE_DATA)


@pytest.fixture
def graph(sample_data):
    return ingest(sample_data, cluster_threshold=3)


@pytest.fixture
def rng():
    return np.random.default_rng(1234)


@pytest.fixture
def config():
    return ExplorerConfig(seed=7)
