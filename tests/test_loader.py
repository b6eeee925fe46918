"""Tests for hierarchy loading and normalisation."""

import json

import pandas as pd
import pytest

from tree_graphs.errors import DuplicateNodeError, IngestionError
from tree_graphs.graph_state import HierarchyNode
from tree_graphs.loader import (
    load_hierarchy,
    load_hierarchy_json,
    load_hierarchy_table,
    to_hierarchy,
)


def test_to_hierarchy_keeps_payload():
    h = to_hierarchy({"id": "r", "label": "Root", "children": [{"weight": 3}]})
    assert h.id == "r"
    assert h.payload == {"label": "Root"}
    assert h.children[0].id is None
    assert h.children[0].payload == {"weight": 3}


def test_to_hierarchy_coerces_ids_to_str():
    h = to_hierarchy({"id": 7, "children": [{"id": ""}]})
    assert h.id == "7"
    assert h.children[0].id is None


def test_to_hierarchy_rejects_non_mapping():
    with pytest.raises(IngestionError):
        to_hierarchy(["not", "a", "node"])


def test_walk_is_pre_order(sample_data):
    ids = [h.id for h in to_hierarchy(sample_data).walk()]
    assert ids[:3] == ["root", "A", "A1"]
    assert ids[-3:] == ["C", "C1", "C2"]


def test_load_json(tmp_path, sample_data):
    path = tmp_path / "tree.json"
    path.write_text(json.dumps(sample_data), encoding="utf-8")
    h = load_hierarchy(str(path))
    assert isinstance(h, HierarchyNode)
    assert h.child_count == 3


def test_load_json_errors(tmp_path):
    with pytest.raises(IngestionError):
        load_hierarchy_json(str(tmp_path / "missing.json"))
    bad = tmp_path / "bad.json"
    bad.write_text("{not json", encoding="utf-8")
    with pytest.raises(IngestionError):
        load_hierarchy_json(str(bad))


def test_table_folds_into_tree():
    df = pd.DataFrame({
        "id": ["root", "a", "b", "a1"],
        "parent": [None, "root", "root", "a"],
        "label": ["R", "A", None, "A1"],
    })
    h = load_hierarchy_table(df)
    assert h.id == "root"
    assert [c.id for c in h.children] == ["a", "b"]
    assert h.children[0].children[0].id == "a1"
    assert h.children[0].payload == {"label": "A"}
    assert h.children[1].payload == {}


def test_table_from_csv(tmp_path):
    path = tmp_path / "tree.csv"
    path.write_text("node,up\nr,\nx,r\ny,r\n", encoding="utf-8")
    h = load_hierarchy(str(path), id_col="node", parent_col="up")
    assert [c.id for c in h.children] == ["x", "y"]


@pytest.mark.parametrize("rows,err", [
    ({"id": ["r", "r"], "parent": [None, "r"]}, DuplicateNodeError),
    ({"id": ["r", "s"], "parent": [None, None]}, IngestionError),
    ({"id": ["r", "a"], "parent": [None, "zzz"]}, IngestionError),
    ({"id": ["r", "a", "b"], "parent": [None, "b", "a"]}, IngestionError),
])
def test_table_errors(rows, err):
    with pytest.raises(err):
        load_hierarchy_table(pd.DataFrame(rows))


def test_table_missing_column():
    with pytest.raises(IngestionError):
        load_hierarchy_table(pd.DataFrame({"id": ["r"]}))
