"""Tests for the layer hierarchy lookups."""

import pytest
from hypothesis import given
from hypothesis import strategies as st

from wmslayer.hierarchy import find_layer, iter_layers, layer_exists, named_layers, style_exists
from wmslayer.types import LayerStyle, ServerLayer

from conftest import make_capabilities


@pytest.fixture
def root():
    return make_capabilities().root_layer


def test_layer_exists_matches_root(root):
    assert layer_exists(root, "world")


def test_layer_exists_matches_nested_layer(root):
    assert layer_exists(root, "roads")
    assert layer_exists(root, "rivers")


def test_layer_exists_is_case_sensitive(root):
    assert not layer_exists(root, "Roads")


def test_unnamed_container_layer_is_not_matched_by_title(root):
    assert not layer_exists(root, "Water")


def test_layer_exists_on_empty_tree():
    assert not layer_exists(None, "roads")
    assert not style_exists(None, "blue")


def test_style_exists_on_root_and_descendants(root):
    assert style_exists(root, "default")
    assert style_exists(root, "highways")
    assert style_exists(root, "blue")
    assert not style_exists(root, "red")


def test_style_names_are_not_layer_names(root):
    assert not layer_exists(root, "blue")
    assert not style_exists(root, "rivers")


def test_iter_layers_is_preorder(root):
    titles = [layer.title for layer in iter_layers(root)]
    assert titles == ["World", "Roads", "Water", "Rivers"]


def test_find_layer_returns_first_match_in_preorder():
    first = ServerLayer(name="dup", title="first")
    second = ServerLayer(name="dup", title="second")
    root = ServerLayer(name="root", children=[ServerLayer(children=[first]), second])

    assert find_layer(root, "dup").title == "first"


def test_named_layers_skips_containers(root):
    assert named_layers(root) == ["world", "roads", "rivers"]


names = st.text(alphabet="abcdefgh", min_size=1, max_size=3)
trees = st.recursive(
    st.builds(ServerLayer, name=names, styles=st.lists(st.builds(LayerStyle, name=names), max_size=2)),
    lambda children: st.builds(
        ServerLayer,
        name=names,
        styles=st.lists(st.builds(LayerStyle, name=names), max_size=2),
        children=st.lists(children, max_size=3),
    ),
    max_leaves=10,
)


def _all_names(layer):
    found = {layer.name}
    for child in layer.children:
        found |= _all_names(child)
    return found


def _all_styles(layer):
    found = {style.name for style in layer.styles}
    for child in layer.children:
        found |= _all_styles(child)
    return found


@pytest.mark.property
@given(root=trees, name=names)
def test_layer_exists_iff_name_on_some_path(root, name):
    assert layer_exists(root, name) == (name in _all_names(root))


@pytest.mark.property
@given(root=trees, name=names)
def test_style_exists_iff_style_on_some_path(root, name):
    assert style_exists(root, name) == (name in _all_styles(root))
