"""Test tree queries and copy-on-write mutations."""

import copy
from decimal import Decimal

import pytest

from domain.bom.entities import MaterialNode, StructuralNode, create_node
from domain.bom.tree import (
    add_child_node,
    collect_ids,
    collect_selected,
    delete_node,
    find_node,
    iter_nodes,
    max_depth,
    path_to_node,
    sibling_count,
    update_node,
)
from domain.shared.exceptions import (
    DepthExceededException,
    EntityAlreadyExistsException,
    MaxDepthExceededException,
    NodeNotFoundException,
    ParentNotFoundException,
    RootDeletionForbiddenException,
    ValidationException,
)


# =============================================================================
# NODES
# =============================================================================

def test_create_node_picks_variant_from_level():
    assert isinstance(create_node(5), StructuralNode)
    assert isinstance(create_node(6), MaterialNode)
    assert isinstance(create_node(7), MaterialNode)


def test_material_attributes_are_dropped_on_structural_levels():
    node = create_node(3, "Board", cost=99, quantity=5, supplier="Acme")
    assert isinstance(node, StructuralNode)
    assert not hasattr(node, "cost")


def test_unknown_attributes_are_rejected():
    with pytest.raises(ValidationException):
        create_node(6, "Cap", colour="red")


def test_material_values_are_validated():
    part = create_node(6, cost="12.50", quantity="3")
    assert part.cost == Decimal("12.50")
    assert part.quantity == Decimal("3")
    assert part.extended_cost == Decimal("37.50")
    with pytest.raises(ValidationException):
        create_node(6, quantity=0)
    with pytest.raises(ValidationException):
        create_node(6, cost=-1)
    with pytest.raises(ValidationException):
        create_node(6, item_status="broken")


def test_leaf_level_cannot_hold_children():
    with pytest.raises(DepthExceededException):
        create_node(7, children=(create_node(7),))


def test_nodes_are_frozen(tree):
    with pytest.raises(AttributeError):
        tree.title = "Changed"


# =============================================================================
# QUERIES
# =============================================================================

def test_collect_ids_is_pre_order(tree):
    assert collect_ids(tree) == ["root", "unit", "sub", "part", "alt", "other"]


def test_find_node(tree):
    assert find_node(tree, "part").title == "Cap"
    assert find_node(tree, "root") is tree
    assert find_node(tree, "missing") is None


def test_find_returns_first_match_in_pre_order():
    first = create_node(2, "first", node_id="dup")
    second = create_node(2, "second", node_id="dup")
    root = create_node(1, node_id="root", children=(first, second))
    assert find_node(root, "dup").title == "first"


def test_sibling_count(tree):
    assert sibling_count(tree, "root") == 2
    assert sibling_count(tree, "alt") == 0
    assert sibling_count(tree, "missing") == 0


def test_collect_selected_keeps_traversal_order(tree):
    selected = collect_selected(tree, ["alt", "unit", "missing"])
    assert [node.id for node in selected] == ["unit", "alt"]


def test_path_to_node(tree):
    assert [node.id for node in path_to_node(tree, "alt")] == ["root", "unit", "sub", "part", "alt"]
    assert path_to_node(tree, "missing") == []


def test_max_depth(tree):
    assert max_depth(tree) == 5
    assert max_depth(create_node(1)) == 1


# =============================================================================
# UPDATE
# =============================================================================

def test_update_then_find_round_trip(tree):
    """Test that every node can be renamed and found again."""
    for node_id in collect_ids(tree):
        updated = update_node(tree, node_id, {"title": "X"})
        assert find_node(updated, node_id).title == "X"


def test_update_keeps_children_and_untouched_fields(tree):
    updated = update_node(tree, "part", {"cost": "4"})
    part = find_node(updated, "part")
    assert part.cost == Decimal("4")
    assert part.quantity == Decimal("10")
    assert [child.id for child in part.children] == ["alt"]


def test_update_shares_nodes_off_the_path(tree):
    updated = update_node(tree, "alt", {"title": "New alt"})
    assert updated is not tree
    assert find_node(updated, "other") is find_node(tree, "other")
    assert find_node(updated, "part") is not find_node(tree, "part")


def test_update_does_not_touch_the_original(tree):
    snapshot = copy.deepcopy(tree)
    update_node(tree, "part", {"title": "Changed", "cost": 7})
    assert tree == snapshot


def test_update_can_replace_children(tree):
    replacement = create_node(7, "New alt", node_id="alt2")
    updated = update_node(tree, "part", {"children": [replacement]})
    part = find_node(updated, "part")
    assert [child.id for child in part.children] == ["alt2"]
    assert part.children[0].parent_id == "part"


def test_update_keeps_existing_children_when_reordering(tree):
    unit = find_node(tree, "unit")
    other = create_node(3, "Frame rail", node_id="rail")
    updated = update_node(tree, "unit", {"children": [other, *unit.children]})
    assert [child.id for child in find_node(updated, "unit").children] == ["rail", "sub"]
    assert find_node(updated, "alt").parent_id == "part"


@pytest.mark.parametrize("node_id, child_level", [
    ("part", 1),
    ("part", 6),
    ("unit", 2),
    ("sub", 7),
])
def test_replacement_children_must_sit_below_the_node(tree, node_id, child_level):
    """Test that children set through a patch obey the same level rule as add_child_node."""
    rogue = create_node(child_level, "Rogue", node_id="rogue")
    with pytest.raises(ValidationException):
        update_node(tree, node_id, {"children": (rogue,)})


def test_replacement_grandchildren_are_level_checked(tree):
    nested = create_node(3, "S", node_id="s2", children=(create_node(2, "U", node_id="u2"),))
    with pytest.raises(ValidationException):
        update_node(tree, "other", {"children": [nested]})


def test_alternate_cannot_get_children_through_a_patch(tree):
    with pytest.raises(MaxDepthExceededException):
        update_node(tree, "alt", {"children": [create_node(7, "Deeper", node_id="x")]})


@pytest.mark.parametrize("taken_id", ["root", "other", "unit", "sub"])
def test_replacement_children_cannot_reuse_ids_from_the_rest_of_the_tree(tree, taken_id):
    duplicate = create_node(7, "Copy", node_id=taken_id)
    with pytest.raises(EntityAlreadyExistsException):
        update_node(tree, "part", {"children": [duplicate]})


def test_replacement_children_cannot_repeat_an_id(tree):
    twins = [create_node(3, "A", node_id="twin"), create_node(3, "B", node_id="twin")]
    with pytest.raises(EntityAlreadyExistsException):
        update_node(tree, "other", {"children": twins})


def test_rejected_children_patch_leaves_tree_untouched(tree):
    snapshot = copy.deepcopy(tree)
    with pytest.raises(ValidationException):
        update_node(tree, "part", {"children": [create_node(1, "Rogue", node_id="rogue")]})
    assert tree == snapshot


@pytest.mark.parametrize("field_name", ["id", "level", "parent_id"])
def test_identity_fields_cannot_be_patched(tree, field_name):
    with pytest.raises(ValidationException):
        update_node(tree, "part", {field_name: "x"})


def test_patch_is_validated_against_the_node(tree):
    with pytest.raises(ValidationException):
        update_node(tree, "unit", {"cost": 5})
    with pytest.raises(ValidationException):
        update_node(tree, "part", {"quantity": 0})


def test_update_unknown_id_raises(tree):
    with pytest.raises(NodeNotFoundException) as exc_info:
        update_node(tree, "missing", {"title": "X"})
    assert exc_info.value.code == "NODE_NOT_FOUND"


# =============================================================================
# DELETE
# =============================================================================

def test_delete_removes_subtree(tree):
    result = delete_node(tree, "unit")
    for node_id in ("unit", "sub", "part", "alt"):
        assert find_node(result, node_id) is None
    assert collect_ids(result) == ["root", "other"]
    assert collect_ids(tree) == ["root", "unit", "sub", "part", "alt", "other"]


def test_delete_root_is_forbidden(tree):
    with pytest.raises(RootDeletionForbiddenException) as exc_info:
        delete_node(tree, "root")
    assert exc_info.value.code == "ROOT_DELETION_FORBIDDEN"


def test_delete_unknown_id_raises(tree):
    with pytest.raises(NodeNotFoundException):
        delete_node(tree, "missing")


# =============================================================================
# ADD CHILD
# =============================================================================

def test_add_child_appends_and_sets_parent(tree):
    new = create_node(2, "Cover", node_id="cover")
    result = add_child_node(tree, "root", new)
    assert [child.id for child in result.children] == ["unit", "other", "cover"]
    assert find_node(result, "cover").parent_id == "root"
    assert find_node(tree, "cover") is None


def test_add_child_to_unknown_parent(tree):
    with pytest.raises(ParentNotFoundException) as exc_info:
        add_child_node(tree, "missing", create_node(2))
    assert exc_info.value.code == "PARENT_NOT_FOUND"


def test_add_child_under_leaf_always_fails(tree):
    """Test that nothing can be added under a level-7 node."""
    snapshot = copy.deepcopy(tree)
    for level in range(1, 8):
        with pytest.raises(MaxDepthExceededException) as exc_info:
            add_child_node(tree, "alt", create_node(level))
        assert exc_info.value.code == "MAX_DEPTH_EXCEEDED"
    assert tree == snapshot


def test_add_child_rejects_wrong_level(tree):
    with pytest.raises(ValidationException):
        add_child_node(tree, "unit", create_node(2))
    with pytest.raises(ValidationException):
        add_child_node(tree, "sub", create_node(7))


def test_add_child_rejects_duplicate_id(tree):
    with pytest.raises(EntityAlreadyExistsException):
        add_child_node(tree, "root", create_node(2, node_id="other"))


def test_tree_built_by_mutator_keeps_levels_descending(tree):
    result = add_child_node(tree, "other", create_node(3, node_id="s"))
    result = add_child_node(result, "s", create_node(6, node_id="p"))
    result = add_child_node(result, "p", create_node(7, node_id="a"))
    for node in iter_nodes(result):
        for child in node.children:
            assert child.level > node.level
            assert child.parent_id == node.id
