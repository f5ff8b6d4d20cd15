"""
BOM Domain - Tree operations.

Pure functions over an immutable BOM tree. Every mutation returns a new
root; nodes on the path to the change are rebuilt, all other nodes are
shared by reference with the input tree.
"""

from __future__ import annotations
from typing import Any, Callable, Collection, Iterator, List, Mapping, Optional, Tuple

from domain.shared.exceptions import (
    EntityAlreadyExistsException,
    MaxDepthExceededException,
    NodeNotFoundException,
    ParentNotFoundException,
    RootDeletionForbiddenException,
    ValidationException,
)

from .entities import IMMUTABLE_FIELDS, BOMNode
from .levels import is_leaf_level, is_valid_child_level


# =============================================================================
# TRAVERSAL
# =============================================================================

def iter_nodes(root: BOMNode) -> Iterator[BOMNode]:
    """Depth-first pre-order walk."""
    stack = [root]
    while stack:
        node = stack.pop()
        yield node
        stack.extend(reversed(node.children))


def find_node(root: BOMNode, node_id: str) -> Optional[BOMNode]:
    """First node with the given id in pre-order, or None."""
    for node in iter_nodes(root):
        if node.id == node_id:
            return node
    return None


def collect_ids(root: BOMNode) -> List[str]:
    """All ids in pre-order (seeds "expand all" in tree views)."""
    return [node.id for node in iter_nodes(root)]


def sibling_count(root: BOMNode, parent_id: str) -> int:
    """Number of children of the given node; 0 when absent or childless."""
    parent = find_node(root, parent_id)
    return len(parent.children) if parent is not None else 0


def collect_selected(root: BOMNode, ids: Collection[str]) -> List[BOMNode]:
    """Nodes whose id is in ids, in traversal order."""
    wanted = set(ids)
    return [node for node in iter_nodes(root) if node.id in wanted]


def path_to_node(root: BOMNode, node_id: str) -> List[BOMNode]:
    """Chain of nodes from the root down to node_id (inclusive); empty if absent."""
    if root.id == node_id:
        return [root]
    for child in root.children:
        path = path_to_node(child, node_id)
        if path:
            return [root] + path
    return []


def max_depth(root: BOMNode) -> int:
    """Number of node tiers in the tree (a lone root has depth 1)."""
    if not root.children:
        return 1
    return 1 + max(max_depth(child) for child in root.children)


# =============================================================================
# REBUILD HELPERS
# =============================================================================

def _rebuild(
    node: BOMNode,
    node_id: str,
    transform: Callable[[BOMNode], BOMNode],
) -> Tuple[BOMNode, bool]:
    """Apply transform to the first node matching node_id, copying its ancestors."""
    if node.id == node_id:
        return transform(node), True
    for index, child in enumerate(node.children):
        new_child, hit = _rebuild(child, node_id, transform)
        if hit:
            children = node.children[:index] + (new_child,) + node.children[index + 1:]
            return node.replace(children=children), True
    return node, False


def _without(node: BOMNode, node_id: str) -> Tuple[BOMNode, bool]:
    """Drop the first descendant matching node_id from its parent's children."""
    for index, child in enumerate(node.children):
        if child.id == node_id:
            children = node.children[:index] + node.children[index + 1:]
            return node.replace(children=children), True
        new_child, hit = _without(child, node_id)
        if hit:
            children = node.children[:index] + (new_child,) + node.children[index + 1:]
            return node.replace(children=children), True
    return node, False


def _merge(patch: Mapping[str, Any]) -> Callable[[BOMNode], BOMNode]:
    forbidden = IMMUTABLE_FIELDS.intersection(patch)
    if forbidden:
        raise ValidationException(
            f"Fields cannot be changed: {sorted(forbidden)}", "patch", sorted(forbidden)
        )
    changes = dict(patch)

    def apply(node: BOMNode) -> BOMNode:
        if "children" not in changes:
            return node.replace(**changes)
        children = tuple(
            child if child.parent_id == node.id else child.replace(parent_id=node.id)
            for child in changes["children"]
        )
        return node.replace(**dict(changes, children=children))

    return apply


def _require_child_level(parent: BOMNode, level: int) -> None:
    if not is_valid_child_level(parent.level, level):
        raise ValidationException(
            f"A level-{level} node cannot be a child of a level-{parent.level} node",
            "level",
            level,
        )


def _check_replacement_children(
    root: BOMNode,
    target: BOMNode,
    children: Collection[BOMNode],
) -> None:
    """
    Reject new children that break the level rule or reuse an id.

    Ids inside the target's current subtree may come back; ids used
    anywhere else in the tree may not.
    """
    if children and is_leaf_level(target.level):
        raise MaxDepthExceededException(target.id, target.level)
    taken = set(collect_ids(root)) - set(collect_ids(target))
    taken.add(target.id)
    for child in children:
        _require_child_level(target, child.level)
        for node in iter_nodes(child):
            if node.id in taken:
                raise EntityAlreadyExistsException("BOMNode", node.id)
            taken.add(node.id)
            for grandchild in node.children:
                _require_child_level(node, grandchild.level)


def _attach(parent_id: str, new_node: BOMNode) -> Callable[[BOMNode], BOMNode]:
    def apply(parent: BOMNode) -> BOMNode:
        _require_child_level(parent, new_node.level)
        child = new_node if new_node.parent_id == parent_id else new_node.replace(parent_id=parent_id)
        return parent.replace(children=parent.children + (child,))

    return apply


# =============================================================================
# MUTATIONS
# =============================================================================

def update_node(root: BOMNode, node_id: str, patch: Mapping[str, Any]) -> BOMNode:
    """
    Replace fields of one node by a shallow merge with patch.

    Fields absent from the patch keep their value; children are only
    replaced when the patch names them explicitly, and must then obey
    the same level and id rules as add_child_node.
    Raises NodeNotFoundException when node_id is not in the tree.
    """
    if "children" in patch:
        patch = dict(patch, children=tuple(patch["children"]))
    transform = _merge(patch)
    target = find_node(root, node_id)
    if target is None:
        raise NodeNotFoundException(node_id)
    if "children" in patch:
        _check_replacement_children(root, target, patch["children"])
    new_root, _ = _rebuild(root, node_id, transform)
    return new_root


def delete_node(root: BOMNode, node_id: str) -> BOMNode:
    """
    Remove a node together with its whole subtree.

    The root itself can never be removed.
    """
    if root.id == node_id:
        raise RootDeletionForbiddenException(node_id)
    new_root, hit = _without(root, node_id)
    if not hit:
        raise NodeNotFoundException(node_id)
    return new_root


def add_child_node(root: BOMNode, parent_id: str, new_node: BOMNode) -> BOMNode:
    """
    Append new_node as the last child of parent_id.

    Raises:
        ParentNotFoundException: parent_id is not in the tree
        MaxDepthExceededException: the parent is a level-7 alternate
        ValidationException: new_node.level is not below the parent (see is_valid_child_level)
        EntityAlreadyExistsException: new_node.id is already used in the tree
    """
    parent = find_node(root, parent_id)
    if parent is None:
        raise ParentNotFoundException(parent_id)
    if is_leaf_level(parent.level):
        raise MaxDepthExceededException(parent_id, parent.level)
    if find_node(root, new_node.id) is not None:
        raise EntityAlreadyExistsException("BOMNode", new_node.id)
    new_root, _ = _rebuild(root, parent_id, _attach(parent_id, new_node))
    return new_root
