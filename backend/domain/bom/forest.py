"""
BOM Domain - Forest operations.

A forest is an ordered list of independent trees (the compliance view
holds one tree per product). Every operation has the contract of its
single-tree counterpart in domain.bom.tree and returns a new list.
"""

from __future__ import annotations
from typing import Any, Collection, Iterator, List, Mapping, Optional, Sequence

from domain.shared.exceptions import (
    EntityAlreadyExistsException,
    NodeNotFoundException,
    ParentNotFoundException,
    RootDeletionForbiddenException,
)

from .entities import BOMNode
from .tree import (
    add_child_node,
    collect_ids,
    collect_selected,
    delete_node,
    find_node,
    iter_nodes,
    sibling_count,
    update_node,
)


Forest = Sequence[BOMNode]


def iter_forest(forest: Forest) -> Iterator[BOMNode]:
    """Pre-order walk of every tree, roots in list order."""
    for root in forest:
        yield from iter_nodes(root)


def _owner_index(forest: Forest, node_id: str) -> Optional[int]:
    for index, root in enumerate(forest):
        if find_node(root, node_id) is not None:
            return index
    return None


def find_in_forest(forest: Forest, node_id: str) -> Optional[BOMNode]:
    for root in forest:
        found = find_node(root, node_id)
        if found is not None:
            return found
    return None


def update_in_forest(forest: Forest, node_id: str, patch: Mapping[str, Any]) -> List[BOMNode]:
    index = _owner_index(forest, node_id)
    if index is None:
        raise NodeNotFoundException(node_id)
    if "children" in patch:
        patch = dict(patch, children=tuple(patch["children"]))
        others = {
            other_id for other, root in enumerate(forest) if other != index
            for other_id in collect_ids(root)
        }
        for child in patch["children"]:
            for node in iter_nodes(child):
                if node.id in others:
                    raise EntityAlreadyExistsException("BOMNode", node.id)
    result = list(forest)
    result[index] = update_node(forest[index], node_id, patch)
    return result


def delete_in_forest(forest: Forest, node_id: str) -> List[BOMNode]:
    """Remove a subtree from whichever tree holds it; roots stay."""
    if any(root.id == node_id for root in forest):
        raise RootDeletionForbiddenException(node_id)
    index = _owner_index(forest, node_id)
    if index is None:
        raise NodeNotFoundException(node_id)
    result = list(forest)
    result[index] = delete_node(forest[index], node_id)
    return result


def add_child_in_forest(forest: Forest, parent_id: str, new_node: BOMNode) -> List[BOMNode]:
    index = _owner_index(forest, parent_id)
    if index is None:
        raise ParentNotFoundException(parent_id)
    if find_in_forest(forest, new_node.id) is not None:
        raise EntityAlreadyExistsException("BOMNode", new_node.id)
    result = list(forest)
    result[index] = add_child_node(forest[index], parent_id, new_node)
    return result


def append_root(forest: Forest, root: BOMNode) -> List[BOMNode]:
    """Add a new top-level tree at the end of the forest."""
    if find_in_forest(forest, root.id) is not None:
        raise EntityAlreadyExistsException("BOMNode", root.id)
    if root.parent_id is not None:
        root = root.replace(parent_id=None)
    return list(forest) + [root]


def collect_forest_ids(forest: Forest) -> List[str]:
    ids: List[str] = []
    for root in forest:
        ids.extend(collect_ids(root))
    return ids


def forest_sibling_count(forest: Forest, parent_id: str) -> int:
    for root in forest:
        if find_node(root, parent_id) is not None:
            return sibling_count(root, parent_id)
    return 0


def collect_selected_in_forest(forest: Forest, ids: Collection[str]) -> List[BOMNode]:
    wanted = set(ids)
    selected: List[BOMNode] = []
    for root in forest:
        selected.extend(collect_selected(root, wanted))
    return selected
