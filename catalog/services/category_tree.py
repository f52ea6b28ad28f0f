"""
Pure helpers for the category hierarchy.

Categories are stored flat, each row pointing at its parent by id. These
functions turn a snapshot of rows into a tree view and validate proposed
parent links against a snapshot of ``id -> parent_id``. None of them touch
the database.
"""
from __future__ import annotations

import logging
from typing import Iterable, Iterator, Mapping, Protocol, Sequence

from catalog.core.exceptions import CategoryConsistencyError, InvalidCategoryHierarchyError
from catalog.schemas.category import CategoryTreeNode

logger = logging.getLogger(__name__)


class CategoryRecord(Protocol):
    id: int
    name: str
    description: str | None
    parent_id: int | None
    is_active: bool


def build_category_tree(
    categories: Sequence[CategoryRecord],
    product_counts: Mapping[int, int] | None = None,
) -> list[CategoryTreeNode]:
    """
    Build a forest from a flat list of categories.

    A category whose parent is not in ``categories`` (filtered out as
    inactive, or a dangling id) is shown as a root. Every input category
    appears exactly once in the result. Roots and children are sorted by name.
    """
    product_counts = product_counts or {}
    index = {category.id: category for category in categories}
    children_of: dict[int, list[int]] = {category_id: [] for category_id in index}
    root_ids: list[int] = []

    for category in categories:
        parent_id = category.parent_id
        if parent_id is not None and parent_id in index:
            children_of[parent_id].append(category.id)
        else:
            root_ids.append(category.id)

    def by_name(category_id: int):
        return (index[category_id].name, category_id)

    visited: set[int] = set()

    def build(root_id: int) -> CategoryTreeNode:
        # Explicit stack, nodes created bottom-up: chains may be deeper than
        # the recursion limit.
        order: list[int] = []
        depth_of = {root_id: 0}
        stack = [root_id]
        while stack:
            category_id = stack.pop()
            if category_id in visited:
                continue
            visited.add(category_id)
            order.append(category_id)
            for child_id in children_of[category_id]:
                if child_id not in visited:
                    depth_of[child_id] = depth_of[category_id] + 1
                    stack.append(child_id)

        built: dict[int, CategoryTreeNode] = {}
        for category_id in reversed(order):
            category = index[category_id]
            children = [
                built.pop(child_id)
                for child_id in sorted(children_of[category_id], key=by_name)
                if child_id in built
            ]
            built[category_id] = CategoryTreeNode(
                id=category.id,
                name=category.name,
                description=category.description,
                parent_id=category.parent_id,
                is_active=category.is_active,
                product_count=product_counts.get(category.id, 0),
                depth=depth_of[category_id],
                children=children,
            )
        return built[root_id]

    roots = [build(root_id) for root_id in sorted(root_ids, key=by_name)]

    # Rows stuck in a stored cycle are unreachable from any root
    orphaned = sorted((cid for cid in index if cid not in visited), key=by_name)
    if orphaned:
        logger.warning("Category cycle detected among ids %s; showing them as roots", orphaned)
        for category_id in orphaned:
            if category_id not in visited:
                roots.append(build(category_id))
        roots.sort(key=lambda node: (node.name, node.id))

    return roots


def flatten_category_tree(nodes: Iterable[CategoryTreeNode]) -> Iterator[CategoryTreeNode]:
    """Yield nodes in display order (parents before their children)"""
    stack = list(reversed(list(nodes)))
    while stack:
        node = stack.pop()
        yield node
        stack.extend(reversed(node.children))


def ensure_valid_parent(
    category_id: int,
    new_parent_id: int,
    parent_of: Mapping[int, int | None],
) -> None:
    """
    Reject a reparent that would make ``category_id`` its own ancestor.

    Walks up from ``new_parent_id`` through ``parent_of``. The walk is bounded
    by the number of known categories, so a cycle already present in storage
    raises ``CategoryConsistencyError`` instead of looping.
    """
    if new_parent_id == category_id:
        raise InvalidCategoryHierarchyError("Category cannot be its own parent")

    current: int | None = new_parent_id
    steps = 0
    limit = len(parent_of)
    while current is not None:
        if current == category_id:
            raise InvalidCategoryHierarchyError(
                "Circular reference detected in category hierarchy"
            )
        if steps > limit:
            logger.error("Ancestor walk from category %s exceeded %s steps", new_parent_id, limit)
            raise CategoryConsistencyError(
                f"Category hierarchy above id {new_parent_id} contains a cycle"
            )
        steps += 1
        current = parent_of.get(current)


def ancestor_path(category_id: int, parent_of: Mapping[int, int | None]) -> list[int]:
    """Ids from the root down to ``category_id`` (inclusive)"""
    path: list[int] = []
    current: int | None = category_id
    limit = len(parent_of)
    while current is not None and current in parent_of:
        if len(path) > limit:
            logger.error("Ancestor walk from category %s exceeded %s steps", category_id, limit)
            raise CategoryConsistencyError(
                f"Category hierarchy above id {category_id} contains a cycle"
            )
        path.append(current)
        current = parent_of[current]
    path.reverse()
    return path
