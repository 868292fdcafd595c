"""Category tree builder - turns a flat category list into a rooted forest.

Placement rules:
- a category whose parent_id resolves in the input becomes that parent's child
- a category without parent_id, or whose parent_id does not resolve, is a root
  (dangling references degrade to root placement, never dropped or raised)
- sibling and root order follow input order

Construction is two-pass: index every category by id, then attach children.
Input models are never mutated; the forest is made of fresh copies.

Parent cycles (A -> B -> A) would leave their members unreachable from any
root. Those members are promoted to roots in input order and the edge that
closes the cycle is dropped, so every input category appears exactly once and
traversals over the result always terminate.
"""

import logging
from collections.abc import Iterable, Iterator

from dashboard.app.models.categories import Category

logger = logging.getLogger(__name__)


def build_category_tree(categories: Iterable[Category]) -> list[Category]:
    """Build the category forest.

    Args:
        categories: Flat, unordered categories (any `children` are ignored)

    Returns:
        Root categories with `children` populated recursively
    """
    # First pass: index by id (first occurrence wins)
    index: dict[str, Category] = {}
    order: list[str] = []
    for category in categories:
        if category.id in index:
            logger.warning(f"[category_tree] Duplicate category id {category.id}, keeping first")
            continue
        index[category.id] = category
        order.append(category.id)

    # Second pass: group children under resolvable parents
    children_of: dict[str, list[str]] = {category_id: [] for category_id in order}
    roots: list[str] = []
    for category_id in order:
        parent_id = index[category_id].parent_id
        if parent_id is not None and parent_id in index and parent_id != category_id:
            children_of[parent_id].append(category_id)
        else:
            roots.append(category_id)

    # Walk from roots; anything unreached sits on a parent cycle
    tree_children: dict[str, list[str]] = {}
    visited: set[str] = set()
    forest_roots: list[str] = []

    def _claim(root_id: str) -> None:
        visited.add(root_id)
        stack = [root_id]
        while stack:
            node_id = stack.pop()
            kept: list[str] = []
            for child_id in children_of[node_id]:
                if child_id in visited:
                    continue
                visited.add(child_id)
                kept.append(child_id)
                stack.append(child_id)
            tree_children[node_id] = kept

    for root_id in roots:
        forest_roots.append(root_id)
        _claim(root_id)

    for category_id in order:
        if category_id not in visited:
            logger.warning(
                f"[category_tree] Parent cycle through {category_id}, promoting it to root"
            )
            forest_roots.append(category_id)
            _claim(category_id)

    return [_materialize(root_id, index, tree_children) for root_id in forest_roots]


def _materialize(
    root_id: str, index: dict[str, Category], tree_children: dict[str, list[str]]
) -> Category:
    """Copy nodes bottom-up so each children list is built exactly once."""
    built: dict[str, Category] = {}
    # Post-order without recursion; deep hierarchies must not hit the recursion limit
    stack: list[tuple[str, bool]] = [(root_id, False)]
    while stack:
        node_id, expanded = stack.pop()
        if expanded:
            built[node_id] = index[node_id].model_copy(
                update={"children": [built[c] for c in tree_children[node_id]]}
            )
            continue
        stack.append((node_id, True))
        for child_id in reversed(tree_children[node_id]):
            stack.append((child_id, False))
    return built[root_id]


def iter_categories(forest: Iterable[Category]) -> Iterator[Category]:
    """Yield every node of the forest depth-first, pre-order."""
    for root in forest:
        yield root
        yield from root.iter_descendants()


def find_category(forest: Iterable[Category], category_id: str) -> Category | None:
    """Find a node anywhere in the forest."""
    for node in iter_categories(forest):
        if node.id == category_id:
            return node
    return None


def category_path(forest: Iterable[Category], category_id: str) -> list[Category]:
    """Root-to-node chain for `category_id`, or [] if it is not in the forest."""
    for root in forest:
        stack: list[tuple[Category, list[Category]]] = [(root, [root])]
        while stack:
            node, path = stack.pop()
            if node.id == category_id:
                return path
            for child in reversed(node.children):
                stack.append((child, [*path, child]))
    return []
