"""Tests for the category tree builder."""

from dashboard.app.categories.tree import (
    build_category_tree,
    category_path,
    find_category,
    iter_categories,
)
from dashboard.app.models.categories import Category


def cat(category_id: str, parent_id: str | None = None, **kwargs: object) -> Category:
    kwargs.setdefault("name", category_id.upper())
    return Category(id=category_id, parent_id=parent_id, **kwargs)


def shape(forest: list[Category]) -> list[object]:
    """Render the forest as nested (id, [children]) tuples."""
    return [(node.id, shape(node.children)) for node in forest]


class TestBuildCategoryTree:
    """Test placement rules."""

    def test_dangling_parent_becomes_root(self) -> None:
        forest = build_category_tree([cat("a"), cat("b", "a"), cat("c", "missing")])
        assert shape(forest) == [("a", [("b", [])]), ("c", [])]

    def test_child_listed_before_parent(self) -> None:
        forest = build_category_tree([cat("b", "a"), cat("c", "b"), cat("a")])
        assert shape(forest) == [("a", [("b", [("c", [])])])]

    def test_sibling_and_root_order_follow_input(self) -> None:
        forest = build_category_tree(
            [cat("r2"), cat("x", "r1"), cat("r1"), cat("y", "r1"), cat("z", "r2")]
        )
        assert shape(forest) == [("r2", [("z", [])]), ("r1", [("x", []), ("y", [])])]

    def test_empty_input(self) -> None:
        assert build_category_tree([]) == []

    def test_every_category_placed_exactly_once(self) -> None:
        flat = [cat("a"), cat("b", "a"), cat("c", "b"), cat("d", "zzz"), cat("e", "a")]
        forest = build_category_tree(flat)
        ids = [node.id for node in iter_categories(forest)]
        assert sorted(ids) == ["a", "b", "c", "d", "e"]
        assert len(ids) == len(set(ids))

    def test_valid_parent_is_never_root(self) -> None:
        flat = [cat("a"), cat("b", "a"), cat("c", "b")]
        roots = {node.id for node in build_category_tree(flat)}
        assert roots == {"a"}

    def test_inputs_are_not_mutated(self) -> None:
        stale_child = cat("stale")
        parent = cat("a", children=[stale_child])
        child = cat("b", "a")

        forest = build_category_tree([parent, child])

        assert [c.id for c in parent.children] == ["stale"]
        assert forest[0] is not parent
        assert [c.id for c in forest[0].children] == ["b"]

    def test_fields_are_preserved(self) -> None:
        forest = build_category_tree([cat("a", color="#ff0000", document_count=3)])
        assert forest[0].color == "#ff0000"
        assert forest[0].document_count == 3

    def test_two_node_cycle_is_broken(self) -> None:
        forest = build_category_tree([cat("a", "b"), cat("b", "a")])
        assert shape(forest) == [("a", [("b", [])])]

    def test_self_parent_is_root(self) -> None:
        forest = build_category_tree([cat("a", "a")])
        assert shape(forest) == [("a", [])]

    def test_cycle_next_to_valid_tree(self) -> None:
        flat = [cat("root"), cat("x", "z"), cat("kid", "root"), cat("y", "x"), cat("z", "y")]
        forest = build_category_tree(flat)
        assert shape(forest) == [("root", [("kid", [])]), ("x", [("y", [("z", [])])])]

    def test_duplicate_ids_keep_first(self) -> None:
        forest = build_category_tree([cat("a", name="first"), cat("a", name="second")])
        assert len(forest) == 1
        assert forest[0].name == "first"

    def test_deep_chain_does_not_recurse(self) -> None:
        depth = 5000
        flat = [cat("n0")] + [cat(f"n{i}", f"n{i - 1}") for i in range(1, depth)]
        forest = build_category_tree(flat)
        assert len(list(iter_categories(forest))) == depth


class TestTreeHelpers:
    """Test traversal helpers."""

    def _forest(self) -> list[Category]:
        return build_category_tree(
            [cat("a", document_count=1), cat("b", "a", document_count=2), cat("c", "b"), cat("d")]
        )

    def test_iter_categories_is_preorder(self) -> None:
        assert [n.id for n in iter_categories(self._forest())] == ["a", "b", "c", "d"]

    def test_find_category(self) -> None:
        found = find_category(self._forest(), "c")
        assert found is not None
        assert found.parent_id == "b"
        assert find_category(self._forest(), "nope") is None

    def test_category_path(self) -> None:
        assert [n.id for n in category_path(self._forest(), "c")] == ["a", "b", "c"]
        assert category_path(self._forest(), "nope") == []

    def test_total_document_count(self) -> None:
        assert self._forest()[0].total_document_count == 3

    def test_can_delete_only_empty_leaves(self) -> None:
        forest = self._forest()
        assert forest[0].can_delete() is False
        assert forest[1].can_delete() is True
