"""Tests for the todo tree."""

from datetime import datetime, timedelta

import pytest
from pydantic import ValidationError

from todotogether.exceptions import (
    CyclicParentError,
    EmptyTitleError,
    InvalidParentError,
    TodoNestingError,
    TodoNotFoundError,
)
from todotogether.todos import TodoTree


@pytest.fixture
def creator(users):
    return users.create("creator")


@pytest.fixture
def chain(tree, creator):
    """Root -> Child -> Grandchild."""
    root = tree.create([creator], "Root Task")
    child = tree.create([creator], "Child", parent=root)
    grandchild = tree.create([creator], "Grandchild", parent=child)
    return root, child, grandchild


class TestTodoCreation:
    """Test titles, ids and fields of new todos."""

    def test_fields(self, tree, creator):
        parent = tree.create([creator], "Parent")
        due = datetime.now() + timedelta(hours=1)

        task = tree.create(
            [creator],
            "The Only Title",
            parent=parent,
            description="Lorem Ipsum ... and so On.",
            due_at=due,
            progress=42,
        )

        assert task.title == "The Only Title"
        assert task.maintainers == ["creator"]
        assert tree.parent(task) == parent
        assert task.due_at == due
        assert task.description == "Lorem Ipsum ... and so On."
        assert task.progress == 42
        assert tree.list_active() == [parent, task]

    @pytest.mark.parametrize("title", ["", "    \n    "])
    def test_empty_title(self, tree, creator, title):
        """Blank titles are rejected and nothing is inserted."""
        with pytest.raises(EmptyTitleError):
            tree.create([creator], title)

        assert len(tree) == 0

    def test_title_is_trimmed(self, tree, creator):
        todo = tree.create([creator], "   Content\n with text  ")

        assert todo.title == "Content\n with text"

    @pytest.mark.parametrize("title", ["", "   \t "])
    def test_blank_title_assignment(self, tree, creator, title):
        """The model itself rejects blank titles, not only the tree."""
        todo = tree.create([creator], "Task")

        with pytest.raises(ValidationError):
            todo.title = title

        assert todo.title == "Task"

    def test_title_assignment_is_trimmed(self, tree, creator):
        todo = tree.create([creator], "Task")

        todo.title = "  Renamed  "

        assert todo.title == "Renamed"

    def test_ids_increase(self, tree, creator):
        first = tree.create([creator], "First")
        second = tree.create([creator], "Second")

        assert second.id == first.id + 1

    def test_same_fields_not_equal(self, tree, creator):
        t1 = tree.create([creator], "Name")
        t2 = tree.create([creator], "Name")

        assert t1 != t2

    def test_maintainers_are_an_ordered_set(self, tree, users, creator):
        other = users.create("other")

        todo = tree.create([other, creator, other], "Shared")

        assert todo.maintainers == ["other", "creator"]

    def test_negative_progress_is_clamped(self, tree, creator):
        todo = tree.create([creator], "Task", progress=-5)
        assert todo.progress == 0

        todo.progress = 10
        todo.progress -= 20
        assert todo.progress == 0

    def test_unknown_parent(self, tree, creator):
        """A parent from another tree is rejected without consuming an id."""
        foreign = TodoTree()
        foreign.create([creator], "Foreign")
        foreign.create([creator], "Foreign 2")
        stranger = foreign.list_active()[1]

        with pytest.raises(TodoNotFoundError):
            tree.create([creator], "Orphan", parent=stranger)

        assert len(tree) == 0
        assert tree.next_id == 0


class TestTodoCopy:
    """Copies share the fields but are independent."""

    def test_copy(self, tree, creator):
        parent = tree.create([creator], "Parent")
        task = tree.create([creator], "Task", parent=parent, progress=42)

        copied = tree.copy(task)

        assert copied != task
        assert copied.id not in (parent.id, task.id)
        assert copied.title == task.title
        assert copied.maintainers == task.maintainers
        assert tree.parent(copied) == parent
        assert copied.progress == 42
        assert copied in tree.list_active()

        task.progress += 1
        task.maintainers.append("someone")

        assert copied.progress == 42
        assert copied.maintainers == ["creator"]


class TestTodoNesting:
    """Test parents, levels and cycle prevention."""

    def test_levels(self, tree, chain):
        root, child, grandchild = chain

        assert tree.parent(root) is None
        assert tree.level(root) == 0
        assert tree.parent(child) == root
        assert tree.level(child) == 1
        assert tree.level(grandchild) == tree.level(child) + 1
        assert list(tree.ancestors(grandchild)) == [child, root]
        assert tree.children(root) == [child]

    def test_own_parent(self, tree, creator):
        todo = tree.create([creator], "Own parent")

        with pytest.raises(InvalidParentError):
            tree.set_parent(todo, todo)

        assert todo.parent_id is None

    def test_cycling_parent(self, tree, chain):
        """A grandchild cannot become its ancestor's parent."""
        root, child, grandchild = chain

        with pytest.raises(CyclicParentError) as exc_info:
            tree.set_parent(root, grandchild)

        assert isinstance(exc_info.value, TodoNestingError)
        assert root.parent_id is None
        assert grandchild.parent_id == child.id
        assert child.parent_id == root.id
        assert tree.level(grandchild) == 2

    def test_direct_child_as_parent(self, tree, chain):
        root, child, _ = chain

        with pytest.raises(CyclicParentError):
            tree.set_parent(root, child)

    def test_clear_parent(self, tree, chain):
        _, child, grandchild = chain

        tree.set_parent(child, None)

        assert tree.level(child) == 0
        assert tree.level(grandchild) == 1

    def test_level_follows_reparenting(self, tree, creator, chain):
        """Levels are computed on demand, never cached."""
        root, child, grandchild = chain
        other = tree.create([creator], "Other root")
        deep = tree.create([creator], "Deep", parent=grandchild)
        assert tree.level(deep) == 3

        tree.set_parent(child, other)
        tree.set_parent(other, root)

        assert tree.level(other) == 1
        assert tree.level(child) == 2
        assert tree.level(deep) == 4

    def test_parent_chains_always_terminate(self, tree, creator):
        """Random reparenting never leaves a cycle behind."""
        nodes = [tree.create([creator], f"Node {i}") for i in range(8)]
        moves = [(i, (i * 5 + 3) % 8) for i in range(8)] + [(i, (i + 1) % 8) for i in range(8)]

        for node_index, parent_index in moves:
            try:
                tree.set_parent(nodes[node_index], nodes[parent_index])
            except TodoNestingError:
                pass

        for node in nodes:
            seen = set()
            current = node
            while current is not None:
                assert current.id not in seen
                seen.add(current.id)
                current = tree.parent(current)
            assert tree.level(node) == len(seen) - 1


class TestTodoArchive:
    """Todos live in exactly one of the active and archived lists."""

    def test_toggle(self, tree, creator):
        todo = tree.create([creator], "Task")

        assert tree.toggle_archive(todo) is True
        assert tree.is_archived(todo)
        assert todo not in tree.list_active()
        assert todo in tree.list_archived()

        assert tree.toggle_archive(todo) is False
        assert not tree.is_archived(todo)
        assert todo in tree.list_active()
        assert todo not in tree.list_archived()

    def test_children_stay_active(self, tree, chain):
        root, child, grandchild = chain

        tree.toggle_archive(root)

        assert tree.list_archived() == [root]
        assert tree.list_active() == [child, grandchild]
        assert tree.parent(child) == root

    def test_get_unknown(self, tree):
        with pytest.raises(TodoNotFoundError):
            tree.get(99)
