"""Task tree: owns todos, their parent links and the active/archived split."""

import logging
from collections.abc import Iterator, Sequence
from datetime import datetime

from .exceptions import (
    CyclicParentError,
    EmptyTitleError,
    InvalidParentError,
    TodoNotFoundError,
)
from .models import Todo, User

logger = logging.getLogger(__name__)


class TodoTree:
    """
    Flat table of todos addressed by id.

    Parents are stored as ids on each todo. Every node is in exactly one of
    the two partitions, active or archived.
    """

    def __init__(
        self,
        todos: list[Todo] | None = None,
        archived_ids: Sequence[int] = (),
        next_id: int = 0,
    ):
        """Initialize the tree, optionally restoring a saved state."""
        self._todos: dict[int, Todo] = {todo.id: todo for todo in todos or []}
        self._archived: set[int] = set(archived_ids)
        self._next_id = max([next_id, *(todo_id + 1 for todo_id in self._todos)])

    @property
    def next_id(self) -> int:
        return self._next_id

    # ========================================================================
    # Creation
    # ========================================================================

    def create(
        self,
        maintainers: Sequence[User],
        title: str,
        parent: Todo | None = None,
        description: str = "",
        due_at: datetime | None = None,
        progress: int = 0,
        created_at: datetime | None = None,
    ) -> Todo:
        """
        Create a new active todo.

        Args:
            maintainers: Users allowed to edit the task (duplicates dropped)
            title: Title, trimmed before use
            parent: Optional parent todo, must belong to this tree
            description: Free text
            due_at: Optional due date
            progress: Progress, negative values are clamped to 0
            created_at: Creation time (default: now)

        Returns:
            The new todo

        Raises:
            EmptyTitleError: If the trimmed title is empty
            TodoNotFoundError: If the parent is not part of this tree
        """
        title = title.strip()
        if not title:
            raise EmptyTitleError()

        parent_id = None
        if parent is not None:
            # a fresh node has no descendants, so only the parent's presence matters
            parent_id = self.get(parent.id).id

        maintainer_ids = list(dict.fromkeys(user.id for user in maintainers))
        todo = Todo(
            id=self._next_id,
            maintainers=maintainer_ids,
            title=title,
            created_at=created_at or datetime.now(),
            parent_id=parent_id,
            description=description,
            due_at=due_at,
            progress=progress,
        )

        self._todos[todo.id] = todo
        self._next_id += 1

        logger.info(f"Created todo {todo.id} '{todo.title}' (parent: {parent_id})")
        return todo

    def copy(self, todo: Todo) -> Todo:
        """Create a new active todo with the same fields, a fresh id and now as creation time."""
        original = self.get(todo.id)
        duplicate = original.model_copy(
            update={"id": self._next_id, "created_at": datetime.now()}, deep=True
        )

        self._todos[duplicate.id] = duplicate
        self._next_id += 1

        logger.info(f"Copied todo {original.id} to {duplicate.id}")
        return duplicate

    # ========================================================================
    # Lookups
    # ========================================================================

    def get(self, todo_id: int) -> Todo:
        """Get a todo by id."""
        todo = self._todos.get(todo_id)
        if todo is None:
            raise TodoNotFoundError(todo_id)
        return todo

    def parent(self, todo: Todo) -> Todo | None:
        """Resolve the parent of a todo."""
        if todo.parent_id is None:
            return None
        return self.get(todo.parent_id)

    def ancestors(self, todo: Todo) -> Iterator[Todo]:
        """Iterate over the parent chain, nearest first."""
        current = self.parent(todo)
        steps = 0
        while current is not None:
            steps += 1
            if steps > len(self._todos):
                raise CyclicParentError(todo.id, current.id)
            yield current
            current = self.parent(current)

    def level(self, todo: Todo) -> int:
        """Nesting level: 0 for a root, parent level + 1 otherwise."""
        return sum(1 for _ in self.ancestors(todo))

    def children(self, todo: Todo) -> list[Todo]:
        """Direct subtasks of a todo."""
        return [child for child in self._todos.values() if child.parent_id == todo.id]

    def list_active(self) -> list[Todo]:
        """All active todos in creation order."""
        return [t for t in self._todos.values() if t.id not in self._archived]

    def list_archived(self) -> list[Todo]:
        """All archived todos in creation order."""
        return [t for t in self._todos.values() if t.id in self._archived]

    def is_archived(self, todo: Todo) -> bool:
        return self.get(todo.id).id in self._archived

    def __len__(self) -> int:
        return len(self._todos)

    # ========================================================================
    # Mutations
    # ========================================================================

    def set_parent(self, todo: Todo, new_parent: Todo | None) -> None:
        """
        Reparent a todo.

        Raises:
            InvalidParentError: If the todo would be its own parent
            CyclicParentError: If the new parent is one of the todo's subtasks
            TodoNotFoundError: If either todo is not part of this tree
        """
        node = self.get(todo.id)

        if new_parent is None:
            node.parent_id = None
            logger.info(f"Todo {node.id} moved to root")
            return

        parent = self.get(new_parent.id)
        if parent.id == node.id:
            raise InvalidParentError(node.id)

        for ancestor in self.ancestors(parent):
            if ancestor.id == node.id:
                raise CyclicParentError(node.id, parent.id)

        node.parent_id = parent.id
        logger.info(f"Todo {node.id} moved under {parent.id}")

    def toggle_archive(self, todo: Todo) -> bool:
        """
        Move a todo between the active and archived partitions.

        Subtasks stay where they are.

        Returns:
            True if the todo is archived afterwards
        """
        node = self.get(todo.id)
        if node.id in self._archived:
            self._archived.discard(node.id)
            archived = False
        else:
            self._archived.add(node.id)
            archived = True

        logger.info(f"Todo {node.id} {'archived' if archived else 'restored'}")
        return archived
