"""Workspace: the registries of one household plus their serialized form."""

from dataclasses import dataclass, field

from pydantic import BaseModel, Field

from .ledger import Ledger
from .models import MoneyItem, Todo, User
from .todos import TodoTree
from .users import UserRegistry


class WorkspaceSnapshot(BaseModel):
    """Field-preserving snapshot of a workspace.

    References (parents, connected tasks, balances) travel as ids, never as
    embedded copies.
    """

    users: list[User] = Field(default_factory=list)
    todos: list[Todo] = Field(default_factory=list)
    archived_todo_ids: list[int] = Field(default_factory=list)
    next_todo_id: int = 0
    money_items: list[MoneyItem] = Field(default_factory=list)
    next_money_item_id: int = 0


@dataclass
class Workspace:
    """Owns the user registry, the todo tree and the ledger."""

    users: UserRegistry = field(default_factory=UserRegistry)
    todos: TodoTree = field(default_factory=TodoTree)
    ledger: Ledger = field(default_factory=Ledger)

    def snapshot(self) -> WorkspaceSnapshot:
        """Capture every entity needed to rebuild this workspace."""
        return WorkspaceSnapshot(
            users=self.users.list_all(),
            todos=self.todos.list_active() + self.todos.list_archived(),
            archived_todo_ids=[todo.id for todo in self.todos.list_archived()],
            next_todo_id=self.todos.next_id,
            money_items=self.ledger.list_all(),
            next_money_item_id=self.ledger.next_id,
        ).model_copy(deep=True)

    @classmethod
    def from_snapshot(cls, snapshot: WorkspaceSnapshot) -> "Workspace":
        """Rebuild a workspace from a snapshot."""
        return cls(
            users=UserRegistry(snapshot.users),
            todos=TodoTree(
                sorted(snapshot.todos, key=lambda todo: todo.id),
                archived_ids=snapshot.archived_todo_ids,
                next_id=snapshot.next_todo_id,
            ),
            ledger=Ledger(snapshot.money_items, next_id=snapshot.next_money_item_id),
        )
