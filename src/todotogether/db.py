"""SQLite database operations for TodoTogether."""

import sqlite3
from datetime import datetime
from pathlib import Path

from pydantic import TypeAdapter

from .models import MoneyItem, Todo, User
from .workspace import Workspace, WorkspaceSnapshot

_money_item_adapter = TypeAdapter(MoneyItem)


class Database:
    """SQLite database manager storing each entity as a JSON blob."""

    def __init__(self, db_path: Path):
        """Initialize database connection."""
        self.db_path = db_path
        self.conn = sqlite3.connect(str(db_path))
        self.conn.row_factory = sqlite3.Row
        self._init_schema()

    def _init_schema(self):
        """Initialize database schema."""
        cursor = self.conn.cursor()

        cursor.execute(
            """
            CREATE TABLE IF NOT EXISTS users (
                id TEXT PRIMARY KEY,
                data TEXT NOT NULL
            )
        """
        )

        cursor.execute(
            """
            CREATE TABLE IF NOT EXISTS todos (
                id INTEGER PRIMARY KEY,
                archived INTEGER NOT NULL DEFAULT 0,
                data TEXT NOT NULL
            )
        """
        )

        cursor.execute(
            """
            CREATE TABLE IF NOT EXISTS money_items (
                id INTEGER PRIMARY KEY,
                kind TEXT NOT NULL,
                data TEXT NOT NULL
            )
        """
        )

        # Config table
        cursor.execute(
            """
            CREATE TABLE IF NOT EXISTS config (
                key TEXT PRIMARY KEY,
                value TEXT NOT NULL,
                updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
            )
        """
        )

        self.conn.commit()

    def close(self):
        """Close database connection."""
        self.conn.close()

    # ========================================================================
    # Config operations
    # ========================================================================

    def get_config(self, key: str) -> str | None:
        """Get a config value by key."""
        cursor = self.conn.cursor()
        cursor.execute("SELECT value FROM config WHERE key = ?", (key,))
        row = cursor.fetchone()
        return str(row["value"]) if row else None

    def set_config(self, key: str, value: str, commit: bool = True):
        """Set a config value."""
        self.conn.execute(
            """
            INSERT INTO config (key, value, updated_at)
            VALUES (?, ?, ?)
            ON CONFLICT(key) DO UPDATE SET
                value = excluded.value,
                updated_at = excluded.updated_at
            """,
            (key, value, datetime.now().isoformat()),
        )
        if commit:
            self.conn.commit()

    # ========================================================================
    # Workspace operations
    # ========================================================================

    def save_workspace(self, workspace: Workspace):
        """Replace the stored workspace in a single transaction."""
        snapshot = workspace.snapshot()
        archived = set(snapshot.archived_todo_ids)

        with self.conn:
            self.conn.execute("DELETE FROM users")
            self.conn.execute("DELETE FROM todos")
            self.conn.execute("DELETE FROM money_items")

            self.conn.executemany(
                "INSERT INTO users (id, data) VALUES (?, ?)",
                [(user.id, user.model_dump_json()) for user in snapshot.users],
            )
            self.conn.executemany(
                "INSERT INTO todos (id, archived, data) VALUES (?, ?, ?)",
                [
                    (todo.id, int(todo.id in archived), todo.model_dump_json())
                    for todo in snapshot.todos
                ],
            )
            self.conn.executemany(
                "INSERT INTO money_items (id, kind, data) VALUES (?, ?, ?)",
                [
                    (item.id, item.kind, item.model_dump_json())
                    for item in snapshot.money_items
                ],
            )

            self.set_config("next_todo_id", str(snapshot.next_todo_id), commit=False)
            self.set_config(
                "next_money_item_id", str(snapshot.next_money_item_id), commit=False
            )

    def load_workspace(self) -> Workspace:
        """Rebuild the stored workspace (empty if nothing was saved yet)."""
        cursor = self.conn.cursor()

        cursor.execute("SELECT data FROM users ORDER BY rowid")
        users = [User.model_validate_json(row["data"]) for row in cursor.fetchall()]

        cursor.execute("SELECT archived, data FROM todos ORDER BY id")
        rows = cursor.fetchall()
        todos = [Todo.model_validate_json(row["data"]) for row in rows]
        archived_ids = [todo.id for todo, row in zip(todos, rows, strict=True) if row["archived"]]

        cursor.execute("SELECT data FROM money_items ORDER BY id")
        items = [
            _money_item_adapter.validate_json(row["data"]) for row in cursor.fetchall()
        ]

        snapshot = WorkspaceSnapshot(
            users=users,
            todos=todos,
            archived_todo_ids=archived_ids,
            next_todo_id=int(self.get_config("next_todo_id") or 0),
            money_items=items,
            next_money_item_id=int(self.get_config("next_money_item_id") or 0),
        )
        return Workspace.from_snapshot(snapshot)
