"""CLI for TodoTogether using Typer."""

import logging
import sys
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import datetime
from typing import List, Optional

import typer
from rich.console import Console
from rich.table import Table

from .config import load_settings
from .db import Database
from .exceptions import TodoTogetherError
from .models import Todo
from .service import SettlementDraft, SettlementService
from .todos import TodoTree
from .workspace import Workspace

app = typer.Typer(
    name="todotogether",
    help="Shared household todos and expense settlement",
)

console = Console()


def setup_logging(verbose: bool = False):
    """Setup logging configuration."""
    level = logging.DEBUG if verbose else logging.WARNING
    logging.basicConfig(
        level=level, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    )


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose output"),
):
    """Manage todos and shared expenses of a household."""
    setup_logging(verbose)


@contextmanager
def open_workspace(save: bool = True) -> Iterator[Workspace]:
    """Load the stored workspace and save it back if the block succeeds."""
    settings = load_settings()
    db = Database(settings.database_path)
    try:
        workspace = db.load_workspace()
        yield workspace
        if save:
            db.save_workspace(workspace)
    finally:
        db.close()


def fail(error: Exception):
    """Print an error and exit with status 1."""
    console.print(f"\n[bold red]Error:[/bold red] {error}")
    sys.exit(1)


def format_amount(amount: float, use_color: bool = True) -> str:
    """
    Format minor units in accounting style.

    Negative amounts use parentheses, positive ones are padded so the
    digits align in tables.
    """
    text = f"{abs(amount):,.2f}" if isinstance(amount, float) else f"{abs(amount):,}"
    if amount < 0:
        return f"([red]{text}[/red])" if use_color else f"({text})"
    return f" [green]{text}[/green] " if use_color else f" {text} "


def parse_contribution(value: str) -> tuple[str, int]:
    """Parse a USER=AMOUNT option value."""
    user_id, sep, amount = value.partition("=")
    if not sep or not user_id:
        raise typer.BadParameter(f"Expected USER=AMOUNT, got {value!r}")
    try:
        return user_id, int(amount)
    except ValueError:
        raise typer.BadParameter(f"Amount must be whole minor units, got {amount!r}")


# ============================================================================
# Users
# ============================================================================


@app.command("user-add")
def user_add(
    user_id: str = typer.Argument(..., help="Alphanumeric id, case-insensitive"),
    name: Optional[str] = typer.Option(None, "--name", "-n", help="Display name"),
):
    """Register a household member."""
    try:
        with open_workspace() as workspace:
            user = workspace.users.create(user_id, name)
    except TodoTogetherError as e:
        fail(e)

    console.print(f"[green]✓ Added user {user.id} ({user.name})[/green]")


@app.command()
def users():
    """List household members."""
    try:
        with open_workspace(save=False) as workspace:
            members = workspace.users.list_all()
    except TodoTogetherError as e:
        fail(e)

    table = Table(title="Users", show_header=True, header_style="bold magenta")
    table.add_column("ID", style="dim")
    table.add_column("Name", style="cyan")
    for user in members:
        table.add_row(user.id, user.name)
    console.print(table)


# ============================================================================
# Todos
# ============================================================================


@app.command("todo-add")
def todo_add(
    title: str = typer.Argument(..., help="Title of the task"),
    maintainers: List[str] = typer.Option(..., "--by", "-b", help="Maintainer id"),
    parent: Optional[int] = typer.Option(None, "--parent", "-p", help="Parent todo id"),
    description: str = typer.Option("", "--description", "-d"),
    due: Optional[datetime] = typer.Option(None, "--due", help="Due date"),
):
    """Create a task, optionally as a subtask."""
    try:
        with open_workspace() as workspace:
            todo = workspace.todos.create(
                maintainers=[workspace.users.get(user_id) for user_id in maintainers],
                title=title,
                parent=workspace.todos.get(parent) if parent is not None else None,
                description=description,
                due_at=due,
            )
    except TodoTogetherError as e:
        fail(e)

    console.print(f"[green]✓ Added todo {todo.id}: {todo.title}[/green]")


def walk_tree(tree: TodoTree, todos: list[Todo]) -> Iterator[tuple[Todo, int]]:
    """Yield todos depth-first with their display depth within the list."""
    shown = {todo.id for todo in todos}

    def visit(todo: Todo, depth: int) -> Iterator[tuple[Todo, int]]:
        yield todo, depth
        for child in tree.children(todo):
            if child.id in shown:
                yield from visit(child, depth + 1)

    for todo in todos:
        if todo.parent_id not in shown:
            yield from visit(todo, 0)


@app.command()
def todos(
    archived: bool = typer.Option(False, "--archived", "-a", help="Show archived tasks"),
):
    """Show the task tree."""
    try:
        with open_workspace(save=False) as workspace:
            tree = workspace.todos
            listed = tree.list_archived() if archived else tree.list_active()
            rows = [
                (todo, depth, tree.level(todo)) for todo, depth in walk_tree(tree, listed)
            ]
    except TodoTogetherError as e:
        fail(e)

    table = Table(
        title="Archived Todos" if archived else "Todos",
        show_header=True,
        header_style="bold magenta",
    )
    table.add_column("ID", style="dim", width=6)
    table.add_column("Title", style="cyan")
    table.add_column("Level", justify="right")
    table.add_column("Maintainers", style="yellow")
    table.add_column("Progress", justify="right")
    table.add_column("Due")
    for todo, depth, level in rows:
        table.add_row(
            str(todo.id),
            "  " * depth + todo.title,
            str(level),
            ", ".join(todo.maintainers),
            f"{todo.progress}%",
            todo.due_at.date().isoformat() if todo.due_at else "—",
        )
    console.print(table)


@app.command("todo-move")
def todo_move(
    todo_id: int = typer.Argument(..., help="Todo to move"),
    parent: Optional[int] = typer.Option(
        None, "--parent", "-p", help="New parent id (omit to move to the root)"
    ),
):
    """Move a task under another task, or to the root."""
    try:
        with open_workspace() as workspace:
            tree = workspace.todos
            todo = tree.get(todo_id)
            tree.set_parent(todo, tree.get(parent) if parent is not None else None)
            level = tree.level(todo)
    except TodoTogetherError as e:
        fail(e)

    console.print(f"[green]✓ Moved todo {todo_id} (level {level})[/green]")


@app.command("todo-archive")
def todo_archive(todo_id: int = typer.Argument(..., help="Todo to (un)archive")):
    """Archive an active task, or restore an archived one."""
    try:
        with open_workspace() as workspace:
            archived = workspace.todos.toggle_archive(workspace.todos.get(todo_id))
    except TodoTogetherError as e:
        fail(e)

    state = "archived" if archived else "restored"
    console.print(f"[green]✓ Todo {todo_id} {state}[/green]")


# ============================================================================
# Expenses
# ============================================================================


@app.command("expense-add")
def expense_add(
    title: str = typer.Argument(..., help="What was paid for"),
    paid: List[str] = typer.Option(
        ..., "--paid", help="USER=AMOUNT in minor units, repeatable"
    ),
    shared: Optional[List[str]] = typer.Option(
        None, "--shared", "-s", help="Sharer id, repeatable (default: the payers)"
    ),
    task: Optional[int] = typer.Option(None, "--task", "-t", help="Connected todo id"),
    description: str = typer.Option("", "--description", "-d"),
):
    """Record an expense."""
    contributions = [parse_contribution(value) for value in paid]
    try:
        with open_workspace() as workspace:
            get_user = workspace.users.get
            expense = workspace.ledger.create_expense(
                title=title,
                payers={get_user(user_id): amount for user_id, amount in contributions},
                sharers=[get_user(user_id) for user_id in shared] if shared else None,
                description=description,
                task=workspace.todos.get(task) if task is not None else None,
            )
    except TodoTogetherError as e:
        fail(e)

    console.print(
        f"[green]✓ Added expense {expense.id}: {expense.title} "
        f"({expense.price}, shared by {len(expense.sharers)})[/green]"
    )


@app.command()
def expenses(
    open_only: bool = typer.Option(False, "--open", "-o", help="Only unsettled expenses"),
):
    """List expenses."""
    try:
        with open_workspace(save=False) as workspace:
            listed = workspace.ledger.list_expenses(open_only=open_only)
    except TodoTogetherError as e:
        fail(e)

    table = Table(title="Expenses", show_header=True, header_style="bold magenta")
    table.add_column("ID", style="dim", width=6)
    table.add_column("Title", style="cyan")
    table.add_column("Price", justify="right")
    table.add_column("Paid by")
    table.add_column("Shared by", style="yellow")
    table.add_column("Balance", justify="right", style="dim")
    for expense in listed:
        table.add_row(
            str(expense.id),
            expense.title,
            format_amount(expense.price),
            ", ".join(f"{u}: {a}" for u, a in expense.payers.items()),
            ", ".join(expense.sharers),
            str(expense.balance_id) if expense.is_settled else "open",
        )
    console.print(table)


def display_draft(draft: SettlementDraft):
    """Display a settlement draft in a table."""
    console.print("\n[bold]Draft Settlement:[/bold]")
    console.print(f"  Expenses: {', '.join(str(i) for i in draft.expense_ids)}")
    console.print(f"  Total price: {format_amount(draft.price)}")
    console.print(f"  Minimum: {draft.minimum}")
    console.print()

    table = Table(title="Payouts", show_header=True, header_style="bold magenta")
    table.add_column("User", style="cyan")
    table.add_column("Balance", justify="right", style="dim")
    table.add_column("Pays / Receives", justify="right")
    for user_id, amount in draft.payers.items():
        table.add_row(
            user_id,
            format_amount(draft.user_balances[user_id], use_color=False),
            format_amount(amount),
        )
    console.print(table)

    if sum(draft.payers.values()) == 0:
        console.print("  [green]✓ Pot is even[/green]")


@app.command()
def draft(
    minimum: Optional[int] = typer.Option(
        None, "--minimum", "-m", min=1, help="Smallest amount to move (minor units)"
    ),
):
    """Show how the open expenses would be settled (dry-run)."""
    try:
        settings = load_settings()
    except TodoTogetherError as e:
        fail(e)
    db = Database(settings.database_path)
    try:
        settlement = SettlementService(settings, db).draft_settlement(minimum)
    except TodoTogetherError as e:
        fail(e)
    finally:
        db.close()

    display_draft(settlement)


@app.command()
def settle(
    minimum: Optional[int] = typer.Option(
        None, "--minimum", "-m", min=1, help="Smallest amount to move (minor units)"
    ),
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip confirmation prompt"),
):
    """Settle all open expenses with a balance."""
    try:
        settings = load_settings()
    except TodoTogetherError as e:
        fail(e)
    db = Database(settings.database_path)
    try:
        service = SettlementService(settings, db)
        settlement = service.draft_settlement(minimum)
        display_draft(settlement)

        if not yes and not typer.confirm("\nCreate this balance?"):
            console.print("[yellow]Cancelled.[/yellow]")
            return

        balance = service.apply_draft(settlement)
    except TodoTogetherError as e:
        fail(e)
    finally:
        db.close()

    console.print(
        f"\n[bold green]✓ Balance {balance.id} created "
        f"(pot: {balance.collected})[/bold green]"
    )


if __name__ == "__main__":
    app()
