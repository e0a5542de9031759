"""Shared fixtures for TodoTogether tests."""

import pytest

from todotogether.ledger import Ledger
from todotogether.todos import TodoTree
from todotogether.users import UserRegistry
from todotogether.workspace import Workspace


@pytest.fixture
def users():
    """Create an empty user registry."""
    return UserRegistry()


@pytest.fixture
def tree():
    """Create an empty todo tree."""
    return TodoTree()


@pytest.fixture
def ledger():
    """Create an empty ledger."""
    return Ledger()


@pytest.fixture
def workspace(users, tree, ledger):
    """Create a workspace over the registry fixtures."""
    return Workspace(users=users, todos=tree, ledger=ledger)


@pytest.fixture
def abcd(users):
    """Register four users named A, B, C and D."""
    return tuple(users.create(user_id, user_id.upper()) for user_id in "abcd")


@pytest.fixture
def household(ledger, abcd):
    """
    Create the three-expense household example.

    X: A paid 700, B paid 300; shared by A, C, D
    Y: A paid 200, B paid 300; shared by B, D
    Z: A 500, B 1000, C 1500, D 2000; shared by everybody
    """
    a, b, c, d = abcd
    x = ledger.create_expense("X", payers={a: 700, b: 300}, sharers=[a, c, d])
    y = ledger.create_expense("Y", payers={a: 200, b: 300}, sharers=[b, d])
    z = ledger.create_expense(
        "Z", payers={a: 500, b: 1000, c: 1500, d: 2000}, sharers=[a, b, c, d]
    )
    return x, y, z
