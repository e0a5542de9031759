"""Ledger item registry: owns expenses, balances and their shared id counter."""

import logging
from collections.abc import Mapping, Sequence
from datetime import datetime

from .bill import Bill
from .exceptions import (
    AlreadySettledError,
    EmptyBillError,
    MoneyItemNotFoundError,
    NegativeContributionError,
    NoSharersError,
    ParticipantMismatchError,
)
from .models import Balance, Expense, Todo, User

logger = logging.getLogger(__name__)


class Ledger:
    """
    Registry of all live money items.

    The id counter counts every item ever created, so ids stay unique even
    after an item is deleted.
    """

    def __init__(
        self,
        items: Sequence[Expense | Balance] | None = None,
        next_id: int = 0,
    ):
        """Initialize the ledger, optionally restoring a saved state."""
        self._items: dict[int, Expense | Balance] = {item.id: item for item in items or []}
        self._next_id = max([next_id, *(item_id + 1 for item_id in self._items)])

    @property
    def next_id(self) -> int:
        return self._next_id

    def _register(self, item: Expense | Balance) -> None:
        self._items[item.id] = item
        self._next_id += 1

    # ========================================================================
    # Expenses
    # ========================================================================

    def create_expense(
        self,
        title: str,
        payers: Mapping[User, int],
        sharers: Sequence[User] | None = None,
        description: str = "",
        task: Todo | None = None,
        created_at: datetime | None = None,
    ) -> Expense:
        """
        Create a new open expense.

        Args:
            title: Title of the expense
            payers: Users who paid and their parts (minor units)
            sharers: Users who share the price (default: the payers)
            description: Note about the expense
            task: Optionally connected todo
            created_at: Creation time (default: now)

        Returns:
            The new expense

        Raises:
            NegativeContributionError: If any payer paid a negative amount
            NoSharersError: If nobody shares the price
        """
        negative = {user.id: amount for user, amount in payers.items() if amount < 0}
        if negative:
            raise NegativeContributionError(negative)

        sharer_ids = list(
            dict.fromkeys(user.id for user in (payers if sharers is None else sharers))
        )
        if not sharer_ids:
            raise NoSharersError(title)

        expense = Expense(
            id=self._next_id,
            created_at=created_at or datetime.now(),
            title=title,
            payers={user.id: amount for user, amount in payers.items()},
            sharers=sharer_ids,
            description=description,
            task_id=task.id if task is not None else None,
        )
        self._register(expense)

        logger.info(
            f"Created expense {expense.id} '{title}' "
            f"(price: {expense.price}, sharers: {len(sharer_ids)})"
        )
        return expense

    def create_single_payer_expense(
        self,
        title: str,
        payer: User,
        price: int,
        sharers: Sequence[User] | None = None,
        description: str = "",
        task: Todo | None = None,
        created_at: datetime | None = None,
    ) -> Expense:
        """Create an expense paid by one user (shared by that user by default)."""
        return self.create_expense(
            title=title,
            payers={payer: price},
            sharers=[payer] if sharers is None else sharers,
            description=description,
            task=task,
            created_at=created_at,
        )

    # ========================================================================
    # Balances
    # ========================================================================

    def create_balance(
        self,
        bill: Bill,
        payers: Mapping[str, int],
        created_at: datetime | None = None,
    ) -> Balance:
        """
        Settle a bill.

        All checks run before anything changes; on success every expense of
        the bill points to the new balance.

        Args:
            bill: The bill to settle
            payers: Signed amount per user id (positive pays, negative receives)
            created_at: Creation time (default: now)

        Returns:
            The new balance

        Raises:
            EmptyBillError: If the bill has no expenses
            MoneyItemNotFoundError: If an expense is not live in this ledger
            AlreadySettledError: If any expense is already settled
            ParticipantMismatchError: If payers don't match the bill's users
        """
        if not bill.expenses:
            raise EmptyBillError()

        for expense in bill.expenses:
            if self._items.get(expense.id) is not expense:
                raise MoneyItemNotFoundError(expense.id, "expense")

        settled = {expense.id for expense in bill.expenses if expense.is_settled}
        if settled:
            raise AlreadySettledError(settled)

        payer_ids = set(payers)
        participants = bill.participants
        if payer_ids != participants:
            raise ParticipantMismatchError(
                missing_users=participants - payer_ids,
                unexpected_users=payer_ids - participants,
            )

        balance = Balance(
            id=self._next_id,
            created_at=created_at or datetime.now(),
            payers=dict(payers),
            expense_ids=sorted(expense.id for expense in bill.expenses),
        )
        for expense in bill.expenses:
            expense.balance_id = balance.id
        self._register(balance)

        logger.info(
            f"Created balance {balance.id} settling {len(balance.expense_ids)} "
            f"expense(s), pot: {balance.collected}"
        )
        return balance

    # ========================================================================
    # Lookups
    # ========================================================================

    def get(self, item_id: int) -> Expense | Balance:
        """Get a live money item by id."""
        item = self._items.get(item_id)
        if item is None:
            raise MoneyItemNotFoundError(item_id)
        return item

    def get_expense(self, item_id: int) -> Expense:
        item = self._items.get(item_id)
        if not isinstance(item, Expense):
            raise MoneyItemNotFoundError(item_id, "expense")
        return item

    def get_balance(self, item_id: int) -> Balance:
        item = self._items.get(item_id)
        if not isinstance(item, Balance):
            raise MoneyItemNotFoundError(item_id, "balance")
        return item

    def list_all(self) -> list[Expense | Balance]:
        """All live items in creation order."""
        return sorted(self._items.values(), key=lambda item: item.id)

    def list_expenses(self, open_only: bool = False) -> list[Expense]:
        """All live expenses, optionally only the ones not settled yet."""
        return [
            item
            for item in self.list_all()
            if isinstance(item, Expense) and not (open_only and item.is_settled)
        ]

    def list_balances(self) -> list[Balance]:
        return [item for item in self.list_all() if isinstance(item, Balance)]

    def balance_of(self, expense: Expense) -> Balance | None:
        """The balance that settled an expense, if any."""
        if expense.balance_id is None:
            return None
        return self.get_balance(expense.balance_id)

    def bill_of(self, balance: Balance) -> Bill:
        """Rebuild the bill a balance settled."""
        return Bill(*(self.get_expense(item_id) for item_id in balance.expense_ids))

    def open_bill(self) -> Bill:
        """Bill over every expense that is not settled yet."""
        return Bill(*self.list_expenses(open_only=True))

    def delete(self, item_id: int) -> None:
        """
        Delete an open expense.

        Raises:
            MoneyItemNotFoundError: If no live item has this id
            AlreadySettledError: If the item is a balance or a settled expense
        """
        item = self.get(item_id)
        if isinstance(item, Balance) or item.is_settled:
            raise AlreadySettledError(
                {item_id},
                f"Money item {item_id} is part of a settlement and cannot be deleted",
            )

        del self._items[item_id]
        logger.info(f"Deleted expense {item_id}")

    def __len__(self) -> int:
        return len(self._items)
