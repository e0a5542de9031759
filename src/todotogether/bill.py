"""Bill: per-user aggregation over a chosen set of expenses."""

import math
from typing import TYPE_CHECKING

from .models import Balance, Expense
from .reconciler import round_balanced_shares

if TYPE_CHECKING:
    from .ledger import Ledger


class Bill:
    """
    Read-only view over a fixed set of expenses.

    For each user it lists what they paid and what they share, and derives
    what they should finally pay (positive balance) or get back (negative).
    Users are referenced by id.
    """

    def __init__(self, *expenses: Expense):
        """Build the bill; repeated expenses are counted once."""
        ordered = list(dict.fromkeys(expenses))
        self.expenses: frozenset[Expense] = frozenset(ordered)

        # user -> expense -> (paid amount, is a sharer)
        self.user_items: dict[str, dict[Expense, tuple[int, bool]]] = {}
        for expense in ordered:
            for user_id, paid in expense.payers.items():
                self.user_items.setdefault(user_id, {})[expense] = (
                    paid,
                    user_id in expense.sharers,
                )
            for user_id in expense.sharers:
                if user_id not in expense.payers:
                    # uses the expense, but did not pay
                    self.user_items.setdefault(user_id, {})[expense] = (0, True)

        # What each user paid in the end
        self.user_paid: dict[str, int] = {
            user_id: sum(paid for paid, _ in items.values())
            for user_id, items in self.user_items.items()
        }

        # Sum of the per-head shares, before personal exclusions
        self.shared_price: float = math.fsum(e.shared_price for e in ordered)

        # Shared price minus the shares of expenses the user does not use
        self.user_prices: dict[str, float] = {
            user_id: self.shared_price
            - math.fsum(e.shared_price for e in ordered if not self.item(user_id, e)[1])
            for user_id in self.user_items
        }

        # Positive: pays into the pot. Negative: gets money back from it.
        self.user_balances: dict[str, float] = {
            user_id: price - self.user_paid[user_id]
            for user_id, price in self.user_prices.items()
        }

    @property
    def participants(self) -> set[str]:
        """Ids of all users who paid for or share any expense."""
        return set(self.user_items)

    @property
    def user_count(self) -> int:
        return len(self.user_items)

    @property
    def price(self) -> int:
        """Total price of all expenses."""
        return sum(expense.price for expense in self.expenses)

    def __getitem__(self, user_id: str) -> dict[Expense, tuple[int, bool]]:
        """Personal items of a user (empty if not involved)."""
        return self.user_items.get(user_id, {})

    def item(self, user_id: str, expense: Expense) -> tuple[int, bool]:
        """
        Paid amount and sharer flag of a user for one expense.

        Users not involved in the expense paid nothing and share nothing,
        so unknown pairs give (0, False).
        """
        return self[user_id].get(expense, (0, False))

    def __eq__(self, other: object) -> bool:
        return isinstance(other, Bill) and other.expenses == self.expenses

    def __hash__(self) -> int:
        return hash(self.expenses)

    def __repr__(self) -> str:
        titles = ", ".join(str(e) for e in sorted(self.expenses, key=lambda e: e.id))
        return f"Bill for [{titles}]"

    def to_balance(
        self,
        ledger: "Ledger",
        minimum: int = 1,
        payers: dict[str, int] | None = None,
    ) -> Balance:
        """
        Create a balance that settles this bill.

        Args:
            ledger: Ledger owning the expenses
            minimum: Agreed smallest amount the users will transfer
            payers: What each user pays (positive) or receives (negative);
                    derived by rounding the user balances when omitted

        Returns:
            The new balance

        Raises:
            UnbalanceableSharesError: If the balances cannot be rounded
            AlreadySettledError: If any expense is already settled
            ParticipantMismatchError: If payers don't match the bill's users
        """
        if payers is None:
            payers = round_balanced_shares(minimum, self.user_balances)
        return ledger.create_balance(self, payers)
