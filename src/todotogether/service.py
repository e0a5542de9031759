"""Service layer that composes the ledger, the rounder and the database.

Settling happens in two steps: a draft is computed from the open expenses
without touching anything, and applying the draft creates the balance and
persists the workspace.
"""

import logging

from pydantic import BaseModel

from .bill import Bill
from .config import Settings
from .db import Database
from .exceptions import EmptyBillError
from .models import Balance
from .reconciler import round_balanced_shares
from .workspace import Workspace

logger = logging.getLogger(__name__)


class SettlementDraft(BaseModel):
    """A proposed settlement over the currently open expenses."""

    expense_ids: list[int]
    minimum: int
    price: int
    user_balances: dict[str, float]  # unrounded, positive = owes the pot
    payers: dict[str, int]  # rounded, sums to zero


class SettlementService:
    """Service for settling the open expenses of a household."""

    def __init__(self, settings: Settings, database: Database):
        """Initialize the settlement service and load the stored workspace."""
        self.settings = settings
        self.db = database
        self.workspace: Workspace = database.load_workspace()

    def save(self):
        """Persist the current workspace."""
        self.db.save_workspace(self.workspace)

    def draft_settlement(self, minimum: int | None = None) -> SettlementDraft:
        """
        Compute what everybody pays or receives for the open expenses.

        Args:
            minimum: Smallest amount to move (default from settings)

        Returns:
            Draft settlement, nothing is changed yet

        Raises:
            EmptyBillError: If there are no open expenses
            ValueError: If minimum is not positive
        """
        bill = self.workspace.ledger.open_bill()
        if not bill.expenses:
            raise EmptyBillError()

        if minimum is None:
            minimum = self.settings.default_minimum
        payers = round_balanced_shares(minimum, bill.user_balances)

        draft = SettlementDraft(
            expense_ids=sorted(expense.id for expense in bill.expenses),
            minimum=minimum,
            price=bill.price,
            user_balances=bill.user_balances,
            payers=payers,
        )

        logger.info(
            f"Created draft over {len(draft.expense_ids)} expense(s), "
            f"total price: {draft.price}"
        )
        return draft

    def apply_draft(self, draft: SettlementDraft) -> Balance:
        """
        Create the balance for a draft and save the workspace.

        Raises:
            MoneyItemNotFoundError: If an expense of the draft is gone
            AlreadySettledError: If an expense was settled in the meantime
        """
        ledger = self.workspace.ledger
        bill = Bill(*(ledger.get_expense(item_id) for item_id in draft.expense_ids))
        balance = bill.to_balance(ledger, draft.minimum, payers=draft.payers)

        self.save()
        logger.info(f"Saved balance {balance.id}")

        return balance
