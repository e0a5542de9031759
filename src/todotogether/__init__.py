"""TodoTogether - Shared household todos and fair expense settlement."""

__version__ = "0.1.0"

from .bill import Bill
from .config import Settings, load_settings
from .db import Database
from .ledger import Ledger
from .models import Balance, Expense, Todo, User
from .reconciler import round_balanced_shares
from .service import SettlementDraft, SettlementService
from .todos import TodoTree
from .users import UserRegistry
from .workspace import Workspace, WorkspaceSnapshot

__all__ = [
    "Bill",
    "Settings",
    "load_settings",
    "Database",
    "Ledger",
    "Balance",
    "Expense",
    "Todo",
    "User",
    "round_balanced_shares",
    "SettlementDraft",
    "SettlementService",
    "TodoTree",
    "UserRegistry",
    "Workspace",
    "WorkspaceSnapshot",
]
