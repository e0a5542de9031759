"""Pydantic domain models for TodoTogether."""

from datetime import datetime
from typing import Annotated, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

# ============================================================================
# Users
# ============================================================================


class User(BaseModel):
    """A household member. Identity is the lowercase id."""

    id: str
    name: str

    def __eq__(self, other: object) -> bool:
        return isinstance(other, User) and other.id == self.id

    def __hash__(self) -> int:
        return hash(self.id)

    def __str__(self) -> str:
        return self.name


# ============================================================================
# Todos
# ============================================================================


class Todo(BaseModel):
    """A task in the todo tree.

    The parent is stored as an id and resolved through the owning TodoTree,
    which is also the only place that may change it (cycle checks live there).
    """

    model_config = ConfigDict(validate_assignment=True)

    id: int
    maintainers: list[str] = Field(default_factory=list)  # user ids
    title: str
    created_at: datetime = Field(default_factory=datetime.now)
    parent_id: int | None = None
    description: str = ""
    due_at: datetime | None = None
    progress: int = 0

    @field_validator("title")
    @classmethod
    def _trimmed_title(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("Todo must have a non empty title")
        return value

    @field_validator("progress")
    @classmethod
    def _never_negative(cls, value: int) -> int:
        return max(0, value)

    def __eq__(self, other: object) -> bool:
        return isinstance(other, Todo) and other.id == self.id

    def __hash__(self) -> int:
        return hash(self.id)

    def __str__(self) -> str:
        return self.title


# ============================================================================
# Money items
# ============================================================================


class MoneyItemBase(BaseModel):
    """Record shape shared by expenses and balances.

    Amounts are integer minor units (e.g. cents), keyed by user id.
    """

    id: int
    created_at: datetime = Field(default_factory=datetime.now)
    title: str
    payers: dict[str, int]
    description: str = ""

    def __eq__(self, other: object) -> bool:
        return isinstance(other, MoneyItemBase) and other.id == self.id

    def __hash__(self) -> int:
        return hash(self.id)

    def __str__(self) -> str:
        return self.title


class Expense(MoneyItemBase):
    """A payment event: who paid what, and who shares the cost."""

    kind: Literal["expense"] = "expense"
    sharers: list[str]  # user ids
    balance_id: int | None = None  # None = still open
    task_id: int | None = None

    @property
    def price(self) -> int:
        """Sum of all payer contributions."""
        return sum(self.payers.values())

    @property
    def shared_price(self) -> float:
        """Equal per-head share of the price."""
        return self.price / len(self.sharers)

    @property
    def is_settled(self) -> bool:
        return self.balance_id is not None

    def __str__(self) -> str:
        return f"{self.title} ({self.price})"


class Balance(MoneyItemBase):
    """Settlement record for a bill.

    Positive payer values pay into the pot, negative values receive from it.
    """

    kind: Literal["balance"] = "balance"
    title: str = "Balance"
    expense_ids: list[int]

    @property
    def collected(self) -> int:
        """Total paid into the pot."""
        return sum(amount for amount in self.payers.values() if amount > 0)

    @property
    def paid_out(self) -> int:
        """Total taken out of the pot (as a positive number)."""
        return -sum(amount for amount in self.payers.values() if amount < 0)


MoneyItem = Annotated[Expense | Balance, Field(discriminator="kind")]
