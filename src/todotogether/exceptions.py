"""Custom exceptions for TodoTogether."""


class TodoTogetherError(Exception):
    """Base exception for all TodoTogether errors."""

    pass


class ConfigurationError(TodoTogetherError):
    """Raised when configuration is invalid or missing."""

    pass


class NotFoundError(TodoTogetherError):
    """Base class for lookups of unknown ids."""

    pass


# ============================================================================
# Users
# ============================================================================


class UserIdError(TodoTogetherError):
    """Base class for errors about a user id."""

    def __init__(self, user_id: str, message: str):
        self.user_id = user_id
        super().__init__(message)


class InvalidUserIdError(UserIdError):
    """Raised when a user id is empty or not alphanumeric."""

    def __init__(self, user_id: str):
        super().__init__(user_id, f"User ID ({user_id!r}) is invalid")


class DuplicateUserIdError(UserIdError):
    """Raised when a user id is already registered."""

    def __init__(self, user_id: str):
        super().__init__(user_id, f"User ID ({user_id!r}) already used")


class UserNotFoundError(UserIdError, NotFoundError):
    """Raised when no user has the requested id."""

    def __init__(self, user_id: str):
        super().__init__(user_id, f"No such user with ID {user_id!r}")


# ============================================================================
# Todos
# ============================================================================


class TodoError(TodoTogetherError):
    """Base class for task tree errors."""

    pass


class EmptyTitleError(TodoError):
    """Raised when a todo title is blank after trimming."""

    def __init__(self):
        super().__init__("Todo must have a non empty title")


class TodoNestingError(TodoError):
    """Raised when a reparenting would break the tree."""

    def __init__(self, todo_id: int | None, parent_id: int, message: str):
        self.todo_id = todo_id
        self.parent_id = parent_id
        super().__init__(message)


class InvalidParentError(TodoNestingError):
    """Raised when a todo is set as its own parent."""

    def __init__(self, todo_id: int):
        super().__init__(
            todo_id, todo_id, f"Todo {todo_id} cannot be its own parent"
        )


class CyclicParentError(TodoNestingError):
    """Raised when the new parent is a descendant of the todo."""

    def __init__(self, todo_id: int | None, parent_id: int):
        super().__init__(
            todo_id,
            parent_id,
            f"Todo {todo_id} cannot have its subtask {parent_id} as parent",
        )


class TodoNotFoundError(TodoError, NotFoundError):
    """Raised when no todo has the requested id."""

    def __init__(self, todo_id: int):
        self.todo_id = todo_id
        super().__init__(f"No such todo with ID {todo_id}")


# ============================================================================
# Money items
# ============================================================================


class MoneyError(TodoTogetherError):
    """Base class for ledger errors."""

    pass


class NegativeContributionError(MoneyError):
    """Raised when an expense payer contributed a negative amount."""

    def __init__(self, negative_contributions: dict[str, int]):
        self.negative_contributions = negative_contributions
        super().__init__(
            f"Expense contains negative contributions: {negative_contributions}"
        )


class NoSharersError(MoneyError):
    """Raised when an expense would have nobody to share its price."""

    def __init__(self, title: str):
        self.title = title
        super().__init__(f"Expense {title!r} needs at least one sharer")


class AlreadySettledError(MoneyError):
    """Raised when a balance would settle an already settled expense."""

    def __init__(self, item_ids: set[int], message: str | None = None):
        self.item_ids = item_ids
        super().__init__(
            message
            or f"Balance cannot be created for already settled expenses {sorted(item_ids)}"
        )


class ParticipantMismatchError(MoneyError):
    """Raised when balance payers don't match the bill's users."""

    def __init__(self, missing_users: set[str], unexpected_users: set[str]):
        self.missing_users = missing_users
        self.unexpected_users = unexpected_users
        super().__init__(
            f"Balance payers do not match the bill's users "
            f"(missing: {sorted(missing_users)}, unexpected: {sorted(unexpected_users)})"
        )


class EmptyBillError(MoneyError):
    """Raised when a balance is requested for a bill without expenses."""

    def __init__(self):
        super().__init__("Cannot balance a bill without expenses")


class UnbalanceableSharesError(MoneyError):
    """Raised when shares don't sum to zero and cannot be settled."""

    def __init__(self, minimum: int, shares: dict, message: str | None = None):
        self.minimum = minimum
        self.shares = shares
        super().__init__(message or f"Shares are not balanced: {shares}")


class RoundingError(UnbalanceableSharesError):
    """Raised when rounded shares still don't sum to zero after adjustment."""

    pass


class MoneyItemNotFoundError(MoneyError, NotFoundError):
    """Raised when no live money item has the requested id."""

    def __init__(self, item_id: int, kind: str = "money item"):
        self.item_id = item_id
        super().__init__(f"No such {kind} with ID {item_id}")
