"""Core rounding logic turning fractional balances into a zero-sum payout plan."""

import logging
import math
from collections.abc import Hashable, Mapping
from typing import TypeVar

from .exceptions import RoundingError, UnbalanceableSharesError

K = TypeVar("K", bound=Hashable)

# Shares must cancel out to within a thousandth of a minor unit
ZERO_SUM_TOLERANCE = 0.0005


def round_to_minimum(share: float, minimum: int) -> int:
    """
    Round a share to the nearest multiple of minimum.

    Exact halves round upward, so -3.5 with minimum 7 becomes 0
    and 3.5 becomes 7.

    Args:
        share: Real-valued share in minor units
        minimum: Smallest movable unit

    Returns:
        Nearest multiple of minimum (integer)
    """
    return math.floor(share / minimum + 0.5) * minimum


def verify_zero_sum(minimum: int, shares: Mapping[K, float]) -> None:
    """
    Verify that shares cancel out before rounding.

    Raises:
        UnbalanceableSharesError: If the sum is not zero within tolerance
    """
    total = math.fsum(shares.values())
    if abs(total) >= ZERO_SUM_TOLERANCE:
        raise UnbalanceableSharesError(
            minimum,
            dict(shares),
            f"The users are not balanced (sum {total:.4f}): {dict(shares)}",
        )


def round_balanced_shares(minimum: int, shares: Mapping[K, float]) -> dict[K, int]:
    """
    Round balanced shares so that only whole "minimum" units move around.

    Steps:
    1. Round each share independently to the nearest multiple of minimum
    2. Sum the rounded shares; the residual is a multiple of minimum
    3. If the pot is short, the payers rounded down the most pay one more unit
    4. If the pot has excess, the smallest payers pay one unit less
    5. Verify the rounded shares sum to exactly zero

    Receivers (negative shares) are never adjusted. If every share is
    smaller than half a minimum, everybody ends up at zero.

    Args:
        minimum: Smallest movable unit, like a coin that cannot be broken
        shares: Real share per user; positive pays into the pot, negative
                receives from it

    Returns:
        Rounded shares (multiples of minimum, summing to zero)

    Raises:
        ValueError: If minimum is not positive
        UnbalanceableSharesError: If the shares don't sum to zero
        RoundingError: If the rounded shares cannot be balanced
    """
    if minimum <= 0:
        raise ValueError(f"Minimum must be a positive amount, got {minimum}")

    verify_zero_sum(minimum, shares)

    # Step 1: Best attempt, everybody pays or receives their closest amount
    rounded = {user: round_to_minimum(share, minimum) for user, share in shares.items()}

    # Step 2: What the payers put in minus what the receivers take out
    residual = sum(rounded.values())
    units = residual // minimum

    # Step 3/4: Move single minimum units until the pot is even
    if units < 0:
        debtors = sorted(
            (user for user, value in rounded.items() if value > 0),
            key=lambda user: shares[user] - rounded[user],
            reverse=True,
        )
        for user in debtors[:-units]:
            rounded[user] += minimum
    elif units > 0:
        payers = sorted(
            (user for user, value in rounded.items() if value > 0),
            key=lambda user: rounded[user],
        )
        for user in payers[:units]:
            rounded[user] -= minimum

    if units != 0:
        logging.info(
            f"Applied rounding adjustment: {-units} x {minimum} "
            f"(residual {residual}) across {abs(units)} payer(s)"
        )

    # Step 5: Final verification
    final_total = sum(rounded.values())
    if final_total != 0:
        raise RoundingError(
            minimum,
            dict(shares),
            f"User shares could not be balanced and rounded "
            f"(so far: {rounded} = {final_total})",
        )

    return rounded
