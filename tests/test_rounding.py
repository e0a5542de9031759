"""Exhaustive rounding tests for the settlement reconciler."""

import pytest

from todotogether.exceptions import RoundingError, UnbalanceableSharesError
from todotogether.reconciler import round_balanced_shares, round_to_minimum


def assert_settled(rounded: dict, minimum: int):
    """Rounded shares sum to zero and only move whole minimum units."""
    assert sum(rounded.values()) == 0
    assert all(value % minimum == 0 for value in rounded.values())
    assert all(isinstance(value, int) for value in rounded.values())


class TestRoundToMinimum:
    """Test the independent nearest-rounding step."""

    @pytest.mark.parametrize(
        ("share", "minimum", "expected"),
        [
            (183.33, 1, 183),
            (-166.67, 1, -167),
            (366.67, 100, 400),
            (-1100.0, 100, -1100),
            (3.5, 7, 7),
            (-3.5, 7, 0),
            (-8.0, 7, -7),
            (0.4, 1, 0),
        ],
    )
    def test_nearest_multiple(self, share, minimum, expected):
        assert round_to_minimum(share, minimum) == expected


class TestRoundingPerfectMatch:
    """Test cases where no residual adjustment is needed."""

    def test_already_whole(self):
        shares = {"a": -300.0, "b": 100.0, "c": 200.0}

        rounded = round_balanced_shares(1, shares)

        assert rounded == {"a": -300, "b": 100, "c": 200}

    def test_more_receivers(self):
        """{a: -15, b: -15, c: 20, d: 10} with a 7 unit coin."""
        shares = {"a": -15.0, "b": -15.0, "c": 20.0, "d": 10.0}

        rounded = round_balanced_shares(7, shares)

        assert rounded == {"a": -14, "b": -14, "c": 21, "d": 7}

    def test_empty_shares(self):
        assert round_balanced_shares(1, {}) == {}


class TestRoundingResiduals:
    """Test the residual correction."""

    def test_pot_with_excess(self):
        """Three payers of 3.67 round up to 4 each; one of them pays 1 less."""
        shares = {"a": -1100.0, "b": 1100.0 / 3, "c": 1100.0 / 3, "d": 1100.0 / 3}

        rounded = round_balanced_shares(100, shares)

        assert_settled(rounded, 100)
        assert rounded["a"] == -1100
        assert sorted([rounded["b"], rounded["c"], rounded["d"]]) == [300, 400, 400]

    def test_pot_short(self):
        """The payer rounded down the most pays one more unit."""
        shares = {"a": 10.4, "b": 10.2, "c": -20.6}

        rounded = round_balanced_shares(1, shares)

        assert rounded == {"a": 11, "b": 10, "c": -21}

    def test_pot_short_by_several_units(self):
        """Two receivers rounded away from zero need two extra units."""
        shares = {"a": 1.3, "b": 1.3, "c": 1.3, "d": 1.3, "e": -2.6, "f": -2.6}

        rounded = round_balanced_shares(1, shares)

        assert_settled(rounded, 1)
        assert rounded["e"] == rounded["f"] == -3
        assert sorted(rounded[user] for user in "abcd") == [1, 1, 2, 2]

    def test_excess_taken_from_smallest_payers(self):
        """Receivers are never adjusted."""
        shares = {"a": 2.5, "b": 10.5, "c": -6.5, "d": -6.5}

        rounded = round_balanced_shares(1, shares)

        # 3 + 11 - 6 - 6 = 2 too much: a and b each pay one less
        assert rounded == {"a": 2, "b": 10, "c": -6, "d": -6}

    def test_household_example(self):
        """Balances of the X/Y/Z household example in cents."""
        shares = {
            "a": 183.0 + 1 / 3,
            "b": -100.0,
            "c": 83.0 + 1 / 3,
            "d": -(166.0 + 2 / 3),
        }

        rounded = round_balanced_shares(1, shares)

        assert_settled(rounded, 1)
        assert rounded["a"] in (183, 184)
        assert rounded["c"] in (83, 84)
        assert rounded["a"] + rounded["c"] == 267
        assert rounded["b"] == -100
        assert rounded["d"] == -167


class TestRoundingTooSmall:
    """Shares below half a minimum collapse to zero."""

    def test_low_case(self):
        shares = {"a": -0.4, "b": 0.1, "c": 0.2, "d": 0.1}

        rounded = round_balanced_shares(100, shares)

        assert rounded == {"a": 0, "b": 0, "c": 0, "d": 0}

    def test_half_minimum_tie(self):
        """-3.5 rounds up to 0, so nobody has to pay the matching 3.5."""
        shares = {"a": -3.5, "b": 3.5, "c": -8.0, "d": 8.0}

        rounded = round_balanced_shares(7, shares)

        assert rounded == {"a": 0, "b": 0, "c": -7, "d": 7}


class TestRoundingErrors:
    """Test invalid input."""

    def test_unbalanced_shares(self):
        shares = {"a": 10.0, "b": -9.0}

        with pytest.raises(UnbalanceableSharesError, match="not balanced") as exc_info:
            round_balanced_shares(1, shares)

        assert exc_info.value.shares == shares
        assert exc_info.value.minimum == 1

    def test_float_noise_is_tolerated(self):
        shares = {"a": 0.1 + 0.2, "b": -0.3}

        assert round_balanced_shares(1, shares) == {"a": 0, "b": 0}

    @pytest.mark.parametrize("minimum", [0, -5])
    def test_non_positive_minimum(self, minimum):
        with pytest.raises(ValueError, match="positive"):
            round_balanced_shares(minimum, {"a": 1.0, "b": -1.0})

    def test_no_payer_left_to_adjust(self):
        """A short pot without any payer cannot be evened out."""
        shares = {"a": 0.4, "b": 0.4, "c": -0.8}

        with pytest.raises(RoundingError):
            round_balanced_shares(1, shares)


class TestRoundingProperties:
    """Zero-sum and whole units hold for many share layouts."""

    @pytest.mark.parametrize("minimum", [1, 5, 7, 50, 100])
    @pytest.mark.parametrize("people", [2, 3, 4, 6])
    def test_equal_split_of_one_payment(self, minimum, people):
        """One person paid 1000 for everybody."""
        share = 1000 / people
        shares = {f"u{i}": share for i in range(1, people)}
        shares["u0"] = share - 1000

        try:
            rounded = round_balanced_shares(minimum, shares)
        except RoundingError:
            pytest.fail("Equal splits should always be roundable")

        assert_settled(rounded, minimum)
        assert set(rounded) == set(shares)
        for user, value in rounded.items():
            assert abs(value - shares[user]) <= minimum * 1.5 + 1e-9
