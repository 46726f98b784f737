"""
Unit tests for position risk calculations.

Tests the drawdown-adjusted balance, per-trade risk amount,
target-driven risk percentage and remaining trade count.
"""

import math
import pytest
import sys
from pathlib import Path

# Add parent to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from biasdesk.accounts.risk import (
    actual_balance,
    derive_account,
    remaining_trades,
    risk_amount,
    risk_percentage_from_target,
    round_to_nearest,
)
from biasdesk.core.models import Account, CalculationMode


class TestActualBalance:
    """Test drawdown-adjusted balance."""

    def test_disabled_account_passes_balance_through(self):
        """Size 0 means no drawdown adjustment."""
        assert actual_balance("500", 0) == 500

    def test_drawdown_buffer(self):
        """1000 drawdown allowance minus 500 shortfall."""
        assert actual_balance("9500", 10000) == 500

    def test_balance_at_floor_is_zero(self):
        """Balance at 90% of size leaves nothing."""
        assert actual_balance("9000", 10000) == 0

    def test_empty_balance(self):
        """Empty balance parses to 0 regardless of size."""
        assert actual_balance("", 10000) == 0
        assert actual_balance(None, 5000) == 0

    def test_unreadable_balance_is_zero(self):
        """Text that is not a number coerces to 0."""
        assert actual_balance("abc", 0) == 0

    def test_profit_above_size(self):
        """Balance above size adds to the buffer."""
        assert actual_balance("10500", 10000) == pytest.approx(1500)


class TestRiskAmount:
    """Test risk amount in RiskAmount mode."""

    def test_already_multiple_of_round_to(self):
        """ab=500, 10% = 50, a multiple of 5."""
        assert risk_amount("9500", "10", 5, 10000) == 50

    def test_round_to_zero_is_unrounded(self):
        """roundTo 0 returns the exact value."""
        assert risk_amount("9512", "1", 0, 10000) == pytest.approx(5.12)

    def test_rounds_to_nearest_multiple(self):
        """12 rounds to 10 with step 5."""
        assert risk_amount("1200", "1", 5, 0) == 10

    def test_midpoint_rounds_away_from_zero(self):
        """12.5 rounds up to 15 with step 5."""
        assert risk_amount("1250", "1", 5, 0) == 15

    def test_empty_inputs(self):
        """Empty balance or percentage gives 0."""
        assert risk_amount("", "1", 5, 10000) == 0
        assert risk_amount("9500", "", 5, 10000) == 0

    def test_below_floor(self):
        """No risk when the balance is under the drawdown floor."""
        assert risk_amount("8500", "5", 5, 10000) == 0

    def test_round_to_blank_string(self):
        """A cleared roundTo field disables rounding."""
        assert risk_amount("1234", "1", "", 0) == pytest.approx(12.34)


class TestRoundToNearest:
    """Test rounding helper."""

    def test_negative_midpoint(self):
        """Half away from zero on negatives too."""
        assert round_to_nearest(-12.5, 5) == -15

    def test_non_positive_step(self):
        """Step 0 leaves the value alone."""
        assert round_to_nearest(12.34, 0) == 12.34

    def test_huge_quotient_is_rounded(self):
        """More digits than the default decimal context holds."""
        assert round_to_nearest(1e39, 5) == pytest.approx(1e39)

    def test_unroundable_value_returned_as_is(self):
        assert round_to_nearest(1e308, 1e-300) == 1e308

    def test_non_finite_returned_as_is(self):
        assert math.isinf(round_to_nearest(float("inf"), 5))


class TestRiskPercentageFromTarget:
    """Test RiskPercentage mode."""

    def test_target_over_actual_balance(self):
        """25 of 500 is 5%."""
        assert risk_percentage_from_target("9500", "25", 10000) == pytest.approx(5)

    def test_empty_target(self):
        assert risk_percentage_from_target("9500", "", 10000) == 0

    def test_no_actual_balance(self):
        assert risk_percentage_from_target("9000", "25", 10000) == 0


class TestRemainingTrades:
    """Test remaining trade count."""

    def test_floor_division(self):
        """500 / 50 = 10 trades."""
        assert remaining_trades("9500", 50, 10000) == 10

    def test_zero_risk(self):
        assert remaining_trades("9500", 0, 10000) == 0

    def test_never_negative(self):
        """Negative actual balance reports 0, not a negative count."""
        assert remaining_trades("-500", 10, 0) == 0
        assert remaining_trades("8000", 10, 10000) == 0

    @pytest.mark.parametrize("balance", ["", "0", "100", "9000", "8999", "-1", "abc", "123456"])
    @pytest.mark.parametrize("risk", [-10, 0, 0.5, 1, 50])
    @pytest.mark.parametrize("size", [0, 5000, 10000, 100000])
    def test_non_negative_for_any_input(self, balance, risk, size):
        assert remaining_trades(balance, risk, size) >= 0


class TestDeriveAccount:
    """Test full derivation per calculation mode."""

    def test_risk_amount_mode(self):
        account = derive_account(Account(
            id=1, account_size=10000, balance="9500", risk_percentage="10", round_to=5,
        ))
        assert account.actual_balance == 500
        assert account.risk_amount == 50
        assert account.remaining_trades == 10

    def test_risk_percentage_mode(self):
        """Target becomes the risk amount; percentage is recomputed."""
        account = derive_account(Account(
            id=1,
            account_size=10000,
            balance="9500",
            risk_percentage="10",
            calculation_mode=CalculationMode.RISK_PERCENTAGE,
            target_risk_amount="30",
        ))
        assert account.risk_amount == 30
        assert account.risk_percentage == "6"
        assert account.remaining_trades == 16

    def test_risk_percentage_rounded_to_two_decimals(self):
        account = derive_account(Account(
            id=1,
            balance="300",
            calculation_mode=CalculationMode.RISK_PERCENTAGE,
            target_risk_amount="10",
        ))
        assert account.risk_percentage == "3.33"

    def test_does_not_mutate_input(self):
        original = Account(id=1, balance="1000", risk_percentage="2")
        derive_account(original)
        assert original.risk_amount == 0


class TestExtremeInput:
    """Exponent text parses to huge numbers; nothing raises."""

    def test_huge_balance(self):
        assert risk_amount("1e40", "10", 5, 0) == pytest.approx(1e39)

    def test_overflowing_risk_left_unrounded(self):
        assert math.isinf(risk_amount("1e308", "1e300", 5, 0))

    def test_overflowing_risk_leaves_no_trades(self):
        account = derive_account(Account(id=1, balance="1e308", risk_percentage="1e300"))
        assert math.isinf(account.risk_amount)
        assert account.remaining_trades == 0

    def test_overflowing_target_percentage_is_zero(self):
        assert risk_percentage_from_target("1e-300", "1e300", 0) == 0
