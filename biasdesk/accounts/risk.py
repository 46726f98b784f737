"""
Position risk calculations.

Pure functions over an account's raw inputs. Nothing here raises:
missing or unreadable input degrades to zero.

Actual balance models a prop-firm drawdown buffer. With a 10% max
drawdown, a balance at 90% of the account size has nothing left to risk.
"""

import math
from dataclasses import replace
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation, localcontext
from typing import Any

from biasdesk.core.models import Account, CalculationMode
from biasdesk.core.utils import format_number, is_blank, parse_numeric

MAX_DRAWDOWN_PCT = 0.10


def actual_balance(balance: Any, account_size: Any) -> float:
    """
    Drawdown-adjusted balance.

    Disabled accounts (size 0) and empty balances pass the parsed
    balance through unchanged.

    Examples:
        actual_balance("500", 0) -> 500.0
        actual_balance("9500", 10000) -> 500.0
    """
    if is_blank(account_size) or is_blank(balance):
        return parse_numeric(balance)

    size = parse_numeric(account_size)
    max_drawdown = size * MAX_DRAWDOWN_PCT
    difference = size - parse_numeric(balance)
    return max_drawdown - difference


def round_to_nearest(value: float, step: float) -> float:
    """
    Round to the nearest multiple of step, half away from zero.

    Values that cannot be rounded (non-finite, or too many digits for
    the quotient) come back unrounded.
    """
    if step <= 0 or not math.isfinite(value) or not math.isfinite(step):
        return value

    with localcontext() as ctx:
        ctx.prec = 400
        try:
            units = (Decimal(repr(value)) / Decimal(repr(step))).quantize(
                Decimal(1), rounding=ROUND_HALF_UP
            )
        except InvalidOperation:
            return value

    rounded = float(units) * step
    return rounded if math.isfinite(rounded) else value


def risk_amount(balance: Any, risk_percentage: Any, round_to: Any, account_size: Any) -> float:
    """
    Amount to risk per trade for a fixed risk percentage.

    Returns 0 when balance or percentage is empty, or when nothing
    is left above the drawdown floor.
    """
    if is_blank(balance) or is_blank(risk_percentage):
        return 0.0

    ab = actual_balance(balance, account_size)
    if ab <= 0:
        return 0.0

    risk = ab * (parse_numeric(risk_percentage) / 100)

    step = parse_numeric(round_to)
    if step <= 0:
        return risk
    return round_to_nearest(risk, step)


def risk_percentage_from_target(balance: Any, target_risk_amount: Any, account_size: Any) -> float:
    """Percentage of the actual balance a target risk amount represents."""
    if is_blank(balance) or is_blank(target_risk_amount):
        return 0.0

    ab = actual_balance(balance, account_size)
    if ab <= 0:
        return 0.0

    pct = (parse_numeric(target_risk_amount) / ab) * 100
    return pct if math.isfinite(pct) else 0.0


def remaining_trades(balance: Any, risk: float, account_size: Any) -> int:
    """Full losing trades left before the drawdown floor. Never negative."""
    if risk <= 0:
        return 0

    ratio = actual_balance(balance, account_size) / risk
    if not math.isfinite(ratio):
        return 0

    trades = math.floor(ratio)
    return max(trades, 0)


def derive_account(account: Account) -> Account:
    """
    Recompute every derived field from the account's raw inputs.

    RiskAmount mode derives the amount from the percentage.
    RiskPercentage mode takes the target as the amount and overwrites
    the stored percentage with the computed one (2 decimals).
    """
    ab = actual_balance(account.balance, account.account_size)

    if account.calculation_mode == CalculationMode.RISK_PERCENTAGE:
        pct = risk_percentage_from_target(
            account.balance, account.target_risk_amount, account.account_size
        )
        amount = parse_numeric(account.target_risk_amount)
        updated = replace(
            account,
            risk_percentage=format_number(round(pct, 2)),
            actual_balance=ab,
            risk_amount=amount,
        )
    else:
        amount = risk_amount(
            account.balance, account.risk_percentage, account.round_to, account.account_size
        )
        updated = replace(account, actual_balance=ab, risk_amount=amount)

    updated.remaining_trades = remaining_trades(
        updated.balance, updated.risk_amount, updated.account_size
    )
    return updated
