"""
Account collection reducer.

Edits arrive as commands. UpdateAccount carries a closed AccountField
tag; each tag knows how to coerce its value, and every update ends by
re-deriving the account.
"""

import logging
from dataclasses import dataclass, replace
from datetime import datetime
from enum import Enum
from typing import Any, List, Optional

from biasdesk.accounts.risk import derive_account
from biasdesk.core.models import ACCOUNT_SIZES, Account, CalculationMode, coerce_enum
from biasdesk.core.utils import format_number, is_blank, next_entity_id, parse_numeric

logger = logging.getLogger(__name__)


class AccountField(str, Enum):
    """Editable account fields."""
    NAME = "name"
    ACCOUNT_SIZE = "accountSize"
    BALANCE = "balance"
    RISK_PERCENTAGE = "riskPercentage"
    ROUND_TO = "roundTo"
    CALCULATION_MODE = "calculationMode"
    TARGET_RISK_AMOUNT = "targetRiskAmount"
    NOTE = "note"


@dataclass(frozen=True)
class CreateAccount:
    now: datetime
    round_to: int = 5
    risk_percentage: str = "1"


@dataclass(frozen=True)
class UpdateAccount:
    account_id: int
    field: AccountField
    value: Any


@dataclass(frozen=True)
class DeleteAccount:
    account_id: int


def new_account(account_id: int, round_to: int = 5, risk_percentage: str = "1") -> Account:
    """Build a disabled account with default inputs."""
    return derive_account(
        Account(id=account_id, round_to=round_to, risk_percentage=risk_percentage)
    )


def seed_accounts() -> List[Account]:
    """Default collection: one disabled account."""
    return [new_account(1)]


def parse_field(field: Any) -> Optional[AccountField]:
    """Resolve a field tag from its enum, value or name."""
    if isinstance(field, AccountField):
        return field
    if isinstance(field, str):
        for member in AccountField:
            if field == member.value or field.upper() == member.name:
                return member
    return None


def _apply_field(account: Account, field: AccountField, value: Any) -> Optional[Account]:
    """
    Set one raw input on a copy of the account.

    Returns None when the value is not acceptable for the field.
    """
    if field == AccountField.NAME:
        return replace(account, name="" if value is None else str(value))

    elif field == AccountField.ACCOUNT_SIZE:
        size = parse_numeric(value)
        if size not in ACCOUNT_SIZES:
            logger.warning(f"Ignoring account size {value!r}; allowed: {ACCOUNT_SIZES}")
            return None
        return replace(account, account_size=int(size))

    elif field == AccountField.BALANCE:
        return replace(account, balance=format_number(value))

    elif field == AccountField.RISK_PERCENTAGE:
        return replace(account, risk_percentage=format_number(value))

    elif field == AccountField.ROUND_TO:
        step = 0 if is_blank(value) else int(parse_numeric(value))
        return replace(account, round_to=max(step, 0))

    elif field == AccountField.CALCULATION_MODE:
        mode = coerce_enum(CalculationMode, value, None)
        if mode is None:
            logger.warning(f"Ignoring calculation mode {value!r}")
            return None
        return replace(account, calculation_mode=mode)

    elif field == AccountField.TARGET_RISK_AMOUNT:
        return replace(account, target_risk_amount=format_number(value))

    elif field == AccountField.NOTE:
        return replace(account, note="" if value is None else str(value))

    raise AssertionError(f"Unhandled account field: {field}")


def reduce_accounts(accounts: List[Account], command) -> List[Account]:
    """
    Apply one command to the account list.

    Returns the same list object when the command changes nothing.
    """
    if isinstance(command, CreateAccount):
        account_id = next_entity_id((a.id for a in accounts), command.now)
        account = new_account(account_id, command.round_to, command.risk_percentage)
        logger.info(f"Created account {account_id}")
        return accounts + [account]

    elif isinstance(command, UpdateAccount):
        field = parse_field(command.field)
        if field is None:
            logger.warning(f"Ignoring update to unknown account field {command.field!r}")
            return accounts

        for index, account in enumerate(accounts):
            if account.id != command.account_id:
                continue

            edited = _apply_field(account, field, command.value)
            if edited is None:
                return accounts

            logger.debug(f"Account {account.id}: {field.value} = {command.value!r}")
            updated = list(accounts)
            updated[index] = derive_account(edited)
            return updated

        logger.debug(f"Update for unknown account {command.account_id} ignored")
        return accounts

    elif isinstance(command, DeleteAccount):
        remaining = [a for a in accounts if a.id != command.account_id]
        if len(remaining) == len(accounts):
            return accounts
        logger.info(f"Deleted account {command.account_id}")
        return remaining

    logger.warning(f"Unknown account command: {command!r}")
    return accounts
