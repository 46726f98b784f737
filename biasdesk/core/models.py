"""
Models for BiasDesk.

Domain entities: Account, Pair, HistoryEntry.
Database model: KeyValue (persisted JSON collections).
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, List, Optional

from sqlalchemy import DateTime, String, Text
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

from biasdesk.core.utils import (
    format_number,
    format_timestamp,
    parse_numeric,
    parse_timestamp,
)

logger = logging.getLogger(__name__)


class Base(DeclarativeBase):
    """Base class for all models."""
    pass


class KeyValue(Base):
    """
    One persisted collection.

    The value is the full JSON array for the collection stored under key.
    """

    __tablename__ = "key_values"

    key: Mapped[str] = mapped_column(String(100), primary_key=True)
    value: Mapped[str] = mapped_column(Text, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=lambda: datetime.now(timezone.utc)
    )

    def __repr__(self) -> str:
        return f"<KeyValue {self.key}: {len(self.value)} bytes>"


# Allowed account sizes; 0 means the account is disabled
ACCOUNT_SIZES = (0, 5000, 10000, 20000, 60000, 100000)

# Selector range for risk percentage
RISK_PERCENTAGE_MIN = 1
RISK_PERCENTAGE_MAX = 20


class CalculationMode(str, Enum):
    """Which risk input drives the account derivation."""
    RISK_AMOUNT = "RiskAmount"
    RISK_PERCENTAGE = "RiskPercentage"


class Bias(str, Enum):
    """Directional stance on a pair."""
    BULLISH = "bullish"
    BEARISH = "bearish"


class Timeframe(str, Enum):
    """Timeframe a bias applies to."""
    WEEKLY = "weekly"
    DAILY = "daily"


def coerce_enum(enum_cls, value: Any, default):
    """Read an enum member from its value or name, else the default."""
    if isinstance(value, enum_cls):
        return value
    if isinstance(value, str):
        for member in enum_cls:
            if value.lower() == member.value.lower() or value.upper() == member.name:
                return member
    return default


def _coerce_int(value: Any) -> int:
    return int(parse_numeric(value))


@dataclass
class Account:
    """
    A trading account for position sizing.

    actual_balance, risk_amount and remaining_trades are derived;
    they are recomputed on every edit and never set directly.
    """

    id: int
    name: str = ""
    account_size: int = 0
    balance: str = ""
    risk_percentage: str = "1"
    round_to: int = 5
    calculation_mode: CalculationMode = CalculationMode.RISK_AMOUNT
    target_risk_amount: str = ""
    note: str = ""

    # Derived
    actual_balance: float = 0.0
    risk_amount: float = 0.0
    remaining_trades: int = 0

    @property
    def is_enabled(self) -> bool:
        return self.account_size != 0

    @property
    def max_drawdown(self) -> float:
        """10% drawdown allowance on the account size."""
        return self.account_size * 0.1

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "id": self.id,
            "name": self.name,
            "accountSize": self.account_size,
            "balance": self.balance,
            "riskPercentage": self.risk_percentage,
            "roundTo": self.round_to,
            "calculationMode": self.calculation_mode.value,
            "targetRiskAmount": self.target_risk_amount,
            "note": self.note,
            "actualBalance": self.actual_balance,
            "riskAmount": self.risk_amount,
            "remainingTrades": self.remaining_trades,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Account":
        """
        Create from a persisted dictionary.

        Missing or unreadable fields fall back to their defaults.
        Derived fields are not read; callers re-derive after loading.
        """
        account_size = _coerce_int(data.get("accountSize"))
        if account_size not in ACCOUNT_SIZES:
            logger.warning(f"Unknown account size {data.get('accountSize')!r}, using disabled")
            account_size = 0

        round_to = _coerce_int(data.get("roundTo", 5))

        return cls(
            id=_coerce_int(data.get("id")),
            name=str(data.get("name") or ""),
            account_size=account_size,
            balance=format_number(data.get("balance")),
            risk_percentage=format_number(data.get("riskPercentage", "1")),
            round_to=max(round_to, 0),
            calculation_mode=coerce_enum(
                CalculationMode, data.get("calculationMode"), CalculationMode.RISK_AMOUNT
            ),
            target_risk_amount=format_number(data.get("targetRiskAmount")),
            note=str(data.get("note") or ""),
        )


@dataclass
class HistoryEntry:
    """Snapshot of a pair's biases taken before a daily bias change."""

    date: Optional[datetime]
    daily_bias: Bias
    weekly_bias: Bias

    def to_dict(self) -> dict:
        return {
            "date": format_timestamp(self.date),
            "dailyBias": self.daily_bias.value,
            "weeklyBias": self.weekly_bias.value,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "HistoryEntry":
        return cls(
            date=parse_timestamp(data.get("date")),
            daily_bias=coerce_enum(Bias, data.get("dailyBias"), Bias.BEARISH),
            weekly_bias=coerce_enum(Bias, data.get("weeklyBias"), Bias.BEARISH),
        )


@dataclass
class Pair:
    """
    A tradable instrument with weekly and daily bias.

    Validity is not stored; see biasdesk.pairs.tracker.is_valid.
    """

    id: int
    name: str = ""
    weekly_bias: Bias = Bias.BEARISH
    daily_bias: Bias = Bias.BEARISH
    last_updated: Optional[datetime] = None
    history: List[HistoryEntry] = field(default_factory=list)
    manually_invalidated: bool = False
    is_editing: bool = False
    notes: str = ""

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "id": self.id,
            "name": self.name,
            "weeklyBias": self.weekly_bias.value,
            "dailyBias": self.daily_bias.value,
            "lastUpdated": format_timestamp(self.last_updated),
            "history": [entry.to_dict() for entry in self.history],
            "manuallyInvalidated": self.manually_invalidated,
            "isEditing": self.is_editing,
            "notes": self.notes,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Pair":
        """Create from a persisted dictionary."""
        history = [
            HistoryEntry.from_dict(entry)
            for entry in (data.get("history") or [])
            if isinstance(entry, dict)
        ]

        return cls(
            id=_coerce_int(data.get("id")),
            name=str(data.get("name") or ""),
            weekly_bias=coerce_enum(Bias, data.get("weeklyBias"), Bias.BEARISH),
            daily_bias=coerce_enum(Bias, data.get("dailyBias"), Bias.BEARISH),
            last_updated=parse_timestamp(data.get("lastUpdated")),
            history=history,
            manually_invalidated=bool(data.get("manuallyInvalidated", False)),
            is_editing=bool(data.get("isEditing", False)),
            notes=str(data.get("notes") or ""),
        )

    def __repr__(self) -> str:
        return (
            f"<Pair {self.id}: {self.name or 'Unnamed'} "
            f"W={self.weekly_bias.value} D={self.daily_bias.value}>"
        )
