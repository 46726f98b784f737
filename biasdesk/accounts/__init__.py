"""
Risk accounts module for BiasDesk.

Handles drawdown-adjusted balances, per-trade risk and remaining trades.
"""

from biasdesk.accounts.book import AccountField
from biasdesk.accounts.manager import AccountManager

__all__ = ["AccountField", "AccountManager"]
