"""
Account manager.

UI-facing boundary for the risk accounts collection: list, create,
update and delete. Every change is written through to the store.
"""

import logging
from datetime import datetime
from typing import Any, Callable, List, Optional

from biasdesk.accounts.book import (
    AccountField,
    CreateAccount,
    DeleteAccount,
    UpdateAccount,
    reduce_accounts,
    seed_accounts,
)
from biasdesk.accounts.risk import derive_account
from biasdesk.core.config import Config
from biasdesk.core.models import Account
from biasdesk.core.state import StateOwner
from biasdesk.core.store import ACCOUNTS_KEY, KeyValueStore, load_collection, write_through
from biasdesk.core.utils import utc_now

logger = logging.getLogger(__name__)


class AccountManager:
    """Manage risk accounts and keep them persisted."""

    def __init__(
        self,
        store: KeyValueStore,
        config: Optional[Config] = None,
        clock: Callable[[], datetime] = utc_now,
    ):
        """
        Initialize account manager.

        Args:
            store: Persistence backend
            config: Settings (defaults to Config())
            clock: Source of the current time
        """
        self.config = config or Config()
        self.clock = clock

        accounts = load_collection(store, ACCOUNTS_KEY, Account.from_dict, seed_accounts)
        accounts = [derive_account(account) for account in accounts]

        self.state: StateOwner[Account, Any] = StateOwner(accounts, reduce_accounts)
        self.state.subscribe(write_through(store, ACCOUNTS_KEY))

    def list(self) -> List[Account]:
        """All accounts in display order."""
        return self.state.get()

    def get(self, account_id: int) -> Optional[Account]:
        for account in self.state.get():
            if account.id == account_id:
                return account
        return None

    def create(self) -> Account:
        """Add a disabled account with default inputs."""
        accounts = self.state.apply(
            CreateAccount(
                now=self.clock(),
                round_to=self.config.default_round_to,
                risk_percentage=self.config.default_risk_percentage,
            )
        )
        return accounts[-1]

    def update(self, account_id: int, field: AccountField, value: Any) -> List[Account]:
        """Set one input field and re-derive the account."""
        return self.state.apply(UpdateAccount(account_id, field, value))

    def delete(self, account_id: int) -> List[Account]:
        """Remove an account. Unknown ids are ignored."""
        return self.state.apply(DeleteAccount(account_id))
