"""
Configuration management for BiasDesk.

Loads settings from environment variables.
"""

import os
from dataclasses import dataclass
from datetime import tzinfo
from typing import Optional
from zoneinfo import ZoneInfo


@dataclass
class Config:
    """Application configuration."""

    # Database
    database_path: str = "data/biasdesk.db"

    # Timezone used for "same calendar day" checks (None = system local time)
    timezone: Optional[str] = None

    # Pair tracker
    history_limit: int = 7
    draft_ttl_seconds: float = 30.0

    # New account defaults
    default_round_to: int = 5
    default_risk_percentage: str = "1"

    # Logging
    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> "Config":
        """Load configuration from environment variables."""
        return cls(
            database_path=os.getenv("BIASDESK_DB_PATH", "data/biasdesk.db"),
            timezone=os.getenv("TIMEZONE") or None,
            history_limit=int(os.getenv("BIASDESK_HISTORY_LIMIT", "7")),
            draft_ttl_seconds=float(os.getenv("BIASDESK_DRAFT_TTL_SECONDS", "30")),
            default_round_to=int(os.getenv("BIASDESK_DEFAULT_ROUND_TO", "5")),
            default_risk_percentage=os.getenv("BIASDESK_DEFAULT_RISK_PERCENTAGE", "1"),
            log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
        )

    def get_tzinfo(self) -> Optional[tzinfo]:
        """Resolve the configured timezone, or None for system local time."""
        if not self.timezone:
            return None
        return ZoneInfo(self.timezone)

    def get_summary(self) -> str:
        """Get a summary of current settings."""
        return f"""Database: {self.database_path}
Timezone: {self.timezone or "system local"}
Log Level: {self.log_level}

Pairs:
  History Limit: {self.history_limit} entries
  Unnamed Pair Expiry: {self.draft_ttl_seconds:.0f}s

New Accounts:
  Round To: {self.default_round_to}
  Risk: {self.default_risk_percentage}%
"""
