"""
Domain models and value objects.

Contains the ledger account record, chain-configuration records
and the persisted ledger snapshot.
"""

from ratelock.core.domain.account import EMPTY_ACCOUNT, AccountRecord
from ratelock.core.domain.chain_config import (
    ChainConfig,
    RateLimiterConfig,
    TransferDirection,
)
from ratelock.core.domain.snapshot import LedgerSnapshot

__all__ = [
    # Account model
    "AccountRecord",
    "EMPTY_ACCOUNT",
    # Chain configuration
    "ChainConfig",
    "RateLimiterConfig",
    "TransferDirection",
    # Persistence
    "LedgerSnapshot",
]
