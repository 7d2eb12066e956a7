"""
Contract Validation Module

Модуль для валидации JSON контрактов ratelock.
"""

from .validators import (
    ChainConfigValidator,
    ContractValidator,
    LedgerSnapshotValidator,
    SchemaLoader,
    TransferMessageValidator,
    validate_chain_config,
    validate_ledger_snapshot,
    validate_transfer_message,
)

__all__ = [
    # Classes
    "SchemaLoader",
    "ContractValidator",
    "ChainConfigValidator",
    "TransferMessageValidator",
    "LedgerSnapshotValidator",
    # Functions
    "validate_chain_config",
    "validate_transfer_message",
    "validate_ledger_snapshot",
]
