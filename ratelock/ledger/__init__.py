"""Ledger — accounting engine и collateral wrapper.

- LedgerEngine: per-account principal / locked rate / last_update,
  кристаллизация в каждой мутирующей операции
- CollateralWrapper: deposit/redeem базового актива 1:1
"""

from .engine import LedgerConfig, LedgerEngine
from .wrapper import BaseAsset, CollateralWrapper

__all__ = [
    "LedgerEngine",
    "LedgerConfig",
    "CollateralWrapper",
    "BaseAsset",
]
