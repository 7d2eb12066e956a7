"""Collateral Wrapper — обмен базового актива 1:1 на стоимость леджера.

Тонкий passthrough без собственной логики начисления:
- deposit: mint по текущей global_rate, затем базовый актив → резерв враппера
- redeem: burn (MAX_UINT256 → весь баланс), базовый актив → владельцу

Deposit и redeem атомарны: если перевод базового актива не удался,
mint или burn откатывается.
"""

import logging
from typing import Protocol

from ratelock.core.errors import DepositTransferFailed, RedeemTransferFailed
from ratelock.core.math.fixed_point import validate_uint
from ratelock.ledger.engine import LedgerEngine

logger = logging.getLogger(__name__)


class BaseAsset(Protocol):
    """Базовый актив (внешний коллаборатор).

    transfer возвращает False (или бросает) при неудаче.
    """

    def transfer(self, sender: str, to: str, amount: int) -> bool: ...


class CollateralWrapper:
    """Deposit/redeem поверх одного LedgerEngine.

    Враппер вызывает mint/burn под собственной идентичностью,
    которой должна быть выдана MINT_AND_BURN.
    """

    def __init__(self, engine: LedgerEngine, base_asset: BaseAsset, address: str):
        self.engine = engine
        self.base_asset = base_asset
        self.address = address

    def deposit(self, depositor: str, amount: int) -> None:
        """Внести amount базового актива, получить amount стоимости по global_rate.

        Mint выполняется первым в engine.atomic(): если приём базового
        актива не удался, mint откатывается; если mint отклонён, базовый
        актив не списывается.

        Raises:
            Unauthorized: у враппера нет MINT_AND_BURN
            DepositTransferFailed: приём базового актива не удался (mint откатан)
        """
        validate_uint(amount, "amount")

        with self.engine.atomic():
            self.engine.mint(depositor, amount, self.engine.global_rate, caller=self.address)
            if not self.base_asset.transfer(depositor, self.address, amount):
                logger.warning(
                    "deposit transfer failed depositor=%s amount=%d, mint rolled back",
                    depositor, amount,
                )
                raise DepositTransferFailed(depositor, amount)

        logger.debug("deposit depositor=%s amount=%d", depositor, amount)

    def redeem(self, withdrawer: str, amount: int) -> int:
        """Сжечь amount (или весь баланс) и вернуть базовый актив.

        Returns:
            погашенная сумма

        Raises:
            InsufficientBalance: amount > баланса
            RedeemTransferFailed: перевод базового актива не удался (burn откатан)
        """
        validate_uint(amount, "amount")

        with self.engine.atomic():
            burned = self.engine.burn(withdrawer, amount, caller=self.address)
            if not self.base_asset.transfer(self.address, withdrawer, burned):
                logger.warning(
                    "redeem transfer failed withdrawer=%s amount=%d, burn rolled back",
                    withdrawer, burned,
                )
                raise RedeemTransferFailed(withdrawer, burned)

        logger.debug("redeem withdrawer=%s amount=%d", withdrawer, burned)
        return burned
