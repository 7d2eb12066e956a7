"""Ledger Accounting Engine — леджер с per-account locked rate.

Состояние инстанса:
- accounts: account_id → AccountRecord(principal, locked_rate, last_update)
- global_rate: ставка для нового фондирования, монотонно не возрастает
- allowances: (owner, spender) → amount

Каждая мутирующая операция сначала кристаллизует затронутые аккаунты,
затем применяет изменения. Новые записи вычисляются целиком до коммита:
при любой ошибке состояние (включая кристаллизацию) не меняется.
"""

import logging
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Iterator, Optional

from ratelock.core.access import AccessControl, Capability
from ratelock.core.clock import Clock, system_clock
from ratelock.core.domain.account import EMPTY_ACCOUNT, AccountRecord
from ratelock.core.domain.snapshot import LedgerSnapshot
from ratelock.core.errors import (
    InsufficientAllowance,
    InsufficientBalance,
    RateMustDecrease,
)
from ratelock.core.math.accrual import DEFAULT_GLOBAL_RATE, crystallize
from ratelock.core.math.fixed_point import (
    MAX_UINT256,
    PRECISION,
    checked_add,
    is_max_sentinel,
    validate_uint,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LedgerConfig:
    """Конфигурация инстанса леджера.

    - initial_global_rate: стартовая global rate (> 0)
    - precision: знаменатель fixed-point
    """
    initial_global_rate: int = DEFAULT_GLOBAL_RATE
    precision: int = PRECISION


class LedgerEngine:
    """Interest-bearing леджер с locked rate на аккаунт.

    Правила:
    - mint: кристаллизация → locked_rate = rate (всегда) → principal += amount
    - burn: кристаллизация → MAX_UINT256 = весь баланс → principal -= amount
    - transfer: кристаллизация обоих → получатель с нулевым principal
      наследует ставку отправителя → перемещение amount
    - set_global_rate: только строго убывающее обновление

    Привилегированные операции требуют capability (caller=...):
    - mint/burn: MINT_AND_BURN
    - set_global_rate, grant, revoke: ADMIN
    """

    def __init__(
        self,
        owner: str,
        config: Optional[LedgerConfig] = None,
        clock: Optional[Clock] = None,
    ):
        """
        Args:
            owner: идентичность, получающая ADMIN
            config: конфигурация леджера
            clock: источник времени (default: system_clock)
        """
        self.config = config or LedgerConfig()
        if self.config.initial_global_rate <= 0:
            raise ValueError(
                f"initial_global_rate must be positive, got {self.config.initial_global_rate}"
            )
        validate_uint(self.config.initial_global_rate, "initial_global_rate")
        if self.config.precision <= 0:
            raise ValueError(f"precision must be positive, got {self.config.precision}")

        self._clock: Clock = clock or system_clock
        self._access = AccessControl(owner)
        self._global_rate = self.config.initial_global_rate
        self._accounts: dict[str, AccountRecord] = {}
        self._allowances: dict[tuple[str, str], int] = {}
        self._total_principal = 0

    # =========================================================================
    # QUERIES
    # =========================================================================

    @property
    def precision(self) -> int:
        return self.config.precision

    @property
    def global_rate(self) -> int:
        return self._global_rate

    @property
    def total_principal(self) -> int:
        """Сумма principal всех аккаунтов (без некристаллизованного процента)."""
        return self._total_principal

    def account(self, account: str) -> AccountRecord:
        """Запись аккаунта (нулевая запись, если аккаунт ещё не создан)."""
        return self._accounts.get(account, EMPTY_ACCOUNT)

    def accounts(self) -> list[str]:
        return list(self._accounts)

    def balance_of(self, account: str) -> int:
        """Эффективный баланс на текущий момент.

        Чистый запрос: last_update не меняется, повторные вызовы в один
        момент идемпотентны.
        """
        return self.account(account).balance_at(self.now(), self.precision)

    def principal_of(self, account: str) -> int:
        return self.account(account).principal

    def locked_rate_of(self, account: str) -> int:
        return self.account(account).locked_rate

    def last_update_of(self, account: str) -> int:
        return self.account(account).last_update

    def allowance(self, owner: str, spender: str) -> int:
        return self._allowances.get((owner, spender), 0)

    def has_capability(self, identity: str, capability: Capability) -> bool:
        return self._access.has(identity, capability)

    # =========================================================================
    # PRIVILEGED: MINT / BURN
    # =========================================================================

    def mint(self, account: str, amount: int, rate: int, *, caller: str) -> None:
        """Выпуск amount на account с ставкой rate.

        locked_rate перезаписывается безусловно: вызывающий (враппер,
        адаптер) отвечает за корректную ставку: global_rate для нового
        выпуска или сохранённую ставку для cross-domain mint.

        Args:
            account: получатель
            amount: сумма (0 допустим)
            rate: ставка для аккаунта
            caller: вызывающий с MINT_AND_BURN

        Raises:
            Unauthorized: нет MINT_AND_BURN
            ArithmeticOverflow: переполнение principal
        """
        self._access.require(caller, Capability.MINT_AND_BURN)
        validate_uint(amount, "amount")
        validate_uint(rate, "rate")

        now = self.now()
        record = self._crystallized(account, now)
        updated = record.model_copy(
            update={
                "principal": checked_add(record.principal, amount),
                "locked_rate": rate,
            }
        )
        self._commit({account: updated})

        logger.debug(
            "mint account=%s amount=%d rate=%d principal=%d",
            account, amount, rate, updated.principal,
        )

    def burn(self, account: str, amount: int, *, caller: str) -> int:
        """Сжигание amount с account.

        amount == MAX_UINT256: сжечь весь кристаллизованный баланс.

        Returns:
            фактически сожжённая сумма

        Raises:
            Unauthorized: нет MINT_AND_BURN
            InsufficientBalance: amount > principal после кристаллизации
        """
        self._access.require(caller, Capability.MINT_AND_BURN)
        validate_uint(amount, "amount")

        now = self.now()
        record = self._crystallized(account, now)
        resolved = record.principal if is_max_sentinel(amount) else amount

        if resolved > record.principal:
            logger.info(
                "burn rejected account=%s requested=%d available=%d",
                account, resolved, record.principal,
            )
            raise InsufficientBalance(account, resolved, record.principal)

        updated = record.model_copy(update={"principal": record.principal - resolved})
        self._commit({account: updated})

        logger.debug(
            "burn account=%s amount=%d principal=%d", account, resolved, updated.principal
        )
        return resolved

    # =========================================================================
    # TRANSFERS
    # =========================================================================

    def transfer(self, sender: str, to: str, amount: int) -> int:
        """Перевод amount от sender к to.

        Returns:
            фактически переведённая сумма (MAX_UINT256 → весь баланс)

        Raises:
            InsufficientBalance: amount > principal отправителя
        """
        validate_uint(amount, "amount")

        updates, resolved = self._plan_transfer(sender, to, amount, self.now())
        self._commit(updates)

        logger.debug("transfer %s -> %s amount=%d", sender, to, resolved)
        return resolved

    def transfer_from(self, spender: str, owner: str, to: str, amount: int) -> int:
        """Перевод от имени owner в пределах allowance spender'а.

        Allowance проверяется против разрешённой суммы (после подстановки
        MAX_UINT256). Allowance == MAX_UINT256 бесконечен и не уменьшается.

        Raises:
            InsufficientBalance: amount > principal владельца
            InsufficientAllowance: allowance < amount
        """
        validate_uint(amount, "amount")

        updates, resolved = self._plan_transfer(owner, to, amount, self.now())

        current = self.allowance(owner, spender)
        if resolved > current:
            logger.info(
                "transfer_from rejected owner=%s spender=%s requested=%d allowance=%d",
                owner, spender, resolved, current,
            )
            raise InsufficientAllowance(owner, spender, resolved, current)

        self._commit(updates)
        if current != MAX_UINT256:
            self._allowances[(owner, spender)] = current - resolved

        logger.debug(
            "transfer_from spender=%s %s -> %s amount=%d", spender, owner, to, resolved
        )
        return resolved

    def approve(self, owner: str, spender: str, amount: int) -> None:
        validate_uint(amount, "amount")
        self._allowances[(owner, spender)] = amount
        logger.debug("approve owner=%s spender=%s amount=%d", owner, spender, amount)

    # =========================================================================
    # ADMIN
    # =========================================================================

    def set_global_rate(self, new_rate: int, *, caller: str) -> None:
        """Понижение global rate.

        Аккаунты не затрагиваются: действующие locked rate сохраняются.

        Raises:
            Unauthorized: нет ADMIN
            RateMustDecrease: new_rate >= global_rate
        """
        self._access.require(caller, Capability.ADMIN)
        validate_uint(new_rate, "new_rate")

        if new_rate >= self._global_rate:
            logger.info(
                "set_global_rate rejected current=%d attempted=%d",
                self._global_rate, new_rate,
            )
            raise RateMustDecrease(self._global_rate, new_rate)

        previous = self._global_rate
        self._global_rate = new_rate
        logger.info("global rate lowered %d -> %d", previous, new_rate)

    def grant(self, grantee: str, capability: Capability, *, caller: str) -> None:
        self._access.grant(caller, grantee, capability)

    def revoke(self, grantee: str, capability: Capability, *, caller: str) -> None:
        self._access.revoke(caller, grantee, capability)

    # =========================================================================
    # ATOMICITY / PERSISTENCE
    # =========================================================================

    @contextmanager
    def atomic(self) -> Iterator["LedgerEngine"]:
        """Несколько вызовов как один all-or-nothing шаг.

        При исключении внутри блока состояние аккаунтов, allowances и
        global_rate восстанавливается, исключение пробрасывается дальше.
        """
        saved_accounts = dict(self._accounts)
        saved_allowances = dict(self._allowances)
        saved_rate = self._global_rate
        saved_total = self._total_principal
        try:
            yield self
        except Exception:
            self._accounts = saved_accounts
            self._allowances = saved_allowances
            self._global_rate = saved_rate
            self._total_principal = saved_total
            logger.debug("atomic block rolled back")
            raise

    def snapshot(self) -> LedgerSnapshot:
        """Снапшот persisted layout инстанса."""
        allowances: dict[str, dict[str, int]] = {}
        for (owner, spender), amount in self._allowances.items():
            allowances.setdefault(owner, {})[spender] = amount

        return LedgerSnapshot(
            global_rate=self._global_rate,
            precision=self.precision,
            accounts=dict(self._accounts),
            allowances=allowances,
            capabilities=self._access.export(),
        )

    @classmethod
    def from_snapshot(
        cls,
        snapshot: LedgerSnapshot,
        clock: Optional[Clock] = None,
    ) -> "LedgerEngine":
        """Восстановление инстанса из снапшота.

        initial_global_rate нового инстанса равна сохранённой global_rate,
        так что монотонность продолжается от сохранённого значения.
        """
        config = LedgerConfig(
            initial_global_rate=snapshot.global_rate,
            precision=snapshot.precision,
        )
        engine = cls(owner="", config=config, clock=clock)
        engine._access = AccessControl.from_export(snapshot.capabilities)
        engine._accounts = dict(snapshot.accounts)
        engine._allowances = {
            (owner, spender): amount
            for owner, spenders in snapshot.allowances.items()
            for spender, amount in spenders.items()
        }
        engine._total_principal = sum(r.principal for r in engine._accounts.values())
        return engine

    # =========================================================================
    # INTERNALS
    # =========================================================================

    def now(self) -> int:
        """Текущий момент по часам инстанса."""
        return validate_uint(self._clock(), "timestamp")

    def _crystallized(self, account: str, now: int) -> AccountRecord:
        """Новая запись после кристаллизации (без коммита)."""
        record = self.account(account)
        result = crystallize(
            record.principal, record.locked_rate, record.last_update, now, self.precision
        )
        return record.model_copy(
            update={"principal": result.principal, "last_update": result.last_update}
        )

    def _plan_transfer(
        self, sender: str, to: str, amount: int, now: int
    ) -> tuple[dict[str, AccountRecord], int]:
        """Вычисление новых записей для перевода (без коммита).

        Порядок существенен: кристаллизация выполняется до проверки нулевого
        principal получателя.
        """
        source = self._crystallized(sender, now)
        resolved = source.principal if is_max_sentinel(amount) else amount

        if sender == to:
            # Одна кристаллизация, баланс не меняется, last_update обновляется
            if resolved > source.principal:
                raise InsufficientBalance(sender, resolved, source.principal)
            return {sender: source}, resolved

        target = self._crystallized(to, now)
        if target.principal == 0:
            target = target.model_copy(update={"locked_rate": source.locked_rate})

        if resolved > source.principal:
            logger.info(
                "transfer rejected %s -> %s requested=%d available=%d",
                sender, to, resolved, source.principal,
            )
            raise InsufficientBalance(sender, resolved, source.principal)

        source = source.model_copy(update={"principal": source.principal - resolved})
        target = target.model_copy(
            update={"principal": checked_add(target.principal, resolved)}
        )
        return {sender: source, to: target}, resolved

    def _commit(self, updates: dict[str, AccountRecord]) -> None:
        for account, record in updates.items():
            previous = self.account(account)
            self._total_principal += record.principal - previous.principal
            self._accounts[account] = record
