"""
AccountRecord — Модель записи аккаунта леджера

Immutable Pydantic модель, представляющая состояние одного аккаунта:
- principal: кристаллизованный баланс без начисленного с last_update
- locked_rate: ставка, зафиксированная при фондировании
- last_update: момент последней кристаллизации

Записи создаются лениво (нулевое значение по умолчанию) и никогда не удаляются.
Все изменения создают новый экземпляр через model_copy(update=...).
"""

from pydantic import BaseModel, Field, field_validator

from ratelock.core.math.fixed_point import MAX_UINT256, PRECISION
from ratelock.core.math.accrual import effective_balance


class AccountRecord(BaseModel):
    """
    Запись аккаунта (principal, locked_rate, last_update).

    Immutable модель (frozen=True) для предотвращения случайных изменений.
    """

    principal: int = Field(default=0, ge=0, description="Кристаллизованный principal")
    locked_rate: int = Field(
        default=0, ge=0, description="Locked rate (fixed-point, знаменатель PRECISION)"
    )
    last_update: int = Field(default=0, ge=0, description="Момент последней кристаллизации")

    model_config = {"frozen": True}

    @field_validator("principal", "locked_rate", "last_update")
    @classmethod
    def validate_uint256(cls, v: int) -> int:
        """Значения ограничены беззнаковым 256-битным словом."""
        if v > MAX_UINT256:
            raise ValueError(f"value {v} exceeds MAX_UINT256")
        return v

    def balance_at(self, now: int, precision: int = PRECISION) -> int:
        """
        Эффективный баланс на момент now (без мутации).

        Args:
            now: текущий момент
            precision: знаменатель fixed-point

        Returns:
            principal с учётом начисленного процента
        """
        return effective_balance(
            self.principal, self.locked_rate, self.last_update, now, precision
        )

    def is_empty(self) -> bool:
        """True если principal == 0."""
        return self.principal == 0


# Нулевое значение для ещё не созданных аккаунтов
EMPTY_ACCOUNT = AccountRecord()
