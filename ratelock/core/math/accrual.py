"""
Accrual — линейное начисление внутри окна и кристаллизация

Модуль вычисляет эффективный баланс аккаунта с locked rate:
- Внутри окна без мутаций рост линейный по времени
- Кристаллизация сворачивает начисленное в principal и сбрасывает окно
- Последовательные кристаллизации дают сложный процент на границах окон

КРИТИЧЕСКИЕ ИНВАРИАНТЫ:
1. effective = principal * (PRECISION + rate * elapsed) // PRECISION
2. elapsed = now - last_update; now < last_update → ArithmeticOverflow
3. После кристаллизации effective(now) == principal
4. Все операции детерминированы (только int, floor division)

ФОРМУЛЫ:
    factor(t) = PRECISION + locked_rate * (t - last_update)
    effective(t) = principal * factor(t) // PRECISION
    accrued(t) = effective(t) - principal
"""

from typing import Final, NamedTuple

from ratelock.core.math.fixed_point import (
    PRECISION,
    checked_add,
    checked_mul,
    checked_sub,
    mul_div,
)

# =============================================================================
# RATE-ПАРАМЕТРЫ
# =============================================================================

# Ставка по умолчанию: ~10% годовых в секунду, 0.10 / 31_536_000 * 1e18
DEFAULT_GLOBAL_RATE: Final[int] = 3_170_979_198

# Секунд в году (365 дней) для конверсии APR ↔ per-second rate
SECONDS_PER_YEAR: Final[int] = 31_536_000


# =============================================================================
# ACCRUAL FACTOR
# =============================================================================


def elapsed_since(last_update: int, now: int) -> int:
    """
    Длительность окна начисления.

    Raises:
        ArithmeticOverflow: если now < last_update (часы хоста пошли назад)
    """
    return checked_sub(now, last_update)


def accrual_factor(locked_rate: int, elapsed: int, precision: int = PRECISION) -> int:
    """
    Коэффициент роста за окно: PRECISION + rate * elapsed.

    Args:
        locked_rate: ставка аккаунта (fixed-point, знаменатель precision)
        elapsed: длительность окна
        precision: знаменатель fixed-point

    Returns:
        factor в единицах precision (factor == precision при elapsed == 0)

    Examples:
        >>> accrual_factor(10**18, 3600)
        3601000000000000000000
        >>> accrual_factor(5, 0)
        1000000000000000000
    """
    return checked_add(precision, checked_mul(locked_rate, elapsed))


def effective_balance(
    principal: int,
    locked_rate: int,
    last_update: int,
    now: int,
    precision: int = PRECISION,
) -> int:
    """
    Эффективный баланс на момент now.

    Умножение выполняется до деления, деление с усечением (floor).

    Args:
        principal: кристаллизованный principal
        locked_rate: ставка аккаунта
        last_update: момент последней кристаллизации
        now: текущий момент
        precision: знаменатель fixed-point

    Returns:
        principal * (precision + locked_rate * (now - last_update)) // precision

    Raises:
        ArithmeticOverflow: при переполнении произведения или now < last_update

    Examples:
        >>> effective_balance(10**18, 10**18, 0, 3600)
        3601000000000000000000
        >>> effective_balance(0, 10**18, 0, 3600)
        0
    """
    if principal == 0:
        # Пустой аккаунт: проверяем только монотонность времени
        elapsed_since(last_update, now)
        return 0

    factor = accrual_factor(locked_rate, elapsed_since(last_update, now), precision)
    return mul_div(principal, factor, precision)


def accrued_interest(
    principal: int,
    locked_rate: int,
    last_update: int,
    now: int,
    precision: int = PRECISION,
) -> int:
    """Начисленный, но не кристаллизованный процент (effective - principal)."""
    return effective_balance(principal, locked_rate, last_update, now, precision) - principal


# =============================================================================
# CRYSTALLIZATION
# =============================================================================


class Crystallization(NamedTuple):
    """
    Результат кристаллизации аккаунта.

    principal уже включает accrued, last_update == now.
    """
    principal: int  # новый principal (включая accrued)
    accrued: int  # добавленный процент
    last_update: int  # момент кристаллизации


def crystallize(
    principal: int,
    locked_rate: int,
    last_update: int,
    now: int,
    precision: int = PRECISION,
) -> Crystallization:
    """
    Свёртка начисленного процента в principal.

    Args:
        principal: principal до кристаллизации
        locked_rate: ставка аккаунта
        last_update: момент предыдущей кристаллизации
        now: текущий момент

    Returns:
        Crystallization(principal=effective(now), accrued, last_update=now)

    Examples:
        >>> crystallize(10**18, 10**18, 0, 1)
        Crystallization(principal=2000000000000000000, accrued=1000000000000000000, last_update=1)
    """
    new_principal = effective_balance(principal, locked_rate, last_update, now, precision)
    return Crystallization(
        principal=new_principal,
        accrued=new_principal - principal,
        last_update=now,
    )


# =============================================================================
# UTILITIES
# =============================================================================


def apr_bps_to_rate(apr_bps: int, precision: int = PRECISION) -> int:
    """
    Конверсия годовой ставки (bps) в per-second rate.

    Examples:
        >>> apr_bps_to_rate(1000)
        3170979198
    """
    if apr_bps < 0:
        raise ValueError(f"apr_bps must be non-negative, got {apr_bps}")

    return apr_bps * precision // (10_000 * SECONDS_PER_YEAR)
