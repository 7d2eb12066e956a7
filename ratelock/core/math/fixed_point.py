"""
Fixed-Point Safeguards — беззнаковая арифметика с фиксированной точкой

Модуль обеспечивает численную корректность всех операций леджера:
- Константы масштаба (PRECISION = 10**18) и верхней границы (MAX_UINT256)
- Проверенное сложение/вычитание/умножение без молчаливого насыщения
- mul_div: умножение до деления, деление с усечением к нулю (floor)
- Валидация беззнаковых целых на входе

КРИТИЧЕСКИЕ ИНВАРИАНТЫ:
1. Все значения — int в диапазоне [0, MAX_UINT256]
2. Переполнение → ArithmeticOverflow (никогда не saturate)
3. Underflow беззнакового вычитания → ArithmeticOverflow
4. Умножение всегда выполняется до деления (минимум потерь округления)
5. float никогда не участвует в вычислениях
"""

from typing import Final

from ratelock.core.errors import ArithmeticOverflow

# =============================================================================
# КОНСТАНТЫ МАСШТАБА
# =============================================================================

# Знаменатель fixed-point для ставок и коэффициентов accrual
PRECISION: Final[int] = 10**18

# Верхняя граница беззнакового 256-битного слова
# Также используется как сентинел "весь баланс" в burn/transfer
MAX_UINT256: Final[int] = 2**256 - 1


# =============================================================================
# ВАЛИДАЦИЯ
# =============================================================================


def validate_uint(value: int, name: str) -> int:
    """
    Валидация беззнакового целого в диапазоне [0, MAX_UINT256].

    bool отвергается явно: True/False не являются суммами.

    Args:
        value: Проверяемое значение
        name: Имя параметра (для сообщения об ошибке)

    Returns:
        value без изменений

    Raises:
        ValueError: Если value не int, отрицательное или больше MAX_UINT256

    Examples:
        >>> validate_uint(10, "amount")
        10
        >>> validate_uint(-1, "amount")  # doctest: +SKIP
        Traceback (most recent call last):
            ...
        ValueError: amount must be non-negative, got -1
    """
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError(f"{name} must be an int, got {type(value).__name__}")

    if value < 0:
        raise ValueError(f"{name} must be non-negative, got {value}")

    if value > MAX_UINT256:
        raise ValueError(f"{name} exceeds MAX_UINT256, got {value}")

    return value


def is_max_sentinel(amount: int) -> bool:
    """True если amount равен сентинелу "весь баланс"."""
    return amount == MAX_UINT256


# =============================================================================
# ПРОВЕРЕННАЯ АРИФМЕТИКА
# =============================================================================


def checked_add(a: int, b: int) -> int:
    """
    Сложение с проверкой переполнения.

    Raises:
        ArithmeticOverflow: Если a + b > MAX_UINT256
    """
    result = a + b
    if result > MAX_UINT256:
        raise ArithmeticOverflow("add", (a, b))
    return result


def checked_sub(a: int, b: int) -> int:
    """
    Беззнаковое вычитание с проверкой underflow.

    Raises:
        ArithmeticOverflow: Если b > a
    """
    if b > a:
        raise ArithmeticOverflow("sub", (a, b))
    return a - b


def checked_mul(a: int, b: int) -> int:
    """
    Умножение с проверкой переполнения.

    Raises:
        ArithmeticOverflow: Если a * b > MAX_UINT256
    """
    result = a * b
    if result > MAX_UINT256:
        raise ArithmeticOverflow("mul", (a, b))
    return result


def mul_div(a: int, b: int, denominator: int) -> int:
    """
    Вычисление floor(a * b / denominator) с умножением до деления.

    Промежуточное произведение проверяется на переполнение так же,
    как при 256-битной арифметике: широкий промежуточный тип не используется.

    Args:
        a: Первый множитель
        b: Второй множитель
        denominator: Делитель (> 0)

    Returns:
        (a * b) // denominator

    Raises:
        ValueError: Если denominator == 0
        ArithmeticOverflow: Если a * b > MAX_UINT256

    Examples:
        >>> mul_div(10**18, 3 * 10**18, 10**18)
        3000000000000000000
        >>> mul_div(7, 3, 2)
        10
    """
    if denominator <= 0:
        raise ValueError(f"denominator must be positive, got {denominator}")

    return checked_mul(a, b) // denominator
