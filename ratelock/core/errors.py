"""
Error taxonomy — типизированные ошибки леджера, адаптера и враппера.

Все ошибки recoverable на уровне вызова: операция, поднявшая ошибку,
не оставляет частичных изменений состояния. Каждая ошибка несёт контекст
(суммы, ставки, идентификаторы) для точных проверок в тестах.
"""

from typing import Any


class RatelockError(Exception):
    """Базовый класс для всех ошибок пакета."""
    pass


# =============================================================================
# LEDGER
# =============================================================================


class InsufficientBalance(RatelockError):
    """
    Сумма burn/transfer превышает кристаллизованный principal.

    Ошибка вызывающего, состояние не меняется.
    """

    def __init__(self, account: str, requested: int, available: int):
        self.account = account
        self.requested = requested
        self.available = available
        super().__init__(
            f"Insufficient balance for {account!r}: "
            f"requested={requested}, available={available}"
        )


class InsufficientAllowance(RatelockError):
    """transfer_from превышает разрешение spender'а."""

    def __init__(self, owner: str, spender: str, requested: int, allowance: int):
        self.owner = owner
        self.spender = spender
        self.requested = requested
        self.allowance = allowance
        super().__init__(
            f"Insufficient allowance {owner!r} -> {spender!r}: "
            f"requested={requested}, allowance={allowance}"
        )


class RateMustDecrease(RatelockError):
    """
    Попытка не-убывающего обновления global rate.

    global_rate монотонно не возрастает на протяжении жизни инстанса.
    """

    def __init__(self, current_rate: int, attempted_rate: int):
        self.current_rate = current_rate
        self.attempted_rate = attempted_rate
        super().__init__(
            f"Global rate must decrease: current={current_rate}, "
            f"attempted={attempted_rate}"
        )


class Unauthorized(RatelockError):
    """Вызывающий не обладает требуемой capability."""

    def __init__(self, caller: str, capability: Any):
        self.caller = caller
        self.capability = capability
        super().__init__(f"Caller {caller!r} lacks capability {capability}")


class ArithmeticOverflow(RatelockError):
    """
    Переполнение или underflow беззнаковой fixed-point арифметики.

    Фатально для одного вызова, никогда не насыщается молча.
    """

    def __init__(self, operation: str, operands: tuple[int, ...]):
        self.operation = operation
        self.operands = operands
        super().__init__(f"Arithmetic overflow in {operation}: operands={operands}")


# =============================================================================
# BRIDGE
# =============================================================================


class RouteNotAllowed(RatelockError):
    """Исходящий маршрут отклонён политикой (домен или отправитель)."""

    def __init__(self, remote_domain_id: int, reason: str):
        self.remote_domain_id = remote_domain_id
        self.reason = reason
        super().__init__(f"Route to domain {remote_domain_id} not allowed: {reason}")


class UnknownRoute(RatelockError):
    """Входящее сообщение от незарегистрированного домена или адаптера."""

    def __init__(self, source_domain_id: int, source_adapter_address: str):
        self.source_domain_id = source_domain_id
        self.source_adapter_address = source_adapter_address
        super().__init__(
            f"Unknown route: domain={source_domain_id}, "
            f"adapter={source_adapter_address!r}"
        )


class RateLimited(RatelockError):
    """Token bucket для маршрута не покрывает запрошенную сумму."""

    def __init__(self, domain_id: int, direction: str, requested: int, available: int):
        self.domain_id = domain_id
        self.direction = direction
        self.requested = requested
        self.available = available
        super().__init__(
            f"Rate limited ({direction}) for domain {domain_id}: "
            f"requested={requested}, available={available}"
        )


class InvalidPayload(RatelockError):
    """Payload не является 32-байтовым кодированием ставки."""

    def __init__(self, payload_length: int, reason: str = "unexpected length"):
        self.payload_length = payload_length
        self.reason = reason
        super().__init__(f"Invalid payload ({payload_length} bytes): {reason}")


# =============================================================================
# WRAPPER
# =============================================================================


class RedeemTransferFailed(RatelockError):
    """
    Перевод базового актива при redeem не удался.

    Burn откатывается атомарно, стоимость не теряется.
    """

    def __init__(self, withdrawer: str, amount: int):
        self.withdrawer = withdrawer
        self.amount = amount
        super().__init__(f"Redeem transfer of {amount} to {withdrawer!r} failed")


class DepositTransferFailed(RatelockError):
    """Приём базового актива при deposit не удался, mint не выполнен."""

    def __init__(self, depositor: str, amount: int):
        self.depositor = depositor
        self.amount = amount
        super().__init__(f"Deposit transfer of {amount} from {depositor!r} failed")
