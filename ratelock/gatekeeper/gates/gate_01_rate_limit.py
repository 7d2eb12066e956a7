"""GATE 1: Rate Limit (token bucket)

Второй gate в цепочке адаптера (после GATE 0). Ограничивает пропускную
способность маршрута независимо для OUTBOUND и INBOUND:

- bucket на (domain_id, direction), стартует полным
- пополнение: tokens = min(capacity, tokens + elapsed * rate)
- запрос > capacity или > tokens → блокировка
- выключенный лимит пропускает всё

evaluate() не меняет состояние; consume() списывает токены и вызывается
адаптером только после успешного burn/mint. Отклонение не мутирует bucket.
"""

from dataclasses import dataclass
from typing import Optional

from ratelock.core.domain.chain_config import (
    ChainConfig,
    RateLimiterConfig,
    TransferDirection,
)
from ratelock.gatekeeper.gates.gate_00_route import Gate00Result


# =============================================================================
# TOKEN BUCKET
# =============================================================================


@dataclass
class TokenBucket:
    """Состояние token bucket одного направления."""

    config: RateLimiterConfig
    tokens: int
    last_refill: int

    def available(self, now: int) -> Optional[int]:
        """Доступные токены на момент now (без мутации); None если лимит выключен."""
        if not self.config.enabled:
            return None
        return self._refilled(now)

    def consume(self, amount: int, now: int) -> None:
        if not self.config.enabled:
            return
        self.tokens = self._refilled(now) - amount
        self.last_refill = now

    def _refilled(self, now: int) -> int:
        elapsed = max(0, now - self.last_refill)
        return min(self.config.capacity, self.tokens + elapsed * self.config.rate)


# =============================================================================
# RESULT
# =============================================================================


@dataclass(frozen=True)
class Gate01Result:
    """Результат GATE 1."""

    allowed: bool
    block_reason: str

    domain_id: int
    direction: TransferDirection
    requested: int
    available: Optional[int]  # None если лимит выключен

    # Детали
    details: str


# =============================================================================
# GATE 1
# =============================================================================


class Gate01RateLimit:
    """GATE 1: token-bucket лимит по маршруту.

    Порядок проверок:
    1. GATE 0 блокировка (должен быть PASS)
    2. Лимит выключен → PASS
    3. requested > capacity → блокировка
    4. requested > available → блокировка
    """

    def __init__(self):
        self._buckets: dict[tuple[int, TransferDirection], TokenBucket] = {}

    def configure(self, config: ChainConfig, now: int) -> None:
        """(Пере)установка bucket'ов домена; bucket'ы стартуют полными."""
        for direction in TransferDirection:
            limiter = config.limiter(direction)
            self._buckets[(config.remote_domain_id, direction)] = TokenBucket(
                config=limiter,
                tokens=limiter.capacity,
                last_refill=now,
            )

    def remove(self, domain_id: int) -> None:
        for direction in TransferDirection:
            self._buckets.pop((domain_id, direction), None)

    def bucket(self, domain_id: int, direction: TransferDirection) -> Optional[TokenBucket]:
        return self._buckets.get((domain_id, direction))

    def evaluate(
        self,
        gate00_result: Gate00Result,
        amount: int,
        now: int,
    ) -> Gate01Result:
        """Оценка GATE 1 (без мутации bucket).

        Args:
            gate00_result: результат GATE 0
            amount: запрошенная сумма
            now: текущий момент

        Returns:
            Gate01Result с решением о допуске
        """
        domain_id = gate00_result.domain_id
        direction = gate00_result.direction

        # 1. Проверка GATE 0
        if not gate00_result.allowed:
            return Gate01Result(
                allowed=False,
                block_reason=f"gate00_blocked: {gate00_result.block_reason}",
                domain_id=domain_id,
                direction=direction,
                requested=amount,
                available=None,
                details=f"GATE 0 blocked: {gate00_result.block_reason}",
            )

        bucket = self._buckets.get((domain_id, direction))
        available = bucket.available(now) if bucket is not None else None

        # 2. Лимит выключен
        if bucket is None or available is None:
            return Gate01Result(
                allowed=True,
                block_reason="",
                domain_id=domain_id,
                direction=direction,
                requested=amount,
                available=None,
                details="PASS: limiter disabled",
            )

        # 3. Больше ёмкости bucket: не пройдёт никогда
        if amount > bucket.config.capacity:
            return Gate01Result(
                allowed=False,
                block_reason="exceeds_capacity",
                domain_id=domain_id,
                direction=direction,
                requested=amount,
                available=available,
                details=f"Requested {amount} > capacity {bucket.config.capacity}",
            )

        # 4. Недостаточно токенов
        if amount > available:
            return Gate01Result(
                allowed=False,
                block_reason="insufficient_tokens",
                domain_id=domain_id,
                direction=direction,
                requested=amount,
                available=available,
                details=f"Requested {amount} > available {available}",
            )

        return Gate01Result(
            allowed=True,
            block_reason="",
            domain_id=domain_id,
            direction=direction,
            requested=amount,
            available=available,
            details=f"PASS: {amount} of {available} tokens",
        )

    def consume(
        self,
        domain_id: int,
        direction: TransferDirection,
        amount: int,
        now: int,
    ) -> None:
        """Списание токенов после успешной операции."""
        bucket = self._buckets.get((domain_id, direction))
        if bucket is not None:
            bucket.consume(amount, now)
