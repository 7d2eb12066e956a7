"""
ChainConfig — Модель конфигурации удалённого домена

Одна запись на каждый удалённый домен, с которым адаптер готов общаться:
- remote_domain_id: идентификатор удалённого домена
- remote_adapter_address: адрес адаптера на удалённом домене
- remote_token_address: адрес леджера (токена) на удалённом домене
- outbound_limiter / inbound_limiter: параметры token bucket

Immutable Pydantic модели. Соответствуют схеме contracts/schema/chain_config.json.
"""

from enum import Enum

from pydantic import BaseModel, Field, model_validator


class TransferDirection(str, Enum):
    """Направление cross-domain перевода относительно локального домена."""

    OUTBOUND = "outbound"
    INBOUND = "inbound"


class RateLimiterConfig(BaseModel):
    """
    Параметры token bucket для одного направления.

    - enabled: False → лимит не применяется
    - capacity: максимальный объём bucket
    - rate: пополнение (токенов в секунду)
    """

    enabled: bool = Field(default=False, description="Включён ли лимит")
    capacity: int = Field(default=0, ge=0, description="Ёмкость bucket")
    rate: int = Field(default=0, ge=0, description="Пополнение, токенов в секунду")

    model_config = {"frozen": True}

    @model_validator(mode="after")
    def validate_enabled_limits(self) -> "RateLimiterConfig":
        """
        Включённый лимит требует capacity > 0 и rate <= capacity.

        Выключенный лимит должен иметь нулевые параметры.
        """
        if self.enabled:
            if self.capacity == 0:
                raise ValueError("enabled limiter requires capacity > 0")
            if self.rate > self.capacity:
                raise ValueError(
                    f"limiter rate {self.rate} exceeds capacity {self.capacity}"
                )
        elif self.capacity != 0 or self.rate != 0:
            raise ValueError("disabled limiter must have capacity=0 and rate=0")
        return self


class ChainConfig(BaseModel):
    """
    Конфигурация маршрута к удалённому домену.

    Регистрация идемпотентна по remote_domain_id (повтор перезаписывает).
    """

    remote_domain_id: int = Field(..., ge=0, description="Идентификатор удалённого домена")
    remote_adapter_address: str = Field(
        ..., min_length=1, description="Адрес адаптера на удалённом домене"
    )
    remote_token_address: str = Field(
        ..., min_length=1, description="Адрес леджера на удалённом домене"
    )
    outbound_limiter: RateLimiterConfig = Field(
        default_factory=RateLimiterConfig, description="Лимит исходящих переводов"
    )
    inbound_limiter: RateLimiterConfig = Field(
        default_factory=RateLimiterConfig, description="Лимит входящих переводов"
    )

    model_config = {"frozen": True}

    def limiter(self, direction: TransferDirection) -> RateLimiterConfig:
        """Параметры лимита для направления."""
        if direction == TransferDirection.OUTBOUND:
            return self.outbound_limiter
        return self.inbound_limiter
