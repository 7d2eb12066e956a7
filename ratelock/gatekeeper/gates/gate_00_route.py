"""GATE 0: Маршрут / Allow-list

Первый gate в цепочке адаптера. Проверяет маршрут cross-domain перевода:

OUTBOUND:
- remote_domain_id зарегистрирован в chain configs
- original_sender в allow-list (если allow-list включён)

INBOUND:
- source_domain_id зарегистрирован в chain configs
- заявленный адрес адаптера-источника совпадает с remote_adapter_address

Gate stateless: решение зависит только от переданной конфигурации.
Адаптер конвертирует блокировку OUTBOUND в RouteNotAllowed, INBOUND в UnknownRoute.
"""

from dataclasses import dataclass
from typing import AbstractSet, Mapping, Optional

from ratelock.core.domain.chain_config import ChainConfig, TransferDirection


@dataclass(frozen=True)
class Gate00Result:
    """Результат GATE 0."""

    allowed: bool
    block_reason: str

    # Входные параметры для диагностики
    direction: TransferDirection
    domain_id: int
    chain_config: Optional[ChainConfig]

    # Детали
    details: str


class Gate00Route:
    """GATE 0: проверка маршрута и allow-list.

    Порядок проверок:
    1. Домен зарегистрирован → иначе блокировка
    2. OUTBOUND: отправитель в allow-list (если включён)
    3. INBOUND: адрес адаптера-источника совпадает с конфигурацией
    """

    def __init__(
        self,
        allowlist_enabled: bool = False,
        allowlist: AbstractSet[str] = frozenset(),
    ):
        """
        Args:
            allowlist_enabled: включить проверку отправителя
            allowlist: разрешённые original_sender
        """
        self.allowlist_enabled = allowlist_enabled
        self.allowlist = frozenset(allowlist)

    def evaluate(
        self,
        direction: TransferDirection,
        domain_id: int,
        chain_configs: Mapping[int, ChainConfig],
        original_sender: Optional[str] = None,
        source_adapter_address: Optional[str] = None,
    ) -> Gate00Result:
        """Оценка GATE 0.

        Args:
            direction: направление перевода
            domain_id: удалённый домен (назначение или источник)
            chain_configs: зарегистрированные маршруты
            original_sender: отправитель (OUTBOUND)
            source_adapter_address: заявленный адаптер-источник (INBOUND)

        Returns:
            Gate00Result с решением о допуске
        """
        config = chain_configs.get(domain_id)

        # 1. Домен зарегистрирован
        if config is None:
            return Gate00Result(
                allowed=False,
                block_reason="domain_not_registered",
                direction=direction,
                domain_id=domain_id,
                chain_config=None,
                details=f"No chain config for domain {domain_id}",
            )

        # 2. OUTBOUND: allow-list
        if direction == TransferDirection.OUTBOUND:
            if self.allowlist_enabled and original_sender not in self.allowlist:
                return Gate00Result(
                    allowed=False,
                    block_reason="sender_not_allowlisted",
                    direction=direction,
                    domain_id=domain_id,
                    chain_config=config,
                    details=f"Sender {original_sender!r} not in allow-list",
                )

        # 3. INBOUND: адрес адаптера-источника
        else:
            if source_adapter_address != config.remote_adapter_address:
                return Gate00Result(
                    allowed=False,
                    block_reason="source_adapter_mismatch",
                    direction=direction,
                    domain_id=domain_id,
                    chain_config=config,
                    details=(
                        f"Claimed adapter {source_adapter_address!r} != "
                        f"registered {config.remote_adapter_address!r}"
                    ),
                )

        # PASS
        return Gate00Result(
            allowed=True,
            block_reason="",
            direction=direction,
            domain_id=domain_id,
            chain_config=config,
            details=f"PASS: {direction.value} route for domain {domain_id}",
        )
