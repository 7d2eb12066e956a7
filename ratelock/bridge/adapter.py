"""Cross-Domain Transfer Adapter — перенос стоимости между доменами с сохранением ставки.

Адаптер оборачивает один LedgerEngine и выполняет одну из двух половин перевода:

ИСТОЧНИК (lock_or_burn):
1. REQUESTED: remote_domain_id, receiver, amount, original_sender
2. VALIDATED: GATE 0 (маршрут/allow-list) → RouteNotAllowed, GATE 1 → RateLimited
3. BURNED: locked_rate отправителя читается ДО burn custody-аккаунта
4. PAYLOAD_EMITTED: ставка кодируется в payload, возвращается адрес токена назначения

НАЗНАЧЕНИЕ (release_or_mint):
1. RECEIVED: payload от транспорта, в произвольный более поздний момент
2. VALIDATED: GATE 0 (домен + адрес адаптера-источника) → UnknownRoute, GATE 1 → RateLimited
3. MINTED: mint с СОХРАНЁННОЙ ставкой, а не с global_rate назначения

Кросс-доменной атомарности нет: burn без последующего mint (сообщение
потеряно или отклонено) оставляет стоимость сожжённой на источнике.
Восстановление является ответственностью транспорта.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Mapping, Optional

from ratelock.bridge.codec import decode_rate, encode_rate
from ratelock.bridge.states import (
    DESTINATION_TRANSITIONS,
    SOURCE_TRANSITIONS,
    InboundResult,
    OutboundResult,
    TransferState,
    TransferTrace,
)
from ratelock.core.access import AccessControl, Capability
from ratelock.core.contracts import validate_chain_config
from ratelock.core.domain.chain_config import ChainConfig, TransferDirection
from ratelock.core.errors import RateLimited, RouteNotAllowed, UnknownRoute
from ratelock.core.math.fixed_point import is_max_sentinel, validate_uint
from ratelock.gatekeeper.gates import Gate00Route, Gate01RateLimit, Gate01Result
from ratelock.ledger.engine import LedgerEngine

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AdapterConfig:
    """Конфигурация адаптера.

    - domain_id: идентификатор локального домена
    - adapter_address: идентичность адаптера (caller для mint/burn)
    - custody_account: аккаунт, где транспорт держит стоимость перед burn
      (default: adapter_address)
    - allowlist_enabled / allowlist: ограничение original_sender
    """
    domain_id: int
    adapter_address: str
    custody_account: Optional[str] = None
    allowlist_enabled: bool = False
    allowlist: frozenset[str] = field(default_factory=frozenset)


class TransferAdapter:
    """Адаптер одного домена.

    Связь между доменами идёт только через chain configs и payload; два леджера
    никогда не разделяют состояние.
    """

    def __init__(self, engine: LedgerEngine, config: AdapterConfig, owner: str):
        """
        Args:
            engine: локальный леджер (адаптеру нужна MINT_AND_BURN)
            config: конфигурация адаптера
            owner: идентичность, получающая ADMIN над chain configs
        """
        self.engine = engine
        self.config = config
        self._access = AccessControl(owner)
        self._chain_configs: dict[int, ChainConfig] = {}
        self._route_gate = Gate00Route(config.allowlist_enabled, config.allowlist)
        self._rate_limit_gate = Gate01RateLimit()

    @property
    def domain_id(self) -> int:
        return self.config.domain_id

    @property
    def address(self) -> str:
        return self.config.adapter_address

    @property
    def custody_account(self) -> str:
        return self.config.custody_account or self.config.adapter_address

    # =========================================================================
    # ADMIN: CHAIN CONFIGS
    # =========================================================================

    def apply_chain_config(
        self,
        config: ChainConfig | Mapping[str, Any],
        *,
        caller: str,
    ) -> ChainConfig:
        """Регистрация/обновление маршрута (идемпотентно по remote_domain_id).

        Повторная регистрация перезаписывает запись и сбрасывает bucket'ы.
        Mapping валидируется по схеме chain_config.json.

        Raises:
            Unauthorized: нет ADMIN
            jsonschema.ValidationError: mapping не соответствует схеме
        """
        self._access.require(caller, Capability.ADMIN)

        if not isinstance(config, ChainConfig):
            data = dict(config)
            validate_chain_config(data)
            config = ChainConfig.model_validate(data)

        self._chain_configs[config.remote_domain_id] = config
        self._rate_limit_gate.configure(config, self.engine.now())

        logger.info(
            "chain config applied domain=%d remote_adapter=%s remote_token=%s",
            config.remote_domain_id,
            config.remote_adapter_address,
            config.remote_token_address,
        )
        return config

    def remove_chain_config(self, remote_domain_id: int, *, caller: str) -> None:
        self._access.require(caller, Capability.ADMIN)
        self._chain_configs.pop(remote_domain_id, None)
        self._rate_limit_gate.remove(remote_domain_id)
        logger.info("chain config removed domain=%d", remote_domain_id)

    def chain_config(self, remote_domain_id: int) -> Optional[ChainConfig]:
        return self._chain_configs.get(remote_domain_id)

    def supported_domains(self) -> list[int]:
        return sorted(self._chain_configs)

    def grant(self, grantee: str, capability: Capability, *, caller: str) -> None:
        self._access.grant(caller, grantee, capability)

    # =========================================================================
    # SOURCE HALF
    # =========================================================================

    def lock_or_burn(
        self,
        remote_domain_id: int,
        receiver: str,
        amount: int,
        original_sender: str,
    ) -> OutboundResult:
        """Исходящая половина: validate → read rate → burn → emit payload.

        Стоимость уже лежит на custody-аккаунте (транспорт переводит её
        до вызова). Ставка читается у original_sender до burn.
        MAX_UINT256 разрешается в баланс custody-аккаунта до проверки лимита.

        Returns:
            OutboundResult с dest_token_address и dest_pool_payload

        Raises:
            RouteNotAllowed: домен не зарегистрирован или отправитель вне allow-list
            RateLimited: исходящий лимит исчерпан
            InsufficientBalance: на custody-аккаунте меньше amount
        """
        validate_uint(amount, "amount")
        trace = TransferTrace(SOURCE_TRANSITIONS, TransferState.REQUESTED)
        now = self.engine.now()
        if is_max_sentinel(amount):
            amount = self.engine.balance_of(self.custody_account)

        # 1. VALIDATED: маршрут и лимит (без мутаций при отказе)
        route = self._route_gate.evaluate(
            TransferDirection.OUTBOUND,
            remote_domain_id,
            self._chain_configs,
            original_sender=original_sender,
        )
        if not route.allowed:
            logger.info("outbound rejected: %s", route.details)
            raise RouteNotAllowed(remote_domain_id, route.block_reason)

        limit = self._rate_limit_gate.evaluate(route, amount, now)
        self._raise_if_limited(limit)
        trace.advance(TransferState.VALIDATED)

        # 2. BURNED: ставка читается до burn
        locked_rate = self.engine.locked_rate_of(original_sender)
        burned = self.engine.burn(self.custody_account, amount, caller=self.address)
        self._rate_limit_gate.consume(
            remote_domain_id, TransferDirection.OUTBOUND, burned, now
        )
        trace.advance(TransferState.BURNED)

        # 3. PAYLOAD_EMITTED
        payload = encode_rate(locked_rate)
        trace.advance(TransferState.PAYLOAD_EMITTED)

        logger.debug(
            "outbound domain=%d sender=%s receiver=%s amount=%d rate=%d",
            remote_domain_id, original_sender, receiver, burned, locked_rate,
        )
        return OutboundResult(
            dest_token_address=route.chain_config.remote_token_address,
            dest_pool_payload=payload,
            remote_domain_id=remote_domain_id,
            original_sender=original_sender,
            receiver=receiver,
            amount=burned,
            locked_rate=locked_rate,
            state=trace.state,
            trace=trace.states(),
        )

    # =========================================================================
    # DESTINATION HALF
    # =========================================================================

    def release_or_mint(
        self,
        source_domain_id: int,
        source_adapter_address: str,
        source_pool_payload: bytes,
        receiver: str,
        amount: int,
    ) -> InboundResult:
        """Входящая половина: validate → decode rate → mint с сохранённой ставкой.

        Raises:
            UnknownRoute: домен не зарегистрирован или адрес адаптера не совпадает
            RateLimited: входящий лимит исчерпан
            InvalidPayload: payload не 32 байта
        """
        validate_uint(amount, "amount")
        trace = TransferTrace(DESTINATION_TRANSITIONS, TransferState.RECEIVED)
        now = self.engine.now()

        # 1. VALIDATED
        route = self._route_gate.evaluate(
            TransferDirection.INBOUND,
            source_domain_id,
            self._chain_configs,
            source_adapter_address=source_adapter_address,
        )
        if not route.allowed:
            logger.warning(
                "inbound rejected, source-side value stays burned: %s", route.details
            )
            raise UnknownRoute(source_domain_id, source_adapter_address)

        limit = self._rate_limit_gate.evaluate(route, amount, now)
        self._raise_if_limited(limit)
        locked_rate = decode_rate(source_pool_payload)
        trace.advance(TransferState.VALIDATED)

        # 2. MINTED: сохранённая ставка, не global_rate
        self.engine.mint(receiver, amount, locked_rate, caller=self.address)
        self._rate_limit_gate.consume(
            source_domain_id, TransferDirection.INBOUND, amount, now
        )
        trace.advance(TransferState.MINTED)

        logger.debug(
            "inbound domain=%d receiver=%s amount=%d rate=%d",
            source_domain_id, receiver, amount, locked_rate,
        )
        return InboundResult(
            source_domain_id=source_domain_id,
            receiver=receiver,
            amount=amount,
            locked_rate=locked_rate,
            state=trace.state,
            trace=trace.states(),
        )

    def _raise_if_limited(self, limit: Gate01Result) -> None:
        if limit.allowed:
            return
        logger.info("%s rate limited: %s", limit.direction.value, limit.details)
        raise RateLimited(
            limit.domain_id,
            limit.direction.value,
            limit.requested,
            limit.available or 0,
        )
