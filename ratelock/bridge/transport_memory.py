"""In-process transport между адаптерами доменов.

Минимальный транспорт для тестов и симуляций:
- без сети и финальности, очередь сообщений в памяти
- доставка at-least-once, управляемая вручную (deliver)
- drop() и duplicate() для моделирования потерь и повторов
- каждый message_id исполняется на назначении не более одного раза

Конверты сериализуются в JSON и проверяются схемой transfer_message.json
при приёме, как если бы они пришли по проводу.
"""

import json
import logging
from dataclasses import asdict, dataclass
from typing import Any, Optional

from jsonschema import ValidationError

from ratelock.bridge.adapter import TransferAdapter
from ratelock.bridge.codec import payload_from_hex, payload_to_hex
from ratelock.bridge.states import InboundResult, OutboundResult
from ratelock.core.contracts import validate_transfer_message
from ratelock.core.errors import RatelockError

logger = logging.getLogger(__name__)


def _message_id(raw: str) -> Optional[str]:
    """message_id сырого конверта без проверки схемы (None, если не читается)."""
    try:
        data = json.loads(raw)
    except ValueError:
        return None
    return data.get("message_id") if isinstance(data, dict) else None


@dataclass(frozen=True)
class TransferEnvelope:
    """Конверт одного cross-domain перевода."""

    message_id: str
    source_domain_id: int
    dest_domain_id: int
    source_adapter_address: str
    dest_token_address: str
    original_sender: str
    receiver: str
    amount: int
    payload: str  # 0x-hex, 32 байта

    def to_json(self) -> str:
        return json.dumps(asdict(self), sort_keys=True)

    @classmethod
    def from_json(cls, text: str) -> "TransferEnvelope":
        """Разбор с проверкой схемы.

        Raises:
            jsonschema.ValidationError: конверт не соответствует схеме
        """
        data: dict[str, Any] = json.loads(text)
        validate_transfer_message(data)
        return cls(**data)

    @property
    def payload_bytes(self) -> bytes:
        return payload_from_hex(self.payload)


class InMemoryTransport:
    """Транспорт, связывающий зарегистрированные адаптеры.

    Конвенция источника: send() сначала переводит стоимость отправителя
    на custody-аккаунт адаптера, затем вызывает lock_or_burn. Обе операции
    выполняются в engine.atomic(): отказ адаптера откатывает перевод.
    """

    def __init__(self) -> None:
        self._adapters: dict[int, TransferAdapter] = {}
        self._queue: list[str] = []
        self._executed: set[str] = set()
        self._failed: dict[str, Exception] = {}
        self._malformed: list[tuple[str, Exception]] = []
        self._sequence = 0

    def register(self, adapter: TransferAdapter) -> None:
        self._adapters[adapter.domain_id] = adapter

    def adapter(self, domain_id: int) -> TransferAdapter:
        try:
            return self._adapters[domain_id]
        except KeyError:
            raise KeyError(f"Domain {domain_id} is not registered with the transport") from None

    # =========================================================================
    # SOURCE SIDE
    # =========================================================================

    def send(
        self,
        source_domain_id: int,
        dest_domain_id: int,
        sender: str,
        receiver: str,
        amount: int,
    ) -> TransferEnvelope:
        """Исходящая половина + постановка конверта в очередь.

        Returns:
            конверт в очереди

        Raises:
            RouteNotAllowed, RateLimited, InsufficientBalance: от адаптера/леджера
        """
        source = self.adapter(source_domain_id)

        with source.engine.atomic():
            moved = source.engine.transfer(sender, source.custody_account, amount)
            outbound: OutboundResult = source.lock_or_burn(
                dest_domain_id, receiver, moved, sender
            )

        self._sequence += 1
        envelope = TransferEnvelope(
            message_id=f"{source_domain_id}:{dest_domain_id}:{self._sequence}",
            source_domain_id=source_domain_id,
            dest_domain_id=dest_domain_id,
            source_adapter_address=source.address,
            dest_token_address=outbound.dest_token_address,
            original_sender=sender,
            receiver=receiver,
            amount=outbound.amount,
            payload=payload_to_hex(outbound.dest_pool_payload),
        )
        self._queue.append(envelope.to_json())

        logger.info(
            "message queued id=%s amount=%d rate=%d",
            envelope.message_id, envelope.amount, outbound.locked_rate,
        )
        return envelope

    # =========================================================================
    # QUEUE CONTROL
    # =========================================================================

    def pending(self) -> list[TransferEnvelope]:
        """Разобранные конверты в очереди; неразборчивые не включаются."""
        envelopes: list[TransferEnvelope] = []
        for raw in self._queue:
            try:
                envelopes.append(TransferEnvelope.from_json(raw))
            except (ValueError, ValidationError):
                continue
        return envelopes

    def drop(self, message_id: str) -> int:
        """Удаление сообщения из очереди (потеря). Возвращает число удалённых копий."""
        before = len(self._queue)
        self._queue = [
            raw for raw in self._queue
            if _message_id(raw) != message_id
        ]
        dropped = before - len(self._queue)
        logger.warning("message dropped id=%s copies=%d", message_id, dropped)
        return dropped

    def duplicate(self, message_id: str) -> None:
        """Повторная постановка копии сообщения в очередь."""
        for raw in self._queue:
            if _message_id(raw) == message_id:
                self._queue.append(raw)
                return
        raise KeyError(f"Message {message_id} is not pending")

    def is_executed(self, message_id: str) -> bool:
        return message_id in self._executed

    def failures(self) -> dict[str, Exception]:
        """Отказы исполнения по message_id (RatelockError или неизвестный домен)."""
        return dict(self._failed)

    def malformed(self) -> list[tuple[str, Exception]]:
        """Отвергнутые при разборе конверты: (сырой JSON, ошибка)."""
        return list(self._malformed)

    # ---- helpers for tests / harness ----

    def _inject(self, raw: str) -> None:
        """Постановка сырого JSON конверта (повторная доставка извне)."""
        self._queue.append(raw)

    # =========================================================================
    # DESTINATION SIDE
    # =========================================================================

    def deliver(self) -> list[InboundResult]:
        """Исполнение всех ожидающих входящих половин.

        Каждый конверт обрабатывается отдельно, отказ одного не прерывает
        остальные:
        - уже исполненные message_id пропускаются
        - неразборчивый конверт уходит в malformed()
        - незарегистрированный домен назначения или отказ адаптера
          записывается в failures(); стоимость остаётся сожжённой на источнике
        """
        queue, self._queue = self._queue, []
        results: list[InboundResult] = []

        for raw in queue:
            try:
                envelope = TransferEnvelope.from_json(raw)
            except (ValueError, ValidationError) as e:
                self._malformed.append((raw, e))
                logger.warning("malformed envelope rejected: %s", e)
                continue

            if envelope.message_id in self._executed:
                logger.debug("duplicate delivery ignored id=%s", envelope.message_id)
                continue

            result = self._execute(envelope)
            if result is not None:
                results.append(result)

        return results

    def _execute(self, envelope: TransferEnvelope) -> Optional[InboundResult]:
        try:
            dest = self.adapter(envelope.dest_domain_id)
            result = dest.release_or_mint(
                envelope.source_domain_id,
                envelope.source_adapter_address,
                envelope.payload_bytes,
                envelope.receiver,
                envelope.amount,
            )
        except (KeyError, RatelockError) as e:
            self._failed[envelope.message_id] = e
            logger.warning(
                "inbound execution failed id=%s: %s", envelope.message_id, e
            )
            return None

        self._executed.add(envelope.message_id)
        self._failed.pop(envelope.message_id, None)
        logger.info("message executed id=%s", envelope.message_id)
        return result
