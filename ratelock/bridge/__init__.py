"""Bridge — перенос стоимости между доменами с сохранением locked rate.

- codec: 32-байтовое кодирование ставки
- states: машина состояний половин перевода
- adapter: TransferAdapter (lock_or_burn / release_or_mint)
- transport_memory: in-process транспорт для тестов и симуляций
"""

from .adapter import AdapterConfig, TransferAdapter
from .codec import PAYLOAD_WIDTH_BYTES, decode_rate, encode_rate
from .states import InboundResult, OutboundResult, TransferState
from .transport_memory import InMemoryTransport, TransferEnvelope

__all__ = [
    "AdapterConfig",
    "TransferAdapter",
    "PAYLOAD_WIDTH_BYTES",
    "encode_rate",
    "decode_rate",
    "TransferState",
    "OutboundResult",
    "InboundResult",
    "InMemoryTransport",
    "TransferEnvelope",
]
