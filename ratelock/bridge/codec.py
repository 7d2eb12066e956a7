"""Кодек payload для cross-domain переводов.

Единственный формат, который определяет адаптер: сохранённая ставка как
одно беззнаковое целое, 32 байта, big-endian (слово uint256).
"""

from typing import Final

from ratelock.core.errors import InvalidPayload
from ratelock.core.math.fixed_point import validate_uint

PAYLOAD_WIDTH_BYTES: Final[int] = 32


def encode_rate(rate: int) -> bytes:
    """Кодирование сохранённой ставки в 32-байтовое big-endian слово."""
    validate_uint(rate, "rate")
    return rate.to_bytes(PAYLOAD_WIDTH_BYTES, "big")


def decode_rate(payload: bytes) -> int:
    """Декодирование сохранённой ставки; всё, кроме ровно 32 байт, отвергается.

    Raises:
        InvalidPayload: неверный тип или длина
    """
    if not isinstance(payload, (bytes, bytearray)):
        raise InvalidPayload(-1, f"expected bytes, got {type(payload).__name__}")
    if len(payload) != PAYLOAD_WIDTH_BYTES:
        raise InvalidPayload(len(payload))
    return int.from_bytes(payload, "big")


def payload_to_hex(payload: bytes) -> str:
    return "0x" + payload.hex()


def payload_from_hex(text: str) -> bytes:
    if not text.startswith("0x"):
        raise InvalidPayload(len(text), "missing 0x prefix")
    try:
        return bytes.fromhex(text[2:])
    except ValueError as e:
        raise InvalidPayload(len(text), f"not hex: {e}") from e
