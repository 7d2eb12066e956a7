"""Gatekeeper — политика допуска cross-domain переводов.

Гейты с фиксированным порядком, каждый возвращает результат с
allowed/block_reason вместо исключения.
"""

from .gates.gate_00_route import Gate00Route, Gate00Result
from .gates.gate_01_rate_limit import Gate01RateLimit, Gate01Result

__all__ = [
    "Gate00Route",
    "Gate00Result",
    "Gate01RateLimit",
    "Gate01Result",
]
