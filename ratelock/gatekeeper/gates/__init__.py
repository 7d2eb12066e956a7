"""Gates — индивидуальные гейты политики адаптера.

- GATE 0: Маршрут / Allow-list
- GATE 1: Rate Limit (token bucket)
"""

from .gate_00_route import Gate00Result, Gate00Route
from .gate_01_rate_limit import Gate01RateLimit, Gate01Result, TokenBucket

__all__ = [
    "Gate00Route",
    "Gate00Result",
    "Gate01RateLimit",
    "Gate01Result",
    "TokenBucket",
]
