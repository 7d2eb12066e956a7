"""
Core math modules для ratelock

Беззнаковая fixed-point арифметика и формулы начисления.
"""

# Fixed-Point Safeguards
from ratelock.core.math.fixed_point import (
    # Constants
    MAX_UINT256,
    PRECISION,
    # Checked arithmetic
    checked_add,
    checked_mul,
    checked_sub,
    mul_div,
    # Validation
    is_max_sentinel,
    validate_uint,
)

# Accrual
from ratelock.core.math.accrual import (
    DEFAULT_GLOBAL_RATE,
    SECONDS_PER_YEAR,
    Crystallization,
    accrual_factor,
    accrued_interest,
    apr_bps_to_rate,
    crystallize,
    effective_balance,
    elapsed_since,
)

__all__ = [
    # Fixed-Point — Constants
    "MAX_UINT256",
    "PRECISION",
    # Fixed-Point — Checked arithmetic
    "checked_add",
    "checked_mul",
    "checked_sub",
    "mul_div",
    # Fixed-Point — Validation
    "is_max_sentinel",
    "validate_uint",
    # Accrual — Constants
    "DEFAULT_GLOBAL_RATE",
    "SECONDS_PER_YEAR",
    # Accrual — Types
    "Crystallization",
    # Accrual — Functions
    "accrual_factor",
    "accrued_interest",
    "apr_bps_to_rate",
    "crystallize",
    "effective_balance",
    "elapsed_since",
]
