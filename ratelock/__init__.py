"""
ratelock — interest-bearing ledger with per-account locked rates
and a cross-domain transfer adapter.
"""

__version__ = "0.1.0"
