"""Тесты для Ledger Accounting Engine.

Coverage:
- Монотонность global rate
- Формула accrual, идемпотентность balance_of
- Burn через сентинел, InsufficientBalance
- Наследование ставки при переводе, кристаллизация до проверки нуля
- Self-transfer, allowances
- Capability-проверки
- Атомарность: отказ не меняет состояние, atomic() откатывает блок
- Снапшот и восстановление
"""

import pytest

from ratelock.core.access import Capability
from ratelock.core.clock import ManualClock
from ratelock.core.errors import (
    ArithmeticOverflow,
    InsufficientAllowance,
    InsufficientBalance,
    RateMustDecrease,
    Unauthorized,
)
from ratelock.core.math.accrual import DEFAULT_GLOBAL_RATE
from ratelock.core.math.fixed_point import MAX_UINT256
from ratelock.ledger import LedgerConfig, LedgerEngine

ONE = 10**18
ADMIN = "admin"
MINTER = "minter"


# =============================================================================
# FIXTURES
# =============================================================================


@pytest.fixture
def clock() -> ManualClock:
    return ManualClock(start=1_000)


@pytest.fixture
def engine(clock: ManualClock) -> LedgerEngine:
    ledger = LedgerEngine(owner=ADMIN, clock=clock)
    ledger.grant(MINTER, Capability.MINT_AND_BURN, caller=ADMIN)
    return ledger


# =============================================================================
# GLOBAL RATE
# =============================================================================


class TestGlobalRate:
    """Тесты монотонности global rate."""

    def test_default_initial_rate(self, engine: LedgerEngine) -> None:
        assert engine.global_rate == DEFAULT_GLOBAL_RATE

    def test_decrease_accepted(self, engine: LedgerEngine) -> None:
        engine.set_global_rate(DEFAULT_GLOBAL_RATE - 1, caller=ADMIN)
        assert engine.global_rate == DEFAULT_GLOBAL_RATE - 1

    def test_equal_rate_rejected(self, engine: LedgerEngine) -> None:
        with pytest.raises(RateMustDecrease) as exc_info:
            engine.set_global_rate(DEFAULT_GLOBAL_RATE, caller=ADMIN)
        assert exc_info.value.current_rate == DEFAULT_GLOBAL_RATE
        assert exc_info.value.attempted_rate == DEFAULT_GLOBAL_RATE
        assert engine.global_rate == DEFAULT_GLOBAL_RATE

    def test_increase_rejected(self, engine: LedgerEngine) -> None:
        with pytest.raises(RateMustDecrease):
            engine.set_global_rate(DEFAULT_GLOBAL_RATE + 1, caller=ADMIN)
        assert engine.global_rate == DEFAULT_GLOBAL_RATE

    def test_sequence_is_non_increasing(self, engine: LedgerEngine) -> None:
        observed = [engine.global_rate]
        for attempted in (3_000_000_000, 3_100_000_000, 2_000_000_000, 2_000_000_000, 1):
            try:
                engine.set_global_rate(attempted, caller=ADMIN)
            except RateMustDecrease:
                pass
            observed.append(engine.global_rate)

        assert observed == sorted(observed, reverse=True)
        assert engine.global_rate == 1

    def test_requires_admin(self, engine: LedgerEngine) -> None:
        with pytest.raises(Unauthorized):
            engine.set_global_rate(1, caller=MINTER)

    def test_does_not_touch_accounts(self, engine: LedgerEngine) -> None:
        engine.mint("A", ONE, ONE, caller=MINTER)
        engine.set_global_rate(1, caller=ADMIN)
        assert engine.locked_rate_of("A") == ONE

    def test_non_positive_initial_rate_rejected(self) -> None:
        with pytest.raises(ValueError, match="initial_global_rate must be positive"):
            LedgerEngine(owner=ADMIN, config=LedgerConfig(initial_global_rate=0))


# =============================================================================
# ACCRUAL
# =============================================================================


class TestAccrual:
    """Тесты начисления и balance_of."""

    def test_accrual_formula(self, engine: LedgerEngine, clock: ManualClock) -> None:
        """Прирост за второе окно равен приросту за первое (±1)."""
        engine.mint("A", ONE, ONE, caller=MINTER)
        start = engine.balance_of("A")

        clock.advance(3600)
        after_first = engine.balance_of("A")
        clock.advance(3600)
        after_second = engine.balance_of("A")

        assert after_first > engine.principal_of("A")
        assert abs((after_second - after_first) - (after_first - start)) <= 1

    def test_balance_of_idempotent(self, engine: LedgerEngine, clock: ManualClock) -> None:
        engine.mint("A", ONE, DEFAULT_GLOBAL_RATE, caller=MINTER)
        clock.advance(12_345)

        assert engine.balance_of("A") == engine.balance_of("A")
        assert engine.last_update_of("A") == 1_000

    def test_balance_of_non_decreasing(self, engine: LedgerEngine, clock: ManualClock) -> None:
        engine.mint("A", ONE, DEFAULT_GLOBAL_RATE, caller=MINTER)
        previous = engine.balance_of("A")
        for _ in range(5):
            clock.advance(86_400)
            current = engine.balance_of("A")
            assert current >= previous
            previous = current

    def test_unknown_account_is_zero(self, engine: LedgerEngine) -> None:
        assert engine.balance_of("nobody") == 0
        assert engine.principal_of("nobody") == 0
        assert engine.locked_rate_of("nobody") == 0

    def test_mint_crystallizes_before_adding(
        self, engine: LedgerEngine, clock: ManualClock
    ) -> None:
        engine.mint("A", ONE, ONE, caller=MINTER)
        clock.advance(1)
        engine.mint("A", 0, ONE, caller=MINTER)

        assert engine.principal_of("A") == 2 * ONE
        assert engine.last_update_of("A") == 1_001

    def test_clock_going_backwards(self) -> None:
        times = iter([100, 50])
        ledger = LedgerEngine(owner=ADMIN, clock=lambda: next(times))
        ledger.grant(MINTER, Capability.MINT_AND_BURN, caller=ADMIN)
        ledger.mint("A", ONE, ONE, caller=MINTER)

        with pytest.raises(ArithmeticOverflow):
            ledger.balance_of("A")


# =============================================================================
# MINT / BURN
# =============================================================================


class TestMintBurn:
    """Тесты mint и burn."""

    def test_mint_overwrites_rate(self, engine: LedgerEngine) -> None:
        engine.mint("A", ONE, ONE, caller=MINTER)
        engine.mint("A", ONE, 5, caller=MINTER)
        assert engine.locked_rate_of("A") == 5
        assert engine.principal_of("A") == 2 * ONE

    def test_mint_zero_amount(self, engine: LedgerEngine) -> None:
        engine.mint("A", 0, ONE, caller=MINTER)
        assert engine.principal_of("A") == 0
        assert engine.locked_rate_of("A") == ONE

    def test_mint_requires_capability(self, engine: LedgerEngine) -> None:
        with pytest.raises(Unauthorized) as exc_info:
            engine.mint("A", ONE, ONE, caller="stranger")
        assert exc_info.value.capability == Capability.MINT_AND_BURN
        assert engine.principal_of("A") == 0

    def test_admin_does_not_imply_mint(self, engine: LedgerEngine) -> None:
        """Иерархии ролей нет."""
        with pytest.raises(Unauthorized):
            engine.mint("A", ONE, ONE, caller=ADMIN)

    def test_revoked_minter(self, engine: LedgerEngine) -> None:
        engine.revoke(MINTER, Capability.MINT_AND_BURN, caller=ADMIN)
        with pytest.raises(Unauthorized):
            engine.mint("A", ONE, ONE, caller=MINTER)

    def test_mint_overflow(self, engine: LedgerEngine) -> None:
        engine.mint("A", MAX_UINT256 - 1, 0, caller=MINTER)
        with pytest.raises(ArithmeticOverflow):
            engine.mint("A", 2, 0, caller=MINTER)
        assert engine.principal_of("A") == MAX_UINT256 - 1

    def test_burn_to_zero_via_sentinel(
        self, engine: LedgerEngine, clock: ManualClock
    ) -> None:
        engine.mint("A", ONE, ONE, caller=MINTER)
        clock.advance(10)

        burned = engine.burn("A", MAX_UINT256, caller=MINTER)

        assert burned == 11 * ONE
        assert engine.principal_of("A") == 0
        assert engine.balance_of("A") == 0

    def test_burned_to_zero_keeps_rate(self, engine: LedgerEngine) -> None:
        engine.mint("A", ONE, ONE, caller=MINTER)
        engine.burn("A", MAX_UINT256, caller=MINTER)
        assert engine.locked_rate_of("A") == ONE

    def test_insufficient_balance(self, engine: LedgerEngine) -> None:
        engine.mint("A", ONE, ONE, caller=MINTER)
        principal = engine.principal_of("A")

        with pytest.raises(InsufficientBalance) as exc_info:
            engine.burn("A", principal + 1, caller=MINTER)

        assert exc_info.value.requested == principal + 1
        assert exc_info.value.available == principal
        assert engine.principal_of("A") == principal

    def test_rejected_burn_does_not_crystallize(
        self, engine: LedgerEngine, clock: ManualClock
    ) -> None:
        """Отказ не оставляет даже кристаллизации."""
        engine.mint("A", ONE, ONE, caller=MINTER)
        clock.advance(100)

        with pytest.raises(InsufficientBalance):
            engine.burn("A", 1_000 * ONE, caller=MINTER)

        assert engine.principal_of("A") == ONE
        assert engine.last_update_of("A") == 1_000

    def test_burn_counts_accrued_interest(
        self, engine: LedgerEngine, clock: ManualClock
    ) -> None:
        engine.mint("A", ONE, ONE, caller=MINTER)
        clock.advance(1)
        engine.burn("A", 2 * ONE, caller=MINTER)
        assert engine.principal_of("A") == 0

    def test_total_principal(self, engine: LedgerEngine) -> None:
        engine.mint("A", 3 * ONE, 0, caller=MINTER)
        engine.mint("B", 2 * ONE, 0, caller=MINTER)
        engine.burn("A", ONE, caller=MINTER)
        engine.transfer("B", "C", ONE)
        assert engine.total_principal == 4 * ONE


# =============================================================================
# TRANSFERS
# =============================================================================


class TestTransfer:
    """Тесты transfer и наследования ставки."""

    def test_rate_inheritance_full_transfer(self, engine: LedgerEngine) -> None:
        engine.mint("A", ONE, ONE, caller=MINTER)

        moved = engine.transfer("A", "B", MAX_UINT256)

        assert moved == ONE
        assert engine.locked_rate_of("B") == ONE
        assert engine.principal_of("A") == 0
        assert engine.principal_of("B") == ONE

    def test_partial_transfer_preserves_sender_rate(self, engine: LedgerEngine) -> None:
        engine.mint("A", ONE, ONE, caller=MINTER)

        engine.transfer("A", "B", ONE - 10**9)

        assert engine.principal_of("A") == 10**9
        assert engine.locked_rate_of("A") == ONE

    def test_recipient_with_principal_keeps_own_rate(self, engine: LedgerEngine) -> None:
        """Усреднения ставок нет."""
        engine.mint("A", ONE, ONE, caller=MINTER)
        engine.mint("B", ONE, 7, caller=MINTER)

        engine.transfer("A", "B", ONE)

        assert engine.locked_rate_of("B") == 7
        assert engine.principal_of("B") == 2 * ONE

    def test_burned_to_zero_recipient_inherits(self, engine: LedgerEngine) -> None:
        engine.mint("B", ONE, 7, caller=MINTER)
        engine.burn("B", MAX_UINT256, caller=MINTER)
        engine.mint("A", ONE, ONE, caller=MINTER)

        engine.transfer("A", "B", 1)

        assert engine.locked_rate_of("B") == ONE

    def test_inheritance_checked_after_crystallization(
        self, engine: LedgerEngine, clock: ManualClock
    ) -> None:
        """Получатель с ненулевым principal не наследует ставку даже при малом балансе."""
        engine.mint("A", ONE, ONE, caller=MINTER)
        engine.mint("B", 1, 3, caller=MINTER)
        clock.advance(1)

        engine.transfer("A", "B", ONE)

        assert engine.locked_rate_of("B") == 3

    def test_both_sides_crystallized(self, engine: LedgerEngine, clock: ManualClock) -> None:
        engine.mint("A", ONE, ONE, caller=MINTER)
        engine.mint("B", ONE, ONE, caller=MINTER)
        clock.advance(1)

        engine.transfer("A", "B", ONE)

        assert engine.principal_of("A") == ONE
        assert engine.principal_of("B") == 3 * ONE
        assert engine.last_update_of("A") == engine.last_update_of("B") == 1_001

    def test_insufficient_balance_no_change(self, engine: LedgerEngine) -> None:
        engine.mint("A", ONE, ONE, caller=MINTER)

        with pytest.raises(InsufficientBalance):
            engine.transfer("A", "B", ONE + 1)

        assert engine.principal_of("A") == ONE
        assert engine.principal_of("B") == 0
        assert engine.locked_rate_of("B") == 0

    def test_self_transfer_is_noop(self, engine: LedgerEngine, clock: ManualClock) -> None:
        engine.mint("A", ONE, ONE, caller=MINTER)
        clock.advance(1)

        moved = engine.transfer("A", "A", ONE)

        assert moved == ONE
        assert engine.principal_of("A") == 2 * ONE
        assert engine.last_update_of("A") == 1_001
        assert engine.locked_rate_of("A") == ONE

    def test_self_transfer_insufficient(self, engine: LedgerEngine) -> None:
        engine.mint("A", ONE, ONE, caller=MINTER)
        with pytest.raises(InsufficientBalance):
            engine.transfer("A", "A", ONE + 1)


class TestAllowance:
    """Тесты approve / transfer_from."""

    def test_transfer_from_decrements_allowance(self, engine: LedgerEngine) -> None:
        engine.mint("A", ONE, ONE, caller=MINTER)
        engine.approve("A", "S", ONE)

        engine.transfer_from("S", "A", "B", ONE // 4)

        assert engine.allowance("A", "S") == ONE - ONE // 4
        assert engine.principal_of("B") == ONE // 4
        assert engine.locked_rate_of("B") == ONE

    def test_insufficient_allowance(self, engine: LedgerEngine) -> None:
        engine.mint("A", ONE, ONE, caller=MINTER)
        engine.approve("A", "S", 10)

        with pytest.raises(InsufficientAllowance) as exc_info:
            engine.transfer_from("S", "A", "B", 11)

        assert exc_info.value.allowance == 10
        assert engine.allowance("A", "S") == 10
        assert engine.principal_of("A") == ONE

    def test_max_allowance_is_infinite(self, engine: LedgerEngine) -> None:
        engine.mint("A", ONE, ONE, caller=MINTER)
        engine.approve("A", "S", MAX_UINT256)

        engine.transfer_from("S", "A", "B", ONE // 2)

        assert engine.allowance("A", "S") == MAX_UINT256

    def test_sentinel_checked_against_resolved_amount(self, engine: LedgerEngine) -> None:
        """MAX_UINT256 как сумма сравнивается с allowance после подстановки баланса."""
        engine.mint("A", 100, 0, caller=MINTER)
        engine.approve("A", "S", 100)

        moved = engine.transfer_from("S", "A", "B", MAX_UINT256)

        assert moved == 100
        assert engine.allowance("A", "S") == 0

    def test_no_allowance(self, engine: LedgerEngine) -> None:
        engine.mint("A", ONE, ONE, caller=MINTER)
        with pytest.raises(InsufficientAllowance):
            engine.transfer_from("S", "A", "B", 1)


# =============================================================================
# ATOMICITY / PERSISTENCE
# =============================================================================


class TestAtomic:
    """Тесты atomic() и снапшотов."""

    def test_atomic_rolls_back(self, engine: LedgerEngine) -> None:
        engine.mint("A", ONE, ONE, caller=MINTER)

        with pytest.raises(InsufficientBalance):
            with engine.atomic():
                engine.transfer("A", "B", ONE // 2)
                engine.burn("A", ONE, caller=MINTER)

        assert engine.principal_of("A") == ONE
        assert engine.principal_of("B") == 0
        assert engine.total_principal == ONE

    def test_atomic_commits_on_success(self, engine: LedgerEngine) -> None:
        engine.mint("A", ONE, ONE, caller=MINTER)
        with engine.atomic():
            engine.transfer("A", "B", ONE // 2)
        assert engine.principal_of("B") == ONE // 2

    def test_snapshot_round_trip(self, engine: LedgerEngine, clock: ManualClock) -> None:
        engine.mint("A", ONE, ONE, caller=MINTER)
        engine.approve("A", "S", 5)
        engine.set_global_rate(100, caller=ADMIN)

        restored = LedgerEngine.from_snapshot(engine.snapshot(), clock=clock)

        assert restored.global_rate == 100
        assert restored.principal_of("A") == ONE
        assert restored.locked_rate_of("A") == ONE
        assert restored.allowance("A", "S") == 5
        assert restored.has_capability(MINTER, Capability.MINT_AND_BURN)
        assert restored.total_principal == ONE

    def test_restored_rate_stays_monotonic(self, engine: LedgerEngine) -> None:
        engine.set_global_rate(100, caller=ADMIN)
        restored = LedgerEngine.from_snapshot(engine.snapshot())

        with pytest.raises(RateMustDecrease):
            restored.set_global_rate(101, caller=ADMIN)
