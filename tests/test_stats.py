"""Profile aggregation rules"""

import pytest

from lootcase.core.errors import InsufficientFunds
from lootcase.core.models import Profile
from lootcase.core.stats import apply_credit, apply_drop, apply_open


def _profile(balance: int = 1000, best_drop: int = 0, total_opened: int = 0) -> Profile:
    return Profile(
        user_id="u1", balance=balance, best_drop=best_drop, total_opened=total_opened
    )


class TestApplyOpen:
    def test_debits_and_counts(self) -> None:
        updated = apply_open(_profile(balance=1000), 300)
        assert updated.balance == 700
        assert updated.total_opened == 1

    def test_exact_balance_allowed(self) -> None:
        assert apply_open(_profile(balance=100), 100).balance == 0

    def test_insufficient(self) -> None:
        profile = _profile(balance=50)
        with pytest.raises(InsufficientFunds) as exc:
            apply_open(profile, 100)
        assert exc.value.balance == 50
        assert exc.value.price == 100
        assert profile.balance == 50
        assert profile.total_opened == 0

    def test_input_not_mutated(self) -> None:
        profile = _profile(balance=1000)
        apply_open(profile, 300)
        assert profile.balance == 1000
        assert profile.total_opened == 0

    def test_free_case(self) -> None:
        updated = apply_open(_profile(balance=0), 0)
        assert updated.balance == 0
        assert updated.total_opened == 1


class TestApplyDrop:
    def test_raises_best_drop(self) -> None:
        assert apply_drop(_profile(best_drop=100), 500).best_drop == 500

    def test_never_decreases(self) -> None:
        assert apply_drop(_profile(best_drop=500), 100).best_drop == 500

    def test_does_not_count_open(self) -> None:
        assert apply_drop(_profile(total_opened=3), 10).total_opened == 3


class TestApplyCredit:
    def test_credit_only_touches_balance(self) -> None:
        updated = apply_credit(_profile(balance=10, best_drop=900, total_opened=4), 90)
        assert updated.balance == 100
        assert updated.best_drop == 900
        assert updated.total_opened == 4

    def test_negative_credit_rejected(self) -> None:
        with pytest.raises(ValueError):
            apply_credit(_profile(), -1)
