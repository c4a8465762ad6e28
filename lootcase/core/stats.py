"""Profile aggregation rules

total_opened counts successful opens only. best_drop is a running maximum
over won item prices. Sells move balance and nothing else.
"""

from lootcase.core.errors import InsufficientFunds
from lootcase.core.models import Profile


def apply_open(profile: Profile, case_price: int) -> Profile:
    """Debit the case price and count the open. Input is left untouched."""
    if case_price < 0:
        raise ValueError(f"case price must be non-negative: {case_price}")
    if profile.balance < case_price:
        raise InsufficientFunds(profile.balance, case_price)

    updated = profile.copy()
    updated.balance -= case_price
    updated.total_opened += 1
    return updated


def apply_drop(profile: Profile, item_price: int) -> Profile:
    updated = profile.copy()
    if item_price > updated.best_drop:
        updated.best_drop = item_price
    return updated


def apply_credit(profile: Profile, amount: int) -> Profile:
    if amount < 0:
        raise ValueError(f"credit must be non-negative: {amount}")
    updated = profile.copy()
    updated.balance += amount
    return updated
