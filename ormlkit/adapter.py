"""Present a single-currency ledger as a basic currency.

The wrapped ``currency`` is a ledger of one currency and provides:

* ``minimum_balance()``, ``total_issuance()``, ``total_balance(who)``,
  ``free_balance(who)``
* ``ensure_can_withdraw(who, amount, new_balance)``, which raises when the
  withdrawal is not allowed
* ``transfer(from_, to, amount)``, which may leave the sender's account emptied
* ``deposit_creating(who, amount)``, which returns the amount actually deposited
* ``withdraw(who, amount)``, ``can_slash(who, amount)``
* ``slash(who, amount)``, which returns ``(slashed, not_slashed)``
* ``set_lock(lock_id, who, amount)``, ``extend_lock(lock_id, who, amount)``,
  ``remove_lock(lock_id, who)``
* ``can_reserve``, ``reserve``, ``unreserve``, ``reserved_balance``,
  ``slash_reserved`` (returning ``(slashed, not_slashed)``) and
  ``repatriate_reserved(slashed, beneficiary, value, status)``
"""

from __future__ import annotations

from typing import Any, Hashable

from ormlkit.currencies import AmountIntoBalanceFailed, BalanceStatus, BalanceTooLow, DepositFailed

I64_MAX = 2**63 - 1


class BasicCurrencyAdapter:
    """Basic, extended, lockable and reservable currency over a single-currency ledger.

    ``amount_max`` is the largest magnitude a signed amount may have when it is
    turned into a balance by :meth:`update_balance`.
    """

    def __init__(self, currency: Any, amount_max: int = I64_MAX) -> None:
        self.currency = currency
        self.amount_max = amount_max

    def minimum_balance(self) -> int:
        return self.currency.minimum_balance()

    def total_issuance(self) -> int:
        return self.currency.total_issuance()

    def total_balance(self, who: Hashable) -> int:
        return self.currency.total_balance(who)

    def free_balance(self, who: Hashable) -> int:
        return self.currency.free_balance(who)

    def ensure_can_withdraw(self, who: Hashable, amount: int) -> None:
        """Raise :class:`BalanceTooLow` or the ledger's error if ``amount`` cannot be withdrawn."""
        new_balance = self.free_balance(who) - amount
        if new_balance < 0:
            raise BalanceTooLow(f"free balance of {who!r} is below {amount}")
        self.currency.ensure_can_withdraw(who, amount, new_balance)

    def transfer(self, from_: Hashable, to: Hashable, amount: int) -> None:
        self.currency.transfer(from_, to, amount)

    def deposit(self, who: Hashable, amount: int) -> None:
        """Deposit ``amount``; raise :class:`DepositFailed` if less was actually credited."""
        if amount == 0:
            return
        actual = self.currency.deposit_creating(who, amount)
        if actual != amount:
            raise DepositFailed(f"deposited {actual} instead of {amount}")

    def withdraw(self, who: Hashable, amount: int) -> None:
        self.currency.withdraw(who, amount)

    def can_slash(self, who: Hashable, amount: int) -> bool:
        return self.currency.can_slash(who, amount)

    def slash(self, who: Hashable, amount: int) -> int:
        """Slash up to ``amount`` and return the part that could not be slashed."""
        _, gap = self.currency.slash(who, amount)
        return gap

    def update_balance(self, who: Hashable, by_amount: int) -> None:
        """Deposit a positive ``by_amount``, withdraw the magnitude of any other."""
        by_balance = abs(by_amount)
        if by_balance > self.amount_max:
            raise AmountIntoBalanceFailed(f"amount {by_amount} cannot be turned into a balance")
        if by_amount > 0:
            self.deposit(who, by_balance)
        else:
            self.withdraw(who, by_balance)

    def set_lock(self, lock_id: bytes, who: Hashable, amount: int) -> None:
        self.currency.set_lock(lock_id, who, amount)

    def extend_lock(self, lock_id: bytes, who: Hashable, amount: int) -> None:
        self.currency.extend_lock(lock_id, who, amount)

    def remove_lock(self, lock_id: bytes, who: Hashable) -> None:
        self.currency.remove_lock(lock_id, who)

    def can_reserve(self, who: Hashable, value: int) -> bool:
        return self.currency.can_reserve(who, value)

    def slash_reserved(self, who: Hashable, value: int) -> int:
        """Slash up to ``value`` of reserved funds and return the part left unslashed."""
        _, gap = self.currency.slash_reserved(who, value)
        return gap

    def reserved_balance(self, who: Hashable) -> int:
        return self.currency.reserved_balance(who)

    def reserve(self, who: Hashable, value: int) -> None:
        self.currency.reserve(who, value)

    def unreserve(self, who: Hashable, value: int) -> int:
        return self.currency.unreserve(who, value)

    def repatriate_reserved(
        self, slashed: Hashable, beneficiary: Hashable, value: int, status: BalanceStatus
    ) -> int:
        return self.currency.repatriate_reserved(slashed, beneficiary, value, status)