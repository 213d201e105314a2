"""Mixed currency system: one native currency plus a multi-currency backend.

Calls for the native currency id go to the native currency; every other
currency id goes to the multi-currency backend.
"""

from __future__ import annotations

import copy
import enum
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Any, Hashable, Iterator

from ormlkit.dispatch import DispatchError, Origin, ensure_root, ensure_signed
from ormlkit.weights import CurrenciesWeightInfo


class CurrenciesError(DispatchError):
    """Base class of the errors raised by the currencies module."""


class AmountIntoBalanceFailed(CurrenciesError):
    """A signed amount could not be turned into a balance."""


class BalanceTooLow(CurrenciesError):
    """The balance is too low."""


class DepositFailed(CurrenciesError):
    """The amount actually deposited differs from the one requested."""


class BalanceStatus(enum.Enum):
    """Where repatriated funds end up on the beneficiary's account."""

    FREE = "free"
    RESERVED = "reserved"


@dataclass(frozen=True)
class Transferred:
    currency_id: Any
    from_: Hashable
    to: Hashable
    amount: int


@dataclass(frozen=True)
class BalanceUpdated:
    currency_id: Any
    who: Hashable
    amount: int


@dataclass(frozen=True)
class Deposited:
    currency_id: Any
    who: Hashable
    amount: int


@dataclass(frozen=True)
class Withdrawn:
    currency_id: Any
    who: Hashable
    amount: int


@contextmanager
def _transaction(*participants: Any) -> Iterator[None]:
    """Restore the state of every participant if the block raises."""
    snapshots = [(item, copy.deepcopy(vars(item))) for item in participants if hasattr(item, "__dict__")]
    try:
        yield
    except BaseException:
        for item, state in snapshots:
            vars(item).clear()
            vars(item).update(state)
        raise


class Currencies:
    """Routes currency operations to the native or the multi-currency backend."""

    def __init__(
        self,
        multi_currency: Any,
        native_currency: Any,
        native_currency_id: Any,
        weights: CurrenciesWeightInfo | None = None,
    ) -> None:
        self.multi_currency = multi_currency
        self.native_currency = native_currency
        self.native_currency_id = native_currency_id
        self.weights = weights if weights is not None else CurrenciesWeightInfo()
        self.events: list[Any] = []

    def _is_native(self, currency_id: Any) -> bool:
        return currency_id == self.native_currency_id

    # Dispatchable calls

    def dispatch_transfer(self, origin: Origin, dest: Hashable, currency_id: Any, amount: int) -> None:
        """Transfer ``amount`` of ``currency_id`` from the signer to ``dest``."""
        from_ = ensure_signed(origin)
        self.transfer(currency_id, from_, dest, amount)

    def transfer_native_currency(self, origin: Origin, dest: Hashable, amount: int) -> None:
        """Transfer ``amount`` of the native currency from the signer to ``dest``."""
        from_ = ensure_signed(origin)
        self.native_currency.transfer(from_, dest, amount)
        self.events.append(Transferred(self.native_currency_id, from_, dest, amount))

    def dispatch_update_balance(self, origin: Origin, who: Hashable, currency_id: Any, amount: int) -> None:
        """Change the balance of ``who`` by a signed ``amount``; root only."""
        ensure_root(origin)
        self.update_balance(currency_id, who, amount)

    # Multi-currency

    def minimum_balance(self, currency_id: Any) -> int:
        if self._is_native(currency_id):
            return self.native_currency.minimum_balance()
        return self.multi_currency.minimum_balance(currency_id)

    def total_issuance(self, currency_id: Any) -> int:
        if self._is_native(currency_id):
            return self.native_currency.total_issuance()
        return self.multi_currency.total_issuance(currency_id)

    def total_balance(self, currency_id: Any, who: Hashable) -> int:
        if self._is_native(currency_id):
            return self.native_currency.total_balance(who)
        return self.multi_currency.total_balance(currency_id, who)

    def free_balance(self, currency_id: Any, who: Hashable) -> int:
        if self._is_native(currency_id):
            return self.native_currency.free_balance(who)
        return self.multi_currency.free_balance(currency_id, who)

    def ensure_can_withdraw(self, currency_id: Any, who: Hashable, amount: int) -> None:
        if self._is_native(currency_id):
            self.native_currency.ensure_can_withdraw(who, amount)
        else:
            self.multi_currency.ensure_can_withdraw(currency_id, who, amount)

    def transfer(self, currency_id: Any, from_: Hashable, to: Hashable, amount: int) -> None:
        """Move ``amount``; does nothing for a zero amount or a self-transfer."""
        if amount == 0 or from_ == to:
            return
        if self._is_native(currency_id):
            self.native_currency.transfer(from_, to, amount)
        else:
            self.multi_currency.transfer(currency_id, from_, to, amount)
        self.events.append(Transferred(currency_id, from_, to, amount))

    def deposit(self, currency_id: Any, who: Hashable, amount: int) -> None:
        if amount == 0:
            return
        if self._is_native(currency_id):
            self.native_currency.deposit(who, amount)
        else:
            self.multi_currency.deposit(currency_id, who, amount)
        self.events.append(Deposited(currency_id, who, amount))

    def withdraw(self, currency_id: Any, who: Hashable, amount: int) -> None:
        if amount == 0:
            return
        if self._is_native(currency_id):
            self.native_currency.withdraw(who, amount)
        else:
            self.multi_currency.withdraw(currency_id, who, amount)
        self.events.append(Withdrawn(currency_id, who, amount))

    def can_slash(self, currency_id: Any, who: Hashable, amount: int) -> bool:
        if self._is_native(currency_id):
            return self.native_currency.can_slash(who, amount)
        return self.multi_currency.can_slash(currency_id, who, amount)

    def slash(self, currency_id: Any, who: Hashable, amount: int) -> int:
        """Slash up to ``amount`` and return the part that could not be slashed."""
        if self._is_native(currency_id):
            return self.native_currency.slash(who, amount)
        return self.multi_currency.slash(currency_id, who, amount)

    def update_balance(self, currency_id: Any, who: Hashable, by_amount: int) -> None:
        """Change the balance of ``who`` by the signed ``by_amount``."""
        if self._is_native(currency_id):
            self.native_currency.update_balance(who, by_amount)
        else:
            self.multi_currency.update_balance(currency_id, who, by_amount)
        self.events.append(BalanceUpdated(currency_id, who, by_amount))

    # Locks

    def set_lock(self, lock_id: bytes, currency_id: Any, who: Hashable, amount: int) -> None:
        if self._is_native(currency_id):
            self.native_currency.set_lock(lock_id, who, amount)
        else:
            self.multi_currency.set_lock(lock_id, currency_id, who, amount)

    def extend_lock(self, lock_id: bytes, currency_id: Any, who: Hashable, amount: int) -> None:
        if self._is_native(currency_id):
            self.native_currency.extend_lock(lock_id, who, amount)
        else:
            self.multi_currency.extend_lock(lock_id, currency_id, who, amount)

    def remove_lock(self, lock_id: bytes, currency_id: Any, who: Hashable) -> None:
        if self._is_native(currency_id):
            self.native_currency.remove_lock(lock_id, who)
        else:
            self.multi_currency.remove_lock(lock_id, currency_id, who)

    # Reserves

    def can_reserve(self, currency_id: Any, who: Hashable, value: int) -> bool:
        if self._is_native(currency_id):
            return self.native_currency.can_reserve(who, value)
        return self.multi_currency.can_reserve(currency_id, who, value)

    def slash_reserved(self, currency_id: Any, who: Hashable, value: int) -> int:
        if self._is_native(currency_id):
            return self.native_currency.slash_reserved(who, value)
        return self.multi_currency.slash_reserved(currency_id, who, value)

    def reserved_balance(self, currency_id: Any, who: Hashable) -> int:
        if self._is_native(currency_id):
            return self.native_currency.reserved_balance(who)
        return self.multi_currency.reserved_balance(currency_id, who)

    def reserve(self, currency_id: Any, who: Hashable, value: int) -> None:
        if self._is_native(currency_id):
            self.native_currency.reserve(who, value)
        else:
            self.multi_currency.reserve(currency_id, who, value)

    def unreserve(self, currency_id: Any, who: Hashable, value: int) -> int:
        if self._is_native(currency_id):
            return self.native_currency.unreserve(who, value)
        return self.multi_currency.unreserve(currency_id, who, value)

    def repatriate_reserved(
        self,
        currency_id: Any,
        slashed: Hashable,
        beneficiary: Hashable,
        value: int,
        status: BalanceStatus,
    ) -> int:
        if self._is_native(currency_id):
            return self.native_currency.repatriate_reserved(slashed, beneficiary, value, status)
        return self.multi_currency.repatriate_reserved(currency_id, slashed, beneficiary, value, status)

    def transfer_all(self, source: Hashable, dest: Hashable) -> None:
        """Move every free balance of ``source`` to ``dest``, all or nothing."""
        with _transaction(self.multi_currency, self.native_currency, self):
            self.multi_currency.transfer_all(source, dest)
            self.native_currency.transfer(source, dest, self.native_currency.free_balance(source))


class Currency:
    """A single currency of a :class:`Currencies` seen as a basic currency."""

    def __init__(self, currencies: Currencies, currency_id: Any) -> None:
        self.currencies = currencies
        self.currency_id = currency_id

    def minimum_balance(self) -> int:
        return self.currencies.minimum_balance(self.currency_id)

    def total_issuance(self) -> int:
        return self.currencies.total_issuance(self.currency_id)

    def total_balance(self, who: Hashable) -> int:
        return self.currencies.total_balance(self.currency_id, who)

    def free_balance(self, who: Hashable) -> int:
        return self.currencies.free_balance(self.currency_id, who)

    def ensure_can_withdraw(self, who: Hashable, amount: int) -> None:
        self.currencies.ensure_can_withdraw(self.currency_id, who, amount)

    def transfer(self, from_: Hashable, to: Hashable, amount: int) -> None:
        self.currencies.transfer(self.currency_id, from_, to, amount)

    def deposit(self, who: Hashable, amount: int) -> None:
        self.currencies.deposit(self.currency_id, who, amount)

    def withdraw(self, who: Hashable, amount: int) -> None:
        self.currencies.withdraw(self.currency_id, who, amount)

    def can_slash(self, who: Hashable, amount: int) -> bool:
        return self.currencies.can_slash(self.currency_id, who, amount)

    def slash(self, who: Hashable, amount: int) -> int:
        return self.currencies.slash(self.currency_id, who, amount)

    def update_balance(self, who: Hashable, by_amount: int) -> None:
        self.currencies.update_balance(self.currency_id, who, by_amount)

    def set_lock(self, lock_id: bytes, who: Hashable, amount: int) -> None:
        self.currencies.set_lock(lock_id, self.currency_id, who, amount)

    def extend_lock(self, lock_id: bytes, who: Hashable, amount: int) -> None:
        self.currencies.extend_lock(lock_id, self.currency_id, who, amount)

    def remove_lock(self, lock_id: bytes, who: Hashable) -> None:
        self.currencies.remove_lock(lock_id, self.currency_id, who)

    def can_reserve(self, who: Hashable, value: int) -> bool:
        return self.currencies.can_reserve(self.currency_id, who, value)

    def slash_reserved(self, who: Hashable, value: int) -> int:
        return self.currencies.slash_reserved(self.currency_id, who, value)

    def reserved_balance(self, who: Hashable) -> int:
        return self.currencies.reserved_balance(self.currency_id, who)

    def reserve(self, who: Hashable, value: int) -> None:
        self.currencies.reserve(self.currency_id, who, value)

    def unreserve(self, who: Hashable, value: int) -> int:
        return self.currencies.unreserve(self.currency_id, who, value)

    def repatriate_reserved(
        self, slashed: Hashable, beneficiary: Hashable, value: int, status: BalanceStatus
    ) -> int:
        return self.currencies.repatriate_reserved(self.currency_id, slashed, beneficiary, value, status)