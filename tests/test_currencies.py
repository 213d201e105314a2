from collections import defaultdict

import pytest

from ormlkit.currencies import (
    BalanceStatus,
    BalanceTooLow,
    BalanceUpdated,
    Currencies,
    Currency,
    Deposited,
    Transferred,
    Withdrawn,
)
from ormlkit.dispatch import BadOrigin, Origin, OriginKind, root, signed

ALICE = "alice"
BOB = "bob"
EVA = "eva"
NATIVE_CURRENCY_ID = 1
X_TOKEN_ID = 2
ID_1 = b"1       "


class Ledger:
    """A single in-memory currency."""

    def __init__(self):
        self.free = defaultdict(int)
        self.reserved = defaultdict(int)
        self.locks = defaultdict(dict)

    def minimum_balance(self):
        return 0

    def total_issuance(self):
        return sum(self.free.values()) + sum(self.reserved.values())

    def total_balance(self, who):
        return self.free[who] + self.reserved[who]

    def free_balance(self, who):
        return self.free[who]

    def ensure_can_withdraw(self, who, amount):
        new_balance = self.free[who] - amount
        if new_balance < 0:
            raise BalanceTooLow("balance too low")
        if new_balance < max(self.locks[who].values(), default=0):
            raise BalanceTooLow("liquidity restrictions")

    def transfer(self, from_, to, amount):
        self.withdraw(from_, amount)
        self.deposit(to, amount)

    def deposit(self, who, amount):
        self.free[who] += amount

    def withdraw(self, who, amount):
        self.ensure_can_withdraw(who, amount)
        self.free[who] -= amount

    def can_slash(self, who, amount):
        return self.free[who] >= amount

    def slash(self, who, amount):
        actual = min(amount, self.free[who])
        self.free[who] -= actual
        return amount - actual

    def update_balance(self, who, by_amount):
        if by_amount >= 0:
            self.deposit(who, by_amount)
        else:
            self.withdraw(who, -by_amount)

    def set_lock(self, lock_id, who, amount):
        self.locks[who][lock_id] = amount

    def extend_lock(self, lock_id, who, amount):
        self.locks[who][lock_id] = max(self.locks[who].get(lock_id, 0), amount)

    def remove_lock(self, lock_id, who):
        self.locks[who].pop(lock_id, None)

    def can_reserve(self, who, value):
        return self.free[who] >= value

    def slash_reserved(self, who, value):
        actual = min(value, self.reserved[who])
        self.reserved[who] -= actual
        return value - actual

    def reserved_balance(self, who):
        return self.reserved[who]

    def reserve(self, who, value):
        if self.free[who] < value:
            raise BalanceTooLow("cannot reserve")
        self.free[who] -= value
        self.reserved[who] += value

    def unreserve(self, who, value):
        actual = min(value, self.reserved[who])
        self.reserved[who] -= actual
        self.free[who] += actual
        return value - actual

    def repatriate_reserved(self, slashed, beneficiary, value, status):
        actual = min(value, self.reserved[slashed])
        self.reserved[slashed] -= actual
        if status is BalanceStatus.FREE:
            self.free[beneficiary] += actual
        else:
            self.reserved[beneficiary] += actual
        return value - actual


class Tokens:
    """An in-memory multi-currency made of one ledger per currency id."""

    def __init__(self):
        self.ledgers = defaultdict(Ledger)

    def minimum_balance(self, cid):
        return self.ledgers[cid].minimum_balance()

    def total_issuance(self, cid):
        return self.ledgers[cid].total_issuance()

    def total_balance(self, cid, who):
        return self.ledgers[cid].total_balance(who)

    def free_balance(self, cid, who):
        return self.ledgers[cid].free_balance(who)

    def ensure_can_withdraw(self, cid, who, amount):
        self.ledgers[cid].ensure_can_withdraw(who, amount)

    def transfer(self, cid, from_, to, amount):
        self.ledgers[cid].transfer(from_, to, amount)

    def deposit(self, cid, who, amount):
        self.ledgers[cid].deposit(who, amount)

    def withdraw(self, cid, who, amount):
        self.ledgers[cid].withdraw(who, amount)

    def can_slash(self, cid, who, amount):
        return self.ledgers[cid].can_slash(who, amount)

    def slash(self, cid, who, amount):
        return self.ledgers[cid].slash(who, amount)

    def update_balance(self, cid, who, by_amount):
        self.ledgers[cid].update_balance(who, by_amount)

    def set_lock(self, lock_id, cid, who, amount):
        self.ledgers[cid].set_lock(lock_id, who, amount)

    def extend_lock(self, lock_id, cid, who, amount):
        self.ledgers[cid].extend_lock(lock_id, who, amount)

    def remove_lock(self, lock_id, cid, who):
        self.ledgers[cid].remove_lock(lock_id, who)

    def can_reserve(self, cid, who, value):
        return self.ledgers[cid].can_reserve(who, value)

    def slash_reserved(self, cid, who, value):
        return self.ledgers[cid].slash_reserved(who, value)

    def reserved_balance(self, cid, who):
        return self.ledgers[cid].reserved_balance(who)

    def reserve(self, cid, who, value):
        self.ledgers[cid].reserve(who, value)

    def unreserve(self, cid, who, value):
        return self.ledgers[cid].unreserve(who, value)

    def repatriate_reserved(self, cid, slashed, beneficiary, value, status):
        return self.ledgers[cid].repatriate_reserved(slashed, beneficiary, value, status)

    def transfer_all(self, source, dest):
        for ledger in self.ledgers.values():
            ledger.transfer(source, dest, ledger.free_balance(source))


def build(balances=()):
    tokens = Tokens()
    native = Ledger()
    for who, cid, amount in balances:
        if cid == NATIVE_CURRENCY_ID:
            native.deposit(who, amount)
        else:
            tokens.deposit(cid, who, amount)
    return Currencies(tokens, native, NATIVE_CURRENCY_ID), tokens, native


@pytest.fixture
def env():
    return build(
        [
            (ALICE, NATIVE_CURRENCY_ID, 100),
            (BOB, NATIVE_CURRENCY_ID, 100),
            (ALICE, X_TOKEN_ID, 100),
            (BOB, X_TOKEN_ID, 100),
        ]
    )


def test_multi_lockable_currency_should_work(env):
    currencies, tokens, native = env
    currencies.set_lock(ID_1, X_TOKEN_ID, ALICE, 50)
    assert len(tokens.ledgers[X_TOKEN_ID].locks[ALICE]) == 1
    currencies.set_lock(ID_1, NATIVE_CURRENCY_ID, ALICE, 50)
    assert len(native.locks[ALICE]) == 1


def test_multi_reservable_currency_should_work(env):
    currencies, _, _ = env
    native_currency = Currency(currencies, NATIVE_CURRENCY_ID)
    assert currencies.total_issuance(NATIVE_CURRENCY_ID) == 200
    assert currencies.total_issuance(X_TOKEN_ID) == 200
    assert currencies.free_balance(X_TOKEN_ID, ALICE) == 100
    assert native_currency.free_balance(ALICE) == 100

    currencies.reserve(X_TOKEN_ID, ALICE, 30)
    currencies.reserve(NATIVE_CURRENCY_ID, ALICE, 40)
    assert currencies.reserved_balance(X_TOKEN_ID, ALICE) == 30
    assert currencies.reserved_balance(NATIVE_CURRENCY_ID, ALICE) == 40


def test_native_currency_lockable_should_work(env):
    currencies, _, native = env
    native_currency = Currency(currencies, NATIVE_CURRENCY_ID)
    native_currency.set_lock(ID_1, ALICE, 10)
    assert len(native.locks[ALICE]) == 1
    native_currency.remove_lock(ID_1, ALICE)
    assert len(native.locks[ALICE]) == 0


def test_native_currency_extend_lock(env):
    currencies, _, native = env
    native_currency = Currency(currencies, NATIVE_CURRENCY_ID)
    native_currency.set_lock(ID_1, ALICE, 10)
    native_currency.extend_lock(ID_1, ALICE, 30)
    assert native.locks[ALICE][ID_1] == 30


def test_native_currency_reservable_should_work(env):
    currencies, _, _ = env
    native_currency = Currency(currencies, NATIVE_CURRENCY_ID)
    native_currency.reserve(ALICE, 50)
    assert native_currency.reserved_balance(ALICE) == 50


def test_multi_currency_should_work(env):
    currencies, _, _ = env
    currencies.dispatch_transfer(signed(ALICE), BOB, X_TOKEN_ID, 50)
    assert currencies.free_balance(X_TOKEN_ID, ALICE) == 50
    assert currencies.free_balance(X_TOKEN_ID, BOB) == 150


def test_multi_currency_extended_should_work(env):
    currencies, _, _ = env
    currencies.update_balance(X_TOKEN_ID, ALICE, 50)
    assert currencies.free_balance(X_TOKEN_ID, ALICE) == 150


def test_native_currency_should_work(env):
    currencies, _, _ = env
    native_currency = Currency(currencies, NATIVE_CURRENCY_ID)
    currencies.transfer_native_currency(signed(ALICE), BOB, 50)
    assert native_currency.free_balance(ALICE) == 50
    assert native_currency.free_balance(BOB) == 150

    native_currency.transfer(ALICE, BOB, 10)
    assert native_currency.free_balance(ALICE) == 40
    assert native_currency.free_balance(BOB) == 160

    assert currencies.slash(NATIVE_CURRENCY_ID, ALICE, 10) == 0
    assert native_currency.free_balance(ALICE) == 30
    assert native_currency.total_issuance() == 190


def test_native_currency_extended_should_work(env):
    currencies, _, _ = env
    native_currency = Currency(currencies, NATIVE_CURRENCY_ID)
    native_currency.update_balance(ALICE, 10)
    assert native_currency.free_balance(ALICE) == 110

    currencies.update_balance(NATIVE_CURRENCY_ID, ALICE, 10)
    assert native_currency.free_balance(ALICE) == 120


def test_update_balance_call_should_work(env):
    currencies, _, _ = env
    native_currency = Currency(currencies, NATIVE_CURRENCY_ID)
    currencies.dispatch_update_balance(root(), ALICE, NATIVE_CURRENCY_ID, -10)
    assert native_currency.free_balance(ALICE) == 90
    assert currencies.free_balance(X_TOKEN_ID, ALICE) == 100
    currencies.dispatch_update_balance(root(), ALICE, X_TOKEN_ID, 10)
    assert currencies.free_balance(X_TOKEN_ID, ALICE) == 110


def test_update_balance_call_fails_if_not_root_origin():
    currencies, _, _ = build()
    with pytest.raises(BadOrigin):
        currencies.dispatch_update_balance(signed(ALICE), ALICE, X_TOKEN_ID, 100)
    assert currencies.free_balance(X_TOKEN_ID, ALICE) == 0
    assert currencies.events == []


def test_transfer_requires_signed_origin(env):
    currencies, _, _ = env
    with pytest.raises(BadOrigin):
        currencies.dispatch_transfer(root(), BOB, X_TOKEN_ID, 10)
    with pytest.raises(BadOrigin):
        currencies.transfer_native_currency(Origin(OriginKind.NONE), BOB, 10)
    assert currencies.free_balance(X_TOKEN_ID, BOB) == 100


def test_call_event_should_work(env):
    currencies, _, _ = env
    currencies.dispatch_transfer(signed(ALICE), BOB, X_TOKEN_ID, 50)
    assert currencies.free_balance(X_TOKEN_ID, ALICE) == 50
    assert currencies.free_balance(X_TOKEN_ID, BOB) == 150
    assert currencies.events[-1] == Transferred(X_TOKEN_ID, ALICE, BOB, 50)

    currencies.transfer(X_TOKEN_ID, ALICE, BOB, 10)
    assert currencies.free_balance(X_TOKEN_ID, ALICE) == 40
    assert currencies.free_balance(X_TOKEN_ID, BOB) == 160
    assert currencies.events[-1] == Transferred(X_TOKEN_ID, ALICE, BOB, 10)

    currencies.deposit(X_TOKEN_ID, ALICE, 100)
    assert currencies.free_balance(X_TOKEN_ID, ALICE) == 140
    assert currencies.events[-1] == Deposited(X_TOKEN_ID, ALICE, 100)

    currencies.withdraw(X_TOKEN_ID, ALICE, 20)
    assert currencies.free_balance(X_TOKEN_ID, ALICE) == 120
    assert currencies.events[-1] == Withdrawn(X_TOKEN_ID, ALICE, 20)


def test_native_transfer_call_emits_event(env):
    currencies, _, _ = env
    currencies.transfer_native_currency(signed(ALICE), BOB, 5)
    assert currencies.events[-1] == Transferred(NATIVE_CURRENCY_ID, ALICE, BOB, 5)


def test_update_balance_emits_event(env):
    currencies, _, _ = env
    currencies.update_balance(X_TOKEN_ID, ALICE, -7)
    assert currencies.events[-1] == BalanceUpdated(X_TOKEN_ID, ALICE, -7)
    assert currencies.free_balance(X_TOKEN_ID, ALICE) == 93


def test_zero_amount_and_self_transfer_are_noops(env):
    currencies, _, _ = env
    currencies.transfer(X_TOKEN_ID, ALICE, BOB, 0)
    currencies.transfer(X_TOKEN_ID, ALICE, ALICE, 10)
    currencies.deposit(X_TOKEN_ID, ALICE, 0)
    currencies.withdraw(X_TOKEN_ID, ALICE, 0)
    assert currencies.events == []
    assert currencies.free_balance(X_TOKEN_ID, ALICE) == 100


def test_failed_withdraw_emits_no_event(env):
    currencies, _, _ = env
    with pytest.raises(BalanceTooLow):
        currencies.withdraw(X_TOKEN_ID, ALICE, 101)
    assert currencies.events == []
    assert currencies.free_balance(X_TOKEN_ID, ALICE) == 100


def test_reserve_operations_route_by_currency(env):
    currencies, _, _ = env
    x_token = Currency(currencies, X_TOKEN_ID)
    x_token.reserve(ALICE, 60)
    assert x_token.can_reserve(ALICE, 40)
    assert not x_token.can_reserve(ALICE, 41)
    assert x_token.unreserve(ALICE, 70) == 10
    assert x_token.reserved_balance(ALICE) == 0
    assert x_token.free_balance(ALICE) == 100

    x_token.reserve(ALICE, 30)
    assert x_token.repatriate_reserved(ALICE, BOB, 20, BalanceStatus.RESERVED) == 0
    assert currencies.reserved_balance(X_TOKEN_ID, BOB) == 20
    assert x_token.slash_reserved(ALICE, 15) == 5
    assert x_token.total_balance(ALICE) == 70


def test_repatriate_reserved_native_to_free(env):
    currencies, _, _ = env
    currencies.reserve(NATIVE_CURRENCY_ID, ALICE, 30)
    gap = currencies.repatriate_reserved(NATIVE_CURRENCY_ID, ALICE, BOB, 40, BalanceStatus.FREE)
    assert gap == 10
    assert currencies.free_balance(NATIVE_CURRENCY_ID, BOB) == 130
    assert currencies.reserved_balance(NATIVE_CURRENCY_ID, ALICE) == 0


def test_can_slash_and_ensure_can_withdraw(env):
    currencies, _, _ = env
    x_token = Currency(currencies, X_TOKEN_ID)
    assert x_token.can_slash(ALICE, 100)
    assert not currencies.can_slash(NATIVE_CURRENCY_ID, ALICE, 101)
    with pytest.raises(BalanceTooLow):
        x_token.ensure_can_withdraw(ALICE, 101)
    currencies.set_lock(ID_1, NATIVE_CURRENCY_ID, ALICE, 60)
    with pytest.raises(BalanceTooLow):
        currencies.ensure_can_withdraw(NATIVE_CURRENCY_ID, ALICE, 50)
    assert x_token.minimum_balance() == 0


def test_transfer_all_moves_everything(env):
    currencies, _, _ = env
    currencies.transfer_all(ALICE, EVA)
    assert currencies.free_balance(X_TOKEN_ID, ALICE) == 0
    assert currencies.free_balance(NATIVE_CURRENCY_ID, ALICE) == 0
    assert currencies.free_balance(X_TOKEN_ID, EVA) == 100
    assert currencies.free_balance(NATIVE_CURRENCY_ID, EVA) == 100


def test_transfer_all_is_all_or_nothing(env):
    currencies, _, _ = env
    currencies.set_lock(ID_1, NATIVE_CURRENCY_ID, ALICE, 10)
    with pytest.raises(BalanceTooLow):
        currencies.transfer_all(ALICE, EVA)
    assert currencies.free_balance(X_TOKEN_ID, ALICE) == 100
    assert currencies.free_balance(X_TOKEN_ID, EVA) == 0
    assert currencies.free_balance(NATIVE_CURRENCY_ID, ALICE) == 100