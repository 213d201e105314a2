"""Default call weights, with saturating 64-bit arithmetic."""

from __future__ import annotations

MAX_WEIGHT = 2**64 - 1

# Cost of one database read and one database write.
DB_READ_WEIGHT = 25_000_000
DB_WRITE_WEIGHT = 100_000_000


def _saturate(value: int) -> int:
    return min(max(value, 0), MAX_WEIGHT)


def _add(*parts: int) -> int:
    total = 0
    for part in parts:
        total = _saturate(total + part)
    return total


def _mul(a: int, b: int) -> int:
    return _saturate(a * b)


def db_reads(count: int) -> int:
    """Weight of ``count`` database reads."""
    return _mul(DB_READ_WEIGHT, count)


def db_writes(count: int) -> int:
    """Weight of ``count`` database writes."""
    return _mul(DB_WRITE_WEIGHT, count)


class CurrenciesWeightInfo:
    """Default weights of the currencies calls."""

    def transfer_non_native_currency(self) -> int:
        return _add(60_000_000, db_reads(5), db_writes(4))

    def transfer_native_currency(self) -> int:
        return _add(60_000_000, db_reads(3), db_writes(2))

    def update_balance_non_native_currency(self) -> int:
        return _add(29_000_000, db_reads(3), db_writes(3))

    def update_balance_native_currency_creating(self) -> int:
        return _add(31_000_000, db_reads(1), db_writes(1))

    def update_balance_native_currency_killing(self) -> int:
        return _add(37_000_000, db_reads(3), db_writes(2))


class GraduallyUpdateWeightInfo:
    """Default weights of the gradual-update calls and hooks."""

    def gradually_update(self) -> int:
        return _add(57_922_000, db_reads(2), db_writes(1))

    def cancel_gradually_update(self) -> int:
        return _add(66_687_000, db_reads(1), db_writes(1))

    def on_finalize(self, u: int) -> int:
        return _add(37_067_000, _mul(20_890_000, u), db_reads(3), db_writes(3))


class OracleWeightInfo:
    """Default weights of the oracle calls and hooks."""

    def feed_values(self, c: int) -> int:
        return _add(
            16_800_000,
            _mul(3_600_000, c),
            db_reads(3),
            db_writes(1),
            db_writes(_mul(2, c)),
        )

    def on_finalize(self) -> int:
        return _add(3_000_000, db_writes(1))