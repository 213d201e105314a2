"""Oracle: authorised operators feed raw values that are combined into one value."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Hashable, Iterable, Sequence

from ormlkit.dispatch import BadOrigin, DispatchError, Origin
from ormlkit.weights import OracleWeightInfo


class OracleError(DispatchError):
    """Base class of the errors raised by :class:`Oracle`."""


class NoPermission(OracleError):
    """The sender is not an oracle operator."""


class AlreadyFeeded(OracleError):
    """The operator has already fed values in this block."""


@dataclass(frozen=True, order=True)
class TimestampedValue:
    """A value together with the moment it was fed."""

    value: Any
    timestamp: int


@dataclass(frozen=True)
class NewFeedData:
    """Emitted when an operator feeds values."""

    sender: Hashable
    values: tuple[tuple[Any, Any], ...]


class DefaultCombineData:
    """Combine raw values into their median, ignoring expired ones.

    Falls back to the previous combined value when too few fresh values remain.
    """

    def __init__(self, minimum_count: int, expires_in: int) -> None:
        self.minimum_count = minimum_count
        self.expires_in = expires_in

    def combine_data(
        self,
        key: Any,
        values: Iterable[TimestampedValue],
        prev_value: TimestampedValue | None,
        now: int,
    ) -> TimestampedValue | None:
        fresh = [item for item in values if item.timestamp + self.expires_in > now]
        count = len(fresh)
        if count < self.minimum_count or count == 0:
            return prev_value
        fresh.sort(key=lambda item: item.value)
        return fresh[count // 2]


class Oracle:
    """Collects values fed by operators and serves the combined result."""

    def __init__(
        self,
        members: Sequence[Hashable] | Callable[[], Iterable[Hashable]],
        root_operator: Hashable,
        clock: Callable[[], int],
        combine_data: DefaultCombineData,
        on_new_data: Callable[[Hashable, Any, Any], None] | None = None,
        max_has_dispatched_size: int = 100,
        weights: OracleWeightInfo | None = None,
    ) -> None:
        self._members_source = members
        self.root_operator = root_operator
        self.clock = clock
        self.combine_data = combine_data
        self.on_new_data = on_new_data
        self.max_has_dispatched_size = max_has_dispatched_size
        self.weights = weights if weights is not None else OracleWeightInfo()
        self.events: list[Any] = []
        self._raw_values: dict[tuple[Hashable, Any], TimestampedValue] = {}
        self._is_updated: set[Any] = set()
        self._values: dict[Any, TimestampedValue] = {}
        self._has_dispatched: set[Hashable] = set()

    def _members(self) -> list[Hashable]:
        source = self._members_source
        return list(source() if callable(source) else source)

    def feed_values(self, origin: Origin, values: Iterable[tuple[Any, Any]]) -> None:
        """Feed ``(key, value)`` pairs from a signed operator or from root."""
        if origin.is_signed:
            who: Hashable | None = origin.who
        elif origin.is_root:
            who = None
        else:
            raise BadOrigin("origin must be signed or root")
        self._do_feed_values(who, list(values))

    def feed_value(self, who: Hashable, key: Any, value: Any) -> None:
        """Feed a single value on behalf of ``who``."""
        self._do_feed_values(who, [(key, value)])

    def _do_feed_values(self, who: Hashable | None, values: list[tuple[Any, Any]]) -> None:
        if who is None:
            who = self.root_operator
        elif who not in self._members():
            raise NoPermission(f"{who!r} is not an oracle operator")

        if who in self._has_dispatched or len(self._has_dispatched) >= self.max_has_dispatched_size:
            raise AlreadyFeeded(f"{who!r} has already fed in this block")
        self._has_dispatched.add(who)

        now = self.clock()
        for key, value in values:
            self._raw_values[(who, key)] = TimestampedValue(value, now)
            self._is_updated.discard(key)
            if self.on_new_data is not None:
                self.on_new_data(who, key, value)
        self.events.append(NewFeedData(who, tuple((key, value) for key, value in values)))

    def raw_value(self, who: Hashable, key: Any) -> TimestampedValue | None:
        """The raw value ``who`` fed for ``key``, if any."""
        return self._raw_values.get((who, key))

    def is_updated(self, key: Any) -> bool:
        """Whether the stored combined value for ``key`` is up to date."""
        return key in self._is_updated

    def read_raw_values(self, key: Any) -> list[TimestampedValue]:
        """Raw values for ``key`` from every operator and the root operator."""
        feeders = [*self._members(), self.root_operator]
        return [self._raw_values[(who, key)] for who in feeders if (who, key) in self._raw_values]

    def _combined(self, key: Any) -> TimestampedValue | None:
        return self.combine_data.combine_data(
            key, self.read_raw_values(key), self._values.get(key), self.clock()
        )

    def get(self, key: Any) -> TimestampedValue | None:
        """The combined value for ``key``, recomputing and storing it if stale."""
        if self.is_updated(key):
            return self._values.get(key)
        combined = self._combined(key)
        if combined is None:
            return None
        self._values[key] = combined
        self._is_updated.add(key)
        return combined

    def get_no_op(self, key: Any) -> TimestampedValue | None:
        """The combined value for ``key`` without changing any state."""
        if self.is_updated(key):
            return self._values.get(key)
        return self._combined(key)

    def get_all_values(self) -> list[tuple[Any, TimestampedValue | None]]:
        """Every key with a stored combined value, with its current value."""
        return [(key, self.get_no_op(key)) for key in list(self._values)]

    def on_initialize(self, now: int) -> int:
        """Weight that :meth:`on_finalize` will use."""
        return self.weights.on_finalize()

    def on_finalize(self, now: int) -> None:
        """Let every operator feed again in the next block."""
        self._has_dispatched.clear()

    def change_members_sorted(
        self, incoming: Iterable[Hashable], outgoing: Iterable[Hashable], new: Iterable[Hashable]
    ) -> None:
        """Drop raw values of removed operators and mark every key stale."""
        removed = set(outgoing)
        self._raw_values = {
            (who, key): value for (who, key), value in self._raw_values.items() if who not in removed
        }
        self._is_updated.clear()

    def set_prime(self, prime: Hashable | None) -> None:
        """The oracle has no use for a prime member."""