"""Scheduled, step-by-step updates of raw storage values."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, MutableMapping

from ormlkit.dispatch import DispatchError, Origin, ensure_root
from ormlkit.weights import GraduallyUpdateWeightInfo

# Values are unsigned integers of at most 128 bits, stored little-endian.
MAX_VALUE_BYTES = 16


class GraduallyUpdateError(DispatchError):
    """Base class of the errors raised by :class:`GraduallyUpdater`."""


class InvalidPerBlockOrTargetValue(GraduallyUpdateError):
    """``per_block`` and ``target_value`` differ in length or exceed 16 bytes."""


class InvalidTargetValue(GraduallyUpdateError):
    """The stored value and ``target_value`` differ in length."""


class GraduallyUpdateHasExisted(GraduallyUpdateError):
    """The same update is already scheduled."""


class GraduallyUpdateNotFound(GraduallyUpdateError):
    """No update is scheduled for the key."""


class MaxGraduallyUpdateExceeded(GraduallyUpdateError):
    """Too many updates are scheduled."""


class MaxStorageKeyBytesExceeded(GraduallyUpdateError):
    """The key is longer than allowed."""


class MaxStorageValueBytesExceeded(GraduallyUpdateError):
    """A value is longer than allowed."""


def _as_bytes(value: Any) -> bytes:
    return value if isinstance(value, bytes) else bytes(value)


@dataclass(frozen=True)
class GraduallyUpdate:
    """Move the value at ``key`` towards ``target_value`` by ``per_block`` per block."""

    key: bytes
    target_value: bytes
    per_block: bytes

    def __post_init__(self) -> None:
        object.__setattr__(self, "key", _as_bytes(self.key))
        object.__setattr__(self, "target_value", _as_bytes(self.target_value))
        object.__setattr__(self, "per_block", _as_bytes(self.per_block))


@dataclass(frozen=True)
class GraduallyUpdateAdded:
    key: bytes
    per_block: bytes
    target_value: bytes


@dataclass(frozen=True)
class GraduallyUpdateCancelled:
    key: bytes


@dataclass(frozen=True)
class Updated:
    block_number: int
    key: bytes
    target_value: bytes


class GraduallyUpdater:
    """Keeps the scheduled updates and applies them every ``update_frequency`` blocks."""

    def __init__(
        self,
        storage: MutableMapping[bytes, bytes] | None,
        update_frequency: int,
        max_gradually_update: int,
        max_storage_key_bytes: int,
        max_storage_value_bytes: int,
        weights: GraduallyUpdateWeightInfo | None = None,
    ) -> None:
        self.storage: MutableMapping[bytes, bytes] = {} if storage is None else storage
        self.update_frequency = update_frequency
        self.max_gradually_update = max_gradually_update
        self.max_storage_key_bytes = max_storage_key_bytes
        self.max_storage_value_bytes = max_storage_value_bytes
        self.weights = weights if weights is not None else GraduallyUpdateWeightInfo()
        self.last_updated_at = 0
        self.events: list[Any] = []
        self._updates: list[GraduallyUpdate] = []

    @property
    def updates(self) -> tuple[GraduallyUpdate, ...]:
        """The updates still in progress."""
        return tuple(self._updates)

    def _check_key(self, key: bytes) -> None:
        if len(key) > self.max_storage_key_bytes:
            raise MaxStorageKeyBytesExceeded(f"key of {len(key)} bytes")

    def _check_value(self, value: bytes) -> None:
        if len(value) > self.max_storage_value_bytes:
            raise MaxStorageValueBytesExceeded(f"value of {len(value)} bytes")

    def gradually_update(self, origin: Origin, update: GraduallyUpdate) -> None:
        """Schedule ``update``; root only."""
        ensure_root(origin)
        self._check_key(update.key)
        self._check_value(update.target_value)
        self._check_value(update.per_block)

        if len(update.per_block) != len(update.target_value) or len(update.per_block) > MAX_VALUE_BYTES:
            raise InvalidPerBlockOrTargetValue("per_block and target_value must match, at most 16 bytes")

        current = self.storage.get(update.key)
        if current is not None and len(current) != len(update.target_value):
            raise InvalidTargetValue("target_value length differs from the stored value")

        if update in self._updates:
            raise GraduallyUpdateHasExisted("update already scheduled")
        if len(self._updates) >= self.max_gradually_update:
            raise MaxGraduallyUpdateExceeded("too many updates scheduled")

        self._updates.append(update)
        self.events.append(GraduallyUpdateAdded(update.key, update.per_block, update.target_value))

    def cancel_gradually_update(self, origin: Origin, key: bytes) -> None:
        """Cancel every update scheduled for ``key``; root only."""
        ensure_root(origin)
        key = _as_bytes(key)
        self._check_key(key)

        remaining = [item for item in self._updates if item.key != key]
        if len(remaining) == len(self._updates):
            raise GraduallyUpdateNotFound("no update scheduled for key")
        self._updates = remaining
        self.events.append(GraduallyUpdateCancelled(key))

    def _need_update(self, now: int) -> bool:
        return now >= self.last_updated_at + self.update_frequency

    def on_initialize(self, now: int) -> int:
        """Weight that :meth:`on_finalize` will use at block ``now``."""
        if self._need_update(now):
            return self.weights.on_finalize(len(self._updates))
        return 0

    def on_finalize(self, now: int) -> None:
        """Step every scheduled update if enough blocks have passed."""
        if not self._need_update(now):
            return

        step_blocks = self.update_frequency
        kept: list[GraduallyUpdate] = []
        for update in self._updates:
            current = int.from_bytes(self.storage.get(update.key, b""), "little")
            step = int.from_bytes(update.per_block, "little") * step_blocks
            target = int.from_bytes(update.target_value, "little")

            if current > target:
                new_value = max(current - step, target)
            else:
                new_value = min(current + step, target)

            value = new_value.to_bytes(MAX_VALUE_BYTES, "little")[: len(update.target_value)]
            self.storage[update.key] = value
            self.events.append(Updated(now, update.key, value))

            if new_value != target:
                kept.append(update)

        self._updates = kept
        self.last_updated_at = now