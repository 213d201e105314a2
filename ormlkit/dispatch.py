"""Call origins and the errors shared by every module."""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Any, Hashable


class DispatchError(Exception):
    """Base class of every error a call can fail with."""


class BadOrigin(DispatchError):
    """The call was made from an origin that is not allowed to make it."""


class ArithmeticOverflow(DispatchError):
    """An arithmetic operation went out of range."""


class OriginKind(enum.Enum):
    """Who a call comes from."""

    ROOT = "root"
    SIGNED = "signed"
    NONE = "none"


@dataclass(frozen=True)
class Origin:
    """The origin of a call: root, a signing account, or nobody."""

    kind: OriginKind
    who: Hashable | None = None

    @property
    def is_root(self) -> bool:
        return self.kind is OriginKind.ROOT

    @property
    def is_signed(self) -> bool:
        return self.kind is OriginKind.SIGNED


def signed(who: Hashable) -> Origin:
    """An origin signed by the account ``who``."""
    return Origin(OriginKind.SIGNED, who)


def root() -> Origin:
    """The root origin."""
    return Origin(OriginKind.ROOT)


def ensure_signed(origin: Origin) -> Any:
    """Return the signing account of ``origin`` or raise :class:`BadOrigin`."""
    if origin.kind is not OriginKind.SIGNED:
        raise BadOrigin("origin must be signed")
    return origin.who


def ensure_root(origin: Origin) -> None:
    """Raise :class:`BadOrigin` unless ``origin`` is root."""
    if origin.kind is not OriginKind.ROOT:
        raise BadOrigin("origin must be root")