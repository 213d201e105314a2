"""Non-fungible tokens: classes of tokens that can be minted, moved and burned."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Hashable, Iterable

from ormlkit.dispatch import ArithmeticOverflow, DispatchError

U64_MAX = 2**64 - 1


class NftError(DispatchError):
    """Base class of the errors raised by :class:`NonFungibleTokens`."""


class NoAvailableClassId(NftError):
    """No class id is left to hand out."""


class NoAvailableTokenId(NftError):
    """No token id is left to hand out in this class."""


class TokenNotFound(NftError):
    """The token does not exist."""


class ClassNotFound(NftError):
    """The class does not exist."""


class NoPermission(NftError):
    """The caller does not own the token or class."""


class CannotDestroyClass(NftError):
    """The class still has tokens in issue."""


class MaxMetadataExceeded(NftError):
    """The metadata is longer than allowed."""


@dataclass
class ClassInfo:
    """A token class: its metadata, issuance, owner and properties."""

    metadata: bytes
    total_issuance: int
    owner: Hashable
    data: Any


@dataclass
class TokenInfo:
    """A token: its metadata, owner and properties."""

    metadata: bytes
    owner: Hashable
    data: Any


class NonFungibleTokens:
    """Registry of token classes and the tokens minted in them."""

    def __init__(
        self,
        max_class_metadata: int,
        max_token_metadata: int,
        max_class_id: int = U64_MAX,
        max_token_id: int = U64_MAX,
    ) -> None:
        self.max_class_metadata = max_class_metadata
        self.max_token_metadata = max_token_metadata
        self.max_class_id = max_class_id
        self.max_token_id = max_token_id
        self.next_class_id = 0
        self.classes: dict[int, ClassInfo] = {}
        self.tokens: dict[tuple[int, int], TokenInfo] = {}
        self._next_token_ids: dict[int, int] = {}
        self._tokens_by_owner: set[tuple[Hashable, int, int]] = set()

    @staticmethod
    def _bounded(metadata: Iterable[int], limit: int) -> bytes:
        value = bytes(metadata)
        if len(value) > limit:
            raise MaxMetadataExceeded(f"metadata of {len(value)} bytes exceeds {limit}")
        return value

    def next_token_id(self, class_id: int) -> int:
        """The id the next token minted in ``class_id`` will get."""
        return self._next_token_ids.get(class_id, 0)

    def create_class(self, owner: Hashable, metadata: Iterable[int], data: Any) -> int:
        """Create a class owned by ``owner`` and return its id."""
        bounded = self._bounded(metadata, self.max_class_metadata)
        class_id = self.next_class_id
        if class_id >= self.max_class_id:
            raise NoAvailableClassId("no class id available")
        self.next_class_id = class_id + 1
        self.classes[class_id] = ClassInfo(bounded, 0, owner, data)
        return class_id

    def transfer(self, from_: Hashable, to: Hashable, token: tuple[int, int]) -> None:
        """Move ``token`` from ``from_`` to ``to``."""
        class_id, token_id = token
        info = self.tokens.get((class_id, token_id))
        if info is None:
            raise TokenNotFound(f"token {token} not found")
        if info.owner != from_:
            raise NoPermission("sender does not own the token")
        if from_ == to:
            return
        info.owner = to
        self._tokens_by_owner.discard((from_, class_id, token_id))
        self._tokens_by_owner.add((to, class_id, token_id))

    def mint(self, owner: Hashable, class_id: int, metadata: Iterable[int], data: Any) -> int:
        """Mint a token of ``class_id`` to ``owner`` and return its id."""
        bounded = self._bounded(metadata, self.max_token_metadata)
        token_id = self.next_token_id(class_id)
        if token_id >= self.max_token_id:
            raise NoAvailableTokenId("no token id available")
        class_info = self.classes.get(class_id)
        if class_info is None:
            raise ClassNotFound(f"class {class_id} not found")
        if class_info.total_issuance >= self.max_token_id:
            raise ArithmeticOverflow("total issuance overflow")

        self._next_token_ids[class_id] = token_id + 1
        class_info.total_issuance += 1
        self.tokens[(class_id, token_id)] = TokenInfo(bounded, owner, data)
        self._tokens_by_owner.add((owner, class_id, token_id))
        return token_id

    def burn(self, owner: Hashable, token: tuple[int, int]) -> None:
        """Destroy ``token``, which ``owner`` must own."""
        class_id, token_id = token
        info = self.tokens.get((class_id, token_id))
        if info is None:
            raise TokenNotFound(f"token {token} not found")
        if info.owner != owner:
            raise NoPermission("caller does not own the token")
        class_info = self.classes.get(class_id)
        if class_info is None:
            raise ClassNotFound(f"class {class_id} not found")
        if class_info.total_issuance == 0:
            raise ArithmeticOverflow("total issuance underflow")

        class_info.total_issuance -= 1
        del self.tokens[(class_id, token_id)]
        self._tokens_by_owner.discard((owner, class_id, token_id))

    def destroy_class(self, owner: Hashable, class_id: int) -> None:
        """Remove a class that ``owner`` owns and that has no tokens in issue."""
        info = self.classes.get(class_id)
        if info is None:
            raise ClassNotFound(f"class {class_id} not found")
        if info.owner != owner:
            raise NoPermission("caller does not own the class")
        if info.total_issuance != 0:
            raise CannotDestroyClass("class still has tokens in issue")
        del self.classes[class_id]
        self._next_token_ids.pop(class_id, None)

    def is_owner(self, account: Hashable, token: tuple[int, int]) -> bool:
        """Whether ``account`` owns ``token``."""
        class_id, token_id = token
        return (account, class_id, token_id) in self._tokens_by_owner

    def build_genesis(self, tokens: Iterable[tuple[Any, Any, Any, Iterable[tuple[Any, Any, Any]]]]) -> None:
        """Create classes and mint tokens from ``(owner, metadata, data, tokens)`` entries."""
        for owner, metadata, data, class_tokens in tokens:
            class_id = self.create_class(owner, metadata, data)
            for account, token_metadata, token_data in class_tokens:
                self.mint(account, class_id, token_metadata, token_data)