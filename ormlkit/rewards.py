"""Reward pools: shares earn a proportional part of each reward currency."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, Hashable

from ormlkit.dispatch import DispatchError

U64_MAX = 2**64 - 1

Payout = Callable[[Hashable, Hashable, Hashable, int], None]


class PoolDoesNotExist(DispatchError):
    """The reward pool does not exist."""


@dataclass
class PoolInfo:
    """Total shares of a pool and, per currency, ``(total_reward, total_withdrawn_reward)``."""

    total_shares: int = 0
    rewards: dict[Any, tuple[int, int]] = field(default_factory=dict)


class Rewards:
    """Tracks shares in reward pools and pays out accumulated rewards.

    ``handler`` is called as ``handler(who, pool, currency_id, amount)`` for every payout.
    Shares and balances saturate at ``max_share`` and ``max_balance``.
    """

    def __init__(
        self,
        handler: Payout | None = None,
        max_share: int = U64_MAX,
        max_balance: int = U64_MAX,
    ) -> None:
        self.handler = handler
        self.max_share = max_share
        self.max_balance = max_balance
        self.pools: dict[Hashable, PoolInfo] = {}
        self.shares: dict[tuple[Hashable, Hashable], tuple[int, dict[Any, int]]] = {}

    def _share_add(self, a: int, b: int) -> int:
        return min(a + b, self.max_share)

    def _balance_add(self, a: int, b: int) -> int:
        return min(a + b, self.max_balance)

    @staticmethod
    def _sub(a: int, b: int) -> int:
        return max(a - b, 0)

    def _ratio(self, numerator_a: int, numerator_b: int, denominator: int) -> int:
        if denominator == 0:
            return 0
        return min(numerator_a * numerator_b // denominator, self.max_balance)

    def pool_info(self, pool: Hashable) -> PoolInfo:
        """A copy of the pool's info, or an empty one if the pool does not exist."""
        info = self.pools.get(pool)
        if info is None:
            return PoolInfo()
        return PoolInfo(info.total_shares, dict(info.rewards))

    def shares_and_withdrawn_rewards(self, pool: Hashable, who: Hashable) -> tuple[int, dict[Any, int]]:
        """``(share, withdrawn rewards per currency)`` of ``who`` in ``pool``."""
        share, withdrawn = self.shares.get((pool, who), (0, {}))
        return share, dict(withdrawn)

    def accumulate_reward(self, pool: Hashable, reward_currency: Any, reward_increment: int) -> None:
        """Add ``reward_increment`` of ``reward_currency`` to an existing pool."""
        if reward_increment == 0:
            return
        info = self.pools.get(pool)
        if info is None:
            raise PoolDoesNotExist(f"pool {pool!r} does not exist")
        if reward_currency in info.rewards:
            total, withdrawn = info.rewards[reward_currency]
            info.rewards[reward_currency] = (self._balance_add(total, reward_increment), withdrawn)
        else:
            info.rewards[reward_currency] = (reward_increment, 0)

    def add_share(self, who: Hashable, pool: Hashable, add_amount: int) -> None:
        """Give ``who`` ``add_amount`` more shares of ``pool``."""
        if add_amount == 0:
            return
        info = self.pools.setdefault(pool, PoolInfo())
        initial_total_shares = info.total_shares
        info.total_shares = self._share_add(info.total_shares, add_amount)

        inflation: dict[Any, int] = {}
        for currency in sorted(info.rewards):
            total, withdrawn = info.rewards[currency]
            reward_inflation = self._ratio(add_amount, total, initial_total_shares)
            info.rewards[currency] = (
                self._balance_add(total, reward_inflation),
                self._balance_add(withdrawn, reward_inflation),
            )
            inflation[currency] = reward_inflation

        share, withdrawn_rewards = self.shares.get((pool, who), (0, {}))
        share = self._share_add(share, add_amount)
        for currency, reward_inflation in inflation.items():
            withdrawn_rewards[currency] = self._balance_add(
                withdrawn_rewards.get(currency, 0), reward_inflation
            )
        self.shares[(pool, who)] = (share, withdrawn_rewards)

    def remove_share(self, who: Hashable, pool: Hashable, remove_amount: int) -> None:
        """Claim ``who``'s rewards, then take away up to ``remove_amount`` shares."""
        if remove_amount == 0:
            return
        self.claim_rewards(who, pool)

        entry = self.shares.pop((pool, who), None)
        if entry is None:
            return
        share, withdrawn_rewards = entry
        remove_amount = min(remove_amount, share)
        if remove_amount == 0:
            return

        info = self.pools.pop(pool, None)
        if info is not None:
            info.total_shares = self._sub(info.total_shares, remove_amount)
            for currency in sorted(withdrawn_rewards):
                withdrawn_reward = withdrawn_rewards[currency]
                to_remove = self._ratio(remove_amount, withdrawn_reward, share)
                if currency in info.rewards:
                    total, total_withdrawn = info.rewards[currency]
                    total = self._sub(total, to_remove)
                    total_withdrawn = self._sub(total_withdrawn, to_remove)
                    if total == 0:
                        del info.rewards[currency]
                    else:
                        info.rewards[currency] = (total, total_withdrawn)
                withdrawn_rewards[currency] = self._sub(withdrawn_reward, to_remove)
            if info.total_shares != 0:
                self.pools[pool] = info

        share = self._sub(share, remove_amount)
        if share != 0:
            self.shares[(pool, who)] = (share, withdrawn_rewards)

    def set_share(self, who: Hashable, pool: Hashable, new_share: int) -> None:
        """Add or remove shares so that ``who`` holds ``new_share`` of ``pool``."""
        share, _ = self.shares_and_withdrawn_rewards(pool, who)
        if new_share > share:
            self.add_share(who, pool, new_share - share)
        else:
            self.remove_share(who, pool, share - new_share)

    def claim_rewards(self, who: Hashable, pool: Hashable) -> None:
        """Pay ``who`` every reward it has earned but not yet withdrawn."""
        entry = self.shares.get((pool, who))
        if entry is None:
            return
        share, withdrawn_rewards = entry
        if share == 0:
            return

        info = self.pools.setdefault(pool, PoolInfo())
        total_shares = info.total_shares
        for currency in sorted(info.rewards):
            total, total_withdrawn = info.rewards[currency]
            withdrawn_reward = withdrawn_rewards.get(currency, 0)
            proportion = self._ratio(share, total, total_shares)
            reward_to_withdraw = min(
                self._sub(proportion, withdrawn_reward),
                self._sub(total, total_withdrawn),
            )
            if reward_to_withdraw == 0:
                continue
            info.rewards[currency] = (total, self._balance_add(total_withdrawn, reward_to_withdraw))
            withdrawn_rewards[currency] = self._balance_add(withdrawn_reward, reward_to_withdraw)
            if self.handler is not None:
                self.handler(who, pool, currency, reward_to_withdraw)