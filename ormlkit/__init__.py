"""In-memory ledger components: currency routing, NFTs, oracles, reward pools and gradual updates."""

__version__ = "0.1.0"
__all__ = [
    "adapter",
    "currencies",
    "dispatch",
    "gradually_update",
    "nft",
    "oracle",
    "oracle_rpc",
    "rewards",
    "weights",
]