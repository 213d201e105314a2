"""Read oracle values at a given block, the way an RPC endpoint serves them."""

from __future__ import annotations

from typing import Any, Hashable, Mapping

# Server error code reported for any failure of the runtime call.
RUNTIME_ERROR = 1


class RpcError(Exception):
    """A failed RPC call, with a JSON-RPC style code, message and data."""

    def __init__(self, code: int, message: str, data: str | None = None) -> None:
        super().__init__(message)
        self.code = code
        self.message = message
        self.data = data


class OracleRuntimeApi:
    """Oracle queries answered from the state of a given block.

    ``states`` maps a block hash to a mapping of provider id to a data provider
    offering ``get_no_op(key)`` and ``get_all_values()``, such as an oracle.
    An unknown block or provider raises :class:`KeyError`.
    """

    def __init__(self, states: Mapping[Hashable, Mapping[Hashable, Any]]) -> None:
        self.states = states

    def _provider(self, at: Hashable, provider_id: Hashable) -> Any:
        try:
            providers = self.states[at]
        except KeyError:
            raise KeyError(f"unknown block {at!r}") from None
        try:
            return providers[provider_id]
        except KeyError:
            raise KeyError(f"unknown provider {provider_id!r}") from None

    def get_value(self, at: Hashable, provider_id: Hashable, key: Any) -> Any:
        """The combined value of ``key`` from ``provider_id`` at block ``at``."""
        return self._provider(at, provider_id).get_no_op(key)

    def get_all_values(self, at: Hashable, provider_id: Hashable) -> list[tuple[Any, Any]]:
        """Every key with its combined value from ``provider_id`` at block ``at``."""
        return list(self._provider(at, provider_id).get_all_values())


class OracleRpc:
    """RPC front end over a client.

    The client provides ``runtime_api()``, returning an :class:`OracleRuntimeApi`,
    and ``best_hash``, the hash of the best block, used when no block is given.
    """

    def __init__(self, client: Any) -> None:
        self.client = client

    def _at(self, at: Hashable | None) -> Hashable:
        return self.client.best_hash if at is None else at

    def get_value(self, provider_id: Hashable, key: Any, at: Hashable | None = None) -> Any:
        """``oracle_getValue``: the value of ``key``, or ``None``."""
        api = self.client.runtime_api()
        block = self._at(at)
        try:
            return api.get_value(block, provider_id, key)
        except Exception as exc:
            raise RpcError(RUNTIME_ERROR, "Unable to get value.", repr(exc)) from exc

    def get_all_values(self, provider_id: Hashable, at: Hashable | None = None) -> list[tuple[Any, Any]]:
        """``oracle_getAllValues``: every key with its value."""
        api = self.client.runtime_api()
        block = self._at(at)
        try:
            return api.get_all_values(block, provider_id)
        except Exception as exc:
            raise RpcError(RUNTIME_ERROR, "Unable to get all values.", repr(exc)) from exc