"""Token wallet with Redis backend and in-memory fallback."""

import logging
from abc import ABC, abstractmethod

import redis.asyncio as redis
from redis.exceptions import RedisError

from config import config
from core.errors import InsufficientFunds

logger = logging.getLogger(__name__)


class WalletStore(ABC):
    """Abstract wallet store: read a balance, apply a signed delta."""

    def __init__(self, starting_balance: int | None = None) -> None:
        self._starting_balance = (
            config.game.starting_balance if starting_balance is None else starting_balance
        )

    @abstractmethod
    async def get_balance(self, player_id: str) -> int:
        """Get a player's balance."""
        ...

    @abstractmethod
    async def apply_delta(self, player_id: str, delta: int) -> int:
        """
        Add a signed amount to a player's balance.

        Returns:
            The new balance

        Raises:
            InsufficientFunds: the balance would become negative
        """
        ...

    async def debit(self, player_id: str, amount: int) -> int:
        """Take tokens from a player."""
        return await self.apply_delta(player_id, -amount)

    async def credit(self, player_id: str, amount: int) -> int:
        """Give tokens to a player."""
        return await self.apply_delta(player_id, amount)


class InMemoryWalletStore(WalletStore):
    """In-memory wallet store for local development."""

    def __init__(self, starting_balance: int | None = None) -> None:
        super().__init__(starting_balance)
        self._balances: dict[str, int] = {}

    async def get_balance(self, player_id: str) -> int:
        """Get a player's balance."""
        return self._balances.get(player_id, self._starting_balance)

    async def apply_delta(self, player_id: str, delta: int) -> int:
        """Add a signed amount to a player's balance."""
        balance = await self.get_balance(player_id) + delta
        if balance < 0:
            raise InsufficientFunds()
        self._balances[player_id] = balance
        return balance


class RedisWalletStore(WalletStore):
    """Redis-backed wallet store."""

    def __init__(
        self,
        redis_client: "redis.Redis",
        starting_balance: int | None = None,
    ) -> None:
        super().__init__(starting_balance)
        self._redis = redis_client
        self._prefix = "whitejack:wallet:"

    def _key(self, player_id: str) -> str:
        """Get Redis key for a wallet."""
        return f"{self._prefix}{player_id}"

    async def _ensure(self, player_id: str) -> None:
        """Open a wallet with the starting balance if it does not exist."""
        await self._redis.set(self._key(player_id), self._starting_balance, nx=True)

    async def get_balance(self, player_id: str) -> int:
        """Get a player's balance."""
        await self._ensure(player_id)
        return int(await self._redis.get(self._key(player_id)))

    async def apply_delta(self, player_id: str, delta: int) -> int:
        """Add a signed amount, rolling back if the balance goes negative."""
        await self._ensure(player_id)
        balance = await self._redis.incrby(self._key(player_id), delta)
        if balance < 0:
            await self._redis.incrby(self._key(player_id), -delta)
            raise InsufficientFunds()
        return balance


# Global wallet store instance
_wallet_store: WalletStore | None = None


async def get_wallet_store() -> WalletStore:
    """Get or create the wallet store."""
    global _wallet_store

    if _wallet_store is not None:
        return _wallet_store

    if config.redis.enabled:
        try:
            redis_client = redis.from_url(config.redis.url, socket_connect_timeout=1)
            await redis_client.ping()
            _wallet_store = RedisWalletStore(redis_client)
            logger.info("Using Redis wallet store at %s:%s", config.redis.host, config.redis.port)
            return _wallet_store
        except (RedisError, OSError) as exc:
            logger.warning("Redis unavailable (%s), using in-memory wallet store", exc)

    _wallet_store = InMemoryWalletStore()
    return _wallet_store


def reset_wallet_store() -> None:
    """Forget the cached wallet store."""
    global _wallet_store
    _wallet_store = None
