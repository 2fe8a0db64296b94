"""
In-memory bearer token cache

Tokens are keyed by (base URL, client id) and kept for HALF of the
carrier-declared expires_in, so a token is refreshed at its midlife rather
than at actual expiry. This bounds staleness and tolerates clock skew
between client and carrier.

Concurrent misses for the same key are coalesced into a single credential
exchange with a per-key asyncio.Lock. Different keys never wait on each
other.
"""
import asyncio
import logging
import time
from collections import defaultdict
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Dict, Optional, Tuple

logger = logging.getLogger(__name__)


@dataclass
class CachedToken:
    """Access token as returned by the carrier."""
    access_token: str
    token_type: str = "Bearer"
    client_id: str = ""
    expires_in: int = 0
    raw: Dict[str, Any] = field(default_factory=dict, repr=False)

    @classmethod
    def from_response(cls, data: Dict[str, Any]) -> "CachedToken":
        """Build from the carrier's JSON, keeping every field verbatim in raw."""
        return cls(
            access_token=data.get("access_token", ""),
            token_type=data.get("token_type", "Bearer"),
            client_id=data.get("client_id", ""),
            expires_in=int(data.get("expires_in") or 0),
            raw=dict(data),
        )

    def to_dict(self) -> Dict[str, Any]:
        payload = dict(self.raw)
        payload.setdefault("access_token", self.access_token)
        payload.setdefault("token_type", self.token_type)
        payload.setdefault("client_id", self.client_id)
        payload.setdefault("expires_in", self.expires_in)
        return payload

    @property
    def authorization(self) -> str:
        """Value for the Authorization header."""
        return f"Bearer {self.access_token}"


class TokenCache:
    """
    Process-lifetime token store.

    One instance is owned by each client by default; pass the same instance
    to several clients to share tokens between them.
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic):
        self._clock = clock
        self._entries: Dict[str, Tuple[CachedToken, float]] = {}
        self._locks: Dict[str, asyncio.Lock] = defaultdict(asyncio.Lock)

    @staticmethod
    def cache_key(base_url: str, client_id: str) -> str:
        return f"{base_url}?client_id={client_id}"

    def __len__(self) -> int:
        return len(self._entries)

    def get(self, key: str) -> Optional[CachedToken]:
        """Return the live entry for key, or None. Expired entries are dropped."""
        entry = self._entries.get(key)
        if entry is None:
            return None

        token, deadline = entry
        if self._clock() >= deadline:
            del self._entries[key]
            return None
        return token

    def put(self, key: str, token: CachedToken, ttl: float) -> None:
        self._entries[key] = (token, self._clock() + ttl)

    def clear(self) -> None:
        self._entries.clear()
        self._locks.clear()

    async def resolve(
        self,
        key: str,
        exchange: Callable[[], Awaitable[CachedToken]],
    ) -> CachedToken:
        """
        Return a live token for key, running exchange() on a miss.

        Args:
            key: Cache key from cache_key()
            exchange: Coroutine factory performing the credential exchange

        Returns:
            The cached or freshly exchanged token

        Raises:
            Whatever exchange() raises; nothing is cached in that case.
        """
        token = self.get(key)
        if token is not None:
            logger.debug("Access token cache hit")
            return token

        async with self._locks[key]:
            # Another task may have finished the exchange while we waited
            token = self.get(key)
            if token is not None:
                logger.debug("Access token cache hit after waiting on exchange")
                return token

            logger.debug("Access token cache miss, exchanging credentials")
            token = await exchange()

            ttl = token.expires_in / 2
            self.put(key, token, ttl)
            logger.info(f"Access token cached for {ttl:.0f}s (expires_in={token.expires_in}s)")
            return token
