"""Short-lived in-memory store for ingested images.

Tools hand back an opaque ``img_...`` token instead of echoing large base64
payloads, and later calls pass the token to reference the same image.
"""

import secrets
import time
from collections.abc import Callable
from dataclasses import dataclass

DEFAULT_TTL = 15 * 60  # seconds
DEFAULT_MAX_ENTRIES = 10
TOKEN_PREFIX = "img_"


@dataclass(frozen=True)
class CachedImage:
    base64: str
    mime_type: str
    path: str
    size: int
    inserted_at: float


class ImageCache:
    """Bounded TTL cache keyed by generated tokens.

    Entries live for ``ttl`` seconds; when ``max_entries`` is reached the
    oldest inserted entry is evicted. Every operation is synchronous, so a
    single event loop never observes a half-applied eviction.
    """

    def __init__(
        self,
        ttl: float = DEFAULT_TTL,
        max_entries: int = DEFAULT_MAX_ENTRIES,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.ttl = ttl
        self.max_entries = max_entries
        self._clock = clock
        self._entries: dict[str, CachedImage] = {}

    @staticmethod
    def is_token(value: str) -> bool:
        return value.startswith(TOKEN_PREFIX)

    def _new_token(self) -> str:
        return f"{TOKEN_PREFIX}{int(time.time() * 1000)}_{secrets.token_hex(4)}"

    def _expired(self, entry: CachedImage, now: float) -> bool:
        return now - entry.inserted_at > self.ttl

    def _purge(self) -> None:
        now = self._clock()
        for token in [t for t, entry in self._entries.items() if self._expired(entry, now)]:
            del self._entries[token]

    def store(self, base64_data: str, mime_type: str, source_path: str = "") -> str:
        """Insert an image and return its token."""
        self._purge()
        if len(self._entries) >= self.max_entries:
            # dicts keep insertion order, so the first key is the oldest
            oldest = next(iter(self._entries))
            del self._entries[oldest]

        token = self._new_token()
        while token in self._entries:
            token = self._new_token()
        self._entries[token] = CachedImage(
            base64=base64_data,
            mime_type=mime_type,
            path=source_path,
            size=len(base64_data),
            inserted_at=self._clock(),
        )
        return token

    def get(self, token: str) -> CachedImage | None:
        """Return the entry, or None if unknown or older than the TTL."""
        entry = self._entries.get(token)
        if entry is None:
            return None
        if self._expired(entry, self._clock()):
            del self._entries[token]
            return None
        return entry

    def has(self, token: str) -> bool:
        return self.get(token) is not None

    def clear(self) -> None:
        self._entries.clear()

    def stats(self) -> dict[str, int]:
        self._purge()
        return {
            "count": len(self._entries),
            "total_size": sum(entry.size for entry in self._entries.values()),
        }

    def __len__(self) -> int:
        return len(self._entries)
