"""On-disk cache of normalized table text, keyed by a hash of the chunk content.

Avoids paying for the same LLM call twice when a document is re-converted.
The cache is an instance, not module state, so concurrent conversions each
own theirs; a lock makes it safe to share between the worker threads of one
conversion.

Keys include a namespace (deployment + system prompt fingerprint), so a cache
file written under one model or prompt never answers for another.  The cache
is best effort: an unreadable file is treated as empty and a failed write is
logged and skipped, never raised into the conversion.
"""

import hashlib
import json
import logging
import threading
from pathlib import Path

logger = logging.getLogger(__name__)


def cache_key(text: str, namespace: str = "") -> str:
    """Return the SHA-256 hex digest of *text*, scoped to *namespace* when given."""
    payload = f"{namespace}\x00{text}" if namespace else text
    return hashlib.sha256(payload.encode("utf-8")).hexdigest()


class TableCache:
    """JSON-file-backed mapping of chunk hash -> normalized text."""

    def __init__(self, path: Path, namespace: str = ""):
        self.path = Path(path)
        self.namespace = namespace
        self._lock = threading.Lock()
        self._entries: dict[str, str] | None = None  # None = not yet loaded

    def _load(self) -> dict[str, str]:
        """Load entries from disk on first use (empty when the file is missing or unreadable)."""
        if self._entries is not None:
            return self._entries
        if not self.path.exists():
            self._entries = {}
            logger.info("No table cache found; will create %s", self.path)
            return self._entries

        try:
            with open(self.path, "r", encoding="utf-8") as fopen:
                entries = json.load(fopen)
        except (OSError, ValueError) as exc:
            logger.warning("Table cache %s is unreadable (%s); starting empty", self.path, exc)
            entries = {}
        if not isinstance(entries, dict):
            logger.warning("Table cache %s does not hold a JSON object; starting empty", self.path)
            entries = {}

        self._entries = entries
        logger.info("Loaded table cache with %d entries from %s", len(self._entries), self.path)
        return self._entries

    def _save(self, entries: dict[str, str]) -> None:
        """Persist *entries*; a failed write only costs a future cache miss."""
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with open(self.path, "w", encoding="utf-8") as fopen:
                json.dump(entries, fopen, indent=2, ensure_ascii=False)
        except OSError as exc:
            logger.warning("Could not write table cache %s: %s", self.path, exc)

    def get(self, text: str) -> str | None:
        """Return the cached normalization of *text*, or None."""
        with self._lock:
            value = self._load().get(cache_key(text, self.namespace))
        return value if isinstance(value, str) else None

    def put(self, text: str, normalized: str) -> None:
        """Store a normalization and persist the cache immediately."""
        with self._lock:
            entries = self._load()
            entries[cache_key(text, self.namespace)] = normalized
            self._save(entries)

    def __len__(self) -> int:
        with self._lock:
            return len(self._load())
