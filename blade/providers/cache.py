"""Caller-owned cache of chat model instances.

Building a provider client is not free (HTTP session, auth, config), so
callers reuse instances keyed by provider, model and API key. The cache is
an ordinary object: whoever constructs chat models owns one and passes it
where it is needed. There is no module-level instance.

Usage:
    cache = ModelCache()
    model = cache.get_or_create("qwen", "qwen-turbo", api_key, build_qwen)
    manager.process_conversation(messages, model=model)

    cache.evict(ModelCache.make_key("qwen", "qwen-turbo", api_key))
"""

from __future__ import annotations

import hashlib
import logging
from collections.abc import Callable
from threading import RLock
from typing import Any

logger = logging.getLogger(__name__)


class ModelCache:
    """Mapping from cache key to model instance.

    Thread-safe for concurrent access. API keys never appear in cache keys;
    only a short SHA-256 prefix of the key is used.
    """

    def __init__(self) -> None:
        self._models: dict[str, Any] = {}
        self._lock = RLock()

    @staticmethod
    def make_key(provider: str, model_name: str, api_key: str | None = None) -> str:
        """Build the cache key for a provider/model/API key triple."""
        key_hash = hashlib.sha256((api_key or "").encode()).hexdigest()[:12]
        return f"{provider}:{model_name}:{key_hash}"

    def get_or_create(
        self,
        provider: str,
        model_name: str,
        api_key: str | None,
        factory: Callable[[], Any],
    ) -> Any:
        """Return the cached model, building it with ``factory`` on a miss.

        Args:
            provider: Provider name, e.g. "qwen" or "volcengine".
            model_name: Model identifier.
            api_key: API key the instance is bound to.
            factory: Zero-argument callable building the instance.

        Returns:
            The cached or newly built instance.
        """
        key = self.make_key(provider, model_name, api_key)
        with self._lock:
            if key not in self._models:
                logger.info("Creating chat model %s/%s", provider, model_name)
                self._models[key] = factory()
            return self._models[key]

    def get(self, key: str) -> Any | None:
        with self._lock:
            return self._models.get(key)

    def evict(self, key: str) -> bool:
        """Drop one instance. Returns True if it was cached."""
        with self._lock:
            removed = self._models.pop(key, None) is not None
        if removed:
            logger.debug("Evicted chat model %s", key)
        return removed

    def clear(self) -> None:
        with self._lock:
            self._models.clear()

    def keys(self) -> list[str]:
        with self._lock:
            return list(self._models)

    def __len__(self) -> int:
        with self._lock:
            return len(self._models)

    def __contains__(self, key: object) -> bool:
        with self._lock:
            return key in self._models
