"""Prompt store resolving symbolic prompt keys to prompt text."""

import logging
import time
from typing import Dict, Optional, Tuple
import redis
from shared.constants import PROMPT_CACHE_TTL_SECONDS, PROMPT_KEY

logger = logging.getLogger(__name__)

FALLBACK_PROMPTS: Dict[str, str] = {
    "collection_greeting": (
        "You are Neria, a positive YouTube coach. Write exactly two sentences, no more, no less. "
        "Start the first sentence with: Hey {{given_name}}, and speak in a warm, affirming tone. "
        "Mention briefly the channel {{channel_title}} with {{subscriber_count}} subscribers and "
        "{{video_count}} videos, and that you're collecting data now."
    ),
    "competitor_strategy_system": (
        "You are a YouTube strategy analyst. Analyze competitor video titles and identify successful patterns."
    ),
    "growth_recommendations_system": (
        "You are a YouTube growth strategist. Provide actionable recommendations based on competitor analysis."
    ),
}


class PromptStore:
    """
    Looks prompts up in Redis (hash `prompts:<key>`, field `template`) when a
    client is configured, falling back to built-in prompts. Lookups are cached
    for PROMPT_CACHE_TTL_SECONDS; unknown keys resolve to an empty string.
    """

    def __init__(
        self,
        redis_client: Optional[redis.Redis] = None,
        fallbacks: Optional[Dict[str, str]] = None,
        ttl_seconds: float = PROMPT_CACHE_TTL_SECONDS
    ):
        self.redis = redis_client
        self.fallbacks = dict(FALLBACK_PROMPTS if fallbacks is None else fallbacks)
        self.ttl_seconds = ttl_seconds
        self._cache: Dict[str, Tuple[str, float]] = {}

    def get(self, key: str) -> str:
        now = time.monotonic()
        cached = self._cache.get(key)
        if cached and cached[1] > now:
            return cached[0]

        template = self._lookup(key)
        if template is None:
            template = self.fallbacks.get(key, "")

        self._cache[key] = (template, now + self.ttl_seconds)
        return template

    def invalidate(self, key: Optional[str] = None) -> None:
        if key is None:
            self._cache.clear()
        else:
            self._cache.pop(key, None)

    def _lookup(self, key: str) -> Optional[str]:
        if self.redis is None:
            return None

        try:
            data = self.redis.hget(PROMPT_KEY.format(key=key), "template")
        except redis.RedisError as e:
            logger.warning("Prompt lookup failed, using fallback", extra={"prompt_key": key, "error": str(e)})
            return None

        if not data:
            return None
        text = data.decode("utf-8") if isinstance(data, bytes) else str(data)
        return text.replace("\\n", "\n")
