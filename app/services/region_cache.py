"""Redis cache for geocoded region tags"""
import json
import logging
from typing import Optional

from app.core.config import settings
from app.core.metrics import cache_hits, cache_misses
from app.core.redis import get_redis
from app.utils.hashing import address_hash

logger = logging.getLogger(__name__)


def _cache_key(address: str) -> str:
    return f"regions:{address_hash(address)}"


async def get_cached_regions(address: str) -> Optional[frozenset]:
    redis = get_redis()
    if redis is None:
        return None
    try:
        cached = await redis.get(_cache_key(address))
    except Exception as e:
        logger.warning(f"Cache retrieval failed: {e}")
        return None
    if cached:
        cache_hits.labels(cache_key="regions").inc()
        return frozenset(json.loads(cached))
    cache_misses.labels(cache_key="regions").inc()
    return None


async def set_cached_regions(address: str, tags: frozenset):
    redis = get_redis()
    if redis is None:
        return
    try:
        await redis.set(
            _cache_key(address),
            json.dumps(sorted(tags)),
            ex=settings.REGION_CACHE_TTL
        )
    except Exception as e:
        logger.warning(f"Cache write failed: {e}")
