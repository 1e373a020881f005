# Cache module
from stylist_ai.cache.cache_manager import cache_manager, get_cache_key
from stylist_ai.cache.cache_store import CacheStore
from stylist_ai.cache.memory_store import (
    MemoryStore,
    get_memory_store,
    set_memory_store,
    memory_key,
)
