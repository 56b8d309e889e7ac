from .base import Base
from .models.cache import CacheEntry  # Registers the cache table
