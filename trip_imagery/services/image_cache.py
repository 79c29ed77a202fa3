"""
In-memory result cache for image resolutions.

Entries never expire; the only eviction path is clear(). One ImageCache is
owned by each ImageResolutionService.
"""
import logging
import hashlib
import json
from collections import Counter
from typing import Dict, Optional

from trip_imagery.models.image_models import ImageRequest, ImageResult

logger = logging.getLogger(__name__)


def make_fingerprint(request: ImageRequest, retry_count: int = 0) -> str:
    """Stable cache key for a request plus its retry attempt number."""
    params = {
        "place_name": request.place_name,
        "address": request.address,
        "category": request.category.value,
        "width": request.width,
        "height": request.height,
        "retry": retry_count,
    }
    # Sort params for consistent hashing
    key_str = json.dumps(params, sort_keys=True, ensure_ascii=False)
    return hashlib.md5(key_str.encode()).hexdigest()


class ImageCache:
    def __init__(self):
        self._entries: Dict[str, ImageResult] = {}

    def get(self, fingerprint: str) -> Optional[ImageResult]:
        result = self._entries.get(fingerprint)
        if result is not None:
            logger.debug(f"Image cache hit for {fingerprint}")
        return result

    def set(self, fingerprint: str, result: ImageResult):
        self._entries[fingerprint] = result
        logger.debug(f"Cached {result.source.value} image for {fingerprint}")

    def clear(self):
        """Drop every entry."""
        removed = len(self._entries)
        self._entries = {}
        logger.info(f"Image cache cleared ({removed} entries removed)")

    def size(self) -> int:
        return len(self._entries)

    def stats_by_source(self) -> Dict[str, int]:
        """Count cached results per image source."""
        return dict(Counter(result.source.value for result in self._entries.values()))

    def __len__(self) -> int:
        return self.size()

    def __contains__(self, fingerprint: str) -> bool:
        return fingerprint in self._entries
