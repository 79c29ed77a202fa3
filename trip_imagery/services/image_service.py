"""
Image Resolution Service

Resolves a representative image for a place by walking an ordered list of
image providers until one returns a URL.

Key Features:
- Strict priority order (first success wins, later providers are not called)
- Per-provider timeout; any failure simply advances to the next provider
- Unbounded in-memory cache keyed by request fingerprint + retry attempt
- De-duplication of identical in-flight resolutions
- Deterministic placeholder when every provider fails (cached like a success)
"""

import asyncio
import logging
from collections import Counter
from typing import Any, Dict, List, Optional, Sequence, Set

import httpx

from trip_imagery.models.image_models import ImageCategory, ImageRequest, ImageResult, ImageSource
from trip_imagery.services.image_cache import ImageCache, make_fingerprint
from trip_imagery.services.image_providers import (
    ConfigurationError,
    GooglePlacesImageProvider,
    ImageProvider,
    ImageProviderError,
    PexelsImageProvider,
    PlaceholderImageProvider,
    UnsplashImageProvider,
)
from trip_imagery.utils.config import PROVIDER_KEY_SETTINGS, Settings, get_settings


class ImageResolutionService:
    """Cascade resolver with a per-instance result cache."""

    DEFAULT_PROVIDER_TIMEOUT = 8.0

    PROVIDER_REGISTRY = {
        "google_places": GooglePlacesImageProvider,
        "pexels": PexelsImageProvider,
        "unsplash": UnsplashImageProvider,
    }

    def __init__(
        self,
        providers: Sequence[ImageProvider],
        placeholder: Optional[PlaceholderImageProvider] = None,
        cache: Optional[ImageCache] = None,
        provider_timeout: float = DEFAULT_PROVIDER_TIMEOUT,
        http_client: Optional[httpx.AsyncClient] = None
    ):
        self.providers: List[ImageProvider] = list(providers)
        self.placeholder = placeholder or PlaceholderImageProvider()
        self.cache = cache if cache is not None else ImageCache()
        self.provider_timeout = provider_timeout
        # Only set when this service owns the client and must close it
        self.http_client = http_client
        self.logger = logging.getLogger(__name__)

        self._pending: Dict[str, "asyncio.Future[ImageResult]"] = {}
        self._failed_urls: Set[str] = set()

        self.resolutions = 0
        self.cache_hits = 0
        self.cache_misses = 0
        self.joined_requests = 0
        self.provider_failures: Counter = Counter()

    @classmethod
    def from_settings(
        cls,
        settings: Optional[Settings] = None,
        http_client: Optional[httpx.AsyncClient] = None
    ) -> "ImageResolutionService":
        """Compose the provider list in IMAGE_PROVIDER_ORDER with one shared HTTP client."""
        settings = settings or get_settings()
        owns_client = http_client is None
        if owns_client:
            http_client = httpx.AsyncClient(
                timeout=settings.IMAGE_PROVIDER_TIMEOUT_SECONDS,
                limits=httpx.Limits(max_keepalive_connections=20, max_connections=50)
            )

        providers: List[ImageProvider] = []
        for name in settings.IMAGE_PROVIDER_ORDER:
            provider_cls = cls.PROVIDER_REGISTRY.get(name)
            if provider_cls is None:
                logging.getLogger(__name__).warning(f"Skipping unknown image provider '{name}'")
                continue
            api_key = getattr(settings, PROVIDER_KEY_SETTINGS[name])
            providers.append(provider_cls(api_key=api_key, http_client=http_client))

        return cls(
            providers,
            placeholder=PlaceholderImageProvider(picsum_enabled=settings.PICSUM_ENABLED),
            provider_timeout=settings.IMAGE_PROVIDER_TIMEOUT_SECONDS,
            http_client=http_client if owns_client else None
        )

    async def close(self):
        """Close HTTP client connections."""
        if self.http_client is not None:
            await self.http_client.aclose()

    async def resolve(self, request: ImageRequest, retry_count: int = 0) -> ImageResult:
        """
        Resolve an image for ``request``. Never raises for provider failures.

        Args:
            request: What to look for and at which size
            retry_count: 0 for a normal lookup; a higher attempt number bypasses
                the cached result of earlier attempts

        Returns:
            The first provider hit, or a placeholder result when all fail
        """
        fingerprint = make_fingerprint(request, retry_count)

        if retry_count == 0:
            cached = self.cache.get(fingerprint)
            if cached is not None:
                self.cache_hits += 1
                return cached

        self.cache_misses += 1

        pending = self._pending.get(fingerprint)
        if pending is None:
            pending = asyncio.ensure_future(self._run_cascade(request, retry_count, fingerprint))
            self._pending[fingerprint] = pending
            pending.add_done_callback(lambda task: self._forget_pending(fingerprint, task))
        else:
            self.joined_requests += 1
            self.logger.debug(f"Joining in-flight image resolution for {request.place_name}")

        # A cancelled caller must not cancel the cascade other callers are waiting on
        return await asyncio.shield(pending)

    def _forget_pending(self, fingerprint: str, task: "asyncio.Future[ImageResult]"):
        if self._pending.get(fingerprint) is task:
            del self._pending[fingerprint]

    async def _run_cascade(self, request: ImageRequest, retry_count: int, fingerprint: str) -> ImageResult:
        self.resolutions += 1
        self.logger.info(
            f"Loading image for: {request.place_name} ({request.category.value}) - attempt {retry_count + 1}"
        )
        fallback_url = self.placeholder.styled_url(request)

        for provider in self.providers:
            url = await self._try_provider(provider, request)
            if url is None:
                continue

            result = ImageResult(
                url=url,
                source=provider.source,
                is_default=False,
                fallback_url=fallback_url
            )
            self.logger.info(f"{provider.name} succeeded for {request.place_name}")
            self.cache.set(fingerprint, result)
            return result

        result = await self._placeholder_result(request)
        self.logger.info(f"Using placeholder image for {request.place_name}")
        self.cache.set(fingerprint, result)
        return result

    async def _try_provider(self, provider: ImageProvider, request: ImageRequest) -> Optional[str]:
        """Run one provider; return its URL, or None when the cascade should move on."""
        try:
            url = await asyncio.wait_for(
                provider.fetch_image_url(request), timeout=self.provider_timeout
            )
        except ConfigurationError as e:
            self.logger.debug(f"{provider.name} skipped for {request.place_name}: {str(e)}")
            self.provider_failures[provider.source.value] += 1
            return None
        except ImageProviderError as e:
            self.logger.warning(f"{provider.name} failed for {request.place_name}: {str(e)}")
            self.provider_failures[provider.source.value] += 1
            return None
        except asyncio.TimeoutError:
            self.logger.warning(
                f"{provider.name} timed out after {self.provider_timeout}s for {request.place_name}"
            )
            self.provider_failures[provider.source.value] += 1
            return None
        except httpx.HTTPError as e:
            self.logger.warning(f"{provider.name} transport error for {request.place_name}: {str(e)}")
            self.provider_failures[provider.source.value] += 1
            return None
        except Exception as e:
            self.logger.warning(
                f"{provider.name} raised an unexpected error for {request.place_name}: {str(e)}",
                exc_info=True
            )
            self.provider_failures[provider.source.value] += 1
            return None

        if not url or url in self._failed_urls:
            self.logger.warning(f"{provider.name} returned a broken image URL for {request.place_name}")
            self.provider_failures[provider.source.value] += 1
            return None

        return url

    async def _placeholder_result(self, request: ImageRequest) -> ImageResult:
        styled_url = self.placeholder.styled_url(request)
        url = await self.placeholder.fetch_image_url(request)
        if url in self._failed_urls:
            url = styled_url

        return ImageResult(
            url=url,
            source=ImageSource.PLACEHOLDER,
            is_default=True,
            fallback_url=styled_url if url != styled_url else None
        )

    # Category convenience wrappers

    async def get_hotel_image(self, hotel_name: str, address: str = "", retry_count: int = 0) -> ImageResult:
        return await self.resolve(
            ImageRequest(place_name=hotel_name, address=address or "",
                         category=ImageCategory.HOTEL, width=400, height=300),
            retry_count
        )

    async def get_attraction_image(self, attraction_name: str, city: str = "", retry_count: int = 0) -> ImageResult:
        return await self.resolve(
            ImageRequest(place_name=attraction_name, address=city or "",
                         category=ImageCategory.ATTRACTION, width=400, height=200),
            retry_count
        )

    async def get_food_image(self, food_name: str, location: str = "", retry_count: int = 0) -> ImageResult:
        return await self.resolve(
            ImageRequest(place_name=food_name, address=location or "",
                         category=ImageCategory.FOOD, width=300, height=200),
            retry_count
        )

    async def get_restaurant_image(self, restaurant_name: str, address: str = "") -> ImageResult:
        return await self.resolve(
            ImageRequest(place_name=restaurant_name, address=address or "",
                         category=ImageCategory.RESTAURANT, width=400, height=300)
        )

    async def get_destination_image(self, destination: str) -> ImageResult:
        return await self.resolve(
            ImageRequest(place_name=destination, category=ImageCategory.GENERAL, width=800, height=400)
        )

    # Cache management

    def mark_url_failed(self, url: str):
        """Remember a URL the client could not load; providers returning it are skipped."""
        self._failed_urls.add(url)
        self.logger.info(f"Marked image URL as failed: {url[:100]}")

    def is_url_failed(self, url: str) -> bool:
        return url in self._failed_urls

    def clear_cache(self):
        self.cache.clear()
        self._failed_urls.clear()

    def cache_size(self) -> int:
        return self.cache.size()

    def cache_stats(self) -> Dict[str, int]:
        return self.cache.stats_by_source()

    def describe_providers(self) -> List[Dict[str, Any]]:
        """Providers in priority order, placeholder last."""
        described = [
            {
                "rank": rank,
                "name": provider.name,
                "source": provider.source.value,
                "configured": provider.is_configured,
            }
            for rank, provider in enumerate(self.providers, start=1)
        ]
        described.append({
            "rank": len(described) + 1,
            "name": self.placeholder.name,
            "source": self.placeholder.source.value,
            "configured": True,
        })
        return described

    def get_stats(self) -> Dict[str, Any]:
        """Get image resolution statistics."""
        total_requests = self.cache_hits + self.cache_misses
        cache_hit_rate = (self.cache_hits / max(1, total_requests)) * 100

        return {
            "resolutions": self.resolutions,
            "cache_hits": self.cache_hits,
            "cache_misses": self.cache_misses,
            "cache_hit_rate": f"{cache_hit_rate:.1f}%",
            "joined_requests": self.joined_requests,
            "total_requests": total_requests,
            "failed_urls": len(self._failed_urls),
            "provider_failures": dict(self.provider_failures),
        }
