"""
Image provider adapters.

Each adapter makes at most one outbound request and either returns a single
renderable image URL or raises an ImageProviderError subclass. The cascade in
image_service treats every error the same way: log it and try the next one.
"""

import logging
from typing import Optional, Type, TypeVar

import httpx
from pydantic import BaseModel, ValidationError

from trip_imagery.models.image_models import ImageRequest, ImageSource
from trip_imagery.models.provider_models import (
    GooglePlacesSearchResponse,
    PexelsSearchResponse,
    UnsplashSearchResponse,
)
from trip_imagery.utils.config import is_key_configured
from trip_imagery.utils.formatters import ImageQueryFormatter
from trip_imagery.utils.seed_hash import seed_hash

MAX_URL_LENGTH = 2048

ResponseModel = TypeVar("ResponseModel", bound=BaseModel)


class ImageProviderError(Exception):
    """Base class for soft provider failures."""

    def __init__(self, message: str, source: Optional[ImageSource] = None):
        super().__init__(message)
        self.source = source


class ConfigurationError(ImageProviderError):
    """The provider has no usable credential."""


class ProviderError(ImageProviderError):
    """Non-success HTTP status or an unusable response body."""

    def __init__(self, message: str, source: Optional[ImageSource] = None,
                 status_code: Optional[int] = None, body: str = ""):
        super().__init__(message, source)
        self.status_code = status_code
        self.body = body


class NoResultError(ImageProviderError):
    """The provider answered successfully but had no photo for the query."""


class ImageProvider:
    """Common capability for every image source in the cascade."""

    name: str = "provider"
    source: ImageSource = ImageSource.PLACEHOLDER

    @property
    def is_configured(self) -> bool:
        return True

    async def fetch_image_url(self, request: ImageRequest) -> str:  # pragma: no cover - interface
        raise NotImplementedError


class HttpImageProvider(ImageProvider):
    """Shared plumbing for the networked adapters."""

    def __init__(self, api_key: Optional[str], http_client: httpx.AsyncClient):
        self.api_key = api_key
        self.http_client = http_client
        self.logger = logging.getLogger(__name__)

    @property
    def is_configured(self) -> bool:
        return is_key_configured(self.api_key)

    def _require_key(self) -> str:
        if not self.is_configured:
            raise ConfigurationError(f"{self.name} API key not configured", self.source)
        return self.api_key

    def _parse_response(self, resp: httpx.Response, schema: Type[ResponseModel]) -> ResponseModel:
        """Map status codes to errors and validate the body against ``schema``."""
        self.logger.debug(f"{self.name} API response status: {resp.status_code}")
        if resp.status_code < 200 or resp.status_code >= 300:
            raise ProviderError(
                f"{self.name} request failed: {resp.status_code} - {resp.text}",
                self.source,
                status_code=resp.status_code,
                body=resp.text,
            )

        try:
            return schema.model_validate(resp.json())
        except (ValueError, ValidationError) as e:
            raise ProviderError(
                f"{self.name} returned an unexpected response shape: {str(e)}",
                self.source,
                status_code=resp.status_code,
                body=resp.text,
            )

    def _checked_url(self, url: str) -> str:
        if len(url) > MAX_URL_LENGTH:
            raise ProviderError(
                f"{self.name} photo URL too long ({len(url)} chars)", self.source
            )
        return url


class GooglePlacesImageProvider(HttpImageProvider):
    """Places API v1 text search, first photo of the first matching place."""

    name = "google_places"
    source = ImageSource.GOOGLE

    SEARCH_URL = "https://places.googleapis.com/v1/places:searchText"
    MEDIA_URL_TEMPLATE = (
        "https://places.googleapis.com/v1/{photo_name}/media"
        "?key={key}&maxHeightPx={height}&maxWidthPx={width}"
    )

    async def fetch_image_url(self, request: ImageRequest) -> str:
        api_key = self._require_key()
        search_query = f"{request.place_name} {request.address}".strip()

        headers = {
            "X-Goog-Api-Key": api_key,
            "X-Goog-FieldMask": "places.photos.name",
        }
        body = {"textQuery": search_query, "maxResultCount": 1}

        resp = await self.http_client.post(self.SEARCH_URL, headers=headers, json=body)
        data = self._parse_response(resp, GooglePlacesSearchResponse)

        if not data.places or not data.places[0].photos:
            raise NoResultError(f"No photos found in Google Places for '{search_query}'", self.source)

        photo_name = data.places[0].photos[0].name
        return self._checked_url(self.MEDIA_URL_TEMPLATE.format(
            photo_name=photo_name,
            key=api_key,
            height=request.height,
            width=request.width,
        ))


class PexelsImageProvider(HttpImageProvider):
    name = "pexels"
    source = ImageSource.PEXELS

    SEARCH_URL = "https://api.pexels.com/v1/search"

    async def fetch_image_url(self, request: ImageRequest) -> str:
        api_key = self._require_key()
        query = ImageQueryFormatter.build_search_query(request.place_name, request.category)

        resp = await self.http_client.get(
            self.SEARCH_URL,
            params={"query": query, "per_page": 1, "orientation": "landscape"},
            headers={"Authorization": api_key},
        )
        data = self._parse_response(resp, PexelsSearchResponse)

        if not data.photos:
            raise NoResultError(f"No image found in Pexels for '{query}'", self.source)

        return self._checked_url(data.photos[0].src.medium)


class UnsplashImageProvider(HttpImageProvider):
    name = "unsplash"
    source = ImageSource.UNSPLASH

    SEARCH_URL = "https://api.unsplash.com/search/photos"

    async def fetch_image_url(self, request: ImageRequest) -> str:
        access_key = self._require_key()
        query = ImageQueryFormatter.build_search_query(request.place_name, request.category)

        resp = await self.http_client.get(
            self.SEARCH_URL,
            params={
                "query": query,
                "per_page": 1,
                "orientation": "landscape",
                "client_id": access_key,
            },
        )
        data = self._parse_response(resp, UnsplashSearchResponse)

        if not data.results:
            raise NoResultError(f"No image found in Unsplash for '{query}'", self.source)

        urls = data.results[0].urls
        if urls.raw:
            # raw URLs are imgix endpoints and accept sizing parameters
            separator = "&" if "?" in urls.raw else "?"
            return self._checked_url(
                f"{urls.raw}{separator}w={request.width}&h={request.height}&fit=crop"
            )
        if urls.regular:
            return self._checked_url(urls.regular)

        raise NoResultError(f"Unsplash photo for '{query}' has no usable URL", self.source)


class PlaceholderImageProvider(ImageProvider):
    """Deterministic filler image. Never fails."""

    name = "placeholder"
    source = ImageSource.PLACEHOLDER

    PICSUM_URL_TEMPLATE = "https://picsum.photos/seed/{seed}/{width}/{height}"
    SEED_MODULUS = 1000

    def __init__(self, picsum_enabled: bool = True):
        self.picsum_enabled = picsum_enabled

    def seed_for(self, place_name: str) -> int:
        return seed_hash(place_name) % self.SEED_MODULUS

    def styled_url(self, request: ImageRequest) -> str:
        return ImageQueryFormatter.build_styled_placeholder_url(
            request.place_name, request.category, request.width, request.height
        )

    def seeded_url(self, request: ImageRequest) -> str:
        return self.PICSUM_URL_TEMPLATE.format(
            seed=self.seed_for(request.place_name),
            width=request.width,
            height=request.height,
        )

    async def fetch_image_url(self, request: ImageRequest) -> str:
        if self.picsum_enabled:
            return self.seeded_url(request)
        return self.styled_url(request)
