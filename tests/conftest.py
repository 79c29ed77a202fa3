import asyncio
from typing import Callable, List, Optional

import pytest

from trip_imagery.models.image_models import ImageRequest, ImageSource
from trip_imagery.services.image_providers import ImageProvider


class FakeProvider(ImageProvider):
    """In-memory provider that records every request it receives."""

    def __init__(
        self,
        name: str,
        source: ImageSource,
        url: Optional[str] = None,
        error: Optional[Exception] = None,
        delay: float = 0.0,
        configured: bool = True,
        url_factory: Optional[Callable[[ImageRequest, int], str]] = None
    ):
        self.name = name
        self.source = source
        self.url = url
        self.error = error
        self.delay = delay
        self._configured = configured
        self.url_factory = url_factory
        self.requests: List[ImageRequest] = []

    @property
    def is_configured(self) -> bool:
        return self._configured

    @property
    def calls(self) -> int:
        return len(self.requests)

    async def fetch_image_url(self, request: ImageRequest) -> str:
        self.requests.append(request)
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        if self.url_factory is not None:
            return self.url_factory(request, self.calls)
        return self.url


@pytest.fixture
def make_provider():
    """Factory fixture: make_provider("pexels", ImageSource.PEXELS, url=...)"""
    return FakeProvider
