from pydantic import BaseModel, Field
from datetime import datetime
from typing import List, Optional, Dict, Any

from trip_imagery.models.image_models import ImageResult

class ImageResponse(BaseModel):
    url: str
    source: str
    is_default: bool
    fallback_url: Optional[str] = None
    place_name: str
    category: str
    width: int
    height: int
    retry_count: int = 0

    @classmethod
    def from_result(cls, result: ImageResult, place_name: str, category: str,
                    width: int, height: int, retry_count: int = 0) -> "ImageResponse":
        return cls(
            url=result.url,
            source=result.source.value,
            is_default=result.is_default,
            fallback_url=result.fallback_url,
            place_name=place_name,
            category=category,
            width=width,
            height=height,
            retry_count=retry_count
        )

class ProviderStatusResponse(BaseModel):
    rank: int
    name: str
    source: str
    configured: bool

class CacheStatsResponse(BaseModel):
    cache_size: int
    by_source: Dict[str, int] = Field(default_factory=dict)
    resolver: Dict[str, Any] = Field(default_factory=dict)
    generated_at: datetime

class TripImagesResponse(BaseModel):
    trip: Dict[str, Any]
    images_resolved: int = 0
    placeholders_used: int = 0

class ValidationReport(BaseModel):
    valid: bool
    errors: List[str] = Field(default_factory=list)
    warnings: List[str] = Field(default_factory=list)
