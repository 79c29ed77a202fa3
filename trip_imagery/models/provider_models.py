"""Response schemas for the external image APIs (only the fields we read)."""
from pydantic import BaseModel, Field
from typing import List, Optional

# Google Places API v1 places:searchText
class GooglePhotoRef(BaseModel):
    name: str

class GooglePlaceRecord(BaseModel):
    photos: List[GooglePhotoRef] = Field(default_factory=list)

class GooglePlacesSearchResponse(BaseModel):
    places: List[GooglePlaceRecord] = Field(default_factory=list)

# Pexels /v1/search
class PexelsPhotoSrc(BaseModel):
    medium: str

class PexelsPhoto(BaseModel):
    src: PexelsPhotoSrc

class PexelsSearchResponse(BaseModel):
    photos: List[PexelsPhoto] = Field(default_factory=list)

# Unsplash /search/photos
class UnsplashUrls(BaseModel):
    raw: Optional[str] = None
    regular: Optional[str] = None

class UnsplashPhoto(BaseModel):
    urls: UnsplashUrls

class UnsplashSearchResponse(BaseModel):
    results: List[UnsplashPhoto] = Field(default_factory=list)
