from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from typing import Optional
from enum import Enum

MAX_IMAGE_DIMENSION_PX = 4800

class ImageCategory(str, Enum):
    HOTEL = "hotel"
    RESTAURANT = "restaurant"
    ATTRACTION = "attraction"
    FOOD = "food"
    GENERAL = "general"

class ImageSource(str, Enum):
    GOOGLE = "google"
    PEXELS = "pexels"
    UNSPLASH = "unsplash"
    PLACEHOLDER = "placeholder"

class ImageRequest(BaseModel):
    """Inputs for one image resolution."""

    model_config = ConfigDict(frozen=True)

    place_name: str = Field(..., min_length=1)
    address: str = ""
    category: ImageCategory = ImageCategory.GENERAL
    width: int = Field(400, ge=1, le=MAX_IMAGE_DIMENSION_PX)
    height: int = Field(300, ge=1, le=MAX_IMAGE_DIMENSION_PX)

    @field_validator("place_name")
    @classmethod
    def place_name_not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("place_name must not be blank")
        return v

class ImageResult(BaseModel):
    """A resolved image. Placeholders are always flagged as default images."""

    model_config = ConfigDict(frozen=True)

    url: str
    source: ImageSource
    is_default: bool
    fallback_url: Optional[str] = None

    @model_validator(mode="after")
    def default_flag_matches_source(self) -> "ImageResult":
        if self.is_default != (self.source == ImageSource.PLACEHOLDER):
            raise ValueError("is_default must be true exactly when source is 'placeholder'")
        return self
