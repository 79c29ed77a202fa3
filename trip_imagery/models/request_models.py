from pydantic import BaseModel, Field
from typing import Any, Dict

from trip_imagery.models.image_models import ImageCategory, ImageRequest, MAX_IMAGE_DIMENSION_PX

class ImageResolveRequest(BaseModel):
    place_name: str = Field(..., min_length=1, max_length=200)
    address: str = Field("", max_length=300)
    category: ImageCategory = ImageCategory.GENERAL
    width: int = Field(400, ge=1, le=MAX_IMAGE_DIMENSION_PX)
    height: int = Field(300, ge=1, le=MAX_IMAGE_DIMENSION_PX)
    retry_count: int = Field(0, ge=0, description="Increment to bypass a cached result")

    def to_image_request(self) -> ImageRequest:
        return ImageRequest(
            place_name=self.place_name,
            address=self.address,
            category=self.category,
            width=self.width,
            height=self.height
        )

class BrokenImageReport(BaseModel):
    url: str = Field(..., min_length=1, max_length=4096)

class TripImagesRequest(BaseModel):
    # Trip document as produced by the itinerary generator; shape is not enforced
    trip: Dict[str, Any] = Field(...)
