"""
Trip Image Enrichment Service

Attaches resolved images to an AI-generated trip document so the client does
not have to resolve every card itself.

Key Features:
- Destination hero image, hotel options, itinerary activities, traditional foods
- Deduplication (same place appearing on several days is resolved once)
- Bounded concurrency across resolutions (each resolution stays sequential)
- Keeps the generator's own imageUrl when only a placeholder could be found
"""

import asyncio
import logging
from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple

from trip_imagery.models.image_models import ImageResult
from trip_imagery.services.image_service import ImageResolutionService

# (kind, name, address) identifies one unique lookup
LookupKey = Tuple[str, str, str]


class TripImageEnrichmentService:
    """Service for filling image fields of a trip itinerary."""

    DEFAULT_MAX_CONCURRENCY = 10

    def __init__(self, image_service: ImageResolutionService, max_concurrency: int = DEFAULT_MAX_CONCURRENCY):
        self.image_service = image_service
        self.max_concurrency = max(1, max_concurrency)
        self.logger = logging.getLogger(__name__)

    async def enrich_trip_with_images(self, trip_data: Dict[str, Any]) -> Dict[str, Any]:
        """
        Enriches a trip document with image data.

        Args:
            trip_data: Trip document as produced by the itinerary generator

        Returns:
            The same document with ``image``/``imageUrl`` set on hotels,
            activities and foods, plus a top-level ``destinationImage``
        """
        try:
            start_time = datetime.utcnow()
            destination = self._get_destination(trip_data)

            items = self._collect_items(trip_data, destination)
            lookups = list(dict.fromkeys(key for key, _ in items))
            if destination:
                lookups.append(("destination", destination, ""))

            self.logger.info(
                "Starting image enrichment for trip",
                extra={
                    "destination": destination,
                    "total_items": len(items),
                    "unique_lookups": len(lookups)
                }
            )

            results = await self._resolve_all(lookups)

            for key, item in items:
                result = results.get(key)
                if result is not None:
                    self._apply_result(item, result)

            destination_result = results.get(("destination", destination, ""))
            if destination_result is not None:
                trip_data["destinationImage"] = self._image_payload(destination_result)

            trip_data["imagesEnrichedAt"] = datetime.utcnow().isoformat()

            duration = (datetime.utcnow() - start_time).total_seconds()
            self.logger.info(
                "Image enrichment complete",
                extra={
                    "destination": destination,
                    "resolved": len(results),
                    "placeholders": sum(1 for r in results.values() if r.is_default),
                    "duration_seconds": duration
                }
            )
            return trip_data

        except Exception as e:
            self.logger.error(f"Image enrichment failed: {str(e)}")
            # Return original trip_data (graceful degradation)
            return trip_data

    def _get_destination(self, trip_data: Dict[str, Any]) -> str:
        details = trip_data.get("tripDetails")
        if isinstance(details, dict):
            destination = details.get("destination")
            if isinstance(destination, str):
                return destination.strip()
        return ""

    def _collect_items(self, trip_data: Dict[str, Any], destination: str) -> List[Tuple[LookupKey, Dict[str, Any]]]:
        """
        Collect every dict that should receive an image.

        Searches in:
        - accommodation.hotelOptions[] (name, address)
        - itinerary.<dayKey>.activities[] (placeName)
        - traditionalFoods.foods[] (name)
        """
        items: List[Tuple[LookupKey, Dict[str, Any]]] = []

        accommodation = trip_data.get("accommodation", {})
        if isinstance(accommodation, dict):
            for hotel in accommodation.get("hotelOptions") or []:
                name = self._text(hotel, "name")
                if name:
                    items.append((("hotel", name, self._text(hotel, "address")), hotel))

        itinerary = trip_data.get("itinerary", {})
        if isinstance(itinerary, dict):
            for day in itinerary.values():
                if not isinstance(day, dict):
                    continue
                for activity in day.get("activities") or []:
                    name = self._text(activity, "placeName")
                    if name:
                        items.append((("attraction", name, destination), activity))

        foods = trip_data.get("traditionalFoods", {})
        if isinstance(foods, dict):
            for food in foods.get("foods") or []:
                name = self._text(food, "name")
                if name:
                    items.append((("food", name, destination), food))

        return items

    def count_images(self, trip_data: Dict[str, Any]) -> Tuple[int, int]:
        """Return (items with an image, items whose image is a placeholder)."""
        images = [
            item["image"]
            for _, item in self._collect_items(trip_data, self._get_destination(trip_data))
            if isinstance(item.get("image"), dict)
        ]
        destination_image = trip_data.get("destinationImage")
        if isinstance(destination_image, dict):
            images.append(destination_image)
        return len(images), sum(1 for image in images if image.get("is_default"))

    @staticmethod
    def _text(item: Any, field: str) -> str:
        if not isinstance(item, dict):
            return ""
        value = item.get(field)
        return value.strip() if isinstance(value, str) else ""

    async def _resolve_all(self, lookups: List[LookupKey]) -> Dict[LookupKey, ImageResult]:
        semaphore = asyncio.Semaphore(self.max_concurrency)

        async def _bounded(key: LookupKey) -> ImageResult:
            async with semaphore:
                return await self._resolve_one(key)

        results = await asyncio.gather(*(_bounded(key) for key in lookups), return_exceptions=True)

        resolved: Dict[LookupKey, ImageResult] = {}
        for key, result in zip(lookups, results):
            if isinstance(result, Exception):
                self.logger.warning(f"Image lookup failed for {key[0]} '{key[1]}': {str(result)}")
                continue
            resolved[key] = result
        return resolved

    async def _resolve_one(self, key: LookupKey) -> ImageResult:
        kind, name, address = key
        if kind == "hotel":
            return await self.image_service.get_hotel_image(name, address)
        if kind == "attraction":
            return await self.image_service.get_attraction_image(name, address)
        if kind == "food":
            return await self.image_service.get_food_image(name, address)
        return await self.image_service.get_destination_image(name)

    def _apply_result(self, item: Dict[str, Any], result: ImageResult):
        """Modifies item in-place."""
        item["image"] = self._image_payload(result)

        existing: Optional[str] = item.get("imageUrl")
        if result.is_default and isinstance(existing, str) and existing.strip():
            return
        item["imageUrl"] = result.url

    @staticmethod
    def _image_payload(result: ImageResult) -> Dict[str, Any]:
        return {
            "url": result.url,
            "source": result.source.value,
            "is_default": result.is_default,
            "fallback_url": result.fallback_url
        }
