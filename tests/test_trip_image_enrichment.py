import asyncio

import pytest

from trip_imagery.models.image_models import ImageSource
from trip_imagery.services.image_providers import NoResultError
from trip_imagery.services.image_service import ImageResolutionService
from trip_imagery.services.trip_image_enrichment_service import TripImageEnrichmentService


@pytest.fixture
def sample_trip():
    """Trip document in the shape the itinerary generator returns"""
    return {
        "tripDetails": {"destination": "Rome, Italy", "origin": "Paris, France", "duration": "2 days"},
        "accommodation": {
            "hotelOptions": [
                {"name": "Hotel Artemide", "address": "Via Nazionale 22, Rome", "imageUrl": ""},
                "not a hotel",
            ],
            "accommodationNotes": "Stay central",
        },
        "itinerary": {
            "day1": {"date": "2025-06-01", "activities": [
                {"placeName": "Colosseum", "imageUrl": None},
                {"placeName": "Roman Forum", "imageUrl": None},
            ]},
            "day2": {"date": "2025-06-02", "activities": [
                {"placeName": "Colosseum", "imageUrl": None},
                {"placeDetails": "no name here"},
            ]},
            "notes": "free text the generator sometimes adds",
        },
        "traditionalFoods": {
            "foods": [
                {"name": "Carbonara", "details": "Egg and guanciale", "imageUrl": "https://llm.example/carbonara.jpg"},
            ],
            "foodNotes": "",
        },
    }


def _service(make_provider, fail_categories=()):
    def url_for(request, call):
        if request.category.value in fail_categories:
            raise NoResultError("nothing")
        return f"https://img.test/{request.category.value}/{request.place_name.replace(' ', '-')}"

    provider = make_provider("pexels", ImageSource.PEXELS, url_factory=url_for)
    return provider, ImageResolutionService([provider])


def test_enriches_every_section(make_provider, sample_trip):
    provider, service = _service(make_provider)
    enricher = TripImageEnrichmentService(service, max_concurrency=2)

    trip = asyncio.run(enricher.enrich_trip_with_images(sample_trip))

    hotel = trip["accommodation"]["hotelOptions"][0]
    assert hotel["imageUrl"] == "https://img.test/hotel/Hotel-Artemide"
    assert hotel["image"]["source"] == "pexels"
    assert hotel["image"]["is_default"] is False

    day1 = trip["itinerary"]["day1"]["activities"]
    assert day1[0]["imageUrl"] == "https://img.test/attraction/Colosseum"
    assert day1[1]["imageUrl"] == "https://img.test/attraction/Roman-Forum"
    assert trip["itinerary"]["day2"]["activities"][0]["imageUrl"] == "https://img.test/attraction/Colosseum"
    assert "image" not in trip["itinerary"]["day2"]["activities"][1]

    assert trip["traditionalFoods"]["foods"][0]["imageUrl"] == "https://img.test/food/Carbonara"
    assert trip["destinationImage"]["url"] == "https://img.test/general/Rome,-Italy"
    assert "imagesEnrichedAt" in trip
    assert trip["accommodation"]["hotelOptions"][1] == "not a hotel"


def test_duplicate_places_are_resolved_once(make_provider, sample_trip):
    provider, service = _service(make_provider)
    enricher = TripImageEnrichmentService(service)

    asyncio.run(enricher.enrich_trip_with_images(sample_trip))

    # hotel, Colosseum, Roman Forum, Carbonara, destination
    assert provider.calls == 5
    attraction_requests = [r for r in provider.requests if r.category.value == "attraction"]
    assert {r.address for r in attraction_requests} == {"Rome, Italy"}
    destination_request = [r for r in provider.requests if r.category.value == "general"][0]
    assert (destination_request.width, destination_request.height) == (800, 400)


def test_placeholder_keeps_generator_image_url(make_provider, sample_trip):
    provider, service = _service(make_provider, fail_categories=("food", "hotel"))
    enricher = TripImageEnrichmentService(service)

    trip = asyncio.run(enricher.enrich_trip_with_images(sample_trip))

    food = trip["traditionalFoods"]["foods"][0]
    assert food["imageUrl"] == "https://llm.example/carbonara.jpg"
    assert food["image"]["is_default"] is True
    assert food["image"]["source"] == "placeholder"

    # No generator image to keep: the placeholder is used
    hotel = trip["accommodation"]["hotelOptions"][0]
    assert hotel["imageUrl"].startswith("https://picsum.photos/seed/")

    assert enricher.count_images(trip) == (6, 2)


def test_document_without_known_sections_is_returned_untouched(make_provider):
    provider, service = _service(make_provider)
    enricher = TripImageEnrichmentService(service)

    trip = asyncio.run(enricher.enrich_trip_with_images({"itinerary": "unparsed text"}))

    assert provider.calls == 0
    assert "destinationImage" not in trip
    assert trip["itinerary"] == "unparsed text"


def test_over_long_generated_names_still_get_images():
    enricher = TripImageEnrichmentService(ImageResolutionService([]))
    destination = "Hanoi " + "x" * 304
    hotel_name = "Hotel " + "y" * 244
    trip = {
        "tripDetails": {"destination": destination},
        "accommodation": {"hotelOptions": [{"name": hotel_name, "address": "Old Quarter"}]},
        "itinerary": {"day1": {"activities": [{"placeName": "Hoan Kiem Lake"}]}},
        "traditionalFoods": {"foods": [{"name": "Pho"}]},
    }

    enriched = asyncio.run(enricher.enrich_trip_with_images(trip))

    assert len(destination) == 310 and len(hotel_name) == 250
    assert enriched["accommodation"]["hotelOptions"][0]["image"]["source"] == "placeholder"
    assert enriched["itinerary"]["day1"]["activities"][0]["image"]["is_default"] is True
    assert enriched["traditionalFoods"]["foods"][0]["imageUrl"].startswith("https://picsum.photos/seed/")
    assert enriched["destinationImage"]["source"] == "placeholder"
    assert enricher.count_images(enriched) == (4, 4)
