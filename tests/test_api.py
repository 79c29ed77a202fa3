import pytest
from fastapi.testclient import TestClient

from trip_imagery.api.main import app, get_image_service
from trip_imagery.models.image_models import ImageSource
from trip_imagery.services.image_providers import ConfigurationError
from trip_imagery.services.image_service import ImageResolutionService

client = TestClient(app)

@pytest.fixture
def image_service(make_provider):
    """Resolver with an unconfigured first provider and a working second one"""
    providers = [
        make_provider("google_places", ImageSource.GOOGLE, error=ConfigurationError("no key"), configured=False),
        make_provider(
            "pexels", ImageSource.PEXELS,
            url_factory=lambda request, call: f"https://images.pexels.com/{call}.jpg"
        ),
    ]
    service = ImageResolutionService(providers)
    app.dependency_overrides[get_image_service] = lambda: service
    yield service
    app.dependency_overrides.clear()

def test_root_endpoint():
    """Test root endpoint"""
    response = client.get("/")
    assert response.status_code == 200
    data = response.json()
    assert data["message"] == "Trip Imagery API"

def test_health_check(image_service):
    """Test health check endpoint"""
    response = client.get("/health")
    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "healthy"
    assert "timestamp" in data
    assert data["configured_providers"] == ["pexels"]

def test_resolve_image_get(image_service):
    response = client.get("/api/v1/images/resolve", params={
        "place_name": "Eiffel Tower", "category": "attraction", "width": 400, "height": 200
    })
    assert response.status_code == 200
    data = response.json()
    assert data["source"] == "pexels"
    assert data["is_default"] is False
    assert data["url"] == "https://images.pexels.com/1.jpg"
    assert data["category"] == "attraction"
    assert data["fallback_url"].startswith("https://via.placeholder.com/400x200/10b981/")

def test_resolve_image_post_uses_cache_until_retry(image_service):
    body = {"place_name": "Pizza", "category": "food", "width": 300, "height": 200}

    first = client.post("/api/v1/images/resolve", json=body).json()
    second = client.post("/api/v1/images/resolve", json=body).json()
    retried = client.post("/api/v1/images/resolve", json={**body, "retry_count": 1}).json()

    assert first["url"] == second["url"] == "https://images.pexels.com/1.jpg"
    assert retried["url"] == "https://images.pexels.com/2.jpg"
    assert retried["retry_count"] == 1

def test_invalid_category_is_rejected(image_service):
    response = client.get("/api/v1/images/resolve", params={"place_name": "Louvre", "category": "museum"})
    assert response.status_code == 422

def test_blank_place_name_is_rejected(image_service):
    response = client.post("/api/v1/images/resolve", json={"place_name": "   "})
    assert response.status_code == 422
    response = client.get("/api/v1/images/hotel", params={"name": "  "})
    assert response.status_code == 422

def test_oversized_dimensions_are_rejected(image_service):
    response = client.get("/api/v1/images/resolve", params={"place_name": "Louvre", "width": 10000})
    assert response.status_code == 422

def test_category_wrappers(image_service):
    expected = {
        "hotel": ({"name": "Grand Hotel", "address": "New York, NY"}, 400, 300),
        "attraction": ({"name": "Statue of Liberty", "city": "New York"}, 400, 200),
        "food": ({"name": "Pizza Margherita"}, 300, 200),
        "restaurant": ({"name": "Joe's Pizza"}, 400, 300),
        "destination": ({"name": "Paris, France"}, 800, 400),
    }
    for kind, (params, width, height) in expected.items():
        response = client.get(f"/api/v1/images/{kind}", params=params)
        assert response.status_code == 200, kind
        data = response.json()
        assert (data["width"], data["height"]) == (width, height)
        assert data["source"] == "pexels"

def test_cache_stats_and_clear(image_service):
    client.get("/api/v1/images/food", params={"name": "Pizza"})
    client.get("/api/v1/images/food", params={"name": "Pizza"})

    stats = client.get("/api/v1/images/cache/stats").json()
    assert stats["cache_size"] == 1
    assert stats["by_source"] == {"pexels": 1}
    assert stats["resolver"]["cache_hits"] == 1

    cleared = client.delete("/api/v1/images/cache").json()
    assert cleared == {"status": "cleared", "removed": 1}
    assert client.get("/api/v1/images/cache/stats").json()["cache_size"] == 0

def test_providers_listing(image_service):
    response = client.get("/api/v1/images/providers")
    assert response.status_code == 200
    assert [(p["name"], p["configured"]) for p in response.json()] == [
        ("google_places", False), ("pexels", True), ("placeholder", True)
    ]

def test_report_broken_then_retry_falls_through_to_placeholder(image_service):
    url = client.get("/api/v1/images/hotel", params={"name": "Grand Hotel"}).json()["url"]

    response = client.post("/api/v1/images/report-broken", json={"url": url})
    assert response.status_code == 200

    image_service.providers[1].url_factory = lambda request, call: url
    retried = client.get("/api/v1/images/hotel", params={"name": "Grand Hotel", "retry_count": 1}).json()
    assert retried["source"] == "placeholder"
    assert retried["is_default"] is True

def test_validate_request():
    """Test request validation endpoint"""
    response = client.post("/api/v1/images/validate-request", json={"place_name": "", "width": 0})
    assert response.status_code == 200
    data = response.json()
    assert data["valid"] == False
    assert "Place name is required" in data["errors"]
    assert any("Width" in error for error in data["errors"])

def test_enrich_trip_images(image_service):
    trip = {
        "tripDetails": {"destination": "Rome, Italy"},
        "accommodation": {"hotelOptions": [{"name": "Hotel Artemide", "address": "Rome"}]},
        "itinerary": {"day1": {"activities": [{"placeName": "Colosseum"}]}},
        "traditionalFoods": {"foods": [{"name": "Carbonara"}]},
    }
    response = client.post("/api/v1/trips/enrich-images", json={"trip": trip})
    assert response.status_code == 200
    data = response.json()
    assert data["images_resolved"] == 4
    assert data["placeholders_used"] == 0
    assert data["trip"]["itinerary"]["day1"]["activities"][0]["image"]["source"] == "pexels"
    assert data["trip"]["destinationImage"]["url"].startswith("https://images.pexels.com/")

def test_over_long_query_parameters_are_rejected_at_the_api(image_service):
    response = client.get("/api/v1/images/hotel", params={"name": "H" * 201})
    assert response.status_code == 422
    response = client.post("/api/v1/images/resolve", json={"place_name": "Louvre", "address": "a" * 301})
    assert response.status_code == 422
