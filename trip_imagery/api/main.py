from fastapi import FastAPI, HTTPException, Depends, Query, Body
from fastapi.middleware.cors import CORSMiddleware
import logging
from datetime import datetime
from typing import Dict, Any, List, Optional

from trip_imagery.models.image_models import ImageCategory, ImageRequest, ImageResult, MAX_IMAGE_DIMENSION_PX
from trip_imagery.models.request_models import ImageResolveRequest, BrokenImageReport, TripImagesRequest
from trip_imagery.models.response_models import (
    ImageResponse, ProviderStatusResponse, CacheStatsResponse, TripImagesResponse, ValidationReport
)
from trip_imagery.services.image_service import ImageResolutionService
from trip_imagery.services.trip_image_enrichment_service import TripImageEnrichmentService
from trip_imagery.utils.config import get_settings, validate_settings
from trip_imagery.utils.validators import ImageRequestValidator

settings = get_settings()

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format=settings.LOG_FORMAT
)
logger = logging.getLogger(__name__)

# Initialize FastAPI app
app = FastAPI(
    title="Trip Imagery API",
    description="Resolve place images for trip itineraries through a cascade of photo providers",
    version=settings.API_VERSION,
    docs_url="/docs",
    redoc_url="/redoc"
)

# Add middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # Configure appropriately for production
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Global services (created on startup or on first use)
image_service: Optional[ImageResolutionService] = None
enrichment_service: Optional[TripImageEnrichmentService] = None

@app.on_event("startup")
async def startup_event():
    """Initialize services on startup"""
    try:
        configured = validate_settings()
        logger.info(f"Configured image providers: {', '.join(configured) or 'none'}")
        get_image_service()
        logger.info("Image services initialized successfully")
    except Exception as e:
        logger.error(f"Failed to initialize services: {str(e)}")
        raise

@app.on_event("shutdown")
async def shutdown_event():
    """Clean up resources on shutdown"""
    if image_service is not None:
        await image_service.close()

# Dependencies to get services
def get_image_service() -> ImageResolutionService:
    global image_service
    if image_service is None:
        image_service = ImageResolutionService.from_settings(get_settings())
    return image_service

def get_enrichment_service(
    service: ImageResolutionService = Depends(get_image_service)
) -> TripImageEnrichmentService:
    global enrichment_service
    if enrichment_service is None or enrichment_service.image_service is not service:
        enrichment_service = TripImageEnrichmentService(
            service, max_concurrency=get_settings().MAX_CONCURRENT_IMAGE_RESOLUTIONS
        )
    return enrichment_service

def _to_response(result: ImageResult, request: ImageRequest, retry_count: int = 0) -> ImageResponse:
    return ImageResponse.from_result(
        result,
        place_name=request.place_name,
        category=request.category.value,
        width=request.width,
        height=request.height,
        retry_count=retry_count
    )

@app.get("/")
async def root():
    return {
        "message": "Trip Imagery API",
        "version": settings.API_VERSION,
        "docs": "/docs"
    }

@app.get("/health")
async def health_check(service: ImageResolutionService = Depends(get_image_service)):
    providers = service.describe_providers()
    return {
        "status": "healthy",
        "timestamp": datetime.utcnow().isoformat(),
        "configured_providers": [p["name"] for p in providers if p["configured"] and p["source"] != "placeholder"],
        "cache_size": service.cache_size()
    }

@app.get("/api/v1/images/resolve", response_model=ImageResponse)
async def resolve_image(
    place_name: str = Query(..., min_length=1, max_length=200),
    address: str = Query("", max_length=300),
    category: ImageCategory = Query(ImageCategory.GENERAL),
    width: int = Query(400, ge=1, le=MAX_IMAGE_DIMENSION_PX),
    height: int = Query(300, ge=1, le=MAX_IMAGE_DIMENSION_PX),
    retry_count: int = Query(0, ge=0),
    service: ImageResolutionService = Depends(get_image_service)
):
    """Resolve an image for a place"""
    body = ImageResolveRequest(
        place_name=place_name, address=address, category=category,
        width=width, height=height, retry_count=retry_count
    )
    return await resolve_image_post(body, service)

@app.post("/api/v1/images/resolve", response_model=ImageResponse)
async def resolve_image_post(
    body: ImageResolveRequest,
    service: ImageResolutionService = Depends(get_image_service)
):
    """Resolve an image for a place (JSON body)"""
    if not body.place_name.strip():
        raise HTTPException(status_code=422, detail="place_name must not be blank")
    try:
        image_request = body.to_image_request()
        result = await service.resolve(image_request, retry_count=body.retry_count)
        return _to_response(result, image_request, body.retry_count)
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error resolving image: {str(e)}")
        raise HTTPException(status_code=500, detail=str(e))

def _require_name(name: str) -> str:
    if not name.strip():
        raise HTTPException(status_code=422, detail="name must not be blank")
    return name

async def _run_wrapper(coro, request: ImageRequest, retry_count: int = 0) -> ImageResponse:
    try:
        result = await coro
        return _to_response(result, request, retry_count)
    except Exception as e:
        logger.error(f"Error resolving {request.category.value} image: {str(e)}")
        raise HTTPException(status_code=500, detail=str(e))

@app.get("/api/v1/images/hotel", response_model=ImageResponse)
async def hotel_image(
    name: str = Query(..., min_length=1, max_length=200),
    address: str = Query("", max_length=300),
    retry_count: int = Query(0, ge=0),
    service: ImageResolutionService = Depends(get_image_service)
):
    _require_name(name)
    request = ImageRequest(place_name=name, address=address, category=ImageCategory.HOTEL, width=400, height=300)
    return await _run_wrapper(service.get_hotel_image(name, address, retry_count), request, retry_count)

@app.get("/api/v1/images/attraction", response_model=ImageResponse)
async def attraction_image(
    name: str = Query(..., min_length=1, max_length=200),
    city: str = Query("", max_length=300),
    retry_count: int = Query(0, ge=0),
    service: ImageResolutionService = Depends(get_image_service)
):
    _require_name(name)
    request = ImageRequest(place_name=name, address=city, category=ImageCategory.ATTRACTION, width=400, height=200)
    return await _run_wrapper(service.get_attraction_image(name, city, retry_count), request, retry_count)

@app.get("/api/v1/images/food", response_model=ImageResponse)
async def food_image(
    name: str = Query(..., min_length=1, max_length=200),
    location: str = Query("", max_length=300),
    retry_count: int = Query(0, ge=0),
    service: ImageResolutionService = Depends(get_image_service)
):
    _require_name(name)
    request = ImageRequest(place_name=name, address=location, category=ImageCategory.FOOD, width=300, height=200)
    return await _run_wrapper(service.get_food_image(name, location, retry_count), request, retry_count)

@app.get("/api/v1/images/restaurant", response_model=ImageResponse)
async def restaurant_image(
    name: str = Query(..., min_length=1, max_length=200),
    address: str = Query("", max_length=300),
    service: ImageResolutionService = Depends(get_image_service)
):
    _require_name(name)
    request = ImageRequest(place_name=name, address=address, category=ImageCategory.RESTAURANT, width=400, height=300)
    return await _run_wrapper(service.get_restaurant_image(name, address), request)

@app.get("/api/v1/images/destination", response_model=ImageResponse)
async def destination_image(
    name: str = Query(..., min_length=1, max_length=200),
    service: ImageResolutionService = Depends(get_image_service)
):
    _require_name(name)
    request = ImageRequest(place_name=name, category=ImageCategory.GENERAL, width=800, height=400)
    return await _run_wrapper(service.get_destination_image(name), request)

@app.post("/api/v1/images/report-broken")
async def report_broken_image(
    report: BrokenImageReport,
    service: ImageResolutionService = Depends(get_image_service)
):
    """Record an image URL the client failed to load"""
    service.mark_url_failed(report.url)
    return {"status": "recorded", "url": report.url}

@app.post("/api/v1/images/validate-request", response_model=ValidationReport)
async def validate_image_request(payload: Dict[str, Any] = Body(...)):
    """Validate an image request without resolving it"""
    try:
        validation = ImageRequestValidator.validate_complete_request(payload)
        return ValidationReport(
            valid=validation['valid'],
            errors=validation['errors'],
            warnings=validation['warnings']
        )
    except Exception as e:
        logger.error(f"Error validating request: {str(e)}")
        raise HTTPException(status_code=500, detail=str(e))

@app.get("/api/v1/images/cache/stats", response_model=CacheStatsResponse)
async def cache_statistics(service: ImageResolutionService = Depends(get_image_service)):
    return CacheStatsResponse(
        cache_size=service.cache_size(),
        by_source=service.cache_stats(),
        resolver=service.get_stats(),
        generated_at=datetime.utcnow()
    )

@app.delete("/api/v1/images/cache")
async def clear_image_cache(service: ImageResolutionService = Depends(get_image_service)):
    removed = service.cache_size()
    service.clear_cache()
    logger.info(f"Image cache cleared via API ({removed} entries)")
    return {"status": "cleared", "removed": removed}

@app.get("/api/v1/images/providers", response_model=List[ProviderStatusResponse])
async def list_providers(service: ImageResolutionService = Depends(get_image_service)):
    return [ProviderStatusResponse(**p) for p in service.describe_providers()]

@app.post("/api/v1/trips/enrich-images", response_model=TripImagesResponse)
async def enrich_trip_images(
    body: TripImagesRequest,
    enricher: TripImageEnrichmentService = Depends(get_enrichment_service)
):
    """Attach images to every hotel, activity and food of a trip document"""
    try:
        trip = await enricher.enrich_trip_with_images(body.trip)
        resolved, placeholders = enricher.count_images(trip)
        return TripImagesResponse(trip=trip, images_resolved=resolved, placeholders_used=placeholders)
    except Exception as e:
        logger.error(f"Error enriching trip images: {str(e)}")
        raise HTTPException(status_code=500, detail=str(e))
