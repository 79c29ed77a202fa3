import re
from typing import List, Dict, Any, Optional
from trip_imagery.models.image_models import ImageCategory, MAX_IMAGE_DIMENSION_PX

# Pexels "medium" renditions are 350px tall; bigger requests get upscaled images
PEXELS_MEDIUM_HEIGHT_PX = 350

class ImageRequestValidator:
    """Validator for image resolution requests"""

    @staticmethod
    def validate_place_name(place_name: Any) -> Dict[str, Any]:
        """Validate place name (letters in any script, digits, common punctuation)."""
        errors = []
        warnings = []

        if not isinstance(place_name, str) or not place_name.strip():
            errors.append("Place name is required")
        else:
            if len(place_name) > 200:
                errors.append("Place name cannot exceed 200 characters")
            # e.g., "Café de Flore", "St. John's", "Queens (NY)", "東京タワー"
            if not re.match(r"^[\w\s\-\'\.,&()/!:#+]+$", place_name.strip()):
                warnings.append("Place name contains unusual characters; search results may be poor")

        return {
            'valid': len(errors) == 0,
            'errors': errors,
            'warnings': warnings
        }

    @staticmethod
    def validate_category(category: Any) -> Dict[str, Any]:
        """Validate the image category"""
        errors = []
        valid_categories = [c.value for c in ImageCategory]

        if category is not None and category not in valid_categories:
            errors.append(f"Category must be one of: {', '.join(valid_categories)}")

        return {
            'valid': len(errors) == 0,
            'errors': errors
        }

    @staticmethod
    def validate_dimensions(width: Any, height: Any) -> Dict[str, Any]:
        """Validate requested pixel dimensions"""
        errors = []
        warnings = []

        for label, value in (("Width", width), ("Height", height)):
            if not isinstance(value, int) or isinstance(value, bool):
                errors.append(f"{label} must be an integer")
            elif value < 1 or value > MAX_IMAGE_DIMENSION_PX:
                errors.append(f"{label} must be between 1 and {MAX_IMAGE_DIMENSION_PX} pixels")

        if not errors:
            if height > PEXELS_MEDIUM_HEIGHT_PX:
                warnings.append("Stock photo providers return medium renditions; large heights may be upscaled")
            ratio = width / height
            if ratio > 4 or ratio < 0.25:
                warnings.append("Extreme aspect ratio; photos will be heavily cropped")

        return {
            'valid': len(errors) == 0,
            'errors': errors,
            'warnings': warnings
        }

    @staticmethod
    def validate_retry_count(retry_count: Any) -> Dict[str, Any]:
        errors = []
        if not isinstance(retry_count, int) or isinstance(retry_count, bool) or retry_count < 0:
            errors.append("Retry count must be a non-negative integer")
        return {
            'valid': len(errors) == 0,
            'errors': errors
        }

    @staticmethod
    def validate_complete_request(data: Dict[str, Any]) -> Dict[str, Any]:
        """Validate a raw image request payload"""
        all_errors: List[str] = []
        all_warnings: List[str] = []
        validation_results = {}

        name_validation = ImageRequestValidator.validate_place_name(data.get("place_name"))
        all_errors.extend(name_validation['errors'])
        all_warnings.extend(name_validation['warnings'])
        validation_results['place_name'] = name_validation

        category_validation = ImageRequestValidator.validate_category(data.get("category"))
        all_errors.extend(category_validation['errors'])
        validation_results['category'] = category_validation

        dimension_validation = ImageRequestValidator.validate_dimensions(
            data.get("width", 400), data.get("height", 300)
        )
        all_errors.extend(dimension_validation['errors'])
        all_warnings.extend(dimension_validation['warnings'])
        validation_results['dimensions'] = dimension_validation

        retry_validation = ImageRequestValidator.validate_retry_count(data.get("retry_count", 0))
        all_errors.extend(retry_validation['errors'])
        validation_results['retry_count'] = retry_validation

        address: Optional[Any] = data.get("address")
        if address is not None and not isinstance(address, str):
            all_errors.append("Address must be a string")

        return {
            'valid': len(all_errors) == 0,
            'errors': all_errors,
            'warnings': all_warnings,
            'details': validation_results
        }
