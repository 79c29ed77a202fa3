from typing import Dict, List, Union
from urllib.parse import quote

from trip_imagery.models.image_models import ImageCategory

# encodeURIComponent leaves these unescaped; keep URLs identical to the web client's
_URI_COMPONENT_SAFE = "!~*'()"

class ImageQueryFormatter:
    """Build provider search strings and locally generated placeholder URLs"""

    CATEGORY_KEYWORDS: Dict[str, List[str]] = {
        "hotel": ["hotel", "accommodation", "resort", "luxury hotel"],
        "restaurant": ["restaurant", "dining", "food", "cuisine"],
        "attraction": ["landmark", "tourist attraction", "monument", "sightseeing"],
        "food": ["food", "cuisine", "dish", "traditional food"],
        "general": ["travel", "destination", "place", "city"],
    }

    CATEGORY_STYLES: Dict[str, Dict[str, str]] = {
        "hotel": {"bg": "3b82f6", "text": "ffffff", "icon": "🏨"},
        "restaurant": {"bg": "ef4444", "text": "ffffff", "icon": "🍽️"},
        "attraction": {"bg": "10b981", "text": "ffffff", "icon": "📍"},
        "food": {"bg": "f59e0b", "text": "ffffff", "icon": "🍽️"},
        "general": {"bg": "6b7280", "text": "ffffff", "icon": "🌍"},
    }

    STYLED_PLACEHOLDER_BASE_URL = "https://via.placeholder.com"
    PLACEHOLDER_LABEL_LENGTH = 15

    @staticmethod
    def _category_key(category: Union[ImageCategory, str]) -> str:
        return category.value if isinstance(category, ImageCategory) else str(category)

    @staticmethod
    def build_search_query(place_name: str, category: Union[ImageCategory, str]) -> str:
        """Combine the place name with the first keyword of its category"""
        key = ImageQueryFormatter._category_key(category)
        keywords = ImageQueryFormatter.CATEGORY_KEYWORDS.get(
            key, ImageQueryFormatter.CATEGORY_KEYWORDS["general"]
        )
        return f"{place_name} {keywords[0]}"

    @staticmethod
    def build_styled_placeholder_url(
        place_name: str,
        category: Union[ImageCategory, str],
        width: int,
        height: int
    ) -> str:
        """Colored text placeholder with a category icon and a short label"""
        key = ImageQueryFormatter._category_key(category)
        style = ImageQueryFormatter.CATEGORY_STYLES.get(
            key, ImageQueryFormatter.CATEGORY_STYLES["general"]
        )
        label = place_name[:ImageQueryFormatter.PLACEHOLDER_LABEL_LENGTH]
        text = quote(f"{style['icon']} {label}", safe=_URI_COMPONENT_SAFE)

        return (
            f"{ImageQueryFormatter.STYLED_PLACEHOLDER_BASE_URL}/{width}x{height}"
            f"/{style['bg']}/{style['text']}?text={text}"
        )
