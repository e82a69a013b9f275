"""
Location services for Safe Jobs.

Wraps Google Places autocomplete/details (over httpx) and Google geocoding
(through geopy) so a typed or spoken location becomes a formatted address and
a coordinate. Also resolves the user's current position from a device
location provider. Every failure is reported as a status string.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Optional

import httpx
from geopy.exc import GeocoderServiceError, GeocoderTimedOut
from geopy.geocoders import GoogleV3

from .config import GoogleConfig
from .database import Coordinate

logger = logging.getLogger(__name__)

PLACES_BASE_URL = "https://maps.googleapis.com/maps/api/place"

LANGUAGE_CODES = {
    "tamil": "ta",
    "swahili": "sw",
    "telugu": "te",
    "malayalam": "ml",
}

MISSING_KEY_ERROR = "Google Places API key not configured"


def get_language_code(language: str) -> str:
    """Map a UI language name to a Maps API language code."""
    return LANGUAGE_CODES.get((language or "").lower(), "en")


@dataclass
class PlacePrediction:
    """An autocomplete suggestion."""
    place_id: str
    description: str


@dataclass
class PlaceSearchResult:
    results: list[PlacePrediction] = field(default_factory=list)
    error: Optional[str] = None


@dataclass
class PlaceDetails:
    address: str
    coordinates: Coordinate


@dataclass
class PlaceDetailsResult:
    details: Optional[PlaceDetails] = None
    error: Optional[str] = None


@dataclass
class GeocodedLocation:
    """Result of geocoding a location string."""
    original: str
    coordinates: Optional[Coordinate] = None
    formatted_address: Optional[str] = None
    geocoding_failed: bool = False


@dataclass
class CurrentLocation:
    """The user's position, or why it is unavailable."""
    location: Optional[Coordinate] = None
    address: Optional[str] = None
    error: Optional[str] = None


class LocationProvider(ABC):
    """Device location source (GPS, browser, ...)."""

    @abstractmethod
    async def request_permission(self) -> bool:
        """Ask for foreground location permission. True if granted."""

    @abstractmethod
    async def get_position(self) -> Coordinate:
        """Return a one-shot position fix."""


class LocationService:
    """
    Places, geocoding and current-location lookups.
    """

    def __init__(
        self,
        config: GoogleConfig,
        client: Optional[httpx.AsyncClient] = None,
        geocoder=None,
    ):
        """
        Initialize the location service.

        Args:
            config: Google services configuration.
            client: Optional preconfigured HTTP client (used by tests).
            geocoder: Optional geopy-compatible geocoder (used by tests).
        """
        self.config = config
        self.api_key = config.maps_api_key
        self.client = client or httpx.AsyncClient(
            timeout=httpx.Timeout(config.timeout, connect=10.0)
        )

        if geocoder is not None:
            self.geocoder = geocoder
        elif self.api_key:
            self.geocoder = GoogleV3(api_key=self.api_key, timeout=config.timeout)
        else:
            self.geocoder = None

        # Cache for geocoded locations to reduce API calls
        self._geocode_cache: dict[str, GeocodedLocation] = {}

        if not self.api_key:
            logger.info("Location service initialized without a Maps API key; lookups disabled")

    async def search_places(self, search_text: str, language: Optional[str] = None) -> PlaceSearchResult:
        """
        Autocomplete a partial location.

        Args:
            search_text: What the user typed so far.
            language: UI language name; defaults to the configured one.

        Returns:
            PlaceSearchResult with predictions or an error message.
        """
        if not self.api_key:
            return PlaceSearchResult(error=MISSING_KEY_ERROR)

        if not search_text or len(search_text) < 3:
            # Not enough text to search
            return PlaceSearchResult()

        language_code = get_language_code(language or self.config.language)
        logger.debug(f"Searching places for '{search_text}' (language={language_code})")

        try:
            response = await self.client.get(
                f"{PLACES_BASE_URL}/autocomplete/json",
                params={
                    "input": search_text,
                    "key": self.api_key,
                    "language": language_code,
                    "types": "geocode",
                },
            )
            data = response.json()
        except Exception as e:
            logger.error(f"Error searching places: {e}")
            return PlaceSearchResult(error="Network error while searching places")

        status = data.get("status")
        if status != "OK":
            logger.error(f"Places API error: {status} {data.get('error_message', '')}")
            return PlaceSearchResult(
                error=data.get("error_message") or f"Search failed: {status}"
            )

        return PlaceSearchResult(results=[
            PlacePrediction(place_id=p["place_id"], description=p.get("description", ""))
            for p in data.get("predictions", [])
            if p.get("place_id")
        ])

    async def get_place_details(self, place_id: str, language: Optional[str] = None) -> PlaceDetailsResult:
        """
        Resolve an autocomplete prediction to an address and coordinate.

        Args:
            place_id: Place id from search_places.
            language: UI language name.

        Returns:
            PlaceDetailsResult with details or an error message.
        """
        if not self.api_key:
            return PlaceDetailsResult(error=MISSING_KEY_ERROR)

        language_code = get_language_code(language or self.config.language)

        try:
            response = await self.client.get(
                f"{PLACES_BASE_URL}/details/json",
                params={
                    "place_id": place_id,
                    "key": self.api_key,
                    "language": language_code,
                    "fields": "formatted_address,geometry",
                },
            )
            data = response.json()
        except Exception as e:
            logger.error(f"Error getting place details: {e}")
            return PlaceDetailsResult(error="Network error while retrieving place details")

        status = data.get("status")
        if status != "OK":
            return PlaceDetailsResult(
                error=data.get("error_message") or f"Details lookup failed: {status}"
            )

        try:
            result = data["result"]
            location = result["geometry"]["location"]
            details = PlaceDetails(
                address=result.get("formatted_address", ""),
                coordinates=Coordinate(float(location["lat"]), float(location["lng"])),
            )
        except (KeyError, TypeError, ValueError) as e:
            logger.error(f"Malformed place details for {place_id}: {e}")
            return PlaceDetailsResult(error="Details lookup failed: malformed response")

        return PlaceDetailsResult(details=details)

    def _try_geocode(self, location_str: str, language_code: str):
        """
        Attempt to geocode a location string.

        Returns:
            Geocoding result or None if failed.
        """
        try:
            return self.geocoder.geocode(location_str, exactly_one=True, language=language_code)
        except GeocoderTimedOut:
            logger.warning(f"Geocoding timeout for: {location_str}")
            return None
        except GeocoderServiceError as e:
            logger.error(f"Geocoding service error for '{location_str}': {e}")
            return None
        except Exception as e:
            logger.error(f"Unexpected geocoding error for '{location_str}': {e}")
            return None

    async def geocode(self, location_str: str, language: Optional[str] = None) -> GeocodedLocation:
        """
        Geocode a free-text location (typed or transcribed).

        Args:
            location_str: Location text, e.g. "Springfield, IL".
            language: UI language name.

        Returns:
            GeocodedLocation; geocoding_failed is set when nothing resolved.
        """
        cache_key = location_str.lower().strip()
        if cache_key in self._geocode_cache:
            return self._geocode_cache[cache_key]

        result = GeocodedLocation(original=location_str)

        if self.geocoder is None or not cache_key:
            result.geocoding_failed = True
            return result

        geo_result = self._try_geocode(location_str.strip(), get_language_code(language or self.config.language))

        if geo_result:
            result.coordinates = Coordinate(geo_result.latitude, geo_result.longitude)
            result.formatted_address = geo_result.address
            logger.debug(f"Geocoded '{location_str}' -> {result.coordinates}")
        else:
            logger.warning(f"Could not geocode location: {location_str}")
            result.geocoding_failed = True

        self._geocode_cache[cache_key] = result
        return result

    async def get_address_from_coordinates(self, coordinates: Coordinate) -> Optional[str]:
        """Reverse-geocode a coordinate to a formatted address, or None."""
        if self.geocoder is None:
            return None

        try:
            location = self.geocoder.reverse(
                f"{coordinates.latitude}, {coordinates.longitude}", exactly_one=True
            )
        except (GeocoderTimedOut, GeocoderServiceError) as e:
            logger.error(f"Reverse geocoding error: {e}")
            return None
        except Exception as e:
            logger.error(f"Unexpected reverse geocoding error: {e}")
            return None

        return location.address if location else None

    async def get_current_location(self, provider: LocationProvider) -> CurrentLocation:
        """
        Get the user's current position with an address.

        Args:
            provider: Device location source.

        Returns:
            CurrentLocation; error is set on denial or failure.
        """
        try:
            if not await provider.request_permission():
                return CurrentLocation(error="Location permission denied")

            coordinates = await provider.get_position()
        except Exception as e:
            logger.error(f"Error getting current location: {e}")
            return CurrentLocation(error="Failed to get current location")

        if self.api_key:
            address = await self.get_address_from_coordinates(coordinates)
            return CurrentLocation(location=coordinates, address=address)

        return CurrentLocation(
            location=coordinates,
            address=f"{coordinates.latitude:.4f}, {coordinates.longitude:.4f}",
        )

    def clear_cache(self) -> None:
        """Clear the geocoding cache."""
        self._geocode_cache.clear()
        logger.debug("Geocoding cache cleared")

    async def close(self) -> None:
        """Close the HTTP client."""
        await self.client.aclose()
