"""URL checks and maps-search fallbacks for schedule items."""

from collections.abc import Sequence
from urllib.parse import quote, urlparse

from backend.app.models.itinerary import DayPlan

MAPS_SEARCH_BASE = "https://www.google.com/maps/search/?api=1&query="
DEFAULT_COUNTRY = "日本"


def is_http_url(value: str | None) -> bool:
    """True for absolute http(s) URLs with a host."""
    if not value:
        return False
    try:
        parsed = urlparse(value)
    except ValueError:
        return False
    return parsed.scheme in ("http", "https") and bool(parsed.netloc)


def build_maps_search_url(name: str, area: str = "", destination: str = "") -> str:
    """Maps search URL for a venue name scoped by area and destination."""
    query = " ".join(part.strip() for part in (name, area, destination, DEFAULT_COUNTRY) if part)
    query = " ".join(query.split())
    return f"{MAPS_SEARCH_BASE}{quote(query, safe='')}"


def fill_missing_urls(itinerary: Sequence[DayPlan], destination: str = "") -> list[DayPlan]:
    """Return copies of the days with every non-http item URL replaced by a maps search.

    Items of type "travel" are left alone; they have no venue to search for.
    """
    filled: list[DayPlan] = []
    for day in itinerary:
        copy = day.model_copy(deep=True)
        for item in copy.schedule:
            if item.type == "travel" or is_http_url(item.url):
                continue
            item.url = build_maps_search_url(item.activity_name, copy.area, destination)
        filled.append(copy)
    return filled
