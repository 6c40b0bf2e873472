"""Search entry point.

``HotelSearchEngine`` owns the reference index for its lifetime. The index is
built once, either by an explicit ``initialize()`` at startup or lazily by the
first search, and is published only after it is complete. Concurrent first
calls share a single load; a failed load publishes nothing, so the next call
tries again.
"""

import threading

from hotel_search.config import Settings
from hotel_search.config import settings as default_settings
from hotel_search.exceptions import DomainError
from hotel_search.logging import get_logger
from hotel_search.models import DateRange, HotelWithOffers
from hotel_search.services.reference_index import ReferenceIndex
from hotel_search.services.search import OfferSource, search_hotels, validate_search_request

logger = get_logger(__name__)


class HotelSearchEngine:
    """Answers "which hotels in a city have offers in a date range"."""

    def __init__(self, settings: Settings | None = None, *, index: ReferenceIndex | None = None) -> None:
        self._settings = settings or default_settings
        self._index = index
        self._lock = threading.Lock()

    @property
    def index(self) -> ReferenceIndex | None:
        """The published index, or None before initialization."""
        return self._index

    def initialize(self) -> ReferenceIndex:
        """Load the reference data unless it is already loaded. Idempotent."""
        index = self._index
        if index is not None:
            return index

        with self._lock:
            if self._index is None:
                sources = self._settings.reference_sources()
                try:
                    loaded = ReferenceIndex.load(
                        sources.cities,
                        sources.hotels,
                        sources.advertisers,
                        sources.hotel_advertisers,
                        max_workers=self._settings.load_max_workers,
                    )
                except DomainError as exc:
                    logger.error(
                        "reference_data_load_failed",
                        error=exc.message,
                        error_type=type(exc).__name__,
                        data_dir=str(self._settings.data_dir),
                    )
                    raise
                self._index = loaded
            return self._index

    def perform_search(
        self,
        city_name: str,
        date_range: DateRange,
        offer_source: OfferSource,
    ) -> list[HotelWithOffers]:
        """Return hotels in ``city_name`` with offers, best rated first.

        See ``hotel_search.services.search.search_hotels`` for the contract.
        Arguments are checked before the reference data is loaded.
        """
        validate_search_request(city_name, date_range, offer_source)
        index = self.initialize()
        return search_hotels(
            index,
            city_name,
            date_range,
            offer_source,
            max_workers=self._settings.search_max_workers,
        )
