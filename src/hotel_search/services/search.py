"""Hotel search orchestration.

Fans a city's ``advertiser -> hotel ids`` breakdown out to an injected offer
source (one call per advertiser, always with the advertiser's complete batch),
joins the returned offers back onto hotels and ranks the result by rating,
then stars, both descending.
"""

from collections.abc import Mapping, Sequence
from concurrent.futures import Future, ThreadPoolExecutor, as_completed
from typing import Protocol

import structlog

from hotel_search.exceptions import (
    InvalidArgumentError,
    InvalidDateRangeError,
    UnresolvedReferenceError,
)
from hotel_search.logging import get_logger
from hotel_search.models import Advertiser, DateRange, Hotel, HotelWithOffers, Offer
from hotel_search.services.reference_index import ReferenceIndex

logger = get_logger(__name__)


class OfferSource(Protocol):
    """Capability that retrieves offers from a single advertiser.

    Implementations own transport concerns (network, retries, caching).
    """

    def get_offers(
        self,
        advertiser: Advertiser,
        hotel_ids: Sequence[int],
        date_range: DateRange,
    ) -> Mapping[int, Offer]:
        """Return at most one offer per requested hotel id."""
        ...


def validate_search_request(city_name: str, date_range: DateRange, offer_source: OfferSource) -> None:
    """Check search arguments in order; the first failing check raises."""
    if city_name is None:
        raise InvalidArgumentError("city_name")
    if date_range is None:
        raise InvalidArgumentError("date_range")
    if date_range.start > date_range.end:
        raise InvalidDateRangeError(date_range)
    if offer_source is None:
        raise InvalidArgumentError("offer_source")


def _resolve_advertisers(index: ReferenceIndex, advertiser_ids: Sequence[int]) -> list[Advertiser]:
    advertisers = []
    for advertiser_id in advertiser_ids:
        advertiser = index.get_advertiser(advertiser_id)
        if advertiser is None:
            raise UnresolvedReferenceError("Advertiser", advertiser_id)
        advertisers.append(advertiser)
    return advertisers


def _fetch_offers(
    offer_source: OfferSource,
    batches: Sequence[tuple[Advertiser, tuple[int, ...]]],
    date_range: DateRange,
    max_workers: int | None,
) -> list[Mapping[int, Offer]]:
    """Call the offer source once per batch, concurrently.

    Returns the responses in batch order once every call has finished. The
    first failure cancels calls that have not started yet and is re-raised
    after running calls have finished.
    """
    with ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="offer-source") as pool:
        futures: list[Future[Mapping[int, Offer]]] = [
            pool.submit(offer_source.get_offers, advertiser, hotel_ids, date_range)
            for advertiser, hotel_ids in batches
        ]
        try:
            for future in as_completed(futures):
                future.result()
        except Exception:
            for future in futures:
                future.cancel()
            raise
    return [future.result() for future in futures]


def _group_by_hotel(
    batches: Sequence[tuple[Advertiser, tuple[int, ...]]],
    responses: Sequence[Mapping[int, Offer]],
) -> dict[int, list[Offer]]:
    offers_by_hotel: dict[int, list[Offer]] = {}
    for (advertiser, hotel_ids), response in zip(batches, responses, strict=True):
        requested = set(hotel_ids)
        for hotel_id, offer in response.items():
            if hotel_id not in requested:
                raise UnresolvedReferenceError(
                    "Hotel", hotel_id, f"not requested from advertiser {advertiser.id}"
                )
            offers_by_hotel.setdefault(hotel_id, []).append(offer)
    return offers_by_hotel


def _rank(hotels_with_offers: list[HotelWithOffers]) -> list[HotelWithOffers]:
    """Sort by rating, then stars, both descending. Equal keys keep their order."""
    return sorted(
        hotels_with_offers,
        key=lambda item: (item.hotel.rating, item.hotel.stars),
        reverse=True,
    )


def search_hotels(
    index: ReferenceIndex,
    city_name: str,
    date_range: DateRange,
    offer_source: OfferSource,
    *,
    max_workers: int | None = None,
) -> list[HotelWithOffers]:
    """Find the hotels in ``city_name`` that have offers for ``date_range``.

    Each advertiser advertising hotels in the city is asked exactly once, with
    every hotel id it advertises there. Only hotels with at least one offer
    are returned.

    Raises:
        InvalidArgumentError: a required argument is None, or city_name is blank.
        InvalidDateRangeError: date_range starts after it ends.
        UnresolvedReferenceError: an advertiser or hotel id has no index entry.
        Exception: whatever the offer source raised; no partial result is returned.
    """
    validate_search_request(city_name, date_range, offer_source)

    hotel_ids_by_advertiser = index.get_hotel_ids_by_advertiser(city_name)
    if not hotel_ids_by_advertiser:
        logger.info("search_no_advertised_hotels", city=city_name)
        return []

    advertisers = _resolve_advertisers(index, list(hotel_ids_by_advertiser))
    batches = [
        (advertiser, tuple(hotel_ids_by_advertiser[advertiser.id])) for advertiser in advertisers
    ]

    with structlog.contextvars.bound_contextvars(city=city_name, date_range=str(date_range)):
        try:
            responses = _fetch_offers(offer_source, batches, date_range, max_workers)
        except Exception as exc:
            logger.warning("offer_source_failed", error=str(exc), error_type=type(exc).__name__)
            raise

        offers_by_hotel = _group_by_hotel(batches, responses)

        hotels_with_offers = []
        for hotel_id, offers in offers_by_hotel.items():
            hotel: Hotel | None = index.get_hotel(hotel_id)
            if hotel is None:
                raise UnresolvedReferenceError("Hotel", hotel_id)
            hotels_with_offers.append(HotelWithOffers(hotel=hotel, offers=tuple(offers)))

        ranked = _rank(hotels_with_offers)
        logger.info(
            "search_completed",
            advertisers=len(batches),
            hotels_requested=sum(len(hotel_ids) for _, hotel_ids in batches),
            hotels_with_offers=len(ranked),
        )
    return ranked
