"""In-memory reference index.

Turns the flat cities/hotels/advertisers/associations files into lookup
structures. ``ReferenceIndex.load`` builds everything into local containers
and only constructs the index once every source has been read and resolved,
so a failed load never yields a partially populated index.

Load order:
1. Cities (hotels reference them by id)
2. Hotels, resolving each hotel's city name
3. Advertisers and advertiser-hotel associations, concurrently
"""

from collections.abc import Mapping
from concurrent.futures import ThreadPoolExecutor, as_completed
from types import MappingProxyType
from typing import TypeAlias

from hotel_search.exceptions import (
    InvalidArgumentError,
    MalformedRecordError,
    UnresolvedReferenceError,
)
from hotel_search.logging import get_logger
from hotel_search.models import (
    Advertiser,
    AdvertiserHotelAssociation,
    City,
    Hotel,
    HotelCityAssociation,
)
from hotel_search.repositories.records import RecordSource, parse_int, read_records

logger = get_logger(__name__)

CITY_FIELDS = 2
HOTEL_FIELDS = 7
ADVERTISER_FIELDS = 2
ASSOCIATION_FIELDS = 2

HotelIdsByAdvertiser: TypeAlias = dict[int, tuple[int, ...]]


def _load_cities(source: RecordSource) -> dict[int, City]:
    cities: dict[int, City] = {}
    for record in read_records(source, CITY_FIELDS):
        city_id = parse_int(record, 0, "city id")
        if city_id in cities:
            raise MalformedRecordError(record.source, record.line_number, f"duplicate city id {city_id}")
        cities[city_id] = City(id=city_id, name=record[1])
    return cities


def _load_hotels(source: RecordSource, cities: Mapping[int, City]) -> dict[int, HotelCityAssociation]:
    hotels: dict[int, HotelCityAssociation] = {}
    for record in read_records(source, HOTEL_FIELDS):
        hotel_id = parse_int(record, 0, "hotel id")
        city_id = parse_int(record, 1, "city id")
        # Fields 2 and 3 (clicks, impressions) are not used
        hotel = Hotel(
            id=hotel_id,
            name=record[4],
            rating=parse_int(record, 5, "rating"),
            stars=parse_int(record, 6, "stars"),
        )
        if hotel_id in hotels:
            raise MalformedRecordError(record.source, record.line_number, f"duplicate hotel id {hotel_id}")
        city = cities.get(city_id)
        if city is None:
            raise UnresolvedReferenceError("City", city_id, f"{record.source}:{record.line_number}")
        hotels[hotel_id] = HotelCityAssociation(
            hotel_id=hotel_id, city_id=city_id, city_name=city.name, hotel=hotel
        )
    return hotels


def _load_advertisers(source: RecordSource) -> dict[int, Advertiser]:
    advertisers: dict[int, Advertiser] = {}
    for record in read_records(source, ADVERTISER_FIELDS):
        advertiser_id = parse_int(record, 0, "advertiser id")
        if advertiser_id in advertisers:
            raise MalformedRecordError(
                record.source, record.line_number, f"duplicate advertiser id {advertiser_id}"
            )
        advertisers[advertiser_id] = Advertiser(id=advertiser_id, name=record[1])
    return advertisers


def _load_associations(
    source: RecordSource, hotels: Mapping[int, HotelCityAssociation]
) -> dict[str, HotelIdsByAdvertiser]:
    """Group advertised hotels by city name, then by advertiser id.

    Hotel ids keep the order in which they appear in the source. A repeated
    (advertiser, hotel) pair is kept, and shows up as a repeated hotel id in
    that advertiser's batch.
    """
    grouped: dict[str, dict[int, list[int]]] = {}
    seen: set[AdvertiserHotelAssociation] = set()
    for record in read_records(source, ASSOCIATION_FIELDS):
        association = AdvertiserHotelAssociation(
            advertiser_id=parse_int(record, 0, "advertiser id"),
            hotel_id=parse_int(record, 1, "hotel id"),
        )
        hotel_city = hotels.get(association.hotel_id)
        if hotel_city is None:
            raise UnresolvedReferenceError(
                "Hotel", association.hotel_id, f"{record.source}:{record.line_number}"
            )
        if association in seen:
            logger.warning(
                "duplicate_advertised_hotel",
                advertiser_id=association.advertiser_id,
                hotel_id=association.hotel_id,
                source=record.source,
                line=record.line_number,
            )
        seen.add(association)
        by_advertiser = grouped.setdefault(hotel_city.city_name, {})
        by_advertiser.setdefault(association.advertiser_id, []).append(association.hotel_id)

    return {
        city_name: {advertiser_id: tuple(hotel_ids) for advertiser_id, hotel_ids in by_advertiser.items()}
        for city_name, by_advertiser in grouped.items()
    }


class ReferenceIndex:
    """Read-only lookups over the reference data.

    Instances are immutable once constructed and safe to share between
    threads without locking.
    """

    def __init__(
        self,
        cities: Mapping[int, City],
        hotels: Mapping[int, HotelCityAssociation],
        advertisers: Mapping[int, Advertiser],
        hotel_ids_by_city: Mapping[str, HotelIdsByAdvertiser],
    ) -> None:
        self._cities = MappingProxyType(dict(cities))
        self._hotels = MappingProxyType(dict(hotels))
        self._advertisers = MappingProxyType(dict(advertisers))
        self._hotel_ids_by_city = MappingProxyType(
            {city: MappingProxyType(dict(grouping)) for city, grouping in hotel_ids_by_city.items()}
        )

    @classmethod
    def load(
        cls,
        cities_source: RecordSource,
        hotels_source: RecordSource,
        advertisers_source: RecordSource,
        associations_source: RecordSource,
        *,
        max_workers: int = 2,
    ) -> "ReferenceIndex":
        """Read all four sources and build a fully populated index.

        Raises:
            MalformedRecordError: a row has the wrong shape, a bad integer or a duplicate id.
            ResourceUnavailableError: a source cannot be read.
            UnresolvedReferenceError: a hotel names an unknown city, or an
                association names an unknown hotel.
        """
        cities = _load_cities(cities_source)
        hotels = _load_hotels(hotels_source, cities)

        with ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="reference-load") as pool:
            advertisers_future = pool.submit(_load_advertisers, advertisers_source)
            associations_future = pool.submit(_load_associations, associations_source, hotels)
            # Surface whichever task fails first; leaving the block waits for the other
            for future in as_completed((advertisers_future, associations_future)):
                future.result()

        index = cls(
            cities=cities,
            hotels=hotels,
            advertisers=advertisers_future.result(),
            hotel_ids_by_city=associations_future.result(),
        )
        logger.info(
            "reference_data_loaded",
            cities=len(cities),
            hotels=index.hotel_count,
            advertisers=index.advertiser_count,
            advertised_cities=len(index._hotel_ids_by_city),
        )
        return index

    @property
    def hotel_count(self) -> int:
        return len(self._hotels)

    @property
    def advertiser_count(self) -> int:
        return len(self._advertisers)

    @property
    def city_names(self) -> tuple[str, ...]:
        """Names of all loaded cities, ordered by city id."""
        return tuple(self._cities[city_id].name for city_id in sorted(self._cities))

    def get_hotel(self, hotel_id: int) -> Hotel | None:
        hotel_city = self._hotels.get(hotel_id)
        return hotel_city.hotel if hotel_city is not None else None

    def get_city_name(self, hotel_id: int) -> str | None:
        hotel_city = self._hotels.get(hotel_id)
        return hotel_city.city_name if hotel_city is not None else None

    def get_advertiser(self, advertiser_id: int) -> Advertiser | None:
        return self._advertisers.get(advertiser_id)

    def get_hotel_ids_by_advertiser(self, city_name: str) -> HotelIdsByAdvertiser:
        """Return ``advertiser_id -> hotel ids`` for the hotels advertised in ``city_name``.

        Matching is exact and case-sensitive. An unknown city, or one without
        advertised hotels, yields an empty dict. The returned dict is a copy.

        Raises:
            InvalidArgumentError: ``city_name`` is None, empty or blank.
        """
        if city_name is None or not city_name.strip():
            raise InvalidArgumentError("city_name", "must not be blank")
        return dict(self._hotel_ids_by_city.get(city_name, {}))
