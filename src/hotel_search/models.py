"""Domain models.

Plain frozen dataclasses. Reference data (cities, hotels, advertisers and
their associations) is immutable once loaded; offers and search results are
created fresh for every search call.
"""

from dataclasses import dataclass, field
from decimal import Decimal


@dataclass(frozen=True, slots=True)
class City:
    id: int
    name: str


@dataclass(frozen=True, slots=True)
class Hotel:
    id: int
    name: str
    rating: int
    stars: int


@dataclass(frozen=True, slots=True)
class Advertiser:
    id: int
    name: str


@dataclass(frozen=True, slots=True)
class HotelCityAssociation:
    """Join row resolving a hotel to the city it is located in."""

    hotel_id: int
    city_id: int
    city_name: str
    hotel: Hotel


@dataclass(frozen=True, slots=True)
class AdvertiserHotelAssociation:
    """An advertiser advertising a hotel."""

    advertiser_id: int
    hotel_id: int


@dataclass(frozen=True, slots=True)
class DateRange:
    """Inclusive range of orderable date keys, e.g. ``YYYYMMDD`` integers."""

    start: int
    end: int

    def __str__(self) -> str:
        return f"[{self.start}, {self.end}]"


@dataclass(frozen=True, slots=True)
class Offer:
    """A priced availability unit from one advertiser for one hotel."""

    advertiser: Advertiser
    price: Decimal
    discount_percentage: int


@dataclass(frozen=True, slots=True)
class HotelWithOffers:
    """A hotel together with every offer found for it in a search."""

    hotel: Hotel
    offers: tuple[Offer, ...] = field(default_factory=tuple)
