import threading
from pathlib import Path

import pytest

from hotel_search.config import Settings
from hotel_search.engine import HotelSearchEngine
from hotel_search.exceptions import InvalidArgumentError, InvalidDateRangeError, ResourceUnavailableError
from hotel_search.models import DateRange
from hotel_search.services.reference_index import ReferenceIndex
from tests.factories import EmptyOfferSource, FullOfferSource, RandomOfferSource
from tests.seeds import write_reference_files


@pytest.fixture
def counted_loads(monkeypatch: pytest.MonkeyPatch) -> list[int]:
    """Count ReferenceIndex.load calls made through the engine."""
    calls: list[int] = []
    original = ReferenceIndex.load

    def counting_load(*args: object, **kwargs: object) -> ReferenceIndex:
        calls.append(1)
        return original(*args, **kwargs)  # type: ignore[arg-type]

    monkeypatch.setattr(ReferenceIndex, "load", staticmethod(counting_load))
    return calls


def test_initialize_is_idempotent(data_settings: Settings, counted_loads: list[int]) -> None:
    engine = HotelSearchEngine(data_settings)

    first = engine.initialize()
    second = engine.initialize()

    assert first is second
    assert engine.index is first
    assert len(counted_loads) == 1


def test_concurrent_initialize_loads_once(data_settings: Settings, counted_loads: list[int]) -> None:
    engine = HotelSearchEngine(data_settings)
    barrier = threading.Barrier(8)
    seen: list[ReferenceIndex] = []
    lock = threading.Lock()

    def initialize() -> None:
        barrier.wait()
        index = engine.initialize()
        with lock:
            seen.append(index)

    threads = [threading.Thread(target=initialize) for _ in range(8)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert len(seen) == 8
    assert all(index is seen[0] for index in seen)
    assert len(counted_loads) == 1


def test_perform_search_initializes_lazily(data_settings: Settings, date_range: DateRange) -> None:
    engine = HotelSearchEngine(data_settings)
    assert engine.index is None

    results = engine.perform_search("Berlin", date_range, RandomOfferSource())

    assert engine.index is not None
    assert results


def test_prebuilt_index_skips_loading(
    reference_index: ReferenceIndex, counted_loads: list[int], date_range: DateRange
) -> None:
    engine = HotelSearchEngine(Settings(data_dir=Path("does-not-exist")), index=reference_index)

    assert engine.initialize() is reference_index
    assert engine.perform_search("Vienna", date_range, EmptyOfferSource()) == []
    assert counted_loads == []


def test_failed_load_publishes_nothing_and_retries(tmp_path: Path, date_range: DateRange) -> None:
    sources = write_reference_files(tmp_path)
    advertisers = sources.advertisers.read_text(encoding="utf-8")
    sources.advertisers.unlink()
    engine = HotelSearchEngine(Settings(data_dir=tmp_path))

    with pytest.raises(ResourceUnavailableError):
        engine.initialize()
    assert engine.index is None

    with pytest.raises(ResourceUnavailableError):
        engine.perform_search("Springfield", date_range, FullOfferSource())

    sources.advertisers.write_text(advertisers, encoding="utf-8")
    results = engine.perform_search("Springfield", date_range, FullOfferSource())
    assert [item.hotel.id for item in results] == [13, 11, 10, 12]


@pytest.mark.parametrize(
    "city_name, date_range, offer_source, error",
    [
        (None, DateRange(20180214, 20180216), FullOfferSource(), InvalidArgumentError),
        ("Berlin", None, FullOfferSource(), InvalidArgumentError),
        ("Berlin", DateRange(20180216, 20180214), FullOfferSource(), InvalidDateRangeError),
        ("Berlin", DateRange(20180214, 20180216), None, InvalidArgumentError),
    ],
    ids=["city_name", "date_range", "inverted_range", "offer_source"],
)
def test_invalid_request_is_rejected_before_loading(
    tmp_path: Path,
    counted_loads: list[int],
    city_name: str,
    date_range: DateRange,
    offer_source: object,
    error: type[Exception],
) -> None:
    engine = HotelSearchEngine(Settings(data_dir=tmp_path / "missing"))

    with pytest.raises(error):
        engine.perform_search(city_name, date_range, offer_source)  # type: ignore[arg-type]

    assert engine.index is None
    assert counted_loads == []


def test_search_berlin_returns_results(engine: HotelSearchEngine, date_range: DateRange) -> None:
    results = engine.perform_search("Berlin", date_range, RandomOfferSource())

    assert results
    assert all(engine.index.get_city_name(item.hotel.id) == "Berlin" for item in results)


def test_search_rejects_inverted_range(engine: HotelSearchEngine) -> None:
    with pytest.raises(InvalidDateRangeError):
        engine.perform_search("Berlin", DateRange(20180216, 20180214), RandomOfferSource())


def test_settings_resolve_reference_sources(tmp_path: Path) -> None:
    sources = Settings(data_dir=tmp_path, hotels_file="hotels_v2.csv").reference_sources()

    assert sources.cities == tmp_path / "cities.csv"
    assert sources.hotels == tmp_path / "hotels_v2.csv"
    assert sources.advertisers == tmp_path / "advertisers.csv"
    assert sources.hotel_advertisers == tmp_path / "hotel_advertiser.csv"


def test_settings_read_environment(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("HOTEL_SEARCH_DATA_DIR", str(tmp_path))
    monkeypatch.setenv("HOTEL_SEARCH_SEARCH_MAX_WORKERS", "4")

    settings = Settings()

    assert settings.data_dir == tmp_path
    assert settings.search_max_workers == 4
