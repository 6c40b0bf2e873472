from dataclasses import dataclass
from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict


@dataclass(frozen=True)
class ReferenceSources:
    """Resolved locations of the four reference data files."""

    cities: Path
    hotels: Path
    advertisers: Path
    hotel_advertisers: Path


class Settings(BaseSettings):
    """Application settings loaded from environment variables.

    Pydantic Settings reads env vars prefixed with ``HOTEL_SEARCH_`` (case-insensitive),
    e.g. ``HOTEL_SEARCH_DATA_DIR=/srv/reference``. In development, it also reads
    from .env file if present.
    """

    # Directory holding the reference data files
    data_dir: Path = Path("data")

    # File names relative to data_dir. Each file is a header row followed by
    # comma-separated data rows, UTF-8 encoded.
    cities_file: str = "cities.csv"  # id,name
    hotels_file: str = "hotels.csv"  # id,city_id,clicks,impressions,name,rating,stars
    advertisers_file: str = "advertisers.csv"  # id,name
    hotel_advertisers_file: str = "hotel_advertiser.csv"  # advertiser_id,hotel_id

    # Worker pool sizes
    load_max_workers: int = 2  # Advertisers and associations load side by side
    search_max_workers: int | None = None  # None = ThreadPoolExecutor default

    model_config = SettingsConfigDict(
        env_prefix="HOTEL_SEARCH_",
        env_file=".env",  # Load from .env in development
        env_file_encoding="utf-8",
        extra="ignore",  # Ignore unknown env vars
    )

    def reference_sources(self) -> ReferenceSources:
        """Return the reference data file paths resolved against data_dir."""
        return ReferenceSources(
            cities=self.data_dir / self.cities_file,
            hotels=self.data_dir / self.hotels_file,
            advertisers=self.data_dir / self.advertisers_file,
            hotel_advertisers=self.data_dir / self.hotel_advertisers_file,
        )


settings = Settings()
