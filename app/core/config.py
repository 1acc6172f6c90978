from typing import Optional

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    GOOGLE_MAPS_API_KEY: str = ""

    GEOCODE_URL: str = "https://maps.googleapis.com/maps/api/geocode/json"
    DISTANCE_MATRIX_URL: str = "https://maps.googleapis.com/maps/api/distancematrix/json"
    DIRECTIONS_URL: str = "https://maps.googleapis.com/maps/api/directions/json"
    PROVIDER_TIMEOUT: float = 10.0
    PROVIDER_REGION: str = "uk"

    LOCAL_REGION_TAG: str = "fife"
    NATIONAL_REGION_TAG: str = "scotland"

    LOCAL_RATE: float = 2.50     # per mile
    NATIONAL_RATE: float = 3.10
    STANDARD_RATE: float = 2.75

    DAYTIME_START_HOUR: int = 6
    DAYTIME_END_HOUR: int = 22   # exclusive
    FARE_TIMEZONE: str = "Europe/London"

    CURRENCY_SYMBOL: str = "£"
    METERS_PER_MILE: float = 1609.34

    REDIS_URL: Optional[str] = None
    REGION_CACHE_TTL: int = 86400  # 24 hours

    FARE_API_URL: str = "http://localhost:8000"

    API_TITLE: str = "Taxi Fare Estimator"
    API_DESCRIPTION: str = "Estimates UK taxi fares from a start and destination address"
    API_VERSION: str = "1.0.0"

    LOG_LEVEL: str = "INFO"
    DEBUG: bool = False

    class Config:
        env_file = ".env"
        case_sensitive = True

settings = Settings()
