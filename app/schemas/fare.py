from typing import Optional
from pydantic import BaseModel, ConfigDict, Field


class FareRequest(BaseModel):
    # Emptiness is checked by the fare service so it can answer with the
    # service's own 400 body rather than a schema error.
    start: Optional[str] = None
    destination: Optional[str] = None


class FareQuote(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    start: str
    destination: str
    tier: int
    rate: str
    distance: str
    duration: str
    estimated_fare: str = Field(alias="estimatedFare")
    time_of_request: str = Field(alias="timeOfRequest")


class ErrorResponse(BaseModel):
    error: str


class DistanceMeasurement(BaseModel):
    distance_meters: float
    duration_seconds: float

    @property
    def minutes(self) -> float:
        return self.duration_seconds / 60


class Coordinates(BaseModel):
    lat: float
    lng: float
