"""Fare estimate endpoint"""
from fastapi import APIRouter, Depends

from app.schemas.fare import ErrorResponse, FareQuote, FareRequest
from app.services.fare import FareService
from app.services.maps import MapsClient, get_maps_client

router = APIRouter(prefix="/api", tags=["fares"])


def get_fare_service(maps: MapsClient = Depends(get_maps_client)) -> FareService:
    return FareService(maps)


@router.post(
    "/calculateFare",
    response_model=FareQuote,
    responses={400: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
)
async def calculate_fare(
    req: FareRequest,
    service: FareService = Depends(get_fare_service)
):
    return await service.calculate(req.start, req.destination)
