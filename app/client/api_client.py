import logging
from typing import Optional

import httpx

from app.core.config import settings
from app.schemas.fare import FareQuote

logger = logging.getLogger(__name__)


class FareApiError(Exception):
    """Fare request failed. ``message`` is the server's own text, if any."""

    def __init__(self, message: Optional[str] = None, status_code: Optional[int] = None):
        self.message = message
        self.status_code = status_code
        super().__init__(message or "Fare request failed")


class FareApiClient:

    def __init__(self, client: httpx.AsyncClient, base_url: str = settings.FARE_API_URL):
        self.client = client
        self.base_url = base_url.rstrip("/")

    async def calculate_fare(self, start: str, destination: str) -> FareQuote:
        try:
            response = await self.client.post(
                f"{self.base_url}/api/calculateFare",
                json={"start": start, "destination": destination},
            )
        except httpx.HTTPError as e:
            logger.error(f"Fare request failed: {e}")
            raise FareApiError() from e

        if response.status_code >= 400:
            raise FareApiError(_error_message(response), response.status_code)

        # pydantic's ValidationError is a ValueError, as is a JSON decode error.
        try:
            return FareQuote.model_validate(response.json())
        except ValueError as e:
            logger.error(f"Fare response was not a valid quote: {e}")
            raise FareApiError(status_code=response.status_code) from e


def _error_message(response: httpx.Response) -> Optional[str]:
    try:
        body = response.json()
    except ValueError:
        return None
    return body.get("error") if isinstance(body, dict) else None
