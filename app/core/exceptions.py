"""Fare service error taxonomy.

Every error carries the HTTP status it maps to and a message that is safe
to show to the user verbatim.
"""


class FareError(Exception):
    status_code = 500
    default_message = "Failed to calculate fare. Try again later."

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(FareError):
    status_code = 400
    default_message = "Start and destination are required"


class RegionResolutionError(FareError):
    status_code = 400
    default_message = "Could not resolve the region of one of the addresses."

    def __init__(self, address: str | None = None, message: str | None = None):
        self.address = address
        if message is None and address:
            message = f"Could not resolve the region for address: {address}"
        super().__init__(message)


class RouteNotFoundError(FareError):
    status_code = 400
    default_message = "Could not calculate distance. Check the addresses."


class ProviderError(FareError):
    status_code = 500
    default_message = "Failed to calculate fare. Try again later."
