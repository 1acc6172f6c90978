from enum import Enum


class PricingTier(str, Enum):
    LOCAL = "local"
    NATIONAL = "national"
    STANDARD = "standard"

    def __str__(self):
        return self.value

    @property
    def number(self) -> int:
        return _TIER_NUMBERS[self]


_TIER_NUMBERS = {
    PricingTier.LOCAL: 1,
    PricingTier.NATIONAL: 2,
    PricingTier.STANDARD: 3,
}


class ProviderStatus(str, Enum):
    OK = "OK"
    ZERO_RESULTS = "ZERO_RESULTS"
    NOT_FOUND = "NOT_FOUND"

    def __str__(self):
        return self.value


class FormState(str, Enum):
    IDLE = "idle"
    SUBMITTING = "submitting"
    SHOWING_RESULT = "showing_result"
    SHOWING_ERROR = "showing_error"

    def __str__(self):
        return self.value
