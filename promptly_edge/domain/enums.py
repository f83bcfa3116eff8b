"""Domain enumerations: fixed sets of outcome codes and plan names."""

from enum import Enum


class ApiKeyRejection(str, Enum):
    """Why an API key was not accepted."""

    INVALID_KEY = "INVALID_KEY"
    DISABLED = "DISABLED"
    EXPIRED = "EXPIRED"
    FORBIDDEN = "FORBIDDEN"


class Plan(str, Enum):
    """Subscription plans. Enterprise defaults to an unlimited quota."""

    FREE = "free"
    PRO = "pro"
    ENTERPRISE = "enterprise"

    @classmethod
    def values(cls) -> list[str]:
        return [plan.value for plan in cls]
