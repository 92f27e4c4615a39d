"""Exceptions raised inside the reputation engine."""


class OriginGuardError(Exception):
    """Base exception for reputation engine errors."""

    pass


class FeedUnavailable(OriginGuardError):
    """Feed endpoint answered with something other than HTTP 200."""

    def __init__(self, name: str, status_code: int, message: str = "Feed unavailable"):
        self.name = name
        self.status_code = status_code
        self.message = message
        super().__init__(f"{message}: {name} returned HTTP {status_code}")


class FeedSchemaError(OriginGuardError, ValueError):
    """Feed body did not match its expected schema."""

    def __init__(self, name: str, message: str):
        self.name = name
        self.message = message
        super().__init__(f"{name}: {message}")
