"""Error types raised across the relay."""


class RelayError(Exception):
    """Base class for all relay errors."""


class ConfigError(RelayError):
    """Required configuration is missing or invalid. Fatal at startup."""


class ExtractionError(RelayError):
    """An update carries no message the relay can classify."""


class NoMessageError(ExtractionError):
    def __init__(self, message: str = "no message"):
        super().__init__(message)


class MalformedPayloadError(RelayError):
    """A broker payload could not be parsed."""


class ValidationError(RelayError):
    """A parsed send-request breaks one or more rules."""

    def __init__(self, violations: list[str]):
        self.violations = list(violations)
        super().__init__(", ".join(self.violations))


class DeliveryError(RelayError):
    """A publish, send or reply call failed."""
