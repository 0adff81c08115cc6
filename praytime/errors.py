class PrayTimeError(Exception):
    """Base error."""


class ConfigurationError(PrayTimeError, ValueError):
    """Raised when calculation settings cannot be resolved."""


class UnknownMethodError(ConfigurationError, KeyError):
    """Raised for a calculation method name that is not a known preset."""

    def __str__(self) -> str:
        # KeyError.__str__ would repr() the message
        return str(self.args[0]) if self.args else ""
