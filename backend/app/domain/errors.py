class DomainError(Exception):
    """Base class for booking-core failures surfaced to callers."""


class ValidationError(DomainError):
    """Malformed input or unknown service/bay; raised before any side effect."""


class ConflictError(DomainError):
    """The requested interval overlaps a confirmed booking on the same bay."""


class ServerError(DomainError):
    """Unexpected persistence failure."""


class BookingNotFoundError(DomainError):
    pass


class InvalidTransitionError(DomainError):
    pass
