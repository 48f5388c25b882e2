class BookingError(ValueError):
    """Base class for user-visible booking engine errors."""


class NotFoundError(BookingError):
    pass


class InvalidInputError(BookingError):
    pass


class ConflictError(BookingError):
    pass


class UnauthorizedError(BookingError):
    pass
