"""Exception hierarchy for mneme."""


class MnemeError(Exception):
    """Base exception for mneme."""


class InvalidRating(MnemeError, ValueError):
    """Raised when a rating is not one of Again, Hard, Good or Easy."""


class SessionStateError(MnemeError, RuntimeError):
    """Raised when a session operation is not valid in the current phase."""


class StoreError(MnemeError):
    """Raised when a card store cannot read its backing data."""
