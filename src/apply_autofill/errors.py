"""Exception types raised by the auto-fill engine."""


class AutoFillError(Exception):
    """Base class for auto-fill errors."""


class ProfileUnavailableError(AutoFillError):
    """The profile service has no profile for the current user, or the user is not authenticated."""


class FillInProgressError(AutoFillError):
    """A fill is already running on this executor."""


class ElementInteractionError(AutoFillError):
    """A page element could not be driven to the requested value."""

    def __init__(self, canonical_name: str, message: str):
        super().__init__(message)
        self.canonical_name = canonical_name
