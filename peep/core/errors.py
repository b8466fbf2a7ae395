"""Error taxonomy shared by the client core.

Nothing here is fatal. Background work logs and swallows these; user
initiated actions turn them into a transient message.
"""


class PeepError(Exception):
    """Base class for every failure the client surfaces."""

    def __init__(self, message: str = ""):
        super().__init__(message)
        self.message = message


class PermissionDenied(PeepError):
    """The foreground-app sensor is not authorized. Fixable from OS settings."""


class NotFound(PeepError):
    """A user or row lookup came back empty."""


class Conflict(PeepError):
    """A uniqueness rule was violated (duplicate request, taken username)."""


class TransientNetworkFailure(PeepError):
    """Any call to the backend that did not complete."""

    def __init__(self, message: str = "", status_code: int = None):
        super().__init__(message)
        self.status_code = status_code
