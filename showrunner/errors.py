"""Exception taxonomy for the tour data layer."""


class ShowRunnerError(Exception):
    """Base class for all ShowRunner errors."""


class ValidationError(ShowRunnerError, ValueError):
    """A required field is missing or an input value is not acceptable.

    The message is meant to be shown to the user as-is.
    """


class PermissionDenied(ShowRunnerError):
    """The current user may not invoke the requested operation."""


class NotFound(ShowRunnerError, LookupError):
    """The target of an operation does not exist."""


class RiderImportError(ShowRunnerError):
    """The rider parsing service could not produce a usable result."""
