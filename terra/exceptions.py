"""Error kinds raised across the listing engine.

Every error that leaves a service is one of these; storage-layer exceptions
are translated to ``TransientStorageError`` by the repositories.
"""


class TerraError(Exception):
    """Base exception for all listing engine errors."""

    status_code = 500

    def __init__(self, detail: str = ""):
        super().__init__(detail)
        self.detail = detail or self.__class__.__doc__


class NotFound(TerraError):
    """Referenced property, lead or user does not exist."""

    status_code = 404


class Forbidden(TerraError):
    """Caller lacks ownership or role for the requested scope."""

    status_code = 403


class ValidationError(TerraError):
    """Submission is missing required fields or carries invalid values."""

    status_code = 400


class TransientStorageError(TerraError):
    """Storage is temporarily unavailable."""

    status_code = 503
