"""Custom exceptions for the Market Admin front end."""


class MarketAdminError(Exception):
    """Base exception for all application errors."""
    def __init__(self, message="An internal error occurred", status_code=500, payload=None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.payload = payload

    def to_dict(self):
        rv = dict(self.payload or ())
        rv['message'] = self.message
        rv['status'] = 'error'
        return rv


class ValidationError(MarketAdminError):
    """Raised before any network call when a sale draft is not submit-eligible.

    ``line_errors`` maps each offending line index to the list of predicates
    that line failed (``missing_product``, ``non_positive_quantity``,
    ``negative_unit_price``). Index ``None`` is used for draft-level failures
    such as an empty item list.
    """
    def __init__(self, line_errors, message='Please fill valid product, quantity and unit price for each item'):
        self.line_errors = dict(line_errors)
        super().__init__(message, 400, {'line_errors': _stringify_keys(self.line_errors)})

    @property
    def line_indices(self):
        return sorted(i for i in self.line_errors if i is not None)


class BackendError(MarketAdminError):
    """The backend answered with a non-success status."""
    def __init__(self, message="Request to the backend failed", status_code=502, errors=None):
        self.errors = dict(errors or {})
        super().__init__(message, status_code, {'errors': self.errors} if self.errors else None)


class NetworkError(BackendError):
    """The backend could not be reached (connection error, transport timeout)."""
    def __init__(self, message="Could not reach the backend"):
        super().__init__(message, 502)


class NotFoundError(BackendError):
    """Exception raised when a backend resource is not found."""
    def __init__(self, message="Resource not found"):
        super().__init__(message, 404)


class SubmissionInProgressError(MarketAdminError):
    """Raised when a draft already has a submission in flight."""
    def __init__(self, message="This sale is already being submitted"):
        super().__init__(message, 409)


def _stringify_keys(line_errors):
    return {('draft' if k is None else str(k)): v for k, v in line_errors.items()}
