# storefront/errors.py
"""Failure types shared by the order, auth and admin code paths.

Business failures carry a message that is safe to show to the caller.
PersistenceFailure keeps its detail for the server log only.
"""


class StorefrontError(Exception):
    """Base class; ``message`` is what the caller gets to see."""
    status_code = 400
    message = 'Request failed'

    def __init__(self, message=None, errors=None):
        super().__init__(message or self.message)
        if message:
            self.message = message
        self.errors = errors or []

    def to_dict(self):
        payload = {'success': False, 'message': self.message}
        if self.errors:
            payload['errors'] = self.errors
        return payload


class ValidationError(StorefrontError):
    """Input rejected by a schema; ``errors`` holds the field-scoped messages."""
    status_code = 400
    message = 'Validation failed'


class NotFoundError(StorefrontError):
    status_code = 404
    message = 'Not found'


class BoundsError(StorefrontError):
    """Quantity outside the product's purchasable range."""
    status_code = 400
    message = 'Quantity out of range'


class AuthFailure(StorefrontError):
    status_code = 401
    message = 'Invalid credentials'


class PersistenceFailure(StorefrontError):
    status_code = 500
    message = 'Order could not be created, please try again later'

    def __init__(self, detail=None):
        super().__init__()
        self.detail = detail
