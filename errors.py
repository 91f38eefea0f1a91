"""
Domain error taxonomy for the marketplace.

Repositories raise these; the Flask error handlers registered in
security.py turn them into JSON responses, and the Socket.IO handlers
emit them back to the caller as ``error`` events.
"""
from typing import Any, Dict, Iterable, List, Optional


class MarketplaceError(Exception):
    """Base class for every error the API reports to clients"""

    status_code = 500
    error = 'Internal Server Error'

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'success': False,
            'error': self.error,
            'message': self.message,
        }


class ValidationError(MarketplaceError):
    """A schema constraint was violated (length, enum membership, required field)"""

    status_code = 400
    error = 'Validation failed'

    def __init__(self, message: str, field: Optional[str] = None,
                 errors: Optional[List[Dict[str, str]]] = None):
        super().__init__(message)
        self.field = field
        if errors is None and field:
            errors = [{'field': field, 'message': message}]
        self.errors = errors or []

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data['errors'] = self.errors
        return data


class NotFoundError(MarketplaceError):
    """A referenced document id does not resolve"""

    status_code = 404
    error = 'Not Found'

    def __init__(self, resource: str, resource_id: Optional[str] = None):
        self.resource = resource
        self.resource_id = resource_id
        super().__init__(f"{resource} not found")


class AuthenticationRequiredError(MarketplaceError):
    """No logged-in session is attached to the request or socket"""

    status_code = 401
    error = 'Authentication required'

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data['redirect'] = '/login'
        return data


class PermissionDeniedError(MarketplaceError):
    """The caller is authenticated but may not touch this resource"""

    status_code = 403
    error = 'Forbidden'


class InvalidTransitionError(MarketplaceError):
    """A status change is not permitted from the current state"""

    status_code = 409
    error = 'Invalid Transition'

    def __init__(self, entity: str, current: str, requested: str,
                 allowed: Iterable[str] = ()):
        self.entity = entity
        self.current = current
        self.requested = requested
        self.allowed = sorted(allowed)
        super().__init__(
            f"{entity} cannot move from '{current}' to '{requested}'"
        )

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data.update({
            'current': self.current,
            'requested': self.requested,
            'allowed': self.allowed,
        })
        return data


class UpstreamError(MarketplaceError):
    """The document store or the payment gateway failed"""

    status_code = 502
    error = 'Upstream Failure'

    def __init__(self, message: str, service: str = 'gateway', status_code: Optional[int] = None):
        super().__init__(message)
        self.service = service
        if status_code is not None:
            self.status_code = status_code
