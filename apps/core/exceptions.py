# apps/core/exceptions.py

"""
API error taxonomy

Every JSON view is wrapped by ``apps.core.permissions.json_api``, which turns
an ``ApiError`` into ``{"message": ...}`` with the matching HTTP status.
"""


class ApiError(Exception):
    status_code = 500
    default_message = 'Internal server error'

    def __init__(self, message=None, status_code=None):
        self.message = message or self.default_message
        if status_code is not None:
            self.status_code = status_code
        super().__init__(self.message)


class ValidationError(ApiError):
    """Missing or malformed fields"""

    status_code = 400
    default_message = 'Invalid request'


class AuthenticationError(ApiError):
    """Missing token (401) or invalid/expired token (403)"""

    status_code = 401
    default_message = 'No token provided'


class AuthorizationError(ApiError):
    """Authenticated, but the role does not allow the action"""

    status_code = 403
    default_message = 'Not authorized'


class NotFoundError(ApiError):
    status_code = 404
    default_message = 'Not found'


class ConflictError(ApiError):
    """Duplicate email, already a member, already invited"""

    status_code = 400
    default_message = 'Conflict'
