"""Custom exceptions for Shopfront application"""


class ShopfrontException(Exception):
    """Base exception for all Shopfront business errors

    All custom exceptions should inherit from this class.
    The global exception handler will catch this and return ErrorResponse
    with ``status_code`` as the HTTP status.

    Attributes:
        message: Human-readable error message
        code: Error code for client-side error handling
        status_code: HTTP status returned to the client
        extra: Additional fields merged into the ``error`` object
    """

    status_code: int = 400

    def __init__(
        self,
        message: str,
        code: str,
        status_code: int | None = None,
        extra: dict | None = None,
    ):
        """Initialize Shopfront exception

        Args:
            message: Human-readable error message
            code: Error code (e.g., "VALIDATION_ERROR", "DUPLICATE_RESOURCE")
            status_code: HTTP status override (defaults to the class status)
            extra: Additional error details exposed to the client
        """
        self.message = message
        self.code = code
        if status_code is not None:
            self.status_code = status_code
        self.extra = extra or {}
        super().__init__(message)


class ValidationError(ShopfrontException):
    """Validation error (malformed or unusable input)

    Examples:
        - Missing refresh token
        - Referenced product does not exist or is out of stock
        - Reset token email no longer matches the account
        - Email already verified
    """

    status_code = 400

    def __init__(self, message: str, code: str = "VALIDATION_ERROR"):
        super().__init__(message, code)


class DuplicateResourceError(ShopfrontException):
    """Unique constraint violated (duplicate resource)

    Examples:
        - Email already registered
        - Username already taken
    """

    status_code = 400

    def __init__(self, message: str, code: str = "DUPLICATE_RESOURCE"):
        super().__init__(message, code)


class AuthenticationError(ShopfrontException):
    """Authentication error (missing, invalid or expired credentials)

    Examples:
        - Invalid email or password
        - Access token not provided (401)
        - Invalid access token (403)
        - Invalid or expired refresh token
    """

    status_code = 401

    def __init__(
        self,
        message: str,
        code: str = "AUTHENTICATION_ERROR",
        status_code: int | None = None,
    ):
        super().__init__(message, code, status_code=status_code)


class AuthorizationError(ShopfrontException):
    """Authorization error (a gate in front of the route refused the caller)

    Examples:
        - Email address not verified
        - Role not in the route's allow-list
        - Caller does not own the resource
    """

    status_code = 403

    def __init__(self, message: str, code: str = "FORBIDDEN", extra: dict | None = None):
        super().__init__(message, code, extra=extra)


class NotFoundError(ShopfrontException):
    """Resource not found error

    Orders owned by someone else are reported with this error too,
    so their existence is never revealed.
    """

    status_code = 404

    def __init__(self, message: str, code: str = "NOT_FOUND"):
        super().__init__(message, code)


class StateConflictError(ShopfrontException):
    """Operation is invalid for the resource's current state

    Examples:
        - Updating a delivered or cancelled order
        - Deleting an order that is no longer pending
    """

    status_code = 400

    def __init__(self, message: str, code: str = "STATE_CONFLICT"):
        super().__init__(message, code)


class DependencyError(ShopfrontException):
    """An external collaborator failed

    Examples:
        - Verification email could not be delivered
    """

    status_code = 500

    def __init__(self, message: str, code: str = "DEPENDENCY_FAILURE"):
        super().__init__(message, code)
