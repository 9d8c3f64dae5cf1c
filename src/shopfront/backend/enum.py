"""Enumeration types for backend"""
from enum import Enum


class UserRole(str, Enum):
    """User role enumeration

    USER: Browses the catalog and places orders
    MANAGER: Additionally manages products
    ADMIN: Full access, including every user's orders
    """
    USER = "user"
    MANAGER = "manager"
    ADMIN = "admin"


class OrderStatus(str, Enum):
    """Order status enumeration

    Lifecycle: PENDING → PROCESSING → SHIPPED → DELIVERED,
    with CANCELLED reachable from any non-terminal state.

    DELIVERED and CANCELLED are terminal: the order can no longer be
    modified or deleted.
    """
    PENDING = "pending"
    PROCESSING = "processing"
    SHIPPED = "shipped"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"

    @property
    def is_terminal(self) -> bool:
        """Whether no further mutation is allowed in this state"""
        return self in (OrderStatus.DELIVERED, OrderStatus.CANCELLED)


class TokenType(str, Enum):
    """Value of the ``type`` claim for non-access JWTs"""
    REFRESH = "refresh"
    PASSWORD_RESET = "password-reset"
